"""Pydantic schemas for the graph document and the REST resources.

Exports all schemas for convenient importing.
"""

from workflow_builder.schemas.base import BaseResponse, BaseSchema, DocumentSchema
from workflow_builder.schemas.validation import (
    ValidationErrorCode,
    ValidationIssue,
    ValidationReport,
)
from workflow_builder.schemas.workflow_graph import (
    GRAPH_VERSION,
    MAX_ZOOM,
    MIN_ZOOM,
    NODE_DATA_MODELS,
    ActionNodeData,
    ConditionNodeData,
    DelayNodeData,
    FieldCondition,
    NodeData,
    Position,
    ScheduleConfig,
    TriggerFilter,
    TriggerNodeData,
    Viewport,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)
from workflow_builder.schemas.workflow_rule import (
    ActionSummary,
    ConditionPreviewRequest,
    ConditionPreviewResponse,
    FitToViewRequest,
    FitToViewResponse,
    GraphImportRequest,
    GraphWithErrors,
    RuleGraphPayload,
    WorkflowGraphResponse,
    WorkflowGraphSave,
    WorkflowRuleBase,
    WorkflowRuleCreate,
    WorkflowRuleResponse,
    WorkflowRuleUpdate,
)

__all__ = [
    "GRAPH_VERSION",
    "MAX_ZOOM",
    "MIN_ZOOM",
    "NODE_DATA_MODELS",
    "ActionNodeData",
    "ActionSummary",
    "BaseResponse",
    "BaseSchema",
    "ConditionNodeData",
    "ConditionPreviewRequest",
    "ConditionPreviewResponse",
    "DelayNodeData",
    "DocumentSchema",
    "FieldCondition",
    "FitToViewRequest",
    "FitToViewResponse",
    "GraphImportRequest",
    "GraphWithErrors",
    "NodeData",
    "Position",
    "RuleGraphPayload",
    "ScheduleConfig",
    "TriggerFilter",
    "TriggerNodeData",
    "ValidationErrorCode",
    "ValidationIssue",
    "ValidationReport",
    "Viewport",
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowGraphResponse",
    "WorkflowGraphSave",
    "WorkflowNode",
    "WorkflowRuleBase",
    "WorkflowRuleCreate",
    "WorkflowRuleResponse",
    "WorkflowRuleUpdate",
]
