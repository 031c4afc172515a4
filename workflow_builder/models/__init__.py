"""SQLAlchemy models and domain enums."""

from workflow_builder.models.base import GUID, Base, TimestampMixin, UUIDMixin
from workflow_builder.models.enums import (
    ActionFamily,
    ConditionOperator,
    DelayUnit,
    EntityType,
    FieldDataType,
    LogicOperator,
    NodeType,
    SourceHandle,
    TriggerEventType,
    WorkflowActionType,
)
from workflow_builder.models.workflow_rule import WorkflowRule

__all__ = [
    "GUID",
    "ActionFamily",
    "Base",
    "ConditionOperator",
    "DelayUnit",
    "EntityType",
    "FieldDataType",
    "LogicOperator",
    "NodeType",
    "SourceHandle",
    "TimestampMixin",
    "TriggerEventType",
    "UUIDMixin",
    "WorkflowActionType",
    "WorkflowRule",
]
