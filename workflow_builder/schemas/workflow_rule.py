"""Pydantic schemas for WorkflowRule records and their graph endpoints.

This module defines request/response schemas for the workflow rule
resource and for the stateless graph tooling endpoints (import, validate,
auto-layout, fit-to-view, condition preview).
"""

from __future__ import annotations

from typing import Any
from uuid import UUID  # noqa: TC003 - Required at runtime for Pydantic

from pydantic import Field, field_validator

from workflow_builder.models.enums import SourceHandle
from workflow_builder.schemas.base import BaseResponse, BaseSchema, DocumentSchema
from workflow_builder.schemas.validation import ValidationIssue
from workflow_builder.schemas.workflow_graph import (
    GRAPH_VERSION,
    ConditionNodeData,
    Viewport,
    WorkflowGraph,
    is_supported_graph_version,
)

# =============================================================================
# Persisted projection
# =============================================================================


class ActionSummary(DocumentSchema):
    """One entry of the flat ``actions`` column."""

    type: str = Field(
        ...,
        description="Action type value",
        examples=["set_status", "email_send_template"],
    )
    params: dict[str, Any] = Field(
        default_factory=dict,
        description="Action parameters, passed through unvalidated",
    )


class RuleGraphPayload(DocumentSchema):
    """What a builder session hands to the persistence collaborator on save."""

    name: str
    trigger_type: str
    conditions: dict[str, Any]
    actions: list[ActionSummary] = Field(default_factory=list)


# =============================================================================
# WorkflowRule Schemas
# =============================================================================


class WorkflowRuleBase(BaseSchema):
    """Base schema for WorkflowRule with common fields."""

    name: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Display name",
        examples=["Auto-approve low value returns"],
    )
    description: str | None = Field(
        default=None,
        max_length=2000,
        description="Optional description",
    )
    active: bool = Field(
        default=True,
        description="Whether the rule is enabled",
    )
    sort_order: int = Field(
        default=0,
        ge=0,
        description="Position in the rule list",
    )


class WorkflowRuleCreate(WorkflowRuleBase):
    """Schema for creating a new workflow rule.

    Note: tenant_id is not included here as it's set by the API endpoint
    (DEFAULT_TENANT_ID until authentication is implemented). A new rule
    starts with an empty graph.
    """

    trigger_type: str = Field(
        default="manual",
        max_length=64,
        description="Legacy trigger type, derived from the graph on every save",
        examples=["manual", "return_created"],
    )


class WorkflowRuleUpdate(BaseSchema):
    """Schema for updating workflow rule metadata.

    All fields are optional to support partial updates. The graph itself
    is only written through the graph endpoint.
    """

    name: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="Display name",
    )
    description: str | None = Field(
        default=None,
        max_length=2000,
        description="Optional description",
    )
    active: bool | None = Field(
        default=None,
        description="Whether the rule is enabled",
    )
    sort_order: int | None = Field(
        default=None,
        ge=0,
        description="Position in the rule list",
    )

    @field_validator("name", "active", "sort_order", mode="before")
    @classmethod
    def reject_explicit_null(cls, value: Any) -> Any:
        """These columns are NOT NULL; omit the field to leave it unchanged."""
        if value is None:
            raise ValueError("must not be null")
        return value


class WorkflowRuleResponse(BaseResponse):
    """Schema for workflow rule in API responses."""

    tenant_id: UUID = Field(
        ...,
        description="UUID of the owning tenant",
    )
    name: str = Field(
        ...,
        description="Display name",
    )
    description: str | None = Field(
        default=None,
        description="Optional description",
    )
    trigger_type: str = Field(
        ...,
        description="Legacy trigger type",
    )
    conditions: dict[str, Any] = Field(
        ...,
        description="Graph document or legacy condition blob",
    )
    actions: list[dict[str, Any]] = Field(
        ...,
        description="Flat action summary",
    )
    active: bool = Field(
        ...,
        description="Whether the rule is enabled",
    )
    sort_order: int = Field(
        ...,
        description="Position in the rule list",
    )


# =============================================================================
# Graph endpoint schemas
# =============================================================================


class WorkflowGraphSave(BaseSchema):
    """Request body for saving a rule's graph."""

    graph: WorkflowGraph = Field(
        ...,
        description="Graph document in wire format",
    )
    name: str | None = Field(
        default=None,
        min_length=1,
        max_length=255,
        description="New rule name, if renamed in the editor",
    )

    @field_validator("graph", mode="before")
    @classmethod
    def check_graph_version(cls, value: Any) -> Any:
        """A posted document must carry the current ``_graphVersion``, if any."""
        if not isinstance(value, dict):
            return value
        version = value.get("_graphVersion", GRAPH_VERSION)
        if not is_supported_graph_version(version):
            raise ValueError(f"unsupported _graphVersion {version!r}, expected {GRAPH_VERSION}")
        return value


class WorkflowGraphResponse(BaseSchema):
    """A rule's graph with its current validation errors."""

    rule_id: UUID
    name: str
    graph: WorkflowGraph
    errors: list[ValidationIssue] = Field(default_factory=list)
    legacy: bool = Field(
        default=False,
        description="Whether the graph was synthesized from a legacy record",
    )


class GraphImportRequest(BaseSchema):
    """Raw contents of an uploaded graph file."""

    content: str = Field(
        ...,
        description="File contents (JSON text)",
    )


class GraphWithErrors(BaseSchema):
    """A graph and the validation errors it currently has."""

    graph: WorkflowGraph
    errors: list[ValidationIssue] = Field(default_factory=list)


class FitToViewRequest(BaseSchema):
    """Canvas size for a fit-to-view computation."""

    graph: WorkflowGraph
    canvas_width: float = Field(..., description="Canvas width in screen pixels")
    canvas_height: float = Field(..., description="Canvas height in screen pixels")
    padding: float = Field(default=60.0, ge=0.0, description="Margin in screen pixels")


class FitToViewResponse(BaseSchema):
    """Viewport that frames every node."""

    viewport: Viewport


class ConditionPreviewRequest(BaseSchema):
    """A condition node and a sample record to evaluate it against."""

    condition: ConditionNodeData
    context: dict[str, Any] = Field(
        default_factory=dict,
        description='Records by entity, e.g. {"return": {...}, "customer": {...}}',
    )


class ConditionPreviewResponse(BaseSchema):
    """Outcome of a condition preview."""

    result: bool
    branch: SourceHandle


__all__ = [
    "ActionSummary",
    "ConditionPreviewRequest",
    "ConditionPreviewResponse",
    "FitToViewRequest",
    "FitToViewResponse",
    "GraphImportRequest",
    "GraphWithErrors",
    "RuleGraphPayload",
    "WorkflowGraphResponse",
    "WorkflowGraphSave",
    "WorkflowRuleBase",
    "WorkflowRuleCreate",
    "WorkflowRuleResponse",
    "WorkflowRuleUpdate",
]
