"""Pydantic schemas for workflow graph validation results.

A validation run yields a flat list of issues; an empty list means the graph
may be saved. Each issue keeps the human message shown in the editor banner
plus a machine-readable code for API clients.
"""

from __future__ import annotations

from enum import Enum

from pydantic import Field

from workflow_builder.schemas.base import DocumentSchema

# =============================================================================
# Validation Enums
# =============================================================================


class ValidationErrorCode(str, Enum):
    """Validation error codes.

    Standardized error codes for structural validation failures.
    """

    # Trigger cardinality
    NO_TRIGGER_NODE = "NO_TRIGGER_NODE"
    MULTIPLE_TRIGGER_NODES = "MULTIPLE_TRIGGER_NODES"

    # Connectivity
    UNREACHABLE_NODE = "UNREACHABLE_NODE"
    INCOMPLETE_CONDITION = "INCOMPLETE_CONDITION"

    # Structure
    CYCLE_DETECTED = "CYCLE_DETECTED"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


# =============================================================================
# Validation Result Schemas
# =============================================================================


class ValidationIssue(DocumentSchema):
    """Single blocking validation error.

    ``node_id`` is set when the issue concerns one node and omitted for
    graph-wide issues (trigger cardinality, cycles).
    """

    node_id: str | None = Field(
        default=None,
        description="Affected node ID if applicable",
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    code: ValidationErrorCode = Field(
        ...,
        description="Machine-readable error code",
    )


class ValidationReport(DocumentSchema):
    """Validation outcome for one graph."""

    is_valid: bool = Field(
        ...,
        description="Whether the graph may be saved",
    )
    errors: list[ValidationIssue] = Field(
        default_factory=list,
        description="Blocking validation errors, in check order",
    )

    @classmethod
    def from_issues(cls, issues: list[ValidationIssue]) -> ValidationReport:
        """Build a report from a validator result."""
        return cls(is_valid=not issues, errors=issues)


__all__ = [
    "ValidationErrorCode",
    "ValidationIssue",
    "ValidationReport",
]
