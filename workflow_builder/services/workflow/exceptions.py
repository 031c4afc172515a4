"""Workflow builder custom exceptions.

This module defines the exceptions raised by the graph import path and
by builder sessions. Structural validation problems are never raised on
their own: ``validate_workflow`` returns them as a list. They only become
an exception when a save is attempted.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from workflow_builder.core.exceptions import AppError

if TYPE_CHECKING:
    from workflow_builder.schemas.validation import ValidationIssue


class WorkflowBuilderError(AppError):
    """Base exception for workflow builder errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code for API responses.
        details: Additional error context as dictionary.
    """

    def __init__(
        self,
        message: str,
        error_code: str = "WORKFLOW_BUILDER_ERROR",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, error_code, details)


# ============================================================================
# Import errors
# ============================================================================


class GraphImportError(WorkflowBuilderError):
    """Raised when a graph file is not valid JSON or not a valid graph."""

    def __init__(
        self,
        reason: str,
        error_code: str = "INVALID_GRAPH_FILE",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=f"Invalid workflow file: {reason}",
            error_code=error_code,
            details={"reason": reason, **(details or {})},
        )
        self.reason = reason


class UnsupportedGraphVersionError(GraphImportError):
    """Raised when a graph file carries a different ``_graphVersion``.

    Attributes:
        found: Version tag found in the file (``None`` if absent).
        supported: The only version this build accepts.
    """

    def __init__(self, found: Any, supported: int) -> None:
        super().__init__(
            reason=f"unsupported version {found!r} (expected {supported})",
            error_code="UNSUPPORTED_GRAPH_VERSION",
            details={"found": found, "supported": supported},
        )
        self.found = found
        self.supported = supported


# ============================================================================
# Session errors
# ============================================================================


class WorkflowValidationFailedError(WorkflowBuilderError):
    """Raised when a save is attempted on a structurally invalid graph.

    Attributes:
        errors: The validation issues that blocked the save.
    """

    def __init__(self, errors: list[ValidationIssue]) -> None:
        super().__init__(
            message=f"Workflow has {len(errors)} validation error(s)",
            error_code="WORKFLOW_INVALID",
            details={"errors": [error.to_document() for error in errors]},
        )
        self.errors = errors


class SaveInProgressError(WorkflowBuilderError):
    """Raised when ``save()`` is called while a previous save is in flight."""

    def __init__(self) -> None:
        super().__init__(
            message="A save is already in progress",
            error_code="SAVE_IN_PROGRESS",
        )


class WorkflowSaveError(WorkflowBuilderError):
    """Raised when the persistence collaborator fails.

    The session keeps its graph and dirty flag, so the save can be retried.

    Attributes:
        original_error: The exception raised by the collaborator.
    """

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(
            message=f"Failed to save workflow: {message}",
            error_code="SAVE_FAILED",
        )
        self.original_error = original_error


__all__ = [
    "GraphImportError",
    "SaveInProgressError",
    "UnsupportedGraphVersionError",
    "WorkflowBuilderError",
    "WorkflowSaveError",
    "WorkflowValidationFailedError",
]
