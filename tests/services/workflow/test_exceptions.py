"""Tests for workflow builder exceptions."""

from workflow_builder.core.exceptions import AppError
from workflow_builder.schemas.validation import ValidationErrorCode, ValidationIssue
from workflow_builder.services.workflow.exceptions import (
    GraphImportError,
    SaveInProgressError,
    UnsupportedGraphVersionError,
    WorkflowBuilderError,
    WorkflowSaveError,
    WorkflowValidationFailedError,
)


class TestWorkflowBuilderError:
    """Tests for the base exception."""

    def test_is_app_error(self) -> None:
        error = WorkflowBuilderError("Something failed")
        assert isinstance(error, AppError)
        assert str(error) == "Something failed"
        assert error.to_dict() == {
            "message": "Something failed",
            "error_code": "WORKFLOW_BUILDER_ERROR",
            "details": {},
        }


class TestGraphImportError:
    """Tests for import failures."""

    def test_reason_in_message_and_details(self) -> None:
        error = GraphImportError("malformed JSON")
        assert error.message == "Invalid workflow file: malformed JSON"
        assert error.error_code == "INVALID_GRAPH_FILE"
        assert error.details == {"reason": "malformed JSON"}
        assert error.reason == "malformed JSON"

    def test_unsupported_version(self) -> None:
        error = UnsupportedGraphVersionError(1, 2)
        assert isinstance(error, GraphImportError)
        assert error.error_code == "UNSUPPORTED_GRAPH_VERSION"
        assert error.details["found"] == 1
        assert error.details["supported"] == 2
        assert "unsupported version 1 (expected 2)" in str(error)

    def test_missing_version(self) -> None:
        error = UnsupportedGraphVersionError(None, 2)
        assert error.found is None
        assert "None" in error.reason


class TestSessionErrors:
    """Tests for save-path errors."""

    def test_validation_failed_carries_issues(self) -> None:
        issues = [
            ValidationIssue(message="Workflow contains a cycle", code=ValidationErrorCode.CYCLE_DETECTED),
        ]
        error = WorkflowValidationFailedError(issues)
        assert error.errors == issues
        assert error.message == "Workflow has 1 validation error(s)"
        assert error.details == {
            "errors": [{"message": "Workflow contains a cycle", "code": "CYCLE_DETECTED"}]
        }

    def test_save_in_progress(self) -> None:
        assert SaveInProgressError().error_code == "SAVE_IN_PROGRESS"

    def test_save_error_keeps_original(self) -> None:
        cause = ConnectionError("timeout")
        error = WorkflowSaveError("timeout", original_error=cause)
        assert error.original_error is cause
        assert error.message == "Failed to save workflow: timeout"
        assert error.error_code == "SAVE_FAILED"
