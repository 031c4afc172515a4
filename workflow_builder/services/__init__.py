"""Business logic services.

This package contains the workflow rule service and the graph editing
engine (``workflow_builder.services.workflow``).
"""

from workflow_builder.services.workflow_rule_service import (
    WorkflowRuleNotFoundError,
    WorkflowRuleService,
    WorkflowRuleServiceError,
)

__all__ = [
    "WorkflowRuleNotFoundError",
    "WorkflowRuleService",
    "WorkflowRuleServiceError",
]
