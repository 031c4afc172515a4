"""Domain enum definitions for the workflow builder.

Every enum here is a closed set that is persisted inside workflow graph
documents, so values must never be renamed once released.
"""

from enum import Enum


class NodeType(str, Enum):
    """Workflow node classification types."""

    TRIGGER = "trigger"
    CONDITION = "condition"
    ACTION = "action"
    DELAY = "delay"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class TriggerEventType(str, Enum):
    """Events that start a workflow instance.

    Return/ticket/customer lifecycle events, time-based schedules, or a
    manual start.
    """

    RETURN_CREATED = "return_created"
    RETURN_STATUS_CHANGED = "return_status_changed"
    RETURN_OVERDUE = "return_overdue"
    TICKET_CREATED = "ticket_created"
    TICKET_STATUS_CHANGED = "ticket_status_changed"
    TICKET_OVERDUE = "ticket_overdue"
    CUSTOMER_RISK_CHANGED = "customer_risk_changed"
    CUSTOMER_TAG_ADDED = "customer_tag_added"
    SCHEDULED_DAILY = "scheduled_daily"
    SCHEDULED_WEEKLY = "scheduled_weekly"
    SCHEDULED_MONTHLY = "scheduled_monthly"
    MANUAL = "manual"

    @property
    def is_scheduled(self) -> bool:
        """Whether this event fires on a time schedule."""
        return self in SCHEDULED_EVENT_TYPES

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


SCHEDULED_EVENT_TYPES = frozenset(
    {
        TriggerEventType.SCHEDULED_DAILY,
        TriggerEventType.SCHEDULED_WEEKLY,
        TriggerEventType.SCHEDULED_MONTHLY,
    }
)


class ActionFamily(str, Enum):
    """Grouping of action types, used by the node palette."""

    RETURN = "return"
    TICKET = "ticket"
    CUSTOMER = "customer"
    NOTIFICATION = "notification"
    UTILITY = "utility"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class WorkflowActionType(str, Enum):
    """Side-effecting steps an action node can perform."""

    # Return actions
    SET_STATUS = "set_status"
    SET_PRIORITY = "set_priority"
    ASSIGN = "assign"
    APPROVE = "approve"
    REJECT = "reject"
    ADD_NOTE = "add_note"
    UPDATE_FIELD = "update_field"
    # Ticket actions
    TICKET_CREATE = "ticket_create"
    TICKET_SET_STATUS = "ticket_set_status"
    TICKET_SET_PRIORITY = "ticket_set_priority"
    TICKET_ASSIGN = "ticket_assign"
    TICKET_ADD_MESSAGE = "ticket_add_message"
    TICKET_ADD_TAG = "ticket_add_tag"
    # Customer actions
    CUSTOMER_UPDATE_RISK_SCORE = "customer_update_risk_score"
    CUSTOMER_ADD_TAG = "customer_add_tag"
    CUSTOMER_UPDATE_NOTES = "customer_update_notes"
    # Notification actions
    EMAIL_SEND_TEMPLATE = "email_send_template"
    EMAIL_SEND_CUSTOM = "email_send_custom"
    NOTIFICATION_INTERNAL = "notification_internal"
    # Utility actions
    TIMELINE_ADD_ENTRY = "timeline_add_entry"
    WEBHOOK_CALL = "webhook_call"

    @property
    def family(self) -> ActionFamily:
        """The palette family this action belongs to."""
        if self.value.startswith("ticket_"):
            return ActionFamily.TICKET
        if self.value.startswith("customer_"):
            return ActionFamily.CUSTOMER
        if self in (
            WorkflowActionType.EMAIL_SEND_TEMPLATE,
            WorkflowActionType.EMAIL_SEND_CUSTOM,
            WorkflowActionType.NOTIFICATION_INTERNAL,
        ):
            return ActionFamily.NOTIFICATION
        if self in (WorkflowActionType.TIMELINE_ADD_ENTRY, WorkflowActionType.WEBHOOK_CALL):
            return ActionFamily.UTILITY
        return ActionFamily.RETURN

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class ConditionOperator(str, Enum):
    """Comparison operators for field conditions.

    ``is_empty`` and ``is_not_empty`` are unary; every other operator
    compares the field against a value.
    """

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    NOT_CONTAINS = "not_contains"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_OR_EQUAL = "greater_or_equal"
    LESS_OR_EQUAL = "less_or_equal"
    IN = "in"
    NOT_IN = "not_in"
    IS_EMPTY = "is_empty"
    IS_NOT_EMPTY = "is_not_empty"
    MATCHES_REGEX = "matches_regex"

    @property
    def arity(self) -> int:
        """Number of operands including the field itself."""
        if self in (ConditionOperator.IS_EMPTY, ConditionOperator.IS_NOT_EMPTY):
            return 1
        return 2

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class LogicOperator(str, Enum):
    """How a condition node combines its field conditions."""

    AND = "AND"
    OR = "OR"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class DelayUnit(str, Enum):
    """Units for delay node durations."""

    MINUTES = "minutes"
    HOURS = "hours"
    DAYS = "days"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class SourceHandle(str, Enum):
    """Output handles of a condition node."""

    TRUE = "true"
    FALSE = "false"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class EntityType(str, Enum):
    """External field namespaces a condition can reference."""

    RETURN = "return"
    CUSTOMER = "customer"
    TICKET = "ticket"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class FieldDataType(str, Enum):
    """Data types of catalogued entity fields."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    DATE = "date"
    ENUM = "enum"
    ARRAY = "array"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


__all__ = [
    "SCHEDULED_EVENT_TYPES",
    "ActionFamily",
    "ConditionOperator",
    "DelayUnit",
    "EntityType",
    "FieldDataType",
    "LogicOperator",
    "NodeType",
    "SourceHandle",
    "TriggerEventType",
    "WorkflowActionType",
]
