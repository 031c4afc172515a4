"""Condition evaluation against a sample record.

Lets the editor preview which branch a condition node would take for a
given return/customer/ticket record. This is not a workflow runtime:
nothing here executes actions or walks a graph.

The evaluation context is a mapping of entity name to record::

    {"return": {"status": "APPROVED", "refundAmount": 42.5},
     "customer": {"returnStats": {"totalReturns": 3}},
     "ticket": None}

Condition values come from free-text inputs, so comparisons are loose:
equality compares text forms, ordering compares numbers, and anything that
cannot be compared evaluates to False rather than raising.

A missing field (``None``) and an empty string have no numeric form. They
are not coerced to 0, so ``less_than 5`` on a missing ``refundAmount`` is
False rather than True.
"""

from __future__ import annotations

import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from workflow_builder.core.logging import get_logger
from workflow_builder.models.enums import (
    ConditionOperator,
    EntityType,
    LogicOperator,
    SourceHandle,
)
from workflow_builder.schemas.workflow_graph import (
    ConditionNodeData,
    FieldCondition,
    TriggerNodeData,
)

logger = get_logger(__name__)

EvaluationContext = Mapping[str, Any]

# Bare paths (no entity prefix) are looked up in this order
_BARE_PATH_ENTITIES = (EntityType.RETURN.value, EntityType.TICKET.value)
_ENTITY_NAMES = frozenset(entity.value for entity in EntityType)


def resolve_field_value(path: str, context: EvaluationContext) -> Any:
    """Walk a dotted path into the evaluation context.

    ``return.status`` reads ``context["return"]["status"]``. A path whose
    first segment is not an entity name (or names an entity absent from
    the context) is read from the return record, or the ticket record when
    there is no return.

    Returns:
        The value, or ``None`` when any segment is missing.
    """
    parts = path.split(".")
    head, rest = parts[0], parts[1:]

    if head in _ENTITY_NAMES and context.get(head) is not None:
        value: Any = context[head]
        segments = rest
    else:
        for entity in _BARE_PATH_ENTITIES:
            if context.get(entity) is not None:
                value = context[entity]
                segments = parts
                break
        else:
            return None

    for segment in segments:
        if not isinstance(value, Mapping):
            return None
        value = value.get(segment)
    return value


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _as_number(value: Any) -> float:
    """Numeric form of a value; NaN when there is none, so every ordering
    comparison against it is False."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return math.nan
    return math.nan


def _as_list(value: Any) -> list[str]:
    if isinstance(value, list | tuple):
        return [_as_text(item) for item in value]
    return [item.strip() for item in _as_text(value).split(",")]


def _is_empty(value: Any) -> bool:
    return value is None or value == "" or (isinstance(value, list | tuple) and not value)


def _contains(field_value: Any, compare_value: Any) -> bool:
    if isinstance(field_value, list | tuple):
        return compare_value in field_value
    return _as_text(compare_value).lower() in _as_text(field_value).lower()


def _matches(field_value: Any, pattern: Any) -> bool:
    try:
        return re.search(_as_text(pattern), _as_text(field_value)) is not None
    except re.error:
        logger.debug("Invalid regex in condition", extra={"context": {"pattern": repr(pattern)}})
        return False


def apply_operator(
    operator: ConditionOperator | str,
    field_value: Any,
    compare_value: Any = None,
) -> bool:
    """Apply one comparison operator.

    Args:
        operator: Operator to apply.
        field_value: Value resolved from the record.
        compare_value: Value from the condition (ignored by unary operators).

    Returns:
        The comparison result; never raises for odd operand types.

    Example:
        >>> apply_operator("in", "refund", "refund, voucher")
        True
        >>> apply_operator("greater_than", "12", 3)
        True
    """
    operator = ConditionOperator(operator)
    if operator == ConditionOperator.EQUALS:
        return _as_text(field_value) == _as_text(compare_value)
    if operator == ConditionOperator.NOT_EQUALS:
        return _as_text(field_value) != _as_text(compare_value)
    if operator == ConditionOperator.CONTAINS:
        return _contains(field_value, compare_value)
    if operator == ConditionOperator.NOT_CONTAINS:
        return not _contains(field_value, compare_value)
    if operator == ConditionOperator.GREATER_THAN:
        return _as_number(field_value) > _as_number(compare_value)
    if operator == ConditionOperator.LESS_THAN:
        return _as_number(field_value) < _as_number(compare_value)
    if operator == ConditionOperator.GREATER_OR_EQUAL:
        return _as_number(field_value) >= _as_number(compare_value)
    if operator == ConditionOperator.LESS_OR_EQUAL:
        return _as_number(field_value) <= _as_number(compare_value)
    if operator == ConditionOperator.IN:
        return _as_text(field_value) in _as_list(compare_value)
    if operator == ConditionOperator.NOT_IN:
        return _as_text(field_value) not in _as_list(compare_value)
    if operator == ConditionOperator.IS_EMPTY:
        return _is_empty(field_value)
    if operator == ConditionOperator.IS_NOT_EMPTY:
        return not _is_empty(field_value)
    return _matches(field_value, compare_value)


def evaluate_field_condition(condition: FieldCondition, context: EvaluationContext) -> bool:
    """Evaluate a single ``field operator value`` row."""
    return apply_operator(
        condition.operator,
        resolve_field_value(condition.field, context),
        condition.value,
    )


def _combine(results: Sequence[bool], logic: LogicOperator) -> bool:
    return all(results) if logic == LogicOperator.AND else any(results)


def evaluate_condition_node(data: ConditionNodeData, context: EvaluationContext) -> bool:
    """Evaluate a condition node; an empty condition list is True."""
    if not data.conditions:
        return True
    results = [evaluate_field_condition(condition, context) for condition in data.conditions]
    return _combine(results, data.logic_operator)


def branch_for(data: ConditionNodeData, context: EvaluationContext) -> SourceHandle:
    """Output handle a condition node would take for ``context``."""
    return SourceHandle.TRUE if evaluate_condition_node(data, context) else SourceHandle.FALSE


def passes_trigger_filters(data: TriggerNodeData, context: EvaluationContext) -> bool:
    """Whether every trigger filter holds; no filters always passes."""
    return all(
        apply_operator(f.operator, resolve_field_value(f.field, context), f.value)
        for f in data.filters or []
    )


__all__ = [
    "EvaluationContext",
    "apply_operator",
    "branch_for",
    "evaluate_condition_node",
    "evaluate_field_condition",
    "passes_trigger_filters",
    "resolve_field_value",
]
