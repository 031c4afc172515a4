"""Conversion between workflow graphs and their stored forms.

Three forms exist:

- the export file: the full graph document with ``_graphVersion``;
- the persisted record: ``conditions`` holds the graph document and
  ``actions`` a flat ``[{"type", "params"}]`` summary of the action nodes,
  so list views written before the graph editor keep working;
- legacy records: a bare ``trigger_type`` (and possibly an action list)
  with no graph, upgraded on load.

Imports fail closed: a document is either accepted whole or rejected with
a ``GraphImportError``.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from typing import Any, NamedTuple
from urllib.parse import quote

from pydantic import ValidationError

from workflow_builder.core.logging import get_logger
from workflow_builder.models.enums import NodeType, TriggerEventType, WorkflowActionType
from workflow_builder.schemas.workflow_graph import (
    GRAPH_VERSION,
    ActionNodeData,
    Position,
    TriggerNodeData,
    WorkflowGraph,
    is_supported_graph_version,
)
from workflow_builder.schemas.workflow_rule import ActionSummary
from workflow_builder.services.workflow.exceptions import (
    GraphImportError,
    UnsupportedGraphVersionError,
)
from workflow_builder.services.workflow.factory import IdFactory, create_node, generate_node_id
from workflow_builder.services.workflow.layout import LAYER_GAP_X, default_viewport

logger = get_logger(__name__)

VERSION_KEY = "_graphVersion"

# Legacy trigger_type -> trigger event
LEGACY_TRIGGER_EVENT_MAP: dict[str, TriggerEventType] = {
    "return_created": TriggerEventType.RETURN_CREATED,
    "status_changed": TriggerEventType.RETURN_STATUS_CHANGED,
    "return_overdue": TriggerEventType.RETURN_OVERDUE,
}
LEGACY_DEFAULT_EVENT = TriggerEventType.RETURN_CREATED
LEGACY_TRIGGER_POSITION = Position(x=80, y=120)


class PersistedGraph(NamedTuple):
    """The two record columns a graph is stored in."""

    conditions: dict[str, Any]
    actions: list[dict[str, Any]]


# =============================================================================
# Export / import
# =============================================================================


def export_graph(workflow: WorkflowGraph) -> dict[str, Any]:
    """Graph document in wire format, version tag included."""
    document = workflow.to_document()
    document[VERSION_KEY] = GRAPH_VERSION
    return document


def export_graph_json(workflow: WorkflowGraph, indent: int | None = 2) -> str:
    """Export file contents."""
    return json.dumps(export_graph(workflow), indent=indent)


def export_filename(name: str) -> str:
    """Download name for an export: whitespace runs become '-', lower-cased.

    Example:
        >>> export_filename("Auto Approve  Low Value")
        'workflow-auto-approve-low-value.json'
    """
    slug = re.sub(r"\s+", "-", name).lower()
    return f"workflow-{slug}.json"


_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def content_disposition(filename: str) -> str:
    """``Content-Disposition`` header value for downloading ``filename``.

    Names outside a plain ASCII set get an underscore-substituted
    ``filename`` plus the exact name as an RFC 5987 ``filename*``.
    """
    fallback = _UNSAFE_FILENAME_CHARS.sub("_", filename)
    if fallback == filename:
        return f'attachment; filename="{filename}"'
    encoded = quote(filename, safe="")
    return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{encoded}"


def parse_graph_document(document: Any) -> WorkflowGraph:
    """Validate an already-decoded graph document.

    The version tag is checked before anything else, so a file from a
    different format version is rejected even if it happens to parse.

    Raises:
        UnsupportedGraphVersionError: If ``_graphVersion`` is not supported.
        GraphImportError: If the document is not a valid graph.
    """
    if not isinstance(document, dict):
        raise GraphImportError("expected a JSON object")
    version = document.get(VERSION_KEY)
    if not is_supported_graph_version(version):
        raise UnsupportedGraphVersionError(version, GRAPH_VERSION)
    try:
        return WorkflowGraph.model_validate(document)
    except ValidationError as e:
        raise GraphImportError(
            f"{e.error_count()} invalid field(s)",
            details={"errors": e.errors(include_url=False, include_context=False)},
        ) from e


def import_graph_json(content: str | bytes) -> WorkflowGraph:
    """Parse export file contents.

    Raises:
        UnsupportedGraphVersionError: If ``_graphVersion`` is not supported.
        GraphImportError: If the contents are not JSON or not a valid graph.
    """
    try:
        document = json.loads(content)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise GraphImportError(f"malformed JSON ({e})") from e
    return parse_graph_document(document)


# =============================================================================
# Persisted record
# =============================================================================


def summarize_actions(workflow: WorkflowGraph) -> list[ActionSummary]:
    """One summary entry per action node, in document order."""
    summaries: list[ActionSummary] = []
    for node in workflow.nodes:
        if isinstance(node.data, ActionNodeData):
            summaries.append(
                ActionSummary(type=node.data.action_type.value, params=node.data.params)
            )
    return summaries


def serialize_workflow_graph(workflow: WorkflowGraph) -> PersistedGraph:
    """Project a graph onto the ``conditions``/``actions`` record columns.

    ``conditions`` carries the full document, layout included, so loading
    it back gives the same graph.
    """
    return PersistedGraph(
        conditions=export_graph(workflow),
        actions=[summary.to_document() for summary in summarize_actions(workflow)],
    )


def deserialize_workflow_graph(conditions: Any) -> WorkflowGraph | None:
    """Graph stored in a record's ``conditions`` column.

    Returns:
        The graph, or ``None`` if the column does not hold a graph document
        (a legacy record).

    Raises:
        GraphImportError: If the column is tagged as a graph document but
            does not validate.
    """
    if not isinstance(conditions, dict) or conditions.get(VERSION_KEY) != GRAPH_VERSION:
        return None
    return parse_graph_document(conditions)


def derive_trigger_type(workflow: WorkflowGraph, fallback: str) -> str:
    """Record ``trigger_type`` for a graph: its trigger's event, if any."""
    for node in workflow.nodes:
        if isinstance(node.data, TriggerNodeData):
            return node.data.event_type.value
    return fallback


# =============================================================================
# Legacy records
# =============================================================================


def legacy_trigger_label(trigger_type: str) -> str:
    """``status_changed`` -> ``Status Changed``."""
    return re.sub(r"\b\w", lambda m: m.group().upper(), trigger_type.replace("_", " "))


def build_legacy_graph(
    trigger_type: str,
    actions: Sequence[dict[str, Any]] | None = None,
    *,
    id_factory: IdFactory = generate_node_id,
) -> WorkflowGraph:
    """Synthesize a graph for a record that was never edited as a graph.

    The trigger event comes from ``LEGACY_TRIGGER_EVENT_MAP`` (unknown
    types fall back to ``return_created``). Each legacy action becomes an
    unconnected action node in a row to the right of the trigger; entries
    whose type is not a known action are skipped.

    Args:
        trigger_type: The record's ``trigger_type``.
        actions: The record's ``actions`` list of ``{"type", "params"}``.
        id_factory: Node id source.

    Returns:
        A graph with one trigger node and zero or more placeholders.
    """
    trigger = create_node(
        NodeType.TRIGGER,
        LEGACY_TRIGGER_POSITION,
        legacy_trigger_label(trigger_type),
        {"event_type": LEGACY_TRIGGER_EVENT_MAP.get(trigger_type, LEGACY_DEFAULT_EVENT)},
        id_factory=id_factory,
    )
    nodes = [trigger]

    for entry in actions or []:
        try:
            summary = ActionSummary.model_validate(entry)
            action_type = WorkflowActionType(summary.type)
        except (ValidationError, ValueError):
            logger.warning(
                "Skipping unrecognized legacy action",
                extra={"context": {"trigger_type": trigger_type, "action": repr(entry)}},
            )
            continue
        column = len(nodes)
        nodes.append(
            create_node(
                NodeType.ACTION,
                Position(
                    x=LEGACY_TRIGGER_POSITION.x + column * LAYER_GAP_X,
                    y=LEGACY_TRIGGER_POSITION.y,
                ),
                legacy_trigger_label(action_type.value),
                {"action_type": action_type, "params": summary.params},
                id_factory=id_factory,
            )
        )

    return WorkflowGraph(nodes=nodes, edges=[], viewport=default_viewport())


def load_rule_graph(
    trigger_type: str,
    conditions: Any,
    actions: Sequence[dict[str, Any]] | None = None,
) -> tuple[WorkflowGraph, bool]:
    """Graph for a stored record.

    Returns:
        ``(graph, is_legacy)``; ``is_legacy`` is True when the graph was
        synthesized rather than loaded.
    """
    workflow = deserialize_workflow_graph(conditions)
    if workflow is not None:
        return workflow, False
    logger.info(
        "Upgrading legacy workflow rule",
        extra={"context": {"trigger_type": trigger_type}},
    )
    return build_legacy_graph(trigger_type, actions), True


__all__ = [
    "LEGACY_DEFAULT_EVENT",
    "LEGACY_TRIGGER_EVENT_MAP",
    "LEGACY_TRIGGER_POSITION",
    "VERSION_KEY",
    "PersistedGraph",
    "build_legacy_graph",
    "content_disposition",
    "derive_trigger_type",
    "deserialize_workflow_graph",
    "export_filename",
    "export_graph",
    "export_graph_json",
    "import_graph_json",
    "legacy_trigger_label",
    "load_rule_graph",
    "parse_graph_document",
    "serialize_workflow_graph",
    "summarize_actions",
]
