"""Node and edge construction helpers.

Pure functions: nothing here reads or mutates a graph. Identifiers only
need to be unique inside one loaded graph, so the default generators use
random UUIDs and keep no state; ``IdGenerator`` gives a builder session
short, ordered ids from its own counter.
"""

from __future__ import annotations

import itertools
import uuid
from collections.abc import Callable, Mapping
from typing import Any

from workflow_builder.models.enums import NodeType
from workflow_builder.schemas.workflow_graph import (
    NODE_DATA_MODELS,
    Position,
    WorkflowEdge,
    WorkflowNode,
)

IdFactory = Callable[[], str]


def generate_node_id() -> str:
    """Return a new random node id."""
    return f"node_{uuid.uuid4().hex[:12]}"


def generate_edge_id() -> str:
    """Return a new random edge id."""
    return f"edge_{uuid.uuid4().hex[:12]}"


class IdGenerator:
    """Per-session id source.

    Ids are ``node_<session>_<n>`` / ``edge_<session>_<n>``: the counter is
    owned by the instance, and the random session token keeps ids distinct
    from those already present in a loaded document.

    Example:
        >>> ids = IdGenerator(session="a1b2")
        >>> ids.node_id(), ids.edge_id()
        ('node_a1b2_1', 'edge_a1b2_2')
    """

    def __init__(self, session: str | None = None) -> None:
        self.session = session or uuid.uuid4().hex[:6]
        self._counter = itertools.count(1)

    def node_id(self) -> str:
        return f"node_{self.session}_{next(self._counter)}"

    def edge_id(self) -> str:
        return f"edge_{self.session}_{next(self._counter)}"


def _normalize_keys(model: type, overrides: Mapping[str, Any]) -> dict[str, Any]:
    """Map wire (camelCase) keys in ``overrides`` to field names."""
    by_alias = {
        field.alias: name
        for name, field in model.model_fields.items()  # type: ignore[attr-defined]
        if field.alias
    }
    return {by_alias.get(key, key): value for key, value in overrides.items()}


def create_node(
    node_type: NodeType | str,
    position: Position | Mapping[str, float],
    label: str,
    overrides: Mapping[str, Any] | None = None,
    *,
    id_factory: IdFactory = generate_node_id,
) -> WorkflowNode:
    """Create a node with the default payload for its type.

    Defaults: trigger starts on a manual event, condition is an empty AND
    group, action sets a status, delay waits one hour.

    Args:
        node_type: Node type.
        position: Top-left anchor in canvas coordinates.
        label: Display label.
        overrides: Payload fields applied on top of the defaults, e.g.
            ``{"actionType": "approve"}`` when dropped from the palette.
            Keys may be wire (camelCase) or field names.
        id_factory: Id source, defaults to a random id.

    Returns:
        The new node.

    Raises:
        pydantic.ValidationError: If an override is not valid for the type.
    """
    node_type = NodeType(node_type)
    model = NODE_DATA_MODELS[node_type]
    data = model()
    if overrides:
        data = model.model_validate(
            {**data.model_dump(), **_normalize_keys(model, overrides)}
        )
    if not isinstance(position, Position):
        position = Position.model_validate(position)
    return WorkflowNode(
        id=id_factory(),
        type=node_type,
        position=position,
        label=label,
        data=data,
    )


def create_edge(
    source: str,
    target: str,
    source_handle: str | None = None,
    *,
    id_factory: IdFactory = generate_edge_id,
) -> WorkflowEdge:
    """Create an edge literal; no connection rules are checked here."""
    return WorkflowEdge(
        id=id_factory(),
        source=source,
        target=target,
        source_handle=source_handle,
    )


__all__ = [
    "IdFactory",
    "IdGenerator",
    "create_edge",
    "create_node",
    "generate_edge_id",
    "generate_node_id",
]
