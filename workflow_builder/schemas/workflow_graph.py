"""Workflow graph document model.

A workflow is a directed graph of trigger, condition, action and delay
nodes placed on an unbounded canvas. The node payload is a tagged union:
which ``*NodeData`` model a node carries is decided by its ``type``, and
the pairing is enforced when a node is built, so consumers can dispatch on
the payload class without unchecked casts.

Node ids and edge ids must each be unique within a document. Structural
rules (single trigger, reachability, complete condition branches,
acyclicity) are not enforced here, since interactive editing passes
through invalid states; ``services.workflow.validator`` checks them.

Wire format (``_graphVersion`` 2)::

    {
        "_graphVersion": 2,
        "nodes": [
            {"id": "node_1", "type": "trigger", "label": "Return created",
             "position": {"x": 80, "y": 120},
             "data": {"eventType": "return_created"}}
        ],
        "edges": [{"id": "edge_1", "source": "node_1", "target": "node_2"}],
        "viewport": {"x": 40, "y": 40, "zoom": 1}
    }
"""

from __future__ import annotations

from collections import Counter
from typing import Any, Self

from pydantic import Field, field_validator, model_validator

from workflow_builder.models.enums import (
    ConditionOperator,
    DelayUnit,
    LogicOperator,
    NodeType,
    SourceHandle,
    TriggerEventType,
    WorkflowActionType,
)
from workflow_builder.schemas.base import DocumentSchema

GRAPH_VERSION = 2

MIN_ZOOM = 0.25
MAX_ZOOM = 2.0


def is_supported_graph_version(version: Any) -> bool:
    """Whether ``version`` is exactly the current integer tag.

    ``True`` (an int subclass) and ``2.0`` are rejected.
    """
    return type(version) is int and version == GRAPH_VERSION


# =============================================================================
# Geometry
# =============================================================================


class Position(DocumentSchema):
    """Point in canvas coordinates (top-left anchor for nodes)."""

    x: float = 0.0
    y: float = 0.0


class Viewport(DocumentSchema):
    """Camera transform: pixel offset of the canvas origin plus zoom."""

    x: float = 40.0
    y: float = 40.0
    zoom: float = 1.0

    @field_validator("zoom")
    @classmethod
    def clamp_zoom(cls, v: float) -> float:
        """Clamp zoom into the supported range."""
        return min(MAX_ZOOM, max(MIN_ZOOM, v))


# =============================================================================
# Node payloads
# =============================================================================


class ScheduleConfig(DocumentSchema):
    """Timing for scheduled triggers."""

    time: str | None = Field(
        default=None,
        pattern=r"^([01]\d|2[0-3]):[0-5]\d$",
        description="Time of day, HH:mm",
        examples=["09:00"],
    )
    day_of_week: int | None = Field(default=None, ge=0, le=6, description="0=Sun..6=Sat")
    day_of_month: int | None = Field(default=None, ge=1, le=31)


class TriggerFilter(DocumentSchema):
    """Pre-condition evaluated before the workflow walks past its trigger."""

    field: str
    operator: ConditionOperator = ConditionOperator.EQUALS
    value: Any = None


class TriggerNodeData(DocumentSchema):
    """Payload of a trigger node."""

    event_type: TriggerEventType = TriggerEventType.MANUAL
    filters: list[TriggerFilter] | None = None
    schedule: ScheduleConfig | None = None

    @model_validator(mode="after")
    def drop_schedule_for_event_triggers(self) -> Self:
        """Only time-based triggers carry a schedule."""
        if not self.event_type.is_scheduled:
            self.schedule = None
        return self


class FieldCondition(DocumentSchema):
    """One ``field operator value`` comparison inside a condition node.

    ``field`` is a dotted path such as ``return.status`` or
    ``customer.returnStats.totalReturns``.
    """

    id: str
    field: str = ""
    operator: ConditionOperator = ConditionOperator.EQUALS
    value: Any = None


class ConditionNodeData(DocumentSchema):
    """Payload of a condition node."""

    logic_operator: LogicOperator = LogicOperator.AND
    conditions: list[FieldCondition] = Field(default_factory=list)


class ActionNodeData(DocumentSchema):
    """Payload of an action node.

    ``params`` is free-form; its accepted keys depend on ``action_type`` and
    are checked by whatever executes the workflow, not by the editor.
    """

    action_type: WorkflowActionType = WorkflowActionType.SET_STATUS
    params: dict[str, Any] = Field(default_factory=dict)


class DelayNodeData(DocumentSchema):
    """Payload of a delay node."""

    amount: int = Field(default=1, ge=1)
    unit: DelayUnit = DelayUnit.HOURS


NodeData = TriggerNodeData | ConditionNodeData | ActionNodeData | DelayNodeData

NODE_DATA_MODELS: dict[NodeType, type[DocumentSchema]] = {
    NodeType.TRIGGER: TriggerNodeData,
    NodeType.CONDITION: ConditionNodeData,
    NodeType.ACTION: ActionNodeData,
    NodeType.DELAY: DelayNodeData,
}


# =============================================================================
# Nodes, edges, graph
# =============================================================================


class WorkflowNode(DocumentSchema):
    """A node on the canvas: a fixed-size rectangle anchored at ``position``."""

    id: str = Field(..., min_length=1)
    type: NodeType
    position: Position = Field(default_factory=Position)
    label: str = ""
    data: NodeData

    @model_validator(mode="before")
    @classmethod
    def parse_data_for_type(cls, values: Any) -> Any:
        """Build ``data`` with the payload model selected by ``type``."""
        if not isinstance(values, dict):
            return values
        try:
            node_type = NodeType(values.get("type"))
        except ValueError:
            return values  # field validation reports the bad type

        model = NODE_DATA_MODELS[node_type]
        data = values.get("data")
        if data is None:
            return {**values, "data": model()}
        if isinstance(data, dict):
            return {**values, "data": model.model_validate(data)}
        if not isinstance(data, model):
            raise ValueError(
                f"{type(data).__name__} is not a valid payload for a {node_type.value} node"
            )
        return values


class WorkflowEdge(DocumentSchema):
    """Directed connection between two nodes.

    ``source_handle`` names the branch ('true'/'false') when the source is a
    condition node and is omitted for every other source.
    """

    id: str = Field(..., min_length=1)
    source: str
    target: str
    source_handle: SourceHandle | None = None


class WorkflowGraph(DocumentSchema):
    """Root document: nodes, edges and the saved camera."""

    graph_version: int = Field(default=GRAPH_VERSION, alias="_graphVersion")
    nodes: list[WorkflowNode] = Field(default_factory=list)
    edges: list[WorkflowEdge] = Field(default_factory=list)
    viewport: Viewport = Field(default_factory=Viewport)

    @model_validator(mode="after")
    def check_unique_ids(self) -> Self:
        """Node ids and edge ids are each unique within a document."""
        for kind, items in (("node", self.nodes), ("edge", self.edges)):
            counts = Counter(item.id for item in items)
            duplicates = sorted(item_id for item_id, count in counts.items() if count > 1)
            if duplicates:
                raise ValueError(f"duplicate {kind} id(s): {', '.join(duplicates)}")
        return self

    def get_node(self, node_id: str) -> WorkflowNode | None:
        """Look up a node by id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def get_edge(self, edge_id: str) -> WorkflowEdge | None:
        """Look up an edge by id."""
        for edge in self.edges:
            if edge.id == edge_id:
                return edge
        return None

    def nodes_of_type(self, node_type: NodeType) -> list[WorkflowNode]:
        """All nodes of one type, in document order."""
        return [node for node in self.nodes if node.type == node_type]

    def outgoing_edges(self, node_id: str) -> list[WorkflowEdge]:
        """Edges leaving ``node_id``, in document order."""
        return [edge for edge in self.edges if edge.source == node_id]


__all__ = [
    "GRAPH_VERSION",
    "MAX_ZOOM",
    "MIN_ZOOM",
    "NODE_DATA_MODELS",
    "ActionNodeData",
    "ConditionNodeData",
    "DelayNodeData",
    "FieldCondition",
    "NodeData",
    "Position",
    "ScheduleConfig",
    "TriggerFilter",
    "TriggerNodeData",
    "Viewport",
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowNode",
    "is_supported_graph_version",
]
