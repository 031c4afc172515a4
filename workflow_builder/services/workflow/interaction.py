"""Pointer, wheel and keyboard handling for the workflow canvas.

``InteractionController`` turns raw input events (screen pixels relative
to the canvas element) into camera changes and graph-mutation intents. It
renders nothing and owns no graph: it reads the graph from its
``CanvasHost`` and commits through the host's command methods.

Modes are mutually exclusive::

    IDLE --down on background--> PANNING --up/cancel--> IDLE
    IDLE --down on node body---> DRAGGING_NODE --up/cancel--> IDLE
    IDLE --down on output------> CONNECTING --up/cancel--> IDLE

Transient gesture state (the pending position of a dragged node, the
loose end of a connection being drawn) lives here and reaches the graph
only on pointer-up. Pointer-cancel drops it without committing.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Protocol

from workflow_builder.core.logging import get_logger
from workflow_builder.models.enums import NodeType, SourceHandle
from workflow_builder.schemas.workflow_graph import (
    Position,
    Viewport,
    WorkflowEdge,
    WorkflowGraph,
    WorkflowNode,
)
from workflow_builder.services.workflow.factory import IdFactory, create_node, generate_node_id
from workflow_builder.services.workflow.layout import (
    HANDLE_HIT_RADIUS,
    NODE_HEIGHT,
    NODE_WIDTH,
    hits_input_handle,
    node_at,
    output_handle_position,
    screen_to_canvas,
    snap_to_grid,
    zoom_around,
)

logger = get_logger(__name__)

PRIMARY_BUTTON = 0
WHEEL_ZOOM_IN = 1.1
WHEEL_ZOOM_OUT = 0.9
KEYBOARD_PAN_STEP = 40

DELETE_KEYS = frozenset({"Delete", "Backspace"})
# Screen-space offset change per arrow key
ARROW_PAN = {
    "ArrowLeft": (KEYBOARD_PAN_STEP, 0),
    "ArrowRight": (-KEYBOARD_PAN_STEP, 0),
    "ArrowUp": (0, KEYBOARD_PAN_STEP),
    "ArrowDown": (0, -KEYBOARD_PAN_STEP),
}


class InteractionMode(str, Enum):
    """Modal gesture currently in progress."""

    IDLE = "idle"
    PANNING = "panning"
    DRAGGING_NODE = "dragging_node"
    CONNECTING = "connecting"

    def __str__(self) -> str:
        """Return the string value for serialization."""
        return self.value


class CanvasHost(Protocol):
    """What the controller needs from the editing session."""

    @property
    def graph(self) -> WorkflowGraph: ...

    @property
    def viewport(self) -> Viewport: ...

    def set_viewport(self, viewport: Viewport) -> None: ...

    def add_node(self, node: WorkflowNode) -> bool: ...

    def move_node(self, node_id: str, position: Position) -> bool: ...

    def delete_node(self, node_id: str) -> bool: ...

    def add_edge(
        self,
        source: str,
        target: str,
        source_handle: SourceHandle | None = None,
    ) -> WorkflowEdge | None: ...

    def delete_edge(self, edge_id: str) -> bool: ...


@dataclass(frozen=True)
class OutputHandle:
    """An output handle under the pointer."""

    node_id: str
    handle: SourceHandle | None


@dataclass
class _PanState:
    start_x: float
    start_y: float
    start_viewport: Viewport


@dataclass
class _DragState:
    node_id: str
    grab_offset: Position
    pending_move: Position


@dataclass
class _ConnectState:
    source_id: str
    handle: SourceHandle | None
    pointer: Position


def can_connect(
    graph: WorkflowGraph,
    source_id: str,
    target_id: str,
    source_handle: SourceHandle | None = None,
) -> bool:
    """Whether a new edge ``source -> target`` is allowed.

    Rejected: unknown endpoints, a trigger target, a self-connection, an
    edge identical to an existing one (same source, target and handle),
    and a handle that does not match the source (condition sources need
    one, every other source must have none).
    """
    source = graph.get_node(source_id)
    target = graph.get_node(target_id)
    if source is None or target is None:
        return False
    if target.type == NodeType.TRIGGER or source_id == target_id:
        return False
    if (source.type == NodeType.CONDITION) != (source_handle is not None):
        return False
    return not any(
        edge.source == source_id
        and edge.target == target_id
        and edge.source_handle == source_handle
        for edge in graph.edges
    )


def output_handle_at(graph: WorkflowGraph, point: Position) -> OutputHandle | None:
    """Output handle whose hit box contains a canvas point.

    Later nodes are on top, so they are checked first.
    """
    for node in reversed(graph.nodes):
        handles: tuple[SourceHandle | None, ...] = (
            (SourceHandle.TRUE, SourceHandle.FALSE)
            if node.type == NodeType.CONDITION
            else (None,)
        )
        for handle in handles:
            anchor = output_handle_position(node, handle)
            if (
                abs(point.x - anchor.x) <= HANDLE_HIT_RADIUS
                and abs(point.y - anchor.y) <= HANDLE_HIT_RADIUS
            ):
                return OutputHandle(node_id=node.id, handle=handle)
    return None


def connection_target_at(
    graph: WorkflowGraph,
    point: Position,
    source_id: str,
) -> WorkflowNode | None:
    """First node, other than the source and not a trigger, whose input
    handle hit box contains a canvas point."""
    for node in graph.nodes:
        if node.id == source_id or node.type == NodeType.TRIGGER:
            continue
        if hits_input_handle(node, point):
            return node
    return None


class InteractionController:
    """Input state machine for one canvas.

    Example:
        >>> controller = InteractionController(session)
        >>> controller.pointer_down(300, 200)  # on a node body
        >>> controller.pointer_move(340, 230)
        >>> controller.pending_move
        Position(x=..., y=...)
        >>> controller.pointer_up(340, 230)  # commits the move
    """

    def __init__(self, host: CanvasHost, node_id_factory: IdFactory = generate_node_id) -> None:
        self.host = host
        self.node_id_factory = node_id_factory
        self.mode = InteractionMode.IDLE
        self.selected_node_id: str | None = None
        self.selected_edge_id: str | None = None
        self._pan: _PanState | None = None
        self._drag: _DragState | None = None
        self._connect: _ConnectState | None = None

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------

    def select_node(self, node_id: str | None) -> None:
        """Select a node (clears any edge selection)."""
        self.selected_node_id = node_id
        if node_id is not None:
            self.selected_edge_id = None

    def select_edge(self, edge_id: str | None) -> None:
        """Select an edge (clears any node selection)."""
        self.selected_edge_id = edge_id
        if edge_id is not None:
            self.selected_node_id = None

    def clear_selection(self) -> None:
        self.selected_node_id = None
        self.selected_edge_id = None

    # ------------------------------------------------------------------
    # Preview state
    # ------------------------------------------------------------------

    @property
    def pending_move(self) -> Position | None:
        """Snapped preview position of the node being dragged."""
        return self._drag.pending_move if self._drag else None

    @property
    def dragging_node_id(self) -> str | None:
        return self._drag.node_id if self._drag else None

    @property
    def temp_edge(self) -> tuple[Position, Position] | None:
        """Endpoints (canvas units) of the connection being drawn."""
        if self._connect is None:
            return None
        source = self.host.graph.get_node(self._connect.source_id)
        if source is None:
            return None
        return output_handle_position(source, self._connect.handle), self._connect.pointer

    def _to_canvas(self, x: float, y: float) -> Position:
        return screen_to_canvas(x, y, self.host.viewport)

    # ------------------------------------------------------------------
    # Pointer events
    # ------------------------------------------------------------------

    def pointer_down(self, x: float, y: float, button: int = PRIMARY_BUTTON) -> InteractionMode:
        """Start a gesture at a screen point.

        Output handles take precedence over node bodies, node bodies over
        the background. Ignored while another gesture is in progress or
        for non-primary buttons.

        Returns:
            The mode after the event.
        """
        if button != PRIMARY_BUTTON or self.mode != InteractionMode.IDLE:
            return self.mode

        graph = self.host.graph
        point = self._to_canvas(x, y)

        handle = output_handle_at(graph, point)
        if handle is not None:
            self._connect = _ConnectState(handle.node_id, handle.handle, point)
            self.mode = InteractionMode.CONNECTING
            return self.mode

        node = node_at(graph.nodes, point)
        if node is not None:
            self.select_node(node.id)
            self._drag = _DragState(
                node_id=node.id,
                grab_offset=Position(x=point.x - node.position.x, y=point.y - node.position.y),
                pending_move=node.position,
            )
            self.mode = InteractionMode.DRAGGING_NODE
            return self.mode

        self.clear_selection()
        self._pan = _PanState(start_x=x, start_y=y, start_viewport=self.host.viewport)
        self.mode = InteractionMode.PANNING
        return self.mode

    def pointer_move(self, x: float, y: float) -> None:
        """Track the pointer during a gesture.

        Panning moves the camera 1:1 in screen pixels. Dragging updates the
        snapped preview only; the graph is not touched.
        """
        if self.mode == InteractionMode.PANNING and self._pan is not None:
            start = self._pan.start_viewport
            self.host.set_viewport(
                Viewport(
                    x=start.x + (x - self._pan.start_x),
                    y=start.y + (y - self._pan.start_y),
                    zoom=start.zoom,
                )
            )
        elif self.mode == InteractionMode.DRAGGING_NODE and self._drag is not None:
            point = self._to_canvas(x, y)
            self._drag.pending_move = snap_to_grid(
                Position(
                    x=point.x - self._drag.grab_offset.x,
                    y=point.y - self._drag.grab_offset.y,
                )
            )
        elif self.mode == InteractionMode.CONNECTING and self._connect is not None:
            self._connect.pointer = self._to_canvas(x, y)

    def pointer_up(self, x: float, y: float) -> bool:
        """Finish the gesture, committing it if it produced a mutation.

        Returns:
            True if the graph was changed.
        """
        committed = False
        if self.mode == InteractionMode.DRAGGING_NODE and self._drag is not None:
            self.pointer_move(x, y)
            node = self.host.graph.get_node(self._drag.node_id)
            if node is not None and node.position != self._drag.pending_move:
                committed = self.host.move_node(self._drag.node_id, self._drag.pending_move)
        elif self.mode == InteractionMode.CONNECTING and self._connect is not None:
            committed = self._finish_connection(self._connect, self._to_canvas(x, y))
        elif self.mode == InteractionMode.PANNING:
            self.pointer_move(x, y)
        self._reset()
        return committed

    def pointer_cancel(self) -> None:
        """Abort the gesture without committing anything.

        A cancelled pan restores the camera it started from.
        """
        if self.mode == InteractionMode.PANNING and self._pan is not None:
            self.host.set_viewport(self._pan.start_viewport)
        if self.mode != InteractionMode.IDLE:
            logger.debug("Gesture cancelled", extra={"context": {"mode": self.mode.value}})
        self._reset()

    def _reset(self) -> None:
        self.mode = InteractionMode.IDLE
        self._pan = None
        self._drag = None
        self._connect = None

    def _finish_connection(self, connect: _ConnectState, point: Position) -> bool:
        source_id, handle = connect.source_id, connect.handle
        graph = self.host.graph
        target = connection_target_at(graph, point, source_id)
        if target is None or not can_connect(graph, source_id, target.id, handle):
            logger.debug(
                "Connection abandoned",
                extra={
                    "context": {
                        "source": source_id,
                        "target": target.id if target else None,
                        "handle": str(handle) if handle else None,
                    }
                },
            )
            return False
        return self.host.add_edge(source_id, target.id, handle) is not None

    # ------------------------------------------------------------------
    # Wheel and keyboard
    # ------------------------------------------------------------------

    def wheel(self, x: float, y: float, delta_y: float) -> None:
        """Zoom one step around the pointer; positive delta zooms out."""
        if delta_y == 0:
            return
        viewport = self.host.viewport
        factor = WHEEL_ZOOM_OUT if delta_y > 0 else WHEEL_ZOOM_IN
        self.host.set_viewport(zoom_around(viewport, viewport.zoom * factor, x, y))

    def key_down(self, key: str, in_text_input: bool = False) -> bool:
        """Handle a key press.

        Delete/Backspace removes the selected edge, or else the selected
        node with its edges. Arrow keys pan the camera, but only while no
        node is selected. Keys typed into a text input are ignored.

        Returns:
            True if the key was handled.
        """
        if in_text_input:
            return False

        if key in DELETE_KEYS:
            if self.selected_edge_id is not None:
                removed = self.host.delete_edge(self.selected_edge_id)
                self.selected_edge_id = None
                return removed
            if self.selected_node_id is not None:
                removed = self.host.delete_node(self.selected_node_id)
                self.selected_node_id = None
                return removed
            return False

        if key in ARROW_PAN:
            if self.selected_node_id is not None:
                return False
            dx, dy = ARROW_PAN[key]
            viewport = self.host.viewport
            self.host.set_viewport(
                Viewport(x=viewport.x + dx, y=viewport.y + dy, zoom=viewport.zoom)
            )
            return True

        return False

    # ------------------------------------------------------------------
    # Palette
    # ------------------------------------------------------------------

    def drop_palette_item(
        self,
        x: float,
        y: float,
        node_type: NodeType | str,
        label: str,
        overrides: Mapping[str, Any] | None = None,
    ) -> WorkflowNode | None:
        """Create a node centred on a screen drop point.

        Returns:
            The added node, or ``None`` if the host refused it.
        """
        point = self._to_canvas(x, y)
        position = snap_to_grid(
            Position(x=point.x - NODE_WIDTH / 2, y=point.y - NODE_HEIGHT / 2)
        )
        node = create_node(
            node_type, position, label, overrides, id_factory=self.node_id_factory
        )
        if not self.host.add_node(node):
            return None
        self.select_node(node.id)
        return node


__all__ = [
    "ARROW_PAN",
    "KEYBOARD_PAN_STEP",
    "CanvasHost",
    "InteractionController",
    "InteractionMode",
    "OutputHandle",
    "can_connect",
    "connection_target_at",
    "output_handle_at",
]
