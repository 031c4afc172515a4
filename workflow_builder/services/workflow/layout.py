"""Canvas geometry: grid snapping, coordinate transforms, fit-to-view and
auto-layout.

Coordinates come in two spaces:

- *canvas* units, in which node positions are stored;
- *screen* pixels relative to the canvas element's top-left corner.

``screen = canvas * zoom + viewport offset``. Every node is a fixed
220x72 rectangle anchored at its top-left corner.
"""

from __future__ import annotations

import math
from collections.abc import Sequence

from workflow_builder.core.logging import get_logger
from workflow_builder.models.enums import NodeType, SourceHandle
from workflow_builder.schemas.workflow_graph import (
    MAX_ZOOM,
    MIN_ZOOM,
    Position,
    Viewport,
    WorkflowGraph,
    WorkflowNode,
)
from workflow_builder.services.workflow.algorithms import GraphAlgorithms
from workflow_builder.services.workflow.graph import Graph

logger = get_logger(__name__)

NODE_WIDTH = 220
NODE_HEIGHT = 72
GRID_SIZE = 20

# Fit-to-view never zooms in further than this
FIT_MAX_ZOOM = 1.5
FIT_PADDING = 60

# Auto-layout
LAYER_GAP_X = 280
NODE_GAP_Y = 100
LAYOUT_ORIGIN_X = 60
LAYOUT_BASELINE_Y = 140

# Connection drop tolerance around an input handle, per axis, canvas units
HANDLE_HIT_RADIUS = 12

# Condition branch handles, as a fraction of node height
TRUE_HANDLE_OFFSET = 0.3
FALSE_HANDLE_OFFSET = 0.7


def default_viewport() -> Viewport:
    """The camera of a new or reset canvas."""
    return Viewport(x=40, y=40, zoom=1)


def clamp_zoom(zoom: float) -> float:
    """Clamp a zoom factor into [MIN_ZOOM, MAX_ZOOM]."""
    return min(MAX_ZOOM, max(MIN_ZOOM, zoom))


# =============================================================================
# Grid and coordinate transforms
# =============================================================================


def snap_to_grid(position: Position, grid_size: float = GRID_SIZE) -> Position:
    """Round both axes to the nearest multiple of ``grid_size``.

    Halves round up (towards +inf) on both axes, so the result does not
    depend on the sign of the coordinate's fractional part, and snapping an
    already snapped position returns it unchanged.
    """
    return Position(
        x=math.floor(position.x / grid_size + 0.5) * grid_size,
        y=math.floor(position.y / grid_size + 0.5) * grid_size,
    )


def screen_to_canvas(x: float, y: float, viewport: Viewport) -> Position:
    """Inverse viewport transform: ``(screen - offset) / zoom``."""
    return Position(
        x=(x - viewport.x) / viewport.zoom,
        y=(y - viewport.y) / viewport.zoom,
    )


def canvas_to_screen(position: Position, viewport: Viewport) -> tuple[float, float]:
    """Forward viewport transform: ``canvas * zoom + offset``."""
    return (
        position.x * viewport.zoom + viewport.x,
        position.y * viewport.zoom + viewport.y,
    )


def zoom_around(viewport: Viewport, zoom: float, anchor_x: float, anchor_y: float) -> Viewport:
    """Change zoom keeping the canvas point under the screen anchor fixed.

    Args:
        viewport: Current camera.
        zoom: Requested zoom, clamped before use.
        anchor_x: Anchor x in screen pixels.
        anchor_y: Anchor y in screen pixels.

    Returns:
        The new camera.
    """
    new_zoom = clamp_zoom(zoom)
    ratio = new_zoom / viewport.zoom
    return Viewport(
        x=anchor_x - (anchor_x - viewport.x) * ratio,
        y=anchor_y - (anchor_y - viewport.y) * ratio,
        zoom=new_zoom,
    )


# =============================================================================
# Handles
# =============================================================================


def output_handle_position(node: WorkflowNode, handle: SourceHandle | None = None) -> Position:
    """Canvas position of a node's output handle (right edge).

    Condition nodes have two outputs: ``true`` at 30% and ``false`` at 70%
    of the node height. Every other output sits at mid-height.
    """
    offset = 0.5
    if node.type == NodeType.CONDITION and handle is not None:
        offset = TRUE_HANDLE_OFFSET if handle == SourceHandle.TRUE else FALSE_HANDLE_OFFSET
    return Position(
        x=node.position.x + NODE_WIDTH,
        y=node.position.y + NODE_HEIGHT * offset,
    )


def input_handle_position(node: WorkflowNode) -> Position:
    """Canvas position of a node's input handle (left edge, mid-height)."""
    return Position(x=node.position.x, y=node.position.y + NODE_HEIGHT / 2)


def hits_input_handle(
    node: WorkflowNode,
    point: Position,
    radius: float = HANDLE_HIT_RADIUS,
) -> bool:
    """Whether a canvas point lies in the square hit box of the input handle."""
    handle = input_handle_position(node)
    return abs(point.x - handle.x) <= radius and abs(point.y - handle.y) <= radius


def node_at(nodes: Sequence[WorkflowNode], point: Position) -> WorkflowNode | None:
    """Topmost node whose rectangle contains a canvas point.

    Later nodes are drawn over earlier ones, so the search runs backwards.
    """
    for node in reversed(nodes):
        if (
            node.position.x <= point.x <= node.position.x + NODE_WIDTH
            and node.position.y <= point.y <= node.position.y + NODE_HEIGHT
        ):
            return node
    return None


# =============================================================================
# Fit to view
# =============================================================================


def compute_fit_to_view(
    nodes: Sequence[WorkflowNode],
    canvas_width: float,
    canvas_height: float,
    padding: float = FIT_PADDING,
) -> Viewport:
    """Viewport that centers the bounding box of all nodes in the canvas.

    The zoom is the largest that fits the box inside the canvas minus
    ``padding`` on every side, clamped to [MIN_ZOOM, FIT_MAX_ZOOM].

    Degenerate input (no nodes, a canvas side that is not a positive
    finite number) returns the default viewport.

    Args:
        nodes: Nodes to frame.
        canvas_width: Canvas width in screen pixels.
        canvas_height: Canvas height in screen pixels.
        padding: Margin kept around the box, in screen pixels.

    Returns:
        The framing viewport.
    """
    if not nodes:
        return default_viewport()
    if not (math.isfinite(canvas_width) and math.isfinite(canvas_height)):
        return default_viewport()
    if canvas_width <= 0 or canvas_height <= 0:
        return default_viewport()

    min_x = min(node.position.x for node in nodes)
    min_y = min(node.position.y for node in nodes)
    max_x = max(node.position.x + NODE_WIDTH for node in nodes)
    max_y = max(node.position.y + NODE_HEIGHT for node in nodes)
    box_width = max_x - min_x
    box_height = max_y - min_y

    available_width = canvas_width - 2 * padding
    available_height = canvas_height - 2 * padding
    zoom = min(
        FIT_MAX_ZOOM,
        max(MIN_ZOOM, min(available_width / box_width, available_height / box_height)),
    )

    x = (canvas_width - box_width * zoom) / 2 - min_x * zoom
    y = (canvas_height - box_height * zoom) / 2 - min_y * zoom
    if not (math.isfinite(x) and math.isfinite(y)):
        return default_viewport()
    return Viewport(x=x, y=y, zoom=zoom)


# =============================================================================
# Auto-layout
# =============================================================================


def _assign_layers(workflow: WorkflowGraph) -> dict[str, int]:
    """Layer index per node id: BFS distance from the root, then one extra
    layer per unreachable node in document order."""
    graph = Graph.from_workflow(workflow)
    triggers = workflow.nodes_of_type(NodeType.TRIGGER)
    root = triggers[0] if triggers else workflow.nodes[0]

    layers = GraphAlgorithms.bfs_layers(graph, root.id)
    next_layer = max(layers.values()) + 1
    for node in workflow.nodes:
        if node.id not in layers:
            layers[node.id] = next_layer
            next_layer += 1
    return layers


def auto_layout_graph(workflow: WorkflowGraph) -> WorkflowGraph:
    """Reposition every node into left-to-right BFS layers.

    Layer ``k`` sits at ``x = 60 + 280k``. Nodes in a layer are stacked
    100 units apart, centred on a fixed baseline; the column top is snapped
    to the grid so every position stays on a lattice point. Only positions
    change: ids, data, edges and viewport are untouched, and the result
    depends only on the node list and edges, never on prior positions.

    Args:
        workflow: The graph to lay out.

    Returns:
        A new graph with updated positions.
    """
    if not workflow.nodes:
        return workflow.model_copy()

    layers = _assign_layers(workflow)

    columns: dict[int, list[str]] = {}
    for node_id, layer in layers.items():
        columns.setdefault(layer, []).append(node_id)

    positions: dict[str, Position] = {}
    for layer, node_ids in columns.items():
        column_height = (len(node_ids) - 1) * NODE_GAP_Y
        top = snap_to_grid(Position(x=0, y=LAYOUT_BASELINE_Y - column_height / 2)).y
        for index, node_id in enumerate(node_ids):
            positions[node_id] = Position(
                x=LAYOUT_ORIGIN_X + layer * LAYER_GAP_X,
                y=top + index * NODE_GAP_Y,
            )

    logger.debug(
        "Auto-layout applied",
        extra={"context": {"nodes": len(workflow.nodes), "layers": len(columns)}},
    )
    return workflow.model_copy(
        update={
            "nodes": [
                node.model_copy(update={"position": positions[node.id]})
                for node in workflow.nodes
            ]
        }
    )


__all__ = [
    "FALSE_HANDLE_OFFSET",
    "FIT_MAX_ZOOM",
    "FIT_PADDING",
    "GRID_SIZE",
    "HANDLE_HIT_RADIUS",
    "LAYER_GAP_X",
    "LAYOUT_BASELINE_Y",
    "LAYOUT_ORIGIN_X",
    "NODE_GAP_Y",
    "NODE_HEIGHT",
    "NODE_WIDTH",
    "TRUE_HANDLE_OFFSET",
    "auto_layout_graph",
    "canvas_to_screen",
    "clamp_zoom",
    "compute_fit_to_view",
    "default_viewport",
    "hits_input_handle",
    "input_handle_position",
    "node_at",
    "output_handle_position",
    "screen_to_canvas",
    "snap_to_grid",
    "zoom_around",
]
