"""Tests for grid snapping, viewport math, fit-to-view and auto-layout."""

import math

import pytest

from workflow_builder.models.enums import NodeType, SourceHandle
from workflow_builder.schemas.workflow_graph import Position, Viewport, WorkflowGraph
from workflow_builder.services.workflow.layout import (
    FIT_MAX_ZOOM,
    NODE_HEIGHT,
    NODE_WIDTH,
    auto_layout_graph,
    canvas_to_screen,
    compute_fit_to_view,
    default_viewport,
    hits_input_handle,
    node_at,
    output_handle_position,
    screen_to_canvas,
    snap_to_grid,
    zoom_around,
)


class TestSnapToGrid:
    """Tests for grid snapping."""

    @pytest.mark.parametrize(
        ("raw", "snapped"),
        [
            ((0, 0), (0, 0)),
            ((9, 11), (0, 20)),
            ((10, 30), (20, 40)),
            ((-9, -11), (0, -20)),
            ((-10, -30), (0, -20)),
            ((123.4, 456.7), (120, 460)),
        ],
    )
    def test_nearest_multiple(self, raw: tuple[float, float], snapped: tuple[float, float]) -> None:
        result = snap_to_grid(Position(x=raw[0], y=raw[1]))
        assert (result.x, result.y) == snapped

    @pytest.mark.parametrize(
        "point",
        [(0, 0), (9.999, -9.999), (10, -10), (-30.5, 47.2), (1e6 + 3, -1e6 - 17), (0.1, 19.9)],
    )
    def test_idempotent(self, point: tuple[float, float]) -> None:
        once = snap_to_grid(Position(x=point[0], y=point[1]))
        assert snap_to_grid(once) == once

    def test_custom_grid(self) -> None:
        assert snap_to_grid(Position(x=26, y=24), grid_size=50) == Position(x=50, y=0)


class TestTransforms:
    """Tests for screen/canvas conversion and zoom."""

    def test_screen_to_canvas_inverts_canvas_to_screen(self) -> None:
        viewport = Viewport(x=35, y=-12, zoom=1.5)
        point = Position(x=100, y=200)
        sx, sy = canvas_to_screen(point, viewport)
        assert screen_to_canvas(sx, sy, viewport) == point

    def test_screen_to_canvas(self) -> None:
        assert screen_to_canvas(140, 240, Viewport(x=40, y=40, zoom=2)) == Position(x=50, y=100)

    def test_zoom_around_keeps_anchor_fixed(self) -> None:
        viewport = Viewport(x=40, y=40, zoom=1)
        before = screen_to_canvas(300, 200, viewport)
        zoomed = zoom_around(viewport, 1.1, 300, 200)
        after = screen_to_canvas(300, 200, zoomed)
        assert zoomed.zoom == pytest.approx(1.1)
        assert after.x == pytest.approx(before.x)
        assert after.y == pytest.approx(before.y)

    @pytest.mark.parametrize(("requested", "expected"), [(10, 2.0), (0.01, 0.25)])
    def test_zoom_is_clamped(self, requested: float, expected: float) -> None:
        assert zoom_around(default_viewport(), requested, 0, 0).zoom == expected

    def test_viewport_model_clamps_zoom(self) -> None:
        assert Viewport(zoom=5).zoom == 2.0
        assert Viewport(zoom=0).zoom == 0.25


class TestHandles:
    """Tests for handle geometry and hit testing."""

    def test_output_handles(self, node_factory) -> None:
        action = node_factory("a", NodeType.ACTION, 100, 100)
        condition = node_factory("c", NodeType.CONDITION, 100, 100)
        assert output_handle_position(action) == Position(x=100 + NODE_WIDTH, y=100 + NODE_HEIGHT / 2)
        assert output_handle_position(condition, SourceHandle.TRUE).y == pytest.approx(100 + NODE_HEIGHT * 0.3)
        assert output_handle_position(condition, SourceHandle.FALSE).y == pytest.approx(100 + NODE_HEIGHT * 0.7)

    def test_input_hit_box_is_twelve_units_per_axis(self, node_factory) -> None:
        node = node_factory("a", NodeType.ACTION, 100, 100)
        centre_y = 100 + NODE_HEIGHT / 2
        assert hits_input_handle(node, Position(x=112, y=centre_y - 12))
        assert not hits_input_handle(node, Position(x=112.5, y=centre_y))

    def test_node_at_prefers_topmost(self, node_factory) -> None:
        bottom = node_factory("bottom", NodeType.ACTION, 0, 0)
        top = node_factory("top", NodeType.ACTION, 100, 0)
        assert node_at([bottom, top], Position(x=150, y=10)) is top
        assert node_at([bottom, top], Position(x=50, y=10)) is bottom
        assert node_at([bottom, top], Position(x=500, y=500)) is None


class TestFitToView:
    """Tests for fit-to-view."""

    def test_no_nodes_returns_default(self) -> None:
        assert compute_fit_to_view([], 800, 600) == default_viewport()

    @pytest.mark.parametrize(
        ("width", "height"),
        [(0, 0), (0, 600), (800, -1), (math.nan, 600), (math.inf, 600)],
    )
    def test_degenerate_canvas_returns_default(self, node_factory, width: float, height: float) -> None:
        nodes = [node_factory("a", NodeType.ACTION, 0, 0)]
        viewport = compute_fit_to_view(nodes, width, height)
        assert viewport == default_viewport()

    def test_single_node_is_centred_at_max_zoom(self, node_factory) -> None:
        nodes = [node_factory("a", NodeType.ACTION, 100, 50)]
        viewport = compute_fit_to_view(nodes, 1000, 800)
        assert viewport.zoom == FIT_MAX_ZOOM
        left, top = canvas_to_screen(Position(x=100, y=50), viewport)
        right, bottom = canvas_to_screen(Position(x=100 + NODE_WIDTH, y=50 + NODE_HEIGHT), viewport)
        assert (left + right) / 2 == pytest.approx(500)
        assert (top + bottom) / 2 == pytest.approx(400)

    def test_wide_graph_fits_inside_padding(self, node_factory) -> None:
        nodes = [
            node_factory("a", NodeType.ACTION, 0, 0),
            node_factory("b", NodeType.ACTION, 2000, 300),
        ]
        viewport = compute_fit_to_view(nodes, 1000, 600, padding=60)
        left, _ = canvas_to_screen(Position(x=0, y=0), viewport)
        right, _ = canvas_to_screen(Position(x=2000 + NODE_WIDTH, y=0), viewport)
        assert left == pytest.approx(60)
        assert right == pytest.approx(940)
        assert all(math.isfinite(v) for v in (viewport.x, viewport.y, viewport.zoom))

    def test_zoom_never_below_minimum(self, node_factory) -> None:
        nodes = [
            node_factory("a", NodeType.ACTION, 0, 0),
            node_factory("b", NodeType.ACTION, 100000, 0),
        ]
        assert compute_fit_to_view(nodes, 800, 600).zoom == 0.25


class TestAutoLayout:
    """Tests for layered auto-layout."""

    def test_layers_from_trigger(self, valid_graph: WorkflowGraph) -> None:
        laid_out = auto_layout_graph(valid_graph)
        positions = {node.id: node.position for node in laid_out.nodes}
        assert positions["trigger"] == Position(x=60, y=140)
        assert positions["check"] == Position(x=340, y=140)
        assert positions["approve"] == Position(x=620, y=100)
        assert positions["reject"] == Position(x=620, y=200)

    def test_only_positions_change(self, valid_graph: WorkflowGraph) -> None:
        laid_out = auto_layout_graph(valid_graph)
        assert laid_out.edges == valid_graph.edges
        assert laid_out.viewport == valid_graph.viewport
        assert [(n.id, n.data, n.label) for n in laid_out.nodes] == [
            (n.id, n.data, n.label) for n in valid_graph.nodes
        ]

    def test_input_is_not_mutated(self, valid_graph: WorkflowGraph) -> None:
        before = valid_graph.model_copy(deep=True)
        auto_layout_graph(valid_graph)
        assert valid_graph == before

    def test_deterministic_regardless_of_prior_positions(self, valid_graph: WorkflowGraph) -> None:
        once = auto_layout_graph(valid_graph)
        scrambled = valid_graph.model_copy(
            update={
                "nodes": [
                    node.model_copy(update={"position": Position(x=i * 13.7, y=-i * 99)})
                    for i, node in enumerate(valid_graph.nodes)
                ]
            }
        )
        assert auto_layout_graph(scrambled) == once
        assert auto_layout_graph(once) == once

    def test_unreachable_nodes_get_trailing_layers(self, node_factory, edge_factory) -> None:
        workflow = WorkflowGraph(
            nodes=[
                node_factory("orphan1", NodeType.ACTION),
                node_factory("t", NodeType.TRIGGER),
                node_factory("a", NodeType.ACTION),
                node_factory("orphan2", NodeType.DELAY),
            ],
            edges=[edge_factory("t", "a")],
        )
        positions = {n.id: n.position.x for n in auto_layout_graph(workflow).nodes}
        assert positions == {"t": 60, "a": 340, "orphan1": 620, "orphan2": 900}

    def test_without_trigger_roots_at_first_node(self, node_factory, edge_factory) -> None:
        workflow = WorkflowGraph(
            nodes=[node_factory("a", NodeType.ACTION), node_factory("b", NodeType.ACTION)],
            edges=[edge_factory("a", "b")],
        )
        positions = {n.id: n.position.x for n in auto_layout_graph(workflow).nodes}
        assert positions == {"a": 60, "b": 340}

    def test_positions_are_on_the_grid(self, node_factory, edge_factory) -> None:
        nodes = [node_factory("t", NodeType.TRIGGER)] + [
            node_factory(f"n{i}", NodeType.ACTION) for i in range(4)
        ]
        workflow = WorkflowGraph(
            nodes=nodes,
            edges=[edge_factory("t", f"n{i}") for i in range(4)],
        )
        for node in auto_layout_graph(workflow).nodes:
            assert snap_to_grid(node.position) == node.position

    def test_empty_graph(self) -> None:
        assert auto_layout_graph(WorkflowGraph()).nodes == []
