"""
Tests for Interaction Module.
=============================

Tests for:
- ViewTransform: zoom-to-cursor, clamping, pan
- ViewportCuller: buffered culling, always-visible nodes
- InteractionController: click/drag/pan state machine, overrides, reset,
  layout application, highlight and render hints
"""

import pytest


@pytest.fixture
def abc_snapshot():
    from planit_graph.shared.schemas import LayoutKind, LayoutSnapshot, Point

    return LayoutSnapshot(
        generation=1,
        layout_kind=LayoutKind.GRID,
        positions={"A": Point(100, 100), "B": Point(200, 100), "C": Point(700, 500)},
        progress=100,
        complete=True,
    )


@pytest.fixture
def controller(abc_graph, abc_snapshot, interaction_settings, recording_adapter):
    from planit_graph.interaction import InteractionController

    controller = InteractionController(abc_graph, interaction_settings, render_adapter=recording_adapter)
    controller.set_viewport(800, 600)
    controller.apply_layout(abc_snapshot)
    return controller


# ─────────────────────────────────────────────────────────────────────────────
# View Transform Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestViewTransform:
    """Tests for zoom and pan."""

    @pytest.mark.parametrize("factor", [1.1, 0.9, 1.2, 3.0, 0.25])
    def test_zoom_keeps_point_under_cursor(self, factor):
        from planit_graph.interaction import ViewTransform

        transform = ViewTransform(zoom=1.5, pan_x=-40, pan_y=25)
        cursor = (317.0, 141.0)
        under_cursor = transform.to_graph(*cursor)

        transform.zoom_at(*cursor, factor)

        assert transform.to_screen(under_cursor) == pytest.approx(cursor)

    def test_zoom_clamped(self):
        from planit_graph.interaction import ViewTransform

        transform = ViewTransform()
        under_cursor = transform.to_graph(50, 60)

        transform.zoom_at(50, 60, 100)
        assert transform.zoom == 5.0
        assert transform.to_screen(under_cursor) == pytest.approx((50, 60))

        assert not transform.zoom_at(50, 60, 2)
        transform.zoom_at(50, 60, 0.0001)
        assert transform.zoom == pytest.approx(0.1)

    def test_round_trip(self):
        from planit_graph.interaction import ViewTransform
        from planit_graph.shared.schemas import Point

        transform = ViewTransform(zoom=2, pan_x=10, pan_y=-5)

        assert transform.to_screen(Point(3, 4)) == (16, 3)
        assert transform.to_graph(16, 3) == (3, 4)

    def test_invalid_zoom_range(self):
        from planit_graph.interaction import ViewTransform

        with pytest.raises(ValueError):
            ViewTransform(min_zoom=2, max_zoom=1)


# ─────────────────────────────────────────────────────────────────────────────
# Culling Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestViewportCuller:
    """Tests for viewport culling."""

    def test_culls_offscreen_node(self):
        from planit_graph.interaction import Viewport, ViewportCuller, ViewTransform
        from planit_graph.shared.schemas import Point

        positions = {"A": Point(100, 100), "B": Point(2000, 2000), "C": Point(500, 400)}

        visible = ViewportCuller(100).visible(Viewport(0, 0, 800, 600), ViewTransform(), positions)

        assert visible == {"A", "C"}

    def test_buffer_margin(self):
        from planit_graph.interaction import Viewport, ViewportCuller, ViewTransform
        from planit_graph.shared.schemas import Point

        positions = {"near": Point(-90, 300), "far": Point(-110, 300)}

        visible = ViewportCuller(100).visible(Viewport(0, 0, 800, 600), ViewTransform(), positions)

        assert visible == {"near"}

    def test_respects_zoom_and_pan(self):
        from planit_graph.interaction import Viewport, ViewportCuller, ViewTransform
        from planit_graph.shared.schemas import Point

        transform = ViewTransform(zoom=2, pan_x=-1000, pan_y=0)
        positions = {"left": Point(100, 100), "right": Point(700, 100)}

        visible = ViewportCuller(0).visible(Viewport(0, 0, 800, 600), transform, positions)

        assert visible == {"right"}

    def test_always_visible(self):
        from planit_graph.interaction import Viewport, ViewportCuller, ViewTransform
        from planit_graph.shared.schemas import Point

        positions = {"A": Point(100, 100), "dragged": Point(9000, 9000)}

        visible = ViewportCuller().visible(
            Viewport(0, 0, 800, 600), ViewTransform(), positions, always_visible=["dragged"]
        )

        assert visible == {"A", "dragged"}

    def test_empty_viewport_keeps_all(self):
        from planit_graph.interaction import Viewport, ViewportCuller, ViewTransform
        from planit_graph.shared.schemas import Point

        positions = {"A": Point(100, 100), "B": Point(9000, 9000)}

        assert ViewportCuller().visible(Viewport(), ViewTransform(), positions) == {"A", "B"}

    def test_visible_edges(self, abc_graph):
        from planit_graph.interaction import ViewportCuller

        assert ViewportCuller.visible_edges(abc_graph.edges, {"B"}) == list(abc_graph.edges)
        assert ViewportCuller.visible_edges(abc_graph.edges, {"C"}) == []


# ─────────────────────────────────────────────────────────────────────────────
# Controller Tests
# ─────────────────────────────────────────────────────────────────────────────


class TestControllerLayout:
    """Tests for layout application and position precedence."""

    def test_positions_from_layout(self, controller):
        assert controller.position_of("A") == (100, 100)
        assert set(controller.positions()) == {"A", "B", "C"}

    def test_stale_generation_ignored(self, controller):
        from planit_graph.shared.schemas import LayoutKind, LayoutSnapshot, Point

        newer = LayoutSnapshot(generation=3, layout_kind=LayoutKind.FORCE, positions={"A": Point(1, 1)})
        older = LayoutSnapshot(generation=2, layout_kind=LayoutKind.FORCE, positions={"A": Point(2, 2)})

        assert controller.apply_layout(newer)
        assert not controller.apply_layout(older)
        assert controller.position_of("A") == (1, 1)

    def test_layout_never_moves_dragged_node(self, controller):
        from planit_graph.shared.schemas import LayoutKind, LayoutSnapshot, Point

        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_move(150, 130)
        controller.apply_layout(
            LayoutSnapshot(generation=2, layout_kind=LayoutKind.FORCE, positions={"A": Point(0, 0), "B": Point(5, 5)})
        )

        assert controller.position_of("A") == (150, 130)
        assert controller.position_of("B") == (5, 5)


class TestControllerDrag:
    """Tests for drag, commit and reset."""

    def test_drag_commit_then_reset(self, controller):
        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_move(120, 110)
        controller.pointer_move(150, 130)
        controller.pointer_up(150, 130)

        assert controller.overrides == {"A": (150, 130)}
        assert controller.position_of("A") == (150, 130)

        controller.reset()

        assert controller.overrides == {}
        assert controller.position_of("A") == (100, 100)
        assert controller.transform.zoom == 1
        assert controller.transform.pan == (0, 0)

    def test_drag_tracks_pointer_under_zoom(self, controller):
        from planit_graph.interaction import NodeState

        controller.transform.zoom = 2.0
        controller.transform.pan_x = 10
        controller.transform.pan_y = 10
        # A is drawn at (210, 210); grab it slightly off-center
        controller.pointer_down(212, 208, node_id="A")
        controller.pointer_move(312, 308)

        assert controller.node_state("A") is NodeState.DRAGGING
        assert controller.position_of("A") == pytest.approx((150, 150))

    def test_small_movement_is_click(self, controller):
        from planit_graph.interaction import NodeState

        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_move(101, 101)
        controller.pointer_up(102, 101)

        assert controller.overrides == {}
        assert controller.node_state("A") is NodeState.SELECTED
        assert controller.position_of("A") == (100, 100)

    def test_selected_nodes_move_together(self, controller):
        controller.click_node("A")
        controller.click_node("C", additive=True)

        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_move(130, 90)
        controller.pointer_up(130, 90)

        assert controller.overrides == {"A": (130, 90), "C": (730, 490)}
        assert controller.position_of("B") == (200, 100)

    def test_unselected_drag_moves_only_that_node(self, controller):
        controller.click_node("C")

        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_move(130, 90)
        controller.pointer_up(130, 90)

        assert set(controller.overrides) == {"A"}

    def test_fast_path_on_move(self, controller, recording_adapter):
        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_move(150, 130)

        assert recording_adapter.nodes == [("A", (150, 130))]
        assert recording_adapter.edges == [("A->B:PREREQUISITE", (150, 130), (200, 100))]

    def test_fast_path_unused_outside_drag(self, controller, recording_adapter):
        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_up(100, 100)
        controller.zoom_in()
        controller.reset()

        assert recording_adapter.nodes == []
        assert recording_adapter.edges == []

    def test_cancel_discards_drag(self, controller):
        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_move(150, 130)
        controller.pointer_cancel()

        assert controller.overrides == {}
        assert controller.position_of("A") == (100, 100)

    def test_overrides_survive_new_graph(self, controller, abc_graph):
        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_move(150, 130)
        controller.pointer_up(150, 130)

        controller.set_graph(abc_graph)

        assert controller.position_of("A") == (150, 130)

    def test_unknown_node(self, controller):
        with pytest.raises(ValueError):
            controller.pointer_down(0, 0, node_id="Z")


class TestControllerPanZoom:
    """Tests for pan and zoom."""

    def test_pan_on_canvas(self, controller):
        from planit_graph.interaction import ViewportState

        controller.pointer_down(10, 10)
        assert controller.viewport_state is ViewportState.PANNING
        controller.pointer_move(60, 30)
        controller.pointer_move(70, 40)
        controller.pointer_up(70, 40)

        assert controller.transform.pan == (60, 30)
        assert controller.viewport_state is ViewportState.IDLE

    def test_pan_cancel_restores(self, controller):
        controller.pointer_down(10, 10)
        controller.pointer_move(60, 30)
        controller.pointer_cancel()

        assert controller.transform.pan == (0, 0)

    def test_wheel_zoom_to_cursor(self, controller):
        before = controller.transform.to_graph(300, 200)

        assert controller.wheel(300, 200, delta_y=-120)
        assert controller.transform.zoom == pytest.approx(1.1)
        assert controller.transform.to_screen(before) == pytest.approx((300, 200))

        controller.wheel(300, 200, delta_y=120)
        assert controller.transform.zoom == pytest.approx(0.99)

    def test_zoom_buttons_anchor_viewport_center(self, controller):
        center = controller.transform.to_graph(400, 300)

        controller.zoom_in()
        assert controller.transform.zoom == pytest.approx(1.2)
        assert controller.transform.to_screen(center) == pytest.approx((400, 300))

        controller.zoom_out()
        assert controller.transform.zoom == pytest.approx(1.0)


class TestControllerSelection:
    """Tests for selection, highlight and render hints."""

    def test_click_highlights_neighbourhood(self, controller):
        controller.click_node("A")

        assert controller.highlighted_nodes() == {"A", "B"}
        assert controller.is_node_dimmed("C")
        assert not controller.is_node_dimmed("B")
        assert not controller.is_edge_dimmed(controller.graph.edges[0])

    def test_canvas_click_clears(self, controller):
        controller.click_node("A")
        controller.pointer_down(400, 400)
        controller.pointer_up(400, 400)

        assert controller.selected == []
        assert not controller.is_node_dimmed("C")

    def test_additive_toggle(self, controller):
        controller.click_node("A")
        controller.click_node("B", additive=True)
        controller.click_node("A", additive=True)

        assert controller.selected == ["B"]

    def test_edge_dimmed_when_not_incident(self, controller):
        controller.click_node("C")

        assert controller.is_edge_dimmed(controller.graph.edges[0])

    def test_render_hints(self, controller):
        controller.click_node("A")

        hints = controller.render_hints("C")
        assert hints.opacity == pytest.approx(0.2)
        assert hints.code_label_opacity == pytest.approx(1.0)
        assert hints.title_label_opacity == 0.0

        controller.zoom_at(0, 0, 2.0)
        assert controller.render_hints("A").title_label_opacity == pytest.approx(1.0)
        assert controller.render_hints("A").selected

    def test_edge_style(self, controller):
        hints = controller.edge_hints(controller.graph.edges[0])

        assert hints.style.color == "#3B82F6"
        assert hints.style.line.value == "solid"

    def test_visible_nodes_culled(self, abc_graph, interaction_settings):
        from planit_graph.interaction import InteractionController
        from planit_graph.shared.schemas import LayoutKind, LayoutSnapshot, Point

        controller = InteractionController(abc_graph, interaction_settings)
        controller.set_viewport(800, 600)
        controller.apply_layout(
            LayoutSnapshot(
                generation=0,
                layout_kind=LayoutKind.GRID,
                positions={"A": Point(100, 100), "B": Point(2000, 2000), "C": Point(500, 400)},
            )
        )

        assert controller.visible_nodes() == {"A", "C"}
        assert [e.id for e in controller.visible_edges()] == ["A->B:PREREQUISITE"]

    def test_dragged_node_stays_visible(self, controller):
        controller.pointer_down(100, 100, node_id="A")
        controller.pointer_move(5000, 5000)

        assert "A" in controller.visible_nodes()

    def test_edge_subset_for_large_graphs(self, abc_graph):
        from planit_graph.interaction import InteractionController
        from planit_graph.shared.config import InteractionSettings

        controller = InteractionController(abc_graph, InteractionSettings(max_nodes_for_edges=2))

        assert controller.edge_subset() == []
        controller.click_node("B")
        assert [e.id for e in controller.edge_subset()] == ["A->B:PREREQUISITE"]
        controller.clear_selection()
        controller.show_all_edges = True
        assert len(controller.edge_subset()) == 1


class TestLabelOpacity:
    """Tests for zoom-dependent label fading."""

    @pytest.mark.parametrize(
        "zoom,expected",
        [(0.5, 0.0), (0.7, 0.0), (0.85, 0.5), (1.0, 1.0), (3.0, 1.0)],
    )
    def test_code_label(self, zoom, expected):
        from planit_graph.interaction import label_opacity

        assert label_opacity(zoom, 0.7, 0.3) == pytest.approx(expected)
