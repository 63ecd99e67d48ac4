"""
Interaction Controller - Selection, drag, pan and zoom over a laid-out graph.
=============================================================================

Holds all interactive view state for one graph:
- layout positions (last applied snapshot)
- manual overrides committed by drag-release
- live drag positions while a drag is in progress
- selection and the derived neighbourhood highlight
- the view transform and viewport rectangle

Position precedence for a node is: live drag > manual override > layout.

Pointer coordinates are screen coordinates. A press that moves less than
the drag threshold before release is a click.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from planit_graph.graph.adjacency import AdjacencyIndex
from planit_graph.interaction.culling import ViewportCuller
from planit_graph.interaction.render import (
    RELATION_STYLES,
    EdgeRenderHints,
    NodeRenderHints,
    RenderAdapter,
    label_opacity,
)
from planit_graph.interaction.viewport import Viewport, ViewTransform
from planit_graph.shared.config import InteractionSettings, get_settings
from planit_graph.shared.logging import get_logger
from planit_graph.shared.schemas import CourseGraph, LayoutSnapshot, Point, RelationEdge

logger = get_logger(__name__)


class NodeState(str, Enum):
    UNSELECTED = "unselected"
    SELECTED = "selected"
    DRAGGING = "dragging"


class ViewportState(str, Enum):
    IDLE = "idle"
    PANNING = "panning"


@dataclass
class _Press:
    """An in-progress pointer press."""

    start: Point
    last: Point
    node_id: Optional[str] = None
    additive: bool = False
    # node id -> node position minus pointer position, in graph space
    offsets: dict[str, Point] = field(default_factory=dict)
    pan_at_press: Point = Point(0.0, 0.0)
    moved: bool = False


class InteractionController:
    """
    Interactive state machine for a course graph view.

    Example:
        >>> controller = InteractionController(graph)
        >>> controller.apply_layout(snapshot)
        True
        >>> controller.pointer_down(100, 100, node_id="cs246")
        >>> controller.pointer_move(160, 120)
        >>> controller.pointer_up(160, 120)
        >>> controller.overrides["cs246"]
        Point(x=..., y=...)
    """

    def __init__(
        self,
        graph: CourseGraph,
        settings: Optional[InteractionSettings] = None,
        render_adapter: Optional[RenderAdapter] = None,
    ):
        self.settings = settings or get_settings().interaction
        self.render_adapter = render_adapter
        self.transform = ViewTransform(min_zoom=self.settings.min_zoom, max_zoom=self.settings.max_zoom)
        self.viewport = Viewport()
        self.culler = ViewportCuller(self.settings.cull_buffer)
        self.viewport_state = ViewportState.IDLE
        self.show_all_edges = False

        self.overrides: dict[str, Point] = {}
        self._layout_positions: dict[str, Point] = {}
        self._drag_positions: dict[str, Point] = {}
        self._selected: dict[str, None] = {}
        self._press: Optional[_Press] = None
        self._applied_generation = -1

        self.graph = graph
        self.adjacency = AdjacencyIndex(graph)

    # ─────────────────────────────────────────────────────────────────────
    # Graph & Layout
    # ─────────────────────────────────────────────────────────────────────

    def set_graph(self, graph: CourseGraph) -> None:
        """
        Switch to a new graph.

        Manual overrides survive; selection is narrowed to nodes that still
        exist and any press in progress is abandoned.
        """
        self.graph = graph
        self.adjacency = AdjacencyIndex(graph)
        self._selected = {k: None for k in self._selected if graph.has_node(k)}
        self._drag_positions.clear()
        self._press = None
        self.viewport_state = ViewportState.IDLE

    def apply_layout(self, snapshot: LayoutSnapshot) -> bool:
        """
        Apply a layout snapshot.

        Snapshots older than the newest applied generation are ignored.
        Nodes being dragged keep tracking the pointer.

        Returns:
            Whether the snapshot was applied
        """
        if snapshot.generation < self._applied_generation:
            logger.debug(
                f"Ignored stale layout gen={snapshot.generation} "
                f"(current {self._applied_generation})"
            )
            return False
        self._applied_generation = snapshot.generation
        self._layout_positions = dict(snapshot.positions)
        return True

    @property
    def applied_generation(self) -> int:
        return self._applied_generation

    def layout_position(self, node_id: str) -> Optional[Point]:
        return self._layout_positions.get(node_id)

    def position_of(self, node_id: str) -> Optional[Point]:
        if node_id in self._drag_positions:
            return self._drag_positions[node_id]
        if node_id in self.overrides:
            return self.overrides[node_id]
        return self._layout_positions.get(node_id)

    def positions(self) -> dict[str, Point]:
        """Effective position of every graph node that has one."""
        result: dict[str, Point] = {}
        for node_id in self.graph.node_ids():
            point = self.position_of(node_id)
            if point is not None:
                result[node_id] = point
        return result

    # ─────────────────────────────────────────────────────────────────────
    # State
    # ─────────────────────────────────────────────────────────────────────

    def node_state(self, node_id: str) -> NodeState:
        if node_id in self._drag_positions:
            return NodeState.DRAGGING
        if node_id in self._selected:
            return NodeState.SELECTED
        return NodeState.UNSELECTED

    @property
    def selected(self) -> list[str]:
        return list(self._selected)

    @property
    def dragging(self) -> list[str]:
        return list(self._drag_positions)

    # ─────────────────────────────────────────────────────────────────────
    # Pointer Events
    # ─────────────────────────────────────────────────────────────────────

    def pointer_down(self, x: float, y: float, node_id: Optional[str] = None, additive: bool = False) -> None:
        """Press on a node (``node_id`` given) or on empty canvas."""
        self._require_node(node_id)
        here = Point(x, y)
        press = _Press(start=here, last=here, node_id=node_id, additive=additive, pan_at_press=self.transform.pan)

        if node_id is not None:
            moving = list(self._selected) if node_id in self._selected else [node_id]
            pointer = self.transform.to_graph(x, y)
            for moving_id in moving:
                point = self.position_of(moving_id)
                if point is not None:
                    press.offsets[moving_id] = Point(point.x - pointer.x, point.y - pointer.y)
        else:
            self.viewport_state = ViewportState.PANNING

        self._press = press

    def pointer_move(self, x: float, y: float) -> None:
        """Track the pointer; drags nodes or pans once past the threshold."""
        press = self._press
        if press is None:
            return

        if not press.moved:
            if math.hypot(x - press.start.x, y - press.start.y) < self.settings.drag_threshold:
                return
            press.moved = True

        if press.node_id is None:
            self.transform.pan_by(x - press.last.x, y - press.last.y)
        else:
            pointer = self.transform.to_graph(x, y)
            for moving_id, offset in press.offsets.items():
                self._drag_positions[moving_id] = Point(pointer.x + offset.x, pointer.y + offset.y)
            self._push_fast_path(press.offsets.keys())

        press.last = Point(x, y)

    def pointer_up(self, x: float, y: float) -> None:
        """Release: commit a drag, finish a pan, or treat the press as a click."""
        press = self._press
        if press is None:
            return
        self.pointer_move(x, y)
        self._press = None
        self.viewport_state = ViewportState.IDLE

        if press.moved:
            if self._drag_positions:
                self.overrides.update(self._drag_positions)
                logger.debug(f"Committed {len(self._drag_positions)} manual positions")
                self._drag_positions.clear()
            return

        if press.node_id is not None:
            self.click_node(press.node_id, additive=press.additive)
        else:
            self.clear_selection()

    def pointer_cancel(self) -> None:
        """Abandon the current press without committing anything."""
        press = self._press
        if press is None:
            return
        if press.node_id is None and press.moved:
            self.transform.pan_x, self.transform.pan_y = press.pan_at_press
        self._drag_positions.clear()
        self._press = None
        self.viewport_state = ViewportState.IDLE

    def _push_fast_path(self, node_ids) -> None:
        if self.render_adapter is None:
            return
        moved = set(node_ids)
        for node_id in moved:
            self.render_adapter.move_node(node_id, self._drag_positions[node_id])
        for edge_id in sorted(self.adjacency.edges_touching(moved)):
            edge = self.adjacency.get_edge(edge_id)
            source = self.position_of(edge.source)
            target = self.position_of(edge.target)
            if source is not None and target is not None:
                self.render_adapter.move_edge(edge_id, source, target)

    # ─────────────────────────────────────────────────────────────────────
    # Selection & Highlight
    # ─────────────────────────────────────────────────────────────────────

    def click_node(self, node_id: str, additive: bool = False) -> None:
        self._require_node(node_id)
        if additive:
            if node_id in self._selected:
                del self._selected[node_id]
            else:
                self._selected[node_id] = None
        else:
            self._selected = {node_id: None}

    def clear_selection(self) -> None:
        self._selected = {}

    def highlighted_nodes(self) -> set[str]:
        """Selected nodes plus their 1-hop neighbours (empty with no selection)."""
        return self.adjacency.neighbourhood(set(self._selected))

    def is_node_dimmed(self, node_id: str) -> bool:
        if not self._selected:
            return False
        return node_id not in self.highlighted_nodes()

    def is_edge_dimmed(self, edge: RelationEdge) -> bool:
        if not self._selected:
            return False
        return not (edge.source in self._selected or edge.target in self._selected)

    # ─────────────────────────────────────────────────────────────────────
    # View
    # ─────────────────────────────────────────────────────────────────────

    def set_viewport(self, width: float, height: float, x: float = 0.0, y: float = 0.0) -> None:
        self.viewport = Viewport(x=x, y=y, width=width, height=height)

    def zoom_at(self, x: float, y: float, factor: float) -> bool:
        """Zoom keeping the graph point under screen (x, y) fixed."""
        return self.transform.zoom_at(x, y, factor)

    def wheel(self, x: float, y: float, delta_y: float) -> bool:
        """Mouse wheel: scrolling down zooms out, up zooms in."""
        if delta_y == 0:
            return False
        factor = self.settings.wheel_zoom_out if delta_y > 0 else self.settings.wheel_zoom_in
        return self.zoom_at(x, y, factor)

    def zoom_in(self) -> bool:
        center = self.viewport.center
        return self.zoom_at(center.x, center.y, self.settings.zoom_step)

    def zoom_out(self) -> bool:
        center = self.viewport.center
        return self.zoom_at(center.x, center.y, 1 / self.settings.zoom_step)

    def pan_by(self, dx: float, dy: float) -> None:
        self.transform.pan_by(dx, dy)

    def reset(self) -> None:
        """Zoom 1, pan origin, and every node back to its layout position."""
        self.transform.reset()
        self.overrides.clear()
        self._drag_positions.clear()
        self._press = None
        self.viewport_state = ViewportState.IDLE

    # ─────────────────────────────────────────────────────────────────────
    # Rendering
    # ─────────────────────────────────────────────────────────────────────

    def visible_nodes(self) -> set[str]:
        return self.culler.visible(
            self.viewport,
            self.transform,
            self.positions(),
            always_visible=self._drag_positions.keys(),
        )

    def edge_subset(self) -> list[RelationEdge]:
        """
        Edges eligible for drawing.

        Large graphs only draw edges touching the selection unless
        ``show_all_edges`` is set.
        """
        if self.show_all_edges or self.graph.node_count <= self.settings.max_nodes_for_edges:
            return list(self.graph.edges)
        return [e for e in self.graph.edges if e.source in self._selected or e.target in self._selected]

    def visible_edges(self) -> list[RelationEdge]:
        return self.culler.visible_edges(self.edge_subset(), self.visible_nodes())

    def render_hints(self, node_id: str) -> NodeRenderHints:
        self._require_node(node_id)
        zoom = self.transform.zoom
        state = self.node_state(node_id)
        return NodeRenderHints(
            opacity=self.settings.dim_opacity if self.is_node_dimmed(node_id) else 1.0,
            code_label_opacity=label_opacity(zoom, self.settings.code_label_zoom, self.settings.code_label_fade),
            title_label_opacity=label_opacity(zoom, self.settings.title_label_zoom, self.settings.title_label_fade),
            selected=node_id in self._selected,
            dragging=state is NodeState.DRAGGING,
        )

    def edge_hints(self, edge: RelationEdge) -> EdgeRenderHints:
        return EdgeRenderHints(
            style=RELATION_STYLES[edge.kind],
            opacity=self.settings.dim_opacity if self.is_edge_dimmed(edge) else 1.0,
        )

    def _require_node(self, node_id: Optional[str]) -> None:
        if node_id is not None and not self.graph.has_node(node_id):
            raise ValueError(f"Unknown node id: {node_id}")
