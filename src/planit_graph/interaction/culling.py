"""
Viewport Culler - Restrict rendering to on-screen nodes.
========================================================

A node is visible when its screen position lies inside the viewport grown
by a buffer margin on every side. The test is done in graph space by
inverting the transform once for the rectangle instead of once per node.
"""

from typing import Iterable, Mapping

from planit_graph.interaction.viewport import Viewport, ViewTransform
from planit_graph.shared.schemas import Point, RelationEdge


class ViewportCuller:
    """
    Example:
        >>> culler = ViewportCuller(buffer=100)
        >>> culler.visible(Viewport(0, 0, 800, 600), ViewTransform(), positions)
        {'cs136', 'cs246'}
    """

    def __init__(self, buffer: float = 100.0):
        if buffer < 0:
            raise ValueError("buffer must be non-negative")
        self.buffer = buffer

    def graph_bounds(self, viewport: Viewport, transform: ViewTransform) -> tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y) of the buffered viewport in graph space."""
        zoom = transform.zoom
        return (
            (viewport.x - self.buffer - transform.pan_x) / zoom,
            (viewport.y - self.buffer - transform.pan_y) / zoom,
            (viewport.x + viewport.width + self.buffer - transform.pan_x) / zoom,
            (viewport.y + viewport.height + self.buffer - transform.pan_y) / zoom,
        )

    def visible(
        self,
        viewport: Viewport,
        transform: ViewTransform,
        positions: Mapping[str, Point],
        always_visible: Iterable[str] = (),
    ) -> set[str]:
        """
        Ids of nodes to render.

        Args:
            viewport: Screen rectangle
            transform: Current zoom/pan
            positions: Graph-space position per node
            always_visible: Nodes kept regardless of position (mid-drag)

        Returns:
            Visible node ids (every node when the viewport is empty)
        """
        if viewport.is_empty:
            return set(positions)

        min_x, min_y, max_x, max_y = self.graph_bounds(viewport, transform)
        result = {
            node_id
            for node_id, point in positions.items()
            if min_x <= point.x <= max_x and min_y <= point.y <= max_y
        }
        result.update(node_id for node_id in always_visible if node_id in positions)
        return result

    @staticmethod
    def visible_edges(edges: Iterable[RelationEdge], visible_ids: set[str]) -> list[RelationEdge]:
        """Edges with at least one visible endpoint."""
        return [e for e in edges if e.source in visible_ids or e.target in visible_ids]
