"""
Render Boundary - Fast-path adapter and rendering hints.
========================================================

The rendering layer itself lives outside this package. This module defines
what the controller hands it:

- RenderAdapter: raw coordinate pushes used only while a drag is moving
- RelationStyle: colour and line style per relation kind
- NodeRenderHints / EdgeRenderHints: opacity and label visibility
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from planit_graph.shared.schemas import Point, RelationKind


class RenderAdapter(ABC):
    """Direct coordinate updates that bypass the normal render cycle."""

    @abstractmethod
    def move_node(self, node_id: str, point: Point) -> None:
        ...

    @abstractmethod
    def move_edge(self, edge_id: str, source: Point, target: Point) -> None:
        ...


class LineStyle(str, Enum):
    SOLID = "solid"
    DASHED = "dashed"
    DOTTED = "dotted"


@dataclass(frozen=True)
class RelationStyle:
    color: str
    line: LineStyle


RELATION_STYLES = {
    RelationKind.PREREQUISITE: RelationStyle("#3B82F6", LineStyle.SOLID),
    RelationKind.COREQUISITE: RelationStyle("#10B981", LineStyle.DASHED),
    RelationKind.ANTIREQUISITE: RelationStyle("#EF4444", LineStyle.DOTTED),
    RelationKind.EQUIVALENT: RelationStyle("#9CA3AF", LineStyle.SOLID),
}


def label_opacity(zoom: float, threshold: float, fade: float) -> float:
    """
    Opacity of a zoom-dependent label.

    Hidden at or below ``threshold``, then fades in linearly over ``fade``.

    Example:
        >>> label_opacity(0.5, 0.7, 0.3)
        0.0
        >>> label_opacity(2.0, 0.7, 0.3)
        1.0
    """
    if zoom <= threshold:
        return 0.0
    if fade <= 0:
        return 1.0
    return min((zoom - threshold) / fade, 1.0)


@dataclass(frozen=True)
class NodeRenderHints:
    opacity: float
    code_label_opacity: float
    title_label_opacity: float
    selected: bool = False
    dragging: bool = False


@dataclass(frozen=True)
class EdgeRenderHints:
    style: RelationStyle
    opacity: float
