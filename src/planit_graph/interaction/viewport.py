"""
Viewport - View transform and screen rectangle.
===============================================

screen = graph * zoom + pan
"""

from dataclasses import dataclass

from planit_graph.shared.schemas import Point


@dataclass(frozen=True)
class Viewport:
    """Visible screen rectangle."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0

    @property
    def is_empty(self) -> bool:
        return self.width <= 0 or self.height <= 0

    @property
    def center(self) -> Point:
        return Point(self.x + self.width / 2, self.y + self.height / 2)


@dataclass
class ViewTransform:
    """
    Zoom and pan applied to graph coordinates.

    Zoom is always kept inside ``[min_zoom, max_zoom]``; pan is unbounded.
    """

    zoom: float = 1.0
    pan_x: float = 0.0
    pan_y: float = 0.0
    min_zoom: float = 0.1
    max_zoom: float = 5.0

    def __post_init__(self):
        if self.min_zoom <= 0 or self.min_zoom > self.max_zoom:
            raise ValueError(f"Invalid zoom range [{self.min_zoom}, {self.max_zoom}]")
        self.zoom = self.clamp(self.zoom)

    @property
    def pan(self) -> Point:
        return Point(self.pan_x, self.pan_y)

    def clamp(self, zoom: float) -> float:
        return min(self.max_zoom, max(self.min_zoom, zoom))

    def to_screen(self, point: Point) -> Point:
        return Point(point.x * self.zoom + self.pan_x, point.y * self.zoom + self.pan_y)

    def to_graph(self, x: float, y: float) -> Point:
        return Point((x - self.pan_x) / self.zoom, (y - self.pan_y) / self.zoom)

    def zoom_at(self, x: float, y: float, factor: float) -> bool:
        """
        Scale by ``factor`` keeping the graph point under (x, y) fixed.

        Returns:
            Whether the zoom level changed
        """
        if factor <= 0:
            raise ValueError("Zoom factor must be positive")
        new_zoom = self.clamp(self.zoom * factor)
        if new_zoom == self.zoom:
            return False
        ratio = new_zoom / self.zoom
        self.pan_x = x - (x - self.pan_x) * ratio
        self.pan_y = y - (y - self.pan_y) * ratio
        self.zoom = new_zoom
        return True

    def pan_by(self, dx: float, dy: float) -> None:
        self.pan_x += dx
        self.pan_y += dy

    def reset(self) -> None:
        self.zoom = self.clamp(1.0)
        self.pan_x = 0.0
        self.pan_y = 0.0
