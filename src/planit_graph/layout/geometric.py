"""
Geometric Layouts - Deterministic placements.
=============================================

Grid, hierarchical (rows by academic level) and concentric (one ring per
category) layouts. Each is a pure function of node order, node attributes
and per-category counts; no randomness is involved, so the same graph and
config always produce identical coordinates.
"""

import math
import threading
from typing import Optional

from planit_graph.shared.config import ConcentricSettings, LayoutSettings
from planit_graph.shared.schemas import CourseGraph, CourseNode, LayoutConfig, Point

Positions = dict[str, Point]


# ─────────────────────────────────────────────────────────────────────────────
# Grid
# ─────────────────────────────────────────────────────────────────────────────


def grid_layout(graph: CourseGraph, config: LayoutConfig, spacing: float = 100.0) -> Positions:
    """
    Square-ish grid centered on the canvas.

    ``cols = ceil(sqrt(n))``; nodes fill rows left to right in graph order.
    """
    n = graph.node_count
    if n == 0:
        return {}

    cx, cy = config.center
    cols = math.ceil(math.sqrt(n))
    rows = math.ceil(n / cols)
    left = cx - (cols * spacing) / 2
    top = cy - (rows * spacing) / 2

    positions: Positions = {}
    for index, node in enumerate(graph.nodes):
        row, col = divmod(index, cols)
        positions[node.id] = Point(left + col * spacing, top + row * spacing)
    return positions


# ─────────────────────────────────────────────────────────────────────────────
# Hierarchical
# ─────────────────────────────────────────────────────────────────────────────


def level_row(node: CourseNode) -> int:
    """Row index of a node: 1 for 100-level, 2 for 200-level, ..."""
    level = node.level if node.level is not None else 100
    return level // 100


def hierarchical_layout(
    graph: CourseGraph,
    config: LayoutConfig,
    settings: Optional[LayoutSettings] = None,
) -> Positions:
    """
    Horizontal rows by academic level.

    Row ``r`` sits at ``cy - top_offset + (r - 1) * level_spacing``. A row of
    ``k`` nodes spans ``min(width * width_fraction, k * node_spacing)``;
    a single-node row is centered.
    """
    settings = settings or LayoutSettings()
    if graph.is_empty:
        return {}

    cx, cy = config.center
    rows: dict[int, list[CourseNode]] = {}
    for node in graph.nodes:
        rows.setdefault(level_row(node), []).append(node)

    positions: Positions = {}
    for row, members in rows.items():
        y = cy - settings.level_top_offset + (row - 1) * settings.level_spacing
        count = len(members)
        if count == 1:
            positions[members[0].id] = Point(cx, y)
            continue
        row_width = min(config.width * settings.level_width_fraction, count * settings.level_node_spacing)
        start_x = cx - row_width / 2
        step = row_width / (count - 1)
        for index, node in enumerate(members):
            positions[node.id] = Point(start_x + index * step, y)
    return positions


# ─────────────────────────────────────────────────────────────────────────────
# Concentric
# ─────────────────────────────────────────────────────────────────────────────


class RingRegistry:
    """
    Stable category -> ring index assignment.

    Categories in the priority list own their list position. Other
    categories get the next free index in first-seen order, and an index is
    never reassigned for the registry's lifetime, so the ring of a known
    category does not move when unrelated categories come and go.
    """

    def __init__(self, priority: Optional[list[str]] = None):
        self.priority = list(priority or [])
        self._priority_index = {name: i for i, name in enumerate(self.priority)}
        self._extra: dict[str, int] = {}
        self._lock = threading.Lock()

    def index(self, category: str) -> int:
        known = self._priority_index.get(category)
        if known is not None:
            return known
        with self._lock:
            if category not in self._extra:
                self._extra[category] = len(self.priority) + len(self._extra)
            return self._extra[category]

    def assigned(self) -> dict[str, int]:
        """Non-priority categories seen so far."""
        return dict(self._extra)


def category_of(node: CourseNode, attribute: str) -> str:
    if attribute == "subject":
        return node.subject
    if attribute == "faculty":
        return node.faculty or "UNKNOWN"
    if attribute == "level":
        return str(node.level) if node.level is not None else "UNKNOWN"
    raise ValueError(f"Unknown concentric attribute: {attribute}")


class ConcentricLayout:
    """
    One ring per category around the canvas center.

    Ring radius is ``max(min_radius, count * min_arc / 2π) + ring_index *
    ring_spacing``. Within a ring, nodes are sorted by numeric catalog
    number; the first sits at 12 o'clock and the rest follow clockwise.
    """

    def __init__(
        self,
        settings: Optional[ConcentricSettings] = None,
        registry: Optional[RingRegistry] = None,
    ):
        self.settings = settings or ConcentricSettings()
        self.registry = registry or RingRegistry(self.settings.priority)

    def _groups(self, graph: CourseGraph, attribute: str) -> dict[str, list[CourseNode]]:
        groups: dict[str, list[CourseNode]] = {}
        for node in graph.nodes:
            groups.setdefault(category_of(node, attribute), []).append(node)
        for members in groups.values():
            members.sort(key=lambda n: (n.catalog_sort_key, n.id))
        return groups

    def radius(self, category: str, count: int) -> float:
        base = max(self.settings.min_radius, count * self.settings.min_arc_length / (2 * math.pi))
        return base + self.registry.index(category) * self.settings.ring_spacing

    def ring_radii(self, graph: CourseGraph, config: LayoutConfig) -> dict[str, float]:
        """Radius of each category's ring."""
        groups = self._groups(graph, config.concentric_attribute)
        return {category: self.radius(category, len(members)) for category, members in groups.items()}

    def compute(self, graph: CourseGraph, config: LayoutConfig) -> Positions:
        if graph.is_empty:
            return {}

        cx, cy = config.center
        positions: Positions = {}
        for category, members in self._groups(graph, config.concentric_attribute).items():
            radius = self.radius(category, len(members))
            count = len(members)
            for index, node in enumerate(members):
                angle = -math.pi / 2 + (index / count) * 2 * math.pi
                positions[node.id] = Point(cx + math.cos(angle) * radius, cy + math.sin(angle) * radius)
        return positions
