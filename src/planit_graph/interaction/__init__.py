"""
Interaction Module - Interactive view over a laid-out graph.
============================================================

- viewport: ViewTransform (zoom/pan) and the screen rectangle
- culling: ViewportCuller
- render: RenderAdapter fast path and rendering hints
- controller: InteractionController state machine
"""

from planit_graph.interaction.controller import (
    InteractionController,
    NodeState,
    ViewportState,
)
from planit_graph.interaction.culling import ViewportCuller
from planit_graph.interaction.render import (
    RELATION_STYLES,
    EdgeRenderHints,
    LineStyle,
    NodeRenderHints,
    RelationStyle,
    RenderAdapter,
    label_opacity,
)
from planit_graph.interaction.viewport import Viewport, ViewTransform

__all__ = [
    "EdgeRenderHints",
    "InteractionController",
    "LineStyle",
    "NodeRenderHints",
    "NodeState",
    "RELATION_STYLES",
    "RelationStyle",
    "RenderAdapter",
    "ViewTransform",
    "Viewport",
    "ViewportCuller",
    "ViewportState",
    "label_opacity",
]
