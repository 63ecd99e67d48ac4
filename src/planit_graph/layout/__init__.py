"""
Layout Module - Node positioning.
=================================

- geometric: Grid, hierarchical and concentric layouts (deterministic)
- force: numpy force simulation
- engine: LayoutEngine dispatch, progress stream, cancellation
- worker: Background worker with generation-stamped messages

Pipeline flow:
    CourseGraph + LayoutConfig → LayoutEngine → LayoutSnapshot stream
"""

from planit_graph.layout.engine import CancellationToken, LayoutEngine
from planit_graph.layout.force import ForceSimulation
from planit_graph.layout.geometric import (
    ConcentricLayout,
    RingRegistry,
    grid_layout,
    hierarchical_layout,
)
from planit_graph.layout.worker import LayoutMessage, LayoutWorker, MessageType

__all__ = [
    "CancellationToken",
    "ConcentricLayout",
    "ForceSimulation",
    "LayoutEngine",
    "LayoutMessage",
    "LayoutWorker",
    "MessageType",
    "RingRegistry",
    "grid_layout",
    "hierarchical_layout",
]
