"""
Layout Engine - Positions for every node of a course graph.
===========================================================

Dispatches to the deterministic geometric layouts or the force simulation
and exposes the result either as a final snapshot (compute_layout) or as a
cancellable stream of progress snapshots (iter_layout).

The engine is an explicitly constructed service: it owns the concentric
ring registry and the warm-start memory, so callers that want stable ring
radii or warm starts should keep one engine for the process lifetime.
"""

import math
import threading
from typing import Callable, Iterator, Optional

from planit_graph.layout.force import ForceSimulation
from planit_graph.layout.geometric import (
    ConcentricLayout,
    RingRegistry,
    grid_layout,
    hierarchical_layout,
)
from planit_graph.shared.config import LayoutSettings, get_settings
from planit_graph.shared.logging import get_logger
from planit_graph.shared.schemas import (
    CourseGraph,
    LayoutConfig,
    LayoutKind,
    LayoutSnapshot,
    Point,
)

logger = get_logger(__name__)

ProgressCallback = Callable[[LayoutSnapshot], None]


class CancellationToken:
    """Cooperative cancellation flag checked between iteration batches."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


class LayoutEngine:
    """
    Computes layouts for course graphs.

    Example:
        >>> engine = LayoutEngine()
        >>> snapshot = engine.compute_layout(graph, LayoutConfig(width=800, height=600))
        >>> snapshot.complete
        True
    """

    def __init__(
        self,
        settings: Optional[LayoutSettings] = None,
        ring_registry: Optional[RingRegistry] = None,
    ):
        self.settings = settings or get_settings().layout
        self.ring_registry = ring_registry or RingRegistry(self.settings.concentric.priority)
        self.concentric = ConcentricLayout(self.settings.concentric, self.ring_registry)
        self._last_positions: dict[str, Point] = {}
        self._lock = threading.Lock()

    # ─────────────────────────────────────────────────────────────────────
    # Public API
    # ─────────────────────────────────────────────────────────────────────

    def compute_layout(
        self,
        graph: CourseGraph,
        config: LayoutConfig,
        cancel_token: Optional[CancellationToken] = None,
        on_progress: Optional[ProgressCallback] = None,
        generation: int = 0,
    ) -> Optional[LayoutSnapshot]:
        """
        Run a layout to completion.

        Args:
            graph: Graph to lay out
            config: Canvas size, layout kind and force parameters
            cancel_token: Optional cooperative cancellation flag
            on_progress: Called with every intermediate snapshot
            generation: Request generation stamped on every snapshot

        Returns:
            The complete snapshot, or the last emitted one if cancelled
            (None when cancelled before anything was emitted)
        """
        last: Optional[LayoutSnapshot] = None
        for snapshot in self.iter_layout(graph, config, cancel_token, generation):
            last = snapshot
            if not snapshot.complete and on_progress is not None:
                on_progress(snapshot)
        return last

    def iter_layout(
        self,
        graph: CourseGraph,
        config: LayoutConfig,
        cancel_token: Optional[CancellationToken] = None,
        generation: int = 0,
    ) -> Iterator[LayoutSnapshot]:
        """
        Stream layout snapshots.

        Deterministic layouts yield a single complete snapshot. The force
        layout yields progress snapshots at evenly spaced checkpoints and
        then one complete snapshot. Nothing further is yielded once the
        token is cancelled.
        """
        token = cancel_token or CancellationToken()
        kind = config.layout_kind

        if token.is_cancelled:
            return

        if graph.node_count <= 1:
            positions = {n.id: config.center for n in graph.nodes}
            yield self._snapshot(generation, kind, positions, 100.0, complete=True)
            return

        if kind.is_deterministic:
            positions = self._compute_geometric(graph, config)
            self._check_finite(positions)
            yield self._snapshot(generation, kind, positions, 100.0, complete=True)
            return

        yield from self._run_force(graph, config, token, generation)

    def ring_radii(self, graph: CourseGraph, config: LayoutConfig) -> dict[str, float]:
        """Concentric ring radius per category."""
        return self.concentric.ring_radii(graph, config)

    def forget_positions(self) -> None:
        """Drop warm-start memory so the next force run re-seeds."""
        with self._lock:
            self._last_positions = {}

    # ─────────────────────────────────────────────────────────────────────
    # Internals
    # ─────────────────────────────────────────────────────────────────────

    def _compute_geometric(self, graph: CourseGraph, config: LayoutConfig) -> dict[str, Point]:
        if config.layout_kind is LayoutKind.GRID:
            return grid_layout(graph, config, self.settings.grid_spacing)
        if config.layout_kind is LayoutKind.HIERARCHICAL:
            return hierarchical_layout(graph, config, self.settings)
        if config.layout_kind is LayoutKind.CONCENTRIC:
            return self.concentric.compute(graph, config)
        raise ValueError(f"Not a geometric layout: {config.layout_kind}")

    def _run_force(
        self,
        graph: CourseGraph,
        config: LayoutConfig,
        token: CancellationToken,
        generation: int,
    ) -> Iterator[LayoutSnapshot]:
        force_settings = self.settings.force
        seeded: dict[str, Point] = {}
        if self.settings.warm_start:
            with self._lock:
                seeded = dict(self._last_positions)

        simulation = ForceSimulation(graph, config, force_settings, initial_positions=seeded)
        total = config.iterations
        batch = max(1, math.ceil(total / max(1, force_settings.progress_checkpoints)))
        done = 0

        logger.debug(
            f"Force layout gen={generation}: {graph.node_count} nodes, "
            f"{graph.edge_count} edges, {total} iterations"
        )

        while done < total:
            if token.is_cancelled:
                logger.debug(f"Force layout gen={generation} cancelled at {done}/{total}")
                return

            for _ in range(min(batch, total - done)):
                simulation.step()
                done += 1
                if simulation.settled:
                    break
            simulation.check_finite()

            if simulation.settled or done >= total:
                break
            yield self._snapshot(
                generation, config.layout_kind, simulation.positions(), 100.0 * done / total
            )

        if token.is_cancelled:
            return

        positions = simulation.positions()
        with self._lock:
            self._last_positions = dict(positions)
        logger.debug(f"Force layout gen={generation} finished after {simulation.tick_count} ticks")
        yield self._snapshot(generation, config.layout_kind, positions, 100.0, complete=True)

    @staticmethod
    def _check_finite(positions: dict[str, Point]) -> None:
        for node_id, point in positions.items():
            if not point.is_finite():
                raise RuntimeError(f"Non-finite coordinate for node {node_id}")

    @staticmethod
    def _snapshot(
        generation: int,
        kind: LayoutKind,
        positions: dict[str, Point],
        progress: float,
        complete: bool = False,
    ) -> LayoutSnapshot:
        return LayoutSnapshot(
            generation=generation,
            layout_kind=kind,
            positions=positions,
            progress=min(100.0, progress),
            complete=complete,
        )
