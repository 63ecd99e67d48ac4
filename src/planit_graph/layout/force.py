"""
Force Simulation - Iterative physics layout on numpy arrays.
============================================================

A velocity-Verlet style simulation in the manner of d3-force:

- many-body repulsion between every node pair (exact, computed in row
  blocks so memory stays bounded on large graphs)
- springs along each unique undirected node pair that shares an edge
- centering toward the canvas center
- collision to keep nodes a minimum distance apart
- velocity damping and a decaying ``alpha`` that lets the system settle

Initial placement is a phyllotaxis spiral plus per-node jitter derived from
a SHA256 of the node id. Any remaining randomness comes from a generator
seeded by the node-id set, so identical inputs settle identically.
"""

import hashlib
import math
from typing import Mapping, Optional

import numpy as np

from planit_graph.shared.config import ForceSettings
from planit_graph.shared.logging import get_logger
from planit_graph.shared.schemas import CourseGraph, LayoutConfig, Point
from planit_graph.shared.utils import stable_unit_float

logger = get_logger(__name__)

_GOLDEN_ANGLE = math.pi * (3 - math.sqrt(5))


def seed_for(node_ids: list[str]) -> int:
    """Reproducible RNG seed for a node-id set (order independent)."""
    digest = hashlib.sha256("\x1f".join(sorted(node_ids)).encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big")


class ForceSimulation:
    """
    Force-directed layout state for one graph.

    Example:
        >>> sim = ForceSimulation(graph, config)
        >>> while sim.alpha >= sim.settings.alpha_min:
        ...     sim.step()
        >>> positions = sim.positions()
    """

    def __init__(
        self,
        graph: CourseGraph,
        config: LayoutConfig,
        settings: Optional[ForceSettings] = None,
        initial_positions: Optional[Mapping[str, Point]] = None,
    ):
        self.settings = settings or ForceSettings()
        self.config = config
        self.node_ids = graph.node_ids()
        self._index = {node_id: i for i, node_id in enumerate(self.node_ids)}
        self._rng = np.random.default_rng(seed_for(self.node_ids))

        self.alpha = 1.0
        self.tick_count = 0
        self.center = np.array(config.center, dtype=float)
        # Negative charge repels; config carries the magnitude
        self.charge = -float(config.strength)

        self.pos = self._initial_positions(initial_positions or {})
        self.vel = np.zeros_like(self.pos)
        self._init_links(graph)

    # ─────────────────────────────────────────────────────────────────────
    # Setup
    # ─────────────────────────────────────────────────────────────────────

    def _initial_positions(self, seeded: Mapping[str, Point]) -> np.ndarray:
        n = len(self.node_ids)
        pos = np.zeros((n, 2), dtype=float)
        cx, cy = self.center
        jitter = self.settings.seed_jitter

        for i, node_id in enumerate(self.node_ids):
            previous = seeded.get(node_id)
            if previous is not None and previous.is_finite():
                pos[i] = previous
                continue
            radius = self.settings.initial_radius * math.sqrt(0.5 + i)
            angle = i * _GOLDEN_ANGLE
            pos[i, 0] = cx + radius * math.cos(angle) + (stable_unit_float(f"{node_id}:x") - 0.5) * jitter
            pos[i, 1] = cy + radius * math.sin(angle) + (stable_unit_float(f"{node_id}:y") - 0.5) * jitter

        # Split exactly coincident points so pairwise forces have a direction
        if n > 1:
            _, first, counts = np.unique(pos, axis=0, return_index=True, return_counts=True)
            if np.any(counts > 1):
                keep = np.zeros(n, dtype=bool)
                keep[first] = True
                pos[~keep] += self._rng.uniform(-1.0, 1.0, size=(int((~keep).sum()), 2))
        return pos

    def _init_links(self, graph: CourseGraph) -> None:
        pairs: set[tuple[int, int]] = set()
        for edge in graph.edges:
            s, t = self._index[edge.source], self._index[edge.target]
            if s == t:
                continue
            pairs.add((min(s, t), max(s, t)))

        ordered = sorted(pairs)
        self.sources = np.array([p[0] for p in ordered], dtype=np.intp)
        self.targets = np.array([p[1] for p in ordered], dtype=np.intp)

        count = np.zeros(len(self.node_ids), dtype=float)
        np.add.at(count, self.sources, 1)
        np.add.at(count, self.targets, 1)
        if len(ordered):
            self.bias = count[self.sources] / (count[self.sources] + count[self.targets])
        else:
            self.bias = np.zeros(0, dtype=float)

    # ─────────────────────────────────────────────────────────────────────
    # Forces
    # ─────────────────────────────────────────────────────────────────────

    def _jiggle(self, shape: tuple[int, ...]) -> np.ndarray:
        return (self._rng.random(shape) - 0.5) * 1e-6

    def _apply_links(self) -> None:
        if not len(self.sources):
            return
        s, t = self.sources, self.targets
        delta = (self.pos[t] + self.vel[t]) - (self.pos[s] + self.vel[s])
        zero = np.all(delta == 0, axis=1)
        if np.any(zero):
            delta[zero] = self._jiggle((int(zero.sum()), 2))
        length = np.sqrt(np.sum(delta * delta, axis=1))
        scale = (length - self.config.distance) / length * self.alpha * self.config.link_strength
        delta *= scale[:, None]

        np.add.at(self.vel, t, -delta * self.bias[:, None])
        np.add.at(self.vel, s, delta * (1 - self.bias)[:, None])

    def _apply_charge(self) -> None:
        n = len(self.node_ids)
        if n < 2 or self.charge == 0:
            return
        block = max(1, self.settings.block_size)
        for start in range(0, n, block):
            stop = min(start + block, n)
            # diff[i, j] points from node i to node j
            diff = self.pos[None, :, :] - self.pos[start:stop, None, :]
            dist2 = np.sum(diff * diff, axis=2)
            np.maximum(dist2, 1.0, out=dist2)
            weight = self.charge * self.alpha / dist2
            weight[np.arange(stop - start), np.arange(start, stop)] = 0.0
            self.vel[start:stop] += np.sum(diff * weight[:, :, None], axis=1)

    def _apply_center(self) -> None:
        if not len(self.node_ids):
            return
        shift = self.pos.mean(axis=0) - self.center
        self.pos -= shift

    def _apply_collision(self) -> None:
        n = len(self.node_ids)
        radius = self.settings.collision_radius
        if n < 2 or radius <= 0:
            return
        reach = 2 * radius
        predicted = self.pos + self.vel
        block = max(1, self.settings.block_size)
        for start in range(0, n, block):
            stop = min(start + block, n)
            # diff[i, j] points from node j to node i
            diff = predicted[start:stop, None, :] - predicted[None, :, :]
            dist = np.sqrt(np.sum(diff * diff, axis=2))
            overlap = (dist < reach) & (dist > 0)
            overlap[np.arange(stop - start), np.arange(start, stop)] = False
            if not np.any(overlap):
                continue
            safe = np.where(overlap, dist, 1.0)
            push = np.where(overlap, (reach - dist) / safe, 0.0) * self.settings.collision_strength * 0.5
            self.vel[start:stop] += np.sum(diff * push[:, :, None], axis=1)

    # ─────────────────────────────────────────────────────────────────────
    # Stepping
    # ─────────────────────────────────────────────────────────────────────

    @property
    def settled(self) -> bool:
        return self.alpha < self.settings.alpha_min

    def step(self) -> None:
        """Advance the simulation by one tick."""
        self.alpha += (0.0 - self.alpha) * self.settings.alpha_decay
        self._apply_links()
        self._apply_charge()
        self._apply_center()
        self._apply_collision()
        self.vel *= 1 - self.settings.velocity_decay
        self.pos += self.vel
        self.tick_count += 1

    def check_finite(self) -> None:
        if not np.all(np.isfinite(self.pos)):
            raise RuntimeError(
                f"Force simulation produced non-finite coordinates after {self.tick_count} ticks"
            )

    def positions(self) -> dict[str, Point]:
        return {
            node_id: Point(float(self.pos[i, 0]), float(self.pos[i, 1]))
            for i, node_id in enumerate(self.node_ids)
        }
