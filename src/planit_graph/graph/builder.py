"""
Graph Builder - Course and relation records to an immutable graph.
==================================================================

Builds a CourseGraph from raw records:
- One node per course (first row wins on duplicate ids)
- One edge per unique (source, target, kind) triple
- Relations naming an unknown course are dropped and counted, never raised

The build is a pure function of its inputs, so results are safe to memoize
(see planit_graph.graph.cache).
"""

from dataclasses import dataclass
from typing import Iterable

from planit_graph.shared.logging import get_logger
from planit_graph.shared.schemas import (
    CourseGraph,
    CourseNode,
    CourseRecord,
    RelationEdge,
    RelationKind,
    RelationRecord,
)

logger = get_logger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Build Result
# ─────────────────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BuildResult:
    """Immutable outcome of a graph build."""

    graph: CourseGraph
    dropped_relations: int = 0
    duplicate_courses: int = 0
    duplicate_relations: int = 0
    dropped_examples: tuple[RelationRecord, ...] = ()

    @property
    def node_count(self) -> int:
        return self.graph.node_count

    @property
    def edge_count(self) -> int:
        return self.graph.edge_count

    def summary(self) -> dict[str, int]:
        return {
            "nodes": self.node_count,
            "edges": self.edge_count,
            "dropped_relations": self.dropped_relations,
            "duplicate_courses": self.duplicate_courses,
            "duplicate_relations": self.duplicate_relations,
        }


# ─────────────────────────────────────────────────────────────────────────────
# Graph Builder
# ─────────────────────────────────────────────────────────────────────────────


class GraphBuilder:
    """
    Builds course graphs from records.

    Example:
        >>> builder = GraphBuilder()
        >>> result = builder.build(courses, relations)
        >>> result.graph.node_count
        3
    """

    # Dropped relations kept for diagnostics
    MAX_DROPPED_EXAMPLES = 10

    def build(
        self,
        courses: Iterable[CourseRecord],
        relations: Iterable[RelationRecord],
    ) -> BuildResult:
        """
        Build a graph.

        Args:
            courses: Course records, in the order nodes should appear
            relations: Relation records

        Returns:
            BuildResult with the graph and drop/duplicate counts
        """
        nodes: dict[str, CourseNode] = {}
        duplicate_courses = 0
        for record in courses:
            if record.id in nodes:
                duplicate_courses += 1
                continue
            nodes[record.id] = CourseNode.from_record(record)

        edges: dict[tuple[str, str, RelationKind], RelationEdge] = {}
        dropped = 0
        duplicates = 0
        dropped_examples: list[RelationRecord] = []
        for relation in relations:
            if relation.source_id not in nodes or relation.target_id not in nodes:
                dropped += 1
                if len(dropped_examples) < self.MAX_DROPPED_EXAMPLES:
                    dropped_examples.append(relation)
                continue
            if relation.identity in edges:
                duplicates += 1
                continue
            edges[relation.identity] = RelationEdge.from_record(relation)

        graph = CourseGraph(nodes=tuple(nodes.values()), edges=tuple(edges.values()))

        if dropped:
            logger.warning(f"Dropped {dropped} relations referencing unknown courses")
        if duplicate_courses:
            logger.warning(f"Ignored {duplicate_courses} duplicate course rows")
        logger.debug(
            f"Built graph: {graph.node_count} nodes, {graph.edge_count} edges "
            f"({duplicates} duplicate relations collapsed)"
        )

        return BuildResult(
            graph=graph,
            dropped_relations=dropped,
            duplicate_courses=duplicate_courses,
            duplicate_relations=duplicates,
            dropped_examples=tuple(dropped_examples),
        )


def build_graph(
    courses: Iterable[CourseRecord],
    relations: Iterable[RelationRecord],
) -> BuildResult:
    """
    Convenience function to build a graph.

    Args:
        courses: Course records
        relations: Relation records

    Returns:
        BuildResult
    """
    return GraphBuilder().build(courses, relations)
