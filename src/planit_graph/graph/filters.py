"""
Graph Filters - Subgraph selection and summary statistics.
==========================================================

Provides:
- GraphFilter / filter_graph: induced subgraph on matching courses
- subject_subgraph: a subject's courses plus everything related to them
- graph_stats: counts for reporting
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional

import networkx as nx

from planit_graph.graph.adjacency import to_networkx
from planit_graph.shared.schemas import CourseGraph, CourseNode, RelationKind, Term


# ─────────────────────────────────────────────────────────────────────────────
# Filtering
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class GraphFilter:
    """
    Node predicate over course attributes.

    Empty criteria match everything; non-empty criteria are AND-ed.
    """

    subjects: Optional[set[str]] = None
    levels: Optional[set[int]] = None
    faculties: Optional[set[str]] = None
    terms: Optional[set[Term]] = None

    def __post_init__(self):
        if self.subjects:
            self.subjects = {s.strip().upper() for s in self.subjects}
        if self.terms:
            self.terms = {Term(t.upper()) if isinstance(t, str) else t for t in self.terms}

    def matches(self, node: CourseNode) -> bool:
        if self.subjects and node.subject not in self.subjects:
            return False
        if self.levels and node.level not in self.levels:
            return False
        if self.faculties and node.faculty not in self.faculties:
            return False
        if self.terms and not (node.terms_offered & self.terms):
            return False
        return True

    @property
    def is_empty(self) -> bool:
        return not (self.subjects or self.levels or self.faculties or self.terms)


def induced_subgraph(graph: CourseGraph, node_ids: Iterable[str]) -> CourseGraph:
    """Subgraph on ``node_ids`` (graph order kept) with the edges between them."""
    view = to_networkx(graph).subgraph(node_ids)
    nodes = tuple(n for n in graph.nodes if n.id in view)
    edges = tuple(e for e in graph.edges if view.has_edge(e.source, e.target, key=e.kind.value))
    return CourseGraph(nodes=nodes, edges=edges)


def filter_graph(graph: CourseGraph, graph_filter: GraphFilter) -> CourseGraph:
    """
    Induced subgraph on nodes matching the filter.

    Args:
        graph: Source graph
        graph_filter: Criteria

    Returns:
        New graph (the same graph when the filter is empty)
    """
    if graph_filter.is_empty:
        return graph
    return induced_subgraph(graph, [n.id for n in graph.nodes if graph_filter.matches(n)])


def subject_subgraph(graph: CourseGraph, subject: str) -> CourseGraph:
    """
    A subject's courses plus every course joined to them by a relation.

    Only edges touching the subject's courses are kept, so two related
    courses from other subjects do not bring in their own relation.
    """
    subject = subject.strip().upper()
    nx_graph = to_networkx(graph)
    core = [n.id for n in graph.nodes if n.subject == subject]

    touching = set(nx_graph.out_edges(core, keys=True)) | set(nx_graph.in_edges(core, keys=True))
    view = nx_graph.edge_subgraph(touching)

    nodes = tuple(n for n in graph.nodes if n.subject == subject or n.id in view)
    edges = tuple(e for e in graph.edges if (e.source, e.target, e.kind.value) in touching)
    return CourseGraph(nodes=nodes, edges=edges)


# ─────────────────────────────────────────────────────────────────────────────
# Statistics
# ─────────────────────────────────────────────────────────────────────────────


@dataclass
class GraphStats:
    """Summary counts for a graph."""

    node_count: int = 0
    edge_count: int = 0
    edges_by_kind: dict[str, int] = field(default_factory=dict)
    nodes_by_subject: dict[str, int] = field(default_factory=dict)
    isolated_nodes: int = 0


def graph_stats(graph: CourseGraph) -> GraphStats:
    """Compute summary counts for a graph."""
    stats = GraphStats(node_count=graph.node_count, edge_count=graph.edge_count)

    for kind in RelationKind:
        stats.edges_by_kind[kind.value] = 0
    for edge in graph.edges:
        stats.edges_by_kind[edge.kind.value] += 1

    for node in graph.nodes:
        stats.nodes_by_subject[node.subject] = stats.nodes_by_subject.get(node.subject, 0) + 1

    stats.isolated_nodes = nx.number_of_isolates(to_networkx(graph))
    return stats
