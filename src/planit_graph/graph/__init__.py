"""
Graph Module - Course graph construction and queries.
=====================================================

- builder: Records → immutable CourseGraph (with drop counts)
- adjacency: NetworkX-backed neighbour / incident-edge index per graph
- cache: Content-keyed LRU of graph builds
- filters: Subgraphs and summary statistics
"""

from planit_graph.graph.adjacency import AdjacencyIndex, to_networkx
from planit_graph.graph.builder import BuildResult, GraphBuilder, build_graph
from planit_graph.graph.cache import GraphCache, make_cache_key
from planit_graph.graph.filters import (
    GraphFilter,
    GraphStats,
    filter_graph,
    graph_stats,
    induced_subgraph,
    subject_subgraph,
)

__all__ = [
    "AdjacencyIndex",
    "BuildResult",
    "GraphBuilder",
    "GraphCache",
    "GraphFilter",
    "GraphStats",
    "build_graph",
    "filter_graph",
    "graph_stats",
    "induced_subgraph",
    "make_cache_key",
    "subject_subgraph",
    "to_networkx",
]
