"""
Adjacency Index - Neighbour and incident-edge lookups.
======================================================

Wraps a NetworkX multigraph built once per CourseGraph so that selection
highlighting, the drag fast path and subgraph queries never rescan the edge
list. Parallel edges between the same pair of courses are keyed by relation
kind.
"""

import networkx as nx

from planit_graph.shared.schemas import CourseGraph, RelationEdge


def to_networkx(graph: CourseGraph) -> nx.MultiDiGraph:
    """
    Directed multigraph with a node per course and an edge per relation.

    Nodes carry the CourseNode under ``course``; edges are keyed by kind and
    carry the RelationEdge under ``edge``.
    """
    nx_graph = nx.MultiDiGraph()
    for node in graph.nodes:
        nx_graph.add_node(node.id, course=node)
    for edge in graph.edges:
        nx_graph.add_edge(edge.source, edge.target, key=edge.kind.value, edge=edge)
    return nx_graph


class AdjacencyIndex:
    """
    Undirected neighbourhood view over a directed course graph.

    Example:
        >>> index = AdjacencyIndex(graph)
        >>> index.neighbours("cs246")
        frozenset({'cs136'})
    """

    def __init__(self, graph: CourseGraph):
        self.graph = graph
        self.nx_graph = to_networkx(graph)

        self._edges: dict[str, RelationEdge] = {}
        self._order: dict[str, int] = {}
        for position, edge in enumerate(graph.edges):
            self._edges[edge.id] = edge
            self._order[edge.id] = position

        self._neighbours = {
            node_id: frozenset(nx.all_neighbors(self.nx_graph, node_id)) for node_id in self.nx_graph
        }
        self._incident = {node_id: self._collect_incident(node_id) for node_id in self.nx_graph}

    def _collect_incident(self, node_id: str) -> tuple[str, ...]:
        edge_ids = {
            edge.id for _, _, _, edge in self.nx_graph.out_edges(node_id, keys=True, data="edge")
        }
        edge_ids.update(
            edge.id for _, _, _, edge in self.nx_graph.in_edges(node_id, keys=True, data="edge")
        )
        return tuple(sorted(edge_ids, key=self._order.__getitem__))

    def neighbours(self, node_id: str) -> frozenset[str]:
        """Nodes joined to ``node_id`` by an edge in either direction."""
        return self._neighbours.get(node_id, frozenset())

    def incident_edges(self, node_id: str) -> tuple[str, ...]:
        """Ids of edges with ``node_id`` as source or target, in graph order."""
        return self._incident.get(node_id, ())

    def degree(self, node_id: str) -> int:
        return len(self._incident.get(node_id, ()))

    def get_edge(self, edge_id: str) -> RelationEdge:
        return self._edges[edge_id]

    def neighbourhood(self, node_ids: set[str]) -> set[str]:
        """The given nodes plus all their 1-hop neighbours."""
        result = set(node_ids)
        for node_id in node_ids:
            result |= self.neighbours(node_id)
        return result

    def edges_touching(self, node_ids: set[str]) -> set[str]:
        """Ids of edges incident to any of the given nodes."""
        result: set[str] = set()
        for node_id in node_ids:
            result.update(self.incident_edges(node_id))
        return result
