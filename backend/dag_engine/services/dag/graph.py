"""Directed graph data structure for DAG operations.

TAG: [DAG] [GRAPH]

Adjacency-list graph over node ids with edges from each dependency to its
dependents. Node insertion order is kept so that every traversal, and
therefore every report built from one, is deterministic for a given graph
definition.

Time Complexity:
- Node/Edge addition: O(1)
- Successor lookup: O(1)

Space Complexity: O(V + E)
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Hashable, Iterator, Mapping
from typing import Generic, TypeVar

NodeId = TypeVar("NodeId", bound=Hashable)


class Graph(Generic[NodeId]):
    """Directed graph data structure for DAG operations.

    TAG: [DAG] [GRAPH]

    An edge ``a -> b`` means "b depends on a": ``a`` must reach a terminal
    state before ``b`` may start.

    Example:
        >>> graph = Graph[str].from_dependency_map({"cost": [], "markup": ["cost"]})
        >>> graph.get_successors("cost")
        ['markup']
    """

    __slots__ = ("_adjacency", "_edge_count", "_nodes")

    def __init__(self) -> None:
        """Initialize an empty directed graph."""
        self._adjacency: defaultdict[NodeId, list[NodeId]] = defaultdict(list)
        # dict used as an insertion-ordered set
        self._nodes: dict[NodeId, None] = {}
        self._edge_count: int = 0

    @classmethod
    def from_dependency_map(
        cls,
        dependency_map: Mapping[NodeId, list[NodeId]],
    ) -> Graph[NodeId]:
        """Build a graph from ``node -> [dependencies]``.

        Edges whose dependency is not itself a key of the map are dropped;
        dangling references are reported separately by the validator.

        Args:
            dependency_map: Declared dependencies per node, in node order.

        Returns:
            A new graph with one edge per (dependency, node) pair.
        """
        graph = cls()
        for node_id in dependency_map:
            graph.add_node(node_id)
        for node_id, dependencies in dependency_map.items():
            for dependency in dependencies:
                if dependency in dependency_map:
                    graph.add_edge(dependency, node_id)
        return graph

    @property
    def node_count(self) -> int:
        """Get the number of nodes in the graph."""
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        """Get the number of edges in the graph."""
        return self._edge_count

    @property
    def nodes(self) -> list[NodeId]:
        """Node ids in insertion order."""
        return list(self._nodes)

    def add_node(self, node_id: NodeId) -> None:
        """Add a node to the graph. Existing nodes are left untouched."""
        self._nodes.setdefault(node_id, None)

    def add_edge(self, source: NodeId, target: NodeId) -> None:
        """Add a directed edge from source to target.

        Both nodes are added to the graph if they don't exist. Duplicate
        edges are ignored.

        Args:
            source: The dependency.
            target: The dependent node.
        """
        self.add_node(source)
        self.add_node(target)
        if target in self._adjacency[source]:
            return
        self._adjacency[source].append(target)
        self._edge_count += 1

    def get_successors(self, node_id: NodeId) -> list[NodeId]:
        """Get the nodes that depend directly on ``node_id``."""
        return self._adjacency.get(node_id, [])

    def get_out_degree(self, node_id: NodeId) -> int:
        return len(self._adjacency.get(node_id, []))

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __iter__(self) -> Iterator[NodeId]:
        return iter(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)

    def __repr__(self) -> str:
        return f"Graph(nodes={self.node_count}, edges={self.edge_count})"


__all__ = ["Graph", "NodeId"]
