"""Graph algorithms for DAG validation and run planning.

TAG: [DAG] [ALGORITHMS]

This module provides the graph algorithms used by the validator and the
final-output selection:
- Cycle detection using DFS with path tracking
- Terminal node detection

Time Complexity: O(V + E) for every traversal.
Space Complexity: O(V + E)
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from dag_engine.services.dag.graph import Graph

NodeId = TypeVar("NodeId", bound=Hashable)


class GraphAlgorithms(Generic[NodeId]):
    """Collection of graph algorithms for DAG validation.

    TAG: [DAG] [ALGORITHMS]

    Example:
        >>> graph = Graph[str].from_dependency_map({"a": ["b"], "b": ["a"]})
        >>> GraphAlgorithms.detect_cycle(graph)
        ['a', 'b', 'a']
    """

    @staticmethod
    def detect_cycle(graph: Graph[NodeId]) -> list[NodeId] | None:
        """Detect a cycle using DFS with a recursion stack.

        The traversal keeps an explicit stack of successor iterators, so
        graph depth is not bounded by the interpreter's recursion limit.
        It starts from each unvisited node in insertion order and stops at
        the first cycle found.

        Args:
            graph: The graph to check for cycles.

        Returns:
            Node ids forming the cycle (first id repeated at the end), or
            None when the graph is acyclic.
        """
        visited: set[NodeId] = set()
        rec_stack: set[NodeId] = set()
        path: list[NodeId] = []

        for root in graph:
            if root in visited:
                continue

            visited.add(root)
            rec_stack.add(root)
            path.append(root)
            stack: list[Iterator[NodeId]] = [iter(graph.get_successors(root))]

            while stack:
                neighbor = next(stack[-1], None)
                if neighbor is None:
                    stack.pop()
                    rec_stack.discard(path.pop())
                    continue
                if neighbor in rec_stack:
                    cycle_start = path.index(neighbor)
                    return [*path[cycle_start:], neighbor]
                if neighbor not in visited:
                    visited.add(neighbor)
                    rec_stack.add(neighbor)
                    path.append(neighbor)
                    stack.append(iter(graph.get_successors(neighbor)))

        return None

    @staticmethod
    def find_terminal_nodes(graph: Graph[NodeId]) -> list[NodeId]:
        """Nodes that no other node depends on, in insertion order."""
        return [node for node in graph if graph.get_out_degree(node) == 0]


__all__ = ["GraphAlgorithms"]
