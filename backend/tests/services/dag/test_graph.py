"""Tests for the Graph data structure.

TAG: [DAG] [GRAPH] [TEST]
"""

from dag_engine.services.dag.graph import Graph


class TestGraphConstruction:
    """Tests for node and edge insertion."""

    def test_empty_graph(self):
        """New graph has no nodes or edges."""
        graph = Graph[str]()
        assert graph.node_count == 0
        assert graph.edge_count == 0
        assert len(graph) == 0
        assert graph.nodes == []

    def test_add_edge_adds_both_nodes(self):
        """Adding an edge registers source and target."""
        graph = Graph[str]()
        graph.add_edge("cost", "markup")

        assert "cost" in graph
        assert "markup" in graph
        assert graph.get_successors("cost") == ["markup"]
        assert graph.get_successors("markup") == []

    def test_duplicate_edges_are_ignored(self):
        """The same edge added twice counts once."""
        graph = Graph[str]()
        graph.add_edge("a", "b")
        graph.add_edge("a", "b")

        assert graph.edge_count == 1
        assert graph.get_successors("a") == ["b"]

    def test_add_node_keeps_insertion_order(self):
        """Nodes iterate in the order they were first added."""
        graph = Graph[str]()
        for node in ("c", "a", "b", "a"):
            graph.add_node(node)

        assert graph.nodes == ["c", "a", "b"]
        assert list(graph) == ["c", "a", "b"]

    def test_out_degree_counts_dependents(self):
        graph = Graph[str]()
        graph.add_edge("a", "c")
        graph.add_edge("a", "d")
        graph.add_edge("c", "d")

        assert graph.get_out_degree("a") == 2
        assert graph.get_out_degree("c") == 1
        assert graph.get_out_degree("d") == 0

    def test_unknown_node_lookups_are_empty(self):
        """Lookups of absent nodes return empty results, not errors."""
        graph = Graph[str]()
        assert graph.get_successors("missing") == []
        assert graph.get_out_degree("missing") == 0

    def test_repr(self):
        graph = Graph[str]()
        graph.add_edge("a", "b")
        assert repr(graph) == "Graph(nodes=2, edges=1)"


class TestFromDependencyMap:
    """Tests for building a graph from declared dependencies."""

    def test_edges_point_from_dependency_to_dependent(self):
        """``markup`` depending on ``cost`` gives the edge cost -> markup."""
        graph = Graph[str].from_dependency_map({"cost": [], "markup": ["cost"]})

        assert graph.get_successors("cost") == ["markup"]
        assert graph.get_successors("markup") == []

    def test_node_order_follows_map_order(self):
        """Nodes appear in map order even when dependencies come later."""
        graph = Graph[str].from_dependency_map({"b": ["a"], "a": []})
        assert graph.nodes == ["b", "a"]

    def test_unknown_dependencies_are_dropped(self):
        """Dangling references produce no node and no edge."""
        graph = Graph[str].from_dependency_map({"a": ["ghost"]})

        assert "ghost" not in graph
        assert graph.edge_count == 0
