"""
Tests for graph-state construction.
"""

import numpy as np
import pytest

from force_layout import DuplicateKeyError, GraphState, build_graph


class Shape:
    """Stand-in for a host node object."""

    def __init__(self, name):
        self.name = name


class Connector:
    """Stand-in for a host edge object."""

    def __init__(self, source, target):
        self.source = source
        self.target = target


def key_of(node):
    return node.name


def source_of(edge):
    return edge.source


def target_of(edge):
    return edge.target


def build(names, pairs):
    nodes = [Shape(n) for n in names]
    edges = [Connector(s, t) for s, t in pairs]
    return build_graph(nodes, edges, key_of, source_of, target_of)


class TestNodes:
    """One NodeState per node, in input order."""

    def test_node_per_input_in_order(self):
        graph = build(["c", "a", "b"], [])
        assert len(graph) == 3
        assert graph.keys == ["c", "a", "b"]

    def test_index_lookup(self):
        graph = build(["c", "a", "b"], [])
        assert graph.index_of("a") == 1
        assert graph.index_of("missing") is None
        assert graph.index_of(None) is None
        assert "b" in graph

    def test_duplicate_key_raises(self):
        with pytest.raises(DuplicateKeyError, match="'a'") as info:
            build(["a", "b", "a"], [])
        assert info.value.key == "a"

    def test_duplicate_key_is_value_error(self):
        with pytest.raises(ValueError):
            build(["x", "x"], [])

    def test_empty_graph(self):
        graph = build([], [])
        assert len(graph) == 0
        assert graph.edge_count == 0

    def test_initial_state(self):
        graph = build(["a"], [])
        node = graph[0]
        assert (node.x, node.y) == (0.0, 0.0)
        assert node.velocity.length() == 0.0
        assert node.inputs == []
        assert node.nexts == []

    def test_positions_arrays(self):
        graph = build(["a", "b"], [])
        graph[0].x, graph[0].y = 1.0, 2.0
        graph[1].x, graph[1].y = 3.0, 4.0
        xs, ys = graph.positions()
        np.testing.assert_array_equal(xs, [1.0, 3.0])
        np.testing.assert_array_equal(ys, [2.0, 4.0])


class TestEdges:
    """Directed adjacency and dropped edges."""

    def test_directed_adjacency(self):
        graph = build(["a", "b"], [("a", "b")])
        assert graph[0].nexts == [1]
        assert graph[0].inputs == []
        assert graph[1].inputs == [0]
        assert graph[1].nexts == []
        assert graph.edge_count == 1

    def test_missing_endpoint_dropped(self):
        graph = build(["a", "b"], [(None, "b"), ("a", None)])
        assert graph.edge_count == 0
        assert graph.dropped_edges == 2
        assert graph[1].inputs == []

    def test_unknown_endpoint_dropped(self):
        graph = build(["a", "b"], [("a", "zzz"), ("zzz", "b")])
        assert graph.edge_count == 0
        assert graph.dropped_edges == 2

    def test_self_loop_dropped(self):
        graph = build(["a", "b"], [("a", "a"), ("a", "b")])
        assert graph[0].inputs == []
        assert graph[0].nexts == [1]
        assert graph.dropped_edges == 1

    def test_parallel_edges_kept(self):
        graph = build(["a", "b"], [("a", "b"), ("a", "b")])
        assert graph[1].inputs == [0, 0]
        assert graph.edge_count == 2

    def test_adjacency_uses_indices(self):
        graph = build(["a", "b", "c"], [("c", "a"), ("b", "a")])
        assert graph[0].inputs == [2, 1]
        assert all(isinstance(i, int) for i in graph[0].inputs)


class TestExtractionFunctions:
    """The engine only touches host objects through the key functions."""

    def test_arbitrary_hashable_keys(self):
        nodes = [(1, "x"), (2, "y")]
        edges = [{"from": (1, "x"), "to": (2, "y")}]
        graph = build_graph(
            nodes, edges, lambda n: n, lambda e: e["from"], lambda e: e["to"]
        )
        assert graph[1].inputs == [0]

    def test_key_function_error_propagates(self):
        def broken(node):
            raise LookupError("no key")

        with pytest.raises(LookupError, match="no key"):
            build_graph(["a"], [], broken, source_of, target_of)

    def test_edge_function_error_propagates(self):
        def broken(edge):
            raise AttributeError("no source")

        with pytest.raises(AttributeError):
            build_graph([Shape("a")], [object()], key_of, broken, target_of)

    def test_unhashable_key_raises_type_error(self):
        with pytest.raises(TypeError):
            build_graph([["a"]], [], lambda n: n, source_of, target_of)

    def test_graph_state_add_node_directly(self):
        graph = GraphState()
        assert graph.add_node("a") == 0
        assert graph.add_node("b") == 1
        graph.add_edge(0, 1)
        assert graph[1].inputs == [0]
