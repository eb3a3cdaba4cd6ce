"""Tests for DependencyGraph and graph algorithms."""

import pytest

from minidsl._graph import CycleError, DependencyGraph, find_cycle, topological_sort


class TestTopologicalSort:
    """Tests for the topological_sort algorithm."""

    def test_empty_graph(self) -> None:
        result = topological_sort({})
        assert result == []

    def test_single_node(self) -> None:
        result = topological_sort({"a": []})
        assert result == ["a"]

    def test_linear_chain(self) -> None:
        # a -> b -> c (c depends on b, b depends on a)
        result = topological_sort({"a": ["b"], "b": ["c"], "c": []})
        assert result == ["a", "b", "c"]

    def test_diamond_dependency(self) -> None:
        # a -> b, a -> c, b -> d, c -> d
        result = topological_sort({"a": ["b", "c"], "b": ["d"], "c": ["d"], "d": []})
        assert result == ["a", "b", "c", "d"]

    def test_ready_nodes_keep_first_appearance_order(self) -> None:
        result = topological_sort({"x": [], "y": [], "z": []})
        assert result == ["x", "y", "z"]

    def test_dependency_overrides_appearance_order(self) -> None:
        # y appears first but depends on x
        result = topological_sort({"y": [], "x": ["y"]})
        assert result == ["x", "y"]

    def test_dependent_does_not_jump_ahead_of_earlier_node(self) -> None:
        # c is listed as a successor of a before b appears as a key
        result = topological_sort({"a": ["c"], "b": [], "c": []})
        assert result == ["a", "b", "c"]

    def test_successor_only_nodes_come_after_keys(self) -> None:
        result = topological_sort({"a": ["z"], "b": []})
        assert result == ["a", "b", "z"]

    def test_key_breaks_ties(self) -> None:
        result = topological_sort({"a": [], "b": [], "c": []}, key=lambda n: -ord(n))
        assert result == ["c", "b", "a"]

    def test_cycle_detection(self) -> None:
        with pytest.raises(ValueError, match="Cycle"):
            topological_sort({"a": ["b"], "b": ["a"]})

    def test_cycle_error_lists_remaining_nodes(self) -> None:
        with pytest.raises(CycleError) as exc_info:
            topological_sort({"root": ["a"], "a": ["b"], "b": ["a"]})
        assert exc_info.value.remaining == ("a", "b")

    def test_self_loop_detection(self) -> None:
        with pytest.raises(ValueError, match="Cycle"):
            topological_sort({"a": ["a"]})

    def test_longer_cycle(self) -> None:
        with pytest.raises(ValueError, match="Cycle"):
            topological_sort({"a": ["b"], "b": ["c"], "c": ["a"]})

    def test_works_with_integers(self) -> None:
        result = topological_sort({1: [2], 2: [3], 3: []})
        assert result == [1, 2, 3]


class TestFindCycle:
    def test_acyclic(self) -> None:
        assert find_cycle({"a": ["b"], "b": []}) is None

    def test_two_node_cycle(self) -> None:
        assert find_cycle({"a": ["b"], "b": ["a"]}) == ["a", "b"]

    def test_cycle_behind_a_tail(self) -> None:
        assert find_cycle({0: [1], 1: [2], 2: [3], 3: [1]}) == [1, 2, 3]

    def test_self_loop(self) -> None:
        assert find_cycle({"a": ["a"]}) == ["a"]


class TestDependencyGraphConstruction:
    """Tests for DependencyGraph construction."""

    def test_empty_graph(self) -> None:
        graph = DependencyGraph.from_edges([])
        assert graph.nodes == frozenset()
        assert len(graph) == 0

    def test_single_edge(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b")])
        assert graph.nodes == frozenset({"a", "b"})
        assert len(graph) == 2

    def test_isolated_nodes(self) -> None:
        graph = DependencyGraph.from_edges([(1, 2)], nodes=[3, 1])
        assert graph.roots() == (3, 1)
        assert graph.leaves() == (3, 2)
        assert graph.predecessors(3) == frozenset()

    def test_contains(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b")])
        assert "a" in graph
        assert "b" in graph
        assert "c" not in graph


class TestDependencyGraphQueries:
    """Tests for DependencyGraph query methods."""

    def test_predecessors_multiple(self) -> None:
        graph = DependencyGraph.from_edges([("a", "c"), ("b", "c")])
        assert graph.predecessors("c") == frozenset({"a", "b"})

    def test_predecessors_nonexistent_node(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b")])
        assert graph.predecessors("nonexistent") == frozenset()

    def test_successors_multiple(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b"), ("a", "c")])
        assert graph.successors("a") == frozenset({"b", "c"})

    def test_roots_in_appearance_order(self) -> None:
        graph = DependencyGraph.from_edges([("b", "c"), ("a", "c")])
        assert graph.roots() == ("b", "a")

    def test_leaves_in_appearance_order(self) -> None:
        graph = DependencyGraph.from_edges([("a", "c"), ("a", "b")])
        assert graph.leaves() == ("c", "b")

    def test_roots_empty_graph(self) -> None:
        graph = DependencyGraph.from_edges([])
        assert graph.roots() == ()

    def test_topological_order(self) -> None:
        graph = DependencyGraph.from_edges([("b", "a")], nodes=["a", "b", "c"])
        assert graph.topological_order() == ["b", "a", "c"]

    def test_topological_order_with_cycle(self) -> None:
        graph = DependencyGraph.from_edges([("a", "b"), ("b", "a")])
        with pytest.raises(CycleError):
            graph.topological_order()
        assert graph.find_cycle() == ["a", "b"]
