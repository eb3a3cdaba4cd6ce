"""Tests for extracting and lowering graph-literal blocks."""

from dataclasses import dataclass, field

import pytest

from minidsl import (
    Dialect,
    Expr,
    GraphRecipe,
    Head,
    OperandTypeError,
    ShapeError,
    build_graph,
    extract_edge,
    extract_edges,
    lower_edges,
    lower_graph,
    read_source,
)
from minidsl._expr import block
from minidsl._graph_literal import to_dependency_graph


@dataclass
class FakeGraph:
    directed: bool
    node_count: int
    edges: list[tuple[int, int]] = field(default_factory=list)


class RecordingBackend:
    """Records every call a recipe makes."""

    def __init__(self) -> None:
        self.calls: list[tuple] = []

    def new_directed_graph(self, node_count: int) -> FakeGraph:
        self.calls.append(("new_directed_graph", node_count))
        return FakeGraph(directed=True, node_count=node_count)

    def new_undirected_graph(self, node_count: int) -> FakeGraph:
        self.calls.append(("new_undirected_graph", node_count))
        return FakeGraph(directed=False, node_count=node_count)

    def add_edge(self, graph: FakeGraph, source: int, target: int) -> None:
        self.calls.append(("add_edge", source, target))
        graph.edges.append((source, target))


class TestExtractEdge:
    def test_order_is_preserved(self) -> None:
        assert extract_edge(Expr(Head.ARROW, (1, 2))) == (1, 2)
        assert extract_edge(Expr(Head.ARROW, (2, 1))) == (2, 1)

    def test_undirected_edge_is_rejected(self) -> None:
        with pytest.raises(ShapeError, match="directed edge"):
            extract_edge(Expr(Head.DASH, (1, 2)))

    def test_wrong_arity(self) -> None:
        with pytest.raises(ShapeError):
            extract_edge(Expr(Head.ARROW, (1, 2, 3)))

    def test_non_integer_operand(self) -> None:
        with pytest.raises(OperandTypeError):
            extract_edge(Expr(Head.ARROW, (1, 2.0)))


class TestExtractEdges:
    def test_edges_and_nodes_in_one_pass(self) -> None:
        extracted = extract_edges(read_source("1 >> 2; 2 >> 3", Dialect.GRAPH))
        assert extracted.edges == ((1, 2), (2, 3))
        assert set(extracted.nodes) == {1, 2, 3}
        assert extracted.directed

    def test_node_set_keeps_first_appearance_order(self) -> None:
        extracted = extract_edges(read_source("5 >> 1; 3 >> 5; 1 >> 9", Dialect.GRAPH))
        assert extracted.nodes == (5, 1, 3, 9)

    def test_every_endpoint_appears_once(self) -> None:
        extracted = extract_edges(read_source("1 >> 1; 1 >> 2; 2 >> 1", Dialect.GRAPH))
        assert extracted.nodes == (1, 2)

    def test_undirected_edges_are_normalized(self) -> None:
        extracted = extract_edges(read_source("3 - 1; 1 - 2", Dialect.GRAPH))
        assert extracted.edges == ((1, 3), (1, 2))
        assert extracted.nodes == (1, 3, 2)
        assert not extracted.directed

    def test_mixed_directions_fail(self) -> None:
        with pytest.raises(ShapeError, match="mixes") as exc_info:
            extract_edges(read_source("1 >> 2; 2 - 3", Dialect.GRAPH))
        assert exc_info.value.statement_index == 1

    def test_forced_direction_must_match(self) -> None:
        with pytest.raises(ShapeError):
            extract_edges(read_source("1 >> 2", Dialect.GRAPH), directed=False)

    def test_empty_block(self) -> None:
        extracted = extract_edges(block())
        assert extracted.edges == ()
        assert extracted.nodes == ()
        assert extracted.directed

    def test_forced_direction_on_empty_block(self) -> None:
        assert not extract_edges(block(), directed=False).directed

    def test_non_edge_statement_gives_no_partial_output(self) -> None:
        tree = read_source("1 >> 2; 2 >> 3; 3 * 4; 4 >> 5", Dialect.GRAPH)
        with pytest.raises(ShapeError) as exc_info:
            extract_edges(tree)
        assert exc_info.value.statement_index == 2


class TestLowerEdges:
    def test_node_count_is_number_of_distinct_ids(self) -> None:
        recipe = lower_graph("10 >> 20; 20 >> 30; 30 >> 10; 10 >> 20")
        assert recipe.node_count == 3
        assert len(recipe.edges) == 4

    def test_relabel_is_dense_in_first_appearance_order(self) -> None:
        recipe = lower_graph("10 >> 20; 20 >> 30")
        assert recipe.edges == ((0, 1), (1, 2))
        assert recipe.labels == (10, 20, 30)
        assert recipe.labeled_edges() == ((10, 20), (20, 30))

    def test_raw_ids(self) -> None:
        recipe = lower_graph("1 >> 2; 2 >> 3", relabel=False)
        assert recipe.edges == ((1, 2), (2, 3))
        assert recipe.labels == (1, 2, 3)
        assert recipe.node_count == 3

    def test_duplicates_and_self_loops_pass_through(self) -> None:
        recipe = lower_graph("1 >> 1; 1 >> 2; 1 >> 2", relabel=False)
        assert recipe.edges == ((1, 1), (1, 2), (1, 2))

    def test_dedupe_keeps_first_occurrence(self) -> None:
        recipe = lower_graph("1 >> 2; 2 >> 3; 1 >> 2", relabel=False, dedupe=True)
        assert recipe.edges == ((1, 2), (2, 3))

    def test_lowering_is_idempotent(self) -> None:
        extracted = extract_edges(read_source("4 >> 2; 2 >> 4; 7 >> 2", Dialect.GRAPH))
        assert lower_edges(extracted) == lower_edges(extracted)
        assert lower_graph("4 >> 2; 2 >> 4") == lower_graph("4 >> 2; 2 >> 4")

    def test_accepts_a_tree(self) -> None:
        tree = read_source("1 >> 2", Dialect.GRAPH)
        assert lower_graph(tree) == lower_graph("1 >> 2")

    def test_undirected_recipe(self) -> None:
        recipe = lower_graph("2 - 1")
        assert not recipe.directed
        assert recipe.labels == (1, 2)
        assert recipe.edges == ((0, 1),)


class DirectedOnlyBackend(RecordingBackend):
    """Has only the two operations every backend must expose."""

    new_undirected_graph = None


class TestBuildGraph:
    def test_directed_calls_in_order(self) -> None:
        backend = RecordingBackend()
        graph = build_graph(lower_graph("1 >> 2; 2 >> 3"), backend)
        assert backend.calls == [
            ("new_directed_graph", 3),
            ("add_edge", 0, 1),
            ("add_edge", 1, 2),
        ]
        assert graph.edges == [(0, 1), (1, 2)]

    def test_undirected_uses_undirected_constructor(self) -> None:
        backend = RecordingBackend()
        graph = build_graph(lower_graph("1 - 2"), backend)
        assert backend.calls[0] == ("new_undirected_graph", 2)
        assert not graph.directed

    def test_undirected_recipe_without_native_support(self) -> None:
        backend = DirectedOnlyBackend()
        graph = build_graph(lower_graph("1 - 2; 2 - 2"), backend)
        assert backend.calls == [
            ("new_directed_graph", 2),
            ("add_edge", 0, 1),
            ("add_edge", 1, 0),
            ("add_edge", 1, 1),
        ]
        assert graph.directed

    def test_empty_recipe(self) -> None:
        backend = RecordingBackend()
        build_graph(GraphRecipe(node_count=0, edges=()), backend)
        assert backend.calls == [("new_directed_graph", 0)]


class TestDependencyView:
    def test_roots_and_leaves_use_original_ids(self) -> None:
        graph = to_dependency_graph(lower_graph("1 >> 2; 2 >> 3; 1 >> 4"))
        assert graph.roots() == (1,)
        assert graph.leaves() == (3, 4)
        assert graph.topological_order() == [1, 2, 3, 4]
