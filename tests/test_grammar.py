"""Tests for the closed grammar and statement classification."""

import pytest

from minidsl import (
    GRAPH_GRAMMAR,
    MODEL_GRAMMAR,
    Binding,
    Conditional,
    Dialect,
    DirectedEdge,
    DynamicLoop,
    Expr,
    Head,
    OperandTypeError,
    ShapeError,
    SourcePos,
    StatementKind,
    StaticLoop,
    Symbol,
    UndirectedEdge,
    read_source,
    validate_block,
)
from minidsl._expr import block
from minidsl._ir import classify_statement, grammar_for, iter_references, range_args


def graph(source: str) -> tuple:
    return validate_block(read_source(source, Dialect.GRAPH), Dialect.GRAPH)


def model(source: str) -> tuple:
    return validate_block(read_source(source, Dialect.MODEL), Dialect.MODEL)


class TestGrammarTables:
    def test_every_rule_has_a_distinct_kind_per_dialect(self) -> None:
        for rules in (GRAPH_GRAMMAR, MODEL_GRAMMAR):
            kinds = [rule.kind for rule in rules]
            assert len(kinds) == len(set(kinds))

    def test_grammars_cover_every_statement_kind(self) -> None:
        kinds = {rule.kind for rule in (*GRAPH_GRAMMAR, *MODEL_GRAMMAR)}
        assert kinds == set(StatementKind)

    def test_grammar_for(self) -> None:
        assert grammar_for("graph") is GRAPH_GRAMMAR
        assert grammar_for(Dialect.MODEL) is MODEL_GRAMMAR

    def test_statement_kinds_have_descriptions(self) -> None:
        for kind in StatementKind:
            assert kind.__doc__
        assert StatementKind.BINDING == "binding"


class TestValidateGraphBlock:
    def test_directed_edges(self) -> None:
        statements = graph("1 >> 2; 2 >> 3")
        assert statements == (
            DirectedEdge(source=1, target=2, index=0, position=SourcePos(1, 0)),
            DirectedEdge(source=2, target=3, index=1, position=SourcePos(1, 8)),
        )

    def test_undirected_edge(self) -> None:
        (stmt,) = graph("4 - 5")
        assert isinstance(stmt, UndirectedEdge)
        assert stmt.kind is StatementKind.EDGE_UNDIRECTED

    def test_positions_are_optional(self) -> None:
        statements = validate_block(block(Expr(Head.ARROW, (1, 2))), Dialect.GRAPH)
        assert statements == (DirectedEdge(source=1, target=2),)

    def test_top_level_must_be_a_block(self) -> None:
        with pytest.raises(ShapeError, match="must be a block"):
            validate_block(Expr(Head.ARROW, (1, 2)), Dialect.GRAPH)

    def test_unrecognized_statement_reports_index_and_position(self) -> None:
        with pytest.raises(ShapeError) as exc_info:
            graph("1 >> 2\n2 * 3\n")
        error = exc_info.value
        assert error.statement_index == 1
        assert error.position == SourcePos(2, 0)
        assert error.found == "(2 * 3)"
        assert any("1 >> 2" in expected for expected in error.expected)
        assert error.code == "ESHAPE"

    def test_non_integer_endpoint(self) -> None:
        with pytest.raises(OperandTypeError, match="integer literal") as exc_info:
            graph("1 >> 2.5")
        assert exc_info.value.statement_index == 0

    def test_name_endpoint(self) -> None:
        with pytest.raises(OperandTypeError):
            graph("a >> 2")

    def test_bool_endpoint(self) -> None:
        with pytest.raises(OperandTypeError):
            graph("True >> 2")

    def test_model_statement_in_graph_block(self) -> None:
        with pytest.raises(ShapeError):
            graph("x: normal(0, 1)")

    def test_empty_block(self) -> None:
        assert graph("") == ()


class TestValidateModelBlock:
    def test_binding(self) -> None:
        (stmt,) = model("x: normal(0, 1)")
        assert isinstance(stmt, Binding)
        assert stmt.target == Symbol("x")
        assert stmt.distribution == "normal"
        assert stmt.args == (0, 1)
        assert stmt.name == "x"
        assert not stmt.is_indexed

    def test_indexed_binding(self) -> None:
        (stmt,) = model("z[2]: bernoulli(0.5)")
        assert stmt.name == "z"
        assert stmt.is_indexed

    def test_binding_without_arguments(self) -> None:
        (stmt,) = model("u: standard()")
        assert stmt.args == ()

    def test_conditional(self) -> None:
        (stmt,) = model("if x > 0:\n    y: normal(1, 1)\n")
        assert isinstance(stmt, Conditional)
        assert len(stmt.then_body) == 1
        assert stmt.else_body == ()

    def test_static_loop(self) -> None:
        (stmt,) = model("for i in range(1, 7, 2):\n    z[i]: normal(0, 1)\n")
        assert isinstance(stmt, StaticLoop)
        assert list(stmt.iterations()) == [1, 3, 5]

    def test_dynamic_loop(self) -> None:
        (stmt,) = model("for i in range(n + m):\n    z[i]: normal(0, 1)\n")
        assert isinstance(stmt, DynamicLoop)
        assert stmt.parameters == frozenset({"n", "m"})
        assert stmt.kind is StatementKind.DYNAMIC_LOOP

    def test_rhs_must_be_a_distribution_call(self) -> None:
        with pytest.raises(ShapeError, match="distribution call"):
            model("x: 3")

    def test_rhs_operator_is_not_a_distribution(self) -> None:
        with pytest.raises(ShapeError, match="distribution call"):
            model("x: a + b")

    def test_attribute_target(self) -> None:
        with pytest.raises(ShapeError, match="Unsupported expression"):
            model("x.y: normal(0, 1)")

    def test_nested_index_as_target(self) -> None:
        with pytest.raises(OperandTypeError, match="Binding target"):
            model("z[0][1]: normal(0, 1)")

    def test_nested_distribution_call_as_operand(self) -> None:
        with pytest.raises(OperandTypeError, match="Unsupported operand"):
            model("x: normal(normal(0, 1), 1)")

    def test_loop_over_non_range(self) -> None:
        with pytest.raises(ShapeError, match="range"):
            model("for i in items(3):\n    z[i]: normal(0, 1)\n")

    def test_zero_step(self) -> None:
        with pytest.raises(ShapeError, match="step"):
            model("for i in range(0, 3, 0):\n    z[i]: normal(0, 1)\n")

    def test_bare_call_in_model_block(self) -> None:
        with pytest.raises(ShapeError, match="Unrecognized model statement"):
            model("normal(0, 1)")

    def test_edge_syntax_in_model_block(self) -> None:
        with pytest.raises(ShapeError, match="Unsupported expression"):
            model("1 >> 2")

    def test_bad_statement_inside_loop_aborts_block(self) -> None:
        with pytest.raises(ShapeError):
            model("a: normal(0, 1)\nfor i in range(2):\n    i\n")


class TestHelpers:
    def test_classify_statement(self) -> None:
        stmt = classify_statement(Expr(Head.DASH, (2, 1)), Dialect.GRAPH, index=4)
        assert stmt == UndirectedEdge(source=2, target=1, index=4)

    def test_iter_references(self) -> None:
        expr = read_source("y: normal(z[i - 1] * k, 1)", Dialect.MODEL).args[1].args[1].args[1]
        refs = list(iter_references(expr))
        assert refs[0] == Expr(Head.INDEX, (Symbol("z"), Expr(Head.CALL, (Symbol("-"), Symbol("i"), 1))))
        assert refs[1:] == [Symbol("i"), Symbol("k")]

    @pytest.mark.parametrize(
        ("bounds", "expected"),
        [((3,), (0, 3, 1)), ((1, 4), (1, 4, 1)), ((5, 0, -1), (5, 0, -1))],
    )
    def test_range_args(self, bounds: tuple[int, ...], expected: tuple[int, int, int]) -> None:
        assert range_args(bounds) == expected
