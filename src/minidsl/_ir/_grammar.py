"""The closed grammar accepted by each dialect.

The shape rules below are the single definition of what a block may contain.
`validate_block` classifies every statement of a block into one of the
`Statement` variants, or fails on the first statement that matches no rule.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from minidsl._errors import OperandTypeError, ShapeError
from minidsl._expr import Expr, Head, SourcePos, Symbol, format_expr, is_int_literal, iter_statements
from minidsl._reader import Dialect

from ._statements import (
    Binding,
    Conditional,
    DirectedEdge,
    DynamicLoop,
    Statement,
    StatementKind,
    StaticLoop,
    UndirectedEdge,
)

if TYPE_CHECKING:
    from collections.abc import Iterator, Sequence

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ShapeRule:
    """One accepted statement shape.

    Attributes:
        kind: The statement variant the shape is classified as.
        shape: The node shape, written as ``head(child, ...)``.
        example: The same shape in surface syntax.

    """

    kind: StatementKind
    shape: str
    example: str


GRAPH_GRAMMAR: tuple[ShapeRule, ...] = (
    ShapeRule(StatementKind.EDGE_DIRECTED, "arrow(int, int)", "1 >> 2"),
    ShapeRule(StatementKind.EDGE_UNDIRECTED, "dash(int, int)", "1 - 2"),
)

MODEL_GRAMMAR: tuple[ShapeRule, ...] = (
    ShapeRule(StatementKind.BINDING, "bind(name | index(name, operand), call(name, operand...))", "x: normal(0, 1)"),
    ShapeRule(StatementKind.CONDITIONAL, "if(operand, block, block?)", "if x > 0: ..."),
    ShapeRule(StatementKind.STATIC_LOOP, "for(name, call(range, int...), block)", "for i in range(3): ..."),
    ShapeRule(StatementKind.DYNAMIC_LOOP, "for(name, call(range, operand...), block)", "for i in range(n): ..."),
)

OPERAND_SHAPE = "operand := int | float | bool | name | index(name, operand) | call(op, operand...)"

ARITHMETIC_OPERATORS = frozenset({"+", "-", "*", "/", "**"})
COMPARISON_OPERATORS = frozenset({"<", "<=", ">", ">=", "==", "!="})
OPERATORS = ARITHMETIC_OPERATORS | COMPARISON_OPERATORS


def grammar_for(dialect: Dialect | str) -> tuple[ShapeRule, ...]:
    """Get the shape rules of a dialect."""
    match Dialect(dialect):
        case Dialect.GRAPH:
            return GRAPH_GRAMMAR
        case Dialect.MODEL:
            return MODEL_GRAMMAR


def _expected(dialect: Dialect) -> list[str]:
    return [f"`{rule.example}` ({rule.shape})" for rule in grammar_for(dialect)]


def iter_references(expr: Any) -> Iterator[Symbol | Expr]:
    """Yield every name and ``index`` reference inside an operand.

    Indexed references are yielded whole (``z[i]``) and their index
    expression is searched as well.
    """
    match expr:
        case Symbol():
            yield expr
        case Expr(head=Head.INDEX, args=(_, index)):
            yield expr
            yield from iter_references(index)
        case Expr(head=Head.CALL, args=(_, *operands)):
            for operand in operands:
                yield from iter_references(operand)
        case _:
            return


@dataclass(slots=True)
class _Validator:
    dialect: Dialect

    def block(self, tree: Any, *, context: str = "block") -> tuple[Statement, ...]:
        match tree:
            case Expr(head=Head.BLOCK):
                pass
            case _:
                msg = f"Top-level node of a {context} must be a block"
                raise ShapeError(msg, expected=["block(...)"], found=format_expr(tree))

        statements: list[Statement] = []
        for index, (pos, stmt) in enumerate(iter_statements(tree)):
            statements.append(self.statement(stmt, index, pos))
        return tuple(statements)

    def statement(self, stmt: Any, index: int, pos: SourcePos | None) -> Statement:
        match self.dialect:
            case Dialect.GRAPH:
                return self.edge(stmt, index, pos)
            case Dialect.MODEL:
                return self.model_statement(stmt, index, pos)

    def edge(self, stmt: Any, index: int, pos: SourcePos | None) -> Statement:
        match stmt:
            case Expr(head=Head.ARROW | Head.DASH as head, args=(a, b)):
                for operand in (a, b):
                    if not is_int_literal(operand):
                        msg = f"Edge endpoint must be an integer literal, found `{format_expr(operand)}`"
                        raise OperandTypeError(msg, statement_index=index, position=pos)
                if head == Head.ARROW:
                    return DirectedEdge(source=a, target=b, index=index, position=pos)
                return UndirectedEdge(source=a, target=b, index=index, position=pos)
            case _:
                msg = "Unrecognized graph statement"
                raise ShapeError(
                    msg,
                    expected=_expected(self.dialect),
                    found=format_expr(stmt),
                    statement_index=index,
                    position=pos,
                )

    def model_statement(self, stmt: Any, index: int, pos: SourcePos | None) -> Statement:
        match stmt:
            case Expr(head=Head.BIND, args=(target, rhs)):
                return self.binding(target, rhs, index, pos)
            case Expr(head=Head.IF, args=(condition, then_block, else_block)):
                self.operand(condition, index, pos)
                return Conditional(
                    condition=condition,
                    then_body=self.block(then_block, context="branch"),
                    else_body=self.block(else_block, context="branch") if else_block is not None else (),
                    index=index,
                    position=pos,
                )
            case Expr(head=Head.FOR, args=(var, iterable, body)):
                return self.loop(var, iterable, body, index, pos)
            case _:
                msg = "Unrecognized model statement"
                raise ShapeError(
                    msg,
                    expected=_expected(self.dialect),
                    found=format_expr(stmt),
                    statement_index=index,
                    position=pos,
                )

    def binding(self, target: Any, rhs: Any, index: int, pos: SourcePos | None) -> Binding:
        match target:
            case Symbol():
                pass
            case Expr(head=Head.INDEX, args=(Symbol(), subscript)):
                self.operand(subscript, index, pos)
            case _:
                msg = f"Binding target must be a name or an indexed name, found `{format_expr(target)}`"
                raise OperandTypeError(msg, statement_index=index, position=pos)

        match rhs:
            case Expr(head=Head.CALL, args=(Symbol(name), *args)) if name not in OPERATORS:
                for arg in args:
                    self.operand(arg, index, pos)
                return Binding(target=target, distribution=name, args=tuple(args), index=index, position=pos)
            case _:
                msg = f"Right-hand side of `{format_expr(target)}` must be a distribution call"
                raise ShapeError(
                    msg,
                    expected=["distribution(operand, ...)"],
                    found=format_expr(rhs),
                    statement_index=index,
                    position=pos,
                )

    def loop(self, var: Any, iterable: Any, body: Any, index: int, pos: SourcePos | None) -> Statement:
        if not isinstance(var, Symbol):
            msg = f"Loop variable must be a name, found `{format_expr(var)}`"
            raise OperandTypeError(msg, statement_index=index, position=pos)

        match iterable:
            case Expr(head=Head.CALL, args=(Symbol("range"), *bounds)) if 1 <= len(bounds) <= 3:
                pass
            case _:
                msg = "Loops must iterate over range(...)"
                raise ShapeError(
                    msg,
                    expected=["range(stop)", "range(start, stop[, step])"],
                    found=format_expr(iterable),
                    statement_index=index,
                    position=pos,
                )

        statements = self.block(body, context="loop body")

        if all(is_int_literal(b) for b in bounds):
            start, stop, step = range_args(bounds)
            if step == 0:
                msg = "range() step must not be zero"
                raise ShapeError(msg, statement_index=index, position=pos)
            return StaticLoop(
                var=var.name,
                start=start,
                stop=stop,
                step=step,
                body=statements,
                index=index,
                position=pos,
            )

        parameters: set[str] = set()
        for bound in bounds:
            self.operand(bound, index, pos)
            parameters.update(ref.name for ref in iter_references(bound) if isinstance(ref, Symbol))
        return DynamicLoop(
            var=var.name,
            bounds=tuple(bounds),
            body=statements,
            index=index,
            position=pos,
            parameters=frozenset(parameters),
        )

    def operand(self, expr: Any, index: int, pos: SourcePos | None) -> None:
        match expr:
            case bool() | int() | float():
                return
            case Symbol():
                return
            case Expr(head=Head.INDEX, args=(Symbol(), subscript)):
                self.operand(subscript, index, pos)
            case Expr(head=Head.CALL, args=(Symbol(op), *operands)) if op in OPERATORS and 1 <= len(operands) <= 2:
                if len(operands) == 1 and op != "-":
                    msg = f"Operator `{op}` needs two operands"
                    raise OperandTypeError(msg, statement_index=index, position=pos)
                for operand in operands:
                    self.operand(operand, index, pos)
            case _:
                msg = f"Unsupported operand `{format_expr(expr)}`; {OPERAND_SHAPE}"
                raise OperandTypeError(msg, statement_index=index, position=pos)


def range_args(bounds: Sequence[int]) -> tuple[int, int, int]:
    """Normalize literal `range` arguments to `(start, stop, step)`."""
    match bounds:
        case [stop]:
            return 0, stop, 1
        case [start, stop]:
            return start, stop, 1
        case [start, stop, step]:
            return start, stop, step
        case _:
            msg = f"Invalid range arguments: {bounds}"
            raise ValueError(msg)


def validate_block(tree: Expr, dialect: Dialect | str) -> tuple[Statement, ...]:
    """Validate a block against a dialect's grammar.

    Annotation nodes (`SourcePos`) are skipped. Validation is all-or-nothing:
    the first statement that matches no rule aborts the whole block.

    Args:
        tree: The expression tree of the block.
        dialect: The grammar to validate against.

    Returns:
        The classified statements, in source order.

    Raises:
        ShapeError: If the tree is not a block or a statement has an unknown shape.
        OperandTypeError: If an operand has the wrong kind.

    """
    dialect = Dialect(dialect)
    statements = _Validator(dialect).block(tree)
    logger.debug(f"Validated {len(statements)} {dialect} statement(s)")
    return statements


def classify_statement(
    stmt: Any,
    dialect: Dialect | str,
    *,
    index: int = 0,
    position: SourcePos | None = None,
) -> Statement:
    """Classify a single statement against a dialect's grammar.

    Raises:
        ShapeError: If the statement has an unknown shape.
        OperandTypeError: If an operand has the wrong kind.

    """
    return _Validator(Dialect(dialect)).statement(stmt, index, position)
