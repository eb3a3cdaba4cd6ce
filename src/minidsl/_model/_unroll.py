"""Unroll static loops into repeated statements."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from minidsl._errors import OperandTypeError, ShapeError
from minidsl._expr import Expr, Head, Symbol, format_expr, is_int_literal
from minidsl._ir import Binding, Conditional, DirectedEdge, DynamicLoop, StaticLoop, UndirectedEdge, range_args

from ._operands import substitute

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from minidsl._ir import Statement

logger = logging.getLogger(__name__)

DEFAULT_MAX_UNROLL = 10_000


@dataclass(slots=True)
class _Unroller:
    max_unroll: int
    produced: int = 0

    def count(self, stmt: Statement) -> None:
        """Charge one statement or loop iteration against the limit."""
        self.produced += 1
        if self.produced > self.max_unroll:
            msg = f"Unrolling produces more than {self.max_unroll} statements and iterations"
            raise ShapeError(msg, code="EUNROLL", statement_index=stmt.index, position=stmt.position)

    def statements(self, statements: Sequence[Statement], values: Mapping[str, int]) -> list[Statement]:
        result: list[Statement] = []
        for stmt in statements:
            result.extend(self.statement(stmt, values))
        return result

    def statement(self, stmt: Statement, values: Mapping[str, int]) -> list[Statement]:
        try:
            return self.rewrite(stmt, values)
        except OperandTypeError as e:
            if e.statement_index is not None:
                raise
            raise OperandTypeError(e.message, statement_index=stmt.index, position=stmt.position) from e

    def rewrite(self, stmt: Statement, values: Mapping[str, int]) -> list[Statement]:
        match stmt:
            case Binding():
                self.count(stmt)
                return [self.binding(stmt, values)]
            case Conditional():
                self.count(stmt)
                return [
                    replace(
                        stmt,
                        condition=substitute(stmt.condition, values),
                        then_body=tuple(self.statements(stmt.then_body, values)),
                        else_body=tuple(self.statements(stmt.else_body, values)),
                    ),
                ]
            case StaticLoop():
                return self.static_loop(stmt, values)
            case DynamicLoop():
                return self.dynamic_loop(stmt, values)
            case DirectedEdge() | UndirectedEdge():
                msg = "Edge statements are not allowed in a model block"
                raise ShapeError(msg, found=str(stmt), statement_index=stmt.index, position=stmt.position)

    def binding(self, stmt: Binding, values: Mapping[str, int]) -> Binding:
        if not values:
            return stmt
        return replace(
            stmt,
            target=substitute(stmt.target, values),
            args=tuple(substitute(a, values) for a in stmt.args),
        )

    def static_loop(self, stmt: StaticLoop, values: Mapping[str, int]) -> list[Statement]:
        result: list[Statement] = []
        for i in stmt.iterations():
            self.count(stmt)
            # The loop variable shadows any outer one of the same name
            result.extend(self.statements(stmt.body, {**values, stmt.var: i}))
        logger.debug(f"Unrolled `{stmt}` into {len(result)} statement(s)")
        return result

    def dynamic_loop(self, stmt: DynamicLoop, values: Mapping[str, int]) -> list[Statement]:
        bounds = tuple(substitute(b, values) for b in stmt.bounds)
        if all(is_int_literal(b) for b in bounds):
            # Bounds became literal through an enclosing static loop
            start, stop, step = range_args(bounds)
            if step == 0:
                msg = "range() step must not be zero"
                raise ShapeError(msg, statement_index=stmt.index, position=stmt.position)
            static = StaticLoop(
                var=stmt.var,
                start=start,
                stop=stop,
                step=step,
                body=stmt.body,
                index=stmt.index,
                position=stmt.position,
            )
            return self.static_loop(static, values)

        self.count(stmt)
        inner = {k: v for k, v in values.items() if k != stmt.var}
        body = self.statements(stmt.body, inner)
        parameters = frozenset(p for p in stmt.parameters if p not in values)
        return [replace(stmt, bounds=bounds, body=tuple(body), parameters=parameters)]


def _check_target(stmt: Binding, *, in_dynamic_loop: bool) -> None:
    match stmt.target:
        case Symbol():
            return
        case Expr(head=Head.INDEX, args=(_, index)) if is_int_literal(index):
            return
        case Expr(head=Head.INDEX, args=(_, index)) if in_dynamic_loop:
            return
        case _:
            msg = (
                f"Index of binding target `{format_expr(stmt.target)}` must be an integer known "
                "before the model runs (or a variable of an enclosing dynamic loop)"
            )
            raise OperandTypeError(msg, statement_index=stmt.index, position=stmt.position)


def _check_targets(statements: Sequence[Statement], *, in_dynamic_loop: bool = False) -> None:
    for stmt in statements:
        match stmt:
            case Binding():
                _check_target(stmt, in_dynamic_loop=in_dynamic_loop)
            case Conditional():
                _check_targets(stmt.then_body, in_dynamic_loop=in_dynamic_loop)
                _check_targets(stmt.else_body, in_dynamic_loop=in_dynamic_loop)
            case DynamicLoop():
                _check_targets(stmt.body, in_dynamic_loop=True)
            case _:
                pass


def unroll(statements: Sequence[Statement], *, max_unroll: int = DEFAULT_MAX_UNROLL) -> tuple[Statement, ...]:
    """Replace every static loop by one copy of its body per iteration.

    The loop variable is replaced by the iteration's literal and operator
    calls that become constant are folded, so ``z[i - 1]`` becomes ``z[0]``.
    Dynamic loops stay loops; static loops inside them are unrolled.

    Args:
        statements: Validated model statements.
        max_unroll: Upper bound on the statements and static loop iterations
            unrolling may produce.

    Returns:
        Statements without static loops.

    Raises:
        ShapeError: If unrolling exceeds ``max_unroll``.
        OperandTypeError: If constant folding fails, or a binding target outside
            a dynamic loop has an index that is not a constant integer.

    """
    result = tuple(_Unroller(max_unroll).statements(statements, {}))
    _check_targets(result)
    return result

