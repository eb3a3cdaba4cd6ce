"""Operand expressions: substitution, constant folding and evaluation."""

from __future__ import annotations

import operator
from typing import TYPE_CHECKING, Any

from minidsl._errors import OperandTypeError, UnboundReferenceError
from minidsl._expr import Expr, Head, Symbol, format_expr, is_literal

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

BINARY_OPERATORS: dict[str, Callable[[Any, Any], Any]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "**": operator.pow,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
    "==": operator.eq,
    "!=": operator.ne,
}


def substitute(expr: Any, values: Mapping[str, Any]) -> Any:
    """Replace names by literal values, then fold what became constant."""
    match expr:
        case Symbol(name) if name in values:
            return values[name]
        case Expr(head=Head.INDEX, args=(base, index)):
            return Expr(Head.INDEX, (base, substitute(index, values)))
        case Expr(head=Head.CALL, args=(op, *operands)):
            return fold(Expr(Head.CALL, (op, *(substitute(o, values) for o in operands))))
        case _:
            return expr


def fold(expr: Any) -> Any:
    """Evaluate an operator call whose operands are all literals."""
    match expr:
        case Expr(head=Head.CALL, args=(Symbol("-"), a)) if is_literal(a):
            return -a
        case Expr(head=Head.CALL, args=(Symbol(op), a, b)) if op in BINARY_OPERATORS and is_literal(a) and is_literal(b):
            return apply_operator(op, a, b, expr)
        case _:
            return expr


def apply_operator(op: str, a: Any, b: Any, expr: Any) -> Any:
    """Apply a binary operator, reporting arithmetic failures as `OperandTypeError`."""
    try:
        return BINARY_OPERATORS[op](a, b)
    except (ArithmeticError, TypeError) as e:
        msg = f"Cannot evaluate `{format_expr(expr)}`: {e}"
        raise OperandTypeError(msg) from e


def as_index(value: Any, where: Any) -> int:
    """Convert an evaluated index to an int, accepting integral floats."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        msg = f"Index of `{format_expr(where)}` must be an integer, got {value!r}"
        raise OperandTypeError(msg)
    if isinstance(value, float):
        if not value.is_integer():
            msg = f"Index of `{format_expr(where)}` must be an integer, got {value!r}"
            raise OperandTypeError(msg)
        return int(value)
    return value


def element_key(name: str, index: int) -> str:
    """Key of a collection element in a trace (``z[0]``)."""
    return f"{name}[{index}]"


def static_key(target: Any) -> str | None:
    """Get the trace key of a target or reference whose index is constant.

    Returns:
        ``x`` for a name, ``z[0]`` for a constant index, None if the index
        still depends on a variable.

    """
    match target:
        case Symbol(name):
            return name
        case Expr(head=Head.INDEX, args=(Symbol(name), index)) if is_literal(index):
            return element_key(name, as_index(index, target))
        case _:
            return None


def evaluate(expr: Any, trace: Mapping[str, Any], scope: Mapping[str, Any]) -> Any:
    """Evaluate an operand against sampled values and local names.

    Args:
        expr: The operand expression.
        trace: Values sampled so far, by key.
        scope: Loop variables and run-time bounds; they shadow trace names.

    Raises:
        UnboundReferenceError: If a referenced value was never sampled.

    """
    match expr:
        case bool() | int() | float():
            return expr
        case Symbol(name):
            if name in scope:
                return scope[name]
            if name in trace:
                return trace[name]
            raise UnboundReferenceError(name)
        case Expr(head=Head.INDEX, args=(Symbol(name), index)):
            key = element_key(name, as_index(evaluate(index, trace, scope), expr))
            if key not in trace:
                raise UnboundReferenceError(key)
            return trace[key]
        case Expr(head=Head.CALL, args=(Symbol("-"), a)):
            return -evaluate(a, trace, scope)
        case Expr(head=Head.CALL, args=(Symbol(op), a, b)) if op in BINARY_OPERATORS:
            return apply_operator(op, evaluate(a, trace, scope), evaluate(b, trace, scope), expr)
        case _:
            msg = f"Cannot evaluate `{format_expr(expr)}`"
            raise OperandTypeError(msg)


def target_key(target: Any, trace: Mapping[str, Any], scope: Mapping[str, Any]) -> str:
    """Evaluate the trace key a binding target writes to."""
    match target:
        case Symbol(name):
            return name
        case Expr(head=Head.INDEX, args=(Symbol(name), index)):
            return element_key(name, as_index(evaluate(index, trace, scope), target))
        case _:
            msg = f"Invalid binding target `{format_expr(target)}`"
            raise OperandTypeError(msg)
