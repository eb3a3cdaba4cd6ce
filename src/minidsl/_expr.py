"""Expression tree nodes shared by every DSL.

A tree is made of `Expr` nodes (a head plus an ordered tuple of children),
`Symbol` identifiers, `SourcePos` annotations and literal leaves
(`int`, `float`, `bool`). Trees are immutable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Iterator


class Head(StrEnum):
    """Heads produced by the reader."""

    BLOCK = "block"
    ARROW = "arrow"
    DASH = "dash"
    BIND = "bind"
    CALL = "call"
    INDEX = "index"
    IF = "if"
    FOR = "for"


@dataclass(frozen=True, slots=True)
class Symbol:
    """An identifier in source syntax."""

    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True, slots=True)
class SourcePos:
    """Source position annotation. Carries no semantic content."""

    line: int
    column: int = 0

    def __str__(self) -> str:
        return f"line {self.line}, column {self.column}"


@dataclass(frozen=True, slots=True)
class Expr:
    """A tagged node: a head and its ordered children."""

    head: str
    args: tuple[Any, ...] = ()

    def __str__(self) -> str:
        return format_expr(self)


def block(*statements: Any) -> Expr:
    """Build a `block` expression from statements."""
    return Expr(Head.BLOCK, tuple(statements))


def is_literal(value: Any) -> bool:
    """Check whether a leaf is a numeric or boolean literal."""
    return isinstance(value, (int, float)) and not isinstance(value, Expr)


def is_int_literal(value: Any) -> bool:
    """Check whether a leaf is an integer literal (booleans excluded)."""
    return isinstance(value, int) and not isinstance(value, bool)


def iter_statements(tree: Expr) -> Iterator[tuple[SourcePos | None, Any]]:
    """Yield `(position, statement)` pairs of a block, skipping annotations.

    The position is the last `SourcePos` seen before the statement.
    """
    pos: SourcePos | None = None
    for child in tree.args:
        if isinstance(child, SourcePos):
            pos = child
            continue
        yield pos, child


_INFIX = frozenset({"+", "-", "*", "/", "**", "<", "<=", ">", ">=", "==", "!="})


def format_expr(value: Any) -> str:  # noqa: C901, PLR0911
    """Render an expression tree in the surface syntax it was read from."""
    match value:
        case Symbol(name):
            return name
        case SourcePos():
            return f"# {value}"
        case Expr(head=Head.BLOCK, args=args):
            return "; ".join(format_expr(a) for a in args if not isinstance(a, SourcePos))
        case Expr(head=Head.ARROW, args=(a, b)):
            return f"{format_expr(a)} >> {format_expr(b)}"
        case Expr(head=Head.DASH, args=(a, b)):
            return f"{format_expr(a)} - {format_expr(b)}"
        case Expr(head=Head.BIND, args=(target, rhs)):
            return f"{format_expr(target)}: {format_expr(rhs)}"
        case Expr(head=Head.CALL, args=(Symbol(op), a, b)) if op in _INFIX:
            return f"({format_expr(a)} {op} {format_expr(b)})"
        case Expr(head=Head.CALL, args=(Symbol("-"), a)):
            return f"-{format_expr(a)}"
        case Expr(head=Head.CALL, args=(callee, *rest)):
            return f"{format_expr(callee)}({', '.join(format_expr(a) for a in rest)})"
        case Expr(head=Head.INDEX, args=(base, index)):
            return f"{format_expr(base)}[{format_expr(index)}]"
        case Expr(head=Head.IF, args=(cond, *_)):
            return f"if {format_expr(cond)}: ..."
        case Expr(head=Head.FOR, args=(var, iterable, _)):
            return f"for {format_expr(var)} in {format_expr(iterable)}: ..."
        case Expr(head=head, args=args):
            return f"{head}({', '.join(format_expr(a) for a in args)})"
        case _:
            return repr(value)
