"""Read Python-syntax source into expression trees.

The reader is the only place that knows about the standard `ast` module.
Everything downstream works on `Expr` trees, so the concrete syntax could be
swapped without touching validation or lowering.

Syntax of both dialects:

- graph:  ``1 >> 2`` (directed edge), ``1 - 2`` (undirected edge)
- model:  ``x: normal(0, 1)`` (binding), ``if``/``else``, ``for i in range(...)``
"""

from __future__ import annotations

import ast
import inspect
import logging
import textwrap
from enum import StrEnum
from typing import TYPE_CHECKING, Any

from ._errors import ReadError, ShapeError
from ._expr import Expr, Head, SourcePos, Symbol

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

logger = logging.getLogger(__name__)


class Dialect(StrEnum):
    """Which DSL a source block is written in."""

    GRAPH = "graph"
    MODEL = "model"


_ARITHMETIC: dict[type[ast.operator], str] = {
    ast.Add: "+",
    ast.Sub: "-",
    ast.Mult: "*",
    ast.Div: "/",
    ast.Pow: "**",
}

_COMPARISON: dict[type[ast.cmpop], str] = {
    ast.Lt: "<",
    ast.LtE: "<=",
    ast.Gt: ">",
    ast.GtE: ">=",
    ast.Eq: "==",
    ast.NotEq: "!=",
}


def _pos(node: ast.AST) -> SourcePos:
    return SourcePos(line=getattr(node, "lineno", 0), column=getattr(node, "col_offset", 0))


class _Reader:
    """Converts `ast` nodes into `Expr` trees for one dialect."""

    def __init__(self, dialect: Dialect, line_offset: int = 0) -> None:
        self.dialect = dialect
        self.line_offset = line_offset

    def position(self, node: ast.AST) -> SourcePos:
        pos = _pos(node)
        return SourcePos(line=pos.line + self.line_offset, column=pos.column)

    def block(self, body: list[ast.stmt]) -> Expr:
        children: list[Any] = []
        for stmt in body:
            if isinstance(stmt, ast.Pass):
                continue
            children.append(self.position(stmt))
            children.append(self.statement(stmt))
        return Expr(Head.BLOCK, tuple(children))

    def statement(self, stmt: ast.stmt) -> Any:  # noqa: PLR0911
        match stmt:
            case ast.Expr(value=value):
                return self.expression(value)
            case ast.AnnAssign(target=target, annotation=annotation, value=None):
                return Expr(Head.BIND, (self.expression(target), self.expression(annotation)))
            case ast.If(test=test, body=body, orelse=orelse):
                else_block = self.block(orelse) if orelse else None
                return Expr(Head.IF, (self.expression(test), self.block(body), else_block))
            case ast.For(target=target, iter=iterable, body=body, orelse=[]):
                return Expr(Head.FOR, (self.expression(target), self.expression(iterable), self.block(body)))
            case _:
                msg = f"Unsupported statement `{ast.unparse(stmt)}`"
                raise ShapeError(msg, position=self.position(stmt))

    def expression(self, node: ast.expr) -> Any:  # noqa: C901, PLR0911
        match node:
            case ast.Constant(value=value) if isinstance(value, (bool, int, float)):
                return value
            case ast.Name(id=name):
                return Symbol(name)
            case ast.UnaryOp(op=ast.USub(), operand=ast.Constant(value=value)) if isinstance(
                value,
                (int, float),
            ) and not isinstance(value, bool):
                return -value
            case ast.UnaryOp(op=ast.USub(), operand=operand):
                return Expr(Head.CALL, (Symbol("-"), self.expression(operand)))
            case ast.BinOp(left=left, op=ast.RShift(), right=right) if self.dialect is Dialect.GRAPH:
                return Expr(Head.ARROW, (self.expression(left), self.expression(right)))
            case ast.BinOp(left=left, op=ast.Sub(), right=right) if self.dialect is Dialect.GRAPH:
                return Expr(Head.DASH, (self.expression(left), self.expression(right)))
            case ast.BinOp(left=left, op=op, right=right) if type(op) in _ARITHMETIC:
                symbol = Symbol(_ARITHMETIC[type(op)])
                return Expr(Head.CALL, (symbol, self.expression(left), self.expression(right)))
            case ast.Compare(left=left, ops=[op], comparators=[right]) if type(op) in _COMPARISON:
                symbol = Symbol(_COMPARISON[type(op)])
                return Expr(Head.CALL, (symbol, self.expression(left), self.expression(right)))
            case ast.Call(func=func, args=args, keywords=[]):
                return Expr(Head.CALL, (self.expression(func), *(self.expression(a) for a in args)))
            case ast.Subscript(value=value, slice=index):
                return Expr(Head.INDEX, (self.expression(value), self.expression(index)))
            case _:
                msg = f"Unsupported expression `{ast.unparse(node)}`"
                raise ShapeError(msg, position=self.position(node))


def read_source(source: str, dialect: Dialect | str, *, line_offset: int = 0) -> Expr:
    """Read a block of DSL source into a `block` expression.

    Args:
        source: Python-syntax source text, one statement per line or
            separated by ``;``.
        dialect: Which DSL the source is written in.
        line_offset: Added to every line number (for sources embedded in files).

    Returns:
        The expression tree of the block, with a `SourcePos` before each
        statement.

    Raises:
        ReadError: If the text is not valid Python syntax.
        ShapeError: If the text uses syntax neither dialect understands.

    """
    dialect = Dialect(dialect)
    try:
        module = ast.parse(textwrap.dedent(source))
    except SyntaxError as e:
        msg = f"Invalid syntax: {e.msg}"
        raise ReadError(msg, position=SourcePos(line=(e.lineno or 0) + line_offset, column=e.offset or 0)) from e

    tree = _Reader(dialect, line_offset).block(module.body)
    logger.debug(f"Read {len(module.body)} statement(s) as {dialect} block")
    return tree


def read_file(path: Path, dialect: Dialect | str) -> Expr:
    """Read a DSL source file."""
    return read_source(path.read_text(encoding="utf-8"), dialect)


def read_function(func: Callable[..., Any], dialect: Dialect | str) -> Expr:
    """Read the body of a function as a DSL block.

    The function is never called. Its docstring, if any, is skipped.

    Raises:
        ReadError: If the source of the function is unavailable.

    """
    try:
        source_lines, first_line = inspect.getsourcelines(func)
    except (OSError, TypeError) as e:
        msg = f"Cannot read source of {func!r}"
        raise ReadError(msg) from e

    try:
        module = ast.parse(textwrap.dedent("".join(source_lines)))
    except SyntaxError as e:
        msg = f"Cannot parse source of {func.__qualname__}: {e.msg}"
        raise ReadError(msg) from e

    match module.body:
        case [ast.FunctionDef(body=body)]:
            pass
        case _:
            msg = f"Expected a single function definition for {func.__qualname__}"
            raise ReadError(msg)

    if body and isinstance(body[0], ast.Expr) and isinstance(body[0].value, ast.Constant):
        if isinstance(body[0].value.value, str):
            body = body[1:]

    return _Reader(Dialect(dialect), line_offset=first_line - 1).block(body)
