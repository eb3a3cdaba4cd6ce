"""Validated statement variants.

Every statement the grammar accepts is exactly one of the classes below.
Downstream passes dispatch on them with exhaustive `match` statements.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar, Self

from minidsl._expr import Expr, Head, Symbol, format_expr

if TYPE_CHECKING:
    from minidsl._expr import SourcePos


class StatementKind(StrEnum):
    """The closed set of statement kinds.

    Each member carries a short description, shown by ``minidsl grammar``.
    """

    def __new__(cls, value: str, doc: str = "") -> Self:
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.__doc__ = doc
        return obj

    EDGE_DIRECTED = "edge_directed", "Directed edge between two integer node ids"
    EDGE_UNDIRECTED = "edge_undirected", "Undirected edge between two integer node ids"
    BINDING = "binding", "Variable drawn from a distribution"
    CONDITIONAL = "conditional", "Bindings guarded by a condition"
    STATIC_LOOP = "static_loop", "Loop with literal bounds, unrolled during lowering"
    DYNAMIC_LOOP = "dynamic_loop", "Loop with bounds supplied when the model runs"


@dataclass(frozen=True, slots=True)
class DirectedEdge:
    source: int
    target: int
    index: int = 0
    position: SourcePos | None = None

    kind: ClassVar[StatementKind] = StatementKind.EDGE_DIRECTED

    def __str__(self) -> str:
        return f"{self.source} >> {self.target}"


@dataclass(frozen=True, slots=True)
class UndirectedEdge:
    source: int
    target: int
    index: int = 0
    position: SourcePos | None = None

    kind: ClassVar[StatementKind] = StatementKind.EDGE_UNDIRECTED

    def __str__(self) -> str:
        return f"{self.source} - {self.target}"


@dataclass(frozen=True, slots=True)
class Binding:
    """``target: distribution(args...)``.

    Attributes:
        target: A `Symbol` or an ``index`` expression such as ``z[i]``.
        distribution: Name of the distribution to sample from.
        args: Argument expressions, evaluated when the model runs.

    """

    target: Symbol | Expr
    distribution: str
    args: tuple[Any, ...] = ()
    index: int = 0
    position: SourcePos | None = None

    kind: ClassVar[StatementKind] = StatementKind.BINDING

    @property
    def name(self) -> str:
        """Base name of the target (``z`` for ``z[i]``)."""
        match self.target:
            case Symbol(name):
                return name
            case Expr(head=Head.INDEX, args=(Symbol(name), _)):
                return name
            case _:
                msg = f"Invalid binding target: {self.target!r}"
                raise TypeError(msg)

    @property
    def is_indexed(self) -> bool:
        return isinstance(self.target, Expr)

    def __str__(self) -> str:
        args = ", ".join(format_expr(a) for a in self.args)
        return f"{format_expr(self.target)}: {self.distribution}({args})"


@dataclass(frozen=True, slots=True)
class Conditional:
    condition: Any
    then_body: tuple[Statement, ...] = ()
    else_body: tuple[Statement, ...] = ()
    index: int = 0
    position: SourcePos | None = None

    kind: ClassVar[StatementKind] = StatementKind.CONDITIONAL

    def __str__(self) -> str:
        return f"if {format_expr(self.condition)}"


@dataclass(frozen=True, slots=True)
class StaticLoop:
    var: str
    start: int
    stop: int
    step: int = 1
    body: tuple[Statement, ...] = ()
    index: int = 0
    position: SourcePos | None = None

    kind: ClassVar[StatementKind] = StatementKind.STATIC_LOOP

    def iterations(self) -> range:
        return range(self.start, self.stop, self.step)

    def __str__(self) -> str:
        return f"for {self.var} in range({self.start}, {self.stop}, {self.step})"


@dataclass(frozen=True, slots=True)
class DynamicLoop:
    """A loop whose ``range`` arguments are only known at run time.

    Attributes:
        var: Loop variable name.
        bounds: The ``range`` arguments (1 to 3 expressions).
        body: Statements executed per iteration, in source order.

    """

    var: str
    bounds: tuple[Any, ...]
    body: tuple[Statement, ...] = ()
    index: int = 0
    position: SourcePos | None = None
    parameters: frozenset[str] = field(default_factory=frozenset)

    kind: ClassVar[StatementKind] = StatementKind.DYNAMIC_LOOP

    def __str__(self) -> str:
        return f"for {self.var} in range({', '.join(format_expr(b) for b in self.bounds)})"


type Statement = DirectedEdge | UndirectedEdge | Binding | Conditional | StaticLoop | DynamicLoop
