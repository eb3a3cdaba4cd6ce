"""Dependency analysis and scheduling of model statements.

A block is split into units (bindings, conditionals and dynamic loops). A unit
depends on every unit that binds a value it reads. Units are emitted in a
topological order that keeps source order wherever the dependencies allow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from minidsl._errors import CyclicDependencyError, ShapeError, UnboundReferenceError
from minidsl._expr import Expr, Head, Symbol, format_expr
from minidsl._graph import CycleError, DependencyGraph
from minidsl._ir import Binding, Conditional, DynamicLoop, iter_references

from ._operands import static_key
from ._plan import BranchStep, LoopStep, SampleStep, SamplingPlan

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Sequence

    from minidsl._ir import Statement

    from ._plan import Step

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class _Binds:
    """What a group of statements binds.

    Attributes:
        keys: Trace keys known before running (``x``, ``z[0]``).
        collections: Names bound with an index (``z`` for ``z[i]``).
        dynamic: Collections with at least one element bound inside a dynamic loop.

    """

    keys: set[str] = field(default_factory=set)
    collections: set[str] = field(default_factory=set)
    dynamic: set[str] = field(default_factory=set)

    def update(self, other: _Binds) -> None:
        self.keys |= other.keys
        self.collections |= other.collections
        self.dynamic |= other.dynamic

    def satisfies(self, ref: Symbol | Expr) -> bool:
        match ref:
            case Symbol(name):
                return name in self.keys
            case Expr(head=Head.INDEX, args=(Symbol(name), _)):
                key = static_key(ref)
                if key is not None and key in self.keys:
                    return True
                return name in self.dynamic or (key is None and name in self.collections)
            case _:
                return False


def _binds_of(stmt: Statement, *, in_loop: bool = False) -> _Binds:
    binds = _Binds()
    match stmt:
        case Binding():
            key = static_key(stmt.target)
            if key is not None:
                binds.keys.add(key)
            if stmt.is_indexed:
                binds.collections.add(stmt.name)
                if in_loop:
                    binds.dynamic.add(stmt.name)
        case Conditional():
            for inner in (*stmt.then_body, *stmt.else_body):
                binds.update(_binds_of(inner, in_loop=in_loop))
        case DynamicLoop():
            for inner in stmt.body:
                binds.update(_binds_of(inner, in_loop=True))
        case _:
            msg = f"Unexpected statement after unrolling: {stmt}"
            raise ShapeError(msg, statement_index=stmt.index, position=stmt.position)
    return binds


def _operand_refs(expr: Any, local_names: frozenset[str]) -> Iterator[Symbol | Expr]:
    for ref in iter_references(expr):
        if isinstance(ref, Symbol) and ref.name in local_names:
            continue
        yield ref


def _external_refs(stmt: Statement, local_names: frozenset[str]) -> list[Symbol | Expr]:
    """References of a statement that it does not satisfy itself."""
    match stmt:
        case Binding(target=target, args=args):
            refs: list[Symbol | Expr] = []
            if isinstance(target, Expr):
                refs.extend(_operand_refs(target.args[1], local_names))
            for arg in args:
                refs.extend(_operand_refs(arg, local_names))
            return refs
        case Conditional(condition=condition, then_body=then_body, else_body=else_body):
            refs = list(_operand_refs(condition, local_names))
            for branch in (then_body, else_body):
                branch_binds = _Binds()
                for inner in branch:
                    branch_binds.update(_binds_of(inner))
                for inner in branch:
                    refs.extend(r for r in _external_refs(inner, local_names) if not branch_binds.satisfies(r))
            return refs
        case DynamicLoop(var=var, bounds=bounds, body=body):
            # Body references are kept even when the loop binds them itself;
            # other units may bind elements of the same collection
            refs = [r for b in bounds for r in _operand_refs(b, local_names)]
            for inner in body:
                refs.extend(_external_refs(inner, local_names | {var}))
            return refs
        case _:
            msg = f"Unexpected statement after unrolling: {stmt}"
            raise ShapeError(msg, statement_index=stmt.index, position=stmt.position)


def _label(stmt: Statement) -> str:
    match stmt:
        case Binding():
            return static_key(stmt.target) or format_expr(stmt.target)
        case _:
            return str(stmt)


@dataclass(slots=True)
class _Table:
    """Which unit of a scope binds which key or collection."""

    keys: dict[str, int] = field(default_factory=dict)
    collections: dict[str, set[int]] = field(default_factory=dict)
    dynamic: set[str] = field(default_factory=set)

    @classmethod
    def build(cls, statements: Sequence[Statement]) -> _Table:
        table = cls()
        for unit, stmt in enumerate(statements):
            binds = _binds_of(stmt)
            for key in sorted(binds.keys):
                if key in table.keys and table.keys[key] != unit:
                    first = statements[table.keys[key]]
                    msg = f"'{key}' is already bound by statement {first.index}"
                    raise ShapeError(msg, code="EDUPLICATE", statement_index=stmt.index, position=stmt.position)
                table.keys[key] = unit
            for name in binds.collections:
                table.collections.setdefault(name, set()).add(unit)
            table.dynamic |= binds.dynamic

        for name in table.collections:
            if name in table.keys:
                stmt = statements[table.keys[name]]
                msg = f"'{name}' is bound both as a value and as a collection"
                raise ShapeError(msg, code="EDUPLICATE", statement_index=stmt.index, position=stmt.position)
        return table

    def resolve(self, ref: Symbol | Expr) -> set[int] | None:
        """Get the units a reference reads from, or None if none bind it."""
        match ref:
            case Symbol(name):
                if name in self.keys:
                    return {self.keys[name]}
                return None
            case Expr(head=Head.INDEX, args=(Symbol(name), _)):
                key = static_key(ref)
                if key is not None and key in self.keys:
                    return {self.keys[key]}
                if name in self.collections and (key is None or name in self.dynamic):
                    return set(self.collections[name])
                return None
            case _:
                return None


def _collect_parameters(statements: Iterable[Statement], loop_vars: frozenset[str] = frozenset()) -> set[str]:
    parameters: set[str] = set()
    for stmt in statements:
        match stmt:
            case Conditional(then_body=then_body, else_body=else_body):
                parameters |= _collect_parameters((*then_body, *else_body), loop_vars)
            case DynamicLoop(var=var, parameters=names, body=body):
                parameters |= names - loop_vars
                parameters |= _collect_parameters(body, loop_vars | {var})
            case _:
                pass
    return parameters


@dataclass(slots=True)
class _Scheduler:
    parameters: frozenset[str]

    def schedule(self, statements: Sequence[Statement], *, top_level: bool) -> list[int]:
        table = _Table.build(statements)
        edges: list[tuple[int, int]] = []

        for unit, stmt in enumerate(statements):
            for ref in _external_refs(stmt, frozenset()):
                producers = table.resolve(ref)
                if producers is None:
                    if top_level and not (isinstance(ref, Symbol) and ref.name in self.parameters):
                        raise UnboundReferenceError(
                            format_expr(ref),
                            referenced_by=_label(stmt),
                            statement_index=stmt.index,
                            position=stmt.position,
                        )
                    continue
                if isinstance(stmt, DynamicLoop):
                    producers = producers - {unit}
                elif unit in producers and not isinstance(stmt, Binding):
                    # Escaped its own branch: only the other branch binds it
                    raise UnboundReferenceError(
                        format_expr(ref),
                        referenced_by=_label(stmt),
                        statement_index=stmt.index,
                        position=stmt.position,
                    )
                edges.extend((producer, unit) for producer in sorted(producers))

        graph = DependencyGraph.from_edges(edges, nodes=range(len(statements)))
        try:
            order = graph.topological_order()
        except CycleError as e:
            cycle = graph.find_cycle() or list(e.remaining)
            first = statements[cycle[0]]
            raise CyclicDependencyError(
                [_label(statements[unit]) for unit in cycle],
                statement_index=first.index,
                position=first.position,
            ) from e
        return order

    def steps(self, statements: Sequence[Statement], *, top_level: bool = False) -> tuple[Step, ...]:
        order = self.schedule(statements, top_level=top_level)
        return tuple(self.emit(statements[unit]) for unit in order)

    def emit(self, stmt: Statement) -> Step:
        match stmt:
            case Binding(target=target, distribution=distribution, args=args, position=position):
                return SampleStep(target=target, distribution=distribution, args=args, position=position)
            case Conditional(condition=condition, then_body=then_body, else_body=else_body, position=position):
                return BranchStep(
                    condition=condition,
                    then_steps=self.steps(then_body),
                    else_steps=self.steps(else_body),
                    position=position,
                )
            case DynamicLoop(var=var, bounds=bounds, body=body, position=position):
                # Loop bodies run as written
                return LoopStep(
                    var=var,
                    bounds=bounds,
                    body=tuple(self.emit(inner) for inner in body),
                    position=position,
                )
            case _:
                msg = f"Unexpected statement after unrolling: {stmt}"
                raise ShapeError(msg, statement_index=stmt.index, position=stmt.position)


def schedule(statements: Sequence[Statement]) -> SamplingPlan:
    """Order unrolled model statements by their dependencies.

    Args:
        statements: Model statements without static loops (see `unroll`).

    Returns:
        The sampling plan.

    Raises:
        UnboundReferenceError: If a name is read but never bound.
        CyclicDependencyError: If the bindings depend on each other in a cycle.
        ShapeError: If a key is bound by more than one statement.

    """
    all_keys: set[str] = set()
    for stmt in statements:
        all_keys |= _binds_of(stmt).keys
    parameters = frozenset(_collect_parameters(statements) - all_keys)

    scheduler = _Scheduler(parameters)
    order = scheduler.schedule(statements, top_level=True)
    steps = tuple(scheduler.emit(statements[unit]) for unit in order)
    labels = tuple(_label(statements[unit]) for unit in order)
    logger.debug(f"Scheduled {len(steps)} step(s): {', '.join(labels)}")
    return SamplingPlan(steps=steps, parameters=tuple(sorted(parameters)), order=labels)
