"""Render a sampling plan as the source of an equivalent Python function."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from minidsl._expr import Expr, Head, Symbol, format_expr, is_literal

from ._operands import static_key
from ._plan import BranchStep, LoopStep, SampleStep

if TYPE_CHECKING:
    from ._plan import SamplingPlan, Step

INDENT = "    "

COMPARISONS = frozenset({"<", "<=", ">", ">=", "==", "!="})

PRECEDENCE: dict[str, int] = {
    **dict.fromkeys(COMPARISONS, 1),
    "+": 2,
    "-": 2,
    "*": 3,
    "/": 3,
    "unary": 4,
    "**": 5,
    "atom": 6,
}


@dataclass(slots=True)
class _Writer:
    sampler: str = "sampler"
    trace: str = "trace"
    lines: list[str] = field(default_factory=list)

    def emit(self, depth: int, line: str) -> None:
        self.lines.append(INDENT * depth + line)

    def steps(self, steps: tuple[Step, ...], depth: int, local_names: frozenset[str]) -> None:
        if not steps:
            self.emit(depth, "pass")
            return
        for step in steps:
            match step:
                case SampleStep(target=target, distribution=distribution, args=args):
                    call_args = ", ".join([f'"{distribution}"', *(self.operand(a, local_names) for a in args)])
                    self.emit(depth, f"{self.key(target, local_names)} = {self.sampler}.sample({call_args})")
                case BranchStep(condition=condition, then_steps=then_steps, else_steps=else_steps):
                    self.emit(depth, f"if {self.operand(condition, local_names)}:")
                    self.steps(then_steps, depth + 1, local_names)
                    if else_steps:
                        self.emit(depth, "else:")
                        self.steps(else_steps, depth + 1, local_names)
                case LoopStep(var=var, bounds=bounds, body=body):
                    range_args = ", ".join(self.operand(b, local_names) for b in bounds)
                    self.emit(depth, f"for {var} in range({range_args}):")
                    self.steps(body, depth + 1, local_names | {var})

    def operand(self, expr: Any, local_names: frozenset[str]) -> str:
        return self.render(expr, local_names)[0]

    def key(self, target: Any, local_names: frozenset[str]) -> str:
        """Render the trace subscript a target or reference stands for."""
        match target:
            case Symbol(name):
                return f'{self.trace}["{name}"]'
            case Expr(head=Head.INDEX, args=(Symbol(), index)) if is_literal(index):
                return f'{self.trace}["{static_key(target)}"]'
            case Expr(head=Head.INDEX, args=(Symbol(name), index)):
                return f'{self.trace}[f"{name}[{{{self.operand(index, local_names)}}}]"]'
            case _:
                msg = f"Invalid binding target `{format_expr(target)}`"
                raise ValueError(msg)

    def render(self, expr: Any, local_names: frozenset[str]) -> tuple[str, int]:
        """Render an operand as Python source, with its precedence."""
        match expr:
            case bool() | int() | float():
                text = repr(expr)
                return text, PRECEDENCE["atom"] if not text.startswith("-") else PRECEDENCE["unary"]
            case Symbol(name) if name in local_names:
                return name, PRECEDENCE["atom"]
            case Symbol() | Expr(head=Head.INDEX):
                return self.key(expr, local_names), PRECEDENCE["atom"]
            case Expr(head=Head.CALL, args=(Symbol("-"), a)):
                text, prec = self.render(a, local_names)
                if prec < PRECEDENCE["unary"]:
                    text = f"({text})"
                return f"-{text}", PRECEDENCE["unary"]
            case Expr(head=Head.CALL, args=(Symbol(op), a, b)):
                prec = PRECEDENCE[op]
                left, left_prec = self.render(a, local_names)
                right, right_prec = self.render(b, local_names)
                # ** is right-associative, comparisons must not chain
                if left_prec < prec or (left_prec == prec and op in {"**", *COMPARISONS}):
                    left = f"({left})"
                if right_prec < prec or (right_prec == prec and op != "**"):
                    right = f"({right})"
                return f"{left} {op} {right}", prec
            case _:
                msg = f"Cannot render `{format_expr(expr)}`"
                raise ValueError(msg)


def _loop_vars(steps: tuple[Step, ...]) -> set[str]:
    names: set[str] = set()
    for step in steps:
        match step:
            case BranchStep(then_steps=then_steps, else_steps=else_steps):
                names |= _loop_vars(then_steps) | _loop_vars(else_steps)
            case LoopStep(var=var, body=body):
                names |= {var} | _loop_vars(body)
            case _:
                pass
    return names


def _fresh(name: str, taken: set[str]) -> str:
    while name in taken:
        name += "_"
    return name


def render_source(plan: SamplingPlan, name: str = "model") -> str:
    """Render a plan as the source of a Python function.

    The function takes a sampler followed by the plan's parameters and
    returns the trace dictionary. Dynamic loops become ``for`` loops. The
    ``sampler`` and ``trace`` locals get a trailing underscore when a
    parameter or loop variable already uses the name.

    Example:
        >>> print(render_source(lower_model("x: normal(0, 1)")))
        def model(sampler):
            trace = {}
            trace["x"] = sampler.sample("normal", 0, 1)
            return trace

    """
    taken = set(plan.parameters) | _loop_vars(plan.steps)
    sampler = _fresh("sampler", taken)
    writer = _Writer(sampler=sampler, trace=_fresh("trace", taken | {sampler}))
    writer.emit(0, f"def {name}({', '.join([writer.sampler, *plan.parameters])}):")
    writer.emit(1, f"{writer.trace} = {{}}")
    if plan.steps:
        writer.steps(plan.steps, 1, frozenset(plan.parameters))
    writer.emit(1, f"return {writer.trace}")
    return "\n".join(writer.lines) + "\n"
