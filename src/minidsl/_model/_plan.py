"""Sampling plans: the lowered form of a model block, and how to run one."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from minidsl._errors import OperandTypeError
from minidsl._expr import format_expr

from ._operands import as_index, evaluate, static_key, target_key
from ._sampler import RandomSampler, Sampler

if TYPE_CHECKING:
    from minidsl._expr import Expr, SourcePos, Symbol

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SampleStep:
    """Draw one value and store it under the target's key."""

    target: Symbol | Expr
    distribution: str
    args: tuple[Any, ...] = ()
    position: SourcePos | None = None

    @property
    def key(self) -> str | None:
        """Trace key, or None if the index is only known at run time."""
        return static_key(self.target)

    def __str__(self) -> str:
        args = ", ".join(format_expr(a) for a in self.args)
        return f"{format_expr(self.target)} ~ {self.distribution}({args})"


@dataclass(frozen=True, slots=True)
class BranchStep:
    """Run one of two step sequences depending on a condition."""

    condition: Any
    then_steps: tuple[Step, ...] = ()
    else_steps: tuple[Step, ...] = ()
    position: SourcePos | None = None

    def __str__(self) -> str:
        return f"if {format_expr(self.condition)}"


@dataclass(frozen=True, slots=True)
class LoopStep:
    """Run a step sequence once per value of ``range(*bounds)``."""

    var: str
    bounds: tuple[Any, ...]
    body: tuple[Step, ...] = ()
    position: SourcePos | None = None

    def __str__(self) -> str:
        return f"for {self.var} in range({', '.join(format_expr(b) for b in self.bounds)})"


type Step = SampleStep | BranchStep | LoopStep


def iter_sample_steps(steps: tuple[Step, ...]) -> list[SampleStep]:
    """Flatten steps into their sample steps, in plan order."""
    result: list[SampleStep] = []
    for step in steps:
        match step:
            case SampleStep():
                result.append(step)
            case BranchStep(then_steps=then_steps, else_steps=else_steps):
                result.extend(iter_sample_steps(then_steps))
                result.extend(iter_sample_steps(else_steps))
            case LoopStep(body=body):
                result.extend(iter_sample_steps(body))
    return result


@dataclass(frozen=True, slots=True)
class SamplingPlan:
    """An ordered sequence of sampling steps.

    Every step appears after the steps that produce the values it reads,
    except inside loop bodies, which run in source order.

    Attributes:
        steps: Top-level steps in execution order.
        parameters: Names of loop bounds that must be passed to `run`.
        order: Trace keys (or collection names) of the top-level steps, in
            the order they were scheduled.

    """

    steps: tuple[Step, ...] = ()
    parameters: tuple[str, ...] = ()
    order: tuple[str, ...] = field(default_factory=tuple)

    def run(self, sampler: Sampler | None = None, /, **bounds: int) -> dict[str, Any]:
        """Run the plan once.

        Args:
            sampler: Where values are drawn from. Defaults to a fresh
                `RandomSampler`.
            **bounds: A value for every name in ``parameters``.

        Returns:
            Mapping from trace key (``x``, ``z[0]``) to sampled value, in
            sampling order.

        Raises:
            TypeError: If bounds are missing or unexpected.
            UnboundReferenceError: If a step reads a value that was never
                sampled (for example, bound only in the branch not taken).
            OperandTypeError: If an operand cannot be evaluated (for example,
                division by zero or a non-integer index).
            SamplingError: If the sampler fails.

        """
        missing = [p for p in self.parameters if p not in bounds]
        if missing:
            msg = f"Missing value(s) for loop bound(s): {', '.join(missing)}"
            raise TypeError(msg)
        unexpected = sorted(set(bounds) - set(self.parameters))
        if unexpected:
            msg = f"Unexpected loop bound(s): {', '.join(unexpected)}"
            raise TypeError(msg)

        if sampler is None:
            sampler = RandomSampler()

        trace: dict[str, Any] = {}
        _run_steps(self.steps, sampler, trace, dict(bounds))
        logger.debug(f"Sampled {len(trace)} value(s)")
        return trace

    def __len__(self) -> int:
        return len(self.steps)


def _run_steps(steps: tuple[Step, ...], sampler: Sampler, trace: dict[str, Any], scope: dict[str, Any]) -> None:
    for step in steps:
        try:
            _run_step(step, sampler, trace, scope)
        except OperandTypeError as e:
            if e.position is not None or step.position is None:
                raise
            raise OperandTypeError(e.message, position=step.position) from e


def _run_step(step: Step, sampler: Sampler, trace: dict[str, Any], scope: dict[str, Any]) -> None:
    match step:
        case SampleStep(target=target, distribution=distribution, args=args):
            values = [evaluate(a, trace, scope) for a in args]
            trace[target_key(target, trace, scope)] = sampler.sample(distribution, *values)
        case BranchStep(condition=condition, then_steps=then_steps, else_steps=else_steps):
            if evaluate(condition, trace, scope):
                _run_steps(then_steps, sampler, trace, scope)
            else:
                _run_steps(else_steps, sampler, trace, scope)
        case LoopStep(var=var, bounds=bounds, body=body):
            args = [as_index(evaluate(b, trace, scope), b) for b in bounds]
            for i in range(*args):
                _run_steps(body, sampler, trace, {**scope, var: i})
