"""Probabilistic-model DSL: bindings lowered into a dependency-ordered sampling plan.

Pipeline: `read_source` -> `validate_block` -> `unroll` -> `schedule`, then
`SamplingPlan.run` with a `Sampler`, or `render_source` for Python code.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from minidsl._expr import Expr
from minidsl._ir import validate_block
from minidsl._reader import Dialect, read_source

from ._codegen import render_source
from ._order import schedule
from ._plan import BranchStep, LoopStep, SampleStep, SamplingPlan, Step, iter_sample_steps
from ._sampler import DISTRIBUTIONS, RandomSampler, Sampler
from ._unroll import DEFAULT_MAX_UNROLL, unroll

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "DEFAULT_MAX_UNROLL",
    "DISTRIBUTIONS",
    "BranchStep",
    "LoopStep",
    "Model",
    "RandomSampler",
    "SampleStep",
    "Sampler",
    "SamplingPlan",
    "Step",
    "iter_sample_steps",
    "lower_model",
    "render_source",
    "schedule",
    "unroll",
]

logger = logging.getLogger(__name__)


def lower_model(source: str | Expr, *, max_unroll: int = DEFAULT_MAX_UNROLL) -> SamplingPlan:
    """Read, validate, unroll and order a model block in one call.

    Args:
        source: DSL source text or an already-read ``block`` expression.
        max_unroll: Upper bound on the statements and loop iterations unrolling may produce.

    Returns:
        The sampling plan.

    Raises:
        ShapeError: If a statement is not a binding, conditional or loop.
        OperandTypeError: If an operand has the wrong kind.
        UnboundReferenceError: If a name is read but never bound.
        CyclicDependencyError: If bindings depend on each other in a cycle.

    """
    tree = source if isinstance(source, Expr) else read_source(source, Dialect.MODEL)
    statements = validate_block(tree, Dialect.MODEL)
    plan = schedule(unroll(statements, max_unroll=max_unroll))
    logger.debug(f"Lowered model into {len(plan)} step(s) with parameters {list(plan.parameters)}")
    return plan


class Model:
    """A lowered model that samples when called.

    Created by the `model` decorator; can also wrap any plan directly.

    Example:
        >>> m = Model(lower_model("x: normal(0, 1)\\ny: normal(x, 1)"))
        >>> sorted(m(RandomSampler(seed=0)))
        ['x', 'y']

    """

    def __init__(self, plan: SamplingPlan, name: str = "model", func: Callable[..., Any] | None = None) -> None:
        self.plan = plan
        self.name = name
        self.__wrapped__ = func
        if func is not None:
            self.__doc__ = func.__doc__

    @property
    def parameters(self) -> tuple[str, ...]:
        return self.plan.parameters

    @property
    def source(self) -> str:
        """Python source of an equivalent function (see `render_source`)."""
        return render_source(self.plan, self.name)

    def __call__(self, sampler: Sampler | None = None, /, **bounds: int) -> dict[str, Any]:
        return self.plan.run(sampler, **bounds)

    def __repr__(self) -> str:
        return f"Model(name={self.name!r}, steps={len(self.plan)}, parameters={list(self.plan.parameters)})"
