"""Samplers: where a running model draws its values from."""

from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING, Any, Protocol

from minidsl._errors import SamplingError

if TYPE_CHECKING:
    from collections.abc import Callable


class Sampler(Protocol):
    """Draws a value from a named distribution."""

    def sample(self, distribution: str, *args: Any) -> Any: ...


def _poisson(rng: random.Random, lam: float) -> int:
    # Knuth's multiplication method
    if lam < 0:
        msg = f"poisson rate must be non-negative, got {lam}"
        raise ValueError(msg)
    limit = math.exp(-lam)
    k = 0
    p = rng.random()
    while p > limit:
        k += 1
        p *= rng.random()
    return k


def _categorical(rng: random.Random, *weights: float) -> int:
    if not weights:
        msg = "categorical needs at least one weight"
        raise ValueError(msg)
    return rng.choices(range(len(weights)), weights=weights)[0]


def _bernoulli(rng: random.Random, p: float) -> bool:
    if not 0 <= p <= 1:
        msg = f"bernoulli probability must be in [0, 1], got {p}"
        raise ValueError(msg)
    return rng.random() < p


DISTRIBUTIONS: dict[str, Callable[..., Any]] = {
    "normal": lambda rng, mu, sigma: rng.gauss(mu, sigma),
    "lognormal": lambda rng, mu, sigma: rng.lognormvariate(mu, sigma),
    "uniform": lambda rng, low, high: rng.uniform(low, high),
    "bernoulli": _bernoulli,
    "exponential": lambda rng, rate: rng.expovariate(rate),
    "gamma": lambda rng, shape, scale: rng.gammavariate(shape, scale),
    "beta": lambda rng, a, b: rng.betavariate(a, b),
    "poisson": _poisson,
    "categorical": _categorical,
    "constant": lambda _rng, value: value,
}


class RandomSampler:
    """A `Sampler` backed by `random.Random`.

    Args:
        seed: Seed for reproducible draws.
        distributions: Extra or replacement distributions, each a callable
            taking the `random.Random` instance followed by the arguments.

    """

    def __init__(
        self,
        seed: int | None = None,
        distributions: dict[str, Callable[..., Any]] | None = None,
    ) -> None:
        self.rng = random.Random(seed)
        self.distributions = {**DISTRIBUTIONS, **(distributions or {})}

    def sample(self, distribution: str, *args: Any) -> Any:
        draw = self.distributions.get(distribution)
        if draw is None:
            msg = f"Unknown distribution '{distribution}'"
            raise SamplingError(msg, code="EUNKNOWN_DIST")
        try:
            return draw(self.rng, *args)
        except (TypeError, ValueError, ZeroDivisionError) as e:
            args_str = ", ".join(repr(a) for a in args)
            msg = f"Cannot sample {distribution}({args_str}): {e}"
            raise SamplingError(msg) from e
