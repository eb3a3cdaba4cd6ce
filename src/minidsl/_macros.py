"""Decorators that read a function body as DSL source.

The decorated function is never called: its body only has to be valid Python
syntax, and is lowered once when the decorator runs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, overload

from ._graph_literal import GraphRecipe, lower_graph
from ._model import DEFAULT_MAX_UNROLL, Model, lower_model
from ._reader import Dialect, read_function

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger(__name__)


@overload
def graph_literal(func: Callable[..., Any], /) -> GraphRecipe: ...


@overload
def graph_literal(
    *,
    directed: bool | None = None,
    relabel: bool = True,
    dedupe: bool = False,
) -> Callable[[Callable[..., Any]], GraphRecipe]: ...


def graph_literal(
    func: Callable[..., Any] | None = None,
    /,
    *,
    directed: bool | None = None,
    relabel: bool = True,
    dedupe: bool = False,
) -> GraphRecipe | Callable[[Callable[..., Any]], GraphRecipe]:
    """Replace a function by the graph recipe its body describes.

    Usable bare (``@graph_literal``) or with options
    (``@graph_literal(relabel=False)``); the options are those of `lower_graph`.

    Example:
        @graph_literal
        def triangle():
            1 >> 2
            2 >> 3
            3 >> 1

        triangle.node_count  # 3

    """

    def decorator(f: Callable[..., Any]) -> GraphRecipe:
        recipe = lower_graph(read_function(f, Dialect.GRAPH), directed=directed, relabel=relabel, dedupe=dedupe)
        logger.debug(f"{f.__qualname__}: {recipe.node_count} node(s), {len(recipe.edges)} edge(s)")
        return recipe

    if func is not None:
        return decorator(func)
    return decorator


@overload
def model(func: Callable[..., Any], /) -> Model: ...


@overload
def model(*, max_unroll: int = DEFAULT_MAX_UNROLL) -> Callable[[Callable[..., Any]], Model]: ...


def model(
    func: Callable[..., Any] | None = None,
    /,
    *,
    max_unroll: int = DEFAULT_MAX_UNROLL,
) -> Model | Callable[[Callable[..., Any]], Model]:
    """Replace a function by the `Model` its body describes.

    Example:
        @model
        def walk():
            z[0]: normal(0, 1)
            for i in range(1, 3):
                z[i]: normal(z[i - 1], 1)

        walk(RandomSampler(seed=1))  # {"z[0]": ..., "z[1]": ..., "z[2]": ...}

    """

    def decorator(f: Callable[..., Any]) -> Model:
        plan = lower_model(read_function(f, Dialect.MODEL), max_unroll=max_unroll)
        return Model(plan, name=f.__name__, func=f)

    if func is not None:
        return decorator(func)
    return decorator
