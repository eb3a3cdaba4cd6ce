"""Graph-literal DSL: edge statements lowered into a graph recipe.

Pipeline: `read_source` -> `validate_block` -> `extract_edges` -> `lower_edges`,
then optionally `build_graph` with a backend.
"""

from minidsl._expr import Expr
from minidsl._reader import Dialect, read_source

from ._extract import Edge, ExtractedEdges, extract_edge, extract_edges
from ._lower import GraphBackend, GraphRecipe, UndirectedGraphBackend, build_graph, lower_edges, to_dependency_graph

__all__ = [
    "Edge",
    "ExtractedEdges",
    "GraphBackend",
    "GraphRecipe",
    "UndirectedGraphBackend",
    "build_graph",
    "extract_edge",
    "extract_edges",
    "lower_edges",
    "lower_graph",
    "to_dependency_graph",
]


def lower_graph(
    source: str | Expr,
    *,
    directed: bool | None = None,
    relabel: bool = True,
    dedupe: bool = False,
) -> GraphRecipe:
    """Read, validate, extract and lower a graph block in one call.

    Args:
        source: DSL source text or an already-read ``block`` expression.
        directed: Force the direction of the block (see `extract_edges`).
        relabel: Remap node ids to ``0..n-1``.
        dedupe: Drop repeated edges.

    Returns:
        The graph recipe.

    """
    tree = source if isinstance(source, Expr) else read_source(source, Dialect.GRAPH)
    return lower_edges(extract_edges(tree, directed=directed), relabel=relabel, dedupe=dedupe)
