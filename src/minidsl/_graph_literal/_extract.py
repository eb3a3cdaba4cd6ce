"""Extract edges and nodes from a validated graph block."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from minidsl._errors import ShapeError
from minidsl._ir import DirectedEdge, UndirectedEdge, classify_statement, validate_block
from minidsl._reader import Dialect

if TYPE_CHECKING:
    from minidsl._expr import Expr

logger = logging.getLogger(__name__)

type Edge = tuple[int, int]


@dataclass(frozen=True, slots=True)
class ExtractedEdges:
    """Edges of a graph block and the node ids they reference.

    Attributes:
        edges: One edge per statement, in source order. Undirected edges are
            normalized to ``(min, max)``.
        nodes: Every endpoint exactly once, in first-appearance order.
        directed: Whether the block was made of directed edges.

    """

    edges: tuple[Edge, ...]
    nodes: tuple[int, ...]
    directed: bool = True


def extract_edge(stmt: Any) -> Edge:
    """Extract ``(a, b)`` from a directed edge expression ``a >> b``.

    Order is preserved: ``2 >> 1`` gives ``(2, 1)``.

    Raises:
        ShapeError: If the expression is not an ``arrow`` with two operands.
        OperandTypeError: If an operand is not an integer literal.

    """
    match classify_statement(stmt, Dialect.GRAPH):
        case DirectedEdge(source=a, target=b):
            return (a, b)
        case other:
            msg = "Expected a directed edge"
            raise ShapeError(msg, expected=["`a >> b` (arrow(int, int))"], found=str(other))


def extract_edges(tree: Expr, *, directed: bool | None = None) -> ExtractedEdges:
    """Fold over a graph block, collecting edges and the node set in one pass.

    Args:
        tree: A ``block`` expression of edge statements.
        directed: Force the direction of the block. When None, the first edge
            decides and every other edge must agree.

    Returns:
        The extracted edges and nodes.

    Raises:
        ShapeError: On any malformed statement, or on an edge whose direction
            differs from the block's.
        OperandTypeError: If an endpoint is not an integer literal.

    """
    statements = validate_block(tree, Dialect.GRAPH)

    edges: list[Edge] = []
    nodes: dict[int, None] = {}
    for stmt in statements:
        match stmt:
            case DirectedEdge(source=a, target=b):
                is_directed = True
                edge = (a, b)
            case UndirectedEdge(source=a, target=b):
                is_directed = False
                edge = (min(a, b), max(a, b))
            case _:
                msg = "Unexpected statement in graph block"
                raise ShapeError(msg, found=str(stmt), statement_index=stmt.index, position=stmt.position)

        if directed is None:
            directed = is_directed
        elif directed != is_directed:
            expected = "`a >> b` (directed edge)" if directed else "`a - b` (undirected edge)"
            msg = "Graph block mixes directed and undirected edges"
            raise ShapeError(
                msg,
                expected=[expected],
                found=str(stmt),
                statement_index=stmt.index,
                position=stmt.position,
            )

        edges.append(edge)
        nodes.setdefault(edge[0])
        nodes.setdefault(edge[1])

    logger.debug(f"Extracted {len(edges)} edge(s) over {len(nodes)} node(s)")
    return ExtractedEdges(
        edges=tuple(edges),
        nodes=tuple(nodes),
        directed=True if directed is None else directed,
    )
