"""Lower extracted edges into a graph-construction recipe."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from minidsl._graph import DependencyGraph

if TYPE_CHECKING:
    from ._extract import Edge, ExtractedEdges

logger = logging.getLogger(__name__)


class GraphBackend[H](Protocol):
    """The operations a graph library must expose to build a recipe."""

    def new_directed_graph(self, node_count: int) -> H: ...

    def add_edge(self, graph: H, source: int, target: int) -> None: ...


class UndirectedGraphBackend[H](GraphBackend[H], Protocol):
    """A backend that also has a native undirected graph type."""

    def new_undirected_graph(self, node_count: int) -> H: ...


@dataclass(frozen=True, slots=True)
class GraphRecipe:
    """Everything needed to construct a graph with an external library.

    Attributes:
        node_count: Number of distinct nodes.
        edges: Edges in source order, duplicates and self-loops included.
        directed: Whether the graph is directed.
        labels: Original node id of each node. With relabelling, edge
            endpoint ``i`` stands for ``labels[i]``; without it, edges use the
            original ids and ``labels`` is the node set.
        relabeled: Whether edge endpoints were remapped to ``0..node_count-1``.

    """

    node_count: int
    edges: tuple[Edge, ...]
    directed: bool = True
    labels: tuple[int, ...] = ()
    relabeled: bool = True

    def labeled_edges(self) -> tuple[Edge, ...]:
        """Get the edges with original node ids."""
        if not self.relabeled:
            return self.edges
        return tuple((self.labels[u], self.labels[v]) for u, v in self.edges)


def lower_edges(extracted: ExtractedEdges, *, relabel: bool = True, dedupe: bool = False) -> GraphRecipe:
    """Lower extracted edges into a `GraphRecipe`.

    The node count is the size of the node set. Edges keep their order.
    Lowering is pure: the same input always gives an equal recipe.

    Args:
        extracted: Output of `extract_edges`.
        relabel: Remap node ids to a dense ``0..n-1`` range in first-appearance
            order. Without it, the original integers are kept.
        dedupe: Drop repeated edges, keeping the first occurrence.

    Returns:
        The graph recipe.

    """
    edges = extracted.edges
    if dedupe:
        edges = tuple(dict.fromkeys(edges))

    if relabel:
        index = {node: i for i, node in enumerate(extracted.nodes)}
        edges = tuple((index[u], index[v]) for u, v in edges)

    logger.debug(f"Lowered {len(edges)} edge(s), {len(extracted.nodes)} node(s), relabel={relabel}")
    return GraphRecipe(
        node_count=len(extracted.nodes),
        edges=edges,
        directed=extracted.directed,
        labels=extracted.nodes,
        relabeled=relabel,
    )


def build_graph[H](recipe: GraphRecipe, backend: GraphBackend[H]) -> H:
    """Construct a graph from a recipe through a backend.

    Creates a graph with ``recipe.node_count`` nodes, then adds every edge in
    order. Undirected recipes use ``new_undirected_graph`` when the backend
    has it (see `UndirectedGraphBackend`). Otherwise they are built as a
    directed graph with each edge added in both directions, self-loops once.

    Returns:
        Whatever handle the backend returned for the new graph.

    """
    new_undirected_graph = getattr(backend, "new_undirected_graph", None)
    if recipe.directed:
        graph = backend.new_directed_graph(recipe.node_count)
    elif new_undirected_graph is not None:
        graph = new_undirected_graph(recipe.node_count)
    else:
        graph = backend.new_directed_graph(recipe.node_count)
        for source, target in recipe.edges:
            backend.add_edge(graph, source, target)
            if source != target:
                backend.add_edge(graph, target, source)
        return graph

    for source, target in recipe.edges:
        backend.add_edge(graph, source, target)
    return graph


def to_dependency_graph(recipe: GraphRecipe) -> DependencyGraph[int]:
    """View a directed recipe as a `DependencyGraph` over the original node ids.

    Duplicate edges collapse. Used for summaries such as roots and leaves.
    """
    return DependencyGraph.from_edges(recipe.labeled_edges(), nodes=recipe.labels)
