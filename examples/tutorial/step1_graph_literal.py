"""Step 1: Graph literals.

The body of a function decorated with `graph_literal` is read as a block of
edge statements. The function is never called; the decorator replaces it by a
`GraphRecipe`, which any graph library can consume through a small backend.
"""

import minidsl as md


@md.graph_literal
def pipeline():
    10 >> 20
    20 >> 30
    10 >> 30


# Node ids are relabelled to 0..n-1 in first-appearance order
print(pipeline.node_count)  # 3
print(pipeline.edges)  # ((0, 1), (1, 2), (0, 2))
print(pipeline.labels)  # (10, 20, 30)


# Keep the original ids instead
@md.graph_literal(relabel=False)
def raw():
    10 >> 20
    20 >> 30


print(raw.edges)  # ((10, 20), (20, 30))


class AdjacencyBackend:
    """A toy graph library: adjacency lists."""

    def new_directed_graph(self, node_count: int) -> list[list[int]]:
        return [[] for _ in range(node_count)]

    def new_undirected_graph(self, node_count: int) -> list[list[int]]:
        return [[] for _ in range(node_count)]

    def add_edge(self, graph: list[list[int]], source: int, target: int) -> None:
        graph[source].append(target)


print(md.build_graph(pipeline, AdjacencyBackend()))  # [[1, 2], [2], []]
