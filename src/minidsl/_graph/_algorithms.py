"""Graph algorithms for dependency graph operations."""

import heapq
from collections import defaultdict
from collections.abc import Callable, Collection, Hashable, Mapping
from typing import Any


class CycleError(ValueError):
    """Raised when a graph has no topological order.

    Attributes:
        remaining: Nodes that could not be ordered (every cycle lies among them).

    """

    def __init__(self, remaining: Collection[Any]) -> None:
        self.remaining = tuple(remaining)
        super().__init__("Cycle detected in graph")


def topological_sort[T: Hashable](
    successors: Mapping[T, Collection[T]],
    *,
    key: Callable[[T], Any] | None = None,
) -> list[T]:
    """Sort a graph topologically (dependencies before dependents).

    Given a graph represented as a mapping from nodes to their successors
    (nodes that depend on them), return nodes in an order where each node
    appears before all nodes that depend on it.

    Among nodes that are ready at the same time, the one with the smallest
    ``key`` comes first. Without a key, ready nodes keep the iteration order
    of ``successors``. Either way the result is deterministic.

    Args:
        successors: Mapping from node to collection of nodes that depend on it.
            An edge (a -> b) means "b depends on a".
        key: Optional sort key to break ties between ready nodes.

    Returns:
        List of nodes in topological order.

    Raises:
        CycleError: If the graph contains a cycle.

    Example:
        >>> # a -> b -> c means c depends on b, b depends on a
        >>> topological_sort({"a": ["b"], "b": ["c"], "c": []})
        ['a', 'b', 'c']

    """
    # Rank keys in iteration order first, then nodes that only appear as successors
    rank: dict[T, int] = {node: i for i, node in enumerate(successors)}
    for deps in successors.values():
        for dep in deps:
            rank.setdefault(dep, len(rank))

    def priority(node: T) -> tuple[Any, int]:
        return (key(node) if key is not None else 0, rank[node])

    indegree: defaultdict[T, int] = defaultdict(int)
    for node, deps in successors.items():
        indegree[node] = indegree.get(node, 0)
        for dep in deps:
            indegree[dep] += 1

    # Start with nodes that have no predecessors (in-degree 0)
    ready = [(priority(node), node) for node in rank if indegree[node] == 0]
    heapq.heapify(ready)
    order: list[T] = []

    while ready:
        _, node = heapq.heappop(ready)
        order.append(node)
        for successor in successors.get(node, ()):
            indegree[successor] -= 1
            if indegree[successor] == 0:
                heapq.heappush(ready, (priority(successor), successor))

    if len(order) != len(rank):
        ordered = set(order)
        raise CycleError([node for node in rank if node not in ordered])

    return order


def find_cycle[T: Hashable](successors: Mapping[T, Collection[T]]) -> list[T] | None:
    """Find one cycle in a graph.

    Returns:
        The nodes of a cycle in edge order (the last node points back to the
        first), or None if the graph is acyclic.

    """
    visiting: dict[T, int] = {}
    done: set[T] = set()

    for start in successors:
        if start in done:
            continue
        path: list[T] = []
        stack: list[tuple[T, list[T]]] = [(start, list(successors.get(start, ())))]
        visiting[start] = 0
        path.append(start)
        while stack:
            node, pending = stack[-1]
            if not pending:
                stack.pop()
                path.pop()
                del visiting[node]
                done.add(node)
                continue
            nxt = pending.pop(0)
            if nxt in visiting:
                return path[visiting[nxt] :]
            if nxt in done:
                continue
            visiting[nxt] = len(path)
            path.append(nxt)
            stack.append((nxt, list(successors.get(nxt, ()))))

    return None
