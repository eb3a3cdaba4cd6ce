"""Generic dependency graph abstraction."""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

from ._algorithms import find_cycle, topological_sort


@dataclass(frozen=True, slots=True)
class DependencyGraph[T]:
    """A directed graph representing dependencies between nodes.

    This is a pure, immutable data structure with query methods.
    It is generic over the node type T (e.g., str, int, a statement key).

    The graph represents "depends on" relationships:
    - predecessors[b] = {a} means "b depends on a"
    - successors[a] = {b} means "a is depended on by b"

    Node insertion order is remembered so that every query that returns a
    sequence is deterministic.

    Attributes:
        _order: All nodes in first-appearance order.
        _predecessors: Mapping from node to its direct dependencies.
        _successors: Mapping from node to nodes that depend on it.

    """

    _order: tuple[T, ...] = ()
    _predecessors: dict[T, frozenset[T]] = field(default_factory=dict)
    _successors: dict[T, frozenset[T]] = field(default_factory=dict)

    @classmethod
    def from_edges(cls, edges: Iterable[tuple[T, T]], nodes: Iterable[T] = ()) -> DependencyGraph[T]:
        """Build a graph from (source, target) edges.

        An edge (a, b) means "b depends on a" (a -> b in the graph).

        Args:
            edges: (source, target) tuples.
            nodes: Extra nodes to include even if no edge touches them.
                They are inserted before the endpoints of ``edges``.

        Returns:
            A new DependencyGraph instance.

        Example:
            >>> # b depends on a, c depends on b
            >>> graph = DependencyGraph.from_edges([("a", "b"), ("b", "c")])
            >>> graph.predecessors("b")
            frozenset({'a'})

        """
        order: dict[T, None] = dict.fromkeys(nodes)
        predecessors: defaultdict[T, set[T]] = defaultdict(set)
        successors: defaultdict[T, set[T]] = defaultdict(set)

        for node in order:
            predecessors.setdefault(node, set())
            successors.setdefault(node, set())

        for src, dst in edges:
            order.setdefault(src)
            order.setdefault(dst)
            predecessors[dst].add(src)
            successors[src].add(dst)
            # Ensure both nodes exist in the graph
            predecessors.setdefault(src, set())
            successors.setdefault(dst, set())

        return cls(
            _order=tuple(order),
            _predecessors={k: frozenset(v) for k, v in predecessors.items()},
            _successors={k: frozenset(v) for k, v in successors.items()},
        )

    @property
    def nodes(self) -> frozenset[T]:
        """All nodes in the graph."""
        return frozenset(self._order)

    def predecessors(self, node: T) -> frozenset[T]:
        """Get direct dependencies of a node (nodes it depends on)."""
        return self._predecessors.get(node, frozenset())

    def successors(self, node: T) -> frozenset[T]:
        """Get direct dependents of a node (nodes that depend on it)."""
        return self._successors.get(node, frozenset())

    def roots(self) -> tuple[T, ...]:
        """Get nodes with no predecessors, in first-appearance order."""
        return tuple(n for n in self._order if not self._predecessors.get(n))

    def leaves(self) -> tuple[T, ...]:
        """Get nodes with no successors, in first-appearance order."""
        return tuple(n for n in self._order if not self._successors.get(n))

    def _ordered_successors(self) -> dict[T, list[T]]:
        position = {node: i for i, node in enumerate(self._order)}
        return {
            node: sorted(self._successors.get(node, frozenset()), key=position.__getitem__) for node in self._order
        }

    def topological_order(self, key: Callable[[T], Any] | None = None) -> list[T]:
        """Return nodes in topological order (dependencies before dependents).

        Args:
            key: Optional tie-breaking key between nodes that are ready at the
                same time. Defaults to first-appearance order.

        Returns:
            List of nodes where each node appears before all nodes that depend on it.

        Raises:
            CycleError: If the graph contains a cycle.

        """
        return topological_sort(self._ordered_successors(), key=key)

    def find_cycle(self) -> list[T] | None:
        """Return the nodes of one cycle in edge order, or None if acyclic."""
        return find_cycle(self._ordered_successors())

    def __len__(self) -> int:
        """Return the number of nodes in the graph."""
        return len(self._order)

    def __contains__(self, node: object) -> bool:
        """Check if a node is in the graph."""
        return node in self._predecessors or node in self._successors
