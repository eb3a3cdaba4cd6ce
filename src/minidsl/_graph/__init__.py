"""Graph module providing dependency graph abstractions.

This module contains:
- DependencyGraph[T]: A generic, immutable directed graph
- topological_sort: Algorithm for ordering nodes by dependencies
- find_cycle: Algorithm for locating a cycle to report
"""

from ._algorithms import CycleError, find_cycle, topological_sort
from ._dependency_graph import DependencyGraph

__all__ = ["CycleError", "DependencyGraph", "find_cycle", "topological_sort"]
