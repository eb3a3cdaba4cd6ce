"""Intermediate representation: validated statements and the grammar that produces them.

Key types:
- StatementKind: The closed set of statement kinds
- DirectedEdge, UndirectedEdge, Binding, Conditional, StaticLoop, DynamicLoop:
  One dataclass per statement kind
- GRAPH_GRAMMAR, MODEL_GRAMMAR: Shape rules per dialect
- validate_block: Classify every statement of a block, all-or-nothing
"""

from ._grammar import (
    GRAPH_GRAMMAR,
    MODEL_GRAMMAR,
    OPERAND_SHAPE,
    ShapeRule,
    classify_statement,
    grammar_for,
    iter_references,
    range_args,
    validate_block,
)
from ._statements import (
    Binding,
    Conditional,
    DirectedEdge,
    DynamicLoop,
    Statement,
    StatementKind,
    StaticLoop,
    UndirectedEdge,
)

__all__ = [
    "GRAPH_GRAMMAR",
    "MODEL_GRAMMAR",
    "OPERAND_SHAPE",
    "Binding",
    "Conditional",
    "DirectedEdge",
    "DynamicLoop",
    "ShapeRule",
    "Statement",
    "StatementKind",
    "StaticLoop",
    "UndirectedEdge",
    "classify_statement",
    "grammar_for",
    "iter_references",
    "range_args",
    "validate_block",
]
