"""Lowering of graph-literal and probabilistic-model DSL blocks."""

__all__ = [
    "GRAPH_GRAMMAR",
    "MODEL_GRAMMAR",
    "Binding",
    "Conditional",
    "CyclicDependencyError",
    "DSLError",
    "DependencyGraph",
    "Dialect",
    "DirectedEdge",
    "DynamicLoop",
    "Expr",
    "ExtractedEdges",
    "GraphBackend",
    "GraphDocument",
    "GraphRecipe",
    "Head",
    "Model",
    "OperandTypeError",
    "PlanDocument",
    "RandomSampler",
    "ReadError",
    "Sampler",
    "SamplingError",
    "SamplingPlan",
    "ShapeError",
    "SourcePos",
    "StatementKind",
    "StaticLoop",
    "Symbol",
    "UnboundReferenceError",
    "UndirectedEdge",
    "UndirectedGraphBackend",
    "build_graph",
    "export_document",
    "extract_edge",
    "extract_edges",
    "format_expr",
    "graph_literal",
    "lower_edges",
    "lower_graph",
    "lower_model",
    "model",
    "read_file",
    "read_function",
    "read_source",
    "render_source",
    "validate_block",
]

from ._errors import (
    CyclicDependencyError,
    DSLError,
    OperandTypeError,
    ReadError,
    SamplingError,
    ShapeError,
    UnboundReferenceError,
)
from ._export import GraphDocument, PlanDocument, export_document
from ._expr import Expr, Head, SourcePos, Symbol, format_expr
from ._graph import DependencyGraph
from ._graph_literal import (
    ExtractedEdges,
    GraphBackend,
    GraphRecipe,
    UndirectedGraphBackend,
    build_graph,
    extract_edge,
    extract_edges,
    lower_edges,
    lower_graph,
)
from ._ir import (
    GRAPH_GRAMMAR,
    MODEL_GRAMMAR,
    Binding,
    Conditional,
    DirectedEdge,
    DynamicLoop,
    StatementKind,
    StaticLoop,
    UndirectedEdge,
    validate_block,
)
from ._macros import graph_literal, model
from ._model import Model, RandomSampler, Sampler, SamplingPlan, lower_model, render_source
from ._reader import Dialect, read_file, read_function, read_source
