"""Serialize graph recipes and sampling plans as JSON or TOML documents."""

from __future__ import annotations

import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any, Literal

import tomli_w
from pydantic import BaseModel, Field

from ._expr import format_expr
from ._graph_literal import GraphRecipe
from ._model import BranchStep, LoopStep, SampleStep

if TYPE_CHECKING:
    from ._model import SamplingPlan, Step

logger = logging.getLogger(__name__)

type ExportFormat = Literal["json", "toml"]


class GraphDocument(BaseModel):
    """Serializable form of a `GraphRecipe`."""

    node_count: int
    directed: bool = True
    relabeled: bool = True
    labels: list[int] = Field(default_factory=list)
    edges: list[tuple[int, int]] = Field(default_factory=list)

    @classmethod
    def from_recipe(cls, recipe: GraphRecipe) -> GraphDocument:
        return cls(
            node_count=recipe.node_count,
            directed=recipe.directed,
            relabeled=recipe.relabeled,
            labels=list(recipe.labels),
            edges=list(recipe.edges),
        )

    def to_recipe(self) -> GraphRecipe:
        return GraphRecipe(
            node_count=self.node_count,
            edges=tuple(self.edges),
            directed=self.directed,
            labels=tuple(self.labels),
            relabeled=self.relabeled,
        )


class StepDocument(BaseModel):
    """One step of a plan. Which fields are set depends on ``kind``."""

    kind: Literal["sample", "branch", "loop"]
    line: int | None = None
    target: str | None = None
    distribution: str | None = None
    args: list[str] | None = None
    condition: str | None = None
    then_steps: list[StepDocument] | None = None
    else_steps: list[StepDocument] | None = None
    var: str | None = None
    bounds: list[str] | None = None
    body: list[StepDocument] | None = None

    @classmethod
    def from_step(cls, step: Step) -> StepDocument:
        line = step.position.line if step.position is not None else None
        match step:
            case SampleStep(target=target, distribution=distribution, args=args):
                return cls(
                    kind="sample",
                    line=line,
                    target=format_expr(target),
                    distribution=distribution,
                    args=[format_expr(a) for a in args],
                )
            case BranchStep(condition=condition, then_steps=then_steps, else_steps=else_steps):
                return cls(
                    kind="branch",
                    line=line,
                    condition=format_expr(condition),
                    then_steps=[cls.from_step(s) for s in then_steps],
                    else_steps=[cls.from_step(s) for s in else_steps],
                )
            case LoopStep(var=var, bounds=bounds, body=body):
                return cls(
                    kind="loop",
                    line=line,
                    var=var,
                    bounds=[format_expr(b) for b in bounds],
                    body=[cls.from_step(s) for s in body],
                )
            case _:
                msg = f"Unknown step type: {type(step)}"
                raise TypeError(msg)


class PlanDocument(BaseModel):
    """Serializable form of a `SamplingPlan`, optionally with one sampled trace."""

    parameters: list[str] = Field(default_factory=list)
    order: list[str] = Field(default_factory=list)
    steps: list[StepDocument] = Field(default_factory=list)
    sample: dict[str, Any] | None = None

    @classmethod
    def from_plan(cls, plan: SamplingPlan, sample: dict[str, Any] | None = None) -> PlanDocument:
        return cls(
            parameters=list(plan.parameters),
            order=list(plan.order),
            steps=[StepDocument.from_step(s) for s in plan.steps],
            sample=sample,
        )


def format_from_path(path: Path) -> ExportFormat:
    """Pick the export format from a file suffix.

    Raises:
        ValueError: If the suffix is neither ``.json`` nor ``.toml``.

    """
    match path.suffix.lower():
        case ".json":
            return "json"
        case ".toml":
            return "toml"
        case suffix:
            msg = f"Unsupported export format '{suffix}' (use .json or .toml)"
            raise ValueError(msg)


def dumps_document(document: BaseModel, fmt: ExportFormat) -> str:
    """Serialize a document. TOML has no null, so unset fields are omitted."""
    if fmt == "json":
        return document.model_dump_json(indent=2, exclude_none=True) + "\n"
    return tomli_w.dumps(document.model_dump(mode="json", exclude_none=True))


def export_document(document: BaseModel, output_path: Path | str) -> None:
    """Write a document to a ``.json`` or ``.toml`` file."""
    output_path = Path(output_path)
    text = dumps_document(document, format_from_path(output_path))
    output_path.write_text(text, encoding="utf-8")
    logger.debug(f"Exported {type(document).__name__} to {output_path}")


def load_graph_document(input_path: Path | str) -> GraphDocument:
    """Load a graph document written by `export_document`."""
    input_path = Path(input_path)
    if format_from_path(input_path) == "json":
        return GraphDocument.model_validate_json(input_path.read_text(encoding="utf-8"))
    with input_path.open("rb") as f:
        return GraphDocument.model_validate(tomllib.load(f))
