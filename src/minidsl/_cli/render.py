"""Rich rendering utilities for CLI commands."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from minidsl._graph_literal import to_dependency_graph
from minidsl._ir import StatementKind, grammar_for
from minidsl._model import BranchStep, LoopStep, SampleStep

if TYPE_CHECKING:
    from collections.abc import Sequence

    from rich.console import Console

    from minidsl._graph_literal import GraphRecipe
    from minidsl._ir import Statement
    from minidsl._model import SamplingPlan, Step
    from minidsl._reader import Dialect


def render_statement_summary(statements: Sequence[Statement], console: Console) -> None:
    """Render how many statements of each kind a block has.

    Args:
        statements: Validated statements of the block.
        console: Rich Console to output to.

    """
    counts = Counter(stmt.kind for stmt in statements)

    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Kind", style="bold", no_wrap=True)
    table.add_column("Count", justify="right")
    table.add_column("Description", style="dim")

    for kind in StatementKind:
        if counts[kind]:
            table.add_row(kind.value, str(counts[kind]), kind.__doc__ or "")

    console.print(table)


def render_recipe(recipe: GraphRecipe, console: Console) -> None:
    """Render a graph recipe: an edge table followed by roots and leaves.

    Args:
        recipe: The recipe to render.
        console: Rich Console to output to.

    """
    arrow = "→" if recipe.directed else "—"
    table = Table(show_header=True, header_style="bold cyan", box=None)
    table.add_column("#", justify="right", style="dim")
    table.add_column("Edge")
    if recipe.relabeled:
        table.add_column("Original", style="dim")

    for i, ((u, v), (a, b)) in enumerate(zip(recipe.edges, recipe.labeled_edges(), strict=True)):
        row = [str(i), f"{u} {arrow} {v}"]
        if recipe.relabeled:
            row.append(f"{a} {arrow} {b}")
        table.add_row(*row)

    console.print(table)
    console.print()
    kind = "directed" if recipe.directed else "undirected"
    console.print(f"[cyan]Nodes:[/cyan] {recipe.node_count} ({kind}, {len(recipe.edges)} edges)")

    if recipe.directed:
        graph = to_dependency_graph(recipe)
        console.print(f"[cyan]Roots:[/cyan] {', '.join(str(n) for n in graph.roots()) or '-'}")
        console.print(f"[cyan]Leaves:[/cyan] {', '.join(str(n) for n in graph.leaves()) or '-'}")


def _add_steps(tree: Tree, steps: tuple[Step, ...]) -> None:
    for step in steps:
        match step:
            case SampleStep():
                tree.add(escape(str(step)))
            case BranchStep(then_steps=then_steps, else_steps=else_steps):
                branch = tree.add(f"[magenta]{escape(str(step))}[/magenta]")
                _add_steps(branch.add("[dim]then[/dim]"), then_steps)
                if else_steps:
                    _add_steps(branch.add("[dim]else[/dim]"), else_steps)
            case LoopStep(body=body):
                _add_steps(tree.add(f"[yellow]{escape(str(step))}[/yellow]"), body)


def render_plan(plan: SamplingPlan, console: Console) -> None:
    """Render a sampling plan as a tree of steps in execution order."""
    tree = Tree("[bold]Sampling plan[/bold]")
    _add_steps(tree, plan.steps)
    console.print(tree)
    if plan.parameters:
        console.print(f"[cyan]Parameters:[/cyan] {', '.join(plan.parameters)}")


def render_trace(trace: dict[str, Any], console: Console) -> None:
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Key", style="bold")
    table.add_column("Value", justify="right")
    for key, value in trace.items():
        table.add_row(escape(key), f"{value:.6g}" if isinstance(value, float) else str(value))
    console.print(table)


def render_grammar(dialect: Dialect, console: Console) -> None:
    """Render the statement shapes a dialect accepts."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Kind", style="bold", no_wrap=True)
    table.add_column("Shape")
    table.add_column("Example", style="green")
    table.add_column("Description", style="dim")

    for rule in grammar_for(dialect):
        table.add_row(rule.kind.value, escape(rule.shape), escape(rule.example), rule.kind.__doc__ or "")

    console.print(table)
