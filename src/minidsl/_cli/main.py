import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from minidsl._errors import DSLError
from minidsl._export import GraphDocument, PlanDocument, export_document, load_graph_document
from minidsl._graph_literal import lower_graph
from minidsl._ir import OPERAND_SHAPE, validate_block
from minidsl._model import Model, RandomSampler, lower_model
from minidsl._reader import Dialect, read_file

from .config import ConfigError, MinidslConfig, get_config
from .render import render_grammar, render_plan, render_recipe, render_statement_summary, render_trace

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Minidsl CLI: lower graph-literal and model DSL files."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _fail(message: str) -> typer.Exit:
    err_console.print(f"[red]✗ {escape(message)}[/red]")
    return typer.Exit(code=1)


def _load_config() -> MinidslConfig:
    try:
        return get_config()
    except ConfigError as e:
        raise _fail(str(e)) from e


def _parse_bounds(values: list[str]) -> dict[str, int]:
    """Parse ``name=value`` pairs given with ``--bound``."""
    bounds: dict[str, int] = {}
    for item in values:
        name, sep, value = item.partition("=")
        if not sep or not name.strip():
            msg = f"Expected NAME=INT, got '{item}'"
            raise typer.BadParameter(msg, param_hint="--bound")
        try:
            bounds[name.strip()] = int(value)
        except ValueError as e:
            msg = f"Bound '{name.strip()}' must be an integer, got '{value}'"
            raise typer.BadParameter(msg, param_hint="--bound") from e
    return bounds


@app.command()
def check(
    path: Annotated[Path, typer.Argument(help="Path to a DSL source file", exists=True, dir_okay=False)],
    *,
    dialect: Annotated[Dialect, typer.Option("-d", "--dialect", help="Which DSL the file is written in")],
) -> None:
    """Validate a DSL file and summarize its statements."""
    config = _load_config()
    err_console.print()
    err_console.print(f"[cyan]Reading {dialect} block from:[/cyan] {path}")

    try:
        tree = read_file(path, dialect)
        statements = validate_block(tree, dialect)
        if dialect is Dialect.MODEL:
            # Ordering catches unbound references and cycles
            lower_model(tree, max_unroll=config.max_unroll)
        else:
            lower_graph(tree)
    except DSLError as e:
        raise _fail(str(e)) from e

    render_statement_summary(statements, out_console)
    err_console.print()
    err_console.print(f"[green]✓ {path.name} is valid[/green]")
    err_console.print()


@app.command()
def graph(  # noqa: PLR0913
    path: Annotated[
        Path,
        typer.Argument(help="Path to a graph DSL source file or an exported recipe", exists=True, dir_okay=False),
    ],
    *,
    directed: Annotated[
        bool | None,
        typer.Option("--directed/--undirected", help="Force the direction of every edge"),
    ] = None,
    relabel: Annotated[
        bool | None,
        typer.Option("--relabel/--no-relabel", help="Remap node ids to 0..n-1 (config: relabel)"),
    ] = None,
    dedupe: Annotated[
        bool | None,
        typer.Option("--dedupe/--no-dedupe", help="Drop repeated edges (config: dedupe)"),
    ] = None,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Export the recipe to a .json or .toml file"),
    ] = None,
) -> None:
    """Lower a graph-literal file into a graph recipe.

    A ``.json`` or ``.toml`` file exported by this command is loaded as is;
    the lowering options do not apply to it.
    """
    config = _load_config()
    effective_relabel = config.relabel if relabel is None else relabel
    effective_dedupe = config.dedupe if dedupe is None else dedupe

    err_console.print()
    if path.suffix.lower() in {".json", ".toml"}:
        err_console.print(f"[cyan]Loading recipe from:[/cyan] {path}")
        try:
            recipe = load_graph_document(path).to_recipe()
        except ValueError as e:
            raise _fail(f"Invalid recipe document {path.name}: {e}") from e
    else:
        err_console.print(f"[cyan]Lowering graph from:[/cyan] {path}")
        try:
            recipe = lower_graph(
                read_file(path, Dialect.GRAPH),
                directed=directed,
                relabel=effective_relabel,
                dedupe=effective_dedupe,
            )
        except DSLError as e:
            raise _fail(str(e)) from e
    err_console.print()

    render_recipe(recipe, out_console)

    if output is not None:
        err_console.print()
        err_console.print(f"[cyan]Exporting recipe to:[/cyan] {output}")
        try:
            export_document(GraphDocument.from_recipe(recipe), output)
        except ValueError as e:
            raise _fail(str(e)) from e

    err_console.print()
    err_console.print("[green]✓ Graph lowered[/green]")
    err_console.print()


@app.command()
def model(  # noqa: PLR0913
    path: Annotated[Path, typer.Argument(help="Path to a model DSL source file", exists=True, dir_okay=False)],
    *,
    bound: Annotated[
        list[str] | None,
        typer.Option("-b", "--bound", help="Value of a dynamic loop bound, as NAME=INT (repeatable)"),
    ] = None,
    sample: Annotated[
        bool,
        typer.Option("--sample", help="Draw one sample from the model"),
    ] = False,
    seed: Annotated[
        int | None,
        typer.Option("--seed", help="Seed for --sample (config: seed)"),
    ] = None,
    emit: Annotated[
        bool,
        typer.Option("--emit", help="Print the generated Python source instead of the plan"),
    ] = False,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Export the plan (and sample) to a .json or .toml file"),
    ] = None,
) -> None:
    """Lower a model file into a dependency-ordered sampling plan."""
    config = _load_config()
    bounds = _parse_bounds(bound or [])

    err_console.print()
    err_console.print(f"[cyan]Lowering model from:[/cyan] {path}")
    try:
        plan = lower_model(read_file(path, Dialect.MODEL), max_unroll=config.max_unroll)
    except DSLError as e:
        raise _fail(str(e)) from e
    err_console.print(f"[cyan]Order:[/cyan] {escape(', '.join(plan.order)) or '-'}")
    err_console.print()

    if emit:
        typer.echo(Model(plan, name=path.stem.replace("-", "_")).source, nl=False)
    else:
        render_plan(plan, out_console)

    trace = None
    if sample:
        effective_seed = config.seed if seed is None else seed
        try:
            trace = plan.run(RandomSampler(seed=effective_seed), **bounds)
        except (TypeError, DSLError) as e:
            raise _fail(str(e)) from e
        err_console.print()
        render_trace(trace, out_console)

    if output is not None:
        err_console.print()
        err_console.print(f"[cyan]Exporting plan to:[/cyan] {output}")
        try:
            export_document(PlanDocument.from_plan(plan, sample=trace), output)
        except ValueError as e:
            raise _fail(str(e)) from e

    err_console.print()
    err_console.print("[green]✓ Model lowered[/green]")
    err_console.print()


@app.command()
def grammar(
    dialect: Annotated[
        Dialect | None,
        typer.Option("-d", "--dialect", help="Show only this dialect"),
    ] = None,
) -> None:
    """Show the statement shapes each dialect accepts."""
    dialects = [dialect] if dialect is not None else list(Dialect)
    for d in dialects:
        out_console.print(f"[bold]{d}[/bold]")
        render_grammar(d, out_console)
        if d is Dialect.MODEL:
            out_console.print(f"[dim]{escape(OPERAND_SHAPE)}[/dim]")
        out_console.print()


def main() -> None:
    app()
