"""Inspection commands — skipper check, skipper info."""

from __future__ import annotations

import sys
from pathlib import Path

import click
from rich import box
from rich.markup import escape
from rich.table import Table

from skipper.cli.main import changes_option, console, format_option, graph_option
from skipper.core.config import get_settings
from skipper.core.errors import SkipperError
from skipper.graph.steps import StepPath


@click.command()
@graph_option
@changes_option
@format_option
@click.argument("tokens", nargs=-1, required=True)
def check(graph_path: Path | None, changes_path: Path | None, trace_format: str | None, tokens: tuple[str, ...]):
    """Print whether a step would run, without running anything.

    TOKENS is the step's ancestry, outermost command first:

        skipper check "make all" "make test"
    """
    from skipper.selection import StepSkipper

    settings = get_settings()
    try:
        skipper = StepSkipper.from_files(
            graph_path or settings.base_graph,
            changes_path or settings.changes_file,
            trace_format=trace_format or settings.trace_format,
            ignore_files=settings.ignore_files,
            trace_lookups=settings.trace_lookups,
        )
    except (OSError, SkipperError) as e:
        console.print(f"[red]Error loading inputs:[/red] {e}")
        sys.exit(1)

    step = StepPath.from_tokens(tokens)
    decision = skipper.should_run(step)
    if decision.error is not None:
        console.print(f"[yellow]run[/yellow] {escape(step.name)} [dim]({escape(str(decision.error))})[/dim]")
    elif decision.should_run:
        console.print(f"[green]run[/green] {escape(step.name)}")
        console.print(f"  [dim]{escape(decision.reason)}[/dim]")
    else:
        console.print(f"[cyan]skip[/cyan] {escape(step.name)}")


@click.command()
@graph_option
@format_option
@click.option("--steps", "show_steps", is_flag=True, help="List every step name")
def info(graph_path: Path | None, trace_format: str | None, show_steps: bool):
    """Summarize a baseline trace: step and file counts."""
    from skipper.graph.dependency import load_graph

    settings = get_settings()
    graph_path = graph_path or settings.base_graph
    try:
        graph = load_graph(
            graph_path,
            trace_format or settings.trace_format,
            ignore_files=settings.ignore_files,
        )
    except (OSError, SkipperError) as e:
        console.print(f"[red]Error loading graph:[/red] {e}")
        sys.exit(1)

    table = Table(title="Dependency Graph", box=box.ROUNDED, show_header=False, padding=(0, 2))
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Trace", str(graph_path))
    table.add_row("Steps", str(len(graph)))
    table.add_row("Files", str(graph.file_count))
    table.add_row("Written files", str(len(graph.file_writers)))
    console.print(table)

    if show_steps:
        for name in sorted(graph.steps):
            console.print(f"  {name}", markup=False, highlight=False)
