"""Skipper CLI — main entry point and shared utilities."""

from __future__ import annotations

import logging
from pathlib import Path

import click
from rich.console import Console

console = Console()


def setup_logging(verbose: int) -> None:
    """Configure logging based on verbosity."""
    if verbose >= 2:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def graph_option(fn):
    """Shared --graph option; falls back to SKIPPER_BASE_GRAPH / settings."""
    return click.option(
        "--graph", "graph_path", default=None, type=click.Path(path_type=Path),
        help="Baseline trace file (plain or .gz)",
    )(fn)


def changes_option(fn):
    """Shared --changes option; falls back to SKIPPER_CHANGES_FILE / settings."""
    return click.option(
        "--changes", "changes_path", default=None, type=click.Path(path_type=Path),
        help="File listing changed paths, one per line",
    )(fn)


def format_option(fn):
    return click.option(
        "--format", "trace_format", default=None, type=click.Choice(["jsonl", "csv"]),
        help="Trace format (default jsonl; csv for legacy traces)",
    )(fn)


@click.group()
@click.option("--verbose", "-v", count=True, help="Verbosity level: -v reasons, -vv debug details")
@click.option("--id", "build_id", default=None, help=(
    "ID for this build. If empty, it is read from the build id file or a new one "
    "is created; skipper then re-executes itself with --id <id>"
))
@click.pass_context
def main(ctx: click.Context, verbose: int, build_id: str | None):
    """Skipper — skip build steps whose inputs have not changed."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["build_id"] = build_id
    setup_logging(verbose)


def cli():
    """Entrypoint that loads .env before running the CLI."""
    from dotenv import load_dotenv

    load_dotenv()
    main()


# Import subcommand modules to register commands
from skipper.cli.info_commands import check, info  # noqa: E402
from skipper.cli.run_commands import run  # noqa: E402

main.add_command(run)
main.add_command(check)
main.add_command(info)
