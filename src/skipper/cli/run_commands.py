"""Run command — skipper run -- CMD..."""

from __future__ import annotations

import os
import subprocess
import sys
import time
from pathlib import Path

import click

from skipper.buildid import child_wrapper_args, ensure_build_id
from skipper.cli.main import changes_option, console, format_option, graph_option
from skipper.core.config import get_settings
from skipper.core.errors import SkipperError
from skipper.core.logging import SkipperLogger, Verbosity
from skipper.graph.steps import StepPath

# Ancestry of the current step, as a canonical step name. Each wrapper
# extends it for the command it runs, so nested wrappers know their parents.
CMD_TREE_ENV = "SKIPPER_CMD_TREE"


def current_step(command: tuple[str, ...] | list[str], environ: dict | None = None) -> StepPath:
    """Step path for ``command``: inherited ancestry plus the command line.

    Wrapper prefixes are stripped the same way trace tokens are, so a
    command names the same step here and in ``skipper check``.
    """
    environ = os.environ if environ is None else environ
    parent = environ.get(CMD_TREE_ENV)
    ancestry = StepPath.from_name(parent) if parent else StepPath()
    return StepPath.from_tokens([*ancestry.tokens, " ".join(command)])


def execute(args: list[str], env: dict | None = None) -> int:
    """Run a command with inherited stdio and return its exit code."""
    try:
        return subprocess.run(args, env=env).returncode
    except OSError as e:
        console.print(f"[red]Could not run[/red] {args[0]}: {e}")
        return 1


@click.command(context_settings={"ignore_unknown_options": True, "allow_interspersed_args": False})
@graph_option
@changes_option
@format_option
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.pass_context
def run(
    ctx: click.Context,
    graph_path: Path | None,
    changes_path: Path | None,
    trace_format: str | None,
    command: tuple[str, ...],
):
    """Run COMMAND unless the baseline shows none of its inputs changed.

    Use `--` to separate skipper's options from the command's:

        skipper run -- make test
    """
    settings = get_settings()
    build_id = ctx.obj.get("build_id")

    if not build_id:
        # Outermost wrapper: settle the build id, then re-run ourselves with it.
        id_file = settings.resolved_build_id_file
        try:
            build_id = ensure_build_id(id_file)
        except OSError as e:
            console.print(f"[red]Could not read or save build id in {id_file}:[/red] {e}")
            sys.exit(1)
        sys.exit(execute(child_wrapper_args(build_id, sys.argv)))

    graph_path = graph_path or settings.base_graph
    changes_path = changes_path or settings.changes_file
    trace_format = trace_format or settings.trace_format

    verbosity = Verbosity(min(ctx.obj.get("verbose", 0), Verbosity.DEBUG))
    slog = SkipperLogger(verbosity=verbosity, log_dir=settings.log_dir, build_id=build_id)

    try:
        step = current_step(command)
    except SkipperError as e:
        console.print(f"[yellow]Ignoring {CMD_TREE_ENV}:[/yellow] {e}")
        step = StepPath.from_tokens([" ".join(command)])
    should_run = True
    try:
        from skipper.selection import StepSkipper

        start = time.time()
        skipper = StepSkipper.from_files(
            graph_path,
            changes_path,
            trace_format=trace_format,
            ignore_files=settings.ignore_files,
            trace_lookups=settings.trace_lookups,
        )
        slog.graph_loaded(str(graph_path), len(skipper.graph), skipper.graph.file_count, time.time() - start)
    except FileNotFoundError as e:
        if e.filename is not None and Path(e.filename) == Path(graph_path):
            slog.graph_missing(str(graph_path))
        else:
            slog.decision(step.name, True, error=str(e))
    except SkipperError as e:
        slog.decision(step.name, True, error=str(e))
    else:
        start = time.time()
        decision = skipper.should_run(step)
        should_run = decision.should_run
        slog.decision(
            step.name,
            decision.should_run,
            reason=decision.reason,
            error=str(decision.error) if decision.error is not None else None,
            elapsed=time.time() - start,
        )

    if not should_run:
        slog.run_finish()
        return

    env = dict(os.environ)
    env[CMD_TREE_ENV] = step.name
    code = execute(list(command), env=env)
    slog.run_finish()
    sys.exit(code)
