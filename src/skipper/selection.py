"""Step selection — decide which build steps should run for a build."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path

from skipper.core.config import DEFAULT_IGNORE_FILES
from skipper.core.errors import SkipperError, TraceStreamError
from skipper.graph.dependency import DependencyGraph, load_graph
from skipper.graph.steps import StepPath
from skipper.graph.trace import TraceFormat

logger = logging.getLogger(__name__)


@dataclass
class Decision:
    """Outcome of a skip check. Only ``should_run`` has control-flow meaning."""

    should_run: bool
    reason: str = ""
    error: SkipperError | None = None


def read_changed_files(path: str | Path) -> set[str]:
    """Read the changed-file list: one path per line, blank lines ignored."""
    try:
        with open(path, encoding="utf-8") as f:
            return {line.rstrip("\r\n") for line in f if line.strip()}
    except FileNotFoundError:
        raise
    except (OSError, UnicodeDecodeError) as e:
        raise TraceStreamError(f"could not read changed files from {path}: {e}") from e


class StepSkipper:
    """Answers "should this step run?" against a baseline graph.

    Errors from the graph never turn into a skip: an unknown step or a failed
    lookup is reported as "should run" together with the error, and the
    caller decides what to do with it.
    """

    def __init__(self, graph: DependencyGraph, changed_files: Iterable[str]):
        self.graph = graph
        self.changed_files = sorted(set(changed_files))

    @classmethod
    def from_files(
        cls,
        graph_path: str | Path,
        changes_path: str | Path,
        *,
        trace_format: TraceFormat | str = TraceFormat.JSONL,
        ignore_files: Iterable[str] = DEFAULT_IGNORE_FILES,
        trace_lookups: bool = False,
    ) -> StepSkipper:
        """Load the baseline graph and changed-file list from disk.

        Raises FileNotFoundError if either input is missing, and SkipperError
        if either is unreadable or malformed.
        """
        graph = load_graph(
            graph_path,
            trace_format,
            ignore_files=ignore_files,
            trace_lookups=trace_lookups,
        )
        return cls(graph, read_changed_files(changes_path))

    def should_run(self, step: StepPath) -> Decision:
        try:
            depends, reason = self.graph.depends_on_files(step, self.changed_files)
        except SkipperError as e:
            logger.warning("Could not decide for step %s: %s", step.name, e)
            return Decision(should_run=True, reason=str(e), error=e)
        if depends:
            logger.info("%s", reason)
        return Decision(should_run=depends, reason=reason)
