"""Dependency graph — which steps read which files, and who wrote them.

Assume the following baseline trace, in ``step, file, mode`` form::

    step1,F1,R
    step1,F2,W
    step2,F2,R
    step2,F3,W
    step3,F3,R

step3 depends on F1: it reads F3, which step2 wrote after reading F2, which
step1 wrote after reading F1. To answer that we only need to store what files
each step read, and which steps wrote a given file. Both indexes are filled in
one pass over the trace and never change afterwards.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from skipper.core.config import DEFAULT_IGNORE_FILES
from skipper.graph.steps import StepPath, walk_ancestors
from skipper.graph.trace import AccessMode, AccessRecord, TraceFormat, iter_records, open_trace_file

logger = logging.getLogger(__name__)


def normalize_path(path: str, cwd: str) -> str:
    """Return ``path`` in absolute form, joining relative paths onto ``cwd``.

    This relies on ``cwd`` matching the directory the tracer ran in.
    """
    if os.path.isabs(path):
        return path
    return os.path.normpath(os.path.join(cwd, path))


@dataclass
class Step:
    """One node in the graph: a step and every file it (or a descendant) read."""

    name: str
    read_files: dict[str, None] = field(default_factory=dict)

    def add_read(self, path: str) -> None:
        self.read_files[path] = None


@dataclass
class DependencyGraph:
    """Per-step read sets plus a reverse index from file to writer steps."""

    steps: dict[str, Step] = field(default_factory=dict)
    file_writers: dict[str, list[Step]] = field(default_factory=dict)
    ignore_files: frozenset[str] = frozenset(DEFAULT_IGNORE_FILES)
    cwd: str = field(default_factory=os.getcwd)
    trace_lookups: bool = False

    def __len__(self) -> int:
        return len(self.steps)

    def __contains__(self, step: StepPath | str) -> bool:
        name = step.name if isinstance(step, StepPath) else step
        return name in self.steps

    def __str__(self) -> str:
        return f"graph with {len(self.steps)} steps"

    @property
    def file_count(self) -> int:
        """Number of distinct files read or written by any step."""
        files = set(self.file_writers)
        for step in self.steps.values():
            files.update(step.read_files)
        return len(files)

    def get_step(self, step: StepPath | str) -> Step | None:
        name = step.name if isinstance(step, StepPath) else step
        return self.steps.get(name)

    def writers_of(self, path: str) -> list[Step]:
        return self.file_writers.get(path, [])

    def is_ignored(self, path: str) -> bool:
        return path in self.ignore_files

    def normalize(self, path: str) -> str:
        return normalize_path(path, self.cwd)

    def _step_for(self, path: StepPath) -> Step:
        name = path.name
        step = self.steps.get(name)
        if step is None:
            step = Step(name=name)
            self.steps[name] = step
        return step

    def add_record(self, record: AccessRecord) -> None:
        """Record one access against the step and all of its ancestors."""
        path = self.normalize(record.file)
        if self.is_ignored(path):
            return
        for ancestor in walk_ancestors(record.cmd_tree):
            step = self._step_for(ancestor)
            if record.mode is AccessMode.READ:
                step.add_read(path)
            else:
                self.file_writers.setdefault(path, []).append(step)

    def depends_on_files(self, step: StepPath, changed_files: Iterable[str]) -> tuple[bool, str]:
        """Whether ``step`` transitively depends on any of ``changed_files``.

        See :func:`skipper.graph.reachability.depends_on_files`.
        """
        from skipper.graph.reachability import depends_on_files

        return depends_on_files(self, step, changed_files)


def build_graph(
    records: Iterable[AccessRecord],
    *,
    ignore_files: Iterable[str] = DEFAULT_IGNORE_FILES,
    cwd: str | None = None,
    trace_lookups: bool = False,
) -> DependencyGraph:
    """Build a DependencyGraph from a baseline trace.

    Construction is all-or-nothing: a malformed record or a stream failure
    propagates and no graph is returned.
    """
    cwd = cwd if cwd is not None else os.getcwd()
    graph = DependencyGraph(
        ignore_files=frozenset(normalize_path(p, cwd) for p in ignore_files),
        cwd=cwd,
        trace_lookups=trace_lookups,
    )
    start = time.time()
    count = 0
    for record in records:
        graph.add_record(record)
        count += 1
    logger.debug(
        "dep graph build time: %.3fs (%d records, %d steps)",
        time.time() - start, count, len(graph.steps),
    )
    return graph


def load_graph(
    path: str | Path,
    fmt: TraceFormat | str = TraceFormat.JSONL,
    **kwargs,
) -> DependencyGraph:
    """Open a (possibly gzipped) trace file and build its graph."""
    with open_trace_file(path) as stream:
        graph = build_graph(iter_records(stream, fmt), **kwargs)
    logger.info("Loaded %s from %s", graph, path)
    return graph
