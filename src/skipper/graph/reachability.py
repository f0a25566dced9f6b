"""Reachability — does a step depend, directly or transitively, on changed files?

A step depends on a file F if it read F, or if it read a file written by a
step that depends on F. The walk goes backwards from each file the step read,
through the steps that wrote that file, to the files those steps read.

Each lookup carries a :class:`LookupState` recording which writer steps have
already been expanded. Once a step is expanded, the file that led to it is
irrelevant: everything the step read has been emitted, so reaching it again
through another file adds nothing. That keeps diamond-shaped graphs linear in
the number of steps, and since every cycle must pass through some step twice,
it also guarantees termination without checking the graph for cycles.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field

from skipper.core.errors import UnknownStepError
from skipper.graph.dependency import DependencyGraph
from skipper.graph.steps import StepPath

logger = logging.getLogger(__name__)


@dataclass
class LookupState:
    """Per-query scratch state. Never share one across concurrent queries."""

    visited: set[str] = field(default_factory=set)

    def mark(self, step_name: str) -> bool:
        """Mark a step as expanded. Returns False if it already was."""
        if step_name in self.visited:
            return False
        self.visited.add(step_name)
        return True


def _expand(graph: DependencyGraph, state: LookupState, path: str) -> Iterator[str]:
    """Yield the files read by writers of ``path`` not yet expanded in this query."""
    if graph.is_ignored(path):
        return
    for writer in graph.writers_of(path):
        if not state.mark(writer.name):
            continue
        if graph.trace_lookups:
            logger.debug("  %s depends on step %s (step writes it)", path, writer.name)
        for read in writer.read_files:
            # A step that reads and writes the same file is not its own dependency.
            if read == path:
                continue
            yield read


def file_deps(graph: DependencyGraph, state: LookupState, path: str) -> Iterator[str]:
    """Yield every file ``path`` transitively depends on, depth first.

    Uses an explicit stack rather than recursion, so trace depth is not
    bounded by the interpreter's recursion limit. Files are yielded in
    traversal order; callers may stop early.
    """
    stack = [_expand(graph, state, path)]
    while stack:
        dep = next(stack[-1], None)
        if dep is None:
            stack.pop()
            continue
        yield dep
        stack.append(_expand(graph, state, dep))


def depends_on_files(
    graph: DependencyGraph,
    step: StepPath,
    changed_files: Iterable[str],
) -> tuple[bool, str]:
    """Check whether ``step`` depends on any of ``changed_files``.

    Returns (depends, reason). The reason is for the end user's benefit and
    may change at any point; do not parse it.

    Raises:
        UnknownStepError: if the step never appeared in the baseline trace.
    """
    changed = {graph.normalize(f) for f in changed_files}

    node = graph.get_step(step)
    if node is None:
        raise UnknownStepError(step.name)
    if graph.trace_lookups:
        logger.debug("=> step %s", node.name)

    state = LookupState()
    for read in node.read_files:
        if read in changed:
            return True, f"step {node.name} reads file {read!r} which changed"
        for dep in file_deps(graph, state, read):
            if dep in changed:
                return True, f"step {node.name} transitively depends on {dep!r} via a dependency"
    return False, ""
