"""Skipper - skip build steps whose inputs have not changed.

Usage:
    from skipper import StepPath, StepSkipper, load_graph

    graph = load_graph("/base-graph.gz")
    skipper = StepSkipper(graph, changed_files={"src/main.c"})
    decision = skipper.should_run(StepPath(("make all", "make test")))
    if decision.should_run:
        ...
"""

from skipper.core.errors import MalformedRecordError, SkipperError, TraceStreamError, UnknownStepError
from skipper.graph import DependencyGraph, StepPath, build_graph, load_graph
from skipper.selection import Decision, StepSkipper, read_changed_files

__all__ = [
    "Decision",
    "DependencyGraph",
    "MalformedRecordError",
    "SkipperError",
    "StepPath",
    "StepSkipper",
    "TraceStreamError",
    "UnknownStepError",
    "build_graph",
    "load_graph",
    "read_changed_files",
]

__version__ = "0.1.0"
