"""Baseline dependency graph and reachability queries."""

from skipper.graph.dependency import DependencyGraph, Step, build_graph, load_graph, normalize_path
from skipper.graph.reachability import LookupState, depends_on_files, file_deps
from skipper.graph.steps import StepPath, strip_wrapper, walk_ancestors
from skipper.graph.trace import AccessMode, AccessRecord, TraceFormat, iter_records, open_trace_file

__all__ = [
    "AccessMode",
    "AccessRecord",
    "DependencyGraph",
    "LookupState",
    "Step",
    "StepPath",
    "TraceFormat",
    "build_graph",
    "depends_on_files",
    "file_deps",
    "iter_records",
    "load_graph",
    "normalize_path",
    "open_trace_file",
    "strip_wrapper",
    "walk_ancestors",
]
