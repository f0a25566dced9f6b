"""Structured logging and verbosity levels for skip decisions."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from pathlib import Path
from typing import Any

from rich.markup import escape


class Verbosity(IntEnum):
    """Verbosity levels for console output."""

    DEFAULT = 0   # Final decision only
    VERBOSE = 1   # + graph load summary, decision reasons
    DEBUG = 2     # + timings


@dataclass
class DecisionRecord:
    """One skip/run decision made for a step."""

    step: str
    should_run: bool
    reason: str = ""
    error: str | None = None
    time_seconds: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        return {
            "step": self.step,
            "should_run": self.should_run,
            "reason": self.reason,
            "error": self.error,
            "time_seconds": self.time_seconds,
        }


@dataclass
class RunLog:
    """Structured log of one wrapper invocation.

    The dict format is::

        {
            "run_id": "20240315T101500Z",
            "build_id": "20240315T101455Z-4f2a9c0e1b7d",
            "graph_steps": 120,
            "decisions": [
                {"step": "[\\"make\\",\\"test\\"]", "should_run": true, ...},
            ],
            "total_run": 1,
            "total_skipped": 0,
            "total_errors": 0,
            "total_time": 0.2,
        }
    """

    run_id: str = ""
    build_id: str = ""
    graph_steps: int = 0
    decisions: list[DecisionRecord] = field(default_factory=list)
    total_run: int = 0
    total_skipped: int = 0
    total_errors: int = 0
    total_time: float = 0.0

    def finalize(self) -> None:
        """Compute totals from decision data."""
        self.total_run = sum(1 for d in self.decisions if d.should_run)
        self.total_skipped = sum(1 for d in self.decisions if not d.should_run)
        self.total_errors = sum(1 for d in self.decisions if d.error is not None)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "build_id": self.build_id,
            "graph_steps": self.graph_steps,
            "decisions": [d.to_dict() for d in self.decisions],
            "total_run": self.total_run,
            "total_skipped": self.total_skipped,
            "total_errors": self.total_errors,
            "total_time": self.total_time,
        }


class SkipperLogger:
    """Structured logger for wrapper invocations.

    Writes JSONL log files to log_dir/ and optionally emits console
    output via Rich based on verbosity level.
    """

    def __init__(
        self,
        verbosity: Verbosity = Verbosity.DEFAULT,
        log_dir: Path | None = None,
        build_id: str = "",
    ):
        self.verbosity = verbosity
        self.log_dir = log_dir
        self.run_log = RunLog(
            run_id=datetime.now(timezone.utc).strftime("%Y%m%dT%H%M%SZ"),
            build_id=build_id,
        )
        self._log_file = None
        self._log_path: Path | None = None
        self._start = time.time()

        if log_dir is not None:
            log_dir.mkdir(parents=True, exist_ok=True)
            self._log_path = log_dir / f"{self.run_log.run_id}.jsonl"
            self._log_file = open(self._log_path, "a")

    @property
    def log_path(self) -> Path | None:
        return self._log_path

    def _write_event(self, event: dict[str, Any]) -> None:
        """Write a JSON event to the JSONL log file."""
        if self._log_file is not None:
            event["timestamp"] = datetime.now(timezone.utc).isoformat()
            event["build_id"] = self.run_log.build_id
            self._log_file.write(json.dumps(event) + "\n")
            self._log_file.flush()

    def _console_print(self, message: str, min_verbosity: Verbosity) -> None:
        """Print to console if verbosity is high enough."""
        if self.verbosity >= min_verbosity:
            from rich.console import Console

            Console().print(message)

    # -- Graph events --

    def graph_loaded(self, path: str, steps: int, files: int, elapsed: float) -> None:
        """Log that the baseline dependency graph finished loading."""
        self.run_log.graph_steps = steps
        self._write_event({
            "event": "graph_loaded",
            "path": path,
            "steps": steps,
            "files": files,
            "time_seconds": round(elapsed, 3),
        })
        self._console_print(
            f"[dim]dependency graph: {steps} steps, {files} files[/dim]",
            Verbosity.VERBOSE,
        )
        self._console_print(
            f"[dim]dep graph build time: {elapsed:.3f}s[/dim]",
            Verbosity.DEBUG,
        )

    def graph_missing(self, path: str) -> None:
        """Log that no baseline graph exists, so everything runs."""
        self._write_event({"event": "graph_missing", "path": path})
        self._console_print(
            "skipper running because the base dependency graph is missing",
            Verbosity.DEFAULT,
        )

    # -- Decision events --

    def decision(
        self,
        step: str,
        should_run: bool,
        reason: str = "",
        error: str | None = None,
        elapsed: float = 0.0,
    ) -> DecisionRecord:
        """Record a skip/run decision for a step."""
        record = DecisionRecord(
            step=step,
            should_run=should_run,
            reason=reason,
            error=error,
            time_seconds=elapsed,
        )
        self.run_log.decisions.append(record)

        self._write_event({"event": "decision", **record.to_dict()})

        if error is not None:
            self._console_print(f"[red]skipper error:[/red] {escape(error)}", Verbosity.DEFAULT)
            self._console_print(
                "skipper shouldRun failure. Falling back to running",
                Verbosity.DEFAULT,
            )
        elif should_run:
            self._console_print("skipper decided we should run", Verbosity.DEFAULT)
            if reason:
                self._console_print(f"  [dim]{escape(reason)}[/dim]", Verbosity.VERBOSE)
        else:
            self._console_print(
                f"skipper decided we should skip: [bold]{escape(step)}[/bold]",
                Verbosity.DEFAULT,
            )
        return record

    # -- Run lifecycle --

    def run_finish(self) -> None:
        """Finalize totals and close the log file."""
        self.run_log.total_time = time.time() - self._start
        self.run_log.finalize()

        self._write_event({
            "event": "run_finish",
            "total_run": self.run_log.total_run,
            "total_skipped": self.run_log.total_skipped,
            "total_errors": self.run_log.total_errors,
            "total_time": round(self.run_log.total_time, 3),
        })
        self.close()

    def close(self) -> None:
        """Close the log file if open."""
        if self._log_file is not None:
            self._log_file.close()
            self._log_file = None
