"""Trace records — the file accesses observed during a baseline build.

The current tracer writes one JSON object per line::

    {"CmdTree":["build","compile"],"Mode":"R","File":"src/main.c"}

Older tracers wrote CSV rows of ``step,file,mode`` where ``step`` is itself a
comma-joined, CSV-quoted list of command tokens. Both formats are readable;
JSON lines are the default.
"""

from __future__ import annotations

import csv
import gzip
import io
import json
from collections.abc import Iterator
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import IO

from skipper.core.errors import MalformedRecordError, TraceStreamError
from skipper.graph.steps import StepPath


class AccessMode(str, Enum):
    READ = "R"
    WRITE = "W"


class TraceFormat(str, Enum):
    JSONL = "jsonl"
    CSV = "csv"


@dataclass(frozen=True)
class AccessRecord:
    """One observed file access by a step."""

    cmd_tree: StepPath
    mode: AccessMode
    file: str


def _parse_mode(value: object, line_no: int) -> AccessMode:
    try:
        return AccessMode(value)
    except ValueError:
        raise MalformedRecordError(f"unknown access mode {value!r}", line_no) from None


def parse_json_record(line: str, line_no: int = 0) -> AccessRecord:
    """Parse one JSON-lines trace record."""
    try:
        data = json.loads(line)
    except json.JSONDecodeError as e:
        raise MalformedRecordError(f"invalid JSON: {e}", line_no) from e
    if not isinstance(data, dict):
        raise MalformedRecordError("record is not a JSON object", line_no)

    missing = [key for key in ("CmdTree", "Mode", "File") if key not in data]
    if missing:
        raise MalformedRecordError(f"missing fields: {', '.join(missing)}", line_no)

    cmd_tree = data["CmdTree"]
    if cmd_tree is None:
        cmd_tree = []
    if not isinstance(cmd_tree, list) or not all(isinstance(t, str) for t in cmd_tree):
        raise MalformedRecordError("CmdTree must be a list of strings", line_no)
    file = data["File"]
    if not isinstance(file, str) or not file:
        raise MalformedRecordError("File must be a non-empty string", line_no)

    return AccessRecord(
        cmd_tree=StepPath.from_tokens(cmd_tree),
        mode=_parse_mode(data["Mode"], line_no),
        file=file,
    )


def iter_json_records(stream: IO[str]) -> Iterator[AccessRecord]:
    """Yield records from a JSON-lines stream, skipping blank lines."""
    try:
        for line_no, line in enumerate(stream, start=1):
            if not line.strip():
                continue
            yield parse_json_record(line, line_no)
    except (OSError, EOFError, UnicodeDecodeError) as e:
        raise TraceStreamError(f"error reading trace: {e}") from e


def _split_cmd_tree(field: str, line_no: int) -> list[str]:
    if not field:
        return []
    try:
        rows = list(csv.reader([field]))
    except csv.Error as e:
        raise MalformedRecordError(f"unparsable step field {field!r}: {e}", line_no) from e
    return rows[0] if rows else []


def iter_csv_records(stream: IO[str]) -> Iterator[AccessRecord]:
    """Yield records from a legacy ``step,file,mode`` CSV stream."""
    reader = csv.reader(stream)
    try:
        for row in reader:
            line_no = reader.line_num
            if not row:
                continue
            if len(row) != 3:
                raise MalformedRecordError(f"expected 3 columns, got {len(row)}", line_no)
            step_field, file, mode = row
            if not file:
                raise MalformedRecordError("empty file column", line_no)
            yield AccessRecord(
                cmd_tree=StepPath.from_tokens(_split_cmd_tree(step_field, line_no)),
                mode=_parse_mode(mode, line_no),
                file=file,
            )
    except csv.Error as e:
        raise MalformedRecordError(str(e), reader.line_num) from e
    except (OSError, EOFError, UnicodeDecodeError) as e:
        raise TraceStreamError(f"error reading trace: {e}") from e


def iter_records(stream: IO[str], fmt: TraceFormat | str = TraceFormat.JSONL) -> Iterator[AccessRecord]:
    """Yield records from ``stream`` in the given trace format."""
    fmt = TraceFormat(fmt)
    if fmt is TraceFormat.CSV:
        return iter_csv_records(stream)
    return iter_json_records(stream)


def open_trace_file(path: str | Path) -> IO[str]:
    """Open a trace file for reading; ``.gz`` files are decompressed.

    The compression is decided by extension, which is predictable and avoids
    sniffing. Callers are responsible for closing the returned stream.
    """
    path = Path(path)
    try:
        if path.suffix == ".gz":
            return io.TextIOWrapper(gzip.open(path, "rb"), encoding="utf-8", newline="")
        return open(path, encoding="utf-8", newline="")
    except FileNotFoundError:
        raise
    except OSError as e:
        raise TraceStreamError(f"could not open trace file {path}: {e}") from e
