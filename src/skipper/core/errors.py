"""Skipper error types and utilities."""

from __future__ import annotations

import os
import tempfile
from pathlib import Path


def atomic_write(path: Path, content: str) -> None:
    """Write content to a file atomically using temp file + rename.

    Writes to a temporary file in the same directory, fsyncs it,
    then atomically replaces the target path.
    """
    fd, tmp = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        os.write(fd, content.encode())
        os.fsync(fd)
        os.close(fd)
        os.replace(tmp, str(path))
    except BaseException:
        try:
            os.close(fd)
        except OSError:
            pass
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise


class SkipperError(Exception):
    """Base exception for Skipper."""

    pass


class MalformedRecordError(SkipperError):
    """A trace record has the wrong shape or an unparsable field."""

    def __init__(self, message: str, line_no: int | None = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"line {line_no}: {message}"
        super().__init__(message)


class UnknownStepError(SkipperError):
    """A query named a step that never appeared in the baseline trace."""

    def __init__(self, step_name: str):
        self.step_name = step_name
        super().__init__(f"unknown step: {step_name}")


class TraceStreamError(SkipperError):
    """The trace or changed-files stream failed before completion."""

    pass
