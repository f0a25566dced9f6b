"""Shared test fixtures for Skipper."""

from __future__ import annotations

import gzip
import os
from pathlib import Path

import pytest

from helpers.graphs import trace_lines
from skipper.core.config import reset_settings


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch, tmp_path):
    """Each test gets fresh settings and no stray SKIPPER_* environment."""
    for key in list(os.environ):
        if key.startswith("SKIPPER_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("SKIPPER_BUILD_ID_FILE", str(tmp_path / "build-id.txt"))
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def write_trace(tmp_path):
    """Write a baseline trace file and return its path.

    ``write_trace(rows)`` writes plain JSON lines; ``compress=True`` gzips it.
    """

    def _write(rows, name: str = "base-graph.jsonl", compress: bool = False) -> Path:
        content = trace_lines(rows)
        if compress:
            path = tmp_path / f"{name}.gz"
            with gzip.open(path, "wt", encoding="utf-8") as f:
                f.write(content)
        else:
            path = tmp_path / name
            path.write_text(content)
        return path

    return _write


@pytest.fixture
def write_changes(tmp_path):
    """Write a changed-files list and return its path."""

    def _write(paths, name: str = "changes") -> Path:
        path = tmp_path / name
        path.write_text("".join(f"{p}\n" for p in paths))
        return path

    return _write


@pytest.fixture
def chain_rows():
    """s1 reads F1 writes F2; s2 reads F2 writes F3; s3 reads F3."""
    return [
        (["s1"], "R", "/src/F1"),
        (["s1"], "W", "/src/F2"),
        (["s2"], "R", "/src/F2"),
        (["s2"], "W", "/src/F3"),
        (["s3"], "R", "/src/F3"),
    ]
