"""Tests for build id handling."""

from __future__ import annotations

from skipper.buildid import (
    child_wrapper_args,
    ensure_build_id,
    new_build_id,
    read_build_id,
    save_build_id,
)


def test_child_wrapper_args():
    got = child_wrapper_args("bid", ["./skipper", "--", "foo"])
    assert got == ["./skipper", "--id", "bid", "--", "foo"]


def test_child_wrapper_args_does_not_mutate():
    argv = ["skipper", "run", "--", "make"]
    child_wrapper_args("bid", argv)
    assert argv == ["skipper", "run", "--", "make"]


def test_new_build_ids_are_unique_and_sortable():
    a = new_build_id()
    b = new_build_id()
    assert a != b
    assert a[:16] <= b[:16]


def test_read_missing_is_empty(tmp_path):
    assert read_build_id(tmp_path / "nope") == ""


def test_read_strips_whitespace(tmp_path):
    path = tmp_path / "id"
    path.write_text("  abc\n")
    assert read_build_id(path) == "abc"


def test_save_has_no_trailing_newline(tmp_path):
    path = tmp_path / "nested" / "id"
    save_build_id(path, "abc")
    assert path.read_text() == "abc"


def test_ensure_creates_then_reuses(tmp_path):
    path = tmp_path / "id"
    first = ensure_build_id(path)
    assert first
    assert path.read_text() == first
    assert ensure_build_id(path) == first


def test_ensure_replaces_empty_file(tmp_path):
    path = tmp_path / "id"
    path.write_text("")
    assert ensure_build_id(path)
