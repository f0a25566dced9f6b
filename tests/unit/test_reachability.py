"""Tests for reachability queries over the dependency graph."""

from __future__ import annotations

import threading

import pytest

from helpers.graphs import CWD, graph_of, rec, step
from skipper.core.errors import UnknownStepError
from skipper.graph.dependency import DependencyGraph
from skipper.graph.reachability import LookupState, depends_on_files, file_deps


@pytest.fixture
def chain():
    """s1 reads F1 writes F2; s2 reads F2 writes F3; s3 reads F3."""
    return graph_of(
        rec("s1", "R", "/F1"),
        rec("s1", "W", "/F2"),
        rec("s2", "R", "/F2"),
        rec("s2", "W", "/F3"),
        rec("s3", "R", "/F3"),
    )


def diamond(n: int) -> DependencyGraph:
    """Steps s0..s{n-1}; each reads the outputs of the previous two."""
    records = []
    for i in range(n):
        for back in (1, 2):
            if i - back >= 0:
                records.append(rec(f"s{i}", "R", f"/F{i - back}"))
        if i < 2:
            records.append(rec(f"s{i}", "R", f"/src{i}"))
        records.append(rec(f"s{i}", "W", f"/F{i}"))
    return graph_of(*records)


class TestDependsOnFiles:
    def test_direct_dependency(self, chain):
        depends, reason = depends_on_files(chain, step("s1"), ["/F1"])
        assert depends is True
        assert '["s1"]' in reason
        assert "/F1" in reason

    def test_transitive_dependency(self, chain):
        depends, reason = depends_on_files(chain, step("s3"), ["/F1"])
        assert depends is True
        assert "transitively" in reason
        assert "/F1" in reason

    def test_unrelated_change(self, chain):
        assert depends_on_files(chain, step("s3"), ["/unrelated"]) == (False, "")

    def test_no_changes(self, chain):
        assert depends_on_files(chain, step("s3"), []) == (False, "")

    def test_downstream_change_does_not_affect_upstream(self, chain):
        assert depends_on_files(chain, step("s1"), ["/F3"])[0] is False

    def test_no_self_match(self):
        """A step that reads and writes the same file does not depend on its own write."""
        graph = graph_of(
            rec("s", "R", "/state"),
            rec("s", "W", "/state"),
            rec("s", "R", "/input"),
        )
        assert depends_on_files(graph, step("s"), ["/other"]) == (False, "")
        assert depends_on_files(graph, step("s"), ["/input"])[0] is True

    def test_sentinel_exclusion(self):
        """Writing /dev/null and later reading it creates no edge."""
        graph = graph_of(
            rec("a", "R", "/secret-input"),
            rec("a", "W", "/dev/null"),
            rec("b", "R", "/dev/null"),
            rec("b", "R", "/plain"),
        )
        assert depends_on_files(graph, step("b"), ["/secret-input"]) == (False, "")

    def test_unknown_step(self, chain):
        with pytest.raises(UnknownStepError) as exc:
            depends_on_files(chain, step("never-ran"), ["/F1"])
        assert exc.value.step_name == '["never-ran"]'

    def test_path_normalization(self):
        """A relative path in the trace matches its absolute spelling in a query."""
        graph = graph_of(rec("s", "R", "src/main.c"))
        assert depends_on_files(graph, step("s"), [f"{CWD}/src/main.c"])[0] is True

    def test_relative_changed_files_normalized(self):
        graph = graph_of(rec("s", "R", f"{CWD}/src/main.c"))
        assert depends_on_files(graph, step("s"), ["./src/main.c"])[0] is True

    def test_parent_depends_on_child_reads(self):
        graph = graph_of(rec(["test", "unit"], "R", "/a"))
        assert depends_on_files(graph, step("test"), ["/a"])[0] is True

    def test_sibling_not_affected(self):
        graph = graph_of(
            rec(["test", "unit"], "R", "/a"),
            rec(["test", "lint"], "R", "/b"),
        )
        assert depends_on_files(graph, step("test", "lint"), ["/a"])[0] is False

    def test_cycle_terminates(self):
        graph = graph_of(
            rec("a", "R", "/x"),
            rec("a", "W", "/y"),
            rec("b", "R", "/y"),
            rec("b", "W", "/x"),
            rec("c", "R", "/x"),
        )
        assert depends_on_files(graph, step("c"), ["/nowhere"]) == (False, "")
        assert depends_on_files(graph, step("c"), ["/y"])[0] is True

    def test_deterministic(self, chain):
        results = {depends_on_files(chain, step("s3"), ["/F1", "/F2"]) for _ in range(20)}
        assert len(results) == 1

    def test_graph_method_delegates(self, chain):
        assert chain.depends_on_files(step("s3"), ["/F1"])[0] is True


class TestScaling:
    def test_diamond_answers(self):
        graph = diamond(20)
        assert depends_on_files(graph, step("s19"), ["/src0"])[0] is True
        assert depends_on_files(graph, step("s19"), ["/unrelated"]) == (False, "")

    def test_diamond_visits_each_step_once(self, monkeypatch):
        graph = diamond(20)
        calls = 0
        original = DependencyGraph.writers_of

        def counting(self, path):
            nonlocal calls
            calls += 1
            return original(self, path)

        monkeypatch.setattr(DependencyGraph, "writers_of", counting)
        depends_on_files(graph, step("s19"), ["/unrelated"])
        # Each of 20 steps emits at most 3 reads, each expanded once.
        assert calls <= 3 * 20 + 3

    def test_deep_chain_no_recursion_limit(self):
        records = [rec("s0", "R", "/root-input"), rec("s0", "W", "/F0")]
        for i in range(1, 3000):
            records.append(rec(f"s{i}", "R", f"/F{i - 1}"))
            records.append(rec(f"s{i}", "W", f"/F{i}"))
        graph = graph_of(*records)
        assert depends_on_files(graph, step("s2999"), ["/root-input"])[0] is True

    def test_concurrent_queries(self):
        graph = diamond(20)
        results = []

        def worker():
            results.append(depends_on_files(graph, step("s19"), ["/src1"])[0])

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert results == [True] * 8


class TestFileDeps:
    def test_transitive_closure(self, chain):
        assert list(file_deps(chain, LookupState(), "/F3")) == ["/F2", "/F1"]

    def test_shared_state_skips_visited_writers(self, chain):
        state = LookupState()
        list(file_deps(chain, state, "/F3"))
        assert state.visited == {'["s2"]', '["s1"]'}
        assert list(file_deps(chain, state, "/F3")) == []

    def test_source_file_has_no_deps(self, chain):
        assert list(file_deps(chain, LookupState(), "/F1")) == []

    def test_sentinel_contributes_nothing(self):
        graph = graph_of(rec("a", "R", "/x"), rec("a", "W", "/y"), ignore_files=["/y"])
        assert list(file_deps(graph, LookupState(), "/y")) == []

    def test_mark(self):
        state = LookupState()
        assert state.mark("a") is True
        assert state.mark("a") is False
