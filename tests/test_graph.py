# tests/test_graph.py

from __future__ import annotations

import pytest

from worklens.core.graph import NO_VALUE, Graph, NodeCache

from .fakes import Recorder


def test_join_recomputes_once_per_batch() -> None:
    g = Graph()
    a = g.source("a", 1)
    b = g.source("b", 10)
    calls: list[tuple[int, int]] = []

    def add(x: int, y: int) -> int:
        calls.append((x, y))
        return x + y

    total = g.derive("total", [a, b], add)
    assert total.get() == 11

    with g.batch():
        g.set(a, 2)
        g.set(b, 20)

    assert total.get() == 22
    assert calls == [(1, 10), (2, 20)]


def test_diamond_recomputes_from_consistent_values() -> None:
    g = Graph()
    src = g.source("src", 1)
    left = g.derive("left", [src], lambda v: v * 2)
    right = g.derive("right", [src], lambda v: v * 3)
    seen: list[tuple[int, int]] = []
    g.derive("join", [left, right], lambda l, r: seen.append((l, r)) or l + r)

    g.set(src, 2)

    assert seen == [(2, 3), (4, 6)]


def test_equal_values_are_suppressed_downstream() -> None:
    g = Graph()
    src = g.source("src", {"ids": [1, 2], "rev": 0})
    ids = g.derive("ids", [src], lambda v: tuple(v["ids"]))
    downstream_calls = []
    g.derive("count", [ids], lambda v: downstream_calls.append(v) or len(v))
    rec = Recorder()
    ids.subscribe(rec, replay=False)

    g.set(src, {"ids": [1, 2], "rev": 1})

    assert rec.values == []
    assert len(downstream_calls) == 1


def test_late_subscriber_gets_latest_value_only() -> None:
    g = Graph()
    src = g.source("src", 1)
    doubled = g.derive("doubled", [src], lambda v: v * 2)
    g.set(src, 2)
    g.set(src, 3)

    rec = Recorder()
    doubled.subscribe(rec)

    assert rec.values == [6]


def test_no_value_keeps_last_value_and_skips_downstream() -> None:
    g = Graph()
    src = g.source("src", 1)
    odd = g.derive("odd", [src], lambda v: v if v % 2 else NO_VALUE)
    rec = Recorder()
    odd.subscribe(rec)

    g.set(src, 2)
    assert odd.get() == 1
    g.set(src, 5)

    assert rec.values == [1, 5]


def test_node_without_upstream_value_waits() -> None:
    g = Graph()
    a = g.source("a")
    b = g.source("b", 1)
    joined = g.derive("joined", [a, b], lambda x, y: x + y)
    assert not joined.has_value

    g.set(a, 1)

    assert joined.get() == 2


def test_writes_from_listeners_run_as_next_pass() -> None:
    g = Graph()
    src = g.source("src", 0)
    echo = g.source("echo", 0)
    order: list[str] = []

    def on_src(v: int) -> None:
        order.append(f"src={v}")
        g.set(echo, v)
        order.append("after-set")

    src.subscribe(on_src, replay=False)
    echo.subscribe(lambda v: order.append(f"echo={v}"), replay=False)

    g.set(src, 7)

    assert order == ["src=7", "after-set", "echo=7"]


def test_listener_error_propagates_after_all_listeners_ran() -> None:
    g = Graph()
    src = g.source("src", 0)
    rec = Recorder()

    def boom(_: int) -> None:
        raise RuntimeError("boom")

    src.subscribe(boom, replay=False)
    src.subscribe(rec, replay=False)

    with pytest.raises(RuntimeError):
        g.set(src, 1)

    assert rec.values == [1]
    assert src.get() == 1


def test_unsubscribe_stops_delivery() -> None:
    g = Graph()
    src = g.source("src", 0)
    rec = Recorder()
    unsubscribe = src.subscribe(rec, replay=False)
    g.set(src, 1)
    unsubscribe()
    g.set(src, 2)

    assert rec.values == [1]


def test_nodes_from_another_graph_are_rejected() -> None:
    other = Graph().source("x", 1)
    with pytest.raises(ValueError):
        Graph().derive("y", [other], lambda v: v)


def test_first_listener_error_wins_and_later_nodes_still_notified() -> None:
    g = Graph()
    src = g.source("src", 0)
    doubled = g.derive("doubled", [src], lambda v: v * 2)
    rec = Recorder()

    def fail_first(_: int) -> None:
        raise RuntimeError("first")

    def fail_second(_: int) -> None:
        raise KeyError("second")

    src.subscribe(fail_first, replay=False)
    src.subscribe(fail_second, replay=False)
    doubled.subscribe(rec, replay=False)

    with pytest.raises(RuntimeError, match="first"):
        g.set(src, 3)

    assert rec.values == [6]


def test_failing_compute_does_not_leave_siblings_stale() -> None:
    g = Graph()
    src = g.source("src", 1)
    boom = g.derive("boom", [src], lambda v: 1 // (v - 2))
    other = g.derive("other", [src], lambda v: v * 10)
    after = g.derive("after", [other], lambda v: v + 1)
    rec = Recorder()
    other.subscribe(rec, replay=False)

    with pytest.raises(ZeroDivisionError):
        g.set(src, 2)

    assert boom.get() == -1
    assert other.get() == 20
    assert after.get() == 21
    assert rec.values == [20]

    g.set(src, 3)
    assert boom.get() == 1


def test_release_detaches_node_from_upstream() -> None:
    g = Graph()
    src = g.source("src", 1)
    doubled = g.derive("doubled", [src], lambda v: v * 2)

    g.release(doubled)
    g.set(src, 5)

    assert src.downstream == []
    assert doubled.get() == 2


def test_release_refuses_node_with_dependents() -> None:
    g = Graph()
    src = g.source("src", 1)
    mid = g.derive("mid", [src], lambda v: v)
    g.derive("top", [mid], lambda v: v)

    with pytest.raises(ValueError):
        g.release(mid)


def test_node_cache_releases_least_recently_requested() -> None:
    g = Graph()
    src = g.source("src", 1)
    cache = NodeCache(g, 2)

    def make(key: str):
        return lambda: g.derive(key, [src], lambda v: v)

    a = cache.get("a", make("a"))
    cache.get("b", make("b"))
    assert cache.get("a", make("a")) is a
    cache.get("c", make("c"))

    assert len(cache) == 2
    assert "a" in cache and "b" not in cache
    assert [n.name for n in src.downstream] == ["a", "c"]
