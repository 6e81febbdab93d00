# tests/test_timer.py

from __future__ import annotations

import asyncio
import logging

import pytest

from worklens.core.timer import AsyncioTimerFactory, RestartableTimer

from .fakes import FakeTimerFactory


def test_restart_only_fires_latest_window() -> None:
    timers = FakeTimerFactory()
    fired: list[float] = []
    timer = RestartableTimer(timers, 0.05, lambda: fired.append(timers.now))

    timer.start()
    timers.advance(0.03)
    timer.start()
    timers.advance(0.03)
    assert fired == []

    timers.advance(0.05)
    assert fired == [pytest.approx(0.08)]
    assert not timer.pending


def test_cancel_prevents_callback() -> None:
    timers = FakeTimerFactory()
    fired: list[int] = []
    timer = RestartableTimer(timers, 0.01, lambda: fired.append(1))
    timer.start()
    timer.cancel()
    timers.advance(1)

    assert fired == []


def test_stale_handle_is_ignored_even_if_not_cancelled() -> None:
    timers = FakeTimerFactory()
    fired: list[int] = []
    timer = RestartableTimer(timers, 0.01, lambda: fired.append(1))
    timer.start()
    stale = timers.handles[0]
    timer.start()

    stale.callback()

    assert fired == []


@pytest.mark.asyncio
async def test_asyncio_factory_runs_on_loop() -> None:
    done = asyncio.Event()
    timer = RestartableTimer(AsyncioTimerFactory(), 0.01, done.set)
    timer.start()

    await asyncio.wait_for(done.wait(), timeout=1.0)
    assert not timer.pending


def test_asyncio_factory_without_loop_fires_immediately(caplog) -> None:
    fired: list[int] = []
    timer = RestartableTimer(AsyncioTimerFactory(), 0.05, lambda: fired.append(1))

    with caplog.at_level(logging.WARNING, logger="worklens.core.timer"):
        timer.start()
        timer.start()

    assert fired == [1, 1]
    assert not timer.pending
    assert len([r for r in caplog.records if r.levelno == logging.WARNING]) == 1
