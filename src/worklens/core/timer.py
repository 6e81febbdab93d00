# src/worklens/core/timer.py

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Callable

from .ports import Cancellable, TimerFactory

logger = logging.getLogger(__name__)


class _ExpiredHandle:
    __slots__ = ()

    def cancel(self) -> None:
        return None


class AsyncioTimerFactory:
    """
    TimerFactory backed by the running asyncio loop (or an explicit one).

    Without any loop there is nothing to wait on: the callback runs right away
    and a warning is logged once.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._loop = loop
        self._warned = False

    def _current_loop(self) -> asyncio.AbstractEventLoop | None:
        try:
            return asyncio.get_running_loop()
        except RuntimeError:
            pass
        if self._loop is not None and not self._loop.is_closed():
            return self._loop
        return None

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> Cancellable:
        loop = self._current_loop()
        if loop is None:
            if not self._warned:
                logger.warning("No event loop for a %.3fs timer; firing immediately", delay_s)
                self._warned = True
            callback()
            return _ExpiredHandle()
        return loop.call_later(max(0.0, float(delay_s)), callback)


class RestartableTimer:
    """
    One-shot timer that can be restarted or cancelled.

    Only the callback of the most recent start() ever runs: each start bumps a
    generation counter, and a handle from an older generation is ignored even
    if its factory failed to cancel it.
    """

    def __init__(self, factory: TimerFactory, delay_s: float, callback: Callable[[], None]) -> None:
        self._factory = factory
        self._delay_s = max(0.0, float(delay_s))
        self._callback = callback
        self._handle: Cancellable | None = None
        self._generation = 0
        self._fired_generation = 0

    @property
    def delay_s(self) -> float:
        return self._delay_s

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def start(self) -> None:
        """(Re)start the window; an already running window is discarded."""
        self.cancel()
        self._generation += 1
        generation = self._generation
        handle = self._factory.call_later(self._delay_s, functools.partial(self._fire, generation))
        # The factory may have fired synchronously.
        if self._fired_generation != generation:
            self._handle = handle

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, generation: int) -> None:
        if generation != self._generation:
            logger.debug("Ignoring stale timer generation=%s", generation)
            return
        self._handle = None
        self._fired_generation = generation
        self._callback()
