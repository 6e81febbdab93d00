# src/worklens/core/navigation.py

from __future__ import annotations

import contextlib
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

RouteListener = Callable[[str], None]


class Router:
    """In-memory navigation source: `navigate()` publishes a route-change event."""

    def __init__(self, initial_url: str = "") -> None:
        self.url = initial_url
        self._listeners: list[RouteListener] = []

    def subscribe(self, listener: RouteListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def navigate(self, url: str) -> None:
        url = str(url or "")
        logger.debug("Navigation start url=%s", url)
        self.url = url
        for listener in list(self._listeners):
            listener(url)
