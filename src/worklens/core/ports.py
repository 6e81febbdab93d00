# src/worklens/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the derived-state engine.

The engine never owns persisted state: it reads slices from the Store, looks up
tags through the Tag collaborator, listens to navigation and dispatches intent
back to the Store. Concrete implementations live in `worklens.store` and
`worklens.core`; tests plug in fakes.
"""

from collections.abc import Callable, Mapping
from typing import Any, Protocol

Unsubscribe = Callable[[], None]


class Store(Protocol):
    """Canonical state holder. `get_state()` returns a StoreState snapshot."""

    def get_state(self) -> Any: ...

    def dispatch(self, action: Any) -> None: ...

    def subscribe(self, listener: Callable[[Any], None]) -> Unsubscribe: ...

    def subscribe_actions(self, listener: Callable[[Any], None]) -> Unsubscribe: ...


class TagService(Protocol):
    """Id-keyed tag lookup."""

    def get_tags(self) -> Mapping[str, Any]: ...

    def subscribe(self, listener: Callable[[Mapping[str, Any]], None]) -> Unsubscribe: ...


class NavigationEvents(Protocol):
    """Stream of route-change events; each event is the target path."""

    def subscribe(self, listener: Callable[[str], None]) -> Unsubscribe: ...


class ContextPersistence(Protocol):
    """Persisted snapshot of the active context (a WorkContextState) or None."""

    def load_state(self) -> Any | None: ...


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class TimerFactory(Protocol):
    """Schedules a callback after `delay_s` seconds on the single event loop."""

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> Cancellable: ...
