# src/worklens/context/context_notifier.py

from __future__ import annotations

import logging

from ..core.graph import Graph, Node, SourceNode
from ..core.ports import TimerFactory
from ..core.timer import RestartableTimer
from .context_models import ActiveContextRef

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_CHANGE_DELAY_S = 0.05


class ContextChangeNotifier:
    """
    `is_context_changing` pulse: True on every published context switch,
    back to False `delay_s` after the last switch of a burst.
    """

    def __init__(
        self,
        graph: Graph,
        active_ref: Node,
        timer_factory: TimerFactory,
        *,
        delay_s: float = DEFAULT_CONTEXT_CHANGE_DELAY_S,
    ) -> None:
        self._graph = graph
        self.is_context_changing: SourceNode = graph.source("is_context_changing", False)
        self._timer = RestartableTimer(timer_factory, delay_s, self._on_window_closed)
        # Only switches after construction count; the current pair is not a switch.
        self._unsubscribe = active_ref.subscribe(self._on_switch, replay=False)

    def close(self) -> None:
        self._unsubscribe()
        self._timer.cancel()

    def _on_switch(self, ref: ActiveContextRef) -> None:
        logger.debug("Context switching to %s/%s", ref.active_type, ref.active_id)
        self._graph.set(self.is_context_changing, True)
        self._timer.start()

    def _on_window_closed(self) -> None:
        self._graph.set(self.is_context_changing, False)
