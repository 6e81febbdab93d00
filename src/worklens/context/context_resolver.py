# src/worklens/context/context_resolver.py

from __future__ import annotations

"""
Active context resolution.

States: no context (store holds no id/type) or Active(type, id). Requests come
from `set_active_context()` or from navigation to `tag/<id>` / `project/<id>`;
both end up as a SetActiveContext dispatch, and the store slice flows back in
through the graph. The resolved pair is only published when it differs by
value from the previous one, so repeated requests are absorbed.
"""

import logging
import re
from typing import Any

from ..core.graph import NO_VALUE, DerivedNode, Graph, Node
from ..core.ports import NavigationEvents, Store
from ..store.actions import SetActiveContext
from .context_models import ActiveContextRef, WorkContextState, WorkContextType

logger = logging.getLogger(__name__)

_ROUTE_RE = re.compile(r"^/?(?P<kind>tag|project)/(?P<id>[^/?#]+)")
_ROUTE_TYPES = {"tag": WorkContextType.TAG, "project": WorkContextType.PROJECT}


def parse_context_route(url: str) -> ActiveContextRef | None:
    """'/tag/TODAY/tasks' -> (TODAY, TAG); anything else -> None."""
    m = _ROUTE_RE.match(url or "")
    if not m:
        return None
    return ActiveContextRef(active_id=m.group("id"), active_type=_ROUTE_TYPES[m.group("kind")])


def _to_ref(state: WorkContextState) -> ActiveContextRef | Any:
    if not state.active_id or not state.active_type:
        return NO_VALUE
    return ActiveContextRef(active_id=state.active_id, active_type=state.active_type)


class ActiveContextCache:
    """
    Last resolved pair for callers that read once instead of listening.

    Updated from the resolver's listener, so during a graph pass it can be one
    step behind the pair being published.
    """

    def __init__(self) -> None:
        self.active_id: str | None = None
        self.active_type: str | None = None

    def update(self, ref: ActiveContextRef) -> None:
        self.active_id = ref.active_id
        self.active_type = ref.active_type


class ContextResolver:
    def __init__(
        self,
        graph: Graph,
        context_state: Node,
        store: Store,
        *,
        navigation: NavigationEvents | None = None,
    ) -> None:
        self._store = store
        self.cache = ActiveContextCache()

        self.active_ref: DerivedNode = graph.derive("active_context_ref", [context_state], _to_ref)
        self.active_id: DerivedNode = graph.derive(
            "active_context_id", [self.active_ref], lambda ref: ref.active_id
        )
        self.active_ref.subscribe(self._on_ref)

        self._unsubscribe_navigation = navigation.subscribe(self.handle_route) if navigation else None

    def close(self) -> None:
        if self._unsubscribe_navigation is not None:
            self._unsubscribe_navigation()
            self._unsubscribe_navigation = None

    def set_active_context(self, active_id: str, active_type: Any) -> None:
        """Request a switch. Raises UnknownContextTypeError for unknown types."""
        kind = WorkContextType.parse(active_type)
        if not active_id:
            raise ValueError("active_id is required")
        self._store.dispatch(SetActiveContext(active_id=str(active_id), active_type=kind))

    def handle_route(self, url: str) -> None:
        ref = parse_context_route(url)
        if ref is None:
            logger.debug("Route %s does not name a work context", url)
            return
        self.set_active_context(ref.active_id, ref.active_type)

    def _on_ref(self, ref: ActiveContextRef) -> None:
        logger.info("Active work context %s/%s", ref.active_type, ref.active_id)
        self.cache.update(ref)
