# src/worklens/core/graph.py

from __future__ import annotations

"""
Dependency graph of live derived values.

Sources hold values written from outside (store slices, flags). Derived nodes
hold the cached result of a pure function of their upstream nodes.

Propagation rules:
- every write goes through the owning Graph, which serializes them;
- writes made inside `batch()` are applied together, so a node that joins
  several sources recomputes once per logical update, not once per source;
- nodes are visited in rank (topological) order, each at most once per pass;
- a node recomputes only when every upstream has a value and at least one
  upstream changed in the current pass;
- a recomputed value equal to the cached one is suppressed (no downstream
  recompute, no listener call);
- a compute function may return NO_VALUE to publish nothing: the node keeps
  its last value and downstream nodes are not touched.

Listeners run after a pass has updated every cache. Writes issued from a
listener are queued and processed as the next pass.
"""

import contextlib
import heapq
import logging
from collections import OrderedDict
from collections.abc import Callable, Hashable, Iterator, Sequence
from typing import Any

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]
Equality = Callable[[Any, Any], bool]


class _NoValue:
    __slots__ = ()

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Any = _NoValue()


def _default_equals(a: Any, b: Any) -> bool:
    return a == b


class Node:
    """Common part of sources and derived nodes: cached value + listeners."""

    def __init__(
        self,
        graph: Graph,
        name: str,
        upstream: Sequence[Node],
        equals: Equality | None,
    ) -> None:
        self.graph = graph
        self.name = name
        self.upstream: tuple[Node, ...] = tuple(upstream)
        self.downstream: list[DerivedNode] = []
        self.rank = 1 + max((u.rank for u in self.upstream), default=-1)
        self.equals: Equality = equals or _default_equals
        self.value: Any = NO_VALUE
        self._listeners: list[Listener] = []
        self._seq = graph._next_seq()

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} rank={self.rank}>"

    @property
    def has_value(self) -> bool:
        return self.value is not NO_VALUE

    def get(self, default: Any = None) -> Any:
        """Latest cached value, without recomputing."""
        return default if self.value is NO_VALUE else self.value

    def subscribe(self, listener: Listener, *, replay: bool = True) -> Callable[[], None]:
        """
        Attach a listener. With replay=True a late subscriber immediately
        receives the cached value (if any); history is never replayed.
        """
        self._listeners.append(listener)
        if replay and self.has_value:
            listener(self.value)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> Exception | None:
        """Call every listener; returns the first error raised, if any."""
        first_error: Exception | None = None
        for listener in list(self._listeners):
            try:
                listener(self.value)
            except Exception as e:
                logger.exception("Listener of %s failed", self.name)
                if first_error is None:
                    first_error = e
        return first_error


class SourceNode(Node):
    def set(self, value: Any) -> None:
        self.graph.set(self, value)


class DerivedNode(Node):
    def __init__(
        self,
        graph: Graph,
        name: str,
        upstream: Sequence[Node],
        compute: Callable[..., Any],
        equals: Equality | None,
    ) -> None:
        if not upstream:
            raise ValueError(f"derived node {name!r} needs at least one upstream node")
        super().__init__(graph, name, upstream, equals)
        self.compute = compute

    def _recompute(self) -> bool:
        """Returns True if the cached value changed."""
        if not all(u.has_value for u in self.upstream):
            return False
        new = self.compute(*(u.value for u in self.upstream))
        if new is NO_VALUE:
            logger.debug("Node %s produced no value", self.name)
            return False
        if self.has_value and self.equals(self.value, new):
            return False
        self.value = new
        return True


class Graph:
    """Owns the nodes and the single serialized write path."""

    def __init__(self) -> None:
        self._seq = 0
        self._pending: list[tuple[SourceNode, Any]] = []
        self._batch_depth = 0
        self._flushing = False

    def _next_seq(self) -> int:
        self._seq += 1
        return self._seq

    # ---- node construction ----

    def source(self, name: str, initial: Any = NO_VALUE, *, equals: Equality | None = None) -> SourceNode:
        node = SourceNode(self, name, (), equals)
        node.value = initial
        return node

    def derive(
        self,
        name: str,
        upstream: Sequence[Node],
        compute: Callable[..., Any],
        *,
        equals: Equality | None = None,
    ) -> DerivedNode:
        """
        Create a derived node. If its upstreams already hold values the node is
        computed right away, so views created late start out populated.
        """
        for u in upstream:
            if u.graph is not self:
                raise ValueError(f"node {u.name!r} belongs to another graph")
        node = DerivedNode(self, name, upstream, compute, equals)
        for u in node.upstream:
            u.downstream.append(node)
        node._recompute()
        return node

    def release(self, node: DerivedNode) -> None:
        """
        Detach a derived node from its upstreams. It keeps its last value but
        is no longer recomputed. Nodes that still feed others cannot be released.
        """
        if node.graph is not self:
            raise ValueError(f"node {node.name!r} belongs to another graph")
        if node.downstream:
            raise ValueError(f"node {node.name!r} still has downstream nodes")
        for u in node.upstream:
            with contextlib.suppress(ValueError):
                u.downstream.remove(node)
        node._listeners.clear()

    # ---- writes ----

    def set(self, source: SourceNode, value: Any) -> None:
        if source.graph is not self:
            raise ValueError(f"node {source.name!r} belongs to another graph")
        self._pending.append((source, value))
        if self._batch_depth == 0:
            self._flush()

    @contextlib.contextmanager
    def batch(self) -> Iterator[None]:
        """Apply all writes made inside the block as one logical update."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
        if self._batch_depth == 0:
            self._flush()

    def _flush(self) -> None:
        # Re-entrant flushes (from listeners) leave their writes to the running loop.
        if self._flushing:
            return
        self._flushing = True
        first_error: Exception | None = None
        try:
            while self._pending:
                writes, self._pending = self._pending, []
                error = self._run_pass(writes)
                if first_error is None:
                    first_error = error
        finally:
            self._flushing = False
        if first_error is not None:
            raise first_error

    def _run_pass(self, writes: list[tuple[SourceNode, Any]]) -> Exception | None:
        changed: list[Node] = []
        changed_ids: set[int] = set()
        queue: list[tuple[int, int, DerivedNode]] = []
        queued: set[int] = set()

        def mark(node: Node) -> None:
            if id(node) not in changed_ids:
                changed_ids.add(id(node))
                changed.append(node)
            for d in node.downstream:
                if id(d) not in queued:
                    queued.add(id(d))
                    heapq.heappush(queue, (d.rank, d._seq, d))

        for source, value in writes:
            if source.has_value and value is not NO_VALUE and source.equals(source.value, value):
                continue
            source.value = value
            if value is not NO_VALUE:
                mark(source)

        first_error: Exception | None = None

        # A failing compute keeps its node's last value; the rest of the pass still runs.
        while queue:
            _, _, node = heapq.heappop(queue)
            try:
                if node._recompute():
                    mark(node)
            except Exception as e:
                logger.exception("Compute of %s failed", node.name)
                if first_error is None:
                    first_error = e

        # Every cache is settled before the first listener runs.
        changed.sort(key=lambda n: (n.rank, n._seq))
        for node in changed:
            error = node._notify()
            if first_error is None:
                first_error = error
        return first_error


class NodeCache:
    """
    Keyed derived nodes built on demand. Past `max_size` entries the least
    recently requested node is released from the graph.
    """

    def __init__(self, graph: Graph, max_size: int) -> None:
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self._graph = graph
        self._max_size = max_size
        self._nodes: OrderedDict[Hashable, DerivedNode] = OrderedDict()

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, key: object) -> bool:
        return key in self._nodes

    def get(self, key: Hashable, create: Callable[[], DerivedNode]) -> DerivedNode:
        node = self._nodes.get(key)
        if node is not None:
            self._nodes.move_to_end(key)
            return node
        node = create()
        self._nodes[key] = node
        while len(self._nodes) > self._max_size:
            old_key, old = self._nodes.popitem(last=False)
            logger.debug("Releasing %s (key=%r)", old.name, old_key)
            self._graph.release(old)
        return node
