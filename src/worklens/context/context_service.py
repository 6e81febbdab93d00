# src/worklens/context/context_service.py

from __future__ import annotations

"""
WorkContextService: live views over the active work context.

This module is the composition root of the derived-state engine:

    store slices ──> ContextResolver ──> ContextViewBuilder ──> TaskAggregationEngine
                          │                                      ├─> TaskMetrics
                          └─> ContextChangeNotifier              └─> TaskFlattener

Every view is a graph node: read it with `.get()`, listen with `.subscribe()`.
Store notifications are applied to the graph as one batch, so joins over the
context and the task collection recompute once per store update.
"""

import logging
from collections.abc import Callable, Mapping
from typing import Any

from ..core.graph import DerivedNode, Graph, Node
from ..core.ports import ContextPersistence, NavigationEvents, Store, TagService, TimerFactory
from ..core.timer import AsyncioTimerFactory
from ..store.actions import LoadContextState, MoveTaskToBacklog, SetActiveContext, UpdateAdvancedConfig
from ..tasks.task_aggregates import TaskAggregationEngine
from ..tasks.task_flatten import TaskFlattener
from ..tasks.task_metrics import TaskMetrics, worklog_day_str
from ..tasks.task_selectors import TaskLookup, select_tasks_with_subtasks_by_ids
from .context_models import (
    INITIAL_CONTEXT_STATE,
    MY_DAY_TAG_ID,
    WORKLOG_EXPORT_SETTINGS,
    WorkContextState,
    WorkContextType,
)
from .context_notifier import DEFAULT_CONTEXT_CHANGE_DELAY_S, ContextChangeNotifier
from .context_resolver import ContextResolver
from .context_view import ContextViewBuilder, main_work_contexts

logger = logging.getLogger(__name__)

ActionListener = Callable[[Any], None]


class WorkContextService:
    def __init__(
        self,
        store: Store,
        tag_service: TagService,
        *,
        persistence: ContextPersistence | None = None,
        navigation: NavigationEvents | None = None,
        timer_factory: TimerFactory | None = None,
        task_lookup: TaskLookup = select_tasks_with_subtasks_by_ids,
        context_change_delay_s: float = DEFAULT_CONTEXT_CHANGE_DELAY_S,
        my_day_tag_id: str = MY_DAY_TAG_ID,
    ) -> None:
        self._store = store
        self._tag_service = tag_service
        self._persistence = persistence
        self.graph = Graph()

        state = store.get_state()
        self._context_state = self.graph.source("context_state", state.context)
        self._task_entities = self.graph.source("task_entities", state.tasks)
        self._project_entities = self.graph.source("project_entities", state.projects)
        self._tag_entities = self.graph.source("tag_entities", tag_service.get_tags())

        # CONTEXT LEVEL
        self.resolver = ContextResolver(self.graph, self._context_state, store, navigation=navigation)
        self.view_builder = ContextViewBuilder(
            self.graph, self.resolver.active_ref, self._tag_entities, self._project_entities
        )
        self.notifier = ContextChangeNotifier(
            self.graph,
            self.resolver.active_ref,
            timer_factory or AsyncioTimerFactory(),
            delay_s=context_change_delay_s,
        )
        self.main_work_contexts: DerivedNode = self.graph.derive(
            "main_work_contexts", [self._tag_entities], lambda tags: main_work_contexts(tags, my_day_tag_id)
        )
        self.current_theme: DerivedNode = self.graph.derive(
            "current_theme", [self.active_work_context], lambda ctx: ctx.theme
        )

        # TASK LEVEL
        self.aggregates = TaskAggregationEngine(
            self.graph, self.active_work_context, self._task_entities, task_lookup=task_lookup
        )
        self.metrics = TaskMetrics(self.graph, self.aggregates.todays_tasks)
        self.flattener = TaskFlattener(self.graph, self.aggregates.todays_tasks, self.aggregates.backlog_tasks)

        self._unsubscribers = [
            store.subscribe(self._on_store_state),
            tag_service.subscribe(self._on_tags),
        ]

    def close(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []
        self.resolver.close()
        self.notifier.close()

    # ---- upstream wiring ----

    def _on_store_state(self, state: Any) -> None:
        with self.graph.batch():
            self.graph.set(self._context_state, state.context)
            self.graph.set(self._task_entities, state.tasks)
            self.graph.set(self._project_entities, state.projects)
            self.graph.set(self._tag_entities, self._tag_service.get_tags())

    def _on_tags(self, tags: Mapping[str, Any]) -> None:
        self.graph.set(self._tag_entities, tags)

    # ---- context views ----

    @property
    def active_work_context(self) -> DerivedNode:
        return self.view_builder.active_work_context

    @property
    def active_work_context_type_and_id(self) -> DerivedNode:
        return self.resolver.active_ref

    @property
    def active_work_context_id(self) -> DerivedNode:
        return self.resolver.active_id

    @property
    def is_context_changing(self) -> Node:
        return self.notifier.is_context_changing

    @property
    def active_id(self) -> str | None:
        """Cached active id (see ActiveContextCache)."""
        return self.resolver.cache.active_id

    @property
    def active_type(self) -> str | None:
        return self.resolver.cache.active_type

    # ---- task views ----

    @property
    def todays_task_ids(self) -> DerivedNode:
        return self.aggregates.todays_task_ids

    @property
    def backlog_task_ids(self) -> DerivedNode:
        return self.aggregates.backlog_task_ids

    @property
    def todays_tasks(self) -> DerivedNode:
        return self.aggregates.todays_tasks

    @property
    def backlog_tasks(self) -> DerivedNode:
        return self.aggregates.backlog_tasks

    @property
    def done_tasks(self) -> DerivedNode:
        return self.aggregates.done_tasks

    @property
    def undone_tasks(self) -> DerivedNode:
        return self.aggregates.undone_tasks

    @property
    def startable_tasks(self) -> DerivedNode:
        return self.aggregates.startable_tasks

    @property
    def is_has_tasks_to_work_on(self) -> DerivedNode:
        return self.aggregates.is_has_tasks_to_work_on

    @property
    def estimate_remaining_today(self) -> DerivedNode:
        return self.aggregates.estimate_remaining_today

    @property
    def working_today(self) -> DerivedNode:
        return self.metrics.time_worked_for_day(worklog_day_str())

    @property
    def all_non_archive_tasks(self) -> DerivedNode:
        return self.flattener.all_non_archive_tasks

    @property
    def all_repeatable_tasks_flat(self) -> DerivedNode:
        return self.flattener.all_repeatable_tasks_flat

    def get_time_worked_for_day(self, day: str | None = None) -> DerivedNode:
        return self.metrics.time_worked_for_day(day)

    def get_time_estimate_for_day(self, day: str | None = None) -> DerivedNode:
        return self.metrics.time_estimate_remaining_for_day(day)

    def get_tasks_worked_on_or_done_flat(self, day: str) -> DerivedNode:
        return self.flattener.tasks_worked_on_or_done_flat(day)

    def get_tasks_worked_on_or_done_or_repeatable_flat(self, day: str) -> DerivedNode:
        return self.flattener.tasks_worked_on_or_done_or_repeatable_flat(day)

    # ---- action streams ----

    def on_work_context_change(self, listener: ActionListener) -> Callable[[], None]:
        return self._on_action(SetActiveContext, listener)

    def on_move_to_backlog(self, listener: ActionListener) -> Callable[[], None]:
        return self._on_action(MoveTaskToBacklog, listener)

    def _on_action(self, action_type: type, listener: ActionListener) -> Callable[[], None]:
        def _filtered(action: Any) -> None:
            if isinstance(action, action_type):
                listener(action)

        return self._store.subscribe_actions(_filtered)

    # ---- operations ----

    def load(self) -> WorkContextState:
        """Hydrate the context state from the persisted snapshot (or the default)."""
        state = self._persistence.load_state() if self._persistence is not None else None
        if state is None:
            logger.info("No persisted context state; using default")
            state = INITIAL_CONTEXT_STATE
        self._store.dispatch(LoadContextState(state=state))
        return state

    def set_active_context(self, active_id: str, active_type: Any) -> None:
        self.resolver.set_active_context(active_id, active_type)

    def update_worklog_export_settings(self, data: Mapping[str, Any]) -> None:
        self.update_advanced_config(WORKLOG_EXPORT_SETTINGS, dict(data))

    def update_advanced_config(self, section_key: str, data: Mapping[str, Any]) -> None:
        """Write a config section of the active project or tag. Raises UnknownContextTypeError."""
        owner_type = WorkContextType.parse(self.active_type)
        owner_id = self.active_id
        if not owner_id:
            raise LookupError("No active work context")
        self._store.dispatch(
            UpdateAdvancedConfig(owner_type=owner_type, owner_id=owner_id, section_key=section_key, data=dict(data))
        )

    def move_task_to_backlog(self, task_id: str) -> None:
        owner_type = WorkContextType.parse(self.active_type)
        owner_id = self.active_id
        if not owner_id:
            raise LookupError("No active work context")
        self._store.dispatch(
            MoveTaskToBacklog(task_id=task_id, work_context_id=owner_id, work_context_type=owner_type)
        )
