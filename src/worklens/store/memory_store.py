# src/worklens/store/memory_store.py

from __future__ import annotations

"""
In-memory reference Store.

Holds an immutable StoreState and reduces actions into a new state. State
listeners run first, then action listeners, so an action listener always sees
the state the action produced. Dispatches made from a listener are queued and
reduced after the current one has been fully delivered.
"""

import contextlib
import logging
from collections import deque
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ..context.context_models import (
    INITIAL_CONTEXT_STATE,
    Project,
    Tag,
    UnknownContextTypeError,
    WorkContextState,
    WorkContextType,
)
from ..tasks.task_models import Task
from .actions import (
    Action,
    LoadAllData,
    LoadContextState,
    MoveTaskToBacklog,
    SetActiveContext,
    UpdateAdvancedConfig,
    UpsertTask,
)

logger = logging.getLogger(__name__)

StateListener = Callable[["StoreState"], None]
ActionListener = Callable[[Any], None]


@dataclass(frozen=True, slots=True)
class StoreState:
    context: WorkContextState = INITIAL_CONTEXT_STATE
    tasks: Mapping[str, Task] = field(default_factory=dict)
    projects: Mapping[str, Project] = field(default_factory=dict)
    tags: Mapping[str, Tag] = field(default_factory=dict)


def _merge_section(cfg: Mapping[str, Any], section_key: str, data: Mapping[str, Any]) -> dict[str, Any]:
    out = dict(cfg)
    out[section_key] = {**(cfg.get(section_key) or {}), **data}
    return out


def _update_advanced_config(state: StoreState, action: UpdateAdvancedConfig) -> StoreState:
    owner_type = WorkContextType.parse(action.owner_type)
    if owner_type == WorkContextType.PROJECT:
        project = state.projects.get(action.owner_id)
        if project is None:
            logger.warning("UpdateAdvancedConfig: project %s not found", action.owner_id)
            return state
        cfg = _merge_section(project.advanced_cfg, action.section_key, action.data)
        projects = {**state.projects, project.id: replace(project, advanced_cfg=cfg)}
        return replace(state, projects=projects)
    if owner_type == WorkContextType.TAG:
        tag = state.tags.get(action.owner_id)
        if tag is None:
            logger.warning("UpdateAdvancedConfig: tag %s not found", action.owner_id)
            return state
        cfg = _merge_section(tag.advanced_cfg, action.section_key, action.data)
        tags = {**state.tags, tag.id: replace(tag, advanced_cfg=cfg)}
        return replace(state, tags=tags)
    raise UnknownContextTypeError(action.owner_type)


def _move_task_to_backlog(state: StoreState, action: MoveTaskToBacklog) -> StoreState:
    if WorkContextType.parse(action.work_context_type) != WorkContextType.PROJECT:
        # Only projects have a backlog.
        logger.debug("MoveTaskToBacklog ignored for %s %s", action.work_context_type, action.work_context_id)
        return state
    project = state.projects.get(action.work_context_id)
    if project is None:
        logger.warning("MoveTaskToBacklog: project %s not found", action.work_context_id)
        return state
    today = tuple(t for t in (project.task_ids or ()) if t != action.task_id)
    backlog = (action.task_id, *(t for t in (project.backlog_task_ids or ()) if t != action.task_id))
    projects = {**state.projects, project.id: replace(project, task_ids=today, backlog_task_ids=backlog)}
    return replace(state, projects=projects)


def reduce_state(state: StoreState, action: Action) -> StoreState:
    if isinstance(action, LoadContextState):
        return replace(state, context=action.state)
    if isinstance(action, SetActiveContext):
        return replace(state, context=WorkContextState(active_id=action.active_id, active_type=action.active_type))
    if isinstance(action, UpdateAdvancedConfig):
        return _update_advanced_config(state, action)
    if isinstance(action, MoveTaskToBacklog):
        return _move_task_to_backlog(state, action)
    if isinstance(action, LoadAllData):
        return replace(state, tasks=dict(action.tasks), projects=dict(action.projects), tags=dict(action.tags))
    if isinstance(action, UpsertTask):
        return replace(state, tasks={**state.tasks, action.task.id: action.task})
    logger.debug("Unhandled action %r", action)
    return state


class InMemoryStore:
    def __init__(self, initial: StoreState | None = None) -> None:
        self._state = initial or StoreState()
        self._listeners: list[StateListener] = []
        self._action_listeners: list[ActionListener] = []
        self._queue: deque[Action] = deque()
        self._dispatching = False

    @property
    def state(self) -> StoreState:
        return self._state

    def get_state(self) -> StoreState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        return self._add(self._listeners, listener)

    def subscribe_actions(self, listener: ActionListener) -> Callable[[], None]:
        return self._add(self._action_listeners, listener)

    @staticmethod
    def _add(listeners: list, listener) -> Callable[[], None]:
        listeners.append(listener)

        def _unsubscribe() -> None:
            with contextlib.suppress(ValueError):
                listeners.remove(listener)

        return _unsubscribe

    def dispatch(self, action: Action) -> None:
        self._queue.append(action)
        if self._dispatching:
            return
        self._dispatching = True
        try:
            while self._queue:
                self._apply(self._queue.popleft())
        finally:
            self._dispatching = False
            self._queue.clear()

    def _apply(self, action: Action) -> None:
        logger.debug("dispatch %s", getattr(action, "kind", type(action).__name__))
        new_state = reduce_state(self._state, action)
        changed = new_state is not self._state
        self._state = new_state
        if changed:
            for listener in list(self._listeners):
                listener(new_state)
        for listener in list(self._action_listeners):
            listener(action)


class StoreTagService:
    """Tag collaborator backed by the store's tag slice."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store

    def get_tags(self) -> Mapping[str, Tag]:
        return self._store.get_state().tags

    def get_tag_by_id(self, tag_id: str) -> Tag | None:
        return self._store.get_state().tags.get(tag_id)

    def subscribe(self, listener: Callable[[Mapping[str, Tag]], None]) -> Callable[[], None]:
        return self._store.subscribe(lambda state: listener(state.tags))
