# src/worklens/store/actions.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, ClassVar

from ..context.context_models import Project, Tag, WorkContextState
from ..tasks.task_models import Task


@dataclass(frozen=True, slots=True)
class LoadContextState:
    kind: ClassVar[str] = "[WorkContext] Load Work Context State"
    state: WorkContextState


@dataclass(frozen=True, slots=True)
class SetActiveContext:
    kind: ClassVar[str] = "[WorkContext] Set Active Work Context"
    active_id: str
    active_type: str


@dataclass(frozen=True, slots=True)
class UpdateAdvancedConfig:
    """Merge `data` into section `section_key` of a project's or tag's advanced config."""

    kind: ClassVar[str] = "[WorkContext] Update Advanced Config"
    owner_type: str
    owner_id: str
    section_key: str
    data: Mapping[str, Any]


@dataclass(frozen=True, slots=True)
class MoveTaskToBacklog:
    kind: ClassVar[str] = "[WorkContextMeta] Move Task to Backlog"
    task_id: str
    work_context_id: str
    work_context_type: str


@dataclass(frozen=True, slots=True)
class LoadAllData:
    """Replace the entity collections (hydration of tasks, projects and tags)."""

    kind: ClassVar[str] = "[Store] Load All Data"
    tasks: Mapping[str, Task] = field(default_factory=dict)
    projects: Mapping[str, Project] = field(default_factory=dict)
    tags: Mapping[str, Tag] = field(default_factory=dict)


@dataclass(frozen=True, slots=True)
class UpsertTask:
    kind: ClassVar[str] = "[Task] Upsert Task"
    task: Task


Action = LoadContextState | SetActiveContext | UpdateAdvancedConfig | MoveTaskToBacklog | LoadAllData | UpsertTask
