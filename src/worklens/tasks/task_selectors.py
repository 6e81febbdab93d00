# src/worklens/tasks/task_selectors.py

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Callable, Mapping, Sequence

from .task_models import Task, TaskWithSubTasks

logger = logging.getLogger(__name__)

TaskEntities = Mapping[str, Task]
TaskLookup = Callable[[TaskEntities, Sequence[str]], list[TaskWithSubTasks]]

_TASK_FIELDS = tuple(f.name for f in dataclasses.fields(Task))


def with_sub_tasks(task: Task, entities: TaskEntities) -> TaskWithSubTasks:
    """Materialize subtasks; ids that do not resolve are skipped."""
    subs = tuple(entities[sid] for sid in task.sub_task_ids if sid in entities)
    base = {name: getattr(task, name) for name in _TASK_FIELDS}
    return TaskWithSubTasks(**base, sub_tasks=subs)


def select_tasks_with_subtasks_by_ids(entities: TaskEntities, ids: Sequence[str]) -> list[TaskWithSubTasks]:
    """
    Bulk lookup keeping the order of `ids`.

    `ids` must be a real sequence of ids (list/tuple); anything else, including a
    bare string, is a caller bug and raises TypeError. Ids missing from the
    collection are skipped.
    """
    if isinstance(ids, (str, bytes)) or not isinstance(ids, Sequence):
        raise TypeError(f"Invalid task ids provided for lookup: {type(ids).__name__}")

    out: list[TaskWithSubTasks] = []
    for tid in ids:
        task = entities.get(tid)
        if task is None:
            logger.debug("Task %s not in collection; skipped", tid)
            continue
        out.append(with_sub_tasks(task, entities))
    return out
