# src/worklens/tasks/task_aggregates.py

from __future__ import annotations

"""
Task aggregation over the active work context.

Pure functions do the work; TaskAggregationEngine wires them into the graph:

    active_work_context ─┬─ todays_task_ids ──┬─ todays_tasks ─┬─ done / undone
                         │                     │ (task lookup)  ├─ has tasks to work on
                         │                     │                └─ estimate remaining
                         ├─ backlog_task_ids ──┴─ backlog_tasks
                         └──────── startable_tasks (joined with task entities)
"""

import logging
from collections.abc import Collection, Iterable, Mapping, Sequence

from ..context.context_models import WorkContext
from ..core.graph import DerivedNode, Graph, Node
from .task_models import Task, TaskWithSubTasks
from .task_selectors import TaskLookup, select_tasks_with_subtasks_by_ids

logger = logging.getLogger(__name__)


def partition_done(tasks: Iterable[TaskWithSubTasks]) -> tuple[list[TaskWithSubTasks], list[TaskWithSubTasks]]:
    """Single pass split into (done, undone), keeping order."""
    done: list[TaskWithSubTasks] = []
    undone: list[TaskWithSubTasks] = []
    for task in tasks:
        (done if task.is_done else undone).append(task)
    return done, undone


def is_startable(task: Task, today_ids: Collection[str]) -> bool:
    """Undone leaf work: a subtask of a today parent, or a childless today task."""
    if task.is_done:
        return False
    if task.parent_id:
        return task.parent_id in today_ids
    return task.id in today_ids and not task.sub_task_ids


def select_startable_tasks(today_ids: Sequence[str], entities: Mapping[str, Task]) -> list[Task]:
    ids = frozenset(today_ids)
    return [task for task in entities.values() if is_startable(task, ids)]


def has_tasks_to_work_on(tasks: Iterable[TaskWithSubTasks]) -> bool:
    for task in tasks:
        if task.is_done:
            continue
        if not task.sub_tasks or any(not st.is_done for st in task.sub_tasks):
            return True
    return False


def _remaining(task: Task) -> float:
    if task.is_done:
        return 0
    return max(0, task.time_estimate - task.time_spent)


def estimate_remaining_from_tasks(tasks: Iterable[TaskWithSubTasks]) -> float:
    """
    Remaining estimate of a task list. A parent with subtasks counts the sum of
    its subtasks instead of its own estimate; a done parent counts nothing.
    """
    total: float = 0
    for task in tasks:
        if task.is_done:
            continue
        if task.sub_tasks:
            total += sum(_remaining(st) for st in task.sub_tasks)
        else:
            total += _remaining(task)
    return total


class TaskAggregationEngine:
    """
    Derived task views of the active context.

    The task lookup is injected so the engine does not reach into the task
    store module; tests pass their own.
    """

    def __init__(
        self,
        graph: Graph,
        active_work_context: Node,
        task_entities: Node,
        *,
        task_lookup: TaskLookup = select_tasks_with_subtasks_by_ids,
    ) -> None:
        self._lookup = task_lookup

        self.todays_task_ids: DerivedNode = graph.derive(
            "todays_task_ids", [active_work_context], self._today_ids
        )
        self.backlog_task_ids: DerivedNode = graph.derive(
            "backlog_task_ids", [active_work_context], self._backlog_ids
        )
        self.todays_tasks: DerivedNode = graph.derive(
            "todays_tasks", [self.todays_task_ids, task_entities], self._materialize
        )
        self.backlog_tasks: DerivedNode = graph.derive(
            "backlog_tasks", [self.backlog_task_ids, task_entities], self._materialize
        )

        partition = graph.derive("done_partition", [self.todays_tasks], partition_done)
        self.done_tasks: DerivedNode = graph.derive("done_tasks", [partition], lambda p: p[0])
        self.undone_tasks: DerivedNode = graph.derive("undone_tasks", [partition], lambda p: p[1])

        self.startable_tasks: DerivedNode = graph.derive(
            "startable_tasks",
            [active_work_context, task_entities],
            lambda ctx, entities: select_startable_tasks(ctx.task_ids, entities),
        )

        self.is_has_tasks_to_work_on: DerivedNode = graph.derive(
            "is_has_tasks_to_work_on", [self.todays_tasks], has_tasks_to_work_on
        )
        self.estimate_remaining_today: DerivedNode = graph.derive(
            "estimate_remaining_today", [self.todays_tasks], estimate_remaining_from_tasks
        )

    @staticmethod
    def _today_ids(ctx: WorkContext) -> tuple[str, ...]:
        return tuple(ctx.task_ids)

    @staticmethod
    def _backlog_ids(ctx: WorkContext) -> tuple[str, ...]:
        return tuple(ctx.backlog_task_ids or ())

    def _materialize(self, ids: Sequence[str], entities: Mapping[str, Task]) -> list[TaskWithSubTasks]:
        tasks = self._lookup(entities, ids)
        logger.debug("Materialized %s/%s tasks", len(tasks), len(ids))
        return tasks
