# src/worklens/tasks/task_flatten.py

from __future__ import annotations

from collections.abc import Iterable, Sequence

from ..core.graph import DerivedNode, Graph, Node, NodeCache
from .task_metrics import MAX_DAY_VIEWS
from .task_models import Task, TaskWithSubTasks


def flatten_tasks(tasks: Iterable[TaskWithSubTasks]) -> list[Task]:
    """Each task followed by its subtasks."""
    flat: list[Task] = []
    for task in tasks:
        flat.append(task)
        flat.extend(task.sub_tasks)
    return flat


def _dedupe(tasks: Iterable[Task]) -> list[Task]:
    seen: set[str] = set()
    out: list[Task] = []
    for task in tasks:
        if task.id in seen:
            continue
        seen.add(task.id)
        out.append(task)
    return out


def repeatable_tasks_flat(tasks: Iterable[TaskWithSubTasks]) -> list[Task]:
    return [t for t in flatten_tasks(tasks) if t.repeat_cfg_id is not None]


def worked_on_or_done_flat(tasks: Iterable[TaskWithSubTasks], day: str) -> list[Task]:
    out: list[Task] = []
    for t in flatten_tasks(tasks):
        if t.is_done or t.spent_on(day) > 0:
            out.append(t)
    return out


def worked_on_or_done_or_repeatable_flat(
    repeatable: Sequence[Task], worked_on_or_done: Sequence[Task]
) -> list[Task]:
    """Repeatable tasks come only from `repeatable`; ids never repeat."""
    rest = [t for t in worked_on_or_done if t.repeat_cfg_id is None]
    return _dedupe([*repeatable, *rest])


class TaskFlattener:
    """
    Flat views over today + backlog. Per-day views are kept for the
    `max_days` most recently requested days.
    """

    def __init__(
        self,
        graph: Graph,
        todays_tasks: Node,
        backlog_tasks: Node,
        *,
        max_days: int = MAX_DAY_VIEWS,
    ) -> None:
        self._graph = graph
        self.all_non_archive_tasks: DerivedNode = graph.derive(
            "all_non_archive_tasks",
            [todays_tasks, backlog_tasks],
            lambda today, backlog: [*today, *backlog],
        )
        self.all_repeatable_tasks_flat: DerivedNode = graph.derive(
            "all_repeatable_tasks_flat", [self.all_non_archive_tasks], repeatable_tasks_flat
        )
        self._worked = NodeCache(graph, max_days)
        self._worked_or_repeatable = NodeCache(graph, max_days)

    def tasks_worked_on_or_done_flat(self, day: str) -> DerivedNode:
        return self._worked.get(
            day,
            lambda: self._graph.derive(
                f"tasks_worked_on_or_done_flat[{day}]",
                [self.all_non_archive_tasks],
                lambda tasks: worked_on_or_done_flat(tasks, day),
            ),
        )

    def tasks_worked_on_or_done_or_repeatable_flat(self, day: str) -> DerivedNode:
        # Built from the shared nodes only, so each day cache can drop entries on its own.
        return self._worked_or_repeatable.get(
            day,
            lambda: self._graph.derive(
                f"tasks_worked_on_or_done_or_repeatable_flat[{day}]",
                [self.all_repeatable_tasks_flat, self.all_non_archive_tasks],
                lambda repeatable, tasks: worked_on_or_done_or_repeatable_flat(
                    repeatable, worked_on_or_done_flat(tasks, day)
                ),
            ),
        )
