# src/worklens/tasks/task_metrics.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import date, datetime

from ..core.graph import DerivedNode, Graph, Node, NodeCache
from .task_models import Task

logger = logging.getLogger(__name__)

# Per-day views kept live at once (about a month of lookups).
MAX_DAY_VIEWS = 31


def worklog_day_str(day: date | datetime | None = None) -> str:
    """Worklog key of a (local) day, e.g. '2024-01-31'."""
    if day is None:
        day = datetime.now()
    return day.strftime("%Y-%m-%d")


def time_worked_for_day(tasks: Iterable[Task], day: str) -> float:
    """Sum of time spent on `day`; missing or falsy entries count as 0."""
    total: float = 0
    for task in tasks:
        total += task.spent_on(day)
    return total


def time_estimate_remaining_for_day(tasks: Iterable[Task], day: str) -> float:
    """
    Sum of max(0, estimate + spent_on_day - spent) over tasks touched on `day`.

    Tasks without an entry for `day` are left out, even with a positive
    estimate: remaining time is only attributed to days a task was worked on.
    """
    total: float = 0
    for task in tasks:
        if day not in task.time_spent_on_day:
            continue
        remaining = task.time_estimate + task.spent_on(day) - task.time_spent
        if remaining > 0:
            total += remaining
    return total


class TaskMetrics:
    """
    Per-day metric views over today's tasks. Only the `max_days` most recently
    requested days stay attached to the graph; older day nodes are released.
    """

    def __init__(self, graph: Graph, todays_tasks: Node, *, max_days: int = MAX_DAY_VIEWS) -> None:
        self._graph = graph
        self._todays_tasks = todays_tasks
        self._worked = NodeCache(graph, max_days)
        self._remaining = NodeCache(graph, max_days)

    def time_worked_for_day(self, day: str | None = None) -> DerivedNode:
        day = day or worklog_day_str()
        return self._worked.get(
            day,
            lambda: self._graph.derive(
                f"time_worked[{day}]",
                [self._todays_tasks],
                lambda tasks: time_worked_for_day(tasks, day),
            ),
        )

    def time_estimate_remaining_for_day(self, day: str | None = None) -> DerivedNode:
        day = day or worklog_day_str()
        return self._remaining.get(
            day,
            lambda: self._graph.derive(
                f"time_estimate_remaining[{day}]",
                [self._todays_tasks],
                lambda tasks: time_estimate_remaining_for_day(tasks, day),
            ),
        )
