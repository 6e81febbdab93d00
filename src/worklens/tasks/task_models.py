# src/worklens/tasks/task_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


def _duration(raw: Any) -> float:
    if isinstance(raw, bool) or not isinstance(raw, (int, float)):
        return 0
    return raw if raw > 0 else 0


@dataclass(frozen=True, slots=True)
class Task:
    """
    A stored task as seen by the engine (read-only).

    Durations are non-negative numbers in the unit the store uses (ms in
    persisted snapshots). `time_spent_on_day` is sparse: a day with no entry
    means the task was not touched that day.
    """

    id: str
    title: str = ""
    parent_id: str | None = None
    sub_task_ids: tuple[str, ...] = ()
    is_done: bool = False
    time_spent_on_day: Mapping[str, float] = field(default_factory=dict)
    time_estimate: float = 0
    time_spent: float = 0
    repeat_cfg_id: str | None = None
    project_id: str | None = None
    tag_ids: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Task:
        spent_on_day = data.get("timeSpentOnDay") or {}
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            parent_id=data.get("parentId") or None,
            sub_task_ids=tuple(str(x) for x in (data.get("subTaskIds") or ())),
            is_done=bool(data.get("isDone")),
            time_spent_on_day={str(k): v for k, v in spent_on_day.items()},
            time_estimate=_duration(data.get("timeEstimate")),
            time_spent=_duration(data.get("timeSpent")),
            repeat_cfg_id=data.get("repeatCfgId") or None,
            project_id=data.get("projectId") or None,
            tag_ids=tuple(str(x) for x in (data.get("tagIds") or ())),
        )

    def spent_on(self, day: str) -> float:
        """Time spent on `day`; missing, non-numeric or negative entries read as 0."""
        return _duration(self.time_spent_on_day.get(day))


@dataclass(frozen=True, slots=True)
class TaskWithSubTasks(Task):
    """A task plus its materialized subtasks (a view, never stored)."""

    sub_tasks: tuple[Task, ...] = ()
