# tests/test_task_metrics.py

from __future__ import annotations

from datetime import date, timedelta

from worklens.context.context_models import Tag, WorkContextState
from worklens.store.actions import UpsertTask
from worklens.tasks.task_metrics import (
    MAX_DAY_VIEWS,
    time_estimate_remaining_for_day,
    time_worked_for_day,
    worklog_day_str,
)
from worklens.tasks.task_models import Task

from .conftest import DAY, make_state
from .fakes import Recorder


def _today_state(*tasks: Task):
    return make_state(
        tasks=tasks,
        tags=[Tag(id="T", task_ids=tuple(t.id for t in tasks))],
        context=WorkContextState(active_id="T", active_type="TAG"),
    )


def test_time_worked_ignores_tasks_without_entry(make_service) -> None:
    service, _ = make_service(
        _today_state(
            Task(id="A", time_spent_on_day={DAY: 30}),
            Task(id="B"),
        )
    )

    assert service.get_time_worked_for_day(DAY).get() == 30


def test_time_worked_for_empty_today_is_zero(make_service) -> None:
    service, _ = make_service(_today_state())

    assert service.get_time_worked_for_day(DAY).get() == 0


def test_time_worked_treats_falsy_entries_as_zero() -> None:
    tasks = [Task(id="a", time_spent_on_day={DAY: None}), Task(id="b", time_spent_on_day={DAY: 5})]
    assert time_worked_for_day(tasks, DAY) == 5


def test_remaining_estimate_counts_only_tasks_touched_that_day() -> None:
    touched = Task(id="t", time_estimate=60, time_spent=40, time_spent_on_day={"d": 20})
    untouched = Task(id="u", time_estimate=500)

    assert time_estimate_remaining_for_day([touched], "d") == 40
    assert time_estimate_remaining_for_day([untouched], "d") == 0
    assert time_estimate_remaining_for_day([touched, untouched], "d") == 40


def test_remaining_estimate_is_clamped_per_task() -> None:
    over = Task(id="o", time_estimate=10, time_spent=100, time_spent_on_day={"d": 5})
    ok = Task(id="k", time_estimate=50, time_spent=10, time_spent_on_day={"d": 0})

    assert time_estimate_remaining_for_day([over, ok], "d") == 40


def test_remaining_estimate_on_sample_today(service) -> None:
    service.set_active_context("TODAY", "TAG")

    # Only S has an entry for DAY: 60 + 20 - 40.
    assert service.get_time_estimate_for_day(DAY).get() == 40


def test_time_worked_reemits_only_on_change(make_service) -> None:
    service, store = make_service(_today_state(Task(id="A", time_spent_on_day={DAY: 30})))
    rec = Recorder()
    service.get_time_worked_for_day(DAY).subscribe(rec)

    store.dispatch(UpsertTask(task=Task(id="A", title="renamed", time_spent_on_day={DAY: 30})))
    store.dispatch(UpsertTask(task=Task(id="A", title="renamed", time_spent_on_day={DAY: 45})))

    assert rec.values == [30, 45]


def test_day_views_are_cached_per_day(service) -> None:
    assert service.get_time_worked_for_day(DAY) is service.get_time_worked_for_day(DAY)
    assert service.get_time_worked_for_day(DAY) is not service.get_time_worked_for_day("2024-01-02")
    assert service.working_today is service.get_time_worked_for_day(worklog_day_str())


def test_old_day_views_are_released(service) -> None:
    service.set_active_context("TODAY", "TAG")
    todays_tasks = service.aggregates.todays_tasks
    before = len(todays_tasks.downstream)
    first_day = service.get_time_worked_for_day(DAY)

    for offset in range(365):
        day = worklog_day_str(date(2024, 1, 1) + timedelta(days=offset))
        service.get_time_worked_for_day(day)
        service.get_time_estimate_for_day(day)

    assert len(todays_tasks.downstream) <= before + 2 * MAX_DAY_VIEWS
    assert first_day not in todays_tasks.downstream

    fresh = service.get_time_worked_for_day(DAY)
    assert fresh is not first_day
    assert fresh.get() == 20


def test_non_numeric_day_entries_count_as_zero() -> None:
    tasks = [
        Task(id="a", time_spent_on_day={DAY: "ten"}),
        Task(id="b", time_spent_on_day={DAY: True}),
        Task(id="c", time_spent_on_day={DAY: -5}),
        Task(id="d", time_spent_on_day={DAY: 7}),
    ]

    assert time_worked_for_day(tasks, DAY) == 7
