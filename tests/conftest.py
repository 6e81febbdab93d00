# tests/conftest.py

from __future__ import annotations

from collections.abc import Iterable

import pytest

from worklens.context.context_models import Project, Tag, WorkContextState
from worklens.context.context_service import WorkContextService
from worklens.core.navigation import Router
from worklens.store.memory_store import InMemoryStore, StoreState, StoreTagService
from worklens.tasks.task_models import Task

from .fakes import FakeContextPersistence, FakeTimerFactory

DAY = "2024-01-01"


def make_state(
    *,
    tasks: Iterable[Task] = (),
    tags: Iterable[Tag] = (),
    projects: Iterable[Project] = (),
    context: WorkContextState | None = None,
) -> StoreState:
    return StoreState(
        context=context or WorkContextState(),
        tasks={t.id: t for t in tasks},
        projects={p.id: p for p in projects},
        tags={t.id: t for t in tags},
    )


@pytest.fixture()
def timers() -> FakeTimerFactory:
    return FakeTimerFactory()


@pytest.fixture()
def router() -> Router:
    return Router()


@pytest.fixture()
def persistence() -> FakeContextPersistence:
    return FakeContextPersistence()


@pytest.fixture()
def sample_state() -> StoreState:
    """
    TODAY tag with a parent P (two subtasks) and a standalone task S;
    project p1 with today [A] and backlog [B].
    """
    tasks = [
        Task(id="P", title="parent", sub_task_ids=("C1", "C2"), tag_ids=("TODAY",)),
        Task(id="C1", title="child 1", parent_id="P", time_estimate=30),
        Task(id="C2", title="child 2", parent_id="P", time_estimate=20, is_done=True),
        Task(id="S", title="standalone", time_estimate=60, time_spent=40, time_spent_on_day={DAY: 20}),
        Task(id="A", title="project task", project_id="p1", time_spent_on_day={DAY: 15}),
        Task(id="B", title="backlog task", project_id="p1", repeat_cfg_id="rc1"),
    ]
    tags = [Tag(id="TODAY", title="Today", task_ids=("P", "S"), theme={"primary": "#6495ED"})]
    projects = [Project(id="p1", title="Project 1", task_ids=("A",), backlog_task_ids=("B",), icon="star")]
    return make_state(tasks=tasks, tags=tags, projects=projects)


@pytest.fixture()
def store(sample_state: StoreState) -> InMemoryStore:
    return InMemoryStore(sample_state)


@pytest.fixture()
def service(store, router, timers, persistence) -> WorkContextService:
    svc = WorkContextService(
        store,
        StoreTagService(store),
        persistence=persistence,
        navigation=router,
        timer_factory=timers,
        context_change_delay_s=0.05,
    )
    yield svc
    svc.close()


@pytest.fixture()
def make_service(timers):
    """Factory: build a (service, store) pair over a custom StoreState."""
    created: list[WorkContextService] = []

    def _make(state: StoreState, **kwargs):
        store = InMemoryStore(state)
        svc = WorkContextService(store, StoreTagService(store), timer_factory=timers, **kwargs)
        created.append(svc)
        return svc, store

    yield _make
    for svc in created:
        svc.close()
