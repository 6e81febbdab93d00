# src/worklens/cli/main.py

"""
CLI entrypoint.

Loads a store snapshot, hydrates the active context, optionally navigates to a
route and prints the derived views of the resulting work context.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from ..config import get_settings
from ..context.context_service import WorkContextService
from ..core.navigation import Router
from ..logging_setup import setup_logging
from ..store.memory_store import InMemoryStore, StoreTagService
from ..store.persistence import JsonContextPersistence, load_store_snapshot
from ..tasks.task_metrics import worklog_day_str

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="worklens", description="Show derived views of a work context.")
    p.add_argument("snapshot", type=Path, help="JSON store snapshot (tasks, projects, tags)")
    p.add_argument("--route", default="", help="navigate before printing, e.g. project/p1")
    p.add_argument("--day", default=None, help="worklog day YYYY-MM-DD (default: today)")
    p.add_argument("--state", type=Path, default=None, help="persisted context state JSON")
    p.add_argument("--save", action="store_true", help="write the resulting context state back")
    return p


def _titles(tasks) -> str:
    return ", ".join(t.title or t.id for t in tasks) or "-"


def render_summary(service: WorkContextService, day: str) -> str:
    ctx = service.active_work_context.get()
    if ctx is None:
        return f"Work context {service.active_type}/{service.active_id} is not loaded."

    lines = [
        f"{ctx.type.value} {ctx.title or ctx.id} ({ctx.router_link})",
        f"  today:      {len(service.todays_tasks.get([]))} tasks",
        f"  backlog:    {len(service.backlog_tasks.get([]))} tasks",
        f"  undone:     {_titles(service.undone_tasks.get([]))}",
        f"  done:       {_titles(service.done_tasks.get([]))}",
        f"  startable:  {_titles(service.startable_tasks.get([]))}",
        f"  worked {day}: {service.get_time_worked_for_day(day).get(0)}",
        f"  remaining {day}: {service.get_time_estimate_for_day(day).get(0)}",
        f"  estimate remaining today: {service.estimate_remaining_today.get(0)}",
        f"  worked on / done / repeatable: "
        f"{_titles(service.get_tasks_worked_on_or_done_or_repeatable_flat(day).get([]))}",
    ]
    return "\n".join(lines)


async def _run(args: argparse.Namespace) -> int:
    settings = get_settings()

    store = InMemoryStore(load_store_snapshot(args.snapshot))
    persistence = JsonContextPersistence(args.state or settings.context_state_path)
    router = Router()

    service = WorkContextService(
        store,
        StoreTagService(store),
        persistence=persistence,
        navigation=router,
        context_change_delay_s=settings.context_change_delay_s,
        my_day_tag_id=settings.my_day_tag_id,
    )
    try:
        service.load()
        if args.route:
            router.navigate(args.route)

        print(render_summary(service, args.day or worklog_day_str()))

        if args.save:
            persistence.save_state(store.get_state().context)
        return 0
    finally:
        service.close()


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s...", settings.app_name)
    return asyncio.run(_run(args))


if __name__ == "__main__":
    raise SystemExit(main())
