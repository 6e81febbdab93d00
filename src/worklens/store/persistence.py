# src/worklens/store/persistence.py

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Any

from ..context.context_models import Project, Tag, WorkContextState
from ..tasks.task_models import Task
from .memory_store import StoreState

logger = logging.getLogger(__name__)


class JsonContextPersistence:
    """
    Active-context snapshot stored as JSON: {"activeId": ..., "activeType": ...}.

    Reads are best-effort (missing or corrupt file -> None); writes are atomic.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load_state(self) -> WorkContextState | None:
        if not self._path.exists():
            return None
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read context state from %s", self._path)
            return None
        if not isinstance(data, dict):
            logger.warning("Ignoring context state in %s: not an object", self._path)
            return None
        state = WorkContextState.from_dict(data)
        logger.info("Loaded context state %s/%s from %s", state.active_type, state.active_id, self._path)
        return state

    def save_state(self, state: WorkContextState) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(state.to_dict(), ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp_path, self._path)
        logger.debug("Saved context state to %s", self._path)


def _entities(raw: Any, factory) -> dict[str, Any]:
    """Accept either {"ids": [...], "entities": {...}} or a plain id->entity mapping/list."""
    if isinstance(raw, dict) and "entities" in raw:
        raw = raw["entities"]
    if isinstance(raw, dict):
        raw = raw.values()
    out: dict[str, Any] = {}
    for item in raw or ():
        if isinstance(item, dict) and item.get("id") is not None:
            entity = factory(item)
            out[entity.id] = entity
    return out


def store_state_from_dict(data: dict[str, Any]) -> StoreState:
    context = data.get("context")
    return StoreState(
        context=WorkContextState.from_dict(context) if isinstance(context, dict) else WorkContextState(),
        tasks=_entities(data.get("tasks"), Task.from_dict),
        projects=_entities(data.get("projects"), Project.from_dict),
        tags=_entities(data.get("tags"), Tag.from_dict),
    )


def load_store_snapshot(path: str | Path) -> StoreState:
    """Read a full store snapshot (tasks, projects, tags, context) from JSON."""
    path = Path(path)
    data = json.loads(path.read_text("utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"Store snapshot {path} must be a JSON object")
    state = store_state_from_dict(data)
    logger.info(
        "Loaded snapshot %s: tasks=%s projects=%s tags=%s",
        path,
        len(state.tasks),
        len(state.projects),
        len(state.tags),
    )
    return state
