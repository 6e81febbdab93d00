# src/worklens/context/context_models.py

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

MY_DAY_TAG_ID = "TODAY"
WORKLOG_EXPORT_SETTINGS = "worklogExportSettings"


class UnknownContextTypeError(ValueError):
    """Raised when a context type matches neither TAG nor PROJECT."""

    def __init__(self, raw: Any) -> None:
        super().__init__(f"Unknown work context type: {raw!r}")
        self.raw = raw


class WorkContextType(StrEnum):
    TAG = "TAG"
    PROJECT = "PROJECT"

    @classmethod
    def parse(cls, raw: Any) -> WorkContextType:
        if isinstance(raw, cls):
            return raw
        try:
            return cls(str(raw).strip().upper())
        except ValueError:
            raise UnknownContextTypeError(raw) from None


@dataclass(frozen=True, slots=True)
class WorkContextState:
    """
    The store slice naming the active context.

    `active_type` is kept raw (str) so a persisted snapshot holding an unknown
    type can still be represented; consumers parse it with WorkContextType.parse.
    """

    active_id: str | None = None
    active_type: str | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> WorkContextState:
        active_id = data.get("activeId")
        active_type = data.get("activeType")
        return cls(
            active_id=str(active_id) if active_id is not None else None,
            active_type=str(active_type) if active_type is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {"activeId": self.active_id, "activeType": self.active_type}


INITIAL_CONTEXT_STATE = WorkContextState(active_id=MY_DAY_TAG_ID, active_type=WorkContextType.TAG)


@dataclass(frozen=True, slots=True)
class ActiveContextRef:
    """Resolved (id, type) pair. Compared by value."""

    active_id: str
    active_type: str


def _ids(raw: Any) -> tuple[str, ...]:
    return tuple(str(x) for x in (raw or ()))


@dataclass(frozen=True, slots=True)
class Tag:
    id: str
    title: str = ""
    task_ids: tuple[str, ...] = ()
    icon: str | None = None
    theme: Mapping[str, Any] = field(default_factory=dict)
    advanced_cfg: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Tag:
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            task_ids=_ids(data.get("taskIds")),
            icon=data.get("icon"),
            theme=dict(data.get("theme") or {}),
            advanced_cfg=dict(data.get("advancedCfg") or {}),
        )


@dataclass(frozen=True, slots=True)
class Project:
    """Projects may arrive without id lists (older snapshots): None means missing."""

    id: str
    title: str = ""
    task_ids: tuple[str, ...] | None = None
    backlog_task_ids: tuple[str, ...] | None = None
    icon: str | None = None
    theme: Mapping[str, Any] = field(default_factory=dict)
    advanced_cfg: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Project:
        task_ids = data.get("taskIds")
        backlog = data.get("backlogTaskIds")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title") or ""),
            task_ids=_ids(task_ids) if task_ids is not None else None,
            backlog_task_ids=_ids(backlog) if backlog is not None else None,
            icon=data.get("icon"),
            theme=dict(data.get("theme") or {}),
            advanced_cfg=dict(data.get("advancedCfg") or {}),
        )


@dataclass(frozen=True, slots=True)
class WorkContext:
    """Denormalized view of the active tag or project."""

    id: str
    type: WorkContextType
    title: str = ""
    task_ids: tuple[str, ...] = ()
    backlog_task_ids: tuple[str, ...] = ()
    icon: str | None = None
    theme: Mapping[str, Any] = field(default_factory=dict)
    advanced_cfg: Mapping[str, Any] = field(default_factory=dict)
    router_link: str = ""
