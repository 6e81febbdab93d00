# src/worklens/context/context_view.py

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from ..core.graph import NO_VALUE, DerivedNode, Graph, Node
from .context_models import (
    ActiveContextRef,
    Project,
    Tag,
    UnknownContextTypeError,
    WorkContext,
    WorkContextType,
)

logger = logging.getLogger(__name__)


def tag_to_context(tag: Tag) -> WorkContext:
    return WorkContext(
        id=tag.id,
        type=WorkContextType.TAG,
        title=tag.title,
        task_ids=tag.task_ids,
        backlog_task_ids=(),
        icon=tag.icon,
        theme=tag.theme,
        advanced_cfg=tag.advanced_cfg,
        router_link=f"tag/{tag.id}",
    )


def project_to_context(project: Project) -> WorkContext:
    return WorkContext(
        id=project.id,
        type=WorkContextType.PROJECT,
        title=project.title,
        task_ids=project.task_ids or (),
        backlog_task_ids=project.backlog_task_ids or (),
        icon=None,
        theme=project.theme,
        advanced_cfg=project.advanced_cfg,
        router_link=f"project/{project.id}",
    )


def build_work_context(
    ref: ActiveContextRef,
    tags: Mapping[str, Tag],
    projects: Mapping[str, Project],
) -> WorkContext | None:
    """
    Look up and decorate the entity for `ref`.

    Returns None while the entity is not loaded; raises UnknownContextTypeError
    when the type is neither TAG nor PROJECT.
    """
    kind = WorkContextType.parse(ref.active_type)
    if kind == WorkContextType.TAG:
        tag = tags.get(ref.active_id)
        return tag_to_context(tag) if tag is not None else None
    if kind == WorkContextType.PROJECT:
        project = projects.get(ref.active_id)
        return project_to_context(project) if project is not None else None
    raise UnknownContextTypeError(kind)


class ContextViewBuilder:
    """
    Active context view.

    Computed from the current pair only, so a lookup for a previous pair can
    never land after a switch. While the entity is missing the view publishes
    nothing and listeners keep their last value until it shows up.
    """

    def __init__(self, graph: Graph, active_ref: Node, tags: Node, projects: Node) -> None:
        self._reported: set[ActiveContextRef] = set()
        self.active_work_context: DerivedNode = graph.derive(
            "active_work_context", [active_ref, tags, projects], self._compute
        )

    def _compute(
        self, ref: ActiveContextRef, tags: Mapping[str, Tag], projects: Mapping[str, Project]
    ) -> WorkContext | Any:
        try:
            ctx = build_work_context(ref, tags, projects)
        except UnknownContextTypeError:
            if ref not in self._reported:
                self._reported.add(ref)
                logger.error("Active context %s has unknown type %r; view stalled", ref.active_id, ref.active_type)
            return NO_VALUE
        if ctx is None:
            logger.debug("%s %s not loaded yet", ref.active_type, ref.active_id)
            return NO_VALUE
        return ctx


def main_work_contexts(tags: Mapping[str, Tag], my_day_tag_id: str) -> list[WorkContext] | Any:
    tag = tags.get(my_day_tag_id)
    if tag is None:
        return NO_VALUE
    return [tag_to_context(tag)]
