# src/tsumiage/tasks/task_api.py

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from enum import StrEnum

from ..core.dates import as_day
from ..core.errors import NotFoundError
from ..core.ports import TaskRepo
from .recurrence import RecurrenceExpansion, RecurrenceRequest, expand_recurrence, insert_series
from .task_models import Category, Priority, Task, TaskFilter

logger = logging.getLogger(__name__)

DEFAULT_MAX_RECURRENCE_DAYS = 366


def _clean_title(title: str) -> str:
    cleaned = (title or "").strip()
    if not cleaned:
        raise ValueError("title is required")
    return cleaned


def create_task(
    store: TaskRepo,
    *,
    title: str,
    scheduled_at: datetime,
    priority: Priority = Priority.MEDIUM,
    category: Category = Category.WORK,
) -> Task:
    """Create and persist a standalone task."""
    task = Task.new(
        title=_clean_title(title),
        scheduled_at=scheduled_at,
        priority=priority,
        category=category,
    )
    store.insert(task)
    logger.info("Task created id=%s at=%s", task.id, task.scheduled_at)
    return task


def submit_task(
    store: TaskRepo,
    request: RecurrenceRequest,
    *,
    max_recurrence_days: int = DEFAULT_MAX_RECURRENCE_DAYS,
) -> RecurrenceExpansion:
    """
    The creation flow: one standalone task, or a whole recurrence series.

    - blank titles are rejected (ValueError)
    - the end date is clamped to anchor + max_recurrence_days
    - a recurring request whose expansion is empty falls back to a single
      standalone task at the anchor
    """
    request = replace(request, title=_clean_title(request.title))

    if request.is_recurring and request.end_date is not None:
        limit = request.anchor.date() + timedelta(days=max(0, int(max_recurrence_days)))
        if as_day(request.end_date) > limit:
            logger.warning(
                "Recurrence end %s beyond %d days; clamped to %s",
                as_day(request.end_date),
                max_recurrence_days,
                limit,
            )
            request = replace(request, end_date=limit)

    expansion = expand_recurrence(request)

    if request.is_recurring and not expansion.tasks:
        logger.info("Recurrence produced no occurrences; saving a single task instead")
        expansion = expand_recurrence(replace(request, weekdays=frozenset()))

    if expansion.group_id is None:
        for task in expansion.tasks:
            store.insert(task)
    else:
        insert_series(store, expansion.tasks)

    logger.info(
        "Task submission saved %d task(s) group=%s",
        len(expansion.tasks),
        expansion.group_id,
    )
    return expansion


class DeletionScope(StrEnum):
    SINGLE = "single"
    FORWARD = "forward"  # this occurrence and all later ones in the group


def deletion_scopes(task: Task) -> tuple[DeletionScope, ...]:
    """Scopes a caller may offer for this task (only group members get a choice)."""
    if task.recurrence_group_id is None:
        return (DeletionScope.SINGLE,)
    return (DeletionScope.SINGLE, DeletionScope.FORWARD)


def delete_task(
    store: TaskRepo,
    task_id: str,
    scope: DeletionScope = DeletionScope.SINGLE,
) -> int:
    """
    Delete a task, or with FORWARD, it and every later occurrence of its group.

    Occurrences scheduled before the target are untouched. Standalone tasks
    always delete singly. A missing target is a no-op. Returns rows removed.
    """
    target = store.get(task_id)
    if target is None:
        logger.debug("delete_task: id=%s already gone", task_id)
        return 0

    group_id = target.recurrence_group_id
    if scope is DeletionScope.SINGLE or group_id is None:
        return 1 if store.delete(target.id) else 0

    doomed = store.query_by(
        TaskFilter(recurrence_group_id=group_id, scheduled_from=target.scheduled_at)
    )
    removed = sum(1 for t in doomed if store.delete(t.id))
    logger.info("Forward delete group=%s from=%s removed=%d", group_id, target.scheduled_at, removed)
    return removed


def set_completed(store: TaskRepo, task_id: str, completed: bool = True) -> Task:
    """Set the completion flag (last writer wins). NotFoundError propagates."""
    return store.update(task_id, lambda t: replace(t, is_completed=completed))


def toggle_completion(store: TaskRepo, task_id: str) -> Task:
    return store.update(task_id, lambda t: replace(t, is_completed=not t.is_completed))


def edit_task(
    store: TaskRepo,
    task_id: str,
    *,
    title: str | None = None,
    scheduled_at: datetime | None = None,
    priority: Priority | None = None,
    category: Category | None = None,
) -> Task:
    """
    In-place field edits. Only provided fields change; the recurrence link
    and completion flag are kept. NotFoundError propagates.
    """
    new_title = _clean_title(title) if title is not None else None

    def mutate(t: Task) -> Task:
        return replace(
            t,
            title=t.title if new_title is None else new_title,
            scheduled_at=t.scheduled_at if scheduled_at is None else scheduled_at,
            priority=t.priority if priority is None else priority,
            category=t.category if category is None else category,
        )

    return store.update(task_id, mutate)


def resolve_task_id(store: TaskRepo, prefix: str) -> str:
    """
    Find the task whose id starts with `prefix` (console convenience).

    Raises NotFoundError when nothing matches and ValueError when the
    prefix is ambiguous.
    """
    p = (prefix or "").strip().lower()
    if not p:
        raise NotFoundError(prefix)

    exact = store.get(p)
    if exact is not None:
        return exact.id

    hits = [t.id for t in store.query_all() if t.id.startswith(p)]
    if not hits:
        raise NotFoundError(prefix)
    if len(hits) > 1:
        raise ValueError(f"ambiguous task id prefix: {prefix} ({len(hits)} matches)")
    return hits[0]
