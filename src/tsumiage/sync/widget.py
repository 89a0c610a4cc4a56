# src/tsumiage/sync/widget.py

"""
Secondary surface (home-screen widget / automation action).

Runs in its own process against the same store file. It never keeps task
state between refreshes: every refresh is a fresh, reduced read of today's
open tasks, and the only write it performs is "complete task by id".
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime

from ..core.dates import start_of_day, start_of_next_day
from ..core.errors import NotFoundError
from ..core.ports import ChangeSignal, TaskRepo, WidgetRenderer
from ..tasks.task_models import Category, TaskFilter

logger = logging.getLogger(__name__)

DEFAULT_WIDGET_LIMIT = 10
WIDGET_ALL = "all"


@dataclass(frozen=True, slots=True)
class WidgetTask:
    id: str
    title: str
    scheduled_at: datetime


@dataclass(frozen=True, slots=True)
class WidgetEntry:
    generated_at: datetime
    category: Category | None

    # Uncapped number of matching open tasks today.
    remaining_count: int
    tasks: list[WidgetTask] = field(default_factory=list)


def parse_widget_category(raw: str | None) -> Category | None:
    """'all' (or empty) means every category; otherwise a Category value."""
    s = (raw or "").strip().lower()
    if not s or s == WIDGET_ALL:
        return None
    return Category(s)


def fetch_widget_entry(
    store: TaskRepo,
    now: datetime,
    *,
    category: Category | None = None,
    limit: int = DEFAULT_WIDGET_LIMIT,
) -> WidgetEntry:
    """
    Today's open tasks for the widget, earliest first, capped to `limit`.

    A failing read yields an empty entry instead of an error, so the surface
    keeps showing something and retries on its next refresh.
    """
    task_filter = TaskFilter(
        is_completed=False,
        category=category,
        scheduled_from=start_of_day(now),
        scheduled_before=start_of_next_day(now),
    )
    try:
        matching = store.query_by(task_filter)
    except Exception:
        logger.exception("Widget query failed")
        return WidgetEntry(generated_at=now, category=category, remaining_count=0)

    matching.sort(key=lambda t: t.scheduled_at)
    shown = [
        WidgetTask(id=t.id, title=t.title, scheduled_at=t.scheduled_at)
        for t in matching[: max(0, int(limit))]
    ]
    return WidgetEntry(
        generated_at=now,
        category=category,
        remaining_count=len(matching),
        tasks=shown,
    )


def complete_task(
    store: TaskRepo,
    task_id: str,
    *,
    signal: ChangeSignal | None = None,
) -> bool:
    """
    Automation action: mark a task completed by id.

    The primary app may have deleted the task in the meantime. Returns True if
    the task exists and is now completed (completing twice is fine), False
    for a missing or blank id. Raises the change signal on success.
    """
    tid = (task_id or "").strip()
    if not tid:
        logger.info("complete_task: empty id ignored")
        return False

    try:
        store.update(tid, lambda t: replace(t, is_completed=True))
    except NotFoundError:
        logger.info("complete_task: id=%s not found (already deleted?)", tid)
        return False

    logger.info("complete_task: id=%s completed", tid)
    if signal is not None:
        signal.notify()
    return True


async def run_widget_refresher(
    store: TaskRepo,
    signal: ChangeSignal,
    renderer: WidgetRenderer,
    *,
    category: Category | None = None,
    limit: int = DEFAULT_WIDGET_LIMIT,
    refresh_interval_seconds: float = 900.0,
    poll_seconds: float = 5.0,
    clock: Callable[[], datetime] = datetime.now,
) -> None:
    """
    Keep the widget fresh.

    Every poll_seconds:
    - read the change-signal token
    - re-render if this is the first pass, the token changed, or
      refresh_interval_seconds elapsed since the last render
    Each render is a full fresh read (fetch_widget_entry). Failures are
    logged and retried on the next tick.

    To stop the refresher, cancel the coroutine/task.
    """
    sleep_s = max(0.01, float(poll_seconds))
    refresh_s = max(sleep_s, float(refresh_interval_seconds))

    last_token: str | None = None
    last_render: float | None = None

    while True:
        try:
            token = signal.token()
        except OSError:
            logger.exception("change signal read failed")
            token = last_token

        stale = last_render is None or (time.monotonic() - last_render) >= refresh_s
        if stale or token != last_token:
            entry = fetch_widget_entry(store, clock(), category=category, limit=limit)
            try:
                result = renderer.render(entry)
                if inspect.isawaitable(result):
                    await result
                logger.debug(
                    "Widget rendered remaining=%d shown=%d token=%s",
                    entry.remaining_count,
                    len(entry.tasks),
                    token,
                )
            except Exception:
                logger.exception("widget render failed")

            last_render = time.monotonic()
            last_token = token

        await asyncio.sleep(sleep_s)
