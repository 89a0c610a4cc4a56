# src/tsumiage/sync/lifecycle.py

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from ..core.dates import start_of_day, start_of_next_day
from ..core.ports import ChangeSignal, ReminderScheduler, TaskRepo
from ..reminders import Reminder, compute_schedule
from ..tasks.task_models import TaskFilter

logger = logging.getLogger(__name__)


def today_remaining_count(store: TaskRepo, now: datetime) -> int:
    return store.count_by(
        TaskFilter(
            is_completed=False,
            scheduled_from=start_of_day(now),
            scheduled_before=start_of_next_day(now),
        )
    )


def on_background(
    store: TaskRepo,
    reminders: ReminderScheduler,
    signal: ChangeSignal,
    *,
    now: datetime,
    enabled_hours: Iterable[int],
) -> list[Reminder]:
    """
    Hook for the primary process going to the background (or exiting).

    Replaces the reminder plan with one computed from today's remaining
    count, then tells the secondary surface to re-read the store.
    """
    remaining = today_remaining_count(store, now)
    plan = compute_schedule(remaining, enabled_hours)
    reminders.replace_all(plan)
    signal.notify()
    logger.info("Background sync: remaining_today=%d reminders=%d", remaining, len(plan))
    return plan
