# src/tsumiage/tasks/recurrence.py

from __future__ import annotations

"""
Recurrence expansion.

A recurrence request (anchor date/time, weekday set, end date) becomes a
concrete list of dated Task instances that share one group id. Expansion is
pure; `insert_series` is the only part that touches the store.
"""

import logging
import sqlite3
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime

from ..core.dates import Weekday, as_day, iter_days
from ..core.errors import PartialWriteError, TsumiageError
from ..core.ports import TaskRepo
from .task_models import Category, Priority, Task, new_task_id

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RecurrenceRequest:
    title: str
    anchor: datetime
    priority: Priority
    category: Category
    weekdays: frozenset[Weekday] = field(default_factory=frozenset)
    end_date: date | datetime | None = None

    @property
    def is_recurring(self) -> bool:
        """Recurrence is only activated when at least one weekday is selected."""
        return bool(self.weekdays)


@dataclass(frozen=True, slots=True)
class RecurrenceExpansion:
    group_id: str | None
    tasks: list[Task]


def expand_recurrence(
    request: RecurrenceRequest,
    *,
    id_factory: Callable[[], str] = new_task_id,
) -> RecurrenceExpansion:
    """
    Materialize the tasks for a request.

    - empty weekday set: one standalone task at the anchor, group_id=None
    - otherwise: one task per day in [anchor day, end day] whose weekday is
      selected, at the anchor's hour:minute with zero seconds
    - end day before the anchor day: the anchor day alone, if its weekday is
      selected; otherwise nothing
    """
    if not request.is_recurring:
        task = Task(
            id=id_factory(),
            title=request.title,
            scheduled_at=request.anchor,
            priority=request.priority,
            category=request.category,
            recurrence_group_id=None,
        )
        return RecurrenceExpansion(group_id=None, tasks=[task])

    anchor_day = request.anchor.date()
    end_day = as_day(request.end_date) if request.end_date is not None else anchor_day
    if end_day < anchor_day:
        end_day = anchor_day

    group_id = id_factory()
    hour, minute = request.anchor.hour, request.anchor.minute

    tasks: list[Task] = []
    for day in iter_days(anchor_day, end_day):
        if Weekday.of(day) not in request.weekdays:
            continue
        tasks.append(
            Task(
                id=id_factory(),
                title=request.title,
                scheduled_at=datetime(day.year, day.month, day.day, hour, minute),
                priority=request.priority,
                category=request.category,
                recurrence_group_id=group_id,
            )
        )

    logger.debug(
        "Expanded recurrence group=%s days=%s..%s weekdays=%s -> %d tasks",
        group_id,
        anchor_day,
        end_day,
        sorted(int(w) for w in request.weekdays),
        len(tasks),
    )
    return RecurrenceExpansion(group_id=group_id, tasks=tasks)


def insert_series(store: TaskRepo, tasks: Sequence[Task]) -> int:
    """
    Insert a batch as one logical unit.

    Each element is its own commit (readers may briefly see part of the
    series). If the store rejects an element (constraint or sqlite failure),
    the remaining inserts are skipped, the rows already written are removed
    (a failing removal is logged and skipped), and PartialWriteError reports
    how many had been committed.
    """
    inserted: list[str] = []
    for task in tasks:
        try:
            store.insert(task)
        except (TsumiageError, sqlite3.Error) as e:
            logger.error(
                "Recurrence batch rejected at %d/%d (id=%s); rolling back",
                len(inserted),
                len(tasks),
                task.id,
            )
            for task_id in inserted:
                try:
                    store.delete(task_id)
                except (TsumiageError, sqlite3.Error):
                    logger.exception("Rollback delete failed id=%s", task_id)
            raise PartialWriteError(inserted=len(inserted), total=len(tasks)) from e
        inserted.append(task.id)

    return len(inserted)
