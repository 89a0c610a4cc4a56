# src/tsumiage/tasks/task_models.py

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum

logger = logging.getLogger(__name__)


class Priority(StrEnum):
    """
    Task priority.

    Raw values are persisted. Ordering goes through `rank`, never through
    the raw strings ("high" < "low" alphabetically).
    """

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_db(cls, raw: str | None) -> Priority:
        if not raw:
            return cls.MEDIUM
        try:
            return cls(raw)
        except ValueError:
            logger.warning("Unknown priority %r in store; using medium", raw)
            return cls.MEDIUM


_PRIORITY_RANK = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3}


def priority_rank(priority: Priority) -> int:
    """Total order low < medium < high."""
    return priority.rank


class Category(StrEnum):
    WORK = "work"
    PERSONAL = "personal"
    SHOPPING = "shopping"

    @property
    def label(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_db(cls, raw: str | None) -> Category:
        if not raw:
            return cls.WORK
        try:
            return cls(raw)
        except ValueError:
            logger.warning("Unknown category %r in store; using work", raw)
            return cls.WORK


def new_task_id() -> str:
    return uuid.uuid4().hex


@dataclass(slots=True)
class Task:
    id: str
    title: str
    scheduled_at: datetime
    priority: Priority
    category: Category
    is_completed: bool = False

    # None for standalone tasks; shared by every instance of one recurrence.
    recurrence_group_id: str | None = None

    @property
    def is_recurring(self) -> bool:
        return self.recurrence_group_id is not None

    @classmethod
    def new(
        cls,
        *,
        title: str,
        scheduled_at: datetime,
        priority: Priority = Priority.MEDIUM,
        category: Category = Category.WORK,
        recurrence_group_id: str | None = None,
    ) -> Task:
        return cls(
            id=new_task_id(),
            title=title,
            scheduled_at=scheduled_at,
            priority=priority,
            category=category,
            is_completed=False,
            recurrence_group_id=recurrence_group_id,
        )


@dataclass(frozen=True, slots=True)
class TaskFilter:
    """
    Store-level predicate.

    Every field left as None is unconstrained. `scheduled_from` is inclusive,
    `scheduled_before` exclusive. TaskStore turns this into a WHERE clause;
    `matches` is the in-memory equivalent.
    """

    is_completed: bool | None = None
    category: Category | None = None
    recurrence_group_id: str | None = None
    scheduled_from: datetime | None = None
    scheduled_before: datetime | None = None

    def matches(self, task: Task) -> bool:
        if self.is_completed is not None and task.is_completed != self.is_completed:
            return False
        if self.category is not None and task.category != self.category:
            return False
        if self.recurrence_group_id is not None and task.recurrence_group_id != self.recurrence_group_id:
            return False
        if self.scheduled_from is not None and task.scheduled_at < self.scheduled_from:
            return False
        if self.scheduled_before is not None and task.scheduled_at >= self.scheduled_before:
            return False
        return True
