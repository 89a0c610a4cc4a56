# src/tsumiage/tasks/task_query.py

from __future__ import annotations

"""
Classification / filter / sort engine for the task list.

Given the whole collection and "now", partitions tasks into three disjoint
day-based buckets (overdue, today, future) that match the search criteria,
each in its own display order. Pure functions; never raise on empty input.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import StrEnum
from itertools import groupby

from ..core.dates import is_same_day, start_of_day, start_of_next_day
from .task_models import Category, Priority, Task


class SearchMode(StrEnum):
    AND = "and"
    OR = "or"


@dataclass(frozen=True, slots=True)
class SearchCriteria:
    title: str = ""
    category: Category | None = None
    priority: Priority | None = None

    # Hard filter in both modes.
    exact_date: date | None = None

    mode: SearchMode = SearchMode.AND

    @property
    def is_empty(self) -> bool:
        """True when no title/category/priority criterion is set (exact_date aside)."""
        return not self.title.strip() and self.category is None and self.priority is None


@dataclass(frozen=True, slots=True)
class DayGroup:
    day: date
    tasks: list[Task]


@dataclass(frozen=True, slots=True)
class TaskBuckets:
    overdue: list[Task] = field(default_factory=list)
    today: list[Task] = field(default_factory=list)
    future: list[Task] = field(default_factory=list)

    # Only filled when grouping was requested; same tasks as `future`.
    future_by_day: list[DayGroup] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.overdue or self.today or self.future)


def matches_criteria(task: Task, criteria: SearchCriteria) -> bool:
    if criteria.exact_date is not None and not is_same_day(task.scheduled_at, criteria.exact_date):
        return False

    if criteria.is_empty:
        return True

    checks: list[bool] = []
    needle = criteria.title.strip()
    if needle:
        checks.append(needle.casefold() in task.title.casefold())
    if criteria.category is not None:
        checks.append(task.category == criteria.category)
    if criteria.priority is not None:
        checks.append(task.priority == criteria.priority)

    if criteria.mode is SearchMode.OR:
        return any(checks)
    return all(checks)


def group_by_day(tasks: Iterable[Task]) -> list[DayGroup]:
    """Split an already-ordered sequence into consecutive per-day groups."""
    return [
        DayGroup(day=day, tasks=list(items))
        for day, items in groupby(tasks, key=lambda t: t.scheduled_at.date())
    ]


def build_task_list(
    tasks: Iterable[Task],
    now: datetime,
    criteria: SearchCriteria | None = None,
    *,
    show_completed: bool = False,
    group_future: bool = False,
) -> TaskBuckets:
    criteria = criteria or SearchCriteria()
    today_start = start_of_day(now)
    tomorrow_start = start_of_next_day(now)

    overdue: list[Task] = []
    today: list[Task] = []
    future: list[Task] = []

    for task in tasks:
        if not matches_criteria(task, criteria):
            continue

        at = task.scheduled_at
        if at < today_start:
            # Completed past tasks belong to the history view only.
            if not task.is_completed:
                overdue.append(task)
            continue

        if task.is_completed and not show_completed:
            continue

        if at < tomorrow_start:
            today.append(task)
        else:
            future.append(task)

    overdue.sort(key=lambda t: t.scheduled_at)
    today.sort(key=lambda t: (-t.priority.rank, t.scheduled_at))
    future.sort(key=lambda t: t.scheduled_at)

    return TaskBuckets(
        overdue=overdue,
        today=today,
        future=future,
        future_by_day=group_by_day(future) if group_future else [],
    )


def past_tasks(
    tasks: Iterable[Task],
    now: datetime,
    criteria: SearchCriteria | None = None,
) -> list[DayGroup]:
    """
    History view: everything before today, completed or not.

    Most recent day first; within a day, latest task first.
    """
    criteria = criteria or SearchCriteria()
    today_start = start_of_day(now)

    past = [t for t in tasks if t.scheduled_at < today_start and matches_criteria(t, criteria)]
    past.sort(key=lambda t: t.scheduled_at, reverse=True)
    return group_by_day(past)
