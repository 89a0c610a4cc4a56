# src/tsumiage/tasks/task_stats.py

from __future__ import annotations

"""
Read-only reports over the task collection:
- today's progress
- completed tasks per day and category over the trailing 7 days
- task count per category for this week / this month / all time
"""

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import StrEnum

from ..core.dates import Weekday, is_same_day, is_same_month, is_same_week
from .task_models import Category, Task

WEEKLY_WINDOW_DAYS = 7


class StatRange(StrEnum):
    WEEK = "week"
    MONTH = "month"
    ALL = "all"


@dataclass(frozen=True, slots=True)
class TodayProgress:
    total: int
    completed: int
    remaining: int

    @property
    def completion_rate(self) -> float | None:
        if self.total == 0:
            return None
        return self.completed / self.total

    @property
    def completion_percent(self) -> int | None:
        if self.total == 0:
            return None
        return self.completed * 100 // self.total


@dataclass(frozen=True, slots=True)
class DailyCategoryCount:
    day: date
    category: Category
    count: int


@dataclass(frozen=True, slots=True)
class CategoryCount:
    category: Category
    count: int


def today_progress(tasks: Iterable[Task], now: datetime) -> TodayProgress:
    todays = [t for t in tasks if is_same_day(t.scheduled_at, now)]
    completed = sum(1 for t in todays if t.is_completed)
    return TodayProgress(total=len(todays), completed=completed, remaining=len(todays) - completed)


def weekly_completed_breakdown(tasks: Iterable[Task], now: datetime) -> list[DailyCategoryCount]:
    """
    Completed tasks per (day, category) for the 7 days ending today.

    Zero counts are omitted. Ordered by day, then category declaration order.
    """
    today = now.date()
    first = today - timedelta(days=WEEKLY_WINDOW_DAYS - 1)

    counts: Counter[tuple[date, Category]] = Counter(
        (t.scheduled_at.date(), t.category)
        for t in tasks
        if t.is_completed and first <= t.scheduled_at.date() <= today
    )

    out: list[DailyCategoryCount] = []
    for offset in range(WEEKLY_WINDOW_DAYS):
        day = first + timedelta(days=offset)
        for category in Category:
            n = counts.get((day, category), 0)
            if n > 0:
                out.append(DailyCategoryCount(day=day, category=category, count=n))
    return out


def category_breakdown(
    tasks: Iterable[Task],
    now: datetime,
    window: StatRange = StatRange.ALL,
    *,
    first_weekday: Weekday = Weekday.SUN,
) -> list[CategoryCount]:
    """
    Tasks per category inside the window, completed or not.

    Sorted by count descending (ties keep category declaration order).
    An empty list means "no data".
    """
    if window is StatRange.WEEK:
        in_window = [t for t in tasks if is_same_week(t.scheduled_at, now, first_weekday)]
    elif window is StatRange.MONTH:
        in_window = [t for t in tasks if is_same_month(t.scheduled_at, now)]
    else:
        in_window = list(tasks)

    counts = Counter(t.category for t in in_window)
    ordered = [CategoryCount(category=c, count=counts[c]) for c in Category if counts[c] > 0]
    ordered.sort(key=lambda cc: cc.count, reverse=True)
    return ordered
