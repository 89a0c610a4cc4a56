# src/tsumiage/core/dates.py

from __future__ import annotations

"""
Calendar helpers shared by every engine.

All timestamps are naive local datetimes. A "day bucket" is the half-open
interval [start_of_day, start_of_next_day).
"""

from datetime import date, datetime, time, timedelta
from enum import IntEnum


class Weekday(IntEnum):
    """Weekday numbering used by recurrence requests (1=Sunday ... 7=Saturday)."""

    SUN = 1
    MON = 2
    TUE = 3
    WED = 4
    THU = 5
    FRI = 6
    SAT = 7

    @classmethod
    def of(cls, day: date) -> Weekday:
        # isoweekday: Mon=1 .. Sun=7
        return cls(day.isoweekday() % 7 + 1)

    @classmethod
    def parse(cls, raw: str) -> Weekday:
        """
        Accept "mon", "Monday", "MON" or the numeric value ("2").

        Raises ValueError for anything else.
        """
        s = (raw or "").strip().lower()
        if not s:
            raise ValueError("empty weekday")
        if s.isdigit():
            return cls(int(s))
        for wd in cls:
            if s[:3] == wd.name.lower() and wd.full_name.lower().startswith(s):
                return wd
        raise ValueError(f"unknown weekday: {raw!r}")

    @property
    def full_name(self) -> str:
        return _FULL_NAMES[self]


_FULL_NAMES = {
    Weekday.SUN: "Sunday",
    Weekday.MON: "Monday",
    Weekday.TUE: "Tuesday",
    Weekday.WED: "Wednesday",
    Weekday.THU: "Thursday",
    Weekday.FRI: "Friday",
    Weekday.SAT: "Saturday",
}


def parse_weekdays(raw: str) -> frozenset[Weekday]:
    """Parse a comma/space separated weekday list ("mon,wed fri")."""
    parts = [p for p in raw.replace(",", " ").split() if p]
    return frozenset(Weekday.parse(p) for p in parts)


def as_day(value: date | datetime) -> date:
    return value.date() if isinstance(value, datetime) else value


def start_of_day(value: date | datetime) -> datetime:
    return datetime.combine(as_day(value), time.min)


def start_of_next_day(value: date | datetime) -> datetime:
    return start_of_day(value) + timedelta(days=1)


def is_same_day(a: date | datetime, b: date | datetime) -> bool:
    return as_day(a) == as_day(b)


def start_of_week(value: date | datetime, first_weekday: Weekday = Weekday.SUN) -> date:
    d = as_day(value)
    back = (Weekday.of(d) - first_weekday) % 7
    return d - timedelta(days=back)


def is_same_week(
    a: date | datetime,
    b: date | datetime,
    first_weekday: Weekday = Weekday.SUN,
) -> bool:
    return start_of_week(a, first_weekday) == start_of_week(b, first_weekday)


def is_same_month(a: date | datetime, b: date | datetime) -> bool:
    da, db = as_day(a), as_day(b)
    return (da.year, da.month) == (db.year, db.month)


def iter_days(start: date | datetime, end: date | datetime):
    """Yield each calendar day from start to end inclusive (nothing if end < start)."""
    day = as_day(start)
    last = as_day(end)
    while day <= last:
        yield day
        day += timedelta(days=1)
