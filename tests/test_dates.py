# tests/test_dates.py

from __future__ import annotations

from datetime import date, datetime

import pytest

from tsumiage.core.dates import (
    Weekday,
    is_same_week,
    iter_days,
    parse_weekdays,
    start_of_week,
)


def test_weekday_numbering_starts_on_sunday() -> None:
    assert Weekday.of(date(2025, 1, 5)) is Weekday.SUN
    assert Weekday.of(date(2025, 1, 6)) is Weekday.MON
    assert Weekday.of(date(2025, 1, 11)) is Weekday.SAT
    assert int(Weekday.SAT) == 7


def test_parse_weekdays() -> None:
    assert parse_weekdays("mon, Wednesday 7") == frozenset({Weekday.MON, Weekday.WED, Weekday.SAT})
    with pytest.raises(ValueError):
        parse_weekdays("funday")


def test_start_of_week_respects_first_weekday() -> None:
    wed = datetime(2025, 1, 8, 10, 0)
    assert start_of_week(wed) == date(2025, 1, 5)
    assert start_of_week(wed, Weekday.MON) == date(2025, 1, 6)
    assert is_same_week(date(2025, 1, 5), wed)
    assert not is_same_week(date(2025, 1, 5), wed, Weekday.MON)


def test_iter_days_inclusive() -> None:
    assert list(iter_days(date(2025, 1, 30), date(2025, 2, 1))) == [
        date(2025, 1, 30),
        date(2025, 1, 31),
        date(2025, 2, 1),
    ]
    assert list(iter_days(date(2025, 2, 1), date(2025, 1, 30))) == []
