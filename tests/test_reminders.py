# tests/test_reminders.py

from __future__ import annotations

from tsumiage.reminders import (
    FileReminderScheduler,
    Reminder,
    compute_schedule,
    parse_reminder_hours,
)


def test_no_reminders_when_nothing_left() -> None:
    assert compute_schedule(0, {8, 12, 17}) == []


def test_schedule_per_enabled_hour() -> None:
    plan = compute_schedule(3, [17, 8])

    assert [(r.hour, r.minute, r.identifier) for r in plan] == [
        (8, 0, "daily_notification_8"),
        (17, 0, "daily_notification_17"),
    ]
    assert plan[0].body == "You have 3 tasks left today. Keep going!"
    assert compute_schedule(1, [12])[0].body == "You have 1 task left today. Keep going!"


def test_unsupported_hours_are_dropped() -> None:
    assert parse_reminder_hours(["8", "9", "x", 17]) == frozenset({8, 17})
    assert compute_schedule(2, [9, 23]) == []


def test_file_scheduler_replaces_previous_plan(tmp_path) -> None:
    sched = FileReminderScheduler(tmp_path / "reminders.json")
    assert sched.load() == []

    sched.replace_all(compute_schedule(2, [8, 12, 17]))
    assert len(sched.load()) == 3

    sched.replace_all(compute_schedule(1, [12]))
    assert sched.load() == [
        Reminder(
            hour=12,
            minute=0,
            identifier="daily_notification_12",
            title="Today's tasks",
            body="You have 1 task left today. Keep going!",
        )
    ]

    sched.replace_all([])
    assert sched.load() == []
