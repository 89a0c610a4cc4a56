# src/tsumiage/reminders.py

from __future__ import annotations

"""
Daily "tasks left today" reminders.

`compute_schedule` is pure: given today's remaining count and the enabled
hours, it returns the full reminder plan. Delivering the plan is the job of a
ReminderScheduler; each delivery replaces the previous plan entirely.
"""

import contextlib
import json
import logging
import os
from collections.abc import Iterable, Sequence
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

REMINDER_HOURS: frozenset[int] = frozenset({8, 12, 17})

REMINDER_TITLE = "Today's tasks"


@dataclass(frozen=True, slots=True)
class Reminder:
    hour: int
    minute: int
    identifier: str
    title: str
    body: str


def reminder_body(remaining: int) -> str:
    noun = "task" if remaining == 1 else "tasks"
    return f"You have {remaining} {noun} left today. Keep going!"


def parse_reminder_hours(raw: Iterable[str | int]) -> frozenset[int]:
    """Parse hour values, dropping anything that is not a supported reminder hour."""
    hours: set[int] = set()
    for item in raw:
        try:
            hour = int(item)
        except (TypeError, ValueError):
            logger.warning("Ignoring reminder hour %r (not a number)", item)
            continue
        if hour not in REMINDER_HOURS:
            logger.warning("Ignoring reminder hour %s (supported: %s)", hour, sorted(REMINDER_HOURS))
            continue
        hours.add(hour)
    return frozenset(hours)


def compute_schedule(today_remaining_count: int, enabled_hours: Iterable[int]) -> list[Reminder]:
    """
    Reminder plan for today's remaining tasks.

    Nothing is scheduled when no tasks remain. Hours outside 8/12/17 are
    ignored. Reminders repeat daily at hour:00.
    """
    if today_remaining_count <= 0:
        return []

    hours = parse_reminder_hours(enabled_hours)
    body = reminder_body(today_remaining_count)
    return [
        Reminder(
            hour=hour,
            minute=0,
            identifier=f"daily_notification_{hour}",
            title=REMINDER_TITLE,
            body=body,
        )
        for hour in sorted(hours)
    ]


class FileReminderScheduler:
    """
    Persists the current reminder plan as JSON for a local notifier to pick up.

    Writes go through a temp file + os.replace so a reader never sees a
    half-written plan.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def replace_all(self, reminders: Sequence[Reminder]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self._path.with_suffix(".tmp")
        payload = {"reminders": [asdict(r) for r in reminders]}
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), "utf-8")
        os.replace(tmp, self._path)
        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)
        logger.info("Reminder plan replaced: %d reminder(s) -> %s", len(reminders), self._path)

    def load(self) -> list[Reminder]:
        """Read back the current plan (empty when nothing was scheduled yet)."""
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.exception("Failed to read reminder plan from %s", self._path)
            return []
        items = data.get("reminders", []) if isinstance(data, dict) else []
        return [Reminder(**item) for item in items if isinstance(item, dict)]
