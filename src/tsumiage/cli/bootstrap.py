# src/tsumiage/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures the shared data directory exists,
- wires concrete implementations into AppState (store/signal/reminders),
- runs the background lifecycle hook on shutdown.
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.dates import Weekday
from ..core.state import AppState
from ..reminders import FileReminderScheduler, parse_reminder_hours
from ..sync.change_signal import FileChangeSignal
from ..sync.lifecycle import on_background
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.tasks_db_path.parent.mkdir(parents=True, exist_ok=True)
    settings.signal_path.parent.mkdir(parents=True, exist_ok=True)
    settings.reminders_path.parent.mkdir(parents=True, exist_ok=True)


def first_weekday(settings) -> Weekday:
    raw = str(getattr(settings, "first_weekday", "sun"))
    try:
        return Weekday.parse(raw)
    except ValueError:
        logger.warning("Invalid first weekday %r; using Sunday", raw)
        return Weekday.SUN


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    return AppState(
        settings=settings,
        task_store=TaskStore(settings.tasks_db_path),
        change_signal=FileChangeSignal(settings.signal_path),
        reminders=FileReminderScheduler(settings.reminders_path),
        notify_hours=set(parse_reminder_hours(getattr(settings, "notify_hours", []) or [])),
    )


def run_background_hook(state: AppState) -> None:
    """Reschedule reminders and wake the widget. Errors are logged, never raised."""
    try:
        on_background(
            state.task_store,
            state.reminders,
            state.change_signal,
            now=state.now(),
            enabled_hours=state.notify_hours,
        )
    except Exception:
        logger.exception("Background lifecycle hook failed.")
