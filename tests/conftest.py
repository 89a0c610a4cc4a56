# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from tsumiage.core.state import AppState
from tsumiage.reminders import FileReminderScheduler
from tsumiage.sync.change_signal import FileChangeSignal
from tsumiage.tasks.task_store import TaskStore

# Wednesday, mid-morning. Tests that depend on "today" build around this.
NOW = datetime(2025, 1, 8, 10, 0)


@pytest.fixture()
def now() -> datetime:
    return NOW


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and core modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="tsumiage",
        app_version="1.0.0",
        # Paths (tmp per test run)
        data_dir=tmp_path,
        tasks_db_path=tmp_path / "tasks.sqlite3",
        signal_path=tmp_path / "data_changed.stamp",
        reminders_path=tmp_path / "reminders.json",
        # Features
        notify_hours=[8, 12, 17],
        widget_category="all",
        widget_limit=10,
        first_weekday="sun",
        max_recurrence_days=366,
    )


@pytest.fixture()
def store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.tasks_db_path)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore) -> AppState:
    """
    AppState wired with real file-backed components and a frozen clock.

    NOTE: We keep the real SQLite TaskStore here because its correctness is
    part of what we want to test.
    """
    return AppState(
        settings=settings,
        task_store=store,
        change_signal=FileChangeSignal(settings.signal_path),
        reminders=FileReminderScheduler(settings.reminders_path),
        notify_hours={8, 12, 17},
        clock=lambda: NOW,
    )
