# src/tsumiage/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Both processes (app and widget) read the same variables, so they agree on
  where the shared data directory is.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TSUMIAGE"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: list[str]) -> list[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    app_version: str
    log_level: str

    # ---- Console ----
    console_enabled: bool

    # ---- Shared data (read by both processes) ----
    data_dir: Path
    tasks_db_path: Path
    signal_path: Path
    reminders_path: Path

    # ---- Reminders ----
    notify_hours: list[int]

    # ---- Widget ----
    widget_category: str
    widget_limit: int
    widget_refresh_seconds: float
    widget_poll_seconds: float

    # ---- Calendar / creation limits ----
    first_weekday: str
    max_recurrence_days: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "tsumiage") or "tsumiage"
        app_version = _env(_k("APP_VERSION"), "1.0.0")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/tsumiage"))
        tasks_db_path = _env_path(_k("TASKS_DB_PATH"), data_dir / "tasks.sqlite3")
        signal_path = _env_path(_k("SIGNAL_PATH"), data_dir / "data_changed.stamp")
        reminders_path = _env_path(_k("REMINDERS_PATH"), data_dir / "reminders.json")

        notify_hours: list[int] = []
        for part in _env_list(_k("NOTIFY_HOURS"), []):
            try:
                notify_hours.append(int(part))
            except ValueError:
                continue

        widget_category = _env(_k("WIDGET_CATEGORY"), "all")
        widget_limit = _env_int(_k("WIDGET_LIMIT"), 10)
        widget_refresh_seconds = _env_float(_k("WIDGET_REFRESH_SECONDS"), 900.0)
        widget_poll_seconds = _env_float(_k("WIDGET_POLL_SECONDS"), 5.0)

        first_weekday = _env(_k("FIRST_WEEKDAY"), "sun")
        max_recurrence_days = _env_int(_k("MAX_RECURRENCE_DAYS"), 366)

        return Settings(
            app_name=app_name,
            app_version=app_version,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            tasks_db_path=tasks_db_path,
            signal_path=signal_path,
            reminders_path=reminders_path,
            notify_hours=notify_hours,
            widget_category=widget_category,
            widget_limit=widget_limit,
            widget_refresh_seconds=widget_refresh_seconds,
            widget_poll_seconds=widget_poll_seconds,
            first_weekday=first_weekday,
            max_recurrence_days=max_recurrence_days,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
