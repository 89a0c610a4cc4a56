# src/tsumiage/cli/widget_main.py

"""
Widget process entrypoint (`tsumiage-widget`).

Subcommands:
- run:      keep a console rendering of today's open tasks fresh (default)
- show:     render once and exit
- complete: mark a task completed by id (automation action)

Reads the same settings (and so the same data directory) as the app.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sqlite3
from datetime import datetime

from ..config import get_settings
from ..core.errors import TsumiageError
from ..logging_setup import setup_logging
from ..sync.change_signal import FileChangeSignal
from ..sync.widget import (
    WidgetEntry,
    complete_task,
    fetch_widget_entry,
    parse_widget_category,
    run_widget_refresher,
)
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


class ConsoleWidgetRenderer:
    """Prints a widget entry as a small text block."""

    def render(self, entry: WidgetEntry) -> None:
        print(format_entry(entry), flush=True)


def format_entry(entry: WidgetEntry) -> str:
    title = entry.category.label if entry.category else "All"
    lines = [
        f"[{entry.generated_at.strftime('%H:%M')}] {title}: {entry.remaining_count} left today"
    ]
    for t in entry.tasks:
        lines.append(f"  {t.scheduled_at.strftime('%H:%M')}  {t.title}  #{t.id[:8]}")
    if entry.remaining_count == 0:
        lines.append("  All done!")
    elif entry.remaining_count > len(entry.tasks):
        lines.append(f"  ... and {entry.remaining_count - len(entry.tasks)} more")
    return "\n".join(lines)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tsumiage-widget", description="Today's tasks at a glance.")
    parser.add_argument(
        "--category",
        default=None,
        help="all | work | personal | shopping (default: TSUMIAGE_WIDGET_CATEGORY)",
    )
    parser.add_argument("--limit", type=int, default=None, help="max tasks shown")

    sub = parser.add_subparsers(dest="command")
    sub.add_parser("run", help="keep the widget fresh until interrupted (default)")
    sub.add_parser("show", help="render once and exit")
    p_complete = sub.add_parser("complete", help="mark a task completed by id")
    p_complete.add_argument("task_id")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    settings = get_settings()

    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(log_dir=settings.data_dir, log_name="widget", console_level=console_level)

    store = TaskStore(settings.tasks_db_path)
    signal = FileChangeSignal(settings.signal_path)

    try:
        category = parse_widget_category(args.category or settings.widget_category)
    except ValueError:
        logger.warning("Unknown widget category %r; showing all", args.category or settings.widget_category)
        category = None
    limit = args.limit if args.limit is not None else settings.widget_limit

    command = args.command or "run"

    if command == "complete":
        try:
            completed = complete_task(store, args.task_id, signal=signal)
        except (TsumiageError, sqlite3.Error):
            logger.exception("complete failed for id=%s", args.task_id)
            print(f"Could not complete {args.task_id!r}; the store is unavailable.")
            return 1
        if completed:
            print(f"Completed {args.task_id}.")
            return 0
        print(f"No task with id {args.task_id!r}.")
        return 1

    renderer = ConsoleWidgetRenderer()

    if command == "show":
        renderer.render(fetch_widget_entry(store, datetime.now(), category=category, limit=limit))
        return 0

    logger.info("Widget refresher started (category=%s, limit=%d).", category or "all", limit)
    try:
        asyncio.run(
            run_widget_refresher(
                store,
                signal,
                renderer,
                category=category,
                limit=limit,
                refresh_interval_seconds=settings.widget_refresh_seconds,
                poll_seconds=settings.widget_poll_seconds,
            )
        )
    except KeyboardInterrupt:
        logger.info("Widget refresher stopped.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
