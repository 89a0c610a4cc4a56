# src/tsumiage/cli/commands.py

from __future__ import annotations

import inspect
import logging
import sqlite3
from collections.abc import Callable
from datetime import date, datetime, time, timedelta
from typing import cast

from ..core.dates import Weekday, parse_weekdays
from ..core.errors import NotFoundError, PartialWriteError, TsumiageError
from ..core.state import AppState
from ..reminders import REMINDER_HOURS, parse_reminder_hours
from ..sync.widget import fetch_widget_entry, parse_widget_category
from ..tasks.recurrence import RecurrenceRequest
from ..tasks.task_api import (
    DEFAULT_MAX_RECURRENCE_DAYS,
    DeletionScope,
    delete_task,
    deletion_scopes,
    edit_task,
    resolve_task_id,
    submit_task,
    toggle_completion,
)
from ..tasks.task_models import Category, Priority, Task
from ..tasks.task_query import DayGroup, SearchCriteria, SearchMode, build_task_list, past_tasks
from ..tasks.task_stats import (
    StatRange,
    category_breakdown,
    today_progress,
    weekly_completed_breakdown,
)
from ..versioning import is_newer_version
from .bootstrap import first_weekday, run_background_hook

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Bad input (ValueError) and store errors come back as a one-line
        message instead of propagating.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)

            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except NotFoundError as e:
            return f"No task matches id {e.task_id!r}."
        except PartialWriteError as e:
            logger.warning("Partial recurrence write: %s", e)
            return f"Could not save the series ({e.inserted}/{e.total} written, rolled back). Try again."
        except TsumiageError as e:
            logger.warning("Store error in /%s: %s", name, e)
            return f"Store error: {e}"
        except sqlite3.Error as e:
            logger.exception("SQLite error in /%s", name)
            return f"Store error: {e}. Try again."
        except ValueError as e:
            return f"Invalid input: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- parsing helpers ----


def _parse_day(raw: str, today: date) -> date:
    s = raw.strip().lower()
    if s == "today":
        return today
    if s == "tomorrow":
        return today + timedelta(days=1)
    return date.fromisoformat(s)


def _parse_time(raw: str) -> time:
    return time.fromisoformat(raw.strip())


def _parse_priority(raw: str) -> Priority:
    return Priority(raw.strip().lower())


def _parse_category(raw: str) -> Category:
    return Category(raw.strip().lower())


def _parse_pairs(args: list[str]) -> dict[str, str]:
    """
    key=value tokens; a token without "=" continues the previous value
    (so `title=buy oat milk` works without quoting).
    """
    out: dict[str, str] = {}
    last: str | None = None
    for tok in args:
        if "=" in tok:
            key, _, value = tok.partition("=")
            last = key.strip().lower()
            out[last] = value
        elif last is not None:
            out[last] = f"{out[last]} {tok}"
        else:
            raise ValueError(f"expected key=value, got {tok!r}")
    return out


# ---- formatting helpers ----


def _format_task_line(task: Task, *, with_date: bool = False) -> str:
    mark = "[x]" if task.is_completed else "[ ]"
    when = task.scheduled_at.strftime("%Y-%m-%d %H:%M" if with_date else "%H:%M")
    repeat = " (repeat)" if task.is_recurring else ""
    return (
        f"{mark} {when} {task.title} "
        f"({task.priority.label}, {task.category.label}){repeat} #{task.id[:8]}"
    )


def _format_day(day: date) -> str:
    return f"{day.isoformat()} ({Weekday.of(day).full_name[:3]})"


def _format_groups(groups: list[DayGroup]) -> list[str]:
    lines: list[str] = []
    for group in groups:
        lines.append(f"{_format_day(group.day)}:")
        lines.extend(f"  {_format_task_line(t)}" for t in group.tasks)
    return lines


def _describe_criteria(criteria: SearchCriteria) -> str:
    parts = []
    if criteria.title.strip():
        parts.append(f"title~{criteria.title.strip()!r}")
    if criteria.category is not None:
        parts.append(f"category={criteria.category.value}")
    if criteria.priority is not None:
        parts.append(f"priority={criteria.priority.value}")
    if criteria.exact_date is not None:
        parts.append(f"date={criteria.exact_date.isoformat()}")
    if not parts:
        return "none"
    return f"{criteria.mode.value.upper()}: " + ", ".join(parts)


# ---- commands ----


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    settings = state.settings
    hours = ", ".join(f"{h}:00" for h in sorted(state.notify_hours)) or "off"
    return (
        "Status:\n"
        f"  Store: {getattr(settings, 'tasks_db_path', '?')}\n"
        f"  Search: {_describe_criteria(state.criteria)}\n"
        f"  Show completed: {'ON' if state.show_completed else 'OFF'}\n"
        f"  Group future by day: {'ON' if state.group_future else 'OFF'}\n"
        f"  Reminders: {hours}"
    )


def cmd_add(state: AppState, args: list[str]) -> str:
    """
    /add <date> <HH:MM> <priority> <category> <title...>
    date is YYYY-MM-DD, "today" or "tomorrow".
    """
    if len(args) < 5:
        return "Usage: /add <date> <HH:MM> <low|medium|high> <work|personal|shopping> <title>"

    now = state.now()
    day = _parse_day(args[0], now.date())
    at = datetime.combine(day, _parse_time(args[1]))
    request = RecurrenceRequest(
        title=" ".join(args[4:]),
        anchor=at,
        priority=_parse_priority(args[2]),
        category=_parse_category(args[3]),
    )
    expansion = submit_task(state.task_store, request)
    return f"Task saved: {_format_task_line(expansion.tasks[0], with_date=True)}"


def cmd_repeat(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    """
    /repeat <date> <HH:MM> <priority> <category> <weekdays> <end-date> <title...>
    weekdays: comma list such as mon,wed,fri.
    """
    if len(args) < 7:
        return (
            "Usage: /repeat <date> <HH:MM> <priority> <category> "
            "<mon,wed,...> <end-date> <title>"
        )

    now = state.now()
    day = _parse_day(args[0], now.date())
    request = RecurrenceRequest(
        title=" ".join(args[6:]),
        anchor=datetime.combine(day, _parse_time(args[1])),
        priority=_parse_priority(args[2]),
        category=_parse_category(args[3]),
        weekdays=parse_weekdays(args[4]),
        end_date=_parse_day(args[5], now.date()),
    )

    if emit:
        emit(f"Saving series {request.anchor.date()} .. {request.end_date} ...")

    max_days = int(getattr(state.settings, "max_recurrence_days", DEFAULT_MAX_RECURRENCE_DAYS))
    expansion = submit_task(state.task_store, request, max_recurrence_days=max_days)
    if expansion.group_id is None:
        return f"Task saved: {_format_task_line(expansion.tasks[0], with_date=True)}"
    return f"Recurring task saved: {len(expansion.tasks)} occurrence(s)."


def cmd_list(state: AppState, args: list[str]) -> str:
    """
    /list                      -> overdue / today / future
    /list completed grouped    -> also show completed; future split per day
    """
    opts = {a.lower() for a in args}
    state.show_completed = "completed" in opts
    state.group_future = "grouped" in opts

    buckets = build_task_list(
        state.task_store.query_all(),
        state.now(),
        state.criteria,
        show_completed=state.show_completed,
        group_future=state.group_future,
    )
    if buckets.is_empty:
        return "No tasks to show."

    lines: list[str] = []
    if buckets.overdue:
        lines.append("Overdue:")
        lines.extend(f"  {_format_task_line(t, with_date=True)}" for t in buckets.overdue)
    if buckets.today:
        lines.append("Today:")
        lines.extend(f"  {_format_task_line(t)}" for t in buckets.today)
    if buckets.future:
        if state.group_future:
            lines.extend(_format_groups(buckets.future_by_day))
        else:
            lines.append("Upcoming:")
            lines.extend(f"  {_format_task_line(t, with_date=True)}" for t in buckets.future)
    return "\n".join(lines)


def cmd_search(state: AppState, args: list[str]) -> str:
    """
    /search                       -> show current criteria
    /search reset                 -> clear criteria
    /search title=milk category=shopping priority=high date=2025-01-31 mode=or
    """
    if not args:
        return f"Search: {_describe_criteria(state.criteria)}"

    if args[0].lower() == "reset":
        state.criteria = SearchCriteria()
        return "Search criteria cleared."

    pairs = _parse_pairs(args)
    unknown = set(pairs) - {"title", "category", "priority", "date", "mode"}
    if unknown:
        raise ValueError(f"unknown search keys: {', '.join(sorted(unknown))}")

    def opt(key: str) -> str | None:
        v = pairs.get(key)
        if v is None or v.strip().lower() in ("", "any", "none"):
            return None
        return v

    cat = opt("category")
    pri = opt("priority")
    day = opt("date")
    state.criteria = SearchCriteria(
        title=pairs.get("title", "").strip(),
        category=_parse_category(cat) if cat else None,
        priority=_parse_priority(pri) if pri else None,
        exact_date=_parse_day(day, state.now().date()) if day else None,
        mode=SearchMode(pairs.get("mode", "and").strip().lower()),
    )
    return f"Search: {_describe_criteria(state.criteria)}"


def cmd_past(state: AppState, args: list[str]) -> str:
    groups = past_tasks(state.task_store.query_all(), state.now(), state.criteria)
    if not groups:
        return "No past tasks."
    return "\n".join(["Past tasks:", *_format_groups(groups)])


def cmd_done(state: AppState, args: list[str]) -> str:
    if not args:
        return "Usage: /done <task-id>"
    task_id = resolve_task_id(state.task_store, args[0])
    task = toggle_completion(state.task_store, task_id)
    status = "completed" if task.is_completed else "reopened"
    return f"Task {status}: {_format_task_line(task, with_date=True)}"


def cmd_edit(state: AppState, args: list[str]) -> str:
    """
    /edit <id> title=... date=YYYY-MM-DD time=HH:MM priority=... category=...
    """
    if len(args) < 2:
        return "Usage: /edit <task-id> title=... date=... time=... priority=... category=..."

    store = state.task_store
    task_id = resolve_task_id(store, args[0])
    pairs = _parse_pairs(args[1:])
    unknown = set(pairs) - {"title", "date", "time", "priority", "category"}
    if unknown:
        raise ValueError(f"unknown fields: {', '.join(sorted(unknown))}")

    scheduled_at = None
    if "date" in pairs or "time" in pairs:
        current = store.get(task_id)
        if current is None:
            raise NotFoundError(task_id)
        day = _parse_day(pairs["date"], state.now().date()) if "date" in pairs else current.scheduled_at.date()
        at = _parse_time(pairs["time"]) if "time" in pairs else current.scheduled_at.time()
        scheduled_at = datetime.combine(day, at)

    task = edit_task(
        store,
        task_id,
        title=pairs.get("title"),
        scheduled_at=scheduled_at,
        priority=_parse_priority(pairs["priority"]) if "priority" in pairs else None,
        category=_parse_category(pairs["category"]) if "category" in pairs else None,
    )
    return f"Task updated: {_format_task_line(task, with_date=True)}"


def cmd_delete(state: AppState, args: list[str]) -> str:
    """
    /delete <id>            -> standalone: delete; recurring: ask for a scope
    /delete <id> one        -> only this occurrence
    /delete <id> future     -> this and all later occurrences
    """
    if not args:
        return "Usage: /delete <task-id> [one|future]"

    store = state.task_store
    task_id = resolve_task_id(store, args[0])
    task = store.get(task_id)
    if task is None:
        return "Task already deleted."

    scopes = deletion_scopes(task)
    if len(args) < 2:
        if len(scopes) > 1:
            return (
                "This is a recurring task. Choose:\n"
                f"  /delete {task.id[:8]} one     - delete only this occurrence\n"
                f"  /delete {task.id[:8]} future  - delete this and all later occurrences"
            )
        scope = DeletionScope.SINGLE
    else:
        choice = args[1].lower()
        if choice in ("one", "single"):
            scope = DeletionScope.SINGLE
        elif choice in ("future", "forward", "all"):
            scope = DeletionScope.FORWARD
        else:
            return "Usage: /delete <task-id> [one|future]"

    removed = delete_task(store, task.id, scope)
    return f"Deleted {removed} task(s)."


def cmd_stats(state: AppState, args: list[str]) -> str:
    """
    /stats [week|month|all]  -> today's progress, last 7 days, category breakdown
    """
    window = StatRange(args[0].lower()) if args else StatRange.ALL
    tasks = state.task_store.query_all()
    now = state.now()

    progress = today_progress(tasks, now)
    lines = [f"Today: {progress.completed}/{progress.total} done"]
    if progress.completion_percent is not None:
        lines[0] += f" ({progress.completion_percent}%)"

    lines.append("Completed, last 7 days:")
    weekly = weekly_completed_breakdown(tasks, now)
    if not weekly:
        lines.append("  (none)")
    for row in weekly:
        lines.append(f"  {_format_day(row.day)} {row.category.label}: {row.count}")

    lines.append(f"By category ({window.value}):")
    breakdown = category_breakdown(tasks, now, window, first_weekday=first_weekday(state.settings))
    if not breakdown:
        lines.append("  No data")
    for cc in breakdown:
        lines.append(f"  {cc.category.label}: {cc.count}")
    return "\n".join(lines)


def cmd_widget(state: AppState, args: list[str]) -> str:
    """/widget [all|work|personal|shopping] -> preview what the widget shows"""
    raw = args[0] if args else str(getattr(state.settings, "widget_category", "all"))
    category = parse_widget_category(raw)
    limit = int(getattr(state.settings, "widget_limit", 10))
    entry = fetch_widget_entry(state.task_store, state.now(), category=category, limit=limit)

    title = category.label if category else "All"
    lines = [f"Widget [{title}] - {entry.remaining_count} left today"]
    for t in entry.tasks:
        lines.append(f"  {t.scheduled_at.strftime('%H:%M')} {t.title} #{t.id[:8]}")
    if entry.remaining_count == 0:
        lines.append("  All done!")
    return "\n".join(lines)


def cmd_notify(state: AppState, args: list[str]) -> str:
    """/notify -> show; /notify off; /notify 8 12 17"""
    supported = ", ".join(str(h) for h in sorted(REMINDER_HOURS))
    if not args:
        hours = ", ".join(f"{h}:00" for h in sorted(state.notify_hours)) or "off"
        return f"Reminders: {hours} (supported hours: {supported})"

    if args[0].lower() in ("off", "none"):
        state.notify_hours = set()
    else:
        state.notify_hours = set(parse_reminder_hours(args))
    hours = ", ".join(f"{h}:00" for h in sorted(state.notify_hours)) or "off"
    return f"Reminders set: {hours}. They are rescheduled on /sync and on exit."


def cmd_sync(
    state: AppState,
    args: list[str],
    emit: CommandEmitter | None = None,
) -> str:
    if emit:
        emit("[SYNC] Rescheduling reminders and notifying the widget...")
    run_background_hook(state)
    return "Synced."


def cmd_version(state: AppState, args: list[str]) -> str:
    current = str(getattr(state.settings, "app_version", "0"))
    if not args:
        return f"Version {current}. Use /version <latest> to compare."
    remote = args[0]
    if is_newer_version(remote, current):
        return f"Update available: {current} -> {remote}"
    return f"Up to date ({current})."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store path, search and view settings.")
registry.register("add", cmd_add, help_text="Add a task: /add <date> <HH:MM> <priority> <category> <title>.")
registry.register(
    "repeat",
    cmd_repeat,
    help_text="Add a weekly series: /repeat <date> <HH:MM> <priority> <category> <mon,wed> <end> <title>.",
)
registry.register("list", cmd_list, help_text="List tasks: /list [completed] [grouped].", aliases=["ls"])
registry.register("search", cmd_search, help_text="Set search: /search title=.. category=.. mode=and|or | reset.")
registry.register("past", cmd_past, help_text="Show past tasks by day (newest first).")
registry.register("done", cmd_done, help_text="Toggle completion: /done <id>.")
registry.register("edit", cmd_edit, help_text="Edit fields: /edit <id> title=.. date=.. time=.. priority=.. category=..")
registry.register("delete", cmd_delete, help_text="Delete: /delete <id> [one|future].", aliases=["rm"])
registry.register("stats", cmd_stats, help_text="Statistics: /stats [week|month|all].")
registry.register("widget", cmd_widget, help_text="Preview the widget: /widget [all|work|personal|shopping].")
registry.register("notify", cmd_notify, help_text="Reminder hours: /notify 8 12 17 | off.")
registry.register("sync", cmd_sync, help_text="Reschedule reminders and refresh the widget now.")
registry.register("version", cmd_version, help_text="Compare with a released version: /version <x.y.z>.")
