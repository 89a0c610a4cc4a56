# tests/test_commands.py

from __future__ import annotations

import json
import sqlite3

from tsumiage.cli.commands import CommandRegistry, registry
from tsumiage.tasks.task_models import Category, Priority
from tsumiage.tasks.task_query import SearchMode

from .fakes import FakeTaskStore


def test_command_registry_routes_2_and_3_params(state) -> None:
    reg = CommandRegistry()
    called = {"h2": 0, "h3": 0}
    notes: list[str] = []

    def h2(state, args):
        called["h2"] += 1
        return "h2"

    def h3(state, args, emit):
        called["h3"] += 1
        if emit is not None:
            emit("note")
        return "h3"

    reg.register("a", h2, "a")
    reg.register("b", h3, "b", aliases=["bb"])

    assert reg.handle(state, "/a x") == "h2"
    assert reg.handle(state, "/BB y", emit=notes.append) == "h3"
    assert called == {"h2": 1, "h3": 1}
    assert notes == ["note"]


def test_command_registry_unknown_and_non_command(state) -> None:
    reg = CommandRegistry()
    assert reg.handle(state, "hello") is None
    assert "Unknown command" in (reg.handle(state, "/nope") or "")
    assert "Empty command" in (reg.handle(state, "/") or "")


def test_bad_input_becomes_message(state) -> None:
    reply = registry.handle(state, "/add 2025-13-40 09:00 high work Broken") or ""
    assert reply.startswith("Invalid input")
    assert state.task_store.query_all() == []


def test_add_list_done_flow(state) -> None:
    reply = registry.handle(state, "/add today 18:30 high shopping Buy oat milk") or ""
    assert reply.startswith("Task saved")

    (task,) = state.task_store.query_all()
    assert task.title == "Buy oat milk"
    assert task.priority is Priority.HIGH
    assert task.category is Category.SHOPPING

    listing = registry.handle(state, "/list") or ""
    assert "Today:" in listing
    assert "Buy oat milk" in listing

    done = registry.handle(state, f"/done {task.id[:8]}") or ""
    assert "completed" in done
    assert state.task_store.get(task.id).is_completed is True

    assert registry.handle(state, "/list") == "No tasks to show."
    assert "Buy oat milk" in (registry.handle(state, "/list completed") or "")


def test_repeat_and_delete_forward(state) -> None:
    notes: list[str] = []
    reply = registry.handle(
        state,
        "/repeat 2025-01-06 07:00 medium personal mon,wed,fri 2025-01-17 Run",
        emit=notes.append,
    )
    assert reply == "Recurring task saved: 6 occurrence(s)."
    assert notes

    tasks = sorted(state.task_store.query_all(), key=lambda t: t.scheduled_at)
    target = tasks[2]

    prompt = registry.handle(state, f"/delete {target.id}") or ""
    assert "recurring task" in prompt
    assert len(state.task_store.query_all()) == 6

    assert registry.handle(state, f"/delete {target.id} future") == "Deleted 4 task(s)."
    assert {t.id for t in state.task_store.query_all()} == {tasks[0].id, tasks[1].id}


def test_delete_unknown_id(state) -> None:
    assert registry.handle(state, "/delete deadbeef") == "No task matches id 'deadbeef'."


def test_search_sets_criteria(state) -> None:
    reply = registry.handle(state, "/search title=oat milk category=shopping mode=or") or ""
    assert reply.startswith("Search: OR")
    assert state.criteria.title == "oat milk"
    assert state.criteria.category is Category.SHOPPING
    assert state.criteria.mode is SearchMode.OR

    registry.handle(state, "/search reset")
    assert state.criteria.is_empty


def test_edit_changes_fields(state) -> None:
    registry.handle(state, "/add tomorrow 09:00 low work Draft")
    (task,) = state.task_store.query_all()

    reply = registry.handle(state, f"/edit {task.id[:6]} title=Final draft time=14:15 priority=high") or ""
    assert reply.startswith("Task updated")

    edited = state.task_store.get(task.id)
    assert edited.title == "Final draft"
    assert (edited.scheduled_at.hour, edited.scheduled_at.minute) == (14, 15)
    assert edited.scheduled_at.date() == task.scheduled_at.date()
    assert edited.priority is Priority.HIGH


def test_stats_and_widget(state) -> None:
    registry.handle(state, "/add today 09:00 high work One")
    registry.handle(state, "/add today 11:00 low personal Two")
    one = next(t for t in state.task_store.query_all() if t.title == "One")
    registry.handle(state, f"/done {one.id}")

    stats = registry.handle(state, "/stats week") or ""
    assert "Today: 1/2 done (50%)" in stats
    assert "Work: 1" in stats

    widget = registry.handle(state, "/widget personal") or ""
    assert "1 left today" in widget
    assert "Two" in widget


def test_notify_and_sync_write_reminder_plan(state, settings) -> None:
    registry.handle(state, "/add today 20:00 medium work Late task")
    assert "12:00" in (registry.handle(state, "/notify 12 9") or "")
    assert state.notify_hours == {12}

    before = state.change_signal.token()
    assert registry.handle(state, "/sync") == "Synced."

    plan = json.loads(settings.reminders_path.read_text("utf-8"))["reminders"]
    assert [r["identifier"] for r in plan] == ["daily_notification_12"]
    assert state.change_signal.token() != before


def test_version(state) -> None:
    assert "Update available" in (registry.handle(state, "/version 1.0.10") or "")
    assert "Up to date" in (registry.handle(state, "/version 1.0") or "")


class _LockedReadStore(FakeTaskStore):
    def query_all(self):
        raise sqlite3.OperationalError("database is locked")


def test_sqlite_failure_becomes_message(state) -> None:
    state.task_store = _LockedReadStore()
    reply = registry.handle(state, "/list") or ""
    assert reply.startswith("Store error")
