# src/tsumiage/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
Every component receives a store handle explicitly, so the SQLite store can
be swapped for an in-memory fake in tests.
"""

from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Awaitable, Protocol

if TYPE_CHECKING:
    from ..reminders import Reminder
    from ..sync.widget import WidgetEntry
    from ..tasks.task_models import Task, TaskFilter


class TaskRepo(Protocol):
    """Durable keyed collection of tasks, shared by the app and the widget."""

    # Writes
    def insert(self, task: Task) -> None: ...
    def delete(self, task_id: str) -> bool: ...
    def update(self, task_id: str, mutator: Callable[[Task], Task]) -> Task: ...

    # Reads
    def get(self, task_id: str) -> Task | None: ...
    def query_all(self) -> list[Task]: ...
    def query_by(self, task_filter: TaskFilter) -> list[Task]: ...
    def count_by(self, task_filter: TaskFilter) -> int: ...


class ChangeSignal(Protocol):
    """
    One-way "data changed" wake-up between processes.

    Carries no payload: receivers compare tokens and do a full re-read.
    """

    def notify(self) -> None: ...
    def token(self) -> str | None: ...


class ReminderScheduler(Protocol):
    """Local reminder backend. Each call fully replaces the previous plan."""

    def replace_all(self, reminders: Sequence[Reminder]) -> None: ...


class WidgetRenderer(Protocol):
    """Secondary-surface side: how a freshly built entry is shown."""

    def render(self, entry: WidgetEntry) -> Awaitable[None] | None: ...
