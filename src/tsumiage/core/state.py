# src/tsumiage/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable

from ..tasks.task_query import SearchCriteria
from .ports import ChangeSignal, ReminderScheduler, TaskRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: object

    task_store: TaskRepo
    change_signal: ChangeSignal
    reminders: ReminderScheduler

    # ---- list view state (primary process only) ----
    criteria: SearchCriteria = field(default_factory=SearchCriteria)
    show_completed: bool = False
    group_future: bool = False
    notify_hours: set[int] = field(default_factory=set)

    clock: Callable[[], datetime] = datetime.now

    def now(self) -> datetime:
        return self.clock()
