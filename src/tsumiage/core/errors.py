# src/tsumiage/core/errors.py

from __future__ import annotations

"""
Store-layer error taxonomy.

Pure engines (recurrence, query, stats) never raise these; only the
TaskStore and the write helpers built on it do.
"""


class TsumiageError(Exception):
    """Base class for errors surfaced to the caller for retry guidance."""


class ConstraintError(TsumiageError):
    """A write would violate a store constraint (duplicate id, id change)."""


class StoreUnavailableError(TsumiageError):
    """The store could not complete a write (locked past the busy timeout, I/O error)."""


class NotFoundError(TsumiageError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class PartialWriteError(TsumiageError):
    """
    A recurrence batch was aborted part-way.

    `inserted` is how many rows were committed before the failure; the
    batch writer removes them again, so the series does not linger half-made.
    """

    def __init__(self, inserted: int, total: int) -> None:
        super().__init__(f"Recurrence batch aborted after {inserted}/{total} inserts")
        self.inserted = inserted
        self.total = total
