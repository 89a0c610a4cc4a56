# src/tsumiage/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
from collections.abc import Callable
from datetime import datetime
from pathlib import Path
from typing import Any

from ..core.errors import ConstraintError, NotFoundError, StoreUnavailableError
from .task_models import Category, Priority, Task, TaskFilter

logger = logging.getLogger(__name__)

TaskMutator = Callable[[Task], Task]


def _dt_to_str(dt: datetime) -> str:
    # Fixed-width ISO text so that SQL string comparison is chronological.
    if dt.tzinfo is not None:
        dt = dt.astimezone().replace(tzinfo=None)
    return dt.isoformat(sep="T", timespec="microseconds")


def _str_to_dt(s: str) -> datetime:
    return datetime.fromisoformat(s)


class TaskStore:
    """
    SQLite task store shared by the app and the widget process.

    The schema is migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Concurrency:
    - each method opens its own SQLite connection (WAL, 30s busy timeout)
    - every mutation is a single transaction on a single row
    - update() holds a write lock across its read-modify-write
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    @property
    def db_path(self) -> Path:
        return self._db_path

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id TEXT PRIMARY KEY,
                    title TEXT NOT NULL,
                    scheduled_at TEXT NOT NULL,
                    priority TEXT NOT NULL DEFAULT 'medium',
                    category TEXT NOT NULL DEFAULT 'work',
                    is_completed INTEGER NOT NULL DEFAULT 0,
                    recurrence_group_id TEXT
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("priority", "TEXT NOT NULL DEFAULT 'medium'")
            add_col("category", "TEXT NOT NULL DEFAULT 'work'")
            add_col("is_completed", "INTEGER NOT NULL DEFAULT 0")
            add_col("recurrence_group_id", "TEXT")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_scheduled ON tasks(scheduled_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_group ON tasks(recurrence_group_id)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=str(row["id"]),
            title=str(row["title"] or ""),
            scheduled_at=_str_to_dt(row["scheduled_at"]),
            priority=Priority.from_db(row["priority"]),
            category=Category.from_db(row["category"]),
            is_completed=bool(row["is_completed"]),
            recurrence_group_id=row["recurrence_group_id"],
        )

    @staticmethod
    def _where(task_filter: TaskFilter) -> tuple[str, list[Any]]:
        clauses: list[str] = []
        params: list[Any] = []

        if task_filter.is_completed is not None:
            clauses.append("is_completed = ?")
            params.append(1 if task_filter.is_completed else 0)

        if task_filter.category is not None:
            clauses.append("category = ?")
            params.append(task_filter.category.value)

        if task_filter.recurrence_group_id is not None:
            clauses.append("recurrence_group_id = ?")
            params.append(task_filter.recurrence_group_id)

        if task_filter.scheduled_from is not None:
            clauses.append("scheduled_at >= ?")
            params.append(_dt_to_str(task_filter.scheduled_from))

        if task_filter.scheduled_before is not None:
            clauses.append("scheduled_at < ?")
            params.append(_dt_to_str(task_filter.scheduled_before))

        if not clauses:
            return "", params
        return "WHERE " + " AND ".join(clauses), params

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def insert(self, task: Task) -> None:
        """Insert a new task. Raises ConstraintError if the id already exists."""
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO tasks(
                    id, title, scheduled_at, priority, category,
                    is_completed, recurrence_group_id
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    task.id,
                    task.title,
                    _dt_to_str(task.scheduled_at),
                    task.priority.value,
                    task.category.value,
                    1 if task.is_completed else 0,
                    task.recurrence_group_id,
                ),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise ConstraintError(f"Task id already exists: {task.id}") from e
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Insert failed for {task.id}: {e}") from e
        finally:
            conn.close()

        logger.debug(
            "Task inserted id=%s scheduled_at=%s group=%s",
            task.id,
            task.scheduled_at,
            task.recurrence_group_id,
        )

    def delete(self, task_id: str) -> bool:
        """
        Remove a task. Missing ids are not an error: the other process may
        have deleted it first. Returns True if a row was removed.
        """
        conn = self._get_conn()
        try:
            cur = conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
            conn.commit()
            removed = cur.rowcount == 1
        finally:
            conn.close()

        logger.debug("Task delete id=%s removed=%s", task_id, removed)
        return removed

    def update(self, task_id: str, mutator: TaskMutator) -> Task:
        """
        Apply `mutator` to the stored task inside one write transaction.

        Returns the updated task. Raises NotFoundError if the id is absent and
        ConstraintError if the mutator tries to change the id.
        """
        conn = self._get_conn()
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
                if row is None:
                    raise NotFoundError(task_id)

                updated = mutator(self._row_to_task(row))
                if updated.id != task_id:
                    raise ConstraintError(f"Task id is immutable: {task_id} -> {updated.id}")

                conn.execute(
                    """
                    UPDATE tasks
                    SET title = ?,
                        scheduled_at = ?,
                        priority = ?,
                        category = ?,
                        is_completed = ?,
                        recurrence_group_id = ?
                    WHERE id = ?
                    """,
                    (
                        updated.title,
                        _dt_to_str(updated.scheduled_at),
                        updated.priority.value,
                        updated.category.value,
                        1 if updated.is_completed else 0,
                        updated.recurrence_group_id,
                        task_id,
                    ),
                )
                conn.execute("COMMIT")
            except BaseException:
                conn.execute("ROLLBACK")
                raise
        finally:
            conn.close()

        logger.debug("Task updated id=%s completed=%s", task_id, updated.is_completed)
        return updated

    def get(self, task_id: str) -> Task | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def query_all(self) -> list[Task]:
        """Snapshot of every task. Order is unspecified."""
        conn = self._get_conn()
        try:
            rows = conn.execute("SELECT * FROM tasks").fetchall()
            return [self._row_to_task(r) for r in rows]
        finally:
            conn.close()

    def query_by(self, task_filter: TaskFilter) -> list[Task]:
        """Same result as filtering query_all() with task_filter.matches, done in SQL."""
        where, params = self._where(task_filter)
        conn = self._get_conn()
        try:
            rows = conn.execute(f"SELECT * FROM tasks {where}", params).fetchall()
            return [self._row_to_task(r) for r in rows]
        finally:
            conn.close()

    def count_by(self, task_filter: TaskFilter) -> int:
        where, params = self._where(task_filter)
        conn = self._get_conn()
        try:
            (n,) = conn.execute(f"SELECT COUNT(*) FROM tasks {where}", params).fetchone()
            return int(n)
        finally:
            conn.close()
