# src/simple_todos/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

from ..errors import TaskNotFound
from .task_models import Task, TaskChange

logger = logging.getLogger(__name__)

TaskCheck = Callable[[Task], None]


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    - mutations run inside BEGIN IMMEDIATE, so load -> check -> write on one row
      cannot interleave with another writer (last writer wins)
    """

    def __init__(
        self,
        db_path: str | Path = "todos.sqlite3",
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except sqlite3.Error:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

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

    @contextlib.contextmanager
    def _write_txn(self) -> Iterator[sqlite3.Connection]:
        """
        One IMMEDIATE transaction on a fresh connection.

        Any exception (including an authorization failure raised by a check
        callback) rolls back, so there is never a partial effect.
        """
        conn = self._get_conn()
        conn.isolation_level = None
        try:
            conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")
        finally:
            conn.close()

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    text TEXT NOT NULL,
                    created_at REAL NOT NULL,
                    owner TEXT NOT NULL,
                    username TEXT NOT NULL,
                    checked INTEGER NOT NULL DEFAULT 0,
                    private INTEGER NOT NULL DEFAULT 0
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

            # Early databases predate the private flag and the denormalized username.
            add_col("username", "TEXT NOT NULL DEFAULT ''")
            add_col("checked", "INTEGER NOT NULL DEFAULT 0")
            add_col("private", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_created ON tasks(created_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_owner_private ON tasks(owner, private)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _row_to_task(row: sqlite3.Row) -> Task:
        return Task(
            id=int(row["id"]),
            text=str(row["text"] or ""),
            created_at=float(row["created_at"] or 0.0),
            owner=str(row["owner"]),
            username=str(row["username"] or ""),
            checked=bool(row["checked"]),
            private=bool(row["private"]),
        )

    @classmethod
    def _load_for_update(cls, conn: sqlite3.Connection, task_id: int) -> Task:
        row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
        if row is None:
            raise TaskNotFound(task_id)
        return cls._row_to_task(row)

    # ---- public API ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM tasks").fetchone()
            return int(n)
        finally:
            conn.close()

    def insert_task(self, *, text: str, owner: str, username: str) -> Task:
        """Insert a new task; the store assigns id and created_at. Text is stored as given."""
        if not owner:
            raise ValueError("owner is required")

        created_at = float(self._clock())

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(text, created_at, owner, username, checked, private)
                VALUES (?, ?, ?, ?, 0, 0)
                """,
                (text, created_at, owner, username or ""),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task = Task(
                id=int(rowid),
                text=text,
                created_at=created_at,
                owner=owner,
                username=username or "",
            )
            logger.debug("Task added id=%s owner=%s", task.id, owner)
            return task
        finally:
            conn.close()

    def get_task(self, task_id: int) -> Task | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT * FROM tasks WHERE id = ?", (int(task_id),)).fetchone()
            return self._row_to_task(row) if row else None
        finally:
            conn.close()

    def list_visible_tasks(
        self,
        viewer_id: str | None,
        *,
        hide_completed: bool = False,
    ) -> list[Task]:
        """
        Tasks that are public or owned by viewer_id, newest first.

        With viewer_id=None the `owner = ?` branch never matches, so anonymous
        viewers only get public tasks.
        """
        sql = "SELECT * FROM tasks WHERE (private = 0 OR owner = ?)"
        if hide_completed:
            sql += " AND checked = 0"
        sql += " ORDER BY created_at DESC, id DESC"

        conn = self._get_conn()
        try:
            rows = conn.execute(sql, (viewer_id,)).fetchall()
            return [self._row_to_task(r) for r in rows]
        finally:
            conn.close()

    def count_incomplete(self, viewer_id: str | None) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute(
                "SELECT COUNT(*) FROM tasks WHERE (private = 0 OR owner = ?) AND checked = 0",
                (viewer_id,),
            ).fetchone()
            return int(n)
        finally:
            conn.close()

    def update_task(
        self,
        task_id: int,
        *,
        check: TaskCheck | None = None,
        checked: bool | None = None,
        private: bool | None = None,
    ) -> TaskChange:
        """
        Atomically load the task, run `check(task)` and set the given flags.

        `check` raises to abort (nothing is written). Raises TaskNotFound for an
        unknown id. Fields left as None are untouched.
        """
        fields: list[str] = []
        params: list[Any] = []

        if checked is not None:
            fields.append("checked = ?")
            params.append(1 if checked else 0)

        if private is not None:
            fields.append("private = ?")
            params.append(1 if private else 0)

        with self._write_txn() as conn:
            before = self._load_for_update(conn, task_id)
            if check is not None:
                check(before)

            if not fields:
                return TaskChange(before=before, after=before)

            params.append(int(task_id))
            conn.execute(f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?", params)
            after = self._load_for_update(conn, task_id)

        logger.debug(
            "Task updated id=%s checked=%s private=%s", task_id, after.checked, after.private
        )
        return TaskChange(before=before, after=after)

    def delete_task(self, task_id: int, *, check: TaskCheck | None = None) -> TaskChange:
        """Atomically load the task, run `check(task)` and delete it."""
        with self._write_txn() as conn:
            before = self._load_for_update(conn, task_id)
            if check is not None:
                check(before)
            conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))

        logger.debug("Task deleted id=%s", task_id)
        return TaskChange(before=before, after=None)
