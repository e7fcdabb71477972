# src/simple_todos/accounts/user_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

import bcrypt

from ..errors import InvalidCredentials, UsernameTaken

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of the password.
_BCRYPT_MAX_BYTES = 72


@dataclass(frozen=True, slots=True)
class User:
    id: str
    username: str
    created_at: float


class UserStore:
    """
    SQLite-backed accounts (username + password).

    Usernames are unique case-insensitively but stored as typed, since the
    stored form is what gets copied onto tasks as the display name.

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "todos.sqlite3", *, bcrypt_rounds: int = 12) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._rounds = max(4, min(31, int(bcrypt_rounds)))
        self._ensure_schema()
        logger.info("UserStore ready db=%s", self._db_path)

    def close(self) -> None:
        return

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        with contextlib.suppress(sqlite3.Error):
            conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id TEXT PRIMARY KEY,
                    username TEXT NOT NULL,
                    password_hash BLOB NOT NULL,
                    created_at REAL NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE UNIQUE INDEX IF NOT EXISTS idx_users_username "
                "ON users(username COLLATE NOCASE)"
            )
            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _password_bytes(password: str) -> bytes:
        return password.encode("utf-8")[:_BCRYPT_MAX_BYTES]

    @staticmethod
    def _row_to_user(row: sqlite3.Row) -> User:
        return User(
            id=str(row["id"]),
            username=str(row["username"]),
            created_at=float(row["created_at"] or 0.0),
        )

    # ---- public API ----

    def sign_up(self, username: str, password: str) -> str:
        """Create an account and return its user id."""
        username = (username or "").strip()
        if not username:
            raise ValueError("username is required")
        if not password:
            raise ValueError("password is required")

        user_id = uuid.uuid4().hex
        pw_hash = bcrypt.hashpw(self._password_bytes(password), bcrypt.gensalt(rounds=self._rounds))

        conn = self._get_conn()
        try:
            conn.execute(
                "INSERT INTO users(id, username, password_hash, created_at) VALUES (?, ?, ?, ?)",
                (user_id, username, pw_hash, time.time()),
            )
            conn.commit()
        except sqlite3.IntegrityError as e:
            raise UsernameTaken(username) from e
        finally:
            conn.close()

        logger.info("User signed up id=%s username=%s", user_id, username)
        return user_id

    def authenticate(self, username: str, password: str) -> str:
        """Return the user id for a valid username/password pair."""
        username = (username or "").strip()
        if not username or not password:
            raise InvalidCredentials()

        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT id, password_hash FROM users WHERE username = ? COLLATE NOCASE",
                (username,),
            ).fetchone()
        finally:
            conn.close()

        if row is None or not bcrypt.checkpw(self._password_bytes(password), bytes(row["password_hash"])):
            logger.info("Login failed username=%s", username)
            raise InvalidCredentials()

        return str(row["id"])

    def get_user(self, user_id: str) -> User | None:
        if not user_id:
            return None
        conn = self._get_conn()
        try:
            row = conn.execute(
                "SELECT id, username, created_at FROM users WHERE id = ?", (user_id,)
            ).fetchone()
            return self._row_to_user(row) if row else None
        finally:
            conn.close()

    def get_username(self, user_id: str) -> str | None:
        user = self.get_user(user_id)
        return user.username if user else None

    def count_users(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM users").fetchone()
            return int(n)
        finally:
            conn.close()
