# src/simple_todos/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TODOS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


load_dotenv(override=False)


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


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    db_path: Path
    log_dir: Path

    # ---- Console session defaults ----
    hide_completed: bool

    # ---- Accounts ----
    bcrypt_rounds: int

    # ---- Live feed ----
    feed_max_pending: int

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "simple-todos")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/todos"))
        db_path = _env_path(_k("DB_PATH"), data_dir / "todos.sqlite3")
        log_dir = _env_path(_k("LOG_DIR"), data_dir)

        hide_completed = _env_bool(_k("HIDE_COMPLETED"), False)
        bcrypt_rounds = _env_int(_k("BCRYPT_ROUNDS"), 12)
        feed_max_pending = max(0, _env_int(_k("FEED_MAX_PENDING"), 1000))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            db_path=db_path,
            log_dir=log_dir,
            hide_completed=hide_completed,
            bcrypt_rounds=bcrypt_rounds,
            feed_max_pending=feed_max_pending,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
