# tests/conftest.py

from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from simple_todos.accounts.user_store import UserStore
from simple_todos.core.state import AppState
from simple_todos.tasks.task_feed import TaskFeed
from simple_todos.tasks.task_store import TaskStore

from fakes import FakeClock


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and bootstrap.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="simple-todos-test",
        log_level="DEBUG",
        data_dir=tmp_path,
        db_path=tmp_path / "todos.sqlite3",
        log_dir=tmp_path,
        hide_completed=False,
        # Lowest cost bcrypt allows; keeps sign-up fast in tests.
        bcrypt_rounds=4,
        feed_max_pending=1000,
    )


@pytest.fixture()
def task_store(settings: SimpleNamespace) -> TaskStore:
    return TaskStore(settings.db_path, clock=FakeClock())


@pytest.fixture()
def user_store(settings: SimpleNamespace) -> UserStore:
    return UserStore(settings.db_path, bcrypt_rounds=settings.bcrypt_rounds)


@pytest.fixture()
def state(settings: SimpleNamespace, task_store: TaskStore, user_store: UserStore) -> AppState:
    """
    AppState wired with real SQLite stores in tmp_path.

    NOTE: the stores are real because their transactional behaviour is part of
    what we want to test; only the clock is faked.
    """
    return AppState(
        settings=settings,
        task_store=task_store,
        user_store=user_store,
        feed=TaskFeed(task_store, max_pending=settings.feed_max_pending),
    )
