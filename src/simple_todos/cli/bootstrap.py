# src/simple_todos/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (tasks/users/feed).
"""

from __future__ import annotations

import logging

from ..accounts.user_store import UserStore
from ..config import get_settings
from ..core.state import AppState
from ..tasks.task_feed import DEFAULT_MAX_PENDING, TaskFeed
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    task_store = TaskStore(settings.db_path)
    user_store = UserStore(settings.db_path, bcrypt_rounds=getattr(settings, "bcrypt_rounds", 12))

    return AppState(
        settings=settings,
        task_store=task_store,
        user_store=user_store,
        feed=TaskFeed(
            task_store,
            max_pending=getattr(settings, "feed_max_pending", DEFAULT_MAX_PENDING),
        ),
    )


def shutdown_state(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        state.feed.close()
    except Exception:
        logger.exception("Failed to close task feed.")

    # Stores use short-lived sqlite connections per call; close() is a no-op hook.
    for store in (state.task_store, state.user_store):
        try:
            store.close()
        except Exception:
            logger.debug("Store close failed.", exc_info=True)
