# src/simple_todos/core/state.py

from __future__ import annotations

from dataclasses import dataclass

from ..accounts.user_store import UserStore
from ..tasks.task_feed import TaskFeed
from ..tasks.task_store import TaskStore


@dataclass
class AppState:
    # Settings are kept on the state for easy access in other modules.
    settings: object

    task_store: TaskStore
    user_store: UserStore
    feed: TaskFeed
