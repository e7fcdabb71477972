# src/simple_todos/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the task API.

The API depends on Protocols instead of concrete implementations.
This keeps storage swappable and makes testing easier.
"""

from collections.abc import Callable
from typing import Any, Protocol


class TaskRepo(Protocol):
    # Reads
    def get_task(self, task_id: int) -> Any | None: ...
    def list_visible_tasks(self, viewer_id: str | None, *, hide_completed: bool = False) -> list[Any]: ...
    def count_incomplete(self, viewer_id: str | None) -> int: ...
    def count_tasks(self) -> int: ...

    # Writes. `check` runs inside the write transaction and raises to abort.
    def insert_task(self, *, text: str, owner: str, username: str) -> Any: ...
    def update_task(
            self,
            task_id: int,
            *,
            check: Callable[[Any], None] | None = None,
            checked: bool | None = None,
            private: bool | None = None,
    ) -> Any: ...
    def delete_task(self, task_id: int, *, check: Callable[[Any], None] | None = None) -> Any: ...

