# src/simple_todos/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


@dataclass(frozen=True, slots=True)
class Task:
    """
    One to-do item.

    id/text/created_at/owner/username are fixed at creation.
    Only `checked` and `private` change over the lifetime of a task.
    """

    id: int
    text: str
    created_at: float
    owner: str
    username: str

    checked: bool = False
    private: bool = False


class TaskEventKind(StrEnum):
    ADDED = "added"
    CHANGED = "changed"
    REMOVED = "removed"


@dataclass(frozen=True, slots=True)
class TaskEvent:
    """
    What a live subscriber sees.

    For REMOVED, `task` is the last state the subscriber was allowed to see.
    """

    kind: TaskEventKind
    task: Task


@dataclass(frozen=True, slots=True)
class TaskChange:
    """
    Raw store-level change, before any per-viewer filtering.

    before is None for inserts, after is None for deletions.
    """

    before: Task | None
    after: Task | None
