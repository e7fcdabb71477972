# src/simple_todos/tasks/task_api.py

"""
Task operations used by front-ends.

Every operation takes the caller's user id explicitly (None = anonymous).
Authorization runs inside the store's write transaction, so a failed check
leaves the task untouched. Writes go through TaskFeed.commit, so the live feed
sees changes in commit order.
"""

from __future__ import annotations

import logging

from ..core.state import AppState
from ..errors import NotAuthorized
from .task_feed import TaskSubscription
from .task_models import Task, TaskChange
from .visibility import can_modify, can_set_private

logger = logging.getLogger(__name__)


def _require_modify(caller_id: str | None):
    def check(task: Task) -> None:
        if not can_modify(task, caller_id):
            logger.info("Denied modify task_id=%s caller=%s", task.id, caller_id)
            raise NotAuthorized()

    return check


def _require_owner(caller_id: str | None):
    def check(task: Task) -> None:
        if not can_set_private(task, caller_id):
            logger.info("Denied set_private task_id=%s caller=%s", task.id, caller_id)
            raise NotAuthorized()

    return check


# ---- writes ----


def add_task(state: AppState, text: str, *, caller_id: str | None) -> int:
    """Create a task owned by the caller. Anonymous callers are rejected."""
    if not caller_id:
        raise NotAuthorized()

    # Display name is copied once and never re-synced with later renames.
    username = state.user_store.get_username(caller_id) or caller_id

    def insert() -> TaskChange:
        task = state.task_store.insert_task(text=text, owner=caller_id, username=username)
        return TaskChange(before=None, after=task)

    task = state.feed.commit(insert).after
    assert task is not None
    logger.info("Task %s added by %s", task.id, caller_id)
    return task.id


def delete_task(state: AppState, task_id: int, *, caller_id: str | None) -> None:
    """Remove a task unless it is private and belongs to someone else."""
    state.feed.commit(
        lambda: state.task_store.delete_task(task_id, check=_require_modify(caller_id))
    )
    logger.info("Task %s deleted by %s", task_id, caller_id)


def set_checked(state: AppState, task_id: int, checked: bool, *, caller_id: str | None) -> None:
    """Set the checked flag unless the task is private and belongs to someone else."""
    state.feed.commit(
        lambda: state.task_store.update_task(
            task_id, check=_require_modify(caller_id), checked=bool(checked)
        )
    )


def set_private(state: AppState, task_id: int, private: bool, *, caller_id: str | None) -> None:
    """Set the private flag. Owner only, whatever the current value is."""
    state.feed.commit(
        lambda: state.task_store.update_task(
            task_id, check=_require_owner(caller_id), private=bool(private)
        )
    )


# ---- reads ----


def list_visible_tasks(
    state: AppState,
    viewer_id: str | None,
    *,
    hide_completed: bool = False,
) -> list[Task]:
    """Snapshot of the tasks viewer_id may see, newest first."""
    return state.task_store.list_visible_tasks(viewer_id, hide_completed=hide_completed)


def subscribe_tasks(
    state: AppState,
    viewer_id: str | None,
    *,
    hide_completed: bool = False,
) -> TaskSubscription:
    """Live version of list_visible_tasks. Call from a running event loop."""
    return state.feed.subscribe(viewer_id, hide_completed=hide_completed)


def count_incomplete(state: AppState, viewer_id: str | None) -> int:
    return state.task_store.count_incomplete(viewer_id)
