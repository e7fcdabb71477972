# src/simple_todos/tasks/visibility.py

"""
Read and write policy for tasks.

Everything here is a pure function of (task, viewer/caller id). A missing id
(None) means an anonymous caller.

Reads:  a task is visible if it is public, or if the viewer owns it.
Writes: delete/check are allowed unless the task is private and owned by
        someone else; changing the private flag is owner-only.
"""

from __future__ import annotations

from collections.abc import Iterable

from .task_models import Task


def is_visible(task: Task, viewer_id: str | None) -> bool:
    if not task.private:
        return True
    return viewer_id is not None and task.owner == viewer_id


def is_owner(task: Task, viewer_id: str | None) -> bool:
    return viewer_id is not None and task.owner == viewer_id


def can_modify(task: Task, caller_id: str | None) -> bool:
    """Delete / set-checked rule. Public tasks may be modified by anyone."""
    return not (task.private and not is_owner(task, caller_id))


def can_set_private(task: Task, caller_id: str | None) -> bool:
    return is_owner(task, caller_id)


def matches_view(task: Task, viewer_id: str | None, *, hide_completed: bool = False) -> bool:
    """
    Visibility plus the display-only hide-completed filter.

    hide_completed has no security meaning: it only narrows what is already visible.
    """
    if not is_visible(task, viewer_id):
        return False
    return not (hide_completed and task.checked)


def sort_newest_first(tasks: Iterable[Task]) -> list[Task]:
    # id breaks ties between tasks created within the same clock tick
    return sorted(tasks, key=lambda t: (t.created_at, t.id), reverse=True)


def visible_tasks(
    tasks: Iterable[Task],
    viewer_id: str | None,
    *,
    hide_completed: bool = False,
) -> list[Task]:
    """Ordered (created_at desc) subset of `tasks` this viewer may see."""
    return sort_newest_first(
        t for t in tasks if matches_view(t, viewer_id, hide_completed=hide_completed)
    )
