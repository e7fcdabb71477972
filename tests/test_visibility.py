# tests/test_visibility.py

from __future__ import annotations

import pytest

from simple_todos.tasks.task_models import Task
from simple_todos.tasks.visibility import (
    can_modify,
    can_set_private,
    is_owner,
    is_visible,
    matches_view,
    visible_tasks,
)


def make_task(
    task_id: int = 1,
    *,
    owner: str = "user1",
    private: bool = False,
    checked: bool = False,
    created_at: float = 100.0,
) -> Task:
    return Task(
        id=task_id,
        text=f"task {task_id}",
        created_at=created_at,
        owner=owner,
        username=owner,
        checked=checked,
        private=private,
    )


@pytest.mark.parametrize("viewer", ["user1", "user2", None])
def test_public_task_visible_to_everyone(viewer) -> None:
    assert is_visible(make_task(private=False), viewer)


def test_private_task_visible_to_owner_only() -> None:
    task = make_task(private=True)
    assert is_visible(task, "user1")
    assert not is_visible(task, "user2")
    assert not is_visible(task, None)


def test_modify_rule_allows_anyone_on_public_tasks() -> None:
    public = make_task(private=False)
    private = make_task(private=True)

    assert can_modify(public, "user2")
    assert can_modify(public, None)
    assert can_modify(private, "user1")
    assert not can_modify(private, "user2")
    assert not can_modify(private, None)


@pytest.mark.parametrize("private", [False, True])
def test_set_private_is_owner_only_regardless_of_state(private: bool) -> None:
    task = make_task(private=private)
    assert can_set_private(task, "user1")
    assert not can_set_private(task, "user2")
    assert not can_set_private(task, None)


def test_is_owner_never_matches_anonymous() -> None:
    assert is_owner(make_task(), "user1")
    assert not is_owner(make_task(), None)


def test_hide_completed_only_narrows_visible_tasks() -> None:
    done = make_task(checked=True)
    hidden_private = make_task(owner="user1", private=True)

    assert matches_view(done, "user2")
    assert not matches_view(done, "user2", hide_completed=True)
    # hide_completed=False never widens what is visible
    assert not matches_view(hidden_private, "user2", hide_completed=False)


def test_visible_tasks_filters_and_orders_newest_first() -> None:
    tasks = [
        make_task(1, created_at=10.0),
        make_task(2, owner="user2", private=True, created_at=30.0),
        make_task(3, created_at=20.0, checked=True),
        make_task(4, owner="user1", private=True, created_at=40.0),
    ]

    assert [t.id for t in visible_tasks(tasks, "user1")] == [4, 3, 1]
    assert [t.id for t in visible_tasks(tasks, "user2")] == [2, 3, 1]
    assert [t.id for t in visible_tasks(tasks, None)] == [3, 1]
    assert [t.id for t in visible_tasks(tasks, None, hide_completed=True)] == [1]
