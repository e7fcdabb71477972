# tests/test_task_store.py

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from simple_todos.errors import NotAuthorized, TaskNotFound
from simple_todos.tasks.task_store import TaskStore

from fakes import FakeClock, FrozenClock


def test_insert_get_and_defaults(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "todos.sqlite3", clock=FakeClock(start=0.0))

    task = store.insert_task(text="  Buy milk ", owner="u1", username="alice")
    assert task.id > 0
    assert task.text == "  Buy milk "
    assert task.created_at == 1.0
    assert task.checked is False
    assert task.private is False

    loaded = store.get_task(task.id)
    assert loaded == task
    assert store.get_task(task.id + 100) is None
    assert store.count_tasks() == 1


def test_insert_keeps_text_verbatim(task_store: TaskStore) -> None:
    blank = task_store.insert_task(text="   ", owner="u1", username="alice")
    padded = task_store.insert_task(text="\tMilk\n", owner="u1", username="alice")

    assert task_store.get_task(blank.id).text == "   "
    assert task_store.get_task(padded.id).text == "\tMilk\n"


def test_insert_requires_owner(task_store: TaskStore) -> None:
    with pytest.raises(ValueError):
        task_store.insert_task(text="x", owner="", username="")
    assert task_store.count_tasks() == 0


def test_list_visible_tasks_filters_private_and_sorts(task_store: TaskStore) -> None:
    a = task_store.insert_task(text="a", owner="u1", username="alice")
    b = task_store.insert_task(text="b", owner="u2", username="bob")
    c = task_store.insert_task(text="c", owner="u1", username="alice")
    task_store.update_task(c.id, private=True)
    task_store.update_task(a.id, checked=True)

    assert [t.id for t in task_store.list_visible_tasks("u1")] == [c.id, b.id, a.id]
    assert [t.id for t in task_store.list_visible_tasks("u2")] == [b.id, a.id]
    assert [t.id for t in task_store.list_visible_tasks(None)] == [b.id, a.id]
    assert [t.id for t in task_store.list_visible_tasks("u1", hide_completed=True)] == [c.id, b.id]

    assert task_store.count_incomplete("u1") == 2
    assert task_store.count_incomplete(None) == 1


def test_equal_timestamps_fall_back_to_id_order(tmp_path: Path) -> None:
    store = TaskStore(tmp_path / "todos.sqlite3", clock=FrozenClock())
    ids = [store.insert_task(text=str(i), owner="u1", username="alice").id for i in range(3)]

    assert [t.id for t in store.list_visible_tasks("u1")] == list(reversed(ids))


def test_update_returns_before_and_after(task_store: TaskStore) -> None:
    task = task_store.insert_task(text="a", owner="u1", username="alice")

    change = task_store.update_task(task.id, checked=True)
    assert change.before is not None and change.before.checked is False
    assert change.after is not None and change.after.checked is True
    # untouched fields stay as they were
    assert change.after.private is False
    assert change.after.text == "a"
    assert change.after.created_at == task.created_at


def test_failed_check_rolls_back(task_store: TaskStore) -> None:
    task = task_store.insert_task(text="a", owner="u1", username="alice")

    def deny(_task) -> None:
        raise NotAuthorized()

    with pytest.raises(NotAuthorized):
        task_store.update_task(task.id, check=deny, checked=True, private=True)
    with pytest.raises(NotAuthorized):
        task_store.delete_task(task.id, check=deny)

    assert task_store.get_task(task.id) == task


def test_unknown_id_raises_not_found(task_store: TaskStore) -> None:
    with pytest.raises(TaskNotFound) as exc:
        task_store.update_task(404, checked=True)
    assert exc.value.task_id == 404

    with pytest.raises(TaskNotFound):
        task_store.delete_task(404)


def test_delete_removes_row(task_store: TaskStore) -> None:
    task = task_store.insert_task(text="a", owner="u1", username="alice")
    change = task_store.delete_task(task.id)

    assert change.before == task
    assert change.after is None
    assert task_store.get_task(task.id) is None
    assert task_store.count_tasks() == 0


def test_schema_migration_adds_missing_columns(tmp_path: Path) -> None:
    db = tmp_path / "old.sqlite3"
    conn = sqlite3.connect(db)
    conn.execute(
        """
        CREATE TABLE tasks (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            text TEXT NOT NULL,
            created_at REAL NOT NULL,
            owner TEXT NOT NULL
        )
        """
    )
    conn.execute("INSERT INTO tasks(text, created_at, owner) VALUES ('legacy', 5.0, 'u1')")
    conn.commit()
    conn.close()

    store = TaskStore(db)
    (legacy,) = store.list_visible_tasks(None)
    assert legacy.text == "legacy"
    assert legacy.username == ""
    assert legacy.checked is False
    assert legacy.private is False
