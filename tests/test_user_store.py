# tests/test_user_store.py

from __future__ import annotations

import pytest

from simple_todos.accounts.user_store import UserStore
from simple_todos.errors import InvalidCredentials, UsernameTaken


def test_sign_up_and_authenticate(user_store: UserStore) -> None:
    user_id = user_store.sign_up("alice", "s3cret")
    assert user_id

    assert user_store.authenticate("alice", "s3cret") == user_id
    # usernames match case-insensitively
    assert user_store.authenticate("ALICE", "s3cret") == user_id

    user = user_store.get_user(user_id)
    assert user is not None
    assert user.username == "alice"
    assert user_store.get_username(user_id) == "alice"
    assert user_store.count_users() == 1


def test_wrong_password_and_unknown_user(user_store: UserStore) -> None:
    user_store.sign_up("alice", "s3cret")

    with pytest.raises(InvalidCredentials):
        user_store.authenticate("alice", "nope")
    with pytest.raises(InvalidCredentials):
        user_store.authenticate("bob", "s3cret")
    with pytest.raises(InvalidCredentials):
        user_store.authenticate("alice", "")


def test_duplicate_username_rejected(user_store: UserStore) -> None:
    user_store.sign_up("alice", "one")
    with pytest.raises(UsernameTaken):
        user_store.sign_up("Alice", "two")
    assert user_store.count_users() == 1


@pytest.mark.parametrize("username,password", [("", "pw"), ("   ", "pw"), ("alice", "")])
def test_blank_fields_rejected(user_store: UserStore, username: str, password: str) -> None:
    with pytest.raises(ValueError):
        user_store.sign_up(username, password)


def test_password_is_not_stored_in_clear(user_store: UserStore, settings) -> None:
    import sqlite3

    user_store.sign_up("alice", "s3cret")
    conn = sqlite3.connect(settings.db_path)
    try:
        (stored,) = conn.execute("SELECT password_hash FROM users").fetchone()
    finally:
        conn.close()

    assert b"s3cret" not in bytes(stored)
    assert bytes(stored).startswith(b"$2")


def test_unknown_user_lookups(user_store: UserStore) -> None:
    assert user_store.get_user("missing") is None
    assert user_store.get_username("missing") is None
    assert user_store.get_user("") is None
