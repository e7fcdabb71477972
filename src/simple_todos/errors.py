# src/simple_todos/errors.py

"""
Errors raised by the task and account layers.

Front-ends catch TodoError and render `str(exc)`; anything else is a bug and
should be logged with a traceback.
"""

from __future__ import annotations


class TodoError(Exception):
    """Base class for expected, user-facing failures."""

    code: str = "error"

    def __str__(self) -> str:
        msg = super().__str__()
        return msg or self.code


class NotAuthorized(TodoError):
    """The caller is not allowed to perform the operation."""

    code = "not-authorized"


class TaskNotFound(TodoError, LookupError):
    """A mutation targeted a task id that does not exist."""

    code = "not-found"

    def __init__(self, task_id: int) -> None:
        super().__init__(f"task {task_id} not found")
        self.task_id = task_id


class UsernameTaken(TodoError):
    code = "username-taken"

    def __init__(self, username: str) -> None:
        super().__init__(f"username {username!r} is already taken")
        self.username = username


class InvalidCredentials(TodoError):
    code = "invalid-credentials"
