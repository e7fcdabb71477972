# src/simple_todos/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import cast

from ..core.state import AppState
from ..errors import TodoError
from ..tasks import task_api
from ..tasks.task_models import Task
from ..tasks.visibility import is_owner

CommandEmitter = Callable[[str], None]


@dataclass
class ConsoleSession:
    """
    Per-connection context passed to every command.

    Nothing here is global: two consoles (or tests) each get their own session.
    """

    user_id: str | None = None
    username: str | None = None
    hide_completed: bool = False


CommandHandler3 = Callable[[AppState, list[str], ConsoleSession], str]
CommandHandler4 = Callable[[AppState, list[str], ConsoleSession, CommandEmitter | None], str]
CommandHandler = CommandHandler3 | CommandHandler4

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console (/help, /add, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        session: ConsoleSession,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.

        Expected failures (TodoError, ValueError) become a short reply.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except (TypeError, ValueError):
            nparams = 4

        try:
            if nparams >= 4:
                h4 = cast(CommandHandler4, handler)
                return h4(state, args, session, emit)

            h3 = cast(CommandHandler3, handler)
            return h3(state, args, session)
        except TodoError as e:
            return f"Failed: {e}"
        except ValueError as e:
            return f"Invalid input: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _ts_local(ts: float) -> str:
    return datetime.fromtimestamp(ts).astimezone().strftime("%Y-%m-%d %H:%M")


def _parse_task_id(args: list[str], usage: str) -> int:
    if not args:
        raise ValueError(usage)
    try:
        return int(args[0])
    except ValueError:
        raise ValueError(f"task id must be a number ({usage})") from None


def format_task(task: Task, viewer_id: str | None) -> str:
    box = "[x]" if task.checked else "[ ]"
    flags = ""
    if task.private:
        flags = " (private)"
    elif is_owner(task, viewer_id):
        flags = " (public)"
    return f"{task.id:>4} {box} {task.text}  - {task.username}, {_ts_local(task.created_at)}{flags}"


def cmd_help(state: AppState, args: list[str], session: ConsoleSession) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str], session: ConsoleSession) -> str:
    who = session.username or "anonymous"
    hide = "ON" if session.hide_completed else "OFF"
    db_path = getattr(state.settings, "db_path", "?")
    return (
        "Status:\n"
        f"  User: {who}\n"
        f"  Hide completed: {hide}\n"
        f"  Database: {db_path}\n"
        f"  Tasks stored: {state.task_store.count_tasks()}"
    )


def cmd_signup(
    state: AppState,
    args: list[str],
    session: ConsoleSession,
    emit: CommandEmitter | None = None,
) -> str:
    """/signup <username> <password> -> create account and log in."""
    if len(args) != 2:
        return "Usage: /signup <username> <password>"
    username, password = args

    if emit:
        with contextlib.suppress(Exception):
            emit("Creating account...")

    user_id = state.user_store.sign_up(username, password)
    session.user_id = user_id
    session.username = state.user_store.get_username(user_id) or username
    return f"Signed up and logged in as {session.username}."


def cmd_login(state: AppState, args: list[str], session: ConsoleSession) -> str:
    """/login <username> <password>"""
    if len(args) != 2:
        return "Usage: /login <username> <password>"
    username, password = args

    user_id = state.user_store.authenticate(username, password)
    session.user_id = user_id
    session.username = state.user_store.get_username(user_id) or username
    logger.debug("Console login user_id=%s", user_id)
    return f"Logged in as {session.username}."


def cmd_logout(state: AppState, args: list[str], session: ConsoleSession) -> str:
    if session.user_id is None:
        return "Not logged in."
    name = session.username
    session.user_id = None
    session.username = None
    return f"Logged out {name}."


def cmd_whoami(state: AppState, args: list[str], session: ConsoleSession) -> str:
    if session.user_id is None:
        return "Not logged in."
    return f"{session.username} (id={session.user_id})"


def cmd_add(state: AppState, args: list[str], session: ConsoleSession) -> str:
    """/add <text...>"""
    text = " ".join(args).strip()
    if not text:
        return "Usage: /add <text>"
    task_id = task_api.add_task(state, text, caller_id=session.user_id)
    return f"Added task {task_id}."


def cmd_list(state: AppState, args: list[str], session: ConsoleSession) -> str:
    tasks = task_api.list_visible_tasks(
        state, session.user_id, hide_completed=session.hide_completed
    )
    remaining = task_api.count_incomplete(state, session.user_id)
    header = f"Todo List ({remaining})"
    if not tasks:
        return f"{header}\n  (nothing to show)"
    return "\n".join([header, *(format_task(t, session.user_id) for t in tasks)])


def cmd_check(state: AppState, args: list[str], session: ConsoleSession) -> str:
    task_id = _parse_task_id(args, "/check <id>")
    task_api.set_checked(state, task_id, True, caller_id=session.user_id)
    return f"Checked task {task_id}."


def cmd_uncheck(state: AppState, args: list[str], session: ConsoleSession) -> str:
    task_id = _parse_task_id(args, "/uncheck <id>")
    task_api.set_checked(state, task_id, False, caller_id=session.user_id)
    return f"Unchecked task {task_id}."


def cmd_toggle(state: AppState, args: list[str], session: ConsoleSession) -> str:
    """/toggle <id> -> flip checked based on the current value."""
    task_id = _parse_task_id(args, "/toggle <id>")
    task = state.task_store.get_task(task_id)
    if task is None:
        return f"No task {task_id}."
    task_api.set_checked(state, task_id, not task.checked, caller_id=session.user_id)
    return f"{'Unchecked' if task.checked else 'Checked'} task {task_id}."


def cmd_rm(state: AppState, args: list[str], session: ConsoleSession) -> str:
    task_id = _parse_task_id(args, "/rm <id>")
    task_api.delete_task(state, task_id, caller_id=session.user_id)
    return f"Deleted task {task_id}."


def cmd_private(state: AppState, args: list[str], session: ConsoleSession) -> str:
    task_id = _parse_task_id(args, "/private <id>")
    task_api.set_private(state, task_id, True, caller_id=session.user_id)
    return f"Task {task_id} is now private."


def cmd_public(state: AppState, args: list[str], session: ConsoleSession) -> str:
    task_id = _parse_task_id(args, "/public <id>")
    task_api.set_private(state, task_id, False, caller_id=session.user_id)
    return f"Task {task_id} is now public."


def cmd_hide(state: AppState, args: list[str], session: ConsoleSession) -> str:
    """
    /hide       -> show current value
    /hide on    -> hide completed tasks in /list
    /hide off   -> show them again
    """
    if not args:
        return f"Hide completed is {'ON' if session.hide_completed else 'OFF'}. Use /hide on or /hide off."

    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        session.hide_completed = True
        return "Completed tasks are hidden."
    if arg in ("off", "0", "false", "no"):
        session.hide_completed = False
        return "Completed tasks are shown."
    return "Usage: /hide on or /hide off."


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show current session and database.")
registry.register("signup", cmd_signup, help_text="Create an account: /signup <name> <password>.")
registry.register("login", cmd_login, help_text="Log in: /login <name> <password>.")
registry.register("logout", cmd_logout, help_text="Log out.")
registry.register("whoami", cmd_whoami, help_text="Show the logged-in user.")
registry.register("add", cmd_add, help_text="Add a task: /add <text>.", aliases=["new"])
registry.register("list", cmd_list, help_text="List visible tasks (newest first).", aliases=["ls"])
registry.register("check", cmd_check, help_text="Mark a task done: /check <id>.", aliases=["done"])
registry.register("uncheck", cmd_uncheck, help_text="Mark a task not done: /uncheck <id>.")
registry.register("toggle", cmd_toggle, help_text="Flip a task's done state: /toggle <id>.")
registry.register("rm", cmd_rm, help_text="Delete a task: /rm <id>.", aliases=["delete"])
registry.register("private", cmd_private, help_text="Make your task private: /private <id>.")
registry.register("public", cmd_public, help_text="Make your task public: /public <id>.")
registry.register("hide", cmd_hide, help_text="Hide completed tasks: /hide on | /hide off.")
