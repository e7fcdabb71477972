# src/simple_todos/connectors/console_connector.py

from __future__ import annotations

import logging
from datetime import datetime

from ..cli.commands import ConsoleSession
from ..cli.commands import registry as command_registry
from ..core.state import AppState

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}")


def handle_line(state: AppState, session: ConsoleSession, line: str) -> str | None:
    """
    Route one line of console input.

    Slash commands go to the registry; any other non-empty text is a new task.
    """
    line = line.strip()
    if not line:
        return None
    if not line.startswith("/"):
        line = f"/add {line}"

    def emit(text: str) -> None:
        _print_ts(text)

    try:
        return command_registry.handle(state, line, session, emit=emit)
    except Exception:
        logger.exception("Command handler crashed.")
        return "Internal error while handling a command."


def run_console_loop(state: AppState, session: ConsoleSession | None = None) -> None:
    if session is None:
        session = ConsoleSession(
            hide_completed=bool(getattr(state.settings, "hide_completed", False))
        )

    logger.info("Console connector started.")
    _print_ts("Type a task to add it. Use /help for commands. Use /exit to quit.\n")

    while True:
        prompt = f"{session.username or 'anonymous'}> "
        try:
            user_input = input(prompt).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        response = handle_line(state, session, user_input)
        if response is not None:
            print(response)

    logger.info("Console connector finished.")
