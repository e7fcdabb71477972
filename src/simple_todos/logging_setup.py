# src/simple_todos/logging_setup.py

"""
Logging for the console app.

The REPL prints task lists to stdout, so stderr only gets what is worth
interrupting the user for. Each logger has a console floor looked up by name
prefix (longest prefix wins); the file log keeps everything at file_level.
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

LOG_FILE_NAME = "todos.log"

# Minimum level shown on the console, by logger-name prefix.
CONSOLE_FLOORS: dict[str, int] = {
    "simple_todos": logging.NOTSET,
    # Per-write and per-subscriber chatter.
    "simple_todos.tasks.task_store": logging.WARNING,
    "simple_todos.tasks.task_feed": logging.WARNING,
    "simple_todos.accounts.user_store": logging.WARNING,
    "py.warnings": logging.ERROR,
}

# Anything not listed (third-party libraries).
DEFAULT_CONSOLE_FLOOR = logging.ERROR

# Set on handlers installed here so a second setup_logging() replaces only them.
_OWNED = "_simple_todos_owned"


def console_floor(name: str, floors: Mapping[str, int] = CONSOLE_FLOORS) -> int:
    best = -1
    floor = DEFAULT_CONSOLE_FLOOR
    for prefix, level in floors.items():
        if (name == prefix or name.startswith(prefix + ".")) and len(prefix) > best:
            best = len(prefix)
            floor = level
    return floor


class ConsoleFloorFilter(logging.Filter):
    def __init__(self, floors: Mapping[str, int] | None = None) -> None:
        super().__init__()
        self.floors = dict(CONSOLE_FLOORS if floors is None else floors)

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= console_floor(record.name, self.floors)


def setup_logging(
    *,
    log_dir: str | Path | None = None,
    console_level: int = logging.WARNING,
    file_level: int = logging.DEBUG,
    floors: Mapping[str, int] | None = None,
) -> list[logging.Handler]:
    """
    Install a filtered stderr handler and, when log_dir is given, a file handler
    writing `todos.log` there. Returns the installed handlers.

    Call once at startup. Calling again swaps out the handlers from the previous
    call and leaves handlers installed by anyone else alone.
    """
    root = logging.getLogger()
    root.setLevel(min(console_level, file_level) if log_dir is not None else console_level)

    for h in list(root.handlers):
        if getattr(h, _OWNED, False):
            root.removeHandler(h)
            h.close()

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.addFilter(ConsoleFloorFilter(floors))
    handlers: list[logging.Handler] = [console]

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(str(log_dir / LOG_FILE_NAME), encoding="utf-8")
        file_handler.setLevel(file_level)
        handlers.append(file_handler)

    for h in handlers:
        h.setFormatter(fmt)
        setattr(h, _OWNED, True)
        root.addHandler(h)

    # warnings.warn(...) -> 'py.warnings' logger
    logging.captureWarnings(True)
    return handlers
