"""simple-todos: a small multi-user to-do list with private tasks."""

__version__ = "0.1.0"
