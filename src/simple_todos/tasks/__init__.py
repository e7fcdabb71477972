"""
Task subsystem.

Components:
- task_models.py: data structures (Task, TaskEvent)
- visibility.py: read/write policy predicates and the visible-subset query
- task_store.py: SQLite-backed storage with atomic read-check-write helpers
- task_feed.py: live subscriptions fed by store changes
- task_api.py: the operations callers use (add/delete/check/privatize, reads)
"""
