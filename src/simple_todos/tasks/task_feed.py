# src/simple_todos/tasks/task_feed.py

from __future__ import annotations

"""
Live task subscriptions.

A subscriber asks for "everything viewer X may see" and gets:
- the current matching tasks as ADDED events (newest first),
- then ADDED / CHANGED / REMOVED events as the store changes.

The mutation layer runs its store writes through TaskFeed.commit, which holds the
feed lock across the write and the publish. Changes therefore reach subscribers in
commit order. Each subscription filters the raw TaskChange objects (before/after)
through the same visibility predicate used for snapshot reads, so a task that
becomes private disappears for other viewers as a REMOVED event and reappears as
ADDED when made public again.

Events are handed to the subscriber's asyncio loop with call_soon_threadsafe, so
publishers may run in any thread. To stop receiving events, cancel the
subscription. A subscriber that leaves more than `max_pending` events unread is
dropped: it gets the events already queued, then SubscriptionClosed.
"""

import asyncio
import logging
import threading
from collections.abc import Callable

from ..core.ports import TaskRepo
from .task_models import Task, TaskChange, TaskEvent, TaskEventKind
from .visibility import matches_view, sort_newest_first

logger = logging.getLogger(__name__)

# Queued after the last event of a cancelled subscription.
_CLOSED = None

DEFAULT_MAX_PENDING = 1000


class SubscriptionClosed(Exception):
    """Raised by TaskSubscription.get() once the subscription is cancelled or dropped."""


class TaskSubscription:
    """
    Handle returned by TaskFeed.subscribe.

    Usage:
        sub = feed.subscribe(user_id)
        async for event in sub:
            ...
        # elsewhere: sub.cancel()
    """

    def __init__(
        self,
        feed: TaskFeed,
        viewer_id: str | None,
        *,
        hide_completed: bool,
        loop: asyncio.AbstractEventLoop,
        maxsize: int = 0,
    ) -> None:
        self._feed = feed
        self.viewer_id = viewer_id
        self.hide_completed = hide_completed
        self._loop = loop
        self._queue: asyncio.Queue[TaskEvent | None] = asyncio.Queue(maxsize=maxsize)
        # Last state of every task this subscriber currently sees. Guarded by feed lock.
        self._known: dict[int, Task] = {}
        self._cancelled = False
        self._overflowed = False
        self._drained = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def overflowed(self) -> bool:
        """True once the subscriber fell too far behind and was dropped."""
        return self._overflowed

    def snapshot(self) -> list[Task]:
        """Current view as last delivered to this subscriber, newest first."""
        with self._feed._lock:
            return sort_newest_first(self._known.values())

    def cancel(self) -> None:
        if self._cancelled:
            return
        self._cancelled = True
        self._feed._unsubscribe(self)
        self._deliver(_CLOSED)

    async def get(self) -> TaskEvent:
        """Wait for the next event. Raises SubscriptionClosed once cancelled."""
        if self._drained:
            raise SubscriptionClosed()
        if self._overflowed and self._queue.empty():
            self._drained = True
            raise SubscriptionClosed()
        event = await self._queue.get()
        if event is _CLOSED:
            self._drained = True
            raise SubscriptionClosed()
        return event

    def __aiter__(self) -> TaskSubscription:
        return self

    async def __anext__(self) -> TaskEvent:
        try:
            return await self.get()
        except SubscriptionClosed:
            raise StopAsyncIteration from None

    # ---- feed-side (called with feed lock held) ----

    def _prime(self, tasks: list[Task]) -> None:
        for task in tasks:
            self._known[task.id] = task
            self._deliver(TaskEvent(TaskEventKind.ADDED, task))

    def _apply(self, change: TaskChange) -> None:
        ref = change.after or change.before
        if ref is None:
            return

        was = self._known.get(ref.id)
        now_matches = change.after is not None and matches_view(
            change.after, self.viewer_id, hide_completed=self.hide_completed
        )

        if now_matches:
            after = change.after
            assert after is not None
            if was == after:
                return
            self._known[after.id] = after
            kind = TaskEventKind.CHANGED if was is not None else TaskEventKind.ADDED
            self._deliver(TaskEvent(kind, after))
        elif was is not None:
            del self._known[ref.id]
            self._deliver(TaskEvent(TaskEventKind.REMOVED, was))

    def _deliver(self, event: TaskEvent | None) -> None:
        try:
            self._loop.call_soon_threadsafe(self._enqueue, event)
        except RuntimeError:
            # Subscriber's loop is gone; nobody can read this queue any more.
            logger.warning("Dropping subscription viewer=%s: event loop closed", self.viewer_id)
            self._cancelled = True
            self._feed._unsubscribe(self)

    # ---- loop-side ----

    def _enqueue(self, event: TaskEvent | None) -> None:
        if self._overflowed:
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._overflowed = True
            if not self._cancelled:
                logger.warning(
                    "Dropping subscription viewer=%s: more than %d unread events",
                    self.viewer_id,
                    self._feed.max_pending,
                )
                self._cancelled = True
                self._feed._unsubscribe(self)


class TaskFeed:
    """
    Fan-out of store changes to live subscriptions.

    max_pending bounds the unread events per subscription (0 = unbounded).
    """

    def __init__(self, store: TaskRepo, *, max_pending: int = DEFAULT_MAX_PENDING) -> None:
        if max_pending < 0:
            raise ValueError("max_pending must be >= 0")
        self._store = store
        self.max_pending = max_pending
        self._lock = threading.RLock()
        self._subs: list[TaskSubscription] = []

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subs)

    def subscribe(
        self,
        viewer_id: str | None,
        *,
        hide_completed: bool = False,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> TaskSubscription:
        """
        Start a live view for viewer_id.

        Must be called from the loop that will consume the events (or pass `loop`).
        """
        if loop is None:
            loop = asyncio.get_running_loop()

        # Snapshot and register under the lock so no committed change falls in between.
        with self._lock:
            initial = self._store.list_visible_tasks(viewer_id, hide_completed=hide_completed)
            # Room for the snapshot and the close marker on top of max_pending.
            maxsize = self.max_pending + len(initial) + 1 if self.max_pending else 0
            sub = TaskSubscription(
                self, viewer_id, hide_completed=hide_completed, loop=loop, maxsize=maxsize
            )
            sub._prime(initial)
            self._subs.append(sub)

        logger.debug(
            "Subscribed viewer=%s hide_completed=%s initial=%d",
            viewer_id,
            hide_completed,
            len(initial),
        )
        return sub

    def commit(self, write: Callable[[], TaskChange]) -> TaskChange:
        """
        Run a store write and publish its change as one step.

        Exceptions from `write` propagate and nothing is published.
        """
        with self._lock:
            change = write()
            self.publish(change)
        return change

    def publish(self, change: TaskChange) -> None:
        with self._lock:
            subs = list(self._subs)
            for sub in subs:
                try:
                    sub._apply(change)
                except Exception:
                    logger.exception("Failed to deliver task change to viewer=%s", sub.viewer_id)

    def close(self) -> None:
        with self._lock:
            subs = list(self._subs)
        for sub in subs:
            sub.cancel()

    def _unsubscribe(self, sub: TaskSubscription) -> None:
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)
                logger.debug("Unsubscribed viewer=%s", sub.viewer_id)
