# tests/fakes.py

from __future__ import annotations


class FakeClock:
    """
    Deterministic clock for TaskStore.

    Each call advances by `step` seconds, so creation times are strictly increasing.
    """

    def __init__(self, start: float = 1_700_000_000.0, step: float = 1.0) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        self.now += self.step
        return self.now


class FrozenClock:
    """Clock that never moves; used to check tie-breaking on equal timestamps."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now
