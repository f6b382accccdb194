"""Shared fixtures: a deterministic event loop and a frozen wall clock."""

from __future__ import annotations

from typing import Any, Callable, Iterator
from unittest.mock import MagicMock, patch

import pytest

# A whole-second epoch timestamp in milliseconds.
T0 = 1_700_000_000_000


class FakeTimerHandle:
    """Stand-in for ``asyncio.TimerHandle``."""

    def __init__(self, when: float, callback: Callable[..., Any], args: tuple) -> None:
        self.when = when
        self.callback = callback
        self.args = args
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    def cancelled(self) -> bool:
        return self._cancelled

    def run(self) -> None:
        self.callback(*self.args)


class FakeLoop:
    """Just enough of an asyncio loop to drive timers by hand.

    Time only moves when :meth:`advance` is called; due handles run in
    deadline order, like the real loop runs them.
    """

    def __init__(self) -> None:
        self.now = 0.0
        self.closed = False
        self.handles: list[FakeTimerHandle] = []

    def time(self) -> float:
        return self.now

    def call_at(self, when: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        if self.closed:
            raise RuntimeError("Event loop is closed")
        handle = FakeTimerHandle(when, callback, args)
        self.handles.append(handle)
        return handle

    def call_later(self, delay: float, callback: Callable[..., Any], *args: Any) -> FakeTimerHandle:
        return self.call_at(self.now + delay, callback, *args)

    @property
    def pending(self) -> list[FakeTimerHandle]:
        return [h for h in self.handles if not h.cancelled()]

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while True:
            due = [h for h in self.pending if h.when <= target + 1e-9]
            if not due:
                break
            handle = min(due, key=lambda h: h.when)
            self.handles.remove(handle)
            self.now = max(self.now, handle.when)
            handle.run()
        self.now = target


@pytest.fixture()
def loop() -> FakeLoop:
    """Return a fresh fake event loop."""
    return FakeLoop()


@pytest.fixture()
def wall_clock() -> Iterator[MagicMock]:
    """Freeze the engine's wall clock at ``T0``.

    Set ``wall_clock.time.return_value`` (in seconds) to move it.
    """
    with patch("timeleft.core.engine.time") as mock_time:
        mock_time.time.return_value = T0 / 1000
        yield mock_time
