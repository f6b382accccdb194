"""Tick scheduler: one self-rescheduling event loop timer.

Ticks are aligned to the second boundaries of the session's end time, not to
the moment the scheduler was started.  After the first (phase) delay every
deadline is the previous deadline plus one second, so time spent in tick
callbacks does not accumulate as drift.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Callable

from timeleft.core.errors import SchedulingError, StaleCallbackError

logger = logging.getLogger(__name__)

_PERIOD_MS = 1000
_PERIOD_SECONDS = _PERIOD_MS / 1000


def phase_delay_ms(
    reference_started_time: float, duration_seconds: float, adjusted_now: float
) -> float:
    """Return the delay until the next whole second of the countdown.

    A zero phase means ``adjusted_now`` already sits on a boundary, in which
    case a full period is used.
    """
    delay = (reference_started_time + duration_seconds * 60000 - adjusted_now) % _PERIOD_MS
    return delay if delay else _PERIOD_MS


class TickScheduler:
    """Owns at most one live timer handle on an asyncio event loop.

    *on_tick* is called once per elapsed second.  *on_error* receives a
    :class:`SchedulingError` raised while rescheduling from inside a tick;
    without it the error propagates to the loop's exception handler.  When
    *loop* is omitted the running loop is looked up on every :meth:`start`.
    """

    def __init__(
        self,
        on_tick: Callable[[], None],
        on_error: Callable[[SchedulingError], None] | None = None,
        loop: asyncio.AbstractEventLoop | None = None,
    ) -> None:
        self._on_tick = on_tick
        self._on_error = on_error
        self._loop = loop
        self._handle: asyncio.TimerHandle | None = None
        self._generation: int = 0
        self._next_deadline: float = 0.0

    @property
    def running(self) -> bool:
        """Return ``True`` while a tick is pending."""
        return self._handle is not None

    def start(self, first_delay_ms: float) -> None:
        """(Re)start ticking; the first tick fires after *first_delay_ms*.

        Any pending tick is cancelled first.  Raises :class:`SchedulingError`
        when no loop is available or the loop refuses the timer.
        """
        self.cancel()
        loop = self._resolve_loop()
        self._next_deadline = loop.time() + first_delay_ms / 1000
        logger.debug("Scheduling first tick in %.0f ms", first_delay_ms)
        self._schedule(loop, self._generation)

    def cancel(self) -> None:
        """Clear the pending tick, if any.  Safe to call repeatedly."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug("Tick timer cleared")
        self._generation += 1

    # -- private helpers -----------------------------------------------------

    def _resolve_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is not None:
            return self._loop
        try:
            return asyncio.get_running_loop()
        except RuntimeError as exc:
            logger.error("No running event loop to schedule ticks on")
            raise SchedulingError("no running event loop") from exc

    def _schedule(self, loop: asyncio.AbstractEventLoop, generation: int) -> None:
        try:
            self._handle = loop.call_at(self._next_deadline, self._fire, loop, generation)
        except RuntimeError as exc:
            self._handle = None
            logger.error("Could not schedule countdown tick: %s", exc)
            raise SchedulingError(f"cannot schedule tick: {exc}") from exc

    def _check_current(self, generation: int) -> None:
        if generation != self._generation:
            raise StaleCallbackError(
                f"tick from timer generation {generation}, current is {self._generation}"
            )

    def _fire(self, loop: asyncio.AbstractEventLoop, generation: int) -> None:
        try:
            self._check_current(generation)
            self._handle = None
            self._on_tick()
        except StaleCallbackError as exc:
            logger.debug("Dropping stale tick: %s", exc)
            return

        # The tick itself may have cancelled or restarted the timer.
        if generation != self._generation:
            return

        self._next_deadline += _PERIOD_SECONDS
        try:
            self._schedule(loop, generation)
        except SchedulingError as exc:
            if self._on_error is None:
                raise
            self._on_error(exc)
