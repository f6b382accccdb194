"""Countdown engine: the caller-facing composition of the countdown parts.

The engine tracks one countdown at a time.  A lifecycle runs from
:meth:`CountdownEngine.initialize` (or :meth:`~CountdownEngine.reinitialize`)
to :meth:`~CountdownEngine.teardown` and owns its own alert and expiry
state, so independent engines never share anything.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import numbers
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Iterable

from timeleft.core.alerts import should_fire, thresholds_to_seconds
from timeleft.core.calculator import adjusted_now_ms, compute_remaining
from timeleft.core.errors import (
    ConfigurationError,
    InvalidStateError,
    SchedulingError,
    StaleCallbackError,
)
from timeleft.core.expiry import ExpiryNotifier, ExpiryState
from timeleft.core.scheduler import TickScheduler, phase_delay_ms
from timeleft.core.session import Session

logger = logging.getLogger(__name__)


class EngineState(Enum):
    """Observable states of the engine."""

    IDLE = "idle"
    ACTIVE = "active"
    EXPIRED = "expired"


@dataclass
class CountdownState:
    """Mutable per-lifecycle countdown data.  ``-1`` means not computed yet."""

    remaining_seconds: int = -1
    last_fired_threshold_seconds: int | None = None


def _now_ms() -> int:
    return int(time.time() * 1000)


def _validate_duration(duration_seconds: object) -> None:
    if isinstance(duration_seconds, bool) or not isinstance(duration_seconds, numbers.Real):
        raise ConfigurationError(
            f"duration_seconds must be numeric, got {type(duration_seconds).__name__}"
        )
    if duration_seconds < 0:
        raise ConfigurationError(f"duration_seconds must not be negative, got {duration_seconds}")


class CountdownEngine:
    """Counts a session down second by second on an asyncio event loop.

    Callbacks:

    * ``on_tick(remaining_seconds)`` for every delivered value, including
      the initial one;
    * ``on_alert(threshold_minutes)`` at most once per threshold;
    * ``on_expire()`` exactly once, when remaining time reaches zero;
    * ``on_error(exc)`` when a :class:`SchedulingError` halts the engine
      from inside a tick.

    No callback runs after :meth:`teardown` returns.  An exception raised by
    ``on_tick``, ``on_alert`` or ``on_expire`` is logged and otherwise
    ignored; the countdown keeps ticking.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop | None = None) -> None:
        self._scheduler = TickScheduler(
            self._on_scheduler_tick, on_error=self._on_scheduling_error, loop=loop
        )
        self._countdown: CountdownState = CountdownState()
        self._session: Session | None = None
        self._expiry: ExpiryNotifier | None = None
        self._lifecycle: int = 0
        self._offset_ms: int = 0
        self._configured: bool = False

        self._clock_offset_provider: Callable[[], int] = lambda: 0
        self._thresholds: frozenset[int] = frozenset()
        self._on_tick: Callable[[int], None] = lambda remaining: None
        self._on_alert: Callable[[int], None] = lambda minutes: None
        self._on_expire: Callable[[], None] = lambda: None
        self._on_error: Callable[[SchedulingError], None] | None = None
        self._display_alerts: bool = True

    # -- public interface ----------------------------------------------------

    @property
    def state(self) -> EngineState:
        if self._expiry is None:
            return EngineState.IDLE
        if self._expiry.state is ExpiryState.EXPIRED:
            return EngineState.EXPIRED
        return EngineState.ACTIVE

    @property
    def remaining_seconds(self) -> int:
        return self._countdown.remaining_seconds

    @property
    def last_fired_threshold_seconds(self) -> int | None:
        return self._countdown.last_fired_threshold_seconds

    @property
    def session(self) -> Session | None:
        return self._session

    def initialize(
        self,
        session: Session | None,
        clock_offset_provider: Callable[[], int],
        thresholds_minutes: Iterable[int],
        on_tick: Callable[[int], None],
        on_alert: Callable[[int], None],
        on_expire: Callable[[], None],
        *,
        on_error: Callable[[SchedulingError], None] | None = None,
        display_alerts: bool = True,
    ) -> None:
        """Configure the engine and start counting *session* down.

        A ``None`` session (still loading) or a zero duration leaves the
        engine dormant.  Raises :class:`ConfigurationError` for a negative
        or non-numeric duration or invalid thresholds, and
        :class:`SchedulingError` when no timer can be installed; in both
        cases no callback has run and the engine is idle.
        """
        thresholds = thresholds_to_seconds(thresholds_minutes)
        if session is not None:
            _validate_duration(session.duration_seconds)

        self.teardown()
        self._clock_offset_provider = clock_offset_provider
        self._thresholds = thresholds
        self._on_tick = on_tick
        self._on_alert = on_alert
        self._on_expire = on_expire
        self._on_error = on_error
        self._display_alerts = display_alerts
        self._configured = True
        self._start(session)

    def reinitialize(self, new_session: Session | None) -> None:
        """Restart the countdown for *new_session* with the current configuration.

        Alert and expiry state start over.  Valid only after :meth:`initialize`.
        """
        if not self._configured:
            raise InvalidStateError("reinitialize() is not valid before initialize()")
        if new_session is not None:
            _validate_duration(new_session.duration_seconds)
        self.teardown()
        self._start(new_session)

    def teardown(self) -> None:
        """Stop the timer and discard countdown state.  Idempotent."""
        self._scheduler.cancel()
        if self._expiry is not None:
            logger.info("Countdown torn down at %d s remaining", self._countdown.remaining_seconds)
        self._lifecycle += 1
        self._expiry = None
        self._session = None
        self._countdown = CountdownState()

    # -- lifecycle -------------------------------------------------------------

    def _start(self, session: Session | None) -> None:
        self._session = session
        if session is None:
            logger.debug("Session still loading; countdown dormant")
            return
        if session.duration_seconds == 0:
            logger.debug("Session has no duration; countdown dormant")
            return

        offset = self._read_offset()
        now = _now_ms()
        remaining = compute_remaining(
            session.reference_started_time, session.duration_seconds, now, offset
        )
        self._offset_ms = offset
        self._expiry = ExpiryNotifier(
            functools.partial(self._call_sink, "on_expire", self._on_expire),
            functools.partial(self._halt, self._lifecycle),
        )

        if remaining <= 0:
            logger.info("Session ended %d s before the countdown started", -remaining)
            self._deliver(0)
            return

        try:
            self._scheduler.start(
                phase_delay_ms(
                    session.reference_started_time,
                    session.duration_seconds,
                    adjusted_now_ms(now, offset),
                )
            )
        except SchedulingError:
            self.teardown()
            raise
        logger.info("Countdown started with %d s remaining", remaining)
        self._deliver(remaining)

    def _halt(self, lifecycle: int) -> None:
        if lifecycle == self._lifecycle:
            self._scheduler.cancel()

    def _read_offset(self) -> int:
        return int(self._clock_offset_provider())

    # -- ticks -----------------------------------------------------------------

    def _on_scheduler_tick(self) -> None:
        if self.state is not EngineState.ACTIVE:
            raise StaleCallbackError(f"tick delivered while {self.state.value}")

        previous = self._countdown.remaining_seconds
        offset = self._read_offset()
        if offset == self._offset_ms:
            self._deliver(previous - 1)
            return

        # Clock resync: recompute, but never count back up or skip expiry.
        session = self._session
        now = _now_ms()
        recomputed = compute_remaining(
            session.reference_started_time, session.duration_seconds, now, offset
        )
        remaining = max(0, min(previous - 1, recomputed))
        logger.warning(
            "Clock offset moved from %d ms to %d ms; remaining time resynced from %d s to %d s",
            self._offset_ms,
            offset,
            previous,
            remaining,
        )
        self._offset_ms = offset
        if remaining > 0:
            try:
                self._scheduler.start(
                    phase_delay_ms(
                        session.reference_started_time,
                        session.duration_seconds,
                        adjusted_now_ms(now, offset),
                    )
                )
            except SchedulingError as exc:
                self._on_scheduling_error(exc)
                return
        self._deliver(remaining)

    def _deliver(self, remaining: int) -> None:
        """Record *remaining* and run alert, expiry and tick callbacks.

        Each callback may tear the engine down; later steps are skipped
        once the lifecycle has changed.
        """
        lifecycle = self._lifecycle
        countdown = self._countdown
        countdown.remaining_seconds = remaining

        if self._display_alerts:
            fired = should_fire(remaining, self._thresholds, countdown.last_fired_threshold_seconds)
            if fired is not None:
                countdown.last_fired_threshold_seconds = fired
                logger.info("Alert threshold reached: %d minute(s) remaining", fired // 60)
                self._call_sink("on_alert", self._on_alert, fired // 60)
                if lifecycle != self._lifecycle:
                    return

        self._expiry.observe(remaining)
        if lifecycle != self._lifecycle:
            return

        logger.debug("Tick: %d s remaining", remaining)
        self._call_sink("on_tick", self._on_tick, remaining)

    def _call_sink(self, name: str, callback: Callable[..., None], *args: int) -> None:
        """Invoke a caller-supplied callback; its failure never stops the countdown."""
        try:
            callback(*args)
        except Exception:
            logger.exception("%s callback failed", name)

    def _on_scheduling_error(self, exc: SchedulingError) -> None:
        logger.error("Countdown halted: %s", exc)
        on_error = self._on_error
        self.teardown()
        if on_error is None:
            raise exc
        on_error(exc)
