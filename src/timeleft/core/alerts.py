"""Threshold alert gate.

Thresholds are configured in minutes and matched in seconds.  Matching is by
exact equality: a threshold fires only on the tick whose remaining time equals
it.  A threshold second that is skipped (delayed loop, clock resync) is not
fired late.
"""

from __future__ import annotations

from typing import AbstractSet, Iterable

from timeleft.core.errors import ConfigurationError


def thresholds_to_seconds(thresholds_minutes: Iterable[int]) -> frozenset[int]:
    """Validate minute thresholds and convert them to a set of seconds."""
    seconds = set()
    for minutes in thresholds_minutes:
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            raise ConfigurationError(
                f"alert thresholds must be integers, got {type(minutes).__name__}"
            )
        if minutes <= 0:
            raise ConfigurationError(f"alert thresholds must be positive, got {minutes}")
        seconds.add(minutes * 60)
    return frozenset(seconds)


def should_fire(
    remaining_seconds: int,
    thresholds_seconds: AbstractSet[int],
    last_fired: int | None,
) -> int | None:
    """Return the threshold to fire for *remaining_seconds*, or ``None``.

    Stateless: the caller records the returned value as the new
    *last_fired*, which keeps a repeated delivery of the same second from
    alerting twice.
    """
    if remaining_seconds not in thresholds_seconds:
        return None
    if remaining_seconds == last_fired:
        return None
    return remaining_seconds


def alert_message(minutes: int, is_breakout: bool) -> str:
    """Return the alert text for *minutes* remaining."""
    subject = "Breakout room" if is_breakout else "Meeting"
    unit = "minute" if minutes == 1 else "minutes"
    return f"{subject} ends in {minutes} {unit}"
