"""Remaining-time arithmetic.

Both helpers are pure: they read no clock and validate nothing.  Callers
supply the current wall-clock time and the clock offset explicitly.
"""

import math


def adjusted_now_ms(now_ms: float, offset_ms: float) -> float:
    """Return *now_ms* corrected onto the reference clock."""
    return now_ms + offset_ms


def compute_remaining(
    reference_started_time: float,
    duration_seconds: float,
    now_ms: float,
    offset_ms: float,
) -> int:
    """Return the whole seconds left until ``reference_started_time + duration``.

    The result is floored, so a countdown with 59.4 s left reports 59.  It is
    negative once the end time has passed.  A zero duration still yields a
    number; deciding that it means "no countdown" is up to the caller.
    """
    ends_at = reference_started_time + duration_seconds * 1000
    return math.floor((ends_at - adjusted_now_ms(now_ms, offset_ms)) / 1000)
