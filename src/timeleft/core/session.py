"""Session values describing one timed meeting or breakout room."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping


def _iso_to_ms(value: str) -> int:
    """Convert an ISO-8601 timestamp to epoch milliseconds.

    Naive timestamps are read as UTC; a trailing ``Z`` is accepted.
    """
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


@dataclass(frozen=True)
class Session:
    """Reference start time and duration of one countdown.

    Immutable: a changed duration or start time is a new ``Session`` and
    re-initializes the engine.
    """

    reference_started_time: int
    duration_seconds: int
    is_breakout: bool = False

    @classmethod
    def from_breakout_room(cls, row: Mapping[str, Any] | None) -> Session | None:
        """Build a session from an upstream breakout room row.

        The row carries ``durationInSeconds`` and an ISO-8601 ``startedAt``.
        Returns ``None`` while the row has not arrived yet or the room has
        not started (``startedAt`` is null).
        """
        if row is None:
            return None
        started_at = row.get("startedAt")
        if not started_at:
            return None
        return cls(
            reference_started_time=_iso_to_ms(started_at),
            duration_seconds=row.get("durationInSeconds") or 0,
            is_breakout=True,
        )

    @classmethod
    def from_meeting(cls, row: Mapping[str, Any] | None) -> Session | None:
        """Build a session from an upstream meeting row.

        Uses ``createdTime`` (epoch ms) as the reference start.  Returns
        ``None`` while the meeting is still loading.
        """
        if row is None:
            return None
        return cls(
            reference_started_time=row.get("createdTime") or 0,
            duration_seconds=row.get("durationInSeconds") or 0,
            is_breakout=bool(row.get("isBreakout")),
        )
