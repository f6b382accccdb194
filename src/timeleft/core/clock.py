"""Clock offset bookkeeping against a reference (server) clock."""

from __future__ import annotations

import logging
import time

logger = logging.getLogger(__name__)


def _local_time_ms() -> int:
    return int(time.time() * 1000)


class ClockSync:
    """Holds the best-known offset between the local and the reference clock.

    ``local time + offset ≈ reference time``.  Instances are callable and
    return the current offset, so one can be handed straight to
    :meth:`CountdownEngine.initialize` as the offset provider.
    """

    def __init__(self, offset_ms: int = 0) -> None:
        self._offset_ms: int = int(offset_ms)

    def __call__(self) -> int:
        return self._offset_ms

    @property
    def offset_ms(self) -> int:
        """Return the current offset in milliseconds."""
        return self._offset_ms

    def update(self, offset_ms: int) -> None:
        """Replace the offset with one computed elsewhere."""
        offset_ms = int(offset_ms)
        if offset_ms != self._offset_ms:
            logger.debug("Clock offset changed from %d ms to %d ms", self._offset_ms, offset_ms)
        self._offset_ms = offset_ms

    def sync(self, server_time_ms: int, local_time_ms: int | None = None) -> int:
        """Set the offset from a reference timestamp read at *local_time_ms*.

        When *local_time_ms* is omitted the current wall-clock time is used.
        Returns the new offset.
        """
        if local_time_ms is None:
            local_time_ms = _local_time_ms()
        self.update(server_time_ms - local_time_ms)
        return self._offset_ms

    def sync_round_trip(self, sent_ms: int, server_time_ms: int, received_ms: int) -> int:
        """Set the offset from a request/response exchange.

        The server timestamp is assumed to have been taken half way through
        the round trip.  Returns the new offset.
        """
        midpoint = sent_ms + (received_ms - sent_ms) // 2
        return self.sync(server_time_ms, midpoint)
