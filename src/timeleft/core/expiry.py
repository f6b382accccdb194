"""One-shot expiry detection."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable

logger = logging.getLogger(__name__)


class ExpiryState(Enum):
    """States of the expiry state machine.  EXPIRED is terminal."""

    ACTIVE = "active"
    EXPIRED = "expired"


class ExpiryNotifier:
    """Fires *on_expire* the first time remaining time is observed at zero.

    One instance covers exactly one countdown lifetime.  After firing it
    calls *halt* so the scheduler stops delivering ticks; every later
    observation, including a duplicate zero, is ignored.
    """

    def __init__(self, on_expire: Callable[[], None], halt: Callable[[], None]) -> None:
        self._on_expire = on_expire
        self._halt = halt
        self._state: ExpiryState = ExpiryState.ACTIVE

    @property
    def state(self) -> ExpiryState:
        return self._state

    def observe(self, remaining_seconds: int) -> bool:
        """Feed one remaining-time value; return ``True`` if it caused expiry."""
        if self._state is ExpiryState.EXPIRED or remaining_seconds != 0:
            return False

        self._state = ExpiryState.EXPIRED
        logger.info("Countdown expired")
        try:
            self._on_expire()
        finally:
            self._halt()
        return True
