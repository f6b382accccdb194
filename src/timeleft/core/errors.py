"""Exceptions raised by the countdown engine."""


class CountdownError(Exception):
    """Base class for every countdown engine error."""


class ConfigurationError(CountdownError, ValueError):
    """Raised when a session duration, threshold set or settings file is invalid."""


class SchedulingError(CountdownError, RuntimeError):
    """Raised when the event loop cannot schedule a tick.

    Fatal for the engine instance that hit it; never retried internally.
    """


class StaleCallbackError(CountdownError):
    """Raised when a tick arrives after its timer was cleared or superseded.

    Absorbed by the scheduler: a late tick is an expected race, not a fault.
    """


class InvalidStateError(CountdownError):
    """Raised when an operation is attempted from a state that does not allow it."""
