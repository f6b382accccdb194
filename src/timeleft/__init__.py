"""timeleft: remaining-time countdown and alert engine."""

__version__ = "0.1.0"
