"""Settings loaded from ``<config_dir>/settings.json``."""

from __future__ import annotations

import fcntl
import json
import logging
from dataclasses import dataclass
from pathlib import Path

from timeleft.core.alerts import thresholds_to_seconds
from timeleft.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "timeleft"
_SETTINGS_FILE = "settings.json"

DEFAULT_ALERT_THRESHOLDS: tuple[int, ...] = (1, 5)


@dataclass(frozen=True)
class Settings:
    """Countdown configuration shared by every engine a process creates."""

    remaining_time_alert_thresholds: tuple[int, ...] = DEFAULT_ALERT_THRESHOLDS
    display_alerts: bool = True


def load_settings(config_dir: Path | None = None) -> Settings:
    """Load settings, falling back to defaults when the file does not exist.

    Recognized keys are ``remainingTimeAlertThresholdArray`` (list of
    minutes) and ``displayAlerts`` (bool).  Raises
    :class:`ConfigurationError` for unreadable JSON or invalid values.
    """
    path = (config_dir if config_dir is not None else DEFAULT_CONFIG_DIR) / _SETTINGS_FILE
    if not path.exists():
        logger.debug("No settings file at %s; using defaults", path)
        return Settings()

    with open(path) as f:
        fcntl.flock(f, fcntl.LOCK_SH)
        try:
            data = json.load(f)
        except json.JSONDecodeError as exc:
            raise ConfigurationError(f"{path} is not valid JSON: {exc}") from exc

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path} must contain a JSON object")

    thresholds = data.get("remainingTimeAlertThresholdArray", list(DEFAULT_ALERT_THRESHOLDS))
    if not isinstance(thresholds, list):
        raise ConfigurationError("remainingTimeAlertThresholdArray must be a list of minutes")
    thresholds_to_seconds(thresholds)

    display_alerts = data.get("displayAlerts", True)
    if not isinstance(display_alerts, bool):
        raise ConfigurationError("displayAlerts must be true or false")

    logger.debug("Loaded settings from %s", path)
    return Settings(
        remaining_time_alert_thresholds=tuple(thresholds),
        display_alerts=display_alerts,
    )
