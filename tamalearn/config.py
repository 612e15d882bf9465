"""Settings loader.

Reads TAMALEARN_* environment variables on top of the defaults. Command-line
flags override whatever is returned here.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Mapping, Optional

from .models import AIProvider
from .utils import SAVE_PATH, clamp

logger = logging.getLogger(__name__)

MIN_SPEED = 0.5
MAX_SPEED = 50.0

DEFAULT_SETTINGS: dict[str, Any] = {
    "save_path": SAVE_PATH,
    "speed": 6.0,
    "ai_provider": AIProvider.NONE,
    "api_key": None,
    "log_level": "WARNING",
}


def clamp_speed(speed: float) -> float:
    """Game time multiplier, kept within [0.5, 50]."""
    return clamp(float(speed), MIN_SPEED, MAX_SPEED)


def load_settings(environ: Optional[Mapping[str, str]] = None) -> dict[str, Any]:
    """Load settings from the environment.

    Recognised variables: TAMALEARN_SAVE, TAMALEARN_SPEED,
    TAMALEARN_AI_PROVIDER, TAMALEARN_API_KEY, TAMALEARN_LOG_LEVEL.
    Values that do not parse are logged and skipped.

    Returns merged settings (environment overrides defaults).
    """
    env = os.environ if environ is None else environ
    settings = DEFAULT_SETTINGS.copy()

    if env.get("TAMALEARN_SAVE"):
        settings["save_path"] = os.path.expanduser(env["TAMALEARN_SAVE"])

    if env.get("TAMALEARN_SPEED"):
        try:
            settings["speed"] = clamp_speed(float(env["TAMALEARN_SPEED"]))
        except ValueError:
            logger.warning("ignoring TAMALEARN_SPEED=%r: not a number", env["TAMALEARN_SPEED"])

    if env.get("TAMALEARN_AI_PROVIDER"):
        try:
            settings["ai_provider"] = AIProvider(env["TAMALEARN_AI_PROVIDER"].strip().lower())
        except ValueError:
            logger.warning("ignoring TAMALEARN_AI_PROVIDER=%r", env["TAMALEARN_AI_PROVIDER"])

    if env.get("TAMALEARN_API_KEY"):
        settings["api_key"] = env["TAMALEARN_API_KEY"]

    if env.get("TAMALEARN_LOG_LEVEL"):
        settings["log_level"] = env["TAMALEARN_LOG_LEVEL"].strip().upper()

    return settings
