"""
Tama Learn - Utilities and Constants

This module contains utility functions and constants used throughout the engine.
"""

import math
import os
import uuid
from datetime import datetime, timezone

# Save file location
SAVE_PATH = os.path.join(os.path.expanduser("~"), ".tamalearn_state.json")

# Fixed identifier the whole pet document is stored under
STORAGE_KEY = "tamagotchi-storage"
STORAGE_VERSION = 1

# Per-second base rates (health never decays directly with time)
DECAY_RATE = {
    "hunger": 0.05,       # rises
    "happiness": 0.03,    # falls
    "energy": 0.02,       # falls
    "cleanliness": 0.04,  # falls
}
HEALTH_DECAY_PER_S = 0.01
HEALTH_REGEN_SCALE = 0.1

# Base action costs before modifiers
TRAIN_ENERGY_COST = 10
PLAY_ENERGY_COST = 15

# Personality trait considered "high"
TRAIT_THRESHOLD = 70
# Minimum winning trait value to pick an evolution branch
BRANCH_THRESHOLD = 60

# Evolution thresholds in (care-adjusted) days
STAGE_DAYS = {
    "baby": 0,
    "child": 2,
    "teen": 5,
    "adult": 10,
}
GOOD_CARE_AVERAGE = 50
POOR_CARE_FACTOR = 0.7

# Exponential moving average smoothing for care quality
CARE_ALPHA = 0.1

# Sleep episode length in simulated seconds ("8 hours")
SLEEP_DURATION_S = 8.0

# Knowledge ingestion limits
MAX_FILE_CHARS = 5000
MAX_PAGE_CHARS = 3000
MAX_PROMPT_KNOWLEDGE = 10
MAX_PROMPT_HISTORY = 5
MAX_VISITORS = 10
MAX_CARD_GIFTS = 3

# Reminder timing
MISS_YOU_AFTER_S = 30 * 60
REMINDER_HISTORY_S = 7 * 24 * 60 * 60

SECONDS_PER_DAY = 24 * 60 * 60


def clamp(value: float, lo: float, hi: float) -> float:
    """Clamp a value between lo and hi bounds."""
    return lo if value < lo else hi if value > hi else value


def round_cost(value: float) -> int:
    """Round an energy cost half-up to a whole number of points."""
    return int(math.floor(value + 0.5))


def utc_now() -> datetime:
    """Get current UTC timestamp."""
    return datetime.now(timezone.utc)


def new_id() -> str:
    """Generate a fresh unique record id."""
    return str(uuid.uuid4())


def fmt_age(seconds: int) -> str:
    """Format seconds into a human-readable age string (e.g., '5d 12h' or '3h 45m')."""
    if seconds < 0:
        seconds = 0
    minutes, s = divmod(seconds, 60)
    hours, m = divmod(minutes, 60)
    days, h = divmod(hours, 24)
    if days > 0:
        return f"{days}d {h:02d}h"
    if hours > 0:
        return f"{hours}h {m:02d}m"
    return f"{m}m {s:02d}s"
