"""
Tama Learn - Care Quality

A smoothed record of how well the owner has kept the pet, fed back into
evolution speed.
"""

from __future__ import annotations

from dataclasses import replace

from .models import CareQuality, PetStats
from .utils import CARE_ALPHA


def update_care(care: CareQuality, stats: PetStats, alpha: float = CARE_ALPHA) -> CareQuality:
    """
    Fold the current vitals into the moving averages.

    Args:
        care: Current care quality
        stats: Vitals after the latest change
        alpha: Smoothing factor

    Returns:
        Updated care quality (interaction count untouched)
    """
    keep = 1.0 - alpha
    return replace(
        care,
        feeding_score=care.feeding_score * keep + (100 - stats.hunger) * alpha,
        happiness_score=care.happiness_score * keep + stats.happiness * alpha,
        health_score=care.health_score * keep + stats.health * alpha,
    )


def record_interaction(care: CareQuality) -> CareQuality:
    """Count one discrete owner action."""
    return replace(care, interaction_count=care.interaction_count + 1)
