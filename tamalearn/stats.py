"""
Tama Learn - Stats Engine

Time-based decay and regeneration of the five vitals.
"""

from __future__ import annotations

from .models import PetStats
from .modifiers import StatModifiers
from .utils import DECAY_RATE, HEALTH_DECAY_PER_S, HEALTH_REGEN_SCALE


def decay(
    stats: PetStats,
    seconds: float,
    modifiers: StatModifiers,
    health_regen: float = 0.0,
    sleeping: bool = False,
    alive: bool = True,
) -> PetStats:
    """
    Apply elapsed time to the vitals.

    Hunger rises while happiness, energy and cleanliness fall, each scaled by
    its modifier. Health only drops while the pet is starving, filthy or
    miserable, and regenerates when an ability grants it.

    Args:
        stats: Current vitals
        seconds: Elapsed simulated seconds
        modifiers: Decay multipliers for this snapshot
        health_regen: Summed ability health regeneration bonus
        sleeping: Sleeping pets do not decay
        alive: Dead pets do not decay

    Returns:
        Updated vitals (the same object when nothing applies)
    """
    if sleeping or not alive or seconds <= 0:
        return stats

    after = PetStats(
        hunger=stats.hunger + DECAY_RATE["hunger"] * seconds * modifiers.hunger_decay_rate,
        happiness=stats.happiness - DECAY_RATE["happiness"] * seconds * modifiers.happiness_decay_rate,
        energy=stats.energy - DECAY_RATE["energy"] * seconds * modifiers.energy_decay_rate,
        health=stats.health,
        cleanliness=stats.cleanliness - DECAY_RATE["cleanliness"] * seconds * modifiers.cleanliness_decay_rate,
    )

    if after.hunger > 90 or after.cleanliness < 20 or after.happiness < 20:
        after = after.adjust(health=-HEALTH_DECAY_PER_S * seconds)

    if health_regen > 0 and after.health < 100:
        after = after.adjust(health=health_regen * seconds * HEALTH_REGEN_SCALE)

    return after
