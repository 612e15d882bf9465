"""
Tama Learn - Stat Modifiers

Derives decay-rate multipliers and action costs from personality and the
currently unlocked abilities.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .models import EvolutionAbility, PersonalityTraits
from .utils import PLAY_ENERGY_COST, TRAIN_ENERGY_COST, TRAIT_THRESHOLD, round_cost


@dataclass(frozen=True)
class StatModifiers:
    hunger_decay_rate: float = 1.0
    happiness_decay_rate: float = 1.0
    energy_decay_rate: float = 1.0
    cleanliness_decay_rate: float = 1.0
    training_energy_cost: float = TRAIN_ENERGY_COST
    play_energy_cost: float = PLAY_ENERGY_COST

    @property
    def play_cost(self) -> int:
        """Energy actually spent by one play session."""
        return round_cost(self.play_energy_cost)

    @property
    def training_cost(self) -> int:
        """Energy actually spent by one training session."""
        return round_cost(self.training_energy_cost)


def compute_modifiers(
    personality: PersonalityTraits, abilities: Iterable[EvolutionAbility] = ()
) -> StatModifiers:
    """
    Combine personality discounts and ability multipliers.

    Everything composes by multiplication, so ability order does not matter.
    Costs are left fractional here and rounded only when spent.

    Args:
        personality: Current personality traits
        abilities: Abilities unlocked for the current branch and stage

    Returns:
        StatModifiers for this snapshot
    """
    hunger = happiness = energy = cleanliness = 1.0
    training_cost = float(TRAIN_ENERGY_COST)
    play_cost = float(PLAY_ENERGY_COST)

    if personality.intelligence >= TRAIT_THRESHOLD:
        hunger *= 0.85
    if personality.playfulness >= TRAIT_THRESHOLD:
        happiness *= 0.75
        play_cost -= 3
    if personality.discipline >= TRAIT_THRESHOLD:
        hunger *= 0.85
        happiness *= 0.85
        energy *= 0.85
        cleanliness *= 0.85
    # friendliness pays out in play happiness, not here

    for ability in abilities:
        if ability.stat_decay_modifier:
            hunger *= ability.stat_decay_modifier
            happiness *= ability.stat_decay_modifier
            energy *= ability.stat_decay_modifier
            cleanliness *= ability.stat_decay_modifier
        if ability.energy_cost_modifier:
            training_cost *= ability.energy_cost_modifier
            play_cost *= ability.energy_cost_modifier

    return StatModifiers(
        hunger_decay_rate=hunger,
        happiness_decay_rate=happiness,
        energy_decay_rate=energy,
        cleanliness_decay_rate=cleanliness,
        training_energy_cost=training_cost,
        play_energy_cost=play_cost,
    )
