"""
Tama Learn - Mood and Location

Maps current vitals to a discrete mood, and mood plus vitals to the room the
pet hangs out in.
"""

from __future__ import annotations

from .models import Location, Mood, PetStats


def classify(stats: PetStats, alive: bool = True) -> Mood:
    """
    Derive the mood from the vitals. First match wins.

    ``sleeping`` is never produced here; only the sleep action sets it.

    Args:
        stats: Current vitals
        alive: Whether the pet is alive

    Returns:
        Mood for these vitals
    """
    if not alive:
        return Mood.SAD
    if stats.energy < 20:
        return Mood.TIRED
    if stats.health < 30:
        return Mood.SICK
    if stats.hunger > 80:
        return Mood.HUNGRY
    if stats.cleanliness < 30:
        return Mood.DIRTY
    if stats.happiness < 30:
        return Mood.SAD
    return Mood.HAPPY


def infer_location(mood: Mood, stats: PetStats) -> Location:
    """Pick the room that suits the pet's mood and vitals."""
    if mood in (Mood.SLEEPING, Mood.TIRED, Mood.SICK):
        return Location.BEDROOM
    if stats.hunger > 70:
        return Location.STUDY  # hungry for knowledge
    if stats.happiness < 40:
        return Location.BEDROOM
    if stats.energy > 70 and stats.happiness > 60:
        return Location.PLAY_AREA
    if stats.happiness > 70:
        return Location.LIVING_ROOM
    return Location.STUDY
