"""
Tama Learn - Update Pipeline

The time tick and the shared tail every owner action runs through:
stats -> mood/location -> care quality -> evolution, producing one new
snapshot per call.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from .care import record_interaction, update_care
from .evolution import abilities_for, evolve
from .models import Activity, ActivityLog, Mood, PetState, PetStats
from .modifiers import StatModifiers, compute_modifiers
from .mood import classify, infer_location
from .stats import decay

logger = logging.getLogger(__name__)


def modifiers_for(state: PetState) -> StatModifiers:
    """Modifiers for the snapshot's personality and unlocked abilities."""
    return compute_modifiers(state.personality, abilities_for(state.branch, state.stage))


def settle(
    state: PetState,
    stats: PetStats,
    now: datetime,
    mood: Optional[Mood] = None,
    **changes,
) -> PetState:
    """
    Install new vitals and re-derive everything that depends on them.

    A sleeping pet stays asleep unless a mood is forced (the wake paths do
    that). Death is checked right after the vitals land.

    Args:
        state: Snapshot before the change
        stats: New vitals
        now: Current time
        mood: Mood to force instead of deriving one
        **changes: Other PetState fields to replace in the same step

    Returns:
        Next snapshot
    """
    alive = state.is_alive and stats.health > 0
    if not alive:
        mood = Mood.SAD
    elif mood is None:
        mood = Mood.SLEEPING if state.sleeping else classify(stats)
    location = infer_location(mood, stats) if alive else state.location
    care = update_care(changes.pop("care", state.care), stats)

    if state.is_alive and not alive:
        logger.info("%s has died", state.name or "pet")

    nxt = replace(
        state,
        stats=stats,
        is_alive=alive,
        mood=mood,
        location=location,
        care=care,
        **changes,
    )
    return evolve(nxt, now)


def tick(state: PetState, elapsed_ms: float, now: datetime) -> PetState:
    """
    Apply elapsed time to the pet.

    Nothing happens while the pet is asleep or dead.

    Args:
        state: Current snapshot
        elapsed_ms: Simulated milliseconds since the previous tick
        now: Current time (drives age and evolution)

    Returns:
        Next snapshot (the same object when short-circuited)
    """
    if not state.is_alive or state.sleeping:
        return state

    abilities = abilities_for(state.branch, state.stage)
    regen = sum(a.health_regen_bonus or 0.0 for a in abilities)
    stats = decay(
        state.stats,
        elapsed_ms / 1000.0,
        compute_modifiers(state.personality, abilities),
        health_regen=regen,
    )
    return settle(state, stats, now, last_updated=now)


def commit(
    state: PetState,
    activity: Activity,
    stats: PetStats,
    now: datetime,
    mood: Optional[Mood] = None,
    **changes,
) -> PetState:
    """
    Finish an owner action: log it, count it, then settle.

    Args:
        state: Snapshot before the action
        activity: What the owner did
        stats: Vitals after the action
        now: Current time
        mood: Mood to force (sleep and wake)
        **changes: Other PetState fields the action replaces

    Returns:
        Next snapshot
    """
    entry = ActivityLog(action=activity, timestamp=now, stats_before=state.stats, stats_after=stats)
    return settle(
        state,
        stats,
        now,
        mood=mood,
        care=record_interaction(state.care),
        activity_logs=(entry,) + state.activity_logs,
        last_interaction=now,
        **changes,
    )
