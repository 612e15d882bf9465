"""
Tama Learn - Owner Actions

Each action is a reducer: it takes the current snapshot and returns the next
one. A failed precondition (dead, asleep, too tired) is a silent no-op and
hands back the very same object.
"""

from __future__ import annotations

import logging
import random
from dataclasses import replace
from datetime import datetime
from typing import Optional, Sequence

from .evolution import abilities_for, random_personality
from .knowledge import STANDARD_GAINS, ingest, make_item
from .models import (
    Activity,
    AIProvider,
    EvolutionBranch,
    EvolutionStage,
    KnowledgeSource,
    Mood,
    PetState,
)
from .mood import classify
from .pipeline import commit, modifiers_for, settle
from .utils import SLEEP_DURATION_S, TRAIT_THRESHOLD

logger = logging.getLogger(__name__)


def feed(state: PetState, now: datetime) -> PetState:
    """Feed the pet: hunger -30, happiness +10, discipline +0.5."""
    if not state.is_alive:
        return state
    stats = state.stats.adjust(hunger=-30, happiness=10)
    personality = state.personality.adjust(discipline=0.5)
    return commit(state, Activity.FEED, stats, now, personality=personality)


def play(state: PetState, now: datetime) -> PetState:
    """
    Play with the pet.

    Costs energy (base 15, discounted by personality and abilities) and is
    skipped when the pet cannot afford it.

    Args:
        state: Current snapshot
        now: Current time

    Returns:
        Next snapshot
    """
    if not state.is_alive:
        return state
    cost = modifiers_for(state).play_cost
    if state.stats.energy < cost:
        logger.debug("play skipped: energy %.1f < cost %d", state.stats.energy, cost)
        return state

    ability_bonus = sum(a.happiness_bonus or 0 for a in abilities_for(state.branch, state.stage))
    friendliness_bonus = 3 if state.personality.friendliness >= TRAIT_THRESHOLD else 0
    stats = state.stats.adjust(
        happiness=20 + ability_bonus + friendliness_bonus,
        energy=-cost,
        hunger=10,
    )
    personality = state.personality.adjust(playfulness=1, friendliness=0.5)
    return commit(state, Activity.PLAY, stats, now, personality=personality)


def clean(state: PetState, now: datetime) -> PetState:
    """Bathe the pet: cleanliness +50, happiness +5."""
    if not state.is_alive:
        return state
    stats = state.stats.adjust(cleanliness=50, happiness=5)
    return commit(state, Activity.CLEAN, stats, now)


def sleep(state: PetState, now: datetime) -> PetState:
    """
    Put the pet to bed. Vitals are untouched until it wakes.

    The caller is responsible for scheduling ``natural_wake``.
    """
    if not state.is_alive or state.sleeping:
        return state
    slept = commit(state, Activity.SLEEP, state.stats, now, mood=Mood.SLEEPING)
    return replace(slept, sleep_left_s=SLEEP_DURATION_S)


def natural_wake(state: PetState, now: datetime) -> PetState:
    """A full night's sleep: energy to 100, happiness +10. Not an owner action."""
    if not state.is_alive or not state.sleeping:
        return state
    stats = replace(state.stats, energy=100).adjust(happiness=10)
    logger.info("%s woke up rested", state.name or "pet")
    return replace(settle(state, stats, now, mood=classify(stats)), sleep_left_s=None)


def wake(state: PetState, now: datetime) -> PetState:
    """Wake the pet early: energy +30, happiness -5 for the grumpiness."""
    if not state.is_alive or not state.sleeping:
        return state
    stats = state.stats.adjust(energy=30, happiness=-5)
    return replace(commit(state, Activity.WAKE, stats, now, mood=classify(stats)), sleep_left_s=None)


def give_medicine(state: PetState, now: datetime) -> PetState:
    """Medicine: health +40, happiness -10. Only when health is 80 or less."""
    if not state.is_alive or state.stats.health > 80:
        return state
    stats = state.stats.adjust(health=40, happiness=-10)
    return commit(state, Activity.MEDICINE, stats, now)


def train(state: PetState, now: datetime) -> PetState:
    """
    Train the pet.

    Costs energy (base 10, discounted) and builds intelligence (1.5 plus any
    ability training bonus) and discipline.

    Args:
        state: Current snapshot
        now: Current time

    Returns:
        Next snapshot
    """
    if not state.is_alive:
        return state
    cost = modifiers_for(state).training_cost
    if state.stats.energy < cost:
        logger.debug("train skipped: energy %.1f < cost %d", state.stats.energy, cost)
        return state

    training_bonus = sum(a.training_bonus or 0 for a in abilities_for(state.branch, state.stage))
    stats = state.stats.adjust(energy=-cost, hunger=5)
    personality = state.personality.adjust(intelligence=1.5 + training_bonus, discipline=1)
    return commit(state, Activity.TRAIN, stats, now, personality=personality)


def clean_environment(state: PetState, now: datetime) -> PetState:
    """Tidy the house: environment cleanliness +30, happiness +5."""
    if not state.is_alive:
        return state
    stats = state.stats.adjust(happiness=5)
    environment = state.environment.adjust(cleanliness=30)
    return commit(state, Activity.CLEAN_ENVIRONMENT, stats, now, environment=environment)


def feed_knowledge(
    state: PetState,
    title: str,
    content: str,
    now: datetime,
    source: KnowledgeSource = KnowledgeSource.MANUAL,
    category: Optional[str] = None,
    tags: Sequence[str] = (),
) -> PetState:
    """
    Feed a piece of knowledge typed in by the owner.

    Args:
        state: Current snapshot
        title: Item title
        content: Item text (cut to 5000 chars)
        now: Current time
        source: Where the item came from
        category: Optional category label
        tags: Optional tags

    Returns:
        Next snapshot
    """
    if not state.is_alive:
        return state
    item = make_item(title, content, source, now, category=category, tags=tags)
    return ingest(state, item, now, STANDARD_GAINS)


def name_pet(
    state: PetState,
    name: str,
    now: datetime,
    rng: Optional[random.Random] = None,
) -> PetState:
    """
    Name the pet. This is its birth: the clock restarts and a fresh
    personality is rolled.
    """
    return replace(
        state,
        name=name,
        birth_date=now,
        personality=random_personality(rng),
        stage=EvolutionStage.BABY,
        branch=EvolutionBranch.NONE,
    )


def set_ai_provider(state: PetState, provider: AIProvider, api_key: Optional[str] = None) -> PetState:
    """Choose the chat provider, storing the key under that provider."""
    config = replace(state.ai_config, provider=provider)
    if api_key and provider is AIProvider.CLAUDE:
        config = replace(config, claude_api_key=api_key)
    elif api_key and provider is AIProvider.OPENAI:
        config = replace(config, openai_api_key=api_key)
    return replace(state, ai_config=config)


def acknowledge_suggestion(state: PetState, suggestion_id: str) -> PetState:
    """Mark a chat suggestion as seen."""
    suggestions = tuple(
        replace(s, acknowledged=True) if s.id == suggestion_id else s for s in state.suggestions
    )
    if suggestions == state.suggestions:
        return state
    return replace(state, suggestions=suggestions)


def reset(now: datetime, name: str = "", rng: Optional[random.Random] = None) -> PetState:
    """A brand new pet; an empty name keeps the default personality."""
    state = PetState.create(now)
    if name:
        state = name_pet(state, name, now, rng)
    return state

