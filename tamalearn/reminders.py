"""
Tama Learn - Reminders

Owner reminders with optional recurrence, plus the pet's own "miss you"
nudges when it has been left alone too long.

A reminder is pending until it is completed or dismissed; both are terminal.
Recurrence never edits a reminder: when one comes due, a fresh successor is
scheduled one interval after the original slot.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime, timedelta
from typing import Optional

from .models import PetState, Reminder, ReminderType
from .utils import MISS_YOU_AFTER_S, REMINDER_HISTORY_S

logger = logging.getLogger(__name__)


def add_reminder(
    state: PetState,
    type: ReminderType,
    title: str,
    message: str,
    scheduled_for: datetime,
    now: datetime,
    recurring: bool = False,
    recurring_interval: Optional[int] = None,
) -> PetState:
    """
    Schedule a new pending reminder.

    Args:
        state: Current snapshot
        type: Reminder category
        title: Short title
        message: Body text
        scheduled_for: When it comes due
        now: Creation time
        recurring: Whether it repeats
        recurring_interval: Repeat interval in minutes

    Returns:
        Next snapshot
    """
    reminder = Reminder(
        type=type,
        title=title,
        message=message,
        scheduled_for=scheduled_for,
        created_at=now,
        recurring=recurring,
        recurring_interval=recurring_interval,
    )
    return replace(state, reminders=state.reminders + (reminder,))


def _resolve(state: PetState, reminder_id: str, **flags: bool) -> PetState:
    changed = False
    reminders = []
    for r in state.reminders:
        if r.id == reminder_id and not r.resolved:
            r = replace(r, **flags)
            changed = True
        reminders.append(r)
    if not changed:
        return state
    return replace(state, reminders=tuple(reminders))


def complete_reminder(state: PetState, reminder_id: str) -> PetState:
    """Mark a pending reminder done. Unknown or resolved ids are ignored."""
    return _resolve(state, reminder_id, completed=True)


def dismiss_reminder(state: PetState, reminder_id: str) -> PetState:
    """Dismiss a pending reminder. Unknown or resolved ids are ignored."""
    return _resolve(state, reminder_id, dismissed=True)


def pending(state: PetState) -> list[Reminder]:
    return [r for r in state.reminders if not r.resolved]


def _successor(reminder: Reminder, now: datetime) -> Reminder:
    return Reminder(
        type=reminder.type,
        title=reminder.title,
        message=reminder.message,
        scheduled_for=reminder.scheduled_for + timedelta(minutes=reminder.recurring_interval or 0),
        created_at=now,
        recurring=True,
        recurring_interval=reminder.recurring_interval,
    )


def _has_twin(reminders: list[Reminder], candidate: Reminder) -> bool:
    return any(
        r.type is candidate.type
        and r.title == candidate.title
        and r.scheduled_for == candidate.scheduled_for
        for r in reminders
    )


def check_reminders(state: PetState, now: datetime) -> tuple[PetState, list[Reminder]]:
    """
    Run one due check.

    Due reminders are returned for the host to announce; recurring ones get a
    successor. A "miss you" reminder is added when the owner has been away for
    30 minutes and none was raised in the last 30. Resolved reminders created
    more than 7 days ago are purged; pending ones are kept forever.

    Args:
        state: Current snapshot
        now: Current time

    Returns:
        Tuple of (next snapshot, reminders that are due)
    """
    reminders = list(state.reminders)
    due = [r for r in reminders if not r.resolved and r.scheduled_for <= now]

    for reminder in due:
        if reminder.recurring and reminder.recurring_interval:
            nxt = _successor(reminder, now)
            if not _has_twin(reminders, nxt):
                reminders.append(nxt)
                logger.debug("scheduled next %r for %s", nxt.title, nxt.scheduled_for.isoformat())

    away_s = (now - state.last_interaction).total_seconds()
    if state.is_alive and away_s >= MISS_YOU_AFTER_S:
        window = timedelta(seconds=MISS_YOU_AFTER_S)
        recent = any(
            r.type is ReminderType.MISS_YOU and not r.resolved and now - r.created_at < window
            for r in reminders
        )
        if not recent:
            miss_you = Reminder(
                type=ReminderType.MISS_YOU,
                title="I miss you!",
                message=f"{state.name or 'Your pet'} was feeling lonely",
                scheduled_for=now,
                created_at=now,
            )
            reminders.append(miss_you)
            due.append(miss_you)
            logger.info("%s misses you (%d minutes alone)", state.name or "pet", away_s // 60)

    cutoff = now - timedelta(seconds=REMINDER_HISTORY_S)
    kept = tuple(r for r in reminders if not r.resolved or r.created_at > cutoff)

    if kept == state.reminders:
        return state, due
    return replace(state, reminders=kept), due
