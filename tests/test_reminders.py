"""Tests for reminders and miss-you nudges."""

from dataclasses import replace
from datetime import timedelta

from tamalearn.models import Mood, Reminder, ReminderType
from tamalearn.reminders import (
    add_reminder,
    check_reminders,
    complete_reminder,
    dismiss_reminder,
    pending,
)


def minutes(n):
    return timedelta(minutes=n)


def test_add_reminder(pet, now):
    """Test a new reminder starts pending."""
    state = add_reminder(pet, ReminderType.CARE, "Brush", "Teeth time", now + minutes(5), now)
    (r,) = state.reminders
    assert r.title == "Brush"
    assert r.created_at == now
    assert not r.resolved
    assert pending(state) == [r]


def test_recurring_successor_does_not_drift(pet, now):
    """Test a 30-minute reminder due at T spawns one due at T+30 after a check at T+1."""
    state = add_reminder(pet, ReminderType.TASK, "Stretch", "", now, now, recurring=True, recurring_interval=30)
    original = state.reminders[0]

    state, due = check_reminders(state, now + minutes(1))
    assert due == [original]
    assert len(state.reminders) == 2
    successor = state.reminders[1]
    assert successor.scheduled_for == now + minutes(30)
    assert successor.recurring_interval == 30
    assert not successor.resolved
    assert not state.reminders[0].resolved

    state, _ = check_reminders(state, now + minutes(2))
    assert len(state.reminders) == 2


def test_future_reminder_is_not_due(pet, now):
    """Test nothing is due before its time."""
    state = add_reminder(pet, ReminderType.TASK, "Later", "", now + minutes(10), now)
    after, due = check_reminders(state, now + minutes(5))
    assert due == []
    assert after is state


def test_resolved_reminders_are_not_due(pet, now):
    """Test completed reminders are never announced again."""
    state = add_reminder(pet, ReminderType.TASK, "Done", "", now, now)
    state = complete_reminder(state, state.reminders[0].id)
    _, due = check_reminders(state, now + minutes(1))
    assert due == []


def test_resolution_is_terminal(pet, now):
    """Test a completed reminder cannot also be dismissed."""
    state = add_reminder(pet, ReminderType.TASK, "x", "", now, now)
    rid = state.reminders[0].id
    done = complete_reminder(state, rid)
    assert done.reminders[0].completed
    assert dismiss_reminder(done, rid) is done
    assert complete_reminder(state, "missing") is state


def test_miss_you_after_thirty_minutes(pet, now):
    """Test one miss-you reminder per half hour of neglect."""
    state, due = check_reminders(pet, now + minutes(31))
    (miss,) = due
    assert miss.type is ReminderType.MISS_YOU
    assert miss in state.reminders

    state, due = check_reminders(state, now + minutes(35))
    assert due == [miss]  # still pending, but no second one
    assert len(state.reminders) == 1

    state = dismiss_reminder(state, miss.id)
    state, due = check_reminders(state, now + minutes(40))
    assert [r.type for r in due] == [ReminderType.MISS_YOU]
    assert len([r for r in state.reminders if r.type is ReminderType.MISS_YOU]) == 2


def test_no_miss_you_when_attended(pet, now):
    """Test a recent interaction means no miss-you."""
    state, due = check_reminders(pet, now + minutes(29))
    assert due == []
    assert state is pet


def test_dead_pet_misses_nobody(pet, now):
    """Test a dead pet raises no miss-you reminders."""
    dead = replace(pet, is_alive=False, mood=Mood.SAD)
    state, due = check_reminders(dead, now + minutes(60))
    assert due == []


def test_history_purge(pet, now):
    """Test old resolved reminders are purged but pending ones are kept."""
    old = now - timedelta(days=8)
    recent = now - timedelta(days=1)
    reminders = (
        Reminder(ReminderType.TASK, "old done", "", old, old, completed=True),
        Reminder(ReminderType.TASK, "old pending", "", now + minutes(1), old),
        Reminder(ReminderType.TASK, "recent dismissed", "", recent, recent, dismissed=True),
    )
    state, _ = check_reminders(replace(pet, reminders=reminders), now)
    assert [r.title for r in state.reminders] == ["old pending", "recent dismissed"]
