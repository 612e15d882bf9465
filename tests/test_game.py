"""Tests for the game host and live loop."""

import io
import urllib.error
from dataclasses import replace

import pytest

from tamalearn import actions
from tamalearn.game import Game, describe, handle_line, run
from tamalearn.models import (
    Activity,
    AIProvider,
    AISuggestion,
    Mood,
    ReminderType,
    SuggestedAction,
    SuggestionType,
)
from tamalearn.persistence import load_state
from tamalearn.worker import BackgroundWorker

from conftest import with_stats


PAGE = "<html><head><title>Bees</title></head><body><p>Bees dance.</p></body></html>"


@pytest.fixture
def game(pet, clock):
    return Game(pet, clock=clock)


def suggest(now, action):
    return AISuggestion(SuggestionType.ACTION, "Do it", "Please", action, now)


def test_natural_wake_after_eight_seconds(game):
    """Test a sleeping pet wakes by itself once the night is over."""
    assert game.sleep()
    assert game.wake_pending
    game.tick(7_000)
    assert game.state.sleeping
    game.tick(1_000)
    assert not game.state.sleeping
    assert game.state.stats.energy == 100
    assert not game.wake_pending


def test_early_wake_cancels_natural_wake(game):
    """Test waking early leaves no second wake behind."""
    game.sleep()
    assert game.wake()
    assert game.scheduler.pending == 0
    happiness = game.state.stats.happiness
    game.tick(10_000)
    assert game.state.stats.happiness < happiness


def test_one_wake_per_sleep(game):
    """Test sleeping again while asleep keeps a single wake task."""
    game.sleep()
    assert not game.sleep()
    assert game.scheduler.pending == 1


def test_loading_a_sleeping_pet_reschedules_wake(pet, now, clock):
    """Test the wake timer is restored for a pet saved while asleep."""
    game = Game(actions.sleep(pet, now), clock=clock)
    assert game.wake_pending
    game.tick(8_000)
    assert game.state.mood is not Mood.SLEEPING


def test_save_keeps_time_left_in_the_night(game, clock, save_path):
    """Test a save made mid-night records how much of the night is left."""
    game.sleep()
    game.tick(3_000)
    game.save(save_path)
    assert load_state(save_path).sleep_left_s == 5.0
    assert Game.load(save_path, clock=clock).wake_left == 5.0


def test_night_survives_reloads(game, clock, save_path):
    """Test a pet reopened every few seconds still wakes after one night."""
    game.sleep()
    game.save(save_path)
    for _ in range(4):
        clock.advance(5)
        game = Game.load(save_path, clock=clock)
        game.catch_up()
        game.save(save_path)
    assert not game.state.sleeping
    assert load_state(save_path).sleep_left_s is None


def test_wake_inside_a_tick_splits_it(game):
    """Test the awake part of a long tick still decays."""
    game.sleep()
    hunger = game.state.stats.hunger
    game.tick(20_000)
    assert not game.state.sleeping
    assert game.state.stats.hunger == pytest.approx(hunger + 0.05 * 12)


def test_tick_stamps_sleeping_pet(game, clock):
    """Test the host records the update time even while the pet sleeps."""
    game.sleep()
    clock.advance(3)
    game.tick(3_000)
    assert game.state.last_updated == clock()


def test_catch_up(game, clock):
    """Test wall time since the last update is replayed on load."""
    clock.advance(120)
    game.catch_up()
    assert game.state.stats.hunger == pytest.approx(56.0)
    assert game.state.last_updated == clock()


def test_catch_up_through_the_night(game, clock):
    """Test a long absence wakes a sleeping pet."""
    game.sleep()
    clock.advance(20)
    game.catch_up()
    assert not game.state.sleeping
    assert game.state.stats.energy == pytest.approx(100 - 0.02 * 12)


def test_death_is_announced(pet, clock):
    """Test the host reports when the pet dies."""
    game = Game(with_stats(pet, health=0.001, hunger=99), clock=clock)
    game.tick(1_000)
    assert not game.state.is_alive
    assert any("passed away" in m for m in game.pop_messages())
    assert not game.feed()


def test_execute_suggestion(game, now):
    """Test executing a suggestion acknowledges it and performs the action."""
    feed = suggest(now, SuggestedAction.FEED)
    game.state = replace(game.state, suggestions=(feed,))
    assert game.execute_suggestion(feed.id)
    assert game.state.suggestions[0].acknowledged
    assert game.state.stats.hunger == 20


def test_execute_sleep_suggestion_schedules_wake(game, now):
    """Test a sleep suggestion goes through the wake timer."""
    nap = suggest(now, SuggestedAction.SLEEP)
    game.state = replace(game.state, suggestions=(nap,))
    game.execute_suggestion(nap.id)
    assert game.state.sleeping
    assert game.wake_pending


def test_execute_none_only_acknowledges(game, now):
    """Test a suggestion with no action is just acknowledged."""
    idle = suggest(now, SuggestedAction.NONE)
    game.state = replace(game.state, suggestions=(idle,))
    assert game.execute_suggestion(idle.id)
    assert game.state.activity_logs == ()
    assert not game.execute_suggestion("missing")


def test_check_reminders_announces(game, now):
    """Test due reminders are logged for the owner."""
    game.add_reminder(ReminderType.CARE, "Walk", "Out we go", now)
    due = game.check_reminders()
    assert [r.title for r in due] == ["Walk"]
    assert "Reminder: Walk - Out we go" in game.pop_messages()


def test_save_and_load(game, save_path, clock):
    """Test the host saves and reopens the same pet."""
    game.feed()
    game.save(save_path)
    again = Game.load(save_path, clock=clock)
    assert again.state == game.state


def test_load_missing_save_hatches(tmp_path, clock):
    """Test a missing save starts a new pet."""
    game = Game.load(str(tmp_path / "none.json"), clock=clock)
    assert game.state.is_alive
    assert game.state.birth_date == clock()


def test_browse_in_background(pet, clock):
    """Test a fetched page is fed once the worker is done."""
    worker = BackgroundWorker()
    game = Game(pet, clock=clock, worker=worker, fetch=lambda url: PAGE)
    assert game.browse_in_background("https://example.com/bees")
    worker.join()
    game.tick(0)
    assert game.state.knowledge[0].title == "Bees"
    assert game.state.environment.knowledge_level == 10
    assert "Tama learned about Bees." in game.pop_messages()


def test_chat_in_background(pet, clock):
    """Test a background chat reply is recorded when it lands."""
    worker = BackgroundWorker()
    state = actions.set_ai_provider(pet, AIProvider.OPENAI, "sk-oai")
    transport = lambda url, headers, payload: {"choices": [{"message": {"content": "Buzz!"}}]}  # noqa: E731
    game = Game(state, clock=clock, worker=worker, transport=transport)
    assert game.chat_in_background("hello")
    worker.join()
    game.tick(0)
    assert game.state.conversations[0].ai_response == "Buzz!"
    assert "Tama: Buzz!" in game.pop_messages()


def test_background_failure_is_reported(pet, clock):
    """Test a failed background chat is logged, not raised."""
    worker = BackgroundWorker()
    state = actions.set_ai_provider(pet, AIProvider.CLAUDE, "sk-ant")

    def down(url, headers, payload):
        raise urllib.error.URLError("offline")

    game = Game(state, clock=clock, worker=worker, transport=down)
    game.chat_in_background("hello")
    worker.join()
    game.tick(0)
    assert game.state.conversations == ()
    assert any("chat request failed" in m for m in game.pop_messages())


def test_chat_without_provider(game):
    """Test chatting unconfigured just explains what to do."""
    assert game.chat("hi") == "Please configure an AI provider in settings first!"
    assert not game.chat_in_background("hi")


def test_handle_line(game):
    """Test live commands map to actions."""
    assert handle_line(game, "feed") is None
    assert game.state.activity_logs[0].action is Activity.FEED
    assert "Unknown command" in handle_line(game, "dance")
    assert "Tama" in handle_line(game, "status")


def test_describe(pet, now):
    """Test the status text names the pet and its stage."""
    text = describe(pet, now)
    assert text.startswith("Tama - baby, happy")
    assert "costs: play 15  train 10" in text


def test_run_live_loop(game, save_path):
    """Test the live loop executes commands and saves on exit."""
    out = []
    assert run(game, save_path, 6.0, out=out.append, stdin=io.StringIO("feed\nquit\n")) == 0
    saved = load_state(save_path)
    assert saved.activity_logs[0].action is Activity.FEED
