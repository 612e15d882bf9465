"""
Tama Learn - Game Host

This module contains the Game controller that ties everything together and
the live loop that drives it in real time.

The controller is the only place the snapshot is swapped: every tick and
owner action builds a whole new PetState and installs it in one assignment.
"""

from __future__ import annotations

import logging
import queue
import random
import sys
import threading
import time
from dataclasses import replace
from datetime import datetime
from typing import Any, Callable, Optional, Sequence, TextIO

from . import actions, ai, knowledge, reminders, social
from .errors import TamaError
from .evolution import abilities_for
from .knowledge import BROWSE_GAINS, FetchFn
from .models import AIProvider, EvolutionBranch, PetState, Reminder, ReminderType, SuggestedAction
from .persistence import load_state, save_state
from .pipeline import modifiers_for, tick as run_tick
from .scheduler import Scheduler, TaskHandle
from .utils import SLEEP_DURATION_S, fmt_age, utc_now
from .worker import BackgroundWorker, JobResult

logger = logging.getLogger(__name__)

# Offline time is replayed in slices so health checks see the pet decline gradually
CATCH_UP_STEP_S = 60.0
REMINDER_CHECK_S = 60.0
AUTOSAVE_S = 12.0
LOOP_SLEEP_S = 0.1


class Game:
    """Owns the pet snapshot, the wake timer and the background worker."""

    def __init__(
        self,
        state: Optional[PetState] = None,
        clock: Callable[[], datetime] = utc_now,
        rng: Optional[random.Random] = None,
        worker: Optional[BackgroundWorker] = None,
        fetch: Optional[FetchFn] = None,
        transport: Optional[ai.Transport] = None,
    ) -> None:
        self.clock = clock
        self.rng = rng or random.Random()
        self.scheduler = Scheduler()
        self.worker = worker
        self.fetch = fetch
        self.transport = transport
        self.messages: list[str] = []
        self._wake: Optional[TaskHandle] = None
        self.state = state if state is not None else actions.reset(clock(), rng=self.rng)
        if self.state.is_alive and self.state.sleeping:
            # Resume the night where the save left it
            left = self.state.sleep_left_s
            self._schedule_wake(SLEEP_DURATION_S if left is None else left)

    @classmethod
    def load(cls, path: str, **kwargs: Any) -> Game:
        """Open the save at ``path``; a missing file hatches a new pet."""
        return cls(load_state(path), **kwargs)

    def save(self, path: str) -> None:
        left = self.wake_left
        if left is not None and left != self.state.sleep_left_s:
            self.state = replace(self.state, sleep_left_s=left)
        save_state(self.state, path)

    def log(self, msg: str) -> None:
        self.messages.append(msg)

    def pop_messages(self) -> list[str]:
        out, self.messages = self.messages, []
        return out

    @property
    def pet_name(self) -> str:
        return self.state.name or "Your pet"

    @property
    def wake_pending(self) -> bool:
        return self._wake is not None and self.scheduler.is_pending(self._wake)

    @property
    def wake_left(self) -> Optional[float]:
        """Game seconds until the natural wake, or None when none is pending."""
        return None if self._wake is None else self.scheduler.remaining(self._wake)

    # -- snapshot plumbing -------------------------------------------------

    def _apply(self, nxt: PetState) -> bool:
        """Install the next snapshot and announce what changed."""
        prev = self.state
        if nxt is prev:
            return False
        self.state = nxt
        if nxt.stage is not prev.stage:
            self.log(f"{self.pet_name} evolved into a {nxt.stage.value}!")
        if nxt.branch is not prev.branch:
            self.log(f"{self.pet_name} took the {nxt.branch.value} path.")
        if prev.is_alive and not nxt.is_alive:
            self._cancel_wake()
            self.log(f"{self.pet_name} has passed away.")
        elif nxt.mood is not prev.mood and nxt.is_alive:
            self.log(f"{self.pet_name} is {nxt.mood.value}.")
        return True

    def _schedule_wake(self, delay_s: float = SLEEP_DURATION_S) -> None:
        self._cancel_wake()
        self._wake = self.scheduler.schedule(delay_s, self._natural_wake)

    def _cancel_wake(self) -> None:
        if self._wake is not None:
            self.scheduler.cancel(self._wake)
            self._wake = None

    def _natural_wake(self) -> None:
        self._wake = None
        self._apply(actions.natural_wake(self.state, self.clock()))

    # -- time ----------------------------------------------------------------

    def tick(self, elapsed_ms: float) -> PetState:
        """
        Advance the world by ``elapsed_ms`` of game time.

        Runs the tick pipeline and the scheduler (natural wake), then applies
        any finished background jobs. A wake that falls inside the slice splits
        it, so the awake remainder still decays.

        Args:
            elapsed_ms: Game milliseconds since the previous tick

        Returns:
            The current snapshot
        """
        now = self.clock()
        seconds = max(0.0, elapsed_ms / 1000.0)
        left = self.wake_left
        if left is not None and left < seconds:
            self.scheduler.advance(left)
            seconds -= left
        self._apply(run_tick(self.state, seconds * 1000.0, now))
        self.scheduler.advance(seconds)
        self.drain_jobs()
        if self.state.last_updated < now:
            self.state = replace(self.state, last_updated=now)
        return self.state

    def catch_up(self) -> PetState:
        """Replay the wall time that passed since the pet was last updated."""
        remaining = (self.clock() - self.state.last_updated).total_seconds()
        while remaining > 0 and self.state.is_alive:
            step = min(remaining, CATCH_UP_STEP_S)
            self.tick(step * 1000.0)
            remaining -= step
        return self.state

    # -- owner actions ---------------------------------------------------------

    def feed(self) -> bool:
        return self._apply(actions.feed(self.state, self.clock()))

    def play(self) -> bool:
        return self._apply(actions.play(self.state, self.clock()))

    def clean(self) -> bool:
        return self._apply(actions.clean(self.state, self.clock()))

    def sleep(self) -> bool:
        """Put the pet to bed and start the wake timer."""
        if not self._apply(actions.sleep(self.state, self.clock())):
            return False
        self._schedule_wake()
        return True

    def wake(self) -> bool:
        """Wake the pet early; the pending natural wake is cancelled."""
        if not self._apply(actions.wake(self.state, self.clock())):
            return False
        self._cancel_wake()
        return True

    def give_medicine(self) -> bool:
        return self._apply(actions.give_medicine(self.state, self.clock()))

    def train(self) -> bool:
        return self._apply(actions.train(self.state, self.clock()))

    def clean_environment(self) -> bool:
        return self._apply(actions.clean_environment(self.state, self.clock()))

    def feed_knowledge(self, title: str, content: str, category: Optional[str] = None, tags: Sequence[str] = ()) -> bool:
        return self._apply(actions.feed_knowledge(self.state, title, content, self.clock(), category=category, tags=tags))

    def learn_from_file(self, path: str, category: Optional[str] = None) -> bool:
        return self._apply(knowledge.learn_from_file(self.state, path, self.clock(), category=category))

    def learn_from_url(self, url: str) -> bool:
        """Fetch a page now and feed it. Raises FetchError."""
        return self._apply(knowledge.learn_from_url(self.state, url, self.clock(), fetch=self.fetch))

    def name(self, name: str) -> None:
        self._apply(actions.name_pet(self.state, name, self.clock(), self.rng))

    def set_ai_provider(self, provider: AIProvider, api_key: Optional[str] = None) -> None:
        self._apply(actions.set_ai_provider(self.state, provider, api_key))

    def reset(self, name: str = "") -> None:
        """Start over with a brand new pet."""
        self._cancel_wake()
        self.state = actions.reset(self.clock(), name, self.rng)
        self.log(f"{self.pet_name} hatched.")

    # -- chat ------------------------------------------------------------------

    def chat(self, message: str) -> str:
        """Talk to the pet and wait for the reply. Raises AIError."""
        nxt, reply = ai.send_message(self.state, message, self.clock(), self.transport)
        self._apply(nxt)
        return reply

    def acknowledge_suggestion(self, suggestion_id: str) -> bool:
        return self._apply(actions.acknowledge_suggestion(self.state, suggestion_id))

    def execute_suggestion(self, suggestion_id: str) -> bool:
        """
        Acknowledge a suggestion and carry out the action it proposes.

        Args:
            suggestion_id: Suggestion to act on

        Returns:
            False if no such suggestion exists
        """
        suggestion = next((s for s in self.state.suggestions if s.id == suggestion_id), None)
        if suggestion is None:
            return False
        self.acknowledge_suggestion(suggestion_id)
        handler = _SUGGESTED_ACTIONS.get(suggestion.action)
        if handler is not None:
            handler(self)
        return True

    # -- reminders ---------------------------------------------------------------

    def add_reminder(
        self,
        type: ReminderType,
        title: str,
        message: str,
        scheduled_for: datetime,
        recurring: bool = False,
        recurring_interval: Optional[int] = None,
    ) -> Reminder:
        now = self.clock()
        self._apply(
            reminders.add_reminder(
                self.state, type, title, message, scheduled_for, now, recurring, recurring_interval
            )
        )
        return self.state.reminders[-1]

    def complete_reminder(self, reminder_id: str) -> bool:
        return self._apply(reminders.complete_reminder(self.state, reminder_id))

    def dismiss_reminder(self, reminder_id: str) -> bool:
        return self._apply(reminders.dismiss_reminder(self.state, reminder_id))

    def check_reminders(self) -> list[Reminder]:
        """Run a due check and announce every reminder that came due."""
        nxt, due = reminders.check_reminders(self.state, self.clock())
        self._apply(nxt)
        for r in due:
            self.log(f"Reminder: {r.title} - {r.message}")
        return due

    # -- visitors ----------------------------------------------------------------

    def import_card(self, raw: str) -> bool:
        """Welcome a visitor. Raises InvalidCardError."""
        if not self._apply(social.import_visitor_card(self.state, raw, self.clock())):
            return False
        self.log(f"{self.state.visitors[0].name} came to visit!")
        return True

    def export_card(self, message: str = "", include_knowledge: bool = False) -> dict[str, Any]:
        return social.export_visitor_card(self.state, message, include_knowledge, self.clock())

    # -- background jobs -----------------------------------------------------------

    def browse_in_background(self, url: str) -> bool:
        """
        Queue a page fetch on the worker; the pet is fed when it lands.

        Returns:
            False if the worker queue is full (or there is no worker)
        """
        if self.worker is None or not self.state.is_alive:
            return False
        now, fetch = self.clock(), self.fetch
        return self.worker.try_submit("browse", lambda: knowledge.browse(url, now, fetch))

    def chat_in_background(self, message: str) -> bool:
        """Queue a chat message on the worker; the reply is logged when it lands."""
        if self.state.ai_config.provider is AIProvider.NONE:
            self.log(ai.NOT_CONFIGURED_REPLY)
            return False
        if self.worker is None:
            return False
        req, transport = ai.build_chat_request(self.state, message), self.transport
        return self.worker.try_submit("chat", lambda: (message, ai.chat(req, transport)))

    def drain_jobs(self) -> None:
        if self.worker is None:
            return
        for result in self.worker.drain():
            self._apply_job(result)

    def _apply_job(self, result: JobResult) -> None:
        if not result.ok:
            self.log(f"The {result.kind} request failed: {result.error}")
            return
        now = self.clock()
        if result.kind == "browse":
            item = result.value
            if self._apply(knowledge.ingest(self.state, item, now, BROWSE_GAINS)):
                self.log(f"{self.pet_name} learned about {item.title}.")
        elif result.kind == "chat":
            message, raw = result.value
            nxt, reply = ai.record_reply(self.state, message, raw, now)
            self._apply(nxt)
            self.log(f"{self.pet_name}: {reply}")


_SUGGESTED_ACTIONS: dict[SuggestedAction, Callable[[Game], Any]] = {
    SuggestedAction.FEED: Game.feed,
    SuggestedAction.PLAY: Game.play,
    SuggestedAction.CLEAN: Game.clean,
    SuggestedAction.SLEEP: Game.sleep,
    SuggestedAction.TRAIN: Game.train,
    SuggestedAction.CLEAN_ENVIRONMENT: Game.clean_environment,
}


def describe(state: PetState, now: datetime) -> str:
    """
    Multi-line status summary for the terminal.

    Args:
        state: Snapshot to describe
        now: Current time (for the age)

    Returns:
        Formatted status text
    """
    s, p, env = state.stats, state.personality, state.environment
    costs = modifiers_for(state)
    status = state.mood.value if state.is_alive else "dead"
    lines = [
        f"{state.name or 'Tamagotchi'} - {state.stage.value}"
        + (f" ({state.branch.value})" if state.branch is not EvolutionBranch.NONE else "")
        + f", {status} in the {state.location.value}, age {fmt_age(int(state.age_seconds(now)))}",
        f"  hunger {s.hunger:5.1f}  happiness {s.happiness:5.1f}  energy {s.energy:5.1f}"
        f"  health {s.health:5.1f}  cleanliness {s.cleanliness:5.1f}",
        f"  intelligence {p.intelligence:.1f}  friendliness {p.friendliness:.1f}"
        f"  playfulness {p.playfulness:.1f}  discipline {p.discipline:.1f}",
        f"  home: tidiness {env.cleanliness:.0f}  knowledge {env.knowledge_level:.0f}"
        f"  | care {state.care.average:.0f}  interactions {state.care.interaction_count}",
        f"  costs: play {costs.play_cost}  train {costs.training_cost}",
    ]
    for ability in abilities_for(state.branch, state.stage):
        lines.append(f"  * {ability.name}: {ability.description}")
    return "\n".join(lines)


LIVE_HELP = (
    "feed  play  clean  sleep  wake  medicine  train  tidy  status\n"
    "learn <url>   say <message>   help   quit"
)


def handle_line(game: Game, line: str) -> Optional[str]:
    """
    Run one live-mode command.

    Args:
        game: Running game
        line: Raw input line

    Returns:
        Text to show, or None
    """
    cmd, _, arg = line.strip().partition(" ")
    cmd, arg = cmd.lower(), arg.strip()
    simple = {
        "feed": game.feed,
        "play": game.play,
        "clean": game.clean,
        "sleep": game.sleep,
        "wake": game.wake,
        "medicine": game.give_medicine,
        "train": game.train,
        "tidy": game.clean_environment,
    }
    if cmd in simple:
        return None if simple[cmd]() else f"{game.pet_name} can't {cmd} right now."
    if cmd == "status":
        return describe(game.state, game.clock())
    if cmd == "help":
        return LIVE_HELP
    if cmd == "learn" and arg:
        return f"Reading {arg}..." if game.browse_in_background(arg) else "Busy, try again in a moment."
    if cmd == "say" and arg:
        game.chat_in_background(arg)
        return None
    return f"Unknown command {cmd!r}. Type help."


def _read_lines(stream: TextIO) -> "queue.Queue[Optional[str]]":
    """Feed input lines into a queue from a daemon thread (None at end of input)."""
    lines: "queue.Queue[Optional[str]]" = queue.Queue()

    def pump() -> None:
        for line in stream:
            lines.put(line)
        lines.put(None)

    threading.Thread(target=pump, daemon=True).start()
    return lines


def run(
    game: Game,
    save_path: str,
    speed: float,
    out: Callable[[str], Any] = print,
    stdin: Optional[TextIO] = None,
) -> int:
    """
    Main live loop.

    Args:
        game: Game to drive
        save_path: Path to save file
        speed: Game time multiplier
        out: Where messages are written
        stdin: Command source (defaults to sys.stdin)

    Returns:
        Exit code (0 for normal exit)
    """
    commands = _read_lines(stdin or sys.stdin)
    out(describe(game.state, game.clock()))
    out("Type help for commands.")

    last = time.monotonic()
    last_save = last
    last_check = last - REMINDER_CHECK_S

    try:
        while True:
            t = time.monotonic()
            game.tick((t - last) * speed * 1000.0)
            last = t

            if t - last_check >= REMINDER_CHECK_S:
                game.check_reminders()
                last_check = t

            try:
                line = commands.get_nowait()
            except queue.Empty:
                line = ""
            if line is None or line.strip().lower() in ("q", "quit", "exit"):
                return 0
            if line.strip():
                try:
                    reply = handle_line(game, line)
                except TamaError as e:
                    reply = str(e)
                if reply:
                    out(reply)

            for msg in game.pop_messages():
                out(msg)

            if t - last_save > AUTOSAVE_S:
                game.save(save_path)
                last_save = t

            time.sleep(LOOP_SLEEP_S)
    except KeyboardInterrupt:
        return 0
    finally:
        game.save(save_path)
