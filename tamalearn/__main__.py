#!/usr/bin/env python3
"""
Tama Learn - Main Entry Point

Run:
  python -m tamalearn status
  python -m tamalearn feed
  python -m tamalearn learn --url https://example.com
  python -m tamalearn live

Every one-shot command loads the save, catches the pet up on the time that
passed, applies the command and saves again.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from datetime import timedelta
from typing import Any

from .config import clamp_speed, load_settings
from .errors import TamaError
from .game import Game, describe, run
from .models import AIProvider, ReminderType
from .reminders import pending
from .social import export_conversations, export_knowledge
from .worker import BackgroundWorker

logger = logging.getLogger(__name__)

SIMPLE_ACTIONS = {
    "feed": Game.feed,
    "play": Game.play,
    "clean": Game.clean,
    "sleep": Game.sleep,
    "wake": Game.wake,
    "medicine": Game.give_medicine,
    "train": Game.train,
    "clean-env": Game.clean_environment,
}


def build_parser(settings: dict[str, Any]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tamalearn", description="A virtual pet that eats knowledge.")
    parser.add_argument("--save", default=settings["save_path"], help=f"save file path (default: {settings['save_path']})")
    parser.add_argument("--speed", type=float, default=settings["speed"], help="game time multiplier for live mode")
    parser.add_argument("--log-level", default=settings["log_level"], help="logging level (default: %(default)s)")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("status", help="show the pet")
    p = sub.add_parser("new", help="hatch a new pet (the old one is lost)")
    p.add_argument("name", nargs="?", default="")
    p = sub.add_parser("name", help="name the pet (restarts its life)")
    p.add_argument("name")
    for cmd in SIMPLE_ACTIONS:
        sub.add_parser(cmd, help=f"{cmd} the pet")

    p = sub.add_parser("learn", help="feed the pet some knowledge")
    src = p.add_mutually_exclusive_group(required=True)
    src.add_argument("--text", help="knowledge text (use with --title)")
    src.add_argument("--file", help="read a local text file")
    src.add_argument("--url", help="read a web page")
    p.add_argument("--title", default="Note")
    p.add_argument("--category")
    p.add_argument("--tag", action="append", default=[])

    p = sub.add_parser("remind", help="manage reminders")
    rsub = p.add_subparsers(dest="remind_command", required=True)
    r = rsub.add_parser("add")
    r.add_argument("title")
    r.add_argument("--message", default="")
    r.add_argument("--type", choices=[t.value for t in ReminderType if t is not ReminderType.MISS_YOU], default="task")
    r.add_argument("--in", dest="in_minutes", type=float, default=0.0, help="minutes from now")
    r.add_argument("--every", type=int, help="repeat every N minutes")
    rsub.add_parser("list")
    for verb in ("done", "dismiss"):
        r = rsub.add_parser(verb)
        r.add_argument("id", help="reminder id (a unique prefix is enough)")

    sub.add_parser("check", help="run a reminder check")

    p = sub.add_parser("chat", help="talk to the pet")
    p.add_argument("message", nargs="+")

    p = sub.add_parser("suggestion", help="act on the pet's suggestions")
    p.add_argument("verb", choices=["list", "ack", "do"])
    p.add_argument("id", nargs="?")

    p = sub.add_parser("ai", help="choose the chat provider")
    p.add_argument("provider", choices=[a.value for a in AIProvider])
    p.add_argument("--key")

    p = sub.add_parser("export", help="print an export document")
    p.add_argument("what", choices=["conversations", "knowledge", "card"])
    p.add_argument("--message", default="", help="card greeting")
    p.add_argument("--gifts", action="store_true", help="attach knowledge gifts to the card")

    p = sub.add_parser("import-card", help="welcome a visitor from a card file ('-' for stdin)")
    p.add_argument("path")

    sub.add_parser("live", help="keep the pet running in this terminal")
    return parser


def _find(items, prefix: str):
    matches = [x for x in items if x.id.startswith(prefix)]
    if len(matches) != 1:
        raise SystemExit(f"no unique match for id {prefix!r}")
    return matches[0]


def _dispatch(args: argparse.Namespace, settings: dict[str, Any]) -> int:
    if args.command == "new":
        game = Game()
        game.reset(args.name)
        game.save(args.save)
        print(describe(game.state, game.clock()))
        return 0

    live = args.command == "live"
    game = Game.load(args.save, worker=BackgroundWorker() if live else None)
    if settings["ai_provider"] is not AIProvider.NONE:
        game.set_ai_provider(settings["ai_provider"], settings["api_key"])
    game.catch_up()

    if live:
        return run(game, args.save, clamp_speed(args.speed))

    cmd = args.command
    out: Any = None
    if cmd == "status":
        out = describe(game.state, game.clock())
        open_reminders = pending(game.state)
        if open_reminders:
            out += f"\n  {len(open_reminders)} pending reminder(s)"
    elif cmd == "name":
        game.name(args.name)
    elif cmd in SIMPLE_ACTIONS:
        if not SIMPLE_ACTIONS[cmd](game):
            out = f"{game.pet_name} can't {cmd} right now."
    elif cmd == "learn":
        if args.file:
            game.learn_from_file(args.file, category=args.category)
        elif args.url:
            game.learn_from_url(args.url)
        else:
            game.feed_knowledge(args.title, args.text, category=args.category, tags=args.tag)
    elif cmd == "remind":
        out = _remind(game, args)
    elif cmd == "check":
        due = game.check_reminders()
        if not due:
            out = "Nothing due."
    elif cmd == "chat":
        out = game.chat(" ".join(args.message))
    elif cmd == "suggestion":
        out = _suggestion(game, args)
    elif cmd == "ai":
        game.set_ai_provider(AIProvider(args.provider), args.key)
    elif cmd == "export":
        now = game.clock()
        if args.what == "conversations":
            doc = export_conversations(game.state, now)
        elif args.what == "knowledge":
            doc = export_knowledge(game.state, now)
        else:
            doc = game.export_card(args.message, args.gifts)
        out = json.dumps(doc, ensure_ascii=False, indent=2)
    elif cmd == "import-card":
        if args.path == "-":
            raw = sys.stdin.read()
        else:
            with open(args.path, "r", encoding="utf-8") as f:
                raw = f.read()
        game.import_card(raw)

    for msg in game.pop_messages():
        print(msg)
    if out:
        print(out)
    game.save(args.save)
    return 0


def _remind(game: Game, args: argparse.Namespace) -> str:
    if args.remind_command == "add":
        when = game.clock() + timedelta(minutes=args.in_minutes)
        r = game.add_reminder(
            ReminderType(args.type),
            args.title,
            args.message,
            when,
            recurring=args.every is not None,
            recurring_interval=args.every,
        )
        return f"Added {r.id[:8]} for {r.scheduled_for.astimezone().strftime('%Y-%m-%d %H:%M')}"
    if args.remind_command == "list":
        rows = [
            f"{r.id[:8]}  {r.scheduled_for.astimezone().strftime('%Y-%m-%d %H:%M')}  [{r.type.value}] {r.title}"
            + (f" (every {r.recurring_interval}m)" if r.recurring else "")
            for r in sorted(pending(game.state), key=lambda r: r.scheduled_for)
        ]
        return "\n".join(rows) or "No pending reminders."
    reminder = _find(game.state.reminders, args.id)
    if args.remind_command == "done":
        game.complete_reminder(reminder.id)
    else:
        game.dismiss_reminder(reminder.id)
    return ""


def _suggestion(game: Game, args: argparse.Namespace) -> str:
    if args.verb == "list":
        rows = [
            f"{s.id[:8]}  [{s.type.value}] {s.title}: {s.message} -> {s.action.value}"
            for s in game.state.suggestions
            if not s.acknowledged
        ]
        return "\n".join(rows) or "No open suggestions."
    if not args.id:
        raise SystemExit("a suggestion id is required")
    suggestion = _find(game.state.suggestions, args.id)
    if args.verb == "ack":
        game.acknowledge_suggestion(suggestion.id)
    else:
        game.execute_suggestion(suggestion.id)
    return ""


def main(argv=None) -> int:
    """
    Main entry point with argument parsing.

    Returns:
        Exit code
    """
    settings = load_settings()
    args = build_parser(settings).parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return _dispatch(args, settings)
    except (TamaError, OSError) as e:
        logger.debug("command failed", exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
