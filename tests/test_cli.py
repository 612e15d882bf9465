"""Tests for CLI commands."""

import json

from tamalearn.__main__ import main
from tamalearn.ai import NOT_CONFIGURED_REPLY
from tamalearn.models import Activity
from tamalearn.persistence import load_state


def cli(save_path, *args):
    return main(["--save", save_path, *args])


def test_new_and_status(save_path, capsys):
    """Test hatching a pet and looking at it."""
    assert cli(save_path, "new", "Mochi") == 0
    assert cli(save_path, "status") == 0
    assert "Mochi - baby" in capsys.readouterr().out


def test_status_without_save(save_path, capsys):
    """Test status works before any pet was saved."""
    assert cli(save_path, "status") == 0
    assert load_state(save_path) is not None


def test_feed(save_path):
    """Test an action command updates the save."""
    cli(save_path, "new", "Mochi")
    assert cli(save_path, "feed") == 0
    assert load_state(save_path).activity_logs[0].action is Activity.FEED


def test_learn_text(save_path):
    """Test typing in some knowledge."""
    cli(save_path, "new", "Mochi")
    assert cli(save_path, "learn", "--title", "Cats", "--text", "Cats purr.", "--tag", "pets") == 0
    item = load_state(save_path).knowledge[0]
    assert item.title == "Cats"
    assert item.tags == ("pets",)


def test_learn_missing_file_fails(save_path, tmp_path, capsys):
    """Test a read failure is reported with a non-zero exit."""
    cli(save_path, "new")
    assert cli(save_path, "learn", "--file", str(tmp_path / "missing.txt")) == 1
    assert "error:" in capsys.readouterr().err


def test_reminders(save_path, capsys):
    """Test adding, listing and completing reminders."""
    cli(save_path, "new", "Mochi")
    assert cli(save_path, "remind", "add", "Water", "--in", "10", "--every", "30") == 0
    capsys.readouterr()
    cli(save_path, "remind", "list")
    listing = capsys.readouterr().out
    assert "Water" in listing
    assert "(every 30m)" in listing
    rid = load_state(save_path).reminders[0].id
    assert cli(save_path, "remind", "done", rid[:8]) == 0
    assert load_state(save_path).reminders[0].completed


def test_chat_unconfigured(save_path, capsys):
    """Test chat explains that no provider is set."""
    cli(save_path, "new")
    capsys.readouterr()
    assert cli(save_path, "chat", "hello", "there") == 0
    assert NOT_CONFIGURED_REPLY in capsys.readouterr().out


def test_export_card(save_path, capsys):
    """Test the card export prints the visitor card JSON."""
    cli(save_path, "new", "Mochi")
    capsys.readouterr()
    assert cli(save_path, "export", "card", "--message", "hi") == 0
    out = capsys.readouterr().out
    card = json.loads(out[out.index("{"):])
    assert card["name"] == "Mochi"
    assert card["message"] == "hi"


def test_import_card(save_path, tmp_path):
    """Test importing a card from a file."""
    cli(save_path, "new", "Mochi")
    card = tmp_path / "card.json"
    card.write_text(json.dumps({
        "name": "Biscuit",
        "evolutionStage": "child",
        "evolutionBranch": "none",
        "personality": {"intelligence": 50, "friendliness": 50, "playfulness": 50, "discipline": 50},
        "message": "hello",
    }), encoding="utf-8")
    assert cli(save_path, "import-card", str(card)) == 0
    assert load_state(save_path).visitors[0].name == "Biscuit"


def test_import_bad_card(save_path, tmp_path, capsys):
    """Test an invalid card exits non-zero and leaves the pet alone."""
    cli(save_path, "new", "Mochi")
    card = tmp_path / "card.json"
    card.write_text("{}", encoding="utf-8")
    assert cli(save_path, "import-card", str(card)) == 1
    assert load_state(save_path).visitors == ()


def test_ai_provider(save_path):
    """Test choosing a provider is saved."""
    cli(save_path, "new")
    assert cli(save_path, "ai", "openai", "--key", "sk-oai") == 0
    assert load_state(save_path).ai_config.api_key == "sk-oai"
