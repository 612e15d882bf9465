"""Tests for settings loading."""

from tamalearn.config import DEFAULT_SETTINGS, load_settings
from tamalearn.models import AIProvider


def test_defaults():
    """Test an empty environment gives the defaults."""
    assert load_settings({}) == DEFAULT_SETTINGS
    assert load_settings({}) is not DEFAULT_SETTINGS


def test_environment_overrides():
    """Test each TAMALEARN_* variable is read."""
    settings = load_settings({
        "TAMALEARN_SAVE": "/tmp/pet.json",
        "TAMALEARN_SPEED": "2.5",
        "TAMALEARN_AI_PROVIDER": "Claude",
        "TAMALEARN_API_KEY": "sk-ant",
        "TAMALEARN_LOG_LEVEL": "debug",
    })
    assert settings["save_path"] == "/tmp/pet.json"
    assert settings["speed"] == 2.5
    assert settings["ai_provider"] is AIProvider.CLAUDE
    assert settings["api_key"] == "sk-ant"
    assert settings["log_level"] == "DEBUG"


def test_speed_is_clamped():
    """Test the time multiplier stays within [0.5, 50]."""
    assert load_settings({"TAMALEARN_SPEED": "500"})["speed"] == 50.0
    assert load_settings({"TAMALEARN_SPEED": "0.1"})["speed"] == 0.5


def test_bad_values_are_skipped():
    """Test unparseable values fall back to the defaults."""
    settings = load_settings({"TAMALEARN_SPEED": "fast", "TAMALEARN_AI_PROVIDER": "skynet"})
    assert settings["speed"] == DEFAULT_SETTINGS["speed"]
    assert settings["ai_provider"] is AIProvider.NONE


def test_reads_os_environ(monkeypatch):
    """Test the process environment is used by default."""
    monkeypatch.setenv("TAMALEARN_API_KEY", "from-env")
    assert load_settings()["api_key"] == "from-env"
