"""Shared test fixtures and helpers for tamalearn tests."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from tamalearn.models import PetState, PetStats


NOW = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


# --- Fixtures ---


@pytest.fixture(autouse=True)
def clean_environ(monkeypatch):
    """Keep the developer's TAMALEARN_* variables out of the tests."""
    for name in ("TAMALEARN_SAVE", "TAMALEARN_SPEED", "TAMALEARN_AI_PROVIDER", "TAMALEARN_API_KEY", "TAMALEARN_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def now():
    """A fixed, timezone-aware point in time."""
    return NOW


@pytest.fixture
def pet(now):
    """A freshly hatched pet named Tama, born at ``now``."""
    return PetState.create(now, name="Tama")


@pytest.fixture
def clock(now):
    """A manually advanced clock starting at ``now``."""
    return FakeClock(now)


@pytest.fixture
def save_path(tmp_path):
    """Path to a save file inside a temporary directory."""
    return str(tmp_path / "tama.json")


# --- Helper Functions (not fixtures) ---


class FakeClock:
    """Callable clock whose time only moves when told to."""

    def __init__(self, start: datetime) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


def with_stats(state: PetState, **values) -> PetState:
    """Copy of ``state`` with the named vitals replaced.

    Args:
        state: Snapshot to copy
        **values: PetStats fields to set

    Returns:
        A PetState with the new vitals.
    """
    return replace(state, stats=replace(state.stats, **values))


def stats(**values) -> PetStats:
    """PetStats with defaults for everything not given."""
    return PetStats(**values)
