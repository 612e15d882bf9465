"""Tests for mood classification and location inference."""

import pytest

from tamalearn.models import Location, Mood, PetStats
from tamalearn.mood import classify, infer_location


@pytest.mark.parametrize(
    "values, mood",
    [
        ({"energy": 10, "health": 10}, Mood.TIRED),
        ({"health": 25, "hunger": 90}, Mood.SICK),
        ({"hunger": 85, "cleanliness": 10}, Mood.HUNGRY),
        ({"cleanliness": 20, "happiness": 10}, Mood.DIRTY),
        ({"happiness": 20}, Mood.SAD),
        ({}, Mood.HAPPY),
    ],
)
def test_priority_order(values, mood):
    """Test the first matching rule wins."""
    assert classify(PetStats(**values)) is mood


def test_thresholds_are_strict():
    """Test values sitting on a threshold do not trigger it."""
    assert classify(PetStats(energy=20, health=30, hunger=80, cleanliness=30, happiness=30)) is Mood.HAPPY


def test_dead_pet_is_sad():
    """Test a dead pet is sad whatever its stats."""
    assert classify(PetStats(), alive=False) is Mood.SAD


def test_classifier_never_sleeps():
    """Test sleeping is never derived from stats."""
    assert classify(PetStats(energy=0)) is Mood.TIRED


@pytest.mark.parametrize(
    "mood, values, location",
    [
        (Mood.SLEEPING, {}, Location.BEDROOM),
        (Mood.TIRED, {"energy": 10}, Location.BEDROOM),
        (Mood.SICK, {"health": 10}, Location.BEDROOM),
        (Mood.HAPPY, {"hunger": 75}, Location.STUDY),
        (Mood.HAPPY, {"happiness": 35}, Location.BEDROOM),
        (Mood.HAPPY, {"energy": 80, "happiness": 65}, Location.PLAY_AREA),
        (Mood.HAPPY, {"energy": 50, "happiness": 80}, Location.LIVING_ROOM),
        (Mood.HAPPY, {"energy": 50, "happiness": 50}, Location.STUDY),
    ],
)
def test_location(mood, values, location):
    """Test the room follows mood, then vitals."""
    assert infer_location(mood, PetStats(**values)) is location
