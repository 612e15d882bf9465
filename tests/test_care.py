"""Tests for care quality tracking."""

import pytest

from tamalearn.care import record_interaction, update_care
from tamalearn.models import CareQuality, PetStats


def test_update_is_an_ema():
    """Test each score moves 10% toward its metric."""
    care = update_care(CareQuality(), PetStats(hunger=50, happiness=100, health=100))
    assert care.feeding_score == pytest.approx(70 * 0.9 + 50 * 0.1)
    assert care.happiness_score == pytest.approx(90 * 0.9 + 100 * 0.1)
    assert care.health_score == pytest.approx(100)


def test_update_leaves_interaction_count():
    """Test passive updates never count as interactions."""
    care = CareQuality(interaction_count=4)
    assert update_care(care, PetStats()).interaction_count == 4


def test_record_interaction_increments_by_one():
    """Test one owner action adds exactly one interaction."""
    assert record_interaction(CareQuality(interaction_count=2)).interaction_count == 3


def test_scores_converge_to_metric():
    """Test repeated updates approach the current vitals."""
    care = CareQuality()
    s = PetStats(hunger=100, happiness=0, health=0)
    for _ in range(200):
        care = update_care(care, s)
    assert care.average == pytest.approx(0, abs=1e-6)
