"""
Tests for star ratings and coin rewards

Usage:
    pytest tests/test_scoring.py
"""

import itertools
import sys
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.puzzle import StarThreshold, calculate_reward, calculate_stars
from src.puzzle.scoring import BASE_REWARD, MIN_REWARD


THRESHOLDS = (
    StarThreshold(moves=10, time_seconds=60),
    StarThreshold(moves=14, time_seconds=90),
    StarThreshold(moves=18, time_seconds=120),
    StarThreshold(moves=24, time_seconds=150),
    StarThreshold(moves=30, time_seconds=180),
)


@pytest.mark.parametrize("moves, seconds, stars", [
    (10, 60, 5),
    (5, 10, 5),
    (11, 60, 4),
    (10, 61, 4),
    (18, 30, 3),
    (30, 180, 1),
    (31, 10, 0),
    (5, 181, 0),
])
def test_calculate_stars(moves, seconds, stars):
    assert calculate_stars(moves, seconds, THRESHOLDS) == stars


def test_both_caps_must_be_met():
    # Fast but wasteful and slow but efficient both drop tiers
    assert calculate_stars(25, 10, THRESHOLDS) == 1
    assert calculate_stars(5, 140, THRESHOLDS) == 2


def test_tier_count_agnostic():
    three = THRESHOLDS[:3]
    assert calculate_stars(10, 60, three) == 3
    assert calculate_stars(18, 120, three) == 1
    assert calculate_stars(19, 10, three) == 0
    assert calculate_stars(1, 1, ()) == 0


def test_stars_monotonic():
    moves_range = range(0, 35, 3)
    time_range = range(0, 200, 17)
    for moves, seconds in itertools.product(moves_range, time_range):
        stars = calculate_stars(moves, seconds, THRESHOLDS)
        assert calculate_stars(max(0, moves - 3), seconds, THRESHOLDS) >= stars
        assert calculate_stars(moves, max(0, seconds - 17), THRESHOLDS) >= stars


@pytest.mark.parametrize("moves, baseline, reward", [
    (8, 10, BASE_REWARD),
    (10, 10, BASE_REWARD),
    (11, 10, 9),
    (15, 10, 5),
    (19, 10, MIN_REWARD),
    (40, 10, MIN_REWARD),
])
def test_calculate_reward(moves, baseline, reward):
    assert calculate_reward(moves, baseline) == reward
