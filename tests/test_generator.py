"""
Tests for the procedural level generator

Covers:
1. Band parameters (colors, containers, limits)
2. Determinism and seeding
3. Starter, locked and randomize-on-start bands
4. Star threshold monotonicity
5. Session-start shuffle

Usage:
    pytest tests/test_generator.py
"""

import random
import sys
from collections import Counter
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.puzzle import (
    MAX_LEVEL,
    MIN_LEVEL,
    Difficulty,
    generate_level,
    get_level,
    is_level_complete,
    shuffle_segments,
)
from src.puzzle.generator import (
    BASE_CAPACITY,
    PALETTE,
    color_count_for_level,
    container_count_for_level,
    interpolate_range,
    level_name,
)

ALL_LEVELS = range(MIN_LEVEL, MAX_LEVEL + 1)


def empties(level):
    return [container for container in level.containers if container.is_empty]


def test_first_level_shape():
    level = generate_level(1)

    assert level.index == 1
    assert level.difficulty == Difficulty.EASY
    assert level.color_count == 2
    assert len(level.containers) == 4
    assert level.empty_count == 2
    assert all(container.capacity == BASE_CAPACITY for container in level.containers)
    assert not level.randomize_on_start
    assert level.name == "First Pour"


def test_level_is_deterministic():
    assert generate_level(37) == generate_level(37)
    assert get_level(37) is get_level(37)


def test_seed_changes_shuffle_only():
    default = generate_level(30)
    seeded = generate_level(30, seed=12345)

    assert default.containers != seeded.containers
    assert len(default.containers) == len(seeded.containers)
    assert default.move_limit == seeded.move_limit
    assert default.star_thresholds == seeded.star_thresholds


@pytest.mark.parametrize("index", [0, -3, MAX_LEVEL + 1])
def test_out_of_range_index(index):
    with pytest.raises(ValueError):
        generate_level(index)


def test_colors_scale_from_two_to_twelve():
    counts = [color_count_for_level(n) for n in ALL_LEVELS]

    assert counts[0] == 2
    assert counts[-1] == 12
    assert counts == sorted(counts)


def test_container_count_monotone_and_sufficient():
    totals = [container_count_for_level(n, color_count_for_level(n)) for n in ALL_LEVELS]

    assert totals == sorted(totals)
    for n, total in zip(ALL_LEVELS, totals):
        assert total >= color_count_for_level(n) + 1


@pytest.mark.parametrize("index", [1, 2, 50, 51, 150, 151, 200, 300, 301, 450, 451, 500])
def test_level_segments(index):
    level = generate_level(index)
    colors = Counter(
        segment.color for container in level.containers for segment in container.segments
    )

    # Each color contributes exactly one container's worth of segments
    assert len(colors) == color_count_for_level(index)
    assert set(colors.values()) == {BASE_CAPACITY}
    assert len(level.containers) >= len(colors) + 1
    assert not is_level_complete(level.containers)

    segment_ids = [segment.id for container in level.containers for segment in container.segments]
    assert len(segment_ids) == len(set(segment_ids))


def test_palette_offset_advances_three_per_level():
    first = {segment.color for container in generate_level(1).containers for segment in container.segments}
    second = {segment.color for container in generate_level(2).containers for segment in container.segments}

    assert first == {PALETTE[0], PALETTE[1]}
    assert second == {PALETTE[3], PALETTE[4]}


@pytest.mark.parametrize("index, expected", [(150, False), (151, True), (300, True), (301, False)])
def test_starter_band(index, expected):
    level = generate_level(index)
    starters = [container for container in level.containers if container.starter]

    assert bool(starters) is expected
    if expected:
        assert starters[0] is empties(level)[0]


def test_locked_container_from_301():
    assert not any(container.locked for container in generate_level(300).containers)

    level = generate_level(301)
    locked = [container for container in level.containers if container.locked]

    assert len(locked) == 1
    assert locked[0].is_empty
    assert locked[0].unlock_condition.requirement == level.empty_count + 1


def test_randomize_on_start_from_200():
    assert not generate_level(199).randomize_on_start
    assert generate_level(200).randomize_on_start


def test_limits_and_stars_for_every_level():
    for n in ALL_LEVELS:
        level = get_level(n)
        tiers = level.star_thresholds

        assert level.move_limit > level.par_moves
        assert level.time_limit_seconds > 0
        assert len(tiers) == 5
        assert tiers[0].moves >= level.par_moves
        assert tiers[-1].moves == level.move_limit
        assert tiers[-1].time_seconds == level.time_limit_seconds
        for better, worse in zip(tiers, tiers[1:]):
            assert better.moves <= worse.moves
            assert better.time_seconds <= worse.time_seconds


def test_time_limit_shrinks_with_index():
    assert get_level(1).time_limit_seconds > get_level(250).time_limit_seconds > get_level(500).time_limit_seconds


def test_interpolate_range():
    assert interpolate_range(1, 1, 50, 2, 6) == 2
    assert interpolate_range(50, 1, 50, 2, 6) == 6
    assert interpolate_range(80, 1, 50, 2, 6) == 6
    # Rounds half up
    assert interpolate_range(2, 1, 3, 0, 1) == 1


def test_level_names_cycle():
    assert level_name(1) == "First Pour"
    assert level_name(21) == "First Pour II"
    assert level_name(41) == "First Pour III"


class TestShuffleSegments:
    """Session-start shuffle."""

    def test_keeps_segments_and_shapes(self):
        level = get_level(210)
        shuffled = shuffle_segments(level.containers, random.Random(3))

        before = sorted(s.id for c in level.containers for s in c.segments)
        after = sorted(s.id for c in shuffled for s in c.segments)
        assert before == after
        assert [c.size for c in shuffled] == [c.size for c in level.containers]
        assert [c.id for c in shuffled] == [c.id for c in level.containers]
        assert not is_level_complete(shuffled)

    def test_empty_and_flagged_containers_untouched(self):
        level = get_level(320)
        shuffled = shuffle_segments(level.containers, random.Random(9))

        for original, result in zip(level.containers, shuffled):
            if original.is_empty:
                assert result == original

    def test_template_not_modified(self):
        level = generate_level(220)
        snapshot = level.containers

        shuffle_segments(level.containers, random.Random(1))

        assert level.containers is snapshot
        assert level == generate_level(220)

    def test_independent_rng_gives_variety(self):
        level = get_level(230)
        deals = {
            tuple(c.colors for c in shuffle_segments(level.containers, random.Random(seed)))
            for seed in range(5)
        }
        assert len(deals) > 1
