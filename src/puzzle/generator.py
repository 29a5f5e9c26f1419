"""
Level Generator Module - Procedural level templates for indexes 1..500.

Every parameter is a deterministic function of the level index. The only
randomness is the segment shuffle, which uses a seeded RNG (seed defaults to
the level index) so the same index always produces the same level asset.
A second, independent shuffle can be applied when a session starts
(see shuffle_segments) for levels flagged with randomize_on_start.
"""

import logging
import math
import random
from functools import lru_cache
from typing import List, Optional, Sequence, Tuple

from .level import Difficulty, Level
from .models import ColorSegment, Container, UnlockCondition
from .pour import is_level_complete
from .scoring import StarThreshold

logger = logging.getLogger(__name__)

MIN_LEVEL = 1
MAX_LEVEL = 500

# Segments per container
BASE_CAPACITY = 4

# Master palette; each level starts PALETTE_STEP entries further along
PALETTE: Tuple[str, ...] = (
    "#FF0000",  # red
    "#00FFFF",  # aqua
    "#0000FF",  # blue
    "#FF1493",  # deep pink
    "#00FF00",  # lime
    "#7F0000",  # maroon
    "#2E9AC3",  # light blue
    "#FF8C00",  # dark orange
    "#FFB6C1",  # light pink
    "#1E90FF",  # dodger blue
    "#FA8072",  # salmon
    "#DDA0DD",  # plum
    "#FFA500",  # orange
    "#FFFF00",  # yellow
)
PALETTE_STEP = 3

THEME_NAMES: Tuple[str, ...] = (
    "Prism", "Lagoon", "Neon", "Dawn", "Meadow", "Ember", "Skyline",
    "Citrus", "Blossom", "Tidal", "Coral", "Orchid", "Amber", "Solstice",
)

NAME_ROOTS: Tuple[str, ...] = (
    "First Pour", "Easy Flow", "Color Splash", "Gentle Mix", "Warm Up",
    "Rainbow Steps", "Liquid Logic", "Spectrum Sort", "Hue Puzzle", "Tint Twist",
    "Shade Shuffle", "Pigment Pour", "Color Storm", "Chromatic Maze", "Vortex",
    "Cascade", "Prism Break", "Paint Pressure", "Grand Blend", "Final Harmony",
)

# Fractions of the move/time limit for star tiers, best tier first
STAR_MOVE_FRACTIONS = (0.35, 0.5, 0.65, 0.8, 1.0)
STAR_TIME_FRACTIONS = (0.4, 0.55, 0.7, 0.85, 1.0)

STARTER_BAND = (151, 300)
LOCKED_CONTAINER_FROM = 301
RANDOMIZE_FROM = 200

# Attempts to avoid dealing an already-solved board at session start
_MAX_REDEAL_ATTEMPTS = 10


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))


def interpolate_range(level: int, start: int, end: int, start_value: int, end_value: int) -> int:
    """
    Linearly interpolate a value across a band of level indexes.

    Args:
        level: Level index
        start: First index of the band
        end: Last index of the band
        start_value: Value at the start of the band
        end_value: Value at the end of the band

    Returns:
        Interpolated value, rounded half up
    """
    if level <= start:
        return start_value
    if level >= end:
        return end_value
    progress = (level - start) / (end - start)
    return _round_half_up(start_value + (end_value - start_value) * progress)


def _check_index(level: int) -> None:
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise ValueError(f"Level index must be in {MIN_LEVEL}..{MAX_LEVEL}, got {level}")


def difficulty_for_level(level: int) -> Difficulty:
    if level <= 50:
        return Difficulty.EASY
    if level <= 150:
        return Difficulty.MEDIUM
    if level <= 300:
        return Difficulty.HARD
    if level <= 400:
        return Difficulty.EXPERT
    if level <= 450:
        return Difficulty.MASTER
    return Difficulty.LEGENDARY


def color_count_for_level(level: int) -> int:
    """Distinct colors: 2 at level 1 up to 12 in the last band."""
    if level <= 50:
        return clamp(interpolate_range(level, 1, 50, 2, 6), 2, 6)
    if level <= 150:
        return clamp(interpolate_range(level, 51, 150, 7, 8), 7, 8)
    if level <= 300:
        return clamp(interpolate_range(level, 151, 300, 9, 10), 9, 10)
    if level <= 450:
        return 11
    return 12


def container_count_for_level(level: int, colors: int) -> int:
    """Total containers; always at least colors + 1."""
    if level <= 50:
        base = clamp(interpolate_range(level, 1, 50, 4, 8), 4, 8)
        return max(base, colors + 1)
    if level <= 150:
        base = clamp(interpolate_range(level, 51, 150, 9, 12), 9, 12)
        return max(base, colors + 2)
    if level <= 300:
        base = clamp(interpolate_range(level, 151, 300, 12, 13), 12, 13)
        return max(base, colors + 2)
    if level <= 450:
        base = clamp(interpolate_range(level, 301, 450, 14, 15), 14, 15)
        return max(base, colors + 3)
    return max(16, colors + 4)


def estimate_par_moves(colors: int, empty_containers: int) -> int:
    """
    Cheap optimal-move estimate used for budgets and as a fallback par.

    This is a heuristic, not a solver result.
    """
    return colors * 2 + empty_containers // 2 + max(1, colors // 2)


def move_limit_for_level(level: int, par_moves: int) -> int:
    """Par estimate plus a buffer that shrinks as levels get harder."""
    if level <= 50:
        buffer = clamp(interpolate_range(level, 1, 50, 40, 24), 24, 48)
    elif level <= 100:
        buffer = clamp(interpolate_range(level, 51, 100, 24, 16), 16, 32)
    elif level <= 200:
        buffer = clamp(interpolate_range(level, 101, 200, 15, 10), 10, 24)
    elif level <= 350:
        buffer = clamp(interpolate_range(level, 201, 350, 9, 6), 6, 18)
    else:
        buffer = clamp(interpolate_range(level, 351, 500, 5, 4), 4, 12)
    return par_moves + buffer


def time_limit_for_level(level: int) -> int:
    """Seconds allowed: 900 at level 1 down to 180 at level 500."""
    if level <= 50:
        return clamp(interpolate_range(level, 1, 50, 900, 600), 600, 900)
    if level <= 100:
        return clamp(interpolate_range(level, 51, 100, 580, 480), 480, 620)
    if level <= 200:
        return clamp(interpolate_range(level, 101, 200, 460, 360), 360, 520)
    if level <= 300:
        return clamp(interpolate_range(level, 201, 300, 330, 270), 270, 420)
    if level <= 400:
        return clamp(interpolate_range(level, 301, 400, 240, 210), 210, 330)
    return clamp(interpolate_range(level, 401, 500, 200, 180), 180, 300)


def build_star_thresholds(move_limit: int, time_limit: int, par_moves: int) -> Tuple[StarThreshold, ...]:
    """
    Derive the five star tiers from the move and time limits.

    Caps never loosen from one tier to the next-better one, the best move cap
    is never below the par estimate, and the 1-star tier equals the limits.

    Args:
        move_limit: Level move budget
        time_limit: Level time budget in seconds
        par_moves: Static par estimate

    Returns:
        Tuple of StarThreshold, 5 stars first
    """
    tiers: List[StarThreshold] = []
    previous_moves = 0
    previous_time = 0
    for move_fraction, time_fraction in zip(STAR_MOVE_FRACTIONS, STAR_TIME_FRACTIONS):
        moves = min(move_limit, max(par_moves, math.ceil(move_fraction * move_limit)))
        seconds = min(time_limit, math.ceil(time_fraction * time_limit))
        previous_moves = max(previous_moves, moves)
        previous_time = max(previous_time, seconds)
        tiers.append(StarThreshold(moves=previous_moves, time_seconds=previous_time))
    return tuple(tiers)


def palette_for_level(level: int, count: int) -> List[str]:
    """
    Slice of the master palette for a level.

    The offset advances PALETTE_STEP entries per level; colors wrap around
    the palette when more are requested than it holds.
    """
    offset = ((level - 1) * PALETTE_STEP) % len(PALETTE)
    return [PALETTE[(offset + i) % len(PALETTE)] for i in range(count)]


def palette_name_for_level(level: int) -> str:
    return THEME_NAMES[((level - 1) // 10) % len(THEME_NAMES)]


def _roman(value: int) -> str:
    numerals = (
        (10, "X"), (9, "IX"), (5, "V"), (4, "IV"), (1, "I"),
    )
    result = []
    for amount, symbol in numerals:
        while value >= amount:
            result.append(symbol)
            value -= amount
    return "".join(result)


def level_name(level: int) -> str:
    root = NAME_ROOTS[(level - 1) % len(NAME_ROOTS)]
    cycle = (level - 1) // len(NAME_ROOTS)
    if cycle == 0:
        return root
    return f"{root} {_roman(cycle + 1)}"


def _deal(segments: Sequence[ColorSegment], containers: Sequence[Container]) -> Tuple[Container, ...]:
    """Refill containers in order, each with as many segments as it held."""
    result = []
    pointer = 0
    for container in containers:
        count = container.size
        result.append(container.with_segments(tuple(segments[pointer:pointer + count])))
        pointer += count
    return tuple(result)


def shuffle_segments(containers: Sequence[Container], rng: random.Random) -> Tuple[Container, ...]:
    """
    Re-deal all segments across the non-empty containers.

    Each container keeps its segment count; empty containers stay empty.
    Used for the session-start shuffle, independent of generation.

    Args:
        containers: Configuration to shuffle
        rng: Random source (independent of the generation RNG)

    Returns:
        New configuration
    """
    containers = tuple(containers)
    filled = [i for i, container in enumerate(containers) if not container.is_empty]
    pool = [segment for i in filled for segment in containers[i].segments]

    for _ in range(_MAX_REDEAL_ATTEMPTS):
        rng.shuffle(pool)
        dealt = _deal(pool, [containers[i] for i in filled])
        result = list(containers)
        for i, container in zip(filled, dealt):
            result[i] = container
        if not is_level_complete(result):
            break
    return tuple(result)


def _apply_special_containers(level: int, empties: List[Container]) -> List[Container]:
    if not empties:
        return empties

    if STARTER_BAND[0] <= level <= STARTER_BAND[1]:
        first = empties[0]
        empties[0] = Container(id=first.id, capacity=first.capacity, starter=True)

    if level >= LOCKED_CONTAINER_FROM and len(empties) >= 2:
        last = empties[-1]
        requirement = len(empties) + 1
        empties[-1] = Container(
            id=last.id,
            capacity=last.capacity,
            locked=True,
            unlock_condition=UnlockCondition(
                requirement=requirement,
                description=f"Sort {requirement} containers to unlock",
            ),
        )
    return empties


def generate_level(level: int, seed: Optional[int] = None) -> Level:
    """
    Generate the level template for an index.

    Args:
        level: Level index in 1..500
        seed: Shuffle seed (defaults to the level index)

    Returns:
        Level template

    Raises:
        ValueError: If the index is out of range
    """
    _check_index(level)
    rng = random.Random(level if seed is None else seed)

    colors = color_count_for_level(level)
    total_containers = container_count_for_level(level, colors)
    empty_count = max(1, total_containers - colors)

    pool = [
        ColorSegment(id=f"seg-{level}-{color_index}-{i}", color=color)
        for color_index, color in enumerate(palette_for_level(level, colors))
        for i in range(BASE_CAPACITY)
    ]

    # One full container per color before scrambling
    template = [
        Container(
            id=f"tube-{level}-{i + 1}",
            capacity=BASE_CAPACITY,
            segments=tuple(pool[i * BASE_CAPACITY:(i + 1) * BASE_CAPACITY]),
        )
        for i in range(colors)
    ]

    # Global shuffle, re-dealt capacity segments at a time
    while True:
        rng.shuffle(pool)
        filled = _deal(pool, template)
        if not is_level_complete(filled):
            break

    empties = [
        Container(id=f"tube-{level}-{colors + i + 1}", capacity=BASE_CAPACITY)
        for i in range(empty_count)
    ]
    empties = _apply_special_containers(level, empties)

    par_moves = estimate_par_moves(colors, empty_count)
    move_limit = move_limit_for_level(level, par_moves)
    time_limit = time_limit_for_level(level)

    logger.debug(
        f"Generated level {level}: {colors} colors, {total_containers} containers, "
        f"par~{par_moves}, limit {move_limit} moves / {time_limit}s"
    )

    return Level(
        index=level,
        name=level_name(level),
        difficulty=difficulty_for_level(level),
        containers=filled + tuple(empties),
        move_limit=move_limit,
        time_limit_seconds=time_limit,
        star_thresholds=build_star_thresholds(move_limit, time_limit, par_moves),
        par_moves=par_moves,
        randomize_on_start=level >= RANDOMIZE_FROM,
        palette_name=palette_name_for_level(level),
    )


@lru_cache(maxsize=None)
def get_level(level: int) -> Level:
    """Memoized canonical level template for an index."""
    return generate_level(level)
