"""
Puzzle Package - Tube sort mechanics, scoring and level generation.

Public API:
    - ColorSegment, Container, UnlockCondition: Immutable board values
    - can_pour(), execute_pour(): Pour validation and execution
    - is_level_complete(), apply_unlocks(): Completion and unlock rules
    - calculate_stars(), calculate_reward(): Scoring
    - Level, Difficulty: Level templates
    - generate_level(), get_level(): Procedural level generator
    - shuffle_segments(): Session-start re-deal

Usage:
    from src.puzzle import get_level, execute_pour, is_level_complete

    level = get_level(12)
    result = execute_pour(level.containers, "tube-12-1", "tube-12-6")
    if result.success:
        print(is_level_complete(result.containers))
"""

from .models import ColorSegment, Container, UnlockCondition
from .pour import (
    PourCheck,
    PourRejection,
    PourResult,
    apply_unlocks,
    can_pour,
    count_sorted,
    execute_pour,
    is_level_complete,
    is_sorted,
)
from .scoring import StarThreshold, calculate_reward, calculate_stars
from .level import Difficulty, Level, LevelDataError
from .generator import (
    MAX_LEVEL,
    MIN_LEVEL,
    generate_level,
    get_level,
    shuffle_segments,
)

__all__ = [
    # Values
    "ColorSegment",
    "Container",
    "UnlockCondition",
    # Pour engine
    "PourCheck",
    "PourRejection",
    "PourResult",
    "apply_unlocks",
    "can_pour",
    "count_sorted",
    "execute_pour",
    "is_level_complete",
    "is_sorted",
    # Scoring
    "StarThreshold",
    "calculate_reward",
    "calculate_stars",
    # Levels
    "Difficulty",
    "Level",
    "LevelDataError",
    "MAX_LEVEL",
    "MIN_LEVEL",
    "generate_level",
    "get_level",
    "shuffle_segments",
]
