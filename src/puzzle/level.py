"""
Level Module - Immutable level templates.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple

from .models import Container
from .scoring import StarThreshold


class LevelDataError(ValueError):
    """Raised when a level template is structurally invalid."""


class Difficulty(str, Enum):
    """Difficulty tag derived from the level index band."""
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    EXPERT = "expert"
    MASTER = "master"
    LEGENDARY = "legendary"


@dataclass(frozen=True)
class Level:
    """
    Immutable level template.

    Sessions never modify a Level; they start from its containers and build
    new values from there.

    Attributes:
        index: Level number (1-based)
        name: Display name
        difficulty: Difficulty band tag
        containers: Initial container configuration
        move_limit: Move budget for the level
        time_limit_seconds: Time budget for the level
        star_thresholds: Star tiers, best first
        par_moves: Static estimate of the optimal move count
        randomize_on_start: Re-deal segments each time a session starts
        palette_name: Color theme name
    """
    index: int
    name: str
    difficulty: Difficulty
    containers: Tuple[Container, ...]
    move_limit: int
    time_limit_seconds: int
    star_thresholds: Tuple[StarThreshold, ...]
    par_moves: int
    randomize_on_start: bool = False
    palette_name: str = ""

    def __post_init__(self):
        if not isinstance(self.containers, tuple):
            object.__setattr__(self, "containers", tuple(self.containers))
        if not isinstance(self.star_thresholds, tuple):
            object.__setattr__(self, "star_thresholds", tuple(self.star_thresholds))
        if not self.containers:
            raise LevelDataError(f"Level {self.index} has no containers")
        ids = [container.id for container in self.containers]
        if len(set(ids)) != len(ids):
            raise LevelDataError(f"Level {self.index} has duplicate container ids")

    @property
    def color_count(self) -> int:
        """Number of distinct colors on the board."""
        return len({
            segment.color
            for container in self.containers
            for segment in container.segments
        })

    @property
    def empty_count(self) -> int:
        """Number of initially empty containers."""
        return sum(1 for container in self.containers if container.is_empty)
