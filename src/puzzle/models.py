"""
Puzzle Models Module - Immutable value types for segments and containers.
"""

from dataclasses import dataclass, replace
from typing import Any, Optional, Tuple


@dataclass(frozen=True)
class ColorSegment:
    """
    One unit of a single color inside a container.

    Attributes:
        id: Stable identity used for tracking/animation
        color: Opaque color token; gameplay compares segments by color only
    """
    id: str
    color: Any


@dataclass(frozen=True)
class UnlockCondition:
    """
    Unlock rule for a locked container.

    The only supported rule is "unlock once at least `requirement`
    containers are sorted" (empty containers count as sorted).

    Attributes:
        requirement: Minimum number of sorted containers
        description: Optional player-facing text
    """
    requirement: int
    description: str = ""

    def is_met(self, sorted_count: int) -> bool:
        """Check whether the given sorted-container count satisfies the rule."""
        return sorted_count >= self.requirement


@dataclass(frozen=True)
class Container:
    """
    Immutable fixed-capacity stack of color segments.

    Segments are ordered bottom (index 0) to top (last index). Any update
    returns a new Container; instances are never mutated in place.

    Attributes:
        id: Container identifier
        capacity: Maximum number of segments
        segments: Segments bottom to top
        locked: Locked containers accept no pours in or out
        unlock_condition: Rule that clears the lock, if any
        starter: Advisory flag for the suggested first container
    """
    id: str
    capacity: int
    segments: Tuple[ColorSegment, ...] = ()
    locked: bool = False
    unlock_condition: Optional[UnlockCondition] = None
    starter: bool = False

    def __post_init__(self):
        if self.capacity <= 0:
            raise ValueError(f"Container {self.id}: capacity must be positive, got {self.capacity}")
        if not isinstance(self.segments, tuple):
            object.__setattr__(self, "segments", tuple(self.segments))
        if len(self.segments) > self.capacity:
            raise ValueError(
                f"Container {self.id}: {len(self.segments)} segments exceed capacity {self.capacity}"
            )

    @classmethod
    def from_colors(cls, container_id: str, capacity: int, colors, **kwargs) -> 'Container':
        """
        Build a container from a bottom-to-top color sequence.

        Segment ids are derived from the container id and position.

        Args:
            container_id: Container identifier
            capacity: Maximum segment count
            colors: Iterable of color tokens, bottom first
            **kwargs: Extra Container fields (locked, unlock_condition, starter)

        Returns:
            Container instance
        """
        segments = tuple(
            ColorSegment(id=f"{container_id}-s{i}", color=color)
            for i, color in enumerate(colors)
        )
        return cls(id=container_id, capacity=capacity, segments=segments, **kwargs)

    @property
    def size(self) -> int:
        """Number of segments currently held."""
        return len(self.segments)

    @property
    def is_empty(self) -> bool:
        return not self.segments

    @property
    def is_full(self) -> bool:
        return len(self.segments) >= self.capacity

    @property
    def free_space(self) -> int:
        """Number of segments that can still be added."""
        return self.capacity - len(self.segments)

    @property
    def top_color(self) -> Optional[Any]:
        """Color of the top segment, or None when empty."""
        if not self.segments:
            return None
        return self.segments[-1].color

    @property
    def colors(self) -> Tuple[Any, ...]:
        """Color sequence bottom to top."""
        return tuple(segment.color for segment in self.segments)

    @property
    def is_uniform(self) -> bool:
        """True if every segment shares one color (vacuously true when empty)."""
        if not self.segments:
            return True
        first = self.segments[0].color
        return all(segment.color == first for segment in self.segments)

    @property
    def is_sorted(self) -> bool:
        """Empty, or full with a single color."""
        if not self.segments:
            return True
        return self.is_full and self.is_uniform

    def top_run_length(self) -> int:
        """
        Length of the contiguous same-color run at the top.

        Returns:
            Number of segments from the top sharing the top color (0 if empty)
        """
        if not self.segments:
            return 0
        top = self.segments[-1].color
        run = 0
        for segment in reversed(self.segments):
            if segment.color != top:
                break
            run += 1
        return run

    def with_segments(self, segments: Tuple[ColorSegment, ...]) -> 'Container':
        """Return a copy holding the given segments."""
        return replace(self, segments=tuple(segments))

    def unlocked(self) -> 'Container':
        """Return an unlocked copy with the unlock condition cleared."""
        return replace(self, locked=False, unlock_condition=None)
