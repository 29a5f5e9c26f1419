"""
Pour Engine Module - Pour validation, execution and level completion rules.

All functions here are pure: they read immutable containers and return new
values, so they are safe to call from the solver threads as well as from the
session controller.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

from .models import ColorSegment, Container


class PourRejection(str, Enum):
    """Reason codes for a declined pour."""
    SOURCE_EMPTY = "source empty"
    SAME_CONTAINER = "same container"
    LOCKED = "locked"
    COLOR_MISMATCH = "color mismatch"
    TARGET_FULL = "target full"
    UNKNOWN_CONTAINER = "unknown container"


@dataclass(frozen=True)
class PourCheck:
    """
    Result of a pour validity check.

    Attributes:
        allowed: True if the pour may proceed
        reason: Rejection reason when not allowed
    """
    allowed: bool
    reason: Optional[PourRejection] = None

    def __bool__(self) -> bool:
        return self.allowed


@dataclass(frozen=True)
class PourResult:
    """
    Result of executing a pour.

    On failure `containers` is the unchanged input and `moved` is empty.

    Attributes:
        success: True if segments were transferred
        reason: Rejection reason on failure
        containers: Full container configuration after the pour
        moved: Segments transferred, in bottom-to-top order
    """
    success: bool
    reason: Optional[PourRejection] = None
    containers: Tuple[Container, ...] = ()
    moved: Tuple[ColorSegment, ...] = ()

    @property
    def moved_count(self) -> int:
        return len(self.moved)


_ALLOWED = PourCheck(allowed=True)


def can_pour(source: Container, target: Container) -> PourCheck:
    """
    Check whether the top run of `source` may be poured onto `target`.

    Args:
        source: Container to pour from
        target: Container to pour into

    Returns:
        PourCheck with the rejection reason when disallowed
    """
    if source.is_empty:
        return PourCheck(False, PourRejection.SOURCE_EMPTY)
    if source.id == target.id:
        return PourCheck(False, PourRejection.SAME_CONTAINER)
    if source.locked or target.locked:
        return PourCheck(False, PourRejection.LOCKED)
    if not target.is_empty and target.top_color != source.top_color:
        return PourCheck(False, PourRejection.COLOR_MISMATCH)
    if target.is_full:
        return PourCheck(False, PourRejection.TARGET_FULL)
    return _ALLOWED


def execute_pour(
    containers: Sequence[Container],
    source_id: str,
    target_id: str
) -> PourResult:
    """
    Pour the top same-color run from one container into another.

    Only as many segments as fit in the target are moved, so a pour may be
    partial. The input sequence is never modified.

    Args:
        containers: Current container configuration
        source_id: Id of the container to pour from
        target_id: Id of the container to pour into

    Returns:
        PourResult with the updated configuration and moved segments
    """
    containers = tuple(containers)
    index: Dict[str, int] = {container.id: i for i, container in enumerate(containers)}

    if source_id not in index or target_id not in index:
        return PourResult(False, PourRejection.UNKNOWN_CONTAINER, containers)

    source = containers[index[source_id]]
    target = containers[index[target_id]]

    check = can_pour(source, target)
    if not check.allowed:
        return PourResult(False, check.reason, containers)

    count = min(source.top_run_length(), target.free_space)
    moved = source.segments[len(source.segments) - count:]

    updated = list(containers)
    updated[index[source_id]] = source.with_segments(source.segments[:len(source.segments) - count])
    updated[index[target_id]] = target.with_segments(target.segments + moved)

    return PourResult(True, None, tuple(updated), moved)


def is_sorted(container: Container) -> bool:
    """Full and single-colored, or empty."""
    return container.is_sorted


def count_sorted(containers: Sequence[Container]) -> int:
    """Number of sorted containers (empty ones included)."""
    return sum(1 for container in containers if container.is_sorted)


def is_level_complete(containers: Sequence[Container]) -> bool:
    """
    Check the level-completion rule.

    Every container must be empty, or both full and uniformly colored.

    Args:
        containers: Container configuration

    Returns:
        True if the configuration is solved
    """
    for container in containers:
        if container.is_empty:
            continue
        if not (container.is_full and container.is_uniform):
            return False
    return True


def apply_unlocks(containers: Sequence[Container]) -> Tuple[Container, ...]:
    """
    Unlock every locked container whose unlock condition is satisfied.

    The sorted count is taken over the configuration as given; unlocked
    containers have their condition cleared.

    Args:
        containers: Container configuration after a pour

    Returns:
        New configuration (same objects where nothing changed)
    """
    containers = tuple(containers)
    sorted_count = count_sorted(containers)
    changed = False
    result = []
    for container in containers:
        condition = container.unlock_condition
        if container.locked and condition is not None and condition.is_met(sorted_count):
            result.append(container.unlocked())
            changed = True
        else:
            result.append(container)
    return tuple(result) if changed else containers
