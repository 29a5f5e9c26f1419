"""
Board State Module - Immutable container configuration for the solver.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

from src.puzzle.models import Container
from src.puzzle.pour import apply_unlocks, execute_pour, is_level_complete

if TYPE_CHECKING:
    from .move import PourMove


def canonical_key(containers: Sequence[Container]) -> str:
    """
    Encode a configuration as a canonical string.

    Each container contributes its lock flag and bottom-to-top color
    sequence; containers are joined in order. Colors are written with
    repr() so tokens of different types, or tokens containing the
    separators, never collide. Two configurations share a key iff every
    container matches in position, lock status and colors.

    Args:
        containers: Container configuration

    Returns:
        Key such as "0:'red','blue'|0:|1:"
    """
    return "|".join(
        f"{'1' if container.locked else '0'}:{','.join(repr(color) for color in container.colors)}"
        for container in containers
    )



@dataclass(frozen=True)
class BoardState:
    """
    Immutable solver view of a container configuration.

    Equality and hashing use the canonical key only, so two boards built
    from different container objects with the same configuration compare
    equal.

    Attributes:
        containers: Tuple of immutable containers
        key: Canonical state key (derived)
    """
    containers: Tuple[Container, ...]
    key: str = field(init=False, compare=False, repr=False)

    def __post_init__(self):
        if not isinstance(self.containers, tuple):
            object.__setattr__(self, "containers", tuple(self.containers))
        object.__setattr__(self, "key", canonical_key(self.containers))

    @classmethod
    def from_containers(cls, containers: Sequence[Container]) -> 'BoardState':
        """
        Create BoardState from any sequence of containers.

        Args:
            containers: Current configuration (e.g. a session snapshot)

        Returns:
            BoardState instance
        """
        return cls(containers=tuple(containers))

    @property
    def is_complete(self) -> bool:
        """True if the configuration satisfies level completion."""
        return is_level_complete(self.containers)

    @property
    def cache_key(self) -> str:
        """
        Key identifying everything a solver result depends on.

        Extends the canonical key with container ids (moves refer to them),
        capacities and unlock requirements.
        """
        extras = ",".join(
            f"{container.id!r}:{container.capacity}"
            f"{'/' + str(container.unlock_condition.requirement) if container.unlock_condition else ''}"
            for container in self.containers
        )
        return f"{self.key}#{extras}"

    def apply_move(self, move: 'PourMove') -> Optional['BoardState']:
        """
        Apply a pour and propagate unlocks.

        Args:
            move: Move to apply

        Returns:
            New BoardState, or None if the pour was declined
        """
        result = execute_pour(self.containers, move.source_id, move.target_id)
        if not result.success or not result.moved:
            return None
        return BoardState(containers=apply_unlocks(result.containers))

    def index_of(self, container_id: str) -> int:
        """
        Position of a container in the configuration.

        Raises:
            KeyError: If the id is not present
        """
        for i, container in enumerate(self.containers):
            if container.id == container_id:
                return i
        raise KeyError(container_id)

    def count_segments(self) -> int:
        """Total segments across all containers."""
        return sum(container.size for container in self.containers)

    def __hash__(self):
        """Enable using BoardState as dict key or in sets."""
        return hash(self.key)

    def __eq__(self, other):
        """Boards are equal when their canonical keys match."""
        if not isinstance(other, BoardState):
            return False
        return self.key == other.key

    def to_list(self) -> List[List[object]]:
        """
        Convert to nested color lists (bottom to top per container).

        Returns:
            List of color lists
        """
        return [list(container.colors) for container in self.containers]
