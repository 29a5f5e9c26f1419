"""
Move Module - A single pour between two containers.
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class PourMove:
    """
    A pour from one container to another.

    Containers are identified by id; translating ids to player-facing
    positions is left to the presentation layer.

    Attributes:
        source_id: Container poured from
        target_id: Container poured into
    """
    source_id: str
    target_id: str

    @classmethod
    def create(cls, source_id: str, target_id: str) -> 'PourMove':
        """
        Create a PourMove.

        Args:
            source_id: Container to pour from
            target_id: Container to pour into

        Returns:
            PourMove instance
        """
        return cls(source_id=source_id, target_id=target_id)

    def __str__(self) -> str:
        return f"{self.source_id} -> {self.target_id}"
