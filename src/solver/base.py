"""
Base Strategy Module - Abstract base class for solving strategies.
"""

from abc import ABC, abstractmethod
from typing import List, Tuple

from src.puzzle.models import Container

from .board import BoardState
from .context import SolutionContext
from .move import PourMove
from .solution import Solution


class SolverStrategy(ABC):
    """
    Abstract base class for all solving strategies.

    Subclasses must implement the solve() method and define
    name and description class attributes.

    Attributes:
        name: Short identifier for the strategy
        description: Human-readable description
        optimal: True if solutions are guaranteed minimal in move count
    """
    name: str = "base"
    description: str = "Base strategy"
    optimal: bool = False

    @abstractmethod
    def solve(self, context: SolutionContext) -> Solution:
        """
        Compute a solution for the given board state.

        Must periodically check context.is_cancelled() and return an
        unsolved, cancelled Solution if True.

        Args:
            context: Solution context with board, bounds, cancellation

        Returns:
            Solution with moves and metrics
        """
        pass

    @staticmethod
    def should_skip(source: Container, target: Container) -> bool:
        """
        Cheap pre-filter for a (source, target) pair.

        Skips pairs that cannot pour (source empty or locked, target full,
        top colors differ) and pours of a full single-color container into an
        empty one, which only relabels where that color lives.

        Args:
            source: Container to pour from
            target: Container to pour into

        Returns:
            True if the pair should not be attempted
        """
        if source.is_empty or source.locked:
            return True
        if target.is_full:
            return True
        if target.is_empty:
            return source.is_full and source.is_uniform
        return target.top_color != source.top_color

    def candidate_moves(self, board: BoardState) -> Tuple[List[PourMove], int]:
        """
        Enumerate ordered container pairs surviving the pre-filter.

        Args:
            board: Current board state

        Returns:
            Tuple of (candidate moves, number of pairs pruned)
        """
        moves = []
        pruned = 0
        containers = board.containers
        for source in containers:
            for target in containers:
                if source.id == target.id:
                    continue
                if self.should_skip(source, target):
                    pruned += 1
                    continue
                moves.append(PourMove.create(source.id, target.id))
        return moves, pruned

    def _check_cancelled(self, context: SolutionContext) -> bool:
        """
        Convenience method to check cancellation.

        Args:
            context: Solution context

        Returns:
            True if strategy should stop
        """
        return context.is_cancelled()
