"""
Solution Module - Result of strategy computation and solution caching.
"""

import logging
import threading
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .board import BoardState
from .move import PourMove

logger = logging.getLogger(__name__)


@dataclass
class SolutionMetrics:
    """
    Performance metrics for solution computation.

    Attributes:
        computation_time_ms: Time taken in milliseconds
        states_explored: Number of distinct board states visited
        pruned_branches: Number of container pairs skipped by the pre-filter
        strategy_name: Name of strategy that computed this solution
    """
    computation_time_ms: float = 0.0
    states_explored: int = 0
    pruned_branches: int = 0
    strategy_name: str = ""


@dataclass
class Solution:
    """
    Result of a strategy computation.

    A search that runs out of iterations is not an error: it returns
    solved=False, which callers present as "no hint available".

    Attributes:
        solved: True if a solving move sequence was found
        moves: Ordered pours reaching a completed board (empty if unsolved)
        iterations: Pour attempts made during the search
        was_cancelled: True if stopped by cancellation or timeout
        metrics: Performance statistics
    """
    solved: bool = False
    moves: List[PourMove] = field(default_factory=list)
    iterations: int = 0
    was_cancelled: bool = False
    metrics: SolutionMetrics = field(default_factory=SolutionMetrics)

    @property
    def move_count(self) -> int:
        """Number of moves in solution."""
        return len(self.moves)

    @property
    def has_moves(self) -> bool:
        """Check if solution has any moves."""
        return len(self.moves) > 0

    @property
    def first_move(self) -> Optional[PourMove]:
        """First move of the solution (the hint), or None."""
        if not self.solved or not self.moves:
            return None
        return self.moves[0]

    def get_move(self, index: int) -> PourMove:
        """
        Get move at specific index.

        Args:
            index: Move index (0-based)

        Returns:
            PourMove at index

        Raises:
            IndexError: If index out of range
        """
        return self.moves[index]

    def replay(self, board: BoardState) -> List[BoardState]:
        """
        Replay the moves from a starting board.

        Args:
            board: Board the solution was computed for

        Returns:
            Board states, starting with `board` and one per move

        Raises:
            ValueError: If a move is declined on the replayed board
        """
        states = [board]
        for move in self.moves:
            board = board.apply_move(move)
            if board is None:
                raise ValueError(f"Move {move} is not valid during replay")
            states.append(board)
        return states

    def to_dict(self) -> dict:
        """Query-interface view: {solved, moves, iterations}."""
        return {
            "solved": self.solved,
            "moves": [(move.source_id, move.target_id) for move in self.moves],
            "iterations": self.iterations,
        }


class SolutionCache:
    """
    Thread-safe LRU cache of solutions keyed by strategy and board configuration.

    A solution is a pure function of the configuration, so the par query at
    level start and a hint request on the untouched board share one search.
    Cancelled results are never stored.
    """

    def __init__(self, max_entries: int = 128):
        """
        Initialize the cache.

        Args:
            max_entries: Entries kept before the least recently used is dropped
        """
        self.max_entries = max_entries
        self._entries: "OrderedDict[Tuple[str, str], Solution]" = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, board: BoardState, max_iterations: int, strategy_name: str = "") -> Optional[Solution]:
        """
        Look up a cached solution.

        An unsolved entry only answers queries with the same or a smaller
        iteration bound.

        Args:
            board: Board to look up
            max_iterations: Iteration bound of the pending query
            strategy_name: Strategy that would run on a miss

        Returns:
            Cached Solution or None
        """
        with self._lock:
            key = (strategy_name, board.cache_key)
            solution = self._entries.get(key)
            if solution is None:
                self.misses += 1
                return None
            if not solution.solved and solution.iterations < max_iterations:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return solution

    def put(self, board: BoardState, solution: Solution, strategy_name: str = "") -> None:
        """
        Store a solution for a board.

        Args:
            board: Board the solution was computed for
            solution: Completed (not cancelled) solution
            strategy_name: Strategy that produced it
        """
        if solution.was_cancelled:
            return
        with self._lock:
            key = (strategy_name, board.cache_key)
            self._entries[key] = solution
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        """Drop all entries."""
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0
        logger.debug("Solution cache cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
