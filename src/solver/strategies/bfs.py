"""
Breadth-First Strategy - Minimum-move search over container configurations.

Every pour costs one move, so the first completed configuration taken off
the BFS queue is reached by a shortest move sequence. The search is bounded
by the context's iteration budget (one iteration per pour attempt) because
boards with 15+ containers and many colors have very large state spaces.
"""

import logging
import time
from collections import deque
from typing import Deque, Dict, List, Optional, Tuple

from ..base import SolverStrategy
from ..board import BoardState
from ..context import SolutionContext
from ..factory import register_strategy
from ..move import PourMove
from ..solution import Solution, SolutionMetrics

logger = logging.getLogger(__name__)

# Iterations between progress reports
PROGRESS_INTERVAL = 10_000


@register_strategy
class BreadthFirstStrategy(SolverStrategy):
    """
    Exhaustive breadth-first search with visited-state deduplication.

    States are deduplicated by canonical key (lock flags and color stacks
    per container), so container object identity never matters.
    """
    name = "bfs"
    description = "Breadth-first search (optimal) - Minimum pours to solve"
    optimal = True

    def solve(self, context: SolutionContext) -> Solution:
        """
        Search for a shortest solution from the context board.

        Args:
            context: Solution context with board, iteration bound, cancellation

        Returns:
            Solution; solved=False when the bound is hit or the search is cancelled
        """
        start_time = time.perf_counter()
        board = context.board

        if board.is_complete:
            return self._build_solution([], 0, 1, 0, start_time, solved=True)

        # key -> (parent key, move that produced it); root maps to None
        parents: Dict[str, Optional[Tuple[str, PourMove]]] = {board.key: None}
        queue: Deque[BoardState] = deque([board])
        iterations = 0
        pruned = 0
        next_report = PROGRESS_INTERVAL

        while queue and not context.budget_exhausted(iterations):
            current = queue.popleft()

            if current.is_complete:
                moves = self._reconstruct(parents, current.key)
                logger.debug(
                    f"[BFS] Solved in {len(moves)} moves, "
                    f"{iterations} iterations, {len(parents)} states"
                )
                return self._build_solution(
                    moves, iterations, len(parents), pruned, start_time, solved=True
                )

            if self._check_cancelled(context):
                logger.debug(f"[BFS] Cancelled after {iterations} iterations")
                return self._build_solution(
                    [], iterations, len(parents), pruned, start_time,
                    solved=False, was_cancelled=True
                )

            candidates, skipped = self.candidate_moves(current)
            pruned += skipped

            for move in candidates:
                if context.budget_exhausted(iterations):
                    break
                iterations += 1

                successor = current.apply_move(move)
                if successor is None or successor.key in parents:
                    continue

                parents[successor.key] = (current.key, move)
                queue.append(successor)

            if iterations >= next_report:
                next_report += PROGRESS_INTERVAL
                context.report_progress(iterations, len(parents))

        logger.debug(
            f"[BFS] No solution within {context.max_iterations} iterations "
            f"({len(parents)} states, queue exhausted={not queue})"
        )
        return self._build_solution(
            [], iterations, len(parents), pruned, start_time, solved=False
        )

    @staticmethod
    def _reconstruct(
        parents: Dict[str, Optional[Tuple[str, PourMove]]],
        key: str
    ) -> List[PourMove]:
        """Walk parent links back to the root and return moves in play order."""
        moves: List[PourMove] = []
        link = parents[key]
        while link is not None:
            parent_key, move = link
            moves.append(move)
            link = parents[parent_key]
        moves.reverse()
        return moves

    def _build_solution(
        self,
        moves: List[PourMove],
        iterations: int,
        states_explored: int,
        pruned: int,
        start_time: float,
        solved: bool,
        was_cancelled: bool = False
    ) -> Solution:
        """Build Solution object from search results."""
        elapsed_ms = (time.perf_counter() - start_time) * 1000

        return Solution(
            solved=solved,
            moves=moves,
            iterations=iterations,
            was_cancelled=was_cancelled,
            metrics=SolutionMetrics(
                computation_time_ms=elapsed_ms,
                states_explored=states_explored,
                pruned_branches=pruned,
                strategy_name=self.name
            )
        )
