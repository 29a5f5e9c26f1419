"""
Solver Query Module - Par and hint queries over container configurations.

These are the entry points used by the session controller and the
background worker. Results are cached per strategy and configuration.
"""

import logging
import threading
from typing import Optional, Sequence

from src.puzzle.models import Container

from .board import BoardState
from .context import DEFAULT_MAX_ITERATIONS, SolutionContext
from .factory import create_strategy, get_default_strategy_name
from .move import PourMove
from .solution import Solution, SolutionCache

logger = logging.getLogger(__name__)

# Process-wide cache shared by par and hint queries
DEFAULT_CACHE = SolutionCache()


def find_optimal_solution(
    containers: Sequence[Container],
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    strategy_name: Optional[str] = None,
    cancel_flag: Optional[threading.Event] = None,
    timeout_sec: Optional[float] = None,
    cache: Optional[SolutionCache] = DEFAULT_CACHE
) -> Solution:
    """
    Solve a container configuration.

    Args:
        containers: Configuration to solve (never modified)
        max_iterations: Pour-attempt bound
        strategy_name: Registered strategy (default strategy if None)
        cancel_flag: Event that aborts the search when set
        timeout_sec: Optional wall-clock limit
        cache: Solution cache, or None to bypass caching

    Returns:
        Solution with solved flag, moves and iterations used
    """
    board = BoardState.from_containers(containers)
    strategy = create_strategy(strategy_name or get_default_strategy_name())

    if cache is not None:
        cached = cache.get(board, max_iterations, strategy.name)
        if cached is not None:
            logger.debug(f"Solution cache hit ({cached.move_count} moves)")
            return cached

    context = SolutionContext(
        board=board,
        max_iterations=max_iterations,
        timeout_sec=timeout_sec,
    )
    if cancel_flag is not None:
        context.cancel_flag = cancel_flag

    solution = strategy.solve(context)

    logger.info(
        f"Solver[{strategy.name}]: solved={solution.solved}, {solution.move_count} moves, "
        f"{solution.iterations} iterations ({solution.metrics.computation_time_ms:.1f}ms)"
    )

    if cache is not None:
        cache.put(board, solution, strategy.name)
    return solution


def find_hint(
    containers: Sequence[Container],
    max_iterations: int = DEFAULT_MAX_ITERATIONS,
    **kwargs
) -> Optional[PourMove]:
    """
    Suggest the next move from the current configuration.

    Args:
        containers: Current (in-progress) configuration
        max_iterations: Pour-attempt bound
        **kwargs: Forwarded to find_optimal_solution

    Returns:
        First move of an optimal solution, or None if none was found
    """
    return find_optimal_solution(containers, max_iterations, **kwargs).first_move
