"""
Solver Package - Optimal solution search for the tube sort puzzle.

This package provides a pluggable strategy framework for solving container
configurations. The built-in breadth-first strategy finds minimum-move
solutions used for par move counts and hints.

Public API:
    - BoardState: Immutable configuration with canonical state key
    - PourMove: Pour between two containers
    - Solution: Result of strategy computation
    - SolutionMetrics: Performance statistics
    - SolutionCache: Per-configuration result cache
    - SolutionContext: Bounds, cancellation and progress for strategies
    - SolverStrategy: Abstract base for strategies
    - create_strategy(): Factory function
    - find_optimal_solution(), find_hint(): Query interface

Usage:
    from src.solver import find_optimal_solution

    solution = find_optimal_solution(session.containers, max_iterations=50_000)
    if solution.solved:
        for move in solution.moves:
            print(f"Pour {move.source_id} into {move.target_id}")
"""

# Core data structures
from .board import BoardState, canonical_key
from .move import PourMove
from .solution import Solution, SolutionCache, SolutionMetrics
from .context import DEFAULT_MAX_ITERATIONS, SolutionContext

# Strategy framework
from .base import SolverStrategy
from .factory import (
    create_strategy,
    get_strategy_names,
    get_strategy_info,
    get_default_strategy_name,
    register_strategy,
    resolve_strategy_name,
)

# Import strategies to register them
from . import strategies

from .query import DEFAULT_CACHE, find_hint, find_optimal_solution

__all__ = [
    # Data structures
    "BoardState",
    "canonical_key",
    "PourMove",
    "Solution",
    "SolutionCache",
    "SolutionMetrics",
    "SolutionContext",
    "DEFAULT_MAX_ITERATIONS",
    # Strategy framework
    "SolverStrategy",
    "create_strategy",
    "get_strategy_names",
    "get_strategy_info",
    "get_default_strategy_name",
    "register_strategy",
    "resolve_strategy_name",
    # Queries
    "DEFAULT_CACHE",
    "find_hint",
    "find_optimal_solution",
]
