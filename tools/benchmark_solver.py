#!/usr/bin/env python3
"""
Solver benchmark over a range of generated levels.

Reports, per level, whether the solver found an optimal solution within the
iteration bound, its move count against the static par estimate, and the
time taken. The solution cache is bypassed so every level is searched.

Usage:
    python tools/benchmark_solver.py [--start N] [--end M] [--max-iterations I]

Examples:
    python tools/benchmark_solver.py --start 1 --end 20
    python tools/benchmark_solver.py --start 100 --end 110 --max-iterations 50000
"""

import argparse
import sys
import time
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.puzzle import MAX_LEVEL, MIN_LEVEL, get_level
from src.solver import DEFAULT_MAX_ITERATIONS, find_optimal_solution, get_strategy_names


def benchmark_level(level_index: int, max_iterations: int, strategy_name: str) -> dict:
    """
    Solve one level from its template configuration.

    Args:
        level_index: Level to solve
        max_iterations: Pour-attempt bound
        strategy_name: Registered strategy

    Returns:
        Dict with timing and solution results.
    """
    level = get_level(level_index)
    start = time.perf_counter()
    solution = find_optimal_solution(
        level.containers,
        max_iterations,
        strategy_name=strategy_name,
        cache=None,
    )
    elapsed = time.perf_counter() - start

    return {
        "level": level_index,
        "containers": len(level.containers),
        "colors": level.color_count,
        "solved": solution.solved,
        "moves": solution.move_count if solution.solved else None,
        "par_estimate": level.par_moves,
        "iterations": solution.iterations,
        "states": solution.metrics.states_explored,
        "elapsed_ms": elapsed * 1000,
    }


def main():
    parser = argparse.ArgumentParser(description="Benchmark the solver on generated levels")
    parser.add_argument("--start", type=int, default=MIN_LEVEL, help="First level")
    parser.add_argument("--end", type=int, default=10, help="Last level (inclusive)")
    parser.add_argument("--max-iterations", type=int, default=DEFAULT_MAX_ITERATIONS,
                        help="Solver iteration bound")
    parser.add_argument("--strategy", choices=get_strategy_names(), default="bfs",
                        help="Solver strategy")
    args = parser.parse_args()

    start = max(MIN_LEVEL, args.start)
    end = min(MAX_LEVEL, args.end)

    print(f"{'Level':>5} {'Tubes':>5} {'Colors':>6} {'Moves':>5} {'Par~':>5} "
          f"{'Iter':>8} {'States':>8} {'ms':>9}")
    print("-" * 60)

    solved = 0
    total_ms = 0.0
    for level_index in range(start, end + 1):
        result = benchmark_level(level_index, args.max_iterations, args.strategy)
        total_ms += result["elapsed_ms"]
        if result["solved"]:
            solved += 1
        moves = result["moves"] if result["moves"] is not None else "-"
        print(f"{result['level']:>5} {result['containers']:>5} {result['colors']:>6} {moves:>5} "
              f"{result['par_estimate']:>5} {result['iterations']:>8} {result['states']:>8} "
              f"{result['elapsed_ms']:>9.1f}")

    count = end - start + 1
    if count > 0:
        print("-" * 60)
        print(f"Solved {solved}/{count} levels, {total_ms / count:.1f}ms average")


if __name__ == "__main__":
    main()
