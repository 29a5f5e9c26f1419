"""
Tests for solver validation

Covers:
1. BoardState canonical keys and equality
2. Breadth-first optimality (cross-checked by exhaustive search)
3. Iteration bound, cancellation and timeout
4. Solution cache behaviour
5. Strategy registry

Usage:
    pytest tests/test_solver.py
"""

import random
import sys
import threading
import time
from collections import deque
from pathlib import Path

import pytest

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.puzzle import Container, UnlockCondition, apply_unlocks, execute_pour, is_level_complete
from src.solver import (
    BoardState,
    PourMove,
    SolutionCache,
    SolutionContext,
    canonical_key,
    create_strategy,
    find_hint,
    find_optimal_solution,
    get_strategy_info,
    get_strategy_names,
    resolve_strategy_name,
)


def tube(container_id, colors, capacity=2, **kwargs):
    return Container.from_colors(container_id, capacity, colors, **kwargs)


def three_move_board():
    """3 colors, 3 filled + 1 empty container; optimum is exactly 3 pours."""
    return (
        tube("A", ["red", "green"]),
        tube("B", ["green", "red"]),
        tube("C", ["blue", "blue"]),
        tube("D", []),
    )


def shortest_distance(containers, limit=12):
    """Exhaustive BFS over every ordered pair, without any pruning."""
    start = tuple(containers)
    if is_level_complete(start):
        return 0
    ids = [container.id for container in start]
    seen = {canonical_key(start)}
    queue = deque([(start, 0)])
    while queue:
        state, depth = queue.popleft()
        if depth >= limit:
            continue
        for source in ids:
            for target in ids:
                result = execute_pour(state, source, target)
                if not result.success:
                    continue
                nxt = apply_unlocks(result.containers)
                key = canonical_key(nxt)
                if key in seen:
                    continue
                if is_level_complete(nxt):
                    return depth + 1
                seen.add(key)
                queue.append((nxt, depth + 1))
    return None


def random_small_board(seed, capacity):
    rng = random.Random(seed)
    pool = ["red"] * capacity + ["blue"] * capacity
    while True:
        rng.shuffle(pool)
        filled = (
            tube("A", pool[:capacity], capacity),
            tube("B", pool[capacity:], capacity),
        )
        if not is_level_complete(filled):
            break
    return filled + (tube("C", [], capacity), tube("D", [], capacity))


# ----------------------------------------------------------------------
# BoardState
# ----------------------------------------------------------------------

def test_canonical_key_format():
    containers = (tube("A", ["red", "blue"]), tube("B", []), tube("L", [], locked=True))
    assert canonical_key(containers) == "0:'red','blue'|0:|1:"


def test_key_separates_token_types_and_separators():
    assert canonical_key((tube("A", [1, "1"]),)) != canonical_key((tube("A", ["1", "1"]),))
    assert canonical_key((tube("A", ["a,b"]),)) != canonical_key((tube("A", ["a", "b"]),))
    assert canonical_key((tube("A", ["x|0:y"]),)) != canonical_key((tube("A", ["x"]), tube("B", ["y"])))


def test_board_identity_ignores_object_identity():
    first = BoardState.from_containers(three_move_board())
    second = BoardState.from_containers(list(three_move_board()))

    assert first == second
    assert hash(first) == hash(second)
    assert len({first, second}) == 1


def test_board_key_depends_on_order_and_lock():
    board = three_move_board()
    swapped = (board[1], board[0]) + board[2:]
    locked = board[:3] + (tube("D", [], locked=True),)

    assert canonical_key(board) != canonical_key(swapped)
    assert canonical_key(board) != canonical_key(locked)


def test_apply_move_declined_returns_none():
    board = BoardState.from_containers(three_move_board())
    assert board.apply_move(PourMove.create("D", "A")) is None
    assert board.apply_move(PourMove.create("A", "C")) is None


def test_apply_move_does_not_touch_original():
    board = BoardState.from_containers(three_move_board())
    after = board.apply_move(PourMove.create("A", "D"))

    assert after is not None
    assert board.to_list() == [["red", "green"], ["green", "red"], ["blue", "blue"], []]
    assert after.to_list() == [["red"], ["green", "red"], ["blue", "blue"], ["green"]]
    assert after.count_segments() == board.count_segments()


# ----------------------------------------------------------------------
# Breadth-first search
# ----------------------------------------------------------------------

def test_three_move_fixture():
    solution = find_optimal_solution(three_move_board(), cache=None)

    assert solution.solved
    assert solution.move_count == 3
    assert not solution.was_cancelled
    final = solution.replay(BoardState.from_containers(three_move_board()))[-1]
    assert final.is_complete


def test_already_complete_board():
    containers = (tube("A", ["red", "red"]), tube("B", []))

    solution = find_optimal_solution(containers, cache=None)

    assert solution.solved
    assert solution.moves == []
    assert find_hint(containers, cache=None) is None


@pytest.mark.parametrize("seed", range(8))
@pytest.mark.parametrize("capacity", [2, 3])
def test_bfs_matches_exhaustive_search(seed, capacity):
    containers = random_small_board(seed, capacity)

    solution = find_optimal_solution(containers, cache=None)

    assert solution.solved
    assert solution.move_count == shortest_distance(containers)
    final = solution.replay(BoardState.from_containers(containers))[-1]
    assert is_level_complete(final.containers)


def test_unsolvable_board():
    # Both containers full and mismatched, nowhere to pour
    containers = (tube("A", ["red", "blue"]), tube("B", ["blue", "red"]))

    solution = find_optimal_solution(containers, cache=None)

    assert not solution.solved
    assert solution.moves == []
    assert not solution.was_cancelled
    assert find_hint(containers, cache=None) is None


def test_locked_container_is_never_used():
    never = UnlockCondition(requirement=10)
    locked = (
        tube("A", ["red", "blue"]),
        tube("B", ["blue", "red"]),
        tube("L", [], locked=True, unlock_condition=never),
    )
    opened = locked[:2] + (tube("L", []),)

    assert not find_optimal_solution(locked, cache=None).solved
    assert find_optimal_solution(opened, cache=None).solved


def test_solver_uses_unlocked_container():
    # L can unlock part way through some move orders
    containers = (
        tube("A", ["red", "blue"]),
        tube("B", ["blue", "red"]),
        tube("C", ["green", "green"]),
        tube("E", []),
        tube("L", [], locked=True, unlock_condition=UnlockCondition(requirement=3)),
    )

    solution = find_optimal_solution(containers, cache=None)

    assert solution.solved
    assert solution.move_count == shortest_distance(containers)


def test_hint_is_first_optimal_move():
    hint = find_hint(three_move_board(), cache=None)
    solution = find_optimal_solution(three_move_board(), cache=None)

    assert hint == solution.moves[0]
    board = BoardState.from_containers(three_move_board())
    follow_up = find_optimal_solution(board.apply_move(hint).containers, cache=None)
    assert follow_up.move_count == 2


def test_iteration_bound():
    solution = find_optimal_solution(three_move_board(), max_iterations=1, cache=None)

    assert not solution.solved
    assert solution.iterations <= 1


def test_cancelled_search():
    cancel = threading.Event()
    cancel.set()

    solution = find_optimal_solution(three_move_board(), cancel_flag=cancel, cache=None)

    assert solution.was_cancelled
    assert not solution.solved


def test_timeout_counts_as_cancellation():
    strategy = create_strategy("bfs")
    context = SolutionContext(
        board=BoardState.from_containers(three_move_board()),
        timeout_sec=0.0,
        start_time=time.monotonic() - 1.0,
    )

    solution = strategy.solve(context)

    assert solution.was_cancelled


def test_progress_reporting():
    reports = []
    strategy = create_strategy("bfs")
    context = SolutionContext(
        board=BoardState.from_containers(random_small_board(1, 3)),
        progress_callback=lambda iterations, states: reports.append((iterations, states)),
    )

    solution = strategy.solve(context)

    assert all(0 < iterations <= solution.iterations for iterations, _ in reports)
    assert all(states <= solution.metrics.states_explored for _, states in reports)


def test_solution_to_dict():
    solution = find_optimal_solution(three_move_board(), cache=None)
    data = solution.to_dict()

    assert data["solved"] is True
    assert len(data["moves"]) == 3
    assert data["iterations"] == solution.iterations


# ----------------------------------------------------------------------
# Cache
# ----------------------------------------------------------------------

class TestSolutionCache:

    def test_second_query_hits(self):
        cache = SolutionCache()
        first = find_optimal_solution(three_move_board(), cache=cache)
        second = find_optimal_solution(three_move_board(), cache=cache)

        assert second is first
        assert cache.hits == 1
        assert len(cache) == 1

    def test_unsolved_entry_not_reused_for_larger_bound(self):
        cache = SolutionCache()
        bounded = find_optimal_solution(three_move_board(), max_iterations=1, cache=cache)
        full = find_optimal_solution(three_move_board(), cache=cache)

        assert not bounded.solved
        assert full.solved

    def test_cancelled_not_stored(self):
        cache = SolutionCache()
        cancel = threading.Event()
        cancel.set()

        find_optimal_solution(three_move_board(), cancel_flag=cancel, cache=cache)

        assert len(cache) == 0

    def test_keyed_by_container_ids(self):
        cache = SolutionCache()
        renamed = tuple(
            Container(id=f"x-{c.id}", capacity=c.capacity, segments=c.segments)
            for c in three_move_board()
        )

        find_optimal_solution(three_move_board(), cache=cache)
        solution = find_optimal_solution(renamed, cache=cache)

        assert all(move.source_id.startswith("x-") for move in solution.moves)

    def test_keyed_by_strategy(self):
        cache = SolutionCache()
        board = BoardState.from_containers(three_move_board())
        solution = find_optimal_solution(three_move_board(), cache=None)

        cache.put(board, solution, "bfs")

        assert cache.get(board, 1000, "other") is None
        assert cache.get(board, 1000, "bfs") is solution

    def test_mixed_token_types_not_confused(self):
        cache = SolutionCache()
        solved = find_optimal_solution((tube("A", ["1", "1"]),), cache=cache)
        mixed = find_optimal_solution((tube("A", [1, "1"]),), cache=cache)

        assert solved.solved
        assert not mixed.solved
        assert cache.hits == 0
        assert len(cache) == 2

    def test_eviction(self):

        cache = SolutionCache(max_entries=1)
        find_optimal_solution(three_move_board(), cache=cache)
        find_optimal_solution(random_small_board(2, 2), cache=cache)

        assert len(cache) == 1
        cache.clear()
        assert len(cache) == 0


# ----------------------------------------------------------------------
# Registry
# ----------------------------------------------------------------------

def test_strategy_registry():
    assert "bfs" in get_strategy_names()
    info = {entry["name"]: entry for entry in get_strategy_info()}
    assert info["bfs"]["optimal"] is True


def test_unknown_strategy():
    with pytest.raises(ValueError):
        create_strategy("no-such-strategy")
    assert resolve_strategy_name("no-such-strategy") == "bfs"
