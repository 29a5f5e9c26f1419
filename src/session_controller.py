"""
Session Controller Module - Game session state machine for one active level.

This module provides the SessionController which owns the live GameSession:
it runs the two-tap pour protocol, undo/redo/reset, move and time budgets,
scoring on completion, and generation-tagged solver requests for par and
hints.

State Flow:
    IDLE --start_level--> ACTIVE --level complete--> COMPLETE
                            |  ^ <-------undo--------'
              budget hit 0  |  | undo
                            v  |
                           FAILED

    start_level/reset from any state -> ACTIVE (new generation)

Undo and redo restore whole snapshots, flags included, so both work from
COMPLETE and FAILED whenever the respective history is non-empty.

Solver work is delegated to a dispatcher (see src.solver_worker for the
Qt background dispatcher). Each request carries the generation it was made
for; results arriving after a level change or reset are discarded.
"""

import logging
import random
import threading
from dataclasses import dataclass, field, replace
from enum import Enum, auto
from typing import Callable, List, Optional, Tuple

from src.puzzle import (
    Container,
    Level,
    LevelDataError,
    PourRejection,
    apply_unlocks,
    calculate_reward,
    calculate_stars,
    execute_pour,
    get_level,
    is_level_complete,
    shuffle_segments,
)
from src.solver import (
    DEFAULT_MAX_ITERATIONS,
    PourMove,
    Solution,
    canonical_key,
    find_optimal_solution,
)

logger = logging.getLogger(__name__)


__all__ = [
    "SessionState",
    "TapOutcome",
    "TapResult",
    "SolverRequestKind",
    "SolverRequest",
    "GameSession",
    "SessionController",
]


class SessionState(Enum):
    """
    Session states.

    States:
        IDLE: No level loaded
        ACTIVE: Container taps accepted
        COMPLETE: Level solved (undo reopens the attempt)
        FAILED: Move or time budget exhausted (undo reopens the attempt)
    """
    IDLE = auto()
    ACTIVE = auto()
    COMPLETE = auto()
    FAILED = auto()


class TapOutcome(Enum):
    """What a container tap did."""
    SELECTED = auto()
    DESELECTED = auto()
    POURED = auto()
    DECLINED = auto()
    IGNORED = auto()


@dataclass(frozen=True)
class TapResult:
    """
    Result of a container tap.

    Attributes:
        outcome: What the tap did
        reason: Rejection reason for declined taps
        moved: Segments transferred by a successful pour
    """
    outcome: TapOutcome
    reason: Optional[PourRejection] = None
    moved: int = 0


class SolverRequestKind(Enum):
    PAR = auto()
    HINT = auto()


@dataclass(frozen=True)
class SolverRequest:
    """
    One solver query tagged with the session it was made for.

    Attributes:
        kind: Par (initial board) or hint (current board)
        generation: Session generation at request time
        board_key: Canonical key of the board being solved
        containers: Immutable snapshot to solve
        max_iterations: Pour-attempt bound
        timeout_sec: Optional wall-clock limit for the search
        cancel_flag: Set when the request becomes stale
    """
    kind: SolverRequestKind
    generation: int
    board_key: str
    containers: Tuple[Container, ...]
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    timeout_sec: Optional[float] = None
    cancel_flag: threading.Event = field(default_factory=threading.Event, compare=False, repr=False)

    @property
    def is_cancelled(self) -> bool:
        return self.cancel_flag.is_set()


@dataclass(frozen=True)
class GameSession:
    """
    Immutable snapshot of the live session.

    Every change produces a new snapshot; undo/redo history stores them
    as-is.

    Attributes:
        level_index: Level being played
        generation: Bumped on every start/reset
        containers: Current configuration
        state: Session state
        moves: Successful pours so far
        selected_id: Pending pour source, if any
        remaining_moves: Moves left (None when the move budget is off)
        time_remaining: Seconds left (None when the time budget is off)
        elapsed_seconds: Seconds spent active
        stars: Stars earned once complete
        coins_earned: Coin reward once complete
        par_moves: Solver optimum for the initial board, once known
        hint: Suggested next move for the current board, if computed
        failure_reason: "moves" or "time" when failed
    """
    level_index: int
    generation: int
    containers: Tuple[Container, ...]
    state: SessionState = SessionState.ACTIVE
    moves: int = 0
    selected_id: Optional[str] = None
    remaining_moves: Optional[int] = None
    time_remaining: Optional[int] = None
    elapsed_seconds: int = 0
    stars: int = 0
    coins_earned: int = 0
    par_moves: Optional[int] = None
    hint: Optional[PourMove] = None
    failure_reason: str = ""

    @property
    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    @property
    def is_complete(self) -> bool:
        return self.state == SessionState.COMPLETE

    @property
    def is_failed(self) -> bool:
        return self.state == SessionState.FAILED

    @property
    def board_key(self) -> str:
        """Canonical key of the current configuration."""
        return canonical_key(self.containers)

    def container(self, container_id: str) -> Optional[Container]:
        """Look up a container by id (None if absent)."""
        for container in self.containers:
            if container.id == container_id:
                return container
        return None


class SessionController:
    """
    Owns the active GameSession and serializes every mutation.

    All entry points take one re-entrant lock, so taps, undo/redo, ticks and
    solver results never interleave. Expected conditions (invalid pours,
    empty history, unsolvable boards) come back as result values; only a
    broken level template raises.

    Dispatchers must provide submit(request, on_result); without one,
    solver requests run synchronously in the calling thread.
    """

    def __init__(
        self,
        level_provider: Callable[[int], Level] = get_level,
        dispatcher=None,
        clock=None,
        progress=None,
        enforce_move_limit: bool = True,
        enforce_time_limit: bool = True,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
        strategy_name: Optional[str] = None,
        solver_timeout_sec: Optional[float] = None,
        auto_par: bool = True,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize the controller in the IDLE state.

        Args:
            level_provider: Maps a level index to its template
            dispatcher: Background solver dispatcher (None = run inline)
            clock: Countdown clock with start()/stop()/is_running
            progress: Progress store with record_result(level, stars)
            enforce_move_limit: Fail when the move budget runs out
            enforce_time_limit: Fail when the time budget runs out
            max_iterations: Iteration bound for solver requests
            strategy_name: Solver strategy for inline requests
            solver_timeout_sec: Wall-clock limit per solver request
            auto_par: Request the par solution whenever a level starts
            rng: Random source for session-start shuffles
        """
        self._level_provider = level_provider
        self._dispatcher = dispatcher
        self._clock = clock
        self._progress = progress
        self.enforce_move_limit = enforce_move_limit
        self.enforce_time_limit = enforce_time_limit
        self.max_iterations = max_iterations
        self.strategy_name = strategy_name
        self.solver_timeout_sec = solver_timeout_sec
        self.auto_par = auto_par
        self._rng = rng if rng is not None else random.Random()

        self._lock = threading.RLock()
        self._level: Optional[Level] = None
        self._initial_containers: Tuple[Container, ...] = ()
        self._session: Optional[GameSession] = None
        self._generation = 0
        self._undo_stack: List[GameSession] = []
        self._redo_stack: List[GameSession] = []
        self._pending: List[SolverRequest] = []
        self._listeners: List[Callable[[GameSession], None]] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def session(self) -> Optional[GameSession]:
        """Current session snapshot (None while idle)."""
        return self._session

    @property
    def state(self) -> SessionState:
        if self._session is None:
            return SessionState.IDLE
        return self._session.state

    @property
    def level(self) -> Optional[Level]:
        return self._level

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def initial_containers(self) -> Tuple[Container, ...]:
        """Configuration the current attempt started from."""
        return self._initial_containers

    @property
    def pending_requests(self) -> List[SolverRequest]:
        with self._lock:
            return list(self._pending)

    @property
    def can_undo(self) -> bool:
        with self._lock:
            return bool(self._undo_stack)

    @property
    def can_redo(self) -> bool:
        with self._lock:
            return bool(self._redo_stack)

    def add_listener(self, callback: Callable[[GameSession], None]) -> None:
        """Register a callback invoked with every new session snapshot."""
        self._listeners.append(callback)

    # ------------------------------------------------------------------
    # Level lifecycle
    # ------------------------------------------------------------------

    def start_level(self, level_index: int) -> GameSession:
        """
        Start (or restart) a level.

        Containers come from the immutable template; levels flagged with
        randomize_on_start get a fresh independent shuffle every time.

        Args:
            level_index: Level to play

        Returns:
            New ACTIVE session snapshot

        Raises:
            ValueError: Unknown level index
            LevelDataError: Level template without containers
        """
        level = self._level_provider(level_index)
        if not level.containers:
            raise LevelDataError(f"Level {level_index} has no containers")

        with self._lock:
            self._cancel_pending()
            self._generation += 1

            containers = level.containers
            if level.randomize_on_start:
                containers = shuffle_segments(containers, self._rng)

            self._level = level
            self._initial_containers = containers
            self._undo_stack.clear()
            self._redo_stack.clear()

            session = GameSession(
                level_index=level.index,
                generation=self._generation,
                containers=containers,
                remaining_moves=level.move_limit if self.enforce_move_limit else None,
                time_remaining=level.time_limit_seconds if self.enforce_time_limit else None,
            )
            if is_level_complete(containers):
                # A shuffle can in principle deal a solved board
                session = self._completed(session, level)

            logger.info(
                f"Level {level.index} '{level.name}' started (generation {self._generation}, "
                f"{len(containers)} containers, limit {level.move_limit} moves / {level.time_limit_seconds}s)"
            )
            self._set_session(session)
            if self._clock is not None and session.is_active:
                self._clock.start()
            self._sync_clock()

        if self.auto_par:
            self.request_par()
        return self._session

    def reset(self) -> Optional[GameSession]:
        """
        Restart the current level from its template, discarding history.

        Returns:
            New session snapshot, or None if no level was loaded
        """
        if self._level is None:
            return None
        logger.info(f"Level {self._level.index} reset")
        return self.start_level(self._level.index)

    # ------------------------------------------------------------------
    # Player input
    # ------------------------------------------------------------------

    def tap(self, container_id: str) -> TapResult:
        """
        Handle a container tap using the two-tap pour protocol.

        Args:
            container_id: Id of the tapped container

        Returns:
            TapResult describing what happened
        """
        with self._lock:
            session = self._session
            if session is None or not session.is_active:
                return TapResult(TapOutcome.IGNORED)

            container = session.container(container_id)
            if container is None:
                logger.warning(f"Tap on unknown container '{container_id}' ignored")
                return TapResult(TapOutcome.DECLINED, PourRejection.UNKNOWN_CONTAINER)

            if container.locked:
                self._set_session(replace(session, selected_id=None))
                return TapResult(TapOutcome.DECLINED, PourRejection.LOCKED)

            if session.selected_id is None:
                if container.is_empty:
                    return TapResult(TapOutcome.DECLINED, PourRejection.SOURCE_EMPTY)
                self._set_session(replace(session, selected_id=container_id))
                return TapResult(TapOutcome.SELECTED)

            if session.selected_id == container_id:
                self._set_session(replace(session, selected_id=None))
                return TapResult(TapOutcome.DESELECTED)

            result = execute_pour(session.containers, session.selected_id, container_id)
            if not result.success:
                logger.debug(f"Pour {session.selected_id} -> {container_id} declined: {result.reason.value}")
                self._set_session(replace(session, selected_id=None))
                return TapResult(TapOutcome.DECLINED, result.reason)

            self._apply_pour(session, result.containers)
            logger.debug(
                f"Pour {session.selected_id} -> {container_id}: {result.moved_count} segment(s), "
                f"move {self._session.moves}"
            )
            return TapResult(TapOutcome.POURED, moved=result.moved_count)

    def _apply_pour(self, session: GameSession, containers: Tuple[Container, ...]) -> None:
        """Record history and install the post-pour snapshot."""
        self._undo_stack.append(replace(session, selected_id=None, hint=None))
        self._redo_stack.clear()

        unlocked = apply_unlocks(containers)
        if unlocked is not containers:
            newly = [c.id for old, c in zip(containers, unlocked) if old.locked and not c.locked]
            logger.info(f"Unlocked containers: {', '.join(newly)}")

        remaining = session.remaining_moves
        if remaining is not None:
            remaining = max(0, remaining - 1)

        updated = replace(
            session,
            containers=unlocked,
            moves=session.moves + 1,
            selected_id=None,
            remaining_moves=remaining,
            hint=None,
        )

        if is_level_complete(unlocked):
            updated = self._completed(updated, self._level)
        elif remaining == 0:
            logger.info(f"Level {session.level_index} failed: move limit reached")
            updated = replace(updated, state=SessionState.FAILED, failure_reason="moves")

        self._set_session(updated)
        self._sync_clock()

    def _completed(self, session: GameSession, level: Level) -> GameSession:
        """Score a solved board and record progress."""
        baseline = session.par_moves if session.par_moves is not None else level.par_moves
        stars = calculate_stars(session.moves, session.elapsed_seconds, level.star_thresholds)
        coins = calculate_reward(session.moves, baseline)

        logger.info(
            f"Level {level.index} complete: {session.moves} moves, {session.elapsed_seconds}s, "
            f"{stars} stars, {coins} coins (baseline {baseline})"
        )

        if self._progress is not None:
            self._progress.record_result(level.index, stars)

        return replace(
            session,
            state=SessionState.COMPLETE,
            selected_id=None,
            stars=stars,
            coins_earned=coins,
        )

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def undo(self) -> bool:
        """
        Restore the snapshot taken before the last pour.

        Completion and failure flags come back with the snapshot, so undo
        also reopens a COMPLETE or FAILED attempt.

        Returns:
            True if a snapshot was restored, False if nothing to undo
        """
        with self._lock:
            if not self._undo_stack:
                return False
            snapshot = self._undo_stack.pop()
            self._redo_stack.append(replace(self._session, selected_id=None, hint=None))
            self._restore(snapshot)
            logger.debug(f"Undo -> move {snapshot.moves}")
            return True

    def redo(self) -> bool:
        """
        Re-apply the most recently undone pour.

        Returns:
            True if a snapshot was restored, False if nothing to redo
        """
        with self._lock:
            if not self._redo_stack:
                return False
            snapshot = self._redo_stack.pop()
            self._undo_stack.append(replace(self._session, selected_id=None, hint=None))
            self._restore(snapshot)
            logger.debug(f"Redo -> move {snapshot.moves}")
            return True

    def _restore(self, snapshot: GameSession) -> None:
        """Install a history snapshot; elapsed time keeps counting."""
        current = self._session
        self._set_session(replace(
            snapshot,
            selected_id=None,
            hint=None,
            elapsed_seconds=current.elapsed_seconds,
        ))
        self._sync_clock()

    # ------------------------------------------------------------------
    # Countdown
    # ------------------------------------------------------------------

    def tick(self) -> None:
        """
        Advance the session clock by one second.

        Called by the countdown clock while the session is ACTIVE. With the
        time budget enforced, reaching zero fails the session immediately.
        """
        with self._lock:
            session = self._session
            if session is None or not session.is_active:
                self._sync_clock()
                return

            remaining = session.time_remaining
            if remaining is not None:
                remaining = max(0, remaining - 1)

            updated = replace(
                session,
                elapsed_seconds=session.elapsed_seconds + 1,
                time_remaining=remaining,
            )
            if remaining == 0:
                logger.info(f"Level {session.level_index} failed: time limit reached")
                updated = replace(
                    updated,
                    state=SessionState.FAILED,
                    selected_id=None,
                    failure_reason="time",
                )
            self._set_session(updated)
            self._sync_clock()

    def _sync_clock(self) -> None:
        """Keep the countdown running only while the session is ACTIVE."""
        if self._clock is None:
            return
        if self._session is not None and self._session.is_active:
            if not self._clock.is_running:
                self._clock.start()
        elif self._clock.is_running:
            self._clock.stop()

    # ------------------------------------------------------------------
    # Solver requests
    # ------------------------------------------------------------------

    def request_par(self) -> Optional[SolverRequest]:
        """
        Ask for the optimal move count of the attempt's initial board.

        Returns:
            The dispatched request, or None while idle
        """
        with self._lock:
            if self._session is None:
                return None
            request = self._new_request(SolverRequestKind.PAR, self._initial_containers)
        self._dispatch(request)
        return request

    def request_hint(self) -> Optional[SolverRequest]:
        """
        Ask for the next best move from the current board.

        Returns:
            The dispatched request, or None if the session is not ACTIVE
        """
        with self._lock:
            if self._session is None or not self._session.is_active:
                return None
            request = self._new_request(SolverRequestKind.HINT, self._session.containers)
        self._dispatch(request)
        return request

    def _new_request(self, kind: SolverRequestKind, containers: Tuple[Container, ...]) -> SolverRequest:
        request = SolverRequest(
            kind=kind,
            generation=self._generation,
            board_key=canonical_key(containers),
            containers=containers,
            max_iterations=self.max_iterations,
            timeout_sec=self.solver_timeout_sec,
        )
        self._pending.append(request)
        logger.debug(f"Solver request {kind.name} for generation {self._generation}")
        return request

    def _dispatch(self, request: SolverRequest) -> None:
        if self._dispatcher is not None:
            self._dispatcher.submit(request, self.apply_solver_result)
            return
        solution = find_optimal_solution(
            request.containers,
            request.max_iterations,
            strategy_name=self.strategy_name,
            cancel_flag=request.cancel_flag,
            timeout_sec=request.timeout_sec,
        )
        self.apply_solver_result(request, solution)

    def _cancel_pending(self) -> None:
        for request in self._pending:
            request.cancel_flag.set()
        if self._pending:
            logger.debug(f"Cancelled {len(self._pending)} pending solver request(s)")
        self._pending.clear()

    def apply_solver_result(self, request: SolverRequest, solution: Solution) -> bool:
        """
        Apply a finished solver request if it still matches the session.

        Results for an older generation (level changed or reset), for a
        board that has since changed (hints), or from a cancelled search are
        discarded.

        Args:
            request: The request as dispatched
            solution: Solver output

        Returns:
            True if the session was updated
        """
        with self._lock:
            if request in self._pending:
                self._pending.remove(request)

            session = self._session
            if session is None or request.generation != self._generation:
                logger.warning(
                    f"Discarding stale {request.kind.name} result "
                    f"(generation {request.generation}, current {self._generation})"
                )
                return False

            if solution.was_cancelled:
                logger.debug(f"Discarding cancelled {request.kind.name} result")
                return False

            if not solution.solved:
                logger.info(
                    f"No {request.kind.name.lower()} available within "
                    f"{request.max_iterations} iterations"
                )
                return False

            if request.kind == SolverRequestKind.PAR:
                self._apply_par(solution.move_count)
                return True

            if not session.is_active or session.board_key != request.board_key:
                logger.debug("Discarding hint computed for an earlier board")
                return False

            self._set_session(replace(session, hint=solution.first_move))
            logger.info(f"Hint: {solution.first_move}")
            return True

    def _apply_par(self, par_moves: int) -> None:
        """Stamp the par value on the live snapshot and its history."""
        self._undo_stack = [replace(s, par_moves=par_moves) for s in self._undo_stack]
        self._redo_stack = [replace(s, par_moves=par_moves) for s in self._redo_stack]
        self._set_session(replace(self._session, par_moves=par_moves))
        logger.info(f"Par for level {self._session.level_index}: {par_moves} moves")

    # ------------------------------------------------------------------

    def _set_session(self, session: GameSession) -> None:
        self._session = session
        for callback in list(self._listeners):
            callback(session)
