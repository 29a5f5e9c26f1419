"""
Tests for the Qt solver worker, dispatcher and countdown clock

Runs headless with a QCoreApplication; no event loop is started, queued
signals are delivered with processEvents().

Usage:
    pytest tests/test_worker.py
"""

import sys
import time
from pathlib import Path

import pytest
from PyQt5.QtCore import QCoreApplication

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.countdown import CountdownClock
from src.puzzle import Container, Difficulty, Level, StarThreshold
from src.session_controller import SessionController, SolverRequest, SolverRequestKind
from src.solver import canonical_key
from src.solver_worker import SolverDispatcher, SolverWorker


@pytest.fixture(scope="module")
def qapp():
    app = QCoreApplication.instance() or QCoreApplication([])
    yield app


def tube(container_id, colors, capacity=2):
    return Container.from_colors(container_id, capacity, colors)


def three_move_board():
    return (
        tube("A", ["red", "green"]),
        tube("B", ["green", "red"]),
        tube("C", ["blue", "blue"]),
        tube("D", []),
    )


def make_request(kind=SolverRequestKind.PAR, generation=1):
    containers = three_move_board()
    return SolverRequest(
        kind=kind,
        generation=generation,
        board_key=canonical_key(containers),
        containers=containers,
    )


def drain(worker, app):
    assert worker.wait(5000)
    for _ in range(5):
        app.processEvents()


def wait_until(predicate, app, timeout=5.0):
    deadline = time.monotonic() + timeout
    while not predicate() and time.monotonic() < deadline:
        app.processEvents()
        time.sleep(0.01)
    return predicate()


class TestSolverWorker:

    def test_run_emits_solution(self, qapp):
        request = make_request()
        worker = SolverWorker(request)
        received = []
        worker.solution_ready.connect(lambda req, solution: received.append((req, solution)))

        worker.run()

        assert len(received) == 1
        assert received[0][0] is request
        assert received[0][1].solved
        assert received[0][1].move_count == 3

    def test_run_reports_errors(self, qapp):
        worker = SolverWorker(make_request(), strategy_name="no-such-strategy")
        errors = []
        solutions = []
        worker.error_occurred.connect(errors.append)
        worker.solution_ready.connect(lambda req, solution: solutions.append(solution))

        worker.run()

        assert len(errors) == 1
        assert "no-such-strategy" in errors[0]
        assert len(solutions) == 1
        assert not solutions[0].solved
        assert not solutions[0].was_cancelled

    def test_request_stop_sets_cancel_flag(self, qapp):
        request = make_request()
        worker = SolverWorker(request)

        worker.request_stop()

        assert request.is_cancelled
        assert not worker.is_running()


class TestSolverDispatcher:

    def test_result_delivered_on_owner_thread(self, qapp):
        dispatcher = SolverDispatcher()
        results = []
        request = make_request()

        worker = dispatcher.submit(request, lambda req, solution: results.append((req, solution)))
        drain(worker, qapp)

        assert len(results) == 1
        assert results[0][0] is request
        assert results[0][1].solved
        dispatcher.shutdown()

    def test_controller_receives_par(self, qapp):
        level = Level(
            index=1,
            name="Test",
            difficulty=Difficulty.EASY,
            containers=three_move_board(),
            move_limit=10,
            time_limit_seconds=60,
            star_thresholds=(StarThreshold(moves=10, time_seconds=60),),
            par_moves=5,
        )
        dispatcher = SolverDispatcher()
        controller = SessionController(level_provider=lambda index: level, dispatcher=dispatcher)

        controller.start_level(1)
        assert wait_until(lambda: not controller.pending_requests, qapp)

        assert controller.session.par_moves == 3
        assert controller.pending_requests == []
        dispatcher.shutdown()

    def test_failed_search_clears_pending_request(self, qapp):
        level = Level(
            index=1,
            name="Test",
            difficulty=Difficulty.EASY,
            containers=three_move_board(),
            move_limit=10,
            time_limit_seconds=60,
            star_thresholds=(StarThreshold(moves=10, time_seconds=60),),
            par_moves=5,
        )
        dispatcher = SolverDispatcher(strategy_name="no-such-strategy")
        errors = []
        dispatcher.error_occurred.connect(errors.append)
        controller = SessionController(level_provider=lambda index: level, dispatcher=dispatcher)

        controller.start_level(1)
        assert wait_until(lambda: not controller.pending_requests, qapp)

        assert controller.session.par_moves is None
        assert len(errors) == 1
        dispatcher.shutdown()

    def test_shutdown_cancels_requests(self, qapp):
        dispatcher = SolverDispatcher()
        request = make_request()

        worker = dispatcher.submit(request, lambda req, solution: None)
        dispatcher.shutdown()

        assert request.is_cancelled
        assert not worker.isRunning()
        assert dispatcher.active_count == 0


class TestCountdownClock:

    def test_start_stop(self, qapp):
        clock = CountdownClock()

        clock.start()
        assert clock.is_running
        clock.stop()
        assert not clock.is_running

    def test_tick_invokes_callback_and_signal(self, qapp):
        ticks = []
        signals = []
        clock = CountdownClock(callback=lambda: ticks.append(1))
        clock.ticked.connect(lambda: signals.append(1))

        clock._on_timeout()
        clock._on_timeout()

        assert len(ticks) == 2
        assert len(signals) == 2

    def test_drives_session_countdown(self, qapp):
        level = Level(
            index=1,
            name="Test",
            difficulty=Difficulty.EASY,
            containers=three_move_board(),
            move_limit=10,
            time_limit_seconds=2,
            star_thresholds=(StarThreshold(moves=10, time_seconds=2),),
            par_moves=5,
        )
        clock = CountdownClock()
        controller = SessionController(level_provider=lambda index: level, clock=clock, auto_par=False)
        clock.set_callback(controller.tick)

        controller.start_level(1)
        assert clock.is_running

        clock._on_timeout()
        clock._on_timeout()

        assert controller.session.is_failed
        assert controller.session.failure_reason == "time"
        assert not clock.is_running
