"""
Solver Worker Module - Background solver execution.

Provides a QThread worker that runs one solver request off the UI thread,
and a dispatcher that hands requests to workers and routes the results
back to the session controller via Qt signals.
"""

import logging
from typing import Callable, Dict, Optional

from PyQt5.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from src.session_controller import SolverRequest
from src.solver import Solution, find_optimal_solution


# Configure module logger
logger = logging.getLogger(__name__)

ResultCallback = Callable[[SolverRequest, Solution], object]


class SolverWorker(QThread):
    """
    Background worker thread for one solver request.

    The request's cancel flag is shared with the search, so request_stop()
    (or the controller cancelling a stale request) ends the search at its
    next cancellation check.

    Signals:
        solution_ready(object, object): (SolverRequest, Solution) when done
        error_occurred(str): Emitted when the search raises, before an
            unsolved solution_ready

    Example:
        worker = SolverWorker(request)
        worker.solution_ready.connect(on_result)
        worker.start()
        # ...
        worker.request_stop()
        worker.wait()
    """

    solution_ready = pyqtSignal(object, object)
    error_occurred = pyqtSignal(str)

    def __init__(self, request: SolverRequest, strategy_name: Optional[str] = None):
        """
        Initialize the solver worker.

        Args:
            request: Solver request to run
            strategy_name: Strategy to use (default strategy if None)
        """
        super().__init__()
        self.request = request
        self.strategy_name = strategy_name

    def run(self):
        """
        Run the search. Called when the thread starts.

        Emits solution_ready on success (including unsolved and cancelled
        results). If the search raises, error_occurred is emitted and then
        solution_ready with an unsolved Solution, so the requester always
        hears back.
        """
        request = self.request
        logger.debug(f"Solver worker started ({request.kind.name}, generation {request.generation})")

        try:
            solution = find_optimal_solution(
                request.containers,
                request.max_iterations,
                strategy_name=self.strategy_name,
                cancel_flag=request.cancel_flag,
                timeout_sec=request.timeout_sec,
            )
        except Exception as e:
            logger.exception("Error in solver worker")
            self.error_occurred.emit(str(e))
            self.solution_ready.emit(request, Solution(solved=False))
            return

        self.solution_ready.emit(request, solution)
        logger.debug(f"Solver worker finished ({request.kind.name})")

    def request_stop(self):
        """
        Request the worker to stop.

        Use wait() after calling this to block until stopped.
        """
        logger.info("Stop requested")
        self.request.cancel_flag.set()

    def is_running(self) -> bool:
        """
        Check if the worker thread is still running.

        Returns:
            True if the search is active, False otherwise
        """
        return self.isRunning()


class SolverDispatcher(QObject):
    """
    Runs solver requests on background threads.

    Results are delivered through queued signal connections, so the
    callback always runs on the thread that owns the dispatcher.

    Signals:
        error_occurred(str): Forwarded from workers
    """

    error_occurred = pyqtSignal(str)

    def __init__(self, strategy_name: Optional[str] = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.strategy_name = strategy_name
        self._workers: Dict[int, SolverWorker] = {}
        self._callbacks: Dict[int, ResultCallback] = {}

    @property
    def active_count(self) -> int:
        """Number of workers not yet finished."""
        return sum(1 for worker in self._workers.values() if worker.isRunning())

    def submit(self, request: SolverRequest, on_result: ResultCallback) -> SolverWorker:
        """
        Start a worker for a request.

        Args:
            request: Solver request
            on_result: Called with (request, solution) on the dispatcher thread

        Returns:
            The started worker
        """
        worker = SolverWorker(request, self.strategy_name)
        key = id(request)
        self._workers[key] = worker
        self._callbacks[key] = on_result

        worker.solution_ready.connect(self._on_solution_ready)
        worker.error_occurred.connect(self._on_error)
        worker.finished.connect(self._on_worker_finished)
        worker.start()
        return worker

    @pyqtSlot(object, object)
    def _on_solution_ready(self, request: SolverRequest, solution: Solution) -> None:
        callback = self._callbacks.pop(id(request), None)
        if callback is None:
            logger.warning(f"No callback for {request.kind.name} result")
            return
        callback(request, solution)

    @pyqtSlot(str)
    def _on_error(self, message: str) -> None:
        logger.error(f"Solver worker failed: {message}")
        self.error_occurred.emit(message)

    @pyqtSlot()
    def _on_worker_finished(self) -> None:
        worker = self.sender()
        for key, candidate in list(self._workers.items()):
            if candidate is worker:
                del self._workers[key]
                self._callbacks.pop(key, None)
                # Thread object must outlive the OS thread
                candidate.wait()

    def shutdown(self, timeout_ms: int = 5000) -> None:
        """
        Cancel all running workers and wait for them to exit.

        Args:
            timeout_ms: Maximum wait per worker
        """
        workers = list(self._workers.values())
        for worker in workers:
            worker.request_stop()
        for worker in workers:
            if not worker.wait(timeout_ms):
                logger.warning("Solver worker did not stop in time")
        self._workers.clear()
        self._callbacks.clear()
