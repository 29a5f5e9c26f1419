"""
Search Context Module - Budget, cancellation and progress for one search.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from .board import BoardState

# Default pour-attempt bound for a single search
DEFAULT_MAX_ITERATIONS = 250_000


@dataclass
class SolutionContext:
    """
    Inputs a strategy needs besides the board: how many pour attempts it
    may make, how a caller stops it, and where progress goes.

    Attributes:
        board: Configuration to solve
        max_iterations: Pour attempts allowed before giving up
        cancel_flag: Set by the caller to abort (stale request, shutdown)
        timeout_sec: Optional wall-clock limit; exceeding it counts as cancellation
        progress_callback: Called with (iterations, states seen)
        start_time: Monotonic clock reading when the search began
    """
    board: BoardState
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    cancel_flag: threading.Event = field(default_factory=threading.Event)
    timeout_sec: Optional[float] = None
    progress_callback: Optional[Callable[[int, int], None]] = None
    start_time: float = field(default_factory=time.monotonic)

    def __post_init__(self):
        if self.max_iterations < 0:
            raise ValueError(f"max_iterations must be >= 0, got {self.max_iterations}")

    @property
    def deadline(self) -> Optional[float]:
        """Monotonic time after which the search stops, if limited."""
        if self.timeout_sec is None:
            return None
        return self.start_time + self.timeout_sec

    def is_cancelled(self) -> bool:
        """True once the cancel flag is set or the deadline has passed."""
        if self.cancel_flag.is_set():
            return True
        deadline = self.deadline
        return deadline is not None and time.monotonic() > deadline

    def budget_exhausted(self, iterations: int) -> bool:
        return iterations >= self.max_iterations

    def report_progress(self, iterations: int, states: int) -> None:
        if self.progress_callback is not None:
            self.progress_callback(iterations, states)

    def elapsed_time(self) -> float:
        """Seconds since the search began."""
        return time.monotonic() - self.start_time
