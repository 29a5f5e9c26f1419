"""
Countdown Module - One-second session clock.

Wraps a QTimer so the session controller can start and stop its countdown
without knowing about Qt. Ticks are delivered on the thread that owns the
clock (the Qt main thread in the application).
"""

import logging
from typing import Callable, Optional

from PyQt5.QtCore import QObject, QTimer, pyqtSignal

logger = logging.getLogger(__name__)


class CountdownClock(QObject):
    """
    Emits one tick per interval while running.

    Signals:
        ticked(): Emitted on every timer tick

    Example:
        clock = CountdownClock()
        controller = SessionController(clock=clock)
        clock.set_callback(controller.tick)
    """

    ticked = pyqtSignal()

    TICK_INTERVAL_MS = 1000

    def __init__(
        self,
        callback: Optional[Callable[[], None]] = None,
        interval_ms: int = TICK_INTERVAL_MS,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self._callback = callback
        self._timer = QTimer(self)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._on_timeout)

    def set_callback(self, callback: Optional[Callable[[], None]]) -> None:
        """Set the function invoked on every tick."""
        self._callback = callback

    @property
    def is_running(self) -> bool:
        return self._timer.isActive()

    def start(self) -> None:
        """Start (or restart) the countdown from a full interval."""
        self._timer.start()
        logger.debug("Countdown started")

    def stop(self) -> None:
        if self._timer.isActive():
            self._timer.stop()
            logger.debug("Countdown stopped")

    def _on_timeout(self) -> None:
        self.ticked.emit()
        if self._callback is not None:
            self._callback()
