"""
Tube Sort - Entry Point

Headless driver for the tube sort game core. Starts a level, plays a
sequence of container taps, and reports par moves and an optional hint
computed by the background solver.

Example:
    python main.py --level 12
    python main.py --level 12 --taps 1 6 2 6 --hint
    python main.py --level 40 --strategy bfs --max-iterations 50000 --debug
"""

import sys
import logging
import argparse
from typing import List, Optional

from PyQt5.QtCore import QCoreApplication, QTimer

from src.countdown import CountdownClock
from src.progress import ProgressStore
from src.puzzle import MAX_LEVEL, MIN_LEVEL
from src.session_controller import GameSession, SessionController, TapOutcome
from src.settings import load_settings, save_settings
from src.solver import get_strategy_names, resolve_strategy_name
from src.solver_worker import SolverDispatcher


logger = logging.getLogger(__name__)


def configure_logging(debug: bool) -> None:
    """Log to both console and file."""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        handlers=[
            logging.StreamHandler(),  # Console output
            logging.FileHandler("tubesort.log", mode='w', encoding='utf-8')  # File output
        ]
    )


def format_board(session: GameSession) -> str:
    """Render containers one per line, numbered from 1, bottom color first."""
    lines = []
    for number, container in enumerate(session.containers, start=1):
        colors = ", ".join(str(color) for color in container.colors) or "-"
        flags = []
        if container.locked:
            requirement = container.unlock_condition.requirement if container.unlock_condition else "?"
            flags.append(f"locked until {requirement} sorted")
        if container.starter:
            flags.append("starter")
        suffix = f"  ({'; '.join(flags)})" if flags else ""
        marker = "*" if container.id == session.selected_id else " "
        lines.append(f"{marker}{number:2d} [{colors}] {container.size}/{container.capacity}{suffix}")
    return "\n".join(lines)


class Application:
    """
    Headless application controller.

    Wires the session controller to the background solver dispatcher and
    the countdown clock, then drives one level from the command line.
    """

    POLL_INTERVAL_MS = 50

    def __init__(
        self,
        level: int,
        taps: List[int],
        want_hint: bool = False,
        strategy_name: Optional[str] = None,
        max_iterations: Optional[int] = None,
        timeout_sec: Optional[float] = None,
        enforce_limits: bool = True
    ):
        """
        Initialize the application.

        Args:
            level: Level index to play
            taps: 1-based container numbers to tap in order
            want_hint: Request a hint after the taps
            strategy_name: Solver strategy (overrides saved setting)
            max_iterations: Solver bound (overrides saved setting)
            timeout_sec: Solver wall-clock limit (overrides saved setting)
            enforce_limits: Apply the move and time budgets
        """
        self.level = level
        self.taps = taps
        self.want_hint = want_hint
        self.exit_code = 0

        # Load persistent settings; CLI flags override them
        self.settings = load_settings()
        strategy = resolve_strategy_name(strategy_name or self.settings["strategy_name"])
        iterations = max_iterations or int(self.settings["max_iterations"])
        timeout = timeout_sec if timeout_sec is not None else self.settings["solver_timeout_sec"]

        self.progress = ProgressStore(self.settings["progress_file"])
        self.dispatcher = SolverDispatcher(strategy_name=strategy)
        self.clock = CountdownClock()
        self.controller = SessionController(
            dispatcher=self.dispatcher,
            clock=self.clock,
            progress=self.progress,
            enforce_move_limit=enforce_limits and self.settings["enforce_move_limit"],
            enforce_time_limit=enforce_limits and self.settings["enforce_time_limit"],
            max_iterations=iterations,
            strategy_name=strategy,
            solver_timeout_sec=timeout,
        )
        self.clock.set_callback(self.controller.tick)
        self.dispatcher.error_occurred.connect(self._on_error)

        self._poll_timer = QTimer()
        self._poll_timer.setInterval(self.POLL_INTERVAL_MS)
        self._poll_timer.timeout.connect(self._check_finished)

        logger.info(f"Application initialized (strategy {strategy}, {iterations} iterations)")

    def run(self) -> None:
        """Start the level, play the taps, and wait for solver results."""
        try:
            session = self.controller.start_level(self.level)
        except ValueError as e:
            logger.error(f"Cannot start level {self.level}: {e}")
            self.exit_code = 2
            QCoreApplication.quit()
            return

        level = self.controller.level
        print(f"Level {level.index}: {level.name} ({level.difficulty.value}, {level.palette_name})")
        print(f"Move limit {level.move_limit}, time limit {level.time_limit_seconds}s, "
              f"estimated par {level.par_moves}")
        print(format_board(session))

        self._play_taps()

        if self.want_hint:
            self.controller.request_hint()

        self._poll_timer.start()

    def _play_taps(self) -> None:
        for number in self.taps:
            session = self.controller.session
            if number < 1 or number > len(session.containers):
                logger.warning(f"No container #{number}, tap skipped")
                continue
            result = self.controller.tap(session.containers[number - 1].id)
            if result.outcome == TapOutcome.DECLINED:
                print(f"Tap {number}: declined ({result.reason.value})")
            elif result.outcome == TapOutcome.POURED:
                print(f"Tap {number}: poured {result.moved} segment(s)")

        if self.taps:
            print(format_board(self.controller.session))

    def _check_finished(self) -> None:
        if self.controller.pending_requests:
            return
        self._poll_timer.stop()
        self._report()
        QCoreApplication.quit()

    def _report(self) -> None:
        session = self.controller.session
        print(f"State: {session.state.name}, moves {session.moves}")
        if session.remaining_moves is not None:
            print(f"Moves remaining: {session.remaining_moves}")
        print(f"Par: {session.par_moves if session.par_moves is not None else 'unknown'}")
        if self.want_hint:
            print(f"Hint: {session.hint if session.hint else 'none available'}")
        if session.is_complete:
            print(f"Stars: {session.stars}, coins: {session.coins_earned}")

    def _on_error(self, error_msg: str) -> None:
        """Handle solver worker error."""
        logger.error(f"Worker error: {error_msg}")
        self.exit_code = 1
        self._poll_timer.stop()
        QCoreApplication.quit()

    def shutdown(self) -> None:
        self.clock.stop()
        self.dispatcher.shutdown()


def parse_args(argv: Optional[List[str]] = None):
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Tube Sort - Headless game core driver with optimal solver"
    )
    parser.add_argument(
        "--level", "-l",
        type=int,
        default=MIN_LEVEL,
        help=f"Level to play ({MIN_LEVEL}-{MAX_LEVEL}, default: {MIN_LEVEL})"
    )
    parser.add_argument(
        "--taps", "-t",
        type=int,
        nargs="*",
        default=[],
        help="Container numbers (1-based) to tap in order"
    )
    parser.add_argument(
        "--hint",
        action="store_true",
        help="Request a hint after the taps"
    )
    parser.add_argument(
        "--strategy", "-s",
        choices=get_strategy_names(),
        help="Solver strategy (default: saved setting)"
    )
    parser.add_argument(
        "--max-iterations",
        type=int,
        help="Solver iteration bound (default: saved setting)"
    )
    parser.add_argument(
        "--timeout",
        type=float,
        help="Solver wall-clock limit in seconds"
    )
    parser.add_argument(
        "--no-limits",
        action="store_true",
        help="Disable the move and time budgets"
    )
    parser.add_argument(
        "--debug", "-d",
        action="store_true",
        help="Enable debug logging"
    )
    parser.add_argument(
        "--save-settings",
        action="store_true",
        help="Store --strategy, --max-iterations and --timeout in config.json"
    )
    return parser.parse_args(argv)


def main():
    """Initialize and run the Tube Sort driver."""
    args = parse_args()
    settings = load_settings()
    configure_logging(args.debug or settings.get("debug_enabled", False))

    if args.save_settings:
        if args.strategy:
            settings["strategy_name"] = args.strategy
        if args.max_iterations:
            settings["max_iterations"] = args.max_iterations
        if args.timeout is not None:
            settings["solver_timeout_sec"] = args.timeout
        save_settings(settings)
        logger.info("Settings saved")

    app = QCoreApplication(sys.argv)

    application = Application(
        level=args.level,
        taps=args.taps,
        want_hint=args.hint,
        strategy_name=args.strategy,
        max_iterations=args.max_iterations,
        timeout_sec=args.timeout,
        enforce_limits=not args.no_limits,
    )
    QTimer.singleShot(0, application.run)
    app.exec_()
    application.shutdown()

    sys.exit(application.exit_code)


if __name__ == "__main__":
    main()
