"""
Progress Module - Persistent per-level results.

Stores the best star rating, a completion flag and the number of
completions per level in a JSON file:

    {"levels": {"12": {"stars": 3, "completed": true, "completions": 2}}}

as_dict() exposes the {level: {stars, completed}} mapping.

A missing or unreadable file starts from empty progress.
"""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Union

logger = logging.getLogger(__name__)

# Default progress file location (project root)
PROGRESS_FILE = Path("progress.json")


@dataclass
class LevelProgress:
    """Best result for one level."""
    stars: int = 0
    completed: bool = False
    completions: int = 0


class ProgressStore:
    """
    Level progress keyed by level index, persisted after every update.

    Example:
        store = ProgressStore(Path("progress.json"))
        store.record_result(12, 3)
        store.get(12).stars  # 3
    """

    def __init__(self, path: Union[str, Path] = PROGRESS_FILE):
        """
        Load progress from disk.

        Args:
            path: JSON file location
        """
        self._path = Path(path)
        self._levels: Dict[int, LevelProgress] = self._load()

    @property
    def path(self) -> Path:
        return self._path

    def get(self, level: int) -> LevelProgress:
        """Return progress for a level (zeroes if never completed)."""
        return self._levels.get(level, LevelProgress())

    def best_stars(self, level: int) -> int:
        return self.get(level).stars

    def record_result(self, level: int, stars: int) -> bool:
        """
        Record a completion, keeping the best star rating.

        Args:
            level: Completed level index
            stars: Stars earned on this completion

        Returns:
            True if the best star rating improved
        """
        current = self._levels.get(level, LevelProgress())
        improved = stars > current.stars
        self._levels[level] = LevelProgress(
            stars=max(current.stars, stars),
            completed=True,
            completions=current.completions + 1,
        )
        if improved:
            logger.info(f"Level {level}: new best {stars} stars")
        self._save()
        return improved

    def as_dict(self) -> Dict[int, Dict[str, Any]]:
        """Progress mapping {level: {stars, completed}}."""
        return {
            level: {"stars": value.stars, "completed": value.completed}
            for level, value in sorted(self._levels.items())
        }

    def reset(self) -> None:
        """Clear all progress."""
        self._levels = {}
        self._save()
        logger.info("Progress reset")

    def _load(self) -> Dict[int, LevelProgress]:
        if not self._path.exists():
            logger.debug(f"Progress file {self._path} not found, starting fresh")
            return {}

        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
            levels = {
                int(key): LevelProgress(
                    stars=int(value.get("stars", 0)),
                    completed=bool(value.get("completed", False)),
                    completions=int(value.get("completions", 0)),
                )
                for key, value in payload.get("levels", {}).items()
            }
        except (json.JSONDecodeError, OSError, AttributeError, TypeError, ValueError) as e:
            logger.warning(f"Could not load progress from {self._path}: {e}")
            return {}

        logger.debug(f"Loaded progress for {len(levels)} levels")
        return levels

    def _save(self) -> None:
        payload = {
            "levels": {str(level): asdict(value) for level, value in sorted(self._levels.items())}
        }
        try:
            if self._path.parent != Path("."):
                self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not save progress to {self._path}: {e}")
