"""
Scoring Module - Star ratings and coin rewards for completed levels.
"""

from dataclasses import dataclass
from typing import Sequence

# Coin reward bounds
BASE_REWARD = 10
MIN_REWARD = 1


@dataclass(frozen=True)
class StarThreshold:
    """
    One star tier: the board must be solved within both caps.

    Attributes:
        moves: Maximum moves allowed for this tier
        time_seconds: Maximum seconds allowed for this tier
    """
    moves: int
    time_seconds: int


def calculate_stars(
    moves_used: int,
    time_used_seconds: float,
    thresholds: Sequence[StarThreshold]
) -> int:
    """
    Convert moves and time used into a star rating.

    Thresholds are ordered best tier first; with N tiers the first entry is
    worth N stars and the last one 1 star. The first tier whose move cap and
    time cap are both met wins. Tier consistency is the generator's job.

    Args:
        moves_used: Successful pours made
        time_used_seconds: Seconds spent on the level
        thresholds: Star tiers, best first

    Returns:
        Stars earned (0 if no tier matches)
    """
    tiers = len(thresholds)
    for i, tier in enumerate(thresholds):
        if moves_used <= tier.moves and time_used_seconds <= tier.time_seconds:
            return tiers - i
    return 0


def calculate_reward(moves_used: int, baseline: int) -> int:
    """
    Coins earned for a solve relative to a par baseline.

    Solving at or under the baseline pays BASE_REWARD; each extra move costs
    one coin, never dropping below MIN_REWARD.

    Args:
        moves_used: Successful pours made
        baseline: Par move count (solver optimum when known)

    Returns:
        Coin reward in [MIN_REWARD, BASE_REWARD]
    """
    over = max(0, moves_used - baseline)
    return max(MIN_REWARD, min(BASE_REWARD, BASE_REWARD - over))
