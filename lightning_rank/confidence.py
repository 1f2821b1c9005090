"""
Confidence in a computed rating, and the season "official ranker" badge.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

FULL_CONFIDENCE_MATCHES = 20
CONFIDENCE_THRESHOLD = 0.7
OFFICIAL_RANKER_MATCHES = 5
MAX_BADGE_LEVEL = 5


def confidence(matches_played: int) -> float:
    """
    Confidence (0.0-1.0) in a rating computed from matches_played games.

    0 matches gives 0, 20 or more gives 1.0, in between grows linearly from
    0.1 at the first match by 0.045 per match.
    """
    if matches_played <= 0:
        return 0.0
    if matches_played >= FULL_CONFIDENCE_MATCHES:
        return 1.0
    return min(1.0, 0.1 + (matches_played - 1) * 0.045)


def preferred_skill(
    self_assessed: float,
    calculated: float | None,
    matches_played: int,
    threshold: float = CONFIDENCE_THRESHOLD,
) -> tuple[float, str]:
    """Pick which skill value to display.

    The calculated value wins only once confidence exceeds threshold;
    until then the player's self-assessment is shown.

    Returns:
        (value, source) where source is "calculated" or "self_assessed"
    """
    if calculated is not None and confidence(matches_played) > threshold:
        return calculated, "calculated"
    return self_assessed, "self_assessed"


def overestimates(self_assessed: int, calculated: int) -> bool:
    return self_assessed - calculated >= 2


def underestimates(self_assessed: int, calculated: int) -> bool:
    return calculated - self_assessed >= 2


@dataclass(frozen=True)
class RankingBadge:
    level: int
    is_official: bool
    remaining_matches: int


def ranking_badge(season_matches_played: float, official_at: int = OFFICIAL_RANKER_MATCHES) -> RankingBadge:
    """Map a season match count onto the 0-5 confidence bar shown next to a ranking."""
    level = min(math.floor(max(0, season_matches_played)), MAX_BADGE_LEVEL)
    return RankingBadge(
        level=int(level),
        is_official=season_matches_played >= official_at,
        remaining_matches=max(0, official_at - season_matches_played),
    )
