"""
LPR tier system: maps a numeric rating onto ten discrete levels grouped in
seven named bands, plus the legacy 2.0-5.5 classic scale.

The two scales are independent views of the same rating. Callers pick one
explicitly; nothing here guesses the scale from a number's magnitude.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


@dataclass(frozen=True)
class TierLevel:
    value: int
    band: str
    initial_rating: int
    rating_min: float
    rating_max: float  # exclusive


@dataclass(frozen=True)
class TierBand:
    name: str
    theme: str
    color: str
    levels: tuple[int, ...]


# Ascending, half-open [rating_min, rating_max)
LEVELS: tuple[TierLevel, ...] = (
    TierLevel(1, "Bronze", 950, 0, 1000),
    TierLevel(2, "Bronze", 1050, 1000, 1100),
    TierLevel(3, "Silver", 1150, 1100, 1200),
    TierLevel(4, "Silver", 1250, 1200, 1300),
    TierLevel(5, "Gold", 1375, 1300, 1450),
    TierLevel(6, "Gold", 1525, 1450, 1600),
    TierLevel(7, "Platinum", 1700, 1600, 1800),
    TierLevel(8, "Diamond", 1950, 1800, 2100),
    TierLevel(9, "Master", 2250, 2100, 2400),
    TierLevel(10, "Legend", 2400, 2400, math.inf),
)

BANDS: tuple[TierBand, ...] = (
    TierBand("Bronze", "Spark", "#CD7F32", (1, 2)),
    TierBand("Silver", "Flash", "#C0C0C0", (3, 4)),
    TierBand("Gold", "Bolt", "#FFD700", (5, 6)),
    TierBand("Platinum", "Thunder", "#E5E4E2", (7,)),
    TierBand("Diamond", "Storm", "#B9F2FF", (8,)),
    TierBand("Master", "Ball Lightning", "#1A1A2E", (9,)),
    TierBand("Legend", "Lightning God", "#FFD700", (10,)),
)

MIN_TIER = 1
MAX_TIER = 10
ONBOARDING_TIER_CAP = 5
DEFAULT_INITIAL_RATING = 1150  # LPR 3

# Legacy classic scale anchors: 1200 sits at 3.0, 400 points per whole step
CLASSIC_MIN = 2.0
CLASSIC_MAX = 5.5
CLASSIC_CENTER_RATING = 1200
CLASSIC_POINTS_PER_STEP = 400

CLASSIC_TO_TIER = {
    2.0: 1,
    2.5: 2,
    3.0: 3,
    3.5: 4,
    4.0: 5,
    4.5: 7,
    5.0: 8,
    5.5: 9,
}


def rating_to_tier(rating: float) -> int:
    """Map a rating to its LPR level (1-10) by scanning the ascending bins."""
    for level in LEVELS:
        if level.rating_min <= rating < level.rating_max:
            return level.value
    # Only reachable for ratings below zero or NaN
    if rating >= LEVELS[-1].rating_min:
        return MAX_TIER
    return MIN_TIER


def get_level(tier: int) -> TierLevel | None:
    for level in LEVELS:
        if level.value == tier:
            return level
    return None


def tier_band(tier: int) -> TierBand:
    """Band owning tier; unknown tiers fall back to Bronze."""
    for band in BANDS:
        if tier in band.levels:
            return band
    return BANDS[0]


def tier_to_band_name(tier: int) -> str:
    return tier_band(tier).name


def tier_color(tier: int) -> str:
    return tier_band(tier).color


def tier_theme(tier: int) -> str:
    return tier_band(tier).theme


def initial_rating_for_tier(tier: int) -> int:
    """Starting rating for a player who self-selects tier during onboarding."""
    level = get_level(tier)
    return level.initial_rating if level else DEFAULT_INITIAL_RATING


def is_valid_tier(tier) -> bool:
    return isinstance(tier, int) and not isinstance(tier, bool) and MIN_TIER <= tier <= MAX_TIER


def is_valid_onboarding_tier(tier) -> bool:
    return is_valid_tier(tier) and tier <= ONBOARDING_TIER_CAP


def onboarding_tiers() -> list[TierLevel]:
    """Levels a new player may pick; higher ones are earned through matches."""
    return [level for level in LEVELS if level.value <= ONBOARDING_TIER_CAP]


def tier_progress(rating: float) -> float:
    """Percent (0-100) of the way through the current level.

    Level 10 has no upper bound, so progress there is measured over the
    first 200 points above its minimum.
    """
    tier = rating_to_tier(rating)
    level = get_level(tier)
    if tier == MAX_TIER:
        return max(0.0, min((rating - level.rating_min) / 200 * 100, 100.0))
    span = level.rating_max - level.rating_min
    return max(0.0, min((rating - level.rating_min) / span * 100, 100.0))


def next_tier(tier: int) -> tuple[int, float] | None:
    """(next level, rating required to reach it), or None at the top."""
    if tier >= MAX_TIER:
        return None
    level = get_level(tier + 1)
    if level is None:
        return None
    return level.value, level.rating_min


def rating_range_label(tier: int) -> str:
    level = get_level(tier)
    if level is None:
        return ""
    if tier == MAX_TIER:
        return f"{int(level.rating_min)}+"
    return f"{int(level.rating_min)}-{int(level.rating_max) - 1}"


def compare_tiers(tier_a: int, tier_b: int) -> str:
    """Matchmaking fit between two levels: 'good', 'fair' or 'mismatch'."""
    diff = abs(tier_a - tier_b)
    if diff <= 1:
        return "good"
    if diff <= 2:
        return "fair"
    return "mismatch"


# --- Legacy classic scale ---

def rating_to_classic(rating: float) -> float:
    """Map a rating onto the legacy continuous 2.0-5.5 scale."""
    value = 3.0 + (rating - CLASSIC_CENTER_RATING) / CLASSIC_POINTS_PER_STEP
    return round(max(CLASSIC_MIN, min(CLASSIC_MAX, value)), 2)


def classic_to_tier(classic: float) -> int:
    """Migration table from a legacy classic value to an LPR level (unknown -> 3)."""
    return CLASSIC_TO_TIER.get(classic, 3)
