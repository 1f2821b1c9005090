"""
Rating calculations using the ELO system.
Pure functions for rating changes in singles and doubles matches, plus the
reference K-factor policy. Callers persist results; nothing here does I/O.
"""

import math

from .errors import InvalidInput
from .logging_config import get_logger

log = get_logger(__name__)

INITIAL_RATING = 1200
RATING_FLOOR = 800

RESULT_SCORES = {"win": 1.0, "loss": 0.0}


def expected(ra: float, rb: float) -> float:
    """
    Calculate the expected score for player A against player B.

    Args:
        ra: Rating of player A
        rb: Rating of player B

    Returns:
        Expected score (probability) for player A to win (0.0 to 1.0)
    """
    return 1 / (1 + math.pow(10, (rb - ra) / 400))


def _round_half_up(x: float) -> int:
    return math.floor(x + 0.5)


def sanitize_rating(value, default: float = INITIAL_RATING) -> float:
    """Return value as a float rating, or default when it is missing or not a number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if math.isnan(value) or math.isinf(value):
        return default
    return float(value)


def update_rating(
    player_rating: float,
    opponent_rating: float,
    result: str,
    k_factor: float,
    floor: float = RATING_FLOOR,
) -> int:
    """
    Compute a player's new rating after a single match.

    Args:
        player_rating: Rating before the match
        opponent_rating: Opponent's rating before the match
        result: "win" or "loss" (draws are not rated)
        k_factor: Maximum swing for this match, chosen by the caller
        floor: Lowest rating that may be returned

    Returns:
        The new rating, rounded to an integer and never below floor

    Raises:
        InvalidInput: Unknown result or non-positive K-factor
    """
    if result not in RESULT_SCORES:
        raise InvalidInput(f"result must be 'win' or 'loss', got {result!r}")
    if not k_factor > 0:
        raise InvalidInput(f"k_factor must be positive, got {k_factor!r}")

    exp = expected(player_rating, opponent_rating)
    raw = player_rating + k_factor * (RESULT_SCORES[result] - exp)
    new_rating = max(_round_half_up(raw), math.ceil(floor))
    log.debug(
        "update_rating %.1f vs %.1f result=%s k=%s expected=%.3f -> %s",
        player_rating, opponent_rating, result, k_factor, exp, new_rating,
    )
    return new_rating


def rating_delta(
    player_rating: float,
    opponent_rating: float,
    result: str,
    k_factor: float,
    floor: float = RATING_FLOOR,
) -> tuple[int, float]:
    """Preview helper: returns (new_rating, new_rating - player_rating)."""
    new_rating = update_rating(player_rating, opponent_rating, result, k_factor, floor)
    return new_rating, new_rating - player_rating


def update_pair(
    rating_1: float,
    rating_2: float,
    player1_won: bool,
    k1: float,
    k2: float | None = None,
    floor: float = RATING_FLOOR,
) -> tuple[int, int]:
    """
    Apply one singles result to both players.

    Each side may carry its own K-factor (new players move faster).

    Returns:
        Tuple of (new_rating_1, new_rating_2)
    """
    k2 = k1 if k2 is None else k2
    new_1 = update_rating(rating_1, rating_2, "win" if player1_won else "loss", k1, floor)
    new_2 = update_rating(rating_2, rating_1, "loss" if player1_won else "win", k2, floor)
    return new_1, new_2


def k_factor(
    matches_played: int,
    context: str = "public",
    new_k: float = 32,
    established_k: float = 16,
    experience_threshold: int = 10,
    club_multiplier: float = 0.5,
) -> float:
    """
    Reference K-factor policy for the unified rating line.

    New players (fewer than experience_threshold matches) use new_k, everyone
    else established_k. Club matches feed the same line at club_multiplier
    weight.
    """
    base = new_k if matches_played < experience_threshold else established_k
    if context == "club":
        return base * club_multiplier
    return base


def club_k_factor(
    club_matches_played: int,
    new_k: float = 32,
    established_k: float = 16,
    experience_threshold: int = 10,
) -> float:
    """K-factor for a club's independent rating line (no context weighting)."""
    return new_k if club_matches_played < experience_threshold else established_k


def team_rating(ratings: list[float]) -> float:
    """
    Calculate the effective team rating from individual player ratings.
    Uses the average rating as the team's effective rating.

    Args:
        ratings: List of individual player ratings

    Returns:
        Team's effective rating
    """
    if not ratings:
        return float(INITIAL_RATING)
    return sum(ratings) / len(ratings)


def update_team(
    ratings_a: list[float],
    ratings_b: list[float],
    winner: str,
    k: float,
    floor: float = RATING_FLOOR,
) -> tuple[list[int], list[int]]:
    """
    Apply a doubles result to every player on both teams.

    Args:
        ratings_a: Ratings of team A players
        ratings_b: Ratings of team B players
        winner: "A" or "B"
        k: K-factor for the match

    Returns:
        Tuple of (new_ratings_team_a, new_ratings_team_b); every player moves by
        the team delta, rounded and clamped at floor individually.
    """
    side = winner.upper() if isinstance(winner, str) else winner
    if side not in ("A", "B"):
        raise InvalidInput(f"winner must be 'A' or 'B', got {winner!r}")
    if not k > 0:
        raise InvalidInput(f"k must be positive, got {k!r}")

    score_a = 1.0 if side == "A" else 0.0
    delta = k * (score_a - expected(team_rating(ratings_a), team_rating(ratings_b)))

    new_a = [max(_round_half_up(r + delta), math.ceil(floor)) for r in ratings_a]
    new_b = [max(_round_half_up(r - delta), math.ceil(floor)) for r in ratings_b]
    log.debug("update_team winner=%s delta=%.2f A=%s B=%s", side, delta, new_a, new_b)
    return new_a, new_b
