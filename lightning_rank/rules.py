from typing import Optional

from .errors import InvalidInput
from .models import MatchRecord, SetScore


def valid_game(a: int, b: int, target: int = 11, win_by: int = 2, cap: Optional[int] = None) -> bool:
    """
    Returns True if a finished game score (a, b) is valid under rally scoring.
    - max(a, b) >= target
    - abs(a - b) >= win_by unless cap is reached
    - If cap is reached, next point wins (e.g., 15-14)
    """
    if a < 0 or b < 0:
        return False
    m = max(a, b)
    d = abs(a - b)
    if cap is not None and m > cap:
        return False
    if m < target:
        return False
    if cap is not None and m == cap:
        return d >= 1
    return d >= win_by


def summarize_sets(sets: list[SetScore]) -> tuple[int, int, int, int]:
    """
    Totals for a list of set scores.
    Returns (sets_1, sets_2, games_1, games_2).
    Raises InvalidInput on a negative or level set.
    """
    sets_1 = sets_2 = games_1 = games_2 = 0
    for s in sets:
        g1, g2 = int(s.player1_games), int(s.player2_games)
        if g1 < 0 or g2 < 0:
            raise InvalidInput(f"Negative set score {g1}-{g2}")
        if g1 == g2:
            raise InvalidInput(f"Set cannot end level ({g1}-{g2})")
        games_1 += g1
        games_2 += g2
        if g1 > g2:
            sets_1 += 1
        else:
            sets_2 += 1
    return sets_1, sets_2, games_1, games_2


def winner_from_sets(match: MatchRecord) -> Optional[str]:
    """Competitor who took more sets, or None when sets are level or absent."""
    sets_1, sets_2, _g1, _g2 = summarize_sets(match.sets)
    if sets_1 > sets_2:
        return match.player1_id
    if sets_2 > sets_1:
        return match.player2_id
    return None


def validate_completed(match: MatchRecord, target: Optional[int] = None, win_by: int = 2, cap: Optional[int] = None) -> None:
    """
    Reject a finished match that cannot be applied to standings.

    Checks both competitors are present and distinct, a winner (or explicit
    draw) is recorded, the winner actually played, and the recorded winner
    agrees with the set scores. With target given, every set must also be a
    valid finished set.
    """
    if not match.player1_id or not match.player2_id:
        raise InvalidInput(f"Match {match.id} is missing a competitor")
    if match.player1_id == match.player2_id:
        raise InvalidInput(f"Match {match.id} pairs {match.player1_id} with themselves")
    if not match.is_finished:
        raise InvalidInput(f"Match {match.id} is not completed (status={match.status})")

    if match.is_draw:
        if match.winner_id is not None:
            raise InvalidInput(f"Match {match.id} is a draw but names winner {match.winner_id}")
        if match.status == "walkover":
            raise InvalidInput(f"Walkover {match.id} cannot be a draw")
    else:
        if match.winner_id is None:
            raise InvalidInput(f"Completed match {match.id} has no winner")
        if not match.involves(match.winner_id):
            raise InvalidInput(f"Winner {match.winner_id} did not play match {match.id}")

    if target is not None:
        for s in match.sets:
            if not valid_game(s.player1_games, s.player2_games, target, win_by, cap):
                raise InvalidInput(f"Invalid set {s.player1_games}-{s.player2_games} in match {match.id}")

    if match.sets and not match.is_draw:
        by_sets = winner_from_sets(match)
        if by_sets is not None and by_sets != match.winner_id:
            raise InvalidInput(f"Match {match.id} winner {match.winner_id} disagrees with set scores")
