"""
Ordering of round-robin standings.

Rows are compared pairwise through one cascade: points, head-to-head, set
win ratio, game win ratio, registration order. Head-to-head only looks at
the two rows being compared, so a three-way cycle (a beat b, b beat c,
c beat a) is left to whatever the stable sort produces.
"""

from __future__ import annotations

import functools
from typing import Iterable, Optional, Sequence

from .errors import InvalidInput
from .logging_config import get_logger
from .models import MatchRecord, StandingsRow

log = get_logger(__name__)


def head_to_head_winner(a: str, b: str, matches: Iterable[MatchRecord]) -> Optional[str]:
    """
    Winner of the first completed match played directly between a and b.

    Walkovers are not a meeting on court and are skipped. Returns None when
    they never played, their meeting is not completed yet, or it was drawn.
    Raises InvalidInput if that match names a winner who is neither a nor b.
    """
    for m in matches:
        if m.status != "completed" or not m.is_between(a, b):
            continue
        if m.is_draw:
            return None
        if m.winner_id not in (a, b):
            raise InvalidInput(
                f"Head-to-head match {m.id} between {a} and {b} names winner {m.winner_id}"
            )
        return m.winner_id
    return None


def _desc(x, y) -> int:
    # Higher value ranks first
    if x > y:
        return -1
    if x < y:
        return 1
    return 0


def compare(
    a: StandingsRow,
    b: StandingsRow,
    matches: Sequence[MatchRecord],
    registration_order: Optional[Sequence[str]] = None,
) -> int:
    """
    Comparator for standings rows.

    Returns -1 when a ranks above b, 1 when b ranks above a and 0 when the
    whole cascade ties.
    """
    result = _desc(a.points, b.points)
    if result:
        return result

    winner = head_to_head_winner(a.player_id, b.player_id, matches)
    if winner == a.player_id:
        return -1
    if winner == b.player_id:
        return 1

    result = _desc(a.set_ratio, b.set_ratio)
    if result:
        return result

    result = _desc(a.game_ratio, b.game_ratio)
    if result:
        return result

    if registration_order:
        order = list(registration_order)
        if a.player_id in order and b.player_id in order:
            ia, ib = order.index(a.player_id), order.index(b.player_id)
            if ia != ib:
                return -1 if ia < ib else 1

    return 0


def sort_standings(
    rows: Iterable[StandingsRow],
    matches: Sequence[MatchRecord],
    registration_order: Optional[Sequence[str]] = None,
) -> list[StandingsRow]:
    """Return rows ordered best first. Rows that tie keep their input order."""
    matches = list(matches)
    key = functools.cmp_to_key(lambda x, y: compare(x, y, matches, registration_order))
    ordered = sorted(rows, key=key)
    log.debug("Sorted standings: %s", [(r.player_id, r.points) for r in ordered])
    return ordered
