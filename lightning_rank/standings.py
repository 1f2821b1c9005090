"""
Round-robin standings, rebuilt from the match log.

Rows are never patched in place: every call to recompute() starts from
zeroed counters for the registered competitors and replays the finished
matches, so the table cannot drift from the matches it was built from.
"""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime
from typing import Iterable, Optional, Sequence

from .errors import InvalidInput
from .logging_config import get_logger
from .models import GameRules, MatchRecord, PointScheme, StandingsRow
from .rules import summarize_sets, validate_completed
from .tiebreak import sort_standings

log = get_logger(__name__)

FORM_LENGTH = 5
PLAYOFF_QUALIFIERS = 4

POINT_SCHEMES = {
    "standard": PointScheme(win=3, draw=1, loss=0),
    "pickleball": PointScheme(win=2, draw=0, loss=0),
}


def point_scheme(name: str) -> PointScheme:
    """Look up a named preset. Returns a copy so callers may tweak it."""
    try:
        return replace(POINT_SCHEMES[name])
    except KeyError:
        raise InvalidInput(f"Unknown point scheme {name!r}") from None


def new_row(player_id: str, name: str = "") -> StandingsRow:
    return StandingsRow(player_id=player_id, name=name)


def _chronological(matches: Sequence[MatchRecord]) -> list[MatchRecord]:
    # Undated matches sort before dated ones, input order breaks ties
    indexed = list(enumerate(matches))
    indexed.sort(key=lambda im: (im[1].played_at is not None, im[1].played_at or datetime.min, im[0]))
    return [m for _i, m in indexed]


def _match_points(match: MatchRecord, player_id: str, scheme: PointScheme) -> int:
    outcome = match.outcome_for(player_id)
    if outcome == "D":
        return scheme.draw
    if outcome == "L":
        return scheme.loss
    if match.status == "walkover" and scheme.walkover is not None:
        return scheme.walkover
    return scheme.win


def recompute(
    rows: Iterable[StandingsRow],
    matches: Sequence[MatchRecord],
    scheme: Optional[PointScheme] = None,
    registration_order: Optional[Sequence[str]] = None,
    game_rules: Optional[GameRules] = None,
) -> list[StandingsRow]:
    """
    Build a fresh, ordered standings table.

    Args:
        rows: One row per registered competitor (only identity and name are read)
        matches: Full match log of the competition; unfinished matches are ignored
        scheme: Points per win/draw/loss, standard 3/1/0 when omitted
        registration_order: Participant ids in sign-up order; defaults to the
            order of rows
        game_rules: When given, every game score must be a valid finished game

    Returns:
        New StandingsRow objects, best first, positions numbered from 1

    Raises:
        InvalidInput: A finished match is malformed or involves an id that
            has no row. Nothing is built in that case.
    """
    scheme = scheme or POINT_SCHEMES["standard"]
    fresh = {}
    for row in rows:
        fresh[row.player_id] = new_row(row.player_id, row.name)
    if registration_order is None:
        registration_order = list(fresh)

    finished = [m for m in matches if m.is_finished]
    for m in finished:
        if game_rules is None:
            validate_completed(m)
        else:
            validate_completed(m, game_rules.target, game_rules.win_by, game_rules.cap)
        for pid in (m.player1_id, m.player2_id):
            if pid not in fresh:
                raise InvalidInput(f"Match {m.id} involves unregistered competitor {pid}")

    history = {pid: [] for pid in fresh}
    for m in _chronological(finished):
        p1, p2 = fresh[m.player1_id], fresh[m.player2_id]

        if m.status != "walkover":
            sets_1, sets_2, games_1, games_2 = summarize_sets(m.sets)
            p1.sets_won += sets_1
            p1.sets_lost += sets_2
            p1.games_won += games_1
            p1.games_lost += games_2
            p2.sets_won += sets_2
            p2.sets_lost += sets_1
            p2.games_won += games_2
            p2.games_lost += games_1

        for row in (p1, p2):
            outcome = m.outcome_for(row.player_id)
            row.played += 1
            if outcome == "W":
                row.won += 1
                row.streak = row.streak + 1 if row.streak > 0 else 1
            elif outcome == "L":
                row.lost += 1
                row.streak = row.streak - 1 if row.streak < 0 else -1
            else:
                row.drawn += 1
                row.streak = 0
            row.points += _match_points(m, row.player_id, scheme)
            history[row.player_id].append(outcome)

    for pid, outcomes in history.items():
        fresh[pid].form = list(reversed(outcomes[-FORM_LENGTH:]))

    ordered = sort_standings(fresh.values(), finished, registration_order)
    for position, row in enumerate(ordered, start=1):
        row.position = position

    log.debug("Recomputed standings: %d rows from %d finished matches", len(ordered), len(finished))
    return ordered


def is_regular_season_complete(matches: Iterable[MatchRecord]) -> bool:
    """True once every non-cancelled match is finished. An empty schedule is not complete."""
    active = [m for m in matches if m.status != "cancelled"]
    return bool(active) and all(m.is_finished for m in active)


def qualifiers(ordered_rows: Sequence[StandingsRow], n: int = PLAYOFF_QUALIFIERS) -> list[str]:
    """Top-n player ids of an already ordered table, seed 1 first."""
    return [row.player_id for row in ordered_rows[:n]]
