"""
Playoff brackets: creation from standings seeds and winner/loser propagation.

A bracket is a dict of PlayoffMatch nodes keyed by id. Completed nodes push
their winner (and, for semifinals, their loser) into a named slot of a
downstream node. Propagation is idempotent: repeating it is a no-op, and a
slot already holding someone else is a ConsistencyConflict.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence

from .errors import ConsistencyConflict, InvalidInput
from .logging_config import get_logger
from .models import PlayoffMatch

log = get_logger(__name__)

Bracket = dict[str, PlayoffMatch]

DEFAULT_IDS = {
    "semifinal_1": "semifinal-1",
    "semifinal_2": "semifinal-2",
    "final": "final",
    "consolation": "consolation",
}


def create_bracket(qualified: Sequence[str], ids: Optional[dict[str, str]] = None) -> Bracket:
    """
    Build the playoff bracket for seeded qualifiers (seed 1 first).

    With four or more qualifiers the top four play semifinals 1v4 and 2v3;
    winners meet in the final and losers in the consolation match. With two
    or three qualifiers seeds 1 and 2 go straight to the final.

    Args:
        qualified: Player ids ordered by seed
        ids: Optional overrides for the node ids, keyed like DEFAULT_IDS

    Raises:
        InvalidInput: Fewer than two qualifiers, or duplicate ids
    """
    if len(qualified) < 2:
        raise InvalidInput(f"A playoff needs at least 2 qualifiers, got {len(qualified)}")
    if len(set(qualified)) != len(qualified):
        raise InvalidInput("Qualifier list contains duplicates")
    names = {**DEFAULT_IDS, **(ids or {})}

    if len(qualified) < 4:
        final = PlayoffMatch(
            id=names["final"],
            round=1,
            type="final",
            player1_id=qualified[0],
            player2_id=qualified[1],
            status="scheduled",
        )
        log.debug("Created final-only bracket for %s", list(qualified[:2]))
        return {final.id: final}

    seed1, seed2, seed3, seed4 = qualified[:4]
    final = PlayoffMatch(id=names["final"], round=1, type="final")
    consolation = PlayoffMatch(id=names["consolation"], round=1, type="consolation")
    semi_1 = PlayoffMatch(
        id=names["semifinal_1"],
        round=2,
        type="semifinal",
        player1_id=seed1,
        player2_id=seed4,
        status="scheduled",
        next_match_for_winner=final.id,
        next_match_position_for_winner="player1",
        next_match_for_loser=consolation.id,
        next_match_position_for_loser="player1",
    )
    semi_2 = PlayoffMatch(
        id=names["semifinal_2"],
        round=2,
        type="semifinal",
        player1_id=seed2,
        player2_id=seed3,
        status="scheduled",
        next_match_for_winner=final.id,
        next_match_position_for_winner="player2",
        next_match_for_loser=consolation.id,
        next_match_position_for_loser="player2",
    )
    bracket = {m.id: m for m in (semi_1, semi_2, final, consolation)}
    if len(bracket) != 4:
        raise InvalidInput(f"Bracket node ids must be distinct, got {names}")
    log.debug("Created semifinal bracket: %s v %s, %s v %s", seed1, seed4, seed2, seed3)
    return bracket


def index_bracket(matches: Iterable[PlayoffMatch]) -> Bracket:
    return {m.id: m for m in matches}


def is_schedulable(match: PlayoffMatch) -> bool:
    return match.player1_id is not None and match.player2_id is not None


def advance(bracket: Bracket, completed: PlayoffMatch) -> Bracket:
    """
    Push a completed match's winner and loser into their downstream slots.

    Every target slot is checked before any is written, so a conflict leaves
    the bracket untouched. A target whose two slots are now filled moves from
    pending to scheduled.

    Raises:
        InvalidInput: The match is not completed, its winner did not play,
            or a downstream node is missing
        ConsistencyConflict: A target slot already holds a different player
    """
    if completed.status != "completed":
        raise InvalidInput(f"Playoff match {completed.id} is not completed (status={completed.status})")
    if completed.winner_id is None or completed.winner_id not in (completed.player1_id, completed.player2_id):
        raise InvalidInput(f"Playoff match {completed.id} has no valid winner")

    moves = []
    for target_id, position, player_id in (
        (completed.next_match_for_winner, completed.next_match_position_for_winner, completed.winner_id),
        (completed.next_match_for_loser, completed.next_match_position_for_loser, completed.loser_id),
    ):
        if target_id is None:
            continue
        target = bracket.get(target_id)
        if target is None:
            raise InvalidInput(f"Playoff match {completed.id} feeds unknown match {target_id}")
        if position not in ("player1", "player2"):
            raise InvalidInput(f"Playoff match {completed.id} has no slot position for {target_id}")
        current = target.slot(position)
        if current == player_id:
            continue
        if current is not None:
            raise ConsistencyConflict(
                f"{target_id}.{position} already holds {current}, refusing to overwrite with {player_id}"
            )
        moves.append((target, position, player_id))

    for target, position, player_id in moves:
        target.fill_slot(position, player_id)
        if target.status == "pending" and is_schedulable(target):
            target.status = "scheduled"
        log.debug("Advanced %s into %s.%s", player_id, target.id, position)
    return bracket


def complete_match(bracket: Bracket, match_id: str, winner_id: str) -> Bracket:
    """
    Record a playoff result and propagate it.

    Completing an already completed match with the same winner only re-runs
    the (idempotent) propagation; a different winner is a ConsistencyConflict.
    """
    match = bracket.get(match_id)
    if match is None:
        raise InvalidInput(f"Unknown playoff match {match_id}")
    if match.status == "completed":
        if match.winner_id != winner_id:
            raise ConsistencyConflict(
                f"Playoff match {match_id} already won by {match.winner_id}, not {winner_id}"
            )
        return advance(bracket, match)
    if not is_schedulable(match):
        raise InvalidInput(f"Playoff match {match_id} is still waiting for its players")
    if winner_id not in (match.player1_id, match.player2_id):
        raise InvalidInput(f"{winner_id} is not playing in {match_id}")

    match.winner_id = winner_id
    match.status = "completed"
    return advance(bracket, match)


def _node_of_type(bracket: Bracket, type_: str) -> Optional[PlayoffMatch]:
    for m in bracket.values():
        if m.type == type_:
            return m
    return None


def is_complete(bracket: Bracket) -> bool:
    """The final is decided, and the consolation match too when there is one."""
    final = _node_of_type(bracket, "final")
    if final is None or final.status != "completed":
        return False
    consolation = _node_of_type(bracket, "consolation")
    return consolation is None or consolation.status == "completed"


def placements(bracket: Bracket) -> Optional[dict[int, str]]:
    """Finishing places {1: champion, 2: runner-up[, 3, 4]}, or None while undecided."""
    if not is_complete(bracket):
        return None
    final = _node_of_type(bracket, "final")
    result = {1: final.winner_id, 2: final.loser_id}
    consolation = _node_of_type(bracket, "consolation")
    if consolation is not None:
        result[3] = consolation.winner_id
        result[4] = consolation.loser_id
    return result
