"""
Orchestration: reads state from the database, runs the pure engine and
writes the result back inside one transaction.

Every operation here is the single writer for what it touches: rating
updates, league results and playoff results each take one BEGIN IMMEDIATE
transaction, so concurrent submissions are applied one after another
against a consistent snapshot.

Operations that take settings write to settings.database_path. Without
settings they use the database opened by db.init_db. Either way init_db
must have created the schema on that path first.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from . import db
from .config import Settings, load_settings
from .errors import ConsistencyConflict, InvalidInput
from .logging_config import get_logger
from .mmr import club_k_factor, k_factor, sanitize_rating, update_rating
from .models import MATCH_TYPES, GameRules, MatchRecord, PointScheme, Rating, StandingsRow
from .playoffs import Bracket, complete_match, create_bracket, is_complete, placements
from .standings import PLAYOFF_QUALIFIERS, is_regular_season_complete, point_scheme, qualifiers, recompute

log = get_logger(__name__)


def _db_path(settings: Optional[Settings]) -> Optional[str]:
    return settings.database_path if settings is not None else None


@dataclass
class RatingChange:
    player_id: str
    context: str
    club_id: Optional[str]
    before: float
    after: float
    k_factor: float
    match_type: str = "singles"

    @property
    def delta(self) -> float:
        return self.after - self.before


@dataclass
class RatedMatchResult:
    winner_id: str
    loser_id: str
    changes: list[RatingChange] = field(default_factory=list)

    def change_for(
        self, player_id: str, context: str = "public", match_type: Optional[str] = None
    ) -> Optional[RatingChange]:
        for change in self.changes:
            if change.player_id != player_id or change.context != context:
                continue
            if match_type is None or change.match_type == match_type:
                return change
        return None


async def _apply_line(
    conn,
    player1_id: str,
    player2_id: str,
    winner_id: str,
    context: str,
    club_id: Optional[str],
    match_type: str,
    k_for,
    settings: Settings,
) -> list[RatingChange]:
    r1 = await db.get_rating(player1_id, context, club_id, settings.initial_rating, match_type, conn=conn)
    r2 = await db.get_rating(player2_id, context, club_id, settings.initial_rating, match_type, conn=conn)
    before_1 = sanitize_rating(r1.value, settings.initial_rating)
    before_2 = sanitize_rating(r2.value, settings.initial_rating)
    # Experience is counted per match type, so a singles veteran is new at doubles
    k1, k2 = k_for(r1.matches_played), k_for(r2.matches_played)

    won_1 = winner_id == player1_id
    after_1 = update_rating(before_1, before_2, "win" if won_1 else "loss", k1, settings.rating_floor)
    after_2 = update_rating(before_2, before_1, "loss" if won_1 else "win", k2, settings.rating_floor)

    await db.save_rating(
        Rating(player1_id, after_1, r1.matches_played + 1, context, club_id, match_type),
        won=won_1, floor=settings.rating_floor, conn=conn,
    )
    await db.save_rating(
        Rating(player2_id, after_2, r2.matches_played + 1, context, club_id, match_type),
        won=not won_1, floor=settings.rating_floor, conn=conn,
    )
    return [
        RatingChange(player1_id, context, club_id, before_1, after_1, k1, match_type),
        RatingChange(player2_id, context, club_id, before_2, after_2, k2, match_type),
    ]


async def record_rated_match(
    player1_id: str,
    player2_id: str,
    winner_id: str,
    context: str = "public",
    club_id: Optional[str] = None,
    settings: Optional[Settings] = None,
    match_type: str = "singles",
) -> RatedMatchResult:
    """
    Rate a result and persist both sides' new ratings.

    A public match moves the public line. A club match moves that club's own
    line (K 32/16 on club experience) and also feeds the public line at the
    reduced club weight. Singles, doubles and mixed doubles are separate
    lines; for doubles the ids name the two teams.

    Raises:
        InvalidInput: Self-pairing, a winner who did not play, an unknown
            context or match type, or a club match without club_id
    """
    path = _db_path(settings)
    settings = settings or load_settings()
    try:
        if player1_id == player2_id:
            raise InvalidInput(f"{player1_id} cannot play themselves")
        if winner_id not in (player1_id, player2_id):
            raise InvalidInput(f"Winner {winner_id} did not play this match")
        if context not in ("public", "club"):
            raise InvalidInput(f"Unknown rating context {context!r}")
        if context == "club" and not club_id:
            raise InvalidInput("A club match needs a club_id")
        if match_type not in MATCH_TYPES:
            raise InvalidInput(f"Unknown match type {match_type!r}")
    except InvalidInput as e:
        log.warning("Rejected rated match %s v %s: %s", player1_id, player2_id, e)
        raise

    loser_id = player2_id if winner_id == player1_id else player1_id
    result = RatedMatchResult(winner_id=winner_id, loser_id=loser_id)

    def public_k(matches_played: int) -> float:
        return k_factor(
            matches_played,
            context,
            new_k=settings.k_factor_new,
            established_k=settings.k_factor_established,
            experience_threshold=settings.k_factor_experience_threshold,
            club_multiplier=settings.club_k_multiplier,
        )

    def club_k(matches_played: int) -> float:
        return club_k_factor(
            matches_played,
            new_k=settings.k_factor_new,
            established_k=settings.k_factor_established,
            experience_threshold=settings.k_factor_experience_threshold,
        )

    async with db.transaction(path) as conn:
        if context == "club":
            result.changes += await _apply_line(
                conn, player1_id, player2_id, winner_id, "club", club_id, match_type, club_k, settings
            )
        result.changes += await _apply_line(
            conn, player1_id, player2_id, winner_id, "public", None, match_type, public_k, settings
        )

    for change in result.changes:
        log.info(
            "Rating %s [%s%s %s]: %.0f -> %.0f (%+.0f, k=%s)",
            change.player_id, change.context, f":{change.club_id}" if change.club_id else "",
            change.match_type, change.before, change.after, change.delta, change.k_factor,
        )
    return result


async def register_competition(
    competition_id: str,
    participants: Sequence,
    scheme: Optional[PointScheme | str] = None,
    name: str = "",
    settings: Optional[Settings] = None,
    game_rules: Optional[GameRules] = None,
) -> list[StandingsRow]:
    """
    Create a round-robin competition and its empty standings table.

    participants are player ids or (player_id, name) pairs, in registration
    order. scheme is a PointScheme, a preset name, or None for the
    configured default. game_rules, when given, is enforced on every game
    score submitted to this competition.
    """
    path = _db_path(settings)
    settings = settings or load_settings()
    if scheme is None:
        scheme = settings.point_scheme
    if isinstance(scheme, str):
        scheme = point_scheme(scheme)

    entries = []
    for p in participants:
        if isinstance(p, str):
            entries.append({"player_id": p, "name": ""})
        else:
            entries.append({"player_id": p[0], "name": p[1]})
    ids = [e["player_id"] for e in entries]
    if len(set(ids)) != len(ids):
        log.warning("Rejected competition %s: duplicate participants", competition_id)
        raise InvalidInput("Participant list contains duplicates")

    rows = recompute([StandingsRow(e["player_id"], e["name"]) for e in entries], [], scheme, ids)
    async with db.transaction(path) as conn:
        await db.create_competition(competition_id, entries, scheme, name, game_rules, conn=conn)
        await db.save_standings(competition_id, rows, conn=conn)
    log.info("Registered competition %s with %d participants", competition_id, len(entries))
    return rows


async def _load_competition(conn, competition_id: str) -> dict:
    competition = await db.get_competition(competition_id, conn=conn)
    if competition is None:
        raise InvalidInput(f"Unknown competition {competition_id}")
    return competition


def _outcome(match: MatchRecord) -> tuple:
    return match.status, match.winner_id, match.is_draw


def _rows_for(competition: dict) -> tuple[list[StandingsRow], list[str]]:
    entries = competition["participants"]
    rows = [StandingsRow(e["player_id"], e.get("name", "")) for e in entries]
    return rows, [e["player_id"] for e in entries]


async def submit_league_result(
    competition_id: str, match: MatchRecord, settings: Optional[Settings] = None
) -> list[StandingsRow]:
    """
    Store a league match and rebuild the standings from the whole match log.

    Standings are frozen once the regular season hands over to playoffs, so
    results for a competition that is no longer active are rejected.
    Resubmitting a stored match unchanged is a no-op. A finished match may
    not be resubmitted with a different outcome (ConsistencyConflict).
    """
    try:
        async with db.transaction(_db_path(settings)) as conn:
            competition = await _load_competition(conn, competition_id)
            if competition["status"] != "active":
                raise InvalidInput(
                    f"Competition {competition_id} is {competition['status']}, standings are frozen"
                )
            rows, order = _rows_for(competition)
            matches = await db.list_matches(competition_id, conn=conn)
            ids = [m.id for m in matches]
            if match.id in ids:
                stored = matches[ids.index(match.id)]
                if stored == match:
                    log.info("Match %s in %s already recorded", match.id, competition_id)
                    return await db.get_standings(competition_id, conn=conn)
                if stored.is_finished and _outcome(stored) != _outcome(match):
                    raise ConsistencyConflict(
                        f"Match {match.id} already finished as {_outcome(stored)}, got {_outcome(match)}"
                    )
                matches[ids.index(match.id)] = match
            else:
                matches.append(match)
            # Validate against the full log before writing anything
            standings = recompute(
                rows, matches, competition["point_scheme"], order, game_rules=competition["game_rules"]
            )
            await db.upsert_match(competition_id, match, conn=conn)
            await db.save_standings(competition_id, standings, conn=conn)
    except (InvalidInput, ConsistencyConflict) as e:
        log.warning("Rejected result %s for competition %s: %s", match.id, competition_id, e)
        raise

    log.info("Recorded match %s in %s (status=%s, winner=%s)", match.id, competition_id, match.status, match.winner_id)
    return standings


async def start_playoffs(
    competition_id: str,
    n: int = PLAYOFF_QUALIFIERS,
    ids: Optional[dict[str, str]] = None,
    settings: Optional[Settings] = None,
) -> Bracket:
    """Seed the playoff bracket from the final regular-season standings."""
    try:
        async with db.transaction(_db_path(settings)) as conn:
            competition = await _load_competition(conn, competition_id)
            if competition["status"] != "active":
                raise InvalidInput(f"Competition {competition_id} is already {competition['status']}")
            if not is_regular_season_complete(await db.list_matches(competition_id, conn=conn)):
                raise InvalidInput(f"Regular season of {competition_id} is not complete")
            standings = await db.get_standings(competition_id, conn=conn)
            bracket = create_bracket(qualifiers(standings, n), ids)
            await db.save_playoff_matches(competition_id, list(bracket.values()), conn=conn)
            await db.set_competition_status(competition_id, "playoffs", conn=conn)
    except InvalidInput as e:
        log.warning("Could not start playoffs for %s: %s", competition_id, e)
        raise

    log.info("Started playoffs for %s with %d matches", competition_id, len(bracket))
    return bracket


async def submit_playoff_result(
    competition_id: str, match_id: str, winner_id: str, settings: Optional[Settings] = None
) -> Optional[dict[int, str]]:
    """
    Complete a playoff match and propagate its winner and loser.

    Returns the final placements once the bracket is decided (the
    competition is then marked completed), otherwise None.
    """
    try:
        async with db.transaction(_db_path(settings)) as conn:
            bracket = await db.get_playoff_bracket(competition_id, conn=conn)
            if not bracket:
                raise InvalidInput(f"Competition {competition_id} has no playoff bracket")
            complete_match(bracket, match_id, winner_id)
            await db.save_playoff_matches(competition_id, list(bracket.values()), conn=conn)
            done = is_complete(bracket)
            if done:
                await db.set_competition_status(competition_id, "completed", conn=conn)
    except (InvalidInput, ConsistencyConflict) as e:
        log.warning("Rejected playoff result %s=%s in %s: %s", match_id, winner_id, competition_id, e)
        raise

    log.info("Playoff match %s in %s won by %s", match_id, competition_id, winner_id)
    if done:
        result = placements(bracket)
        log.info("Playoffs for %s complete: %s", competition_id, result)
        return result
    return None
