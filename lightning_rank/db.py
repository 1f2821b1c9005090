import json
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import aiosqlite

from .config import DEFAULT_DATABASE_PATH
from .logging_config import get_logger
from .models import GameRules, MatchRecord, PlayoffMatch, PointScheme, Rating, SetScore, StandingsRow

log = get_logger(__name__)

# Global variable for database path (will be set by init_db)
DB_PATH = DEFAULT_DATABASE_PATH


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _club_key(club_id: Optional[str]) -> str:
    # Stored as '' so it can take part in the primary key
    return club_id or ""


def _connect(path: Optional[str] = None, **kwargs) -> aiosqlite.Connection:
    return aiosqlite.connect(path or DB_PATH, uri=True, **kwargs)


@asynccontextmanager
async def _use(conn: Optional[aiosqlite.Connection]):
    """Reuse the caller's connection (inside a transaction) or open a short-lived one."""
    if conn is not None:
        yield conn
        return
    async with _connect() as db:
        db.row_factory = aiosqlite.Row
        yield db
        await db.commit()


@asynccontextmanager
async def transaction(path: Optional[str] = None):
    """
    One write transaction on path (default: the path given to init_db),
    taken with BEGIN IMMEDIATE so concurrent writers queue on the database
    lock instead of interleaving read-then-write.
    Rolls back on any exception and re-raises it.
    """
    async with _connect(path, isolation_level=None) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("BEGIN IMMEDIATE")
        try:
            yield db
        except BaseException:
            await db.execute("ROLLBACK")
            log.debug("Transaction rolled back")
            raise
        await db.execute("COMMIT")


async def init_db(db_path: str = DEFAULT_DATABASE_PATH):
    """Initialize the database with required tables."""
    global DB_PATH
    DB_PATH = db_path

    async with _connect(DB_PATH) as db:
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS ratings (
                player_id TEXT NOT NULL,
                context TEXT NOT NULL DEFAULT 'public',
                club_id TEXT NOT NULL DEFAULT '',
                match_type TEXT NOT NULL DEFAULT 'singles',
                rating REAL NOT NULL,
                matches_played INTEGER NOT NULL DEFAULT 0,
                wins INTEGER NOT NULL DEFAULT 0,
                losses INTEGER NOT NULL DEFAULT 0,
                updated_at TEXT,
                PRIMARY KEY (player_id, context, club_id, match_type)
            )
            """
        )
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS competitions (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL DEFAULT '',
                status TEXT NOT NULL DEFAULT 'active',
                point_scheme TEXT NOT NULL,
                participants TEXT NOT NULL,
                game_rules TEXT,
                created_at TEXT
            )
            """
        )
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS league_matches (
                competition_id TEXT NOT NULL,
                id TEXT NOT NULL,
                player1_id TEXT NOT NULL,
                player2_id TEXT NOT NULL,
                status TEXT NOT NULL DEFAULT 'scheduled',
                winner_id TEXT,
                is_draw INTEGER NOT NULL DEFAULT 0,
                sets TEXT NOT NULL DEFAULT '[]',
                played_at TEXT,
                PRIMARY KEY (competition_id, id)
            )
            """
        )
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS standings (
                competition_id TEXT NOT NULL,
                player_id TEXT NOT NULL,
                name TEXT NOT NULL DEFAULT '',
                position INTEGER NOT NULL,
                played INTEGER NOT NULL,
                won INTEGER NOT NULL,
                drawn INTEGER NOT NULL,
                lost INTEGER NOT NULL,
                games_won INTEGER NOT NULL,
                games_lost INTEGER NOT NULL,
                sets_won INTEGER NOT NULL,
                sets_lost INTEGER NOT NULL,
                points INTEGER NOT NULL,
                form TEXT NOT NULL DEFAULT '',
                streak INTEGER NOT NULL DEFAULT 0,
                PRIMARY KEY (competition_id, player_id)
            )
            """
        )
        await db.execute(
            """
            CREATE TABLE IF NOT EXISTS playoff_matches (
                competition_id TEXT NOT NULL,
                id TEXT NOT NULL,
                round INTEGER NOT NULL,
                type TEXT NOT NULL,
                player1_id TEXT,
                player2_id TEXT,
                status TEXT NOT NULL DEFAULT 'pending',
                winner_id TEXT,
                next_match_for_winner TEXT,
                next_match_for_loser TEXT,
                next_match_position_for_winner TEXT,
                next_match_position_for_loser TEXT,
                PRIMARY KEY (competition_id, id)
            )
            """
        )
        await db.commit()
    log.debug("Initialized database at %s", DB_PATH)


# --- Ratings ---

async def get_rating(
    player_id: str,
    context: str = "public",
    club_id: Optional[str] = None,
    initial_rating: float = 1200.0,
    match_type: str = "singles",
    conn: Optional[aiosqlite.Connection] = None,
) -> Rating:
    """Current rating on one line; unknown players start at initial_rating."""
    async with _use(conn) as db:
        async with db.execute(
            """
            SELECT rating, matches_played FROM ratings
            WHERE player_id = ? AND context = ? AND club_id = ? AND match_type = ?
            """,
            (player_id, context, _club_key(club_id), match_type),
        ) as cursor:
            row = await cursor.fetchone()
    if row is None:
        log.debug("No %s rating for player=%s context=%s club=%s, using %.1f", match_type, player_id, context, club_id, initial_rating)
        return Rating(player_id, initial_rating, 0, context, club_id, match_type)
    rating = Rating(player_id, row[0], row[1], context, club_id, match_type)
    log.debug("Fetched %s rating player=%s context=%s club=%s -> %.1f (%d matches)", match_type, player_id, context, club_id, rating.value, rating.matches_played)
    return rating


async def save_rating(
    rating: Rating,
    won: Optional[bool] = None,
    floor: float = 800.0,
    conn: Optional[aiosqlite.Connection] = None,
) -> Rating:
    """Upsert a rating line, never storing it below floor. won updates the win/loss tally."""
    value = max(float(rating.value), floor)
    wins = 1 if won is True else 0
    losses = 1 if won is False else 0
    async with _use(conn) as db:
        await db.execute(
            """
            INSERT INTO ratings (player_id, context, club_id, match_type, rating, matches_played, wins, losses, updated_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (player_id, context, club_id, match_type) DO UPDATE SET
                rating = excluded.rating,
                matches_played = excluded.matches_played,
                wins = wins + excluded.wins,
                losses = losses + excluded.losses,
                updated_at = excluded.updated_at
            """,
            (rating.player_id, rating.context, _club_key(rating.club_id), rating.match_type,
             value, rating.matches_played, wins, losses, _now()),
        )
    log.debug("Saved %s rating player=%s context=%s club=%s rating=%.1f matches=%d", rating.match_type, rating.player_id, rating.context, rating.club_id, value, rating.matches_played)
    return Rating(rating.player_id, value, rating.matches_played, rating.context, rating.club_id, rating.match_type)


async def get_rating_record(
    player_id: str,
    context: str = "public",
    club_id: Optional[str] = None,
    match_type: str = "singles",
    conn: Optional[aiosqlite.Connection] = None,
) -> dict | None:
    """Full stored row for a rating line (wins, losses, updated_at), or None."""
    async with _use(conn) as db:
        async with db.execute(
            "SELECT * FROM ratings WHERE player_id = ? AND context = ? AND club_id = ? AND match_type = ?",
            (player_id, context, _club_key(club_id), match_type),
        ) as cursor:
            row = await cursor.fetchone()
    return dict(row) if row else None


# --- Competitions ---

async def create_competition(
    competition_id: str,
    participants: list[dict],
    point_scheme: PointScheme,
    name: str = "",
    game_rules: Optional[GameRules] = None,
    conn: Optional[aiosqlite.Connection] = None,
) -> None:
    """Insert a competition. participants is [{"player_id", "name"}] in registration order."""
    scheme = {
        "win": point_scheme.win,
        "draw": point_scheme.draw,
        "loss": point_scheme.loss,
        "walkover": point_scheme.walkover,
    }
    rules_str = None
    if game_rules is not None:
        rules_str = json.dumps({"target": game_rules.target, "win_by": game_rules.win_by, "cap": game_rules.cap})
    async with _use(conn) as db:
        await db.execute(
            """
            INSERT INTO competitions (id, name, status, point_scheme, participants, game_rules, created_at)
            VALUES (?, ?, 'active', ?, ?, ?, ?)
            """,
            (competition_id, name, json.dumps(scheme), json.dumps(participants), rules_str, _now()),
        )
    log.debug("Created competition id=%s participants=%d game_rules=%s", competition_id, len(participants), rules_str)


async def get_competition(competition_id: str, conn: Optional[aiosqlite.Connection] = None) -> dict | None:
    async with _use(conn) as db:
        async with db.execute("SELECT * FROM competitions WHERE id = ?", (competition_id,)) as cursor:
            row = await cursor.fetchone()
    if row is None:
        return None
    competition = dict(row)
    competition["point_scheme"] = PointScheme(**json.loads(competition["point_scheme"]))
    competition["participants"] = json.loads(competition["participants"])
    if competition["game_rules"]:
        competition["game_rules"] = GameRules(**json.loads(competition["game_rules"]))
    else:
        competition["game_rules"] = None
    log.debug("Fetched competition id=%s status=%s", competition_id, competition["status"])
    return competition


async def set_competition_status(competition_id: str, status: str, conn: Optional[aiosqlite.Connection] = None) -> None:
    async with _use(conn) as db:
        await db.execute("UPDATE competitions SET status = ? WHERE id = ?", (status, competition_id))
    log.debug("Set competition id=%s status=%s", competition_id, status)


# --- League matches ---

def _match_from_row(row) -> MatchRecord:
    return MatchRecord(
        id=row["id"],
        player1_id=row["player1_id"],
        player2_id=row["player2_id"],
        status=row["status"],
        winner_id=row["winner_id"],
        is_draw=bool(row["is_draw"]),
        sets=[SetScore(s[0], s[1]) for s in json.loads(row["sets"] or "[]")],
        played_at=datetime.fromisoformat(row["played_at"]) if row["played_at"] else None,
    )


async def upsert_match(competition_id: str, match: MatchRecord, conn: Optional[aiosqlite.Connection] = None) -> None:
    """Insert or update a league match; an update keeps the match's original log position."""
    sets_str = json.dumps([[s.player1_games, s.player2_games] for s in match.sets])
    played_at = match.played_at.isoformat() if match.played_at else None
    async with _use(conn) as db:
        await db.execute(
            """
            INSERT INTO league_matches (competition_id, id, player1_id, player2_id, status, winner_id, is_draw, sets, played_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
            ON CONFLICT (competition_id, id) DO UPDATE SET
                player1_id = excluded.player1_id,
                player2_id = excluded.player2_id,
                status = excluded.status,
                winner_id = excluded.winner_id,
                is_draw = excluded.is_draw,
                sets = excluded.sets,
                played_at = excluded.played_at
            """,
            (competition_id, match.id, match.player1_id, match.player2_id, match.status,
             match.winner_id, int(match.is_draw), sets_str, played_at),
        )
    log.debug("Upserted match competition=%s id=%s status=%s winner=%s", competition_id, match.id, match.status, match.winner_id)


async def list_matches(competition_id: str, conn: Optional[aiosqlite.Connection] = None) -> list[MatchRecord]:
    """Full match log of a competition in insertion order."""
    async with _use(conn) as db:
        async with db.execute(
            "SELECT * FROM league_matches WHERE competition_id = ? ORDER BY rowid",
            (competition_id,),
        ) as cursor:
            rows = await cursor.fetchall()
    matches = [_match_from_row(r) for r in rows]
    log.debug("Fetched %d matches for competition=%s", len(matches), competition_id)
    return matches


# --- Standings ---

async def save_standings(competition_id: str, rows: list[StandingsRow], conn: Optional[aiosqlite.Connection] = None) -> None:
    """Replace the stored standings snapshot."""
    async with _use(conn) as db:
        await db.execute("DELETE FROM standings WHERE competition_id = ?", (competition_id,))
        await db.executemany(
            """
            INSERT INTO standings (competition_id, player_id, name, position, played, won, drawn, lost,
                                   games_won, games_lost, sets_won, sets_lost, points, form, streak)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (competition_id, r.player_id, r.name, r.position, r.played, r.won, r.drawn, r.lost,
                 r.games_won, r.games_lost, r.sets_won, r.sets_lost, r.points, "".join(r.form), r.streak)
                for r in rows
            ],
        )
    log.debug("Saved %d standings rows for competition=%s", len(rows), competition_id)


async def get_standings(competition_id: str, conn: Optional[aiosqlite.Connection] = None) -> list[StandingsRow]:
    async with _use(conn) as db:
        async with db.execute(
            "SELECT * FROM standings WHERE competition_id = ? ORDER BY position",
            (competition_id,),
        ) as cursor:
            rows = await cursor.fetchall()
    standings = []
    for r in rows:
        data = dict(r)
        data.pop("competition_id")
        data["form"] = list(data["form"])
        standings.append(StandingsRow(**data))
    log.debug("Fetched %d standings rows for competition=%s", len(standings), competition_id)
    return standings


# --- Playoffs ---

_PLAYOFF_COLUMNS = (
    "id", "round", "type", "player1_id", "player2_id", "status", "winner_id",
    "next_match_for_winner", "next_match_for_loser",
    "next_match_position_for_winner", "next_match_position_for_loser",
)


async def save_playoff_matches(competition_id: str, matches: list[PlayoffMatch], conn: Optional[aiosqlite.Connection] = None) -> None:
    """Insert or update bracket nodes."""
    placeholders = ", ".join("?" for _ in range(len(_PLAYOFF_COLUMNS) + 1))
    updates = ", ".join(f"{c} = excluded.{c}" for c in _PLAYOFF_COLUMNS if c != "id")
    async with _use(conn) as db:
        await db.executemany(
            f"""
            INSERT INTO playoff_matches (competition_id, {", ".join(_PLAYOFF_COLUMNS)})
            VALUES ({placeholders})
            ON CONFLICT (competition_id, id) DO UPDATE SET {updates}
            """,
            [(competition_id, *(getattr(m, c) for c in _PLAYOFF_COLUMNS)) for m in matches],
        )
    log.debug("Saved %d playoff matches for competition=%s", len(matches), competition_id)


async def get_playoff_bracket(competition_id: str, conn: Optional[aiosqlite.Connection] = None) -> dict[str, PlayoffMatch]:
    async with _use(conn) as db:
        async with db.execute(
            f"SELECT {', '.join(_PLAYOFF_COLUMNS)} FROM playoff_matches WHERE competition_id = ? ORDER BY round DESC, rowid",
            (competition_id,),
        ) as cursor:
            rows = await cursor.fetchall()
    bracket = {r["id"]: PlayoffMatch(**dict(r)) for r in rows}
    log.debug("Fetched %d playoff matches for competition=%s", len(bracket), competition_id)
    return bracket
