"""
Data models for the rating, standings and playoff engine.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

RatingContext = Literal["public", "club"]
MatchStatus = Literal["scheduled", "in_progress", "completed", "cancelled", "postponed", "walkover"]
MatchType = Literal["singles", "doubles", "mixed_doubles"]
SlotPosition = Literal["player1", "player2"]

FINISHED_STATUSES = ("completed", "walkover")
MATCH_TYPES = ("singles", "doubles", "mixed_doubles")


@dataclass
class Rating:
    player_id: str
    value: float = 1200.0
    matches_played: int = 0
    context: str = "public"
    club_id: str | None = None
    match_type: str = "singles"  # each type is its own rating line


@dataclass
class SetScore:
    player1_games: int
    player2_games: int


@dataclass
class MatchRecord:
    """One pairing in a round-robin competition.

    A completed match carries either a winner_id or is_draw=True. A walkover
    carries a winner_id and no set scores.
    """

    id: str
    player1_id: str
    player2_id: str
    status: str = "scheduled"
    winner_id: str | None = None
    is_draw: bool = False
    sets: list[SetScore] = field(default_factory=list)
    played_at: datetime | None = None

    @property
    def is_finished(self) -> bool:
        return self.status in FINISHED_STATUSES

    def involves(self, player_id: str) -> bool:
        return player_id in (self.player1_id, self.player2_id)

    def is_between(self, a: str, b: str) -> bool:
        return {self.player1_id, self.player2_id} == {a, b}

    def outcome_for(self, player_id: str) -> str:
        """Return 'W', 'D' or 'L' from player_id's point of view."""
        if self.is_draw:
            return "D"
        return "W" if self.winner_id == player_id else "L"


@dataclass
class PointScheme:
    win: int = 3
    draw: int = 1
    loss: int = 0
    walkover: int | None = None  # None: walkover winner gets the win points

    def points_for(self, won: int, drawn: int, lost: int) -> int:
        return won * self.win + drawn * self.draw + lost * self.loss


@dataclass(frozen=True)
class GameRules:
    """Rally-scoring limits every game score in a competition must respect."""

    target: int = 11
    win_by: int = 2
    cap: int | None = None


@dataclass
class StandingsRow:
    player_id: str
    name: str = ""
    position: int = 0
    played: int = 0
    won: int = 0
    drawn: int = 0
    lost: int = 0
    games_won: int = 0
    games_lost: int = 0
    sets_won: int = 0
    sets_lost: int = 0
    points: int = 0
    form: list[str] = field(default_factory=list)  # most recent first, at most 5
    streak: int = 0  # +n winning run, -n losing run, 0 after a draw

    @property
    def game_difference(self) -> int:
        return self.games_won - self.games_lost

    @property
    def set_difference(self) -> int:
        return self.sets_won - self.sets_lost

    @property
    def set_ratio(self) -> float:
        total = self.sets_won + self.sets_lost
        return self.sets_won / total if total > 0 else 0.0

    @property
    def game_ratio(self) -> float:
        total = self.games_won + self.games_lost
        return self.games_won / total if total > 0 else 0.0


@dataclass
class PlayoffMatch:
    """Node in a playoff bracket. round 1 is the final (and consolation)."""

    id: str
    round: int
    type: str = "final"  # semifinal | final | consolation
    player1_id: str | None = None
    player2_id: str | None = None
    status: str = "pending"  # pending | scheduled | completed
    winner_id: str | None = None
    next_match_for_winner: str | None = None
    next_match_for_loser: str | None = None
    next_match_position_for_winner: str | None = None
    next_match_position_for_loser: str | None = None

    @property
    def loser_id(self) -> str | None:
        if self.winner_id is None:
            return None
        if self.winner_id == self.player1_id:
            return self.player2_id
        if self.winner_id == self.player2_id:
            return self.player1_id
        return None

    def slot(self, position: str) -> str | None:
        return self.player1_id if position == "player1" else self.player2_id

    def fill_slot(self, position: str, player_id: str) -> None:
        if position == "player1":
            self.player1_id = player_id
        else:
            self.player2_id = player_id
