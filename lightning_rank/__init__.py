"""Lightning Rank core package.

Exports commonly used modules for convenience.
"""

from . import confidence as confidence
from . import db as db
from . import logging_config as logging_config
from . import mmr as mmr
from . import playoffs as playoffs
from . import rules as rules
from . import service as service
from . import standings as standings
from . import tiebreak as tiebreak
from . import tiers as tiers
from .errors import ConsistencyConflict, InvalidInput, RankingError
from .models import MATCH_TYPES, GameRules, MatchRecord, PlayoffMatch, PointScheme, Rating, SetScore, StandingsRow

__all__ = [
    "confidence",
    "db",
    "logging_config",
    "mmr",
    "playoffs",
    "rules",
    "service",
    "standings",
    "tiebreak",
    "tiers",
    "RankingError",
    "InvalidInput",
    "ConsistencyConflict",
    "MATCH_TYPES",
    "GameRules",
    "MatchRecord",
    "PlayoffMatch",
    "PointScheme",
    "Rating",
    "SetScore",
    "StandingsRow",
]
