"""
Environment-driven settings.

Values come from the process environment (a local .env file is loaded first).
Engine functions never read these directly; callers build a Settings object
with load_settings() and pass the relevant numbers down.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

from .logging_config import get_logger

log = get_logger(__name__)

load_dotenv()

DEFAULT_DATABASE_PATH = "./lightning_rank.sqlite"
MEMORY_DATABASE_PATH = "file::memory:?cache=shared"


def _env_flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


def _env_int(name: str, default: int, minimum: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("Invalid %s value %r, using default %s", name, raw, default)
        return default
    if minimum is not None and value < minimum:
        log.warning("%s must be >= %s, using default %s", name, minimum, default)
        return default
    return value


def _env_float(name: str, default: float, positive: bool = True) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        log.warning("Invalid %s value %r, using default %s", name, raw, default)
        return default
    if positive and value <= 0:
        log.warning("%s must be positive, using default %s", name, default)
        return default
    return value


@dataclass(frozen=True)
class Settings:
    database_path: str = DEFAULT_DATABASE_PATH
    initial_rating: float = 1200.0
    rating_floor: float = 800.0
    k_factor_new: float = 32.0
    k_factor_established: float = 16.0
    k_factor_experience_threshold: int = 10
    club_k_multiplier: float = 0.5
    confidence_threshold: float = 0.7
    official_ranker_matches: int = 5
    point_scheme: str = "standard"


def load_settings() -> Settings:
    """Build Settings from the environment, falling back to defaults on bad values."""
    database_path = os.getenv("DATABASE_PATH", DEFAULT_DATABASE_PATH)
    if _env_flag("EPHEMERAL_DB"):
        database_path = MEMORY_DATABASE_PATH

    point_scheme = os.getenv("POINT_SCHEME", "standard").lower()
    if point_scheme not in ("standard", "pickleball"):
        log.warning("Unknown POINT_SCHEME %r, using 'standard'", point_scheme)
        point_scheme = "standard"

    threshold = _env_float("CONFIDENCE_THRESHOLD", 0.7)
    if threshold > 1.0:
        log.warning("CONFIDENCE_THRESHOLD must be <= 1.0, using default 0.7")
        threshold = 0.7

    settings = Settings(
        database_path=database_path,
        initial_rating=_env_float("INITIAL_RATING", 1200.0),
        rating_floor=_env_float("RATING_FLOOR", 800.0),
        k_factor_new=_env_float("K_FACTOR_NEW", 32.0),
        k_factor_established=_env_float("K_FACTOR_ESTABLISHED", 16.0),
        k_factor_experience_threshold=_env_int("K_FACTOR_EXPERIENCE_THRESHOLD", 10, minimum=0),
        club_k_multiplier=_env_float("CLUB_K_MULTIPLIER", 0.5),
        confidence_threshold=threshold,
        official_ranker_matches=_env_int("OFFICIAL_RANKER_MATCHES", 5, minimum=1),
        point_scheme=point_scheme,
    )
    log.debug("Loaded settings: %s", settings)
    return settings
