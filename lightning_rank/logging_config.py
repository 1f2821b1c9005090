"""
Logging for lightning_rank.

What gets logged where:
- lightning_rank.mmr, .standings, .tiebreak, .playoffs: DEBUG only. Every
  rating delta, standings rebuild, final ordering and bracket slot fill.
- lightning_rank.db: DEBUG after each read or write.
- lightning_rank.service: INFO for every applied result, WARNING for every
  rejected one (the exception is re-raised after logging).
- lightning_rank.config: WARNING when an environment value is unusable.

Environment variables:
- LOG_LEVEL: root level, DEBUG|INFO|WARNING|ERROR|CRITICAL (default INFO)
- ENGINE_LOG_LEVEL: level for the lightning_rank loggers alone, so rating
  deltas can be traced without turning on DEBUG for everything else
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Literal, Optional

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]

PACKAGE_LOGGER = "lightning_rank"

_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

_FMT_VERBOSE = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(funcName)s | %(message)s"
_FMT_CONCISE = "%(levelname).1s %(name)s: %(message)s"


def _parse_level(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    return _LEVELS.get(value.upper())


def setup_logging(
    level: Optional[LogLevel] = None,
    mode: Optional[Literal["test", "prod"]] = None,
    engine_level: Optional[LogLevel] = None,
) -> None:
    """Configure the root logger and the lightning_rank package logger.

    Args:
        level: Root level; overrides LOG_LEVEL. Unknown names mean INFO.
        mode: "test" forces the verbose format whatever the level.
        engine_level: Level for lightning_rank.* only; overrides
            ENGINE_LOG_LEVEL. When neither is set the package inherits
            the root level.
    """
    numeric_level = _parse_level(level or os.getenv("LOG_LEVEL", "INFO")) or logging.INFO
    package_level = _parse_level(engine_level or os.getenv("ENGINE_LOG_LEVEL"))

    root = logging.getLogger()
    for h in list(root.handlers):
        root.removeHandler(h)

    verbose = mode == "test" or min(numeric_level, package_level or numeric_level) <= logging.DEBUG
    handler = logging.StreamHandler(stream=sys.stdout)
    handler.setFormatter(logging.Formatter(fmt=_FMT_VERBOSE if verbose else _FMT_CONCISE, datefmt="%H:%M:%S"))

    root.setLevel(numeric_level)
    root.addHandler(handler)
    logging.getLogger(PACKAGE_LOGGER).setLevel(package_level or logging.NOTSET)

    # sqlite driver chatter only in full debug
    logging.getLogger("aiosqlite").setLevel(logging.INFO if numeric_level <= logging.DEBUG else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Convenience wrapper to get a module logger."""
    return logging.getLogger(name)
