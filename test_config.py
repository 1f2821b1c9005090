"""
Tests for environment-driven settings and logging setup.
"""

import logging

from lightning_rank.config import DEFAULT_DATABASE_PATH, MEMORY_DATABASE_PATH, load_settings
from lightning_rank.logging_config import PACKAGE_LOGGER, setup_logging

ENV_VARS = (
    "DATABASE_PATH", "EPHEMERAL_DB", "POINT_SCHEME", "CONFIDENCE_THRESHOLD",
    "K_FACTOR_NEW", "K_FACTOR_ESTABLISHED", "K_FACTOR_EXPERIENCE_THRESHOLD",
    "CLUB_K_MULTIPLIER", "INITIAL_RATING", "RATING_FLOOR", "OFFICIAL_RANKER_MATCHES",
)


def _clear(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults(monkeypatch):
    _clear(monkeypatch)
    settings = load_settings()
    assert settings.database_path == DEFAULT_DATABASE_PATH
    assert settings.k_factor_new == 32.0
    assert settings.k_factor_experience_threshold == 10
    assert settings.confidence_threshold == 0.7
    assert settings.point_scheme == "standard"


def test_overrides(monkeypatch):
    _clear(monkeypatch)
    monkeypatch.setenv("EPHEMERAL_DB", "1")
    monkeypatch.setenv("POINT_SCHEME", "Pickleball")
    monkeypatch.setenv("K_FACTOR_NEW", "40")
    monkeypatch.setenv("OFFICIAL_RANKER_MATCHES", "8")
    settings = load_settings()
    assert settings.database_path == MEMORY_DATABASE_PATH
    assert settings.point_scheme == "pickleball"
    assert settings.k_factor_new == 40.0
    assert settings.official_ranker_matches == 8


def test_bad_values_fall_back(monkeypatch, caplog):
    _clear(monkeypatch)
    monkeypatch.setenv("INITIAL_RATING", "lots")
    monkeypatch.setenv("K_FACTOR_ESTABLISHED", "-4")
    monkeypatch.setenv("CONFIDENCE_THRESHOLD", "1.5")
    monkeypatch.setenv("K_FACTOR_EXPERIENCE_THRESHOLD", "ten")
    monkeypatch.setenv("POINT_SCHEME", "curling")
    with caplog.at_level(logging.WARNING):
        settings = load_settings()
    assert settings.initial_rating == 1200.0
    assert settings.k_factor_established == 16.0
    assert settings.confidence_threshold == 0.7
    assert settings.k_factor_experience_threshold == 10
    assert settings.point_scheme == "standard"
    assert "INITIAL_RATING" in caplog.text


def test_setup_logging_does_not_stack_handlers(monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("ENGINE_LOG_LEVEL", raising=False)
    root = logging.getLogger()
    package = logging.getLogger(PACKAGE_LOGGER)
    saved_handlers, saved_level, saved_package_level = list(root.handlers), root.level, package.level
    try:
        setup_logging()
        setup_logging(mode="test")
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert package.level == logging.NOTSET

        setup_logging(level="warning")
        assert root.level == logging.WARNING
        assert logging.getLogger("aiosqlite").level == logging.WARNING

        # Engine tracing without root DEBUG
        monkeypatch.setenv("ENGINE_LOG_LEVEL", "debug")
        setup_logging(level="INFO")
        assert root.level == logging.INFO
        assert package.level == logging.DEBUG
        assert logging.getLogger("lightning_rank.mmr").isEnabledFor(logging.DEBUG)
        assert not logging.getLogger("someone.else").isEnabledFor(logging.DEBUG)

        setup_logging(level="INFO", engine_level="ERROR")
        assert package.level == logging.ERROR
    finally:
        for h in list(root.handlers):
            root.removeHandler(h)
        for h in saved_handlers:
            root.addHandler(h)
        root.setLevel(saved_level)
        package.setLevel(saved_package_level)
