"""
Tests for ELO rating updates and the K-factor policy.
"""

import math

import pytest

from lightning_rank import mmr
from lightning_rank.errors import InvalidInput


def test_expected_score():
    print("🧪 Testing expected score...")
    assert mmr.expected(1200, 1200) == 0.5
    assert mmr.expected(1400, 1200) > 0.7
    assert math.isclose(mmr.expected(1400, 1200) + mmr.expected(1200, 1400), 1.0)
    print("    ✅ Expected score works")


def test_equal_ratings_k32():
    print("🧪 Testing 1200 v 1200 with K=32...")
    assert mmr.update_rating(1200, 1200, "win", 32) == 1216
    assert mmr.update_rating(1200, 1200, "loss", 32) == 1184
    assert mmr.update_pair(1200, 1200, True, 32) == (1216, 1184)
    assert mmr.rating_delta(1200, 1200, "win", 32) == (1216, 16)
    print("    ✅ 1216 / 1184")


def test_win_never_lowers_loss_never_raises():
    print("🧪 Testing rating monotonicity...")
    for player in range(800, 2700, 37):
        for opponent in (800, 1000, 1200, 1550, 2100, 2800):
            for k in (8, 16, 32):
                assert mmr.update_rating(player, opponent, "win", k) >= player
                assert mmr.update_rating(player, opponent, "loss", k) <= player
    print("    ✅ Monotonic for all sampled inputs")


def test_rating_floor():
    print("🧪 Testing rating floor...")
    assert mmr.update_rating(800, 2000, "loss", 32) == 800
    assert mmr.update_rating(810, 810, "loss", 64) == 800
    for player in (0, 500, 799, 800, 900):
        assert mmr.update_rating(player, 3000, "loss", 32) >= 800
    # Custom floor
    assert mmr.update_rating(1000, 1000, "loss", 400, floor=900) == 900
    print("    ✅ Never below 800")


def test_invalid_result_and_k():
    with pytest.raises(InvalidInput):
        mmr.update_rating(1200, 1200, "draw", 32)
    with pytest.raises(InvalidInput):
        mmr.update_rating(1200, 1200, "win", 0)
    with pytest.raises(ValueError):
        mmr.update_rating(1200, 1200, "win", -5)


def test_k_factor_policy():
    print("🧪 Testing K-factor policy...")
    assert mmr.k_factor(0) == 32
    assert mmr.k_factor(9) == 32
    assert mmr.k_factor(10) == 16
    assert mmr.k_factor(0, "club") == 16
    assert mmr.k_factor(25, "club") == 8
    assert mmr.club_k_factor(3) == 32
    assert mmr.club_k_factor(10) == 16
    print("    ✅ K-factor policy works")


def test_sanitize_rating():
    assert mmr.sanitize_rating(None) == 1200
    assert mmr.sanitize_rating(float("nan")) == 1200
    assert mmr.sanitize_rating(float("inf")) == 1200
    assert mmr.sanitize_rating("1500") == 1200
    assert mmr.sanitize_rating(True) == 1200
    assert mmr.sanitize_rating(1500) == 1500.0


def test_team_rating_and_update():
    print("🧪 Testing doubles...")
    assert mmr.team_rating([1200, 1400]) == 1300
    assert mmr.team_rating([]) == 1200

    new_a, new_b = mmr.update_team([1200, 1200], [1200, 1200], "A", 32)
    assert new_a == [1216, 1216]
    assert new_b == [1184, 1184]

    # Same team delta for everyone, each clamped on its own
    new_a, new_b = mmr.update_team([1300, 1100], [810, 1590], "a", 32)
    assert new_a[0] - 1300 == new_a[1] - 1100
    assert new_b[0] == 800
    assert new_b[1] < 1590

    with pytest.raises(InvalidInput):
        mmr.update_team([1200], [1200], "C", 32)
    print("    ✅ Doubles works")
