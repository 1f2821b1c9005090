"""
Tests for rating confidence and the season ranking badge.
"""

import math

from lightning_rank.confidence import (
    confidence,
    overestimates,
    preferred_skill,
    ranking_badge,
    underestimates,
)


def test_confidence_bounds():
    print("🧪 Testing confidence curve...")
    assert confidence(0) == 0.0
    assert confidence(-3) == 0.0
    assert confidence(1) == 0.1
    assert math.isclose(confidence(10), 0.505)
    assert confidence(20) == 1.0
    assert confidence(500) == 1.0

    previous = 0.0
    for n in range(0, 40):
        current = confidence(n)
        assert 0.0 <= current <= 1.0
        assert current >= previous
        previous = current
    print("    ✅ Confidence is bounded and non-decreasing")


def test_preferred_skill():
    # 14 matches: 0.1 + 13 * 0.045 = 0.685, not enough
    assert preferred_skill(3, 5, 14) == (3, "self_assessed")
    # 15 matches: 0.73
    assert preferred_skill(3, 5, 15) == (5, "calculated")
    assert preferred_skill(3, None, 40) == (3, "self_assessed")
    assert preferred_skill(3, 5, 5, threshold=0.2) == (5, "calculated")


def test_estimation_hints():
    assert overestimates(6, 4)
    assert not overestimates(5, 4)
    assert underestimates(2, 4)
    assert not underestimates(3, 4)


def test_ranking_badge():
    print("🧪 Testing ranking badge...")
    badge = ranking_badge(0)
    assert (badge.level, badge.is_official, badge.remaining_matches) == (0, False, 5)

    badge = ranking_badge(3)
    assert (badge.level, badge.is_official, badge.remaining_matches) == (3, False, 2)

    badge = ranking_badge(5)
    assert (badge.level, badge.is_official, badge.remaining_matches) == (5, True, 0)

    badge = ranking_badge(12)
    assert (badge.level, badge.is_official, badge.remaining_matches) == (5, True, 0)

    assert ranking_badge(-2).level == 0
    assert ranking_badge(2.7).level == 2
    print("    ✅ Badge works")
