"""
Tests for LPR tiers, bands and the legacy classic scale.
"""

from lightning_rank import tiers


def test_tier_boundaries():
    print("🧪 Testing tier boundaries...")
    assert tiers.rating_to_tier(999) == 1
    assert tiers.rating_to_tier(1000) == 2
    assert tiers.rating_to_tier(1199.99) == 3
    assert tiers.rating_to_tier(1200) == 4
    assert tiers.rating_to_tier(1449) == 5
    assert tiers.rating_to_tier(1450) == 6
    assert tiers.rating_to_tier(2399) == 9
    assert tiers.rating_to_tier(2400) == 10
    assert tiers.rating_to_tier(5000) == 10
    assert tiers.rating_to_tier(0) == 1
    assert tiers.rating_to_tier(-50) == 1
    print("    ✅ Boundaries work")


def test_tier_monotonic():
    previous = tiers.rating_to_tier(0)
    for rating in range(0, 3000, 7):
        current = tiers.rating_to_tier(rating)
        assert 1 <= current <= 10
        assert current >= previous
        previous = current


def test_bands():
    print("🧪 Testing bands...")
    assert [tiers.tier_to_band_name(t) for t in range(1, 11)] == [
        "Bronze", "Bronze", "Silver", "Silver", "Gold", "Gold",
        "Platinum", "Diamond", "Master", "Legend",
    ]
    assert tiers.tier_color(1) == "#CD7F32"
    assert tiers.tier_theme(10) == "Lightning God"
    # Unknown tiers fall back to Bronze
    assert tiers.tier_to_band_name(42) == "Bronze"
    assert len(tiers.BANDS) == 7
    print("    ✅ Bands work")


def test_onboarding():
    assert tiers.initial_rating_for_tier(3) == 1150
    assert tiers.initial_rating_for_tier(10) == 2400
    assert tiers.initial_rating_for_tier(99) == tiers.DEFAULT_INITIAL_RATING
    assert [level.value for level in tiers.onboarding_tiers()] == [1, 2, 3, 4, 5]
    assert tiers.is_valid_onboarding_tier(5)
    assert not tiers.is_valid_onboarding_tier(6)
    assert tiers.is_valid_tier(10)
    assert not tiers.is_valid_tier(0)
    assert not tiers.is_valid_tier(True)
    # Every level's starting rating lands in that level
    for level in tiers.LEVELS:
        assert tiers.rating_to_tier(level.initial_rating) == level.value


def test_progress_and_next_tier():
    assert tiers.tier_progress(1250) == 50.0
    assert tiers.tier_progress(1300) == 0.0
    assert tiers.tier_progress(2500) == 50.0
    assert tiers.tier_progress(9000) == 100.0
    assert tiers.next_tier(4) == (5, 1300)
    assert tiers.next_tier(10) is None
    assert tiers.rating_range_label(5) == "1300-1449"
    assert tiers.rating_range_label(10) == "2400+"
    assert tiers.rating_range_label(0) == ""


def test_compare_tiers():
    assert tiers.compare_tiers(4, 5) == "good"
    assert tiers.compare_tiers(4, 4) == "good"
    assert tiers.compare_tiers(3, 5) == "fair"
    assert tiers.compare_tiers(1, 9) == "mismatch"


def test_classic_scale_is_separate():
    print("🧪 Testing legacy classic scale...")
    assert tiers.rating_to_classic(1200) == 3.0
    assert tiers.rating_to_classic(1400) == 3.5
    assert tiers.rating_to_classic(100) == 2.0
    assert tiers.rating_to_classic(5000) == 5.5
    # Same rating, two independent views
    assert tiers.rating_to_tier(1400) == 5
    assert tiers.classic_to_tier(4.5) == 7
    assert tiers.classic_to_tier(2.0) == 1
    assert tiers.classic_to_tier(3.7) == 3
    print("    ✅ Classic scale works")
