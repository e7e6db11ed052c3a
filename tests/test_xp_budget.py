"""Tests for the XP budget table and pseudo-levels."""

import pytest

from encounter_forge.game.xp_budget import (
    XP_BUDGET_TABLE,
    BudgetRow,
    DifficultyTier,
    budget_row_for_level,
    clamp_level,
    pseudo_level_for_xp,
)


class TestBudgetTable:
    """Test the shape of the budget table."""

    def test_has_twenty_levels(self):
        """Test every level from 1 to 20 is present."""
        assert sorted(XP_BUDGET_TABLE) == list(range(1, 21))

    def test_tiers_are_ordered(self):
        """Test low <= moderate <= high on every row."""
        for row in XP_BUDGET_TABLE.values():
            assert 0 <= row.low <= row.moderate <= row.high

    def test_non_decreasing_with_level(self):
        """Test budgets never shrink as level rises."""
        for level in range(2, 21):
            previous, current = XP_BUDGET_TABLE[level - 1], XP_BUDGET_TABLE[level]
            assert current.low >= previous.low
            assert current.moderate >= previous.moderate
            assert current.high >= previous.high


class TestBudgetRowForLevel:
    """Test level lookup with clamping."""

    def test_level_five(self):
        """Test a known row."""
        assert budget_row_for_level(5) == BudgetRow(low=500, moderate=750, high=1100)

    @pytest.mark.parametrize("level", [0, -3, None, "abc", float("nan"), 0.5])
    def test_low_or_missing_level_uses_level_one(self, level):
        """Test missing and sub-1 levels map to level 1."""
        assert budget_row_for_level(level) == XP_BUDGET_TABLE[1]

    @pytest.mark.parametrize("level", [21, 30, 1000])
    def test_high_level_uses_level_twenty(self, level):
        """Test levels above 20 map to level 20."""
        assert budget_row_for_level(level) == XP_BUDGET_TABLE[20]

    def test_numeric_string_level(self):
        """Test numeric strings are accepted."""
        assert budget_row_for_level("7") == XP_BUDGET_TABLE[7]

    def test_clamp_level(self):
        """Test the clamp helper directly."""
        assert clamp_level(None) == 1
        assert clamp_level(12) == 12
        assert clamp_level(25) == 20

    def test_for_tier(self):
        """Test reading a tier by enum or name."""
        row = budget_row_for_level(3)
        assert row.for_tier(DifficultyTier.HIGH) == 400
        assert row.for_tier("low") == 150
        assert row.for_tier("bogus") == 225


class TestPseudoLevel:
    """Test nearest-budget pseudo-level matching."""

    @pytest.mark.parametrize("xp", [0, -100, None, "x"])
    def test_no_xp_is_level_one(self, xp):
        """Test zero, negative and invalid XP."""
        assert pseudo_level_for_xp(xp) == 1

    def test_exact_match(self):
        """Test XP equal to a moderate budget."""
        assert pseudo_level_for_xp(750) == 5
        assert pseudo_level_for_xp(13200) == 20

    def test_nearest_match(self):
        """Test XP between two rows picks the closer one."""
        assert pseudo_level_for_xp(1100) == 6
        assert pseudo_level_for_xp(700) == 5

    def test_tie_goes_to_lower_level(self):
        """Test equidistant XP resolves to the lowest level."""
        assert pseudo_level_for_xp(112.5) == 1
        assert pseudo_level_for_xp(300) == 3

    def test_extremes_stay_in_range(self):
        """Test very small and very large XP."""
        assert pseudo_level_for_xp(1) == 1
        assert pseudo_level_for_xp(10_000_000) == 20

    def test_other_tiers(self):
        """Test matching against the low and high columns."""
        assert pseudo_level_for_xp(1000, "low") == 8
        assert pseudo_level_for_xp(1100, DifficultyTier.HIGH) == 5

    def test_always_in_range(self):
        """Test a sweep of XP values."""
        for xp in range(1, 30000, 137):
            assert 1 <= pseudo_level_for_xp(xp) <= 20


class TestDifficultyTier:
    """Test tier parsing."""

    def test_parse(self):
        """Test names, enums and fallbacks."""
        assert DifficultyTier.parse("HIGH") is DifficultyTier.HIGH
        assert DifficultyTier.parse(DifficultyTier.LOW) is DifficultyTier.LOW
        assert DifficultyTier.parse("extreme") is DifficultyTier.MODERATE
        assert DifficultyTier.parse(None) is DifficultyTier.MODERATE
