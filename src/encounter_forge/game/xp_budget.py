"""Per-character XP budget table and pseudo-level lookup."""

from dataclasses import dataclass
from enum import Enum

from .currency import to_number


class DifficultyTier(Enum):
    """Budget tiers a party can be built against."""

    LOW = "low"
    MODERATE = "moderate"
    HIGH = "high"

    @classmethod
    def parse(cls, value: "DifficultyTier | str | None") -> "DifficultyTier":
        """Resolve a tier from its name, falling back to MODERATE."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.MODERATE


@dataclass(frozen=True)
class BudgetRow:
    """XP budget for one character at a given level."""

    low: int
    moderate: int
    high: int

    def for_tier(self, tier: DifficultyTier | str) -> int:
        return getattr(self, DifficultyTier.parse(tier).value)


MIN_LEVEL = 1
MAX_LEVEL = 20

# Values approximate the scale of the 2024 rules; swap rows 1:1 for official data.
XP_BUDGET_TABLE: dict[int, BudgetRow] = {
    1: BudgetRow(low=50, moderate=75, high=100),
    2: BudgetRow(low=100, moderate=150, high=200),
    3: BudgetRow(low=150, moderate=225, high=400),
    4: BudgetRow(low=250, moderate=375, high=500),
    5: BudgetRow(low=500, moderate=750, high=1100),
    6: BudgetRow(low=600, moderate=1000, high=1400),
    7: BudgetRow(low=750, moderate=1300, high=1700),
    8: BudgetRow(low=1000, moderate=1700, high=2100),
    9: BudgetRow(low=1300, moderate=2000, high=2600),
    10: BudgetRow(low=1600, moderate=2300, high=3100),
    11: BudgetRow(low=1900, moderate=2900, high=4100),
    12: BudgetRow(low=2200, moderate=3700, high=4700),
    13: BudgetRow(low=2600, moderate=4200, high=5400),
    14: BudgetRow(low=2900, moderate=4900, high=6200),
    15: BudgetRow(low=3300, moderate=5400, high=7800),
    16: BudgetRow(low=3800, moderate=6100, high=9800),
    17: BudgetRow(low=4500, moderate=7200, high=11700),
    18: BudgetRow(low=5000, moderate=8700, high=14200),
    19: BudgetRow(low=5500, moderate=10700, high=17200),
    20: BudgetRow(low=6400, moderate=13200, high=22000),
}


def clamp_level(level) -> int:
    """Clamp a level into the table range; missing or zero means level 1."""
    value = int(to_number(level, MIN_LEVEL) or MIN_LEVEL)
    return max(MIN_LEVEL, min(MAX_LEVEL, value))


def budget_row_for_level(level) -> BudgetRow:
    """Get the budget row for a character level.

    Out-of-range levels are clamped to 1-20, so this never raises.
    """
    return XP_BUDGET_TABLE[clamp_level(level)]


def pseudo_level_for_xp(xp, tier: DifficultyTier | str = DifficultyTier.MODERATE) -> int:
    """Approximate the character level a creature's XP is worth.

    Picks the level whose budget for ``tier`` is nearest to ``xp``. Ties go to
    the lowest level, since levels are scanned in ascending order and only a
    strictly smaller difference replaces the current best.

    Args:
        xp: Raw XP of the creature
        tier: Budget column to match against

    Returns:
        Level in [1, 20]; 1 when xp is zero, negative or not a number
    """
    value = to_number(xp)
    if value <= 0:
        return MIN_LEVEL

    tier = DifficultyTier.parse(tier)
    best_level = MIN_LEVEL
    best_diff = float("inf")

    for level in sorted(XP_BUDGET_TABLE):
        diff = abs(XP_BUDGET_TABLE[level].for_tier(tier) - value)
        if diff < best_diff:
            best_diff = diff
            best_level = level

    return best_level
