"""Encounter difficulty scoring against the party's XP budget."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from .currency import to_number
from .roster import field_of
from .xp_budget import DifficultyTier, budget_row_for_level, pseudo_level_for_xp

logger = logging.getLogger(__name__)

DEFAULT_ALLY_NPC_WEIGHT = 0.5


class DisplayMode(Enum):
    """How the difficulty label is chosen."""

    CLASSIC = "classic"  # absolute low/moderate/high thresholds
    RELATIVE = "relative"  # ratio against the selected tier's budget

    @classmethod
    def parse(cls, value: "DisplayMode | str | None") -> "DisplayMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.CLASSIC


TIER_NAMES = {
    DifficultyTier.LOW: "Low",
    DifficultyTier.MODERATE: "Moderate",
    DifficultyTier.HIGH: "High",
}

NO_PARTY = "No party"
NO_ENEMIES = "No enemies"
NO_BUDGET = "No budget"


@dataclass
class PartyMember:
    """A party slot contributing to the XP budget."""

    level: int
    weight: float = 1.0
    source: str = "pc"


@dataclass
class DifficultyResult:
    """Outcome of a difficulty calculation."""

    label: str
    target_label: str
    budget: int
    total_xp: float


def build_party(allies: Iterable[Any], ally_npc_weight: float = DEFAULT_ALLY_NPC_WEIGHT) -> list[PartyMember]:
    """Turn allies into weighted party members.

    Characters count at their level with full weight. Friendly NPCs count at
    the pseudo-level of their XP, weighted by ``ally_npc_weight``; they are
    left out when they have no XP or the weight is zero.
    """
    weight = to_number(ally_npc_weight)
    party = []
    for ally in allies:
        ally_type = field_of(ally, "type")
        if ally_type == "character":
            level = int(to_number(field_of(ally, "level"), 1) or 1)
            party.append(PartyMember(level=level, weight=1.0, source="pc"))
        elif ally_type == "npc":
            xp = to_number(field_of(ally, "xp"))
            if xp <= 0 or weight <= 0:
                continue
            party.append(
                PartyMember(
                    level=pseudo_level_for_xp(xp, DifficultyTier.MODERATE),
                    weight=weight,
                    source="ally-npc",
                )
            )
    return party


def enemy_total_xp(enemies: Iterable[Any]) -> float:
    """Sum enemy XP, using ``total_xp`` when present and xp * quantity otherwise."""
    total = 0
    for enemy in enemies:
        value = field_of(enemy, "total_xp")
        if value is None:
            value = to_number(field_of(enemy, "xp")) * (to_number(field_of(enemy, "quantity"), 1) or 1)
        total += to_number(value)
    return total


def party_budgets(party: Iterable[PartyMember]) -> dict[DifficultyTier, int]:
    """Aggregate weighted budgets for each tier, rounded to whole XP."""
    totals = {tier: 0.0 for tier in DifficultyTier}
    for member in party:
        row = budget_row_for_level(member.level)
        weight = to_number(member.weight, 1.0) or 1.0
        for tier in DifficultyTier:
            totals[tier] += row.for_tier(tier) * weight
    return {tier: _round_half_up(value) for tier, value in totals.items()}


def _round_half_up(value: float) -> int:
    # builtin round() is banker's rounding; budgets round .5 upward
    return int(value + 0.5) if value >= 0 else -int(-value + 0.5)


def classic_label(total_xp: float, budgets: dict[DifficultyTier, int]) -> str:
    """Bucket the XP total against the absolute tier thresholds."""
    if not total_xp:
        return NO_ENEMIES

    low = budgets[DifficultyTier.LOW]
    moderate = budgets[DifficultyTier.MODERATE]
    high = budgets[DifficultyTier.HIGH]
    if low <= 0 and moderate <= 0 and high <= 0:
        return NO_BUDGET

    if total_xp <= low:
        return "Low"
    if total_xp <= moderate:
        return "Moderate"
    if total_xp <= high:
        return "High"
    return "Extreme"


def relative_label(total_xp: float, budget: float) -> str:
    """Bucket the XP total by its ratio to the selected budget."""
    if not total_xp:
        return NO_ENEMIES
    if not budget:
        return NO_BUDGET

    ratio = total_xp / budget
    if ratio < 0.75:
        return "Below budget"
    if ratio <= 1.25:
        return "Within budget"
    if ratio <= 1.75:
        return "Above budget"
    return "Well above budget"


def calculate_difficulty(
    allies: Iterable[Any] = (),
    enemies: Iterable[Any] = (),
    target_tier: DifficultyTier | str = DifficultyTier.MODERATE,
    display_mode: DisplayMode | str = DisplayMode.CLASSIC,
    ally_npc_weight: float = DEFAULT_ALLY_NPC_WEIGHT,
) -> DifficultyResult:
    """Score an encounter against the party's XP budget.

    Args:
        allies: Ally roster entries (characters and friendly NPCs)
        enemies: Enemy roster entries
        target_tier: Tier the encounter is being built for; invalid values mean moderate
        display_mode: "classic" thresholds or "relative" budget ratio
        ally_npc_weight: Budget weight of each friendly NPC

    Returns:
        DifficultyResult with the label, tier name, selected budget and enemy XP
    """
    party = build_party(allies, ally_npc_weight)
    total_xp = enemy_total_xp(enemies)

    if not party:
        return DifficultyResult(label=NO_PARTY, target_label="-", budget=0, total_xp=total_xp)

    budgets = party_budgets(party)
    tier = DifficultyTier.parse(target_tier)
    budget = budgets[tier]

    if DisplayMode.parse(display_mode) is DisplayMode.RELATIVE:
        label = relative_label(total_xp, budget)
    else:
        label = classic_label(total_xp, budgets)

    logger.debug(
        f"Party of {len(party)} vs {total_xp} XP: budgets "
        f"{[budgets[t] for t in DifficultyTier]}, label {label}"
    )
    return DifficultyResult(
        label=label,
        target_label=TIER_NAMES[tier],
        budget=budget,
        total_xp=total_xp,
    )
