"""Encounter mechanics: XP budgets, difficulty, treasure and loot."""

from .dice import DiceRoller, make_roll_evaluator, roll, roll_evaluator
from .difficulty import DifficultyResult, DisplayMode, PartyMember, calculate_difficulty
from .loot import LootEntry, LootMode, aggregate_loot
from .roster import RosterEntry, add_actor_to_side, normalize_enemy_quantities, update_enemy_quantity
from .treasure import TreasureMode, TreasureResult, generate_individual_treasure, generate_treasure_hoard
from .xp_budget import BudgetRow, DifficultyTier, budget_row_for_level, pseudo_level_for_xp

__all__ = [
    "DiceRoller", "make_roll_evaluator", "roll", "roll_evaluator",
    "DifficultyResult", "DisplayMode", "PartyMember", "calculate_difficulty",
    "LootEntry", "LootMode", "aggregate_loot",
    "RosterEntry", "add_actor_to_side", "normalize_enemy_quantities", "update_enemy_quantity",
    "TreasureMode", "TreasureResult", "generate_individual_treasure", "generate_treasure_hoard",
    "BudgetRow", "DifficultyTier", "budget_row_for_level", "pseudo_level_for_xp",
]
