"""Treasure generation from challenge-rating tables."""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Optional

from .currency import CURRENCY_KEYS, clamp_quantity, to_number
from .dice import RollEvaluator, roll_evaluator as default_roll_evaluator
from .roster import field_of

logger = logging.getLogger(__name__)


class TreasureMode(Enum):
    """Whether treasure is rolled or taken from table averages."""

    ROLL = "roll"
    AVERAGE = "average"

    @classmethod
    def parse(cls, value: "TreasureMode | str | None") -> "TreasureMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.AVERAGE


@dataclass(frozen=True)
class IndividualTreasureRow:
    """Coins carried by a single creature of a CR band."""

    max_cr: float
    formula: str
    average: int
    currency: str


@dataclass(frozen=True)
class HoardTreasureRow:
    """Hoard contents for the highest CR in an encounter."""

    max_cr: float
    money_formula: str
    money_average: int
    magic_items_formula: str


# Bands are matched in order by cr <= max_cr; the last band takes everything above 16.
INDIVIDUAL_TREASURE_TABLE = (
    IndividualTreasureRow(max_cr=4, formula="3d6", average=10, currency="gp"),
    IndividualTreasureRow(max_cr=10, formula="2d8*10", average=90, currency="gp"),
    IndividualTreasureRow(max_cr=16, formula="2d10*10", average=110, currency="pp"),
    IndividualTreasureRow(max_cr=math.inf, formula="2d8*100", average=900, currency="pp"),
)

TREASURE_HOARD_TABLE = (
    HoardTreasureRow(max_cr=4, money_formula="2d4*100", money_average=500, magic_items_formula="1d4-1"),
    HoardTreasureRow(max_cr=10, money_formula="8d10*100", money_average=4400, magic_items_formula="1d3"),
    HoardTreasureRow(max_cr=16, money_formula="8d8*1000", money_average=36000, magic_items_formula="1d4"),
    HoardTreasureRow(max_cr=math.inf, money_formula="6d10*10000", money_average=330000, magic_items_formula="1d6"),
)

# Fallback formulas for filling a single denomination by hand
BASE_CURRENCY_FORMULAS = {
    "platinum": ("1d4*10", 25),
    "gold": ("2d6*10", 70),
    "silver": ("3d8*10", 135),
    "copper": ("4d10*10", 220),
    "electrum": ("1d6*10", 35),
}


@dataclass
class TreasureResult:
    """Generated coins, and for hoards the number of magic items."""

    platinum: int = 0
    gold: int = 0
    silver: int = 0
    copper: int = 0
    electrum: int = 0
    magic_items_count: Optional[int] = None

    def coins(self) -> dict[str, int]:
        return {key: getattr(self, key) for key in CURRENCY_KEYS}


def _floor_non_negative(value: float) -> int:
    return max(0, math.floor(value))


def individual_treasure_row(cr: float) -> IndividualTreasureRow:
    """Look up the individual treasure band for a CR."""
    return next(row for row in INDIVIDUAL_TREASURE_TABLE if cr <= row.max_cr)


def treasure_hoard_row(max_cr: float) -> HoardTreasureRow:
    """Look up the hoard band for the encounter's highest CR."""
    return next(row for row in TREASURE_HOARD_TABLE if max_cr <= row.max_cr)


def treasure_enemies(enemies: Iterable[Any]) -> list[dict[str, Any]]:
    """Reduce roster entries to ``{name, cr, quantity}`` for those with a usable CR."""
    eligible = []
    for enemy in enemies:
        cr = to_number(field_of(enemy, "cr"), None)
        if cr is None or cr < 0:
            continue
        eligible.append(
            {
                "name": field_of(enemy, "name", default="??"),
                "cr": cr,
                "quantity": clamp_quantity(field_of(enemy, "quantity")),
            }
        )
    return eligible


def max_cr(enemies: Iterable[Any]) -> Optional[float]:
    """Highest usable CR among enemies, or None when none have one."""
    crs = [e["cr"] for e in treasure_enemies(enemies)]
    return max(crs) if crs else None


async def generate_individual_treasure(
    enemies: Iterable[Any],
    mode: TreasureMode | str = TreasureMode.AVERAGE,
    roll_evaluator: Optional[RollEvaluator] = None,
) -> TreasureResult:
    """Generate per-creature coins for every enemy with a CR.

    In roll mode one expression is evaluated per enemy entry, in roster order,
    scaled by the entry's quantity. Evaluator errors propagate.

    Args:
        enemies: Roster entries or mappings with ``cr`` and ``quantity``
        mode: "roll" or "average"
        roll_evaluator: Async dice evaluator; the built-in dice engine if omitted

    Returns:
        TreasureResult with platinum and gold filled in
    """
    mode = TreasureMode.parse(mode)
    evaluate = roll_evaluator or default_roll_evaluator
    totals = {"gp": 0.0, "pp": 0.0}

    for enemy in enemies:
        cr = to_number(field_of(enemy, "cr"), None)
        if cr is None:
            continue

        row = individual_treasure_row(cr)
        quantity = clamp_quantity(field_of(enemy, "quantity"))

        if mode is TreasureMode.AVERAGE:
            amount = row.average * quantity
        else:
            expression = f"({row.formula})*{quantity}" if quantity > 1 else row.formula
            amount = _floor_non_negative(await evaluate(expression))
            logger.debug(f"Rolled {expression} for CR {cr}: {amount} {row.currency}")

        totals[row.currency] += amount

    return TreasureResult(
        platinum=_floor_non_negative(totals["pp"]),
        gold=_floor_non_negative(totals["gp"]),
    )


async def generate_treasure_hoard(
    max_cr: Optional[float],
    mode: TreasureMode | str = TreasureMode.AVERAGE,
    roll_evaluator: Optional[RollEvaluator] = None,
) -> TreasureResult:
    """Generate a hoard keyed by the encounter's highest CR.

    Average mode takes the table's gold average and yields no magic items,
    as the table defines no average for the item count.

    Args:
        max_cr: Highest CR across the enemies
        mode: "roll" or "average"
        roll_evaluator: Async dice evaluator; the built-in dice engine if omitted

    Returns:
        TreasureResult with gold and magic_items_count filled in
    """
    cr = to_number(max_cr, None)
    if cr is None or cr < 0:
        return TreasureResult(magic_items_count=0)

    mode = TreasureMode.parse(mode)
    evaluate = roll_evaluator or default_roll_evaluator
    row = treasure_hoard_row(cr)

    if mode is TreasureMode.AVERAGE:
        gold = row.money_average
        magic_items = 0
    else:
        gold = await evaluate(row.money_formula)
        magic_items = await evaluate(row.magic_items_formula)

    logger.debug(f"Hoard for CR {cr}: {gold} gp, {magic_items} magic items")
    return TreasureResult(
        gold=_floor_non_negative(gold),
        magic_items_count=_floor_non_negative(magic_items),
    )


async def roll_currency(
    currency: str,
    mode: TreasureMode | str = TreasureMode.ROLL,
    roll_evaluator: Optional[RollEvaluator] = None,
) -> int:
    """Roll (or average) the base formula for one denomination.

    Raises:
        KeyError: If ``currency`` is not a known denomination
    """
    formula, average = BASE_CURRENCY_FORMULAS[currency]
    if TreasureMode.parse(mode) is TreasureMode.AVERAGE:
        return average
    evaluate = roll_evaluator or default_roll_evaluator
    return _floor_non_negative(await evaluate(formula))
