"""Currency conversion and numeric helpers shared by treasure and loot."""

import math
from typing import Any, Iterable

MAX_QUANTITY = 99

# Value of one coin of each denomination in gold pieces
GP_RATES = {
    "pp": 10,
    "gp": 1,
    "ep": 0.5,
    "sp": 0.1,
    "cp": 0.01,
}

CURRENCY_KEYS = {
    "platinum": "pp",
    "gold": "gp",
    "electrum": "ep",
    "silver": "sp",
    "copper": "cp",
}


def to_number(value: Any, default: float = 0) -> float:
    """Coerce a loosely-typed value to a finite number.

    None, booleans, non-numeric strings, NaN and infinities all become ``default``.
    """
    if value is None or isinstance(value, bool):
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(number):
        return default
    return int(number) if number.is_integer() else number


def clamp_quantity(value: Any, low: int = 1, high: int = MAX_QUANTITY) -> int:
    """Clamp a quantity into [low, high]; zero or garbage counts as 1."""
    quantity = int(to_number(value, 1) or 1)
    return max(low, min(high, quantity))


def normalize_number_input(raw: Any, default: int = 0) -> int:
    """Floor a raw input to a non-negative integer."""
    number = to_number(raw, default) or default
    return max(0, math.floor(number))


def to_gold(value: Any, denomination: str | None = "gp") -> float:
    """Convert an amount in some denomination to gold pieces.

    Unknown denominations are treated as gold.
    """
    amount = to_number(value)
    if not amount:
        return 0
    rate = GP_RATES.get(str(denomination or "gp").lower(), 1)
    return amount * rate


def format_gold_equivalent(
    platinum: Any = 0,
    gold: Any = 0,
    electrum: Any = 0,
    silver: Any = 0,
    copper: Any = 0,
) -> float:
    """Total value of a coin purse in gold, rounded to two decimals."""
    total = (
        to_gold(platinum, "pp")
        + to_gold(gold, "gp")
        + to_gold(electrum, "ep")
        + to_gold(silver, "sp")
        + to_gold(copper, "cp")
    )
    return round(total, 2)


def format_currency_value(value: Any) -> str:
    """Format a gold amount with two decimals."""
    return f"{round(to_number(value), 2):.2f}"


def items_gold_value(entries: Iterable[Any]) -> float:
    """Sum price * quantity over loot entries."""
    total = 0.0
    for entry in entries:
        total += to_number(entry.price) * to_number(entry.quantity, 1)
    return round(total, 2)


def compute_total_value(
    platinum: Any = 0,
    gold: Any = 0,
    electrum: Any = 0,
    silver: Any = 0,
    copper: Any = 0,
    items_gold: Any = 0,
) -> dict[str, Any]:
    """Combine coin and item value into raw and formatted totals."""
    currency_gold = format_gold_equivalent(platinum, gold, electrum, silver, copper)
    items_value = to_number(items_gold)
    total = round(currency_gold + items_value, 2)
    return {
        "currency_gold_value": currency_gold,
        "items_gold_value": items_value,
        "total": total,
        "currency_formatted": format_currency_value(currency_gold),
        "items_formatted": format_currency_value(items_value),
        "total_formatted": format_currency_value(total),
    }
