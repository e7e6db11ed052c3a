"""Aggregation of enemy inventories into an encounter loot list."""

import logging
import uuid as uuid_lib
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Optional

from .currency import MAX_QUANTITY, clamp_quantity, to_gold, to_number
from .roster import ActorResolver, field_of

logger = logging.getLogger(__name__)


class LootMode(Enum):
    """How many copies of an enemy's inventory end up in the loot."""

    OFF = "off"
    PER_ENEMY = "perEnemy"  # one loadout per individual monster
    PER_ACTOR_TYPE = "perActorType"  # one loadout per enemy entry

    @classmethod
    def parse(cls, value: "LootMode | str | None") -> "LootMode":
        """Resolve a mode name; None means perEnemy, unknown names get one loadout."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.PER_ENEMY
        try:
            return cls(value)
        except ValueError:
            return cls.PER_ACTOR_TYPE


LOOT_ITEM_TYPES = frozenset(
    {"weapon", "equipment", "armor", "consumable", "loot", "tool", "container", "gear"}
)

NATURAL_WEAPON_KEYS = frozenset({"natural", "nat"})


@dataclass
class LootEntry:
    """A deduplicated line in the loot list."""

    uuid: str
    name: str
    type: str
    img: Optional[str] = None
    price: float = 0
    quantity: int = 1
    id: str = field(default_factory=lambda: uuid_lib.uuid4().hex[:16])


def item_gold_value(item: Any) -> float:
    """Price of one item in gold pieces.

    Accepts ``system.price`` either as a bare number (already gold) or as a
    ``{value, denomination}`` mapping. Anything else is worth 0.
    """
    price = field_of(item, "system", "price")
    if price is None or isinstance(price, bool):
        return 0
    if isinstance(price, (int, float)):
        return to_number(price)
    if isinstance(price, dict) or hasattr(price, "value"):
        denomination = field_of(price, "denomination") or field_of(price, "currency") or "gp"
        return to_gold(field_of(price, "value"), denomination)
    return 0


def _property_keys(properties: Any) -> set[str]:
    """Lower-cased property keys from a list of strings or ``{value}`` records, or a set."""
    if properties is None or isinstance(properties, (str, dict)):
        return set()
    keys = set()
    for prop in properties:
        raw = prop if isinstance(prop, str) else field_of(prop, "value")
        if raw:
            keys.add(str(raw).lower())
    return keys


def is_natural_weapon(item: Any) -> bool:
    """Whether an item is a natural weapon (claws, bite, ...)."""
    if field_of(item, "type") != "weapon":
        return False

    weapon_type = str(field_of(item, "system", "type", "value", default="")).lower()
    if weapon_type == "natural":
        return True
    properties = _property_keys(field_of(item, "system", "properties"))
    return bool(properties & NATURAL_WEAPON_KEYS)


def is_lootable(item: Any) -> bool:
    return field_of(item, "type") in LOOT_ITEM_TYPES and not is_natural_weapon(item)


async def _resolve_items(actor_resolver: ActorResolver, enemy_uuid: str) -> list[Any]:
    try:
        actor = await actor_resolver(enemy_uuid)
    except Exception as e:
        logger.warning(f"Failed to resolve enemy {enemy_uuid}: {e}")
        return []
    if actor is None:
        logger.warning(f"Enemy {enemy_uuid} not found, skipping its inventory")
        return []
    return list(field_of(actor, "items", default=[]))


async def aggregate_loot(
    enemies: Iterable[Any],
    mode: LootMode | str,
    actor_resolver: ActorResolver,
) -> list[LootEntry]:
    """Merge enemy inventories into one loot list grouped by item uuid.

    Enemies are resolved one at a time in roster order. Enemies that cannot be
    resolved are skipped. The first sighting of an item fixes its position in
    the result; later sightings only add to its quantity, capped at 99.

    Args:
        enemies: Enemy roster entries with ``uuid`` and ``quantity``
        mode: "off", "perEnemy" or "perActorType"
        actor_resolver: Async ``uuid -> actor`` lookup

    Returns:
        Loot entries in first-seen order
    """
    mode = LootMode.parse(mode)
    if mode is LootMode.OFF:
        return []

    grouped: dict[str, LootEntry] = {}

    for enemy in enemies:
        enemy_uuid = field_of(enemy, "uuid")
        if not enemy_uuid:
            continue

        items = await _resolve_items(actor_resolver, enemy_uuid)
        if mode is LootMode.PER_ENEMY:
            repeats = clamp_quantity(field_of(enemy, "quantity"))
        else:
            repeats = 1

        for item in items:
            if not is_lootable(item):
                continue
            key = field_of(item, "uuid")
            if not key:
                continue

            existing = grouped.get(key)
            if existing:
                existing.quantity = min(MAX_QUANTITY, existing.quantity + repeats)
                continue

            grouped[key] = LootEntry(
                uuid=key,
                name=field_of(item, "name", default=""),
                type=field_of(item, "type"),
                img=field_of(item, "img"),
                price=item_gold_value(item),
                quantity=min(MAX_QUANTITY, repeats),
            )

    logger.debug(f"Aggregated {len(grouped)} loot entries ({mode.value})")
    return list(grouped.values())


def remove_loot_entry(entries: list[LootEntry], entry_id: str) -> list[LootEntry]:
    """Return a new list without the entry ``entry_id``."""
    return [entry for entry in entries if entry.id != entry_id]


def update_loot_quantity(
    entries: list[LootEntry],
    entry_id: str,
    mode: str,
    value: Any,
) -> list[LootEntry]:
    """Adjust a loot entry's quantity by delta or to an absolute value.

    A result of zero or less drops the entry; anything else is clamped to [1, 99].

    Returns:
        The updated list (a new list when the entry was dropped)
    """
    entry = next((e for e in entries if e.id == entry_id), None)
    if entry is None:
        return entries

    quantity = entry.quantity
    if mode == "delta":
        quantity += to_number(value)
    elif mode == "set":
        quantity = to_number(value)

    if quantity <= 0:
        return remove_loot_entry(entries, entry_id)

    entry.quantity = clamp_quantity(quantity)
    return entries
