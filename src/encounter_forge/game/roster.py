"""Encounter roster entries and the edits the builder applies to them."""

import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from .currency import MAX_QUANTITY, clamp_quantity, to_number

logger = logging.getLogger(__name__)

ActorResolver = Callable[[str], Awaitable[Any]]

MAX_IMPORT_COPIES = 999


def field_of(obj: Any, *path: str, default: Any = None) -> Any:
    """Walk a dotted path through host documents, dicts or plain objects."""
    current = obj
    for key in path:
        if current is None:
            return default
        if isinstance(current, dict):
            current = current.get(key)
        else:
            current = getattr(current, key, None)
    return default if current is None else current


def actor_xp(actor: Any) -> float:
    """Read an actor's statblock XP (``system.details.xp.value``)."""
    value = field_of(actor, "system", "details", "xp", "value")
    if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
        return value
    return 0


@dataclass
class RosterEntry:
    """One ally or enemy line in the encounter builder."""

    uuid: str
    name: str
    type: str
    level: Optional[int] = None
    cr: Optional[float] = None
    xp: float = 0
    quantity: int = 1
    total_xp: float = 0
    id: Optional[str] = None

    def __post_init__(self):
        self.xp = to_number(self.xp)
        self.quantity = clamp_quantity(self.quantity)
        self.refresh_total()

    @property
    def is_pc(self) -> bool:
        return self.type == "character"

    def refresh_total(self) -> None:
        """Recompute total_xp = xp * quantity."""
        self.total_xp = to_number(self.xp) * self.quantity

    @classmethod
    def from_actor(cls, actor: Any) -> "RosterEntry":
        """Create a single-quantity entry from a host actor document."""
        return cls(
            id=field_of(actor, "id"),
            uuid=field_of(actor, "uuid"),
            name=field_of(actor, "name", default=""),
            type=field_of(actor, "type", default=""),
            level=field_of(actor, "system", "details", "level"),
            cr=field_of(actor, "system", "details", "cr"),
            xp=actor_xp(actor),
        )

    @classmethod
    def from_dict(cls, data: dict) -> "RosterEntry":
        """Create an entry from a plain mapping (e.g. a YAML encounter file)."""
        return cls(
            id=data.get("id"),
            uuid=data.get("uuid") or data.get("name", ""),
            name=data.get("name", ""),
            type=data.get("type", "npc"),
            level=data.get("level"),
            cr=data.get("cr"),
            xp=data.get("xp", 0),
            quantity=data.get("quantity", 1),
        )


def remove_entry(entries: list[RosterEntry], uuid: str) -> list[RosterEntry]:
    """Remove the first entry with ``uuid`` in place and return the list."""
    for index, entry in enumerate(entries):
        if entry.uuid == uuid:
            del entries[index]
            break
    return entries


def add_actor_to_side(
    allies: list[RosterEntry],
    enemies: list[RosterEntry],
    actor: Any,
    side: str,
) -> RosterEntry:
    """Add an actor to the ally or enemy side, mutating the lists in place.

    Player characters are unique across the whole encounter, so any existing
    entry on either side is removed first. Repeated enemies of the same uuid
    are grouped into one entry with a higher quantity; allies never group.

    Returns:
        The entry that now represents the actor
    """
    entry = RosterEntry.from_actor(actor)

    if entry.is_pc:
        remove_entry(allies, entry.uuid)
        remove_entry(enemies, entry.uuid)
        (enemies if side == "enemies" else allies).append(entry)
        return entry

    if side != "enemies":
        allies.append(entry)
        return entry

    for existing in enemies:
        if existing.uuid == entry.uuid:
            existing.quantity = min(existing.quantity + 1, MAX_QUANTITY)
            existing.refresh_total()
            return existing

    enemies.append(entry)
    return entry


def update_enemy_quantity(
    enemies: list[RosterEntry],
    uuid: str,
    mode: str,
    value: Any,
) -> list[RosterEntry]:
    """Change an enemy's quantity by a delta or to an absolute value.

    A resulting quantity of zero or less removes the enemy.

    Args:
        enemies: Enemy list, updated in place
        uuid: Enemy to update
        mode: "delta" or "set"
        value: Amount to add, or the new quantity

    Returns:
        The same list
    """
    enemy = next((e for e in enemies if e.uuid == uuid), None)
    if enemy is None:
        return enemies

    quantity = to_number(enemy.quantity, 1) or 1
    if mode == "delta":
        quantity += to_number(value)
    elif mode == "set":
        quantity = to_number(value)

    if quantity <= 0:
        return remove_entry(enemies, uuid)

    enemy.quantity = clamp_quantity(quantity)
    enemy.refresh_total()
    return enemies


def normalize_enemy_quantities(enemies: list[RosterEntry]) -> list[RosterEntry]:
    """Clamp every quantity to [1, 99] and refresh ``total_xp``."""
    for enemy in enemies:
        enemy.quantity = clamp_quantity(enemy.quantity)
        enemy.refresh_total()
    return enemies


def pc_uuids(allies: list[RosterEntry]) -> list[str]:
    """Unique uuids of player characters, in roster order."""
    return list(dict.fromkeys(a.uuid for a in allies if a.is_pc and a.uuid))


def ally_uuids(allies: list[RosterEntry]) -> list[str]:
    """Unique uuids of every ally, in roster order."""
    return list(dict.fromkeys(a.uuid for a in allies if a.uuid))


def encounter_member_refs(encounter_actor: Any, module_id: str) -> list[tuple[str, int]]:
    """Extract ``(uuid, quantity)`` references from a saved encounter actor.

    Prefers the enemy list stored in the actor's flags under ``module_id`` and
    falls back to the host system's ``system.members`` list.
    """
    stored = field_of(encounter_actor, "flags", module_id, "enemies", default=[])
    refs = [
        (field_of(e, "uuid"), int(to_number(field_of(e, "quantity"), 1) or 1))
        for e in stored
    ]
    refs = [(uuid, qty) for uuid, qty in refs if uuid]
    if refs:
        return refs

    members = field_of(encounter_actor, "system", "members", default=[])
    if not isinstance(members, list):
        return []

    for member in members:
        uuid = (
            field_of(member, "uuid")
            or field_of(member, "actorUuid")
            or field_of(member, "actor")
        )
        qty = field_of(member, "quantity", "value")
        if qty is None:
            qty = field_of(member, "quantity")
        if uuid:
            refs.append((uuid, int(to_number(qty, 1) or 1)))
    return refs


def group_member_ids(group_actor: Any) -> list[str]:
    """Unique member ids of a group actor, in listed order.

    Reads ``system.members.ids`` when the host keeps a set of ids, otherwise a
    list of member records keyed by ``actor``, ``id`` or ``_id``.
    """
    members = field_of(group_actor, "system", "members")
    if members is None:
        return []

    ids = field_of(members, "ids")
    if isinstance(ids, (set, frozenset, list, tuple)):
        member_ids = list(ids)
    else:
        member_ids = []

    if not member_ids and isinstance(members, list):
        member_ids = [
            field_of(m, "actor") or field_of(m, "id") or field_of(m, "_id")
            for m in members
        ]

    return list(dict.fromkeys(m for m in member_ids if m))


async def import_group_members(
    allies: list[RosterEntry],
    enemies: list[RosterEntry],
    group_actor: Any,
    side: str,
    actor_resolver: ActorResolver,
) -> int:
    """Add every member of a group actor to one side.

    Members that fail to resolve are logged and skipped.

    Returns:
        Number of members that were added
    """
    group_name = field_of(group_actor, "name", default="?")
    member_ids = group_member_ids(group_actor)
    if not member_ids:
        logger.warning(f"Group {group_name} has no recognizable members")
        return 0

    added = 0
    for member_id in member_ids:
        try:
            actor = await actor_resolver(member_id)
        except Exception as e:
            logger.warning(f"Failed to resolve member {member_id} of group {group_name}: {e}")
            continue
        if actor is None:
            logger.warning(f"Member {member_id} of group {group_name} not found, skipping")
            continue

        add_actor_to_side(allies, enemies, actor, side)
        added += 1
    return added


async def import_encounter(
    allies: list[RosterEntry],
    enemies: list[RosterEntry],
    encounter_actor: Any,
    actor_resolver: ActorResolver,
    module_id: str,
) -> int:
    """Load a saved encounter's monsters onto the enemy side.

    References that fail to resolve are logged and skipped.

    Returns:
        Number of references that were imported
    """
    imported = 0
    for uuid, quantity in encounter_member_refs(encounter_actor, module_id):
        try:
            actor = await actor_resolver(uuid)
        except Exception as e:
            logger.warning(f"Failed to resolve encounter member {uuid}: {e}")
            continue
        if actor is None:
            logger.warning(f"Encounter member {uuid} not found, skipping")
            continue

        for _ in range(max(1, min(quantity, MAX_IMPORT_COPIES))):
            add_actor_to_side(allies, enemies, actor, "enemies")
        imported += 1
    return imported
