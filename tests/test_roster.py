"""Tests for roster entries and roster edits."""

import asyncio
from types import SimpleNamespace

from encounter_forge.game.roster import (
    RosterEntry,
    actor_xp,
    add_actor_to_side,
    ally_uuids,
    encounter_member_refs,
    group_member_ids,
    import_encounter,
    import_group_members,
    normalize_enemy_quantities,
    pc_uuids,
    remove_entry,
    update_enemy_quantity,
)


def make_actor(uuid, actor_type="npc", xp=100, level=None, cr=1, name=None):
    return SimpleNamespace(
        id=uuid.split(".")[-1],
        uuid=uuid,
        name=name or uuid,
        type=actor_type,
        system=SimpleNamespace(
            details=SimpleNamespace(level=level, cr=cr, xp=SimpleNamespace(value=xp))
        ),
    )


GOBLIN = make_actor("Actor.goblin", xp=50, cr=0.25)
HERO = make_actor("Actor.hero", "character", xp=None, level=4, cr=None)


class TestRosterEntry:
    """Test RosterEntry construction."""

    def test_from_actor(self):
        """Test reading fields from a host actor."""
        entry = RosterEntry.from_actor(GOBLIN)
        assert entry.uuid == "Actor.goblin"
        assert entry.id == "goblin"
        assert entry.cr == 0.25
        assert entry.xp == 50
        assert entry.quantity == 1
        assert entry.total_xp == 50

    def test_from_dict(self):
        """Test building from a mapping."""
        entry = RosterEntry.from_dict({"uuid": "Actor.ogre", "name": "Ogre", "xp": 450, "quantity": 3, "cr": 2})
        assert entry.type == "npc"
        assert entry.total_xp == 1350

    def test_quantity_clamped_on_create(self):
        """Test quantity starts inside [1, 99]."""
        assert RosterEntry(uuid="a", name="a", type="npc", xp=10, quantity=500).quantity == 99
        assert RosterEntry(uuid="a", name="a", type="npc", xp=10, quantity=0).quantity == 1

    def test_actor_xp(self):
        """Test XP extraction and missing values."""
        assert actor_xp(GOBLIN) == 50
        assert actor_xp(HERO) == 0
        assert actor_xp(make_actor("Actor.x", xp=float("nan"))) == 0
        assert actor_xp({"system": {"details": {"xp": {"value": 200}}}}) == 200


class TestAddActorToSide:
    """Test dropping actors onto a side."""

    def setup_method(self):
        """Set up empty sides."""
        self.allies = []
        self.enemies = []

    def test_repeated_enemy_groups(self):
        """Test the same monster twice becomes one entry of quantity 2."""
        add_actor_to_side(self.allies, self.enemies, GOBLIN, "enemies")
        entry = add_actor_to_side(self.allies, self.enemies, GOBLIN, "enemies")
        assert len(self.enemies) == 1
        assert entry.quantity == 2
        assert entry.total_xp == 100

    def test_enemy_group_capped(self):
        """Test grouping stops at 99."""
        for _ in range(105):
            add_actor_to_side(self.allies, self.enemies, GOBLIN, "enemies")
        assert self.enemies[0].quantity == 99
        assert self.enemies[0].total_xp == 99 * 50

    def test_allies_never_group(self):
        """Test allied monsters stay separate entries."""
        add_actor_to_side(self.allies, self.enemies, GOBLIN, "allies")
        add_actor_to_side(self.allies, self.enemies, GOBLIN, "allies")
        assert len(self.allies) == 2

    def test_player_character_is_unique(self):
        """Test a PC moved to the other side leaves its old side."""
        add_actor_to_side(self.allies, self.enemies, HERO, "allies")
        add_actor_to_side(self.allies, self.enemies, HERO, "enemies")
        assert self.allies == []
        assert [e.uuid for e in self.enemies] == ["Actor.hero"]

        add_actor_to_side(self.allies, self.enemies, HERO, "allies")
        add_actor_to_side(self.allies, self.enemies, HERO, "allies")
        assert len(self.allies) == 1
        assert self.enemies == []


class TestQuantityEdits:
    """Test enemy quantity changes."""

    def setup_method(self):
        """Set up two enemies."""
        self.enemies = [
            RosterEntry(uuid="Actor.a", name="A", type="npc", xp=100, quantity=2),
            RosterEntry(uuid="Actor.b", name="B", type="npc", xp=25, quantity=1),
        ]

    def test_delta(self):
        update_enemy_quantity(self.enemies, "Actor.a", "delta", 3)
        assert self.enemies[0].quantity == 5
        assert self.enemies[0].total_xp == 500

    def test_set_clamped(self):
        update_enemy_quantity(self.enemies, "Actor.b", "set", 250)
        assert self.enemies[1].quantity == 99
        assert self.enemies[1].total_xp == 99 * 25

    def test_reduce_to_zero_removes(self):
        update_enemy_quantity(self.enemies, "Actor.a", "delta", -2)
        assert [e.uuid for e in self.enemies] == ["Actor.b"]

    def test_set_negative_removes(self):
        update_enemy_quantity(self.enemies, "Actor.b", "set", -1)
        assert [e.uuid for e in self.enemies] == ["Actor.a"]

    def test_unknown_uuid_ignored(self):
        update_enemy_quantity(self.enemies, "Actor.zzz", "set", 4)
        assert [e.quantity for e in self.enemies] == [2, 1]

    def test_normalize_restores_total_xp(self):
        """Test totals match xp * quantity after direct mutation."""
        self.enemies[0].quantity = 300
        self.enemies[1].quantity = -4
        normalize_enemy_quantities(self.enemies)
        assert [e.quantity for e in self.enemies] == [99, 1]
        assert sum(e.total_xp for e in self.enemies) == sum(e.xp * e.quantity for e in self.enemies)

    def test_remove_entry(self):
        remove_entry(self.enemies, "Actor.a")
        assert [e.uuid for e in self.enemies] == ["Actor.b"]


class TestPartyUuids:
    """Test uuid extraction for saving parties."""

    def test_pc_and_ally_uuids(self):
        allies = [
            RosterEntry.from_actor(HERO),
            RosterEntry.from_actor(GOBLIN),
            RosterEntry.from_actor(HERO),
        ]
        assert pc_uuids(allies) == ["Actor.hero"]
        assert ally_uuids(allies) == ["Actor.hero", "Actor.goblin"]


class TestEncounterImport:
    """Test loading saved encounters."""

    def test_refs_from_flags(self):
        """Test stored enemy references take priority."""
        encounter = {
            "flags": {"encounter-forge": {"enemies": [{"uuid": "Actor.goblin", "quantity": 3}, {"quantity": 2}]}},
            "system": {"members": [{"uuid": "Actor.other"}]},
        }
        assert encounter_member_refs(encounter, "encounter-forge") == [("Actor.goblin", 3)]

    def test_refs_from_members(self):
        """Test the system member list fallback."""
        encounter = {
            "system": {
                "members": [
                    {"uuid": "Actor.a", "quantity": {"value": 4}},
                    {"actorUuid": "Actor.b", "quantity": 2},
                    {"actor": "Actor.c"},
                    {"quantity": 5},
                ]
            }
        }
        assert encounter_member_refs(encounter, "encounter-forge") == [
            ("Actor.a", 4), ("Actor.b", 2), ("Actor.c", 1),
        ]

    def test_refs_empty(self):
        assert encounter_member_refs({}, "encounter-forge") == []

    def test_import_encounter(self):
        """Test import adds each resolved monster and skips missing ones."""
        actors = {"Actor.goblin": GOBLIN}

        async def resolve(uuid):
            return actors.get(uuid)

        encounter = {"system": {"members": [{"uuid": "Actor.goblin", "quantity": 3}, {"uuid": "Actor.ghost"}]}}
        allies, enemies = [], []
        imported = asyncio.run(import_encounter(allies, enemies, encounter, resolve, "encounter-forge"))
        assert imported == 1
        assert allies == []
        assert [(e.uuid, e.quantity, e.total_xp) for e in enemies] == [("Actor.goblin", 3, 150)]


class TestGroupImport:
    """Test dropping a group actor onto a side."""

    def setup_method(self):
        """Set up a resolver over a few actors."""
        self.actors = {"Actor.goblin": GOBLIN, "Actor.hero": HERO}
        self.allies = []
        self.enemies = []

    async def resolve(self, uuid):
        return self.actors.get(uuid)

    def test_member_ids_from_id_set(self):
        """Test the host's set of member ids."""
        group = {"system": {"members": SimpleNamespace(ids={"Actor.goblin"})}}
        assert group_member_ids(group) == ["Actor.goblin"]

    def test_member_ids_from_records_deduplicated(self):
        """Test member records keyed by actor, id or _id, with repeats removed."""
        group = {
            "system": {
                "members": [
                    {"actor": "Actor.goblin"},
                    {"id": "Actor.hero"},
                    {"_id": "Actor.goblin"},
                    {"name": "no id"},
                ]
            }
        }
        assert group_member_ids(group) == ["Actor.goblin", "Actor.hero"]

    def test_member_ids_missing(self):
        """Test groups without members."""
        assert group_member_ids({"system": {}}) == []
        assert group_member_ids({"system": {"members": []}}) == []

    def test_import_adds_each_member_once(self):
        """Test a duplicated member is only added once."""
        group = {"name": "Raiders", "system": {"members": [{"actor": "Actor.goblin"}, {"actor": "Actor.goblin"}]}}
        added = asyncio.run(import_group_members(self.allies, self.enemies, group, "enemies", self.resolve))
        assert added == 1
        assert [(e.uuid, e.quantity) for e in self.enemies] == [("Actor.goblin", 1)]

    def test_import_skips_unresolved_members(self):
        """Test missing and failing members are skipped."""

        async def flaky(uuid):
            if uuid == "Actor.broken":
                raise LookupError("compendium offline")
            return self.actors.get(uuid)

        group = {
            "name": "Party",
            "system": {"members": [{"actor": "Actor.broken"}, {"actor": "Actor.ghost"}, {"actor": "Actor.hero"}]},
        }
        added = asyncio.run(import_group_members(self.allies, self.enemies, group, "allies", flaky))
        assert added == 1
        assert [a.uuid for a in self.allies] == ["Actor.hero"]
        assert self.enemies == []

    def test_import_empty_group(self):
        """Test a group with no members adds nothing."""
        added = asyncio.run(import_group_members(self.allies, self.enemies, {"name": "Empty"}, "allies", self.resolve))
        assert added == 0
        assert self.allies == []
