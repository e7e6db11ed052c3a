"""Command-line entry point for scoring an encounter file."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Any

import yaml

from .config import AppConfig, get_config, reload_config
from .game.currency import compute_total_value, format_currency_value, items_gold_value
from .game.dice import DiceRoller, make_roll_evaluator
from .game.difficulty import calculate_difficulty
from .game.loot import aggregate_loot
from .game.roster import RosterEntry, import_encounter, normalize_enemy_quantities
from .game.treasure import (
    TreasureResult,
    generate_individual_treasure,
    generate_treasure_hoard,
    max_cr,
    treasure_enemies,
)

logger = logging.getLogger(__name__)


def setup_logging(config: AppConfig) -> None:
    """Configure root logging from the config."""
    logging.basicConfig(level=config.logging.level.upper(), format=config.logging.format)


def load_encounter(path: Path | str) -> dict[str, Any]:
    """Read a YAML encounter file.

    Raises:
        ValueError: If the file does not hold a mapping
    """
    with open(path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Encounter file must contain a mapping: {path}")
    return data


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Score an encounter and generate its treasure")
    parser.add_argument("encounter", help="YAML encounter file")
    parser.add_argument("--config", default=None, help="Config file (default: ./config.yaml)")
    parser.add_argument("--treasure", choices=["none", "individual", "hoard"], default="individual")
    parser.add_argument("--mode", choices=["average", "roll"], default=None, help="Treasure mode")
    parser.add_argument("--seed", type=int, default=None, help="Seed for reproducible rolls")
    return parser


async def run(
    data: dict[str, Any],
    treasure: str,
    mode: str,
    seed: int | None,
    config: AppConfig | None = None,
) -> list[str]:
    """Evaluate an encounter and return the report lines.

    Actors are looked up in the file's `actors` mapping first; an enemy with
    only an `inventories` list is resolved to an actor carrying those items.
    """
    config = config or get_config()
    actors = data.get("actors") or {}
    inventories = data.get("inventories") or {}

    async def resolve(uuid: str):
        if uuid in actors:
            return actors[uuid]
        if uuid in inventories:
            return {"uuid": uuid, "items": inventories[uuid] or []}
        return None

    allies = [RosterEntry.from_dict(a) for a in data.get("allies") or []]
    enemies = [RosterEntry.from_dict(e) for e in data.get("enemies") or []]
    if data.get("encounter"):
        await import_encounter(allies, enemies, data["encounter"], resolve, config.encounter.module_id)
    normalize_enemy_quantities(enemies)

    result = calculate_difficulty(
        allies=allies,
        enemies=enemies,
        target_tier=config.encounter.target_tier,
        display_mode=config.encounter.display_mode,
        ally_npc_weight=config.encounter.ally_npc_weight,
    )
    lines = [
        f"Difficulty: {result.label}",
        f"Built for: {result.target_label} (budget {result.budget} XP)",
        f"Enemy XP: {result.total_xp:g}",
    ]

    roller = DiceRoller()
    if seed is not None:
        roller.seed(seed)
    evaluator = make_roll_evaluator(roller)

    coins = TreasureResult()
    eligible = treasure_enemies(enemies)
    if treasure == "individual" and eligible:
        coins = await generate_individual_treasure(eligible, mode, evaluator)
    elif treasure == "hoard" and eligible:
        coins = await generate_treasure_hoard(max_cr(eligible), mode, evaluator)
    elif treasure != "none":
        lines.append("No enemies with a challenge rating, no treasure generated")

    if treasure != "none":
        lines.append("Treasure: " + ", ".join(f"{k} {v}" for k, v in coins.coins().items()))
        if coins.magic_items_count is not None:
            lines.append(f"Magic items: {coins.magic_items_count}")

    loot = await aggregate_loot(enemies, config.loot.auto_loot_mode, resolve)
    for entry in loot:
        lines.append(f"  {entry.quantity} x {entry.name} ({format_currency_value(entry.price)} gp)")

    totals = compute_total_value(**coins.coins(), items_gold=items_gold_value(loot))
    lines.append(f"Total value: {totals['total_formatted']} gp")
    return lines


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = build_parser().parse_args(argv)

    try:
        config = reload_config(args.config)
        setup_logging(config)
        data = load_encounter(args.encounter)
        mode = args.mode or config.treasure.mode
        lines = asyncio.run(run(data, args.treasure, mode, args.seed))
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error(f"Could not evaluate encounter: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1

    print("\n".join(lines))
    return 0


if __name__ == "__main__":
    sys.exit(main())
