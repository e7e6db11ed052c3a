"""Configuration management for the encounter builder."""

from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, Field


class EncounterConfig(BaseModel):
    """Difficulty calculation defaults."""

    module_id: str = "encounter-forge"
    target_tier: Literal["low", "moderate", "high"] = "moderate"
    display_mode: Literal["classic", "relative"] = "classic"
    ally_npc_weight: float = Field(default=0.5, ge=0)


class TreasureConfig(BaseModel):
    """Treasure generation defaults."""

    mode: Literal["roll", "average"] = "average"


class LootConfig(BaseModel):
    """Loot aggregation defaults."""

    auto_loot_mode: Literal["off", "perEnemy", "perActorType"] = "perEnemy"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class AppConfig(BaseModel):
    """Main application configuration."""

    encounter: EncounterConfig = Field(default_factory=EncounterConfig)
    treasure: TreasureConfig = Field(default_factory=TreasureConfig)
    loot: LootConfig = Field(default_factory=LootConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_config(config_path: Path | str | None = None) -> AppConfig:
    """Load configuration from YAML file.

    Args:
        config_path: Path to config file. Defaults to ./config.yaml

    Returns:
        AppConfig instance with loaded or default values
    """
    if config_path is None:
        config_path = Path("config.yaml")
    else:
        config_path = Path(config_path)

    if config_path.exists():
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return AppConfig(**data)

    return AppConfig()


def save_config(config: AppConfig, config_path: Path | str | None = None) -> None:
    """Save configuration to YAML file.

    Args:
        config: AppConfig instance to save
        config_path: Path to save to. Defaults to ./config.yaml
    """
    if config_path is None:
        config_path = Path("config.yaml")
    else:
        config_path = Path(config_path)

    with open(config_path, "w", encoding="utf-8") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)


# Global config instance
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Path | str | None = None) -> AppConfig:
    """Reload configuration from disk.

    Args:
        config_path: Path to config file

    Returns:
        Newly loaded AppConfig instance
    """
    global _config
    _config = load_config(config_path)
    return _config
