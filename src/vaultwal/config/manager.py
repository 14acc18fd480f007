# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.05.13
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/config/manager.py

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional, Final

import yaml
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from vaultwal.system.exceptions import ConfigError


# ---- Constants ----

USER_CFG: Final = "vaultwal.yml"
WAL_FILENAME: Final = "operation.wal"
REGISTRY_FILENAME: Final = "vaults.json"
APP_NAME: Final = "vaultwal"

# Directory entries tolerated by the CreateVault rollback: the placeholder
# file is written first during vault initialization.
DEFAULT_CREATE_ROLLBACK_MAX_ENTRIES: Final = 1
DEFAULT_PLACEHOLDER_NAME: Final = "Welcome.md"


def _get_user_config_search_paths() -> tuple[Path, ...]:
    """Get config file search paths (ordered by priority: lowest to highest).

    Evaluated at call time so environment overrides apply in tests.
    """
    return (
        Path("/etc/vaultwal") / USER_CFG,  # System defaults
        Path.home() / ".config" / "vaultwal" / USER_CFG,  # User config
        Path(os.getenv("XDG_CONFIG_HOME", "")) / "vaultwal" / USER_CFG,  # XDG override
        Path(os.getenv("VAULTWAL_CONFIG_HOME", "")) / USER_CFG,  # Explicit override (highest priority)
    )


def _load_merged_config_data(candidates: tuple[Path, ...]) -> dict:
    """Load and merge config data from candidate paths.

    Later candidates override earlier ones. An unreadable or malformed file
    is a ConfigError rather than being skipped.
    """
    merged_data = {}
    found_configs = []

    for candidate in candidates:
        # Unset env vars produce relative paths like "vaultwal/vaultwal.yml"
        if not candidate.is_absolute() or not candidate.exists():
            continue
        try:
            with candidate.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to load config from {candidate}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config {candidate} must be a mapping, got {type(data).__name__}")
        merged_data.update(data)
        found_configs.append(str(candidate))
        logger.debug(f"Loaded config from {candidate}")

    if found_configs:
        logger.debug(f"Merged config from: {', '.join(found_configs)}")
    else:
        logger.debug("No vaultwal.yml found, using defaults")
    return merged_data


class UserConfig(BaseModel):
    """Per-user settings. Every field is optional."""
    data_dir: Optional[Path] = Field(default=None, description="Application-private data directory")
    vaults_dir: Optional[Path] = Field(default=None, description="Default parent directory for new vaults")
    local_log: Optional[Path] = None

    create_rollback_max_entries: int = Field(
        default=DEFAULT_CREATE_ROLLBACK_MAX_ENTRIES,
        ge=0,
        description="A partially created vault directory with at most this many entries is removed on rollback",
    )
    placeholder_name: str = Field(default=DEFAULT_PLACEHOLDER_NAME, min_length=1)


def load_merged_user_config() -> UserConfig:
    """Load and merge user config from all locations (system defaults + user overrides)."""
    merged_data = _load_merged_config_data(_get_user_config_search_paths())
    try:
        return UserConfig.model_validate(merged_data)
    except ValidationError as e:
        raise ConfigError(f"Invalid vaultwal configuration: {e}") from e


def resolve_app_data_dir(config: UserConfig | None = None) -> Path:
    """Resolve the application-private data directory.

    Order: VAULTWAL_DATA_DIR, config data_dir, $XDG_DATA_HOME/vaultwal,
    ~/.local/share/vaultwal.
    """
    env_dir = os.getenv("VAULTWAL_DATA_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    if config is not None and config.data_dir is not None:
        return config.data_dir.expanduser()
    xdg_data = os.getenv("XDG_DATA_HOME")
    if xdg_data:
        return Path(xdg_data) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME


def resolve_vaults_dir(config: UserConfig | None = None) -> Path:
    """Default parent directory for new vaults."""
    if config is not None and config.vaults_dir is not None:
        return config.vaults_dir.expanduser()
    return Path.home() / "Vaults"
