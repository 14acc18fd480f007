# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-17
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/vaults/registry.py

"""
The vault registry (vaults.json).

The registry can only be opened with a RecoveredDataDir, i.e. after startup
recovery has restored it from any interrupted transaction.
"""

from datetime import datetime, UTC
from pathlib import Path
from typing import Optional

import orjson
from loguru import logger
from pydantic import BaseModel, Field, ValidationError

from vaultwal.core.recovery import RecoveredDataDir
from vaultwal.storage import durable
from vaultwal.system.exceptions import RegistryError


class VaultRecord(BaseModel):
    """A registered vault."""
    id: str
    name: str
    path: str
    created_at: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    last_opened: Optional[str] = None

    def exists_on_disk(self) -> bool:
        return Path(self.path).is_dir()


class RegistryData(BaseModel):
    vaults: list[VaultRecord] = Field(default_factory=list)
    last_vault_id: Optional[str] = None

    def to_json(self) -> str:
        return orjson.dumps(self.model_dump(mode="json"), option=orjson.OPT_INDENT_2).decode("utf-8")


class VaultRegistry:
    """Read and update vaults.json under a recovered data directory."""

    def __init__(self, recovered: RecoveredDataDir):
        if not isinstance(recovered, RecoveredDataDir):
            raise RegistryError("The vault registry can only be opened after startup recovery")
        self.path = recovered.wal.registry_path

    def snapshot(self) -> str:
        """Exact current registry content, used as a WAL registry_backup."""
        try:
            return durable.read_text(self.path)
        except FileNotFoundError:
            return RegistryData().to_json()

    def load(self) -> RegistryData:
        try:
            content = durable.read_text(self.path)
        except FileNotFoundError:
            return RegistryData()
        try:
            return RegistryData.model_validate(orjson.loads(content))
        except (orjson.JSONDecodeError, ValidationError) as e:
            raise RegistryError(f"Failed to parse registry {self.path}: {e}") from e

    def save(self, data: RegistryData) -> None:
        durable.write_synced(self.path, data.to_json())
        logger.debug(f"Saved registry with {len(data.vaults)} vaults")

    def get(self, vault_id: str) -> VaultRecord:
        for vault in self.load().vaults:
            if vault.id == vault_id:
                return vault
        raise RegistryError(f"Unknown vault: {vault_id}")

    def list_vaults(self) -> list[VaultRecord]:
        return self.load().vaults
