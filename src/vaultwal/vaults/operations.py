# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-17
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/vaults/operations.py

"""
Destructive vault operations, each protected by a WAL transaction.

Ordering inside every operation:
1. validate inputs (nothing logged yet)
2. begin the transaction, capturing the registry snapshot where needed
3. filesystem work
4. registry update, always the last side effect
5. commit

A crash anywhere before commit is undone by the next startup recovery.
"""

import re
import shutil
import uuid
from dataclasses import dataclass, field
from datetime import datetime, UTC
from pathlib import Path

from loguru import logger

from vaultwal.config.manager import resolve_vaults_dir
from vaultwal.core.models import CleanupBrokenVaults, CreateVault, DeleteVault, RecoveryResult
from vaultwal.core.recovery import RecoveredDataDir
from vaultwal.system.exceptions import RegistryError, WalIoError
from vaultwal.vaults.registry import VaultRecord, VaultRegistry

_INVALID_NAME_CHARS = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

PLACEHOLDER_TEMPLATE = "# {name}\n\nWelcome to your new vault.\n"


@dataclass
class HealthReport:
    """Registry health as shown to the user after startup."""
    healthy: list[VaultRecord] = field(default_factory=list)
    broken: list[VaultRecord] = field(default_factory=list)
    recovered_operations: list[RecoveryResult] = field(default_factory=list)

    @property
    def total_count(self) -> int:
        return len(self.healthy) + len(self.broken)

    @property
    def needs_user_action(self) -> bool:
        return bool(self.broken) or bool(self.recovered_operations)

    def to_dict(self) -> dict:
        return {
            "healthy": [v.model_dump() for v in self.healthy],
            "broken": [v.model_dump() for v in self.broken],
            "recoveredOperations": [r.to_dict() for r in self.recovered_operations],
            "needsUserAction": self.needs_user_action,
            "totalCount": self.total_count,
        }


def validate_vault_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise RegistryError("Vault name cannot be empty")
    if name in (".", "..") or _INVALID_NAME_CHARS.search(name):
        raise RegistryError(f"Invalid vault name: {name!r}")
    return name


class VaultService:
    """Create, delete and clean up vaults under a recovered data directory."""

    def __init__(self, recovered: RecoveredDataDir):
        self.recovered = recovered
        self.registry = VaultRegistry(recovered)
        self.wal = recovered.wal
        self.config = recovered.config

    def create_vault(self, name: str, parent: Path | None = None) -> VaultRecord:
        """Create a vault directory with its placeholder file and register it."""
        name = validate_vault_name(name)
        parent = Path(parent) if parent is not None else resolve_vaults_dir(self.config)
        vault_path = parent / name
        if vault_path.exists():
            raise RegistryError(f"Vault path already exists: {vault_path}")
        if any(Path(v.path) == vault_path for v in self.registry.list_vaults()):
            raise RegistryError(f"A vault is already registered at {vault_path}")

        record = VaultRecord(id=str(uuid.uuid4()), name=name, path=str(vault_path))
        operation = CreateVault(vault_id=record.id, vault_path=record.path)

        with self.wal.transaction(operation):
            try:
                vault_path.mkdir(parents=True)
                (vault_path / self.config.placeholder_name).write_text(
                    PLACEHOLDER_TEMPLATE.format(name=name), encoding="utf-8"
                )
            except OSError as e:
                raise WalIoError(f"Failed to initialize vault directory: {e}", path=vault_path) from e

            data = self.registry.load()
            data.vaults.append(record)
            data.last_vault_id = record.id
            self.registry.save(data)

        logger.info(f"Created vault {record.name} ({record.id}) at {record.path}")
        return record

    def delete_vault(self, vault_id: str, delete_files: bool = False) -> VaultRecord:
        """Remove a vault from the registry, optionally deleting its directory."""
        record = self.registry.get(vault_id)
        operation = DeleteVault(
            vault_id=record.id,
            vault_path=record.path,
            delete_files=delete_files,
            registry_backup=self.registry.snapshot(),
        )

        with self.wal.transaction(operation):
            vault_path = Path(record.path)
            if delete_files and vault_path.exists():
                try:
                    shutil.rmtree(vault_path)
                except OSError as e:
                    raise WalIoError(f"Failed to delete vault files: {e}", path=vault_path) from e
                logger.info(f"Deleted vault files at {vault_path}")

            data = self.registry.load()
            data.vaults = [v for v in data.vaults if v.id != vault_id]
            if data.last_vault_id == vault_id:
                data.last_vault_id = None
            self.registry.save(data)

        logger.info(f"Deleted vault {record.name} ({record.id})")
        return record

    def cleanup_broken_vaults(self) -> list[VaultRecord]:
        """Drop every registry entry whose directory no longer exists."""
        broken = [v for v in self.registry.list_vaults() if not v.exists_on_disk()]
        if not broken:
            logger.debug("No broken vaults to clean up")
            return []
        return self._unregister_broken(broken)

    def remove_broken_vault(self, vault_id: str) -> VaultRecord:
        """Drop a single registry entry whose directory no longer exists."""
        record = self.registry.get(vault_id)
        if record.exists_on_disk():
            raise RegistryError(f"Vault {record.name} is not broken: {record.path} still exists")
        self._unregister_broken([record])
        return record

    def _unregister_broken(self, broken: list[VaultRecord]) -> list[VaultRecord]:
        broken_ids = {v.id for v in broken}
        operation = CleanupBrokenVaults(
            registry_backup=self.registry.snapshot(),
            vault_ids=tuple(v.id for v in broken),
        )

        with self.wal.transaction(operation):
            data = self.registry.load()
            data.vaults = [v for v in data.vaults if v.id not in broken_ids]
            if data.last_vault_id in broken_ids:
                data.last_vault_id = None
            self.registry.save(data)

        logger.info(f"Removed {len(broken)} broken vaults from the registry")
        return broken

    def open_vault(self, vault_id: str) -> VaultRecord:
        """Mark a vault as last opened. Not WAL-protected: a single registry write."""
        data = self.registry.load()
        for vault in data.vaults:
            if vault.id == vault_id:
                if not vault.exists_on_disk():
                    raise RegistryError(f"Vault directory is missing: {vault.path}")
                vault.last_opened = datetime.now(UTC).isoformat()
                data.last_vault_id = vault.id
                self.registry.save(data)
                return vault
        raise RegistryError(f"Unknown vault: {vault_id}")

    def check_health(self) -> HealthReport:
        result = self.recovered.result
        report = HealthReport(recovered_operations=[result] if result.recovered else [])
        for vault in self.registry.list_vaults():
            (report.healthy if vault.exists_on_disk() else report.broken).append(vault)
        return report
