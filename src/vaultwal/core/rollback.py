# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-15
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/core/rollback.py

"""
Operation-specific rollback strategies, used only by the recovery engine.

Registry-mutating operations update vaults.json as their last side effect,
so restoring the snapshot taken at begin time undoes any partial progress.
Files already deleted from disk are not brought back. CreateVault rollback
removes the new record from the registry if it got that far, then removes
the freshly initialized directory on a best-effort basis.
"""

import shutil
from pathlib import Path
from typing import Callable, NamedTuple

import orjson
from loguru import logger

from vaultwal.core.models import CleanupBrokenVaults, CreateVault, DeleteVault, WalEntry
from vaultwal.storage import durable
from vaultwal.system.exceptions import WalIoError


class RollbackOutcome(NamedTuple):
    """Human-readable summary plus a stable operation-kind tag."""
    message: str
    operation_type: str


def restore_registry(registry_path: Path, registry_backup: str) -> None:
    """Overwrite the registry with the snapshot, byte for byte."""
    durable.write_synced(registry_path, registry_backup)
    logger.info(f"Restored {registry_path} from WAL backup ({len(registry_backup)} chars)")


def rollback_delete_vault(op: DeleteVault, registry_path: Path, max_entries: int) -> RollbackOutcome:
    restore_registry(registry_path, op.registry_backup)
    if op.delete_files:
        logger.warning(f"Files of vault {op.vault_id} at {op.vault_path} may already be deleted; they are not restored")
    return RollbackOutcome(
        f"Rolled back incomplete vault deletion: {op.vault_id}",
        op.kind,
    )


def rollback_cleanup_broken_vaults(op: CleanupBrokenVaults, registry_path: Path,
                                   max_entries: int) -> RollbackOutcome:
    restore_registry(registry_path, op.registry_backup)
    return RollbackOutcome(
        f"Rolled back incomplete cleanup of {len(op.vault_ids)} broken vaults",
        op.kind,
    )


def unregister_vault(registry_path: Path, vault_id: str) -> bool:
    """
    Drop vault_id from the registry if the interrupted creation got as far as
    registering it. Returns True when the registry was rewritten.

    An unreadable registry is left alone; a failed rewrite propagates.
    """
    try:
        raw = orjson.loads(durable.read_bytes(registry_path))
    except FileNotFoundError:
        return False
    except (WalIoError, orjson.JSONDecodeError) as e:
        logger.warning(f"Cannot read {registry_path} to unregister vault {vault_id}: {e}")
        return False

    vaults = raw.get("vaults") if isinstance(raw, dict) else None
    if not isinstance(vaults, list):
        logger.warning(f"Unexpected registry layout in {registry_path}, not unregistering {vault_id}")
        return False

    kept = [v for v in vaults if not (isinstance(v, dict) and v.get("id") == vault_id)]
    if len(kept) == len(vaults):
        return False
    raw["vaults"] = kept
    if raw.get("last_vault_id") == vault_id:
        raw["last_vault_id"] = None
    durable.write_synced(registry_path, orjson.dumps(raw, option=orjson.OPT_INDENT_2))
    logger.info(f"Unregistered partially created vault {vault_id}")
    return True


def _remove_fresh_vault_directory(vault_path: Path, max_entries: int) -> None:
    """Best-effort removal of a vault directory that was never filled in."""
    if vault_path.is_symlink():
        logger.warning(f"Vault path {vault_path} is a symlink, leaving it untouched")
        return
    if not vault_path.exists():
        logger.debug(f"Vault directory {vault_path} was never created")
        return
    if not vault_path.is_dir():
        logger.warning(f"Vault path {vault_path} is not a directory, leaving it untouched")
        return

    try:
        count = sum(1 for _ in vault_path.iterdir())
    except OSError as e:
        logger.warning(f"Could not inspect vault directory {vault_path}, leaving it: {e}")
        return

    if count > max_entries:
        logger.info(f"Keeping vault directory {vault_path}: {count} entries exceed rollback threshold {max_entries}")
        return
    try:
        shutil.rmtree(vault_path)
    except OSError as e:
        logger.warning(f"Could not remove partially created vault directory {vault_path}: {e}")
        return
    logger.info(f"Removed partially created vault directory {vault_path} ({count} entries)")


def rollback_create_vault(op: CreateVault, registry_path: Path, max_entries: int) -> RollbackOutcome:
    """
    Undo a partially created vault.

    The vault is first removed from the registry, in case the crash came
    after it was registered. Then a directory holding at most max_entries
    immediate entries (hidden ones included) is considered freshly
    initialized and removed. Anything larger was either created
    successfully or modified by the user and is left alone. Directory
    cleanup is best effort: failures are logged and do not block recovery.

    Raises:
        WalIoError: the registry rewrite failed
    """
    unregister_vault(registry_path, op.vault_id)
    _remove_fresh_vault_directory(Path(op.vault_path), max_entries)
    return RollbackOutcome(
        f"Cleaned up incomplete vault creation: {op.vault_id}",
        op.kind,
    )


ROLLBACK_STRATEGIES: dict[type, Callable[..., RollbackOutcome]] = {
    DeleteVault: rollback_delete_vault,
    CreateVault: rollback_create_vault,
    CleanupBrokenVaults: rollback_cleanup_broken_vaults,
}


def rollback_operation(entry: WalEntry, registry_path: Path, max_entries: int) -> RollbackOutcome:
    """Dispatch entry's operation to its rollback strategy.

    Raises:
        WalIoError: the restore itself failed
    """
    strategy = ROLLBACK_STRATEGIES.get(type(entry.operation))
    if strategy is None:
        raise TypeError(f"No rollback strategy for {type(entry.operation).__name__}")
    logger.info(f"Rolling back transaction {entry.id} ({entry.operation.kind})")
    return strategy(entry.operation, registry_path, max_entries)
