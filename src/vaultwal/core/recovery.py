# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-15
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/core/recovery.py

"""
Startup recovery for interrupted write-ahead log transactions.

recover_incomplete() must run once per process, before anything reads the
vault registry. run_startup_recovery() wraps it and hands back a
RecoveredDataDir token; registry access requires that token, so "recovery
first" cannot be skipped by accident.
"""

from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from vaultwal.config.manager import DEFAULT_CREATE_ROLLBACK_MAX_ENTRIES, UserConfig
from vaultwal.core.models import RecoveryResult, WalStatus
from vaultwal.core.rollback import rollback_operation
from vaultwal.core.wal import WriteAheadLog
from vaultwal.storage import durable
from vaultwal.system.exceptions import RecoveryError, WalError

RECOVERED_ERROR_MESSAGE = "Recovered from interrupted operation"


def _sweep_stale_pending(wal: WriteAheadLog) -> None:
    """Remove staging files a crash left next to the WAL and the registry."""
    for path in (wal.wal_path, wal.registry_path):
        try:
            durable.sweep_pending(path)
        except WalError as e:
            logger.warning(f"Could not remove stale pending files for {path.name}: {e}")


def recover_incomplete(wal: WriteAheadLog, config: UserConfig | None = None) -> RecoveryResult:
    """
    Roll back or clean up whatever transaction the last process left behind.

    - stale `.pending-*` staging files are removed first
    - no WAL file: nothing to do
    - PENDING / IN_PROGRESS: roll back, mark ROLLED_BACK, commit
    - COMPLETED / ROLLED_BACK: just remove the stale file

    Raises:
        RecoveryError: the WAL entry is unreadable or the rollback failed;
            the WAL file is left in place for a later attempt
    """
    max_entries = (
        config.create_rollback_max_entries if config is not None
        else DEFAULT_CREATE_ROLLBACK_MAX_ENTRIES
    )
    _sweep_stale_pending(wal)

    try:
        entry = wal.get_current_entry()
    except WalError as e:
        logger.error(f"Cannot read WAL entry at {wal.wal_path}: {e}")
        raise RecoveryError(f"Recovery failed: unreadable WAL entry: {e}", cause=e) from e

    if entry is None:
        logger.debug("No WAL file found, nothing to recover")
        return RecoveryResult(recovered=False)

    if not entry.status.is_interrupted:
        logger.info(f"Removing stale WAL entry {entry.id} ({entry.status.value})")
        try:
            wal.commit()
        except WalError as e:
            raise RecoveryError(f"Recovery failed: could not remove stale WAL: {e}", cause=e,
                                transaction_id=entry.id) from e
        return RecoveryResult(
            recovered=False,
            message="Cleaned up completed transaction",
            transaction_id=entry.id,
        )

    logger.warning(
        f"Found interrupted transaction {entry.id} ({entry.operation.kind}, "
        f"{entry.status.value}, started {entry.started_at})"
    )
    try:
        outcome = rollback_operation(entry, wal.registry_path, max_entries)
        wal.mark_failed(RECOVERED_ERROR_MESSAGE)
        wal.commit()
    except WalError as e:
        logger.error(f"Rollback of transaction {entry.id} failed: {e}")
        raise RecoveryError(
            f"Recovery of {entry.operation.kind} transaction {entry.id} failed: {e}",
            cause=e,
            transaction_id=entry.id,
        ) from e

    logger.info(outcome.message)
    return RecoveryResult(
        recovered=True,
        message=outcome.message,
        operation_type=outcome.operation_type,
        transaction_id=entry.id,
    )


@dataclass(frozen=True)
class RecoveredDataDir:
    """Proof that startup recovery ran for data_dir.

    Only run_startup_recovery() should construct it.
    """
    data_dir: Path
    result: RecoveryResult
    config: UserConfig

    @property
    def wal(self) -> WriteAheadLog:
        return WriteAheadLog(self.data_dir)


def run_startup_recovery(data_dir: Path, config: UserConfig | None = None) -> RecoveredDataDir:
    """Run the recovery pass for data_dir and return the registry access token."""
    config = config or UserConfig()
    data_dir = Path(data_dir)
    result = recover_incomplete(WriteAheadLog(data_dir), config)
    if result.recovered:
        logger.warning(f"Startup recovery: {result.message}")
    return RecoveredDataDir(data_dir=data_dir, result=result, config=config)
