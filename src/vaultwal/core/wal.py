# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-13
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/core/wal.py

"""
Transaction manager for the single-slot write-ahead log.

The presence of operation.wal is the "transaction in progress" flag. A
transaction is begun before the registry or the filesystem is touched, and
its file is removed by commit() once the work has fully succeeded. If the
process dies in between, the next startup recovery pass rolls it back
(see vaultwal.core.recovery).

Usage:
    wal = WriteAheadLog(data_dir)
    with wal.transaction(CreateVault(vault_id=..., vault_path=...)):
        ...  # perform the real work
"""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger

from vaultwal.config.manager import WAL_FILENAME, REGISTRY_FILENAME
from vaultwal.core.models import WalEntry, WalOperation, WalStatus
from vaultwal.storage import durable
from vaultwal.system.exceptions import WalConflictError, WalError


class WriteAheadLog:
    """Begin / advance / fail / commit over the single WAL file in data_dir."""

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.wal_path = self.data_dir / WAL_FILENAME
        self.registry_path = self.data_dir / REGISTRY_FILENAME

    def __repr__(self) -> str:
        return f"WriteAheadLog({str(self.data_dir)!r})"

    # ---- Lifecycle ----

    def begin_transaction(self, operation: WalOperation) -> str:
        """
        Persist a fresh PENDING entry for operation and return its id.

        The caller must not change the registry or the filesystem before this
        returns.

        Raises:
            WalConflictError: a previous transaction is still logged
            WalIoError: the entry could not be made durable
        """
        entry = WalEntry(operation=operation)
        try:
            durable.create_exclusive(self.wal_path, entry.to_json())
        except FileExistsError:
            existing_id = self._peek_existing_id()
            logger.warning(f"Refusing to begin {operation.kind}: transaction {existing_id} still pending")
            raise WalConflictError(
                "Cannot start new transaction: previous transaction still in progress. "
                "Please restart the application to recover.",
                transaction_id=existing_id,
                path=self.wal_path,
            ) from None

        logger.info(f"Began transaction {entry.id} ({operation.kind})")
        return entry.id

    def update_status(self, status: WalStatus) -> None:
        """Rewrite the status of the current entry. No-op without a transaction."""
        entry = self.get_current_entry()
        if entry is None:
            logger.debug(f"No active transaction, ignoring status update to {status.value}")
            return
        status = WalStatus(status)
        if not WalStatus.is_legal_transition(entry.status, status):
            logger.warning(
                f"Unexpected status transition for {entry.id}: {entry.status.value} -> {status.value}"
            )
        entry.status = status
        self._persist(entry)
        logger.debug(f"Transaction {entry.id} is now {status.value}")

    def mark_failed(self, message: str) -> None:
        """Force the current entry to ROLLED_BACK with an error message.

        No-op without a transaction.
        """
        entry = self.get_current_entry()
        if entry is None:
            logger.debug("No active transaction to mark as failed")
            return
        entry.status = WalStatus.ROLLED_BACK
        entry.error = message
        self._persist(entry)
        logger.warning(f"Transaction {entry.id} marked as failed: {message}")

    def commit(self) -> None:
        """Delete the WAL file, freeing the transaction slot. No-op if absent."""
        if durable.remove_file(self.wal_path):
            logger.info(f"Committed transaction, removed {self.wal_path}")

    @contextmanager
    def transaction(self, operation: WalOperation) -> Iterator[str]:
        """
        Run a block of work under a WAL entry.

        Normal exit marks the entry COMPLETED and commits it. An exception
        leaves the entry in place, so the next startup recovery rolls the
        operation back, and is re-raised unchanged.
        """
        transaction_id = self.begin_transaction(operation)
        self.update_status(WalStatus.IN_PROGRESS)
        try:
            yield transaction_id
        except BaseException as e:
            logger.error(
                f"Transaction {transaction_id} ({operation.kind}) interrupted: {e!r}; "
                "it will be rolled back at next startup"
            )
            raise
        self.update_status(WalStatus.COMPLETED)
        self.commit()

    # ---- Queries ----

    def has_active_transaction(self) -> bool:
        return self.wal_path.exists()

    def get_current_entry(self) -> WalEntry | None:
        """Return the logged entry, or None when no transaction is in flight.

        Raises:
            WalSerializationError: the WAL content is malformed (including invalid UTF-8)
            WalIoError: the WAL file could not be read
        """
        try:
            content = durable.read_bytes(self.wal_path)
        except FileNotFoundError:
            return None
        return WalEntry.from_json(content)

    # ---- Internals ----

    def _persist(self, entry: WalEntry) -> None:
        durable.write_synced(self.wal_path, entry.to_json())

    def _peek_existing_id(self) -> str | None:
        try:
            entry = self.get_current_entry()
        except WalError as e:
            logger.debug(f"Could not read existing WAL entry: {e}")
            return None
        return entry.id if entry else None
