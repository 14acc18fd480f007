# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.06.08
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/system/exceptions.py

"""
vaultwal-specific exception classes.

Write-ahead log failures fall into a closed set of kinds (ErrorKind) so that
callers can branch on the kind instead of parsing messages.
"""

from enum import Enum


class VaultWalError(Exception):
    """Base exception for all vaultwal errors."""
    pass


class ConfigError(VaultWalError):
    """Raised when there are configuration validation or loading errors."""
    pass


class RegistryError(VaultWalError):
    """Raised when the vault registry cannot be read, updated or accessed."""
    pass


# === WRITE-AHEAD LOG EXCEPTIONS ===

class ErrorKind(str, Enum):
    """Closed set of write-ahead log failure kinds."""

    IO_FAILURE = "io_failure"
    SERIALIZATION_FAILURE = "serialization_failure"
    CONFLICT_FAILURE = "conflict_failure"


class WalError(VaultWalError):
    """Base class for all write-ahead log errors."""

    kind: ErrorKind = ErrorKind.IO_FAILURE

    def __init__(self, message: str, transaction_id: str = None, path: str = None,
                 recovery_hint: str = None):
        self.transaction_id = transaction_id
        self.path = str(path) if path is not None else None
        self.recovery_hint = recovery_hint
        super().__init__(message)


class WalIoError(WalError):
    """Directory creation, open, read, write, flush, rename or delete failed."""

    kind = ErrorKind.IO_FAILURE


class WalSerializationError(WalError):
    """WAL content is malformed or cannot be encoded."""

    kind = ErrorKind.SERIALIZATION_FAILURE


class WalConflictError(WalError):
    """A transaction was started while another one is still logged."""

    kind = ErrorKind.CONFLICT_FAILURE

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault(
            "recovery_hint",
            "Restart the application so the interrupted operation can be recovered"
        )
        super().__init__(message, **kwargs)


class RecoveryError(WalError):
    """
    Startup recovery failed. The WAL file is left in place for a later retry.

    The kind mirrors the underlying failure (available as __cause__).
    """

    def __init__(self, message: str, cause: WalError = None, **kwargs):
        if cause is not None:
            self.kind = cause.kind
            kwargs.setdefault("transaction_id", cause.transaction_id)
            kwargs.setdefault("path", cause.path)
        kwargs.setdefault(
            "recovery_hint",
            "The vault registry may be inconsistent; inspect operation.wal before continuing"
        )
        super().__init__(message, **kwargs)
