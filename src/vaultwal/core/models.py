# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-13
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/core/models.py

"""
Write-ahead log data model.

A WalEntry is the only thing ever persisted in operation.wal. Its operation
is a closed, internally tagged union: each variant carries exactly the state
needed to undo a partially applied action.
"""

from datetime import datetime, UTC
from enum import Enum
from typing import Annotated, Literal, Optional, Union
import uuid

import orjson
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from vaultwal.system.exceptions import WalSerializationError


class WalStatus(str, Enum):
    """
    WAL entry lifecycle.

    Happy path: PENDING -> IN_PROGRESS -> COMPLETED
    Recovery path: PENDING / IN_PROGRESS -> ROLLED_BACK
    """

    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ROLLED_BACK = "rolled_back"

    @property
    def is_interrupted(self) -> bool:
        """True if an entry left in this state still needs a rollback."""
        return self in (WalStatus.PENDING, WalStatus.IN_PROGRESS)

    @classmethod
    def is_legal_transition(cls, from_status: "WalStatus", to_status: "WalStatus") -> bool:
        legal = {
            cls.PENDING: {cls.IN_PROGRESS, cls.COMPLETED, cls.ROLLED_BACK},
            cls.IN_PROGRESS: {cls.COMPLETED, cls.ROLLED_BACK},
            cls.COMPLETED: set(),
            cls.ROLLED_BACK: set(),
        }
        return to_status in legal[from_status]


# ---- Operations ----

class DeleteVault(BaseModel):
    """Vault removal from the registry, optionally deleting its files."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["delete_vault"] = "delete_vault"
    vault_id: str
    vault_path: str
    delete_files: bool = False
    registry_backup: str = Field(..., description="Registry file content captured before the operation")

    @property
    def kind(self) -> str:
        return "delete_vault"


class CreateVault(BaseModel):
    """Vault directory creation and registration."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["create_vault"] = "create_vault"
    vault_id: str
    vault_path: str

    @property
    def kind(self) -> str:
        return "create_vault"


class CleanupBrokenVaults(BaseModel):
    """Bulk removal of registry entries whose directories are gone."""
    model_config = ConfigDict(frozen=True, extra="forbid")

    type: Literal["cleanup_broken_vaults"] = "cleanup_broken_vaults"
    registry_backup: str = Field(..., description="Registry file content captured before the operation")
    vault_ids: tuple[str, ...] = ()

    @property
    def kind(self) -> str:
        return "cleanup_broken"


WalOperation = Annotated[
    Union[DeleteVault, CreateVault, CleanupBrokenVaults],
    Field(discriminator="type"),
]


# ---- Entry ----

def generate_transaction_id() -> str:
    """Generate unique transaction ID"""
    return str(uuid.uuid4())


def utc_timestamp() -> str:
    return datetime.now(UTC).isoformat()


class WalEntry(BaseModel):
    """The single persisted WAL record.

    Only status and error change after creation.
    """
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=generate_transaction_id)
    operation: WalOperation
    started_at: str = Field(default_factory=utc_timestamp)
    status: WalStatus = WalStatus.PENDING
    error: Optional[str] = None

    def to_json(self) -> bytes:
        """Pretty-printed JSON encoding written to operation.wal."""
        try:
            return orjson.dumps(self.model_dump(mode="json"), option=orjson.OPT_INDENT_2)
        except orjson.JSONEncodeError as e:
            raise WalSerializationError(
                f"Failed to serialize WAL entry: {e}", transaction_id=self.id
            ) from e

    @classmethod
    def from_json(cls, data: str | bytes) -> "WalEntry":
        """Decode a WAL file.

        Raises:
            WalSerializationError: content is not a valid WAL entry
        """
        try:
            raw = orjson.loads(data)
        except orjson.JSONDecodeError as e:
            raise WalSerializationError(f"Failed to parse WAL: {e}") from e
        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            transaction_id = raw.get("id") if isinstance(raw, dict) else None
            raise WalSerializationError(
                f"Failed to parse WAL: {e}", transaction_id=transaction_id
            ) from e


class RecoveryResult(BaseModel):
    """Outcome of a startup recovery pass, shown to the user."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    recovered: bool = False
    message: Optional[str] = None
    operation_type: Optional[str] = Field(default=None, alias="operationType")
    transaction_id: Optional[str] = Field(default=None, alias="transactionId")

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True)
