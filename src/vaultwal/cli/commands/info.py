# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.06.07
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/cli/commands/info.py

"""
Info command handlers - read-only commands.

Handles: status, list, health
"""

from typing import Any

from rich.console import Console

from vaultwal.core.recovery import RecoveredDataDir
from vaultwal.core.wal import WriteAheadLog
from vaultwal.system.display import display_health_report, display_vaults, display_wal_entry
from vaultwal.vaults.operations import VaultService
from vaultwal.vaults.registry import VaultRegistry


def status(console: Console, wal: WriteAheadLog, verbose: bool = False) -> dict[str, Any]:
    """Show the logged transaction without recovering it.

    Reads only the WAL file, so it is safe to run before recovery.
    """
    entry = wal.get_current_entry()
    display_wal_entry(console, entry, verbose=verbose)
    return {
        "active": entry is not None,
        "entry": entry.model_dump(mode="json") if entry else None,
        "walPath": str(wal.wal_path),
    }


def list_vaults(console: Console, recovered: RecoveredDataDir) -> dict[str, Any]:
    vaults = VaultRegistry(recovered).list_vaults()
    display_vaults(console, vaults)
    return {"vaults": [v.model_dump() for v in vaults]}


def health(console: Console, recovered: RecoveredDataDir, verbose: bool = False) -> dict[str, Any]:
    report = VaultService(recovered).check_health()
    display_health_report(console, report, verbose=verbose)
    return report.to_dict()
