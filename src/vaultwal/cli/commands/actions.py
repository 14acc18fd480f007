# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.06.07
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/cli/commands/actions.py

"""
Action command handlers - state-changing vault operations.

Handles: recover, create, delete, cleanup, open

Startup recovery has already run by the time these are called; each
handler receives its RecoveredDataDir token.
"""

from pathlib import Path
from typing import Any

from rich.console import Console

from vaultwal.core.recovery import RecoveredDataDir
from vaultwal.vaults.operations import VaultService


def recover(console: Console, recovered: RecoveredDataDir) -> dict[str, Any]:
    """Report the outcome of the recovery pass that already ran."""
    if not recovered.result.recovered and not recovered.result.message:
        console.print("[green]✓[/green] Nothing to recover")
    return recovered.result.to_dict()


def create(console: Console, recovered: RecoveredDataDir, name: str,
           parent: Path | None = None) -> dict[str, Any]:
    record = VaultService(recovered).create_vault(name, parent)
    console.print(f"[green]✓[/green] Created vault [cyan]{record.name}[/cyan] at {record.path}")
    return {"vault": record.model_dump()}


def delete(console: Console, recovered: RecoveredDataDir, vault_id: str,
           delete_files: bool = False) -> dict[str, Any]:
    record = VaultService(recovered).delete_vault(vault_id, delete_files=delete_files)
    suffix = " and its files" if delete_files else ""
    console.print(f"[green]✓[/green] Deleted vault [cyan]{record.name}[/cyan]{suffix}")
    return {"vault": record.model_dump(), "deleteFiles": delete_files}


def cleanup(console: Console, recovered: RecoveredDataDir,
            vault_id: str | None = None) -> dict[str, Any]:
    service = VaultService(recovered)
    if vault_id is not None:
        removed = [service.remove_broken_vault(vault_id)]
    else:
        removed = service.cleanup_broken_vaults()
    if removed:
        console.print(f"[green]✓[/green] Removed {len(removed)} broken vaults from the registry")
        for vault in removed:
            console.print(f"  - {vault.name} [dim]({vault.path})[/dim]")
    else:
        console.print("[green]✓[/green] No broken vaults found")
    return {"removed": [v.model_dump() for v in removed]}


def open_vault(console: Console, recovered: RecoveredDataDir, vault_id: str) -> dict[str, Any]:
    record = VaultService(recovered).open_vault(vault_id)
    console.print(f"[green]✓[/green] Opened vault [cyan]{record.name}[/cyan]")
    return {"vault": record.model_dump()}
