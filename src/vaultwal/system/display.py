# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.05.17
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/system/display.py

# Standard library imports
from datetime import datetime, UTC

# Third-party imports
import humanize
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

# Local vaultwal imports
from vaultwal.core.models import WalEntry, RecoveryResult, DeleteVault, CleanupBrokenVaults
from vaultwal.system.exceptions import WalError
from vaultwal.vaults.registry import VaultRecord


def _age(timestamp: str | None) -> str:
    if not timestamp:
        return "never"
    try:
        moment = datetime.fromisoformat(timestamp)
    except ValueError:
        return timestamp
    return humanize.naturaltime(datetime.now(UTC) - moment)


def display_recovery_result(console: Console, result: RecoveryResult, quiet: bool = False) -> None:
    """Show what startup recovery did. Silent when there was nothing to do."""
    if result.recovered:
        console.print(Panel(
            f"{escape(result.message)}\n[dim]operation: {result.operation_type}, transaction: {result.transaction_id}[/dim]",
            title="[yellow]Recovered interrupted operation[/yellow]",
            border_style="yellow",
        ))
    elif result.message and not quiet:
        console.print(f"[dim]{escape(result.message)}[/dim]")


def display_recovery_failure(console: Console, error: WalError) -> None:
    """Prominent notice that the registry may be inconsistent."""
    lines = [f"[bold]{escape(str(error))}[/bold]"]
    if error.path:
        lines.append(f"WAL path: {escape(error.path)}")
    if error.recovery_hint:
        lines.append(escape(error.recovery_hint))
    console.print(Panel(
        "\n".join(lines),
        title=f"[red]Recovery failed ({error.kind.value})[/red]",
        border_style="red",
    ))


def display_wal_entry(console: Console, entry: WalEntry | None, verbose: bool = False) -> None:
    """Show the transaction currently logged, if any."""
    if entry is None:
        console.print("[green]✓[/green] No transaction in progress")
        return

    status_style = "yellow" if entry.status.is_interrupted else "dim"
    table = Table(title="Active transaction", show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("ID", entry.id)
    table.add_row("Operation", entry.operation.kind)
    table.add_row("Status", f"[{status_style}]{entry.status.value}[/{status_style}]")
    table.add_row("Started", f"{entry.started_at} ({_age(entry.started_at)})")
    if entry.error:
        table.add_row("Error", f"[red]{escape(entry.error)}[/red]")

    op = entry.operation
    if hasattr(op, "vault_id"):
        table.add_row("Vault", op.vault_id)
    if hasattr(op, "vault_path"):
        table.add_row("Path", op.vault_path)
    if isinstance(op, CleanupBrokenVaults):
        table.add_row("Vaults", ", ".join(op.vault_ids) if verbose else str(len(op.vault_ids)))
    if isinstance(op, DeleteVault):
        table.add_row("Delete files", "yes" if op.delete_files else "no")
    if isinstance(op, (DeleteVault, CleanupBrokenVaults)):
        table.add_row("Registry backup", humanize.naturalsize(len(op.registry_backup.encode("utf-8"))))

    console.print(table)


def display_vaults(console: Console, vaults: list[VaultRecord], title: str = "Vaults") -> None:
    table = Table(title=title)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name", style="green")
    table.add_column("Path")
    table.add_column("Last opened", style="yellow", no_wrap=True)

    for vault in vaults:
        path_style = vault.path if vault.exists_on_disk() else f"[red]{vault.path} (missing)[/red]"
        table.add_row(vault.id, vault.name, path_style, _age(vault.last_opened))

    console.print(table)
    console.print(f"Found {len(vaults)} vaults")


def display_health_report(console: Console, report, verbose: bool = False) -> None:
    """Display a HealthReport from vaultwal.vaults.operations."""
    for result in report.recovered_operations:
        display_recovery_result(console, result)

    console.print(f"[green]✓[/green] {len(report.healthy)} healthy vaults")
    if verbose and report.healthy:
        display_vaults(console, report.healthy, title="Healthy vaults")
    if report.broken:
        console.print(f"[red]✗[/red] {len(report.broken)} broken vaults")
        display_vaults(console, report.broken, title="Broken vaults")
        console.print("Run 'vaultwal cleanup' to remove them from the registry")
