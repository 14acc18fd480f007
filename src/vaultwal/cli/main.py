# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.05.10
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/cli/main.py

"""
CLI dispatcher for vaultwal.

Every command that touches the registry runs startup recovery first (see
recover_with_console); `status` only reads the WAL file and runs without it.
"""

# Standard library imports
from importlib.metadata import version, PackageNotFoundError
from pathlib import Path
from typing import Any, Callable, Optional

# Third-party imports
import typer
from rich.console import Console

# Local vaultwal imports
from vaultwal.cli.commands import actions as action_commands
from vaultwal.cli.commands import info as info_commands
from vaultwal.cli.utils import (
    CliState, handle_operation_error, load_config_with_console, print_json,
    recover_with_console, resolve_data_dir,
)
from vaultwal.core.recovery import RecoveredDataDir
from vaultwal.core.wal import WriteAheadLog
from vaultwal.system.exceptions import VaultWalError
from vaultwal.system.logging_setup import setup_logging

# Initialize Typer app
app = typer.Typer(
    help="""vaultwal - crash-safe vault registry operations

[bold blue]Inspection:[/bold blue] status, list, health
[bold green]Operations:[/bold green] create, delete, cleanup, open
[bold red]Recovery:[/bold red] recover
""",
    rich_markup_mode="rich"
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        try:
            pkg_version = version("vaultwal")
        except PackageNotFoundError:
            pkg_version = "unknown"
        Console().print(f"vaultwal version {pkg_version}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Optional[bool] = typer.Option(
        None, "--version", callback=version_callback, is_eager=True,
        help="Show version and exit"
    ),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    data_dir: Optional[Path] = typer.Option(
        None, "--data-dir", envvar="VAULTWAL_DATA_DIR",
        help="Application data directory holding vaults.json and operation.wal"
    ),
) -> None:
    """vaultwal - write-ahead logged vault registry management."""
    setup_logging(debug=debug)
    ctx.obj = CliState(data_dir=data_dir, debug=debug)


def _run_with_recovery(
    ctx: typer.Context,
    operation: str,
    handler: Callable[[Console, RecoveredDataDir], dict[str, Any]],
    to_json: bool = False,
    quiet: bool = False,
) -> dict[str, Any]:
    """Recover, run handler, and report errors consistently."""
    console = Console(quiet=to_json or quiet)
    recovered = recover_with_console(console, ctx.obj, quiet=quiet, to_json=to_json)
    try:
        result = handler(console, recovered)
    except VaultWalError as e:
        if to_json:
            print_json({"status": "error", "error": str(e), "errorType": type(e).__name__})
            raise typer.Exit(1)
        handle_operation_error(console, operation, e)
    if to_json:
        print_json({"status": "success", "recovery": recovered.result.to_dict(), **result})
    return result


# =============================================================================
# INSPECTION COMMANDS
# =============================================================================

@app.command()
def status(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show all logged details"),
    to_json: bool = typer.Option(False, "--json", help="Output results as JSON")
) -> Any:
    """[bold blue]Inspection[/bold blue]: Show the transaction currently logged, without recovering it."""
    console = Console(quiet=to_json)
    config = load_config_with_console(console)
    wal = WriteAheadLog(resolve_data_dir(ctx.obj, config))
    try:
        result = info_commands.status(console, wal, verbose=verbose)
    except VaultWalError as e:
        if to_json:
            print_json({"status": "error", "error": str(e), "errorType": type(e).__name__})
            raise typer.Exit(1)
        handle_operation_error(console, "reading WAL", e)
    if to_json:
        print_json(result)
    return result


@app.command(name="list")
def list_command(
    ctx: typer.Context,
    to_json: bool = typer.Option(False, "--json", help="Output results as JSON")
) -> Any:
    """[bold blue]Inspection[/bold blue]: List registered vaults."""
    return _run_with_recovery(ctx, "listing vaults", info_commands.list_vaults, to_json=to_json)


@app.command()
def health(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="List healthy vaults too"),
    to_json: bool = typer.Option(False, "--json", help="Output results as JSON")
) -> Any:
    """[bold blue]Inspection[/bold blue]: Check which registered vaults still exist on disk."""
    return _run_with_recovery(
        ctx, "checking vault health",
        lambda console, recovered: info_commands.health(console, recovered, verbose=verbose),
        to_json=to_json,
    )


# =============================================================================
# OPERATION COMMANDS
# =============================================================================

@app.command()
def create(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Vault name"),
    parent: Optional[Path] = typer.Option(None, "--parent", help="Directory to create the vault in"),
    to_json: bool = typer.Option(False, "--json", help="Output results as JSON")
) -> Any:
    """[bold green]Operations[/bold green]: Create and register a new vault."""
    return _run_with_recovery(
        ctx, "creating vault",
        lambda console, recovered: action_commands.create(console, recovered, name, parent),
        to_json=to_json,
    )


@app.command()
def delete(
    ctx: typer.Context,
    vault_id: str = typer.Argument(..., help="ID of the vault to delete"),
    delete_files: bool = typer.Option(False, "--delete-files", help="Also delete the vault directory"),
    to_json: bool = typer.Option(False, "--json", help="Output results as JSON")
) -> Any:
    """[bold green]Operations[/bold green]: Remove a vault from the registry."""
    return _run_with_recovery(
        ctx, "deleting vault",
        lambda console, recovered: action_commands.delete(console, recovered, vault_id, delete_files),
        to_json=to_json,
    )


@app.command()
def cleanup(
    ctx: typer.Context,
    vault_id: Optional[str] = typer.Argument(None, help="Only remove this broken vault"),
    to_json: bool = typer.Option(False, "--json", help="Output results as JSON")
) -> Any:
    """[bold green]Operations[/bold green]: Remove vaults whose directories are missing."""
    return _run_with_recovery(
        ctx, "cleaning up broken vaults",
        lambda console, recovered: action_commands.cleanup(console, recovered, vault_id),
        to_json=to_json,
    )


@app.command(name="open")
def open_command(
    ctx: typer.Context,
    vault_id: str = typer.Argument(..., help="ID of the vault to open"),
    to_json: bool = typer.Option(False, "--json", help="Output results as JSON")
) -> Any:
    """[bold green]Operations[/bold green]: Mark a vault as the last opened one."""
    return _run_with_recovery(
        ctx, "opening vault",
        lambda console, recovered: action_commands.open_vault(console, recovered, vault_id),
        to_json=to_json,
    )


# =============================================================================
# RECOVERY COMMANDS
# =============================================================================

@app.command()
def recover(
    ctx: typer.Context,
    to_json: bool = typer.Option(False, "--json", help="Output results as JSON")
) -> Any:
    """[bold red]Recovery[/bold red]: Roll back any operation interrupted by a crash."""
    return _run_with_recovery(ctx, "recovering", action_commands.recover, to_json=to_json)


def cli_main() -> None:  # pragma: no cover - entry point
    app()


if __name__ == "__main__":  # pragma: no cover
    cli_main()
