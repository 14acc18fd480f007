# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.06.01
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/cli/utils.py

"""
CLI utility functions shared by vaultwal commands.

- Resolving configuration and the application data directory
- Running startup recovery before any registry access
- Error handling with typer exits
- JSON output
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Any

import orjson
import typer
from rich.console import Console
from rich.markup import escape

from vaultwal.config.manager import UserConfig, load_merged_user_config, resolve_app_data_dir
from vaultwal.core.recovery import RecoveredDataDir, run_startup_recovery
from vaultwal.system.display import display_recovery_failure, display_recovery_result
from vaultwal.system.exceptions import ConfigError, RecoveryError


@dataclass
class CliState:
    """Global options collected by the app callback."""
    data_dir: Path | None = None
    debug: bool = False


def load_config_with_console(console: Console) -> UserConfig:
    """Load vaultwal configuration, exiting with a message if it is invalid."""
    try:
        return load_merged_user_config()
    except ConfigError as e:
        console.print(f"[red]✗[/red] Configuration error: {escape(str(e))}")
        raise typer.Exit(1)


def resolve_data_dir(state: CliState, config: UserConfig) -> Path:
    return state.data_dir if state.data_dir is not None else resolve_app_data_dir(config)


def recover_with_console(console: Console, state: CliState, quiet: bool = False,
                         to_json: bool = False) -> RecoveredDataDir:
    """
    Run startup recovery and report it.

    Raises:
        typer.Exit: recovery failed; nothing else may touch the registry
    """
    config = load_config_with_console(console)
    data_dir = resolve_data_dir(state, config)
    try:
        recovered = run_startup_recovery(data_dir, config)
    except RecoveryError as e:
        if to_json:
            print_json({"status": "error", "error": str(e), "errorType": type(e).__name__,
                        "errorKind": e.kind.value})
        display_recovery_failure(console, e)
        raise typer.Exit(1)
    display_recovery_result(console, recovered.result, quiet=quiet)
    return recovered


def handle_operation_error(console: Console, operation: str, error: Exception) -> None:
    """Handle operation errors with consistent formatting."""
    console.print(f"[red]✗[/red] Error {operation}: {escape(str(error))}")
    hint = getattr(error, "recovery_hint", None)
    if hint:
        console.print(f"[dim]{escape(hint)}[/dim]")
    raise typer.Exit(1)


def print_json(data: Any) -> None:
    """Write data to stdout as indented JSON."""
    typer.echo(orjson.dumps(data, option=orjson.OPT_INDENT_2).decode("utf-8"))
