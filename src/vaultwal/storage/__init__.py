# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-13
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/storage/__init__.py

"""
Storage layer for vaultwal - every persisted state change goes through here.

This module provides:
- Synced whole-file writes (temp file + fsync + atomic replace)
- Atomic create-if-absent for the single WAL slot
- Reads and synced deletes
- Sweeping of staging files left behind by a crash
"""

from .durable import (
    write_synced, create_exclusive, read_bytes, read_text, remove_file, fsync_directory, sweep_pending,
)

__all__ = [
    "write_synced",
    "create_exclusive",
    "read_bytes",
    "read_text",
    "remove_file",
    "fsync_directory",
    "sweep_pending",
]
