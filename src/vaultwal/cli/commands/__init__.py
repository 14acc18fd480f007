# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.06.07
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# src/vaultwal/cli/commands/__init__.py

"""Command handlers for the vaultwal CLI."""
