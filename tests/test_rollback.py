# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-15
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# tests/test_rollback.py

"""
Tests for the operation-specific rollback strategies.
"""

import shutil
from pathlib import Path
from unittest.mock import patch

import orjson
import pytest

from vaultwal.core.models import CleanupBrokenVaults, CreateVault, DeleteVault, WalEntry
from vaultwal.core.rollback import (
    ROLLBACK_STRATEGIES, RollbackOutcome, rollback_create_vault, rollback_operation, unregister_vault
)
from vaultwal.system.exceptions import WalIoError

from tests.fixtures.wal_factory import make_vault_dir


class TestCreateVaultRollback:
    """Directory-count threshold, default 1: 0 or 1 entries removed, 2+ kept."""

    def test_empty_directory_is_removed(self, tmp_path):
        vault = make_vault_dir(tmp_path, "Empty", entries=0)
        outcome = rollback_create_vault(CreateVault(vault_id="v", vault_path=str(vault)),
                                        tmp_path / "vaults.json", max_entries=1)
        assert not vault.exists()
        assert outcome == RollbackOutcome("Cleaned up incomplete vault creation: v", "create_vault")

    def test_single_placeholder_directory_is_removed(self, tmp_path):
        vault = make_vault_dir(tmp_path, "Placeholder", entries=1)
        assert [p.name for p in vault.iterdir()] == ["Welcome.md"]

        rollback_create_vault(CreateVault(vault_id="v", vault_path=str(vault)),
                              tmp_path / "vaults.json", max_entries=1)

        assert not vault.exists()

    def test_single_hidden_entry_counts(self, tmp_path):
        vault = tmp_path / "Hidden"
        vault.mkdir()
        (vault / ".DS_Store").write_bytes(b"\x00")

        rollback_create_vault(CreateVault(vault_id="v", vault_path=str(vault)),
                              tmp_path / "vaults.json", max_entries=1)

        assert not vault.exists()

    def test_two_entries_are_kept(self, tmp_path):
        vault = make_vault_dir(tmp_path, "Populated", entries=2)

        outcome = rollback_create_vault(CreateVault(vault_id="v", vault_path=str(vault)),
                                        tmp_path / "vaults.json", max_entries=1)

        assert vault.exists()
        assert sorted(p.name for p in vault.iterdir()) == ["Welcome.md", "notes"]
        assert (vault / "notes" / "a.md").read_text() == "a"
        assert outcome.operation_type == "create_vault"

    def test_many_entries_are_kept(self, tmp_path):
        vault = make_vault_dir(tmp_path, "Busy", entries=5)
        rollback_create_vault(CreateVault(vault_id="v", vault_path=str(vault)),
                              tmp_path / "vaults.json", max_entries=1)
        assert len(list(vault.iterdir())) == 5

    def test_zero_threshold_keeps_placeholder_directory(self, tmp_path):
        vault = make_vault_dir(tmp_path, "Strict", entries=1)
        rollback_create_vault(CreateVault(vault_id="v", vault_path=str(vault)),
                              tmp_path / "vaults.json", max_entries=0)
        assert vault.exists()

    def test_missing_directory_is_fine(self, tmp_path):
        outcome = rollback_create_vault(CreateVault(vault_id="v", vault_path=str(tmp_path / "nope")),
                                        tmp_path / "vaults.json", max_entries=1)
        assert outcome.operation_type == "create_vault"

    def test_regular_file_is_left_alone(self, tmp_path):
        target = tmp_path / "not-a-dir"
        target.write_text("user data")
        rollback_create_vault(CreateVault(vault_id="v", vault_path=str(target)),
                              tmp_path / "vaults.json", max_entries=1)
        assert target.read_text() == "user data"

    def test_removal_failure_is_logged_not_raised(self, tmp_path):
        vault = make_vault_dir(tmp_path, "Stuck", entries=1)
        with patch("vaultwal.core.rollback.shutil.rmtree", side_effect=PermissionError("busy")):
            outcome = rollback_create_vault(CreateVault(vault_id="v", vault_path=str(vault)),
                                            tmp_path / "vaults.json", max_entries=1)
        assert vault.exists()
        assert outcome.operation_type == "create_vault"

    def test_inspect_failure_is_logged_not_raised(self, tmp_path):
        vault = make_vault_dir(tmp_path, "Unreadable", entries=0)
        with patch.object(Path, "iterdir", side_effect=PermissionError("denied")):
            outcome = rollback_create_vault(CreateVault(vault_id="v", vault_path=str(vault)),
                                            tmp_path / "vaults.json", max_entries=1)
        assert vault.exists()
        assert outcome.message == "Cleaned up incomplete vault creation: v"

    def test_symlinked_vault_path_is_left_alone(self, tmp_path):
        target = make_vault_dir(tmp_path, "RealDir", entries=0)
        link = tmp_path / "Linked"
        link.symlink_to(target, target_is_directory=True)

        rollback_create_vault(CreateVault(vault_id="v", vault_path=str(link)),
                              tmp_path / "vaults.json", max_entries=1)

        assert link.is_symlink()
        assert target.is_dir()


class TestCreateVaultUnregister:
    """A crash after the registry write must not leave a record for a removed directory."""

    def test_registered_vault_is_dropped(self, tmp_path, registry_r0):
        registry = tmp_path / "vaults.json"
        registry.write_text(registry_r0)
        vault = make_vault_dir(tmp_path, "Notes", entries=1)

        rollback_create_vault(CreateVault(vault_id="v-1", vault_path=str(vault)), registry, max_entries=1)

        data = orjson.loads(registry.read_bytes())
        assert data == {"vaults": [], "last_vault_id": None}
        assert not vault.exists()

    def test_other_vaults_are_kept(self, tmp_path, registry_r0):
        registry = tmp_path / "vaults.json"
        registry.write_text(registry_r0)

        assert unregister_vault(registry, "v-other") is False
        assert registry.read_text() == registry_r0

    def test_missing_registry(self, tmp_path):
        assert unregister_vault(tmp_path / "vaults.json", "v-1") is False
        assert not (tmp_path / "vaults.json").exists()

    def test_unreadable_registry_is_left_alone(self, tmp_path):
        registry = tmp_path / "vaults.json"
        registry.write_bytes(b"{not json")
        assert unregister_vault(registry, "v-1") is False
        assert registry.read_bytes() == b"{not json"

    def test_rewrite_failure_propagates(self, tmp_path, registry_r0):
        registry = tmp_path / "vaults.json"
        registry.write_text(registry_r0)
        with patch("vaultwal.storage.durable.os.replace", side_effect=OSError("read-only filesystem")):
            with pytest.raises(WalIoError, match="Failed to replace file"):
                rollback_create_vault(CreateVault(vault_id="v-1", vault_path=str(tmp_path / "Notes")),
                                      registry, max_entries=1)
        assert registry.read_text() == registry_r0


class TestRegistryRestoringRollbacks:

    def test_delete_vault_restores_snapshot_and_keeps_deleted_files_deleted(self, tmp_path, registry_r0):
        registry = tmp_path / "vaults.json"
        registry.write_text('{"vaults": []}')
        vault = make_vault_dir(tmp_path, "Gone", entries=2)
        shutil.rmtree(vault)

        entry = WalEntry(operation=DeleteVault(vault_id="v-1", vault_path=str(vault), delete_files=True,
                                               registry_backup=registry_r0))
        outcome = rollback_operation(entry, registry, max_entries=1)

        assert registry.read_text() == registry_r0
        assert not vault.exists()
        assert outcome == RollbackOutcome("Rolled back incomplete vault deletion: v-1", "delete_vault")

    def test_cleanup_restores_snapshot(self, tmp_path, registry_r0):
        registry = tmp_path / "vaults.json"
        registry.write_text("{}")
        entry = WalEntry(operation=CleanupBrokenVaults(registry_backup=registry_r0, vault_ids=("x", "y")))

        outcome = rollback_operation(entry, registry, max_entries=1)

        assert registry.read_text() == registry_r0
        assert outcome == RollbackOutcome("Rolled back incomplete cleanup of 2 broken vaults", "cleanup_broken")

    def test_empty_snapshot_is_restored_verbatim(self, tmp_path):
        registry = tmp_path / "vaults.json"
        registry.write_text("something")
        entry = WalEntry(operation=CleanupBrokenVaults(registry_backup=""))

        rollback_operation(entry, registry, max_entries=1)

        assert registry.read_bytes() == b""


def test_every_operation_variant_has_a_strategy():
    assert set(ROLLBACK_STRATEGIES) == {DeleteVault, CreateVault, CleanupBrokenVaults}
