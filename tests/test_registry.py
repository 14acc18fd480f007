# Author: PB & Claude
# Maintainer: PB
# Original date: 2025-06-17
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# tests/test_registry.py

import pytest

from vaultwal.core.recovery import run_startup_recovery
from vaultwal.system.exceptions import RegistryError
from vaultwal.vaults.registry import RegistryData, VaultRecord, VaultRegistry


@pytest.fixture
def registry(data_dir):
    return VaultRegistry(run_startup_recovery(data_dir))


class TestRegistryAccess:

    def test_requires_recovery_token(self, data_dir):
        with pytest.raises(RegistryError, match="after startup recovery"):
            VaultRegistry(data_dir)

    def test_missing_file_is_empty_registry(self, registry):
        data = registry.load()
        assert data.vaults == []
        assert data.last_vault_id is None

    def test_save_and_load(self, registry, tmp_path):
        record = VaultRecord(id="v-1", name="Notes", path=str(tmp_path / "Notes"))
        registry.save(RegistryData(vaults=[record], last_vault_id="v-1"))

        data = registry.load()
        assert data.vaults == [record]
        assert data.last_vault_id == "v-1"
        assert registry.get("v-1") == record

    def test_unknown_vault(self, registry):
        with pytest.raises(RegistryError, match="Unknown vault: nope"):
            registry.get("nope")

    def test_corrupt_registry(self, registry):
        registry.path.parent.mkdir(parents=True, exist_ok=True)
        registry.path.write_text("[1, 2")
        with pytest.raises(RegistryError, match="Failed to parse registry"):
            registry.load()


class TestSnapshot:

    def test_snapshot_is_exact_file_content(self, registry, registry_r0):
        registry.path.parent.mkdir(parents=True, exist_ok=True)
        registry.path.write_text(registry_r0 + "\n\n")
        assert registry.snapshot() == registry_r0 + "\n\n"

    def test_snapshot_of_missing_registry_is_loadable_empty_registry(self, registry):
        snapshot = registry.snapshot()
        assert RegistryData.model_validate_json(snapshot) == RegistryData()


def test_exists_on_disk(tmp_path):
    (tmp_path / "here").mkdir()
    assert VaultRecord(id="a", name="a", path=str(tmp_path / "here")).exists_on_disk()
    assert not VaultRecord(id="b", name="b", path=str(tmp_path / "gone")).exists_on_disk()
