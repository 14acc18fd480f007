# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.06.02
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# tests/conftest.py

"""
Shared test fixtures for the vaultwal test suite.
"""

from pathlib import Path

import pytest

from vaultwal.config.manager import UserConfig
from vaultwal.core.recovery import run_startup_recovery
from vaultwal.core.wal import WriteAheadLog
from vaultwal.vaults.operations import VaultService

from tests.fixtures.wal_factory import REGISTRY_R0


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path_factory, monkeypatch):
    """Keep config lookup and data-dir resolution away from the real home."""
    home = tmp_path_factory.mktemp("home")
    monkeypatch.setenv("HOME", str(home))
    for var in ("XDG_CONFIG_HOME", "XDG_DATA_HOME", "VAULTWAL_CONFIG_HOME", "VAULTWAL_DATA_DIR"):
        monkeypatch.delenv(var, raising=False)
    return home


@pytest.fixture
def data_dir(tmp_path) -> Path:
    """Application data directory (not created: the WAL creates it on demand)."""
    return tmp_path / "appdata"


@pytest.fixture
def wal(data_dir) -> WriteAheadLog:
    return WriteAheadLog(data_dir)


@pytest.fixture
def vaults_dir(tmp_path) -> Path:
    path = tmp_path / "Vaults"
    path.mkdir()
    return path


@pytest.fixture
def user_config(vaults_dir) -> UserConfig:
    return UserConfig(vaults_dir=vaults_dir)


@pytest.fixture
def service(data_dir, user_config) -> VaultService:
    return VaultService(run_startup_recovery(data_dir, user_config))


@pytest.fixture
def registry_r0() -> str:
    return REGISTRY_R0

