# Author: PB & Claude
# Maintainer: PB
# Original date: 2025.05.13
# License: (c) HRDAG, 2025, GPL-2 or newer
#
# ------
# tests/test_config.py

from pathlib import Path

import pytest
import yaml

from vaultwal.config.manager import (
    UserConfig, load_merged_user_config, resolve_app_data_dir, resolve_vaults_dir
)
from vaultwal.system.exceptions import ConfigError


def write_config(directory: Path, data: dict) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / "vaultwal.yml"
    with path.open("w") as f:
        yaml.safe_dump(data, f)
    return path


class TestLoadMergedUserConfig:

    def test_defaults_without_any_file(self):
        config = load_merged_user_config()
        assert config == UserConfig()
        assert config.create_rollback_max_entries == 1
        assert config.placeholder_name == "Welcome.md"

    def test_user_config_from_home(self, isolated_environment, tmp_path):
        write_config(isolated_environment / ".config" / "vaultwal", {
            "data_dir": str(tmp_path / "data"),
            "create_rollback_max_entries": 2,
        })
        config = load_merged_user_config()
        assert config.data_dir == tmp_path / "data"
        assert config.create_rollback_max_entries == 2

    def test_explicit_override_wins(self, isolated_environment, tmp_path, monkeypatch):
        write_config(isolated_environment / ".config" / "vaultwal", {
            "placeholder_name": "README.md",
            "local_log": str(tmp_path / "logs"),
        })
        override = tmp_path / "override"
        write_config(override, {"placeholder_name": "Start.md"})
        monkeypatch.setenv("VAULTWAL_CONFIG_HOME", str(override))

        config = load_merged_user_config()

        assert config.placeholder_name == "Start.md"
        assert config.local_log == tmp_path / "logs"

    def test_xdg_config_home(self, tmp_path, monkeypatch):
        write_config(tmp_path / "xdg" / "vaultwal", {"vaults_dir": str(tmp_path / "V")})
        monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
        assert load_merged_user_config().vaults_dir == tmp_path / "V"

    def test_invalid_value_is_config_error(self, isolated_environment):
        write_config(isolated_environment / ".config" / "vaultwal", {"create_rollback_max_entries": -1})
        with pytest.raises(ConfigError):
            load_merged_user_config()

    def test_malformed_yaml_is_config_error(self, isolated_environment):
        config_dir = isolated_environment / ".config" / "vaultwal"
        config_dir.mkdir(parents=True)
        (config_dir / "vaultwal.yml").write_text("data_dir: [unclosed")
        with pytest.raises(ConfigError, match="Failed to load config"):
            load_merged_user_config()

    def test_non_mapping_is_config_error(self, isolated_environment):
        config_dir = isolated_environment / ".config" / "vaultwal"
        config_dir.mkdir(parents=True)
        (config_dir / "vaultwal.yml").write_text("- just\n- a list\n")
        with pytest.raises(ConfigError, match="must be a mapping"):
            load_merged_user_config()


class TestResolveAppDataDir:

    def test_env_var_wins(self, tmp_path, monkeypatch):
        monkeypatch.setenv("VAULTWAL_DATA_DIR", str(tmp_path / "env"))
        config = UserConfig(data_dir=tmp_path / "cfg")
        assert resolve_app_data_dir(config) == tmp_path / "env"

    def test_config_value(self, tmp_path):
        assert resolve_app_data_dir(UserConfig(data_dir=tmp_path / "cfg")) == tmp_path / "cfg"

    def test_xdg_data_home(self, tmp_path, monkeypatch):
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "share"))
        assert resolve_app_data_dir() == tmp_path / "share" / "vaultwal"

    def test_home_fallback(self, isolated_environment):
        assert resolve_app_data_dir(UserConfig()) == isolated_environment / ".local" / "share" / "vaultwal"


def test_resolve_vaults_dir(isolated_environment, tmp_path):
    assert resolve_vaults_dir() == isolated_environment / "Vaults"
    assert resolve_vaults_dir(UserConfig(vaults_dir=tmp_path / "x")) == tmp_path / "x"
