"""Unit tests for Config and related Pydantic models (create_robo.config).

Tests cover:
- NetworkConfig / InstallConfig defaults and validation
- Config defaults and derived paths (properties)
- Config.project_spec
- Config.from_env
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from create_robo.config import Config, InstallConfig, NetworkConfig
from create_robo.models import AuthoringMode, Role


# ---------------------------------------------------------------------------
# Nested models
# ---------------------------------------------------------------------------


class TestNetworkConfig:
    @pytest.mark.unit
    def test_defaults(self):
        network = NetworkConfig()
        assert network.trusted_origin == "https://github.com"
        assert network.api_url == "https://api.github.com"
        assert network.codeload_url == "https://codeload.github.com"
        assert network.timeout == 30.0
        assert network.download_attempts == 3
        assert network.backoff_base == 1.0
        assert network.backoff_max == 10.0

    @pytest.mark.unit
    def test_rejects_zero_attempts(self):
        with pytest.raises(ValidationError):
            NetworkConfig(download_attempts=0)

    @pytest.mark.unit
    def test_rejects_non_positive_timeout(self):
        with pytest.raises(ValidationError):
            NetworkConfig(timeout=0)


class TestInstallConfig:
    @pytest.mark.unit
    def test_defaults(self):
        installer = InstallConfig()
        assert installer.install is True
        assert installer.package_manager is None
        assert installer.robo_version is None
        assert installer.timeout == 600


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class TestConfigPaths:
    @pytest.mark.unit
    def test_working_dir_is_named_subdirectory(self, tmp_path: Path):
        config = Config(project_name="my-bot", output_dir=tmp_path)
        assert config.working_dir == tmp_path / "my-bot"

    @pytest.mark.unit
    def test_same_directory_uses_output_dir(self, tmp_path: Path):
        config = Config(project_name="my-bot", output_dir=tmp_path, same_directory=True)
        assert config.working_dir == tmp_path

    @pytest.mark.unit
    def test_derived_files(self, tmp_path: Path):
        config = Config(project_name="my-bot", output_dir=tmp_path)
        root = tmp_path / "my-bot"
        assert config.package_json_path == root / "package.json"
        assert config.env_path == root / ".env"
        assert config.tsconfig_path == root / "tsconfig.json"
        assert config.config_dir == root / "config"
        assert config.plugins_config_dir == root / "config" / "plugins"


class TestProjectSpec:
    @pytest.mark.unit
    def test_standalone_bot_by_default(self):
        spec = Config(project_name="my-bot").project_spec
        assert spec.name == "my-bot"
        assert spec.role is Role.BOT
        assert spec.mode is AuthoringMode.STANDALONE
        assert spec.typescript is None

    @pytest.mark.unit
    def test_plugin_app_with_forced_typing(self):
        spec = Config(project_name="x", kit=Role.APP, plugin=True, typescript=False).project_spec
        assert spec.is_app
        assert spec.is_plugin
        assert spec.typescript is False

    @pytest.mark.unit
    def test_empty_name_is_rejected(self):
        with pytest.raises(ValidationError):
            Config().project_spec


class TestFromEnv:
    @pytest.mark.unit
    def test_reads_environment(self, tmp_path: Path):
        env = {
            "CREATE_ROBO_OUTPUT_DIR": str(tmp_path),
            "CREATE_ROBO_KIT": "app",
            "CREATE_ROBO_VERBOSE": "true",
            "CREATE_ROBO_TRUSTED_ORIGIN": "https://example.com",
            "CREATE_ROBO_HTTP_TIMEOUT": "5",
            "CREATE_ROBO_DOWNLOAD_ATTEMPTS": "4",
            "CREATE_ROBO_PACKAGE_MANAGER": "pnpm",
            "CREATE_ROBO_VERSION": "0.10.20",
            "CREATE_ROBO_NO_INSTALL": "1",
        }
        with patch.dict(os.environ, env, clear=False):
            config = Config.from_env(project_name="env-bot")

        assert config.project_name == "env-bot"
        assert config.output_dir == tmp_path
        assert config.kit is Role.APP
        assert config.verbose is True
        assert config.network.trusted_origin == "https://example.com"
        assert config.network.timeout == 5.0
        assert config.network.download_attempts == 4
        assert config.installer.package_manager == "pnpm"
        assert config.installer.robo_version == "0.10.20"
        assert config.installer.install is False

    @pytest.mark.unit
    def test_overrides_win(self):
        with patch.dict(os.environ, {"CREATE_ROBO_KIT": "app"}, clear=False):
            config = Config.from_env(kit=Role.BOT)
        assert config.kit is Role.BOT

    @pytest.mark.unit
    def test_defaults_without_environment(self):
        keys = [k for k in os.environ if k.startswith("CREATE_ROBO_")]
        with patch.dict(os.environ, {}, clear=False):
            for key in keys:
                del os.environ[key]
            config = Config.from_env()
        assert config.kit is Role.BOT
        assert config.verbose is False
        assert config.installer.install is True
        assert config.output_dir == Path(".")

    @pytest.mark.unit
    def test_false_flag_values(self):
        with patch.dict(os.environ, {"CREATE_ROBO_NO_INSTALL": "no"}, clear=False):
            config = Config.from_env()
        assert config.installer.install is True
