"""
Tests for configuration loading.

This test module validates:
- Model defaults and validators
- YAML, environment and command-line layering
- Environment values converted by the models
"""

from __future__ import annotations

import os
from pathlib import Path

import pytest
from pydantic import ValidationError

from klacks_mcp.config import (
    AppConfig,
    BackendConfig,
    LoggingConfig,
    _deep_merge,
    _load_env_config,
    load_config,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove KLACKS_MCP_ variables inherited from the environment."""
    for key in list(os.environ):
        if key.startswith("KLACKS_MCP_"):
            monkeypatch.delenv(key)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    path = tmp_path / "config.yml"
    path.write_text(
        "backend:\n"
        "  base_url: https://yaml.example.com\n"
        "  username: yaml@example.com\n"
        "  password: from-yaml\n"
        "  timeout_seconds: 10\n"
        "logging:\n"
        "  level: warn\n"
    )
    return path


# =============================================================================
# Models
# =============================================================================


class TestModels:
    """Tests for configuration models."""

    def test_defaults(self) -> None:
        config = AppConfig()

        assert config.server.name == "klacks-mcp-server"
        assert config.backend.base_url == "https://localhost:5001/"
        assert config.backend.timeout_seconds == 30.0
        assert config.backend.token_refresh_margin_seconds == 300
        assert config.backend.verify_tls is True
        assert config.logging.level == "info"
        assert config.logging.json_format is True

    def test_base_url_gets_trailing_slash(self) -> None:
        assert BackendConfig(base_url="https://klacks.example.com/api").base_url == (
            "https://klacks.example.com/api/"
        )

    def test_base_url_requires_scheme(self) -> None:
        with pytest.raises(ValidationError, match="base_url"):
            BackendConfig(base_url="klacks.example.com")

    def test_timeout_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            BackendConfig(timeout_seconds=0)

    def test_password_is_secret(self) -> None:
        config = BackendConfig(password="s3cret")

        assert "s3cret" not in repr(config)
        assert config.password.get_secret_value() == "s3cret"

    def test_log_level_normalized(self) -> None:
        assert LoggingConfig(level="WARN").level == "warning"
        assert LoggingConfig(level="Debug").level == "debug"

    def test_invalid_log_level(self) -> None:
        with pytest.raises(ValidationError, match="Invalid log level"):
            LoggingConfig(level="verbose")


# =============================================================================
# Helpers
# =============================================================================


class TestHelpers:
    """Tests for merge and environment parsing helpers."""

    def test_deep_merge(self) -> None:
        base = {"backend": {"base_url": "a", "username": "u"}, "logging": {"level": "info"}}
        override = {"backend": {"base_url": "b"}}

        merged = _deep_merge(base, override)

        assert merged == {
            "backend": {"base_url": "b", "username": "u"},
            "logging": {"level": "info"},
        }
        assert base["backend"]["base_url"] == "a"

    def test_load_env_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KLACKS_MCP_BACKEND__BASE_URL", "https://env.example.com/")
        monkeypatch.setenv("KLACKS_MCP_BACKEND__TIMEOUT_SECONDS", "12")
        monkeypatch.setenv("KLACKS_MCP_LOGGING__JSON_FORMAT", "false")

        assert _load_env_config() == {
            "backend": {"base_url": "https://env.example.com/", "timeout_seconds": "12"},
            "logging": {"json_format": "false"},
        }

    def test_credentials_taken_verbatim(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("KLACKS_MCP_BACKEND__PASSWORD", "1234")
        monkeypatch.setenv("KLACKS_MCP_BACKEND__USERNAME", "true")

        env = _load_env_config()

        assert env["backend"]["password"] == "1234"
        assert env["backend"]["username"] == "true"


# =============================================================================
# load_config
# =============================================================================


class TestLoadConfig:
    """Tests for layered configuration loading."""

    def test_defaults_only(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("klacks_mcp.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yml")

        config = load_config(cli_args=[])

        assert config == AppConfig()

    def test_yaml_file(self, config_file: Path) -> None:
        config = load_config(config_path=config_file, cli_args=[])

        assert config.backend.base_url == "https://yaml.example.com/"
        assert config.backend.username == "yaml@example.com"
        assert config.backend.password.get_secret_value() == "from-yaml"
        assert config.backend.timeout_seconds == 10
        assert config.logging.level == "warning"

    def test_config_path_from_cli(self, config_file: Path) -> None:
        config = load_config(cli_args=["--config", str(config_file)])

        assert config.backend.username == "yaml@example.com"

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(FileNotFoundError):
            load_config(config_path=tmp_path / "nope.yml", cli_args=[])

    def test_env_overrides_yaml(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KLACKS_MCP_BACKEND__USERNAME", "env@example.com")

        config = load_config(config_path=config_file, cli_args=[])

        assert config.backend.username == "env@example.com"
        assert config.backend.password.get_secret_value() == "from-yaml"

    def test_env_numeric_string_field(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KLACKS_MCP_SERVER__NAME", "123")
        monkeypatch.setenv("KLACKS_MCP_BACKEND__PASSWORD", "0042")

        config = load_config(config_path=config_file, cli_args=[])

        assert config.server.name == "123"
        assert config.backend.password.get_secret_value() == "0042"

    def test_env_values_converted_to_field_types(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KLACKS_MCP_BACKEND__TIMEOUT_SECONDS", "12.5")
        monkeypatch.setenv("KLACKS_MCP_BACKEND__TOKEN_REFRESH_MARGIN_SECONDS", "30")
        monkeypatch.setenv("KLACKS_MCP_BACKEND__VERIFY_TLS", "off")
        monkeypatch.setenv("KLACKS_MCP_LOGGING__JSON_FORMAT", "false")

        config = load_config(config_path=config_file, cli_args=[])

        assert config.backend.timeout_seconds == 12.5
        assert config.backend.token_refresh_margin_seconds == 30
        assert config.backend.verify_tls is False
        assert config.logging.json_format is False

    def test_cli_overrides_env(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KLACKS_MCP_BACKEND__BASE_URL", "https://env.example.com/")

        config = load_config(
            config_path=config_file,
            cli_args=["--base-url", "https://cli.example.com", "--log-level", "error"],
        )

        assert config.backend.base_url == "https://cli.example.com/"
        assert config.logging.level == "error"

    def test_debug_flag(self, config_file: Path) -> None:
        config = load_config(config_path=config_file, cli_args=["--debug"])

        assert config.logging.debug_mode is True
        assert config.logging.level == "debug"

    def test_invalid_value_raises(
        self, config_file: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("KLACKS_MCP_BACKEND__TIMEOUT_SECONDS", "-1")

        with pytest.raises(ValidationError):
            load_config(config_path=config_file, cli_args=[])
