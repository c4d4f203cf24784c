"""
Tests for the command-line entry point.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from klacks_mcp import __main__ as entry
from klacks_mcp.config import AppConfig
from klacks_mcp.logging import ROOT_LOGGER_NAME


@pytest.fixture(autouse=True)
def isolated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
    """Keep the default config file and the package logger out of the way."""
    monkeypatch.setattr("klacks_mcp.config.DEFAULT_CONFIG_PATH", tmp_path / "missing.yml")
    for key in ("KLACKS_MCP_BACKEND__BASE_URL", "KLACKS_MCP_BACKEND__USERNAME"):
        monkeypatch.delenv(key, raising=False)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


class TestMain:
    """Tests for main()."""

    def test_missing_config_file(self, tmp_path: Path, capsys) -> None:
        code = entry.main(["--config", str(tmp_path / "nope.yml")])

        assert code == 2
        assert "invalid configuration" in capsys.readouterr().err

    def test_invalid_config_value(self, monkeypatch: pytest.MonkeyPatch, capsys) -> None:
        monkeypatch.setenv("KLACKS_MCP_BACKEND__BASE_URL", "ftp://klacks.example.com")

        assert entry.main([]) == 2
        assert "base_url" in capsys.readouterr().err

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "config.yml"
        path.write_text("backend: [unclosed\n")

        assert entry.main(["--config", str(path)]) == 2

    def test_runs_server_with_loaded_config(self, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[AppConfig] = []

        async def fake_serve(config: AppConfig) -> None:
            seen.append(config)

        monkeypatch.setattr(entry, "serve", fake_serve)
        monkeypatch.setenv("KLACKS_MCP_BACKEND__USERNAME", "bot@example.com")

        code = entry.main(["--base-url", "https://klacks.example.com"])

        assert code == 0
        assert seen[0].backend.base_url == "https://klacks.example.com/"
        assert seen[0].backend.username == "bot@example.com"
