"""Tests for unity_editor_relay/cli/app.py - Typer commands"""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from unity_editor_relay.cli.app import app
from unity_editor_relay.config import CONFIG_FILE_NAME
from unity_editor_relay.exceptions import BindError

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_cwd(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(tmp_path)
    return tmp_path


class TestInfoCommands:
    """Test commands that do not start the relay"""

    def test_version(self) -> None:
        result = runner.invoke(app, ["version"])
        assert result.exit_code == 0
        assert "unity-editor-relay" in result.output

    def test_tools_json(self) -> None:
        result = runner.invoke(app, ["--json", "tools"])
        assert result.exit_code == 0
        names = [t["name"] for t in json.loads(result.output)]
        assert names == ["get_editor_state", "execute_editor_command", "get_logs"]

    def test_resources_json(self) -> None:
        result = runner.invoke(app, ["--json", "resources"])
        assert result.exit_code == 0
        uris = [r["uri"] for r in json.loads(result.output)]
        assert "help:///vrchat/world-building-notes" in uris


class TestConfigCommands:
    """Test config show/init"""

    def test_init_writes_file(self, isolated_cwd: Path) -> None:
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 0
        assert (isolated_cwd / CONFIG_FILE_NAME).exists()

    def test_init_refuses_overwrite(self, isolated_cwd: Path) -> None:
        (isolated_cwd / CONFIG_FILE_NAME).write_text("port = 1\n")
        result = runner.invoke(app, ["config", "init"])
        assert result.exit_code == 1

    def test_show_json_reflects_file(self, isolated_cwd: Path) -> None:
        (isolated_cwd / CONFIG_FILE_NAME).write_text("port = 9123\n")
        result = runner.invoke(app, ["--json", "config", "show"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["port"] == 9123
        assert data["config_file"].endswith(CONFIG_FILE_NAME)

    def test_invalid_config_exits(self, isolated_cwd: Path) -> None:
        (isolated_cwd / CONFIG_FILE_NAME).write_text("port = 99999\n")
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 1


class TestServeCommand:
    """Test serve error handling"""

    def test_bind_failure_exits_1(self) -> None:
        with patch("unity_editor_relay.cli.app.BridgeServer") as server_cls:
            server_cls.return_value.run.side_effect = BindError("Cannot listen on 127.0.0.1:8080: in use")
            result = runner.invoke(app, ["serve", "--port", "8080"])

        assert result.exit_code == 1

    def test_port_override(self) -> None:
        with patch("unity_editor_relay.cli.app.BridgeServer") as server_cls, patch("unity_editor_relay.cli.app.asyncio.run"):
            result = runner.invoke(app, ["serve", "--host", "0.0.0.0", "--port", "9001"])

        assert result.exit_code == 0
        config = server_cls.call_args.args[0]
        assert config.host == "0.0.0.0"
        assert config.port == 9001

    def test_invalid_port(self) -> None:
        result = runner.invoke(app, ["serve", "--port", "70000"])
        assert result.exit_code == 1
