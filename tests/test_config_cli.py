"""CLI tests for configuration commands."""

import os
from pathlib import Path
from typing import Any

import pytest
from click.testing import CliRunner

from dropdock.cli import cli
from dropdock.config import ConfigManager


def _env_with_home(tmp_path: Path) -> dict[str, Any]:
    env = dict(os.environ)
    env["HOME"] = str(tmp_path)
    return env


def _config_path(tmp_path: Path) -> Path:
    return tmp_path / ".dropdock" / "config.yaml"


def test_config_view_creates_and_displays_config(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(cli, ["config", "view"], env=env)

    assert result.exit_code == 0
    assert "library:" in result.output
    assert _config_path(tmp_path).exists()


def test_config_set_updates_value_and_writes_diff(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "watch.debounce_seconds", "--value", "0.42"], env=env
    )

    assert result.exit_code == 0
    assert "0.42" in result.output

    manager = ConfigManager(config_path=_config_path(tmp_path))
    config = manager.load(include_env=False)
    assert config.watch.debounce_seconds == pytest.approx(0.42)


def test_config_set_rejects_invalid_value(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    result = runner.invoke(
        cli, ["config", "set", "ingestion.max_name_attempts", "--value", "many"], env=env
    )

    assert result.exit_code != 0
    manager = ConfigManager(config_path=_config_path(tmp_path))
    assert manager.load(include_env=False).ingestion.max_name_attempts == 100


def test_config_edit_applies_changes(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)

    manager = ConfigManager(config_path=_config_path(tmp_path))
    manager.ensure_exists()

    def _mock_edit(text: str, **_: Any) -> str:
        return text.replace("show_hidden: false", "show_hidden: true")

    monkeypatch.setattr("dropdock.cli.click.edit", _mock_edit)

    result = runner.invoke(cli, ["config", "edit"], env=env)

    assert result.exit_code == 0
    assert "updated" in result.output.lower()

    config = manager.load(include_env=False)
    assert config.browser.show_hidden is True


def test_config_view_env_prints_assignments(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["DROPDOCK__WATCH__DEBOUNCE_SECONDS"] = "0.5"

    result = runner.invoke(cli, ["config", "view", "--env"], env=env)

    assert result.exit_code == 0
    lines = result.output.splitlines()
    assert "DROPDOCK__LIBRARY__ROOT=~/DropDock" in lines
    assert "DROPDOCK__WATCH__DEBOUNCE_SECONDS=0.5" in lines
    assert "library:" not in result.output


def test_config_view_env_respects_no_env(tmp_path: Path) -> None:
    runner = CliRunner()
    env = _env_with_home(tmp_path)
    env["DROPDOCK__WATCH__DEBOUNCE_SECONDS"] = "0.5"

    result = runner.invoke(cli, ["config", "view", "--env", "--no-env"], env=env)

    assert result.exit_code == 0
    assert "DROPDOCK__WATCH__DEBOUNCE_SECONDS=0.2" in result.output.splitlines()
