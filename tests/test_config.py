"""Tests for user configuration."""

import json

import pytest

from git_hook_installer.config import ToolConfig, config_path


@pytest.fixture(autouse=True)
def config_home(tmp_path, monkeypatch):
    home = tmp_path / "ghi-home"
    monkeypatch.setenv("GIT_HOOK_INSTALLER_HOME", str(home))
    return home


def test_defaults_when_missing(config_home):
    config = ToolConfig.load()
    assert config.max_snapshots == 10
    assert config.scan_max_depth == 3
    assert config.hook_name == "pre-commit"
    assert not config_home.exists()


def test_save_and_load(config_home):
    config = ToolConfig(max_snapshots=3, scan_max_depth=5)
    path = config.save()
    assert path == config_home / "config.json"

    loaded = ToolConfig.load()
    assert loaded.max_snapshots == 3
    assert loaded.scan_max_depth == 5


def test_unknown_keys_are_ignored(config_home):
    config_home.mkdir()
    (config_home / "config.json").write_text(json.dumps({"max_snapshots": 2, "colour": "blue"}))
    assert ToolConfig.load().max_snapshots == 2


@pytest.mark.parametrize("data", [
    {"max_snapshots": -1},
    {"scan_max_depth": "deep"},
    {"scan_max_entries": True},
    {"hook_name": ""},
    {"hook_name": "../pre-commit"},
])
def test_invalid_values(config_home, data):
    config_home.mkdir()
    (config_home / "config.json").write_text(json.dumps(data))
    with pytest.raises(ValueError):
        ToolConfig.load()


def test_invalid_json(config_home):
    config_home.mkdir()
    (config_home / "config.json").write_text("{not json")
    with pytest.raises(ValueError):
        ToolConfig.load()


def test_set_value(config_home):
    config = ToolConfig.load()
    config.set_value("max_snapshots", "0")
    config.set_value("hook_name", "pre-push")
    loaded = ToolConfig.load()
    assert loaded.max_snapshots == 0
    assert loaded.hook_name == "pre-push"


def test_set_value_errors(config_home):
    config = ToolConfig.load()
    with pytest.raises(ValueError):
        config.set_value("nope", "1")
    with pytest.raises(ValueError):
        config.set_value("max_snapshots", "many")
    assert not config_path().exists()
