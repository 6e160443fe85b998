# tests/core/test_config_management.py
import json

import pytest

from neuroshell.core.core import NeuroShell
from neuroshell.core.managers.config_manager import ConfigManager
from neuroshell.core.utils.path_utils import PathUtils

# A small, predictable configuration for these tests
MOCK_SETTINGS_CONTENT = {
    "debug": {
        "level": "WARNING"
    },
    "shell": {
        "default_command": "echo",
        "echo_commands": False
    },
    "interpolation": {
        "max_iterations": 10
    },
    "variables": {
        "allowed_globals": ["_style"]
    }
}


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    """
    Points the ConfigManager singleton at a temporary settings.json and
    reloads the real settings afterwards.
    """
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps(MOCK_SETTINGS_CONTENT))
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: settings_file)

    manager = ConfigManager()
    manager.reset()
    yield manager

    monkeypatch.undo()
    manager.reset()


def test_config_manager_is_a_singleton():
    assert ConfigManager() is ConfigManager()


def test_config_manager_load(config_env):
    config = config_env.get_all()
    assert config["debug"]["level"] == "WARNING"
    assert config["interpolation"]["max_iterations"] == 10


def test_config_manager_get_nested(config_env):
    assert config_env.get_nested("shell.default_command") == "echo"
    assert config_env.get_nested("non.existent.key", "default") == "default"
    assert config_env.get_nested("debug.level.deeper", "fallback") == "fallback"


def test_config_manager_set_nested_casts_to_existing_type(config_env):
    config_env.set_nested("interpolation.max_iterations", "20")
    assert config_env.get_nested("interpolation.max_iterations") == 20

    config_env.set_nested("shell.echo_commands", "false")
    assert config_env.get_nested("shell.echo_commands") is False
    config_env.set_nested("shell.echo_commands", "TRUE")
    assert config_env.get_nested("shell.echo_commands") is True

    config_env.set_nested("variables.allowed_globals", '["_a", "_b"]')
    assert config_env.get_nested("variables.allowed_globals") == ["_a", "_b"]


def test_config_manager_set_nested_keeps_uncastable_value_as_string(config_env):
    config_env.set_nested("interpolation.max_iterations", "many")
    assert config_env.get_nested("interpolation.max_iterations") == "many"


def test_config_manager_set_nested_new_key(config_env):
    assert config_env.set_nested("new_feature.enabled", "yes")
    assert config_env.get_nested("new_feature.enabled") == "yes"


def test_config_manager_set_nested_through_non_dict_fails(config_env):
    assert config_env.set_nested("debug.level.deeper", "x") is False


def test_config_manager_reset(config_env):
    config_env.set_nested("debug.level", "DEBUG")
    config_env.reset()
    assert config_env.get_nested("debug.level") == "WARNING"


def test_config_manager_missing_file(tmp_path, monkeypatch):
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: tmp_path / "absent.json")
    manager = ConfigManager()
    try:
        manager.reset()
        assert manager.get_all() == {}
    finally:
        monkeypatch.undo()
        manager.reset()


# --- Settings that shape the shell ---

def test_default_command_comes_from_config(config_env):
    shell = NeuroShell.for_testing()
    config_env.set_nested("shell.default_command", "set")
    shell.execute("answer 42")
    assert shell.context.lookup_variable("answer") == "42"


def test_echo_commands_setting(config_env, capsys):
    shell = NeuroShell.for_testing()
    config_env.set_nested("shell.echo_commands", "true")
    shell.execute(r"\echo visible")
    assert "> \\echo visible" in capsys.readouterr().out


def test_allowed_globals_come_from_config(config_env):
    shell = NeuroShell.for_testing()
    shell.execute(r"\set[_style=dark]")
    assert shell.context.lookup_variable("_style") == "dark"
    with pytest.raises(Exception):
        shell.execute(r"\set[_echo_command=true]")


def test_max_iterations_from_config(config_env):
    config_env.set_nested("interpolation.max_iterations", "1")
    shell = NeuroShell.for_testing()
    shell.context.set_variable("a", "${b}")
    shell.context.set_variable("b", "end")
    shell.execute(r"\echo ${a}")
    assert shell.context.lookup_variable("_output") == "${b}"
