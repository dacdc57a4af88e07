# tests/shell/test_config_management.py
import json

import pytest

from headmap.analysis import analyze_headings
from headmap.model import HeadingRecord
from headmap_shell.core.context.shell_context import ShellContext
from headmap_shell.core.handlers.analyze_handler import analysis_options
from headmap_shell.core.handlers.config_handler import handle_config
from headmap_shell.core.managers.config_manager import ConfigManager
from headmap_shell.core.utils.path_utils import PathUtils

# A small, predictable configuration for the tests.
MOCK_SETTINGS_CONTENT = {
    "debug": {"level": "WARNING"},
    "batch": {"concurrency": 3, "admission_delay": 0.5},
    "output": {"color": True},
    "validation": {"max_pairwise_headings": 500},
}


@pytest.fixture
def config_env(tmp_path, monkeypatch):
    """
    Points the ConfigManager singleton at a temporary settings.json and
    reloads the real one afterwards.
    """
    settings_file = tmp_path / "settings.json"
    settings_file.write_text(json.dumps(MOCK_SETTINGS_CONTENT))
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: settings_file)

    manager = ConfigManager()
    manager.reset()
    yield manager, ShellContext()

    monkeypatch.undo()
    manager.reset()


# --- ConfigManager ---

def test_singleton():
    assert ConfigManager() is ConfigManager()


def test_config_manager_load(config_env):
    manager, _ = config_env
    assert manager.get_all()["batch"]["concurrency"] == 3


def test_config_manager_get_nested(config_env):
    manager, _ = config_env
    assert manager.get_nested("batch.admission_delay") == 0.5
    assert manager.get_nested("non.existent.key", "default") == "default"
    assert manager.get_nested("batch.concurrency.deeper", "default") == "default"


def test_config_manager_set_nested_casts_to_existing_type(config_env):
    manager, _ = config_env

    assert manager.set_nested("batch.concurrency", "8")
    assert manager.get_nested("batch.concurrency") == 8

    assert manager.set_nested("batch.admission_delay", "0")
    assert manager.get_nested("batch.admission_delay") == 0.0
    assert isinstance(manager.get_nested("batch.admission_delay"), float)


def test_config_manager_boolean_cast(config_env):
    manager, _ = config_env
    manager.set_nested("output.color", "false")
    assert manager.get_nested("output.color") is False
    manager.set_nested("output.color", "yes")
    assert manager.get_nested("output.color") is True


def test_config_manager_uncastable_value_is_stored_as_string(config_env):
    manager, _ = config_env
    assert manager.set_nested("batch.concurrency", "many")
    assert manager.get_nested("batch.concurrency") == "many"


def test_config_manager_new_keys_and_sections(config_env):
    manager, _ = config_env
    assert manager.set_nested("new_feature.enabled", "True")
    assert manager.get_nested("new_feature.enabled") == "True"
    assert not manager.set_nested("batch", "5")
    assert manager.get_nested("batch.concurrency") == 3


def test_config_manager_reset(config_env):
    manager, _ = config_env
    manager.set_nested("debug.level", "DEBUG")
    manager.reset()
    assert manager.get_nested("debug.level") == "WARNING"


def test_config_manager_handles_broken_file(config_env, tmp_path, monkeypatch):
    manager, _ = config_env
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    monkeypatch.setattr(PathUtils, "get_settings_file", lambda: broken)

    manager.reset()
    assert manager.get_all() == {}


# --- 'config' command ---

def test_handle_config_list(config_env, capsys):
    _, ctx = config_env
    assert handle_config(["list"], ctx) == 0
    assert json.loads(capsys.readouterr().out)["batch"]["concurrency"] == 3


def test_handle_config_get(config_env, capsys):
    _, ctx = config_env
    assert handle_config(["get", "batch.concurrency"], ctx) == 0
    assert capsys.readouterr().out.strip() == "3"
    assert handle_config(["get", "batch.missing"], ctx) == 1


def test_handle_config_set(config_env, capsys):
    manager, ctx = config_env
    assert handle_config(["set", "batch.concurrency", "5"], ctx) == 0
    assert "Config updated: batch.concurrency = 5 (type: int)" in capsys.readouterr().out
    assert manager.get_nested("batch.concurrency") == 5


def test_handle_config_reset(config_env, capsys):
    manager, ctx = config_env
    handle_config(["set", "debug.level", "CRITICAL"], ctx)
    assert handle_config(["reset"], ctx) == 0
    assert "Configuration has been reset" in capsys.readouterr().out
    assert manager.get_nested("debug.level") == "WARNING"


def test_handle_config_usage_errors(config_env, capsys):
    _, ctx = config_env
    assert handle_config([], ctx) == 1
    assert handle_config(["set", "batch.concurrency"], ctx) == 1
    assert handle_config(["frobnicate"], ctx) == 1
    assert "Unknown command: 'config frobnicate'" in capsys.readouterr().out


# --- Analysis options from config ---

def test_pairwise_limit_comes_from_config(config_env):
    manager, _ = config_env
    assert analysis_options() == {"max_pairwise_headings": 500}
    manager.set_nested("validation.max_pairwise_headings", "25")
    assert analysis_options() == {"max_pairwise_headings": 25}


def test_pairwise_limit_null_disables_the_cap(config_env):
    manager, _ = config_env
    manager.get_all()["validation"]["max_pairwise_headings"] = None
    assert analysis_options() == {"max_pairwise_headings": None}

    # With the original value gone, 'config set' stores the raw string.
    manager.set_nested("validation.max_pairwise_headings", "300")
    assert analysis_options() == {"max_pairwise_headings": 300}


@pytest.mark.parametrize("typed, expected", [("none", None), ("off", None), ("lots", 500), ("-3", 500)])
def test_pairwise_limit_typed_at_the_prompt(config_env, typed, expected):
    manager, ctx = config_env
    assert handle_config(["set", "validation.max_pairwise_headings", typed], ctx) == 0
    assert analysis_options() == {"max_pairwise_headings": expected}


def test_uncastable_pairwise_limit_does_not_break_analysis(config_env):
    _, ctx = config_env
    handle_config(["set", "validation.max_pairwise_headings", "none"], ctx)
    headings = [HeadingRecord(level=1, text="Pricing plans"), HeadingRecord(level=2, text="Pricing plan", position=1)]

    result = analyze_headings(headings, analysis_options())
    assert "similar_headings" in result.validation.codes()
