"""
Tests for the process-wide shortcuts in settings_tree.
"""

import sys

import pytest
from loguru import logger

import settings_tree
from tree_config import settings


@pytest.fixture(autouse=True)
def fresh_default_registry(monkeypatch):
    """Each test starts without a default registry."""
    monkeypatch.setattr(settings_tree, "_registry", None)


def test_registry_is_created_once():
    """get_registry() always returns the same instance."""
    assert settings_tree.get_registry() is settings_tree.get_registry()


def test_shortcuts_drive_the_default_registry(test_files):
    """Register, read, reload and switch environment through the module."""
    assert settings_tree.register_settings_file("web_app", test_files / "config.yml")
    assert settings_tree.register_settings_file(
        "web_app", test_files / "config_complement.yml"
    )
    assert settings_tree.register_settings_file(
        "web_game", test_files / "another_config.yml"
    )

    web_app = settings_tree.get_settings("web_app")
    assert web_app.root_url == "talkmap.testhost:3000"
    assert web_app.engine.workers_count == 3
    assert web_app.foo.bar == 42
    assert settings_tree.get_settings("web_game").guild_name == "gang"

    assert settings_tree.reload_group("web_app") is True
    settings_tree.reload_all()

    settings_tree.set_environment("test")
    assert settings_tree.get_environment() == "test"
    assert settings_tree.get_settings("web_app").engine.workers_count == 27


def test_reset_clears_groups_and_environment(test_files):
    """reset() empties the default registry."""
    settings_tree.register_settings_file("web_app", test_files / "config.yml")
    settings_tree.set_environment("development")

    settings_tree.reset()

    assert settings_tree.get_environment() is None
    with pytest.raises(settings_tree.UnknownGroupError):
        settings_tree.get_settings("web_app")


def test_default_environment_comes_from_configuration(test_files):
    """The configured environment seeds the default registry."""
    settings.set("environment", "test")
    try:
        assert settings_tree.default_environment() == "test"
        settings_tree.register_settings_file("web_app", test_files / "config.yml")
        assert settings_tree.get_settings("web_app").engine.workers_count == 0
    finally:
        settings.set("environment", "")

    assert settings_tree.default_environment() is None


def test_debug_inspect_uses_module_console(test_files, capsys, monkeypatch):
    """debug_inspect() prints through the shared rich console."""
    from rich.console import Console

    monkeypatch.setattr(settings_tree, "console", Console(width=200))
    settings_tree.register_settings_file("web_game", test_files / "another_config.yml")

    settings_tree.debug_inspect()

    assert "party_size = 4" in capsys.readouterr().out


def test_setup_logging_routes_logs_to_console(capsys, monkeypatch):
    """After setup_logging() library logs show up on the rich console."""
    from rich.console import Console

    monkeypatch.setattr(settings_tree, "console", Console(width=200))
    try:
        settings_tree.setup_logging("DEBUG")
        settings_tree.reload_all()
        logger.debug("settings-tree logging check")
    finally:
        logger.remove()
        _ = logger.add(sys.stderr)

    assert "settings-tree logging check" in capsys.readouterr().out
