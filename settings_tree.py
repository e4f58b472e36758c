"""
settings-tree: hierarchical settings from YAML files

Process-wide shortcuts over one default SettingsRegistry.

Usage:
    import settings_tree

    settings_tree.register_settings_file("web_app", "config/web_app.yml")
    settings_tree.get_settings("web_app").engine.workers_count

Larger programs (and tests) can build their own SettingsRegistry instead
and pass it around.
"""

from pathlib import Path
from typing import Any

from loguru import logger
from rich.console import Console
from rich.logging import RichHandler

from settings_node import SettingsNode
from settings_registry import SettingsRegistry, UnknownGroupError
from source_resolver import (
    SettingsTreeError,
    SourceDescriptor,
    SourceError,
    SourceNotFoundError,
    UnsupportedSourceError,
)
from tree_config import settings

__all__ = [
    "SettingsNode",
    "SettingsRegistry",
    "SettingsTreeError",
    "SourceDescriptor",
    "SourceError",
    "SourceNotFoundError",
    "UnknownGroupError",
    "UnsupportedSourceError",
    "debug_inspect",
    "get_environment",
    "get_registry",
    "get_settings",
    "register_settings_file",
    "reload_all",
    "reload_group",
    "reset",
    "set_environment",
    "setup_logging",
]

console = Console()

_registry: SettingsRegistry | None = None


# =============================================================================
# LOGGING SETUP
# =============================================================================


def setup_logging(level: str | None = None) -> None:
    """
    Configure loguru with rich handler for enhanced console output.

    Should be called once at application entry point.
    """
    # Remove default handler
    logger.remove()

    _ = logger.add(
        RichHandler(
            console=console,
            rich_tracebacks=True,
        ),
        format="{message}",
        level=level or settings.get("log_level", "INFO"),
    )


# =============================================================================
# DEFAULT REGISTRY
# =============================================================================


def default_environment() -> str | None:
    """Environment configured via settings.toml or SETTINGS_TREE_ENVIRONMENT."""

    env = settings.get("environment", "")
    return str(env) if env else None


def get_registry() -> SettingsRegistry:
    """Return the process-wide registry, creating it on first use."""

    global _registry
    if _registry is None:
        _registry = SettingsRegistry(environment=default_environment())
    return _registry


def register_settings_file(name: Any, path: str | Path) -> bool:
    return get_registry().register_settings_file(name, path)


def get_settings(name: Any) -> SettingsNode:
    return get_registry().get_settings(name)


def reload_group(name: Any) -> bool:
    return get_registry().reload_group(name)


def reload_all() -> None:
    get_registry().reload_all()


def get_environment() -> str | None:
    return get_registry().environment


def set_environment(env: str | None) -> None:
    """Switch the active environment; every group is reloaded."""

    get_registry().set_environment(env)


def reset() -> None:
    """Forget all groups and clear the active environment."""

    get_registry().reset()


def debug_inspect() -> None:
    get_registry().debug_inspect(console)
