"""
Settings Registry

Owns named groups of settings, the sources feeding each group and the
active environment shared by all of them.

Key features:
- Several source files per group, merged in registration order
- Idempotent registration (a source already in the group is ignored)
- A failed registration never leaves its source behind
- Switching environment reloads every group immediately
"""

from enum import Enum
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from settings_node import SettingsNode
from source_resolver import SettingsTreeError, SourceDescriptor, deep_merge, resolve

# =============================================================================
# EXCEPTIONS
# =============================================================================


class UnknownGroupError(SettingsTreeError, KeyError):
    """Raised when an operation names a group that was never registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Settings : unknown settings group '{name}'")

    def __str__(self) -> str:
        return str(self.args[0])


# =============================================================================
# DATA STRUCTURES
# =============================================================================


class Group(BaseModel):
    """
    A named bucket of settings.

    Sources are merged in list order, later ones overriding earlier ones.
    `materialized` stays None until the first successful reload.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    sources: list[SourceDescriptor] = Field(default_factory=list)
    materialized: SettingsNode | None = None


def canonical_group_name(name: Any) -> str:
    """Group names are compared as strings; Enum members by their value."""

    if isinstance(name, Enum):
        name = name.value
    return str(name)


# =============================================================================
# REGISTRY
# =============================================================================


class SettingsRegistry:
    """
    Holds every settings group and the active environment.

    Not thread-safe: meant to be configured once at process start.
    """

    def __init__(self, environment: str | None = None):
        self._groups: dict[str, Group] = {}
        self._environment = environment

    # -------------------------------------------------------------------------
    # Environment
    # -------------------------------------------------------------------------

    @property
    def environment(self) -> str | None:
        return self._environment

    @environment.setter
    def environment(self, env: str | None) -> None:
        self.set_environment(env)

    def set_environment(self, env: str | None) -> None:
        """
        Change the active environment and reload all groups.

        The new value is kept even if the reload fails.
        """
        logger.info(f"Switching settings environment {self._environment!r} -> {env!r}")
        self._environment = env
        self.reload_all()

    # -------------------------------------------------------------------------
    # Groups
    # -------------------------------------------------------------------------

    def reset(self) -> None:
        """Forget every group and source, and clear the environment."""

        self._groups = {}
        self._environment = None

    def has_group(self, name: Any) -> bool:
        return canonical_group_name(name) in self._groups

    def group_names(self) -> tuple[str, ...]:
        return tuple(self._groups)

    def sources(self, name: Any) -> tuple[SourceDescriptor, ...]:
        return tuple(self._get_group(name).sources)

    def _get_group(self, name: Any) -> Group:
        key = canonical_group_name(name)
        try:
            return self._groups[key]
        except KeyError:
            raise UnknownGroupError(key) from None

    def _ensure_group(self, name: str) -> Group:
        if name not in self._groups:
            logger.debug(f"Creating settings group '{name}'")
            self._groups[name] = Group(name=name)
        return self._groups[name]

    # -------------------------------------------------------------------------
    # Registration
    # -------------------------------------------------------------------------

    def register_source(self, name: Any, descriptor: SourceDescriptor) -> bool:
        """
        Add a source to a group, creating the group if needed.

        Returns False if the source was already registered for this group
        (nothing changes, like a second `import`). Otherwise the group is
        reloaded; if that fails the source is removed again and the error
        propagates. A group created by this call is kept either way.
        """
        group = self._ensure_group(canonical_group_name(name))

        if descriptor in group.sources:
            logger.warning(f"Source {descriptor} already registered for '{group.name}'")
            return False

        group.sources.append(descriptor)
        try:
            return self.reload_group(group.name)
        except Exception:
            group.sources.remove(descriptor)
            logger.warning(f"Discarded source {descriptor} from '{group.name}'")
            raise

    def register_settings_file(self, name: Any, path: Any) -> bool:
        """Register a YAML file as a source for a group."""

        return self.register_source(name, SourceDescriptor.from_file(path))

    # -------------------------------------------------------------------------
    # Reloading
    # -------------------------------------------------------------------------

    def reload_group(self, name: Any) -> bool:
        """
        Rebuild a group's settings from all of its sources.

        The previous settings stay in place if any source fails.
        """
        group = self._get_group(name)

        data: dict[str, Any] = {}
        for descriptor in group.sources:
            data = deep_merge(data, resolve(descriptor, self._environment))

        group.materialized = SettingsNode(data)
        logger.info(
            f"Reloaded settings group '{group.name}' from {len(group.sources)} "
            f"source(s) (environment: {self._environment!r})"
        )
        return True

    def reload_all(self) -> None:
        """Reload every group in registration order; stop at the first error."""

        for name in list(self._groups):
            self.reload_group(name)

    # -------------------------------------------------------------------------
    # Access
    # -------------------------------------------------------------------------

    def get_settings(self, name: Any) -> SettingsNode:
        """Return the merged settings of a group."""

        group = self._get_group(name)
        if group.materialized is None:
            return SettingsNode()
        return group.materialized

    def debug_inspect(self, console: Console | None = None) -> None:
        """Print every group and its current values as a tree."""

        console = console or Console()
        root = Tree(
            f"[bold]Current settings[/bold] (environment: {self._environment!r})"
        )
        for name in self._groups:
            branch = root.add(f"[bold cyan]{escape(name)}[/bold cyan]")
            _add_branch(branch, self.get_settings(name))
        console.print(root)


def _add_branch(tree: Tree, node: SettingsNode) -> None:
    for key in node:
        value = node[key]
        if isinstance(value, SettingsNode):
            _add_branch(tree.add(escape(f"{key}.")), value)
        else:
            tree.add(escape(f"{key} = {value!r}"))
