"""
Settings Source Resolver

Turns one settings source into a plain mapping for the active environment.

Key features:
- YAML source files with a "defaults" section and per-environment sections
- Recursive deep merge (environment overlay wins, nested mappings merge)
- Distinct errors for missing sources and malformed sources
"""

import copy
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from loguru import logger
from pydantic import BaseModel

from settings_node import DuplicateKeyError, normalize_keys
from tree_config import settings

FILE_SOURCE = "file"

# =============================================================================
# EXCEPTIONS
# =============================================================================


class SettingsTreeError(Exception):
    """Base class for every error raised by settings-tree."""

    pass


class SourceNotFoundError(SettingsTreeError, FileNotFoundError):
    """
    Raised when a source file does not exist.

    Still a FileNotFoundError (same errno and filename as the OS error),
    so callers can tell "missing" apart from "malformed".
    """

    pass


class SourceError(SettingsTreeError):
    """Raised when a source exists but could not be read or parsed."""

    def __init__(self, locator: str, cause: object):
        self.locator = locator
        self.cause = cause
        super().__init__(
            f"There was a problem parsing the settings file {locator}: {cause}"
        )


class UnsupportedSourceError(SettingsTreeError):
    """Raised when a source descriptor has an unknown kind."""

    pass


# =============================================================================
# DATA STRUCTURES
# =============================================================================


class SourceDescriptor(BaseModel, frozen=True):
    """
    One origin of settings data for a group.

    Two descriptors are the same source iff kind and locator match.
    """

    kind: str
    locator: str

    @classmethod
    def from_file(cls, path: str | Path) -> "SourceDescriptor":
        return cls(kind=FILE_SOURCE, locator=str(path))

    def __str__(self) -> str:
        return f"{self.kind}:{self.locator}"


# =============================================================================
# MERGING
# =============================================================================


def deep_merge(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """
    Recursively merge *overlay* on top of *base* and return a new dict.

    If both values for a key are mappings they are merged recursively.
    Otherwise the overlay value replaces the base value outright
    (sequences and None included). Neither input is modified.
    """
    result = copy.deepcopy(dict(base))

    for key, value in overlay.items():
        if (
            key in result
            and isinstance(result[key], Mapping)
            and isinstance(value, Mapping)
        ):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)

    return result


# =============================================================================
# FILE SOURCES
# =============================================================================


def load_source_file(locator: str) -> dict[str, Any]:
    """
    Load the complete content of a YAML settings file.

    An empty document counts as an empty mapping.
    """
    try:
        with open(locator, encoding=settings.get("encoding", "utf-8")) as f:
            content = yaml.safe_load(f)
    except FileNotFoundError as e:
        raise SourceNotFoundError(e.errno, e.strerror, e.filename) from e
    except (OSError, ValueError, yaml.YAMLError) as e:
        raise SourceError(locator, e) from e

    if content is None:
        return {}
    if not isinstance(content, Mapping):
        raise SourceError(
            locator, f"top level is a {type(content).__name__}, not a mapping"
        )

    try:
        return string_keys(content)
    except DuplicateKeyError as e:
        raise SourceError(locator, e) from e


def string_keys(value: Any) -> Any:
    """
    Recursively turn mapping keys into strings.

    YAML allows `1:` and `"1":` side by side; those collide and raise.
    """
    if isinstance(value, Mapping):
        return {key: string_keys(item) for key, item in normalize_keys(value).items()}
    if isinstance(value, list):
        return [string_keys(item) for item in value]
    return value


def extract_section(
    content: Mapping[str, Any],
    key: str | None,
    locator: str,
) -> dict[str, Any]:
    """Return the mapping stored under *key*, or {} if key is None or absent."""

    if key is None:
        return {}

    section = content.get(key)
    if section is None:
        return {}
    if not isinstance(section, Mapping):
        raise SourceError(locator, f"section '{key}' is not a mapping")

    return dict(section)


def resolve_file(locator: str, environment: str | None) -> dict[str, Any]:
    """Merge a file's environment section on top of its defaults section."""

    content = load_source_file(locator)
    defaults_key = settings.get("defaults_key", "defaults")

    defaults = extract_section(content, defaults_key, locator)
    specialized = extract_section(content, environment, locator)

    logger.debug(
        f"Resolved {locator}: {len(defaults)} default keys, "
        f"{len(specialized)} keys for environment {environment!r}"
    )
    return deep_merge(defaults, specialized)


def resolve(descriptor: SourceDescriptor, environment: str | None) -> dict[str, Any]:
    """
    Produce the merged mapping for one source under the given environment.

    Raises:
        SourceNotFoundError: the source file does not exist
        SourceError: the source could not be read or parsed
        UnsupportedSourceError: the descriptor kind is unknown
    """
    if descriptor.kind == FILE_SOURCE:
        return resolve_file(descriptor.locator, environment)

    raise UnsupportedSourceError(f"Unknown source type : {descriptor.kind}")
