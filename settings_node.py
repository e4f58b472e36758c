"""
Read-only settings tree.

Wraps a merged mapping so it can be queried with attribute access
(``node.engine.workers_count``) or an explicit dotted path
(``lookup(node, "engine.workers_count")``). Unknown keys read as None.
"""

from collections.abc import Iterator, Mapping
from typing import Any


class DuplicateKeyError(ValueError):
    """Raised when two keys of one mapping become the same string."""

    pass


def normalize_keys(data: Mapping[Any, Any]) -> dict[str, Any]:
    """Turn every key into a string; two keys colliding is an error."""

    result: dict[str, Any] = {}
    for key, value in data.items():
        name = str(key)
        if name in result:
            raise DuplicateKeyError(f"key {key!r} collides with key '{name}'")
        result[name] = value
    return result


def materialize(value: Any) -> Any:
    """Convert nested mappings (also inside sequences) into SettingsNode."""

    if isinstance(value, SettingsNode):
        return value
    if isinstance(value, Mapping):
        return SettingsNode(value)
    if isinstance(value, (list, tuple)):
        return tuple(materialize(item) for item in value)
    return value


def _plain(value: Any) -> Any:
    if isinstance(value, SettingsNode):
        return to_dict(value)
    if isinstance(value, tuple):
        return [_plain(item) for item in value]
    return value


def lookup(node: "SettingsNode", path: str, default: Any = None) -> Any:
    """
    Follow a dotted path such as "engine.workers_count".

    Returns *default* if any segment is missing or a segment
    before the last one is not a nested node.
    """
    current: Any = node
    for segment in path.split("."):
        if not isinstance(current, SettingsNode) or segment not in current:
            return default
        current = current[segment]
    return current


def to_dict(node: "SettingsNode") -> dict[str, Any]:
    """Return a deep plain-dict copy (sequences become lists)."""

    return {key: _plain(node[key]) for key in node}


class SettingsNode:
    """
    Immutable view over one level of merged settings.

    Attribute lookup returns a nested SettingsNode for mappings, the raw
    value for scalars, a tuple for sequences and None for unknown keys.
    Data keys win over method names: a setting called ``lookup`` or
    ``to_dict`` hides the method, the module functions always work.
    Item lookup (``node["key"]``) raises KeyError like a dict.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Mapping[Any, Any] | None = None):
        items = normalize_keys({} if data is None else data)
        object.__setattr__(
            self,
            "_data",
            {key: materialize(value) for key, value in items.items()},
        )

    def __getattribute__(self, name: str) -> Any:
        if not name.startswith("_"):
            data = object.__getattribute__(self, "_data")
            if name in data:
                return data[name]
        return object.__getattribute__(self, name)

    def __getattr__(self, name: str) -> Any:
        # Only called when normal lookup fails. Private names are never keys.
        if name.startswith("_"):
            raise AttributeError(name)
        return None

    def __setattr__(self, name: str, value: Any) -> None:
        raise TypeError("SettingsNode is read-only")

    def __delattr__(self, name: str) -> None:
        raise TypeError("SettingsNode is read-only")

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __contains__(self, key: object) -> bool:
        return key in self._data

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SettingsNode):
            return self._data == other._data
        if isinstance(other, Mapping):
            return to_dict(self) == to_dict(SettingsNode(other))
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"SettingsNode({to_dict(self)!r})"

    def __copy__(self) -> "SettingsNode":
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> "SettingsNode":
        return self

    def __reduce__(self) -> tuple[Any, ...]:
        return (SettingsNode, (to_dict(self),))

    def __dir__(self) -> list[str]:
        return sorted(set(object.__dir__(self)) | set(self._data))

    def lookup(self, path: str, default: Any = None) -> Any:
        return lookup(self, path, default)

    def to_dict(self) -> dict[str, Any]:
        return to_dict(self)
