"""Dotted path lookups into nested fact mappings.

Paths such as ``"d.d1a.d2b"`` address a value inside nested mappings.  Reads
are tolerant: walking through anything that is not a mapping yields ``None``
instead of raising.  Writes create the intermediate mappings they need and
replace any non-mapping value standing in the way, so overwriting a parent
with a scalar is how a subtree gets pruned.
"""

from __future__ import annotations

from typing import Any, List, Mapping, MutableMapping

from .errors import InvalidPathError

SEPARATOR = "."


def split_path(path: str) -> List[str]:
    """Return the segments of ``path``, validating that none is empty."""

    if not isinstance(path, str) or not path:
        raise InvalidPathError(path)
    parts = path.split(SEPARATOR)
    if any(not part for part in parts):
        raise InvalidPathError(path)
    return parts


def get_path(root: Mapping[str, Any], path: str) -> Any:
    """Resolve ``path`` inside ``root``, returning ``None`` when it is unset."""

    parts = split_path(path)
    if len(parts) == 1:
        return root.get(path)
    value: Any = root
    for part in parts:
        if isinstance(value, Mapping):
            value = value.get(part)
        else:
            return None
    return value


def set_path(
    root: MutableMapping[str, Any], path: str, value: Any, *, copy_parents: bool = False
) -> MutableMapping[str, Any]:
    """Assign ``value`` at ``path``, creating or replacing parents as needed.

    With ``copy_parents`` every mapping along the path is replaced by a
    shallow copy before it is written, so mappings reachable from an earlier
    shallow copy of ``root`` are left untouched.
    """

    *parents, leaf = split_path(path)
    if not parents:
        root[leaf] = value
        return root
    node = root
    for part in parents:
        child = node.get(part)
        if not isinstance(child, MutableMapping):
            child = {}
            node[part] = child
        elif copy_parents:
            child = dict(child)
            node[part] = child
        node = child
    node[leaf] = value
    return root


def prefixes(path: str) -> List[str]:
    """Return every ancestor path of ``path`` followed by ``path`` itself.

    >>> prefixes("d.d1b.d2a")
    ['d', 'd.d1b', 'd.d1b.d2a']
    """

    parts = split_path(path)
    return [SEPARATOR.join(parts[: index + 1]) for index in range(len(parts))]


__all__ = ["SEPARATOR", "get_path", "prefixes", "set_path", "split_path"]
