"""
Typed tree over Kubernetes manifest documents.

Wraps a plain mapping (as produced by YAML/JSON parsing) and offers
dotted-path access so builders don't have to walk nested dicts by hand.
Unknown fields are carried through untouched.
"""

import copy
from typing import Any, Dict, Iterator, List, Mapping, Union

from kube_launcher.core.exceptions import MalformedManifestError

Path = Union[str, List[Union[str, int]]]

_MISSING = object()


def _split(path: Path) -> List[Union[str, int]]:
    if isinstance(path, str):
        return [int(part) if part.isdigit() else part for part in path.split(".")]
    return list(path)


class Manifest(Mapping[str, Any]):
    """Deep-copied, path-addressable manifest document."""

    def __init__(self, document: Mapping[str, Any]):
        if isinstance(document, Manifest):
            document = document.to_dict()
        if not isinstance(document, Mapping):
            raise MalformedManifestError(
                f"Manifest must be a mapping, got {type(document).__name__}"
            )
        self._data: Dict[str, Any] = copy.deepcopy(dict(document))

    # Mapping interface
    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Manifest):
            return self._data == other._data
        if isinstance(other, Mapping):
            return self._data == dict(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"Manifest({self._data!r})"

    def copy(self) -> "Manifest":
        return Manifest(self._data)

    def to_dict(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)

    def _walk(self, parts: List[Union[str, int]], create: bool) -> Any:
        node: Any = self._data
        for index, part in enumerate(parts):
            location = ".".join(str(p) for p in parts[: index + 1])
            if isinstance(node, dict):
                last = index == len(parts) - 1
                if part not in node or (node[part] is None and (create or not last)):
                    if not create:
                        return _MISSING
                    # YAML renders empty blocks as null
                    node[part] = {}
                node = node[part]
            elif isinstance(node, list) and isinstance(part, int):
                if part >= len(node):
                    if not create:
                        return _MISSING
                    raise MalformedManifestError(f"Index out of range at '{location}'")
                node = node[part]
            else:
                raise MalformedManifestError(
                    f"Expected a mapping or sequence at '{location}', "
                    f"got {type(node).__name__}"
                )
        return node

    def get(self, path: Path, default: Any = None) -> Any:
        """Return the value at a dotted path (``spec.template.spec``), or default."""
        value = self._walk(_split(path), create=False)
        return default if value is _MISSING else value

    def has(self, path: Path) -> bool:
        return self._walk(_split(path), create=False) is not _MISSING

    def require(self, path: Path, expected_type: type = object) -> Any:
        """Return the value at a path, raising MalformedManifestError when absent."""
        value = self._walk(_split(path), create=False)
        if value is _MISSING or value is None:
            raise MalformedManifestError(f"Manifest is missing '{path}'")
        if not isinstance(value, expected_type):
            raise MalformedManifestError(
                f"Manifest field '{path}' must be {expected_type.__name__}, "
                f"got {type(value).__name__}"
            )
        return value

    def set(self, path: Path, value: Any) -> None:
        """Set a value, creating intermediate mappings as needed."""
        parts = _split(path)
        parent = self._walk(parts[:-1], create=True)
        leaf = parts[-1]
        if isinstance(parent, dict):
            parent[leaf] = value
        elif isinstance(parent, list) and isinstance(leaf, int) and leaf < len(parent):
            parent[leaf] = value
        else:
            raise MalformedManifestError(
                f"Cannot set '{path}' on {type(parent).__name__}"
            )

    def setdefault(self, path: Path, value: Any) -> Any:
        current = self.get(path, _MISSING)
        if current is _MISSING or current is None:
            self.set(path, value)
            return value
        return current
