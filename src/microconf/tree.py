"""ConfigTree: in-memory view of the JSON config document.

Document shape:
    {
      "db": {"password": "hunter2", "port": 5432},
      "namespace": "default"
    }

Values written through set() are strings. Leaves written by other tools may be
any JSON type; get() renders them as text (null -> "", objects/arrays -> compact
JSON) so callers only ever deal in strings.
"""

from __future__ import annotations

import copy
import json
from typing import TYPE_CHECKING, Any

from microconf.errors import ParseError, SerializationError

if TYPE_CHECKING:
    from collections.abc import Sequence

# Deeper documents are rejected on load; copying, rendering and serializing
# recurse once or twice per level and must stay under the interpreter limit.
MAX_DEPTH = 256


def _depth(obj: Any) -> int:
    """Nesting depth of a JSON value (scalars are 0), computed without recursion."""
    deepest = 0
    stack = [(obj, 0)]
    while stack:
        node, level = stack.pop()
        if isinstance(node, dict):
            children = node.values()
        elif isinstance(node, list):
            children = node
        else:
            continue
        level += 1
        deepest = max(deepest, level)
        stack.extend((child, level) for child in children)
    return deepest


def check_path(path: Sequence[str]) -> tuple[str, ...]:
    """Validate a config path: at least one segment, no empty segments."""
    if not path:
        msg = "config path must have at least one segment"
        raise ValueError(msg)
    if len(path) > MAX_DEPTH:
        msg = f"config path deeper than {MAX_DEPTH} segments"
        raise ValueError(msg)
    for seg in path:
        if not isinstance(seg, str) or not seg:
            msg = f"invalid config path segment {seg!r} in {list(path)!r}"
            raise ValueError(msg)
    return tuple(path)


def render(value: Any) -> str:
    """Turn a stored JSON value into the text callers see."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, (dict, list)):
        return json.dumps(value, separators=(",", ":"), sort_keys=True)
    return json.dumps(value)  # numbers and booleans keep their JSON spelling


class ConfigTree:
    """Nested str -> (ConfigTree-ish dict | value) mapping."""

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._root: dict[str, Any] = data if data is not None else {}

    @classmethod
    def load(cls, data: bytes) -> ConfigTree:
        """Parse a document. Empty (or whitespace-only) input is an empty tree."""
        if not data.strip():
            return cls()
        try:
            obj = json.loads(data)
        except (UnicodeDecodeError, ValueError, RecursionError) as exc:
            msg = f"malformed config document: {exc}"
            raise ParseError(msg) from exc
        if not isinstance(obj, dict):
            msg = f"config document root must be an object, got {type(obj).__name__}"
            raise ParseError(msg)
        if _depth(obj) > MAX_DEPTH:
            msg = f"config document nested deeper than {MAX_DEPTH} levels"
            raise ParseError(msg)
        return cls(obj)

    def __len__(self) -> int:
        return len(self._root)

    def __bool__(self) -> bool:
        return bool(self._root)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigTree):
            return NotImplemented
        return self._root == other._root

    def __repr__(self) -> str:
        return f"ConfigTree({self._root!r})"

    # ------------------------------------------------------------------
    # Access
    # ------------------------------------------------------------------

    def lookup(self, path: Sequence[str]) -> Any:
        """Raw JSON value at path, or None if any segment is missing."""
        node: Any = self._root
        for seg in check_path(path):
            if not isinstance(node, dict) or seg not in node:
                return None
            node = node[seg]
        return node

    def get(self, path: Sequence[str]) -> str:
        return render(self.lookup(path))

    def set(self, path: Sequence[str], value: str) -> None:
        """Store value at path, creating or replacing intermediate objects."""
        *parents, leaf = check_path(path)
        node = self._root
        for seg in parents:
            child = node.get(seg)
            if not isinstance(child, dict):
                child = {}
                node[seg] = child
            node = child
        node[leaf] = value

    def delete(self, path: Sequence[str]) -> bool:
        """Remove the entry at path. Returns False if it was not there.

        Parents left empty by the removal are kept.
        """
        *parents, leaf = check_path(path)
        node: Any = self._root
        for seg in parents:
            node = node.get(seg) if isinstance(node, dict) else None
        if not isinstance(node, dict) or leaf not in node:
            return False
        del node[leaf]
        return True

    def as_dict(self) -> dict[str, Any]:
        return copy.deepcopy(self._root)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def serialize(self) -> bytes:
        """Canonical document bytes: sorted keys, 2-space indent, trailing newline."""
        try:
            text = json.dumps(self._root, indent=2, sort_keys=True, ensure_ascii=False)
            data = (text + "\n").encode("utf-8")
        except (TypeError, ValueError, RecursionError) as exc:
            msg = f"cannot serialize config tree: {exc}"
            raise SerializationError(msg) from exc
        if not data and self._root:
            msg = f"serializing a tree with {len(self._root)} keys produced no bytes"
            raise SerializationError(msg)
        return data
