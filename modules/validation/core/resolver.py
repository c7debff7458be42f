"""
Field path resolver.

Resolves schema keys such as "address.city", "items.*.name" or "items[0].sku"
against nested dicts and lists. Wildcards expand against the data as it is
at resolution time, so paths are re-resolved on every validation call.
"""

import copy
import re
from dataclasses import dataclass
from typing import Any, Iterator, List, Optional, Tuple

from modules.validation.core.base import MISSING

WILDCARD = "*"

_BRACKET_INDEX = re.compile(r"\[(\d+|\*)\]")


@dataclass(frozen=True)
class ResolvedField:
    """One concrete field instance produced from a schema key"""
    path: str
    value: Any
    pattern: str

    @property
    def exists(self) -> bool:
        return self.value is not MISSING


def split_path(path: str) -> List[str]:
    """
    Split a dotted path into segments; `a[0].b` is treated as `a.0.b`.

    Example:
        split_path("items[0].name") -> ["items", "0", "name"]
    """
    normalized = _BRACKET_INDEX.sub(r".\1", path)
    return [segment for segment in normalized.split(".") if segment != ""]


def _child(container: Any, segment: str) -> Any:
    if isinstance(container, dict):
        return container.get(segment, MISSING)
    if isinstance(container, (list, tuple)) and segment.isdigit():
        index = int(segment)
        if index < len(container):
            return container[index]
    return MISSING


def _children(container: Any) -> Iterator[Tuple[str, Any]]:
    if isinstance(container, dict):
        for key, value in container.items():
            yield str(key), value
    elif isinstance(container, (list, tuple)):
        for index, value in enumerate(container):
            yield str(index), value


class PathResolver:
    """
    Resolves field paths into concrete (path, value) pairs.

    Never raises on missing intermediate segments: an absent path resolves
    to MISSING.
    """

    def resolve(self, data: Any, pattern: str) -> List[ResolvedField]:
        """
        Expand a schema key against the data.

        Args:
            data: Full data object
            pattern: Schema key, possibly containing `*` segments

        Returns:
            One ResolvedField for a concrete key, or one per matching element
            for a wildcard key (possibly none)
        """
        segments = split_path(pattern)
        if WILDCARD not in segments:
            return [ResolvedField(".".join(segments), self.get(data, pattern), pattern)]

        resolved: List[ResolvedField] = []
        self._expand(data, segments, [], pattern, resolved)
        return resolved

    def _expand(
        self,
        current: Any,
        remaining: List[str],
        prefix: List[str],
        pattern: str,
        out: List[ResolvedField]
    ) -> None:
        if not remaining:
            out.append(ResolvedField(".".join(prefix), current, pattern))
            return

        segment, rest = remaining[0], remaining[1:]
        if segment == WILDCARD:
            for key, value in _children(current):
                self._expand(value, rest, prefix + [key], pattern, out)
            return

        value = MISSING if current is MISSING else _child(current, segment)
        self._expand(value, rest, prefix + [segment], pattern, out)

    def get(self, data: Any, path: str) -> Any:
        """
        Get the value at a concrete dotted path.

        Returns:
            The value, or MISSING if any segment is absent
        """
        current = data
        for segment in split_path(path):
            if current is MISSING:
                return MISSING
            current = _child(current, segment)
        return current

    def has(self, data: Any, path: str) -> bool:
        return self.get(data, path) is not MISSING

    def set(self, data: Any, path: str, value: Any) -> None:
        """
        Set a value at a concrete dotted path (modified in place).

        Missing containers are created as dicts, or lists when the next
        segment is an index.
        """
        segments = split_path(path)
        current = data
        for index, segment in enumerate(segments[:-1]):
            nxt = _child(current, segment)
            if nxt is MISSING or nxt is None:
                nxt = [] if segments[index + 1].isdigit() else {}
                self._assign(current, segment, nxt)
            current = nxt
        self._assign(current, segments[-1], value)

    @staticmethod
    def _assign(container: Any, segment: str, value: Any) -> None:
        if isinstance(container, list) and segment.isdigit():
            index = int(segment)
            while len(container) <= index:
                container.append(None)
            container[index] = value
        elif isinstance(container, dict):
            container[segment] = value

    def bind_wildcards(self, reference: str, pattern: str, concrete_path: str) -> str:
        """
        Replace `*` in a referenced path with the indices of the current instance.

        Example:
            bind_wildcards("items.*.type", "items.*.price", "items.2.price")
            -> "items.2.type"
        """
        ref_segments = split_path(reference)
        if WILDCARD not in ref_segments:
            return reference

        pattern_segments = split_path(pattern)
        concrete_segments = split_path(concrete_path)
        bound = [
            concrete_segments[i]
            for i, segment in enumerate(pattern_segments)
            if segment == WILDCARD and i < len(concrete_segments)
        ]

        result: List[str] = []
        for segment in ref_segments:
            if segment == WILDCARD and bound:
                result.append(bound.pop(0))
            else:
                result.append(segment)
        return ".".join(result)

    def child_keys(self, schema_keys: List[str], path: str, pattern: Optional[str] = None) -> List[str]:
        """
        Direct child names declared in a schema under `path` (or its pattern).

        Example:
            child_keys(["user", "user.name", "user.age"], "user") -> ["name", "age"]
        """
        prefixes = [split_path(path)]
        if pattern:
            prefixes.append(split_path(pattern))

        children: List[str] = []
        for key in schema_keys:
            key_segments = split_path(key)
            for prefix in prefixes:
                if len(key_segments) == len(prefix) + 1 and _matches(prefix, key_segments[:-1]):
                    if key_segments[-1] not in children:
                        children.append(key_segments[-1])
        return children


def _matches(concrete: List[str], pattern: List[str]) -> bool:
    return all(p == WILDCARD or p == c for c, p in zip(concrete, pattern))


def clone_data(data: Any) -> Any:
    """Deep copy used for the (possibly coerced) data returned to callers"""
    return copy.deepcopy(data)
