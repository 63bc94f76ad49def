"""A stack of maps with innermost-write, outward-read lookup."""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from typing import Generic, TypeVar

from .errors import ScopeError

K = TypeVar("K", bound=Hashable)
V = TypeVar("V")


class ScopedMap(Generic[K, V]):
    """A base map, or a child map layered over a parent.

    ``insert`` only ever writes the innermost level, so a child shadows but
    never mutates its ancestors. ``new_child`` and ``parent`` return new
    handles; the parent handle is left untouched by anything done in the
    child.
    """

    def __init__(self, parent: ScopedMap[K, V] | None = None) -> None:
        self._map: dict[K, V] = {}
        self._parent = parent

    def new_child(self) -> ScopedMap[K, V]:
        return ScopedMap(self)

    def parent(self) -> ScopedMap[K, V]:
        if self._parent is None:
            raise ScopeError("cannot take parent of base map")
        return self._parent

    @property
    def is_base(self) -> bool:
        return self._parent is None

    @property
    def depth(self) -> int:
        return 0 if self._parent is None else self._parent.depth + 1

    def is_empty(self) -> bool:
        if self._map:
            return False
        return self._parent is None or self._parent.is_empty()

    def get(self, key: K) -> V | None:
        scope: ScopedMap[K, V] | None = self
        while scope is not None:
            if key in scope._map:
                return scope._map[key]
            scope = scope._parent
        return None

    def get_local(self, key: K) -> V | None:
        """Look ``key`` up in the innermost level only."""
        return self._map.get(key)

    def items(self) -> Iterator[tuple[K, V]]:
        """Visible pairs; a shadowed key is yielded once, from its innermost level."""
        seen: set[K] = set()
        scope: ScopedMap[K, V] | None = self
        while scope is not None:
            for key, value in scope._map.items():
                if key not in seen:
                    seen.add(key)
                    yield key, value
            scope = scope._parent

    def insert(self, key: K, value: V) -> V | None:
        """Write ``key`` in the innermost level, returning what it replaced there."""
        previous = self._map.get(key)
        self._map[key] = value
        return previous
