"""Bidirectional name <-> integer table for global identifiers."""

from __future__ import annotations

import logging

from .errors import ScopeError

logger = logging.getLogger(__name__)


class IdTable:
    """Interns names to consecutive integer ids starting at 0.

    Ids are only ever reclaimed in last-minted-first order: ``remove`` of any
    other id raises ``ScopeError`` instead of silently letting the counter
    collide with a live id.
    """

    def __init__(self) -> None:
        self._next_id = 0
        self._name_to_id: dict[str, int] = {}
        self._id_to_name: dict[int, str] = {}

    def __len__(self) -> int:
        return len(self._name_to_id)

    def __contains__(self, name: object) -> bool:
        return name in self._name_to_id

    def get_id(self, name: str) -> int:
        """Return the id of ``name``, minting the next one if it is new."""
        existing = self._name_to_id.get(name)
        if existing is not None:
            return existing
        ident = self._next_id
        self._name_to_id[name] = ident
        self._id_to_name[ident] = name
        self._next_id += 1
        logger.debug("Interned %r as %d", name, ident)
        return ident

    def get_id_nomake(self, name: str) -> int | None:
        return self._name_to_id.get(name)

    def get_name(self, ident: int) -> str | None:
        return self._id_to_name.get(ident)

    def remove(self, ident: int) -> str:
        """Reclaim the most recently minted id and return its name."""
        if ident not in self._id_to_name:
            raise ScopeError(f"Cannot remove id {ident}: not interned")
        if ident != self._next_id - 1:
            raise ScopeError(
                f"Cannot remove id {ident}: only the last minted id "
                f"({self._next_id - 1}) may be reclaimed"
            )
        name = self._id_to_name.pop(ident)
        del self._name_to_id[name]
        self._next_id -= 1
        return name
