"""Global and local binding environments.

``Bindings`` is the per-file global environment: interned names, a scoped
table of typed (and possibly defined) objects, a scoped table of proved
formula schemas, and the counter that mints fresh local ids.

``LocalBindings`` tracks the binders currently open while a quantifier or
schema is being parsed. Every open binder is represented by a
``BinderGuard`` token which the matching close operation must hand back, in
strict LIFO order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .errors import (
    BinderContractError,
    BindingExists,
    FileLocation,
    NoBinding,
    RLangError,
)
from .interning import IdTable
from .result import Err, Ok, Result
from .scoped import ScopedMap
from .terms import FormulaSchema, MetaValue
from .types import MetaType

logger = logging.getLogger(__name__)


class _LocalCounter:
    """Monotonic source of local ids, shared by every scope of one file."""

    def __init__(self) -> None:
        self.next = 0

    def mint(self) -> int:
        ident = self.next
        self.next += 1
        return ident


Entry = tuple[MetaType, MetaValue | None]


# ---------------------------------------------------------------------------
# Global bindings
# ---------------------------------------------------------------------------


class Bindings:
    def __init__(
        self,
        *,
        _ids: IdTable | None = None,
        _counter: _LocalCounter | None = None,
        _values: ScopedMap[int, Entry] | None = None,
        _theorems: ScopedMap[int, FormulaSchema] | None = None,
    ) -> None:
        self._ids = _ids if _ids is not None else IdTable()
        self._counter = _counter if _counter is not None else _LocalCounter()
        self._values: ScopedMap[int, Entry] = (
            _values if _values is not None else ScopedMap()
        )
        self._theorems: ScopedMap[int, FormulaSchema] = (
            _theorems if _theorems is not None else ScopedMap()
        )

    # -- identifiers --------------------------------------------------------

    def get_id(self, name: str) -> int:
        return self._ids.get_id(name)

    def get_id_nomake(self, name: str) -> int | None:
        return self._ids.get_id_nomake(name)

    def get_name(self, ident: int) -> str | None:
        return self._ids.get_name(ident)

    def display_name(self, ident: int) -> str:
        name = self._ids.get_name(ident)
        return name if name is not None else f"${ident}"

    def new_local(self) -> int:
        return self._counter.mint()

    # -- scopes -------------------------------------------------------------

    def new_child(self) -> Bindings:
        """A nested scope sharing this file's interner and local counter."""
        child = Bindings(
            _ids=self._ids,
            _counter=self._counter,
            _values=self._values.new_child(),
            _theorems=self._theorems.new_child(),
        )
        logger.debug("Entered global scope at depth %d", child.depth)
        return child

    def parent(self) -> Bindings:
        """Drop the innermost scope. Raises ``ScopeError`` on the base scope."""
        parent = Bindings(
            _ids=self._ids,
            _counter=self._counter,
            _values=self._values.parent(),
            _theorems=self._theorems.parent(),
        )
        logger.debug("Left global scope at depth %d", self.depth)
        return parent

    @property
    def depth(self) -> int:
        return self._values.depth

    def is_empty(self) -> bool:
        return self._values.is_empty() and self._theorems.is_empty()

    # -- lookups ------------------------------------------------------------

    def get_type(self, ident: int) -> MetaType | None:
        entry = self._values.get(ident)
        return entry[0] if entry is not None else None

    def get_value(self, ident: int) -> MetaValue | None:
        entry = self._values.get(ident)
        return entry[1] if entry is not None else None

    def get_type_value(self, ident: int) -> Entry | None:
        return self._values.get(ident)

    def get_theorem(self, ident: int) -> FormulaSchema | None:
        return self._theorems.get(ident)

    def theorems(self) -> dict[str, FormulaSchema]:
        """All theorems visible from this scope, keyed by name, inner first."""
        return {
            self.display_name(ident): schema
            for ident, schema in self._theorems.items()
        }

    # -- inserts ------------------------------------------------------------

    def _exists(self, ident: int, location: FileLocation) -> Err[RLangError]:
        return Err(RLangError(BindingExists(self.display_name(ident)), location))

    def insert_object_noval(
        self, ident: int, mtype: MetaType, location: FileLocation
    ) -> Result[int, RLangError]:
        """Declare ``ident`` without a value."""
        if self._values.get_local(ident) is not None:
            return self._exists(ident, location)
        self._values.insert(ident, (mtype, None))
        logger.debug("Declared %s", self.display_name(ident))
        return Ok(ident)

    def insert_object(
        self,
        ident: int,
        mtype: MetaType,
        mval: MetaValue,
        location: FileLocation,
    ) -> Result[int, RLangError]:
        """Bind ``ident`` to a typed value."""
        if self._values.get_local(ident) is not None:
            return self._exists(ident, location)
        self._values.insert(ident, (mtype, mval))
        logger.debug("Defined %s", self.display_name(ident))
        return Ok(ident)

    def insert_object_anytype(
        self,
        ident: int,
        mtype: MetaType,
        mval: MetaValue,
        location: FileLocation,
    ) -> Result[int, RLangError]:
        """Define a name previously declared (without value) in this scope.

        The new meta-type may differ from the declared one.
        """
        match self._values.get_local(ident):
            case (_, None):
                self._values.insert(ident, (mtype, mval))
                logger.debug("Defined previously declared %s", self.display_name(ident))
                return Ok(ident)
            case None:
                return Err(RLangError(NoBinding(self.display_name(ident)), location))
            case _:
                return self._exists(ident, location)

    def insert_theorem(
        self, ident: int, stmt: FormulaSchema, location: FileLocation
    ) -> Result[int, RLangError]:
        if self._theorems.get_local(ident) is not None:
            return self._exists(ident, location)
        self._theorems.insert(ident, stmt)
        logger.debug("Recorded theorem %s", self.display_name(ident))
        return Ok(ident)


# ---------------------------------------------------------------------------
# Local bindings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BinderGuard:
    """Token for one open binder; hand it back to close that binder."""

    global_id: int
    local_id: int
    mtype: MetaType
    location: FileLocation


class LocalBindings:
    """The binders open around the construct currently being parsed."""

    def __init__(self) -> None:
        self._glob_to_loc: dict[int, int] = {}
        self._loc_to_glob: dict[int, int] = {}
        self._local_types: dict[int, MetaType] = {}
        self._open: list[BinderGuard] = []

    def is_empty(self) -> bool:
        return not self._glob_to_loc

    def __len__(self) -> int:
        return len(self._open)

    def get_local(self, ident: int) -> int | None:
        return self._glob_to_loc.get(ident)

    def get_global(self, local_id: int) -> int | None:
        return self._loc_to_glob.get(local_id)

    def get_type(self, local_id: int) -> MetaType | None:
        return self._local_types.get(local_id)

    def insert(
        self,
        ident: int,
        local_id: int,
        mtype: MetaType,
        location: FileLocation,
    ) -> BinderGuard:
        if ident in self._glob_to_loc:
            raise BinderContractError(
                f"global id {ident} is already bound to local #{self._glob_to_loc[ident]}"
            )
        self._glob_to_loc[ident] = local_id
        self._loc_to_glob[local_id] = ident
        self._local_types[local_id] = mtype
        guard = BinderGuard(ident, local_id, mtype, location)
        self._open.append(guard)
        logger.debug("Opened binder #%d for global id %d", local_id, ident)
        return guard

    def remove(self, guard: BinderGuard) -> MetaType:
        """Close the innermost open binder, which must be ``guard``."""
        if guard.local_id not in self._loc_to_glob:
            raise BinderContractError(f"local #{guard.local_id} is not bound")
        if not self._open or self._open[-1] != guard:
            raise BinderContractError(
                f"local #{guard.local_id} closed while "
                f"#{self._open[-1].local_id} is the innermost open binder"
            )
        self._open.pop()
        ident = self._loc_to_glob.pop(guard.local_id)
        del self._glob_to_loc[ident]
        logger.debug("Closed binder #%d", guard.local_id)
        return self._local_types.pop(guard.local_id)

    def release(self, guard: BinderGuard) -> None:
        """Close ``guard`` without building anything, e.g. after a parse error."""
        self.remove(guard)

    def unwind(self) -> None:
        """Close every open binder, innermost first."""
        while self._open:
            self.remove(self._open[-1])
