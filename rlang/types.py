"""Identifiers, internal types and meta-types.

The calculus has two levels:

- internal types classify terms (a named base type or an arrow ``a -> b``)
- meta-types classify bindings (a type name, a term of some internal type,
  an n-ary relation, or a schema over further meta-typed parameters)

Identifiers come in two flavours. ``Global`` ids are interned source names;
``Local`` ids are minted fresh for every quantifier or schema binder.
"""

from __future__ import annotations

from dataclasses import dataclass

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Local:
    """A bound variable introduced by a quantifier or schema binder."""

    id: int


@dataclass(frozen=True)
class Global:
    """A top-level name, interned through the identifier table."""

    id: int


Ident = Local | Global


# ---------------------------------------------------------------------------
# Internal (object-level) types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Named:
    """A base type, e.g. ``o`` or ``nat``."""

    ident: Ident


@dataclass(frozen=True)
class Func:
    """An arrow type ``arg -> ret``."""

    arg: InternalType
    ret: InternalType


InternalType = Named | Func


# ---------------------------------------------------------------------------
# Meta-types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MType:
    """The binding names a base type."""


@dataclass(frozen=True)
class MTerm:
    """The binding is a term of the given internal type."""

    itype: InternalType


@dataclass(frozen=True)
class MFormula:
    """The binding is a relation still expecting ``arg_types``.

    Arguments are consumed from the *end* of the tuple, so the first argument
    written in source is the last element. ``MFormula(())`` is a closed
    formula.
    """

    arg_types: tuple[InternalType, ...] = ()


@dataclass(frozen=True)
class MSchema:
    """The binding is a template over meta-typed parameters.

    ``arg_types`` follows the same end-first convention as ``MFormula``.
    """

    arg_types: tuple[MetaType, ...]
    ret: MetaType


MetaType = MType | MTerm | MFormula | MSchema
