"""Type-checked, incremental construction of terms, formulas and schemas.

The parser calls one builder operation per syntactic construct. Each
operation checks the construct against the bindings in scope and returns
either a builder carrying the partial expression (plus its type state) or
an ``RLangError``.

Binder pairing: ``quantifier_prep`` / ``schema_prep`` open a binder and
return a ``BinderGuard``; ``universal_q`` / ``schema`` take that guard back
to close it. Closing anything but the innermost open binder raises
``BinderContractError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .bindings import BinderGuard, Bindings, LocalBindings
from .errors import (
    BindingExists,
    FileLocation,
    ITypeMismatch,
    MTypeMismatch,
    NoBinding,
    RLangError,
    UnboundImplication,
)
from .pretty import show_itype, show_mtype
from .result import Err, Ok, Result
from .terms import (
    Falsum,
    Formula,
    FormulaApp,
    FormulaSchema,
    Implication,
    Relation,
    Schema,
    SchemaFormula,
    Symbol,
    Term,
    TermApp,
    TypeValue,
    UniversalQ,
)
from .types import (
    Func,
    Global,
    Ident,
    InternalType,
    Local,
    MetaType,
    MFormula,
    MTerm,
    MType,
    Named,
)

logger = logging.getLogger(__name__)


def _resolve(
    ident: int, locals_: LocalBindings, globals_: Bindings
) -> tuple[Ident, MetaType] | None:
    """Resolve a source-level id, innermost local binder first."""
    local_id = locals_.get_local(ident)
    if local_id is not None:
        mtype = locals_.get_type(local_id)
        assert mtype is not None, f"local #{local_id} has no recorded meta-type"
        return Local(local_id), mtype
    mtype = globals_.get_type(ident)
    if mtype is not None:
        return Global(ident), mtype
    return None


def named_type(
    ident: int,
    locals_: LocalBindings,
    globals_: Bindings,
    location: FileLocation,
) -> Result[InternalType, RLangError]:
    """Resolve a type name; a schema binder of meta-type ``Type`` shadows globals.

    A global defined with a type value (``type o;`` or ``def T : Type = ...;``)
    unfolds to that value. A type declared with ``let`` stays opaque.
    """
    match _resolve(ident, locals_, globals_):
        case None:
            return Err(RLangError(NoBinding(globals_.display_name(ident)), location))
        case (Global(i) as resolved, MType()):
            match globals_.get_value(i):
                case TypeValue(itype):
                    return Ok(itype)
                case _:
                    return Ok(Named(resolved))
        case (resolved, MType()):
            return Ok(Named(resolved))
        case (_, mtype):
            return Err(
                RLangError(
                    MTypeMismatch(found=show_mtype(mtype, globals_), expected="Type"),
                    location,
                )
            )


def _open_binder(
    ident: int,
    mtype: MetaType,
    locals_: LocalBindings,
    globals_: Bindings,
    location: FileLocation,
) -> Result[BinderGuard, RLangError]:
    if locals_.get_local(ident) is not None:
        return Err(RLangError(BindingExists(globals_.display_name(ident)), location))
    return Ok(locals_.insert(ident, globals_.new_local(), mtype, location))


# ---------------------------------------------------------------------------
# Terms
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TermBuilder:
    itype: InternalType
    value: Term
    location: FileLocation

    @staticmethod
    def symbol(
        ident: int,
        locals_: LocalBindings,
        globals_: Bindings,
        location: FileLocation,
    ) -> Result[TermBuilder, RLangError]:
        match _resolve(ident, locals_, globals_):
            case None:
                return Err(RLangError(NoBinding(globals_.display_name(ident)), location))
            case (resolved, MTerm(itype)):
                return Ok(TermBuilder(itype, Symbol(resolved), location))
            case (_, mtype):
                return Err(
                    RLangError(
                        MTypeMismatch(found=show_mtype(mtype, globals_), expected="Term _"),
                        location,
                    )
                )

    @staticmethod
    def application(
        function: TermBuilder, argument: TermBuilder, globals_: Bindings
    ) -> Result[TermBuilder, RLangError]:
        match function.itype:
            case Func(arg_type, ret_type) if argument.itype == arg_type:
                return Ok(
                    TermBuilder(
                        ret_type,
                        TermApp(function.value, argument.value),
                        function.location,
                    )
                )
            case Func(arg_type, _):
                return Err(
                    RLangError(
                        ITypeMismatch(
                            found=show_itype(argument.itype, globals_),
                            expected=show_itype(arg_type, globals_),
                        ),
                        argument.location,
                    )
                )
            case _:
                return Err(
                    RLangError(
                        ITypeMismatch(
                            found=show_itype(function.itype, globals_),
                            expected=f"{show_itype(argument.itype, globals_)} -> _",
                        ),
                        function.location,
                    )
                )


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FormulaBuilder:
    """A formula under construction.

    ``arg_types`` lists the term arguments the formula still expects, last
    element first. The formula is a wff once it is empty.
    """

    arg_types: tuple[InternalType, ...]
    value: Formula
    location: FileLocation

    @property
    def is_wff(self) -> bool:
        return not self.arg_types

    @staticmethod
    def falsum(location: FileLocation) -> Result[FormulaBuilder, RLangError]:
        return Ok(FormulaBuilder((), Falsum(), location))

    @staticmethod
    def relation(
        ident: int,
        locals_: LocalBindings,
        globals_: Bindings,
        location: FileLocation,
    ) -> Result[FormulaBuilder, RLangError]:
        match _resolve(ident, locals_, globals_):
            case None:
                return Err(RLangError(NoBinding(globals_.display_name(ident)), location))
            case (resolved, MFormula(arg_types)):
                return Ok(FormulaBuilder(arg_types, Relation(resolved), location))
            case (_, mtype):
                return Err(
                    RLangError(
                        MTypeMismatch(
                            found=show_mtype(mtype, globals_), expected="Formula _*"
                        ),
                        location,
                    )
                )

    @staticmethod
    def application(
        predicate: FormulaBuilder, term: TermBuilder, globals_: Bindings
    ) -> Result[FormulaBuilder, RLangError]:
        """Apply ``predicate`` to its next outstanding argument."""
        if predicate.is_wff:
            return Err(
                RLangError(
                    MTypeMismatch(
                        found=show_mtype(MFormula(()), globals_),
                        expected=f"(Formula {show_itype(term.itype, globals_)} _)",
                    ),
                    predicate.location,
                )
            )
        *remaining, expected = predicate.arg_types
        if term.itype != expected:
            return Err(
                RLangError(
                    ITypeMismatch(
                        found=show_itype(term.itype, globals_),
                        expected=show_itype(expected, globals_),
                    ),
                    term.location,
                )
            )
        return Ok(
            FormulaBuilder(
                tuple(remaining),
                FormulaApp(predicate.value, term.value),
                predicate.location,
            )
        )

    @staticmethod
    def implication(
        lhs: FormulaBuilder, rhs: FormulaBuilder
    ) -> Result[FormulaBuilder, RLangError]:
        if not (lhs.is_wff and rhs.is_wff):
            return Err(RLangError(UnboundImplication(), lhs.location))
        return Ok(FormulaBuilder((), Implication(lhs.value, rhs.value), lhs.location))

    @staticmethod
    def negation(
        formula: FormulaBuilder, location: FileLocation
    ) -> Result[FormulaBuilder, RLangError]:
        """``~φ``, i.e. ``φ -> false``."""
        if not formula.is_wff:
            return Err(RLangError(UnboundImplication(), formula.location))
        return Ok(FormulaBuilder((), Implication(formula.value, Falsum()), location))

    @staticmethod
    def quantifier_prep(
        ident: int,
        itype: InternalType,
        locals_: LocalBindings,
        globals_: Bindings,
        location: FileLocation,
    ) -> Result[BinderGuard, RLangError]:
        """Open a term binder for ``ident`` before its body is parsed."""
        return _open_binder(ident, MTerm(itype), locals_, globals_, location)

    @staticmethod
    def universal_q(
        binder: BinderGuard,
        formula: FormulaBuilder,
        locals_: LocalBindings,
        location: FileLocation,
    ) -> Result[FormulaBuilder, RLangError]:
        """Close ``binder`` around ``formula``."""
        mtype = locals_.remove(binder)
        assert isinstance(mtype, MTerm), f"quantifier binder with meta-type {mtype!r}"
        logger.debug("Closed quantifier #%d", binder.local_id)
        return Ok(
            FormulaBuilder(
                formula.arg_types,
                UniversalQ(binder.local_id, mtype.itype, formula.value),
                location,
            )
        )


# ---------------------------------------------------------------------------
# Formula schemas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class FSchemaBuilder:
    """A formula schema under construction.

    ``marg_types`` collects the meta-types of the closed schema binders,
    innermost first. Nothing consumes it yet; it is kept for schema
    instantiation.
    """

    marg_types: tuple[MetaType, ...]
    iarg_types: tuple[InternalType, ...]
    value: FormulaSchema
    location: FileLocation

    @property
    def is_wff_schema(self) -> bool:
        return not self.iarg_types

    @staticmethod
    def formula(formula: FormulaBuilder) -> Result[FSchemaBuilder, RLangError]:
        return Ok(
            FSchemaBuilder(
                (), formula.arg_types, SchemaFormula(formula.value), formula.location
            )
        )

    @staticmethod
    def schema_prep(
        ident: int,
        mtype: MetaType,
        locals_: LocalBindings,
        globals_: Bindings,
        location: FileLocation,
    ) -> Result[BinderGuard, RLangError]:
        """Open a binder of any meta-type for ``ident``."""
        return _open_binder(ident, mtype, locals_, globals_, location)

    @staticmethod
    def schema(
        binder: BinderGuard,
        body: FSchemaBuilder,
        locals_: LocalBindings,
        location: FileLocation,
    ) -> Result[FSchemaBuilder, RLangError]:
        mtype = locals_.remove(binder)
        logger.debug("Closed schema binder #%d", binder.local_id)
        return Ok(
            FSchemaBuilder(
                body.marg_types + (mtype,),
                body.iarg_types,
                Schema(binder.local_id, mtype, body.value),
                location,
            )
        )
