"""Human-readable renderings of types and expressions.

Global identifiers are resolved back to their source names through the
global bindings; local identifiers have no source name of their own once
their binder is closed and are shown as ``#n``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

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
    MSchema,
    MTerm,
    MType,
    Named,
)

if TYPE_CHECKING:
    from .bindings import Bindings


def show_ident(ident: Ident, globals_: Bindings) -> str:
    match ident:
        case Global(i):
            name = globals_.get_name(i)
            return name if name is not None else f"${i}"
        case Local(i):
            return f"#{i}"


def show_itype(itype: InternalType, globals_: Bindings) -> str:
    match itype:
        case Named(ident):
            return show_ident(ident, globals_)
        case Func(arg, ret):
            return f"({show_itype(arg, globals_)} -> {show_itype(ret, globals_)})"


def show_mtype(mtype: MetaType, globals_: Bindings) -> str:
    match mtype:
        case MType():
            return "Type"
        case MTerm(itype):
            return f"(Term {show_itype(itype, globals_)})"
        case MFormula(arg_types):
            # Stored end-first; shown in source order.
            args = "".join(f" {show_itype(t, globals_)}" for t in reversed(arg_types))
            return f"(Formula{args})"
        case MSchema(arg_types, ret):
            args = "".join(f" {show_mtype(m, globals_)}" for m in reversed(arg_types))
            return f"(Schema{args} to {show_mtype(ret, globals_)})"


def show_term(term: Term, globals_: Bindings) -> str:
    match term:
        case Symbol(ident):
            return show_ident(ident, globals_)
        case TermApp(func, arg):
            rendered = show_term(arg, globals_)
            if isinstance(arg, TermApp):
                rendered = f"({rendered})"
            return f"{show_term(func, globals_)} {rendered}"


def show_formula(formula: Formula, globals_: Bindings) -> str:
    match formula:
        case Falsum():
            return "false"
        case Relation(ident):
            return show_ident(ident, globals_)
        case FormulaApp(pred, arg):
            rendered = show_term(arg, globals_)
            if isinstance(arg, TermApp):
                rendered = f"({rendered})"
            return f"{show_formula(pred, globals_)} {rendered}"
        case Implication(lhs, Falsum()):
            return f"~{_wrap(lhs, globals_)}"
        case Implication(lhs, rhs):
            return f"{_wrap(lhs, globals_)} -> {show_formula(rhs, globals_)}"
        case UniversalQ(local_id, bound_type, body):
            return (
                f"forall #{local_id} : {show_itype(bound_type, globals_)}, "
                f"{show_formula(body, globals_)}"
            )


def _wrap(formula: Formula, globals_: Bindings) -> str:
    rendered = show_formula(formula, globals_)
    if isinstance(formula, (Implication, UniversalQ)):
        return f"({rendered})"
    return rendered


def show_schema(schema: FormulaSchema, globals_: Bindings) -> str:
    match schema:
        case SchemaFormula(formula):
            return show_formula(formula, globals_)
        case Schema(local_id, mtype, body):
            return (
                f"schema #{local_id} : {show_mtype(mtype, globals_)}, "
                f"{show_schema(body, globals_)}"
            )
