"""Substitution of a term for a free local variable.

Local ids are minted fresh for every binder and never reused while that
binder is open, so a term being substituted can never be captured by a
binder inside the target. No renaming step is needed; the only check is
that a binder for the same id shadows the variable.
"""

from __future__ import annotations

from typing import overload

from .terms import (
    Falsum,
    Formula,
    FormulaApp,
    Implication,
    Relation,
    Symbol,
    Term,
    TermApp,
    UniversalQ,
)
from .types import Local


def substitute_term(expr: Term, var: int, term: Term) -> Term:
    match expr:
        case Symbol(Local(i)) if i == var:
            return term
        case Symbol():
            return expr
        case TermApp(func, arg):
            return TermApp(substitute_term(func, var, term), substitute_term(arg, var, term))


def substitute_formula(expr: Formula, var: int, term: Term) -> Formula:
    match expr:
        case Falsum() | Relation():
            return expr
        case FormulaApp(pred, arg):
            return FormulaApp(
                substitute_formula(pred, var, term), substitute_term(arg, var, term)
            )
        case Implication(lhs, rhs):
            return Implication(
                substitute_formula(lhs, var, term), substitute_formula(rhs, var, term)
            )
        case UniversalQ(local_id, _, _) if local_id == var:
            return expr
        case UniversalQ(local_id, bound_type, body):
            return UniversalQ(local_id, bound_type, substitute_formula(body, var, term))


@overload
def substitute(expr: Term, var: int, term: Term) -> Term: ...
@overload
def substitute(expr: Formula, var: int, term: Term) -> Formula: ...


def substitute(expr: Term | Formula, var: int, term: Term) -> Term | Formula:
    """Replace every free ``Local(var)`` in ``expr`` with ``term``."""
    if isinstance(expr, (Symbol, TermApp)):
        return substitute_term(expr, var, term)
    return substitute_formula(expr, var, term)


def instantiate(formula: Formula, term: Term) -> Formula:
    """Strip one universal quantifier, substituting ``term`` for its variable."""
    match formula:
        case UniversalQ(var, _, body):
            return substitute_formula(body, var, term)
        case _:
            raise ValueError(
                f"Cannot instantiate {formula!r}: not a universal quantification"
            )
