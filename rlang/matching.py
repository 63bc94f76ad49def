"""Alpha-equivalence of terms, formulas and formula schemas.

Two expressions match when they have the same shape, the same global
identifiers in the same places, and their local identifiers correspond
one-to-one. The correspondence is kept in two association maps (left to
right and right to left) threaded through the recursive descent:

- a free local pair ``i <-> j`` is recorded the first time it is seen and
  must be respected everywhere afterwards
- a binder pair is associated only while its bodies are compared, then the
  previous association (if any) is restored

Single pass, no backtracking.
"""

from __future__ import annotations

import logging

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

logger = logging.getLogger(__name__)

Expr = Term | Formula | FormulaSchema
Assoc = dict[int, int]


def matches(
    a: Expr,
    b: Expr,
    assoc_ab: Assoc | None = None,
    assoc_ba: Assoc | None = None,
) -> bool:
    """True iff ``a`` and ``b`` are equal up to renaming of local ids.

    Pass the association maps explicitly to carry a correspondence across
    several calls; they are extended with every free local pair matched.
    """
    if assoc_ab is None:
        assoc_ab = {}
    if assoc_ba is None:
        assoc_ba = {}
    result = _match_expr(a, b, assoc_ab, assoc_ba)
    logger.debug("matches(%r, %r) -> %s", a, b, result)
    return result


def _match_expr(a: Expr, b: Expr, ab: Assoc, ba: Assoc) -> bool:
    match a:
        case Symbol() | TermApp():
            return _match_term(a, b, ab, ba)
        case SchemaFormula() | Schema():
            return _match_schema(a, b, ab, ba)
        case _:
            return _match_formula(a, b, ab, ba)


# ---------------------------------------------------------------------------
# Identifiers and binder associations
# ---------------------------------------------------------------------------


def _match_local(i: int, j: int, ab: Assoc, ba: Assoc) -> bool:
    if i not in ab and j not in ba:
        ab[i] = j
        ba[j] = i
        return True
    return ab.get(i) == j and ba.get(j) == i


def _match_ident(a: Ident, b: Ident, ab: Assoc, ba: Assoc) -> bool:
    match (a, b):
        case (Global(i), Global(j)):
            return i == j
        case (Local(i), Local(j)):
            return _match_local(i, j, ab, ba)
        case _:
            return False


def _bind(i: int, j: int, ab: Assoc, ba: Assoc) -> tuple[int | None, int | None]:
    saved = (ab.get(i), ba.get(j))
    ab[i] = j
    ba[j] = i
    return saved


def _unbind(
    i: int, j: int, saved: tuple[int | None, int | None], ab: Assoc, ba: Assoc
) -> None:
    prev_ab, prev_ba = saved
    if prev_ab is None:
        del ab[i]
    else:
        ab[i] = prev_ab
    if prev_ba is None:
        del ba[j]
    else:
        ba[j] = prev_ba


# ---------------------------------------------------------------------------
# Types
# ---------------------------------------------------------------------------


def _match_itype(a: InternalType, b: InternalType, ab: Assoc, ba: Assoc) -> bool:
    match (a, b):
        case (Named(x), Named(y)):
            return _match_ident(x, y, ab, ba)
        case (Func(a_arg, a_ret), Func(b_arg, b_ret)):
            return _match_itype(a_arg, b_arg, ab, ba) and _match_itype(a_ret, b_ret, ab, ba)
        case _:
            return False


def _match_mtype(a: MetaType, b: MetaType, ab: Assoc, ba: Assoc) -> bool:
    match (a, b):
        case (MType(), MType()):
            return True
        case (MTerm(x), MTerm(y)):
            return _match_itype(x, y, ab, ba)
        case (MFormula(xs), MFormula(ys)):
            return len(xs) == len(ys) and all(
                _match_itype(x, y, ab, ba) for x, y in zip(xs, ys)
            )
        case (MSchema(xs, x_ret), MSchema(ys, y_ret)):
            return (
                len(xs) == len(ys)
                and all(_match_mtype(x, y, ab, ba) for x, y in zip(xs, ys))
                and _match_mtype(x_ret, y_ret, ab, ba)
            )
        case _:
            return False


# ---------------------------------------------------------------------------
# Expressions
# ---------------------------------------------------------------------------


def _match_term(a: Term, b: Expr, ab: Assoc, ba: Assoc) -> bool:
    match (a, b):
        case (Symbol(x), Symbol(y)):
            return _match_ident(x, y, ab, ba)
        case (TermApp(a_func, a_arg), TermApp(b_func, b_arg)):
            return _match_term(a_func, b_func, ab, ba) and _match_term(a_arg, b_arg, ab, ba)
        case _:
            return False


def _match_formula(a: Formula, b: Expr, ab: Assoc, ba: Assoc) -> bool:
    match (a, b):
        case (Falsum(), Falsum()):
            return True
        case (Relation(x), Relation(y)):
            return _match_ident(x, y, ab, ba)
        case (FormulaApp(a_pred, a_arg), FormulaApp(b_pred, b_arg)):
            return _match_formula(a_pred, b_pred, ab, ba) and _match_term(
                a_arg, b_arg, ab, ba
            )
        case (Implication(a_lhs, a_rhs), Implication(b_lhs, b_rhs)):
            return _match_formula(a_lhs, b_lhs, ab, ba) and _match_formula(
                a_rhs, b_rhs, ab, ba
            )
        case (UniversalQ(i, a_type, a_body), UniversalQ(j, b_type, b_body)):
            if not _match_itype(a_type, b_type, ab, ba):
                return False
            saved = _bind(i, j, ab, ba)
            try:
                return _match_formula(a_body, b_body, ab, ba)
            finally:
                _unbind(i, j, saved, ab, ba)
        case _:
            return False


def _match_schema(a: FormulaSchema, b: Expr, ab: Assoc, ba: Assoc) -> bool:
    match (a, b):
        case (SchemaFormula(x), SchemaFormula(y)):
            return _match_formula(x, y, ab, ba)
        case (Schema(i, a_mtype, a_body), Schema(j, b_mtype, b_body)):
            if not _match_mtype(a_mtype, b_mtype, ab, ba):
                return False
            saved = _bind(i, j, ab, ba)
            try:
                return _match_schema(a_body, b_body, ab, ba)
            finally:
                _unbind(i, j, saved, ab, ba)
        case _:
            return False
