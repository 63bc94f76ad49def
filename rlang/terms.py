"""Terms, formulas and formula schemas.

A term is built from:
  - Symbols (a local or global identifier of ``Term`` meta-type)
  - Applications ``f a`` (one argument at a time)

A formula is built from:
  - ``false``
  - Relations (an identifier of ``Formula`` meta-type)
  - Applications of a relation to one more term argument
  - Implications between closed formulas
  - Universal quantification over a term variable of a given internal type

A formula schema is a formula preceded by zero or more meta-level binders.

Trees are immutable once built. Binder ids are ``Local`` ids minted fresh by
the global bindings, so no two open binders ever share an id.
"""

from __future__ import annotations

from dataclasses import dataclass

from .types import Ident, InternalType, MetaType

# ---------------------------------------------------------------------------
# Terms
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Symbol:
    """A variable or constant.

    Example: a       => Symbol(Global(3))
    Example: x (∀x)  => Symbol(Local(0))
    """

    ident: Ident


@dataclass(frozen=True)
class TermApp:
    """Application of a function-typed term to an argument.

    Example: f a  => TermApp(Symbol(Global(f)), Symbol(Global(a)))
    """

    func: Term
    arg: Term


Term = Symbol | TermApp


# ---------------------------------------------------------------------------
# Formulas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Falsum:
    """The constant false formula."""


@dataclass(frozen=True)
class Relation:
    """A relation symbol, possibly still expecting arguments."""

    ident: Ident


@dataclass(frozen=True)
class FormulaApp:
    """Partial application of a relation to one more term.

    Example: P a b  => FormulaApp(FormulaApp(Relation(P), a), b)
    """

    pred: Formula
    arg: Term


@dataclass(frozen=True)
class Implication:
    """Example: P a -> Q a"""

    lhs: Formula
    rhs: Formula


@dataclass(frozen=True)
class UniversalQ:
    """Universal quantification over one term variable.

    Example: ∀ x : o • P x  => UniversalQ(0, Named(Global(o)), FormulaApp(Relation(P), Symbol(Local(0))))
    """

    local_id: int
    bound_type: InternalType
    body: Formula


Formula = Falsum | Relation | FormulaApp | Implication | UniversalQ


def negate(formula: Formula) -> Formula:
    """¬φ is encoded as φ -> false."""
    return Implication(formula, Falsum())


def contrapositive(formula: Formula) -> Formula:
    match formula:
        case Implication(lhs, rhs):
            return Implication(negate(rhs), negate(lhs))
        case _:
            raise ValueError(
                f"Cannot take contrapositive of {formula!r}: not an implication"
            )


# ---------------------------------------------------------------------------
# Formula schemas
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SchemaFormula:
    """The base case: a plain formula with no meta-level binders."""

    formula: Formula


@dataclass(frozen=True)
class Schema:
    """A meta-level binder over a variable of any meta-type.

    Example: schema Q : Formula o • ∀ x : o • Q x -> Q x
    """

    local_id: int
    mtype: MetaType
    body: FormulaSchema


FormulaSchema = SchemaFormula | Schema


# ---------------------------------------------------------------------------
# Meta-values: the denotation of a defined binding
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TypeValue:
    itype: InternalType


@dataclass(frozen=True)
class TermValue:
    term: Term


@dataclass(frozen=True)
class FormulaValue:
    formula: Formula


@dataclass(frozen=True)
class SchemaValue:
    schema: FormulaSchema


MetaValue = TypeValue | TermValue | FormulaValue | SchemaValue
