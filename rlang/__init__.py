"""rlang: the typed term/formula core of a small logic language."""

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
from .terms import (
    Falsum,
    Formula,
    FormulaApp,
    FormulaSchema,
    FormulaValue,
    Implication,
    MetaValue,
    Relation,
    Schema,
    SchemaFormula,
    SchemaValue,
    Symbol,
    Term,
    TermApp,
    TermValue,
    TypeValue,
    UniversalQ,
    contrapositive,
    negate,
)
from .errors import (
    BinderContractError,
    BindingExists,
    ContractViolation,
    FileLocation,
    FileOpenFailure,
    FileReadFailure,
    ITypeMismatch,
    MTypeMismatch,
    NoBinding,
    RLangError,
    ScopeError,
    UnboundImplication,
    UnboundTheorem,
    UnexpectedToken,
)
from .interning import IdTable
from .scoped import ScopedMap
from .bindings import BinderGuard, Bindings, LocalBindings
from .builders import FormulaBuilder, FSchemaBuilder, TermBuilder
from .substitution import instantiate, substitute
from .matching import matches
from .serialization import dumps, loads
from .result import Ok, Err, Result

__all__ = [
    # Types
    "Func", "Global", "Ident", "InternalType", "Local", "MetaType",
    "MFormula", "MSchema", "MTerm", "MType", "Named",
    # Terms
    "Falsum", "Formula", "FormulaApp", "FormulaSchema", "FormulaValue",
    "Implication", "MetaValue", "Relation", "Schema", "SchemaFormula",
    "SchemaValue", "Symbol", "Term", "TermApp", "TermValue", "TypeValue",
    "UniversalQ", "contrapositive", "negate",
    # Errors
    "BinderContractError", "BindingExists", "ContractViolation", "FileLocation",
    "FileOpenFailure", "FileReadFailure", "ITypeMismatch", "MTypeMismatch",
    "NoBinding", "RLangError", "ScopeError", "UnboundImplication",
    "UnboundTheorem", "UnexpectedToken",
    # Environment
    "IdTable", "ScopedMap", "BinderGuard", "Bindings", "LocalBindings",
    # Builders
    "FormulaBuilder", "FSchemaBuilder", "TermBuilder",
    # Algorithms
    "instantiate", "substitute", "matches",
    # Serialization
    "dumps", "loads",
    # Result
    "Ok", "Err", "Result",
]
