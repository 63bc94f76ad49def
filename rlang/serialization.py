"""JSON serialization for identifiers, types and expression trees.

Every node serializes to a dict with a "type" discriminator field.
Round-trip: from_json(to_json(x)) == x for all x.
"""

from __future__ import annotations

import json
from typing import Any

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

Node = Ident | InternalType | MetaType | Term | Formula | FormulaSchema


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------


def to_json(node: Node) -> dict[str, Any]:
    match node:
        case Local(i):
            return {"type": "local", "id": i}
        case Global(i):
            return {"type": "global", "id": i}
        case Named(ident):
            return {"type": "named", "ident": to_json(ident)}
        case Func(arg, ret):
            return {"type": "func", "arg": to_json(arg), "ret": to_json(ret)}
        case MType():
            return {"type": "m_type"}
        case MTerm(itype):
            return {"type": "m_term", "itype": to_json(itype)}
        case MFormula(arg_types):
            return {"type": "m_formula", "arg_types": [to_json(t) for t in arg_types]}
        case MSchema(arg_types, ret):
            return {
                "type": "m_schema",
                "arg_types": [to_json(m) for m in arg_types],
                "ret": to_json(ret),
            }
        case Symbol(ident):
            return {"type": "symbol", "ident": to_json(ident)}
        case TermApp(func, arg):
            return {"type": "term_app", "func": to_json(func), "arg": to_json(arg)}
        case Falsum():
            return {"type": "false"}
        case Relation(ident):
            return {"type": "relation", "ident": to_json(ident)}
        case FormulaApp(pred, arg):
            return {"type": "formula_app", "pred": to_json(pred), "arg": to_json(arg)}
        case Implication(lhs, rhs):
            return {"type": "implication", "lhs": to_json(lhs), "rhs": to_json(rhs)}
        case UniversalQ(local_id, bound_type, body):
            return {
                "type": "forall",
                "local_id": local_id,
                "bound_type": to_json(bound_type),
                "body": to_json(body),
            }
        case SchemaFormula(formula):
            return {"type": "schema_formula", "formula": to_json(formula)}
        case Schema(local_id, mtype, body):
            return {
                "type": "schema",
                "local_id": local_id,
                "mtype": to_json(mtype),
                "body": to_json(body),
            }
    raise TypeError(f"Unknown node type: {type(node)}")


# ---------------------------------------------------------------------------
# Decoding
# ---------------------------------------------------------------------------


def from_json(d: dict[str, Any]) -> Node:
    t = d["type"]
    if t == "local":
        return Local(d["id"])
    elif t == "global":
        return Global(d["id"])
    elif t == "named":
        return Named(from_json(d["ident"]))  # type: ignore[arg-type]
    elif t == "func":
        return Func(from_json(d["arg"]), from_json(d["ret"]))  # type: ignore[arg-type]
    elif t == "m_type":
        return MType()
    elif t == "m_term":
        return MTerm(from_json(d["itype"]))  # type: ignore[arg-type]
    elif t == "m_formula":
        return MFormula(tuple(from_json(a) for a in d["arg_types"]))  # type: ignore[misc]
    elif t == "m_schema":
        return MSchema(
            tuple(from_json(a) for a in d["arg_types"]),  # type: ignore[misc]
            from_json(d["ret"]),  # type: ignore[arg-type]
        )
    elif t == "symbol":
        return Symbol(from_json(d["ident"]))  # type: ignore[arg-type]
    elif t == "term_app":
        return TermApp(from_json(d["func"]), from_json(d["arg"]))  # type: ignore[arg-type]
    elif t == "false":
        return Falsum()
    elif t == "relation":
        return Relation(from_json(d["ident"]))  # type: ignore[arg-type]
    elif t == "formula_app":
        return FormulaApp(from_json(d["pred"]), from_json(d["arg"]))  # type: ignore[arg-type]
    elif t == "implication":
        return Implication(from_json(d["lhs"]), from_json(d["rhs"]))  # type: ignore[arg-type]
    elif t == "forall":
        return UniversalQ(
            d["local_id"],
            from_json(d["bound_type"]),  # type: ignore[arg-type]
            from_json(d["body"]),  # type: ignore[arg-type]
        )
    elif t == "schema_formula":
        return SchemaFormula(from_json(d["formula"]))  # type: ignore[arg-type]
    elif t == "schema":
        return Schema(
            d["local_id"],
            from_json(d["mtype"]),  # type: ignore[arg-type]
            from_json(d["body"]),  # type: ignore[arg-type]
        )
    raise ValueError(f"Unknown node type: {t}")


def dumps(node: Node, indent: int | None = 2) -> str:
    return json.dumps(to_json(node), indent=indent)


def loads(s: str) -> Node:
    return from_json(json.loads(s))
