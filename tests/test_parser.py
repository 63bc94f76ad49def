"""Tests for rlang/parser.py: tokenizer, statements and error reporting."""

import pytest

from rlang import (
    BindingExists,
    Bindings,
    Err,
    Falsum,
    FileLocation,
    FormulaApp,
    Func,
    Global,
    Implication,
    ITypeMismatch,
    Local,
    LocalBindings,
    MFormula,
    MSchema,
    MTerm,
    MType,
    MTypeMismatch,
    Named,
    NoBinding,
    Ok,
    Relation,
    Schema,
    SchemaFormula,
    SchemaValue,
    Symbol,
    TermApp,
    TermValue,
    UnboundImplication,
    UnboundTheorem,
    UnexpectedToken,
    UniversalQ,
    matches,
)
from rlang.parser import parse_source, tokenize
from rlang.source import SourceInfo


def parse(text: str) -> tuple[Bindings | None, object, LocalBindings]:
    """Parse ``text``; returns (bindings, error, locals)."""
    source = SourceInfo.from_text("t.rl", text)
    locals_ = LocalBindings()
    match parse_source(source, Bindings(), locals_):
        case Ok(bindings):
            return bindings, None, locals_
        case Err(error):
            return None, error, locals_


def parse_ok(text: str) -> Bindings:
    bindings, error, locals_ = parse(text)
    assert error is None, str(error)
    assert locals_.is_empty()
    return bindings


def parse_err(text: str):
    bindings, error, locals_ = parse(text)
    assert bindings is None
    assert locals_.is_empty()
    return error


def gid(bindings: Bindings, name: str) -> int:
    ident = bindings.get_id_nomake(name)
    assert ident is not None
    return ident


PRELUDE = "type o;\nlet P : Formula o;\nlet Q : Formula o;\nlet a : Term o;\n"


# ===========================================================================
# Tokenizer
# ===========================================================================


class TestTokenize:
    def test_kinds(self):
        tokens = tokenize(SourceInfo.from_text("t.rl", "axiom x' : forall -> ~")).unwrap()
        assert [(t.kind, t.text) for t in tokens] == [
            ("keyword", "axiom"),
            ("name", "x'"),
            ("punct", ":"),
            ("keyword", "forall"),
            ("punct", "->"),
            ("punct", "~"),
            ("eof", ""),
        ]

    def test_comments_are_skipped(self):
        tokens = tokenize(SourceInfo.from_text("t.rl", "-- nothing here\ntype -- trailing\n")).unwrap()
        assert [t.text for t in tokens] == ["type", ""]

    def test_unknown_character(self):
        result = tokenize(SourceInfo.from_text("t.rl", "type o;\n  @"))
        assert isinstance(result, Err)
        assert result.error.kind.found == "@"
        assert result.error.location == FileLocation("t.rl", 2, 3)


# ===========================================================================
# Declarations
# ===========================================================================


class TestDeclarations:
    def test_type_and_let(self):
        bindings = parse_ok(PRELUDE)
        o = gid(bindings, "o")
        assert bindings.get_type(o) == MType()
        assert bindings.get_type(gid(bindings, "P")) == MFormula((Named(Global(o)),))
        assert bindings.get_type(gid(bindings, "a")) == MTerm(Named(Global(o)))
        assert bindings.get_value(gid(bindings, "a")) is None

    def test_formula_arguments_stored_end_first(self):
        bindings = parse_ok("type o;\ntype i;\nlet R : Formula o i;\n")
        o, i = Named(Global(gid(bindings, "o"))), Named(Global(gid(bindings, "i")))
        assert bindings.get_type(gid(bindings, "R")) == MFormula((i, o))

    def test_function_type_is_right_associative(self):
        bindings = parse_ok("type o;\nlet f : Term (o -> o -> o);\n")
        o = Named(Global(gid(bindings, "o")))
        assert bindings.get_type(gid(bindings, "f")) == MTerm(Func(o, Func(o, o)))

    def test_schema_meta_type(self):
        bindings = parse_ok("type o;\nlet S : Schema (Term o, Formula o) Formula;\n")
        o = Named(Global(gid(bindings, "o")))
        assert bindings.get_type(gid(bindings, "S")) == MSchema(
            (MFormula((o,)), MTerm(o)), MFormula(())
        )

    def test_duplicate_type(self):
        error = parse_err("type o;\ntype o;\n")
        assert error.kind == BindingExists("o")
        assert error.location == FileLocation("t.rl", 2, 6)

    def test_unknown_type(self):
        error = parse_err("let a : Term o;")
        assert error.kind == NoBinding("o")
        assert error.location == FileLocation("t.rl", 1, 14)

    def test_term_used_as_type(self):
        error = parse_err(PRELUDE + "let b : Term a;")
        assert error.kind == MTypeMismatch(found="(Term o)", expected="Type")

    def test_missing_semicolon(self):
        error = parse_err("type o\nlet a : Term o;")
        assert error.kind == UnexpectedToken(found="let", expected=(";",))
        assert error.location == FileLocation("t.rl", 2, 1)

    def test_bad_statement_start(self):
        error = parse_err("o;")
        assert isinstance(error.kind, UnexpectedToken)
        assert error.kind.expected == ("type", "let", "def", "axiom", "{")

    def test_missing_semicolon_at_end_of_file(self):
        error = parse_err("type o")
        assert error.kind == UnexpectedToken(found="<eof>", expected=(";",))
        assert error.location == FileLocation("t.rl", 1, 7)


class TestDefinitions:
    def test_def_completes_forward_declaration(self):
        bindings = parse_ok(PRELUDE + "let b : Term o;\ndef b : Term o = a;\n")
        b = gid(bindings, "b")
        assert bindings.get_value(b) == TermValue(Symbol(Global(gid(bindings, "a"))))

    def test_def_of_fresh_name(self):
        bindings = parse_ok(PRELUDE + "let f : Term (o -> o);\ndef c : Term o = f (f a);\n")
        f, a = Symbol(Global(gid(bindings, "f"))), Symbol(Global(gid(bindings, "a")))
        assert bindings.get_value(gid(bindings, "c")) == TermValue(TermApp(f, TermApp(f, a)))

    def test_redefinition(self):
        error = parse_err(PRELUDE + "def c : Term o = a;\ndef c : Term o = a;\n")
        assert error.kind == BindingExists("c")

    def test_term_type_mismatch(self):
        error = parse_err(PRELUDE + "type i;\ndef c : Term i = a;\n")
        assert error.kind == ITypeMismatch(found="o", expected="i")

    def test_formula_arity_mismatch(self):
        error = parse_err(PRELUDE + "def Pa : Formula o = P a;\n")
        assert error.kind == MTypeMismatch(found="(Formula)", expected="(Formula o)")

    def test_defined_relation_is_usable(self):
        bindings = parse_ok(PRELUDE + "let R : Formula o o;\ndef Ra : Formula o = R a;\naxiom t : Ra a;\n")
        assert "t" in bindings.theorems()

    def test_defined_type_unfolds(self):
        bindings = parse_ok(
            "type o;\ndef T : Type = o -> o;\nlet g : Term (o -> o);\ndef h : Term T = g;\n"
        )
        o = Named(Global(gid(bindings, "o")))
        assert bindings.get_type(gid(bindings, "h")) == MTerm(Func(o, o))

    def test_declared_type_stays_opaque(self):
        bindings = parse_ok("let T : Type;\nlet t : Term T;\n")
        assert bindings.get_type(gid(bindings, "t")) == MTerm(Named(Global(gid(bindings, "T"))))

    def test_schema_value(self):
        bindings = parse_ok(
            PRELUDE
            + "def S : Schema (Term o, Formula o) Formula = "
            + "schema x : Term o, schema R : Formula o, R x;\n"
        )
        match bindings.get_value(gid(bindings, "S")):
            case SchemaValue(Schema(_, MTerm(_), Schema(_, MFormula(_), SchemaFormula(_)))):
                pass
            case other:
                pytest.fail(f"unexpected schema value {other!r}")

    def test_schema_value_missing_binders(self):
        error = parse_err(PRELUDE + "def S : Schema (Term o) Formula = false;\n")
        assert error.kind == MTypeMismatch(
            found="(Schema to (Formula))", expected="(Schema (Term o) to (Formula))"
        )
        assert error.location == FileLocation("t.rl", 5, 35)

    def test_schema_value_binder_order(self):
        error = parse_err(
            PRELUDE
            + "def S : Schema (Term o, Formula o) Formula = "
            + "schema R : Formula o, schema x : Term o, R x;\n"
        )
        assert isinstance(error.kind, MTypeMismatch)

    def test_schema_value_result_arity(self):
        error = parse_err(PRELUDE + "def S : Schema (Term o) Formula o = schema x : Term o, P x;\n")
        assert error.kind == MTypeMismatch(
            found="(Schema (Term o) to (Formula))",
            expected="(Schema (Term o) to (Formula o))",
        )


# ===========================================================================
# Axioms
# ===========================================================================


class TestAxioms:
    def test_quantified_implication(self):
        bindings = parse_ok(PRELUDE + "axiom refl : forall x : o, P x -> P x;\n")
        o, p = gid(bindings, "o"), gid(bindings, "P")
        match bindings.theorems()["refl"]:
            case SchemaFormula(UniversalQ(lid, bound, body)):
                px = FormulaApp(Relation(Global(p)), Symbol(Local(lid)))
                assert bound == Named(Global(o))
                assert body == Implication(px, px)
            case other:
                pytest.fail(f"unexpected axiom shape {other!r}")

    def test_implication_is_right_associative(self):
        bindings = parse_ok(PRELUDE + "axiom t : P a -> Q a -> false;\n")
        pa = FormulaApp(Relation(Global(gid(bindings, "P"))), Symbol(Global(gid(bindings, "a"))))
        qa = FormulaApp(Relation(Global(gid(bindings, "Q"))), Symbol(Global(gid(bindings, "a"))))
        assert bindings.theorems()["t"] == SchemaFormula(Implication(pa, Implication(qa, Falsum())))

    def test_negation(self):
        bindings = parse_ok(PRELUDE + "axiom t : ~P a;\n")
        pa = FormulaApp(Relation(Global(gid(bindings, "P"))), Symbol(Global(gid(bindings, "a"))))
        assert bindings.theorems()["t"] == SchemaFormula(Implication(pa, Falsum()))

    def test_renamed_axioms_match(self):
        bindings = parse_ok(
            PRELUDE
            + "axiom one : forall x : o, P x -> P x;\n"
            + "axiom two : forall y : o, P y -> P y;\n"
        )
        theorems = bindings.theorems()
        assert theorems["one"] != theorems["two"]
        assert matches(theorems["one"], theorems["two"])

    def test_relation_arguments_in_source_order(self):
        text = "type o;\ntype i;\nlet R : Formula o i;\nlet a : Term o;\nlet b : Term i;\n"
        assert "ok" in parse_ok(text + "axiom ok : R a b;\n").theorems()
        error = parse_err(text + "axiom bad : R b a;\n")
        assert error.kind == ITypeMismatch(found="i", expected="o")

    def test_unsaturated_axiom(self):
        error = parse_err(PRELUDE + "axiom bad : P;\n")
        assert error.kind == UnboundTheorem()

    def test_implication_over_unsaturated_formula(self):
        error = parse_err(PRELUDE + "axiom bad : P -> P a;\n")
        assert error.kind == UnboundImplication()

    def test_too_many_arguments(self):
        error = parse_err(PRELUDE + "axiom bad : P a a;\n")
        assert error.kind == MTypeMismatch(found="(Formula)", expected="(Formula o _)")

    def test_duplicate_axiom(self):
        error = parse_err(PRELUDE + "axiom t : false;\naxiom t : false;\n")
        assert error.kind == BindingExists("t")

    def test_error_in_body_releases_binders(self):
        # parse_err asserts the local bindings are empty afterwards.
        error = parse_err(PRELUDE + "axiom bad : schema R : Formula o, forall x : o, R x -> P y;\n")
        assert error.kind == NoBinding("y")

    def test_rebinding_open_name(self):
        error = parse_err(PRELUDE + "axiom bad : forall x : o, forall x : o, P x;\n")
        assert error.kind == BindingExists("x")

    def test_bound_name_not_visible_afterwards(self):
        error = parse_err(PRELUDE + "axiom bad : (forall x : o, P x) -> P x;\n")
        assert error.kind == NoBinding("x")


class TestSchemas:
    def test_formula_schema(self):
        bindings = parse_ok(PRELUDE + "axiom s : schema R : Formula o, R a -> R a;\n")
        o, a = Named(Global(gid(bindings, "o"))), Symbol(Global(gid(bindings, "a")))
        match bindings.theorems()["s"]:
            case Schema(lid, mtype, SchemaFormula(body)):
                ra = FormulaApp(Relation(Local(lid)), a)
                assert mtype == MFormula((o,))
                assert body == Implication(ra, ra)
            case other:
                pytest.fail(f"unexpected axiom shape {other!r}")

    def test_type_binder_names_a_type(self):
        bindings = parse_ok("axiom poly : schema T : Type, forall x : T, false;\n")
        match bindings.theorems()["poly"]:
            case Schema(tid, MType(), SchemaFormula(UniversalQ(_, bound, Falsum()))):
                assert bound == Named(Local(tid))
            case other:
                pytest.fail(f"unexpected axiom shape {other!r}")

    def test_schema_body_must_be_closed(self):
        error = parse_err(PRELUDE + "axiom bad : schema R : Formula o, R;\n")
        assert error.kind == UnboundTheorem()


# ===========================================================================
# Nested scopes
# ===========================================================================


class TestBlocks:
    def test_block_declarations_do_not_escape(self):
        bindings = parse_ok(
            PRELUDE
            + "{\n  type s;\n  let b : Term s;\n  axiom inner : forall z : s, false;\n}\n"
            + "axiom outer : false;\n"
        )
        assert set(bindings.theorems()) == {"outer"}
        assert bindings.get_type(gid(bindings, "s")) is None
        assert bindings.depth == 0

    def test_block_may_shadow(self):
        bindings = parse_ok(PRELUDE + "{ type i; let a : Term i; }\n")
        assert bindings.get_type(gid(bindings, "a")) == MTerm(Named(Global(gid(bindings, "o"))))

    def test_block_sees_outer_names(self):
        bindings = parse_ok(PRELUDE + "{ axiom inner : P a; }\n")
        assert bindings.theorems() == {}

    def test_use_after_block(self):
        error = parse_err("{ type s; }\nlet b : Term s;\n")
        assert error.kind == NoBinding("s")

    def test_unterminated_block(self):
        error = parse_err("{ type s;")
        assert error.kind == UnexpectedToken(found="<eof>", expected=("}",))


# ===========================================================================
# Deep nesting
# ===========================================================================


class TestDeepNesting:
    def test_long_implication_chain(self):
        bindings = parse_ok("axiom t : " + "false -> " * 3000 + "false;\n")
        assert "t" in bindings.theorems()

    def test_many_negations(self):
        bindings = parse_ok("axiom t : " + "~" * 3000 + "false;\n")
        assert "t" in bindings.theorems()

    def test_negation_binds_tighter_than_implication(self):
        bindings = parse_ok("axiom t : ~~false -> false;\n")
        assert bindings.theorems()["t"] == SchemaFormula(
            Implication(Implication(Implication(Falsum(), Falsum()), Falsum()), Falsum())
        )

    def test_deep_parentheses_are_an_error(self):
        # parse_err also checks that no binder is left open.
        error = parse_err(
            "type o;\naxiom t : forall x : o, " + "(" * 3000 + "false" + ")" * 3000 + ";\n"
        )
        assert isinstance(error.kind, UnexpectedToken)
        assert error.kind.expected == ("shallower nesting",)
