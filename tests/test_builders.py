"""Tests for rlang/builders.py: type-checked construction."""

import pytest

from rlang import (
    BinderContractError,
    BindingExists,
    Bindings,
    Err,
    Falsum,
    FileLocation,
    FormulaApp,
    FormulaBuilder,
    FSchemaBuilder,
    Func,
    Global,
    Implication,
    ITypeMismatch,
    Local,
    LocalBindings,
    MFormula,
    MTerm,
    MTypeMismatch,
    MType,
    Named,
    NoBinding,
    Ok,
    Relation,
    Schema,
    SchemaFormula,
    Symbol,
    TermApp,
    TermBuilder,
    TypeValue,
    UnboundImplication,
    UniversalQ,
)

LOC = FileLocation("test.rl", 1, 1)


class Env:
    """o, i : Type;  P : Formula o;  R : Formula o o;  a : Term o;
    b : Term i;  f : Term (o -> i)."""

    def __init__(self) -> None:
        self.globals_ = Bindings()
        self.locals_ = LocalBindings()
        self.o = self._type("o")
        self.i = self._type("i")
        self.O = Named(Global(self.o))
        self.I = Named(Global(self.i))
        self.P = self._decl("P", MFormula((self.O,)))
        self.R = self._decl("R", MFormula((self.O, self.O)))
        self.a = self._decl("a", MTerm(self.O))
        self.b = self._decl("b", MTerm(self.I))
        self.f = self._decl("f", MTerm(Func(self.O, self.I)))

    def _type(self, name: str) -> int:
        ident = self.globals_.get_id(name)
        self.globals_.insert_object(ident, MType(), TypeValue(Named(Global(ident))), LOC)
        return ident

    def _decl(self, name: str, mtype) -> int:
        ident = self.globals_.get_id(name)
        assert self.globals_.insert_object_noval(ident, mtype, LOC) == Ok(ident)
        return ident

    def sym(self, ident: int) -> TermBuilder:
        return TermBuilder.symbol(ident, self.locals_, self.globals_, LOC).unwrap()

    def rel(self, ident: int) -> FormulaBuilder:
        return FormulaBuilder.relation(ident, self.locals_, self.globals_, LOC).unwrap()

    def apply(self, pred: FormulaBuilder, *args: TermBuilder) -> FormulaBuilder:
        for arg in args:
            pred = FormulaBuilder.application(pred, arg, self.globals_).unwrap()
        return pred


@pytest.fixture
def env() -> Env:
    return Env()


# ===========================================================================
# TermBuilder
# ===========================================================================


class TestTermSymbol:
    def test_global_term(self, env):
        tb = env.sym(env.a)
        assert tb.value == Symbol(Global(env.a))
        assert tb.itype == env.O

    def test_local_shadows_global(self, env):
        binder = FormulaBuilder.quantifier_prep(
            env.a, env.I, env.locals_, env.globals_, LOC
        ).unwrap()
        tb = env.sym(env.a)
        assert tb.value == Symbol(Local(binder.local_id))
        assert tb.itype == env.I

    def test_relation_is_not_a_term(self, env):
        result = TermBuilder.symbol(env.P, env.locals_, env.globals_, LOC)
        assert isinstance(result, Err)
        assert result.error.kind == MTypeMismatch(found="(Formula o)", expected="Term _")

    def test_unknown_name(self, env):
        ident = env.globals_.get_id("nope")
        result = TermBuilder.symbol(ident, env.locals_, env.globals_, LOC)
        assert isinstance(result, Err)
        assert result.error.kind == NoBinding("nope")
        assert result.error.location == LOC


class TestTermApplication:
    def test_well_typed(self, env):
        result = TermBuilder.application(env.sym(env.f), env.sym(env.a), env.globals_)
        assert isinstance(result, Ok)
        assert result.value.itype == env.I
        assert result.value.value == TermApp(Symbol(Global(env.f)), Symbol(Global(env.a)))

    def test_argument_mismatch(self, env):
        result = TermBuilder.application(env.sym(env.f), env.sym(env.b), env.globals_)
        assert isinstance(result, Err)
        assert result.error.kind == ITypeMismatch(found="i", expected="o")

    def test_non_function_head(self, env):
        result = TermBuilder.application(env.sym(env.a), env.sym(env.a), env.globals_)
        assert isinstance(result, Err)
        assert result.error.kind == ITypeMismatch(found="o", expected="o -> _")


# ===========================================================================
# FormulaBuilder
# ===========================================================================


class TestFormulaRelation:
    def test_captures_argument_types(self, env):
        fb = env.rel(env.R)
        assert fb.value == Relation(Global(env.R))
        assert fb.arg_types == (env.O, env.O)
        assert not fb.is_wff

    def test_term_is_not_a_relation(self, env):
        result = FormulaBuilder.relation(env.a, env.locals_, env.globals_, LOC)
        assert isinstance(result, Err)
        assert result.error.kind == MTypeMismatch(found="(Term o)", expected="Formula _*")

    def test_unknown_relation(self, env):
        ident = env.globals_.get_id("Missing")
        result = FormulaBuilder.relation(ident, env.locals_, env.globals_, LOC)
        assert isinstance(result, Err)
        assert result.error.kind == NoBinding("Missing")


class TestFormulaApplication:
    def test_scenario_single_argument(self, env):
        fb = env.apply(env.rel(env.P), env.sym(env.a))
        assert fb.value == FormulaApp(Relation(Global(env.P)), Symbol(Global(env.a)))
        assert fb.arg_types == ()
        assert fb.is_wff
        schema = FSchemaBuilder.formula(fb).unwrap()
        assert schema.is_wff_schema

    def test_curried_application(self, env):
        partial = env.apply(env.rel(env.R), env.sym(env.a))
        assert partial.arg_types == (env.O,)
        full = env.apply(partial, env.sym(env.a))
        assert full.is_wff

    def test_saturated_relation_rejects_argument(self, env):
        fb = env.apply(env.rel(env.P), env.sym(env.a))
        result = FormulaBuilder.application(fb, env.sym(env.a), env.globals_)
        assert isinstance(result, Err)
        assert result.error.kind == MTypeMismatch(found="(Formula)", expected="(Formula o _)")

    def test_falsum_rejects_argument(self, env):
        fb = FormulaBuilder.falsum(LOC).unwrap()
        result = FormulaBuilder.application(fb, env.sym(env.a), env.globals_)
        assert isinstance(result, Err)
        assert isinstance(result.error.kind, MTypeMismatch)

    def test_argument_type_mismatch(self, env):
        result = FormulaBuilder.application(env.rel(env.P), env.sym(env.b), env.globals_)
        assert isinstance(result, Err)
        assert result.error.kind == ITypeMismatch(found="i", expected="o")


class TestImplication:
    def test_between_wffs(self, env):
        pa = env.apply(env.rel(env.P), env.sym(env.a))
        result = FormulaBuilder.implication(pa, FormulaBuilder.falsum(LOC).unwrap())
        assert isinstance(result, Ok)
        assert result.value.value == Implication(pa.value, Falsum())

    @pytest.mark.parametrize("side", ["lhs", "rhs"])
    def test_unsaturated_operand(self, env, side):
        pa = env.apply(env.rel(env.P), env.sym(env.a))
        partial = env.rel(env.R)
        lhs, rhs = (partial, pa) if side == "lhs" else (pa, partial)
        result = FormulaBuilder.implication(lhs, rhs)
        assert isinstance(result, Err)
        assert result.error.kind == UnboundImplication()

    def test_negation_requires_wff(self, env):
        result = FormulaBuilder.negation(env.rel(env.P), LOC)
        assert isinstance(result, Err)
        assert result.error.kind == UnboundImplication()


class TestQuantifier:
    def test_prep_then_close(self, env):
        x = env.globals_.get_id("x")
        binder = FormulaBuilder.quantifier_prep(
            x, env.O, env.locals_, env.globals_, LOC
        ).unwrap()
        body = env.apply(env.rel(env.P), env.sym(x))
        fb = FormulaBuilder.universal_q(binder, body, env.locals_, LOC).unwrap()
        assert fb.value == UniversalQ(
            binder.local_id,
            env.O,
            FormulaApp(Relation(Global(env.P)), Symbol(Local(binder.local_id))),
        )
        assert env.locals_.is_empty()

    def test_fresh_local_ids(self, env):
        x = env.globals_.get_id("x")
        y = env.globals_.get_id("y")
        bx = FormulaBuilder.quantifier_prep(x, env.O, env.locals_, env.globals_, LOC).unwrap()
        by = FormulaBuilder.quantifier_prep(y, env.O, env.locals_, env.globals_, LOC).unwrap()
        assert bx.local_id != by.local_id

    def test_rebinding_in_scope(self, env):
        x = env.globals_.get_id("x")
        FormulaBuilder.quantifier_prep(x, env.O, env.locals_, env.globals_, LOC).unwrap()
        result = FormulaBuilder.quantifier_prep(x, env.O, env.locals_, env.globals_, LOC)
        assert isinstance(result, Err)
        assert result.error.kind == BindingExists("x")

    def test_out_of_order_close_is_fatal(self, env):
        x = env.globals_.get_id("x")
        y = env.globals_.get_id("y")
        bx = FormulaBuilder.quantifier_prep(x, env.O, env.locals_, env.globals_, LOC).unwrap()
        FormulaBuilder.quantifier_prep(y, env.O, env.locals_, env.globals_, LOC).unwrap()
        body = FormulaBuilder.falsum(LOC).unwrap()
        with pytest.raises(BinderContractError):
            FormulaBuilder.universal_q(bx, body, env.locals_, LOC)


# ===========================================================================
# FSchemaBuilder
# ===========================================================================


class TestSchema:
    def test_schema_over_relation(self, env):
        q = env.globals_.get_id("Q")
        binder = FSchemaBuilder.schema_prep(
            q, MFormula((env.O,)), env.locals_, env.globals_, LOC
        ).unwrap()
        body = env.apply(env.rel(q), env.sym(env.a))
        inner = FSchemaBuilder.formula(body).unwrap()
        sb = FSchemaBuilder.schema(binder, inner, env.locals_, LOC).unwrap()
        assert sb.value == Schema(
            binder.local_id,
            MFormula((env.O,)),
            SchemaFormula(FormulaApp(Relation(Local(binder.local_id)), Symbol(Global(env.a)))),
        )
        assert sb.marg_types == (MFormula((env.O,)),)
        assert sb.is_wff_schema
        assert env.locals_.is_empty()

    def test_marg_types_accumulate_innermost_first(self, env):
        q = env.globals_.get_id("Q")
        t = env.globals_.get_id("t")
        bq = FSchemaBuilder.schema_prep(
            q, MFormula((env.O,)), env.locals_, env.globals_, LOC
        ).unwrap()
        bt = FSchemaBuilder.schema_prep(t, MTerm(env.O), env.locals_, env.globals_, LOC).unwrap()
        body = FSchemaBuilder.formula(env.apply(env.rel(q), env.sym(t))).unwrap()
        sb = FSchemaBuilder.schema(bt, body, env.locals_, LOC).unwrap()
        sb = FSchemaBuilder.schema(bq, sb, env.locals_, LOC).unwrap()
        assert sb.marg_types == (MTerm(env.O), MFormula((env.O,)))

    def test_unsaturated_schema_is_not_wff(self, env):
        sb = FSchemaBuilder.formula(env.rel(env.P)).unwrap()
        assert not sb.is_wff_schema

    def test_schema_binder_clash(self, env):
        q = env.globals_.get_id("Q")
        FSchemaBuilder.schema_prep(q, MType(), env.locals_, env.globals_, LOC).unwrap()
        result = FSchemaBuilder.schema_prep(q, MType(), env.locals_, env.globals_, LOC)
        assert isinstance(result, Err)
        assert result.error.kind == BindingExists("Q")
