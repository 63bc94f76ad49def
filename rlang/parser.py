"""Tokenizer and recursive-descent parser for rlang source files.

The parser owns control flow only: every name is interned through the
global bindings and every construct is checked and assembled by a builder.
Grammar::

    program    := stmt* EOF
    stmt       := 'type' NAME ';'
                | 'let' NAME ':' mtype ';'
                | 'def' NAME ':' mtype '=' value ';'
                | 'axiom' NAME ':' schema ';'
                | '{' stmt* '}'
    mtype      := 'Type' | 'Term' itype_atom | 'Formula' itype_atom*
                | 'Schema' '(' mtype (',' mtype)* ')' mtype
    itype      := itype_atom ('->' itype)?
    itype_atom := NAME | '(' itype ')'
    schema     := 'schema' NAME ':' mtype ',' schema | formula
    formula    := unary ('->' formula)?
    unary      := '~' unary | 'forall' NAME ':' itype ',' formula | atom
    atom       := 'false' | NAME term_atom* | '(' formula ')'
    term       := term_atom term_atom*
    term_atom  := NAME | '(' term ')'

``--`` starts a comment running to the end of the line.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from .bindings import Bindings, LocalBindings
from .builders import FormulaBuilder, FSchemaBuilder, TermBuilder, named_type
from .errors import (
    FileLocation,
    ITypeMismatch,
    MTypeMismatch,
    NoBinding,
    RLangError,
    UnboundTheorem,
    UnexpectedToken,
)
from .pretty import show_itype, show_mtype
from .result import Err, Ok, Result
from .source import SourceInfo
from .terms import FormulaValue, MetaValue, SchemaValue, TermValue, TypeValue
from .types import (
    Func,
    Global,
    InternalType,
    MetaType,
    MFormula,
    MSchema,
    MTerm,
    MType,
    Named,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Tokens
# ---------------------------------------------------------------------------

KEYWORDS = frozenset(
    {"type", "let", "def", "axiom", "schema", "forall", "false",
     "Type", "Term", "Formula", "Schema"}
)
PUNCTUATION = ("->", ":", ";", ",", "=", "(", ")", "{", "}", "~")
STATEMENT_STARTS = ("type", "let", "def", "axiom", "{")

_TOKEN_RE = re.compile(
    r"""
    (?P<space>\s+|--[^\n]*)
  | (?P<name>[A-Za-z_][A-Za-z0-9_']*)
  | (?P<punct>->|[:;,=(){}~])
    """,
    re.VERBOSE,
)


@dataclass(frozen=True)
class Token:
    kind: str
    """One of ``"name"``, ``"keyword"``, ``"punct"`` or ``"eof"``."""
    text: str
    offset: int

    def is_(self, text: str) -> bool:
        return self.kind in ("keyword", "punct") and self.text == text

    @property
    def display(self) -> str:
        return "<eof>" if self.kind == "eof" else self.text


def tokenize(source: SourceInfo) -> Result[list[Token], RLangError]:
    text = source.text
    tokens: list[Token] = []
    pos = 0
    while pos < len(text):
        m = _TOKEN_RE.match(text, pos)
        if m is None:
            return Err(
                RLangError(
                    UnexpectedToken(text[pos], ("name",) + PUNCTUATION),
                    source.to_file_location(pos),
                )
            )
        match m.lastgroup:
            case "name":
                word = m.group()
                tokens.append(Token("keyword" if word in KEYWORDS else "name", word, pos))
            case "punct":
                tokens.append(Token("punct", m.group(), pos))
        pos = m.end()
    tokens.append(Token("eof", "", len(text)))
    return Ok(tokens)


# ---------------------------------------------------------------------------
# Parser
# ---------------------------------------------------------------------------


class Parser:
    def __init__(
        self,
        source: SourceInfo,
        tokens: list[Token],
        globals_: Bindings,
        locals_: LocalBindings,
    ) -> None:
        self.source = source
        self.tokens = tokens
        self.globals_ = globals_
        self.locals_ = locals_
        self.pos = 0

    # -- token helpers ------------------------------------------------------

    @property
    def peek(self) -> Token:
        return self.tokens[self.pos]

    def _advance(self) -> Token:
        tok = self.tokens[self.pos]
        if tok.kind != "eof":
            self.pos += 1
        return tok

    def _location(self, tok: Token) -> FileLocation:
        return self.source.to_file_location(tok.offset)

    def _unexpected(self, *expected: str) -> Err[RLangError]:
        tok = self.peek
        return Err(RLangError(UnexpectedToken(tok.display, expected), self._location(tok)))

    def _expect(self, text: str) -> Result[Token, RLangError]:
        if self.peek.is_(text):
            return Ok(self._advance())
        return self._unexpected(text)

    def _expect_name(self) -> Result[Token, RLangError]:
        if self.peek.kind == "name":
            return Ok(self._advance())
        return self._unexpected("name")

    def _starts_term_atom(self) -> bool:
        return self.peek.kind == "name" or self.peek.is_("(")

    @contextmanager
    def _nested_scope(self) -> Iterator[None]:
        self.globals_ = self.globals_.new_child()
        try:
            yield
        finally:
            self.globals_ = self.globals_.parent()

    # -- statements ---------------------------------------------------------

    def parse_program(self) -> Result[Bindings, RLangError]:
        while self.peek.kind != "eof":
            match self._statement():
                case Err() as err:
                    return err
        return Ok(self.globals_)

    def _statement(self) -> Result[None, RLangError]:
        tok = self.peek
        if tok.is_("type"):
            return self._type_decl()
        if tok.is_("let"):
            return self._let_decl()
        if tok.is_("def"):
            return self._def_decl()
        if tok.is_("axiom"):
            return self._axiom_decl()
        if tok.is_("{"):
            return self._block()
        return self._unexpected(*STATEMENT_STARTS)

    def _block(self) -> Result[None, RLangError]:
        self._advance()
        with self._nested_scope():
            while not self.peek.is_("}"):
                if self.peek.kind == "eof":
                    return self._unexpected("}")
                match self._statement():
                    case Err() as err:
                        return err
        self._advance()
        return Ok(None)

    def _header(self) -> Result[tuple[int, FileLocation], RLangError]:
        """``keyword NAME``: returns the interned id and its location."""
        self._advance()
        match self._expect_name():
            case Ok(name):
                return Ok((self.globals_.get_id(name.text), self._location(name)))
            case Err() as err:
                return err

    def _type_decl(self) -> Result[None, RLangError]:
        match self._header():
            case Ok((ident, loc)):
                pass
            case Err() as err:
                return err
        match self.globals_.insert_object(ident, MType(), TypeValue(Named(Global(ident))), loc):
            case Err() as err:
                return err
        logger.debug("type %s", self.globals_.display_name(ident))
        return self._expect_end()

    def _let_decl(self) -> Result[None, RLangError]:
        match self._header():
            case Ok((ident, loc)):
                pass
            case Err() as err:
                return err
        match self._typed():
            case Ok(mtype):
                pass
            case Err() as err:
                return err
        match self.globals_.insert_object_noval(ident, mtype, loc):
            case Err() as err:
                return err
        return self._expect_end()

    def _def_decl(self) -> Result[None, RLangError]:
        match self._header():
            case Ok((ident, loc)):
                pass
            case Err() as err:
                return err
        match self._typed():
            case Ok(mtype):
                pass
            case Err() as err:
                return err
        match self._expect("="):
            case Err() as err:
                return err
        match self._value(mtype):
            case Ok(mval):
                pass
            case Err() as err:
                return err
        # Complete a forward declaration if there is one, else bind afresh.
        result = self.globals_.insert_object_anytype(ident, mtype, mval, loc)
        if isinstance(result, Err) and isinstance(result.error.kind, NoBinding):
            result = self.globals_.insert_object(ident, mtype, mval, loc)
        match result:
            case Err() as err:
                return err
        return self._expect_end()

    def _axiom_decl(self) -> Result[None, RLangError]:
        match self._header():
            case Ok((ident, loc)):
                pass
            case Err() as err:
                return err
        match self._expect(":"):
            case Err() as err:
                return err
        match self._schema():
            case Ok(schema):
                pass
            case Err() as err:
                return err
        if not schema.is_wff_schema:
            return Err(RLangError(UnboundTheorem(), schema.location))
        match self.globals_.insert_theorem(ident, schema.value, loc):
            case Err() as err:
                return err
        logger.debug("axiom %s", self.globals_.display_name(ident))
        return self._expect_end()

    def _expect_end(self) -> Result[None, RLangError]:
        match self._expect(";"):
            case Err() as err:
                return err
        return Ok(None)

    def _typed(self) -> Result[MetaType, RLangError]:
        """``':' mtype``"""
        match self._expect(":"):
            case Err() as err:
                return err
        return self._mtype()

    def _value(self, mtype: MetaType) -> Result[MetaValue, RLangError]:
        """Parse the right-hand side of a ``def`` against its declared meta-type."""
        start = self.peek
        match mtype:
            case MType():
                match self._itype():
                    case Ok(itype):
                        return Ok(TypeValue(itype))
                    case Err() as err:
                        return err
            case MTerm(itype):
                match self._term():
                    case Ok(tb):
                        pass
                    case Err() as err:
                        return err
                if tb.itype != itype:
                    return Err(
                        RLangError(
                            ITypeMismatch(
                                found=show_itype(tb.itype, self.globals_),
                                expected=show_itype(itype, self.globals_),
                            ),
                            self._location(start),
                        )
                    )
                return Ok(TermValue(tb.value))
            case MFormula(arg_types):
                match self._formula():
                    case Ok(fb):
                        pass
                    case Err() as err:
                        return err
                if fb.arg_types != arg_types:
                    return Err(
                        RLangError(
                            MTypeMismatch(
                                found=show_mtype(MFormula(fb.arg_types), self.globals_),
                                expected=show_mtype(mtype, self.globals_),
                            ),
                            self._location(start),
                        )
                    )
                return Ok(FormulaValue(fb.value))
            case MSchema(arg_types, ret):
                match self._schema():
                    case Ok(sb):
                        pass
                    case Err() as err:
                        return err
                # Both parameter tuples are ordered last parameter first.
                if sb.marg_types != arg_types or MFormula(sb.iarg_types) != ret:
                    found = MSchema(sb.marg_types, MFormula(sb.iarg_types))
                    return Err(
                        RLangError(
                            MTypeMismatch(
                                found=show_mtype(found, self.globals_),
                                expected=show_mtype(mtype, self.globals_),
                            ),
                            self._location(start),
                        )
                    )
                return Ok(SchemaValue(sb.value))

    # -- types --------------------------------------------------------------

    def _mtype(self) -> Result[MetaType, RLangError]:
        tok = self.peek
        if tok.is_("Type"):
            self._advance()
            return Ok(MType())
        if tok.is_("Term"):
            self._advance()
            match self._itype_atom():
                case Ok(itype):
                    return Ok(MTerm(itype))
                case Err() as err:
                    return err
        if tok.is_("Formula"):
            self._advance()
            args: list[InternalType] = []
            while self._starts_term_atom():
                match self._itype_atom():
                    case Ok(itype):
                        args.append(itype)
                    case Err() as err:
                        return err
            return Ok(MFormula(tuple(reversed(args))))
        if tok.is_("Schema"):
            return self._schema_mtype()
        return self._unexpected("Type", "Term", "Formula", "Schema")

    def _schema_mtype(self) -> Result[MetaType, RLangError]:
        self._advance()
        match self._expect("("):
            case Err() as err:
                return err
        params: list[MetaType] = []
        while True:
            match self._mtype():
                case Ok(param):
                    params.append(param)
                case Err() as err:
                    return err
            if self.peek.is_(","):
                self._advance()
                continue
            match self._expect(")"):
                case Err() as err:
                    return err
            break
        match self._mtype():
            case Ok(ret):
                return Ok(MSchema(tuple(reversed(params)), ret))
            case Err() as err:
                return err

    def _itype(self) -> Result[InternalType, RLangError]:
        match self._itype_atom():
            case Ok(arg):
                pass
            case Err() as err:
                return err
        if not self.peek.is_("->"):
            return Ok(arg)
        self._advance()
        match self._itype():
            case Ok(ret):
                return Ok(Func(arg, ret))
            case Err() as err:
                return err

    def _itype_atom(self) -> Result[InternalType, RLangError]:
        tok = self.peek
        if tok.kind == "name":
            self._advance()
            return named_type(
                self.globals_.get_id(tok.text), self.locals_, self.globals_, self._location(tok)
            )
        if tok.is_("("):
            self._advance()
            match self._itype():
                case Ok(itype):
                    pass
                case Err() as err:
                    return err
            match self._expect(")"):
                case Err() as err:
                    return err
            return Ok(itype)
        return self._unexpected("name", "(")

    # -- terms --------------------------------------------------------------

    def _term(self) -> Result[TermBuilder, RLangError]:
        match self._term_atom():
            case Ok(tb):
                pass
            case Err() as err:
                return err
        while self._starts_term_atom():
            match self._term_atom():
                case Ok(arg):
                    pass
                case Err() as err:
                    return err
            match TermBuilder.application(tb, arg, self.globals_):
                case Ok(tb):
                    pass
                case Err() as err:
                    return err
        return Ok(tb)

    def _term_atom(self) -> Result[TermBuilder, RLangError]:
        tok = self.peek
        if tok.kind == "name":
            self._advance()
            return TermBuilder.symbol(
                self.globals_.get_id(tok.text), self.locals_, self.globals_, self._location(tok)
            )
        if tok.is_("("):
            self._advance()
            match self._term():
                case Ok(tb):
                    pass
                case Err() as err:
                    return err
            match self._expect(")"):
                case Err() as err:
                    return err
            return Ok(tb)
        return self._unexpected("name", "(")

    # -- formulas -----------------------------------------------------------

    def _formula(self) -> Result[FormulaBuilder, RLangError]:
        """``unary ('->' unary)*``, folded to the right."""
        operands: list[FormulaBuilder] = []
        while True:
            match self._unary():
                case Ok(operand):
                    operands.append(operand)
                case Err() as err:
                    return err
            if not self.peek.is_("->"):
                break
            self._advance()
        result = operands.pop()
        while operands:
            match FormulaBuilder.implication(operands.pop(), result):
                case Ok(result):
                    pass
                case Err() as err:
                    return err
        return Ok(result)

    def _unary(self) -> Result[FormulaBuilder, RLangError]:
        negations: list[FileLocation] = []
        while self.peek.is_("~"):
            negations.append(self._location(self._advance()))
        if self.peek.is_("forall"):
            result = self._forall()
        else:
            result = self._atom()
        for location in reversed(negations):
            match result:
                case Ok(inner):
                    result = FormulaBuilder.negation(inner, location)
                case Err():
                    break
        return result

    def _forall(self) -> Result[FormulaBuilder, RLangError]:
        start = self._location(self._advance())
        match self._expect_name():
            case Ok(name):
                pass
            case Err() as err:
                return err
        match self._expect(":"):
            case Err() as err:
                return err
        match self._itype():
            case Ok(itype):
                pass
            case Err() as err:
                return err
        match self._expect(","):
            case Err() as err:
                return err
        ident = self.globals_.get_id(name.text)
        match FormulaBuilder.quantifier_prep(
            ident, itype, self.locals_, self.globals_, self._location(name)
        ):
            case Ok(binder):
                pass
            case Err() as err:
                return err
        match self._formula():
            case Ok(body):
                return FormulaBuilder.universal_q(binder, body, self.locals_, start)
            case Err() as err:
                self.locals_.release(binder)
                return err

    def _atom(self) -> Result[FormulaBuilder, RLangError]:
        tok = self.peek
        if tok.is_("false"):
            self._advance()
            return FormulaBuilder.falsum(self._location(tok))
        if tok.is_("("):
            self._advance()
            match self._formula():
                case Ok(fb):
                    pass
                case Err() as err:
                    return err
            match self._expect(")"):
                case Err() as err:
                    return err
            return Ok(fb)
        if tok.kind != "name":
            return self._unexpected("false", "forall", "~", "(", "name")
        self._advance()
        match FormulaBuilder.relation(
            self.globals_.get_id(tok.text), self.locals_, self.globals_, self._location(tok)
        ):
            case Ok(fb):
                pass
            case Err() as err:
                return err
        while self._starts_term_atom():
            match self._term_atom():
                case Ok(arg):
                    pass
                case Err() as err:
                    return err
            match FormulaBuilder.application(fb, arg, self.globals_):
                case Ok(fb):
                    pass
                case Err() as err:
                    return err
        return Ok(fb)

    # -- schemas ------------------------------------------------------------

    def _schema(self) -> Result[FSchemaBuilder, RLangError]:
        if not self.peek.is_("schema"):
            match self._formula():
                case Ok(fb):
                    return FSchemaBuilder.formula(fb)
                case Err() as err:
                    return err
        start = self._location(self._advance())
        match self._expect_name():
            case Ok(name):
                pass
            case Err() as err:
                return err
        match self._typed():
            case Ok(mtype):
                pass
            case Err() as err:
                return err
        match self._expect(","):
            case Err() as err:
                return err
        ident = self.globals_.get_id(name.text)
        match FSchemaBuilder.schema_prep(
            ident, mtype, self.locals_, self.globals_, self._location(name)
        ):
            case Ok(binder):
                pass
            case Err() as err:
                return err
        match self._schema():
            case Ok(body):
                return FSchemaBuilder.schema(binder, body, self.locals_, start)
            case Err() as err:
                self.locals_.release(binder)
                return err


def parse_source(
    source: SourceInfo, globals_: Bindings, locals_: LocalBindings
) -> Result[Bindings, RLangError]:
    """Tokenize and parse a whole file, returning the populated bindings."""
    match tokenize(source):
        case Ok(tokens):
            pass
        case Err() as err:
            return err
    parser = Parser(source, tokens, globals_, locals_)
    try:
        return parser.parse_program()
    except RecursionError:
        tok = parser.peek
        logger.warning("Nesting too deep at offset %d", tok.offset)
        locals_.unwind()
        return Err(
            RLangError(
                UnexpectedToken(tok.display, ("shallower nesting",)),
                parser._location(tok),
            )
        )
