from __future__ import annotations
from pathlib import Path
from typing import List, Optional

from lark import Lark, Token, Transformer, Tree, v_args
from lark.exceptions import UnexpectedCharacters, UnexpectedEOF, UnexpectedInput, UnexpectedToken, VisitError
from loguru import logger

from .ast import Block, Call, FunDecl, If, Let, LoadVar, Loc, Node, Op, Param, Program, Push, Word
from .errors import AliceError, ParseError
from .keywords import WORDS, is_reserved
from .types import AliceType, Value, bool_value, convert, float_value, int_value, string_value, type_for_name

GRAMMAR_PATH = Path(__file__).with_name("grammar.lark")

_parser = None

_ESCAPES = {"\\": "\\", '"': '"', "'": "'", "n": "\n", "r": "\r", "t": "\t"}


def _load_parser() -> Lark:
    global _parser
    if _parser is None:
        grammar = GRAMMAR_PATH.read_text(encoding="utf-8")
        _parser = Lark(grammar, start="start", parser="lalr", maybe_placeholders=True, propagate_positions=True)
    return _parser


def _read(source: str | Path) -> tuple[str, str]:
    if isinstance(source, Path):
        return source.read_text(encoding="utf-8"), str(source)
    return str(source), "<input>"


def _describe(e: UnexpectedInput) -> str:
    if isinstance(e, UnexpectedCharacters):
        if e.char in "\"'":
            return f"missing string delimiter {e.char}"
        return f"unexpected symbol {e.char!r}"
    if isinstance(e, UnexpectedEOF):
        return "hit end of input while parsing"
    if isinstance(e, UnexpectedToken):
        if e.token.type == "$END":
            return "hit end of input while parsing (missing '}'?)"
        expected = ", ".join(sorted(e.accepts or e.expected))
        return f"unexpected token {str(e.token)!r}, expected one of: {expected}"
    return str(e)


def _translate(e: UnexpectedInput, name: str) -> ParseError:
    at_end = isinstance(e, UnexpectedEOF) or (isinstance(e, UnexpectedToken) and e.token.type == "$END")
    loc = Loc(name, max(getattr(e, "line", 0), 0), max(getattr(e, "column", 0), 0))
    return ParseError(_describe(e), loc, incomplete=at_end)


def parse(source: str | Path) -> Tree:
    """Parse Alice source into a raw Lark tree."""
    text, name = _read(source)
    try:
        return _load_parser().parse(text)
    except UnexpectedInput as e:
        raise _translate(e, name) from e


def parse_program(source: str | Path, filename: Optional[str] = None) -> Program:
    """Parse Alice source into a `Program`.

    `source` may be source text or a Path to read. Lexical, syntax and
    literal errors are all reported as `ParseError`.
    """
    text, name = _read(source)
    name = filename or name
    try:
        tree = _load_parser().parse(text)
    except UnexpectedInput as e:
        raise _translate(e, name) from e
    try:
        statements = ProgramBuilder(name).transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, AliceError):
            raise e.orig_exc from None
        if isinstance(e.orig_exc, RecursionError):
            raise ParseError("blocks nested too deep", Loc(name)) from None
        raise
    except RecursionError:
        raise ParseError("blocks nested too deep", Loc(name)) from None
    logger.debug("parsed {} top-level items from {}", len(statements), name)
    return Program(statements, name)


def decode_string(raw: str, loc: Loc) -> str:
    """Strip the delimiters of a string token and resolve its escapes."""
    body = raw[1:-1]
    out: List[str] = []
    i = 0
    while i < len(body):
        c = body[i]
        if c == "\\":
            nxt = body[i + 1]  # the token regex guarantees a following char
            if nxt not in _ESCAPES:
                raise ParseError(f"unknown escape sequence \\{nxt}", loc)
            out.append(_ESCAPES[nxt])
            i += 2
            continue
        out.append(c)
        i += 1
    return "".join(out)


def parse_number(raw: str, loc: Loc) -> Value:
    text = raw.replace("_", "")
    try:
        if text.startswith("0x"):
            return int_value(int(text[2:], 16))
        if text.startswith("0b"):
            return int_value(int(text[2:], 2))
        if any(c in text for c in ".eE"):
            return float_value(float(text))
        return int_value(int(text))
    except ValueError as e:
        raise ParseError(f"malformed number literal {raw!r}", loc) from e


@v_args(inline=True, meta=True)
class ProgramBuilder(Transformer):
    """Turns the Lark parse tree into `ast` nodes."""

    def __init__(self, filename: str = "<input>"):
        super().__init__()
        self.filename = filename

    def _loc(self, meta) -> Loc:
        return Loc(self.filename, getattr(meta, "line", 0), getattr(meta, "column", 0))

    def _tok_loc(self, tok: Token) -> Loc:
        return Loc(self.filename, tok.line or 0, tok.column or 0)

    def _type(self, tok: Token) -> AliceType:
        try:
            return type_for_name(str(tok))
        except KeyError:
            raise ParseError(f"unknown type {tok}", self._tok_loc(tok)) from None

    def _binding_name(self, tok: Token) -> str:
        name = str(tok)
        if is_reserved(name):
            raise ParseError(f"{name} is a reserved word, can't bind to it", self._tok_loc(tok))
        return name

    # ---------- program structure ----------
    def start(self, meta, *items: Node) -> List[Node]:
        return list(items)

    def block(self, meta, *items: Node) -> Block:
        return Block(list(items), loc=self._loc(meta))

    # ---------- literals ----------
    def string(self, meta, tok: Token) -> Push:
        loc = self._loc(meta)
        return Push(string_value(decode_string(str(tok), loc)), loc=loc)

    def number(self, meta, tok: Token) -> Push:
        loc = self._loc(meta)
        return Push(parse_number(str(tok), loc), loc=loc)

    def true(self, meta) -> Push:
        return Push(bool_value(True), loc=self._loc(meta))

    def false(self, meta) -> Push:
        return Push(bool_value(False), loc=self._loc(meta))

    def conversion(self, meta, lit: Push, type_tok: Token) -> Push:
        target = self._type(type_tok)
        try:
            value = convert(lit.value, target)
        except ValueError as e:
            raise ParseError(f"invalid @ conversion: {e}", self._tok_loc(type_tok)) from None
        return Push(value, loc=lit.loc)

    # ---------- phrases ----------
    def let_stmt(self, meta, name: Token, type_tok: Token, init: Optional[Push]) -> Let:
        ty = self._type(type_tok)
        value = None
        if init is not None:
            if not ty.accepts(init.value.type):
                raise ParseError(
                    f"cannot initialize {name} of type {ty} with a {init.value.type} literal", init.loc)
            value = init.value
        return Let(self._binding_name(name), ty, value, loc=self._loc(meta))

    def param(self, meta, type_tok: Token, name: Optional[Token]) -> Param:
        return Param(self._type(type_tok), self._binding_name(name) if name is not None else None)

    def params(self, meta, *params: Param) -> List[Param]:
        named = [p.name is not None for p in params]
        if any(named) and not all(named):
            raise ParseError("either all or none of the function parameters must be named", self._loc(meta))
        names = [p.name for p in params if p.name is not None]
        if len(set(names)) != len(names):
            raise ParseError("duplicate parameter name", self._loc(meta))
        return list(params)

    def fun_decl(self, meta, name: Token, params: Optional[List[Param]],
                 ret: Optional[Token], body: Block) -> FunDecl:
        return_type = self._type(ret) if ret is not None else None
        return FunDecl(self._binding_name(name), params or [], return_type, body.body, loc=self._loc(meta))

    def if_stmt(self, meta, then_block: Block, else_block: Optional[Block]) -> If:
        return If(then_block.body, else_block.body if else_block is not None else None, loc=self._loc(meta))

    # ---------- words ----------
    def call(self, meta, name: Token) -> Call:
        if is_reserved(str(name)):
            raise ParseError(f"{name} is a builtin word, not a function", self._tok_loc(name))
        return Call(str(name), loc=self._loc(meta))

    def word(self, meta, name: Token) -> Node:
        loc = self._loc(meta)
        if str(name) in WORDS:
            return Word(str(name), loc=loc)
        if is_reserved(str(name)):
            # type names on their own
            raise ParseError(f"unexpected type name {name}", loc)
        return LoadVar(str(name), loc=loc)

    def operator(self, meta, tok: Token) -> Op:
        return Op(str(tok), loc=self._loc(meta))
