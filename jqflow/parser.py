"""Lark-based jq parser: query text in, AST out."""

from __future__ import annotations

import json
from pathlib import Path

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedInput

from .ast_nodes import (
    ArrayLiteral,
    Bind,
    BooleanLiteral,
    Break,
    Foreach,
    Format,
    FuncCall,
    Identity,
    If,
    Index,
    Iterate,
    Label,
    Negate,
    NullLiteral,
    NumberLiteral,
    ObjectEntry,
    ObjectLiteral,
    Operator,
    OptionalMark,
    Parenthesized,
    Query,
    Recurse,
    Reduce,
    StringLiteral,
    Suffixed,
    Try,
    Variable,
)
from .errors import ParseError

# ---------------------------------------------------------------------------
# Grammar loading (cached)
# ---------------------------------------------------------------------------

_GRAMMAR_PATH = Path(__file__).parent / "grammar.lark"
_lark_parser: Lark | None = None


def _get_parser() -> Lark:
    global _lark_parser
    if _lark_parser is None:
        grammar_text = _GRAMMAR_PATH.read_text(encoding="utf-8")
        _lark_parser = Lark(
            grammar_text,
            parser="lalr",
            lexer="contextual",
            propagate_positions=True,
        )
    return _lark_parser


# ---------------------------------------------------------------------------
# Transformer: Lark parse tree -> AST nodes
# ---------------------------------------------------------------------------

class JqTransformer(Transformer):
    """Converts the Lark parse tree into ``Query``/term dataclasses."""

    # --- Top-level and operators ---

    def start(self, items):
        if not items:
            return Query(term=Identity())
        return _q(items[0])

    def pipe_op(self, items):
        return Query(op=Operator.PIPE, left=_q(items[0]), right=_q(items[1]))

    def comma_op(self, items):
        return Query(op=Operator.COMMA, left=_q(items[0]), right=_q(items[1]))

    def binop(self, items):
        left, op, right = items
        return Query(op=Operator(str(op)), left=_q(left), right=_q(right))

    def bind(self, items):
        source, var, body = items
        return Bind(source=_q(source), pattern=_var_name(var), body=_q(body))

    def label_term(self, items):
        var, body = items
        return Label(name=_var_name(var), body=_q(body))

    def negate(self, items):
        # items[0] is the MINUS token
        return Negate(operand=_q(items[1]))

    # --- Suffix chains ---

    def field_suffix(self, items):
        return _suffix(items[0], Index(name=str(items[1])[1:]))

    def key_suffix(self, items):
        return _suffix(items[0], Index(key=_unquote(items[1])))

    def iterate_suffix(self, items):
        return _suffix(items[0], Iterate())

    def index_suffix(self, items):
        return _suffix(items[0], items[1])

    def optional_suffix(self, items):
        return _suffix(items[0], OptionalMark())

    def index_expr(self, items):
        return Index(start=_q(items[0]))

    def slice_both(self, items):
        return Index(start=_q(items[0]), end=_q(items[1]), is_slice=True)

    def slice_from(self, items):
        return Index(start=_q(items[0]), is_slice=True)

    def slice_to(self, items):
        return Index(end=_q(items[0]), is_slice=True)

    def slice_all(self, _items):
        return Index(is_slice=True)

    # --- Primary terms ---

    def identity(self, _items):
        return Identity()

    def recurse(self, _items):
        return Recurse()

    def field(self, items):
        return Index(name=str(items[0])[1:])

    def string_key(self, items):
        return Index(key=_unquote(items[0]))

    def number(self, items):
        return NumberLiteral(text=str(items[0]))

    def string(self, items):
        return StringLiteral(value=_unquote(items[0]))

    def format(self, items):
        name = str(items[0])[1:]
        string = _unquote(items[1]) if len(items) > 1 else None
        return Format(name=name, string=string)

    def null(self, _items):
        return NullLiteral()

    def true(self, _items):
        return BooleanLiteral(value=True)

    def false(self, _items):
        return BooleanLiteral(value=False)

    def variable(self, items):
        return Variable(name=_var_name(items[0]))

    def call(self, items):
        args = items[1] if len(items) > 1 else ()
        return FuncCall(name=str(items[0]), args=tuple(args))

    def args(self, items):
        return [_q(item) for item in items]

    def paren(self, items):
        return Parenthesized(query=_q(items[0]))

    def array(self, items):
        return ArrayLiteral(query=_q(items[0]) if items else None)

    def object(self, items):
        return ObjectLiteral(entries=tuple(items))

    def if_term(self, items):
        cond, then = _q(items[0]), _q(items[1])
        elifs = tuple(item for item in items[2:-1])
        otherwise = items[-1]
        return If(
            cond=cond,
            then=then,
            elifs=elifs,
            otherwise=_q(otherwise) if otherwise is not None else None,
        )

    def elif_clause(self, items):
        return (_q(items[0]), _q(items[1]))

    def try_term(self, items):
        body, catch = items
        return Try(body=_q(body), catch=_q(catch) if catch is not None else None)

    def reduce_term(self, items):
        source, var, init, update = items
        return Reduce(source=_q(source), pattern=_var_name(var), init=_q(init), update=_q(update))

    def foreach_term(self, items):
        source, var, init, update, extract = items
        return Foreach(
            source=_q(source),
            pattern=_var_name(var),
            init=_q(init),
            update=_q(update),
            extract=_q(extract) if extract is not None else None,
        )

    def break_term(self, items):
        return Break(name=_var_name(items[0]))

    # --- Object entries ---

    def entry_pair(self, items):
        key_tok, value = items
        return ObjectEntry(key=_entry_key(key_tok), value=_q(value))

    def entry_computed(self, items):
        key_query, value = items
        return ObjectEntry(key_query=_q(key_query), value=_q(value))

    def entry_shorthand(self, items):
        return ObjectEntry(key=_entry_key(items[0]))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _q(node) -> Query:
    """Wrap a term into a Query; pass queries through unchanged."""
    if isinstance(node, Query):
        return node
    return Query(term=node)


def _suffix(base, suffix):
    # `.` followed by an index is just the index: `.[0]`, `."a"`
    if isinstance(base, Identity) and isinstance(suffix, Index):
        return suffix
    if isinstance(base, Suffixed):
        return Suffixed(base=base.base, suffixes=base.suffixes + (suffix,))
    return Suffixed(base=base, suffixes=(suffix,))


def _var_name(token: Token) -> str:
    return str(token)[1:]


def _entry_key(token: Token) -> str:
    if token.type == "STRING":
        return _unquote(token)
    return str(token)


def _unquote(token: Token) -> str:
    """Decode a STRING token; interpolations are kept as raw text."""
    s = str(token)
    try:
        return json.loads(s)
    except json.JSONDecodeError:
        return s[1:-1].replace('\\"', '"').replace("\\\\", "\\")


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse(source: str) -> Query:
    """Parse jq query text and return its ``Query`` AST.

    An empty query is the identity filter. Raises ParseError on syntax errors.
    """
    try:
        tree = _get_parser().parse(source)
        return JqTransformer().transform(tree)
    except UnexpectedInput as e:
        raise ParseError(
            message=str(e),
            line=getattr(e, "line", None),
            column=getattr(e, "column", None),
        ) from e
