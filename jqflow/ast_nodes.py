"""Frozen dataclasses for the jq query AST.

The shape follows the usual jq parser layout: a ``Query`` is either an
operator node (``op`` with ``left``/``right``) or a term node (``term``).
``str()`` on any node renders it back to jq source, which is what the
diagram uses as its textual fallback.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Union


# ---------------------------------------------------------------------------
# Operators
# ---------------------------------------------------------------------------

class Operator(Enum):
    """Binary operators, from loosest to tightest binding."""
    NONE = ""
    PIPE = "|"
    COMMA = ","
    ALT = "//"
    ASSIGN = "="
    MODIFY = "|="
    UPDATE_ADD = "+="
    UPDATE_SUB = "-="
    UPDATE_MUL = "*="
    UPDATE_DIV = "/="
    UPDATE_MOD = "%="
    UPDATE_ALT = "//="
    OR = "or"
    AND = "and"
    EQ = "=="
    NE = "!="
    LT = "<"
    LE = "<="
    GT = ">"
    GE = ">="
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"

    @property
    def is_arithmetic(self) -> bool:
        return self in _ARITHMETIC

    @property
    def is_comparison(self) -> bool:
        return self in _COMPARISON

    @property
    def is_logical(self) -> bool:
        return self in (Operator.AND, Operator.OR)


_ARITHMETIC = frozenset({Operator.ADD, Operator.SUB, Operator.MUL, Operator.DIV, Operator.MOD})
_COMPARISON = frozenset({
    Operator.EQ, Operator.NE, Operator.LT, Operator.LE, Operator.GT, Operator.GE,
})


# ---------------------------------------------------------------------------
# Query
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Query:
    """One node of the query tree."""
    op: Operator = Operator.NONE
    term: Term | None = None
    left: Query | None = None
    right: Query | None = None

    def __str__(self) -> str:
        if self.op is Operator.NONE:
            if self.term is not None:
                return str(self.term)
            return " ".join(str(q) for q in (self.left, self.right) if q is not None)
        left = str(self.left) if self.left is not None else ""
        right = str(self.right) if self.right is not None else ""
        if self.op is Operator.COMMA:
            return f"{left}, {right}"
        return f"{left} {self.op.value} {right}"


# ---------------------------------------------------------------------------
# Leaf terms
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Identity:
    """The identity filter ``.``."""

    def __str__(self) -> str:
        return "."


@dataclass(frozen=True)
class Recurse:
    """Recursive descent ``..``."""

    def __str__(self) -> str:
        return ".."


@dataclass(frozen=True)
class NullLiteral:

    def __str__(self) -> str:
        return "null"


@dataclass(frozen=True)
class BooleanLiteral:
    value: bool

    def __str__(self) -> str:
        return "true" if self.value else "false"


@dataclass(frozen=True)
class NumberLiteral:
    """A number, kept as its source text so ``1.50`` stays ``1.50``."""
    text: str

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class StringLiteral:
    value: str

    def __str__(self) -> str:
        return json.dumps(self.value, ensure_ascii=False)


@dataclass(frozen=True)
class Variable:
    """A variable reference ``$name`` (name stored without the ``$``)."""
    name: str

    def __str__(self) -> str:
        return f"${self.name}"


@dataclass(frozen=True)
class Format:
    """A format string such as ``@base64`` or ``@csv "..."``."""
    name: str
    string: str | None = None

    def __str__(self) -> str:
        if self.string is None:
            return f"@{self.name}"
        return f"@{self.name} {json.dumps(self.string, ensure_ascii=False)}"


# ---------------------------------------------------------------------------
# Paths: index, iterate, optional, suffix chains
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Index:
    """``.name``, ``."key"``, ``.[expr]`` or a slice ``.[start:end]``.

    For a non-slice expression index the expression lives in ``start``.
    """
    name: str | None = None
    key: str | None = None
    start: Query | None = None
    end: Query | None = None
    is_slice: bool = False

    def __str__(self) -> str:
        text = self.suffix_text()
        return text if text.startswith(".") else "." + text

    def suffix_text(self) -> str:
        """Render as a suffix, i.e. without the leading identity dot."""
        if self.is_slice:
            start = str(self.start) if self.start is not None else ""
            end = str(self.end) if self.end is not None else ""
            return f"[{start}:{end}]"
        if self.name is not None:
            return f".{self.name}"
        if self.key is not None:
            return "." + json.dumps(self.key, ensure_ascii=False)
        return f"[{self.start}]"


@dataclass(frozen=True)
class Iterate:
    """The ``[]`` suffix."""

    def suffix_text(self) -> str:
        return "[]"


@dataclass(frozen=True)
class OptionalMark:
    """The ``?`` suffix."""

    def suffix_text(self) -> str:
        return "?"


Suffix = Union[Index, Iterate, OptionalMark]


@dataclass(frozen=True)
class Suffixed:
    """A base term followed by a chain of suffixes, e.g. ``.a[0].b?``."""
    base: Term
    suffixes: tuple[Suffix, ...]

    def __str__(self) -> str:
        rest = "".join(s.suffix_text() for s in self.suffixes)
        if isinstance(self.base, Identity) and rest.startswith("."):
            return rest
        return f"{self.base}{rest}"


# ---------------------------------------------------------------------------
# Calls and constructors
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FuncCall:
    """A function call; each argument is an independent query."""
    name: str
    args: tuple[Query, ...] = ()

    def __str__(self) -> str:
        if not self.args:
            return self.name
        return f"{self.name}({'; '.join(str(a) for a in self.args)})"


@dataclass(frozen=True)
class ArrayLiteral:
    """``[query]`` or the empty array ``[]``."""
    query: Query | None = None

    def __str__(self) -> str:
        return f"[{self.query}]" if self.query is not None else "[]"


@dataclass(frozen=True)
class ObjectEntry:
    """One ``key: value`` pair of an object literal.

    ``key`` holds a literal name, a string key or ``$var``; ``key_query``
    holds a computed ``(expr)`` key. ``value`` is None for shorthand
    entries such as ``{name}`` or ``{$x}``.
    """
    key: str | None = None
    key_query: Query | None = None
    value: Query | None = None

    @property
    def key_text(self) -> str:
        if self.key_query is not None:
            return f"({self.key_query})"
        return self.key or ""

    def __str__(self) -> str:
        if self.value is None:
            return self.key_text
        return f"{self.key_text}: {self.value}"


@dataclass(frozen=True)
class ObjectLiteral:
    entries: tuple[ObjectEntry, ...] = ()

    def __str__(self) -> str:
        return "{" + ", ".join(str(e) for e in self.entries) + "}"


@dataclass(frozen=True)
class Parenthesized:
    """A parenthesized sub-query ``(query)``."""
    query: Query

    def __str__(self) -> str:
        return f"({self.query})"


@dataclass(frozen=True)
class Bind:
    """Variable binding ``source as $pattern | body``."""
    source: Query
    pattern: str
    body: Query

    def __str__(self) -> str:
        return f"{self.source} as ${self.pattern} | {self.body}"


# ---------------------------------------------------------------------------
# Control constructs (rendered generically in diagrams)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Negate:
    """Unary minus."""
    operand: Query

    def __str__(self) -> str:
        return f"-{self.operand}"


@dataclass(frozen=True)
class If:
    cond: Query
    then: Query
    elifs: tuple[tuple[Query, Query], ...] = ()
    otherwise: Query | None = None

    def __str__(self) -> str:
        parts = [f"if {self.cond} then {self.then}"]
        for cond, then in self.elifs:
            parts.append(f"elif {cond} then {then}")
        if self.otherwise is not None:
            parts.append(f"else {self.otherwise}")
        parts.append("end")
        return " ".join(parts)


@dataclass(frozen=True)
class Try:
    body: Query
    catch: Query | None = None

    def __str__(self) -> str:
        if self.catch is None:
            return f"try {self.body}"
        return f"try {self.body} catch {self.catch}"


@dataclass(frozen=True)
class Reduce:
    source: Query
    pattern: str
    init: Query
    update: Query

    def __str__(self) -> str:
        return f"reduce {self.source} as ${self.pattern} ({self.init}; {self.update})"


@dataclass(frozen=True)
class Foreach:
    source: Query
    pattern: str
    init: Query
    update: Query
    extract: Query | None = None

    def __str__(self) -> str:
        extract = f"; {self.extract}" if self.extract is not None else ""
        return f"foreach {self.source} as ${self.pattern} ({self.init}; {self.update}{extract})"


@dataclass(frozen=True)
class Label:
    name: str
    body: Query

    def __str__(self) -> str:
        return f"label ${self.name} | {self.body}"


@dataclass(frozen=True)
class Break:
    name: str

    def __str__(self) -> str:
        return f"break ${self.name}"


# Term is the union of all term variants
Term = Union[
    Identity, Recurse, NullLiteral, BooleanLiteral, NumberLiteral, StringLiteral,
    Variable, Format, Index, Suffixed, FuncCall, ArrayLiteral, ObjectLiteral,
    Parenthesized, Bind, Negate, If, Try, Reduce, Foreach, Label, Break,
]

# Terms the diagram renders as a single node with their source text
UNMODELED_TERMS = (Format, Negate, If, Try, Reduce, Foreach, Label, Break)
