"""Display labels and coarse output types for query nodes.

Everything here is a pure function of AST shape: no graph access, no state.
"""

from __future__ import annotations

import dataclasses
import json
import re
from dataclasses import dataclass

from .ast_nodes import (
    UNMODELED_TERMS,
    ArrayLiteral,
    Bind,
    BooleanLiteral,
    FuncCall,
    Identity,
    Index,
    Iterate,
    NullLiteral,
    NumberLiteral,
    ObjectEntry,
    ObjectLiteral,
    Operator,
    OptionalMark,
    Parenthesized,
    Query,
    Recurse,
    StringLiteral,
    Suffixed,
    Variable,
)

MAX_LABEL_LENGTH = 50

SLICE_PREFIX = "Slice "

# Edge labels equal to one of these would clash with D2 keywords
RESERVED_WORDS = frozenset({
    "array", "object", "string", "number", "boolean", "bool", "null", "true", "false",
})

OPERATOR_LABELS: dict[Operator, str] = {
    Operator.PIPE: "Pipe (|)",
    Operator.COMMA: "Comma (,)",
    Operator.ADD: "Add (+)",
    Operator.SUB: "Subtract (-)",
    Operator.MUL: "Multiply (*)",
    Operator.DIV: "Divide (/)",
    Operator.MOD: "Modulo (%)",
    Operator.EQ: "Equal (==)",
    Operator.NE: "Not Equal (!=)",
    Operator.GT: "Greater Than (>)",
    Operator.LT: "Less Than (<)",
    Operator.GE: "Greater or Equal (>=)",
    Operator.LE: "Less or Equal (<=)",
    Operator.AND: "And (and)",
    Operator.OR: "Or (or)",
    Operator.ALT: "Alternative (//)",
    Operator.ASSIGN: "Assign (=)",
    Operator.MODIFY: "Modify (|=)",
    Operator.UPDATE_ADD: "Update Add (+=)",
    Operator.UPDATE_SUB: "Update Subtract (-=)",
    Operator.UPDATE_MUL: "Update Multiply (*=)",
    Operator.UPDATE_DIV: "Update Divide (/=)",
    Operator.UPDATE_MOD: "Update Modulo (%=)",
    Operator.UPDATE_ALT: "Update Alternative (//=)",
}

# Output type tags
STRING = "string"
NUMBER = "number"
BOOLEAN = "boolean"
NULL = "null"
ARRAY = "array"
OBJECT = "object"
UNKNOWN = ""

_STRING_FUNCTIONS = frozenset({"cat", "tee", "sh", "md5", "ssdeep"})
_NUMBER_FUNCTIONS = frozenset({"length", "keys"})

_SLICE_PATTERN = re.compile(r"\[[^\[\]]*:[^\[\]]*\]")


# ---------------------------------------------------------------------------
# Unmodeled constructs
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Unmodeled:
    """A construct the diagram draws as one node showing its source text."""
    kind: str
    text: str

    @property
    def label(self) -> str:
        return truncate(self.text)


def unmodeled(query: Query) -> Unmodeled | None:
    """Classify ``query`` as unmodeled (comma, control constructs) or return None."""
    if query.op is Operator.COMMA:
        return Unmodeled(kind="comma", text=str(query))
    if isinstance(query.term, UNMODELED_TERMS):
        return Unmodeled(kind=type(query.term).__name__.lower(), text=str(query.term))
    return None


# ---------------------------------------------------------------------------
# Labels
# ---------------------------------------------------------------------------

def truncate(text: str) -> str:
    if len(text) > MAX_LABEL_LENGTH:
        return text[:MAX_LABEL_LENGTH - 3] + "..."
    return text


def node_label(query: Query) -> str:
    """Label for the node that represents ``query``."""
    if query.op is not Operator.NONE:
        return OPERATOR_LABELS[query.op]
    if query.term is not None:
        return term_label(query.term)
    # Wrapper query: look for a slice in its source text
    text = str(query)
    match = _SLICE_PATTERN.search(text)
    if match:
        return SLICE_PREFIX + match.group(0)
    return truncate(text)


def term_label(term) -> str:
    if isinstance(term, Identity):
        return "."
    if isinstance(term, Recurse):
        return ".."
    if isinstance(term, (NullLiteral, BooleanLiteral, NumberLiteral, StringLiteral, Variable)):
        return str(term)
    if isinstance(term, Index):
        if term.is_slice:
            return SLICE_PREFIX + slice_text(term)
        label = _index_suffix_label(term)
        return label if label.startswith(".") else "." + label
    if isinstance(term, Suffixed):
        return _suffixed_label(term)
    if isinstance(term, FuncCall):
        return call_label(term)
    if isinstance(term, ObjectLiteral):
        if contains_call(term):
            return "{" + ", ".join(_entry_label(e) for e in term.entries) + "}"
        return "Object"
    if isinstance(term, ArrayLiteral):
        if term.query is not None and contains_call(term.query):
            return f"[{compact(term.query)}]"
        return "Array"
    if isinstance(term, Parenthesized):
        return f"({compact(term.query)})"
    if isinstance(term, Bind):
        return bind_label(term.pattern)
    return truncate(str(term))


def call_label(call: FuncCall) -> str:
    """``name(arg1, arg2)`` with compact arguments; ``name()`` when there are none."""
    return f"{call.name}({', '.join(compact(a) for a in call.args)})"


def container_label(term) -> str:
    """Label of a container node: ``name()`` for calls, the object label otherwise."""
    if isinstance(term, FuncCall):
        return f"{term.name}()"
    return term_label(term)


def bind_label(pattern: str) -> str:
    return f"as ${pattern}"


def slice_text(index: Index) -> str:
    """``[start:end]`` with absent bounds omitted."""
    start = _bound_text(index.start)
    end = _bound_text(index.end)
    return f"[{start}:{end}]"


def compact(query: Query) -> str:
    """Render an argument or value as short jq text."""
    term = query.term
    if query.op is Operator.NONE and term is not None:
        if isinstance(term, FuncCall):
            return call_label(term)
        if isinstance(term, Index) and term.is_slice:
            return "." + slice_text(term)
        if isinstance(term, UNMODELED_TERMS + (ObjectLiteral, ArrayLiteral)):
            return str(term)
        return term_label(term)
    return str(query)


def _bound_text(bound: Query | None) -> str:
    if bound is None:
        return ""
    if isinstance(bound.term, NumberLiteral):
        return bound.term.text
    return str(bound)


def _index_suffix_label(index: Index) -> str:
    if index.is_slice:
        return slice_text(index)
    if index.name is not None:
        return f".{index.name}"
    if index.key is not None:
        return f"[{json.dumps(index.key, ensure_ascii=False)}]"
    return f"[{compact(index.start)}]" if index.start is not None else "[]"


def _suffix_label(suffix) -> str:
    if isinstance(suffix, Index):
        return _index_suffix_label(suffix)
    if isinstance(suffix, Iterate):
        return "[]"
    if isinstance(suffix, OptionalMark):
        return "?"
    raise TypeError(f"not a suffix: {suffix!r}")


def _suffixed_label(term: Suffixed) -> str:
    slice_at = next(
        (i for i, s in enumerate(term.suffixes) if isinstance(s, Index) and s.is_slice),
        None,
    )
    if isinstance(term.base, Identity):
        base = ""
    elif isinstance(term.base, (Index, Suffixed)):
        base = term_label(term.base)
    else:
        base = compact(Query(term=term.base))
    if slice_at is not None:
        path = base + "".join(_suffix_label(s) for s in term.suffixes[:slice_at])
        rest = "".join(_suffix_label(s) for s in term.suffixes[slice_at + 1:])
        return SLICE_PREFIX + path + slice_text(term.suffixes[slice_at]) + rest
    rest = "".join(_suffix_label(s) for s in term.suffixes)
    if not base and not rest.startswith("."):
        return "." + rest
    return base + rest


def _entry_label(entry: ObjectEntry) -> str:
    if entry.value is None:
        return entry.key_text
    return f"{entry.key_text}: {compact(entry.value)}"


# ---------------------------------------------------------------------------
# Nested call discovery
# ---------------------------------------------------------------------------

def contains_call(node) -> bool:
    """True if a function call occurs anywhere below ``node``."""
    if isinstance(node, FuncCall):
        return True
    if isinstance(node, tuple):
        return any(contains_call(item) for item in node)
    if dataclasses.is_dataclass(node):
        return any(contains_call(getattr(node, f.name)) for f in dataclasses.fields(node))
    return False


# ---------------------------------------------------------------------------
# Output types
# ---------------------------------------------------------------------------

def output_type(query: Query) -> str:
    """Coarse type tag of the value ``query`` produces, or ``""`` if unknown."""
    term = query.term
    if query.op is Operator.NONE and term is not None:
        if isinstance(term, StringLiteral):
            return STRING
        if isinstance(term, NumberLiteral):
            return NUMBER
        if isinstance(term, BooleanLiteral):
            return BOOLEAN
        if isinstance(term, NullLiteral):
            return NULL
        if isinstance(term, ArrayLiteral):
            return ARRAY
        if isinstance(term, ObjectLiteral):
            return OBJECT
        if isinstance(term, FuncCall):
            return function_output_type(term.name)
        if isinstance(term, Parenthesized):
            return output_type(term.query)
        return UNKNOWN
    if query.op.is_arithmetic:
        return NUMBER
    if query.op.is_comparison or query.op.is_logical:
        return BOOLEAN
    return UNKNOWN


def function_output_type(name: str) -> str:
    if (
        name.endswith("_encode")
        or name.endswith("_decode")
        or name.startswith("base")
        or name.startswith("hex")
        or name.startswith("sha")
        or name in _STRING_FUNCTIONS
    ):
        return STRING
    if name in _NUMBER_FUNCTIONS:
        return NUMBER
    return UNKNOWN


# ---------------------------------------------------------------------------
# Edge labels
# ---------------------------------------------------------------------------

def sanitize_edge_label(label: str | None) -> str | None:
    """Trim quotes and whitespace; drop empty labels and reserved words."""
    if label is None:
        return None
    cleaned = label.strip().strip("\"'").strip()
    if not cleaned or cleaned.lower() in RESERVED_WORDS:
        return None
    return cleaned
