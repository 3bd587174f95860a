"""Query AST -> diagram graph.

A depth-first walk threads a ``Cursor`` (last node created, next id number)
through sibling calls in one scope. Function calls and object literals become
containers whose arguments / entries are laid out in child scopes, each
starting from a fresh cursor.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .ast_nodes import (
    ArrayLiteral,
    Bind,
    FuncCall,
    Index,
    ObjectEntry,
    ObjectLiteral,
    Operator,
    Parenthesized,
    Query,
    Variable,
)
from .emitter import (
    CIRCLE,
    RECTANGLE,
    ROOT,
    Graph,
    Scope,
    create_edge,
    create_node,
    open_scope,
    set_attribute,
)
from .errors import GraphMutationError
from .labels import (
    ARRAY,
    OPERATOR_LABELS,
    SLICE_PREFIX,
    UNKNOWN,
    bind_label,
    container_label,
    contains_call,
    node_label,
    output_type,
    sanitize_edge_label,
    unmodeled,
)
from .parser import parse

logger = logging.getLogger(__name__)

START = "start"

_IDENT = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")


@dataclass
class Cursor:
    """Traversal position within one scope.

    ``last_node_id`` is ``START`` before the first node of a scope and None
    on a detached operator branch, which gets no incoming edge.
    """
    last_node_id: str | None = START
    counter: int = 0


# ---------------------------------------------------------------------------
# Node emission
# ---------------------------------------------------------------------------

def _connect(graph: Graph, scope: Scope, source: str, target: str, type_label: str) -> Graph:
    return create_edge(
        graph,
        scope,
        source,
        target,
        label=sanitize_edge_label(type_label),
        type_label=type_label or None,
    )


def _emit_node(
    graph: Graph,
    scope: Scope,
    cursor: Cursor,
    label: str,
    incoming: str,
    shape: str = RECTANGLE,
) -> tuple[str, Graph]:
    node_id = f"node_{cursor.counter}"
    cursor.counter += 1
    graph = create_node(graph, scope, node_id)
    graph = set_attribute(graph, scope, f"{node_id}.shape", shape)
    graph = set_attribute(graph, scope, f"{node_id}.label", label)
    logger.debug("node %s %r in scope %r", node_id, label, ".".join(scope))

    last = cursor.last_node_id
    if last == START:
        # Only the root scope has an entry node
        if scope == ROOT:
            graph = create_edge(graph, scope, START, node_id)
    elif last is not None:
        graph = _connect(graph, scope, last, node_id, incoming)
    cursor.last_node_id = node_id
    return node_id, graph


# ---------------------------------------------------------------------------
# Traversal
# ---------------------------------------------------------------------------

def traverse(
    query: Query | None,
    graph: Graph,
    scope: Scope,
    cursor: Cursor,
    incoming: str = UNKNOWN,
) -> tuple[str, Graph]:
    """Add the nodes for ``query`` to ``graph``.

    ``incoming`` is the type flowing in from the previous stage. Returns the
    output type of ``query`` and the new graph.
    """
    if query is None:
        return incoming, graph

    fallback = unmodeled(query)
    if fallback is not None:
        _, graph = _emit_node(graph, scope, cursor, fallback.label, incoming)
        return UNKNOWN, graph

    if query.op is Operator.PIPE:
        left_type, graph = traverse(query.left, graph, scope, cursor, incoming)
        return traverse(query.right, graph, scope, cursor, left_type)

    if query.op is not Operator.NONE:
        return _traverse_operator(query, graph, scope, cursor, incoming)

    term = query.term
    if term is None:
        return _traverse_wrapper(query, graph, scope, cursor, incoming)

    if isinstance(term, (FuncCall, ObjectLiteral)):
        return build_container(query, graph, scope, cursor, incoming)

    if isinstance(term, Parenthesized):
        return traverse(term.query, graph, scope, cursor, incoming)

    if isinstance(term, ArrayLiteral) and term.query is not None and contains_call(term.query):
        inner_type, graph = traverse(term.query, graph, scope, cursor, incoming)
        _, graph = _emit_node(graph, scope, cursor, "Array", inner_type)
        return ARRAY, graph

    if isinstance(term, Bind):
        source_type, graph = traverse(term.source, graph, scope, cursor, incoming)
        _, graph = _emit_node(graph, scope, cursor, bind_label(term.pattern), source_type)
        return traverse(term.body, graph, scope, cursor, source_type)

    _, graph = _emit_node(graph, scope, cursor, node_label(query), incoming)
    return output_type(query), graph


def _traverse_operator(
    query: Query, graph: Graph, scope: Scope, cursor: Cursor, incoming: str,
) -> tuple[str, Graph]:
    op_id, graph = _emit_node(graph, scope, cursor, OPERATOR_LABELS[query.op], incoming)
    for branch in (query.left, query.right):
        if branch is None:
            continue
        branch_cursor = Cursor(last_node_id=None, counter=cursor.counter)
        branch_type, graph = traverse(branch, graph, scope, branch_cursor, incoming)
        cursor.counter = branch_cursor.counter
        if branch_cursor.last_node_id not in (None, op_id):
            graph = _connect(graph, scope, branch_cursor.last_node_id, op_id, branch_type)
    cursor.last_node_id = op_id
    return output_type(query), graph


def _traverse_wrapper(
    query: Query, graph: Graph, scope: Scope, cursor: Cursor, incoming: str,
) -> tuple[str, Graph]:
    # An operator-less query without a term just groups its children
    label = node_label(query)
    if label.startswith(SLICE_PREFIX) or (query.left is None and query.right is None):
        _, graph = _emit_node(graph, scope, cursor, label, incoming)
        return output_type(query), graph
    current = incoming
    for child in (query.left, query.right):
        if child is not None:
            current, graph = traverse(child, graph, scope, cursor, current)
    return current, graph


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

def build_container(
    query: Query,
    graph: Graph,
    scope: Scope,
    cursor: Cursor,
    incoming: str = UNKNOWN,
) -> tuple[str, Graph]:
    """Emit a container node for a call or object literal plus one child scope per argument."""
    term = query.term
    label = container_label(term)
    container_id, graph = _emit_node(graph, scope, cursor, label, incoming)

    for k, (child_label, child_query) in enumerate(_container_children(term)):
        child_scope = scope + (container_id, f"child_{k}")
        try:
            graph = open_scope(graph, child_scope, child_label)
            _, graph = traverse(child_query, graph, child_scope, Cursor(), UNKNOWN)
        except GraphMutationError as e:
            raise e.with_context(f"{label} argument {k}") from e
    return output_type(query), graph


def _container_children(term) -> list[tuple[str | None, Query]]:
    if isinstance(term, FuncCall):
        return [(None, arg) for arg in term.args]
    return [(entry.key_text, _entry_value(entry)) for entry in term.entries]


def _entry_value(entry: ObjectEntry) -> Query:
    """The value of an entry, spelling out ``{name}`` and ``{$x}`` shorthands."""
    if entry.value is not None:
        return entry.value
    key = entry.key or ""
    if key.startswith("$"):
        return Query(term=Variable(name=key[1:]))
    if _IDENT.match(key):
        return Query(term=Index(name=key))
    return Query(term=Index(key=key))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def build_graph(query: Query | str) -> Graph:
    """Build the full diagram graph (Start and End markers included) for a query."""
    if isinstance(query, str):
        query = parse(query)

    graph = create_node(Graph(), ROOT, START)
    graph = set_attribute(graph, ROOT, f"{START}.shape", CIRCLE)
    graph = set_attribute(graph, ROOT, f"{START}.label", "Start")

    cursor = Cursor()
    result_type, graph = traverse(query, graph, ROOT, cursor, UNKNOWN)

    end_id = f"end_{cursor.counter}"
    graph = create_node(graph, ROOT, end_id)
    graph = set_attribute(graph, ROOT, f"{end_id}.shape", CIRCLE)
    graph = set_attribute(graph, ROOT, f"{end_id}.label", "End")
    if cursor.last_node_id != START:
        graph = _connect(graph, ROOT, cursor.last_node_id, end_id, result_type)
    logger.debug("graph built: %d nodes, %d edges", len(graph.nodes), len(graph.edges))
    return graph
