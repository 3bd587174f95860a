"""In-memory diagram graph and its append-only mutation functions.

Every mutation takes a ``Graph`` and returns a new one; the argument is left
untouched. Nothing is ever removed or overwritten: ids are unique, each
attribute is set once, each edge exists once per scope.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from .errors import GraphMutationError

Scope = tuple[str, ...]

ROOT: Scope = ()

RECTANGLE = "rectangle"
CIRCLE = "circle"


@dataclass(frozen=True)
class Node:
    id: str
    scope: Scope
    local_id: str
    attributes: dict[str, str] = field(default_factory=dict)

    @property
    def shape(self) -> str | None:
        return self.attributes.get("shape")

    @property
    def label(self) -> str | None:
        return self.attributes.get("label")


@dataclass(frozen=True)
class Edge:
    """A directed edge between two nodes of the same scope.

    ``type_label`` is the inferred output type as computed; ``label`` is what
    gets displayed (None once sanitized away).
    """
    scope: Scope
    source: str
    target: str
    label: str | None = None
    type_label: str | None = None

    @property
    def key(self) -> tuple[Scope, str, str]:
        return (self.scope, self.source, self.target)


@dataclass(frozen=True)
class Graph:
    nodes: dict[str, Node] = field(default_factory=dict)
    edges: tuple[Edge, ...] = ()
    scopes: dict[Scope, str | None] = field(default_factory=lambda: {ROOT: None})


def full_id(scope: Scope, local_id: str) -> str:
    """Join a scope path and a local id into a dotted node id."""
    return ".".join(scope + (local_id,))


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

def create_node(graph: Graph, scope: Scope, local_id: str) -> Graph:
    if scope not in graph.scopes:
        raise GraphMutationError(f"unknown scope {'.'.join(scope)!r}", node_id=local_id, scope=scope)
    if not local_id or "." in local_id:
        raise GraphMutationError(f"invalid node id {local_id!r}", node_id=local_id, scope=scope)
    node_id = full_id(scope, local_id)
    if node_id in graph.nodes:
        raise GraphMutationError(f"duplicate node id {node_id!r}", node_id=node_id, scope=scope)
    nodes = dict(graph.nodes)
    nodes[node_id] = Node(id=node_id, scope=scope, local_id=local_id)
    return replace(graph, nodes=nodes)


def set_attribute(graph: Graph, scope: Scope, key: str, value: str) -> Graph:
    """Set ``<nodeID>.<attr>`` on a node of ``scope``, e.g. ``node_0.label``."""
    local_id, sep, attr = key.rpartition(".")
    if not sep or not local_id or not attr:
        raise GraphMutationError(f"malformed attribute key {key!r}", scope=scope)
    node_id = full_id(scope, local_id)
    node = graph.nodes.get(node_id)
    if node is None:
        raise GraphMutationError(f"no node {node_id!r} to set {attr!r} on", node_id=node_id, scope=scope)
    if attr in node.attributes:
        raise GraphMutationError(f"attribute {attr!r} already set on {node_id!r}", node_id=node_id, scope=scope)
    nodes = dict(graph.nodes)
    nodes[node_id] = replace(node, attributes={**node.attributes, attr: value})
    return replace(graph, nodes=nodes)


def create_edge(
    graph: Graph,
    scope: Scope,
    source: str,
    target: str,
    label: str | None = None,
    type_label: str | None = None,
) -> Graph:
    for endpoint in (source, target):
        if full_id(scope, endpoint) not in graph.nodes:
            raise GraphMutationError(
                f"edge endpoint {full_id(scope, endpoint)!r} does not exist",
                node_id=endpoint,
                scope=scope,
                edge=(source, target),
            )
    edge = Edge(scope=scope, source=source, target=target, label=label, type_label=type_label)
    if any(e.key == edge.key for e in graph.edges):
        raise GraphMutationError(
            f"duplicate edge {source} -> {target}", scope=scope, edge=(source, target),
        )
    return replace(graph, edges=graph.edges + (edge,))


def open_scope(graph: Graph, scope: Scope, label: str | None = None) -> Graph:
    """Register ``scope`` as a child scope of the container node it names."""
    if len(scope) < 2:
        raise GraphMutationError(f"not a child scope: {scope!r}", scope=scope)
    container_id = ".".join(scope[:-1])
    if container_id not in graph.nodes:
        raise GraphMutationError(
            f"container {container_id!r} does not exist", node_id=container_id, scope=scope,
        )
    if scope in graph.scopes:
        raise GraphMutationError(f"scope {'.'.join(scope)!r} already open", scope=scope)
    scopes = dict(graph.scopes)
    scopes[scope] = label
    return replace(graph, scopes=scopes)


# ---------------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------------

def nodes_in(graph: Graph, scope: Scope) -> list[Node]:
    return [n for n in graph.nodes.values() if n.scope == scope]


def edges_in(graph: Graph, scope: Scope) -> list[Edge]:
    return [e for e in graph.edges if e.scope == scope]


def child_scopes(graph: Graph, node: Node) -> list[Scope]:
    """Scopes opened directly below a container node, in creation order."""
    prefix = node.scope + (node.local_id,)
    return [s for s in graph.scopes if len(s) == len(prefix) + 1 and s[:-1] == prefix]


def operation_nodes(graph: Graph) -> list[Node]:
    """All non-marker nodes, i.e. everything but the Start/End circles."""
    return [n for n in graph.nodes.values() if n.shape == RECTANGLE]
