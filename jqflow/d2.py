"""Graph -> D2 diagram text."""

from __future__ import annotations

from .emitter import ROOT, Graph, Scope, child_scopes, edges_in, nodes_in

_INDENT = "  "

# Attributes written as bare D2 keywords rather than strings
_KEYWORD_ATTRIBUTES = frozenset({"shape"})


def quote(text: str) -> str:
    """Render ``text`` as a double-quoted D2 string."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")
    return f'"{escaped}"'


def to_d2(graph: Graph) -> str:
    """Serialize a graph to D2 text, child scopes nested in their containers."""
    lines: list[str] = []
    _write_scope(graph, ROOT, 0, lines)
    return "\n".join(lines) + "\n"


def _write_scope(graph: Graph, scope: Scope, depth: int, lines: list[str]) -> None:
    pad = _INDENT * depth
    for node in nodes_in(graph, scope):
        lines.append(f"{pad}{node.local_id}: {{")
        for attr, value in node.attributes.items():
            rendered = value if attr in _KEYWORD_ATTRIBUTES else quote(value)
            lines.append(f"{pad}{_INDENT}{attr}: {rendered}")
        for child in child_scopes(graph, node):
            lines.append(f"{pad}{_INDENT}{child[-1]}: {{")
            label = graph.scopes[child]
            if label is not None:
                lines.append(f"{pad}{_INDENT * 2}label: {quote(label)}")
            _write_scope(graph, child, depth + 2, lines)
            lines.append(f"{pad}{_INDENT}}}")
        lines.append(f"{pad}}}")
    for edge in edges_in(graph, scope):
        line = f"{pad}{edge.source} -> {edge.target}"
        if edge.label:
            line += f": {quote(edge.label)}"
        lines.append(line)
