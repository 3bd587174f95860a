"""Tests for jqflow.traversal (query AST -> graph)."""

import pytest

from jqflow import traversal
from jqflow.ast_nodes import Identity, Index, NumberLiteral, Query
from jqflow.emitter import CIRCLE, ROOT, edges_in, nodes_in, operation_nodes
from jqflow.errors import GraphMutationError
from jqflow.labels import RESERVED_WORDS
from jqflow.parser import parse
from jqflow.traversal import START, Cursor, build_container, build_graph, traverse


def _labels(graph, scope=ROOT):
    return [n.label for n in nodes_in(graph, scope) if n.shape != CIRCLE]


def _edge_pairs(graph, scope=ROOT):
    return [(e.source, e.target) for e in edges_in(graph, scope)]


# ---------------------------------------------------------------------------
# End-to-end shapes
# ---------------------------------------------------------------------------

class TestEncodePipeline:

    def test_three_operation_nodes(self, encode_pipeline):
        g = build_graph(parse(encode_pipeline))
        assert [n.label for n in operation_nodes(g)] == [
            '"hello"', "base64_encode()", "base64_decode()",
        ]

    def test_linear_edges(self, encode_pipeline):
        g = build_graph(parse(encode_pipeline))
        assert _edge_pairs(g) == [
            ("start", "node_0"),
            ("node_0", "node_1"),
            ("node_1", "node_2"),
            ("node_2", "end_3"),
        ]

    def test_edge_types(self, encode_pipeline):
        g = build_graph(parse(encode_pipeline))
        edges = {(e.source, e.target): e for e in g.edges}
        assert edges[("node_1", "node_2")].type_label == "string"
        assert edges[("node_0", "node_1")].type_label == "string"
        # reserved words are never displayed
        assert edges[("node_1", "node_2")].label is None
        assert edges[("start", "node_0")].type_label is None

    def test_start_and_end_markers(self, encode_pipeline):
        g = build_graph(parse(encode_pipeline))
        assert g.nodes["start"].shape == CIRCLE
        assert g.nodes["start"].label == "Start"
        assert g.nodes["end_3"].shape == CIRCLE
        assert g.nodes["end_3"].label == "End"


class TestSlice:

    def test_single_slice_node(self, slice_query):
        g = build_graph(parse(slice_query))
        assert _labels(g) == ["Slice [0:3]"]

    def test_slice_in_pipeline_counted_once(self):
        g = build_graph(parse(".a | .[0:3]"))
        labels = [n.label for n in operation_nodes(g)]
        assert labels.count("Slice [0:3]") == 1
        assert len(labels) == 2

    def test_grouping_node_with_slice_is_one_node(self):
        index = Index(
            start=Query(term=NumberLiteral("2")),
            end=Query(term=NumberLiteral("5")),
            is_slice=True,
        )
        query = Query(left=Query(term=Identity()), right=Query(term=index))
        g = build_graph(query)
        assert [n.label for n in operation_nodes(g)] == ["Slice [2:5]"]
        assert _edge_pairs(g) == [("start", "node_0"), ("node_0", "end_1")]
        assert list(g.scopes) == [ROOT]


class TestPipes:

    @pytest.mark.parametrize("text,count", [
        (".a", 1),
        (".a | .b", 2),
        (".a | .b | .c", 3),
        ("md5 | ._val | length | tostring", 4),
    ])
    def test_node_count_equals_stages(self, text, count):
        assert len(operation_nodes(build_graph(parse(text)))) == count

    def test_pipe_never_becomes_a_node(self):
        g = build_graph(parse("md5 | ._val"))
        assert all("Pipe" not in n.label for n in g.nodes.values())

    def test_empty_query(self):
        g = build_graph(parse(""))
        assert _labels(g) == ["."]
        assert _edge_pairs(g) == [("start", "node_0"), ("node_0", "end_1")]

    def test_parenthesized_is_transparent(self):
        g = build_graph(parse("(.a | .b)"))
        assert _labels(g) == [".a", ".b"]

    def test_accepts_query_text(self):
        assert build_graph(".a | .b") == build_graph(parse(".a | .b"))


# ---------------------------------------------------------------------------
# Binary operators
# ---------------------------------------------------------------------------

class TestOperators:

    def test_operator_node_with_branches(self):
        g = build_graph(parse(".a + 1"))
        assert _labels(g) == ["Add (+)", ".a", "1"]
        assert _edge_pairs(g) == [
            ("start", "node_0"),
            ("node_1", "node_0"),
            ("node_2", "node_0"),
            ("node_0", "end_3"),
        ]

    def test_branch_edges_carry_branch_type(self):
        g = build_graph(parse("length == 1"))
        edges = {(e.source, e.target): e for e in g.edges}
        assert edges[("node_1", "node_0")].type_label == "number"
        assert edges[("node_0", "end_3")].type_label == "boolean"

    def test_branch_pipeline_feeds_operator(self):
        g = build_graph(parse("(.a | length) > 2"))
        assert _edge_pairs(g) == [
            ("start", "node_0"),
            ("node_1", "node_2"),
            ("node_2", "node_0"),
            ("node_3", "node_0"),
            ("node_0", "end_4"),
        ]

    def test_operator_inside_pipeline(self):
        g = build_graph(parse(".a | . * 2 | tostring"))
        pairs = _edge_pairs(g)
        assert ("node_0", "node_1") in pairs  # .a -> Multiply
        assert ("node_1", "node_4") in pairs  # Multiply -> tostring()


# ---------------------------------------------------------------------------
# Containers
# ---------------------------------------------------------------------------

class TestContainers:

    def test_nested_calls(self):
        g = build_graph(parse('map(select(._val | endswith(".go")))'))
        assert _labels(g) == ["map()"]
        assert _labels(g, ("node_0", "child_0")) == ["select()"]
        inner = ("node_0", "child_0", "node_0", "child_0")
        assert _labels(g, inner) == ["._val", "endswith()"]
        assert _edge_pairs(g, inner) == [("node_0", "node_1")]
        assert _labels(g, inner + ("node_1", "child_0")) == ['".go"']

    def test_no_edges_from_container_to_children(self):
        g = build_graph(parse("map(.a | .b)"))
        assert _edge_pairs(g) == [("start", "node_0"), ("node_0", "end_1")]
        assert _edge_pairs(g, ("node_0", "child_0")) == [("node_0", "node_1")]

    def test_node_count_is_one_plus_arguments(self):
        g = build_graph(parse("f(.a | .b; .c)"))
        assert len(operation_nodes(g)) == 1 + 2 + 1

    def test_arguments_are_independent(self):
        g1 = build_graph(parse("f(.a | .b; .c)"))
        g2 = build_graph(parse("f(.a | .b; .c | .d | .e)"))
        first = ("node_0", "child_0")
        assert nodes_in(g1, first) == nodes_in(g2, first)
        assert len(nodes_in(g2, ("node_0", "child_1"))) == 3

    def test_counter_resets_per_child_scope(self):
        g = build_graph(parse("f(.a; .b)"))
        assert "node_0.child_0.node_0" in g.nodes
        assert "node_0.child_1.node_0" in g.nodes

    def test_outer_counter_continues_after_container(self):
        g = build_graph(parse("map(.a | .b) | length"))
        assert _labels(g) == ["map()", "length()"]
        assert _edge_pairs(g) == [("start", "node_0"), ("node_0", "node_1"), ("node_1", "end_2")]

    def test_object_scopes_labeled_with_keys(self, hash_object):
        g = build_graph(parse(hash_object))
        assert _labels(g) == ["{file: $path, md5: (md5 | ._val)}"]
        assert g.scopes[("node_0", "child_0")] == "file"
        assert g.scopes[("node_0", "child_1")] == "md5"
        assert _labels(g, ("node_0", "child_0")) == ["$path"]
        assert _labels(g, ("node_0", "child_1")) == ["md5()", "._val"]

    def test_object_without_calls_is_still_a_container(self):
        g = build_graph(parse("{a: .x, b: .y}"))
        assert _labels(g) == ["Object"]
        assert _labels(g, ("node_0", "child_1")) == [".y"]

    def test_object_shorthand_values(self):
        g = build_graph(parse('{name, $x, "a b"}'))
        assert _labels(g, ("node_0", "child_0")) == [".name"]
        assert _labels(g, ("node_0", "child_1")) == ["$x"]
        assert _labels(g, ("node_0", "child_2")) == ['.["a b"]']

    def test_build_container_directly(self):
        g = build_graph(parse("."))
        cursor = Cursor(last_node_id=None, counter=10)
        result, g = build_container(parse("md5"), g, ROOT, cursor)
        assert result == "string"
        assert cursor.last_node_id == "node_10"
        assert cursor.counter == 11

    def test_error_context_names_container(self, monkeypatch):
        def boom(graph, scope, label=None):
            raise GraphMutationError("scope rejected", scope=scope)

        monkeypatch.setattr(traversal, "open_scope", boom)
        with pytest.raises(GraphMutationError) as exc:
            build_graph(parse("map(.a)"))
        assert str(exc.value).startswith("map() argument 0: scope rejected")
        assert exc.value.scope == ("node_0", "child_0")


# ---------------------------------------------------------------------------
# Arrays, bindings, unmodeled constructs
# ---------------------------------------------------------------------------

class TestOtherTerms:

    def test_array_with_nested_call(self):
        g = build_graph(parse('[find("pkg/udf"; "file")]'))
        assert _labels(g) == ["find()", "Array"]
        assert ("node_0", "node_1") in _edge_pairs(g)
        assert _labels(g, ("node_0", "child_0")) == ['"pkg/udf"']

    def test_array_without_call(self):
        g = build_graph(parse("[.a, .b]"))
        assert _labels(g) == ["Array"]

    def test_bind(self):
        g = build_graph(parse(". as $path | $path | cat"))
        assert _labels(g) == [".", "as $path", "$path", "cat()"]
        assert _edge_pairs(g)[:4] == [
            ("start", "node_0"),
            ("node_0", "node_1"),
            ("node_1", "node_2"),
            ("node_2", "node_3"),
        ]

    def test_comma_is_single_node(self):
        g = build_graph(parse(".a, .b"))
        assert _labels(g) == [".a, .b"]

    @pytest.mark.parametrize("text", [
        "if .a then 1 else 2 end",
        "try .a catch 0",
        "reduce .[] as $x (0; . + $x)",
        "foreach .[] as $x (0; . + $x)",
        "label $out | 1",
        "-1",
    ])
    def test_control_constructs_are_single_nodes(self, text):
        g = build_graph(parse(text))
        assert len(operation_nodes(g)) == 1


# ---------------------------------------------------------------------------
# Graph-wide properties
# ---------------------------------------------------------------------------

class TestProperties:

    def test_deterministic(self, full_pipeline):
        assert build_graph(parse(full_pipeline)) == build_graph(parse(full_pipeline))

    def test_no_reserved_edge_labels(self, full_pipeline):
        g = build_graph(parse(full_pipeline + ' | {n: length, ok: (.a == 1), s: ("x" | md5)}'))
        for edge in g.edges:
            assert edge.label is None or edge.label.lower() not in RESERVED_WORDS

    def test_full_pipeline_shape(self, full_pipeline):
        g = build_graph(parse(full_pipeline))
        assert _labels(g) == ["find()", "Array", "map()", "map()", "Slice [0:3]"]
        assert g.nodes["node_4"].label == "Slice [0:3]"
        assert ("node_4", "end_5") in _edge_pairs(g)

    def test_every_node_has_shape_and_label(self, full_pipeline):
        g = build_graph(parse(full_pipeline))
        for node in g.nodes.values():
            assert node.shape is not None
            assert node.label is not None

    def test_traverse_none_passes_type_through(self):
        g = build_graph(parse("."))
        result, g2 = traverse(None, g, ROOT, Cursor(), "string")
        assert result == "string"
        assert g2 is g

    def test_cursor_defaults(self):
        cursor = Cursor()
        assert cursor.last_node_id == START
        assert cursor.counter == 0
