"""Tests for jqflow.d2 (graph serialization)."""

from jqflow.d2 import quote, to_d2
from jqflow.emitter import ROOT, Graph, create_edge, create_node, set_attribute
from jqflow.parser import parse
from jqflow.traversal import build_graph

SIMPLE_D2 = '''start: {
  shape: circle
  label: "Start"
}
node_0: {
  shape: rectangle
  label: ".a"
}
end_1: {
  shape: circle
  label: "End"
}
start -> node_0
node_0 -> end_1
'''


class TestToD2:

    def test_simple_query(self):
        assert to_d2(build_graph(parse(".a"))) == SIMPLE_D2

    def test_string_labels_are_escaped(self, encode_pipeline):
        script = to_d2(build_graph(parse(encode_pipeline)))
        assert 'label: "\\"hello\\""' in script
        assert 'label: "base64_encode()"' in script

    def test_start_and_end_edges(self):
        script = to_d2(build_graph(parse("md5")))
        assert "start -> node_0" in script
        assert "-> end_" in script
        assert 'label: "md5()"' in script

    def test_pipe_not_rendered(self):
        script = to_d2(build_graph(parse("md5 | ._val")))
        assert "Pipe" not in script
        assert "._val" in script

    def test_reserved_type_not_written_on_edge(self, encode_pipeline):
        script = to_d2(build_graph(parse(encode_pipeline)))
        assert "node_1 -> node_2\n" in script
        assert '"string"' not in script

    def test_labeled_edge(self):
        g = create_node(Graph(), ROOT, "a")
        g = create_node(g, ROOT, "b")
        g = create_edge(g, ROOT, "a", "b", label="rows")
        assert to_d2(g).endswith('a -> b: "rows"\n')

    def test_children_nested_in_container(self):
        script = to_d2(build_graph(parse("map(.a | .b)")))
        assert "\n  child_0: {\n    node_0: {\n      shape: rectangle\n" in script
        # edges of a child scope live inside that scope's block
        assert "\n    node_0 -> node_1\n  }\n}\n" in script

    def test_object_scope_labels(self, hash_object):
        script = to_d2(build_graph(parse(hash_object)))
        assert '  child_0: {\n    label: "file"\n' in script
        assert '  child_1: {\n    label: "md5"\n' in script

    def test_variables_kept_verbatim(self, full_pipeline):
        script = to_d2(build_graph(parse(full_pipeline)))
        assert "$path" in script
        assert script.count("Slice [0:3]") == 1
        for name in ("map()", "select()", "endswith()", "find()", "cat()"):
            assert name in script

    def test_attributes_in_creation_order(self):
        g = create_node(Graph(), ROOT, "n")
        g = set_attribute(g, ROOT, "n.label", "L")
        g = set_attribute(g, ROOT, "n.shape", "circle")
        assert to_d2(g) == 'n: {\n  label: "L"\n  shape: circle\n}\n'


class TestQuote:

    def test_plain(self):
        assert quote("abc") == '"abc"'

    def test_escapes(self):
        assert quote('a"b\\c\nd') == '"a\\"b\\\\c\\nd"'
