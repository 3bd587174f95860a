"""Shared fixtures for jqflow tests."""

import pytest

from jqflow.errors import LayoutCompilationError, RasterizationError
from jqflow.renderer import CompiledDiagram, LayoutEngine, strip_directives


# ---------------------------------------------------------------------------
# Sample queries
# ---------------------------------------------------------------------------

ENCODE_PIPELINE = '"hello" | base64_encode | base64_decode'

SLICE_QUERY = ".[0:3]"

HASH_OBJECT = '{file: $path, md5: (md5 | ._val)}'

FULL_PIPELINE = (
    '[find("pkg/udf"; "file")] '
    '| map(select(._val | endswith(".go"))) '
    '| map(. as $path | $path | cat | ._val | {file: $path, md5: (md5 | ._val)}) '
    '| .[0:3]'
)

SVG_BYTES = b'<svg xmlns="http://www.w3.org/2000/svg"></svg>'


@pytest.fixture
def encode_pipeline():
    return ENCODE_PIPELINE


@pytest.fixture
def slice_query():
    return SLICE_QUERY


@pytest.fixture
def hash_object():
    return HASH_OBJECT


@pytest.fixture
def full_pipeline():
    return FULL_PIPELINE


@pytest.fixture
def svg_bytes():
    return SVG_BYTES


# ---------------------------------------------------------------------------
# Fake layout engines (the d2 executable is never required)
# ---------------------------------------------------------------------------

class RecordingEngine(LayoutEngine):
    """Accepts everything and remembers what it was given."""

    name = "fake"

    def __init__(self):
        self.compiled_scripts = []
        self.raster_calls = []

    def compile(self, script):
        self.compiled_scripts.append(script)
        body, layout = strip_directives(script)
        return CompiledDiagram(script=body, layout=layout or "dagre")

    def rasterize(self, diagram, theme, pad):
        self.raster_calls.append((diagram, theme, pad))
        return SVG_BYTES


class FailingEngine(LayoutEngine):
    """Fails at the configured stage ("compile" or "rasterize")."""

    name = "failing"

    def __init__(self, stage="compile"):
        self.stage = stage

    def compile(self, script):
        if self.stage == "compile":
            raise LayoutCompilationError("layout exploded")
        body, layout = strip_directives(script)
        return CompiledDiagram(script=body, layout=layout or "dagre")

    def rasterize(self, diagram, theme, pad):
        raise RasterizationError("rasterizer exploded")


@pytest.fixture
def recording_engine():
    return RecordingEngine()


@pytest.fixture
def failing_engine():
    return FailingEngine("compile")


@pytest.fixture
def failing_rasterizer():
    return FailingEngine("rasterize")
