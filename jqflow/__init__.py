"""jqflow: draw jq queries as D2 flow diagrams."""

from .ast_nodes import (
    ArrayLiteral,
    Bind,
    FuncCall,
    Index,
    ObjectEntry,
    ObjectLiteral,
    Operator,
    Query,
    Suffixed,
)
from .config import RenderOptions, load_options
from .d2 import to_d2
from .diagram import generate_diagram, generate_svg
from .emitter import Edge, Graph, Node
from .errors import (
    ConfigError,
    GraphMutationError,
    JqFlowError,
    LayoutCompilationError,
    ParseError,
    RasterizationError,
    RenderError,
    UnsupportedFormatError,
)
from .parser import parse
from .renderer import D2CliEngine, LayoutEngine, get_engine
from .traversal import build_graph

__all__ = [
    "parse",
    "build_graph",
    "to_d2",
    "generate_diagram",
    "generate_svg",
    "RenderOptions",
    "load_options",
    "LayoutEngine",
    "D2CliEngine",
    "get_engine",
    "Graph",
    "Node",
    "Edge",
    "Query",
    "Operator",
    "Index",
    "Suffixed",
    "FuncCall",
    "ArrayLiteral",
    "ObjectLiteral",
    "ObjectEntry",
    "Bind",
    "JqFlowError",
    "ParseError",
    "ConfigError",
    "GraphMutationError",
    "RenderError",
    "LayoutCompilationError",
    "RasterizationError",
    "UnsupportedFormatError",
]
