"""High-level entry points: query -> diagram file or SVG string."""

from __future__ import annotations

from pathlib import Path

from .ast_nodes import Query
from .config import RenderOptions
from .d2 import to_d2
from .renderer import LayoutEngine, check_output_format, render_svg, render_to_file
from .traversal import build_graph


def generate_diagram(
    query: Query | str,
    output_path: str | Path,
    options: RenderOptions | None = None,
    engine: LayoutEngine | None = None,
) -> Path:
    """Render ``query`` to ``output_path`` (``.d2`` text or ``.svg`` image).

    The extension is checked first, so an unsupported one fails before any
    work is done and nothing is written.
    """
    check_output_format(output_path)
    script = to_d2(build_graph(query))
    return render_to_file(script, output_path, options, engine)


def generate_svg(
    query: Query | str,
    options: RenderOptions | None = None,
    engine: LayoutEngine | None = None,
) -> str:
    """Render ``query`` to an SVG document in memory; no files are written."""
    script = to_d2(build_graph(query))
    return render_svg(script, options or RenderOptions(), engine).decode("utf-8")
