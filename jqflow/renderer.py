"""D2 text -> output file.

``.d2`` targets get the plain D2 text. ``.svg`` targets get layout directives
prepended, are compiled by a layout engine and rasterized; if either step
fails the D2 text is saved next to the requested output for debugging.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import tempfile
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path

from .config import RenderOptions
from .errors import (
    LayoutCompilationError,
    RasterizationError,
    RenderError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)

TEXT_EXTENSION = ".d2"
IMAGE_EXTENSION = ".svg"
SUPPORTED_EXTENSIONS = (TEXT_EXTENSION, IMAGE_EXTENSION)

DIRECTION = "right"
LAYOUT_DIRECTIVE = "layout-engine"

# Layout engine name -> layout style (shown in the CLI help)
ENGINES: dict[str, str] = {
    "dagre": "hierarchical",
    "elk": "layered",
}


def check_output_format(path: str | Path) -> str:
    """Return the lower-cased extension of ``path`` or raise UnsupportedFormatError."""
    ext = Path(path).suffix.lower()
    if ext not in SUPPORTED_EXTENSIONS:
        raise UnsupportedFormatError(path, SUPPORTED_EXTENSIONS)
    return ext


# ---------------------------------------------------------------------------
# Directives
# ---------------------------------------------------------------------------

def with_directives(script: str, layout: str) -> str:
    return f"direction: {DIRECTION}\n{LAYOUT_DIRECTIVE}: {layout}\n{script}"


def strip_directives(script: str) -> tuple[str, str | None]:
    """Remove top-level ``layout-engine`` lines from ``script``.

    Returns the remaining script and the requested layout (None if absent).
    The ``direction`` directive is real D2 and stays.
    """
    kept: list[str] = []
    layout: str | None = None
    for line in script.splitlines(keepends=True):
        key, sep, value = line.partition(":")
        if line[:1].isspace() or not sep or key.strip() != LAYOUT_DIRECTIVE:
            kept.append(line)
            continue
        value = value.strip()
        if not value:
            raise LayoutCompilationError(f"malformed directive: {line.strip()!r}")
        if layout is not None and value != layout:
            raise LayoutCompilationError(f"conflicting layout directives: {layout!r} and {value!r}")
        layout = value
    return "".join(kept), layout


# ---------------------------------------------------------------------------
# Layout engines
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class CompiledDiagram:
    """A diagram accepted by a layout engine, ready to rasterize."""
    script: str
    layout: str


class LayoutEngine(ABC):
    """Compiles D2 text with a layout and renders it to SVG."""

    name: str = ""

    @abstractmethod
    def compile(self, script: str) -> CompiledDiagram:
        ...

    @abstractmethod
    def rasterize(self, diagram: CompiledDiagram, theme: int, pad: int) -> bytes:
        ...


def _run(cmd: list[str], error: type[RenderError]) -> subprocess.CompletedProcess:
    # d2 stderr may not be UTF-8
    try:
        return subprocess.run(cmd, capture_output=True, text=True, errors="replace")
    except OSError as e:
        raise error(f"could not run {cmd[0]}: {e}") from e


class D2CliEngine(LayoutEngine):
    """Drives the ``d2`` executable."""

    def __init__(self, layout: str = "dagre", binary: str = "d2"):
        if layout not in ENGINES:
            raise LayoutCompilationError(f"unknown layout engine: {layout}")
        self.name = layout
        self.binary = binary

    def _executable(self) -> str:
        path = shutil.which(self.binary)
        if path is None:
            raise LayoutCompilationError(f"d2 executable {self.binary!r} not found on PATH")
        return path

    def compile(self, script: str) -> CompiledDiagram:
        body, layout = strip_directives(script)
        layout = layout or self.name
        if layout not in ENGINES:
            raise LayoutCompilationError(f"unknown layout engine: {layout}")
        executable = self._executable()
        with tempfile.TemporaryDirectory(prefix="jqflow-") as tmp:
            source = Path(tmp) / "diagram.d2"
            source.write_text(body, encoding="utf-8")
            logger.info("validating diagram with %s (%s layout)", executable, layout)
            result = _run([executable, "validate", str(source)], LayoutCompilationError)
        if result.returncode != 0:
            raise LayoutCompilationError(f"d2 rejected the diagram: {result.stderr.strip()}")
        return CompiledDiagram(script=body, layout=layout)

    def rasterize(self, diagram: CompiledDiagram, theme: int, pad: int) -> bytes:
        executable = self._executable()
        with tempfile.TemporaryDirectory(prefix="jqflow-") as tmp:
            source = Path(tmp) / "diagram.d2"
            target = Path(tmp) / "diagram.svg"
            source.write_text(diagram.script, encoding="utf-8")
            cmd = [
                executable,
                f"--layout={diagram.layout}",
                f"--theme={theme}",
                f"--pad={pad}",
                str(source),
                str(target),
            ]
            logger.info("rendering: %s", " ".join(cmd))
            result = _run(cmd, RasterizationError)
            if result.returncode != 0 or not target.is_file():
                raise RasterizationError(f"failed to render D2 diagram to SVG: {result.stderr.strip()}")
            return target.read_bytes()


def get_engine(name: str, binary: str = "d2") -> LayoutEngine:
    """Look up a layout engine by name."""
    return D2CliEngine(layout=name, binary=binary)


# ---------------------------------------------------------------------------
# Rendering
# ---------------------------------------------------------------------------

def render_svg(script: str, options: RenderOptions, engine: LayoutEngine | None = None) -> bytes:
    """Compile and rasterize plain D2 text; raises RenderError subclasses."""
    if engine is None:
        engine = get_engine(options.layout, options.d2_binary)
    compiled = engine.compile(with_directives(script, options.layout))
    return engine.rasterize(compiled, options.theme, options.pad)


def recovery_path(output_path: Path) -> Path:
    return output_path.with_suffix(TEXT_EXTENSION)


def render_to_file(
    script: str,
    output_path: str | Path,
    options: RenderOptions | None = None,
    engine: LayoutEngine | None = None,
) -> Path:
    """Write ``script`` to ``output_path`` as D2 text or SVG, by extension."""
    output_path = Path(output_path)
    ext = check_output_format(output_path)
    if ext == TEXT_EXTENSION:
        output_path.write_text(script, encoding="utf-8")
        return output_path

    options = options or RenderOptions()
    try:
        svg = render_svg(script, options, engine)
    except RenderError as e:
        saved = recovery_path(output_path)
        saved.write_text(script, encoding="utf-8")
        logger.warning("rendering failed, D2 script saved to %s", saved)
        raise type(e)(e.message, saved_path=saved) from e
    output_path.write_bytes(svg)
    logger.info("wrote %s (%d bytes)", output_path, len(svg))
    return output_path
