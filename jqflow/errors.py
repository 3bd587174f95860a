"""Error types for jqflow with source location and graph context."""

from __future__ import annotations

from pathlib import Path


class JqFlowError(Exception):
    """Base error with optional source location."""

    def __init__(self, message: str, line: int | None = None, column: int | None = None):
        self.message = message
        self.line = line
        self.column = column
        loc = ""
        if line is not None:
            loc = f" (line {line}"
            if column is not None:
                loc += f", col {column}"
            loc += ")"
        super().__init__(f"{message}{loc}")


class ParseError(JqFlowError):
    """Raised when query text cannot be parsed."""


class ConfigError(JqFlowError):
    """Raised when a configuration file is malformed."""


class GraphMutationError(JqFlowError):
    """Raised when a node, edge or scope cannot be added to the graph.

    Always fatal: the diagram build is aborted and nothing is retried.
    """

    def __init__(
        self,
        message: str,
        node_id: str | None = None,
        scope: tuple[str, ...] | None = None,
        edge: tuple[str, str] | None = None,
    ):
        self.node_id = node_id
        self.scope = scope
        self.edge = edge
        super().__init__(message)

    def with_context(self, context: str) -> GraphMutationError:
        """Return a copy of this error with ``context`` prepended."""
        return GraphMutationError(
            f"{context}: {self.message}",
            node_id=self.node_id,
            scope=self.scope,
            edge=self.edge,
        )


class RenderError(JqFlowError):
    """Base for failures while turning D2 text into an image."""

    def __init__(self, message: str, saved_path: Path | None = None):
        self.saved_path = saved_path
        if saved_path is not None:
            message = f"{message}\nD2 script saved to: {saved_path}"
        super().__init__(message)


class LayoutCompilationError(RenderError):
    """Raised when the layout engine rejects the diagram or its directives."""


class RasterizationError(RenderError):
    """Raised when a compiled diagram cannot be rendered to SVG."""


class UnsupportedFormatError(JqFlowError):
    """Raised when the output path has an extension we cannot produce."""

    def __init__(self, path: str | Path, supported: tuple[str, ...]):
        self.path = Path(path)
        self.supported = supported
        super().__init__(
            f"unsupported output format {self.path.suffix or '(none)'!r} for {self.path}; "
            f"expected one of: {', '.join(supported)}"
        )
