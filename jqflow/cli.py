"""CLI for jqflow: draw, validate and inspect jq queries."""

from __future__ import annotations

import argparse
import logging
import sys

from .ast_nodes import FuncCall, ObjectLiteral, Operator, Query
from .config import load_options
from .d2 import to_d2
from .diagram import generate_diagram
from .emitter import operation_nodes
from .errors import JqFlowError
from .parser import parse
from .renderer import ENGINES
from .traversal import build_graph


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="jqflow",
        description="Draw jq queries as flow diagrams",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # graph
    graph_p = sub.add_parser("graph", help="Render a query to .d2 or .svg")
    _add_query_args(graph_p)
    graph_p.add_argument("-o", "--output", required=True, help="Output file (.d2 or .svg)")
    graph_p.add_argument(
        "--layout",
        choices=sorted(ENGINES),
        default=None,
        help="Layout engine: " + ", ".join(f"{name} ({style})" for name, style in sorted(ENGINES.items())),
    )
    graph_p.add_argument("--config", default=None, help="YAML config file (default: ./.jqflow.yaml)")

    # d2
    d2_p = sub.add_parser("d2", help="Print the D2 script for a query")
    _add_query_args(d2_p)

    # validate
    validate_p = sub.add_parser("validate", help="Check that a query parses and can be drawn")
    _add_query_args(validate_p)

    # ast
    ast_p = sub.add_parser("ast", help="Show parsed AST (debug)")
    _add_query_args(ast_p)

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    try:
        source = _read_query(args)
        if args.command == "graph":
            return _cmd_graph(source, args.output, layout=args.layout, config=args.config)
        elif args.command == "d2":
            return _cmd_d2(source)
        elif args.command == "validate":
            return _cmd_validate(source)
        elif args.command == "ast":
            return _cmd_ast(source)
    except OSError as e:
        print(f"Error: cannot write {e.filename}: {e.strerror}", file=sys.stderr)
        return 1
    except JqFlowError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


def _add_query_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("query", nargs="?", help="jq query text")
    p.add_argument("-f", "--file", default=None, help="Read the query from a file")


def _read_query(args: argparse.Namespace) -> str:
    if args.file is not None:
        try:
            with open(args.file, encoding="utf-8") as f:
                return f.read()
        except OSError as e:
            raise JqFlowError(f"cannot read query file {args.file}: {e.strerror}") from e
    if args.query is None:
        raise JqFlowError("no query given (pass QUERY or -f FILE)")
    return args.query


def _cmd_graph(source: str, output: str, layout: str | None = None, config: str | None = None) -> int:
    options = load_options(config).merged(layout=layout)
    path = generate_diagram(parse(source), output, options)
    print(f"Wrote {path}")
    return 0


def _cmd_d2(source: str) -> int:
    print(to_d2(build_graph(parse(source))), end="")
    return 0


def _cmd_validate(source: str) -> int:
    graph = build_graph(parse(source))
    print(f"Valid: {len(operation_nodes(graph))} operations")
    return 0


def _cmd_ast(source: str) -> int:
    _print_ast(parse(source))
    return 0


def _print_ast(query: Query, depth: int = 0) -> None:
    pad = "  " * depth
    if query.op is not Operator.NONE:
        print(f"{pad}{query.op.name} ({query.op.value})")
        for child in (query.left, query.right):
            if child is not None:
                _print_ast(child, depth + 1)
        return
    term = query.term
    print(f"{pad}{type(term).__name__}: {term}")
    if isinstance(term, FuncCall):
        for arg in term.args:
            _print_ast(arg, depth + 1)
    elif isinstance(term, ObjectLiteral):
        for entry in term.entries:
            print(f"{pad}  {entry.key_text}:")
            if entry.value is not None:
                _print_ast(entry.value, depth + 2)


if __name__ == "__main__":
    sys.exit(main())
