"""Command line entry point: `ream [FILE] [--check] [--tokens] [--tree] [--types]`."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from ream import __version__
from ream import ast_nodes as ast
from ream.config import get_log_level
from ream.errors import ReamError
from ream.evaluation import run_program
from ream.interpreter import Interpreter
from ream.printer import render_tree, render_type, render_value
from ream.reader.lexer import lex, render_token
from ream.types import UNIT

logger = logging.getLogger(__name__)

# Forms whose value is never echoed at the top level
_DECLARATIONS = (
    ast.VariableDef,
    ast.FunctionDef,
    ast.TypeAlias,
    ast.AlgebraicTypeDef,
    ast.TypeAnnotation,
    ast.DocAnnotation,
)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="ream", description="Type check and run Ream programs.")
    parser.add_argument("file", nargs="?", help="source file (reads stdin when omitted)")
    parser.add_argument("--check", action="store_true", help="type check only, do not evaluate")
    parser.add_argument("--tokens", action="store_true", help="print the token stream")
    parser.add_argument("--tree", action="store_true", help="print the syntax tree")
    parser.add_argument("--types", action="store_true", help="print the type of each top-level form")
    parser.add_argument("--log-level", default=None, help="logging level (default: $REAM_LOG_LEVEL or WARNING)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def format_diagnostic(exc: ReamError, source_name: str) -> str:
    """One-line `file:line:col: Kind: message` rendering of an error."""
    position = exc.position
    if position is None:
        location = source_name
    else:
        location = f"{position.source or source_name}:{position.line}:{position.column}"
    return f"{location}: {exc.kind}: {exc.message}"


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=(args.log_level or get_log_level()).upper(),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.file:
        path: Optional[Path] = Path(args.file)
        source_name = args.file
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            print(f"ream: cannot read {args.file}: {exc.strerror or exc}", file=sys.stderr)
            return 1
    else:
        path = None
        source_name = "<stdin>"
        source = sys.stdin.read()

    interpreter = Interpreter()
    try:
        if args.tokens:
            for token in lex(source, source_name):
                pos = token.position
                print(f"{pos.line}:{pos.column}\t{token.kind.value}\t{render_token(token)}")

        program = interpreter.parse(source, source_name, origin=path)
        if args.tree:
            print(render_tree(program, color=sys.stdout.isatty()), end="")

        types = interpreter.check_program(program)
        if args.types:
            for t in types:
                print(render_type(t))
        if args.check:
            return 0

        # One form at a time so echoed values interleave with `print` output
        for expr in program.exprs:
            (value,) = run_program(ast.Program([expr], program.source), interpreter.context)
            if not isinstance(expr, _DECLARATIONS) and value != UNIT:
                print(render_value(value))
    except ReamError as exc:
        logger.debug("stopped on %s", exc.kind)
        print(format_diagnostic(exc, source_name), file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
