"""Pipeline orchestration: lex, parse, resolve includes, check, evaluate."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ream import ReamValue
from ream import ast_nodes as ast
from ream.context import Context
from ream.errors import ReamError
from ream.evaluation import run_program
from ream.modules.include_loader import IncludeResolver, read_source
from ream.reader.parser import parse
from ream.typecheck.checker import TypeChecker
from ream.typecheck.typespec import Typespec
from ream.types import UNIT

logger = logging.getLogger(__name__)


class Interpreter:
    """
    Runs Ream programs against one Context, so definitions persist across
    calls to `eval` the way a REPL session expects.

    Every program is checked as a whole before any of it is evaluated; a
    program that fails checking is never run.
    """

    def __init__(
        self,
        context: Optional[Context] = None,
        resolver: Optional[IncludeResolver] = None,
        check: bool = True,
    ):
        self.context = context if context is not None else Context.create()
        self.resolver = resolver if resolver is not None else IncludeResolver()
        self.checker = TypeChecker(self.context)
        self.check = check

    def parse(self, source: str, source_name: Optional[str] = None, origin: Optional[Path] = None) -> ast.Program:
        """Parse `source` and splice in everything it includes."""
        program = parse(source, source_name)
        logger.debug("parsed %d top-level forms from %s", len(program.exprs), source_name or "<input>")
        return self.resolver.resolve_program(program, origin)

    def check_program(self, program: ast.Program) -> list[Typespec]:
        return self.checker.check_program(program)

    def run_program(self, program: ast.Program) -> list[ReamValue]:
        if self.check:
            # A program that fails checking leaves no bindings or types behind
            state = self.context.checker_state()
            try:
                self.check_program(program)
            except ReamError:
                self.context.restore_checker_state(state)
                raise
        return run_program(program, self.context)

    def eval(self, code: str, source_name: Optional[str] = None) -> ReamValue:
        """Evaluate a string of Ream code; return the last top-level value."""
        results = self.run_program(self.parse(code, source_name))
        return results[-1] if results else UNIT

    def run_file(self, path: Path) -> list[ReamValue]:
        path = Path(path)
        program = self.parse(read_source(path), str(path), origin=path)
        return self.run_program(program)
