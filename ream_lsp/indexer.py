from __future__ import annotations

"""
Document indexer for Ream source files.

Runs the front end of the pipeline (lex, parse, include resolution, type
checking) on a buffer without evaluating it, and records what the language
server needs:
- top-level definitions with their inferred types and `:doc` text
- the first lex/parse/inclusion/type error, as a diagnostic

Positions in the index are 0-based, as LSP expects.
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from ream import ast_nodes as ast
from ream.builtins import BUILTINS
from ream.context import Context
from ream.errors import Position, ReamError
from ream.interpreter import Interpreter
from ream.printer import render_type
from ream.typecheck.unify import Scheme

logger = logging.getLogger(__name__)

BUILTIN_SIGNATURES: Dict[str, str] = {name: signature for name, (signature, _) in BUILTINS.items()}


@dataclass
class SymbolDef:
    name: str
    kind: str  # "function" | "var" | "type"
    line: int
    col: int
    type: Optional[str] = None
    doc: Optional[str] = None


@dataclass
class Problem:
    message: str
    kind: str
    line: int
    col: int


@dataclass
class DocumentIndex:
    symbols: Dict[str, SymbolDef] = field(default_factory=dict)
    problems: List[Problem] = field(default_factory=list)


def _zero_based(position: Optional[Position]) -> tuple[int, int]:
    if position is None:
        return 0, 0
    return position.line - 1, position.column - 1


def _collect_definitions(program: ast.Program, idx: DocumentIndex) -> None:
    docs: Dict[str, str] = {}
    for expr in program.exprs:
        match expr:
            case ast.FunctionDef(name=name):
                kind = "function"
            case ast.VariableDef(name=name, value=ast.ClosureDef()):
                kind = "function"
            case ast.VariableDef(name=name):
                kind = "var"
            case ast.AlgebraicTypeDef(name=name) | ast.TypeAlias(name=name):
                kind = "type"
            case ast.DocAnnotation(name=name, text=text):
                docs[name] = text
                continue
            case _:
                continue
        # Only positions from this document; included forms carry their own source
        if expr.position is not None and expr.position.source == program.source:
            line, col = _zero_based(expr.position)
            idx.symbols[name] = SymbolDef(name, kind, line, col)

    for name, text in docs.items():
        if name in idx.symbols:
            idx.symbols[name].doc = text


def _attach_types(context: Context, idx: DocumentIndex) -> None:
    env = context.type_env
    for name, sdef in idx.symbols.items():
        if sdef.kind == "type":
            algebraic = context.registry.algebraic.get(name)
            if algebraic is not None:
                # Drop the name so the body is rendered rather than the name itself
                sdef.type = render_type(type(algebraic.spec)(algebraic.spec.members))
            elif name in context.registry.aliases:
                sdef.type = render_type(context.registry.aliases[name])
            continue
        scheme = env.vars.get(name)
        if isinstance(scheme, Scheme):
            sdef.type = render_type(scheme.type)


def _problem(exc: ReamError, source_name: Optional[str]) -> Problem:
    position = exc.position
    if position is not None and position.source != source_name:
        # Raised inside an included file: report it on the first line
        return Problem(f"{position}: {exc.message}", exc.kind, 0, 0)
    line, col = _zero_based(position)
    return Problem(exc.message, exc.kind, line, col)


def build_index(text: str, path: Optional[Path] = None) -> DocumentIndex:
    idx = DocumentIndex()
    source_name = str(path) if path is not None else None
    interpreter = Interpreter()

    try:
        program = interpreter.parse(text, source_name, origin=path)
    except ReamError as exc:
        idx.problems.append(_problem(exc, source_name))
        return idx

    _collect_definitions(program, idx)
    try:
        interpreter.check_program(program)
    except ReamError as exc:
        idx.problems.append(_problem(exc, source_name))
        logger.debug("index of %s stopped at %s", source_name or "<buffer>", exc.kind)
    _attach_types(interpreter.context, idx)
    return idx


def describe(name: str, idx: DocumentIndex) -> Optional[str]:
    """Hover text for `name`: its type and documentation, if known."""
    sdef = idx.symbols.get(name)
    if sdef is not None:
        header = f"{name} : {sdef.type}" if sdef.type else f"{name} ({sdef.kind})"
        return f"{header}\n\n{sdef.doc}" if sdef.doc else header
    if name in BUILTIN_SIGNATURES:
        return f"{name} : {BUILTIN_SIGNATURES[name]}"
    return None
