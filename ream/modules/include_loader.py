from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, Optional, Protocol

from ream import ast_nodes as ast
from ream.config import get_include_roots
from ream.errors import IncludeIOError, IncludeNotFound, InclusionCycle, InvalidForm, Position
from ream.reader.parser import parse

logger = logging.getLogger(__name__)


class _SourceReader(Protocol):
    def __call__(self, path: Path) -> str: ...


def read_source(path: Path) -> str:
    try:
        return path.read_text(encoding='utf-8')
    except OSError as exc:
        raise IncludeIOError(f"Cannot read '{path}': {exc.strerror or exc}") from exc


# An include path is looked up next to the including file first, then under
# each configured root (REAM_INCLUDE_PATH).

def resolve_include(path: str, base_dir: Optional[Path], roots: Iterable[Path]) -> Optional[Path]:
    rel = Path(path)
    if rel.is_absolute():
        return rel if rel.is_file() else None
    candidates = [base_dir / rel] if base_dir is not None else [Path.cwd() / rel]
    candidates += [root / rel for root in roots]
    for candidate in candidates:
        if candidate.is_file():
            return candidate
    return None


class IncludeResolver:
    """Splices the programs named by `include` forms into the including program.

    Inclusions may appear at the top level or anywhere a body (a list of
    expressions) is expected; each is replaced by the included file's
    expressions, themselves resolved relative to that file.
    """

    def __init__(self, reader: Optional[_SourceReader] = None, roots: Optional[list[Path]] = None):
        self.reader = reader or read_source
        self.roots = roots if roots is not None else get_include_roots()

    def resolve_program(self, program: ast.Program, origin: Optional[Path] = None) -> ast.Program:
        base_dir = origin.parent if origin is not None else None
        active = [origin.resolve()] if origin is not None else []
        return ast.Program(self._splice(program.exprs, base_dir, active), program.source)

    # ------------------------
    # Splicing
    # ------------------------
    def _splice(self, exprs: list, base_dir: Optional[Path], active: list[Path]) -> list:
        result = []
        for expr in exprs:
            if isinstance(expr, ast.Inclusion):
                for path in expr.paths:
                    result.extend(self._load(path, expr.position, base_dir, active))
            else:
                self._descend(expr, base_dir, active)
                result.append(expr)
        return result

    def _descend(self, expr, base_dir: Optional[Path], active: list[Path]) -> None:
        match expr:
            case ast.Sequence():
                expr.exprs = self._splice(expr.exprs, base_dir, active)
            case ast.FunctionDef() | ast.ClosureDef():
                expr.body = self._splice(expr.body, base_dir, active)
            case ast.Match():
                self._single(expr.scrutinee, base_dir, active)
                for clause in expr.clauses:
                    clause.body = self._splice(clause.body, base_dir, active)
            case ast.VariableDef():
                self._single(expr.value, base_dir, active)
            case ast.Call():
                for child in [expr.operator, *expr.operands]:
                    self._single(child, base_dir, active)
            case ast.Conditional():
                for child in (expr.test, expr.consequent, expr.alternate):
                    if child is not None:
                        self._single(child, base_dir, active)

    def _single(self, expr, base_dir: Optional[Path], active: list[Path]) -> None:
        if isinstance(expr, ast.Inclusion):
            raise InvalidForm("`include` can only appear at the top level or in a body", expr.position)
        self._descend(expr, base_dir, active)

    def _load(self, path: str, position: Optional[Position], base_dir: Optional[Path], active: list[Path]) -> list:
        located = resolve_include(path, base_dir, self.roots)
        if located is None:
            raise IncludeNotFound(f"Cannot find included file '{path}'", position)
        key = located.resolve()
        if key in active:
            chain = " -> ".join(p.name for p in [*active[active.index(key):], key])
            raise InclusionCycle(f"Inclusion cycle: {chain}", position)

        try:
            source = self.reader(located)
        except IncludeIOError as exc:
            exc.position = exc.position or position
            raise
        program = parse(source, str(located))

        active.append(key)
        try:
            exprs = self._splice(program.exprs, located.parent, active)
        finally:
            active.pop()
        logger.debug("included %s (%d forms)", located, len(exprs))
        return exprs
