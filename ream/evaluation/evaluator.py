"""Core tree-walking evaluator for Ream.

Identifiers, literals and calls are handled here; every keyword form is
dispatched through the SPECIAL_FORMS table keyed by AST node class. There is
no trampoline: each Ream call is a host call, bounded by the context's
maximum depth, and a host RecursionError surfaces as StackOverflow.
"""

from __future__ import annotations

import logging
import sys
from contextlib import contextmanager

from ream import ReamValue
from ream import ast_nodes as ast
from ream.errors import ReamError, RuntimeUnboundIdentifier, StackOverflow
from ream.evaluation.apply import apply
from ream.evaluation.special_forms import SPECIAL_FORMS
from ream.typecheck.registry import payload_arity
from ream.types import Accessor, Atom, Constructor, Environment, SumValue

logger = logging.getLogger(__name__)


def tag_value(context, tag: Atom) -> ReamValue:
    """Runtime meaning of an atom: a sum value, a constructor, an accessor or the atom itself."""
    info = context.runtime_registry.tag(tag)
    if info is None:
        return tag
    owner = info.owner
    if owner.is_product:
        return Accessor(owner.name, tag)
    arity = payload_arity(info.member.payload)
    if arity == 0:
        return SumValue(owner.name, tag)
    return Constructor(owner.name, tag, arity, pack_tuple=arity >= 2)


def evaluate(expr: ast.Expression, env: Environment, context) -> ReamValue:
    """Evaluate one expression in `env`."""
    try:
        match expr:
            case ast.Identifier(name=name):
                try:
                    return env.lookup(name)
                except KeyError:
                    raise RuntimeUnboundIdentifier(f"Unbound identifier `{name}`", expr.position) from None

            case ast.Literal(value=value):
                if isinstance(value, Atom):
                    return tag_value(context, value)
                return value

            case ast.Call(operator=operator, operands=operands):
                fn = evaluate(operator, env, context)
                args = [evaluate(operand, env, context) for operand in operands]
                return apply(fn, args, env, context, evaluate, expr.position)

        return SPECIAL_FORMS[type(expr)](expr, env, context, evaluate)
    except ReamError as exc:
        if exc.position is None:
            exc.position = expr.position
        raise


# Host frames used by one Ream call: evaluate, the special form, operand
# evaluation, apply, apply_closure and evaluate_body, with room for nesting.
HOST_FRAMES_PER_CALL = 30


@contextmanager
def recursion_budget(max_depth: int):
    """Raise the host recursion limit so `max_depth` Ream calls fit, then restore it."""
    previous = sys.getrecursionlimit()
    wanted = max_depth * HOST_FRAMES_PER_CALL + previous
    if wanted > previous:
        sys.setrecursionlimit(wanted)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def run_program(program: ast.Program, context, env: Environment | None = None) -> list[ReamValue]:
    """Evaluate each top-level expression in order; return their values."""
    env = env if env is not None else context.value_env
    results: list[ReamValue] = []
    context.depth = 0
    with recursion_budget(context.max_depth):
        for expr in program.exprs:
            try:
                results.append(evaluate(expr, env, context))
            except RecursionError:
                context.depth = 0
                raise StackOverflow("Maximum recursion depth exceeded", expr.position) from None
    logger.debug("evaluated %d top-level forms of %s", len(results), program.source or "<input>")
    return results
