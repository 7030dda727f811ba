"""Application engine for Ream.

Centralizes what it means to call each kind of callable value:
- Closures get a fresh frame whose parent is the captured environment and
  run their body like `seq`; each active closure call counts against the
  context's maximum depth.
- Primitives receive the caller's environment and the evaluated arguments.
- Constructors build sum or product values; accessors read product fields.
"""

from __future__ import annotations

from typing import Optional

from ream import EvaluatorFn, ReamValue
from ream.errors import Position, RuntimeArityMismatch, RuntimeTypeMismatch, StackOverflow
from ream.printer import render_value
from ream.types import Accessor, Closure, Constructor, Environment, Primitive, ProductValue


def evaluate_body(body: list, env: Environment, context, evaluate_fn: EvaluatorFn) -> ReamValue:
    """Evaluate body expressions in order; the last value is the result."""
    result: ReamValue = None
    for expr in body:
        result = evaluate_fn(expr, env, context)
    return result


def _check_arity(name: str, expected: Optional[int], args: list, position: Optional[Position]) -> None:
    if expected is not None and len(args) != expected:
        raise RuntimeArityMismatch(f"`{name}` takes {expected} arguments, got {len(args)}", position)


def apply_closure(
    fn: Closure,
    args: list[ReamValue],
    context,
    evaluate_fn: EvaluatorFn,
    position: Optional[Position] = None,
) -> ReamValue:
    if context.depth >= context.max_depth:
        raise StackOverflow(f"Call depth exceeded {context.max_depth}", position)
    call_env = fn.extend_env(args, position)
    context.depth += 1
    try:
        return evaluate_body(fn.body, call_env, context, evaluate_fn)
    finally:
        context.depth -= 1


def apply(
    fn: ReamValue,
    args: list[ReamValue],
    env: Environment,
    context,
    evaluate_fn: EvaluatorFn,
    position: Optional[Position] = None,
) -> ReamValue:
    """Apply any callable value to already-evaluated arguments."""
    if isinstance(fn, Closure):
        return apply_closure(fn, args, context, evaluate_fn, position)

    if isinstance(fn, Primitive):
        _check_arity(fn.name, fn.arity, args, position)
        return fn.fn(env, args)

    if isinstance(fn, Constructor):
        _check_arity(fn.name, fn.arity, args, position)
        return fn.build(args)

    if isinstance(fn, Accessor):
        _check_arity(fn.name, 1, args, position)
        record = args[0]
        if not isinstance(record, ProductValue) or record.type_name != fn.type_name:
            raise RuntimeTypeMismatch(
                f"`{fn.tag}` expects a {fn.type_name}, got {render_value(record)}", position
            )
        return record.get(fn.tag)

    raise RuntimeTypeMismatch(f"{render_value(fn)} is not a function", position)
