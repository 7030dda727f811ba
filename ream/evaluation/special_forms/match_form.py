from ream import EvaluatorFn, ReamValue
from ream import ast_nodes as ast
from ream.errors import MatchFailure, RuntimeArityMismatch
from ream.evaluation.apply import evaluate_body
from ream.printer import render_value
from ream.types import Environment, SumValue


def _bind_payload(pattern: ast.TagPattern, value: SumValue, frame: Environment) -> None:
    binders = pattern.binders
    if not binders:
        return
    if not value.has_payload:
        raise RuntimeArityMismatch(f"Tag `{pattern.tag}` carries no payload to bind", pattern.position)
    if len(binders) == 1:
        values = [value.payload]
    else:
        payload = value.payload
        if not isinstance(payload, tuple) or len(payload) != len(binders):
            raise RuntimeArityMismatch(
                f"Pattern `{pattern.tag}` binds {len(binders)} values, got {render_value(payload)}",
                pattern.position,
            )
        values = list(payload)
    for name, v in zip(binders, values):
        if name != "_":
            frame.define(name, v)


def match_form(
    expr: ast.Match,
    env: Environment,
    context,
    evaluate_fn: EvaluatorFn,
) -> ReamValue:
    """
    (match expr (pattern body...)...)
    Clauses are tried in order; the first whose pattern accepts the value
    runs its body in a new frame holding the pattern's bindings.
    """
    value = evaluate_fn(expr.scrutinee, env, context)
    for clause in expr.clauses:
        pattern = clause.pattern
        frame = env.extend()
        if isinstance(pattern, ast.TagPattern):
            if not isinstance(value, SumValue) or value.tag != pattern.tag:
                continue
            _bind_payload(pattern, value, frame)
        elif pattern.name is not None:
            frame.define(pattern.name, value)
        return evaluate_body(clause.body, frame, context, evaluate_fn)

    raise MatchFailure(f"No match clause accepts {render_value(value)}", expr.position)
