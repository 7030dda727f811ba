from ream import EvaluatorFn, ReamValue
from ream import ast_nodes as ast
from ream.errors import RuntimeTypeMismatch
from ream.printer import render_value
from ream.types import Environment, UNIT


def if_form(
    expr: ast.Conditional,
    env: Environment,
    context,
    evaluate_fn: EvaluatorFn,
) -> ReamValue:
    test = evaluate_fn(expr.test, env, context)
    if not isinstance(test, bool):
        raise RuntimeTypeMismatch(f"`if` test must be a Boolean, got {render_value(test)}", expr.test.position)

    if test:
        return evaluate_fn(expr.consequent, env, context)
    if expr.alternate is not None:
        return evaluate_fn(expr.alternate, env, context)
    return UNIT
