from ream import EvaluatorFn, ReamValue
from ream import ast_nodes as ast
from ream.types import Closure, Environment


def lambda_form(
    expr: ast.ClosureDef,
    env: Environment,
    context,
    evaluate_fn: EvaluatorFn,
) -> ReamValue:
    # A single identifier as formals makes the closure variadic: the
    # parameter receives the whole argument list.
    return Closure(expr.params.names, expr.body, env, expr.params.variadic)
