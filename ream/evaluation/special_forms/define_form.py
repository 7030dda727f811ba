from ream import EvaluatorFn, ReamValue
from ream import ast_nodes as ast
from ream.types import Closure, Environment


def make_recursive_closure(name: str, params: ast.Formals, body: list, env: Environment) -> Closure:
    """
    A closure that can call itself by `name`.
    The name lives in a frame of its own between `env` and the closure's call
    frames; the closure captures that frame and is stored into it afterwards.
    """
    frame = env.extend()
    closure = Closure(params.names, body, frame, params.variadic, name)
    frame.define(name, closure)
    return closure


def let_form(
    expr: ast.VariableDef,
    env: Environment,
    context,
    evaluate_fn: EvaluatorFn,
) -> ReamValue:
    """
    (let name expr)
    Binds in the current frame and returns the bound value.
    """
    value_expr = expr.value
    if isinstance(value_expr, ast.ClosureDef):
        value = make_recursive_closure(expr.name, value_expr.params, value_expr.body, env)
    else:
        value = evaluate_fn(value_expr, env, context)
    env.define(expr.name, value)
    return value


def fn_form(
    expr: ast.FunctionDef,
    env: Environment,
    context,
    evaluate_fn: EvaluatorFn,
) -> ReamValue:
    """(fn name formals body...)"""
    closure = make_recursive_closure(expr.name, expr.params, expr.body, env)
    env.define(expr.name, closure)
    return closure
