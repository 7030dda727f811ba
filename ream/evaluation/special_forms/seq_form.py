from ream import EvaluatorFn, ReamValue
from ream import ast_nodes as ast
from ream.evaluation.apply import evaluate_body
from ream.types import Environment


def seq_form(
    expr: ast.Sequence,
    env: Environment,
    context,
    evaluate_fn: EvaluatorFn,
) -> ReamValue:
    """
    (seq expr...) / (begin expr...)
    Evaluates in one new child frame, so inner `let`s do not leak out.
    """
    return evaluate_body(expr.exprs, env.extend(), context, evaluate_fn)
