from ream import EvaluatorFn, ReamValue
from ream import ast_nodes as ast
from ream.errors import ReamInclusionError
from ream.types import Environment


def include_form(
    expr: ast.Inclusion,
    env: Environment,
    context,
    evaluate_fn: EvaluatorFn,
) -> ReamValue:
    # ream.modules.include_loader splices included programs in place before
    # evaluation; reaching one here means the program skipped that step.
    raise ReamInclusionError(f"Unresolved include of {', '.join(expr.paths)}", expr.position)
