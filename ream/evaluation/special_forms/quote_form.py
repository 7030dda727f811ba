from ream import EvaluatorFn, ReamValue
from ream import ast_nodes as ast
from ream.types import Atom, DottedList, Environment, SumValue


def _quoted(datum, context) -> ReamValue:
    if isinstance(datum, Atom):
        info = context.runtime_registry.tag(datum)
        if info is None or info.owner.is_product or info.member.payload is not None:
            return datum
        return SumValue(info.owner.name, datum)
    if isinstance(datum, list):
        return [_quoted(item, context) for item in datum]
    if isinstance(datum, DottedList):
        return DottedList(tuple(_quoted(item, context) for item in datum.items), _quoted(datum.tail, context))
    return datum


def quote_form(
    expr: ast.Quotation,
    env: Environment,
    context,
    evaluate_fn: EvaluatorFn,
) -> ReamValue:
    """
    `datum / (quote datum)
    The reader already emits runtime values (symbols, lists, dotted lists);
    only atoms naming a nullary tag of a known sum type are converted.
    """
    return _quoted(expr.datum, context)
