"""Declarations at runtime.

Type declarations are registered in the evaluator's own registry as they are
reached, so atom literals resolve in program order: an atom used before its
`define-type` stays an atom, as the checker typed it.
"""

from ream import EvaluatorFn, ReamValue
from ream import ast_nodes as ast
from ream.types import Constructor, Environment, UNIT


def type_alias_form(expr: ast.TypeAlias, env: Environment, context, evaluate_fn: EvaluatorFn) -> ReamValue:
    context.runtime_registry.define_alias(expr.name, expr.typespec, expr.position)
    return UNIT


def define_type_form(
    expr: ast.AlgebraicTypeDef, env: Environment, context, evaluate_fn: EvaluatorFn
) -> ReamValue:
    algebraic = context.runtime_registry.define_algebraic(expr.name, expr.typespec, expr.position)
    if algebraic.is_product:
        field_tags = algebraic.tags()
        env.define(expr.name, Constructor(expr.name, None, len(field_tags), field_tags))
    return UNIT


def type_annotation_form(
    expr: ast.TypeAnnotation, env: Environment, context, evaluate_fn: EvaluatorFn
) -> ReamValue:
    return UNIT


def doc_annotation_form(
    expr: ast.DocAnnotation, env: Environment, context, evaluate_fn: EvaluatorFn
) -> ReamValue:
    env.annotate(expr.name, "doc", expr.text)
    return UNIT
