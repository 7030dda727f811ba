"""Registry of special forms for the Ream evaluator.

Maps AST node classes to handler functions implementing their evaluation
rules. Every handler has the signature `(expr, env, context, evaluate_fn)`.
"""

from ream import ast_nodes as ast
from ream.evaluation.special_forms.define_form import let_form, fn_form
from ream.evaluation.special_forms.if_form import if_form
from ream.evaluation.special_forms.include_form import include_form
from ream.evaluation.special_forms.lambda_form import lambda_form
from ream.evaluation.special_forms.match_form import match_form
from ream.evaluation.special_forms.quote_form import quote_form
from ream.evaluation.special_forms.seq_form import seq_form
from ream.evaluation.special_forms.type_forms import (
    define_type_form,
    doc_annotation_form,
    type_alias_form,
    type_annotation_form,
)

SPECIAL_FORMS = {
    ast.Quotation: quote_form,
    ast.TypeAlias: type_alias_form,
    ast.AlgebraicTypeDef: define_type_form,
    ast.TypeAnnotation: type_annotation_form,
    ast.DocAnnotation: doc_annotation_form,
    ast.VariableDef: let_form,
    ast.FunctionDef: fn_form,
    ast.ClosureDef: lambda_form,
    ast.Sequence: seq_form,
    ast.Conditional: if_form,
    ast.Match: match_form,
    ast.Inclusion: include_form,
}
