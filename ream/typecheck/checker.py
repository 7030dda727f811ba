"""Hindley-Milner type inference over the Ream AST.

Each expression form has one inference rule, looked up by node class the way
the evaluator looks up special forms. Rules thread an immutable Substitution
through the walk and return `(type, substitution)`; the first error aborts
checking of the whole program unit.

Bindings introduced by `let` and `fn` are generalized (let-polymorphism);
lambda parameters, pattern binders and a function's own name inside its body
stay monomorphic.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ream import ast_nodes as ast
from ream.errors import (
    AnnotationMismatch,
    ArityMismatch,
    NonExhaustiveMatch,
    ReamError,
    ReamInclusionError,
    ReamTypeError,
    TypeMismatch,
    UnboundIdentifier,
    UnknownTag,
)
from ream.printer import render_type
from ream.typecheck.registry import AlgebraicType
from ream.typecheck.typespec import (
    ATOM,
    BOOLEAN,
    CHARACTER,
    FLOAT,
    INTEGER,
    STRING,
    SYMBOL,
    UNIT,
    Function,
    ListOf,
    Tuple,
    TypeVar,
    Typespec,
    free_type_vars,
)
from ream.typecheck.unify import (
    EMPTY,
    Scheme,
    Substitution,
    generalize,
    instantiate,
    substitute_vars,
    unify,
)
from ream.types import Atom, Char, DottedList, Environment, Symbol

logger = logging.getLogger(__name__)

Inference = tuple[Typespec, Substitution]


class TypeChecker:
    """Infers types for expressions against a Context's registry and type env."""

    def __init__(self, context):
        self.context = context
        self.registry = context.registry
        self.fresh = context.fresh
        self._rules: dict[type, Callable[..., Inference]] = {
            ast.Identifier: self._identifier,
            ast.Literal: self._literal,
            ast.Quotation: self._quotation,
            ast.TypeAlias: self._type_alias,
            ast.AlgebraicTypeDef: self._define_type,
            ast.TypeAnnotation: self._type_annotation,
            ast.DocAnnotation: self._doc_annotation,
            ast.VariableDef: self._let,
            ast.FunctionDef: self._fn,
            ast.ClosureDef: self._lambda,
            ast.Sequence: self._sequence,
            ast.Call: self._call,
            ast.Conditional: self._conditional,
            ast.Match: self._match,
            ast.Inclusion: self._inclusion,
        }

    # ------------------------
    # Entry points
    # ------------------------
    def check_program(self, program: ast.Program, env: Optional[Environment] = None) -> list[Typespec]:
        """Type of every top-level expression, in order."""
        env = env if env is not None else self.context.type_env
        subst = EMPTY
        types: list[Typespec] = []
        for expr in program.exprs:
            t, subst = self.infer(expr, env, subst)
            types.append(subst.apply(t))
        logger.debug("checked %d top-level forms of %s", len(types), program.source or "<input>")
        return types

    def infer(self, expr: ast.Expression, env: Environment, subst: Substitution) -> Inference:
        rule = self._rules[type(expr)]
        try:
            return rule(expr, env, subst)
        except ReamError as exc:
            if exc.position is None:
                exc.position = expr.position
            raise

    def unify(self, t1: Typespec, t2: Typespec, subst: Substitution, at: Optional[ast.Expression] = None) -> Substitution:
        try:
            return unify(t1, t2, subst, self.registry.expand)
        except ReamTypeError as exc:
            if exc.position is None and at is not None:
                exc.position = at.position
            raise

    # ------------------------
    # Atoms
    # ------------------------
    def _identifier(self, expr: ast.Identifier, env: Environment, subst: Substitution) -> Inference:
        try:
            scheme = env.lookup(expr.name)
        except KeyError:
            raise UnboundIdentifier(expr.name, expr.position) from None
        return instantiate(scheme, self.fresh), subst

    def _literal(self, expr: ast.Literal, env: Environment, subst: Substitution) -> Inference:
        value = expr.value
        if isinstance(value, Atom):
            return self.tag_type(value), subst
        return self._scalar_type(value), subst

    def _scalar_type(self, value) -> Typespec:
        if isinstance(value, bool):
            return BOOLEAN
        if isinstance(value, int):
            return INTEGER
        if isinstance(value, float):
            return FLOAT
        if isinstance(value, Char):
            return CHARACTER
        if isinstance(value, str):
            return STRING
        if isinstance(value, Symbol):
            return SYMBOL
        return ATOM

    def tag_type(self, tag: Atom) -> Typespec:
        """Type of an atom literal: a sum value, a constructor, an accessor or `Atom`."""
        info = self.registry.tag(tag)
        if info is None:
            return ATOM
        args = tuple(self.fresh() for _ in info.owner.params)
        owner_type = info.owner.named(args)
        payload = info.payload(args)
        if info.owner.is_product:
            return Function((owner_type,), payload)
        if payload is None:
            return owner_type
        if isinstance(payload, Tuple) and len(payload.items) >= 2:
            return Function(payload.items, owner_type)
        return Function((payload,), owner_type)

    def _quotation(self, expr: ast.Quotation, env: Environment, subst: Substitution) -> Inference:
        return self._datum_type(expr.datum, subst)

    def _datum_type(self, datum, subst: Substitution) -> Inference:
        if isinstance(datum, (list, DottedList)):
            items = list(datum) if isinstance(datum, list) else [*datum.items, datum.tail]
            element = self.fresh()
            for item in items:
                t, subst = self._datum_type(item, subst)
                subst = self.unify(element, t, subst)
            return ListOf(subst.apply(element)), subst
        if isinstance(datum, Atom):
            # Quoted data never call anything: only nullary sum tags become values
            t = self.tag_type(datum)
            return (ATOM if isinstance(t, Function) else t), subst
        return self._scalar_type(datum), subst

    # ------------------------
    # Declarations
    # ------------------------
    def _type_alias(self, expr: ast.TypeAlias, env: Environment, subst: Substitution) -> Inference:
        self.registry.define_alias(expr.name, expr.typespec, expr.position)
        return UNIT, subst

    def _define_type(self, expr: ast.AlgebraicTypeDef, env: Environment, subst: Substitution) -> Inference:
        algebraic = self.registry.define_algebraic(expr.name, expr.typespec, expr.position)
        if algebraic.is_product:
            fields = tuple(m.payload for m in algebraic.spec.members)
            constructor = Function(fields, algebraic.named())
            env.define(expr.name, Scheme(frozenset(algebraic.params), constructor))
        return UNIT, subst

    def _type_annotation(self, expr: ast.TypeAnnotation, env: Environment, subst: Substitution) -> Inference:
        declared = self.registry.resolve(expr.typespec, expr.position)
        env.annotate(expr.name, "type", declared)
        if expr.name in env.vars:
            existing = instantiate(env.vars[expr.name], self.fresh)
            scheme, subst = self._check_annotation(expr.name, declared, existing, subst)
            env.define(expr.name, scheme)
        return UNIT, subst

    def _doc_annotation(self, expr: ast.DocAnnotation, env: Environment, subst: Substitution) -> Inference:
        env.annotate(expr.name, "doc", expr.text)
        return UNIT, subst

    def _check_annotation(
        self, name: str, declared: Typespec, inferred: Typespec, subst: Substitution
    ) -> tuple[Scheme, Substitution]:
        """Check `inferred` against a declared type whose variables are rigid."""
        rigid = {var: self.fresh() for var in sorted(free_type_vars(declared))}
        expected = substitute_vars(declared, rigid)
        try:
            subst = unify(expected, inferred, subst, self.registry.expand)
        except TypeMismatch:
            raise AnnotationMismatch(
                f"`{name}` is declared as {render_type(declared)} "
                f"but its definition has type {render_type(subst.apply(inferred))}"
            ) from None
        images = [subst.apply(v) for v in rigid.values()]
        if not all(isinstance(i, TypeVar) for i in images) or len(set(images)) != len(images):
            raise AnnotationMismatch(
                f"`{name}` is declared as {render_type(declared)} "
                f"which is more general than its definition {render_type(subst.apply(inferred))}"
            )
        return Scheme(frozenset(rigid), declared), subst

    def _bind(self, name: str, t: Typespec, env: Environment, subst: Substitution) -> Substitution:
        declared = env.annotation(name, "type")
        if declared is None:
            scheme = generalize(t, env, subst)
        else:
            scheme, subst = self._check_annotation(name, declared, t, subst)
        env.define(name, scheme)
        return subst

    # ------------------------
    # Bindings and closures
    # ------------------------
    def _let(self, expr: ast.VariableDef, env: Environment, subst: Substitution) -> Inference:
        value = expr.value
        if isinstance(value, ast.ClosureDef):
            t, subst = self._recursive(expr.name, value.params, value.body, env, subst)
        else:
            t, subst = self.infer(value, env, subst)
        subst = self._bind(expr.name, t, env, subst)
        return subst.apply(t), subst

    def _fn(self, expr: ast.FunctionDef, env: Environment, subst: Substitution) -> Inference:
        t, subst = self._recursive(expr.name, expr.params, expr.body, env, subst)
        subst = self._bind(expr.name, t, env, subst)
        return subst.apply(t), subst

    def _recursive(self, name: str, params: ast.Formals, body, env: Environment, subst: Substitution) -> Inference:
        """A closure that can refer to itself, monomorphically, by `name`."""
        rec_env = env.extend()
        self_type = self.fresh()
        rec_env.define(name, Scheme.mono(self_type))
        t, subst = self._closure(params, body, rec_env, subst)
        subst = self.unify(self_type, t, subst)
        return subst.apply(t), subst

    def _lambda(self, expr: ast.ClosureDef, env: Environment, subst: Substitution) -> Inference:
        return self._closure(expr.params, expr.body, env, subst)

    def _closure(self, params: ast.Formals, body, env: Environment, subst: Substitution) -> Inference:
        frame = env.extend()
        if params.variadic:
            element = self.fresh()
            frame.define(params.names[0], Scheme.mono(ListOf(element)))
            param_types: tuple[Typespec, ...] = (element,)
        else:
            param_types = tuple(self.fresh() for _ in params.names)
            for name, t in zip(params.names, param_types):
                frame.define(name, Scheme.mono(t))
        result, subst = self._body(body, frame, subst)
        fn_type = Function(tuple(subst.apply(p) for p in param_types), subst.apply(result), params.variadic)
        return fn_type, subst

    def _body(self, exprs, env: Environment, subst: Substitution) -> Inference:
        t: Typespec = UNIT
        for expr in exprs:
            t, subst = self.infer(expr, env, subst)
        return t, subst

    # ------------------------
    # Control
    # ------------------------
    def _sequence(self, expr: ast.Sequence, env: Environment, subst: Substitution) -> Inference:
        return self._body(expr.exprs, env.extend(), subst)

    def _call(self, expr: ast.Call, env: Environment, subst: Substitution) -> Inference:
        op_type, subst = self.infer(expr.operator, env, subst)
        arg_types: list[Typespec] = []
        for operand in expr.operands:
            t, subst = self.infer(operand, env, subst)
            arg_types.append(t)

        op_type = subst.apply(op_type)
        if isinstance(op_type, Function):
            if op_type.variadic:
                for operand, t in zip(expr.operands, arg_types):
                    subst = self.unify(op_type.params[0], t, subst, at=operand)
            else:
                if len(op_type.params) != len(arg_types):
                    raise ArityMismatch(
                        f"{_describe(expr.operator)} takes {len(op_type.params)} arguments, "
                        f"got {len(arg_types)}",
                        expr.position,
                    )
                for operand, param, t in zip(expr.operands, op_type.params, arg_types):
                    subst = self.unify(param, t, subst, at=operand)
            return subst.apply(op_type.result), subst

        result = self.fresh()
        subst = self.unify(op_type, Function(tuple(arg_types), result), subst, at=expr.operator)
        return subst.apply(result), subst

    def _conditional(self, expr: ast.Conditional, env: Environment, subst: Substitution) -> Inference:
        test_type, subst = self.infer(expr.test, env, subst)
        subst = self.unify(BOOLEAN, test_type, subst, at=expr.test)
        then_type, subst = self.infer(expr.consequent, env, subst)
        if expr.alternate is not None:
            else_type, subst = self.infer(expr.alternate, env, subst)
            subst = self.unify(then_type, else_type, subst, at=expr.alternate)
        return subst.apply(then_type), subst

    def _match(self, expr: ast.Match, env: Environment, subst: Substitution) -> Inference:
        scrutinee_type, subst = self.infer(expr.scrutinee, env, subst)

        owner: Optional[AlgebraicType] = None
        args: tuple[Typespec, ...] = ()
        tag_patterns = [c.pattern for c in expr.clauses if isinstance(c.pattern, ast.TagPattern)]
        if tag_patterns:
            first = tag_patterns[0]
            info = self.registry.tag(first.tag)
            if info is None or info.owner.is_product:
                raise UnknownTag(f"`{first.tag}` is not a tag of any sum type", first.position)
            owner = info.owner
            args = tuple(self.fresh() for _ in owner.params)
            subst = self.unify(owner.named(args), scrutinee_type, subst, at=expr.scrutinee)

        result: Optional[Typespec] = None
        covered: set[Atom] = set()
        catch_all = False
        for clause in expr.clauses:
            frame = env.extend()
            pattern = clause.pattern
            if isinstance(pattern, ast.TagPattern):
                info = self.registry.tag(pattern.tag)
                if info is None or info.owner.name != owner.name:
                    raise UnknownTag(f"`{pattern.tag}` is not a tag of `{owner.name}`", pattern.position)
                covered.add(pattern.tag)
                self._bind_payload(pattern, info.payload(args), frame, subst)
            else:
                catch_all = True
                if pattern.name is not None:
                    frame.define(pattern.name, Scheme.mono(subst.apply(scrutinee_type)))

            body_type, subst = self._body(clause.body, frame, subst)
            if result is None:
                result = body_type
            else:
                subst = self.unify(result, body_type, subst, at=clause.body[-1])

        if owner is not None and not catch_all:
            missing = [str(tag) for tag in owner.tags() if tag not in covered]
            if missing:
                raise NonExhaustiveMatch(
                    f"match on `{owner.name}` does not cover {', '.join(missing)}", expr.position
                )
        return subst.apply(result), subst

    def _bind_payload(
        self, pattern: ast.TagPattern, payload: Optional[Typespec], env: Environment, subst: Substitution
    ) -> None:
        binders = pattern.binders
        if not binders:
            return
        if payload is None:
            raise ArityMismatch(f"Tag `{pattern.tag}` carries no payload to bind", pattern.position)
        if len(binders) == 1:
            types = [payload]
        else:
            payload = subst.apply(payload)
            if not isinstance(payload, Tuple) or len(payload.items) != len(binders):
                raise ArityMismatch(
                    f"Pattern `{pattern.tag}` binds {len(binders)} values "
                    f"but its payload is {render_type(payload)}",
                    pattern.position,
                )
            types = list(payload.items)
        for name, t in zip(binders, types):
            if name != "_":
                env.define(name, Scheme.mono(t))

    def _inclusion(self, expr: ast.Inclusion, env: Environment, subst: Substitution) -> Inference:
        raise ReamInclusionError("`include` must be resolved before type checking", expr.position)


def _describe(operator: ast.Expression) -> str:
    if isinstance(operator, ast.Identifier):
        return f"`{operator.name}`"
    return "Function"
