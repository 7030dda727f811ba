"""Substitutions, unification and let-polymorphism.

Substitutions are immutable: `unify` returns a new one rather than updating
in place, so a failed branch never leaves partial bindings behind. `apply`
follows bindings transitively; together with the occurs check this makes
every substitution produced here idempotent.
"""

from __future__ import annotations

from dataclasses import dataclass
from itertools import count
from typing import Callable, Iterator, Mapping, Optional

from ream.errors import InfiniteType, TypeMismatch
from ream.typecheck.typespec import (
    Function,
    ListOf,
    Named,
    Product,
    Sum,
    Tuple,
    TypeVar,
    Typespec,
    free_type_vars,
    map_types,
)
from ream.types.environment import Environment

# Expands a named algebraic type one level, or returns None
Expander = Callable[[Named], Optional[Typespec]]


class Substitution(Mapping[str, Typespec]):
    """Immutable mapping from type-variable names to typespecs."""

    __slots__ = ("_bindings",)

    def __init__(self, bindings: Optional[Mapping[str, Typespec]] = None):
        self._bindings: dict[str, Typespec] = dict(bindings or {})

    def __getitem__(self, name: str) -> Typespec:
        return self._bindings[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def __repr__(self) -> str:
        return f"Substitution({self._bindings!r})"

    def extend(self, name: str, t: Typespec) -> Substitution:
        bindings = dict(self._bindings)
        bindings[name] = t
        return Substitution(bindings)

    def apply(self, t: Typespec) -> Typespec:
        if not self._bindings:
            return t

        def resolve(node: Typespec) -> Typespec:
            if isinstance(node, TypeVar) and node.name in self._bindings:
                return self.apply(self._bindings[node.name])
            return node

        return map_types(t, resolve)


EMPTY = Substitution()


@dataclass(frozen=True)
class Scheme:
    """A type with universally quantified variables."""

    quantified: frozenset[str]
    type: Typespec

    @classmethod
    def mono(cls, t: Typespec) -> Scheme:
        return cls(frozenset(), t)

    def free_type_vars(self) -> set[str]:
        return free_type_vars(self.type) - self.quantified


class TypeVarSupply:
    """Hands out type variables that cannot clash with user-written names."""

    def __init__(self):
        self._counter = count(1)

    def __call__(self) -> TypeVar:
        return TypeVar(f"?{next(self._counter)}")


# -------------------------------
# Unification
# -------------------------------
def _bind(name: str, t: Typespec, subst: Substitution) -> Substitution:
    if isinstance(t, TypeVar) and t.name == name:
        return subst
    if name in free_type_vars(t):
        raise InfiniteType(TypeVar(name), t)
    return subst.extend(name, t)


def _unify_all(lhs, rhs, subst: Substitution, expand: Optional[Expander]) -> Substitution:
    for a, b in zip(lhs, rhs):
        subst = _unify(a, b, subst, expand)
    return subst


def _unify_members(a, b, subst: Substitution, expand: Optional[Expander]) -> Optional[Substitution]:
    if [m.tag for m in a.members] != [m.tag for m in b.members]:
        return None
    for ma, mb in zip(a.members, b.members):
        if (ma.payload is None) != (mb.payload is None):
            return None
        if ma.payload is not None:
            subst = _unify(ma.payload, mb.payload, subst, expand)
    return subst


def _unify(t1: Typespec, t2: Typespec, subst: Substitution, expand: Optional[Expander]) -> Substitution:
    a = subst.apply(t1)
    b = subst.apply(t2)
    if a == b:
        return subst

    if isinstance(a, TypeVar):
        return _bind(a.name, b, subst)
    if isinstance(b, TypeVar):
        return _bind(b.name, a, subst)

    match a, b:
        case Named(), Named():
            if a.name == b.name and len(a.args) == len(b.args):
                return _unify_all(a.args, b.args, subst, expand)
        case Named(), Sum() | Product():
            expanded = expand(a) if expand else None
            if expanded is not None:
                return _unify(expanded, b, subst, expand)
        case Sum() | Product(), Named():
            expanded = expand(b) if expand else None
            if expanded is not None:
                return _unify(a, expanded, subst, expand)
        case Tuple(), Tuple():
            if len(a.items) == len(b.items):
                return _unify_all(a.items, b.items, subst, expand)
        case ListOf(), ListOf():
            return _unify(a.item, b.item, subst, expand)
        case Function(), Function():
            if len(a.params) == len(b.params) and a.variadic == b.variadic:
                subst = _unify_all(a.params, b.params, subst, expand)
                return _unify(a.result, b.result, subst, expand)
        case (Sum(), Sum()) | (Product(), Product()):
            result = _unify_members(a, b, subst, expand)
            if result is not None:
                return result

    raise TypeMismatch(a, b)


def unify(
    t1: Typespec,
    t2: Typespec,
    subst: Substitution = EMPTY,
    expand: Optional[Expander] = None,
) -> Substitution:
    """Most general substitution making `t1` and `t2` equal.

    Raises TypeMismatch or InfiniteType. The mismatch names the two
    innermost types that disagree, with the substitution applied.
    """
    return _unify(t1, t2, subst, expand)


# -------------------------------
# Let-polymorphism
# -------------------------------
def env_free_type_vars(env: Environment, subst: Substitution) -> set[str]:
    """Free type variables of every scheme visible from `env`."""
    result: set[str] = set()
    for frame in env.frames():
        for scheme in frame.vars.values():
            result |= free_type_vars(subst.apply(scheme.type)) - scheme.quantified
    return result


def generalize(t: Typespec, env: Environment, subst: Substitution = EMPTY) -> Scheme:
    """Quantify the variables of `t` that are not free in `env`."""
    t = subst.apply(t)
    quantified = free_type_vars(t) - env_free_type_vars(env, subst)
    return Scheme(frozenset(quantified), t)


def instantiate(scheme: Scheme, fresh: Callable[[], TypeVar]) -> Typespec:
    """Replace each quantified variable with a fresh one."""
    if not scheme.quantified:
        return scheme.type
    renaming = {name: fresh() for name in sorted(scheme.quantified)}
    return substitute_vars(scheme.type, renaming)


def substitute_vars(t: Typespec, mapping: Mapping[str, Typespec]) -> Typespec:
    """Replace type variables by name, without following chains."""

    def replace(node: Typespec) -> Typespec:
        if isinstance(node, TypeVar):
            return mapping.get(node.name, node)
        return node

    return map_types(t, replace)
