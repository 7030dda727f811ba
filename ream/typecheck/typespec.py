"""Typespec model.

A closed set of frozen dataclasses. The parser produces `Named` for every
identifier in a typespec; the checker resolves names that are neither
built-in types, aliases nor algebraic types into `TypeVar`s.

`Sum` and `Product` carry an optional `name` (the defining type's name) used
for printing only; it takes no part in equality.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, Optional, Union

from ream.types.symbol import Atom


@dataclass(frozen=True)
class Bottom:
    pass


@dataclass(frozen=True)
class Named:
    name: str
    args: tuple["Typespec", ...] = ()


@dataclass(frozen=True)
class TypeVar:
    name: str


@dataclass(frozen=True)
class Tuple:
    items: tuple["Typespec", ...] = ()


@dataclass(frozen=True)
class ListOf:
    item: "Typespec"


@dataclass(frozen=True)
class Function:
    """`params` are positional; a variadic function has one param, the element type."""

    params: tuple["Typespec", ...]
    result: "Typespec"
    variadic: bool = False


@dataclass(frozen=True)
class Member:
    tag: Atom
    payload: Optional["Typespec"] = None


@dataclass(frozen=True)
class Sum:
    members: tuple[Member, ...]
    name: Optional[str] = field(default=None, compare=False)

    def member(self, tag: Atom) -> Optional[Member]:
        for m in self.members:
            if m.tag == tag:
                return m
        return None


@dataclass(frozen=True)
class Product:
    members: tuple[Member, ...]
    name: Optional[str] = field(default=None, compare=False)

    def member(self, tag: Atom) -> Optional[Member]:
        for m in self.members:
            if m.tag == tag:
                return m
        return None


Typespec = Union[Bottom, Named, TypeVar, Tuple, ListOf, Function, Sum, Product]

# Built-in concrete types
INTEGER = Named("Integer")
FLOAT = Named("Float")
BOOLEAN = Named("Boolean")
CHARACTER = Named("Character")
STRING = Named("String")
ATOM = Named("Atom")
SYMBOL = Named("Symbol")
UNIT = Tuple(())

BUILTIN_TYPE_NAMES = frozenset(
    t.name for t in (INTEGER, FLOAT, BOOLEAN, CHARACTER, STRING, ATOM, SYMBOL)
)


def children(t: Typespec) -> Iterator[Typespec]:
    """Immediate sub-typespecs of `t`."""
    match t:
        case Named(args=args):
            yield from args
        case Tuple(items=items):
            yield from items
        case ListOf(item=item):
            yield item
        case Function(params=params, result=result):
            yield from params
            yield result
        case Sum(members=members) | Product(members=members):
            for m in members:
                if m.payload is not None:
                    yield m.payload
        case Bottom() | TypeVar():
            return


def free_type_vars(t: Typespec) -> set[str]:
    """Names of all type variables occurring in `t`."""
    if isinstance(t, TypeVar):
        return {t.name}
    result: set[str] = set()
    for child in children(t):
        result |= free_type_vars(child)
    return result


def ordered_type_vars(t: Typespec) -> list[str]:
    """Type variables of `t` in order of first appearance."""
    seen: list[str] = []

    def walk(node: Typespec) -> None:
        if isinstance(node, TypeVar):
            if node.name not in seen:
                seen.append(node.name)
            return
        for child in children(node):
            walk(child)

    walk(t)
    return seen


def map_types(t: Typespec, fn) -> Typespec:
    """Rebuild `t` bottom-up, replacing each node by `fn(node)`."""
    match t:
        case Named(name=name, args=args):
            rebuilt = Named(name, tuple(map_types(a, fn) for a in args))
        case Tuple(items=items):
            rebuilt = Tuple(tuple(map_types(i, fn) for i in items))
        case ListOf(item=item):
            rebuilt = ListOf(map_types(item, fn))
        case Function(params=params, result=result, variadic=variadic):
            rebuilt = Function(tuple(map_types(p, fn) for p in params), map_types(result, fn), variadic)
        case Sum(members=members, name=name):
            rebuilt = Sum(_map_members(members, fn), name)
        case Product(members=members, name=name):
            rebuilt = Product(_map_members(members, fn), name)
        case _:
            rebuilt = t
    return fn(rebuilt)


def _map_members(members: tuple[Member, ...], fn) -> tuple[Member, ...]:
    return tuple(
        Member(m.tag, map_types(m.payload, fn) if m.payload is not None else None)
        for m in members
    )
