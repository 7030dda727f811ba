"""Type-name table for one program unit.

Holds type aliases, algebraic (`define-type`) definitions and the tag table
that maps each `:Tag` to its owning type. The checker and the evaluator each
keep their own registry and fill it in program order, so a tag means the same
thing to both, and a program can be evaluated without having been checked.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from ream.errors import MalformedTypespec, Position, UnknownType
from ream.typecheck.typespec import (
    BUILTIN_TYPE_NAMES,
    Member,
    Named,
    Product,
    Sum,
    Tuple,
    TypeVar,
    Typespec,
    map_types,
)
from ream.typecheck.unify import substitute_vars
from ream.types.symbol import Atom

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlgebraicType:
    """A `define-type` definition; `spec` refers to its params as TypeVars."""

    name: str
    params: tuple[str, ...]
    spec: Union[Sum, Product]

    @property
    def is_product(self) -> bool:
        return isinstance(self.spec, Product)

    def named(self, args: Optional[tuple[Typespec, ...]] = None) -> Named:
        if args is None:
            args = tuple(TypeVar(p) for p in self.params)
        return Named(self.name, args)

    def expand(self, args: tuple[Typespec, ...]) -> Union[Sum, Product]:
        """The definition's body with its params replaced by `args`."""
        return substitute_vars(self.spec, dict(zip(self.params, args)))

    def tags(self) -> tuple[Atom, ...]:
        return tuple(m.tag for m in self.spec.members)


@dataclass(frozen=True)
class TagInfo:
    owner: AlgebraicType
    member: Member

    def payload(self, args: tuple[Typespec, ...]) -> Optional[Typespec]:
        if self.member.payload is None:
            return None
        return substitute_vars(self.member.payload, dict(zip(self.owner.params, args)))


def payload_arity(payload: Optional[Typespec]) -> int:
    """Number of constructor arguments a member payload takes."""
    if payload is None:
        return 0
    if isinstance(payload, Tuple) and len(payload.items) >= 2:
        return len(payload.items)
    return 1


class TypeRegistry:
    """Aliases, algebraic types and tags known to a program unit."""

    def __init__(self):
        self.aliases: dict[str, Typespec] = {}
        self.algebraic: dict[str, AlgebraicType] = {}
        self.tags: dict[Atom, TagInfo] = {}

    def __contains__(self, name: str) -> bool:
        return name in BUILTIN_TYPE_NAMES or name in self.aliases or name in self.algebraic

    def tag(self, tag: Atom) -> Optional[TagInfo]:
        return self.tags.get(tag)

    def snapshot(self) -> tuple[dict, dict, dict]:
        """Copy of the alias, algebraic and tag tables, for `restore`."""
        return dict(self.aliases), dict(self.algebraic), dict(self.tags)

    def restore(self, snapshot: tuple[dict, dict, dict]) -> None:
        aliases, algebraic, tags = snapshot
        self.aliases, self.algebraic, self.tags = dict(aliases), dict(algebraic), dict(tags)

    def expand(self, named: Named) -> Optional[Typespec]:
        """Expand a named algebraic type one level (used by unification)."""
        algebraic = self.algebraic.get(named.name)
        if algebraic is None:
            return None
        return algebraic.expand(named.args)

    # ------------------------
    # Resolution
    # ------------------------
    def resolve(self, spec: Typespec, position: Optional[Position] = None) -> Typespec:
        """Replace written type names by what they denote.

        Built-in names stay `Named`, aliases are replaced by their body,
        algebraic names become `Named(name, args)` and any other identifier
        becomes a type variable.
        """

        def resolve_name(node: Typespec) -> Typespec:
            if not isinstance(node, Named):
                return node
            return self._resolve_named(node, position)

        return map_types(spec, resolve_name)

    def _resolve_named(self, node: Named, position: Optional[Position]) -> Typespec:
        name, args = node.name, node.args
        if name in BUILTIN_TYPE_NAMES or name in self.aliases:
            if args:
                raise UnknownType(f"Type `{name}` takes no arguments", position)
            return self.aliases.get(name, node)
        algebraic = self.algebraic.get(name)
        if algebraic is not None:
            if not args:
                return algebraic.named()
            if len(args) != len(algebraic.params):
                raise UnknownType(
                    f"Type `{name}` takes {len(algebraic.params)} arguments, got {len(args)}", position
                )
            return Named(name, args)
        if args:
            raise UnknownType(f"Unknown generic type `{name}`", position)
        return TypeVar(name)

    # ------------------------
    # Declarations
    # ------------------------
    def define_alias(self, name: str, spec: Typespec, position: Optional[Position] = None) -> Typespec:
        self._check_name(name, position)
        resolved = self.resolve(spec, position)
        self.aliases[name] = resolved
        logger.debug("type alias %s registered", name)
        return resolved

    def define_algebraic(
        self, name: str, spec: Union[Sum, Product], position: Optional[Position] = None
    ) -> AlgebraicType:
        self._check_name(name, position)
        for member in spec.members:
            owner = self.tags.get(member.tag)
            if owner is not None and owner.owner.name != name:
                raise MalformedTypespec(
                    f"Tag `{member.tag}` is already defined by type `{owner.owner.name}`", position
                )
            if isinstance(spec, Product) and member.payload is None:
                raise MalformedTypespec(f"Product field `{member.tag}` needs a type", position)

        previous = self.algebraic.pop(name, None)
        # Params are the free identifiers in order of first appearance; the
        # type's own name refers to itself, so register it before resolving.
        params = tuple(self._unknown_names(spec, name))
        placeholder = AlgebraicType(name, params, spec)
        self.algebraic[name] = placeholder
        try:
            body = self.resolve(spec, position)
        except UnknownType:
            del self.algebraic[name]
            if previous is not None:
                self.algebraic[name] = previous
            raise
        body = type(body)(body.members, name)
        algebraic = AlgebraicType(name, params, body)
        self.algebraic[name] = algebraic
        self.aliases.pop(name, None)

        if previous is not None:
            for tag in previous.tags():
                self.tags.pop(tag, None)
        for member in body.members:
            self.tags[member.tag] = TagInfo(algebraic, member)
        logger.debug("type %s registered with params %s and tags %s", name, params, algebraic.tags())
        return algebraic

    def _check_name(self, name: str, position: Optional[Position]) -> None:
        if name in BUILTIN_TYPE_NAMES:
            raise MalformedTypespec(f"Cannot redefine built-in type `{name}`", position)

    def _unknown_names(self, spec: Typespec, own_name: str) -> list[str]:
        seen: list[str] = []

        def visit(node: Typespec) -> Typespec:
            if (
                isinstance(node, Named)
                and not node.args
                and node.name != own_name
                and node.name not in self
                and node.name not in seen
            ):
                seen.append(node.name)
            return node

        # map_types rebuilds bottom-up, so order is that of first appearance
        map_types(spec, visit)
        return seen
