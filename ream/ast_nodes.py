"""AST node definitions for Ream programs.

Each expression form is one dataclass; consumers dispatch with `match` over
the closed set named by `Expression`. Nodes own their children; nothing is
shared between parents.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional, Union

from ream.errors import Position
from ream.typecheck.typespec import Typespec


@dataclass
class Identifier:
    name: str
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class Literal:
    """A self-evaluating literal: bool, int, float, Char, str or Atom."""

    value: Any
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class Quotation:
    """`datum or (quote datum); the datum is returned unevaluated."""

    datum: Any
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class TypeAlias:
    name: str
    typespec: Typespec
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class AlgebraicTypeDef:
    name: str
    typespec: Typespec
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class TypeAnnotation:
    name: str
    typespec: Typespec
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class DocAnnotation:
    name: str
    text: str
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class VariableDef:
    name: str
    value: "Expression"
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class Formals:
    """Parameter list. A variadic formal list has exactly one name."""

    names: list[str]
    variadic: bool = False


@dataclass
class FunctionDef:
    name: str
    params: Formals
    body: list["Expression"]
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class ClosureDef:
    params: Formals
    body: list["Expression"]
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class Sequence:
    exprs: list["Expression"]
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class Call:
    operator: "Expression"
    operands: list["Expression"]
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class Conditional:
    test: "Expression"
    consequent: "Expression"
    alternate: Optional["Expression"] = None
    position: Optional[Position] = field(default=None, compare=False)


# --- match ---
@dataclass
class TagPattern:
    """`:Tag` or `(:Tag binder*)`."""

    tag: Any  # Atom
    binders: list[str] = field(default_factory=list)
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class BindPattern:
    """An identifier binding the whole value, or `_` (name None)."""

    name: Optional[str]
    position: Optional[Position] = field(default=None, compare=False)


Pattern = Union[TagPattern, BindPattern]


@dataclass
class MatchClause:
    pattern: Pattern
    body: list["Expression"]


@dataclass
class Match:
    scrutinee: "Expression"
    clauses: list[MatchClause]
    position: Optional[Position] = field(default=None, compare=False)


@dataclass
class Inclusion:
    paths: list[str]
    position: Optional[Position] = field(default=None, compare=False)


Expression = Union[
    Identifier,
    Literal,
    Quotation,
    TypeAlias,
    AlgebraicTypeDef,
    TypeAnnotation,
    DocAnnotation,
    VariableDef,
    FunctionDef,
    ClosureDef,
    Sequence,
    Call,
    Conditional,
    Match,
    Inclusion,
]


@dataclass
class Program:
    exprs: list[Expression]
    source: Optional[str] = None
