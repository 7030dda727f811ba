"""Runtime value wrappers for the kinds Python has no native type for.

Lists are plain Python lists (the empty list is nil) and tuples are Python
tuples (the empty tuple is unit). Everything else that needs a name lives here.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Optional

from ream.types.symbol import Atom

UNIT: tuple = ()


@dataclass(frozen=True)
class DottedList:
    """An improper list `(a b . c)` whose tail is not a proper list."""

    items: tuple
    tail: Any


@dataclass(frozen=True)
class SumValue:
    """A tagged value of an algebraic sum type, e.g. `(:Some 5)` or `:None`."""

    type_name: str
    tag: Atom
    payload: Any = None
    has_payload: bool = False


@dataclass(frozen=True)
class ProductValue:
    """A record of an algebraic product type; fields keep declaration order."""

    type_name: str
    fields: tuple[tuple[Atom, Any], ...]

    def get(self, tag: Atom) -> Any:
        for name, value in self.fields:
            if name == tag:
                return value
        raise KeyError(tag)


@dataclass(frozen=True)
class Primitive:
    """A built-in operation. `fn(env, args)` receives evaluated arguments."""

    name: str
    fn: Callable[..., Any] = field(compare=False)
    arity: Optional[int] = None

    def __repr__(self) -> str:
        return f"<primitive {self.name}>"


@dataclass(frozen=True)
class Constructor:
    """Builds sum values for a payload-carrying tag, or product values.

    For a sum tag with a tuple payload of n items the constructor takes n
    arguments and stores them as a tuple; otherwise it takes one argument.
    For a product it takes one argument per field.
    """

    type_name: str
    tag: Optional[Atom]
    arity: int
    field_tags: tuple[Atom, ...] = ()
    pack_tuple: bool = False

    @property
    def name(self) -> str:
        return str(self.tag) if self.tag is not None else self.type_name

    def build(self, args: list[Any]) -> Any:
        if self.tag is None:
            return ProductValue(self.type_name, tuple(zip(self.field_tags, args)))
        payload = tuple(args) if self.pack_tuple else args[0]
        return SumValue(self.type_name, self.tag, payload, True)

    def __repr__(self) -> str:
        return f"<constructor {self.name}>"


@dataclass(frozen=True)
class Accessor:
    """Reads one field of a product value; an atom used as a function."""

    type_name: str
    tag: Atom

    @property
    def name(self) -> str:
        return str(self.tag)

    def __repr__(self) -> str:
        return f"<accessor {self.tag}>"
