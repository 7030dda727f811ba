from __future__ import annotations
import sys


class Symbol:
    __slots__ = ("id",)

    def __init__(self, name: str):
        # Intern to ensure fast equality/hash and reduce memory
        self.id = sys.intern(name)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Symbol) and self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self):
        return f"Symbol({self.id!r})"

    def __str__(self):
        return self.id


class Atom:
    """A colon-prefixed tag such as `:Some`. The name keeps its colon."""

    __slots__ = ("name",)

    def __init__(self, name: str):
        self.name = sys.intern(name)

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Atom) and self.name == other.name

    def __hash__(self) -> int:
        return hash(("atom", self.name))

    def __repr__(self):
        return f"Atom({self.name!r})"

    def __str__(self):
        return self.name


class Char:
    """A character literal, kept distinct from one-character strings."""

    __slots__ = ("value",)

    def __init__(self, value: str):
        if len(value) != 1:
            raise ValueError(f"Char expects a single character, got {value!r}")
        self.value = value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Char) and self.value == other.value

    def __lt__(self, other: Char) -> bool:
        return self.value < other.value

    def __le__(self, other: Char) -> bool:
        return self.value <= other.value

    def __gt__(self, other: Char) -> bool:
        return self.value > other.value

    def __ge__(self, other: Char) -> bool:
        return self.value >= other.value

    def __hash__(self) -> int:
        return hash(("char", self.value))

    def __repr__(self):
        return f"Char({self.value!r})"

    def __str__(self):
        return self.value
