from .symbol import Symbol, Atom, Char
from .environment import Environment
from .values import UNIT, DottedList, SumValue, ProductValue, Primitive, Constructor, Accessor
from .closure import Closure

__all__ = [
    "Symbol",
    "Atom",
    "Char",
    "Environment",
    "UNIT",
    "DottedList",
    "SumValue",
    "ProductValue",
    "Primitive",
    "Constructor",
    "Accessor",
    "Closure",
]
