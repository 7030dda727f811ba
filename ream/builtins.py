from __future__ import annotations
from typing import Any, Callable, Optional
from ream.types import Environment, Atom, Char, Primitive, DottedList, ProductValue, SumValue, Symbol, UNIT
from ream.errors import DivisionByZero, EmptyList, RuntimeTypeMismatch
from ream.printer import render_value
from ream.reader.parser import parse_typespec
from ream.typecheck.typespec import free_type_vars
from ream.typecheck.unify import Scheme

# -------------------------------
# Argument checks
# -------------------------------
_KIND_NAMES = {
    int: "Integer",
    float: "Float",
    bool: "Boolean",
    str: "String",
    Char: "Character",
    list: "List",
    tuple: "Tuple",
}


def kind_name(value: Any) -> str:
    if isinstance(value, DottedList):
        return "List"
    return _KIND_NAMES.get(type(value), type(value).__name__)


def expect(name: str, value: Any, kind: type) -> Any:
    # `type(...) is` keeps booleans out of integer arithmetic
    if type(value) is not kind:
        raise RuntimeTypeMismatch(f"`{name}` expects {_KIND_NAMES[kind]}, got {kind_name(value)}")
    return value


def expect_list(name: str, value: Any) -> list[Any]:
    if not isinstance(value, list):
        raise RuntimeTypeMismatch(f"`{name}` expects List, got {kind_name(value)}")
    return value


# -------------------------------
# Arithmetic
# -------------------------------
def _integer_op(name: str, op: Callable[[int, int], int]):
    def apply(env: Environment, args: list[Any]) -> int:
        a, b = (expect(name, x, int) for x in args)
        return op(a, b)
    return apply


def _float_op(name: str, op: Callable[[float, float], float]):
    def apply(env: Environment, args: list[Any]) -> float:
        a, b = (expect(name, x, float) for x in args)
        return op(a, b)
    return apply


def _truncating_div(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZero("Integer division by zero")
    q = abs(a) // abs(b)
    return q if (a < 0) == (b < 0) else -q


def _remainder(a: int, b: int) -> int:
    if b == 0:
        raise DivisionByZero("Integer remainder by zero")
    return a - b * _truncating_div(a, b)


def _float_div(a: float, b: float) -> float:
    if b == 0.0:
        raise DivisionByZero("Float division by zero")
    return a / b


def to_float(env: Environment, args: list[Any]) -> float:
    return float(expect("float", args[0], int))


def truncate(env: Environment, args: list[Any]) -> int:
    return int(expect("truncate", args[0], float))


# -------------------------------
# Comparison
# -------------------------------
def equals(env: Environment, args: list[Any]) -> bool:
    a, b = args
    return type(a) is type(b) and a == b


def not_equals(env: Environment, args: list[Any]) -> bool:
    return not equals(env, args)


def order_key(value: Any) -> Any:
    """Key under which two values of the same type compare structurally.

    Numbers, strings and characters order naturally, #f before #t; lists and
    tuples lexicographically; symbols and atoms by name; sum values by tag
    spelling, then payload; product values field by field.
    """
    if isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Char):
        return value.value
    if isinstance(value, (list, tuple)):
        return tuple(order_key(item) for item in value)
    if isinstance(value, DottedList):
        return tuple(order_key(item) for item in value.items) + (order_key(value.tail),)
    if isinstance(value, (Symbol, Atom)):
        return str(value)
    if isinstance(value, SumValue):
        return (str(value.tag), value.has_payload, order_key(value.payload) if value.has_payload else ())
    if isinstance(value, ProductValue):
        return tuple(order_key(v) for _, v in value.fields)
    raise RuntimeTypeMismatch(f"{kind_name(value)} values have no ordering")


def _ordering(name: str, op: Callable[[Any, Any], bool]):
    def apply(env: Environment, args: list[Any]) -> bool:
        a, b = args
        if type(a) is not type(b):
            raise RuntimeTypeMismatch(
                f"`{name}` cannot compare {kind_name(a)} with {kind_name(b)}"
            )
        try:
            return op(order_key(a), order_key(b))
        except TypeError:
            # Unchecked programs can mix element types inside lists
            raise RuntimeTypeMismatch(
                f"`{name}` cannot compare {render_value(a)} with {render_value(b)}"
            ) from None
    return apply


# -------------------------------
# Boolean logic
# -------------------------------
def logical_not(env: Environment, args: list[Any]) -> bool:
    return not expect("not", args[0], bool)


def logical_and(env: Environment, args: list[Any]) -> bool:
    a, b = (expect("and", x, bool) for x in args)
    return a and b


def logical_or(env: Environment, args: list[Any]) -> bool:
    a, b = (expect("or", x, bool) for x in args)
    return a or b


# -------------------------------
# List operations
# -------------------------------
def cons(env: Environment, args: list[Any]) -> list[Any]:
    head, tail = args
    return [head] + expect_list("cons", tail)


def car(env: Environment, args: list[Any]) -> Any:
    xs = args[0]
    if isinstance(xs, DottedList):
        return xs.items[0]
    if not expect_list("car", xs):
        raise EmptyList("`car` of the empty list")
    return xs[0]


def cdr(env: Environment, args: list[Any]) -> Any:
    xs = args[0]
    if isinstance(xs, DottedList):
        return DottedList(xs.items[1:], xs.tail) if len(xs.items) > 1 else xs.tail
    if not expect_list("cdr", xs):
        raise EmptyList("`cdr` of the empty list")
    return xs[1:]


def is_null(env: Environment, args: list[Any]) -> bool:
    return isinstance(args[0], list) and not args[0]


def list_builtin(env: Environment, args: list[Any]) -> list[Any]:
    return list(args)


def length(env: Environment, args: list[Any]) -> int:
    return len(expect_list("length", args[0]))


def append(env: Environment, args: list[Any]) -> list[Any]:
    a, b = (expect_list("append", x) for x in args)
    return a + b


# -------------------------------
# Tuples
# -------------------------------
def pair(env: Environment, args: list[Any]) -> tuple:
    return tuple(args)


def first(env: Environment, args: list[Any]) -> Any:
    return expect("fst", args[0], tuple)[0]


def second(env: Environment, args: list[Any]) -> Any:
    return expect("snd", args[0], tuple)[1]


# -------------------------------
# Strings and output
# -------------------------------
def string_append(env: Environment, args: list[Any]) -> str:
    a, b = (expect("string-append", x, str) for x in args)
    return a + b


def string_length(env: Environment, args: list[Any]) -> int:
    return len(expect("string-length", args[0], str))


def print_value(env: Environment, args: list[Any]) -> tuple:
    print(render_value(args[0], readable=False))
    return UNIT


# -------------------------------
# Registration
# -------------------------------
# name -> (type signature, implementation); arity follows from the signature
BUILTINS: dict[str, tuple[str, Optional[Callable]]] = {
    '+': ('(Function Integer Integer Integer)', _integer_op('+', lambda a, b: a + b)),
    '-': ('(Function Integer Integer Integer)', _integer_op('-', lambda a, b: a - b)),
    '*': ('(Function Integer Integer Integer)', _integer_op('*', lambda a, b: a * b)),
    '/': ('(Function Integer Integer Integer)', _integer_op('/', _truncating_div)),
    'mod': ('(Function Integer Integer Integer)', _integer_op('mod', _remainder)),
    '+.': ('(Function Float Float Float)', _float_op('+.', lambda a, b: a + b)),
    '-.': ('(Function Float Float Float)', _float_op('-.', lambda a, b: a - b)),
    '*.': ('(Function Float Float Float)', _float_op('*.', lambda a, b: a * b)),
    '/.': ('(Function Float Float Float)', _float_op('/.', _float_div)),
    'float': ('(Function Integer Float)', to_float),
    'truncate': ('(Function Float Integer)', truncate),
    '=': ('(Function A A Boolean)', equals),
    '/=': ('(Function A A Boolean)', not_equals),
    '<': ('(Function A A Boolean)', _ordering('<', lambda a, b: a < b)),
    '<=': ('(Function A A Boolean)', _ordering('<=', lambda a, b: a <= b)),
    '>': ('(Function A A Boolean)', _ordering('>', lambda a, b: a > b)),
    '>=': ('(Function A A Boolean)', _ordering('>=', lambda a, b: a >= b)),
    'not': ('(Function Boolean Boolean)', logical_not),
    'and': ('(Function Boolean Boolean Boolean)', logical_and),
    'or': ('(Function Boolean Boolean Boolean)', logical_or),
    'nil': ('(List A)', None),
    'cons': ('(Function A (List A) (List A))', cons),
    'car': ('(Function (List A) A)', car),
    'cdr': ('(Function (List A) (List A))', cdr),
    'null?': ('(Function (List A) Boolean)', is_null),
    'list': ('(Function & A (List A))', list_builtin),
    'length': ('(Function (List A) Integer)', length),
    'append': ('(Function (List A) (List A) (List A))', append),
    'pair': ('(Function A B (Tuple A B))', pair),
    'fst': ('(Function (Tuple A B) A)', first),
    'snd': ('(Function (Tuple A B) B)', second),
    'string-append': ('(Function String String String)', string_append),
    'string-length': ('(Function String Integer)', string_length),
    'print': ('(Function A (Tuple))', print_value),
}


def register(context) -> None:
    """Bind every built-in in the context's type and value environments."""
    for name, (signature, fn) in BUILTINS.items():
        t = context.registry.resolve(parse_typespec(signature))
        context.type_env.define(name, Scheme(frozenset(free_type_vars(t)), t))
        if fn is None:
            context.value_env.define(name, [])
            continue
        arity = None if t.variadic else len(t.params)
        context.value_env.define(name, Primitive(name, fn, arity))
