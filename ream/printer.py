"""Rendering of values, typespecs and AST trees.

`render_value` prints a value the way it would be written in source where
that is possible; `render_type` prints typespecs in typespec syntax with type
variables renamed A, B, C... in order of first appearance; `render_tree`
draws an AST as an indented tree, optionally colored.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from io import StringIO
from typing import Any, Optional

from ream import ast_nodes as ast
from ream.reader.lexer import escape
from ream.typecheck.typespec import (
    Bottom,
    Function,
    ListOf,
    Named,
    Product,
    Sum,
    Tuple,
    TypeVar,
    Typespec,
    ordered_type_vars,
)
from ream.types import (
    Accessor,
    Atom,
    Char,
    Closure,
    Constructor,
    DottedList,
    Primitive,
    ProductValue,
    SumValue,
    Symbol,
)


# -------------------------------
# Values
# -------------------------------
def render_value(value: Any, readable: bool = True) -> str:
    """Render a runtime value. With `readable=False` strings and characters print bare."""
    if isinstance(value, bool):
        return "#t" if value else "#f"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return f'"{escape(value, chr(34))}"' if readable else value
    if isinstance(value, Char):
        return f"'{escape(value.value, chr(39))}'" if readable else value.value
    if isinstance(value, (Atom, Symbol, Closure)):
        return str(value)
    if isinstance(value, list):
        return "(" + " ".join(render_value(v) for v in value) + ")"
    if isinstance(value, tuple):
        return "(" + " ".join(["Tuple"] + [render_value(v) for v in value]) + ")"
    if isinstance(value, DottedList):
        items = " ".join(render_value(v) for v in value.items)
        return f"({items} . {render_value(value.tail)})"
    if isinstance(value, SumValue):
        if not value.has_payload:
            return str(value.tag)
        payload = value.payload
        if isinstance(payload, tuple) and len(payload) >= 2:
            parts = [render_value(p) for p in payload]
        else:
            parts = [render_value(payload)]
        return f"({value.tag} {' '.join(parts)})"
    if isinstance(value, ProductValue):
        parts = [f"{tag} {render_value(v)}" for tag, v in value.fields]
        return f"({value.type_name} {' '.join(parts)})"
    if isinstance(value, (Primitive, Constructor, Accessor)):
        return repr(value)
    return str(value)


# -------------------------------
# Types
# -------------------------------
def pretty_names(t: Typespec) -> dict[str, str]:
    """Letters A, B, ... for the type variables of `t`, in order of appearance."""
    names = {}
    for i, var in enumerate(ordered_type_vars(t)):
        letter = chr(ord("A") + i % 26)
        names[var] = letter if i < 26 else f"{letter}{i // 26}"
    return names


def render_type(t: Typespec, names: Optional[dict[str, str]] = None) -> str:
    """Render a typespec in source syntax, e.g. `(Function (List A) A)`."""
    if names is None:
        names = pretty_names(t)

    def render(node: Typespec) -> str:
        match node:
            case Bottom():
                return "Bottom"
            case TypeVar(name=name):
                return names.get(name, name)
            case Named(name=name, args=()):
                return name
            case Named(name=name, args=args):
                return f"({name} {' '.join(render(a) for a in args)})"
            case Tuple(items=items):
                return "(" + " ".join(["Tuple"] + [render(i) for i in items]) + ")"
            case ListOf(item=item):
                return f"(List {render(item)})"
            case Function(params=params, result=result, variadic=variadic):
                parts = ["Function"] + (["&"] if variadic else [])
                parts += [render(p) for p in params] + [render(result)]
                return "(" + " ".join(parts) + ")"
            case Sum(name=name) | Product(name=name) if name is not None:
                return name
            case Sum(members=members) | Product(members=members):
                head = "Sum" if isinstance(node, Sum) else "Product"
                parts = [
                    str(m.tag) if m.payload is None else f"({m.tag} {render(m.payload)})"
                    for m in members
                ]
                return f"({head} {' '.join(parts)})"
        return str(node)

    return render(t)


# -------------------------------
# AST trees
# -------------------------------
RESET = "\033[0m"
COLOR_NODE = "\033[94m"
COLOR_FIELD = "\033[90m"
COLOR_LEAF = "\033[92m"


def _leaf(value: Any, label: str) -> str:
    if label == "name" and isinstance(value, str):
        return value
    if isinstance(value, (Named, TypeVar, Tuple, ListOf, Function, Sum, Product, Bottom)):
        return render_type(value)
    if isinstance(value, ast.Formals):
        return value.names[0] if value.variadic else "(" + " ".join(value.names) + ")"
    return render_value(value)


def _is_node(item: Any) -> bool:
    return is_dataclass(item) and type(item).__module__ == ast.__name__ and not isinstance(item, ast.Formals)


def render_tree(node: Any, color: bool = False) -> str:
    """Draw an AST node (or a whole Program) as an indented tree."""

    def paint(text: str, code: str) -> str:
        return f"{code}{text}{RESET}" if color else text

    buffer = StringIO()

    def walk(item: Any, prefix: str, label: str, last: bool, top: bool) -> None:
        branch = "" if top else ("└── " if last else "├── ")
        label_text = paint(label + ": ", COLOR_FIELD) if label else ""
        child_prefix = prefix if top else prefix + ("    " if last else "│   ")

        if isinstance(item, list) and item and _is_node(item[0]):
            buffer.write(f"{prefix}{branch}{label_text}{paint('[' + str(len(item)) + ']', COLOR_NODE)}\n")
            for i, child in enumerate(item):
                walk(child, child_prefix, "", i == len(item) - 1, False)
            return

        if _is_node(item):
            buffer.write(f"{prefix}{branch}{label_text}{paint(type(item).__name__, COLOR_NODE)}\n")
            shown = [
                f for f in fields(item)
                if f.name != "position" and getattr(item, f.name) not in (None, [])
            ]
            for i, f in enumerate(shown):
                walk(getattr(item, f.name), child_prefix, f.name, i == len(shown) - 1, False)
            return

        if isinstance(item, list) and all(isinstance(v, str) for v in item):
            text = " ".join(item)
        else:
            text = _leaf(item, label)
        buffer.write(f"{prefix}{branch}{label_text}{paint(text, COLOR_LEAF)}\n")

    walk(node, "", "", True, True)
    return buffer.getvalue()
