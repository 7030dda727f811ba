# Core type aliases for Ream's data model.
# Data read from source and runtime values share plain Python types where they
# can (int, float, str, bool, list, tuple), with small wrappers for the few
# kinds Python lacks (Symbol, Atom, Char, DottedList).
#
# Naming guidance:
# - Datum:     Use in reader code to denote quoted, untyped S-expression data.
# - ReamValue: Use in evaluator/runtime code to denote evaluated values.
# Both aliases resolve to `Any`; the typed AST (ream.ast_nodes) is the only
# structure the checker and evaluator dispatch on.

from typing import Any, Callable

# Runtime value alias
ReamValue = Any
# Reader output (quoted data)
Datum = ReamValue

# Evaluator function type: passed into special forms so they can recurse
EvaluatorFn = Callable[..., ReamValue]

__version__ = "0.1.0"
