"""Error taxonomy for every stage of the Ream pipeline.

Each stage raises a subclass of its own base (lex, parse, type, runtime,
inclusion) and stops at the first error. All errors carry an optional
source `Position` so callers can report `file:line:col`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Position:
    """A location in source text. `line` and `column` are 1-based."""

    offset: int = 0
    line: int = 1
    column: int = 1
    source: Optional[str] = None

    def __str__(self) -> str:
        prefix = f"{self.source}:" if self.source else ""
        return f"{prefix}{self.line}:{self.column}"


class ReamError(Exception):
    """ Base class for all Ream errors"""

    def __init__(self, message: str, position: Optional[Position] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        if self.position is None:
            return self.message
        return f"{self.message} (at {self.position})"


# -------------------------------
# Lexing
# -------------------------------
class ReamLexError(ReamError):
    """ Raised when the source text contains a malformed token"""

class UnterminatedString(ReamLexError):
    """ Raised when a string literal is missing its closing quote"""

class UnterminatedChar(ReamLexError):
    """ Raised when a character literal is missing its closing quote"""

class InvalidEscape(ReamLexError):
    """ Raised when a string or character literal uses an unknown escape"""

class InvalidNumber(ReamLexError):
    """ Raised when a numeric literal cannot be read"""

class InvalidBoolean(ReamLexError):
    """ Raised for `#` literals other than #t, #true, #f, #false"""

class UnexpectedCharacter(ReamLexError):
    """ Raised when a character cannot start any token"""


# -------------------------------
# Parsing
# -------------------------------
class ReamParseError(ReamError):
    """ Raised when tokens do not form a valid datum or expression"""

class UnexpectedToken(ReamParseError):
    """ Raised when a token appears where it is not allowed"""

class UnclosedList(ReamParseError):
    """ Raised when input ends inside a parenthesized list"""

class UnexpectedEof(ReamParseError):
    """ Raised when input ends where a datum or expression was required"""

class InvalidForm(ReamParseError):
    """ Raised when a keyword form has the wrong shape or arity"""

class MalformedTypespec(ReamParseError):
    """ Raised when a type specification is not well formed"""


# -------------------------------
# Type checking
# -------------------------------
class ReamTypeError(ReamError):
    """ Raised when a program fails type checking"""

class TypeMismatch(ReamTypeError):
    """ Raised when two types cannot be unified"""

    def __init__(self, t1, t2, position: Optional[Position] = None):
        from ream.printer import render_type
        super().__init__(
            f"Type mismatch: {render_type(t1)} vs {render_type(t2)}", position
        )
        self.t1 = t1
        self.t2 = t2

class InfiniteType(ReamTypeError):
    """ Raised when a type variable would have to contain itself"""

    def __init__(self, var, t, position: Optional[Position] = None):
        from ream.printer import pretty_names, render_type
        names = pretty_names(t)
        super().__init__(
            f"Infinite type: {render_type(var, names)} occurs in {render_type(t, names)}", position
        )
        self.var = var
        self.t = t

class UnboundIdentifier(ReamTypeError):
    """ Raised when an identifier is used before it is bound"""

    def __init__(self, name: str, position: Optional[Position] = None):
        super().__init__(f"Unbound identifier `{name}`", position)
        self.name = name

class ArityMismatch(ReamTypeError):
    """ Raised when a call passes the wrong number of arguments"""

class AnnotationMismatch(ReamTypeError):
    """ Raised when an inferred type conflicts with a `:type` annotation"""

class UnknownType(ReamTypeError):
    """ Raised when a type name is applied to arguments but is not generic"""

class UnknownTag(ReamTypeError):
    """ Raised when a match clause names a tag outside the scrutinee's type"""

class NonExhaustiveMatch(ReamTypeError):
    """ Raised when a match does not cover every tag of its sum type"""


# -------------------------------
# Evaluation
# -------------------------------
class ReamRuntimeError(ReamError):
    """ Raised while evaluating a program"""

class RuntimeTypeMismatch(ReamRuntimeError):
    """ Raised when an operation receives a value of the wrong kind"""

class RuntimeUnboundIdentifier(ReamRuntimeError):
    """ Raised when an identifier has no value in scope"""

class RuntimeArityMismatch(ReamRuntimeError):
    """ Raised when a function is applied to the wrong number of arguments"""

class DivisionByZero(ReamRuntimeError):
    """ Raised on integer or float division by zero"""

class EmptyList(ReamRuntimeError):
    """ Raised when car/cdr is applied to the empty list"""

class MatchFailure(ReamRuntimeError):
    """ Raised when no match clause accepts the scrutinee"""

class StackOverflow(ReamRuntimeError):
    """ Raised when recursion exceeds the configured call depth"""


# -------------------------------
# Inclusion
# -------------------------------
class ReamInclusionError(ReamError):
    """ Raised while resolving `include` directives"""

class IncludeNotFound(ReamInclusionError):
    """ Raised when an included path does not exist"""

class InclusionCycle(ReamInclusionError):
    """ Raised when a file (transitively) includes itself"""

class IncludeIOError(ReamInclusionError):
    """ Raised when an included file cannot be read"""
