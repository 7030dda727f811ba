"""
  Ream Lexer

- Streaming, lazy tokenization: `lex` is a generator and `Lexer` restarts
  from the beginning of the source on every iteration.
- Comments (`;` to end of line) and whitespace are skipped, never emitted.
- Delimiters (whitespace ( ) " ' ; `) end a token without being part of it.

Token kinds:

    - identifiers      foo, null?, <=, +
    - booleans         #t #true #f #false
    - integers         42, -7, 0xff, 0o17, 0b1010, 1_000
    - floats           3.14 (decimal only, a `.` is required)
    - characters       'a' '\\n'
    - strings          "hello\\n"
    - atoms            :Some
    - punctuation      ( ) . and the backtick quote mark
"""

from __future__ import annotations

import bisect
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterator, Optional

from ream.errors import (
    Position,
    InvalidBoolean,
    InvalidEscape,
    InvalidNumber,
    UnexpectedCharacter,
    UnterminatedChar,
    UnterminatedString,
)


class TokenKind(Enum):
    IDENTIFIER = "identifier"
    BOOLEAN = "boolean"
    INTEGER = "integer"
    FLOAT = "float"
    CHARACTER = "character"
    STRING = "string"
    ATOM = "atom"
    LPAREN = "lparen"
    RPAREN = "rparen"
    DOT = "dot"
    QUOTE = "quote"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    value: Any
    text: str
    position: Position

    def __str__(self) -> str:
        return f"{self.kind.value}({self.text})"


DELIMITERS = frozenset(" \t\r\n\f\v()\"';`")
_NOT_DELIM = r"[^\s()\"';`]"

TOKEN_RE = re.compile(
    r"(?P<whitespace>\s+)"  # skipped
    r"|(?P<comment>;[^\n]*)"  # skipped, to end of line
    r"|(?P<lparen>\()"
    r"|(?P<rparen>\))"
    r"|(?P<quote>`)"
    r'|(?P<string>")'  # scanned by hand for escapes
    r"|(?P<char>')"  # scanned by hand for escapes
    rf"|(?P<boolean>#{_NOT_DELIM}*)"
    rf"|(?P<number>[+-]?\d{_NOT_DELIM}*)"
    rf"|(?P<atom>:{_NOT_DELIM}*)"
    r"|(?P<dot>\.(?=[\s()\"';`]|$))"
    rf"|(?P<word>{_NOT_DELIM}+)"
)

ESCAPES: dict[str, str] = {
    "n": "\n",
    "r": "\r",
    "t": "\t",
    "\\": "\\",
    "0": "\0",
    "'": "'",
    '"': '"',
}
_REVERSE_ESCAPES = {v: k for k, v in ESCAPES.items()}

BOOLEANS = {"#t": True, "#true": True, "#f": False, "#false": False}

_DECIMAL_INT = re.compile(r"\d+")
_DECIMAL_FLOAT = re.compile(r"\d+\.\d*")
_RADIX = {"0x": 16, "0o": 8, "0b": 2}

_SYMBOLIC_START = frozenset("!$%&*/<=>?^_~+-")


def is_id_start(c: str) -> bool:
    """Check if a character can start an identifier."""
    return c.isidentifier() or c in _SYMBOLIC_START


def is_id_continue(c: str) -> bool:
    """Check if a character can continue an identifier."""
    return is_id_start(c) or ("a" + c).isidentifier() or c.isdigit() or c in ".@:"


class _Locator:
    """Maps character offsets to 1-based (line, column) positions."""

    def __init__(self, source: str, source_name: Optional[str]):
        self.source_name = source_name
        self.line_starts = [0] + [i + 1 for i, c in enumerate(source) if c == "\n"]

    def __call__(self, offset: int) -> Position:
        line = bisect.bisect_right(self.line_starts, offset)
        column = offset - self.line_starts[line - 1] + 1
        return Position(offset, line, column, self.source_name)


def _scan_escape(source: str, pos: int, locate: _Locator, unterminated) -> tuple[str, int]:
    """Read the escape starting at the backslash at `pos`; return (char, next_pos)."""
    if pos + 1 >= len(source):
        raise unterminated("Unexpected end of input in escape sequence", locate(pos))
    code = source[pos + 1]
    if code not in ESCAPES:
        raise InvalidEscape(f"Invalid escape sequence: '\\{code}'", locate(pos))
    return ESCAPES[code], pos + 2


def _scan_string(source: str, start: int, locate: _Locator) -> tuple[str, int]:
    """Scan a string literal whose opening quote is at `start`."""
    pos = start + 1
    chars: list[str] = []
    n = len(source)
    while pos < n:
        c = source[pos]
        if c == '"':
            return "".join(chars), pos + 1
        if c == "\\":
            ch, pos = _scan_escape(source, pos, locate, UnterminatedString)
            chars.append(ch)
            continue
        chars.append(c)
        pos += 1
    raise UnterminatedString("Unterminated string literal", locate(start))


def _scan_char(source: str, start: int, locate: _Locator) -> tuple[str, int]:
    """Scan a character literal whose opening quote is at `start`."""
    pos = start + 1
    if pos >= len(source):
        raise UnterminatedChar("Unterminated character literal", locate(start))
    if source[pos] == "\\":
        ch, pos = _scan_escape(source, pos, locate, UnterminatedChar)
    else:
        ch, pos = source[pos], pos + 1
    if pos >= len(source) or source[pos] != "'":
        raise UnterminatedChar("Unterminated character literal", locate(start))
    return ch, pos + 1


def _read_number(raw: str, position: Position) -> tuple[TokenKind, Any]:
    sign = -1 if raw.startswith("-") else 1
    body = raw[1:] if raw[0] in "+-" else raw
    body = body.replace("_", "")
    prefix = body[:2].lower()
    if prefix in _RADIX:
        if "." in body:
            raise InvalidNumber(
                f"Invalid number {raw!r}: floats can only be written in decimal notation",
                position,
            )
        try:
            return TokenKind.INTEGER, sign * int(body[2:], _RADIX[prefix])
        except ValueError:
            raise InvalidNumber(f"Invalid number {raw!r}", position) from None
    if _DECIMAL_INT.fullmatch(body):
        return TokenKind.INTEGER, sign * int(body)
    if _DECIMAL_FLOAT.fullmatch(body):
        return TokenKind.FLOAT, sign * float(body)
    raise InvalidNumber(f"Invalid number {raw!r}", position)


def lex(source: str, source_name: Optional[str] = None) -> Iterator[Token]:
    """Token generator: yields Token objects, raising ReamLexError on bad input."""
    locate = _Locator(source, source_name)
    pos = 0
    n = len(source)

    while pos < n:
        m = TOKEN_RE.match(source, pos)
        if m is None:
            # Only reachable for a lone character no alternative accepts
            raise UnexpectedCharacter(f"Unexpected character {source[pos]!r}", locate(pos))
        kind = m.lastgroup
        text = m.group(0)
        start = pos
        pos = m.end()

        if kind in ("whitespace", "comment"):
            continue
        position = locate(start)

        if kind == "lparen":
            yield Token(TokenKind.LPAREN, "(", text, position)
        elif kind == "rparen":
            yield Token(TokenKind.RPAREN, ")", text, position)
        elif kind == "quote":
            yield Token(TokenKind.QUOTE, "`", text, position)
        elif kind == "dot":
            yield Token(TokenKind.DOT, ".", text, position)
        elif kind == "string":
            value, pos = _scan_string(source, start, locate)
            yield Token(TokenKind.STRING, value, source[start:pos], position)
        elif kind == "char":
            value, pos = _scan_char(source, start, locate)
            yield Token(TokenKind.CHARACTER, value, source[start:pos], position)
        elif kind == "boolean":
            if text not in BOOLEANS:
                raise InvalidBoolean(
                    f"Invalid boolean {text!r}: valid literals are #t, #true, #f and #false",
                    position,
                )
            yield Token(TokenKind.BOOLEAN, BOOLEANS[text], text, position)
        elif kind == "number":
            num_kind, value = _read_number(text, position)
            yield Token(num_kind, value, text, position)
        elif kind == "atom":
            if len(text) == 1 or not all(is_id_continue(c) for c in text[1:]):
                raise UnexpectedCharacter(f"Invalid atom {text!r}", position)
            yield Token(TokenKind.ATOM, text, text, position)
        else:
            if not is_id_start(text[0]):
                raise UnexpectedCharacter(f"Unexpected character {text[0]!r}", position)
            for i, c in enumerate(text[1:], start=1):
                if not is_id_continue(c):
                    raise UnexpectedCharacter(
                        f"Unexpected character {c!r} in identifier", locate(start + i)
                    )
            yield Token(TokenKind.IDENTIFIER, text, text, position)


class Lexer:
    """A restartable token sequence over one source text."""

    def __init__(self, source: str, source_name: Optional[str] = None):
        self.source = source
        self.source_name = source_name

    def __iter__(self) -> Iterator[Token]:
        return lex(self.source, self.source_name)


# -------------------------------
# Rendering (inverse of lexing for single tokens)
# -------------------------------
def escape(text: str, quote: str) -> str:
    out = []
    for c in text:
        if c in _REVERSE_ESCAPES and (c == quote or c not in "'\""):
            out.append("\\" + _REVERSE_ESCAPES[c])
        else:
            out.append(c)
    return "".join(out)


def render_token(token: Token) -> str:
    """Render a token back to source text.

    Lexed tokens keep their exact spelling (radix prefixes, digit separators
    and signs included); tokens built without source text get a canonical one.
    """
    if token.text:
        return token.text
    kind, value = token.kind, token.value
    if kind is TokenKind.BOOLEAN:
        return "#t" if value else "#f"
    if kind is TokenKind.INTEGER:
        return str(value)
    if kind is TokenKind.FLOAT:
        return repr(value)
    if kind is TokenKind.STRING:
        return f'"{escape(value, chr(34))}"'
    if kind is TokenKind.CHARACTER:
        return f"'{escape(value, chr(39))}'"
    return str(value)
