"""
  Ream Reader (datum parser)

Parses tokens into untyped S-expression data, emitting Python primitives
rather than cons cells:

    - identifiers   -> Symbol
    - atoms         -> Atom
    - characters    -> Char
    - strings, booleans, integers, floats -> str, bool, int, float
    - lists         -> Python list
    - dotted lists  -> DottedList(items, tail), flattened when the tail is a list
    - `datum        -> [Symbol("quote"), datum]

Only quotation uses data; program structure goes through ream.reader.parser.
"""

from __future__ import annotations

from itertools import chain
from typing import Iterable, Iterator, Optional

from ream import Datum
from ream.errors import Position, UnclosedList, UnexpectedEof, UnexpectedToken
from ream.reader.lexer import Token, TokenKind
from ream.types.symbol import Atom, Char, Symbol
from ream.types.values import DottedList

QUOTE = Symbol("quote")

_SIMPLE_DATA = {
    TokenKind.BOOLEAN: lambda v: v,
    TokenKind.INTEGER: lambda v: v,
    TokenKind.FLOAT: lambda v: v,
    TokenKind.STRING: lambda v: v,
    TokenKind.CHARACTER: Char,
    TokenKind.IDENTIFIER: Symbol,
    TokenKind.ATOM: Atom,
}


class TokenStream:
    """A token iterator with one-token lookahead."""

    def __init__(self, tokens: Iterable[Token]):
        self.tokens: Iterator[Token] = iter(tokens)
        self.buffer: list[Token] = []
        self.last: Optional[Token] = None

    def peek(self) -> Optional[Token]:
        if not self.buffer:
            try:
                self.buffer.append(next(self.tokens))
            except StopIteration:
                return None
        return self.buffer[0]

    def advance(self) -> Optional[Token]:
        if self.buffer:
            tok = self.buffer.pop(0)
        else:
            tok = next(self.tokens, None)
        if tok is not None:
            self.last = tok
        return tok

    def at_end(self) -> bool:
        return self.peek() is None

    def end_position(self) -> Optional[Position]:
        """Position just after the last consumed token, for EOF errors."""
        if self.last is None:
            return None
        p = self.last.position
        return Position(p.offset + len(self.last.text), p.line, p.column + len(self.last.text), p.source)

    def remainder(self) -> Iterator[Token]:
        """The unconsumed tokens, including any buffered lookahead."""
        return chain(self.buffer, self.tokens)

    # ------------------------
    # Data
    # ------------------------
    def parse_datum(self) -> Datum:
        tok = self.advance()
        if tok is None:
            raise UnexpectedEof("Expected a datum, found end of input", self.end_position())

        convert = _SIMPLE_DATA.get(tok.kind)
        if convert is not None:
            return convert(tok.value)

        if tok.kind is TokenKind.QUOTE:
            return [QUOTE, self.parse_datum()]

        if tok.kind is TokenKind.LPAREN:
            return self._parse_datum_list(tok)

        raise UnexpectedToken(f"Unexpected token `{tok.text}` while reading a datum", tok.position)

    def _parse_datum_list(self, open_tok: Token) -> Datum:
        items: list[Datum] = []
        while True:
            nxt = self.peek()
            if nxt is None:
                raise UnclosedList("Unclosed list: missing ')'", open_tok.position)
            if nxt.kind is TokenKind.RPAREN:
                self.advance()
                return items
            if nxt.kind is TokenKind.DOT:
                if not items:
                    raise UnexpectedToken("A dotted list needs at least one item before '.'", nxt.position)
                self.advance()
                if self.peek() is None:
                    raise UnclosedList("Unclosed list: missing ')'", open_tok.position)
                tail = self.parse_datum()
                close = self.peek()
                if close is None:
                    raise UnclosedList("Unclosed list: missing ')'", open_tok.position)
                if close.kind is not TokenKind.RPAREN:
                    raise UnexpectedToken("Expected ')' after dotted tail", close.position)
                self.advance()
                if isinstance(tail, list):
                    return items + tail
                if isinstance(tail, DottedList):
                    return DottedList(tuple(items) + tail.items, tail.tail)
                return DottedList(tuple(items), tail)
            items.append(self.parse_datum())


def read_datum(tokens: Iterable[Token]) -> tuple[Datum, Iterator[Token]]:
    """Parse one datum; return it with the unconsumed remainder of `tokens`."""
    stream = TokenStream(tokens)
    datum = stream.parse_datum()
    return datum, stream.remainder()
