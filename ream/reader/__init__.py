from ream.reader.lexer import Lexer, Token, TokenKind, lex, render_token
from ream.reader.datum import TokenStream, read_datum
from ream.reader.parser import Parser, parse, parse_program, parse_typespec

__all__ = [
    "Lexer",
    "Token",
    "TokenKind",
    "lex",
    "render_token",
    "TokenStream",
    "read_datum",
    "Parser",
    "parse",
    "parse_program",
    "parse_typespec",
]
