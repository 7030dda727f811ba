"""
  Ream Expression Parser

Consumes tokens into the typed AST of ream.ast_nodes. A parenthesized form is
dispatched on its leading keyword; anything else in parentheses is a call
whose operator is itself an expression, so `((lambda (x) x) 5)` works.

Keywords are only special in head position:

    (type-alias Name typespec)        (define-type Name typespec)
    (:type name typespec)             (:doc name "text")
    (let name expr)                   (fn name formals body...)
    (lambda formals body...)          (seq expr...)  /  (begin expr...)
    (if test consequent [alternate])  (match expr (pattern body...)...)
    (include "path" ...)              (quote datum)  /  `datum
"""

from __future__ import annotations

from typing import Callable, Iterable, Optional

from ream import ast_nodes as ast
from ream.errors import InvalidForm, MalformedTypespec, UnclosedList, UnexpectedEof, UnexpectedToken
from ream.reader.datum import TokenStream
from ream.reader.lexer import Token, TokenKind, lex
from ream.typecheck.typespec import (
    Bottom,
    Function,
    ListOf,
    Member,
    Named,
    Product,
    Sum,
    Tuple,
    Typespec,
)
from ream.types.symbol import Atom, Char

KEYWORDS = frozenset(
    {"type-alias", "define-type", "let", "fn", "lambda", "seq", "begin", "if", "match", "include", "quote"}
)
ANNOTATIONS = frozenset({":type", ":doc"})
TYPE_CONSTRUCTORS = frozenset({"Bottom", "Tuple", "List", "Function", "Sum", "Product"})
VARIADIC_MARKER = "&"

_LITERALS: dict[TokenKind, Callable] = {
    TokenKind.BOOLEAN: lambda v: v,
    TokenKind.INTEGER: lambda v: v,
    TokenKind.FLOAT: lambda v: v,
    TokenKind.STRING: lambda v: v,
    TokenKind.CHARACTER: Char,
    TokenKind.ATOM: Atom,
}


class Parser:
    """Recursive-descent parser over a TokenStream."""

    def __init__(self, tokens: Iterable[Token], source_name: Optional[str] = None):
        self.stream = TokenStream(tokens)
        self.source_name = source_name
        self._forms: dict[str, Callable[[Token], ast.Expression]] = {
            "type-alias": self._parse_type_alias,
            "define-type": self._parse_define_type,
            "let": self._parse_let,
            "fn": self._parse_fn,
            "lambda": self._parse_lambda,
            "seq": self._parse_seq,
            "begin": self._parse_seq,
            "if": self._parse_if,
            "match": self._parse_match,
            "include": self._parse_include,
            "quote": self._parse_quote,
        }

    # ------------------------
    # Token helpers
    # ------------------------
    def _next_in(self, open_tok: Token) -> Token:
        """Consume the next token of the form opened by `open_tok`."""
        tok = self.stream.advance()
        if tok is None:
            raise UnclosedList("Unclosed list: missing ')'", open_tok.position)
        return tok

    def _peek_in(self, open_tok: Token) -> Token:
        tok = self.stream.peek()
        if tok is None:
            raise UnclosedList("Unclosed list: missing ')'", open_tok.position)
        return tok

    def _at_close(self, open_tok: Token) -> bool:
        return self._peek_in(open_tok).kind is TokenKind.RPAREN

    def _close(self, open_tok: Token, form: str, usage: str) -> None:
        tok = self._next_in(open_tok)
        if tok.kind is not TokenKind.RPAREN:
            raise InvalidForm(f"Too many arguments to `{form}`, expected {usage}", tok.position)

    def _expect_name(self, open_tok: Token, form: str) -> str:
        tok = self._next_in(open_tok)
        if tok.kind is TokenKind.RPAREN:
            raise InvalidForm(f"`{form}` is missing a name", tok.position)
        if tok.kind is not TokenKind.IDENTIFIER:
            raise InvalidForm(f"`{form}` expects an identifier, found `{tok.text}`", tok.position)
        if tok.value in KEYWORDS:
            raise InvalidForm(f"Keyword `{tok.value}` cannot be used as a name", tok.position)
        return tok.value

    def _expect_operand(self, open_tok: Token, form: str) -> ast.Expression:
        if self._at_close(open_tok):
            raise InvalidForm(f"`{form}` is missing an expression", self.stream.peek().position)
        return self.parse_expression()

    def _parse_body(self, open_tok: Token, form: str) -> list[ast.Expression]:
        body: list[ast.Expression] = []
        while not self._at_close(open_tok):
            body.append(self.parse_expression())
        self.stream.advance()
        if not body:
            raise InvalidForm(f"`{form}` requires at least one body expression", open_tok.position)
        return body

    # ------------------------
    # Programs and expressions
    # ------------------------
    def parse_program(self) -> ast.Program:
        exprs: list[ast.Expression] = []
        while not self.stream.at_end():
            exprs.append(self.parse_expression())
        return ast.Program(exprs, source=self.source_name)

    def parse_expression(self) -> ast.Expression:
        tok = self.stream.advance()
        if tok is None:
            raise UnexpectedEof("Expected an expression, found end of input", self.stream.end_position())

        if tok.kind is TokenKind.IDENTIFIER:
            return ast.Identifier(tok.value, tok.position)

        convert = _LITERALS.get(tok.kind)
        if convert is not None:
            return ast.Literal(convert(tok.value), tok.position)

        if tok.kind is TokenKind.QUOTE:
            return ast.Quotation(self.stream.parse_datum(), tok.position)

        if tok.kind is TokenKind.LPAREN:
            return self._parse_parenthesized(tok)

        raise UnexpectedToken(f"Unexpected token `{tok.text}`", tok.position)

    def _parse_parenthesized(self, open_tok: Token) -> ast.Expression:
        head = self._peek_in(open_tok)

        if head.kind is TokenKind.ATOM and head.value in ANNOTATIONS:
            self.stream.advance()
            if head.value == ":type":
                return self._parse_type_annotation(open_tok)
            return self._parse_doc_annotation(open_tok)

        if head.kind is TokenKind.IDENTIFIER and head.value in self._forms:
            self.stream.advance()
            return self._forms[head.value](open_tok)

        if head.kind is TokenKind.RPAREN:
            raise InvalidForm("Empty application `()`", open_tok.position)

        operator = self.parse_expression()
        operands: list[ast.Expression] = []
        while not self._at_close(open_tok):
            operands.append(self.parse_expression())
        self.stream.advance()
        return ast.Call(operator, operands, open_tok.position)

    # ------------------------
    # Declarations
    # ------------------------
    def _parse_type_alias(self, open_tok: Token) -> ast.Expression:
        name = self._expect_name(open_tok, "type-alias")
        spec = self.parse_typespec(open_tok)
        self._close(open_tok, "type-alias", "(type-alias Name typespec)")
        return ast.TypeAlias(name, spec, open_tok.position)

    def _parse_define_type(self, open_tok: Token) -> ast.Expression:
        name = self._expect_name(open_tok, "define-type")
        spec_tok = self._peek_in(open_tok)
        spec = self.parse_typespec(open_tok)
        if not isinstance(spec, (Sum, Product)):
            raise MalformedTypespec(f"`define-type {name}` requires a Sum or Product typespec", spec_tok.position)
        self._close(open_tok, "define-type", "(define-type Name typespec)")
        return ast.AlgebraicTypeDef(name, spec, open_tok.position)

    def _parse_type_annotation(self, open_tok: Token) -> ast.Expression:
        name = self._expect_name(open_tok, ":type")
        spec = self.parse_typespec(open_tok)
        self._close(open_tok, ":type", "(:type name typespec)")
        return ast.TypeAnnotation(name, spec, open_tok.position)

    def _parse_doc_annotation(self, open_tok: Token) -> ast.Expression:
        name = self._expect_name(open_tok, ":doc")
        tok = self._next_in(open_tok)
        if tok.kind is not TokenKind.STRING:
            raise InvalidForm(f"`:doc` expects a string, found `{tok.text}`", tok.position)
        self._close(open_tok, ":doc", '(:doc name "text")')
        return ast.DocAnnotation(name, tok.value, open_tok.position)

    # ------------------------
    # Bindings and closures
    # ------------------------
    def _parse_let(self, open_tok: Token) -> ast.Expression:
        name = self._expect_name(open_tok, "let")
        value = self._expect_operand(open_tok, "let")
        self._close(open_tok, "let", "(let name expr)")
        return ast.VariableDef(name, value, open_tok.position)

    def _parse_formals(self, open_tok: Token, form: str) -> ast.Formals:
        tok = self._next_in(open_tok)
        if tok.kind is TokenKind.IDENTIFIER and tok.value not in KEYWORDS:
            return ast.Formals([tok.value], variadic=True)
        if tok.kind is not TokenKind.LPAREN:
            raise InvalidForm(
                f"Invalid `{form}` formals: found `{tok.text}`, expected an identifier or '('", tok.position
            )
        names: list[str] = []
        while True:
            item = self._next_in(tok)
            if item.kind is TokenKind.RPAREN:
                return ast.Formals(names)
            if item.kind is not TokenKind.IDENTIFIER or item.value in KEYWORDS:
                raise InvalidForm(f"Invalid `{form}` parameter `{item.text}`", item.position)
            if item.value in names:
                raise InvalidForm(f"Duplicate parameter `{item.value}`", item.position)
            names.append(item.value)

    def _parse_fn(self, open_tok: Token) -> ast.Expression:
        name = self._expect_name(open_tok, "fn")
        params = self._parse_formals(open_tok, "fn")
        body = self._parse_body(open_tok, "fn")
        return ast.FunctionDef(name, params, body, open_tok.position)

    def _parse_lambda(self, open_tok: Token) -> ast.Expression:
        params = self._parse_formals(open_tok, "lambda")
        body = self._parse_body(open_tok, "lambda")
        return ast.ClosureDef(params, body, open_tok.position)

    # ------------------------
    # Control
    # ------------------------
    def _parse_seq(self, open_tok: Token) -> ast.Expression:
        return ast.Sequence(self._parse_body(open_tok, "seq"), open_tok.position)

    def _parse_if(self, open_tok: Token) -> ast.Expression:
        test = self._expect_operand(open_tok, "if")
        consequent = self._expect_operand(open_tok, "if")
        alternate = None
        if not self._at_close(open_tok):
            alternate = self.parse_expression()
        self._close(open_tok, "if", "(if test consequent [alternate])")
        return ast.Conditional(test, consequent, alternate, open_tok.position)

    def _parse_pattern(self, clause_tok: Token) -> ast.Pattern:
        tok = self._next_in(clause_tok)
        if tok.kind is TokenKind.ATOM:
            return ast.TagPattern(Atom(tok.value), [], tok.position)
        if tok.kind is TokenKind.IDENTIFIER and tok.value not in KEYWORDS:
            return ast.BindPattern(None if tok.value == "_" else tok.value, tok.position)
        if tok.kind is TokenKind.LPAREN:
            tag_tok = self._next_in(tok)
            if tag_tok.kind is not TokenKind.ATOM:
                raise InvalidForm(f"A match pattern must start with a tag, found `{tag_tok.text}`", tag_tok.position)
            binders: list[str] = []
            while True:
                item = self._next_in(tok)
                if item.kind is TokenKind.RPAREN:
                    return ast.TagPattern(Atom(tag_tok.value), binders, tok.position)
                if item.kind is not TokenKind.IDENTIFIER or item.value in KEYWORDS:
                    raise InvalidForm(f"Invalid pattern binder `{item.text}`", item.position)
                binders.append(item.value)
        raise InvalidForm(f"Invalid match pattern `{tok.text}`", tok.position)

    def _parse_match(self, open_tok: Token) -> ast.Expression:
        scrutinee = self._expect_operand(open_tok, "match")
        clauses: list[ast.MatchClause] = []
        while not self._at_close(open_tok):
            clause_tok = self._next_in(open_tok)
            if clause_tok.kind is not TokenKind.LPAREN:
                raise InvalidForm(f"A match clause must be parenthesized, found `{clause_tok.text}`", clause_tok.position)
            pattern = self._parse_pattern(clause_tok)
            body = self._parse_body(clause_tok, "match clause")
            clauses.append(ast.MatchClause(pattern, body))
        self.stream.advance()
        if not clauses:
            raise InvalidForm("`match` requires at least one clause", open_tok.position)
        return ast.Match(scrutinee, clauses, open_tok.position)

    def _parse_include(self, open_tok: Token) -> ast.Expression:
        paths: list[str] = []
        while not self._at_close(open_tok):
            tok = self._next_in(open_tok)
            if tok.kind is not TokenKind.STRING:
                raise InvalidForm(f"`include` expects path strings, found `{tok.text}`", tok.position)
            paths.append(tok.value)
        self.stream.advance()
        if not paths:
            raise InvalidForm("`include` requires at least one path", open_tok.position)
        return ast.Inclusion(paths, open_tok.position)

    def _parse_quote(self, open_tok: Token) -> ast.Expression:
        if self._at_close(open_tok):
            raise InvalidForm("`quote` requires a datum", open_tok.position)
        datum = self.stream.parse_datum()
        self._close(open_tok, "quote", "(quote datum)")
        return ast.Quotation(datum, open_tok.position)

    # ------------------------
    # Typespecs
    # ------------------------
    def parse_typespec(self, open_tok: Optional[Token] = None) -> Typespec:
        tok = self.stream.advance()
        if tok is None:
            if open_tok is not None:
                raise UnclosedList("Unclosed list: missing ')'", open_tok.position)
            raise UnexpectedEof("Expected a typespec, found end of input", self.stream.end_position())

        if tok.kind is TokenKind.IDENTIFIER:
            if tok.value == "Bottom":
                return Bottom()
            if tok.value in TYPE_CONSTRUCTORS:
                raise MalformedTypespec(f"`{tok.value}` must be written as `({tok.value} ...)`", tok.position)
            return Named(tok.value)

        if tok.kind is not TokenKind.LPAREN:
            raise MalformedTypespec(f"Malformed typespec: unexpected `{tok.text}`", tok.position)

        head = self._next_in(tok)
        if head.kind is not TokenKind.IDENTIFIER:
            raise MalformedTypespec(f"Malformed typespec: expected a type constructor, found `{head.text}`", head.position)

        if head.value in ("Sum", "Product"):
            members = self._parse_members(tok, head)
            return Sum(members) if head.value == "Sum" else Product(members)

        args: list[Typespec] = []
        variadic = False
        while not self._at_close(tok):
            nxt = self.stream.peek()
            if head.value == "Function" and nxt.kind is TokenKind.IDENTIFIER and nxt.value == VARIADIC_MARKER:
                if args or variadic:
                    raise MalformedTypespec("`&` must come first in a Function typespec", nxt.position)
                self.stream.advance()
                variadic = True
                continue
            args.append(self.parse_typespec(tok))
        self.stream.advance()

        match head.value:
            case "Tuple":
                return Tuple(tuple(args))
            case "List":
                if len(args) != 1:
                    raise MalformedTypespec("`List` takes exactly one element type", head.position)
                return ListOf(args[0])
            case "Function":
                if not args:
                    raise MalformedTypespec("`Function` requires a result type", head.position)
                if variadic and len(args) != 2:
                    raise MalformedTypespec("A variadic `Function` takes one element type and a result", head.position)
                return Function(tuple(args[:-1]), args[-1], variadic)
            case "Bottom":
                raise MalformedTypespec("`Bottom` takes no arguments", head.position)
            case _:
                if not args:
                    raise MalformedTypespec(f"Type application `({head.value})` needs arguments", head.position)
                return Named(head.value, tuple(args))

    def _parse_members(self, open_tok: Token, head: Token) -> tuple[Member, ...]:
        members: list[Member] = []
        seen: set[Atom] = set()
        while not self._at_close(open_tok):
            tok = self._next_in(open_tok)
            if tok.kind is TokenKind.ATOM:
                member = Member(Atom(tok.value))
            elif tok.kind is TokenKind.LPAREN:
                tag_tok = self._next_in(tok)
                if tag_tok.kind is not TokenKind.ATOM:
                    raise MalformedTypespec(f"Expected a tag, found `{tag_tok.text}`", tag_tok.position)
                payload = self.parse_typespec(tok)
                close = self._next_in(tok)
                if close.kind is not TokenKind.RPAREN:
                    raise MalformedTypespec(f"Member `{tag_tok.value}` takes a single payload typespec", close.position)
                member = Member(Atom(tag_tok.value), payload)
            else:
                raise MalformedTypespec(f"Expected a tag or (tag typespec), found `{tok.text}`", tok.position)
            if member.tag in seen:
                raise MalformedTypespec(f"Duplicate tag `{member.tag}` in {head.value}", tok.position)
            seen.add(member.tag)
            members.append(member)
        self.stream.advance()
        if len(members) < 2:
            raise MalformedTypespec(f"`{head.value}` requires at least two members", head.position)
        return tuple(members)


def parse_program(tokens: Iterable[Token], source_name: Optional[str] = None) -> ast.Program:
    return Parser(tokens, source_name).parse_program()


def parse(source: str, source_name: Optional[str] = None) -> ast.Program:
    """Lex and parse a whole source text."""
    return parse_program(lex(source, source_name), source_name)


def parse_typespec(source: str) -> Typespec:
    """Parse a standalone typespec, e.g. "(Function (List A) A)"."""
    parser = Parser(lex(source))
    spec = parser.parse_typespec()
    extra = parser.stream.peek()
    if extra is not None:
        raise UnexpectedToken(f"Unexpected token `{extra.text}` after typespec", extra.position)
    return spec
