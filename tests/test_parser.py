import pytest

from ream import ast_nodes as ast
from ream.errors import InvalidForm, MalformedTypespec, UnclosedList, UnexpectedEof, UnexpectedToken
from ream.reader import parse, parse_typespec
from ream.typecheck.typespec import (
    Bottom,
    Function,
    ListOf,
    Member,
    Named,
    Product,
    Sum,
    Tuple,
)
from ream.types import Atom, Char, Symbol


def _one(source):
    (expr,) = parse(source).exprs
    return expr


def test_program_is_a_sequence_of_expressions():
    program = parse("(let x 1) x 2", "main.ream")
    assert program.source == "main.ream"
    assert program.exprs == [
        ast.VariableDef("x", ast.Literal(1)),
        ast.Identifier("x"),
        ast.Literal(2),
    ]


@pytest.mark.parametrize(
    "source,expected",
    [
        ("42", ast.Literal(42)),
        ("'c'", ast.Literal(Char("c"))),
        ('"s"', ast.Literal("s")),
        ("#f", ast.Literal(False)),
        (":Red", ast.Literal(Atom(":Red"))),
        ("`(a 1)", ast.Quotation([Symbol("a"), 1])),
        ("(quote (a 1))", ast.Quotation([Symbol("a"), 1])),
        ("(let x 5)", ast.VariableDef("x", ast.Literal(5))),
        (
            "(fn id (x) x)",
            ast.FunctionDef("id", ast.Formals(["x"]), [ast.Identifier("x")]),
        ),
        (
            "(lambda args args)",
            ast.ClosureDef(ast.Formals(["args"], variadic=True), [ast.Identifier("args")]),
        ),
        ("(seq 1 2)", ast.Sequence([ast.Literal(1), ast.Literal(2)])),
        ("(begin 1)", ast.Sequence([ast.Literal(1)])),
        (
            "(if #t 1)",
            ast.Conditional(ast.Literal(True), ast.Literal(1), None),
        ),
        (
            "(if #t 1 2)",
            ast.Conditional(ast.Literal(True), ast.Literal(1), ast.Literal(2)),
        ),
        ('(include "a.ream" "b.ream")', ast.Inclusion(["a.ream", "b.ream"])),
        ("(:doc f \"adds\")", ast.DocAnnotation("f", "adds")),
        (
            "(:type f (Function Integer Integer))",
            ast.TypeAnnotation("f", Function((Named("Integer"),), Named("Integer"))),
        ),
        ("(type-alias Pair (Tuple A B))", ast.TypeAlias("Pair", Tuple((Named("A"), Named("B"))))),
    ],
)
def test_forms(source, expected):
    assert _one(source) == expected


def test_higher_order_call():
    expr = _one("((lambda (x) x) 5)")
    assert isinstance(expr, ast.Call)
    assert isinstance(expr.operator, ast.ClosureDef)
    assert expr.operands == [ast.Literal(5)]


def test_keywords_only_special_in_head_position():
    expr = _one("(f let)")
    assert expr == ast.Call(ast.Identifier("f"), [ast.Identifier("let")])


def test_define_type():
    expr = _one("(define-type Option (Sum :None (:Some A)))")
    assert expr == ast.AlgebraicTypeDef(
        "Option", Sum((Member(Atom(":None")), Member(Atom(":Some"), Named("A"))))
    )


def test_match_patterns():
    expr = _one("(match v (:None 0) ((:Some x) x) ((:Pair a _) a) (other 1) (_ 2))")
    patterns = [c.pattern for c in expr.clauses]
    assert patterns == [
        ast.TagPattern(Atom(":None"), []),
        ast.TagPattern(Atom(":Some"), ["x"]),
        ast.TagPattern(Atom(":Pair"), ["a", "_"]),
        ast.BindPattern("other"),
        ast.BindPattern(None),
    ]
    assert expr.clauses[1].body == [ast.Identifier("x")]


def test_positions_on_nodes():
    expr = _one("\n  (let x 1)")
    assert (expr.position.line, expr.position.column) == (2, 3)


@pytest.mark.parametrize(
    "source",
    [
        "()",
        "(let x)",
        "(let x 1 2)",
        "(let 5 1)",
        "(let if 1)",
        "(fn f (x))",
        "(fn f (x x) x)",
        "(fn f (1) 1)",
        "(lambda)",
        "(seq)",
        "(if #t)",
        "(if #t 1 2 3)",
        "(include)",
        "(include foo)",
        "(:doc f 5)",
        "(match x)",
        "(match x (5 1))",
        "(quote a b)",
        "(define-type T Integer)",
    ],
)
def test_invalid_forms(source):
    with pytest.raises((InvalidForm, MalformedTypespec)):
        parse(source)


@pytest.mark.parametrize(
    "source,error",
    [
        ("(let x 1", UnclosedList),
        ("(f (g 1)", UnclosedList),
        (")", UnexpectedToken),
        (". x", UnexpectedToken),
        ("`", UnexpectedEof),
    ],
)
def test_structural_errors(source, error):
    with pytest.raises(error):
        parse(source)


# -------------------------------
# Typespecs
# -------------------------------
@pytest.mark.parametrize(
    "source,expected",
    [
        ("Integer", Named("Integer")),
        ("A", Named("A")),
        ("Bottom", Bottom()),
        ("(Tuple)", Tuple(())),
        ("(Tuple Integer String)", Tuple((Named("Integer"), Named("String")))),
        ("(List A)", ListOf(Named("A"))),
        ("(Function A)", Function((), Named("A"))),
        ("(Function (List A) A)", Function((ListOf(Named("A")),), Named("A"))),
        ("(Function & A (List A))", Function((Named("A"),), ListOf(Named("A")), True)),
        (
            "(Product (:x Float) (:y Float))",
            Product((Member(Atom(":x"), Named("Float")), Member(Atom(":y"), Named("Float")))),
        ),
        ("(Option Integer)", Named("Option", (Named("Integer"),))),
    ],
)
def test_parse_typespec(source, expected):
    assert parse_typespec(source) == expected


@pytest.mark.parametrize(
    "source",
    [
        "(Sum :A :A)",
        "(Sum :A)",
        "(Product (:x Integer))",
        "(List)",
        "(List A B)",
        "(Function)",
        "(Function A & B)",
        "(Function & A B C)",
        "(Sum A B)",
        "(Sum (:A Integer String) :B)",
        "Tuple",
        "(Bottom A)",
        "(Option)",
        "5",
        "(5 A)",
    ],
)
def test_malformed_typespecs(source):
    with pytest.raises(MalformedTypespec):
        parse_typespec(source)


def test_typespec_rejects_trailing_tokens():
    with pytest.raises(UnexpectedToken):
        parse_typespec("Integer Float")
