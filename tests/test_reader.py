import pytest

from ream.errors import UnclosedList, UnexpectedEof, UnexpectedToken
from ream.reader import TokenStream, lex, read_datum
from ream.types import Atom, Char, DottedList, Symbol


def _read(source):
    datum, _ = read_datum(lex(source))
    return datum


@pytest.mark.parametrize(
    "source,expected",
    [
        ("123", 123),
        ("-4.5", -4.5),
        ("#t", True),
        ('"hello"', "hello"),
        ("'x'", Char("x")),
        ("foo", Symbol("foo")),
        (":None", Atom(":None")),
        ("()", []),
        ("(a b c)", [Symbol("a"), Symbol("b"), Symbol("c")]),
        ("((1 2) (3))", [[1, 2], [3]]),
        ("(a . b)", DottedList((Symbol("a"),), Symbol("b"))),
        ("(1 2 . 3)", DottedList((1, 2), 3)),
        ("(1 . (2 3))", [1, 2, 3]),
        ("(1 . (2 . 3))", DottedList((1, 2), 3)),
        ("`a", [Symbol("quote"), Symbol("a")]),
    ],
)
def test_read_datum(source, expected):
    assert _read(source) == expected


def test_read_datum_returns_remainder():
    datum, rest = read_datum(lex("(a b) c 42"))
    assert datum == [Symbol("a"), Symbol("b")]
    assert [t.value for t in rest] == ["c", 42]


def test_token_stream_reads_incrementally():
    stream = TokenStream(lex("1 (2) x"))
    assert stream.parse_datum() == 1
    assert stream.parse_datum() == [2]
    assert stream.parse_datum() == Symbol("x")
    assert stream.at_end()


@pytest.mark.parametrize(
    "source,error",
    [
        (")", UnexpectedToken),
        ("(a b", UnclosedList),
        ("((a)", UnclosedList),
        ("(. a)", UnexpectedToken),
        ("(a . b c)", UnexpectedToken),
        ("(a .", UnclosedList),
        ("", UnexpectedEof),
        ("`", UnexpectedEof),
    ],
)
def test_read_errors(source, error):
    with pytest.raises(error):
        _read(source)


def test_unclosed_list_reports_open_paren():
    with pytest.raises(UnclosedList) as info:
        _read("\n  (a (b c)")
    assert (info.value.position.line, info.value.position.column) == (2, 3)
