import io

import pytest

from ream import __version__
from ream.cli import format_diagnostic, main
from ream.errors import Position, TypeMismatch, UnboundIdentifier
from ream.typecheck.typespec import INTEGER, STRING


@pytest.fixture
def program(tmp_path):
    def write(text, name="main.ream"):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)

    return write


def test_runs_file_and_echoes_values(program, capsys):
    path = program('(let x 5)\n(+ x 1)\n(print "hi")\n(fn f (y) y)\n"done"')
    assert main([path]) == 0
    assert capsys.readouterr().out == '6\nhi\n"done"\n'


def test_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO("(* 6 7)"))
    assert main([]) == 0
    assert capsys.readouterr().out == "42\n"


def test_check_only_does_not_evaluate(program, capsys):
    path = program('(print "side effect")')
    assert main([path, "--check"]) == 0
    assert capsys.readouterr().out == ""


def test_types_flag(program, capsys):
    path = program("(fn id (x) x)\n(id 1)")
    assert main([path, "--types", "--check"]) == 0
    assert capsys.readouterr().out == "(Function A A)\nInteger\n"


def test_tokens_flag(program, capsys):
    path = program("(+ 1 1)")
    assert main([path, "--tokens", "--check"]) == 0
    out = capsys.readouterr().out.splitlines()
    assert out[0] == "1:1\tlparen\t("
    assert out[2] == "1:4\tinteger\t1"


def test_tree_flag(program, capsys):
    path = program("(let x 1)")
    assert main([path, "--tree", "--check"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Program")
    assert "VariableDef" in out


def test_type_error_exit_status_and_diagnostic(program, capsys):
    path = program('(let a 1)\n(+ a "s")')
    assert main([path]) == 1
    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.strip() == f"{path}:2:6: TypeMismatch: Type mismatch: Integer vs String"


@pytest.mark.parametrize(
    "source,kind",
    [
        ('"open', "UnterminatedString"),
        ("(let x", "UnclosedList"),
        ("(car nil)", "EmptyList"),
        ("(/ 1 0)", "DivisionByZero"),
        ('(include "missing.ream")', "IncludeNotFound"),
    ],
)
def test_errors_of_every_stage(program, capsys, source, kind):
    path = program(source)
    assert main([path]) == 1
    assert f": {kind}: " in capsys.readouterr().err


def test_missing_file(tmp_path, capsys):
    assert main([str(tmp_path / "absent.ream")]) == 1
    assert "cannot read" in capsys.readouterr().err


def test_version(capsys):
    with pytest.raises(SystemExit) as info:
        main(["--version"])
    assert info.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_format_diagnostic():
    exc = UnboundIdentifier("y", Position(10, 3, 7, "lib.ream"))
    assert format_diagnostic(exc, "main.ream") == "lib.ream:3:7: UnboundIdentifier: Unbound identifier `y`"
    assert format_diagnostic(TypeMismatch(INTEGER, STRING), "main.ream") == (
        "main.ream: TypeMismatch: Type mismatch: Integer vs String"
    )
