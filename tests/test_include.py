import pytest

from ream import ast_nodes as ast
from ream.errors import IncludeIOError, IncludeNotFound, InclusionCycle, InvalidForm, TypeMismatch
from ream.interpreter import Interpreter
from ream.modules.include_loader import IncludeResolver, resolve_include
from ream.reader import parse


def _write(path, text):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def test_top_level_include_is_spliced(tmp_path):
    _write(tmp_path / "lib.ream", "(fn square (x) (* x x))")
    main = _write(tmp_path / "main.ream", '(include "lib.ream")\n(square 7)')
    assert Interpreter().run_file(main)[-1] == 49


def test_include_several_paths_in_order(tmp_path):
    _write(tmp_path / "a.ream", "(let a 1)")
    _write(tmp_path / "b.ream", "(let b (+ a 1))")
    main = _write(tmp_path / "main.ream", '(include "a.ream" "b.ream")\n(+ a b)')
    assert Interpreter().run_file(main)[-1] == 3


def test_include_inside_a_body(tmp_path):
    _write(tmp_path / "helpers.ream", "(let offset 10)")
    main = _write(tmp_path / "main.ream", '(fn shift (x) (include "helpers.ream") (+ x offset))\n(shift 1)')
    assert Interpreter().run_file(main)[-1] == 11


def test_nested_includes_resolve_relative_to_includer(tmp_path):
    _write(tmp_path / "lib" / "inner.ream", "(let inner 5)")
    _write(tmp_path / "lib" / "outer.ream", '(include "inner.ream")\n(let outer (* inner 2))')
    main = _write(tmp_path / "main.ream", '(include "lib/outer.ream")\nouter')
    assert Interpreter().run_file(main)[-1] == 10


def test_included_forms_keep_their_source(tmp_path):
    lib = _write(tmp_path / "lib.ream", "(let x 1)")
    main = _write(tmp_path / "main.ream", '(include "lib.ream")')
    program = Interpreter().parse(main.read_text(), str(main), origin=main)
    (expr,) = program.exprs
    assert isinstance(expr, ast.VariableDef)
    assert expr.position.source == str(lib)


def test_search_roots(tmp_path):
    root = tmp_path / "stdlib"
    _write(root / "prelude.ream", "(fn inc (n) (+ n 1))")
    main = _write(tmp_path / "app" / "main.ream", '(include "prelude.ream")\n(inc 1)')
    interpreter = Interpreter(resolver=IncludeResolver(roots=[root]))
    assert interpreter.run_file(main)[-1] == 2


def test_search_roots_from_environment(tmp_path, monkeypatch):
    root = tmp_path / "stdlib"
    _write(root / "prelude.ream", "(let answer 42)")
    monkeypatch.setenv("REAM_INCLUDE_PATH", str(root))
    main = _write(tmp_path / "main.ream", '(include "prelude.ream")\nanswer')
    assert Interpreter().run_file(main)[-1] == 42


def test_resolve_include_prefers_includer_directory(tmp_path):
    local = _write(tmp_path / "here" / "x.ream", "")
    _write(tmp_path / "root" / "x.ream", "")
    assert resolve_include("x.ream", tmp_path / "here", [tmp_path / "root"]) == local
    assert resolve_include("missing.ream", tmp_path / "here", [tmp_path / "root"]) is None


def test_include_not_found(tmp_path):
    main = _write(tmp_path / "main.ream", '\n(include "nope.ream")')
    with pytest.raises(IncludeNotFound) as info:
        Interpreter().run_file(main)
    assert info.value.position.line == 2


def test_inclusion_cycle(tmp_path):
    _write(tmp_path / "a.ream", '(include "b.ream")')
    _write(tmp_path / "b.ream", '(include "a.ream")')
    with pytest.raises(InclusionCycle) as info:
        Interpreter().run_file(tmp_path / "a.ream")
    assert "a.ream -> b.ream -> a.ream" in info.value.message


def test_self_inclusion_is_a_cycle(tmp_path):
    main = _write(tmp_path / "main.ream", '(include "main.ream")')
    with pytest.raises(InclusionCycle):
        Interpreter().run_file(main)


def test_diamond_includes_are_not_cycles(tmp_path):
    _write(tmp_path / "base.ream", "(let base 1)")
    _write(tmp_path / "left.ream", '(include "base.ream")')
    _write(tmp_path / "right.ream", '(include "base.ream")')
    main = _write(tmp_path / "main.ream", '(include "left.ream" "right.ream")\nbase')
    assert Interpreter().run_file(main)[-1] == 1


def test_include_in_expression_position_is_invalid(tmp_path):
    _write(tmp_path / "lib.ream", "1")
    main = _write(tmp_path / "main.ream", '(+ 1 (include "lib.ream"))')
    with pytest.raises(InvalidForm):
        Interpreter().run_file(main)


def test_reader_errors_are_reported(tmp_path):
    def failing_reader(path):
        raise IncludeIOError(f"Cannot read '{path}': permission denied")

    _write(tmp_path / "lib.ream", "1")
    resolver = IncludeResolver(reader=failing_reader, roots=[])
    program = parse('(include "lib.ream")')
    with pytest.raises(IncludeIOError) as info:
        resolver.resolve_program(program, tmp_path / "main.ream")
    assert info.value.position is not None


def test_included_code_is_type_checked(tmp_path):
    _write(tmp_path / "bad.ream", '(+ 1 "two")')
    main = _write(tmp_path / "main.ream", '(include "bad.ream")')
    with pytest.raises(TypeMismatch) as info:
        Interpreter().run_file(main)
    assert info.value.position.source == str(tmp_path / "bad.ream")
