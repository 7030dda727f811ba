import sys

import pytest

from ream.context import Context
from ream.errors import (
    DivisionByZero,
    EmptyList,
    MatchFailure,
    ReamInclusionError,
    RuntimeArityMismatch,
    RuntimeTypeMismatch,
    RuntimeUnboundIdentifier,
    StackOverflow,
    TypeMismatch,
    UnboundIdentifier,
)
from ream.evaluation import run_program
from ream.interpreter import Interpreter
from ream.printer import render_value
from ream.reader import parse
from ream.types import UNIT, Atom, Char, Closure, DottedList, ProductValue, SumValue, Symbol

OPTION = "(define-type Option (Sum :None (:Some A)))\n"


def _run_unchecked(source, context=None):
    """Evaluate without type checking, the way a standalone evaluator would."""
    context = context or Context.create()
    return run_program(parse(source), context)[-1]


# -----------------------------------------------------
# Self-evaluating values and bindings
# -----------------------------------------------------
@pytest.mark.parametrize(
    "source,expected",
    [
        ("42", 42),
        ("3.5", 3.5),
        ("#t", True),
        ('"hi"', "hi"),
        ("'c'", Char("c")),
        (":Plain", Atom(":Plain")),
        ("`x", Symbol("x")),
        ("`(1 2 3)", [1, 2, 3]),
        ("`(1 . 2)", DottedList((1,), 2)),
        ("`(1 . (2 3))", [1, 2, 3]),
        ("(quote (a b))", [Symbol("a"), Symbol("b")]),
        ("nil", []),
        ("(let x 5)", 5),
        ("(let x 5) (+ x 1)", 6),
        ("(let x 1) (let x 2) x", 2),
    ],
)
def test_values(interpreter, source, expected):
    assert interpreter.eval(source) == expected


def test_empty_program_is_unit(interpreter):
    assert interpreter.eval("") == UNIT
    assert interpreter.eval("; only a comment") == UNIT


def test_definitions_persist_across_eval_calls(interpreter):
    interpreter.eval("(fn double (x) (* x 2))")
    assert interpreter.eval("(double 21)") == 42


def test_failed_check_leaves_no_bindings_behind(interpreter):
    with pytest.raises(TypeMismatch):
        interpreter.eval('(let x 1) (let y (+ x "a"))')
    # `x` was never evaluated, so it must not type check either
    with pytest.raises(UnboundIdentifier):
        interpreter.eval("x")
    assert interpreter.eval("(let x 2) x") == 2


def test_failed_check_leaves_no_types_behind(interpreter):
    with pytest.raises(TypeMismatch):
        interpreter.eval("(define-type T (Sum :Foo :Bar)) (+ 1 :Foo)")
    assert interpreter.eval(":Foo") == Atom(":Foo")


def test_atoms_resolve_in_program_order(interpreter):
    assert interpreter.eval("(let v :Foo) (define-type T (Sum :Foo :Bar)) v") == Atom(":Foo")
    assert interpreter.eval(":Foo") == SumValue("T", Atom(":Foo"))


# -----------------------------------------------------
# Arithmetic and built-ins
# -----------------------------------------------------
@pytest.mark.parametrize(
    "source,expected",
    [
        ("(+ 1 2)", 3),
        ("(- 1 5)", -4),
        ("(* 6 7)", 42),
        ("(/ 7 2)", 3),
        ("(/ -7 2)", -3),
        ("(mod -7 2)", -1),
        ("(+. 1.5 2.0)", 3.5),
        ("(/. 1.0 4.0)", 0.25),
        ("(float 3)", 3.0),
        ("(truncate -2.7)", -2),
        ("(= 1 1)", True),
        ("(/= \"a\" \"b\")", True),
        ("(< 1 2)", True),
        ("(>= 'a' 'b')", False),
        ("(not #f)", True),
        ("(and #t #f)", False),
        ("(or #f #t)", True),
        ("(cons 1 (list 2 3))", [1, 2, 3]),
        ("(car (list 1 2))", 1),
        ("(cdr (list 1 2))", [2]),
        ("(null? nil)", True),
        ("(null? (list 1))", False),
        ("(length (list 1 2 3))", 3),
        ("(append (list 1) (list 2))", [1, 2]),
        ("(pair 1 \"s\")", (1, "s")),
        ("(fst (pair 1 2))", 1),
        ("(snd (pair 1 2))", 2),
        ('(string-append "ab" "cd")', "abcd"),
        ('(string-length "abc")', 3),
    ],
)
def test_builtins(interpreter, source, expected):
    assert interpreter.eval(source) == expected


@pytest.mark.parametrize(
    "source,expected",
    [
        ("(< #f #t)", True),
        ("(> #f #t)", False),
        ("(< (list 1 2) (list 1 3))", True),
        ("(> (list 1 2) (list 1))", True),
        ("(< nil (list 0))", True),
        ('(<= (pair 1 "b") (pair 1 "a"))', False),
        ("(< `apple `banana)", True),
        ("(>= :b :a)", True),
        (OPTION + "(< (:Some 1) (:Some 2))", True),
        (OPTION + "(< :None (:Some 0))", True),
        ("(define-type P (Product (:x Integer) (:y Integer))) (< (P 1 5) (P 2 0))", True),
    ],
)
def test_ordering_is_structural(interpreter, source, expected):
    assert interpreter.eval(source) == expected


def test_print_writes_bare_rendering(interpreter, capsys):
    assert interpreter.eval('(print "hello")') == UNIT
    interpreter.eval("(print (list 1 2))")
    assert capsys.readouterr().out == "hello\n(1 2)\n"


# -----------------------------------------------------
# Closures
# -----------------------------------------------------
def test_fib(interpreter):
    interpreter.eval(
        """
        (fn fib (n)
          (if (< n 2)
              n
              (+ (fib (- n 1)) (fib (- n 2)))))
        """
    )
    assert interpreter.eval("(fib 10)") == 55


def test_let_lambda_is_recursive(interpreter):
    source = "(let fact (lambda (n) (if (= n 0) 1 (* n (fact (- n 1)))))) (fact 5)"
    assert interpreter.eval(source) == 120


def test_closures_capture_their_environment(interpreter):
    source = """
    (fn make-adder (n) (lambda (x) (+ x n)))
    (let add5 (make-adder 5))
    (let n 100)
    (add5 1)
    """
    assert interpreter.eval(source) == 6


def test_higher_order_call(interpreter):
    assert interpreter.eval("((lambda (x) x) 5)") == 5
    assert interpreter.eval("(fn twice (f x) (f (f x))) (twice (lambda (n) (* n 3)) 2)") == 18


def test_variadic_closure_receives_argument_list(interpreter):
    assert interpreter.eval("((lambda xs xs) 1 2 3)") == [1, 2, 3]
    assert interpreter.eval("(fn count xs (length xs)) (count)") == 0


def test_body_is_sequenced(interpreter, capsys):
    assert interpreter.eval('(fn f (x) (print "side") (+ x 1)) (f 1)') == 2
    assert capsys.readouterr().out == "side\n"


def test_fn_value_is_a_closure(interpreter):
    closure = interpreter.eval("(fn id (x) x)")
    assert isinstance(closure, Closure)
    assert str(closure) == "<fn id (x)>"


# -----------------------------------------------------
# Scoping
# -----------------------------------------------------
def test_seq_scoping(interpreter, capsys):
    source = """
    (let x 1)
    (seq
      (let x 3)
      (print x))
    (print x)
    """
    interpreter.eval(source)
    assert capsys.readouterr().out == "3\n1\n"


def test_let_inside_body_does_not_leak(interpreter):
    with pytest.raises(UnboundIdentifier):
        interpreter.eval("(fn f () (let hidden 1) hidden) (f) hidden")


# -----------------------------------------------------
# Conditionals
# -----------------------------------------------------
def test_if(interpreter):
    assert interpreter.eval("(if (< 1 2) 10 20)") == 10
    assert interpreter.eval("(if (> 1 2) 10 20)") == 20
    assert interpreter.eval("(if #f 10)") == UNIT


def test_if_only_evaluates_taken_branch(interpreter, capsys):
    interpreter.eval('(if #t (print "yes") (print "no"))')
    assert capsys.readouterr().out == "yes\n"


# -----------------------------------------------------
# Algebraic types
# -----------------------------------------------------
def test_option_round_trip(interpreter):
    source = OPTION + """
    (fn unwrap-or (opt default)
      (match opt
        (:None default)
        ((:Some x) x)))
    """
    interpreter.eval(source)
    assert interpreter.eval("(unwrap-or (:Some 5) 0)") == 5
    assert interpreter.eval("(unwrap-or :None 7)") == 7
    some = interpreter.eval("(:Some 5)")
    assert some == SumValue("Option", Atom(":Some"), 5, True)
    assert render_value(some) == "(:Some 5)"
    assert render_value(interpreter.eval(":None")) == ":None"


def test_tuple_payloads(interpreter):
    source = """
    (define-type Shape (Sum (:Circle Float) (:Rect (Tuple Float Float))))
    (fn area (s)
      (match s
        ((:Circle r) (*. 3.0 (*. r r)))
        ((:Rect w h) (*. w h))))
    """
    interpreter.eval(source)
    assert interpreter.eval("(area (:Rect 2.0 3.0))") == 6.0
    assert interpreter.eval("(area (:Circle 1.0))") == 3.0
    assert render_value(interpreter.eval("(:Rect 2.0 3.0)")) == "(:Rect 2.0 3.0)"


def test_recursive_sum_type(interpreter):
    source = """
    (define-type IntList (Sum :Nil (:Cons (Tuple Integer IntList))))
    (fn total (xs)
      (match xs
        (:Nil 0)
        ((:Cons head tail) (+ head (total tail)))))
    (total (:Cons 1 (:Cons 2 (:Cons 3 :Nil))))
    """
    assert interpreter.eval(source) == 6


def test_match_catch_all_binds_value(interpreter):
    source = """
    (define-type Color (Sum :Red :Green :Blue))
    (fn name (c) (match c (:Red "red") (other "not red")))
    (pair (name :Red) (name :Blue))
    """
    assert interpreter.eval(source) == ("red", "not red")


def test_products(interpreter):
    interpreter.eval("(define-type Point (Product (:x Float) (:y Float)))")
    point = interpreter.eval("(Point 1.0 2.0)")
    assert isinstance(point, ProductValue)
    assert render_value(point) == "(Point :x 1.0 :y 2.0)"
    assert interpreter.eval("(:y (Point 1.0 2.0))") == 2.0


def test_quoted_nullary_tags_are_values(interpreter):
    assert interpreter.eval(OPTION + "`(:None)") == [SumValue("Option", Atom(":None"))]


# -----------------------------------------------------
# Runtime errors (type checking disabled)
# -----------------------------------------------------
@pytest.mark.parametrize(
    "source,error",
    [
        ("(+ 1 #t)", RuntimeTypeMismatch),
        ("(+ 1 2.0)", RuntimeTypeMismatch),
        ("(if 1 2 3)", RuntimeTypeMismatch),
        ("(5 1)", RuntimeTypeMismatch),
        ('(< 1 "a")', RuntimeTypeMismatch),
        ("(< car cdr)", RuntimeTypeMismatch),
        ('(< (list 1) (list "a"))', RuntimeTypeMismatch),
        ("undefined", RuntimeUnboundIdentifier),
        ("((lambda (x) x))", RuntimeArityMismatch),
        ("(car (list 1) (list 2))", RuntimeArityMismatch),
        ("(/ 1 0)", DivisionByZero),
        ("(mod 1 0)", DivisionByZero),
        ("(/. 1.0 0.0)", DivisionByZero),
        ("(car nil)", EmptyList),
        ("(cdr nil)", EmptyList),
        (OPTION + "(match :None ((:Some x) x))", MatchFailure),
        ("(define-type P (Product (:x Integer) (:y Integer))) (:x 5)", RuntimeTypeMismatch),
        ('(include "x.ream")', ReamInclusionError),
    ],
)
def test_runtime_errors(source, error):
    with pytest.raises(error) as info:
        _run_unchecked(source)
    assert info.value.position is not None


def test_checked_programs_never_run(capsys):
    interpreter = Interpreter()
    with pytest.raises(TypeMismatch):
        interpreter.eval('(print "before") (car 5)')
    assert capsys.readouterr().out == ""


def test_unchecked_interpreter_reports_runtime_errors():
    interpreter = Interpreter(check=False)
    with pytest.raises(RuntimeTypeMismatch):
        interpreter.eval("(car 5)")


# -----------------------------------------------------
# Stack depth
# -----------------------------------------------------
def test_stack_overflow_on_runaway_recursion():
    interpreter = Interpreter(context=Context.create(max_depth=50))
    interpreter.eval("(fn loop (n) (+ 1 (loop n)))")
    with pytest.raises(StackOverflow):
        interpreter.eval("(loop 0)")


def test_depth_limit_allows_bounded_recursion():
    interpreter = Interpreter(context=Context.create(max_depth=100))
    interpreter.eval("(fn down (n) (if (= n 0) 0 (down (- n 1))))")
    assert interpreter.eval("(down 60)") == 0


def test_max_depth_from_environment(monkeypatch):
    monkeypatch.setenv("REAM_MAX_DEPTH", "25")
    context = Context.create()
    assert context.max_depth == 25
    with pytest.raises(StackOverflow):
        _run_unchecked("(fn loop (n) (loop n)) (loop 0)", context)


def test_default_depth_allows_deep_recursion(monkeypatch):
    monkeypatch.delenv("REAM_MAX_DEPTH", raising=False)
    interpreter = Interpreter()
    interpreter.eval("(fn down (n) (if (= n 0) 0 (+ 1 (down (- n 1)))))")
    interpreter.eval("(fn build (n) (if (= n 0) nil (cons n (build (- n 1)))))")
    assert interpreter.eval("(down 5000)") == 5000
    assert interpreter.eval("(length (build 2000))") == 2000


def test_host_recursion_limit_is_restored():
    limit = sys.getrecursionlimit()
    _run_unchecked("(fn down (n) (if (= n 0) 0 (down (- n 1)))) (down 10)")
    assert sys.getrecursionlimit() == limit
