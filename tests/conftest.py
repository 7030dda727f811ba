import pytest

from ream.context import Context
from ream.interpreter import Interpreter
from ream.typecheck.checker import TypeChecker

# Every test gets its own Context, so definitions never leak between tests.


@pytest.fixture
def interpreter():
    return Interpreter()


@pytest.fixture
def context():
    return Context.create()


@pytest.fixture
def checker(context):
    return TypeChecker(context)


@pytest.fixture
def infer(interpreter):
    """Type check a source text; return the rendered type of its last form."""
    from ream.printer import render_type

    def run(source: str) -> str:
        types = interpreter.check_program(interpreter.parse(source))
        return render_type(types[-1])

    return run
