"""Closure representation and argument binding for Ream."""

from __future__ import annotations

from io import StringIO
from typing import Optional

from ream import ReamValue
from ream.errors import RuntimeArityMismatch, Position
from ream.types.environment import Environment


class Closure:
    """A first-class function: formal parameters, body, and captured env.

    `variadic` closures have exactly one formal which receives the whole
    argument list. `name` is set for closures created by `fn` (or a `let` of a
    `lambda`) and is bound inside `env` so the body can call itself.
    """

    __slots__ = ("params", "variadic", "body", "env", "name")

    def __init__(
        self,
        params: list[str],
        body: list,
        env: Environment,
        variadic: bool = False,
        name: Optional[str] = None,
    ):
        self.params: list[str] = params
        self.variadic: bool = variadic
        self.body: list = body
        self.env: Environment = env
        self.name: Optional[str] = name

    def __str__(self) -> str:
        with StringIO() as buffer:
            buffer.write("<fn ")
            if self.name:
                buffer.write(self.name)
                buffer.write(" ")
            if self.variadic:
                buffer.write(self.params[0])
            else:
                buffer.write("(")
                buffer.write(" ".join(self.params))
                buffer.write(")")
            buffer.write(">")
            return buffer.getvalue()

    def __repr__(self) -> str:
        return str(self)

    # --- Evaluation helpers ---
    def extend_env(
        self, args: list[ReamValue], position: Optional[Position] = None
    ) -> Environment:
        """
        Bind the given argument values to this closure's formal parameters and
        return a new Environment, whose parent is the captured one, for
        evaluating the body.
        """
        call_env = Environment(outer=self.env)
        if self.variadic:
            call_env.define(self.params[0], list(args))
            return call_env
        if len(args) != len(self.params):
            raise RuntimeArityMismatch(
                f"`{self.name or 'lambda'}` takes {len(self.params)} arguments, got {len(args)}",
                position,
            )
        for formal, arg in zip(self.params, args):
            call_env.define(formal, arg)
        return call_env
