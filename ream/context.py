"""Per-program-unit state shared by the checker and the evaluator."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from ream import builtins
from ream.config import get_max_depth
from ream.typecheck.registry import TypeRegistry
from ream.typecheck.unify import TypeVarSupply
from ream.types import Environment


@dataclass
class Context:
    """Type registries, the two global environments and the call-depth budget.

    `registry` is filled by the checker and `runtime_registry` by the
    evaluator, each in program order. A fresh Context holds only the
    built-ins; it is dropped when its program unit finishes, so nothing leaks
    between units.
    """

    registry: TypeRegistry = field(default_factory=TypeRegistry)
    runtime_registry: TypeRegistry = field(default_factory=TypeRegistry)
    type_env: Environment = field(default_factory=Environment)
    value_env: Environment = field(default_factory=Environment)
    fresh: TypeVarSupply = field(default_factory=TypeVarSupply)
    max_depth: int = field(default_factory=get_max_depth)
    depth: int = 0

    @classmethod
    def create(cls, max_depth: Optional[int] = None) -> Context:
        context = cls() if max_depth is None else cls(max_depth=max_depth)
        builtins.register(context)
        return context

    def checker_state(self) -> tuple:
        """Snapshot of what checking a program may change."""
        return self.registry.snapshot(), self.type_env.snapshot()

    def restore_checker_state(self, state: tuple) -> None:
        registry, type_env = state
        self.registry.restore(registry)
        self.type_env.restore(type_env)
