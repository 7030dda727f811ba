"""Lexical environments for Ream.

The same Environment class backs both the value environment (identifier ->
runtime value) and the type environment (identifier -> type scheme). Nested
scopes link to their parent through `outer`; `define` always binds in the
current frame, so inner definitions shadow outer ones without mutating them.
Frames also hold per-name metadata such as `:type` and `:doc` annotations.
"""

from __future__ import annotations

from io import StringIO
from typing import Any, Iterator, Optional


class Environment:
    """Hierarchical mapping from identifier names to bindings."""

    __slots__ = ("vars", "outer", "metadata")

    def __init__(self, outer: Optional[Environment] = None):
        self.vars: dict[str, Any] = {}
        self.outer: Environment | None = outer
        self.metadata: dict[str, dict[str, Any]] = {}

    def define(self, name: str, value: Any) -> None:
        """Bind `name` to `value` in this frame."""
        self.vars[name] = value

    def find(self, name: str) -> Optional[Environment]:
        """Find the nearest environment in the chain that binds `name`."""
        env: Optional[Environment] = self
        while env is not None:
            if name in env.vars:
                return env
            env = env.outer
        return None

    def lookup(self, name: str) -> Any:
        """Look up the binding for `name`, raising KeyError if unbound.

        Callers translate the KeyError into the error kind of their stage
        (type checking or evaluation).
        """
        env = self.find(name)
        if env is None:
            raise KeyError(name)
        return env.vars[name]

    def __contains__(self, name: str) -> bool:
        return self.find(name) is not None

    def extend(self) -> Environment:
        """Return a new child frame of this environment."""
        return Environment(outer=self)

    # --- Metadata (annotations) ---
    def annotate(self, name: str, key: str, value: Any) -> None:
        """Attach metadata such as a `:type` or `:doc` to `name` in this frame."""
        self.metadata.setdefault(name, {})[key] = value

    def annotation(self, name: str, key: str) -> Any:
        """Metadata attached to `name` in this frame only, or None."""
        return self.metadata.get(name, {}).get(key)

    def snapshot(self) -> tuple[dict, dict]:
        """Copy of this frame's bindings and metadata, for `restore`."""
        return dict(self.vars), {name: dict(meta) for name, meta in self.metadata.items()}

    def restore(self, snapshot: tuple[dict, dict]) -> None:
        """Put this frame back to the state captured by `snapshot`."""
        bindings, metadata = snapshot
        self.vars = dict(bindings)
        self.metadata = {name: dict(meta) for name, meta in metadata.items()}

    def frames(self) -> Iterator[Environment]:
        """This frame, then each enclosing frame out to the global one."""
        env: Optional[Environment] = self
        while env is not None:
            yield env
            env = env.outer

    def __repr__(self) -> str:
        # Names only: values may be closures whose env is this chain
        with StringIO() as buffer:
            buffer.write("<Environment")
            for depth, env in enumerate(self.frames()):
                names = ", ".join(sorted(env.vars))
                buffer.write(f" [{depth}: {names}]")
            buffer.write(">")
            return buffer.getvalue()
