from __future__ import annotations
import os
from pathlib import Path
from typing import Iterable, List


def _sep() -> str:
    return ';' if os.name == 'nt' else ':'


# Defaults
_DEFAULT_MAX_DEPTH = 10_000
_DEFAULT_LOG_LEVEL = 'WARNING'


def paths_from_env(var: str, defaults: Iterable[Path]) -> List[Path]:
    raw = os.environ.get(var)
    if not raw:
        return [Path(p) for p in defaults]
    sep = _sep()
    return [Path(p.strip()) for p in raw.split(sep) if p.strip()]


def get_include_roots() -> List[Path]:
    """Directories searched for `include` paths not found next to the includer."""
    return paths_from_env('REAM_INCLUDE_PATH', [])


def get_max_depth() -> int:
    raw = os.environ.get('REAM_MAX_DEPTH')
    if not raw:
        return _DEFAULT_MAX_DEPTH
    try:
        depth = int(raw)
    except ValueError:
        return _DEFAULT_MAX_DEPTH
    return depth if depth > 0 else _DEFAULT_MAX_DEPTH


def get_log_level() -> str:
    return os.environ.get('REAM_LOG_LEVEL', _DEFAULT_LOG_LEVEL).upper()
