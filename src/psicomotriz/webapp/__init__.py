"""Psicomotriz web service package.

Importing the package is cheap; the FastAPI application and its SQLite engine
are created on first attribute access (``psicomotriz.webapp.app``).
"""
from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import Any, List, Optional

_IMPL_MODULE: Optional[ModuleType] = None
_SUBMODULES = {"application", "config", "persistence"}

__all__: List[str] = ["app"]


def _load_impl() -> ModuleType:
    global _IMPL_MODULE
    if _IMPL_MODULE is None:
        _IMPL_MODULE = import_module(".application", __name__)
    return _IMPL_MODULE


def __getattr__(name: str) -> Any:
    if name.startswith("__") or name in _SUBMODULES:
        raise AttributeError(name)
    module = _load_impl()
    try:
        return getattr(module, name)
    except AttributeError:
        persistence = import_module(".persistence", __name__)
        if hasattr(persistence, name):
            return getattr(persistence, name)
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}") from None


def __dir__() -> List[str]:
    return sorted(set(globals()) | set(dir(_load_impl())))
