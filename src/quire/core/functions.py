"""Template function registry.

Functions are exposed to templates as globals and called with Jinja2 call
syntax, e.g. ``{{ year() }}`` or ``{{ add(1, 2) }}``.

Three tiers are merged, later tiers winning on name collisions:

1. global    - process-wide, registered with ``register``/``register_function``
               before engines are created; each engine snapshots it
2. engine    - ``Engine.funcs()`` / ``Engine.add_func()``
3. layout    - ``Engine.layout_funcs()``, layout combinations only

The ``partial`` builtin sits below all three tiers.
"""
from __future__ import annotations

import threading
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Mapping, Optional, Tuple

from jinja2 import pass_context
from jinja2.runtime import Context
from markupsafe import Markup

from .exceptions import CyclicInclusionError

if TYPE_CHECKING:
    from .engine import Engine

FunctionType = Callable[..., Any]
FuncMap = Dict[str, FunctionType]


class FunctionRegistry:
    """Registry for template functions.

    Functions can be registered using the @register decorator:

        registry = FunctionRegistry()

        @registry.register("greet")
        def greet(name: str) -> str:
            return f"Hello, {name}!"
    """

    def __init__(self) -> None:
        self._functions: FuncMap = {}
        self._lock = threading.Lock()

    def register(self, name: str) -> Callable[[FunctionType], FunctionType]:
        """Decorator to register a function under ``name``."""
        def decorator(func: FunctionType) -> FunctionType:
            self.add(name, func)
            return func
        return decorator

    def add(self, name: str, func: FunctionType) -> None:
        if not callable(func):
            raise TypeError(f"template function '{name}' is not callable")
        with self._lock:
            self._functions[name] = func

    def update(self, funcs: Mapping[str, FunctionType]) -> None:
        for name, func in funcs.items():
            self.add(name, func)

    def get(self, name: str) -> Optional[FunctionType]:
        with self._lock:
            return self._functions.get(name)

    def __contains__(self, name: str) -> bool:
        with self._lock:
            return name in self._functions

    def list_functions(self) -> List[str]:
        with self._lock:
            return list(self._functions.keys())

    def snapshot(self) -> FuncMap:
        """Copy of the current functions; later registrations are not seen."""
        with self._lock:
            return dict(self._functions)

    def clear(self) -> None:
        with self._lock:
            self._functions.clear()


# Process-wide tier inherited by every engine created afterwards.
global_registry = FunctionRegistry()


def register(funcs: Mapping[str, FunctionType]) -> None:
    """Register ``funcs`` for every engine created from now on."""
    global_registry.update(funcs)


def register_function(name: str) -> Callable[[FunctionType], FunctionType]:
    """Register a function in the global registry.

    Usage:
        @register_function("year")
        def year() -> int:
            return datetime.now().year
    """
    return global_registry.register(name)


def merge_funcs(*tiers: Optional[Mapping[str, FunctionType]]) -> FuncMap:
    """Merge function tiers left to right; later tiers win."""
    merged: FuncMap = {}
    for tier in tiers:
        if tier:
            merged.update(tier)
    return merged


# Names of partials currently rendering in this thread/task.
_in_flight: ContextVar[Tuple[str, ...]] = ContextVar("quire_partials_in_flight", default=())


@contextmanager
def inclusion_guard(name: str, max_depth: int = 0) -> Iterator[None]:
    """Track ``name`` as in flight; fail on cycles or excessive depth."""
    stack = _in_flight.get()
    if name in stack:
        raise CyclicInclusionError([*stack, name])
    if max_depth and len(stack) >= max_depth:
        chain = [*stack, name]
        raise CyclicInclusionError(chain, f"Partial depth exceeded (>{max_depth}): " + " -> ".join(chain))
    token = _in_flight.set(stack + (name,))
    try:
        yield
    finally:
        _in_flight.reset(token)


_CURRENT = object()


def builtins(engine: "Engine") -> FuncMap:
    """Builtin functions bound to ``engine``."""

    @pass_context
    def partial(context: Context, name: str, data: Any = _CURRENT) -> Markup:
        """Render the standalone content template ``name``.

        Without ``data`` the partial sees the caller's variables.
        """
        if data is _CURRENT:
            data = context.get_all()
        return engine.partial(name, data)

    return {"partial": partial}


__all__ = [
    "FuncMap",
    "FunctionRegistry",
    "FunctionType",
    "builtins",
    "global_registry",
    "inclusion_guard",
    "merge_funcs",
    "register",
    "register_function",
]
