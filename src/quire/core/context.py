"""Request-scoped engine slot.

Web handlers and background tasks can publish the engine serving the
current request without passing it through every call:

    with use_engine(engine):
        handle_request()      # get_engine() returns ``engine`` here
"""
from __future__ import annotations

from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import TYPE_CHECKING, Any, Iterator, Optional

if TYPE_CHECKING:
    from .engine import Engine

_current_engine: ContextVar[Any] = ContextVar("quire_engine", default=None)


def set_engine(engine: "Engine") -> Token:
    """Bind ``engine`` to the current context; returns a reset token."""
    return _current_engine.set(engine)


def reset_engine(token: Token) -> None:
    _current_engine.reset(token)


def get_engine() -> Optional["Engine"]:
    """Return the engine bound to the current context, if any."""
    from .engine import Engine

    value = _current_engine.get()
    return value if isinstance(value, Engine) else None


@contextmanager
def use_engine(engine: "Engine") -> Iterator["Engine"]:
    token = set_engine(engine)
    try:
        yield engine
    finally:
        reset_engine(token)


__all__ = ["get_engine", "reset_engine", "set_engine", "use_engine"]
