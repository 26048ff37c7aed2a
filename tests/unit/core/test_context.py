from __future__ import annotations

from quire.core.context import get_engine, reset_engine, set_engine, use_engine
from quire.core.engine import Engine
from quire.core.sources import MemorySource


def test_no_engine_by_default() -> None:
    assert get_engine() is None


def test_set_and_reset_engine() -> None:
    engine = Engine(MemorySource())
    token = set_engine(engine)
    try:
        assert get_engine() is engine
    finally:
        reset_engine(token)

    assert get_engine() is None


def test_use_engine_scopes_the_slot() -> None:
    engine = Engine(MemorySource())

    with use_engine(engine) as active:
        assert active is engine
        assert get_engine() is engine

    assert get_engine() is None


def test_non_engine_values_read_as_none() -> None:
    token = set_engine("not an engine")  # type: ignore[arg-type]
    try:
        assert get_engine() is None
    finally:
        reset_engine(token)
