"""Reusable scratch buffers for string rendering."""
from __future__ import annotations

import io
import threading
from contextlib import contextmanager
from typing import Iterator, List


class BufferPool:
    """A small pool of ``io.StringIO`` objects.

    Usage:
        with pool.acquire() as buf:
            template.stream(ctx).dump(buf)
            text = buf.getvalue()
    """

    def __init__(self, max_size: int = 32) -> None:
        self.max_size = max_size
        self._free: List[io.StringIO] = []
        self._lock = threading.Lock()

    @contextmanager
    def acquire(self) -> Iterator[io.StringIO]:
        with self._lock:
            buf = self._free.pop() if self._free else io.StringIO()
        try:
            yield buf
        finally:
            buf.seek(0)
            buf.truncate()
            with self._lock:
                if len(self._free) < self.max_size:
                    self._free.append(buf)

    def __len__(self) -> int:
        with self._lock:
            return len(self._free)


default_pool = BufferPool()

__all__ = ["BufferPool", "default_pool"]
