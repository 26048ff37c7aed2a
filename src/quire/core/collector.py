"""Concurrent template file collection.

Every regular file under a root is read on a thread pool. Workers race
freely; the first failure is kept and cancels the remaining work. The
call only returns after every submitted worker finished.
"""
from __future__ import annotations

import concurrent.futures
import logging
import threading
import time
from typing import Dict, Optional, Protocol

from .exceptions import CancellationRequestedError, CollectionError
from .sources import Source

logger = logging.getLogger(__name__)


class CancelSignal(Protocol):
    """Anything with ``is_set()``, e.g. ``threading.Event``."""

    def is_set(self) -> bool: ...


class _FirstError:
    """Holds the first error raised by any worker."""

    def __init__(self, cancel: threading.Event) -> None:
        self._lock = threading.Lock()
        self._cancel = cancel
        self.error: Optional[BaseException] = None

    def capture(self, error: BaseException) -> None:
        with self._lock:
            if self.error is None:
                self.error = error
        self._cancel.set()


def collect_files(
    source: Source,
    root: str = "",
    *,
    cancel: Optional[CancelSignal] = None,
    max_workers: Optional[int] = None,
) -> Dict[str, bytes]:
    """Read all files under ``root`` concurrently.

    Args:
        source: Template storage to read from
        root: Directory inside ``source`` to walk ("" for the whole source)
        cancel: External cancellation signal
        max_workers: Thread pool size (executor default when None)

    Returns:
        Mapping of source path to its contents with leading and trailing
        whitespace removed. Empty when the root holds no files.

    Raises:
        CollectionError: first worker failure, carrying the offending path
        CancellationRequestedError: ``cancel`` was set before completion
        SourceNotFoundError: ``root`` is not a directory of ``source``
    """
    started = time.perf_counter()
    internal = threading.Event()

    def cancelled() -> bool:
        return internal.is_set() or (cancel is not None and cancel.is_set())

    if cancelled():
        raise CancellationRequestedError()

    paths = source.list_paths(root)
    files: Dict[str, bytes] = {}
    mu = threading.Lock()
    first = _FirstError(internal)

    def read_one(path: str) -> None:
        if cancelled():
            return
        try:
            data = source.read(path)
        except Exception as exc:
            error = CollectionError(path, exc)
            error.__cause__ = exc
            first.capture(error)
            return

        if cancelled():
            return

        data = data.strip()
        with mu:
            files[path] = data

    with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
        for path in paths:
            # Stop issuing new reads once cancelled.
            if cancelled():
                break
            executor.submit(read_one, path)

    if first.error is not None:
        raise first.error
    if cancel is not None and cancel.is_set():
        raise CancellationRequestedError()

    logger.debug(
        "Collected %d template files under '%s' in %.3fs",
        len(files),
        root or ".",
        time.perf_counter() - started,
    )
    return files


__all__ = ["CancelSignal", "collect_files"]
