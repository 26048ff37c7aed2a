"""Source adapters: one "list names, read bytes" view over template storage.

Supported backing stores:
- ``DirectorySource``: a real directory on disk
- ``PackageSource``: a read-only resource tree shipped inside a Python package
- ``MemorySource``: templates registered programmatically
- ``AssetSource``: a caller-supplied (names, reader) function pair, e.g. for
  generated asset bundles

All paths are ``/``-separated and relative to the source itself.
"""
from __future__ import annotations

import os
import posixpath
import threading
from abc import ABC, abstractmethod
from importlib import resources
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Iterator, List, Tuple, Union

from .exceptions import SourceNotFoundError

ROOT_NAMES = ("", ".", "/")


def clean_path(path: str) -> str:
    """Normalize ``path`` to a relative, ``/``-separated form ("" for the root)."""
    raw = str(path or "").replace("\\", "/").strip()
    if raw in ROOT_NAMES:
        return ""
    cleaned = posixpath.normpath(raw).lstrip("/")
    if cleaned == ".":
        return ""
    return cleaned


def _escapes_root(path: str) -> bool:
    return path == ".." or path.startswith("../")


class Source(ABC):
    """Abstract read-only template storage."""

    @abstractmethod
    def list_paths(self, root: str = "") -> List[str]:
        """Return every regular file path under ``root``, sorted.

        Paths are relative to the source, not to ``root``.
        Raises ``SourceNotFoundError`` when ``root`` is not a directory.
        """

    @abstractmethod
    def read(self, path: str) -> bytes:
        """Return the raw bytes stored at ``path``."""

    @abstractmethod
    def is_dir(self, path: str) -> bool:
        """Report whether ``path`` names a directory."""


class DirectorySource(Source):
    """Templates stored in a directory on disk."""

    def __init__(self, directory: Union[str, os.PathLike]) -> None:
        self.directory = Path(directory)

    def __repr__(self) -> str:
        return f"DirectorySource({str(self.directory)!r})"

    def _resolve(self, path: str) -> Path:
        cleaned = clean_path(path)
        if _escapes_root(cleaned):
            raise SourceNotFoundError(path)
        return self.directory / cleaned if cleaned else self.directory

    def is_dir(self, path: str) -> bool:
        try:
            return self._resolve(path).is_dir()
        except SourceNotFoundError:
            return False

    def list_paths(self, root: str = "") -> List[str]:
        base = self._resolve(root)
        if not base.is_dir():
            raise SourceNotFoundError(clean_path(root) or str(self.directory))
        found = [
            p.relative_to(self.directory).as_posix()
            for p in base.rglob("*")
            if p.is_file()
        ]
        return sorted(found)

    def read(self, path: str) -> bytes:
        target = self._resolve(path)
        if not target.is_file():
            raise SourceNotFoundError(clean_path(path))
        return target.read_bytes()


class PackageSource(Source):
    """Templates bundled as resources of an installed Python package.

    ``anchor`` is a package name, a module, or an ``importlib.resources``
    traversable. ``subdir`` selects a directory inside it.
    """

    def __init__(self, anchor: Any, subdir: str = "") -> None:
        if isinstance(anchor, str) or hasattr(anchor, "__spec__"):
            base = resources.files(anchor)
        else:
            base = anchor
        for part in clean_path(subdir).split("/"):
            if part:
                base = base.joinpath(part)
        self._base = base

    def __repr__(self) -> str:
        return f"PackageSource({self._base!r})"

    def _resolve(self, path: str) -> Any:
        cleaned = clean_path(path)
        if _escapes_root(cleaned):
            raise SourceNotFoundError(path)
        node = self._base
        for part in cleaned.split("/"):
            if part:
                node = node.joinpath(part)
        return node

    def is_dir(self, path: str) -> bool:
        try:
            return self._resolve(path).is_dir()
        except SourceNotFoundError:
            return False

    def _walk(self, node: Any, prefix: str) -> Iterator[str]:
        for child in node.iterdir():
            name = f"{prefix}/{child.name}" if prefix else child.name
            if child.is_dir():
                yield from self._walk(child, name)
            elif child.is_file():
                yield name

    def list_paths(self, root: str = "") -> List[str]:
        node = self._resolve(root)
        if not node.is_dir():
            raise SourceNotFoundError(clean_path(root) or ".")
        return sorted(self._walk(node, clean_path(root)))

    def read(self, path: str) -> bytes:
        node = self._resolve(path)
        if not node.is_file():
            raise SourceNotFoundError(clean_path(path))
        return node.read_bytes()


class _PrefixTree(Source):
    """Directory answers inferred from a flat set of file names.

    There is no directory entity: ``x`` is a directory when any known
    name starts with ``x/``.
    """

    @abstractmethod
    def _names(self) -> Iterable[str]:
        """Every file name known to the tree."""

    def is_dir(self, path: str) -> bool:
        prefix = clean_path(path)
        if not prefix:
            return True
        prefix += "/"
        return any(name.startswith(prefix) for name in self._names())

    def list_paths(self, root: str = "") -> List[str]:
        prefix = clean_path(root)
        if not self.is_dir(prefix):
            raise SourceNotFoundError(prefix)
        if not prefix:
            return sorted(self._names())
        prefix += "/"
        return sorted(name for name in self._names() if name.startswith(prefix))

    def list_dir(self, path: str = "") -> List[Tuple[str, bool]]:
        """Return ``(entry name, is_dir)`` pairs one level below ``path``."""
        prefix = clean_path(path)
        if not self.is_dir(prefix):
            raise SourceNotFoundError(prefix)
        if prefix:
            prefix += "/"

        entries: Dict[str, bool] = {}
        for name in self._names():
            if not name.startswith(prefix):
                continue
            head, sep, _ = name[len(prefix):].partition("/")
            entries[head] = entries.get(head, False) or bool(sep)
        return sorted(entries.items())


class MemorySource(_PrefixTree):
    """Virtual template files held in memory.

    Usage:
        source = MemorySource()
        source.add("layouts/main.html", "<main>{{ yield }}</main>")
        source.add("index.html", "Hello, {{ Name }}!")
        engine = Engine(source)
    """

    def __init__(self, files: Dict[str, Union[str, bytes]] | None = None) -> None:
        self._files: Dict[str, bytes] = {}
        self._lock = threading.Lock()
        for name, contents in (files or {}).items():
            self.add(name, contents)

    def __repr__(self) -> str:
        return f"MemorySource({len(self._files)} files)"

    def __len__(self) -> int:
        return len(self._files)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and clean_path(name) in self._files

    def add(self, name: str, contents: Union[str, bytes]) -> "MemorySource":
        """Register (or replace) a template file."""
        cleaned = clean_path(name)
        if not cleaned or _escapes_root(cleaned):
            raise ValueError(f"invalid template file name: {name!r}")
        data = contents.encode("utf-8") if isinstance(contents, str) else bytes(contents)
        with self._lock:
            self._files[cleaned] = data
        return self

    def remove(self, name: str) -> None:
        with self._lock:
            self._files.pop(clean_path(name), None)

    def _names(self) -> List[str]:
        with self._lock:
            return list(self._files)

    def read(self, path: str) -> bytes:
        cleaned = clean_path(path)
        with self._lock:
            data = self._files.get(cleaned)
        if data is not None:
            return data
        if self.is_dir(cleaned):
            raise SourceNotFoundError(cleaned, f"{cleaned or '.'}: is a directory")
        raise SourceNotFoundError(cleaned)


class AssetSource(_PrefixTree):
    """Templates served by a pair of accessor functions.

    ``names`` enumerates every stored file name and ``reader`` returns the
    bytes for one of them. A reader failing with ``KeyError`` or
    ``FileNotFoundError`` reports a missing file.
    """

    def __init__(self, names: Callable[[], Iterable[str]], reader: Callable[[str], bytes]) -> None:
        self._list = names
        self._reader = reader

    def __repr__(self) -> str:
        return f"AssetSource({self._list!r}, {self._reader!r})"

    def _names(self) -> List[str]:
        return [clean_path(n) for n in self._list() if clean_path(n)]

    def read(self, path: str) -> bytes:
        cleaned = clean_path(path)
        try:
            data = self._reader(cleaned)
        except (KeyError, FileNotFoundError) as exc:
            raise SourceNotFoundError(cleaned) from exc
        if data is None:
            raise SourceNotFoundError(cleaned)
        return data.encode("utf-8") if isinstance(data, str) else bytes(data)


def get_source(obj: Any) -> Source:
    """Normalize a directory path, resource tree, accessor pair or Source."""
    if isinstance(obj, Source):
        return obj
    if isinstance(obj, (str, os.PathLike)):
        return DirectorySource(obj)
    if isinstance(obj, tuple) and len(obj) == 2 and all(callable(f) for f in obj):
        return AssetSource(obj[0], obj[1])
    if hasattr(obj, "iterdir") and hasattr(obj, "read_bytes") and hasattr(obj, "joinpath"):
        return PackageSource(obj)
    raise TypeError(
        f"quire: unexpected source argument type of {type(obj).__name__} "
        "(directory path, Source, resource traversable or (names, reader) pair)"
    )


__all__ = [
    "Source",
    "DirectorySource",
    "PackageSource",
    "MemorySource",
    "AssetSource",
    "get_source",
    "clean_path",
]
