from __future__ import annotations

from pathlib import Path

import pytest

from quire.core.exceptions import SourceNotFoundError
from quire.core.sources import (
    AssetSource,
    DirectorySource,
    MemorySource,
    PackageSource,
    _PrefixTree,
    clean_path,
    get_source,
)


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("", ""),
        (".", ""),
        ("/", ""),
        ("/layouts/main.html", "layouts/main.html"),
        ("a/./b/../c.html", "a/c.html"),
        ("a\\b.html", "a/b.html"),
    ],
)
def test_clean_path(raw: str, expected: str) -> None:
    assert clean_path(raw) == expected


def test_directory_source_lists_files_relative_to_source(tmp_path: Path) -> None:
    (tmp_path / "views" / "layouts").mkdir(parents=True)
    (tmp_path / "views" / "index.html").write_text("hi", encoding="utf-8")
    (tmp_path / "views" / "layouts" / "main.html").write_text("{{ yield }}", encoding="utf-8")
    (tmp_path / "views" / "empty").mkdir()

    source = DirectorySource(tmp_path)

    assert source.list_paths("views") == ["views/index.html", "views/layouts/main.html"]
    assert source.read("views/index.html") == b"hi"
    assert source.is_dir("views/layouts") is True
    assert source.is_dir("views/index.html") is False


def test_directory_source_missing_root_and_file(tmp_path: Path) -> None:
    source = DirectorySource(tmp_path)

    with pytest.raises(SourceNotFoundError):
        source.list_paths("nope")
    with pytest.raises(FileNotFoundError):
        source.read("nope.html")


def test_directory_source_rejects_paths_outside_root(tmp_path: Path) -> None:
    (tmp_path / "secret.txt").write_text("x", encoding="utf-8")
    source = DirectorySource(tmp_path / "views")

    with pytest.raises(SourceNotFoundError):
        source.read("../secret.txt")
    assert source.is_dir("..") is False


def test_memory_source_infers_directories_from_prefixes() -> None:
    source = MemorySource()
    source.add("layouts/main.html", "<main>{{ yield }}</main>")
    source.add("pages/docs/intro.html", "intro")
    source.add("index.html", b"home")

    assert source.is_dir("") is True
    assert source.is_dir(".") is True
    assert source.is_dir("/") is True
    assert source.is_dir("pages") is True
    assert source.is_dir("pages/docs") is True
    assert source.is_dir("pag") is False
    assert source.is_dir("index.html") is False

    assert source.list_dir("") == [("index.html", False), ("layouts", True), ("pages", True)]
    assert source.list_dir("pages") == [("docs", True)]
    assert source.list_paths("pages") == ["pages/docs/intro.html"]
    assert len(source) == 3
    assert "index.html" in source


def test_memory_source_read_errors() -> None:
    source = MemorySource({"layouts/main.html": "x"})

    assert source.read("/layouts/main.html") == b"x"
    with pytest.raises(SourceNotFoundError, match="is a directory"):
        source.read("layouts")
    with pytest.raises(SourceNotFoundError, match="does not exist"):
        source.read("missing.html")
    with pytest.raises(SourceNotFoundError):
        source.list_paths("missing")


def test_memory_source_add_rejects_invalid_names() -> None:
    source = MemorySource()
    with pytest.raises(ValueError):
        source.add("", "x")
    with pytest.raises(ValueError):
        source.add("../escape.html", "x")


def test_memory_source_remove() -> None:
    source = MemorySource({"a.html": "a", "b.html": "b"})
    source.remove("a.html")
    assert source.list_paths() == ["b.html"]


def test_asset_source_wraps_reader_errors() -> None:
    assets = {"index.html": b"home", "layouts/main.html": b"{{ yield }}"}
    source = AssetSource(lambda: list(assets), lambda name: assets[name])

    assert source.list_paths() == ["index.html", "layouts/main.html"]
    assert source.is_dir("layouts") is True
    assert source.read("index.html") == b"home"
    with pytest.raises(SourceNotFoundError):
        source.read("missing.html")


def test_package_source_reads_bundled_resources() -> None:
    source = PackageSource("quire.data", "config")

    assert "defaults.yaml" in source.list_paths()
    assert source.read("defaults.yaml").startswith(b"#")


def test_get_source_normalizes_arguments(tmp_path: Path) -> None:
    memory = MemorySource()
    assert get_source(memory) is memory
    assert isinstance(get_source(str(tmp_path)), DirectorySource)
    assert isinstance(get_source(tmp_path), DirectorySource)
    assert isinstance(get_source((lambda: [], lambda name: b"")), AssetSource)

    with pytest.raises(TypeError):
        get_source(42)


def test_prefix_tree_requires_names() -> None:
    class Unnamed(_PrefixTree):
        def read(self, path: str) -> bytes:
            return b""

    with pytest.raises(TypeError):
        Unnamed()  # type: ignore[abstract]
