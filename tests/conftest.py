import os
import sys
from pathlib import Path
from typing import Callable, Dict, Iterator

import pytest

# Keep the repository free of Python bytecode and __pycache__ artifacts during tests.
sys.dont_write_bytecode = True

TESTS_ROOT = Path(__file__).resolve().parent
REPO_ROOT = TESTS_ROOT.parent
SRC_ROOT = REPO_ROOT / "src"

# Make src/ importable as 'quire'
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))


from quire.core.engine import Engine
from quire.core.functions import global_registry
from quire.core.logging import reset_logging_for_tests
from quire.core.sources import MemorySource
from quire.data import clear_caches


@pytest.fixture(autouse=True)
def _isolate_quire_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Drop QUIRE_* variables from the real environment and reset global state."""
    for key in list(os.environ):
        if key.startswith("QUIRE_"):
            monkeypatch.delenv(key, raising=False)
    saved = global_registry.snapshot()
    yield
    global_registry.clear()
    global_registry.update(saved)
    reset_logging_for_tests()
    clear_caches()


@pytest.fixture
def site_files() -> Dict[str, str]:
    """A small site: one layout, two pages and a partial."""
    return {
        "layouts/main.html": "<html><body>{{ yield . }}</body></html>",
        "index.html": "<h1>Hello, {{ Name }}</h1>",
        "about.html": "<p>About {{ Name }}</p>",
        "partials/footer.html": "<footer>{{ Name }}</footer>",
    }


@pytest.fixture
def memory_source(site_files: Dict[str, str]) -> MemorySource:
    return MemorySource(site_files)


@pytest.fixture
def make_engine() -> Callable[..., Engine]:
    """Factory for engines over in-memory files."""

    def _make(files: Dict[str, str], **overrides) -> Engine:
        return Engine(MemorySource(files), **overrides)

    return _make


@pytest.fixture
def views_dir(tmp_path: Path, site_files: Dict[str, str]) -> Path:
    """The same site written to disk under ``tmp_path/views``."""
    root = tmp_path / "views"
    for name, content in site_files.items():
        target = root / name
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content + "\n", encoding="utf-8")
    return root
