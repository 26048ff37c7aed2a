"""Static site generation: render every content template to a file."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, List, Optional, Union

from .engine import Engine

logger = logging.getLogger(__name__)


class SiteWriter:
    """Writes rendered pages below an output directory.

    - Creates parent directories automatically
    - Uses UTF-8 encoding by default
    """

    def __init__(self, out_dir: Union[str, Path], *, suffix: str = ".html", encoding: str = "utf-8") -> None:
        self.out_dir = Path(out_dir)
        self.suffix = suffix
        self.encoding = encoding

    def path_for(self, name: str) -> Path:
        return self.out_dir / f"{name}{self.suffix}"

    def write(self, name: str, content: str) -> Path:
        target = self.path_for(name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding=self.encoding)
        return target


@dataclass
class BuildResult:
    written: List[Path] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)


def build_site(
    engine: Engine,
    out_dir: Union[str, Path],
    *,
    layout: str = "",
    data: Any = None,
    names: Optional[Iterable[str]] = None,
    exclude_prefix: str = "",
) -> BuildResult:
    """Render content templates to ``<out_dir>/<name>.html``.

    Args:
        engine: A loaded engine
        out_dir: Output directory
        layout: Layout to wrap every page in ("" uses the default layout)
        data: Render data shared by every page
        names: Templates to render (default: all content templates)
        exclude_prefix: Skip names starting with this prefix, e.g. "partials/"

    Returns:
        BuildResult with the written paths and skipped names
    """
    writer = SiteWriter(out_dir)
    result = BuildResult()
    for name in sorted(names) if names is not None else engine.names():
        if exclude_prefix and name.startswith(exclude_prefix):
            result.skipped.append(name)
            continue
        page = engine.render_to_string(name, layout, data)
        result.written.append(writer.write(name, page))
        logger.debug("Wrote %s", writer.path_for(name))

    logger.info("Built %d pages into %s", len(result.written), writer.out_dir)
    return result


__all__ = ["BuildResult", "SiteWriter", "build_site"]
