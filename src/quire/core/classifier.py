"""Content/layout classification and directive normalization.

Each collected file goes through:

1. EXTENSION   - run the registered extension handler (e.g. markdown), or
                 skip files that do not carry the primary extension
2. COMMENTS    - strip ``<!-- ... -->`` so directives inside comments are
                 never mistaken for real ones
3. NAME        - strip the root directory and the extension
4. CLASSIFY    - a file rendering the "content" block (``self.content()``
                 or ``yield``) is a layout, anything else is content
5. LAYOUT      - rewrite ``{{ yield }}`` into ``{{ self.content() }}`` and
                 strip the layout directory from the name
6. CONTENT     - wrap bare fragments in ``{% block content %}``
"""
from __future__ import annotations

import logging
import posixpath
import re
from dataclasses import dataclass, field
from typing import Callable, Dict, Mapping, Optional, Tuple

from .exceptions import PreprocessError
from .sources import clean_path

logger = logging.getLogger(__name__)

# Extension handlers receive the decoded file text and return template text.
ExtensionHandler = Callable[[str], str]

CONTENT_BLOCK = "content"

_HTML_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")


def remove_comments(text: str) -> str:
    """Remove every HTML comment span from ``text``."""
    return _HTML_COMMENT_RE.sub("", text)


def trim_dir(name: str, directory: str) -> str:
    """Strip ``directory/`` from the front of ``name``."""
    directory = clean_path(directory)
    if not directory:
        return name
    return name[len(directory) + 1:] if name.startswith(directory + "/") else name


@dataclass(frozen=True)
class Delims:
    """A pair of opening/closing directive delimiters."""

    left: str
    right: str


@dataclass
class TemplateUnit:
    """A classified template: its logical name and normalized text."""

    name: str
    text: str
    path: str = ""


@dataclass
class Classification:
    contents: Dict[str, TemplateUnit] = field(default_factory=dict)
    layouts: Dict[str, TemplateUnit] = field(default_factory=dict)


class DirectiveSyntax:
    """Directive patterns built from the active delimiters."""

    def __init__(self, variable: Delims, block: Delims) -> None:
        self.variable = variable
        self.block = block

        vl, vr = re.escape(variable.left), re.escape(variable.right)
        bl = re.escape(block.left)

        self.yield_re = re.compile(rf"{vl}(-?)\s*yield\b.*?(-?){vr}", re.DOTALL)
        self.layout_re = re.compile(
            rf"{vl}-?\s*(?:self\.{CONTENT_BLOCK}\(\s*\)|yield\b).*?-?{vr}",
            re.DOTALL,
        )
        self.define_re = re.compile(rf"{bl}[-+]?\s*block\b")

    def render_content(self, open_dash: str = "", close_dash: str = "") -> str:
        """The canonical directive rendering the "content" block."""
        return f"{self.variable.left}{open_dash} self.{CONTENT_BLOCK}() {close_dash}{self.variable.right}"

    def is_layout(self, text: str) -> bool:
        return self.layout_re.search(text) is not None

    def has_block_definition(self, text: str) -> bool:
        return self.define_re.search(text) is not None

    def replace_yields(self, text: str) -> str:
        """Rewrite every yield directive into the canonical form.

        Any argument after ``yield`` is dropped: blocks already share the
        render context. Whitespace-control dashes are kept.
        """
        return self.yield_re.sub(lambda m: self.render_content(m.group(1), m.group(2)), text)

    def wrap_content(self, text: str) -> str:
        """Wrap ``text`` in an explicit "content" block definition."""
        left, right = self.block.left, self.block.right
        return f"{left} block {CONTENT_BLOCK} {right}{text}{left} endblock {right}"


class Classifier:
    """Turns collected files into content and layout units."""

    def __init__(
        self,
        *,
        extension: str,
        syntax: DirectiveSyntax,
        layout_dir: str = "layouts",
        root_dir: str = "",
        handlers: Optional[Mapping[str, Optional[ExtensionHandler]]] = None,
    ) -> None:
        self.extension = extension
        self.syntax = syntax
        self.layout_dir = clean_path(layout_dir)
        self.root_dir = clean_path(root_dir)
        self.handlers: Dict[str, ExtensionHandler] = {
            ext: fn for ext, fn in (handlers or {}).items() if fn is not None
        }

    def preprocess(self, path: str, data: bytes) -> Optional[str]:
        """Return the template text for ``path`` or None to skip the file."""
        ext = posixpath.splitext(path)[1]
        handler = self.handlers.get(ext)
        if handler is not None:
            try:
                return handler(data.decode("utf-8"))
            except Exception as exc:
                # Custom handlers (less, scss, ...) may fail; keep the path.
                raise PreprocessError(path, exc) from exc
        if ext != self.extension:
            return None
        try:
            return data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise PreprocessError(path, exc) from exc

    def logical_name(self, path: str) -> str:
        name = trim_dir(clean_path(path), self.root_dir)
        name = name.lstrip("/")
        stem, ext = posixpath.splitext(name)
        if ext == self.extension or ext in self.handlers:
            return stem
        return name

    def classify_one(self, path: str, data: bytes) -> Optional[Tuple[bool, TemplateUnit]]:
        """Classify a single file; returns ``(is_layout, unit)`` or None."""
        text = self.preprocess(path, data)
        if text is None:
            return None

        text = remove_comments(text)
        name = self.logical_name(path)

        if self.syntax.is_layout(text):
            text = self.syntax.replace_yields(text)
            return True, TemplateUnit(trim_dir(name, self.layout_dir), text, path)

        if not self.syntax.has_block_definition(text):
            text = self.syntax.wrap_content(text)
        return False, TemplateUnit(name, text, path)

    def classify(self, files: Mapping[str, bytes]) -> Classification:
        result = Classification()
        for path in sorted(files):
            classified = self.classify_one(path, files[path])
            if classified is None:
                logger.debug("Skipping non-template file %s", path)
                continue

            is_layout, unit = classified
            target = result.layouts if is_layout else result.contents
            previous = target.get(unit.name)
            if previous is not None:
                logger.warning(
                    "Template name '%s' is defined by both %s and %s; using %s",
                    unit.name,
                    previous.path,
                    unit.path,
                    unit.path,
                )
            target[unit.name] = unit

        logger.debug(
            "Classified %d content and %d layout templates",
            len(result.contents),
            len(result.layouts),
        )
        return result


__all__ = [
    "CONTENT_BLOCK",
    "Classification",
    "Classifier",
    "Delims",
    "DirectiveSyntax",
    "ExtensionHandler",
    "TemplateUnit",
    "remove_comments",
    "trim_dir",
]
