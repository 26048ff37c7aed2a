"""The quire rendering engine.

An ``Engine`` owns a template source and a registry set built by ``load``:

1. COLLECT   - read every file under the root directory concurrently
2. CLASSIFY  - split files into content and layout units
3. COMPOSE   - compile each content unit on its own and inside every layout
4. SWAP      - publish the new registries in one step

Renders read whichever registry set is current and never wait on a load.

Usage:
    engine = Engine("./views").layout_dir("layouts").reload(True)
    engine.load()
    engine.execute_template(sys.stdout, "index", "main", {"Title": "Home"})
"""
from __future__ import annotations

import logging
import threading
import time
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Tuple, TextIO

import markdown
from jinja2 import ChainableUndefined, StrictUndefined, Template, Undefined
from markupsafe import Markup

from .buffers import BufferPool, default_pool
from .classifier import Classifier, Delims, DirectiveSyntax, ExtensionHandler, trim_dir
from .collector import CancelSignal, collect_files
from .compose import ComposeEnvironment, Composer, make_layout_key
from .config import EngineConfig
from .exceptions import CancellationRequestedError, ConfigError, NoFilesFoundError, TemplateNotExistError
from .functions import FuncMap, FunctionType, builtins, global_registry, inclusion_guard, merge_funcs
from .sources import clean_path, get_source

logger = logging.getLogger(__name__)

UNDEFINED_TYPES: Dict[str, type] = {
    "default": Undefined,
    "strict": StrictUndefined,
    "chainable": ChainableUndefined,
}

# Handlers available by extension; enabled through the ``engine.extensions`` setting.
BUILTIN_HANDLERS: Dict[str, ExtensionHandler] = {
    ".md": markdown.markdown,
}

_OPTION_KEYS = ("undefined", "autoescape", "trim_blocks", "lstrip_blocks")

# Keyword overrides accepted by Engine(); each maps to the setter of the same name.
_SETTINGS = (
    "extension",
    "delims",
    "block_delims",
    "layout_dir",
    "default_layout",
    "root_dir",
    "reload",
    "funcs",
    "layout_funcs",
)


class _Registries(NamedTuple):
    templates: Mapping[str, Template]
    layouts: Mapping[str, Template]
    layout_names: Tuple[str, ...]


_EMPTY = _Registries(MappingProxyType({}), MappingProxyType({}), ())


class Engine:
    """Layout/content template engine over one template source.

    Args:
        source: Directory path, ``Source``, resource traversable or a
            ``(names, reader)`` pair
        config: ``EngineConfig``, path to a YAML file, or a mapping of
            configuration overrides
        **overrides: Setter values applied after the configuration, e.g.
            ``layout_dir="layouts"`` or ``delims=("[[", "]]")``
    """

    def __init__(self, source: Any, *, config: Any = None, **overrides: Any) -> None:
        self.source = get_source(source)
        self.config = EngineConfig.coerce(config)

        self._extension = self.config.extension
        self._delims = Delims(*self.config.delims)
        self._block_delims = Delims(*self.config.block_delims)
        self._root_dir = clean_path(self.config.root_dir)
        self._layout_dir = clean_path(self.config.layout_dir)
        self._default_layout = self.config.default_layout
        self._reload = self.config.reload
        self._options: Dict[str, Any] = {
            "undefined": self.config.undefined,
            "autoescape": self.config.autoescape,
            "trim_blocks": self.config.trim_blocks,
            "lstrip_blocks": self.config.lstrip_blocks,
        }
        self._handlers: Dict[str, ExtensionHandler] = {}
        for ext in self.config.extensions:
            handler = BUILTIN_HANDLERS.get(ext)
            if handler is None:
                logger.warning("No builtin handler for extension %s; ignoring", ext)
                continue
            self._handlers[ext] = handler

        # Global functions registered later are not seen by this engine.
        self._funcs: FuncMap = global_registry.snapshot()
        self._layout_funcs: FuncMap = {}

        self._lock = threading.RLock()
        self._registries = _EMPTY
        self._pool: BufferPool = default_pool

        for key, value in overrides.items():
            if key not in _SETTINGS:
                raise TypeError(f"Engine() got an unexpected keyword argument '{key}'")
            setter = getattr(self, key)
            if key in ("delims", "block_delims"):
                setter(*value)
            else:
                setter(value)

    def __repr__(self) -> str:
        return f"Engine({self.source!r})"

    # ---------- settings ----------

    def extension(self, ext: str) -> "Engine":
        """Set the primary template file extension (default ".html")."""
        if ext and not ext.startswith("."):
            ext = "." + ext
        self._extension = ext
        return self

    def delims(self, left: str, right: str) -> "Engine":
        """Set the variable delimiters used by render-content and yield directives."""
        self._delims = Delims(left, right)
        return self

    def block_delims(self, left: str, right: str) -> "Engine":
        self._block_delims = Delims(left, right)
        return self

    def layout_dir(self, directory: str) -> "Engine":
        """Set the directory, relative to the root, that holds layouts."""
        self._layout_dir = clean_path(directory)
        return self

    def default_layout(self, layout: str) -> "Engine":
        """Set the layout used when a render call passes no layout."""
        self._default_layout = layout
        return self

    def root_dir(self, directory: str) -> "Engine":
        """Restrict loading to ``directory`` inside the source."""
        self._root_dir = clean_path(directory)
        return self

    def reload(self, enabled: bool = True) -> "Engine":
        """Reload every template on each ``execute_template`` call."""
        self._reload = bool(enabled)
        return self

    def funcs(self, funcs: Mapping[str, FunctionType]) -> "Engine":
        """Merge ``funcs`` into this engine's template functions."""
        for name, fn in funcs.items():
            self.add_func(name, fn)
        return self

    def add_func(self, name: str, fn: FunctionType) -> "Engine":
        if not callable(fn):
            raise TypeError(f"template function '{name}' is not callable")
        self._funcs[name] = fn
        return self

    def layout_funcs(self, funcs: Mapping[str, FunctionType]) -> "Engine":
        """Merge ``funcs`` into the functions available to layouts only."""
        for name, fn in funcs.items():
            if not callable(fn):
                raise TypeError(f"template function '{name}' is not callable")
            self._layout_funcs[name] = fn
        return self

    def extension_handler(self, ext: str, handler: Optional[ExtensionHandler]) -> "Engine":
        """Register a ``str -> str`` pre-processor for files ending in ``ext``.

        A None handler removes the entry.
        """
        if not ext.startswith("."):
            ext = "." + ext
        if handler is None:
            self._handlers.pop(ext, None)
        else:
            self._handlers[ext] = handler
        return self

    def option(self, **options: Any) -> "Engine":
        """Set Jinja2 environment options.

        Accepted: ``undefined`` ("default", "strict", "chainable" or an
        ``Undefined`` subclass), ``autoescape``, ``trim_blocks``,
        ``lstrip_blocks``.
        """
        for key, value in options.items():
            if key not in _OPTION_KEYS:
                raise ConfigError(f"Unknown template option: {key}", context={"option": key})
            if key == "undefined" and isinstance(value, str) and value not in UNDEFINED_TYPES:
                raise ConfigError(
                    f"Unknown undefined behaviour: {value}",
                    context={"option": key, "choices": sorted(UNDEFINED_TYPES)},
                )
            self._options[key] = value
        return self

    # ---------- loading ----------

    def _environment(self) -> ComposeEnvironment:
        undefined = self._options["undefined"]
        if isinstance(undefined, str):
            undefined = UNDEFINED_TYPES[undefined]
        return ComposeEnvironment(
            block_start_string=self._block_delims.left,
            block_end_string=self._block_delims.right,
            variable_start_string=self._delims.left,
            variable_end_string=self._delims.right,
            autoescape=bool(self._options["autoescape"]),
            undefined=undefined,
            trim_blocks=bool(self._options["trim_blocks"]),
            lstrip_blocks=bool(self._options["lstrip_blocks"]),
        )

    def load(self, cancel: Optional[CancelSignal] = None) -> None:
        """Collect, classify and compose every template under the root.

        The new registries replace the current ones only on success; on any
        error the previously loaded templates stay in place.
        """
        with self._lock:
            started = time.perf_counter()
            files = collect_files(
                self.source,
                self._root_dir,
                cancel=cancel,
                max_workers=self.config.collector_workers,
            )
            if not files:
                raise NoFilesFoundError(self._root_dir)

            syntax = DirectiveSyntax(self._delims, self._block_delims)
            classifier = Classifier(
                extension=self._extension,
                syntax=syntax,
                layout_dir=self._layout_dir,
                root_dir=self._root_dir,
                handlers=self._handlers,
            )
            classified = classifier.classify(files)
            if cancel is not None and cancel.is_set():
                raise CancellationRequestedError()

            funcs = merge_funcs(builtins(self), self._funcs)
            composer = Composer(self._environment(), syntax)
            templates, layouts = composer.build(
                classified.contents,
                classified.layouts,
                funcs,
                merge_funcs(funcs, self._layout_funcs),
                max_workers=self.config.compose_workers,
            )

            self._registries = _Registries(
                MappingProxyType(templates),
                MappingProxyType(layouts),
                tuple(sorted(classified.layouts)),
            )
            logger.info(
                "Loaded %d templates and %d layouts in %.3fs",
                len(templates),
                len(classified.layouts),
                time.perf_counter() - started,
            )

    def load_with_cancellation(self, cancel: CancelSignal) -> None:
        """``load`` that stops early once ``cancel`` is set."""
        self.load(cancel)

    # ---------- rendering ----------

    def _template_name(self, name: str) -> str:
        name = name.lstrip("/")
        if self._extension and name.endswith(self._extension):
            name = name[: -len(self._extension)]
        return name

    def _layout_name(self, layout: str) -> str:
        return trim_dir(self._template_name(layout), self._layout_dir).lstrip("/")

    def _lookup(self, name: str, layout: str) -> Template:
        registries = self._registries
        if not layout:
            template = registries.templates.get(name)
            if template is None:
                raise TemplateNotExistError(name)
            return template

        template = registries.layouts.get(make_layout_key(name, layout))
        if template is None:
            if name not in registries.templates:
                raise TemplateNotExistError(name)
            raise TemplateNotExistError(layout)
        return template

    @staticmethod
    def _context(data: Any) -> Dict[str, Any]:
        if data is None:
            return {}
        if isinstance(data, Mapping):
            return dict(data)
        return {"data": data}

    def _render(self, output: TextIO, name: str, layout: str, data: Any) -> None:
        template = self._lookup(self._template_name(name), self._layout_name(layout) if layout else "")
        write: Callable[[str], Any] = output.write
        for chunk in template.generate(self._context(data)):
            write(chunk)

    def execute_template(self, output: TextIO, name: str, layout: str = "", data: Any = None) -> None:
        """Render ``name`` (inside ``layout``) into ``output``.

        An empty ``layout`` falls back to the default layout. With reload
        enabled every call loads the templates again first.
        """
        if self._reload:
            self.load()
        self._render(output, name, layout or self._default_layout, data)

    def render_to_string(self, name: str, layout: str = "", data: Any = None) -> str:
        """Render ``name`` (inside ``layout``) and return the text."""
        with self._pool.acquire() as buf:
            self._render(buf, name, layout or self._default_layout, data)
            return buf.getvalue()

    def partial(self, name: str, data: Any = None) -> Markup:
        """Render the standalone content template ``name`` without a layout."""
        key = self._template_name(name)
        with inclusion_guard(key, self.config.partial_max_depth):
            with self._pool.acquire() as buf:
                self._render(buf, key, "", data)
                return Markup(buf.getvalue())

    # ---------- introspection ----------

    @property
    def templates(self) -> Mapping[str, Template]:
        """Standalone content templates by name (read-only)."""
        return self._registries.templates

    @property
    def layouts(self) -> Mapping[str, Template]:
        """Content-in-layout templates by composite key (read-only)."""
        return self._registries.layouts

    def names(self) -> List[str]:
        return sorted(self._registries.templates)

    def layout_names(self) -> List[str]:
        return list(self._registries.layout_names)

    def has(self, name: str, layout: str = "") -> bool:
        registries = self._registries
        name = self._template_name(name)
        if not layout:
            return name in registries.templates
        return make_layout_key(name, self._layout_name(layout)) in registries.layouts


__all__ = ["BUILTIN_HANDLERS", "Engine", "UNDEFINED_TYPES"]
