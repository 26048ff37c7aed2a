"""Composition of content and layout units into executable templates.

Jinja2 resolves ``self.<block>()`` only against blocks of the template being
rendered, so a layout and the content it wraps must end up in one compiled
template. Each composed unit is built from two parsed trees:

- the *outer* tree: a layout, or the root ``{{ self.content() }}`` for
  standalone content templates
- the *inner* tree: one content unit

Content blocks that the layout also defines replace the layout's default at
the layout's position. The layout's default body stays reachable through
``super()``. Top-level macros, assignments and imports of the content run
before the layout body. The rest of the content tree is attached behind a
branch that never renders, so its blocks are defined but only rendered
where the layout asks for them.

The layout pass builds the full content × layout cross product.
"""
from __future__ import annotations

import concurrent.futures
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional, Set, Tuple

from jinja2 import Environment, Template, TemplateSyntaxError, nodes
from jinja2.runtime import Context
from jinja2.visitor import NodeTransformer

from .classifier import CONTENT_BLOCK, DirectiveSyntax, TemplateUnit
from .exceptions import TemplateParseError

logger = logging.getLogger(__name__)

# Layout block defaults that content overrides are kept under this prefix.
PARENT_PREFIX = "layout__"

# Content statements that define names instead of producing output.
_DEFINITIONS = (nodes.Macro, nodes.Assign, nodes.AssignBlock, nodes.Import, nodes.FromImport)


def make_layout_key(name: str, layout: str) -> str:
    """Registry key of ``name`` rendered inside ``layout``.

    Plain concatenation: content "a" in layout "bc" and content "abc" in
    layout "" share a key. Layout keys are only ever looked up with a
    non-empty layout, which keeps the two registries apart, but names
    should still avoid such overlaps.
    """
    return layout + name


class LayoutContext(Context):
    """Render context that puts a layout's default block under the override.

    ``super()`` inside a content block then renders the layout's default
    body for that block.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        for name, stack in self.blocks.items():
            if not name.startswith(PARENT_PREFIX):
                stack.extend(self.blocks.get(PARENT_PREFIX + name, ()))


class ComposeEnvironment(Environment):
    """Jinja2 environment for composed templates."""

    context_class = LayoutContext


class _BlockOverrides(NodeTransformer):
    """Replace outer blocks that the inner tree redefines by block calls.

    The replaced blocks are renamed with ``PARENT_PREFIX`` and collected
    in ``parents``.
    """

    def __init__(self, composer: "Composer", names: Set[str]) -> None:
        self.composer = composer
        self.names = names
        self.parents: List[nodes.Block] = []

    def visit_Block(self, node: nodes.Block) -> Any:
        if node.name not in self.names:
            return self.generic_visit(node)
        call = self.composer.block_call(node.name, node.lineno)
        node.name = PARENT_PREFIX + node.name
        self.parents.append(self.generic_visit(node))
        return call


class Composer:
    """Parses and compiles composed templates for one environment."""

    def __init__(self, environment: Environment, syntax: DirectiveSyntax) -> None:
        self.environment = environment
        self.syntax = syntax

    # ---------- parsing ----------

    def parse(self, text: str, *, name: Optional[str] = None, layout: Optional[str] = None) -> nodes.Template:
        try:
            return self.environment.parse(text)
        except TemplateSyntaxError as exc:
            raise TemplateParseError(exc, name=name, layout=layout, source=text, lineno=exc.lineno) from exc

    def root(self) -> nodes.Template:
        """Outer tree for standalone content: renders the "content" block."""
        return self.environment.parse(self.syntax.render_content())

    def block_call(self, block: str, lineno: int) -> nodes.Node:
        left, right = self.syntax.variable.left, self.syntax.variable.right
        call = self.environment.parse(f"{left} self.{block}() {right}").body[0]
        call.set_lineno(lineno, override=True)
        return call

    def hidden(self, body: list, lineno: int) -> nodes.Node:
        """An ``if false`` branch holding ``body``."""
        left, right = self.syntax.block.left, self.syntax.block.right
        branch = self.environment.parse(f"{left} if false {right}{left} endif {right}").body[0]
        branch.set_lineno(lineno, override=True)
        # Assigned after set_lineno so the body keeps its own line numbers.
        branch.body = body
        return branch

    def merge(self, outer: nodes.Template, inner: nodes.Template) -> nodes.Template:
        """Attach ``inner``'s blocks to ``outer`` in a single tree."""
        overridden = {block.name for block in inner.find_all(nodes.Block)}
        overrides = _BlockOverrides(self, overridden)
        outer = overrides.visit(outer)

        definitions = [node for node in inner.body if isinstance(node, _DEFINITIONS)]
        rest = [node for node in inner.body if not isinstance(node, _DEFINITIONS)]
        lineno = outer.body[-1].lineno if outer.body else 1
        outer.body = definitions + outer.body
        outer.body.append(self.hidden(rest + overrides.parents, lineno))
        return outer

    def compile(
        self,
        tree: nodes.Template,
        funcs: Mapping[str, Callable[..., Any]],
        *,
        name: Optional[str],
        layout: Optional[str] = None,
        source: str = "",
    ) -> Template:
        try:
            return self.environment.from_string(tree, globals=dict(funcs))
        except TemplateSyntaxError as exc:
            # Compile-time assertions, e.g. a block defined twice.
            raise TemplateParseError(exc, name=name, layout=layout, source=source, lineno=exc.lineno) from exc

    # ---------- composition ----------

    def compose_content(self, unit: TemplateUnit, funcs: Mapping[str, Callable[..., Any]]) -> Template:
        """Standalone template rendering ``unit``'s "content" block."""
        inner = self.parse(unit.text, name=unit.name)
        tree = self.merge(self.root(), inner)
        return self.compile(tree, funcs, name=unit.name, source=unit.text)

    def compose_layout(
        self,
        layout: TemplateUnit,
        content: TemplateUnit,
        funcs: Mapping[str, Callable[..., Any]],
    ) -> Template:
        """``content`` rendered inside ``layout``, as one template."""
        outer = self.parse(layout.text, layout=layout.name)
        inner = self.parse(content.text, name=content.name, layout=layout.name)
        tree = self.merge(outer, inner)
        return self.compile(tree, funcs, name=content.name, layout=layout.name, source=content.text)

    def build(
        self,
        contents: Mapping[str, TemplateUnit],
        layouts: Mapping[str, TemplateUnit],
        funcs: Mapping[str, Callable[..., Any]],
        layout_funcs: Mapping[str, Callable[..., Any]],
        *,
        max_workers: Optional[int] = None,
    ) -> Tuple[Dict[str, Template], Dict[str, Template]]:
        """Run the content pass and the layout pass in parallel.

        Returns fresh ``(templates, layouts)`` registries. The first failure
        is raised once every started job has finished.
        """
        started = time.perf_counter()
        templates: Dict[str, Template] = {}
        combined: Dict[str, Template] = {}
        first_error: Optional[BaseException] = None

        with concurrent.futures.ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {}
            for name, unit in contents.items():
                futures[executor.submit(self.compose_content, unit, funcs)] = (templates, name)
            for layout_name, layout in layouts.items():
                for name, unit in contents.items():
                    key = make_layout_key(name, layout_name)
                    futures[executor.submit(self.compose_layout, layout, unit, layout_funcs)] = (combined, key)

            for future in concurrent.futures.as_completed(futures):
                if future.cancelled():
                    continue
                registry, key = futures[future]
                try:
                    registry[key] = future.result()
                except Exception as exc:
                    if first_error is None:
                        first_error = exc
                        for pending in futures:
                            pending.cancel()

        if first_error is not None:
            raise first_error

        logger.debug(
            "Composed %d templates and %d layout combinations in %.3fs",
            len(templates),
            len(combined),
            time.perf_counter() - started,
        )
        return templates, combined


__all__ = ["CONTENT_BLOCK", "ComposeEnvironment", "Composer", "LayoutContext", "make_layout_key"]
