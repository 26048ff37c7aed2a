from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence


class QuireError(Exception):
    """Base exception for the quire template engine."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class SourceNotFoundError(QuireError, FileNotFoundError):
    """Raised when a source adapter has no file or directory for a path."""

    def __init__(self, path: str, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        ctx = dict(context or {})
        ctx["path"] = path
        msg = message or f"{path}: file does not exist"
        QuireError.__init__(self, msg, context=ctx)
        FileNotFoundError.__init__(self, msg)
        self.path = path


class CollectionError(QuireError):
    """Raised for the first worker failure while reading template files."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"{path}: {cause}", context={"path": path})
        self.path = path


class NoFilesFoundError(QuireError):
    """Raised when the source root holds no regular files."""

    def __init__(self, root: str = "") -> None:
        where = root or "."
        super().__init__(f"no template files found under '{where}'", context={"root": where})
        self.root = where


class PreprocessError(QuireError):
    """Raised when an extension handler fails to transform a file."""

    def __init__(self, path: str, cause: BaseException) -> None:
        super().__init__(f"{path}: {cause}", context={"path": path})
        self.path = path


class TemplateParseError(QuireError):
    """Raised when a content or layout unit cannot be parsed.

    ``name`` is the content unit involved (if any) and ``layout`` the
    layout unit (if any). ``source`` keeps the raw text that failed.
    """

    def __init__(
        self,
        cause: BaseException,
        *,
        name: Optional[str] = None,
        layout: Optional[str] = None,
        source: str = "",
        lineno: Optional[int] = None,
    ) -> None:
        if layout is not None and name is not None:
            msg = f"{cause}: layout: {layout}: for template: {name}"
        elif layout is not None:
            msg = f"{cause}: for layout: {layout}"
        else:
            msg = f"{cause}: {name}"
        ctx: Dict[str, Any] = {}
        if name is not None:
            ctx["name"] = name
        if layout is not None:
            ctx["layout"] = layout
        if lineno is not None:
            ctx["lineno"] = lineno
        super().__init__(msg, context=ctx)
        self.name = name
        self.layout = layout
        self.source = source
        self.lineno = lineno


class TemplateNotExistError(QuireError, LookupError):
    """Raised when a template was not found in the loaded registries."""

    def __init__(self, name: str) -> None:
        msg = f"template '{name}' does not exist"
        QuireError.__init__(self, msg, context={"name": name})
        LookupError.__init__(self, msg)
        self.name = name


class CancellationRequestedError(QuireError):
    """Raised when a load is cancelled through its cancellation signal."""

    def __init__(self, message: str = "load cancelled") -> None:
        super().__init__(message)


class CyclicInclusionError(QuireError, RecursionError):
    """Raised when a partial includes itself, directly or transitively."""

    def __init__(self, chain: Sequence[str], message: str = "") -> None:
        chain = list(chain)
        msg = message or "Circular partial inclusion detected: " + " -> ".join(chain)
        QuireError.__init__(self, msg, context={"chain": chain})
        RecursionError.__init__(self, msg)
        self.chain = chain


class ConfigError(QuireError, ValueError):
    """Raised when the engine configuration is invalid."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        QuireError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


__all__ = [
    "QuireError",
    "SourceNotFoundError",
    "CollectionError",
    "NoFilesFoundError",
    "PreprocessError",
    "TemplateParseError",
    "TemplateNotExistError",
    "CancellationRequestedError",
    "CyclicInclusionError",
    "ConfigError",
]
