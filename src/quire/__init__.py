"""
quire - layout/content template composition on top of Jinja2

quire loads a tree of templates, tells layouts from content pages and
compiles every page on its own and inside every layout, ready to render.
"""

__version__ = "1.0.0"

from .core import (
    Engine,
    EngineConfig,
    MemorySource,
    get_engine,
    register,
    register_function,
    set_engine,
    use_engine,
)

__all__ = [
    "__version__",
    "Engine",
    "EngineConfig",
    "MemorySource",
    "get_engine",
    "register",
    "register_function",
    "set_engine",
    "use_engine",
]
