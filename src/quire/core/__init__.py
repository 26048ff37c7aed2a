"""quire core library: sources, collection, classification, composition and rendering."""

from . import exceptions  # noqa: F401
from .build import BuildResult, build_site
from .config import EngineConfig
from .context import get_engine, reset_engine, set_engine, use_engine
from .engine import Engine
from .functions import global_registry, register, register_function
from .sources import AssetSource, DirectorySource, MemorySource, PackageSource, Source, get_source

__all__ = [
    "AssetSource",
    "BuildResult",
    "DirectorySource",
    "Engine",
    "EngineConfig",
    "MemorySource",
    "PackageSource",
    "Source",
    "build_site",
    "exceptions",
    "get_engine",
    "get_source",
    "global_registry",
    "register",
    "register_function",
    "reset_engine",
    "set_engine",
    "use_engine",
]
