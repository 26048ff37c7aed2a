"""Typed accessors over the merged quire configuration document."""
from __future__ import annotations

from functools import cached_property
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .manager import ConfigManager


class EngineConfig:
    """Engine settings resolved from defaults, project file and environment.

    Usage:
        cfg = EngineConfig()                              # bundled defaults + env
        cfg = EngineConfig(path="quire.yaml")             # + project file
        cfg = EngineConfig(overrides={"engine": {"reload": True}})
    """

    def __init__(
        self,
        path: Optional[Union[str, Path]] = None,
        *,
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self._manager = ConfigManager(path, environ=environ)
        self._config = self._manager.load_config(overrides)

    @classmethod
    def coerce(cls, config: Any) -> "EngineConfig":
        """Build an EngineConfig from None, a path, a mapping or an EngineConfig."""
        if isinstance(config, EngineConfig):
            return config
        if config is None:
            return cls()
        if isinstance(config, Mapping):
            return cls(overrides=config)
        return cls(path=config)

    @property
    def data(self) -> Dict[str, Any]:
        return self._config

    def section(self, name: str) -> Dict[str, Any]:
        return self._config.get(name, {}) or {}

    @cached_property
    def extension(self) -> str:
        return str(self.section("engine").get("extension", ".html"))

    @cached_property
    def delims(self) -> tuple[str, str]:
        d = self.section("engine").get("delims") or {}
        return str(d.get("left", "{{")), str(d.get("right", "}}"))

    @cached_property
    def block_delims(self) -> tuple[str, str]:
        d = self.section("engine").get("block_delims") or {}
        return str(d.get("left", "{%")), str(d.get("right", "%}"))

    @cached_property
    def root_dir(self) -> str:
        return str(self.section("engine").get("root_dir") or "")

    @cached_property
    def layout_dir(self) -> str:
        return str(self.section("engine").get("layout_dir") or "")

    @cached_property
    def default_layout(self) -> str:
        return str(self.section("engine").get("default_layout") or "")

    @cached_property
    def reload(self) -> bool:
        return bool(self.section("engine").get("reload", False))

    @cached_property
    def extensions(self) -> List[str]:
        return [str(e) for e in self.section("engine").get("extensions") or []]

    @cached_property
    def autoescape(self) -> bool:
        return bool(self.section("jinja").get("autoescape", True))

    @cached_property
    def undefined(self) -> str:
        return str(self.section("jinja").get("undefined") or "default")

    @cached_property
    def trim_blocks(self) -> bool:
        return bool(self.section("jinja").get("trim_blocks", False))

    @cached_property
    def lstrip_blocks(self) -> bool:
        return bool(self.section("jinja").get("lstrip_blocks", False))

    @cached_property
    def collector_workers(self) -> Optional[int]:
        return self.section("collector").get("max_workers")

    @cached_property
    def compose_workers(self) -> Optional[int]:
        return self.section("compose").get("max_workers")

    @cached_property
    def partial_max_depth(self) -> int:
        return int(self.section("partials").get("max_depth", 32) or 0)

    @cached_property
    def log_level(self) -> str:
        return str(self.section("logging").get("level") or "WARNING")


__all__ = ["EngineConfig"]
