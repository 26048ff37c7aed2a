"""Configuration for quire engines."""
from __future__ import annotations

from .engine import EngineConfig
from .manager import ENV_PREFIX, ConfigManager

__all__ = ["ConfigManager", "EngineConfig", "ENV_PREFIX"]
