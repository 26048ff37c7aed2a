"""Shared CLI utility functions."""
from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

import yaml

from quire.core.engine import Engine
from quire.core.exceptions import ConfigError
from quire.core.logging import configure_logging


def setup_logging(args: argparse.Namespace, engine: Engine) -> None:
    """Install the stderr log handler: DEBUG with --verbose, else the configured level."""
    level = "DEBUG" if getattr(args, "verbose", False) else engine.config.log_level
    configure_logging(level)


def make_engine(args: argparse.Namespace) -> Engine:
    """Build and load an engine from --root and --config."""
    engine = Engine(Path(getattr(args, "root", None) or "."), config=getattr(args, "config", None))
    setup_logging(args, engine)
    engine.load()
    return engine


def load_data(path: str | None) -> Any:
    """Read render data from a YAML or JSON file (JSON is valid YAML)."""
    if not path:
        return None
    target = Path(path)
    if not target.is_file():
        raise ConfigError(f"Data file not found: {target}", context={"path": str(target)})
    try:
        return yaml.safe_load(target.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid data file {target}: {exc}", context={"path": str(target)}) from exc


__all__ = ["load_data", "make_engine", "setup_logging"]
