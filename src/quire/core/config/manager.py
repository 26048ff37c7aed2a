"""
quire configuration management (YAML layers + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

import yaml
from jsonschema import Draft202012Validator

from quire.core.exceptions import ConfigError
from quire.core.utils.merge import deep_merge
from quire.data import get_data_path, read_yaml

logger = logging.getLogger(__name__)

ENV_PREFIX = "QUIRE_"
SCHEMA_FILE = "config.schema.yaml"


class ConfigManager:
    """Load, merge, and validate quire configuration.

    Configuration sources (highest to lowest priority):
    1. Explicit overrides passed by the caller
    2. Environment variables: QUIRE_<SECTION>__<KEY>
    3. Project config file (YAML), when given
    4. Bundled defaults: quire.data/config/defaults.yaml
    """

    def __init__(
        self,
        config_path: Optional[Union[str, Path]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        self.config_path = Path(config_path) if config_path else None
        self.environ = os.environ if environ is None else environ
        self.defaults_path = get_data_path("config", "defaults.yaml")

    def load_yaml(self, path: Path) -> Dict[str, Any]:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}", context={"path": str(path)})
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            # Fail closed: configuration must never silently ignore invalid YAML.
            raise ConfigError(f"Invalid YAML in {path}: {exc}", context={"path": str(path)}) from exc
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config file must contain a mapping, got {type(data).__name__}: {path}",
                context={"path": str(path)},
            )
        return data

    # ---------- environment overrides ----------

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        if value.strip().lower() in {"null", "none"}:
            return None
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _iter_env_overrides(self) -> Iterator[Tuple[List[str], Any]]:
        for key in sorted(self.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            segs = [seg.lower() for seg in raw.split("__")]
            if len(segs) < 2 or any(seg == "" for seg in segs):
                logger.warning("Ignoring malformed %s variable: %s", ENV_PREFIX + "*", key)
                continue
            yield segs, self._coerce_type(self.environ[key])

    def apply_env_overrides(self, cfg: Dict[str, Any]) -> Dict[str, Any]:
        for path, value in self._iter_env_overrides():
            override: Dict[str, Any] = {path[-1]: value}
            for seg in reversed(path[:-1]):
                override = {seg: override}
            cfg = deep_merge(cfg, override)
        return cfg

    # ---------- validation ----------

    def validate(self, cfg: Mapping[str, Any]) -> None:
        schema = read_yaml("schemas", SCHEMA_FILE)
        validator = Draft202012Validator(schema)
        errors: List[str] = []
        for error in sorted(validator.iter_errors(cfg), key=lambda e: str(e.path)):
            if error.path:
                errors.append(".".join(str(p) for p in error.path) + f": {error.message}")
            else:
                errors.append(error.message)
        if errors:
            raise ConfigError(
                "Invalid quire configuration:\n" + "\n".join(f"- {e}" for e in errors),
                context={"errors": errors},
            )

    # ---------- loading ----------

    def load_config(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        *,
        validate: bool = True,
    ) -> Dict[str, Any]:
        """Return the merged configuration document."""
        cfg = self.load_yaml(self.defaults_path)
        if self.config_path is not None:
            cfg = deep_merge(cfg, self.load_yaml(self.config_path))
        cfg = self.apply_env_overrides(cfg)
        if overrides:
            cfg = deep_merge(cfg, overrides)
        if validate:
            self.validate(cfg)
        return cfg


__all__ = ["ConfigManager", "ENV_PREFIX"]
