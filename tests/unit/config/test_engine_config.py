from __future__ import annotations

from pathlib import Path

import pytest

from quire.core.config import ConfigManager, EngineConfig
from quire.core.engine import Engine
from quire.core.exceptions import ConfigError
from quire.core.sources import MemorySource


def test_bundled_defaults() -> None:
    cfg = EngineConfig(environ={})

    assert cfg.extension == ".html"
    assert cfg.delims == ("{{", "}}")
    assert cfg.block_delims == ("{%", "%}")
    assert cfg.layout_dir == "layouts"
    assert cfg.default_layout == ""
    assert cfg.reload is False
    assert cfg.extensions == [".md"]
    assert cfg.autoescape is True
    assert cfg.undefined == "default"
    assert cfg.partial_max_depth == 32
    assert cfg.collector_workers is None
    assert cfg.log_level == "WARNING"


def test_project_file_overrides_defaults(tmp_path: Path) -> None:
    path = tmp_path / "quire.yaml"
    path.write_text(
        "engine:\n  extension: .tmpl\n  delims:\n    left: '[['\n    right: ']]'\n"
        "collector:\n  max_workers: 4\n",
        encoding="utf-8",
    )

    cfg = EngineConfig(path, environ={})

    assert cfg.extension == ".tmpl"
    assert cfg.delims == ("[[", "]]")
    assert cfg.collector_workers == 4
    assert cfg.layout_dir == "layouts"


def test_environment_overrides_file(tmp_path: Path) -> None:
    path = tmp_path / "quire.yaml"
    path.write_text("engine:\n  reload: false\n", encoding="utf-8")

    cfg = EngineConfig(
        path,
        environ={
            "QUIRE_ENGINE__RELOAD": "true",
            "QUIRE_PARTIALS__MAX_DEPTH": "5",
            "QUIRE_ENGINE__EXTENSIONS": '[".md", ".txt"]',
            "QUIRE_JINJA__UNDEFINED": "strict",
            "OTHER_VAR": "ignored",
        },
    )

    assert cfg.reload is True
    assert cfg.partial_max_depth == 5
    assert cfg.extensions == [".md", ".txt"]
    assert cfg.undefined == "strict"


def test_explicit_overrides_win() -> None:
    cfg = EngineConfig(
        environ={"QUIRE_ENGINE__LAYOUT_DIR": "from-env"},
        overrides={"engine": {"layout_dir": "from-code"}},
    )

    assert cfg.layout_dir == "from-code"


def test_malformed_env_variable_is_ignored(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level("WARNING")

    cfg = EngineConfig(environ={"QUIRE_RELOAD": "true"})

    assert cfg.reload is False
    assert "QUIRE_RELOAD" in caplog.text


@pytest.mark.parametrize(
    "overrides",
    [
        {"engine": {"reload": "yes"}},
        {"engine": {"extension": "html"}},
        {"engine": {"colour": "blue"}},
        {"jinja": {"undefined": "lenient"}},
        {"collector": {"max_workers": 0}},
        {"unknown": {}},
    ],
)
def test_invalid_configuration_is_rejected(overrides: dict) -> None:
    with pytest.raises(ConfigError):
        EngineConfig(overrides=overrides, environ={})


def test_invalid_yaml_file(tmp_path: Path) -> None:
    path = tmp_path / "broken.yaml"
    path.write_text("engine: [unclosed\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="Invalid YAML"):
        EngineConfig(path, environ={})


def test_missing_config_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        EngineConfig(tmp_path / "nope.yaml", environ={})


def test_non_mapping_config_file(tmp_path: Path) -> None:
    path = tmp_path / "list.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(ConfigError, match="mapping"):
        ConfigManager(path, environ={}).load_config()


def test_config_error_payload() -> None:
    with pytest.raises(ConfigError) as exc_info:
        EngineConfig(overrides={"engine": {"reload": "yes"}}, environ={})

    payload = exc_info.value.to_json_error()
    assert payload["code"] == "ConfigError"
    assert payload["context"]["errors"]


def test_coerce_accepts_known_shapes(tmp_path: Path) -> None:
    path = tmp_path / "quire.yaml"
    path.write_text("engine:\n  default_layout: main\n", encoding="utf-8")
    existing = EngineConfig(environ={})

    assert EngineConfig.coerce(existing) is existing
    assert EngineConfig.coerce(path).default_layout == "main"
    assert EngineConfig.coerce({"engine": {"reload": True}}).reload is True
    assert EngineConfig.coerce(None).extension == ".html"


def test_engine_reads_settings_from_config() -> None:
    source = MemorySource({"views/base/shell.tmpl": "<b>{{ yield }}</b>", "views/home.tmpl": "home"})
    engine = Engine(
        source,
        config={
            "engine": {
                "extension": ".tmpl",
                "root_dir": "views",
                "layout_dir": "base",
                "default_layout": "shell",
            }
        },
    )
    engine.load()

    assert engine.render_to_string("home") == "<b>home</b>"
