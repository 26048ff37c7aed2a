"""
quire CLI package.

Framework utilities for building CLI commands:
- _output: Output formatting (JSON/text modes)
- _args: Common argument registration helpers
- _utils: Shared CLI utilities
"""
from ._output import OutputFormatter
from ._args import (
    add_config_flag,
    add_data_flag,
    add_json_flag,
    add_layout_flag,
    add_root_flag,
    add_standard_flags,
    add_verbose_flag,
)
from ._utils import load_data, make_engine, setup_logging

__all__ = [
    # Output formatting
    "OutputFormatter",
    # Argument helpers
    "add_config_flag",
    "add_data_flag",
    "add_json_flag",
    "add_layout_flag",
    "add_root_flag",
    "add_standard_flags",
    "add_verbose_flag",
    # Utilities
    "load_data",
    "make_engine",
    "setup_logging",
]
