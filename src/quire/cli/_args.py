"""Common CLI argument registration utilities."""
from __future__ import annotations

import argparse


def add_json_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )


def add_verbose_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging on stderr",
    )


def add_config_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to a quire YAML configuration file",
    )


def add_root_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        "-r",
        type=str,
        default=".",
        help="Templates directory (default: current directory)",
    )


def add_layout_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--layout",
        "-l",
        type=str,
        default="",
        help="Layout to render inside (default: configured default layout)",
    )


def add_data_flag(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--data",
        "-d",
        type=str,
        default=None,
        help="YAML or JSON file with the render data",
    )


def add_standard_flags(parser: argparse.ArgumentParser) -> None:
    """Flags shared by every command: --config, --root, --json, --verbose."""
    add_config_flag(parser)
    add_root_flag(parser)
    add_json_flag(parser)
    add_verbose_flag(parser)


__all__ = [
    "add_config_flag",
    "add_data_flag",
    "add_json_flag",
    "add_layout_flag",
    "add_root_flag",
    "add_standard_flags",
    "add_verbose_flag",
]
