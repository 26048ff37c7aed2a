"""
quire list command.

SUMMARY: List loaded content templates and layouts
"""

from __future__ import annotations

import argparse
import sys

from quire.cli import OutputFormatter, add_standard_flags, make_engine

SUMMARY = "List loaded content templates and layouts"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--kind",
        choices=["all", "templates", "layouts"],
        default="all",
        help="What to list (default: all).",
    )
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        engine = make_engine(args)
        kind = str(getattr(args, "kind", "all") or "all")
        templates = engine.names() if kind in ("all", "templates") else []
        layouts = engine.layout_names() if kind in ("all", "layouts") else []

        if formatter.json_mode:
            formatter.json_output({"templates": templates, "layouts": layouts})
            return 0

        if kind in ("all", "templates"):
            formatter.text("Templates:")
            for name in templates:
                formatter.text(f"  {name}")
        if kind in ("all", "layouts"):
            formatter.text("Layouts:")
            if not layouts:
                formatter.text("  (none)")
            for name in layouts:
                formatter.text(f"  {name}")
        return 0
    except Exception as e:
        formatter.error(e, error_code="list_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    cli_args = parser.parse_args()
    sys.exit(main(cli_args))
