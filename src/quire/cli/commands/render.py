"""
quire render command.

SUMMARY: Render one template (optionally inside a layout) to stdout
"""

from __future__ import annotations

import argparse
import sys

from quire.cli import OutputFormatter, add_data_flag, add_layout_flag, add_standard_flags, load_data, make_engine

SUMMARY = "Render one template (optionally inside a layout) to stdout"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("name", help="Template name, e.g. index or pages/about")
    add_layout_flag(parser)
    add_data_flag(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        engine = make_engine(args)
        data = load_data(args.data)
        page = engine.render_to_string(args.name, args.layout, data)
        if formatter.json_mode:
            formatter.json_output({"name": args.name, "layout": args.layout, "output": page})
        else:
            formatter.raw(page)
        return 0
    except Exception as e:
        formatter.error(e, error_code="render_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    cli_args = parser.parse_args()
    sys.exit(main(cli_args))
