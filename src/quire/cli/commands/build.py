"""
quire build command.

SUMMARY: Render every content template into an output directory
"""

from __future__ import annotations

import argparse
import sys

from quire.cli import OutputFormatter, add_data_flag, add_layout_flag, add_standard_flags, load_data, make_engine
from quire.core.build import build_site

SUMMARY = "Render every content template into an output directory"


def register_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--out",
        "-o",
        required=True,
        help="Output directory; pages are written as <out>/<name>.html",
    )
    parser.add_argument(
        "--exclude",
        default="",
        help="Skip templates whose name starts with this prefix (e.g. partials/)",
    )
    add_layout_flag(parser)
    add_data_flag(parser)
    add_standard_flags(parser)


def main(args: argparse.Namespace) -> int:
    formatter = OutputFormatter(json_mode=getattr(args, "json", False))
    try:
        engine = make_engine(args)
        result = build_site(
            engine,
            args.out,
            layout=args.layout,
            data=load_data(args.data),
            exclude_prefix=args.exclude,
        )
        formatter.success(
            {"written": [str(p) for p in result.written], "skipped": result.skipped},
            f"Wrote {len(result.written)} pages to {args.out}",
        )
        return 0
    except Exception as e:
        formatter.error(e, error_code="build_error")
        return 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser()
    register_args(parser)
    cli_args = parser.parse_args()
    sys.exit(main(cli_args))
