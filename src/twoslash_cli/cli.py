"""Command-line interface for twoslash-cli.

Usage::

    twoslash docs/intro.md out/                       # writes out/intro.html
    twoslash docs/intro.md out/intro.html             # explicit output file
    twoslash samples/ out/ --split-out-code-samples   # out/mds/code-N.html
    twoslash samples/ out/ --lint --tsc "npx tsc"     # type check only
"""

from __future__ import annotations

import argparse
import logging
import shlex
import sys
from pathlib import Path

from twoslash_cli import __version__
from twoslash_cli.converter import ConversionRequest, run_on_file
from twoslash_cli.paths import can_convert


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="twoslash",
        description="Render Markdown and TS/JS files with twoslash code samples to HTML.",
    )
    parser.add_argument(
        "source",
        help="File or directory to convert.",
    )
    parser.add_argument(
        "destination",
        help="Output directory, or an explicit .html file path.",
    )
    parser.add_argument(
        "--split-out-code-samples",
        action="store_true",
        help="Write every rendered code sample to <destination>/mds/code-N.html.",
    )
    parser.add_argument(
        "--also-render-source",
        action="store_true",
        help="For TS/JS files, also render the code without twoslash.",
    )
    parser.add_argument(
        "--lint",
        action="store_true",
        help="Run the samples through twoslash without writing any output.",
    )
    parser.add_argument(
        "--tsc",
        metavar="COMMAND",
        help="Type checker command used for twoslash samples (e.g. 'npx tsc').",
    )
    parser.add_argument(
        "--scratch-dir",
        metavar="DIR",
        help="Directory for intermediate Markdown files (default: system temp dir).",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Print debug information.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    return parser


def _collect_sources(source: Path) -> list[Path]:
    if source.is_dir():
        return [p for p in sorted(source.iterdir()) if can_convert(p)]
    return [source]


def main(argv: list[str] | None = None) -> int:
    """Entry point for the CLI."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )

    source = Path(args.source)
    if not source.exists():
        print(f"Error: file not found: {source}", file=sys.stderr)
        return 1

    type_checker = tuple(shlex.split(args.tsc)) if args.tsc else None
    scratch_dir = Path(args.scratch_dir) if args.scratch_dir else None

    for path in _collect_sources(source):
        request = ConversionRequest(
            source=path,
            destination=args.destination,
            split_out_code_samples=args.split_out_code_samples,
            also_render_source=args.also_render_source,
            lint=args.lint,
            scratch_dir=scratch_dir,
            type_checker=type_checker,
        )
        try:
            run_on_file(request)
        except Exception as exc:
            print(f"Error: {path}: {exc}", file=sys.stderr)
            return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
