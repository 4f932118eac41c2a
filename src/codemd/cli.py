"""
CLI entrypoint for codemd package.
"""
import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from . import __version__
from .config import IgnoreConfig, ScanConfig
from .core import generate
from .errors import CodemdError


def version_info() -> str:
    return f"codemd version {__version__}"


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s", force=True)


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="codemd",
        description="Generate a markdown document containing the project tree + file contents.",
        epilog=(
            "examples:\n"
            "  codemd --version\n"
            "  codemd -t go,java\n"
            "  codemd -t go -e vendor,node_modules\n"
            "  codemd -m 20 -t go -c\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    p.add_argument("--root", type=Path, default=Path("."), help="Project root dir")
    p.add_argument("-t", "--type", default="", help="File extensions to include (comma separated)")
    p.add_argument(
        "-o",
        "--out",
        type=Path,
        default=Path("CODE.md"),
        help="Output file (default: CODE.md)",
    )
    p.add_argument("-e", "--exclude", default="", help="Directory names to exclude (comma separated)")
    p.add_argument("-c", "--codeignore", action="store_true", help="Honour the root .codeignore file")
    p.add_argument("--no-gitignore", action="store_true", help="Do not honour the root .gitignore file")
    p.add_argument(
        "--config",
        type=Path,
        help="Path to a file with extra ignore patterns (one per line)",
    )
    p.add_argument("--include-hidden", action="store_true", help="Include entries starting with '.' or '_'")
    p.add_argument(
        "--strict-patterns",
        action="store_true",
        help="Fail on malformed ignore patterns instead of skipping them",
    )
    p.add_argument(
        "-m",
        "--maxsize",
        type=int,
        default=10,
        help="Maximum size of one output file in MB before splitting (default 10)",
    )
    p.add_argument("-v", "--version", action="store_true", help="Print version information")
    p.add_argument("--verbose", action="store_true", help="Verbose logging")
    return p.parse_args(argv)


def build_config(ns: argparse.Namespace) -> ScanConfig:
    return ScanConfig(
        root=ns.root,
        output=ns.out,
        file_types=ns.type,
        exclude_dirs=ns.exclude,
        include_hidden=ns.include_hidden,
        use_gitignore=not ns.no_gitignore,
        use_codeignore=ns.codeignore,
        extra_patterns=ns.config,
        max_size_mb=ns.maxsize,
        verbose=ns.verbose,
        ignore=IgnoreConfig(strict=ns.strict_patterns),
    )


def main(argv: Optional[List[str]] = None) -> None:
    try:
        ns = _parse_args(argv)

        if ns.version:
            print(version_info())
            sys.exit(0)

        setup_logging(ns.verbose)

        try:
            config = build_config(ns)
        except ValidationError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

        try:
            generate(config)
        except CodemdError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)

    except KeyboardInterrupt:
        print("\nCancelled.", file=sys.stderr)
        sys.exit(1)
    except Exception as e:
        print(f"Unexpected error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
