#!/usr/bin/env python3
"""lazyloader CLI - inspect how module names resolve and check that they import.

Examples:
  lazyloader resolve postgres --prefix db.
  lazyloader resolve core --base-dir src/plugins
  lazyloader check db.postgres db.sqlite
  lazyloader --config loader.yaml check postgres
"""

import argparse
import logging
import os
import sys

from lazyloader.config import read_pyproject, read_yaml
from lazyloader.errors import ConfigFileError, LoadError
from lazyloader.loading import LazyLoader
from lazyloader.registry import Registry


class Colors:
    """ANSI color codes for terminal output."""

    GREEN = "\033[0;32m"
    RED = "\033[0;31m"
    RESET = "\033[0m"


def log_info(message: str) -> None:
    """Log an informational message."""
    print(f"{Colors.GREEN}[ INFO ]{Colors.RESET} {message}")


def log_error(message: str) -> None:
    """Log an error message."""
    print(f"{Colors.RED}[ ERROR ]{Colors.RESET} {message}", file=sys.stderr)


def build_loader(args: argparse.Namespace, lazy: bool) -> LazyLoader:
    """Create a loader from the config file (or pyproject.toml) and CLI flags."""
    defaults = read_yaml(args.config) if args.config else read_pyproject()
    registry = Registry(defaults)

    # Base detection is relative to the caller's file, which is meaningless
    # for a console script, so it only runs against an explicit directory.
    opts = {"lazy": lazy, "detect_base": args.base_dir is not None}
    if args.prefix is not None:
        opts["prefix"] = args.prefix
    if args.base_dir is not None:
        opts["base_dir"] = os.path.abspath(args.base_dir)
    return registry.new(opts)


def command_resolve(args: argparse.Namespace) -> int:
    """Print the resolved module name and cache key of each name."""
    loader = build_loader(args, lazy=True)
    for name in args.names:
        print(f"{name} -> {loader.resolve(name)}  [{loader.key_for(name)}]")
    return 0


def command_check(args: argparse.Namespace) -> int:
    """Import each name eagerly and report failures.

    Returns:
        0 if every module imported, 1 otherwise
    """
    loader = build_loader(args, lazy=False)
    failures = 0
    for name in args.names:
        try:
            loader.load(name)
        except LoadError as e:
            log_error(str(e))
            failures += 1
        else:
            log_info(f"{loader.resolve(name)} imported")
    return 1 if failures else 0


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser."""
    parser = argparse.ArgumentParser(
        prog="lazyloader",
        description="Inspect lazyloader name resolution and check imports",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("\n\n", 1)[1],
    )
    parser.add_argument("--config", help="YAML file with loader defaults")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command", help="Available commands", required=True)

    for command, handler, help_text in (
        ("resolve", command_resolve, "Show what module names resolve to"),
        ("check", command_check, "Import modules and report failures"),
    ):
        subparser = subparsers.add_parser(command, help=help_text, description=help_text)
        subparser.add_argument("names", nargs="+", help="Module names to process")
        subparser.add_argument("--prefix", help="Prefix prepended to every name")
        subparser.add_argument(
            "--base-dir", help="Directory to detect the module base from (enables detection)"
        )
        subparser.set_defaults(handler=handler)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s - %(levelname)s - %(message)s",
    )

    try:
        return args.handler(args)
    except (FileNotFoundError, ConfigFileError) as e:
        log_error(str(e))
        return 2
    except KeyboardInterrupt:
        log_error("Operation interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
