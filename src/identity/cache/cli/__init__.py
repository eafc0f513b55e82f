from __future__ import annotations

import argparse
import logging
import sys
from types import ModuleType

from identity.cache import DEFAULT_CONFIG_FILE_PATH
from identity.cache.cli import clear, migrate, status

_SUBCOMMANDS: list[ModuleType] = [status, migrate, clear]


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="identity-cache",
        description="Shared token cache maintenance",
    )
    parser.add_argument("-v", "--verbose", action="store_true", default=False, help="Enable debug logging")
    parser.add_argument(
        "--config",
        default=str(DEFAULT_CONFIG_FILE_PATH),
        metavar="PATH",
        help=f"Path to config file (default: {DEFAULT_CONFIG_FILE_PATH})",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for subcommand in _SUBCOMMANDS:
        subcommand.register_parser(subparsers)

    return parser


def _configure_logging(verbose: bool = False) -> None:
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    logging.getLogger("identity.cache").addHandler(handler)
    logging.getLogger("identity.cache").setLevel(logging.DEBUG if verbose else logging.WARNING)


def main(args: list[str] | None = None) -> int:
    parser = create_parser()
    parsed = parser.parse_args(args)
    _configure_logging(verbose=parsed.verbose)

    for subcommand in _SUBCOMMANDS:
        if parsed.command == subcommand.COMMAND:
            return subcommand.run(parsed)

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
