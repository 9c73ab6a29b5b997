"""SafeStory unified CLI dispatcher.

All subcommands live in ``safestory/commands/*.py`` and expose a
``register(subparsers)`` function that adds themselves to argparse.
"""
from __future__ import annotations

import argparse
import logging
import sys

from shared.config import LOG_LEVEL


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="safestory",
        description="SafeStory: branching safety-story normalizer and reader",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every repair (DEBUG)")
    sub = parser.add_subparsers(dest="command")

    # Import and register each command
    from safestory.commands import normalize, play, serve, validate

    normalize.register(sub)
    validate.register(sub)
    play.register(sub)
    serve.register(sub)

    args = parser.parse_args(argv)

    logging.basicConfig(level="DEBUG" if args.verbose else LOG_LEVEL, stream=sys.stderr)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    # Each command stores a ``func`` on the namespace
    rc = args.func(args)
    sys.exit(rc or 0)
