"""
flashdeck CLI - interactive flashcard review.

Options:
    -import PATH    Load a collection file at startup
    -export PATH    Save the collection to PATH on exit
    -log PATH       Save the session transcript to PATH on exit
    --verbose       Debug logging on stderr

The double-dash spellings (--import, --export, --log) work too.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from .session import Session

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="flashdeck",
        description="flashdeck - term/definition flashcards with failure tracking",
    )
    parser.add_argument(
        "-import", "--import",
        dest="import_path",
        default="",
        metavar="PATH",
        help="Collection file to load at startup",
    )
    parser.add_argument(
        "-export", "--export",
        dest="export_path",
        default="",
        metavar="PATH",
        help="Collection file to save on exit",
    )
    parser.add_argument(
        "-log", "--log",
        dest="log_path",
        default="",
        metavar="PATH",
        help="File to save the session transcript to on exit",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output to stderr",
    )
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    session = Session(export_path=args.export_path, log_path=args.log_path)
    return session.run(import_path=args.import_path)


if __name__ == "__main__":
    sys.exit(main())
