"""
Command-line interface for the Redmine to GitLab migration tool.
"""

from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import asdict
from typing import TYPE_CHECKING

from .config import load_config
from .exceptions import ConfigurationError
from .migrator import MigrationStats, RedmineToGitlabMigrator
from .utils import setup_logging

if TYPE_CHECKING:
    from collections.abc import Sequence

DEFAULT_CONFIGURATION_FILENAME = "config.json"


def _positive_int(value: str) -> int:
    number = int(value)
    if number < 1:
        msg = f"must be at least 1, got {number}"
        raise argparse.ArgumentTypeError(msg)
    return number


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(description="Export issues of Redmine and import them into GitLab.")

    _ = parser.add_argument(
        "--configuration-filename",
        "-c",
        default=DEFAULT_CONFIGURATION_FILENAME,
        help=f"The configuration file to use for the import (default: {DEFAULT_CONFIGURATION_FILENAME})",
    )

    _ = parser.add_argument(
        "--first-ticket-number",
        "-f",
        type=_positive_int,
        default=1,
        help="The first ticket number to import (default: 1)",
    )

    _ = parser.add_argument(
        "--project-id",
        "-p",
        type=int,
        action="append",
        dest="project_ids",
        help="Numeric Redmine project ID to import tickets from. Can be specified multiple times. "
        "Omit to import issues from all projects.",
    )

    _ = parser.add_argument("--yes", "-y", action="store_true", help="Do not ask for confirmation")

    _ = parser.add_argument(
        "--verbose",
        "-v",
        action="count",
        default=0,
        help="Increase console verbosity (-v for progress, -vv for debug output)",
    )

    return parser.parse_args(argv)


def confirm_range(ticket_range: range) -> bool:
    """Ask the user to confirm the range of tickets to import."""
    first, last = ticket_range.start, ticket_range.stop - 1
    try:
        answer = input(
            f"The most recent ticket number in Redmine is #{last}.\n"
            f"I will import all tickets, starting from #{first} up to #{last}. Is that correct? [Yn] "
        )
    except EOFError:
        return False
    return answer.strip().lower() in ("", "y", "yes")


def _print_report(stats: MigrationStats) -> None:
    print("Migration finished:")
    for key, value in asdict(stats).items():
        shown = len(value) if isinstance(value, list) else value
        print(f"  {key.replace('_', ' ')}: {shown}")


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = parse_arguments(argv)

    verbosity: int = getattr(args, "verbose", 0)
    setup_logging(verbosity=verbosity)
    logger = logging.getLogger(__name__)

    try:
        config = load_config(args.configuration_filename)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        for error in e.errors:
            print(f"  {error}", file=sys.stderr)
        sys.exit(1)

    try:
        migrator = RedmineToGitlabMigrator(config, project_ids=args.project_ids)

        print("Fetching ticket number of most recent ticket from Redmine...")
        ticket_range = migrator.resolve_ticket_range(args.first_ticket_number)
        if not ticket_range:
            print(f"First ticket number of {args.first_ticket_number} is beyond the most recent ticket. Nothing to do.")
            sys.exit(0)

        if not args.yes and not confirm_range(ticket_range):
            print("Aborted.")
            sys.exit(0)

        stats = migrator.migrate(ticket_range)
        _print_report(stats)

    except Exception:
        logger.exception("Migration failed")
        sys.exit(1)
