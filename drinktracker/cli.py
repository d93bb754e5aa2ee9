#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
CLI interface for Drink Tracker.

Usage:
    drink-tracker <command> [args]
    python3 -m drinktracker.cli <command> [args]

With no command the Textual TUI is launched.
"""

import argparse
import sys
from typing import List, Optional

from drinktracker._version import __version__
from drinktracker.commands import dispatch_command
from drinktracker.config import load_options
from drinktracker.errors import TrackerError
from drinktracker.models import AmountPrecision, TrackerOptions
from drinktracker.session import TrackerSession
from drinktracker.store import FileKeyValueStore, Store


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="drink-tracker",
        description="Drink Tracker - personal consumption log",
    )
    parser.add_argument(
        "--version", action="version", version=f"drink-tracker {__version__}"
    )
    parser.add_argument(
        "--fixed-wait", action="store_true",
        help="Always use the default 60 minute waiting time",
    )
    parser.add_argument(
        "--integer-amounts", action="store_true",
        help="Record and display whole millilitres only",
    )
    parser.add_argument(
        "--keep-existing", action="store_true",
        help="Creating an existing user selects it instead of resetting its history",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # search command
    search_parser = subparsers.add_parser("search", help="Look up a user by ID")
    search_parser.add_argument("user_id", help="Exact user ID")

    # suggest command
    suggest_parser = subparsers.add_parser("suggest", help="List user IDs containing text")
    suggest_parser.add_argument("partial", help="Part of a user ID (case-insensitive)")

    # create command
    create_parser = subparsers.add_parser("create", help="Create a new user")
    create_parser.add_argument("user_id", help="New user ID")

    # add command
    add_parser = subparsers.add_parser("add", help="Add a consumption record")
    add_parser.add_argument("user_id", help="User ID")
    add_parser.add_argument("amount", help="Amount in ml")

    # records command
    records_parser = subparsers.add_parser("records", help="List a user's records")
    records_parser.add_argument("user_id", help="User ID")

    # stats command
    stats_parser = subparsers.add_parser("stats", help="Show consumption statistics")
    stats_parser.add_argument("user_id", help="User ID")
    stats_parser.add_argument("--at", help="Reference time (ISO-8601) instead of now")

    # wait command
    wait_parser = subparsers.add_parser("wait", help="Show or set minutes between drinks")
    wait_parser.add_argument("minutes", nargs="?", help="New waiting time in minutes")

    # export command
    export_parser = subparsers.add_parser("export", help="Export one user's records as CSV")
    export_parser.add_argument("user_id", help="User ID")
    export_parser.add_argument("--output-dir", "-o", help="Directory for the CSV file")
    export_parser.add_argument("--stdout", action="store_true", help="Print CSV instead of writing a file")

    # export-all command
    export_all_parser = subparsers.add_parser("export-all", help="Export all users' records as CSV")
    export_all_parser.add_argument("--output-dir", "-o", help="Directory for the CSV file")
    export_all_parser.add_argument("--stdout", action="store_true", help="Print CSV instead of writing a file")

    # tui command
    subparsers.add_parser("tui", help="Launch the interactive TUI (default)")

    return parser


def options_from_args(args: argparse.Namespace) -> TrackerOptions:
    """settings.json options with command-line overrides applied."""
    options = load_options()
    if args.fixed_wait:
        options.configurable_wait = False
    if args.integer_amounts:
        options.amount_precision = AmountPrecision.INTEGER
    if args.keep_existing:
        options.reset_existing_on_create = False
    return options


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    options = options_from_args(args)
    store = Store(FileKeyValueStore())

    if not args.command or args.command == "tui":
        from drinktracker.tui.app import DrinkTrackerApp

        DrinkTrackerApp(store=store, options=options).run()
        return 0

    try:
        session = TrackerSession(store, options)
        code = dispatch_command(args, session)
        for warning in session.warnings:
            print(f"Warning: {warning}", file=sys.stderr)
        return code
    except (TrackerError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
