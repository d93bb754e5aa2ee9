#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Command pattern implementation for the CLI.

Each command is a class that implements the Command interface:
- execute(args, session) -> int

Commands are registered in COMMAND_REGISTRY and dispatched via dispatch_command().
"""

import sys
from abc import ABC, abstractmethod
from argparse import Namespace
from pathlib import Path
from typing import Dict, Optional, Type

from drinktracker.models import AMOUNT_UNIT, ExportDocument, parse_timestamp
from drinktracker.session import TrackerSession


class Command(ABC):
    """Abstract base class for all CLI commands.

    Each command encapsulates the logic for one UI-facing operation.
    Commands receive parsed args and a TrackerSession instance.
    """

    @abstractmethod
    def execute(self, args: Namespace, session: TrackerSession) -> int:
        """Execute the command.

        Args:
            args: Parsed command-line arguments
            session: TrackerSession instance

        Returns:
            Exit code (0 for success, non-zero for errors)
        """
        pass


def _select_or_report(session: TrackerSession, user_id: str) -> bool:
    """Select user_id; print the create hint and return False if unknown."""
    result = session.search(user_id)
    if not result.found:
        print(result.format(), file=sys.stderr)
    return result.found


def _emit_export(args: Namespace, session: TrackerSession, document: ExportDocument) -> int:
    if getattr(args, "stdout", False):
        print(document.content)
        return 0
    output_dir = Path(getattr(args, "output_dir", None) or ".")
    path = document.write(output_dir)
    session.logger.export_written(document.filename, document.row_count, str(path))
    print(f"Exported {document.row_count} record(s) to {path}")
    return 0


# =============================================================================
# Selection Commands
# =============================================================================


class SearchCommand(Command):
    """Look up a user by exact ID."""

    def execute(self, args: Namespace, session: TrackerSession) -> int:
        result = session.search(args.user_id)
        print(result.format())
        return 0


class SuggestCommand(Command):
    """List user IDs matching a partial ID."""

    def execute(self, args: Namespace, session: TrackerSession) -> int:
        matches = session.suggest(args.partial)
        if not matches:
            print("(no matching users)")
        for user_id in matches:
            print(user_id)
        return 0


class CreateCommand(Command):
    """Create a user with an empty history."""

    def execute(self, args: Namespace, session: TrackerSession) -> int:
        existed = session.lookup_user(args.user_id) is not None
        records = session.create_user(args.user_id)
        if existed and records:
            print(f"User {args.user_id} already exists ({len(records)} record(s) kept)")
        elif existed:
            print(f"Reset user {args.user_id}")
        else:
            print(f"Created user {args.user_id}")
        return 0


# =============================================================================
# Record Commands
# =============================================================================


class AddCommand(Command):
    """Add a consumption record for a user."""

    def execute(self, args: Namespace, session: TrackerSession) -> int:
        if not _select_or_report(session, args.user_id):
            return 1
        record = session.add_record(args.amount)
        if record is None:
            print(f"No record added: invalid amount {args.amount!r}", file=sys.stderr)
            return 1
        amount = session.options.format_amount(record.amount)
        print(f"Added {amount} {AMOUNT_UNIT} for {args.user_id}")

        stats = session.stats()
        if stats.warning:
            print(
                f"Warning! Please wait {stats.waiting_remaining} minutes before next consumption."
            )
        return 0


class RecordsCommand(Command):
    """List a user's records in local time."""

    def execute(self, args: Namespace, session: TrackerSession) -> int:
        if not _select_or_report(session, args.user_id):
            return 1
        if not session.records:
            print("(no records)")
            return 0
        for record in session.records:
            local = record.timestamp_dt.astimezone()
            amount = session.options.format_amount(record.amount)
            print(f"{local.strftime('%Y-%m-%d %H:%M:%S')}  {amount} {AMOUNT_UNIT}")
        print(f"\nTotal: {len(session.records)} record(s)")
        return 0


class StatsCommand(Command):
    """Show consumption statistics for a user."""

    def execute(self, args: Namespace, session: TrackerSession) -> int:
        if not _select_or_report(session, args.user_id):
            return 1
        now = parse_timestamp(args.at) if getattr(args, "at", None) else None
        print(session.stats(now).format())
        return 0


# =============================================================================
# Settings Commands
# =============================================================================


class WaitCommand(Command):
    """Show or change the waiting time between drinks."""

    def execute(self, args: Namespace, session: TrackerSession) -> int:
        minutes: Optional[str] = getattr(args, "minutes", None)
        if minutes is not None and not session.set_waiting_minutes(minutes):
            print(f"Waiting time unchanged: {minutes!r} not applied", file=sys.stderr)
            return 1
        print(f"{session.waiting_minutes} minutes between drinks")
        return 0


# =============================================================================
# Export Commands
# =============================================================================


class ExportCommand(Command):
    """Export one user's records as CSV."""

    def execute(self, args: Namespace, session: TrackerSession) -> int:
        if not _select_or_report(session, args.user_id):
            return 1
        document = session.export_user()
        return _emit_export(args, session, document)


class ExportAllCommand(Command):
    """Export every user's records as CSV."""

    def execute(self, args: Namespace, session: TrackerSession) -> int:
        return _emit_export(args, session, session.export_all())


# =============================================================================
# Command Registry
# =============================================================================


COMMAND_REGISTRY: Dict[str, Type[Command]] = {
    "search": SearchCommand,
    "suggest": SuggestCommand,
    "create": CreateCommand,
    "add": AddCommand,
    "records": RecordsCommand,
    "stats": StatsCommand,
    "wait": WaitCommand,
    "export": ExportCommand,
    "export-all": ExportAllCommand,
}


# =============================================================================
# Dispatch Function
# =============================================================================


def dispatch_command(args: Namespace, session: TrackerSession) -> int:
    """Dispatch to appropriate command handler.

    Args:
        args: Parsed arguments with 'command' attribute
        session: TrackerSession instance

    Returns:
        Exit code (0 for success, 1 for unknown command)
    """
    command_name = args.command
    if command_name not in COMMAND_REGISTRY:
        print(f"Unknown command: {command_name}")
        return 1

    command_class = COMMAND_REGISTRY[command_name]
    command = command_class()
    return command.execute(args, session)
