#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
TrackerSession - the operations the CLI and TUI call into.

Holds the currently selected user and the waiting-time setting, and
performs every read-modify-write against the injected Store. Each
operation re-reads the whole user mapping before acting on it.
"""

import math
from datetime import date, datetime
from typing import Any, Iterator, List, Optional

from drinktracker import aggregator
from drinktracker.debug_logger import DebugLogger, get_logger
from drinktracker.errors import (
    CorruptedStoreError,
    InvalidInputError,
    NoUserSelectedError,
    StorageReadError,
)
from drinktracker.exporter import build_all_users_export, build_user_export
from drinktracker.models import (
    DEFAULT_WAITING_MINUTES,
    AmountPrecision,
    ConsumptionStats,
    Document,
    ExportDocument,
    Record,
    SearchResult,
    TrackerOptions,
    parse_int_prefix,
    utc_now,
)
from drinktracker.store import Store


def parse_amount(value: Any, precision: AmountPrecision = AmountPrecision.DECIMAL) -> float:
    """Parse a user-entered amount.

    Raises:
        InvalidInputError: If empty, non-numeric, non-finite or negative
    """
    if value is None or isinstance(value, bool):
        raise InvalidInputError("Amount is required")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise InvalidInputError("Amount is required")
        try:
            amount = float(text)
        except ValueError:
            raise InvalidInputError(f"Amount is not a number: {value!r}") from None
    else:
        try:
            amount = float(value)
        except (TypeError, ValueError):
            raise InvalidInputError(f"Amount is not a number: {value!r}") from None

    if not math.isfinite(amount):
        raise InvalidInputError(f"Amount must be finite: {value!r}")
    if amount < 0:
        raise InvalidInputError(f"Amount must not be negative: {value!r}")
    if precision == AmountPrecision.INTEGER:
        return int(amount)
    return amount


class TrackerSession:
    """
    One interactive session against a Store.

    Attributes:
        current_user: Selected user ID, or None
        records: The selected user's records as last loaded
        waiting_minutes: Recommended minutes between drinks
        show_new_user_prompt: True after searching for an unknown ID
        pending_user_id: The unknown ID the create prompt refers to
        warnings: Messages for the UI (e.g. a corrupted store was reset)
    """

    def __init__(
        self,
        store: Store,
        options: Optional[TrackerOptions] = None,
        logger: Optional[DebugLogger] = None,
    ):
        self.store = store
        self.options = options or TrackerOptions()
        self.logger = logger or get_logger()
        self.current_user: Optional[str] = None
        self.records: List[Record] = []
        self.show_new_user_prompt = False
        self.pending_user_id: Optional[str] = None
        self.warnings: List[str] = []
        self.waiting_minutes = self._load_waiting_minutes()

    # -------------------------------------------------------------------------
    # Store access
    # -------------------------------------------------------------------------

    def _load_waiting_minutes(self) -> int:
        if not self.options.configurable_wait:
            return DEFAULT_WAITING_MINUTES
        try:
            return self.store.load_waiting_minutes()
        except CorruptedStoreError as e:
            self._report_corruption(e)
            return DEFAULT_WAITING_MINUTES
        except StorageReadError as e:
            self._report_unreadable(e)
            return DEFAULT_WAITING_MINUTES

    def _load_users(self) -> Document:
        """Load the user mapping, falling back to empty on corruption.

        A file that cannot be read at all is not treated as empty: the
        StorageReadError propagates so nothing is written over it.
        """
        try:
            return self.store.load()
        except CorruptedStoreError as e:
            self._report_corruption(e)
            return {}

    def _report_corruption(self, error: CorruptedStoreError) -> None:
        message = f"Stored data could not be read and was ignored: {error}"
        self.logger.error(operation="load_store", error=str(error))
        if message not in self.warnings:
            self.warnings.append(message)

    def _report_unreadable(self, error: StorageReadError) -> None:
        message = f"Stored data could not be read: {error}"
        self.logger.error(operation="read_store", error=str(error))
        if message not in self.warnings:
            self.warnings.append(message)

    # -------------------------------------------------------------------------
    # Selection
    # -------------------------------------------------------------------------

    def lookup_user(self, user_id: str) -> Optional[List[Record]]:
        """Exact-match lookup. Returns the records, or None if unknown."""
        return self._load_users().get(user_id)

    def iter_suggestions(self, partial_id: str) -> Iterator[str]:
        """Yield existing IDs containing partial_id, case-insensitively.

        Blank input yields nothing.
        """
        if not partial_id.strip():
            return
        needle = partial_id.lower()
        for user_id in self._load_users():
            if needle in user_id.lower():
                yield user_id

    def suggest(self, partial_id: str) -> List[str]:
        """List form of iter_suggestions, in store insertion order."""
        return list(self.iter_suggestions(partial_id))

    def search(self, user_id: str) -> SearchResult:
        """Select user_id if it exists, otherwise enter the create prompt state."""
        records = self.lookup_user(user_id)
        self.logger.user_search(user_id, records is not None)
        if records is not None:
            self._select(user_id, records)
            return SearchResult(user_id=user_id, found=True, records=list(records))

        self.current_user = None
        self.records = []
        self.show_new_user_prompt = True
        self.pending_user_id = user_id
        return SearchResult(user_id=user_id, found=False)

    def select_suggestion(self, user_id: str) -> SearchResult:
        return self.search(user_id)

    def _select(self, user_id: str, records: List[Record]) -> None:
        self.current_user = user_id
        self.records = list(records)
        self.show_new_user_prompt = False
        self.pending_user_id = None

    def create_user(self, user_id: str) -> List[Record]:
        """
        Create user_id with an empty record list and select it.

        If the ID already exists its history is reset to empty, unless
        options.reset_existing_on_create is False, in which case the existing
        user is selected unchanged.

        Raises:
            InvalidInputError: If user_id is blank
            StorageWriteError: If the store cannot be written
        """
        if not user_id or not user_id.strip():
            raise InvalidInputError("User ID is required")

        users = self._load_users()
        exists = user_id in users
        if exists and not self.options.reset_existing_on_create:
            self._select(user_id, users[user_id])
            return list(users[user_id])

        users[user_id] = []
        self.store.save(users)
        self.logger.user_created(user_id, reset_existing=exists)
        self._select(user_id, [])
        return []

    # -------------------------------------------------------------------------
    # Records
    # -------------------------------------------------------------------------

    def append_record(self, amount: Any, now: Optional[datetime] = None) -> Record:
        """
        Append a record for the current user and persist the whole mapping.

        Raises:
            NoUserSelectedError: If no user is selected
            InvalidInputError: If amount is empty, non-numeric or negative
            StorageWriteError: If the store cannot be written
        """
        if self.current_user is None:
            raise NoUserSelectedError("Select or create a user first")
        value = parse_amount(amount, self.options.amount_precision)

        record = Record.create(value, now)
        users = self._load_users()
        users[self.current_user] = list(users.get(self.current_user, [])) + [record]
        self.store.save(users)

        self.records = users[self.current_user]
        self.logger.record_added(self.current_user, value, len(self.records))
        return record

    def add_record(self, amount: Any, now: Optional[datetime] = None) -> Optional[Record]:
        """UI boundary for append_record: rejected input is a logged no-op."""
        try:
            return self.append_record(amount, now)
        except (InvalidInputError, NoUserSelectedError) as e:
            self.logger.input_rejected("add_record", str(e))
            return None

    # -------------------------------------------------------------------------
    # Waiting time
    # -------------------------------------------------------------------------

    def set_waiting_minutes(self, value: Any) -> bool:
        """
        Apply and persist a new waiting time.

        Only positive integers are accepted; anything else is ignored.
        In the fixed-wait variant the waiting time never changes.

        Returns:
            True if the value was applied
        """
        if not self.options.configurable_wait:
            self.logger.input_rejected("set_waiting_minutes", "waiting time is fixed")
            return False
        minutes = parse_int_prefix(value)
        if minutes is None or minutes <= 0:
            self.logger.input_rejected("set_waiting_minutes", f"not a positive integer: {value!r}")
            return False

        old = self.waiting_minutes
        self.waiting_minutes = minutes
        self.store.save_waiting_minutes(minutes)
        self.logger.waiting_time_changed(old, minutes)
        return True

    # -------------------------------------------------------------------------
    # Derived views
    # -------------------------------------------------------------------------

    def stats(self, now: Optional[datetime] = None) -> ConsumptionStats:
        """Statistics for the current user from a single sampled now."""
        now = now or utc_now()
        result = aggregator.compute_stats(
            self.records,
            self.waiting_minutes,
            now,
            options=self.options,
        )
        if self.current_user is None:
            result.warning = False
        else:
            self.logger.stats_computed(self.current_user, result.record_count, result.warning)
        return result

    def export_user(self, today: Optional[date] = None) -> Optional[ExportDocument]:
        """Export the current user's stored records, or None if none selected."""
        if self.current_user is None:
            return None
        records = self._load_users().get(self.current_user, [])
        return build_user_export(self.current_user, records, today)

    def export_all(self, today: Optional[date] = None) -> ExportDocument:
        """Export every user with at least one record."""
        return build_all_users_export(self._load_users(), today)

    def user_ids(self) -> List[str]:
        return list(self._load_users())
