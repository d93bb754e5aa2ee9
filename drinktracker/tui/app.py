#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Main TUI application for Drink Tracker.

A single screen mirroring the tracker workflow:
- Waiting time setting (minutes between drinks)
- User ID search with live suggestions and a create-user prompt
- Add-record form for the selected user
- Warning banner while the recommended wait has not elapsed
- Statistics panel and record table
- CSV export for the selected user or for all users
"""

from pathlib import Path
from typing import Optional

from rich.markup import escape
from rich.text import Text
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import (
    Button,
    DataTable,
    Footer,
    Header,
    Input,
    OptionList,
    Static,
)
from textual.widgets.option_list import Option

from drinktracker.errors import InvalidInputError, TrackerError
from drinktracker.models import (
    AMOUNT_UNIT,
    AmountPrecision,
    ExportDocument,
    TrackerOptions,
    utc_now,
)
from drinktracker.session import TrackerSession
from drinktracker.store import Store
from drinktracker.tui.app_state import AppState
from drinktracker.tui.formatting import format_distance_to_now, format_local_datetime


class DrinkTrackerApp(App):
    """
    Textual application for recording consumption and viewing statistics.

    All domain state lives in the TrackerSession; the app only renders it
    and forwards user actions.
    """

    TITLE = "Alcohol Consumption Tracker"
    CSS_PATH = "styles/app.tcss"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("f2", "export_user", "Export user"),
        Binding("f3", "export_all", "Export all"),
        Binding("escape", "hide_suggestions", "Hide suggestions", show=False),
    ]

    def __init__(
        self,
        store: Optional[Store] = None,
        options: Optional[TrackerOptions] = None,
        export_dir: Optional[Path] = None,
    ) -> None:
        """
        Initialize the app.

        Args:
            store: Store to read and write (defaults to the file store)
            options: Variant options (defaults to configurable/decimal)
            export_dir: Directory for CSV exports (defaults to cwd)
        """
        super().__init__()
        self.session = TrackerSession(store or Store(), options)
        self.state = AppState()
        if export_dir is not None:
            self.state.export_dir = Path(export_dir)
        self._refresh_timer = None

    def compose(self) -> ComposeResult:
        """Compose the app layout."""
        yield Header()

        with VerticalScroll(id="main"):
            with Horizontal(classes="row"):
                yield Static("Alcohol Consumption Tracker", classes="app-title")
                yield Button("Export All", id="export-all-btn")

            with Vertical(id="settings-panel", classes="panel"):
                yield Static("Waiting Time Settings", classes="section-title")
                with Horizontal(classes="row"):
                    yield Input(
                        value=str(self.session.waiting_minutes),
                        type="integer",
                        id="waiting-input",
                        disabled=not self.session.options.configurable_wait,
                    )
                    yield Static("minutes between drinks", classes="row-label")

            with Horizontal(classes="row"):
                yield Input(placeholder="Enter User ID", id="user-input")
                yield Button("Search", id="search-btn", variant="primary")
            yield OptionList(id="suggestions")

            with Vertical(id="new-user-prompt", classes="panel"):
                yield Static("User not found. Would you like to create a new user?")
                yield Button("Create New User", id="create-btn", variant="success")

            yield Static("", id="warning", classes="panel")

            with Vertical(id="add-panel"):
                yield Static("", id="add-title", classes="section-title")
                with Horizontal(classes="row"):
                    yield Input(
                        placeholder=f"Amount ({AMOUNT_UNIT})",
                        type=self._amount_input_type(),
                        id="amount-input",
                    )
                    yield Button("Add Record", id="add-btn", variant="success")

            with Vertical(id="stats-panel", classes="panel"):
                with Horizontal(classes="row"):
                    yield Static("Consumption Statistics", classes="section-title")
                    yield Button("Export", id="export-btn")
                yield Static("", id="stats")

            yield Static("Consumption Records", id="records-title", classes="section-title")
            yield DataTable(id="records", cursor_type="row")

        yield Footer()

    def _amount_input_type(self) -> str:
        if self.session.options.amount_precision == AmountPrecision.INTEGER:
            return "integer"
        return "number"

    def on_mount(self) -> None:
        """Initialize on app mount."""
        table = self.query_one("#records", DataTable)
        table.add_columns("Amount", "Time")
        self.query_one("#suggestions", OptionList).display = False
        self._refresh_view()
        for warning in self.session.warnings:
            self.notify(warning, severity="warning")
        self._refresh_timer = self.set_interval(self.state.refresh_seconds, self._refresh_view)

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _refresh_view(self) -> None:
        """Re-render every derived panel from one sampled now."""
        now = utc_now()
        session = self.session
        stats = session.stats(now)
        fmt = session.options.format_amount
        has_user = session.current_user is not None
        has_records = has_user and stats.record_count > 0

        self.query_one("#new-user-prompt").display = session.show_new_user_prompt

        add_panel = self.query_one("#add-panel")
        add_panel.display = has_user
        if has_user:
            self.query_one("#add-title", Static).update(
                f"Add Consumption Record for User {escape(session.current_user)}"
            )

        warning = self.query_one("#warning", Static)
        warning.display = stats.warning
        if stats.warning:
            warning.update(
                "[bold]Warning![/bold]\n"
                f"Please wait {stats.waiting_remaining} minutes before next consumption.\n"
                f"(Recommended {stats.waiting_minutes} minutes between drinks)"
            )

        self.query_one("#stats-panel").display = has_records
        self.query_one("#records-title").display = has_records
        table = self.query_one("#records", DataTable)
        table.display = has_records
        table.clear()
        if not has_records:
            return

        last = session.records[-1].timestamp_dt
        self.query_one("#stats", Static).update(
            f"Total consumption: {fmt(stats.total)} {AMOUNT_UNIT}\n"
            f"Last {stats.window_hours} hours: {fmt(stats.recent_total)} {AMOUNT_UNIT}\n"
            f"Time since last drink: {format_distance_to_now(last, now)}"
        )
        for record in session.records:
            table.add_row(
                f"{fmt(record.amount)} {AMOUNT_UNIT}",
                format_local_datetime(record.timestamp_dt),
            )

    def _update_suggestions(self, partial_id: str) -> None:
        option_list = self.query_one("#suggestions", OptionList)
        try:
            matches = self.session.suggest(partial_id)
        except TrackerError as e:
            self.notify(str(e), severity="error")
            matches = []
        # Typing the selected ID back in should not reopen the list
        if matches == [self.session.current_user] and partial_id == self.session.current_user:
            matches = []
        self.state.suggestions = matches
        option_list.clear_options()
        option_list.add_options([Option(Text(user_id)) for user_id in matches])
        option_list.display = bool(matches) and self.state.input_active

    # -------------------------------------------------------------------------
    # Event handlers
    # -------------------------------------------------------------------------

    def on_input_changed(self, event: Input.Changed) -> None:
        """Recompute suggestions per keystroke; apply waiting time edits."""
        if event.input.id == "user-input":
            self.state.input_active = True
            self._update_suggestions(event.value)
        elif event.input.id == "waiting-input":
            if event.value == str(self.session.waiting_minutes):
                return
            try:
                applied = self.session.set_waiting_minutes(event.value)
            except TrackerError as e:
                self.notify(f"Could not save waiting time: {e}", severity="error")
                return
            if applied:
                self._refresh_view()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Enter searches in the ID field and adds in the amount field."""
        if event.input.id == "user-input":
            self.action_search()
        elif event.input.id == "amount-input":
            self.action_add_record()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        """Handle button press events."""
        button_id = event.button.id
        if button_id == "search-btn":
            self.action_search()
        elif button_id == "create-btn":
            self.action_create_user()
        elif button_id == "add-btn":
            self.action_add_record()
        elif button_id == "export-btn":
            self.action_export_user()
        elif button_id == "export-all-btn":
            self.action_export_all()

    def on_option_list_option_selected(self, event: OptionList.OptionSelected) -> None:
        """Selecting a suggestion searches for it."""
        if event.option_list.id != "suggestions":
            return
        index = event.option_index
        if 0 <= index < len(self.state.suggestions):
            self._search_for(self.state.suggestions[index])

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def _search_for(self, user_id: str) -> None:
        try:
            result = self.session.search(user_id)
        except TrackerError as e:
            self.notify(f"Could not search: {e}", severity="error")
            return
        if result.found:
            user_input = self.query_one("#user-input", Input)
            if user_input.value != user_id:
                user_input.value = user_id
            self.action_hide_suggestions()
        self._refresh_view()

    def action_search(self) -> None:
        self._search_for(self.query_one("#user-input", Input).value)

    def action_hide_suggestions(self) -> None:
        self.state.input_active = False
        self.state.suggestions = []
        option_list = self.query_one("#suggestions", OptionList)
        option_list.clear_options()
        option_list.display = False

    def action_create_user(self) -> None:
        user_id = self.session.pending_user_id or self.query_one("#user-input", Input).value
        try:
            self.session.create_user(user_id)
        except InvalidInputError as e:
            self.notify(str(e), severity="warning")
            return
        except TrackerError as e:
            self.notify(f"Could not create user: {e}", severity="error")
            return
        self.action_hide_suggestions()
        self._refresh_view()

    def action_add_record(self) -> None:
        amount_input = self.query_one("#amount-input", Input)
        try:
            record = self.session.add_record(amount_input.value)
        except TrackerError as e:
            self.notify(f"Could not save record: {e}", severity="error")
            return
        if record is None:
            return
        amount_input.value = ""
        self._refresh_view()

    def _write_export(self, document: ExportDocument) -> None:
        try:
            path = document.write(self.state.export_dir)
        except TrackerError as e:
            self.notify(str(e), severity="error")
            return
        self.state.last_export_path = path
        self.session.logger.export_written(document.filename, document.row_count, str(path))
        self.notify(f"Exported to {path}")

    def action_export_user(self) -> None:
        try:
            document = self.session.export_user()
        except TrackerError as e:
            self.notify(f"Could not export: {e}", severity="error")
            return
        if document is None:
            self.notify("Select a user first", severity="warning")
            return
        self._write_export(document)

    def action_export_all(self) -> None:
        try:
            document = self.session.export_all()
        except TrackerError as e:
            self.notify(f"Could not export: {e}", severity="error")
            return
        self._write_export(document)
