#!/usr/bin/env python3
# SPDX-License-Identifier: MIT
"""
Tests for DrinkTrackerApp.

Tests drive the app through run_test() against an in-memory store and
check what the panels show after each user action.
"""

from datetime import timedelta
from pathlib import Path

import pytest

pytest.importorskip("textual")

from textual.widgets import DataTable, Input, OptionList

from drinktracker.models import AmountPrecision, Record, TrackerOptions, utc_now
from drinktracker.store import FileKeyValueStore, MemoryKeyValueStore, Store
from drinktracker.tui.app import DrinkTrackerApp


# --- Fixtures ---


@pytest.fixture
def seeded_store() -> Store:
    """Store with alice (one old drink), ALex and bob (no drinks)."""
    store = Store(MemoryKeyValueStore())
    old = utc_now() - timedelta(hours=5)
    store.save({
        "alice": [Record.create(330, old)],
        "ALex": [],
        "bob": [],
    })
    return store


def make_app(store: Store, tmp_path: Path, **kwargs) -> DrinkTrackerApp:
    return DrinkTrackerApp(store=store, export_dir=tmp_path / "exports", **kwargs)


# --- Mount ---


@pytest.mark.asyncio
async def test_mount_shows_only_search(memory_store: Store, tmp_path: Path):
    """With nobody selected only the settings and search rows are visible."""
    app = make_app(memory_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        await pilot.pause()
        assert app.title == "Alcohol Consumption Tracker"
        assert app.query_one("#add-panel").display is False
        assert app.query_one("#warning").display is False
        assert app.query_one("#new-user-prompt").display is False
        assert app.query_one("#stats-panel").display is False
        assert app.query_one("#suggestions", OptionList).display is False
        assert app.query_one("#waiting-input", Input).value == "60"


@pytest.mark.asyncio
async def test_fixed_wait_disables_waiting_input(memory_store: Store, tmp_path: Path):
    app = make_app(memory_store, tmp_path, options=TrackerOptions(configurable_wait=False))
    async with app.run_test(size=(100, 60)) as pilot:
        await pilot.pause()
        assert app.query_one("#waiting-input", Input).disabled is True


# --- Search and create ---


@pytest.mark.asyncio
async def test_unknown_user_prompts_then_creates(memory_store: Store, tmp_path: Path):
    app = make_app(memory_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "bob"
        await pilot.pause()
        app.action_search()
        await pilot.pause()

        assert app.query_one("#new-user-prompt").display is True
        assert app.query_one("#add-panel").display is False

        app.action_create_user()
        await pilot.pause()

        assert memory_store.load() == {"bob": []}
        assert app.session.current_user == "bob"
        assert app.query_one("#new-user-prompt").display is False
        assert app.query_one("#add-panel").display is True
        # No records yet, so no statistics
        assert app.query_one("#stats-panel").display is False


@pytest.mark.asyncio
async def test_suggestions_follow_typing(seeded_store: Store, tmp_path: Path):
    app = make_app(seeded_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "AL"
        await pilot.pause()

        suggestions = app.query_one("#suggestions", OptionList)
        assert suggestions.display is True
        assert app.state.suggestions == ["alice", "ALex"]
        assert suggestions.option_count == 2

        app.query_one("#user-input", Input).value = ""
        await pilot.pause()
        assert suggestions.display is False


@pytest.mark.asyncio
async def test_choosing_suggestion_selects_user(seeded_store: Store, tmp_path: Path):
    app = make_app(seeded_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "ali"
        await pilot.pause()

        app.query_one("#suggestions", OptionList).focus()
        await pilot.press("down", "enter")
        await pilot.pause()

        assert app.session.current_user == "alice"
        assert app.query_one("#user-input", Input).value == "alice"
        assert app.query_one("#suggestions", OptionList).display is False


@pytest.mark.asyncio
async def test_escape_hides_suggestions(seeded_store: Store, tmp_path: Path):
    app = make_app(seeded_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "a"
        await pilot.pause()
        app.action_hide_suggestions()
        await pilot.pause()
        assert app.query_one("#suggestions", OptionList).display is False
        assert app.state.suggestions == []


# --- Records and statistics ---


@pytest.mark.asyncio
async def test_existing_user_shows_stats_and_records(seeded_store: Store, tmp_path: Path):
    app = make_app(seeded_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "alice"
        await pilot.pause()
        app.action_search()
        await pilot.pause()

        assert app.query_one("#stats-panel").display is True
        assert app.query_one("#records", DataTable).row_count == 1
        # Last drink was five hours ago
        assert app.query_one("#warning").display is False
        stats = app.session.stats()
        assert stats.total == 330
        assert stats.recent_total == 0
        assert stats.minutes_since_last >= 300


@pytest.mark.asyncio
async def test_adding_record_shows_warning(seeded_store: Store, tmp_path: Path):
    app = make_app(seeded_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "bob"
        await pilot.pause()
        app.action_search()
        await pilot.pause()

        amount = app.query_one("#amount-input", Input)
        amount.value = "50"
        await pilot.pause()
        app.action_add_record()
        await pilot.pause()

        assert amount.value == ""
        assert [r.amount for r in seeded_store.load()["bob"]] == [50]
        assert app.query_one("#records", DataTable).row_count == 1
        assert app.query_one("#warning").display is True
        assert app.session.stats().waiting_remaining in (59, 60)


@pytest.mark.asyncio
async def test_invalid_amount_is_ignored(seeded_store: Store, tmp_path: Path):
    app = make_app(seeded_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "bob"
        await pilot.pause()
        app.action_search()
        app.query_one("#amount-input", Input).value = ""
        await pilot.pause()
        app.action_add_record()
        await pilot.pause()

        assert seeded_store.load()["bob"] == []
        assert app.query_one("#records", DataTable).display is False


# --- Waiting time ---


@pytest.mark.asyncio
async def test_waiting_time_edit_is_persisted(memory_store: Store, tmp_path: Path):
    app = make_app(memory_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#waiting-input", Input).value = "45"
        await pilot.pause()

        assert app.session.waiting_minutes == 45
        assert memory_store.load_waiting_minutes() == 45


@pytest.mark.asyncio
async def test_waiting_time_rejects_zero(memory_store: Store, tmp_path: Path):
    app = make_app(memory_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#waiting-input", Input).value = "0"
        await pilot.pause()

        assert app.session.waiting_minutes == 60
        assert memory_store.backend.get_item("waitingTime") is None


# --- Export ---


@pytest.mark.asyncio
async def test_export_user_writes_csv(seeded_store: Store, tmp_path: Path):
    app = make_app(seeded_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "alice"
        await pilot.pause()
        app.action_search()
        app.action_export_user()
        await pilot.pause()

        path = app.state.last_export_path
        assert path is not None
        assert path.parent == tmp_path / "exports"
        assert path.name.startswith("alcohol_consumption_alice_")
        assert path.read_text().startswith("Date,Time,Amount (ml)\n")


@pytest.mark.asyncio
async def test_export_user_without_selection_writes_nothing(seeded_store: Store, tmp_path: Path):
    app = make_app(seeded_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.action_export_user()
        await pilot.pause()
        assert app.state.last_export_path is None
        assert not (tmp_path / "exports").exists()


@pytest.mark.asyncio
async def test_export_all_writes_csv(seeded_store: Store, tmp_path: Path):
    app = make_app(seeded_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        await pilot.press("f3")
        await pilot.pause()

        path = app.state.last_export_path
        assert path is not None
        assert path.name.startswith("all_users_alcohol_consumption_")
        content = path.read_text()
        assert "Total for alice,,,330.0 ml" in content
        assert "bob" not in content


# --- Corrupted store ---


@pytest.mark.asyncio
async def test_corrupted_store_starts_empty(tmp_path: Path):
    store = Store(MemoryKeyValueStore({"alcoholTracker": "{broken"}))
    app = make_app(store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "alice"
        await pilot.pause()
        app.action_search()
        await pilot.pause()

        assert app.session.warnings
        assert app.query_one("#new-user-prompt").display is True


@pytest.mark.asyncio
async def test_unreadable_store_search_keeps_running(tmp_path: Path, monkeypatch):
    path = tmp_path / "storage.json"
    path.write_text("{}")

    def denied(*args, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr("drinktracker.store.open", denied, raising=False)
    app = make_app(Store(FileKeyValueStore(path)), tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        app.query_one("#user-input", Input).value = "alice"
        await pilot.pause()
        app.action_search()
        app.action_export_all()
        await pilot.pause()

        assert app.session.current_user is None
        assert app.query_one("#new-user-prompt").display is False
        assert app.state.last_export_path is None
    assert path.read_text() == "{}"


# --- Amount precision ---


@pytest.mark.asyncio
async def test_amount_input_accepts_decimals_by_default(memory_store: Store, tmp_path: Path):
    app = make_app(memory_store, tmp_path)
    async with app.run_test(size=(100, 60)) as pilot:
        await pilot.pause()
        assert app.query_one("#amount-input", Input).type == "number"


@pytest.mark.asyncio
async def test_amount_input_is_integer_for_integer_precision(memory_store: Store, tmp_path: Path):
    options = TrackerOptions(amount_precision=AmountPrecision.INTEGER)
    app = make_app(memory_store, tmp_path, options=options)
    async with app.run_test(size=(100, 60)) as pilot:
        await pilot.pause()
        assert app.query_one("#amount-input", Input).type == "integer"
