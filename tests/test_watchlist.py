"""Tests for the watchlist folder store.

Covers:
- default folder seeding and malformed entry filtering on load
- create / rename / toggle_expansion / delete with active pointer reassignment
- add_ticker set semantics, remove_ticker and reorder_tickers
- persistence on every mutation and best-effort behaviour on write failure
"""

from __future__ import annotations

import json

from marketpulse.config import WATCHLIST_ACTIVE_KEY, WATCHLIST_FOLDERS_KEY
from marketpulse.storage import MemoryStore
from marketpulse.watchlist import WatchlistStore


def _stored_folders(store: MemoryStore) -> list:
    return json.loads(store.get_item(WATCHLIST_FOLDERS_KEY))


def test_seeds_default_folder() -> None:
    """An empty store starts with 'My Watchlist' holding AAPL, NVDA, TSLA."""
    watchlist = WatchlistStore(MemoryStore())
    (folder,) = watchlist.folders
    assert folder.id == "default"
    assert folder.name == "My Watchlist"
    assert folder.tickers == ("AAPL", "NVDA", "TSLA")
    assert watchlist.active_id == "default"


def test_load_filters_malformed_entries() -> None:
    """Entries missing id, name or a tickers list are dropped individually."""
    payload = [
        {"id": "f1", "name": "Chips", "tickers": ["nvda", "AMD", "NVDA"], "isExpanded": False},
        {"id": "f2", "name": "No tickers"},
        {"name": "No id", "tickers": []},
        "garbage",
    ]
    store = MemoryStore({WATCHLIST_FOLDERS_KEY: json.dumps(payload)})
    watchlist = WatchlistStore(store)
    assert [folder.id for folder in watchlist.folders] == ["f1"]
    assert watchlist.get("f1").tickers == ("NVDA", "AMD")
    assert watchlist.get("f1").is_expanded is False


def test_create_and_activate_persists() -> None:
    """New folders start empty and are written through."""
    store = MemoryStore()
    watchlist = WatchlistStore(store)
    folder = watchlist.create("  Banks ", activate=True)
    assert folder.name == "Banks"
    assert folder.tickers == ()
    assert watchlist.active_id == folder.id
    assert [entry["id"] for entry in _stored_folders(store)] == ["default", folder.id]
    assert json.loads(store.get_item(WATCHLIST_ACTIVE_KEY)) == folder.id


def test_add_ticker_is_set_like() -> None:
    """Adding an existing ticker is a no-op reported as False."""
    watchlist = WatchlistStore(MemoryStore())
    assert watchlist.add_ticker("default", "amd") is True
    assert watchlist.add_ticker("default", "AMD") is False
    assert watchlist.add_ticker("missing", "AMD") is False
    assert watchlist.get("default").tickers == ("AAPL", "NVDA", "TSLA", "AMD")


def test_remove_and_reorder_tickers() -> None:
    """Removal drops one symbol; reorder replaces the list wholesale."""
    store = MemoryStore()
    watchlist = WatchlistStore(store)
    assert watchlist.remove_ticker("default", "nvda") is True
    assert watchlist.remove_ticker("default", "NVDA") is False
    assert watchlist.reorder_tickers("default", ["TSLA", "AAPL"]) is True
    assert watchlist.get("default").tickers == ("TSLA", "AAPL")
    assert _stored_folders(store)[0]["tickers"] == ["TSLA", "AAPL"]


def test_rename_and_toggle_expansion() -> None:
    """Rename trims the name; toggle flips the expansion flag."""
    watchlist = WatchlistStore(MemoryStore())
    assert watchlist.rename("default", " Core ") is True
    assert watchlist.rename("default", "   ") is False
    assert watchlist.toggle_expansion("default") is True
    folder = watchlist.get("default")
    assert folder.name == "Core"
    assert folder.is_expanded is False


def test_delete_reassigns_active_pointer() -> None:
    """Deleting the active folder moves the pointer to the next folder, then None."""
    watchlist = WatchlistStore(MemoryStore())
    first = watchlist.create("One")
    second = watchlist.create("Two")
    watchlist.set_active(first.id)

    assert watchlist.delete(first.id) is True
    assert watchlist.active_id == second.id
    assert watchlist.delete(second.id) is True
    assert watchlist.active_id == "default"
    assert watchlist.delete("default") is True
    assert watchlist.active_id is None
    assert watchlist.delete("default") is False


def test_delete_other_folder_keeps_active() -> None:
    """Only deleting the active folder moves the pointer."""
    watchlist = WatchlistStore(MemoryStore())
    other = watchlist.create("Other")
    watchlist.delete(other.id)
    assert watchlist.active_id == "default"


def test_active_pointer_restored_from_store() -> None:
    """A persisted active id is honoured when it still exists."""
    store = MemoryStore()
    folder = WatchlistStore(store).create("Energy", activate=True)
    assert WatchlistStore(store).active_id == folder.id


def test_tickers_union() -> None:
    """tickers() unions every folder."""
    watchlist = WatchlistStore(MemoryStore())
    folder = watchlist.create("Banks")
    watchlist.add_ticker(folder.id, "JPM")
    assert watchlist.tickers() == {"AAPL", "NVDA", "TSLA", "JPM"}


def test_write_failure_keeps_memory() -> None:
    """Storage errors are logged and never roll back the change."""

    class _Broken(MemoryStore):
        def set_item(self, key: str, value: str) -> None:
            raise OSError("quota exceeded")

    watchlist = WatchlistStore(_Broken())
    assert watchlist.add_ticker("default", "MSFT") is True
    assert "MSFT" in watchlist.get("default").tickers
