"""Watchlist folders: user-curated, ordered ticker groups.

The in-memory folder list is the source of truth. Each mutation is mirrored
to the key/value store immediately; a failed write is logged and never rolls
back the change.

Updates: v0.1 - 2026-10-19 - Replaced the exclusion term list with persisted watchlist folders.
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from typing import Iterable, List, Optional, Sequence, Set

from .config import (
    DEFAULT_FOLDER_ID,
    DEFAULT_FOLDER_NAME,
    DEFAULT_WATCHLIST,
    WATCHLIST_ACTIVE_KEY,
    WATCHLIST_FOLDERS_KEY,
)
from .models import WatchlistFolder
from .storage import KeyValueStore, read_json, write_json

logger = logging.getLogger(__name__)


def normalise_ticker(ticker: object) -> Optional[str]:
    if not isinstance(ticker, str):
        return None
    symbol = ticker.strip().upper()
    return symbol or None


def default_folders() -> List[WatchlistFolder]:
    return [
        WatchlistFolder(
            id=DEFAULT_FOLDER_ID,
            name=DEFAULT_FOLDER_NAME,
            tickers=DEFAULT_WATCHLIST,
            is_expanded=True,
        )
    ]


def load_folders(store: KeyValueStore) -> List[WatchlistFolder]:
    """Load persisted folders; malformed entries are dropped one by one."""

    raw = read_json(store, WATCHLIST_FOLDERS_KEY)
    if raw is None:
        return default_folders()
    if not isinstance(raw, list):
        logger.warning("Watchlist folders payload is not a list; using defaults.")
        return default_folders()
    folders: List[WatchlistFolder] = []
    seen: Set[str] = set()
    for entry in raw:
        folder = WatchlistFolder.from_dict(entry)
        if folder is None or folder.id in seen:
            logger.debug("Skipping malformed watchlist folder: %r", entry)
            continue
        seen.add(folder.id)
        folders.append(folder)
    return folders


class WatchlistStore:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self._folders: List[WatchlistFolder] = load_folders(store)
        active = read_json(store, WATCHLIST_ACTIVE_KEY)
        if isinstance(active, str) and self._index(active) is not None:
            self.active_id: Optional[str] = active
        else:
            self.active_id = self._folders[0].id if self._folders else None

    @property
    def folders(self) -> List[WatchlistFolder]:
        return list(self._folders)

    def get(self, folder_id: str) -> Optional[WatchlistFolder]:
        index = self._index(folder_id)
        return self._folders[index] if index is not None else None

    def tickers(self) -> Set[str]:
        """Union of every folder's tickers, as consumed by the watchlist gate."""

        union: Set[str] = set()
        for folder in self._folders:
            union.update(folder.tickers)
        return union

    def create(self, name: str, *, activate: bool = False) -> WatchlistFolder:
        cleaned = name.strip() if isinstance(name, str) else ""
        if not cleaned:
            raise ValueError("Folder name must not be empty")
        folder = WatchlistFolder(id=f"folder_{uuid.uuid4().hex[:12]}", name=cleaned)
        self._folders.append(folder)
        if activate:
            self.active_id = folder.id
        self._persist(active_changed=activate)
        return folder

    def delete(self, folder_id: str) -> bool:
        """Remove a folder; the active pointer moves to the next folder or ``None``."""

        index = self._index(folder_id)
        if index is None:
            return False
        del self._folders[index]
        active_changed = False
        if self.active_id == folder_id:
            if self._folders:
                self.active_id = self._folders[min(index, len(self._folders) - 1)].id
            else:
                self.active_id = None
            active_changed = True
        self._persist(active_changed=active_changed)
        return True

    def rename(self, folder_id: str, name: str) -> bool:
        cleaned = name.strip() if isinstance(name, str) else ""
        if not cleaned:
            return False
        return self._update(folder_id, name=cleaned)

    def toggle_expansion(self, folder_id: str) -> bool:
        folder = self.get(folder_id)
        if folder is None:
            return False
        return self._update(folder_id, is_expanded=not folder.is_expanded)

    def add_ticker(self, folder_id: str, ticker: str) -> bool:
        """Append ``ticker``; returns ``False`` when absent folder or already present."""

        symbol = normalise_ticker(ticker)
        folder = self.get(folder_id)
        if symbol is None or folder is None or symbol in folder.tickers:
            return False
        return self._update(folder_id, tickers=folder.tickers + (symbol,))

    def remove_ticker(self, folder_id: str, ticker: str) -> bool:
        symbol = normalise_ticker(ticker)
        folder = self.get(folder_id)
        if symbol is None or folder is None or symbol not in folder.tickers:
            return False
        return self._update(
            folder_id, tickers=tuple(entry for entry in folder.tickers if entry != symbol)
        )

    def reorder_tickers(self, folder_id: str, new_order: Sequence[str]) -> bool:
        """Replace the ticker list wholesale. Duplicates in ``new_order`` collapse."""

        if self.get(folder_id) is None:
            return False
        return self._update(folder_id, tickers=_unique(new_order))

    def set_active(self, folder_id: Optional[str]) -> bool:
        if folder_id is not None and self._index(folder_id) is None:
            return False
        self.active_id = folder_id
        self._persist_active()
        return True

    def _index(self, folder_id: str) -> Optional[int]:
        for index, folder in enumerate(self._folders):
            if folder.id == folder_id:
                return index
        return None

    def _update(self, folder_id: str, **changes: object) -> bool:
        index = self._index(folder_id)
        if index is None:
            return False
        self._folders[index] = dataclasses.replace(self._folders[index], **changes)
        self._persist()
        return True

    def _persist(self, *, active_changed: bool = False) -> None:
        payload = [folder.as_dict() for folder in self._folders]
        if not write_json(self.store, WATCHLIST_FOLDERS_KEY, payload):
            logger.warning("Watchlist folders kept in memory only.")
        if active_changed:
            self._persist_active()

    def _persist_active(self) -> None:
        if not write_json(self.store, WATCHLIST_ACTIVE_KEY, self.active_id):
            logger.warning("Active watchlist folder kept in memory only.")


def _unique(tickers: Iterable[str]) -> tuple[str, ...]:
    ordered: List[str] = []
    for ticker in tickers:
        symbol = normalise_ticker(ticker)
        if symbol is not None and symbol not in ordered:
            ordered.append(symbol)
    return tuple(ordered)


__all__ = [
    "WatchlistStore",
    "default_folders",
    "load_folders",
    "normalise_ticker",
]
