"""Persisted notification and in-app banner preferences.

Both records are loaded once when the manager is created; setters update the
in-memory copy and re-persist it straight away. Missing keys mean defaults,
and corrupt payloads are cleared and replaced by defaults.

Updates: v0.1 - 2026-10-19 - Split the settings load/save helpers into per-record preference keys.
Updates: v0.2 - 2026-10-19 - Added async readers for the late banner gate.
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from typing import Any, Optional

from .config import IN_APP_PREFERENCES_KEY, PUSH_PREFERENCES_KEY
from .models import (
    IMPACT_LEVEL_CHOICES,
    InAppPreferences,
    NotificationPreferences,
)
from .storage import KeyValueStore, read_json, write_json

logger = logging.getLogger(__name__)

_PUSH_TOGGLES = ("critical", "economic", "earnings", "watchlist")
_IN_APP_TOGGLES = ("critical", "earnings", "cpi", "fed", "watchlist", "high_impact_only")


def load_notification_preferences(store: KeyValueStore) -> NotificationPreferences:
    return NotificationPreferences.from_dict(read_json(store, PUSH_PREFERENCES_KEY))


def load_in_app_preferences(store: KeyValueStore) -> InAppPreferences:
    return InAppPreferences.from_dict(read_json(store, IN_APP_PREFERENCES_KEY))


async def get_notification_preferences(store: KeyValueStore) -> NotificationPreferences:
    """Read push preferences off the event loop thread."""

    return await asyncio.to_thread(load_notification_preferences, store)


async def get_in_app_preferences(store: KeyValueStore) -> InAppPreferences:
    """Read in-app banner preferences off the event loop thread."""

    return await asyncio.to_thread(load_in_app_preferences, store)


class PreferenceManager:
    """In-memory view of both preference records, backed by ``store``."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store
        self.notification = load_notification_preferences(store)
        self.in_app = load_in_app_preferences(store)

    def reload(self) -> None:
        self.notification = load_notification_preferences(self.store)
        self.in_app = load_in_app_preferences(self.store)

    def set_impact_level(self, level: str) -> NotificationPreferences:
        if level not in IMPACT_LEVEL_CHOICES:
            raise ValueError(f"Unknown impact level: {level!r}")
        self.notification = dataclasses.replace(self.notification, impact_level=level)
        self._save_notification()
        return self.notification

    def set_category(self, category: str, enabled: bool) -> NotificationPreferences:
        """Toggle one push category (critical, economic, earnings or watchlist)."""

        if category not in _PUSH_TOGGLES:
            raise ValueError(f"Unknown notification category: {category!r}")
        self.notification = dataclasses.replace(self.notification, **{category: bool(enabled)})
        self._save_notification()
        return self.notification

    def set_in_app(self, toggle: str, enabled: bool) -> InAppPreferences:
        """Toggle one in-app banner switch; accepts ``highImpactOnly`` too."""

        key = "high_impact_only" if toggle == "highImpactOnly" else toggle
        if key not in _IN_APP_TOGGLES:
            raise ValueError(f"Unknown in-app toggle: {toggle!r}")
        self.in_app = dataclasses.replace(self.in_app, **{key: bool(enabled)})
        self._save_in_app()
        return self.in_app

    def _save_notification(self) -> None:
        if not write_json(self.store, PUSH_PREFERENCES_KEY, self.notification.as_dict()):
            logger.warning("Push preferences kept in memory only.")

    def _save_in_app(self) -> None:
        if not write_json(self.store, IN_APP_PREFERENCES_KEY, self.in_app.as_dict()):
            logger.warning("In-app preferences kept in memory only.")


def describe(prefs: Any) -> Optional[str]:
    """Short human summary used by the CLI ``--debug`` output."""

    if isinstance(prefs, NotificationPreferences):
        enabled = [name for name in _PUSH_TOGGLES if getattr(prefs, name)]
        return f"push impact={prefs.impact_level} categories={','.join(enabled) or 'none'}"
    if isinstance(prefs, InAppPreferences):
        enabled = [name for name in _IN_APP_TOGGLES[:-1] if getattr(prefs, name)]
        suffix = " high-impact-only" if prefs.high_impact_only else ""
        return f"in-app toggles={','.join(enabled) or 'none'}{suffix}"
    return None


__all__ = [
    "PreferenceManager",
    "describe",
    "get_in_app_preferences",
    "get_notification_preferences",
    "load_in_app_preferences",
    "load_notification_preferences",
]
