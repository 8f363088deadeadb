"""Configuration primitives and static data for Market Pulse.

This module centralises pipeline constants, banner timings, storage keys and
persistence paths so other layers can import them without side effects.

Updates: v0.1 - 2026-10-19 - Carried the settings path and env override layout over for the feed pipeline.
Updates: v0.2 - 2026-10-19 - Added banner gesture thresholds and routing limits.
Updates: v0.3 - 2026-10-19 - Blank store and Redis overrides now fall back to defaults.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Tuple

from .utils import read_optional_env

try:  # pragma: no cover - optional dependency
    from dotenv import load_dotenv as _config_load_dotenv  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    _config_load_dotenv = None
else:
    _config_load_dotenv()


def _int_env(name: str, default: int, *, minimum: int = 0) -> int:
    try:
        return max(minimum, int(os.getenv(name, str(default))))
    except ValueError:
        return default


# --- Relevance scoring ---------------------------------------------------------------------------

SCORE_WEIGHTS: Dict[str, float] = {
    "reliability": 0.28,
    "freshness": 0.22,
    "ticker_match": 0.20,
    "surprise": 0.15,
    "macro": 0.15,
}
FRESHNESS_WINDOW_HOURS = 24.0
TICKER_MISS_WEIGHT = 0.3
SURPRISE_CONFIDENCE_CUTOFF = 80
MACRO_BOOST = 1.2
MACRO_WEIGHT_CEILING = 2.0

TITLE_KEY_TOKENS = 3
TITLE_KEY_MIN_LENGTH = 3
TITLE_STOP_WORDS: frozenset[str] = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "can", "had",
        "her", "was", "one", "our", "out", "day", "get", "has", "him", "his",
        "how", "its", "may", "new", "now", "old", "see", "two", "who", "boy",
        "did", "she", "use", "way", "oil", "sit", "set",
    }
)


# --- Categories and gating -----------------------------------------------------------------------

IMPACT_LEVELS: Tuple[str, ...] = ("Low", "Medium", "High")
ECONOMIC_ALERT_TYPES: frozenset[str] = frozenset({"fed", "cpi", "ppi", "nfp", "gdp", "fomc"})
FED_ALERT_TYPES: frozenset[str] = frozenset({"fed", "fomc"})
HIGH_IMPACT_SCORE_THRESHOLD = 0.70
IMPACT_LABEL_SCORES: Dict[str, float] = {"High": 1.0, "Medium": 0.6, "Low": 0.3}


# --- Routing limits ------------------------------------------------------------------------------

FEED_LIMIT = _int_env("MARKETPULSE_FEED_LIMIT", 200, minimum=1)
NOTIFICATION_LIMIT = _int_env("MARKETPULSE_NOTIFICATION_LIMIT", 5, minimum=1)
CRITICAL_ALERT_LIMIT = _int_env("MARKETPULSE_CRITICAL_LIMIT", 10, minimum=1)
TICKER_HEADLINE_LIMIT = 5


# --- Drop banner timings and gesture thresholds --------------------------------------------------

BANNER_DISPLAY_MS = _int_env("MARKETPULSE_BANNER_DISPLAY_MS", 3000, minimum=1)
BANNER_ANIMATION_MS = 160
BANNER_STAGGER_MS = 100
DISMISS_THRESHOLD_Y = -32.0
# Pixels per millisecond (-300 px/s).
DISMISS_VELOCITY = -0.3
TAP_MAX_DURATION_MS = 200
TAP_MAX_DISTANCE_PX = 5.0
SWIPE_SLOP_PX = 5.0


# --- Persistence ---------------------------------------------------------------------------------

PUSH_PREFERENCES_KEY = "userSettings.pushPreferences"
IN_APP_PREFERENCES_KEY = "settings.inApp"
WATCHLIST_FOLDERS_KEY = "news_watchlist_folders"
WATCHLIST_ACTIVE_KEY = "news_watchlist_active"

DEFAULT_PUSH_PREFERENCES: Dict[str, object] = {
    "impactLevel": "HIGH",
    "critical": True,
    "economic": True,
    "earnings": True,
    "watchlist": True,
}
DEFAULT_IN_APP_PREFERENCES: Dict[str, bool] = {
    "critical": True,
    "earnings": True,
    "cpi": True,
    "fed": True,
    "watchlist": True,
    "highImpactOnly": False,
}
DEFAULT_FOLDER_ID = "default"
DEFAULT_FOLDER_NAME = "My Watchlist"
DEFAULT_WATCHLIST: Tuple[str, ...] = ("AAPL", "NVDA", "TSLA")

_LOCAL_APPDATA = read_optional_env("LOCALAPPDATA")
_XDG_CONFIG_HOME = read_optional_env("XDG_CONFIG_HOME")

if os.name == "nt":
    base_dir = (
        Path(_LOCAL_APPDATA)
        if _LOCAL_APPDATA
        else Path.home() / "AppData" / "Local"
    )
else:
    base_dir = (
        Path(_XDG_CONFIG_HOME)
        if _XDG_CONFIG_HOME
        else Path.home() / ".config"
    )
_DEFAULT_STORE_FILE = base_dir / "MarketPulse" / "marketpulse_store.json"

STORE_PATH = Path(read_optional_env("MARKETPULSE_STORE_PATH") or _DEFAULT_STORE_FILE)

REDIS_URL = read_optional_env("REDIS_URL")
REDIS_PREFIX = read_optional_env("MARKETPULSE_REDIS_PREFIX") or "marketpulse:"


# --- Feed source ---------------------------------------------------------------------------------

HTTP_TIMEOUT = _int_env("MARKETPULSE_HTTP_TIMEOUT", 15, minimum=1)
USER_AGENT = "MarketPulse/0.2 (+https://example.invalid/marketpulse)"


__all__ = [
    "BANNER_ANIMATION_MS",
    "BANNER_DISPLAY_MS",
    "BANNER_STAGGER_MS",
    "CRITICAL_ALERT_LIMIT",
    "DEFAULT_FOLDER_ID",
    "DEFAULT_FOLDER_NAME",
    "DEFAULT_IN_APP_PREFERENCES",
    "DEFAULT_PUSH_PREFERENCES",
    "DEFAULT_WATCHLIST",
    "DISMISS_THRESHOLD_Y",
    "DISMISS_VELOCITY",
    "ECONOMIC_ALERT_TYPES",
    "FED_ALERT_TYPES",
    "FEED_LIMIT",
    "FRESHNESS_WINDOW_HOURS",
    "HIGH_IMPACT_SCORE_THRESHOLD",
    "HTTP_TIMEOUT",
    "IMPACT_LABEL_SCORES",
    "IMPACT_LEVELS",
    "IN_APP_PREFERENCES_KEY",
    "MACRO_BOOST",
    "MACRO_WEIGHT_CEILING",
    "NOTIFICATION_LIMIT",
    "PUSH_PREFERENCES_KEY",
    "REDIS_PREFIX",
    "REDIS_URL",
    "SCORE_WEIGHTS",
    "STORE_PATH",
    "SURPRISE_CONFIDENCE_CUTOFF",
    "SWIPE_SLOP_PX",
    "TAP_MAX_DISTANCE_PX",
    "TAP_MAX_DURATION_MS",
    "TICKER_HEADLINE_LIMIT",
    "TICKER_MISS_WEIGHT",
    "TITLE_KEY_MIN_LENGTH",
    "TITLE_KEY_TOKENS",
    "TITLE_STOP_WORDS",
    "USER_AGENT",
    "WATCHLIST_ACTIVE_KEY",
    "WATCHLIST_FOLDERS_KEY",
]
