"""Utility helpers shared across Market Pulse modules.

Updates: v0.1 - 2026-10-19 - Seeded module with environment, timestamp and clamping helpers.
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from typing import Any, Optional


def read_optional_env(name: str) -> Optional[str]:
    """Return trimmed environment variable or ``None`` when unset/blank."""

    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped or None


def parse_iso8601_utc(value: Optional[str]) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp into an aware UTC datetime."""

    if not isinstance(value, str):
        return None
    candidate = value.strip()
    if not candidate:
        return None
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def isoformat_utc(moment: datetime) -> str:
    """Render an aware datetime as a Z-suffixed UTC ISO-8601 string."""

    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    iso_value = moment.astimezone(timezone.utc).isoformat()
    return iso_value[:-6] + "Z" if iso_value.endswith("+00:00") else iso_value


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def coerce_number(value: Any, default: float = 0.0) -> float:
    """Return ``value`` as a float, rejecting bools, NaN and non-numerics."""

    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    if value != value:  # NaN
        return default
    return float(value)


__all__ = [
    "clamp",
    "coerce_number",
    "isoformat_utc",
    "parse_iso8601_utc",
    "read_optional_env",
]
