"""Pytest configuration and shared record factories.

- Prepend project root to sys.path so 'marketpulse' is importable with testpaths.
- Provide ``make_item``/``make_alert`` factories building well-formed records
  relative to a fixed reference time (``NOW``).
"""

from __future__ import annotations

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import pytest


def _ensure_project_root_on_syspath() -> None:
    """Prepend repository root to sys.path for package imports."""
    tests_dir = Path(__file__).resolve().parent
    project_root = tests_dir.parent
    root_str = str(project_root)
    if root_str not in sys.path:
        sys.path.insert(0, root_str)


_ensure_project_root_on_syspath()

from marketpulse.models import Alert, Classification, Item, Source, Tags  # noqa: E402
from marketpulse.utils import isoformat_utc  # noqa: E402

NOW = datetime(2026, 3, 2, 15, 0, tzinfo=timezone.utc)


def build_item(
    item_id: str = "n1",
    title: Optional[str] = "Nvidia beats quarterly revenue estimates",
    *,
    age_hours: float = 1.0,
    reliability: float = 90,
    confidence: float = 95,
    impact: Optional[str] = "Medium",
    tickers: Iterable[str] = ("NVDA",),
    macro: bool = False,
    fed: bool = False,
    earnings: bool = False,
    sec: bool = False,
    social: bool = False,
    dedupe_key: Optional[str] = None,
    impact_score: Optional[float] = None,
    score: Optional[float] = None,
) -> Item:
    return Item(
        id=item_id,
        title=title,
        published_at=isoformat_utc(NOW - timedelta(hours=age_hours)),
        url=f"https://news.example/{item_id}",
        source=Source(name="Reuters", type="news", reliability=reliability),
        tickers=tuple(tickers),
        tags=Tags(is_macro=macro, fed=fed, sec=sec, earnings=earnings, social=social),
        classification=Classification(
            impact=impact,  # type: ignore[arg-type]
            confidence=confidence,
            sentiment="Bullish",
            summary="",
            impact_score=impact_score,
        ),
        dedupe_key=dedupe_key,
        score=score,
    )


def build_alert(
    alert_id: str = "a1",
    alert_type: str = "cpi",
    *,
    impact: Optional[str] = "High",
    tickers: Iterable[str] = ("SPY",),
    headline: Optional[str] = None,
    **extra: Any,
) -> Alert:
    fields: Dict[str, Any] = dict(
        id=alert_id,
        type=alert_type,
        headline=headline or f"{alert_type.upper()} print crosses the wire",
        source="Bloomberg",
        tickers=tuple(tickers),
        impact=impact,
        sentiment="Bearish",
        confidence=90,
        published_at=isoformat_utc(NOW),
        is_released=True,
    )
    fields.update(extra)
    return Alert(**fields)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def make_item() -> Callable[..., Item]:
    return build_item


@pytest.fixture
def make_alert() -> Callable[..., Alert]:
    return build_alert
