"""Tests for category classification and the preference gates.

Covers:
- determine_category precedence for items and alerts (incl. alert fallback)
- passes_impact_filter under HIGH and MEDIUM_HIGH
- watchlist category requiring a ticker match
- should_deliver_notification category AND impact composition
- should_show_banner in-app toggles and the high-impact-only gate
- filter_feed_items / filter_critical_alerts / normalize_sentiment
"""

from __future__ import annotations

import pytest

from marketpulse.categories import (
    CATEGORIES,
    determine_category,
    filter_critical_alerts,
    filter_feed_items,
    impact_score,
    normalize_impact,
    normalize_sentiment,
    passes_category_filter,
    passes_impact_filter,
    should_deliver_notification,
    should_show_banner,
)
from marketpulse.models import InAppPreferences, NotificationPreferences


def test_high_impact_item_is_critical_even_when_macro(make_item) -> None:
    """High impact wins over macro and earnings tags."""
    assert determine_category(make_item(impact="High", macro=True, earnings=True)) == "critical"


def test_item_category_precedence(make_item) -> None:
    """Macro/fed beats earnings; untagged items fall back to watchlist."""
    assert determine_category(make_item(fed=True, earnings=True)) == "economic"
    assert determine_category(make_item(earnings=True)) == "earnings"
    assert determine_category(make_item()) == "watchlist"


@pytest.mark.parametrize("alert_type", ["fed", "cpi", "ppi", "nfp", "gdp", "fomc"])
def test_economic_alert_types(make_alert, alert_type: str) -> None:
    """Every scheduled macro release type classifies as economic."""
    assert determine_category(make_alert(alert_type=alert_type)) == "economic"


def test_alert_fallbacks(make_alert) -> None:
    """Earnings alerts map to earnings; unknown alert types fall back to critical."""
    assert determine_category(make_alert(alert_type="earnings")) == "earnings"
    assert determine_category(make_alert(alert_type="halt")) == "critical"


def test_classification_exactly_one_category(make_item, make_alert) -> None:
    """Items and alerts always receive exactly one known category."""
    for entity in (make_item(), make_item(impact="Low", macro=True), make_alert()):
        assert determine_category(entity) in CATEGORIES


def test_unknown_entities_rejected() -> None:
    """Non-record input has no category and is never delivered."""
    assert determine_category({"title": "raw"}) is None
    assert not should_deliver_notification({"title": "raw"}, NotificationPreferences(), {"NVDA"})


@pytest.mark.parametrize(
    "impact,level,expected",
    [
        ("High", "HIGH", True),
        ("Medium", "HIGH", False),
        ("Low", "HIGH", False),
        ("High", "MEDIUM_HIGH", True),
        ("Medium", "MEDIUM_HIGH", True),
        ("Low", "MEDIUM_HIGH", False),
        (None, "MEDIUM_HIGH", False),
    ],
)
def test_impact_filter(make_item, impact, level, expected) -> None:
    """HIGH admits only High; MEDIUM_HIGH admits High and Medium; Low never."""
    assert passes_impact_filter(make_item(impact=impact), level) is expected


def test_watchlist_category_needs_ticker_match(make_item) -> None:
    """Watchlist items pass the category gate only for watched tickers."""
    prefs = NotificationPreferences()
    assert passes_category_filter(make_item(tickers=("NVDA",)), prefs, {"NVDA"})
    assert not passes_category_filter(make_item(tickers=("AAPL",)), prefs, {"NVDA"})


def test_disabled_category_blocks_delivery(make_item) -> None:
    """A disabled toggle rejects its category even for High impact items."""
    prefs = NotificationPreferences(critical=False)
    assert not should_deliver_notification(make_item(impact="High"), prefs, {"NVDA"})


def test_deliver_requires_both_gates(make_item) -> None:
    """Category pass with insufficient impact is still rejected."""
    high_only = NotificationPreferences(impact_level="HIGH")
    medium_high = NotificationPreferences(impact_level="MEDIUM_HIGH")
    watch_item = make_item(impact="Medium", tickers=("NVDA",))
    assert not should_deliver_notification(watch_item, high_only, {"NVDA"})
    assert should_deliver_notification(watch_item, medium_high, {"NVDA"})


def test_banner_economic_toggle_splits_fed_and_cpi(make_alert) -> None:
    """Fed/FOMC alerts follow the fed toggle; other macro releases follow cpi."""
    prefs = InAppPreferences(fed=False)
    assert not should_show_banner(make_alert(alert_type="fomc"), prefs, set())
    assert should_show_banner(make_alert(alert_type="nfp"), prefs, set())
    assert not should_show_banner(make_alert(alert_type="cpi"), InAppPreferences(cpi=False), set())


def test_banner_watchlist_toggle(make_item) -> None:
    """Watchlist items need both the toggle and a ticker match."""
    item = make_item(tickers=("TSLA",))
    assert should_show_banner(item, InAppPreferences(), {"TSLA"})
    assert not should_show_banner(item, InAppPreferences(), {"NVDA"})
    assert not should_show_banner(item, InAppPreferences(watchlist=False), {"TSLA"})


def test_banner_high_impact_only(make_alert, make_item) -> None:
    """High-impact-only admits High labels or explicit scores >= 0.70."""
    prefs = InAppPreferences(high_impact_only=True)
    assert should_show_banner(make_alert(impact="High"), prefs, set())
    assert not should_show_banner(make_alert(impact="Medium"), prefs, set())
    assert should_show_banner(make_alert(impact="Medium", impact_score=0.75), prefs, set())
    assert not should_show_banner(make_item(impact="Medium", impact_score=0.5), prefs, {"NVDA"})


def test_impact_score_label_fallback(make_alert) -> None:
    """Without an explicit score the label maps to 1.0/0.6/0.3."""
    assert impact_score(make_alert(impact="High")) == 1.0
    assert impact_score(make_alert(impact="Medium")) == 0.6
    assert impact_score(make_alert(impact="Low")) == 0.3
    assert impact_score(make_alert(impact=None)) == 0.0


def test_filter_helpers(make_item, make_alert) -> None:
    """Feed filtering follows the impact gate; critical alerts keep only High."""
    items = [make_item("h", impact="High"), make_item("m", impact="Medium"), make_item("l", impact="Low")]
    assert [item.id for item in filter_feed_items(items, "MEDIUM_HIGH")] == ["h", "m"]
    alerts = [make_alert("a", impact="High"), make_alert("b", impact="Low")]
    assert [alert.id for alert in filter_critical_alerts(alerts)] == ["a"]


def test_normalizers() -> None:
    """Free-form impact and sentiment text collapses onto the fixed vocabulary."""
    assert normalize_impact(" high ") == "High"
    assert normalize_impact("severe") is None
    assert normalize_sentiment("Very Bullish") == "bull"
    assert normalize_sentiment("bearish") == "bear"
    assert normalize_sentiment(None) == "neutral"
