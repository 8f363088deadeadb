"""Tests for feed view filters.

Covers:
- the 'all' short-circuit
- tag and watchlist flags combining with AND
- sector filters via the static ticker mapping
- FeedFilters constructors
"""

from __future__ import annotations

from marketpulse.filtering import FeedFilters, filter_items, ticker_sector


def test_all_returns_everything(make_item) -> None:
    """The default filter set passes every item through."""
    items = [make_item("a"), make_item("b")]
    assert filter_items(items, FeedFilters(), set()) == items
    assert filter_items([], FeedFilters(all=False, macro=True), set()) == []


def test_flags_combine_with_and(make_item) -> None:
    """Every active flag must hold for an item to survive."""
    items = [
        make_item("macro-watch", tickers=("NVDA",), macro=True),
        make_item("macro-only", tickers=("XOM",), macro=True),
        make_item("watch-only", tickers=("NVDA",)),
    ]
    filters = FeedFilters(all=False, macro=True, watchlist=True)
    assert [item.id for item in filter_items(items, filters, {"NVDA"})] == ["macro-watch"]


def test_sector_filters_match_any_active_sector(make_item) -> None:
    """Sector flags are OR-ed among themselves."""
    items = [
        make_item("bank", tickers=("JPM",)),
        make_item("oil", tickers=("XOM",)),
        make_item("etf", tickers=("SPY",)),
    ]
    filters = FeedFilters(all=False, finance=True, energy=True)
    assert [item.id for item in filter_items(items, filters, set())] == ["bank", "oil"]


def test_ticker_sector_lookup() -> None:
    """Known tickers map to their sector; unknown ones to None."""
    assert ticker_sector("NVDA") == "tech"
    assert ticker_sector("LMT") == "industrial"
    assert ticker_sector("ZZZZ") is None


def test_filters_from_dict_and_names() -> None:
    """Constructors ignore unknown or mistyped fields."""
    parsed = FeedFilters.from_dict({"all": False, "sec": True, "tech": "yes", "bogus": True})
    assert parsed == FeedFilters(all=False, sec=True)
    assert FeedFilters.from_dict(None) == FeedFilters()
    assert FeedFilters.from_names(["Social", "tech"]) == FeedFilters(all=False, social=True, tech=True)
    assert FeedFilters.from_names([]) == FeedFilters()
