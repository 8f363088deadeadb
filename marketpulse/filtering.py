"""Feed view filters over ranked items.

Updates: v0.1 - 2026-10-19 - Swapped exclusion-term filtering for tag, watchlist and sector filters.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Collection, Dict, List, Mapping, Optional, Sequence

from .models import Item

SECTORS: tuple[str, ...] = ("tech", "finance", "healthcare", "energy", "consumer", "industrial")

_SECTOR_TICKERS: Dict[str, tuple[str, ...]] = {
    "tech": (
        "AAPL", "MSFT", "GOOGL", "GOOG", "AMZN", "TSLA", "NVDA", "META",
        "NFLX", "CRM", "ORCL", "ADBE", "INTC", "AMD", "PYPL",
    ),
    "finance": (
        "JPM", "BAC", "WFC", "GS", "MS", "C", "USB", "PNC",
        "TFC", "COF", "AXP", "BLK", "SCHW", "CB", "MMC",
    ),
    "healthcare": (
        "JNJ", "UNH", "PFE", "ABBV", "TMO", "ABT", "LLY", "BMY",
        "AMGN", "GILD", "CVS", "ANTM", "CI", "HUM", "CNC",
    ),
    "energy": (
        "XOM", "CVX", "COP", "EOG", "SLB", "PSX", "VLO", "MPC",
        "OXY", "HAL", "BKR", "DVN", "FANG", "APA", "MRO",
    ),
    "consumer": (
        "WMT", "PG", "KO", "PEP", "COST", "HD", "MCD", "NKE",
        "SBUX", "TGT", "LOW", "TJX", "DG", "DLTR", "KR",
    ),
    "industrial": (
        "BA", "CAT", "GE", "MMM", "HON", "UPS", "RTX", "LMT",
        "DE", "FDX", "NOC", "GD", "LHX", "TXT", "ITW",
    ),
}

SECTOR_BY_TICKER: Dict[str, str] = {
    ticker: sector for sector, tickers in _SECTOR_TICKERS.items() for ticker in tickers
}


def ticker_sector(ticker: str) -> Optional[str]:
    return SECTOR_BY_TICKER.get(ticker)


@dataclass(frozen=True)
class FeedFilters:
    all: bool = True
    watchlist: bool = False
    macro: bool = False
    earnings: bool = False
    sec: bool = False
    social: bool = False
    tech: bool = False
    finance: bool = False
    healthcare: bool = False
    energy: bool = False
    consumer: bool = False
    industrial: bool = False

    @property
    def active_sectors(self) -> List[str]:
        return [sector for sector in SECTORS if getattr(self, sector)]

    @classmethod
    def from_dict(cls, payload: Any) -> "FeedFilters":
        if not isinstance(payload, Mapping):
            return cls()
        values = {
            name: payload[name]
            for name in cls.__dataclass_fields__
            if isinstance(payload.get(name), bool)
        }
        return cls(**values)

    @classmethod
    def from_names(cls, names: Sequence[str]) -> "FeedFilters":
        """Build filters from flag names such as ``["macro", "tech"]``."""

        wanted = {name.strip().lower() for name in names if isinstance(name, str)}
        values = {name: True for name in cls.__dataclass_fields__ if name in wanted}
        values["all"] = not values
        return cls(**values)


def filter_items(
    items: Sequence[Item], filters: FeedFilters, watchlist: Collection[str]
) -> List[Item]:
    """Return items matching every active flag; ``all`` short-circuits."""

    if not items:
        return []
    if filters.all:
        return list(items)

    sectors = filters.active_sectors
    filtered: List[Item] = []
    for item in items:
        if not isinstance(item, Item):
            continue
        tags = item.tags
        if filters.watchlist and not any(ticker in watchlist for ticker in item.tickers):
            continue
        if filters.macro and not (tags is not None and tags.is_macro):
            continue
        if filters.earnings and not (tags is not None and tags.earnings):
            continue
        if filters.sec and not (tags is not None and tags.sec):
            continue
        if filters.social and not (tags is not None and tags.social):
            continue
        if sectors:
            item_sectors = {ticker_sector(ticker) for ticker in item.tickers}
            if not any(sector in item_sectors for sector in sectors):
                continue
        filtered.append(item)
    return filtered


__all__ = ["FeedFilters", "SECTORS", "SECTOR_BY_TICKER", "filter_items", "ticker_sector"]
