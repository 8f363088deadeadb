"""Title keys, relevance scoring and near-duplicate collapsing for feed items.

Every function in this module is pure: inputs are never mutated and malformed
records degrade to a score of ``0`` or are skipped rather than raising.

Updates: v0.1 - 2026-10-19 - Replaced keyword highlight lookups with title keys and relevance scoring.
Updates: v0.2 - 2026-10-19 - Added dedupe-key and title-group deduplication.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from datetime import datetime, timezone
from typing import Collection, Dict, Iterable, List, Optional, Sequence, Set

from .config import (
    FRESHNESS_WINDOW_HOURS,
    MACRO_BOOST,
    MACRO_WEIGHT_CEILING,
    SCORE_WEIGHTS,
    SURPRISE_CONFIDENCE_CUTOFF,
    TICKER_MISS_WEIGHT,
    TITLE_KEY_MIN_LENGTH,
    TITLE_KEY_TOKENS,
    TITLE_STOP_WORDS,
)
from .models import Item
from .utils import clamp, coerce_number, parse_iso8601_utc

logger = logging.getLogger(__name__)

_NON_ALNUM_PATTERN = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_PATTERN = re.compile(r"\s+")

UNKNOWN_TITLE_KEY = "unknown"


def title_key(title: Optional[str]) -> str:
    """Return a coarse similarity key for a headline.

    The key is the first three significant words of the lower-cased,
    punctuation-stripped title joined by underscores. Only ASCII letters and
    digits survive, so the result never depends on the active locale.
    """

    if not isinstance(title, str) or not title:
        return UNKNOWN_TITLE_KEY
    cleaned = _NON_ALNUM_PATTERN.sub("", title.lower())
    words = [
        word
        for word in _WHITESPACE_PATTERN.split(cleaned)
        if len(word) >= TITLE_KEY_MIN_LENGTH and word not in TITLE_STOP_WORDS
    ]
    return "_".join(words[:TITLE_KEY_TOKENS]) or UNKNOWN_TITLE_KEY


def _ticker_match(tickers: Iterable[str], watchlist: Collection[str]) -> bool:
    return any(isinstance(ticker, str) and ticker in watchlist for ticker in tickers)


def calculate_score(
    item: Item,
    watchlist: Collection[str],
    *,
    now: Optional[datetime] = None,
) -> float:
    """Composite 0-100 ranking score for ``item``.

    Items missing a timestamp, source, classification or tags score exactly
    ``0``. The macro sub-term is clamped to ``[0, 2]`` rather than ``[0, 1]``
    so macro and Fed items keep their boost over the nominal ceiling.
    """

    if not isinstance(item, Item):
        return 0.0
    if not item.published_at or item.source is None or item.classification is None or item.tags is None:
        return 0.0
    published = parse_iso8601_utc(item.published_at)
    if published is None:
        logger.debug("Unparseable timestamp for item %s: %r", item.id, item.published_at)
        return 0.0

    reference = now or datetime.now(timezone.utc)
    if reference.tzinfo is None:
        reference = reference.replace(tzinfo=timezone.utc)
    age_hours = (reference - published).total_seconds() / 3600.0

    reliability = coerce_number(item.source.reliability) / 100.0
    freshness = max(0.0, 1.0 - abs(age_hours) / FRESHNESS_WINDOW_HOURS)
    ticker_match = 1.0 if _ticker_match(item.tickers, watchlist or ()) else TICKER_MISS_WEIGHT
    confidence = coerce_number(item.classification.confidence)
    surprise = 1.0 if confidence > SURPRISE_CONFIDENCE_CUTOFF else confidence / 100.0
    macro_weight = MACRO_BOOST if (item.tags.is_macro or item.tags.fed) else 1.0

    weighted = (
        SCORE_WEIGHTS["reliability"] * clamp(reliability, 0.0, 1.0)
        + SCORE_WEIGHTS["freshness"] * clamp(freshness, 0.0, 1.0)
        + SCORE_WEIGHTS["ticker_match"] * clamp(ticker_match, 0.0, 1.0)
        + SCORE_WEIGHTS["surprise"] * clamp(surprise, 0.0, 1.0)
        + SCORE_WEIGHTS["macro"] * clamp(macro_weight, 0.0, MACRO_WEIGHT_CEILING)
    ) * 100.0
    return round(max(0.0, weighted), 2)


def score_items(
    items: Iterable[Item],
    watchlist: Collection[str],
    *,
    now: Optional[datetime] = None,
) -> List[Item]:
    """Return scored copies of ``items``; records without a title are dropped."""

    reference = now or datetime.now(timezone.utc)
    watch: Set[str] = set(watchlist or ())
    scored: List[Item] = []
    for item in items:
        if not isinstance(item, Item) or not item.title:
            continue
        scored.append(dataclasses.replace(item, score=calculate_score(item, watch, now=reference)))
    return scored


def _reliability(item: Item) -> float:
    return coerce_number(item.source.reliability) if item.source is not None else 0.0


def deduplicate_items(items: Sequence[Item]) -> List[Item]:
    """Collapse near-duplicates to one representative each, ordered by score.

    Explicit dedupe keys are resolved first (first occurrence wins, later
    holders are dropped). Survivors are grouped by :func:`title_key`; each
    group keeps its most reliable source, with ties going to the earliest
    item. The final sort is stable and treats a missing score as ``0``.
    """

    if not items:
        return []

    seen_keys: Set[str] = set()
    groups: Dict[str, List[Item]] = {}
    for item in items:
        if not isinstance(item, Item) or not item.title:
            continue
        if item.dedupe_key:
            if item.dedupe_key in seen_keys:
                continue
            seen_keys.add(item.dedupe_key)
        groups.setdefault(title_key(item.title), []).append(item)

    representatives: List[Item] = []
    for group in groups.values():
        if len(group) == 1:
            representatives.append(group[0])
            continue
        best = group[0]
        for candidate in group[1:]:
            if _reliability(candidate) > _reliability(best):
                best = candidate
        representatives.append(best)

    return sorted(representatives, key=lambda entry: entry.score or 0.0, reverse=True)


def rank_items(
    items: Iterable[Item],
    watchlist: Collection[str],
    *,
    limit: Optional[int] = None,
    now: Optional[datetime] = None,
) -> List[Item]:
    """Score, deduplicate and optionally truncate a batch of items."""

    ranked = deduplicate_items(score_items(items, watchlist, now=now))
    if limit is not None and limit >= 0:
        return ranked[:limit]
    return ranked


__all__ = [
    "UNKNOWN_TITLE_KEY",
    "calculate_score",
    "deduplicate_items",
    "rank_items",
    "score_items",
    "title_key",
]
