"""Delivery categories and preference gates for items and alerts.

Classification is a pure first-match function over an :class:`Item` or
:class:`Alert`. Two independent gates sit on top of it: the push
notification gate (category toggle AND impact threshold) and the in-app
banner gate (its own toggles plus an optional high-impact-only switch).

Updates: v0.1 - 2026-10-19 - Ported category precedence and impact thresholds into pure helpers.
"""

from __future__ import annotations

from typing import Collection, Iterable, List, Optional

from .config import (
    ECONOMIC_ALERT_TYPES,
    FED_ALERT_TYPES,
    HIGH_IMPACT_SCORE_THRESHOLD,
    IMPACT_LABEL_SCORES,
)
from .models import (
    Alert,
    Category,
    Entity,
    Impact,
    ImpactLevel,
    InAppPreferences,
    Item,
    NotificationPreferences,
    normalize_impact,
)

CATEGORIES: tuple[Category, ...] = ("critical", "economic", "earnings", "watchlist")


def determine_category(entity: object) -> Optional[Category]:
    """Return the single delivery category for ``entity``.

    Alerts never land in ``watchlist``: anything that is neither economic
    nor earnings falls back to ``critical``.
    """

    if isinstance(entity, Item):
        if entity.impact == "High":
            return "critical"
        tags = entity.tags
        if tags is not None and (tags.is_macro or tags.fed):
            return "economic"
        if tags is not None and tags.earnings:
            return "earnings"
        return "watchlist"
    if isinstance(entity, Alert):
        if entity.type in ECONOMIC_ALERT_TYPES:
            return "economic"
        if entity.type == "earnings":
            return "earnings"
        return "critical"
    return None


def entity_impact(entity: object) -> Optional[Impact]:
    if isinstance(entity, Item):
        return entity.impact
    if isinstance(entity, Alert):
        return entity.impact
    return None


def entity_tickers(entity: object) -> tuple[str, ...]:
    if isinstance(entity, (Item, Alert)):
        return entity.tickers
    return ()


def matches_watchlist(entity: object, watchlist: Collection[str]) -> bool:
    return any(ticker in watchlist for ticker in entity_tickers(entity))


def passes_impact_filter(entity: object, impact_level: ImpactLevel) -> bool:
    impact = entity_impact(entity)
    if impact is None:
        return False
    if impact_level == "HIGH":
        return impact == "High"
    return impact in ("High", "Medium")


def passes_category_filter(
    entity: object,
    prefs: NotificationPreferences,
    watchlist: Collection[str],
) -> bool:
    category = determine_category(entity)
    if category is None:
        return False
    if not prefs.category_enabled(category):
        return False
    if category == "watchlist":
        return matches_watchlist(entity, watchlist)
    return True


def should_deliver_notification(
    entity: object,
    prefs: NotificationPreferences,
    watchlist: Collection[str],
) -> bool:
    """Push/persistent notification decision: category gate AND impact gate."""

    if not passes_category_filter(entity, prefs, watchlist):
        return False
    return passes_impact_filter(entity, prefs.impact_level)


def impact_score(entity: object) -> float:
    """Normalised 0..1 impact; explicit producer scores win over the label."""

    explicit: Optional[float] = None
    if isinstance(entity, Item) and entity.classification is not None:
        explicit = entity.classification.impact_score
    elif isinstance(entity, Alert):
        explicit = entity.impact_score
    if explicit is not None:
        return explicit
    impact = entity_impact(entity)
    return IMPACT_LABEL_SCORES.get(impact, 0.0) if impact else 0.0


def _is_fed_related(entity: Entity) -> bool:
    if isinstance(entity, Alert):
        return entity.type in FED_ALERT_TYPES
    return bool(entity.tags is not None and entity.tags.fed)


def _in_app_toggle(entity: Entity, category: Category, prefs: InAppPreferences) -> bool:
    if category == "critical":
        return prefs.critical
    if category == "earnings":
        return prefs.earnings
    if category == "economic":
        return prefs.fed if _is_fed_related(entity) else prefs.cpi
    return prefs.watchlist


def should_show_banner(
    entity: object,
    prefs: InAppPreferences,
    watchlist: Collection[str],
) -> bool:
    """In-app transient banner decision, independent of push preferences."""

    category = determine_category(entity)
    if category is None or not isinstance(entity, (Item, Alert)):
        return False
    if not _in_app_toggle(entity, category, prefs):
        return False
    if category == "watchlist" and not matches_watchlist(entity, watchlist):
        return False
    if prefs.high_impact_only:
        if entity_impact(entity) != "High" and impact_score(entity) < HIGH_IMPACT_SCORE_THRESHOLD:
            return False
    return True


def filter_feed_items(items: Iterable[Item], impact_level: ImpactLevel) -> List[Item]:
    return [item for item in items if passes_impact_filter(item, impact_level)]


def filter_critical_alerts(alerts: Iterable[Alert]) -> List[Alert]:
    return [alert for alert in alerts if isinstance(alert, Alert) and alert.impact == "High"]


def normalize_sentiment(value: object) -> str:
    """Collapse sentiment text into ``bull``, ``bear`` or ``neutral``."""

    text = value.lower() if isinstance(value, str) else ""
    if "bull" in text:
        return "bull"
    if "bear" in text:
        return "bear"
    return "neutral"


__all__ = [
    "CATEGORIES",
    "determine_category",
    "entity_impact",
    "entity_tickers",
    "filter_critical_alerts",
    "filter_feed_items",
    "impact_score",
    "matches_watchlist",
    "normalize_impact",
    "normalize_sentiment",
    "passes_category_filter",
    "passes_impact_filter",
    "should_deliver_notification",
    "should_show_banner",
]
