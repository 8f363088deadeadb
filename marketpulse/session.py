"""Feed session: one owner for all per-client pipeline state.

A :class:`FeedSession` holds the ranked feed, the bounded notification and
critical-alert lists, the highlighted alert and the banner queue controller
(which also owns the dismissed-banner set). :meth:`FeedSession.ingest` runs a
batch of raw records through scoring, deduplication and both preference gates
and routes the accepted entities.

Updates: v0.1 - 2026-10-19 - Replaced the headline refresh controller with a routing session.
Updates: v0.2 - 2026-10-19 - Added derived critical alerts and the late async banner gate.
Updates: v0.3 - 2026-10-19 - Routed batches newest-first by publish time; dismissed banners live on the controller.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Collection, FrozenSet, Iterable, List, Optional, Set, Union

from .banner import BannerQueueController
from .categories import should_deliver_notification, should_show_banner
from .config import (
    CRITICAL_ALERT_LIMIT,
    FEED_LIMIT,
    NOTIFICATION_LIMIT,
    TICKER_HEADLINE_LIMIT,
)
from .filtering import FeedFilters, filter_items
from .models import (
    Alert,
    InAppPreferences,
    Item,
    NotificationPreferences,
    RoutingResult,
    parse_record,
)
from .preferences import PreferenceManager, get_in_app_preferences
from .ranking import rank_items
from .timers import Scheduler
from .utils import parse_iso8601_utc
from .watchlist import WatchlistStore

logger = logging.getLogger(__name__)

WatchlistSource = Union[WatchlistStore, Collection[str], None]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _published_key(entity: Union[Item, Alert]) -> datetime:
    """Sort key by publish time; unparseable timestamps sort oldest."""

    return parse_iso8601_utc(entity.published_at) or _EPOCH


def derive_critical_alert(item: Item) -> Alert:
    """Build the ``critical_<id>`` alert mirrored from a high-impact item."""

    tags = item.tags
    if tags is not None and tags.fed:
        alert_type = "fed"
    elif tags is not None and tags.earnings:
        alert_type = "earnings"
    else:
        alert_type = "cpi"
    classification = item.classification
    return Alert(
        id=f"critical_{item.id}",
        type=alert_type,
        headline=item.title or "",
        source=item.source.name if item.source is not None else "",
        tickers=item.tickers,
        impact=item.impact,
        sentiment=classification.sentiment if classification else "Neutral",
        confidence=classification.confidence if classification else 0.0,
        published_at=item.published_at,
        is_released=True,
        impact_score=classification.impact_score if classification else None,
    )


class FeedSession:
    def __init__(
        self,
        scheduler: Scheduler,
        *,
        preferences: Optional[PreferenceManager] = None,
        watchlist: WatchlistSource = None,
        on_navigate: Optional[Callable[[str], None]] = None,
        feed_limit: int = FEED_LIMIT,
        notification_limit: int = NOTIFICATION_LIMIT,
        critical_limit: int = CRITICAL_ALERT_LIMIT,
    ) -> None:
        self.preferences = preferences
        self.watchlist = watchlist
        self.on_navigate = on_navigate
        self.feed_limit = feed_limit
        self.notification_limit = notification_limit
        self.critical_limit = critical_limit

        self.items: List[Item] = []
        self.notifications: List[Item] = []
        self.critical_alerts: List[Alert] = []
        self.highlighted_alert: Optional[str] = None
        self._seen_ids: Set[str] = set()

        self.banners = BannerQueueController(
            scheduler,
            on_navigate=self._on_banner_navigate,
        )

    # Preference and watchlist views

    @property
    def notification_preferences(self) -> NotificationPreferences:
        if self.preferences is None:
            return NotificationPreferences()
        return self.preferences.notification

    @property
    def in_app_preferences(self) -> InAppPreferences:
        if self.preferences is None:
            return InAppPreferences()
        return self.preferences.in_app

    @property
    def dismissed_banners(self) -> FrozenSet[str]:
        return self.banners.dismissed_ids

    def watch_tickers(self) -> Set[str]:
        if isinstance(self.watchlist, WatchlistStore):
            return self.watchlist.tickers()
        if self.watchlist is None:
            return set()
        return {ticker for ticker in self.watchlist if isinstance(ticker, str)}

    # Routing

    def ingest(self, records: Iterable[Any], *, now: Optional[datetime] = None) -> RoutingResult:
        """Rank a batch into the feed and route entities seen for the first time."""

        fresh_items: List[Item] = []
        fresh_alerts: List[Alert] = []
        skipped = 0
        for record in records:
            entity = record if isinstance(record, (Item, Alert)) else parse_record(record)
            if entity is None or entity.id in self._seen_ids:
                skipped += 1
                continue
            self._seen_ids.add(entity.id)
            if isinstance(entity, Item):
                fresh_items.append(entity)
            else:
                fresh_alerts.append(entity)

        watch = self.watch_tickers()
        push = self.notification_preferences
        in_app = self.in_app_preferences

        self.items = rank_items(fresh_items + self.items, watch, limit=self.feed_limit, now=now)

        notified: List[Item] = []
        new_alerts: List[Alert] = []
        for item in fresh_items:
            if not item.title or not should_deliver_notification(item, push, watch):
                continue
            notified.append(item)
            if item.impact == "High":
                new_alerts.append(derive_critical_alert(item))
        for alert in fresh_alerts:
            if should_deliver_notification(alert, push, watch):
                new_alerts.append(alert)

        # Prepended oldest first so both lists end up newest-first.
        notified.sort(key=_published_key)
        new_alerts.sort(key=_published_key)

        for item in notified:
            self.notifications.insert(0, item)
        del self.notifications[self.notification_limit:]

        known = {alert.id for alert in self.critical_alerts}
        added: List[Alert] = []
        for alert in new_alerts:
            if alert.id in known:
                continue
            known.add(alert.id)
            self.critical_alerts.insert(0, alert)
            added.append(alert)
        del self.critical_alerts[self.critical_limit:]

        bannered = [
            alert
            for alert in added
            if alert.id not in self.dismissed_banners and should_show_banner(alert, in_app, watch)
        ]
        if bannered:
            self.banners.offer(bannered)

        logger.info(
            "Ingested %s item(s), %s alert(s): feed=%s notified=%s critical=%s bannered=%s skipped=%s",
            len(fresh_items),
            len(fresh_alerts),
            len(self.items),
            len(notified),
            len(added),
            len(bannered),
            skipped,
        )
        return RoutingResult(
            ranked=list(self.items),
            notified=notified,
            critical_alerts=added,
            bannered=bannered,
            skipped=skipped,
        )

    async def admit_banner(self, alert: Alert) -> bool:
        """Late banner gate: re-read in-app preferences, then offer if still active."""

        if self.preferences is not None:
            in_app = await get_in_app_preferences(self.preferences.store)
        else:
            in_app = InAppPreferences()
        if not self._is_active(alert.id):
            logger.debug("Banner %s no longer active; skipping admission.", alert.id)
            return False
        if not should_show_banner(alert, in_app, self.watch_tickers()):
            return False
        return self.banners.offer([alert]) > 0

    # Notifications and banners

    def dismiss_notification(self, item_id: str) -> bool:
        before = len(self.notifications)
        self.notifications = [item for item in self.notifications if item.id != item_id]
        return len(self.notifications) != before

    def active_banners(self) -> List[Alert]:
        return [alert for alert in self.critical_alerts if alert.id not in self.dismissed_banners]

    def dismiss_banner(self, alert_id: str) -> None:
        self.banners.discard(alert_id)

    def set_highlighted_alert(self, alert_id: Optional[str]) -> None:
        self.highlighted_alert = alert_id

    def clear_highlighted_alert(self) -> None:
        self.highlighted_alert = None

    # Feed views

    def ticker_headlines(self, ticker: str, *, limit: int = TICKER_HEADLINE_LIMIT) -> List[Item]:
        if not ticker:
            return []
        return [item for item in self.items if ticker in item.tickers][:limit]

    def filtered_items(self, filters: Optional[FeedFilters] = None) -> List[Item]:
        return filter_items(self.items, filters or FeedFilters(), self.watch_tickers())

    # Lifecycle

    def reset(self) -> None:
        self.items = []
        self.notifications = []
        self.critical_alerts = []
        self.highlighted_alert = None
        self._seen_ids = set()
        self.banners.reset()

    def close(self) -> None:
        self.banners.close()

    def _is_active(self, alert_id: str) -> bool:
        if alert_id in self.dismissed_banners:
            return False
        return any(alert.id == alert_id for alert in self.critical_alerts)

    def _on_banner_navigate(self, alert_id: str) -> None:
        self.set_highlighted_alert(alert_id)
        if self.on_navigate is not None:
            self.on_navigate(alert_id)


__all__ = ["FeedSession", "derive_critical_alert"]
