"""Domain models backing the Market Pulse feed pipeline.

The dataclasses here describe the records flowing through scoring,
deduplication, classification and banner routing. Constructors from raw
payloads are tolerant: malformed fields degrade to ``None`` or safe defaults
instead of raising, so a single bad record never takes down a feed.

Updates: v0.1 - 2026-10-19 - Replaced headline cache models with feed items, alerts and preferences.
Updates: v0.2 - 2026-10-19 - Added banner snapshot and routing result records.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Literal, Mapping, Optional, Tuple, Union

from .config import IMPACT_LEVELS
from .utils import clamp, coerce_number

Impact = Literal["Low", "Medium", "High"]
ImpactLevel = Literal["HIGH", "MEDIUM_HIGH"]
Category = Literal["critical", "economic", "earnings", "watchlist"]

IMPACT_LEVEL_CHOICES: Tuple[str, ...] = ("HIGH", "MEDIUM_HIGH")


@dataclass(frozen=True)
class AppMetadata:
    name: str
    version: str
    description: str


def _text(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    return value if isinstance(value, str) else None


def _flag(payload: Mapping[str, Any], key: str, default: bool = False) -> bool:
    value = payload.get(key)
    return value if isinstance(value, bool) else default


def _percent(value: Any) -> float:
    return clamp(coerce_number(value), 0.0, 100.0)


def _optional_unit(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return clamp(float(value), 0.0, 1.0)


def _tickers(value: Any) -> Tuple[str, ...]:
    if not isinstance(value, (list, tuple)):
        return ()
    return tuple(entry for entry in value if isinstance(entry, str) and entry)


def normalize_impact(value: Any) -> Optional[Impact]:
    """Map free-form impact text onto ``Low``/``Medium``/``High``."""

    if not isinstance(value, str):
        return None
    candidate = value.strip().capitalize()
    return candidate if candidate in IMPACT_LEVELS else None  # type: ignore[return-value]


@dataclass(frozen=True)
class Source:
    name: str
    type: str = "news"
    reliability: float = 0.0
    url: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "reliability": self.reliability,
        }
        if self.url:
            payload["url"] = self.url
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["Source"]:
        if not isinstance(payload, Mapping):
            return None
        return cls(
            name=_text(payload, "name") or "Unknown",
            type=_text(payload, "type") or "news",
            reliability=_percent(payload.get("reliability")),
            url=_text(payload, "url"),
        )


@dataclass(frozen=True)
class Tags:
    is_macro: bool = False
    fed: bool = False
    sec: bool = False
    earnings: bool = False
    social: bool = False

    def as_dict(self) -> Dict[str, bool]:
        return {
            "is_macro": self.is_macro,
            "fed": self.fed,
            "sec": self.sec,
            "earnings": self.earnings,
            "social": self.social,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["Tags"]:
        if not isinstance(payload, Mapping):
            return None
        return cls(
            is_macro=_flag(payload, "is_macro"),
            fed=_flag(payload, "fed"),
            sec=_flag(payload, "sec"),
            earnings=_flag(payload, "earnings"),
            social=_flag(payload, "social"),
        )


@dataclass(frozen=True)
class Classification:
    impact: Optional[Impact]
    confidence: float = 0.0
    sentiment: str = "Neutral"
    rumor_level: str = "Confirmed"
    summary: str = ""
    impact_score: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "rumor_level": self.rumor_level,
            "sentiment": self.sentiment,
            "confidence": self.confidence,
            "impact": self.impact,
            "summary_15": self.summary,
        }
        if self.impact_score is not None:
            payload["impact_score"] = self.impact_score
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["Classification"]:
        if not isinstance(payload, Mapping):
            return None
        summary = _text(payload, "summary_15") or _text(payload, "summary") or ""
        return cls(
            impact=normalize_impact(payload.get("impact")),
            confidence=_percent(payload.get("confidence")),
            sentiment=_text(payload, "sentiment") or "Neutral",
            rumor_level=_text(payload, "rumor_level") or "Confirmed",
            summary=summary,
            impact_score=_optional_unit(payload.get("impact_score")),
        )


@dataclass(frozen=True)
class Item:
    """A scored news unit. Sub-records are ``None`` when the producer omitted them."""

    id: str
    title: Optional[str]
    published_at: Optional[str] = None
    url: Optional[str] = None
    source: Optional[Source] = None
    tickers: Tuple[str, ...] = ()
    tags: Optional[Tags] = None
    classification: Optional[Classification] = None
    dedupe_key: Optional[str] = None
    score: Optional[float] = None

    @property
    def impact(self) -> Optional[Impact]:
        return self.classification.impact if self.classification else None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "published_at": self.published_at,
            "tickers": list(self.tickers),
        }
        if self.url:
            payload["url"] = self.url
        if self.source is not None:
            payload["source"] = self.source.as_dict()
        if self.tags is not None:
            payload["tags"] = self.tags.as_dict()
        if self.classification is not None:
            payload["classification"] = self.classification.as_dict()
        if self.dedupe_key:
            payload["dedupe_key"] = self.dedupe_key
        if self.score is not None:
            payload["score"] = self.score
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["Item"]:
        if not isinstance(payload, Mapping):
            return None
        identifier = payload.get("id")
        if not isinstance(identifier, (str, int)) or isinstance(identifier, bool):
            return None
        score = payload.get("score")
        return cls(
            id=str(identifier),
            title=_text(payload, "title"),
            published_at=_text(payload, "published_at"),
            url=_text(payload, "url"),
            source=Source.from_dict(payload.get("source")),
            tickers=_tickers(payload.get("tickers")),
            tags=Tags.from_dict(payload.get("tags")),
            classification=Classification.from_dict(payload.get("classification")),
            dedupe_key=_text(payload, "dedupe_key") or None,
            score=None if isinstance(score, bool) or not isinstance(score, (int, float)) else float(score),
        )


@dataclass(frozen=True)
class Alert:
    """A structured critical or scheduled event notice; carries no body text."""

    id: str
    type: str
    headline: str
    source: str = ""
    tickers: Tuple[str, ...] = ()
    impact: Optional[Impact] = None
    sentiment: str = "Neutral"
    confidence: float = 0.0
    published_at: Optional[str] = None
    is_released: bool = False
    forecast: Optional[str] = None
    previous: Optional[str] = None
    actual: Optional[str] = None
    verdict: Optional[str] = None
    expected_eps: Optional[float] = None
    actual_eps: Optional[float] = None
    impact_score: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": self.id,
            "type": self.type,
            "headline": self.headline,
            "source": self.source,
            "tickers": list(self.tickers),
            "impact": self.impact,
            "sentiment": self.sentiment,
            "confidence": self.confidence,
            "published_at": self.published_at,
            "is_released": self.is_released,
        }
        for key in ("forecast", "previous", "actual", "verdict", "expected_eps", "actual_eps", "impact_score"):
            value = getattr(self, key)
            if value is not None:
                payload[key] = value
        return payload

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["Alert"]:
        if not isinstance(payload, Mapping):
            return None
        identifier = payload.get("id")
        alert_type = _text(payload, "type")
        headline = _text(payload, "headline")
        if not isinstance(identifier, (str, int)) or isinstance(identifier, bool):
            return None
        if not headline or not alert_type:
            return None
        alert_type = alert_type.strip().lower()

        def _eps(key: str) -> Optional[float]:
            value = payload.get(key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return None
            return float(value)

        return cls(
            id=str(identifier),
            type=alert_type,
            headline=headline,
            source=_text(payload, "source") or "",
            tickers=_tickers(payload.get("tickers")),
            impact=normalize_impact(payload.get("impact")),
            sentiment=_text(payload, "sentiment") or "Neutral",
            confidence=_percent(payload.get("confidence")),
            published_at=_text(payload, "published_at"),
            is_released=_flag(payload, "is_released"),
            forecast=_text(payload, "forecast"),
            previous=_text(payload, "previous"),
            actual=_text(payload, "actual"),
            verdict=_text(payload, "verdict"),
            expected_eps=_eps("expected_eps"),
            actual_eps=_eps("actual_eps"),
            impact_score=_optional_unit(payload.get("impact_score")),
        )


Entity = Union[Item, Alert]


def parse_record(payload: Any) -> Optional[Entity]:
    """Return an :class:`Item` or :class:`Alert` for a raw mapping, else ``None``."""

    if not isinstance(payload, Mapping):
        return None
    if "classification" in payload:
        return Item.from_dict(payload)
    if "headline" in payload and "type" in payload:
        return Alert.from_dict(payload)
    if "title" in payload:
        return Item.from_dict(payload)
    return None


@dataclass(frozen=True)
class NotificationPreferences:
    impact_level: ImpactLevel = "HIGH"
    critical: bool = True
    economic: bool = True
    earnings: bool = True
    watchlist: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "impactLevel": self.impact_level,
            "critical": self.critical,
            "economic": self.economic,
            "earnings": self.earnings,
            "watchlist": self.watchlist,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "NotificationPreferences":
        if not isinstance(payload, Mapping):
            return cls()
        level = payload.get("impactLevel")
        return cls(
            impact_level=level if level in IMPACT_LEVEL_CHOICES else "HIGH",
            critical=_flag(payload, "critical", True),
            economic=_flag(payload, "economic", True),
            earnings=_flag(payload, "earnings", True),
            watchlist=_flag(payload, "watchlist", True),
        )

    def category_enabled(self, category: str) -> bool:
        return bool(getattr(self, category, False)) if category in _PUSH_CATEGORIES else False


_PUSH_CATEGORIES = frozenset({"critical", "economic", "earnings", "watchlist"})


@dataclass(frozen=True)
class InAppPreferences:
    critical: bool = True
    earnings: bool = True
    cpi: bool = True
    fed: bool = True
    watchlist: bool = True
    high_impact_only: bool = False

    def as_dict(self) -> Dict[str, bool]:
        return {
            "critical": self.critical,
            "earnings": self.earnings,
            "cpi": self.cpi,
            "fed": self.fed,
            "watchlist": self.watchlist,
            "highImpactOnly": self.high_impact_only,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "InAppPreferences":
        if not isinstance(payload, Mapping):
            return cls()
        return cls(
            critical=_flag(payload, "critical", True),
            earnings=_flag(payload, "earnings", True),
            cpi=_flag(payload, "cpi", True),
            fed=_flag(payload, "fed", True),
            watchlist=_flag(payload, "watchlist", True),
            high_impact_only=_flag(payload, "highImpactOnly", False),
        )


@dataclass(frozen=True)
class WatchlistFolder:
    id: str
    name: str
    tickers: Tuple[str, ...] = ()
    is_expanded: bool = True

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "tickers": list(self.tickers),
            "isExpanded": self.is_expanded,
        }

    @classmethod
    def from_dict(cls, payload: Any) -> Optional["WatchlistFolder"]:
        if not isinstance(payload, Mapping):
            return None
        identifier = payload.get("id")
        name = payload.get("name")
        tickers = payload.get("tickers")
        if not isinstance(identifier, str) or not isinstance(name, str):
            return None
        if not isinstance(tickers, list):
            return None
        unique: List[str] = []
        for ticker in tickers:
            if isinstance(ticker, str) and ticker.strip():
                symbol = ticker.strip().upper()
                if symbol not in unique:
                    unique.append(symbol)
        return cls(
            id=identifier,
            name=name,
            tickers=tuple(unique),
            is_expanded=_flag(payload, "isExpanded", True),
        )


class BannerState(str, Enum):
    IDLE = "idle"
    SHOWING = "showing"
    DISMISSING = "dismissing"


@dataclass(frozen=True)
class BannerSnapshot:
    state: BannerState
    current: Optional[Alert]
    queued_ids: Tuple[str, ...]
    dismissed_ids: FrozenSet[str]


@dataclass(frozen=True)
class RoutingResult:
    ranked: List[Item]
    notified: List[Item] = field(default_factory=list)
    critical_alerts: List[Alert] = field(default_factory=list)
    bannered: List[Alert] = field(default_factory=list)
    skipped: int = 0


__all__ = [
    "Alert",
    "AppMetadata",
    "BannerSnapshot",
    "BannerState",
    "Category",
    "Classification",
    "Entity",
    "IMPACT_LEVEL_CHOICES",
    "Impact",
    "ImpactLevel",
    "InAppPreferences",
    "Item",
    "NotificationPreferences",
    "RoutingResult",
    "Source",
    "Tags",
    "WatchlistFolder",
    "normalize_impact",
    "parse_record",
]
