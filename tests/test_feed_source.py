"""Tests for feed loading.

Covers:
- parse_feed_payload for bare lists and items/alerts objects
- load_feed_file success and failure
- fetch_feed with a monkeypatched HTTP session (success and network error)
- load_feed dispatch between URLs and paths
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import pytest
import requests

from marketpulse import feed_source
from marketpulse.feed_source import fetch_feed, load_feed, load_feed_file, parse_feed_payload
from marketpulse.models import Alert, Item

_ITEM = {
    "id": "n1",
    "title": "Fed signals patience",
    "published_at": "2026-03-02T14:00:00Z",
    "source": {"name": "Reuters", "reliability": 140},
    "tickers": ["SPY", 7],
    "tags": {"is_macro": True, "fed": True},
    "classification": {"impact": "high", "confidence": 85, "sentiment": "Bullish"},
}
_ALERT = {"id": 42, "type": "FOMC", "headline": "FOMC holds", "impact": "High"}


def test_parse_bare_list() -> None:
    """A list mixes items and alerts; malformed entries are skipped."""
    entities = parse_feed_payload([_ITEM, _ALERT, {"id": "x"}, "junk"])
    assert [type(entity) for entity in entities] == [Item, Alert]
    item, alert = entities
    assert item.source.reliability == 100
    assert item.tickers == ("SPY",)
    assert item.impact == "High"
    assert alert.id == "42"
    assert alert.type == "fomc"


def test_parse_object_payload() -> None:
    """Objects contribute their items and alerts lists."""
    entities = parse_feed_payload({"items": [_ITEM], "alerts": [_ALERT]})
    assert len(entities) == 2
    assert parse_feed_payload("nope") == []


def test_load_feed_file(tmp_path: Path) -> None:
    """Files decode to entities; missing or invalid files give []."""
    path = tmp_path / "feed.json"
    path.write_text(json.dumps([_ITEM]), encoding="utf-8")
    assert len(load_feed_file(path)) == 1
    assert load_feed_file(tmp_path / "missing.json") == []
    bad = tmp_path / "bad.json"
    bad.write_text("{", encoding="utf-8")
    assert load_feed_file(bad) == []


class _Response:
    def __init__(self, payload: Any) -> None:
        self._payload = payload

    def raise_for_status(self) -> None:
        return None

    def json(self) -> Any:
        return self._payload


class _Session:
    def __init__(self, payload: Any = None, error: Exception | None = None) -> None:
        self.payload = payload
        self.error = error
        self.calls: list = []

    def get(self, url: str, timeout: int) -> _Response:
        self.calls.append((url, timeout))
        if self.error is not None:
            raise self.error
        return _Response(self.payload)


def test_fetch_feed_uses_shared_session(monkeypatch: pytest.MonkeyPatch) -> None:
    """The pooled session is used and its JSON is parsed."""
    session = _Session({"items": [_ITEM]})
    monkeypatch.setattr(feed_source, "get_http_session", lambda: session)
    entities = fetch_feed("https://feeds.example/market.json", timeout=3)
    assert [entity.id for entity in entities] == ["n1"]
    assert session.calls == [("https://feeds.example/market.json", 3)]


def test_fetch_feed_network_error(monkeypatch: pytest.MonkeyPatch) -> None:
    """Request failures are logged and produce an empty list."""
    session = _Session(error=requests.ConnectionError("down"))
    monkeypatch.setattr(feed_source, "get_http_session", lambda: session)
    assert fetch_feed("https://feeds.example/market.json") == []


def test_load_feed_dispatch(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """URLs go to fetch_feed, everything else to load_feed_file."""
    monkeypatch.setattr(feed_source, "fetch_feed", lambda url: ["remote"])
    monkeypatch.setattr(feed_source, "load_feed_file", lambda path: ["local"])
    assert load_feed("HTTPS://feeds.example/x.json") == ["remote"]
    assert load_feed(str(tmp_path / "x.json")) == ["local"]


def test_get_http_session_is_cached() -> None:
    """The thread-local session is reused until closed."""
    first = feed_source.get_http_session()
    assert feed_source.get_http_session() is first
    assert first.headers["User-Agent"].startswith("MarketPulse/")
    feed_source.close_all_sessions()
    assert feed_source.get_http_session() is not first
    feed_source.close_all_sessions()
