"""Pipeline input loading from JSON files and HTTP endpoints.

A feed payload is either a bare list of records or an object with ``items``
and/or ``alerts`` lists. Records that are neither a valid Item nor a valid
Alert are skipped. Loaders never raise: failures are logged and yield an
empty list.

Updates: v0.1 - 2026-10-19 - Reused the pooled retrying HTTP session for feed downloads.
"""

from __future__ import annotations

import atexit
import json
import logging
import threading
from pathlib import Path
from typing import Any, Iterable, List, Sequence, Set, Union

import requests
from requests import Session
from requests.adapters import HTTPAdapter
from urllib3.util import Retry

from .config import HTTP_TIMEOUT, USER_AGENT
from .models import Entity, parse_record

logger = logging.getLogger(__name__)

_HTTP_THREAD_LOCAL = threading.local()
_HTTP_SESSION_LOCK = threading.Lock()
_HTTP_SESSIONS: Set[Session] = set()
_RETRY_STATUSES: Set[int] = {408, 429, 500, 502, 503, 504}


def _build_retry() -> Retry:
    return Retry(  # pragma: no cover - network configuration
        total=2,
        backoff_factor=0.3,
        status_forcelist=sorted(_RETRY_STATUSES),
        allowed_methods=["HEAD", "GET", "OPTIONS"],
        raise_on_status=False,
    )


def get_http_session() -> Session:
    """Return a thread-local shared requests session configured with retries."""

    session = getattr(_HTTP_THREAD_LOCAL, "session", None)
    if session is not None:
        return session
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=4, pool_maxsize=8, max_retries=_build_retry())
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"User-Agent": USER_AGENT, "Accept": "application/json"})
    with _HTTP_SESSION_LOCK:
        _HTTP_SESSIONS.add(session)
    _HTTP_THREAD_LOCAL.session = session
    return session


def close_all_sessions() -> None:
    """Close pooled HTTP sessions at shutdown."""

    with _HTTP_SESSION_LOCK:
        sessions: Sequence[Session] = tuple(_HTTP_SESSIONS)
        _HTTP_SESSIONS.clear()
    for session in sessions:
        try:
            session.close()
        except Exception:  # pragma: no cover - close failures are irrelevant at exit
            continue
    _HTTP_THREAD_LOCAL.session = None


def _records(payload: Any) -> Iterable[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        records: List[Any] = []
        for key in ("items", "feedItems", "alerts", "critical_alerts"):
            value = payload.get(key)
            if isinstance(value, list):
                records.extend(value)
        return records
    return []


def parse_feed_payload(payload: Any) -> List[Entity]:
    """Turn decoded JSON into Items and Alerts, skipping malformed records."""

    entities: List[Entity] = []
    skipped = 0
    for record in _records(payload):
        entity = parse_record(record)
        if entity is None:
            skipped += 1
            continue
        entities.append(entity)
    if skipped:
        logger.warning("Skipped %s malformed feed record(s).", skipped)
    return entities


def load_feed_file(path: Union[str, Path]) -> List[Entity]:
    try:
        with Path(path).open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except Exception as exc:
        logger.warning("Unable to read feed file %s: %s", path, exc)
        return []
    return parse_feed_payload(payload)


def fetch_feed(url: str, *, timeout: int = HTTP_TIMEOUT) -> List[Entity]:
    session = get_http_session()
    try:
        response = session.get(url, timeout=timeout)
        response.raise_for_status()
        payload = response.json()
    except (requests.RequestException, ValueError) as exc:
        logger.warning("Unable to fetch feed %s: %s", url, exc)
        return []
    return parse_feed_payload(payload)


def load_feed(source: str) -> List[Entity]:
    """Dispatch to :func:`fetch_feed` for http(s) URLs, else read a file."""

    if source.lower().startswith(("http://", "https://")):
        return fetch_feed(source)
    return load_feed_file(source)


atexit.register(close_all_sessions)


__all__ = [
    "close_all_sessions",
    "fetch_feed",
    "get_http_session",
    "load_feed",
    "load_feed_file",
    "parse_feed_payload",
]
