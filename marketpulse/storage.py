"""Key/value persistence backends for preferences and watchlist folders.

Values are JSON text stored under namespaced string keys. Three backends
share the same small contract (``get_item``/``set_item``/``remove_item``):
a single JSON file on disk, a Redis instance when ``REDIS_URL`` is set, and
an in-memory dictionary.

Persistence is best effort. Read failures and corrupt payloads fall back to
``None`` (callers then apply defaults); write failures are logged and
swallowed so in-memory state stays the source of truth.

Updates: v0.1 - 2026-10-19 - Generalised the settings file helpers into a key/value contract.
Updates: v0.2 - 2026-10-19 - Moved the shared Redis client here as an optional backend.
"""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Dict, Optional, Protocol

try:
    import redis  # type: ignore
except ImportError:  # pragma: no cover - optional dependency
    redis = None  # type: ignore

from .config import REDIS_PREFIX, REDIS_URL, STORE_PATH

logger = logging.getLogger(__name__)

_redis_client: Optional[Any] = None
_redis_lock = threading.Lock()


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStore:
    """Process-local store; handy for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore:
    """All keys live in one JSON object file; every write rewrites the file."""

    def __init__(self, path: Path = STORE_PATH) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with self.path.open("r", encoding="utf-8") as handle:
            data = json.load(handle)
        if not isinstance(data, dict):
            logger.warning("Store file %s does not hold an object; ignoring it.", self.path)
            return {}
        return {key: value for key, value in data.items() if isinstance(value, str)}

    def _write_all(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            json.dump(data, handle, indent=2)

    def get_item(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            try:
                data = self._read_all()
            except ValueError:
                logger.warning("Store file %s is corrupt; starting a fresh one.", self.path)
                data = {}
            data[key] = value
            self._write_all(data)

    def remove_item(self, key: str) -> None:
        with self._lock:
            data = self._read_all()
            if key in data:
                del data[key]
                self._write_all(data)


def get_redis_client() -> Optional[Any]:
    """Return a cached Redis client if available."""

    global _redis_client
    if redis is None or not REDIS_URL:
        return None
    if _redis_client is not None:
        return _redis_client
    with _redis_lock:
        if _redis_client is not None:
            return _redis_client
        try:
            _redis_client = redis.from_url(  # type: ignore[attr-defined]
                REDIS_URL, decode_responses=True
            )
        except Exception as exc:  # pragma: no cover - redis connection failure
            logger.warning("Unable to connect to Redis store: %s", exc)
            _redis_client = None
    return _redis_client


class RedisStore:
    """Keys are namespaced with ``prefix`` so several clients can share a server."""

    def __init__(self, client: Any, *, prefix: str = REDIS_PREFIX) -> None:
        self.client = client
        self.prefix = prefix

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def get_item(self, key: str) -> Optional[str]:
        value = self.client.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode("utf-8")
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        self.client.set(self._key(key), value)

    def remove_item(self, key: str) -> None:
        self.client.delete(self._key(key))


def build_default_store() -> KeyValueStore:
    """Redis when configured and reachable, otherwise the JSON file store."""

    client = get_redis_client()
    if client is not None:
        logger.debug("Using Redis key/value store at prefix %s", REDIS_PREFIX)
        return RedisStore(client)
    logger.debug("Using JSON file store at %s", STORE_PATH)
    return JsonFileStore(STORE_PATH)


def read_json(store: KeyValueStore, key: str, *, clear_corrupt: bool = True) -> Any:
    """Load and decode the JSON value under ``key``; ``None`` when absent or bad."""

    try:
        raw = store.get_item(key)
    except Exception as exc:  # pragma: no cover - IO issues
        logger.warning("Unable to read '%s' from store: %s", key, exc)
        return None
    if raw is None or not raw.strip():
        return None
    try:
        return json.loads(raw)
    except ValueError as exc:
        logger.warning("Stored value for '%s' is not valid JSON: %s", key, exc)
        if clear_corrupt:
            try:
                store.remove_item(key)
            except Exception as clear_exc:  # pragma: no cover - IO issues
                logger.warning("Unable to clear corrupt '%s': %s", key, clear_exc)
        return None


def write_json(store: KeyValueStore, key: str, value: Any) -> bool:
    """Persist ``value`` as JSON; returns ``False`` (after logging) on failure."""

    try:
        payload = json.dumps(value)
    except (TypeError, ValueError) as exc:
        logger.warning("Refusing to store non-serialisable value for '%s': %s", key, exc)
        return False
    try:
        store.set_item(key, payload)
    except Exception as exc:
        logger.warning("Unable to persist '%s': %s", key, exc)
        return False
    return True


__all__ = [
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "RedisStore",
    "build_default_store",
    "get_redis_client",
    "read_json",
    "write_json",
]
