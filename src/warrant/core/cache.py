"""Score cache: a bounded, expiring key/value store.

Backends:
    memory  In-process ``TTLCache`` (default). Invalidation only reaches the
            process that performed it.
    redis   ``RedisScoreCache``, shared by every worker and CLI process.
            Requires redis-py: ``pip install warrant-trust[redis]``

Select with ``WARRANT_CACHE_BACKEND=memory|redis`` and
``WARRANT_REDIS_URL``. Cached values must be JSON-serializable so both
backends hold the same data.
"""

from __future__ import annotations

import json
import logging
import threading
import time
from collections import OrderedDict
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

try:
    import redis
except ImportError:  # pragma: no cover
    redis = None  # type: ignore[assignment]

if TYPE_CHECKING:
    from .config import CoreSettings

logger = logging.getLogger(__name__)

DEFAULT_CACHE_MAX_SIZE = 10000
FEED_KEY_PREFIX = "feed:"


def reputation_cache_key(user_id: str) -> str:
    return f"reputation:{user_id}"


def feed_cache_key(author_id: str | None, offset: int, limit: int) -> str:
    return f"{FEED_KEY_PREFIX}{author_id or 'all'}:{offset}:{limit}"


def get_cache_max_size() -> int:
    """Get the configured cache max size from config."""
    from .config import get_config

    try:
        return get_config().cache_max_size
    except Exception:
        return DEFAULT_CACHE_MAX_SIZE


@runtime_checkable
class ScoreCache(Protocol):
    """Cache interface consumed by the ledger, the feed and the workflows."""

    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any, ttl: int | None = None) -> None: ...

    def delete(self, key: str) -> None: ...

    def delete_prefix(self, prefix: str) -> int: ...


class TTLCache:
    """
    In-process cache with LRU eviction and per-entry expiry.

    When the cache exceeds max_size, the least recently accessed entries
    are evicted. Expired entries are dropped lazily on access.

    Thread-safe for concurrent access.

    Example:
        cache = TTLCache(max_size=100)
        cache.set("reputation:u1", 62.0, ttl=300)
        cache.get("reputation:u1")  # 62.0 until the TTL lapses
    """

    def __init__(
        self,
        max_size: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._max_size = max_size if max_size is not None else get_cache_max_size()
        self._clock = clock
        self._entries: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._lock = threading.RLock()

    @property
    def max_size(self) -> int:
        return self._max_size

    def get(self, key: str) -> Any | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[key]
                return None
            self._entries.move_to_end(key)
            return value

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store ``value``; ``ttl`` of None means no expiry."""
        with self._lock:
            expires_at = self._clock() + ttl if ttl else None
            self._entries[key] = (value, expires_at)
            self._entries.move_to_end(key)
            self._evict_if_needed()

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_prefix(self, prefix: str) -> int:
        """Delete every key starting with ``prefix``; returns the count removed."""
        with self._lock:
            doomed = [k for k in self._entries if k.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
            return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and self.get(key) is not None

    def _evict_if_needed(self) -> None:
        while len(self._entries) > self._max_size:
            self._entries.popitem(last=False)

    def stats(self) -> dict[str, Any]:
        """Return cache statistics."""
        with self._lock:
            return {
                "size": len(self._entries),
                "max_size": self._max_size,
                "utilization": len(self._entries) / self._max_size if self._max_size > 0 else 0,
            }


class RedisScoreCache:
    """Redis-backed score cache shared across processes.

    Values are stored as JSON under ``key_prefix`` and expire through Redis
    TTLs. Requires redis-py: ``pip install warrant-trust[redis]``
    """

    def __init__(self, redis_url: str, key_prefix: str = "warrant:") -> None:
        if redis is None:
            raise ImportError(
                "redis package is required for RedisScoreCache. Install with: pip install warrant-trust[redis]"
            )

        self._client = redis.Redis.from_url(redis_url, decode_responses=True)
        self._prefix = key_prefix
        try:
            self._client.ping()
        except redis.ConnectionError:
            logger.warning("Redis connection failed at init; will retry on use")

    def _key(self, key: str) -> str:
        return f"{self._prefix}{key}"

    def get(self, key: str) -> Any | None:
        raw = self._client.get(self._key(key))
        if raw is None:
            return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        payload = json.dumps(value, default=str)
        if ttl:
            self._client.setex(self._key(key), ttl, payload)
        else:
            self._client.set(self._key(key), payload)

    def delete(self, key: str) -> None:
        self._client.delete(self._key(key))

    def delete_prefix(self, prefix: str) -> int:
        count = 0
        for key in self._client.scan_iter(match=f"{self._key(prefix)}*", count=100):
            count += self._client.delete(key)
        return count


def build_cache(settings: CoreSettings) -> ScoreCache:
    """Create the cache backend named by ``settings.cache_backend``."""
    backend = settings.cache_backend.lower()
    if backend == "redis":
        logger.info("Using Redis score cache")
        return RedisScoreCache(settings.redis_url)
    if backend != "memory":
        logger.warning("Unknown cache backend '%s', falling back to memory", backend)
    return TTLCache(max_size=settings.cache_max_size)
