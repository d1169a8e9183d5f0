# src/threadcore/cache/memory_cache.py
"""
In-process session cache with TTL expiry and LRU eviction.

Values are stored in their serialized JSON form, exactly as the Redis
backend stores them, so round-trip and corrupt-payload behaviour is the
same for both backends. Intended for tests and for single-process
deployments that run without Redis.

Usage:
    cache = MemorySessionCache(default_ttl_seconds=3600)
    await cache.put("thread-1", session)
    session = await cache.get("thread-1")
"""

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from ..exceptions import SessionSerializationError
from ..models import SerializedSession
from .base import BaseSessionCache
from .health import HealthCheckResult, HealthStatus

logger = logging.getLogger(__name__)


@dataclass
class CacheEntry:
    """A serialized session and its absolute expiry time."""

    payload: str
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class MemorySessionCache(BaseSessionCache):
    """
    Dictionary-backed session cache.

    Expiry is evaluated lazily on access against an injectable clock, which
    lets tests advance time without sleeping.

    Attributes:
        max_items: Maximum number of entries (0 = unlimited); the least
            recently used entry is evicted when exceeded.
    """

    def __init__(
        self,
        key_prefix: str = "threadcore:session:",
        default_ttl_seconds: int = 7 * 24 * 60 * 60,
        max_items: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.key_prefix = key_prefix
        self.default_ttl_seconds = default_ttl_seconds
        self.max_items = max_items
        self._clock = clock
        self._store: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._closed = False
        self._stats: Dict[str, int] = {
            "hits": 0,
            "misses": 0,
            "sets": 0,
            "deletes": 0,
            "evictions": 0,
            "expirations": 0,
        }
        logger.debug(
            f"MemorySessionCache initialized: max_items={max_items}, default_ttl={default_ttl_seconds}s"
        )

    async def initialize(self) -> None:
        self._closed = False
        logger.info("In-memory session cache ready.")

    async def put(self, thread_id: str, session: SerializedSession, ttl_seconds: Optional[int] = None) -> bool:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        key = self.key_for(thread_id)
        try:
            payload = session.to_json()
        except (ValueError, TypeError) as e:
            logger.warning(f"Dropping cache write for thread '{thread_id}': serialization failed: {e}")
            return False

        self._store[key] = CacheEntry(payload=payload, expires_at=self._clock() + ttl)
        self._store.move_to_end(key)
        self._stats["sets"] += 1
        self._evict_if_needed()
        return True

    async def get(self, thread_id: str) -> Optional[SerializedSession]:
        key = self.key_for(thread_id)
        entry = self._store.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None
        if entry.is_expired(self._clock()):
            del self._store[key]
            self._stats["expirations"] += 1
            self._stats["misses"] += 1
            return None

        try:
            session = self.decode_session(thread_id, entry.payload)
        except SessionSerializationError as e:
            logger.warning(f"Discarding corrupt cached session for thread '{thread_id}': {e}")
            del self._store[key]
            self._stats["misses"] += 1
            return None

        self._store.move_to_end(key)
        self._stats["hits"] += 1
        return session

    async def delete(self, thread_id: str) -> bool:
        removed = self._store.pop(self.key_for(thread_id), None) is not None
        if removed:
            self._stats["deletes"] += 1
        return removed

    async def ping(self) -> HealthCheckResult:
        status = HealthStatus.UNHEALTHY if self._closed else HealthStatus.HEALTHY
        return HealthCheckResult(
            backend_name="memory",
            status=status,
            latency_ms=0.0,
            error_message="cache closed" if self._closed else None,
        )

    async def close(self) -> None:
        self._store.clear()
        self._closed = True

    def _evict_if_needed(self) -> None:
        while self.max_items and len(self._store) > self.max_items:
            evicted_key, _ = self._store.popitem(last=False)
            self._stats["evictions"] += 1
            logger.debug(f"Evicted least recently used session entry '{evicted_key}'")

    def ttl_remaining(self, thread_id: str) -> Optional[float]:
        """Seconds until the entry expires, or None if absent."""
        entry = self._store.get(self.key_for(thread_id))
        if entry is None:
            return None
        return max(0.0, entry.expires_at - self._clock())

    def stats(self) -> Dict[str, int]:
        """Return a copy of the hit/miss/eviction counters plus the item count."""
        return {**self._stats, "item_count": len(self._store)}
