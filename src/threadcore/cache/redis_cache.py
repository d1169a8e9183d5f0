# src/threadcore/cache/redis_cache.py
"""
Redis-backed session cache using ``redis.asyncio``.

Each thread's session is stored as one JSON string under
``{key_prefix}{thread_id}`` with ``SET ... EX ttl``, so every write resets
the expiry. The client retries transient connection and timeout errors a
bounded number of times with exponential backoff and applies socket
timeouts, so no cache call blocks a chat request indefinitely.

Every Redis failure is absorbed here: reads degrade to a miss, writes and
deletes are dropped, and a warning is logged.
"""

import logging
from typing import Optional

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..exceptions import SessionSerializationError
from ..models import SerializedSession
from .base import BaseSessionCache
from .health import HealthCheckResult, HealthStatus, LatencyTimer

logger = logging.getLogger(__name__)


class RedisSessionCache(BaseSessionCache):
    """
    Session cache on a single Redis connection pool.

    The client is constructed lazily on first use (or in ``initialize``)
    and shared by all requests; it carries no per-request state.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        key_prefix: str = "threadcore:session:",
        default_ttl_seconds: int = 7 * 24 * 60 * 60,
        max_retries: int = 3,
        socket_timeout_seconds: float = 5.0,
        connect_timeout_seconds: float = 5.0,
        client: Optional[Redis] = None,
    ) -> None:
        """
        Args:
            url: Redis connection URL.
            key_prefix: Namespace prepended to thread ids.
            default_ttl_seconds: Expiry used when ``put`` gets no TTL.
            max_retries: Retries on transient connection/timeout errors.
            socket_timeout_seconds: Per-command socket timeout.
            connect_timeout_seconds: Connection establishment timeout.
            client: Pre-built client, mainly for tests.
        """
        self.url = url
        self.key_prefix = key_prefix
        self.default_ttl_seconds = default_ttl_seconds
        self.max_retries = max_retries
        self.socket_timeout_seconds = socket_timeout_seconds
        self.connect_timeout_seconds = connect_timeout_seconds
        self._client: Optional[Redis] = client

    def _get_client(self) -> Redis:
        if self._client is None:
            self._client = Redis.from_url(
                self.url,
                decode_responses=True,
                socket_timeout=self.socket_timeout_seconds,
                socket_connect_timeout=self.connect_timeout_seconds,
                retry=Retry(ExponentialBackoff(), self.max_retries),
                retry_on_error=[RedisConnectionError, RedisTimeoutError],
            )
            logger.debug(f"Redis client created for {self._safe_url()}")
        return self._client

    def _safe_url(self) -> str:
        # strip credentials before logging
        return self.url.rsplit("@", 1)[-1]

    async def initialize(self) -> None:
        result = await self.ping()
        if result.is_healthy:
            logger.info(f"Redis session cache connected at {self._safe_url()} ({result.latency_ms:.1f} ms)")
        else:
            logger.warning(
                f"Redis session cache unavailable at {self._safe_url()}: {result.error_message}. "
                "Sessions will be rebuilt from the thread store until it recovers."
            )

    async def put(self, thread_id: str, session: SerializedSession, ttl_seconds: Optional[int] = None) -> bool:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        try:
            payload = session.to_json()
        except (ValueError, TypeError) as e:
            logger.warning(f"Dropping cache write for thread '{thread_id}': serialization failed: {e}")
            return False

        try:
            await self._get_client().set(self.key_for(thread_id), payload, ex=ttl)
        except RedisError as e:
            logger.warning(f"Dropping cache write for thread '{thread_id}': {e}")
            return False
        logger.debug(f"Cached session for thread '{thread_id}' ({len(session.history)} turns, ttl={ttl}s)")
        return True

    async def get(self, thread_id: str) -> Optional[SerializedSession]:
        key = self.key_for(thread_id)
        try:
            raw = await self._get_client().get(key)
        except RedisError as e:
            logger.warning(f"Cache read failed for thread '{thread_id}', treating as miss: {e}")
            return None
        if raw is None:
            return None

        try:
            return self.decode_session(thread_id, raw)
        except SessionSerializationError as e:
            logger.warning(f"Discarding corrupt cached session for thread '{thread_id}': {e}")
            await self.delete(thread_id)
            return None

    async def delete(self, thread_id: str) -> bool:
        try:
            removed = await self._get_client().delete(self.key_for(thread_id))
        except RedisError as e:
            logger.warning(f"Cache delete failed for thread '{thread_id}': {e}")
            return False
        return bool(removed)

    async def ping(self) -> HealthCheckResult:
        timer = LatencyTimer()
        try:
            await self._get_client().ping()
        except (RedisError, OSError) as e:
            return HealthCheckResult(
                backend_name="redis",
                status=HealthStatus.UNHEALTHY,
                latency_ms=timer.elapsed_ms,
                error_message=str(e),
            )
        return HealthCheckResult(backend_name="redis", status=HealthStatus.HEALTHY, latency_ms=timer.elapsed_ms)

    async def close(self) -> None:
        if self._client is None:
            logger.debug("No Redis client to close")
            return
        client, self._client = self._client, None
        try:
            await client.aclose()
            logger.info("Redis session cache closed")
        except RedisError as e:
            logger.error(f"Error closing Redis client: {e}", exc_info=True)
