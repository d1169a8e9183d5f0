# src/threadcore/cache/manager.py
"""
Factory for session cache backends.

Maps the ``cache.type`` configuration string to a concrete
:class:`BaseSessionCache` implementation.
"""

import logging
from typing import Dict, Type

from ..config.models import CacheConfig
from ..exceptions import ConfigError
from .base import BaseSessionCache
from .memory_cache import MemorySessionCache
from .redis_cache import RedisSessionCache

logger = logging.getLogger(__name__)

SESSION_CACHE_MAP: Dict[str, Type[BaseSessionCache]] = {
    "redis": RedisSessionCache,
    "memory": MemorySessionCache,
}


def create_session_cache(config: CacheConfig) -> BaseSessionCache:
    """
    Build (but do not initialize) the configured session cache.

    Raises:
        ConfigError: If the backend type is unknown.
    """
    cache_cls = SESSION_CACHE_MAP.get(config.type)
    if cache_cls is None:
        raise ConfigError(
            f"Unknown session cache type '{config.type}'. Available: {list(SESSION_CACHE_MAP.keys())}"
        )

    if cache_cls is RedisSessionCache:
        cache: BaseSessionCache = RedisSessionCache(
            url=config.url,
            key_prefix=config.key_prefix,
            default_ttl_seconds=config.ttl_seconds,
            max_retries=config.max_retries,
            socket_timeout_seconds=config.socket_timeout_seconds,
            connect_timeout_seconds=config.connect_timeout_seconds,
        )
    else:
        cache = MemorySessionCache(
            key_prefix=config.key_prefix,
            default_ttl_seconds=config.ttl_seconds,
            max_items=config.max_items,
        )
    logger.info(f"Session cache backend selected: {config.type} (ttl={config.ttl_seconds}s)")
    return cache
