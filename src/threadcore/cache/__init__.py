# src/threadcore/cache/__init__.py
"""
Session cache package for threadcore.

Components:
    - BaseSessionCache: backend interface
    - RedisSessionCache: production backend on redis.asyncio
    - MemorySessionCache: in-process TTL backend
    - create_session_cache: configuration-driven factory
"""

from .base import BaseSessionCache
from .health import HealthCheckResult, HealthStatus
from .manager import SESSION_CACHE_MAP, create_session_cache
from .memory_cache import MemorySessionCache
from .redis_cache import RedisSessionCache

__all__ = [
    "BaseSessionCache",
    "HealthCheckResult",
    "HealthStatus",
    "MemorySessionCache",
    "RedisSessionCache",
    "SESSION_CACHE_MAP",
    "create_session_cache",
]
