# src/threadcore/__init__.py
"""
threadcore - conversation-session continuity for multi-turn LLM chat.

Persists and rehydrates per-thread conversation state in a fast key-value
cache (Redis), keeps a relational store as the durable source of truth,
and generates replies and thread titles through Google Gemini with
structured fallbacks when the model is unavailable.
"""

from importlib.metadata import PackageNotFoundError, version

from .api import ThreadCore
from .cache import (
    BaseSessionCache,
    HealthCheckResult,
    HealthStatus,
    MemorySessionCache,
    RedisSessionCache,
)
from .exceptions import (
    ConfigError,
    GenerationTimeoutError,
    ProviderError,
    SessionCacheError,
    SessionSerializationError,
    StorageError,
    ThreadCoreError,
    ThreadNotFoundError,
    ThreadStoreError,
)
from .generation import DegradedResponsePolicy, ResponseGenerator
from .models import (
    DEFAULT_SYSTEM_INSTRUCTION,
    ConversationTurn,
    GenerationResult,
    HistoryEntry,
    Message,
    Role,
    SerializedSession,
    Thread,
)
from .service import ChatService
from .sessions import SessionHandle, SessionManager
from .threads import BaseThreadStore, SqliteThreadStore

try:
    __version__ = version("threadcore")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "BaseSessionCache",
    "BaseThreadStore",
    "ChatService",
    "ConfigError",
    "ConversationTurn",
    "DEFAULT_SYSTEM_INSTRUCTION",
    "DegradedResponsePolicy",
    "GenerationResult",
    "GenerationTimeoutError",
    "HealthCheckResult",
    "HealthStatus",
    "HistoryEntry",
    "MemorySessionCache",
    "Message",
    "ProviderError",
    "RedisSessionCache",
    "ResponseGenerator",
    "Role",
    "SerializedSession",
    "SessionCacheError",
    "SessionHandle",
    "SessionManager",
    "SessionSerializationError",
    "SqliteThreadStore",
    "StorageError",
    "Thread",
    "ThreadCore",
    "ThreadCoreError",
    "ThreadNotFoundError",
    "ThreadStoreError",
]
