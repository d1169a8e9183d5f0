# src/threadcore/api.py
"""
Core API Facade for the threadcore library.

This module provides the ThreadCore class, which owns the lifecycle of the
process-wide collaborators (session cache, LLM provider, thread store) and
wires them into the session manager, response generator and chat service.
Construct it once at startup and close it on shutdown.
"""

import logging
from typing import Any, AsyncIterator, Dict, Optional, Sequence

from .cache.base import BaseSessionCache
from .cache.health import HealthCheckResult
from .cache.manager import create_session_cache
from .config.loader import DEFAULT_ENV_PREFIX, load_config
from .config.models import ThreadCoreConfig
from .generation.fallback import DegradedResponsePolicy
from .generation.generator import ResponseGenerator
from .logging_config import configure_logging
from .models import ConversationTurn, GenerationResult
from .providers.base import BaseProvider
from .providers.gemini_provider import GeminiProvider
from .service import ChatService
from .sessions.handle import SessionHandle
from .sessions.manager import SessionManager
from .threads.base import BaseThreadStore
from .threads.sqlite_store import SqliteThreadStore

logger = logging.getLogger(__name__)


class ThreadCore:
    """
    Main class for conversation-session continuity.

    Use the asynchronous factory, ideally as a context manager:

        async with await ThreadCore.create() as core:
            thread = await core.chat.create_thread("user-1", "Hello")
    """

    config: ThreadCoreConfig
    cache: BaseSessionCache
    provider: BaseProvider
    store: BaseThreadStore
    sessions: SessionManager
    generator: ResponseGenerator
    chat: ChatService

    def __init__(self) -> None:
        """
        Do not call directly; use ``await ThreadCore.create(...)``.
        """
        self._closed = False

    @classmethod
    async def create(
        cls,
        config_file_path: Optional[str] = None,
        config_overrides: Optional[Dict[str, Any]] = None,
        env_prefix: Optional[str] = DEFAULT_ENV_PREFIX,
        config: Optional[ThreadCoreConfig] = None,
        provider: Optional[BaseProvider] = None,
        cache: Optional[BaseSessionCache] = None,
        store: Optional[BaseThreadStore] = None,
        setup_logging: bool = True,
    ) -> "ThreadCore":
        """
        Asynchronously creates and initializes a ThreadCore instance.

        Args:
            config_file_path: Optional TOML configuration file.
            config_overrides: Highest-precedence configuration values.
            env_prefix: Prefix for environment overrides; None disables them.
            config: Pre-validated configuration; skips loading entirely.
            provider: Pre-built LLM provider (otherwise Gemini from config).
            cache: Pre-built session cache (otherwise from config).
            store: Pre-built thread store (otherwise SQLite from config).
            setup_logging: Install log handlers from the ``[logging]`` section.

        Raises:
            ConfigError: If configuration is invalid or the provider cannot be built.
            ThreadStoreError: If the thread store cannot be initialized.
        """
        instance = cls()
        instance.config = config or load_config(
            config_file_path=config_file_path, env_prefix=env_prefix, overrides=config_overrides
        )
        if setup_logging:
            configure_logging(instance.config.logging)
        logger.info("Initializing threadcore components from configuration...")

        instance.provider = provider or GeminiProvider(
            {
                "api_key": instance.config.gemini.resolve_api_key(),
                "default_model": instance.config.gemini.default_model,
            }
        )
        instance.cache = cache or create_session_cache(instance.config.cache)
        await instance.cache.initialize()
        instance.store = store or SqliteThreadStore(instance.config.store.path)
        await instance.store.initialize()

        generation = instance.config.generation
        instance.sessions = SessionManager(
            instance.cache, instance.provider, ttl_seconds=instance.config.cache.ttl_seconds
        )
        instance.generator = ResponseGenerator(
            instance.sessions,
            instance.provider,
            policy=DegradedResponsePolicy(
                reply_text=generation.fallback_reply, title_words=generation.title_fallback_words
            ),
            request_timeout_seconds=generation.request_timeout_seconds,
        )
        instance.chat = ChatService(instance.store, instance.sessions, instance.generator)
        logger.info("threadcore components initialization complete.")
        return instance

    async def __aenter__(self) -> "ThreadCore":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def send_to_session(self, thread_id: str, message: str) -> GenerationResult:
        return await self.generator.send_to_session(thread_id, message)

    def stream_to_session(self, thread_id: str, message: str) -> AsyncIterator[str]:
        return self.generator.stream_to_session(thread_id, message)

    async def generate_one_shot(self, message: str, instruction: Optional[str] = None) -> GenerationResult:
        return await self.generator.generate_one_shot(message, instruction)

    async def generate_title(self, seed_message: str) -> str:
        return await self.generator.generate_title(seed_message)

    async def initialize_with_history(
        self,
        thread_id: str,
        turns: Sequence[ConversationTurn],
        system_instruction: Optional[str] = None,
    ) -> SessionHandle:
        return await self.sessions.initialize_with_history(thread_id, turns, system_instruction)

    async def cache_health(self) -> HealthCheckResult:
        """Liveness of the session cache, for operational dashboards."""
        return await self.cache.ping()

    async def close(self) -> None:
        """Release the cache connection, thread store and provider. Idempotent."""
        if self._closed:
            return
        self._closed = True
        logger.info("Closing threadcore resources...")
        for name, resource in (("cache", self.cache), ("store", self.store), ("provider", self.provider)):
            try:
                await resource.close()
            except Exception as e:
                logger.error(f"Error closing {name}: {e}", exc_info=True)
        logger.info("threadcore resources closed.")
