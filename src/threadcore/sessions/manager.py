# src/threadcore/sessions/manager.py
"""
Session Management for threadcore.

This module defines the SessionManager class, responsible for producing a
ready-to-use :class:`SessionHandle` for a thread while hiding whether it
came from the session cache or was (re)built, and for writing handles back
to the cache with a sliding expiry.
"""

import logging
from contextlib import AbstractAsyncContextManager
from typing import Optional, Sequence

from ..cache.base import BaseSessionCache
from ..exceptions import ThreadCoreError
from ..models import DEFAULT_SYSTEM_INSTRUCTION, ConversationTurn
from ..providers.base import BaseProvider
from .handle import SessionHandle
from .locks import ThreadLockRegistry

logger = logging.getLogger(__name__)


class SessionManager:
    """
    Manages per-thread conversation sessions on top of a session cache.

    Per-thread lifecycle: no session → (``get_or_create`` miss or
    ``initialize_with_history``) → active → (``get_or_create`` hit, which
    refreshes ``last_used`` and the expiry) → active → (TTL expiry or
    ``invalidate``) → no session.
    """

    def __init__(
        self,
        cache: BaseSessionCache,
        provider: BaseProvider,
        ttl_seconds: Optional[int] = None,
        default_system_instruction: str = DEFAULT_SYSTEM_INSTRUCTION,
    ):
        """
        Initializes the SessionManager.

        Args:
            cache: An initialized session cache backend.
            provider: The LLM provider sessions send their turns through.
            ttl_seconds: Expiry for cache writes; None uses the cache default.
            default_system_instruction: Instruction applied when none is given.
        """
        if not cache:
            logger.error("SessionManager initialized without a session cache.")
            raise ThreadCoreError("SessionManager requires a valid session cache instance.")
        self._cache = cache
        self._provider = provider
        self._ttl_seconds = ttl_seconds
        self._default_system_instruction = default_system_instruction
        self._locks = ThreadLockRegistry()
        logger.debug(f"SessionManager initialized with cache backend: {type(cache).__name__}")

    @staticmethod
    def _require_thread_id(thread_id: str) -> None:
        if not thread_id:
            raise ValueError("thread_id cannot be None or empty.")

    def lock(self, thread_id: str) -> AbstractAsyncContextManager[None]:
        """Advisory lock serializing the read-modify-write cycle of one thread."""
        return self._locks.hold(thread_id)

    async def get_cached(self, thread_id: str) -> Optional[SessionHandle]:
        """
        Return the cached session for a thread, or None on a miss.

        A hit refreshes ``last_used`` and rewrites the entry so the expiry
        window slides forward.
        """
        self._require_thread_id(thread_id)
        serialized = await self._cache.get(thread_id)
        if serialized is None:
            logger.debug(f"Session cache miss for thread '{thread_id}'")
            return None

        handle = SessionHandle.from_serialized(serialized, self._provider)
        handle.touch()
        await self.save(handle)
        logger.debug(f"Session cache hit for thread '{thread_id}' ({len(handle.history)} turns)")
        return handle

    async def get_or_create(self, thread_id: str, system_instruction: Optional[str] = None) -> SessionHandle:
        """
        Load a thread's session from the cache or start an empty one.

        On a hit the cached system instruction is kept even when a different
        one is supplied; instructions are never migrated on existing
        sessions. On a miss a new session with empty history and the given
        (or default) instruction is created and cached.

        Args:
            thread_id: Identifier of the thread.
            system_instruction: Instruction for a newly created session.

        Returns:
            The session handle.
        """
        handle = await self.get_cached(thread_id)
        if handle is not None:
            if system_instruction and system_instruction != handle.system_instruction:
                logger.warning(
                    f"System instruction supplied for existing session '{thread_id}' is ignored; "
                    "the cached instruction stays in effect."
                )
            return handle

        logger.info(f"No cached session for thread '{thread_id}'. Creating a new session.")
        handle = SessionHandle(
            thread_id=thread_id,
            provider=self._provider,
            system_instruction=system_instruction or self._default_system_instruction,
        )
        await self.save(handle)
        return handle

    async def initialize_with_history(
        self,
        thread_id: str,
        turns: Sequence[ConversationTurn],
        system_instruction: Optional[str] = None,
    ) -> SessionHandle:
        """
        Seed a session from authoritative history and cache it.

        Overwrites any existing cache entry: caller-supplied history always
        wins over cached state. An empty ``turns`` list is valid and yields a
        fresh session.

        Args:
            thread_id: Identifier of the thread.
            turns: Complete, ordered conversation so far.
            system_instruction: Instruction for the session.

        Returns:
            The session handle.
        """
        self._require_thread_id(thread_id)
        handle = SessionHandle.from_turns(
            thread_id,
            self._provider,
            turns,
            system_instruction=system_instruction or self._default_system_instruction,
        )
        await self.save(handle)
        logger.info(f"Session for thread '{thread_id}' initialized with {len(turns)} turns.")
        return handle

    async def save(self, handle: SessionHandle) -> bool:
        """
        Write a session back to the cache, resetting its expiry.

        Returns:
            False when the cache dropped the write. That is not an error: the
            next request rebuilds the session from the thread store.
        """
        stored = await self._cache.put(handle.thread_id, handle.to_serialized(), self._ttl_seconds)
        if not stored:
            logger.debug(f"Session for thread '{handle.thread_id}' was not cached.")
        return stored

    async def invalidate(self, thread_id: str) -> bool:
        """Drop a thread's cache entry."""
        self._require_thread_id(thread_id)
        removed = await self._cache.delete(thread_id)
        if removed:
            logger.info(f"Invalidated cached session for thread '{thread_id}'.")
        return removed
