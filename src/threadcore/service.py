# src/threadcore/service.py
"""
Chat service: the caller of the session core.

Coordinates the durable thread store, the session manager and the
response generator for the thread operations an HTTP layer exposes:
starting a thread, continuing it, listing, renaming and deleting. LLM
failures never fail these operations; the degraded reply is stored in
their place and the conversation carries on.
"""

import asyncio
import logging
from typing import List, Optional

from .exceptions import ThreadNotFoundError
from .generation.generator import ResponseGenerator
from .models import ConversationTurn, Role, Thread
from .sessions.manager import SessionManager
from .threads.base import BaseThreadStore

logger = logging.getLogger(__name__)


class ChatService:
    """
    Thread-level chat operations.

    Args:
        store: Durable thread store (source of truth).
        session_manager: Cache-backed session manager.
        generator: Response generator.
    """

    def __init__(self, store: BaseThreadStore, session_manager: SessionManager, generator: ResponseGenerator):
        self._store = store
        self._sessions = session_manager
        self._generator = generator

    async def _require_thread(self, thread_id: str, user_id: Optional[str]) -> Thread:
        thread = await self._store.get_thread(thread_id, user_id=user_id)
        if thread is None:
            raise ThreadNotFoundError(thread_id)
        return thread

    async def create_thread(self, user_id: str, content: str, system_instruction: Optional[str] = None) -> Thread:
        """
        Start a thread from its first user message.

        The first reply is a one-shot completion (no session exists yet);
        the title is generated concurrently. The session is then seeded
        with the persisted exchange.

        Raises:
            ValueError: If ``content`` is empty.
        """
        if not content:
            raise ValueError("Message content is required")

        result, title = await asyncio.gather(
            self._generator.generate_one_shot(content, system_instruction),
            self._generator.generate_title(content),
        )
        reply = result.text if result.success and result.text else self._generator.policy.reply_text

        thread = await self._store.create_thread(user_id, title)
        await self._store.append_message(thread.id, Role.USER, content)
        await self._store.append_message(thread.id, Role.ASSISTANT, reply)
        await self._sessions.initialize_with_history(
            thread.id,
            [ConversationTurn(role=Role.USER, content=content), ConversationTurn(role=Role.ASSISTANT, content=reply)],
            system_instruction=system_instruction,
        )
        logger.info(f"Thread '{thread.id}' created for user '{user_id}' (title: {title!r}).")
        return await self._require_thread(thread.id, None)

    async def add_message(self, thread_id: str, content: str, user_id: Optional[str] = None) -> Thread:
        """
        Continue a thread with a user message.

        The whole turn runs under the thread's lock so the stored message
        order and the cached history stay in step. On a cache miss the
        session is rebuilt from the stored history and used directly, which
        also covers an unavailable cache. If generation fails, the degraded
        reply is stored and the cache entry is dropped so the next turn
        rehydrates from the store, which then includes that reply.

        Raises:
            ValueError: If ``content`` is empty.
            ThreadNotFoundError: If the thread does not exist or is not owned.
        """
        if not content:
            raise ValueError("Message content is needed")

        await self._require_thread(thread_id, user_id)
        async with self._sessions.lock(thread_id):
            handle = await self._sessions.get_cached(thread_id)
            if handle is None:
                history = await self._store.load_thread_history(thread_id)
                logger.info(f"Rehydrating session for thread '{thread_id}' from {len(history)} stored messages.")
                handle = await self._sessions.initialize_with_history(thread_id, history)

            await self._store.append_message(thread_id, Role.USER, content)
            result = await self._generator.send_with_session(handle, content)
            if result.success and result.text:
                reply = result.text
            else:
                logger.warning(f"Using degraded reply for thread '{thread_id}': {result.error}")
                reply = self._generator.policy.reply_text
                await self._sessions.invalidate(thread_id)

            await self._store.append_message(thread_id, Role.ASSISTANT, reply)
        return await self._require_thread(thread_id, None)

    async def get_thread(self, thread_id: str, user_id: Optional[str] = None) -> Thread:
        return await self._require_thread(thread_id, user_id)

    async def list_threads(self, user_id: str) -> List[Thread]:
        return await self._store.list_threads(user_id)

    async def rename_thread(self, thread_id: str, title: str, user_id: Optional[str] = None) -> Thread:
        if not title:
            raise ValueError("Thread title is required")
        return await self._store.update_thread_title(thread_id, title, user_id=user_id)

    async def delete_thread(self, thread_id: str, user_id: Optional[str] = None) -> bool:
        """
        Delete a thread durably and invalidate its cached session.

        Raises:
            ThreadNotFoundError: If nothing was deleted.
        """
        if not await self._store.delete_thread(thread_id, user_id=user_id):
            raise ThreadNotFoundError(thread_id)
        await self._sessions.invalidate(thread_id)
        return True
