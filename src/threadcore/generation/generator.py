# src/threadcore/generation/generator.py
"""
Response generation for threadcore.

The ResponseGenerator is the boundary at which LLM failures stop being
exceptions: session-bound and one-shot calls return a
:class:`GenerationResult`, title generation always returns usable text.
Every provider call is made at most once and is bounded by the configured
request timeout.
"""

import asyncio
import logging
from typing import AsyncIterator, Awaitable, List, Optional, TypeVar

from ..exceptions import GenerationTimeoutError, ProviderError
from ..models import DEFAULT_SYSTEM_INSTRUCTION, GenerationResult, HistoryEntry, HistoryPart
from ..providers.base import BaseProvider, GenerationSettings
from ..sessions.handle import SessionHandle
from ..sessions.manager import SessionManager
from .fallback import DegradedResponsePolicy

logger = logging.getLogger(__name__)

T = TypeVar("T")

CHAT_SETTINGS = GenerationSettings(temperature=0.7, max_output_tokens=1000)
TITLE_SETTINGS = GenerationSettings(temperature=0.3, max_output_tokens=50)

ONE_SHOT_PROMPT = "{instruction}\n\nUser: {message}\n\nPlease provide a helpful response."
TITLE_PROMPT = (
    "Generate a short, descriptive title (maximum 5 words) for a conversation that starts "
    'with this message: "{message}"\n\nRespond with only the title, no quotes or extra text.'
)


class ResponseGenerator:
    """
    Produces assistant text for threads, with or without a session.

    Args:
        session_manager: Resolves and persists per-thread sessions.
        provider: LLM provider used for one-shot and title calls.
        policy: Degraded-response policy; defaults to the stock policy.
        request_timeout_seconds: Deadline for each LLM call.
    """

    def __init__(
        self,
        session_manager: SessionManager,
        provider: BaseProvider,
        policy: Optional[DegradedResponsePolicy] = None,
        request_timeout_seconds: float = 60.0,
    ) -> None:
        self._sessions = session_manager
        self._provider = provider
        self.policy = policy or DegradedResponsePolicy()
        self._timeout = request_timeout_seconds

    async def _bounded(self, call: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(call, timeout=self._timeout)
        except asyncio.TimeoutError:
            raise GenerationTimeoutError(self._provider.get_name(), self._timeout)

    @staticmethod
    def _user_content(text: str) -> List[HistoryEntry]:
        return [HistoryEntry(role="user", parts=[HistoryPart(text=text)])]

    async def send_to_session(self, thread_id: str, message: str) -> GenerationResult:
        """
        Send a message through the thread's session and cache the result.

        The whole read-modify-write cycle runs under the thread's lock. On
        failure nothing is written back to the cache.

        Args:
            thread_id: Identifier of the thread.
            message: The user's message.

        Returns:
            Success with the assistant text, or a structured failure.
        """
        if not message:
            return GenerationResult.failed("Message content is required", message="Invalid chat message")

        async with self._sessions.lock(thread_id):
            handle = await self._sessions.get_or_create(thread_id)
            return await self.send_with_session(handle, message)

    async def send_with_session(self, handle: SessionHandle, message: str) -> GenerationResult:
        """
        Send a message through an already resolved session and cache the result.

        The caller must hold the thread's lock (``SessionManager.lock``) for
        the whole cycle. Using the handle directly keeps a session rebuilt
        from the thread store usable even when the cache dropped its write.

        Args:
            handle: The thread's session.
            message: The user's message.

        Returns:
            Success with the assistant text, or a structured failure.
        """
        if not message:
            return GenerationResult.failed("Message content is required", message="Invalid chat message")

        try:
            reply = await self._bounded(handle.send(message, CHAT_SETTINGS))
        except ProviderError as e:
            logger.error(f"Chat generation failed for thread '{handle.thread_id}': {e}")
            return GenerationResult.failed(f"Gemini AI error: {e}", message="Failed to generate chat response")
        await self._sessions.save(handle)
        return GenerationResult.ok(reply, message="Chat response generated successfully")

    async def stream_to_session(self, thread_id: str, message: str) -> AsyncIterator[str]:
        """
        Stream a reply through the thread's session.

        The exchange is recorded and cached only once the stream completes.
        If the provider fails before producing any text, the degraded reply
        is yielded instead; a failure mid-stream ends the stream. Either way
        the session is left unchanged.

        The thread's lock is held while the stream is open. Consumers that
        stop reading early must close the iterator (``aclose()`` or
        ``contextlib.aclosing``) to release it.

        Raises:
            ValueError: If ``message`` is empty.
        """
        if not message:
            raise ValueError("Message content is required")

        async with self._sessions.lock(thread_id):
            handle = await self._sessions.get_or_create(thread_id)
            iterator = handle.stream(message, CHAT_SETTINGS).__aiter__()
            chunks: List[str] = []
            try:
                while True:
                    try:
                        chunk = await self._bounded(iterator.__anext__())
                    except StopAsyncIteration:
                        break
                    chunks.append(chunk)
                    yield chunk
            except ProviderError as e:
                logger.error(f"Streaming failed for thread '{thread_id}': {e}")
                await _close_quietly(iterator)
                if not chunks:
                    yield self.policy.reply_text
                return

            handle.record_exchange(message, "".join(chunks))
            await self._sessions.save(handle)

    async def generate_one_shot(self, message: str, instruction: Optional[str] = None) -> GenerationResult:
        """
        Stateless single completion, used before a thread has a session.

        Args:
            message: The user's message.
            instruction: Optional instruction folded into the prompt.
        """
        prompt = ONE_SHOT_PROMPT.format(instruction=instruction or DEFAULT_SYSTEM_INSTRUCTION, message=message)
        try:
            text = await self._bounded(self._provider.generate(self._user_content(prompt), CHAT_SETTINGS))
        except ProviderError as e:
            logger.error(f"One-shot generation failed: {e}")
            return GenerationResult.failed(f"Gemini AI error: {e}", message="Failed to generate AI response")
        return GenerationResult.ok(text, message="AI response generated successfully")

    async def generate_title(self, seed_message: str) -> str:
        """
        Short label for a thread. Falls back to the first words of the seed
        when the LLM fails or returns nothing usable; never raises.
        """
        try:
            raw = await self._bounded(
                self._provider.generate(
                    self._user_content(TITLE_PROMPT.format(message=seed_message)), TITLE_SETTINGS
                )
            )
        except ProviderError as e:
            logger.warning(f"Title generation failed, using fallback title: {e}")
            return self.policy.title_for(seed_message)

        title = raw.strip().replace('"', "").replace("'", "")
        return title or self.policy.title_for(seed_message)


async def _close_quietly(iterator: AsyncIterator[str]) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except ProviderError as e:
        logger.debug(f"Error closing provider stream: {e}")
