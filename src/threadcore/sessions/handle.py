# src/threadcore/sessions/handle.py
"""
Live conversation session for one thread.

A SessionHandle pairs replay-ready history with the provider that will
answer the next turn. It is rebuilt from a :class:`SerializedSession` on
every request and serialized back after a successful exchange; the cached
form never depends on the LLM SDK's own chat objects.
"""

import logging
from typing import AsyncIterator, List, Optional, Sequence

from ..models import (
    DEFAULT_SYSTEM_INSTRUCTION,
    ConversationTurn,
    HistoryEntry,
    HistoryPart,
    SerializedSession,
    now_ms,
)
from ..providers.base import BaseProvider, GenerationSettings

logger = logging.getLogger(__name__)


class SessionHandle:
    """
    Conversation state plus the provider used to continue it.

    History grows only after the provider answered successfully, so a
    failed turn leaves the handle (and therefore the cache) untouched.
    """

    def __init__(
        self,
        thread_id: str,
        provider: BaseProvider,
        history: Optional[Sequence[HistoryEntry]] = None,
        system_instruction: Optional[str] = None,
        created_at: Optional[int] = None,
        last_used: Optional[int] = None,
    ) -> None:
        self.thread_id = thread_id
        self.provider = provider
        self.history: List[HistoryEntry] = list(history or [])
        self.system_instruction = system_instruction or DEFAULT_SYSTEM_INSTRUCTION
        self.created_at = created_at if created_at is not None else now_ms()
        self.last_used = last_used if last_used is not None else self.created_at

    def __repr__(self) -> str:
        return f"SessionHandle(thread_id={self.thread_id!r}, turns={len(self.history)})"

    @classmethod
    def from_turns(
        cls,
        thread_id: str,
        provider: BaseProvider,
        turns: Sequence[ConversationTurn],
        system_instruction: Optional[str] = None,
    ) -> "SessionHandle":
        return cls(
            thread_id=thread_id,
            provider=provider,
            history=[HistoryEntry.from_turn(turn) for turn in turns],
            system_instruction=system_instruction,
        )

    @classmethod
    def from_serialized(cls, serialized: SerializedSession, provider: BaseProvider) -> "SessionHandle":
        return cls(
            thread_id=serialized.thread_id,
            provider=provider,
            history=serialized.history,
            system_instruction=serialized.system_instruction,
            created_at=serialized.created_at,
            last_used=serialized.last_used,
        )

    def to_serialized(self) -> SerializedSession:
        return SerializedSession(
            thread_id=self.thread_id,
            history=[entry.model_copy(deep=True) for entry in self.history],
            system_instruction=self.system_instruction,
            created_at=self.created_at,
            last_used=self.last_used,
        )

    @property
    def turns(self) -> List[ConversationTurn]:
        return [entry.to_turn() for entry in self.history]

    def touch(self) -> None:
        """Refresh the last-used timestamp."""
        self.last_used = now_ms()

    def build_request(self, message: str) -> List[HistoryEntry]:
        """Full history followed by the new user turn, without mutating the handle."""
        return [*self.history, HistoryEntry(role="user", parts=[HistoryPart(text=message)])]

    def record_exchange(self, message: str, reply: str) -> None:
        """Append a completed user/model exchange."""
        self.history.append(HistoryEntry(role="user", parts=[HistoryPart(text=message)]))
        self.history.append(HistoryEntry(role="model", parts=[HistoryPart(text=reply)]))
        self.touch()

    async def send(self, message: str, settings: GenerationSettings) -> str:
        """
        Send a user message through the provider and record the exchange.

        Raises:
            ProviderError: If the provider call fails; history is unchanged.
        """
        reply = await self.provider.generate(
            self.build_request(message), settings, system_instruction=self.system_instruction
        )
        self.record_exchange(message, reply)
        logger.debug(f"Thread '{self.thread_id}' now holds {len(self.history)} turns")
        return reply

    def stream(self, message: str, settings: GenerationSettings) -> AsyncIterator[str]:
        """
        Stream a reply without recording it; the caller records the exchange
        once the stream has completed.
        """
        return self.provider.stream(
            self.build_request(message), settings, system_instruction=self.system_instruction
        )
