# src/threadcore/models.py
"""
Core data models for the threadcore library.

This module defines the Pydantic models shared by the session cache, the
session manager, the response generator and the durable thread store:
conversation roles and turns, the serialized (cache) form of a
conversation session, durable Thread/Message records and the structured
result returned by every generation call.
"""

import time
import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


DEFAULT_SYSTEM_INSTRUCTION = (
    "You are a helpful AI assistant. Provide clear, accurate, and helpful responses."
)


def now_ms() -> int:
    """Current wall-clock time as integer epoch milliseconds."""
    return int(time.time() * 1000)


class Role(str, Enum):
    """
    Enumeration of the parties in a conversation thread.
    Only user and assistant turns are ever persisted; the system
    instruction travels separately.
    """
    USER = "user"
    ASSISTANT = "assistant"

    @classmethod
    def _missing_(cls, value: object):  # type: ignore[misc]
        """
        Handles case-insensitive matching and the LLM-side alias "model",
        so that history read back from the cache maps onto Role.ASSISTANT.
        """
        if isinstance(value, str):
            lower_value = value.lower()
            if lower_value in ("model", "agent"):
                return cls.ASSISTANT
            for member in cls:
                if member.value == lower_value:
                    return member
        return None

    def to_llm_role(self) -> str:
        """Returns the role name in the Gemini vocabulary ("user" / "model")."""
        return LLM_ROLE_MAP[self]


LLM_ROLE_MAP = {
    Role.USER: "user",
    Role.ASSISTANT: "model",
}


class ConversationTurn(BaseModel):
    """A single user or assistant utterance, in replay order."""
    role: Role = Field(description="Who produced the turn.")
    content: str = Field(description="Turn payload.")

    model_config = ConfigDict(frozen=True)


class HistoryPart(BaseModel):
    """One text part of an LLM content entry."""
    text: str


class HistoryEntry(BaseModel):
    """
    A conversation turn in the LLM wire vocabulary:
    ``{"role": "user"|"model", "parts": [{"text": ...}]}``.
    """
    role: str
    parts: List[HistoryPart] = Field(default_factory=list)

    @field_validator("role")
    @classmethod
    def validate_role(cls, value: str) -> str:
        if value not in ("user", "model"):
            raise ValueError(f"Invalid history role: '{value}'. Must be 'user' or 'model'.")
        return value

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.parts)

    @classmethod
    def from_turn(cls, turn: ConversationTurn) -> "HistoryEntry":
        return cls(role=Role(turn.role).to_llm_role(), parts=[HistoryPart(text=turn.content)])

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(role=Role(self.role), content=self.text)


class SerializedSession(BaseModel):
    """
    Storage form of a conversation session, as kept in the session cache.

    Dumped with ``by_alias=True`` it produces the camelCase JSON layout
    (``threadId``, ``systemInstruction``, ``createdAt``, ``lastUsed``).
    The history is a derived view of the durable message sequence and is
    never written to independently of it.

    Attributes:
        thread_id: Identifier of the thread; primary cache key.
        history: Ordered turns in LLM vocabulary.
        system_instruction: Instruction steering the assistant. None means
            the default instruction applies.
        created_at: Epoch milliseconds when the session was (re)built.
        last_used: Epoch milliseconds of the last read or write.
    """
    thread_id: str
    history: List[HistoryEntry] = Field(default_factory=list)
    system_instruction: Optional[str] = None
    created_at: int = Field(default_factory=now_ms)
    last_used: int = Field(default_factory=now_ms)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, payload: str | bytes) -> "SerializedSession":
        return cls.model_validate_json(payload)

    def turns(self) -> List[ConversationTurn]:
        return [entry.to_turn() for entry in self.history]


class Thread(BaseModel):
    """
    A durable conversation between one user and the assistant.

    Attributes:
        id: Unique identifier of the thread.
        user_id: Identifier of the owning user.
        title: Short human-readable label.
        created_at: Creation timestamp (UTC).
        updated_at: Timestamp of the last appended message or rename (UTC).
        messages: Messages in creation order, when loaded.
    """
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    user_id: str
    title: str = ""
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    messages: List["Message"] = Field(default_factory=list)

    model_config = ConfigDict(validate_assignment=True)

    def turns(self) -> List[ConversationTurn]:
        return [message.to_turn() for message in self.messages]


class Message(BaseModel):
    """An immutable, append-only message of a thread."""
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    thread_id: str
    role: Role
    content: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(frozen=True)

    @field_validator("created_at", mode="before")
    @classmethod
    def ensure_utc_timestamp(cls, v: Any) -> datetime:
        """Ensure the timestamp is timezone-aware and in UTC if naive."""
        if isinstance(v, str):
            v = datetime.fromisoformat(v[:-1] + "+00:00" if v.endswith("Z") else v)
        if isinstance(v, datetime):
            if v.tzinfo is None:
                return v.replace(tzinfo=timezone.utc)
            return v.astimezone(timezone.utc)
        return v

    def to_turn(self) -> ConversationTurn:
        return ConversationTurn(role=self.role, content=self.content)


class GenerationResult(BaseModel):
    """
    Structured outcome of a generation call.

    LLM failures never escape the response generator as exceptions; they
    come back as ``success=False`` with the error detail filled in so the
    caller can substitute a degraded reply.
    """
    success: bool
    text: Optional[str] = None
    message: str = ""
    error: Optional[str] = None

    @classmethod
    def ok(cls, text: str, message: str = "Response generated successfully") -> "GenerationResult":
        return cls(success=True, text=text, message=message)

    @classmethod
    def failed(cls, error: str, message: str = "Failed to generate response") -> "GenerationResult":
        return cls(success=False, message=message, error=error)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


Thread.model_rebuild()
