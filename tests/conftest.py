# tests/conftest.py
"""
Shared pytest fixtures for threadcore tests.

Provides a scripted LLM provider (deterministic replies, failures and
delays), a controllable clock for TTL tests, and wired-up cache, session
manager, generator and SQLite store instances.
"""

import asyncio
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncGenerator, AsyncIterator, Callable, Dict, List, Optional

import pytest

_src_path = Path(__file__).parent.parent / "src"
if str(_src_path) not in sys.path:
    sys.path.insert(0, str(_src_path))

from threadcore.cache.memory_cache import MemorySessionCache
from threadcore.exceptions import ProviderError
from threadcore.generation.generator import ResponseGenerator
from threadcore.models import HistoryEntry
from threadcore.providers.base import BaseProvider, GenerationSettings
from threadcore.sessions.manager import SessionManager
from threadcore.threads.sqlite_store import SqliteThreadStore

# ============================================================================
# FAKE PROVIDER
# ============================================================================


@dataclass
class RecordedCall:
    """One request the scripted provider received."""

    contents: List[HistoryEntry]
    settings: GenerationSettings
    system_instruction: Optional[str]
    stream: bool = False

    @property
    def texts(self) -> List[str]:
        return [entry.text for entry in self.contents]

    @property
    def roles(self) -> List[str]:
        return [entry.role for entry in self.contents]


class ScriptedProvider(BaseProvider):
    """
    Provider answering from a queue.

    Each queued item is either a string (the reply), an exception instance
    (raised), or, for streaming, a list of chunks where an exception entry
    is raised mid-stream. An empty queue raises ProviderError. A
    ``responder`` callable, when set, answers ``generate`` from the recorded
    call instead of the queue.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, replies: Optional[List[Any]] = None):
        self.replies: List[Any] = list(replies or [])
        self.calls: List[RecordedCall] = []
        self.delay_seconds = 0.0
        self.responder: Optional[Callable[[RecordedCall], str]] = None
        self.closed = False

    def get_name(self) -> str:
        return "scripted"

    def queue(self, *items: Any) -> None:
        self.replies.extend(items)

    def _next(self) -> Any:
        if not self.replies:
            raise ProviderError(self.get_name(), "No scripted reply left.")
        item = self.replies.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    async def generate(
        self,
        contents: List[HistoryEntry],
        settings: GenerationSettings,
        system_instruction: Optional[str] = None,
    ) -> str:
        call = RecordedCall(list(contents), settings, system_instruction)
        self.calls.append(call)
        if self.delay_seconds:
            await asyncio.sleep(self.delay_seconds)
        if self.responder is not None:
            return self.responder(call)
        return self._next()

    async def stream(
        self,
        contents: List[HistoryEntry],
        settings: GenerationSettings,
        system_instruction: Optional[str] = None,
    ) -> AsyncIterator[str]:
        self.calls.append(RecordedCall(list(contents), settings, system_instruction, stream=True))
        item = self._next()
        chunks = item if isinstance(item, list) else [item]
        for chunk in chunks:
            if isinstance(chunk, BaseException):
                raise chunk
            if self.delay_seconds:
                await asyncio.sleep(self.delay_seconds)
            yield chunk

    async def close(self) -> None:
        self.closed = True


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ============================================================================
# FIXTURES
# ============================================================================


@pytest.fixture
def provider() -> ScriptedProvider:
    """A scripted provider with an empty reply queue."""
    return ScriptedProvider()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_cache(clock: FakeClock) -> MemorySessionCache:
    """In-memory session cache on the fake clock, one-hour default TTL."""
    return MemorySessionCache(default_ttl_seconds=3600, clock=clock)


@pytest.fixture
def session_manager(memory_cache: MemorySessionCache, provider: ScriptedProvider) -> SessionManager:
    return SessionManager(memory_cache, provider)


@pytest.fixture
def generator(session_manager: SessionManager, provider: ScriptedProvider) -> ResponseGenerator:
    return ResponseGenerator(session_manager, provider, request_timeout_seconds=1.0)


@pytest.fixture
async def sqlite_store(tmp_path: Path) -> AsyncGenerator[SqliteThreadStore, None]:
    """Initialized SQLite thread store in a temporary directory."""
    store = SqliteThreadStore(str(tmp_path / "threads.db"))
    await store.initialize()
    yield store
    await store.close()
