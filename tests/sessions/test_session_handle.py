# tests/sessions/test_session_handle.py
"""
Tests for SessionHandle and ThreadLockRegistry.
"""

import asyncio

import pytest

from threadcore.exceptions import ProviderError
from threadcore.generation.generator import CHAT_SETTINGS
from threadcore.models import DEFAULT_SYSTEM_INSTRUCTION, ConversationTurn, Role, SerializedSession
from threadcore.sessions.handle import SessionHandle
from threadcore.sessions.locks import ThreadLockRegistry


class TestSessionHandle:
    def test_defaults(self, provider):
        handle = SessionHandle("t1", provider)
        assert handle.history == []
        assert handle.system_instruction == DEFAULT_SYSTEM_INSTRUCTION
        assert handle.last_used == handle.created_at

    def test_serialized_roundtrip(self, provider):
        handle = SessionHandle.from_turns(
            "t1",
            provider,
            [ConversationTurn(role=Role.USER, content="Hi"), ConversationTurn(role=Role.ASSISTANT, content="Yo")],
            system_instruction="Custom.",
        )
        serialized = handle.to_serialized()
        assert isinstance(serialized, SerializedSession)
        restored = SessionHandle.from_serialized(serialized, provider)
        assert restored.turns == handle.turns
        assert restored.system_instruction == "Custom."
        assert restored.created_at == handle.created_at

    def test_build_request_does_not_mutate(self, provider):
        handle = SessionHandle.from_turns("t1", provider, [ConversationTurn(role=Role.USER, content="Hi")])
        request = handle.build_request("Next")
        assert [entry.text for entry in request] == ["Hi", "Next"]
        assert len(handle.history) == 1

    @pytest.mark.asyncio
    async def test_send_records_exchange(self, provider):
        provider.queue("Reply")
        handle = SessionHandle("t1", provider, system_instruction="Be nice.")
        assert await handle.send("Question", CHAT_SETTINGS) == "Reply"
        assert [(entry.role, entry.text) for entry in handle.history] == [("user", "Question"), ("model", "Reply")]
        call = provider.calls[0]
        assert call.system_instruction == "Be nice."
        assert call.settings == CHAT_SETTINGS

    @pytest.mark.asyncio
    async def test_send_failure_leaves_history(self, provider):
        provider.queue(ProviderError("scripted", "boom"))
        handle = SessionHandle.from_turns("t1", provider, [ConversationTurn(role=Role.USER, content="Hi")])
        with pytest.raises(ProviderError):
            await handle.send("Question", CHAT_SETTINGS)
        assert len(handle.history) == 1

    @pytest.mark.asyncio
    async def test_stream_does_not_record(self, provider):
        provider.queue(["a", "b"])
        handle = SessionHandle("t1", provider)
        chunks = [chunk async for chunk in handle.stream("Q", CHAT_SETTINGS)]
        assert chunks == ["a", "b"]
        assert handle.history == []


class TestThreadLockRegistry:
    @pytest.mark.asyncio
    async def test_serializes_same_thread(self):
        registry = ThreadLockRegistry()
        order = []

        async def worker(name: str):
            async with registry.hold("t1"):
                order.append(f"{name}-start")
                await asyncio.sleep(0.01)
                order.append(f"{name}-end")

        await asyncio.gather(worker("a"), worker("b"))
        assert order == ["a-start", "a-end", "b-start", "b-end"]

    @pytest.mark.asyncio
    async def test_different_threads_do_not_block(self):
        registry = ThreadLockRegistry()
        async with registry.hold("t1"):
            assert registry.is_locked("t1")
            async with registry.hold("t2"):
                assert registry.is_locked("t2")

    @pytest.mark.asyncio
    async def test_entries_released(self):
        registry = ThreadLockRegistry()
        async with registry.hold("t1"):
            assert len(registry) == 1
        assert len(registry) == 0
        assert not registry.is_locked("t1")

    @pytest.mark.asyncio
    async def test_released_on_error(self):
        registry = ThreadLockRegistry()
        with pytest.raises(RuntimeError):
            async with registry.hold("t1"):
                raise RuntimeError("fail")
        assert len(registry) == 0
