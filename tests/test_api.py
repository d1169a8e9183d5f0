# tests/test_api.py
"""
Tests for the ThreadCore container: construction from configuration,
dependency injection, pass-through operations and shutdown.
"""

from unittest.mock import patch

import pytest

from threadcore import ThreadCore
from threadcore.cache.memory_cache import MemorySessionCache
from threadcore.cache.redis_cache import RedisSessionCache
from threadcore.config.models import ThreadCoreConfig
from threadcore.models import ConversationTurn, Role
from threadcore.providers.gemini_provider import GeminiProvider


@pytest.fixture
def config(tmp_path) -> ThreadCoreConfig:
    return ThreadCoreConfig.model_validate(
        {
            "cache": {"type": "memory", "ttl_seconds": 600},
            "store": {"path": str(tmp_path / "threads.db")},
            "generation": {"request_timeout_seconds": 2, "fallback_reply": "Try again later."},
        }
    )


@pytest.fixture(autouse=True)
def no_user_config(monkeypatch, tmp_path):
    monkeypatch.setattr("threadcore.config.loader.USER_CONFIG_PATH", tmp_path / "absent.toml")


class TestCreate:
    @pytest.mark.asyncio
    async def test_wires_components_from_config(self, config, provider):
        core = await ThreadCore.create(config=config, provider=provider, setup_logging=False)
        try:
            assert isinstance(core.cache, MemorySessionCache)
            assert core.cache.default_ttl_seconds == 600
            assert core.generator.policy.reply_text == "Try again later."
            assert (await core.cache_health()).is_healthy
        finally:
            await core.close()

    @pytest.mark.asyncio
    async def test_overrides_and_default_provider(self, tmp_path):
        overrides = {
            "cache": {"type": "memory"},
            "store": {"path": str(tmp_path / "db" / "threads.db")},
            "gemini": {"api_key": "test-key", "default_model": "gemini-test"},
        }
        with patch("threadcore.providers.gemini_provider.genai.Client") as client_cls:
            core = await ThreadCore.create(config_overrides=overrides, env_prefix=None, setup_logging=False)
        try:
            client_cls.assert_called_once_with(api_key="test-key")
            assert isinstance(core.provider, GeminiProvider)
            assert core.provider.default_model == "gemini-test"
        finally:
            await core.close()

    @pytest.mark.asyncio
    async def test_redis_backend_selected_but_unreachable(self, config, provider):
        config.cache.type = "redis"
        config.cache.url = "redis://127.0.0.1:1/0"
        config.cache.max_retries = 0
        config.cache.connect_timeout_seconds = 0.2
        config.cache.socket_timeout_seconds = 0.2
        core = await ThreadCore.create(config=config, provider=provider, setup_logging=False)
        try:
            assert isinstance(core.cache, RedisSessionCache)
            health = await core.cache_health()
            assert not health.is_healthy
        finally:
            await core.close()


class TestOperations:
    @pytest.mark.asyncio
    async def test_session_operations(self, config, provider):
        provider.queue("one-shot", "Short Title", "follow-up reply")
        async with await ThreadCore.create(config=config, provider=provider, setup_logging=False) as core:
            first = await core.generate_one_shot("Hello")
            assert first.success
            assert await core.generate_title("Hello there friend") == "Short Title"

            await core.initialize_with_history(
                "t1",
                [ConversationTurn(role=Role.USER, content="Hello"), ConversationTurn(role=Role.ASSISTANT, content="one-shot")],
            )
            result = await core.send_to_session("t1", "More")
            assert result.text == "follow-up reply"
            assert provider.calls[-1].texts == ["Hello", "one-shot", "More"]

    @pytest.mark.asyncio
    async def test_stream_passthrough(self, config, provider):
        provider.queue(["a", "b"])
        async with await ThreadCore.create(config=config, provider=provider, setup_logging=False) as core:
            assert [chunk async for chunk in core.stream_to_session("t1", "Hi")] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_chat_service_available(self, config, provider):
        provider.responder = lambda call: "Reply"
        async with await ThreadCore.create(config=config, provider=provider, setup_logging=False) as core:
            thread = await core.chat.create_thread("u1", "Hi")
            assert [m.content for m in thread.messages] == ["Hi", "Reply"]


class TestClose:
    @pytest.mark.asyncio
    async def test_close_releases_everything_once(self, config, provider):
        core = await ThreadCore.create(config=config, provider=provider, setup_logging=False)
        await core.close()
        await core.close()
        assert provider.closed
        assert not (await core.cache.ping()).is_healthy
