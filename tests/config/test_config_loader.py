# tests/config/test_config_loader.py
"""
Tests for layered configuration loading.

Precedence, lowest first: packaged defaults, TOML file, THREADCORE_
environment variables, explicit overrides.
"""

import os
import textwrap
from pathlib import Path

import pytest

from threadcore.config import (
    GeminiConfig,
    ThreadCoreConfig,
    deep_merge,
    env_overrides,
    load_config,
    load_default_config,
)
from threadcore.exceptions import ConfigError

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_toml(path: Path, content: str) -> str:
    """Write TOML content to a file and return the path string."""
    path.write_text(textwrap.dedent(content))
    return str(path)


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch, tmp_path):
    """Hide any real user config file and THREADCORE_/API key variables."""
    monkeypatch.setattr("threadcore.config.loader.USER_CONFIG_PATH", tmp_path / "absent.toml")
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY"):
        monkeypatch.delenv(name, raising=False)
    for name in list(os.environ):
        if name.startswith("THREADCORE_"):
            monkeypatch.delenv(name)


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_packaged_defaults_validate(self):
        config = ThreadCoreConfig.model_validate(load_default_config())
        assert config.cache.type == "redis"
        assert config.cache.ttl_seconds == 7 * 24 * 60 * 60
        assert config.cache.key_prefix == "threadcore:session:"
        assert config.gemini.default_model == "gemini-2.0-flash-001"
        assert config.generation.fallback_reply == "I'm having trouble responding right now."
        assert config.generation.title_fallback_words == 3

    def test_load_without_sources(self):
        config = load_config(load_env_file=False)
        assert config.generation.request_timeout_seconds == 60.0
        assert config.logging.components["redis"] == "WARNING"


class TestPrecedence:
    def test_file_overrides_defaults(self, tmp_path):
        path = _write_toml(
            tmp_path / "config.toml",
            """\
            [cache]
            type = "memory"
            ttl_seconds = 120
            """,
        )
        config = load_config(config_file_path=path, load_env_file=False)
        assert config.cache.type == "memory"
        assert config.cache.ttl_seconds == 120
        assert config.cache.url == "redis://localhost:6379/0"

    def test_user_config_file_picked_up(self, tmp_path, monkeypatch):
        user_file = tmp_path / "user.toml"
        _write_toml(user_file, '[gemini]\ndefault_model = "gemini-test"\n')
        monkeypatch.setattr("threadcore.config.loader.USER_CONFIG_PATH", user_file)
        assert load_config(load_env_file=False).gemini.default_model == "gemini-test"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = _write_toml(tmp_path / "config.toml", "[cache]\nttl_seconds = 120\n")
        monkeypatch.setenv("THREADCORE_CACHE__TTL_SECONDS", "60")
        config = load_config(config_file_path=path, load_env_file=False)
        assert config.cache.ttl_seconds == 60

    def test_overrides_beat_env(self, monkeypatch):
        monkeypatch.setenv("THREADCORE_GENERATION__REQUEST_TIMEOUT_SECONDS", "30")
        config = load_config(overrides={"generation": {"request_timeout_seconds": 5}}, load_env_file=False)
        assert config.generation.request_timeout_seconds == 5.0

    def test_env_prefix_none_disables_env(self, monkeypatch):
        monkeypatch.setenv("THREADCORE_CACHE__TTL_SECONDS", "60")
        config = load_config(env_prefix=None, load_env_file=False)
        assert config.cache.ttl_seconds == 7 * 24 * 60 * 60

    def test_numeric_looking_api_key_stays_string(self, monkeypatch):
        monkeypatch.setenv("THREADCORE_GEMINI__API_KEY", "12345")
        assert load_config(load_env_file=False).gemini.api_key == "12345"


class TestErrors:
    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigError):
            load_config(config_file_path=str(tmp_path / "nope.toml"), load_env_file=False)

    def test_malformed_toml(self, tmp_path):
        path = _write_toml(tmp_path / "bad.toml", "[cache\nttl_seconds = 1\n")
        with pytest.raises(ConfigError):
            load_config(config_file_path=path, load_env_file=False)

    def test_invalid_value(self):
        with pytest.raises(ConfigError, match="Invalid threadcore configuration"):
            load_config(overrides={"cache": {"ttl_seconds": 0}}, load_env_file=False)

    def test_unknown_cache_type(self):
        with pytest.raises(ConfigError):
            load_config(overrides={"cache": {"type": "memcached"}}, load_env_file=False)


class TestHelpers:
    def test_env_overrides_nesting(self):
        environ = {
            "THREADCORE_CACHE__URL": "redis://cache:6379/1",
            "THREADCORE_LOGGING__COMPONENTS__REDIS": "DEBUG",
            "OTHER_CACHE__URL": "ignored",
        }
        assert env_overrides("THREADCORE", environ) == {
            "cache": {"url": "redis://cache:6379/1"},
            "logging": {"components": {"redis": "DEBUG"}},
        }

    def test_env_overrides_scalar_conflict(self):
        environ = {"THREADCORE_CACHE": "x", "THREADCORE_CACHE__URL": "y"}
        with pytest.raises(ConfigError):
            env_overrides("THREADCORE", environ)

    def test_deep_merge_does_not_mutate(self):
        base = {"cache": {"url": "a", "ttl_seconds": 1}}
        merged = deep_merge(base, {"cache": {"url": "b"}})
        assert merged == {"cache": {"url": "b", "ttl_seconds": 1}}
        assert base["cache"]["url"] == "a"


class TestApiKeyResolution:
    def test_explicit_key_wins(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        assert GeminiConfig(api_key="explicit").resolve_api_key() == "explicit"

    def test_named_env_var(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "from-env")
        monkeypatch.setenv("GOOGLE_API_KEY", "google")
        assert GeminiConfig().resolve_api_key() == "from-env"

    def test_google_api_key_fallback(self, monkeypatch):
        monkeypatch.setenv("GOOGLE_API_KEY", "google")
        assert GeminiConfig().resolve_api_key() == "google"

    def test_no_key(self):
        assert GeminiConfig().resolve_api_key() is None
