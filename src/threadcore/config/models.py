# src/threadcore/config/models.py
"""
Pydantic models for threadcore configuration validation.

The loader merges the packaged ``default_config.toml``, an optional user
file, ``THREADCORE_`` environment variables and explicit overrides into a
plain dictionary; these models validate that dictionary and give the rest
of the library typed access to it.
"""

import os
from typing import Literal

from pydantic import BaseModel, Field, field_validator

# ==============================================================================
# Section Models
# ==============================================================================

ONE_WEEK_SECONDS = 7 * 24 * 60 * 60


class CacheConfig(BaseModel):
    """
    Session cache configuration.

    ``type = "redis"`` is the production backend; ``type = "memory"`` keeps
    sessions in-process and is meant for tests and single-process setups.
    """

    type: Literal["redis", "memory"] = Field("redis", description="Session cache backend")
    url: str = Field("redis://localhost:6379/0", description="Redis connection URL")
    key_prefix: str = Field("threadcore:session:", description="Namespace prefix for cache keys")
    ttl_seconds: int = Field(
        ONE_WEEK_SECONDS, gt=0, description="Sliding expiry applied on every read and write"
    )
    max_retries: int = Field(3, ge=0, le=10, description="Retries on transient connection errors")
    socket_timeout_seconds: float = Field(5.0, gt=0, description="Per-command socket timeout")
    connect_timeout_seconds: float = Field(5.0, gt=0, description="Connection establishment timeout")
    max_items: int = Field(10000, ge=0, description="Memory backend only: item limit (0=unlimited)")

    @field_validator("key_prefix")
    @classmethod
    def validate_prefix(cls, value: str) -> str:
        if not value:
            raise ValueError("cache.key_prefix must not be empty")
        return value


class GeminiConfig(BaseModel):
    """Google Gemini provider configuration."""

    api_key: str | None = Field(None, description="API key; falls back to environment variables")
    api_key_env_var: str = Field("GEMINI_API_KEY", description="Environment variable holding the key")
    default_model: str = Field("gemini-2.0-flash-001", description="Model used for every call")

    def resolve_api_key(self) -> str | None:
        """Return the configured key, then the named env var, then GOOGLE_API_KEY."""
        return self.api_key or os.environ.get(self.api_key_env_var) or os.environ.get("GOOGLE_API_KEY")


class GenerationConfig(BaseModel):
    """Response generator configuration."""

    request_timeout_seconds: float = Field(60.0, gt=0, description="Deadline for a single LLM call")
    fallback_reply: str = Field(
        "I'm having trouble responding right now.",
        description="Reply substituted when the LLM call fails",
    )
    title_fallback_words: int = Field(3, ge=1, description="Words of the seed used as fallback title")


class StoreConfig(BaseModel):
    """Durable thread store configuration."""

    type: Literal["sqlite"] = Field("sqlite", description="Durable store backend")
    path: str = Field("~/.local/share/threadcore/threads.db", description="SQLite database file")


class LoggingConfig(BaseModel):
    """Logging configuration consumed by :func:`threadcore.logging_config.configure_logging`."""

    console_enabled: bool = True
    console_level: str = "INFO"
    console_format: str = "%(asctime)s [%(levelname)-8s] %(name)s - %(message)s"
    file_enabled: bool = False
    file_level: str = "DEBUG"
    file_path: str = "~/.local/share/threadcore/logs/threadcore.log"
    file_format: str = (
        "%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)"
    )
    rotation_max_bytes: int = Field(10 * 1024 * 1024, gt=0)
    rotation_backup_count: int = Field(5, ge=0)
    components: dict[str, str] = Field(default_factory=dict)

    @field_validator("console_level", "file_level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Invalid log level: '{value}'")
        return level


# ==============================================================================
# Root Model
# ==============================================================================


class ThreadCoreConfig(BaseModel):
    """Validated root configuration."""

    cache: CacheConfig = Field(default_factory=CacheConfig)
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    store: StoreConfig = Field(default_factory=StoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
