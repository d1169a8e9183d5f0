# src/threadcore/config/__init__.py
"""
Configuration module for the threadcore library.

Configuration files:
    - default_config.toml: Packaged defaults
    - User config: ~/.config/threadcore/config.toml
    - Custom config: ThreadCore.create(config_file_path=...)

Environment variables:
    - Prefix: THREADCORE_
    - Nested keys use double underscores: THREADCORE_CACHE__URL
"""

from .loader import deep_merge, env_overrides, load_config, load_default_config
from .models import (
    CacheConfig,
    GeminiConfig,
    GenerationConfig,
    LoggingConfig,
    StoreConfig,
    ThreadCoreConfig,
)

__all__ = [
    "CacheConfig",
    "GeminiConfig",
    "GenerationConfig",
    "LoggingConfig",
    "StoreConfig",
    "ThreadCoreConfig",
    "deep_merge",
    "env_overrides",
    "load_config",
    "load_default_config",
]
