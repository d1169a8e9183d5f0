# src/threadcore/config/loader.py
"""
Layered configuration loading.

Sources, lowest precedence first:

1. ``default_config.toml`` packaged with threadcore.
2. The user file ``~/.config/threadcore/config.toml`` (or an explicit path).
3. Environment variables with the ``THREADCORE_`` prefix; nested keys use
   double underscores (``THREADCORE_CACHE__TTL_SECONDS=3600``). A ``.env``
   file in the working directory is loaded first.
4. An explicit overrides dictionary.
"""

import copy
import importlib.resources
import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import ValidationError

from ..exceptions import ConfigError
from .models import ThreadCoreConfig

logger = logging.getLogger(__name__)

DEFAULT_ENV_PREFIX = "THREADCORE"
USER_CONFIG_PATH = Path("~/.config/threadcore/config.toml")


def load_default_config() -> Dict[str, Any]:
    """Read the packaged defaults."""
    resource = importlib.resources.files("threadcore.config").joinpath("default_config.toml")
    with resource.open("rb") as f:
        return tomllib.load(f)


def deep_merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge ``override`` into a copy of ``base``."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


def env_overrides(prefix: str = DEFAULT_ENV_PREFIX, environ: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """
    Collect ``{prefix}_SECTION__KEY=value`` variables into a nested dictionary.

    Args:
        prefix: Variable prefix without the trailing underscore.
        environ: Mapping to read from; defaults to ``os.environ``.

    Returns:
        Nested dictionary with lower-cased keys.
    """
    environ = os.environ if environ is None else environ
    marker = f"{prefix.upper()}_"
    result: Dict[str, Any] = {}
    for name, raw in environ.items():
        if not name.startswith(marker):
            continue
        path = [part.lower() for part in name[len(marker):].split("__") if part]
        if not path:
            continue
        node = result
        for part in path[:-1]:
            node = node.setdefault(part, {})
            if not isinstance(node, dict):
                raise ConfigError(f"Environment variable '{name}' conflicts with a scalar setting.")
        # values stay strings; pydantic coerces them to the field types
        node[path[-1]] = raw
    return result


def load_config(
    config_file_path: Optional[str] = None,
    env_prefix: Optional[str] = DEFAULT_ENV_PREFIX,
    overrides: Optional[Mapping[str, Any]] = None,
    load_env_file: bool = True,
) -> ThreadCoreConfig:
    """
    Build the validated configuration from all sources.

    Args:
        config_file_path: Explicit TOML file. When None the user config file
            is used if it exists.
        env_prefix: Prefix for environment overrides; None disables them.
        overrides: Highest-precedence settings.
        load_env_file: Whether to load a ``.env`` file before reading the
            environment.

    Returns:
        The validated ThreadCoreConfig.

    Raises:
        ConfigError: If a file cannot be read or validation fails.
    """
    if load_env_file:
        load_dotenv()

    try:
        merged = load_default_config()
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Failed to load packaged default configuration: {e}")

    file_path = Path(config_file_path).expanduser() if config_file_path else USER_CONFIG_PATH.expanduser()
    if config_file_path or file_path.exists():
        try:
            with file_path.open("rb") as f:
                merged = deep_merge(merged, tomllib.load(f))
            logger.info(f"Loaded configuration file: {file_path}")
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load configuration file '{file_path}': {e}")

    if env_prefix:
        merged = deep_merge(merged, env_overrides(env_prefix))
    if overrides:
        merged = deep_merge(merged, overrides)

    try:
        return ThreadCoreConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigError(f"Invalid threadcore configuration: {e}")
