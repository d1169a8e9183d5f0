# src/threadcore/logging_config.py
"""
Logging configuration for threadcore.

Every module logs through ``logging.getLogger(__name__)``; this module wires
those loggers to handlers once per process, driven by the ``[logging]``
section of the threadcore configuration:

- Console handler on stderr with its own level and format
- Optional rotating file handler
- Per-component level overrides (``redis``, ``google_genai``, ...)

Usage:
    from threadcore.logging_config import configure_logging

    configure_logging(config.logging)
"""

import logging
import os
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from .config.models import LoggingConfig


class LoggingManager:
    """
    Singleton manager for process-wide logging configuration.

    Ensures handlers are only installed once and allows runtime level
    adjustment.
    """

    _instance: Optional["LoggingManager"] = None
    _configured: bool = False
    _log_file_path: Path | None = None
    _console_handler: logging.Handler | None = None
    _file_handler: logging.Handler | None = None

    def __new__(cls) -> "LoggingManager":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    @classmethod
    def get_log_file_path(cls) -> Path | None:
        return cls._log_file_path

    def configure(
        self,
        config: LoggingConfig | dict[str, Any] | None = None,
        force_reconfigure: bool = False,
    ) -> Path | None:
        """
        Install handlers on the root logger.

        Args:
            config: Logging section, as a model or a plain dictionary.
            force_reconfigure: Replace handlers even if already configured.

        Returns:
            Path of the log file when file logging is enabled, else None.
        """
        if self._configured and not force_reconfigure:
            return self._log_file_path

        if config is None:
            config = LoggingConfig()
        elif isinstance(config, dict):
            config = LoggingConfig.model_validate(config)

        root_logger = logging.getLogger()
        for handler in (self._console_handler, self._file_handler):
            if handler is not None:
                root_logger.removeHandler(handler)
                handler.close()
        self._console_handler = None
        self._file_handler = None
        LoggingManager._log_file_path = None

        root_logger.setLevel(logging.DEBUG)

        if config.console_enabled:
            self._console_handler = logging.StreamHandler(sys.stderr)
            self._console_handler.setLevel(config.console_level)
            self._console_handler.setFormatter(logging.Formatter(config.console_format))
            root_logger.addHandler(self._console_handler)

        if config.file_enabled:
            self._file_handler, LoggingManager._log_file_path = self._create_file_handler(config)
            if self._file_handler:
                root_logger.addHandler(self._file_handler)

        for component_name, level_str in config.components.items():
            self.set_component_level(component_name, level_str)

        LoggingManager._configured = True
        logging.getLogger(__name__).debug(
            f"Logging configured (console={config.console_enabled}, file={self._log_file_path})"
        )
        return self._log_file_path

    def _create_file_handler(self, config: LoggingConfig) -> tuple[logging.Handler | None, Path | None]:
        """Create the rotating file handler; file logging is skipped if the path is unusable."""
        log_file_path = Path(os.path.expanduser(config.file_path))
        try:
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                log_file_path,
                maxBytes=config.rotation_max_bytes,
                backupCount=config.rotation_backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            sys.stderr.write(f"Warning: Cannot create log file {log_file_path}: {e}\n")
            return None, None

        handler.setLevel(config.file_level)
        handler.setFormatter(logging.Formatter(config.file_format))
        return handler, log_file_path

    def set_component_level(self, component: str, level: str | int) -> None:
        """Change a specific component's log level at runtime."""
        if isinstance(level, str):
            level = logging.getLevelName(level.upper())
        if isinstance(level, int):
            logging.getLogger(component).setLevel(level)


def configure_logging(
    config: LoggingConfig | dict[str, Any] | None = None,
    force_reconfigure: bool = False,
) -> Path | None:
    """
    Configure logging for the application.

    Call this early in application startup. Later calls are no-ops unless
    ``force_reconfigure`` is set.
    """
    return LoggingManager().configure(config=config, force_reconfigure=force_reconfigure)


def get_log_file_path() -> Path | None:
    """Get the current log file path."""
    return LoggingManager.get_log_file_path()


def set_component_level(component: str, level: str | int) -> None:
    """Change a specific component's log level at runtime."""
    LoggingManager().set_component_level(component, level)
