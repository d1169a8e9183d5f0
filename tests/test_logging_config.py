# tests/test_logging_config.py
"""
Tests for threadcore.logging_config.
"""

import logging

import pytest

from threadcore.config.models import LoggingConfig
from threadcore.logging_config import (
    LoggingManager,
    configure_logging,
    get_log_file_path,
    set_component_level,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Undo handler changes so tests don't leak logging state."""
    root = logging.getLogger()
    level = root.level
    yield
    manager = LoggingManager()
    for handler in (manager._console_handler, manager._file_handler):
        if handler is not None:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)
    LoggingManager._instance = None
    LoggingManager._configured = False
    LoggingManager._log_file_path = None


class TestConfigureLogging:
    def test_console_only(self):
        result = configure_logging(LoggingConfig(console_level="warning"), force_reconfigure=True)
        assert result is None
        assert LoggingManager.is_configured()
        handler = LoggingManager()._console_handler
        assert handler in logging.getLogger().handlers
        assert handler.level == logging.WARNING

    def test_file_handler_created(self, tmp_path):
        log_file = tmp_path / "logs" / "threadcore.log"
        config = {"console_enabled": False, "file_enabled": True, "file_path": str(log_file)}
        result = configure_logging(config, force_reconfigure=True)
        assert result == log_file
        assert get_log_file_path() == log_file
        logging.getLogger("threadcore.test").info("written to file")
        assert log_file.exists()

    def test_second_call_is_noop(self):
        configure_logging(LoggingConfig(), force_reconfigure=True)
        handler = LoggingManager()._console_handler
        configure_logging(LoggingConfig(console_level="ERROR"))
        assert LoggingManager()._console_handler is handler
        assert handler.level == logging.INFO

    def test_component_levels_applied(self):
        configure_logging(LoggingConfig(components={"redis": "ERROR"}), force_reconfigure=True)
        assert logging.getLogger("redis").level == logging.ERROR

    def test_invalid_level_rejected(self):
        with pytest.raises(ValueError):
            LoggingConfig(console_level="LOUD")


def test_set_component_level_runtime():
    set_component_level("google_genai", "debug")
    assert logging.getLogger("google_genai").level == logging.DEBUG
    set_component_level("google_genai", logging.WARNING)
    assert logging.getLogger("google_genai").level == logging.WARNING
