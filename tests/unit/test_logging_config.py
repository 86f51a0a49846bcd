"""
Tests for logging setup
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from riff_cli.logging_config import configure_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def restore_root_logger():
    root_logger = logging.getLogger()
    handlers, level = root_logger.handlers[:], root_logger.level
    yield root_logger
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers = handlers
    root_logger.setLevel(level)


def rotating_handlers(root_logger):
    return [h for h in root_logger.handlers if isinstance(h, RotatingFileHandler)]


class TestConfigureLogging:
    """Tests for handler and level setup"""

    def test_defaults_to_warning_on_stderr_only(self, restore_root_logger):
        configure_logging()

        assert restore_root_logger.level == logging.WARNING
        assert len(restore_root_logger.handlers) == 1
        assert rotating_handlers(restore_root_logger) == []

    def test_unknown_level_means_warning(self, restore_root_logger):
        configure_logging(level="chatty")
        assert restore_root_logger.level == logging.WARNING

    def test_log_file_is_rotated(self, restore_root_logger, tmp_path):
        log_file = tmp_path / "logs" / "riff.log"
        configure_logging(level="info", log_file=str(log_file), max_size_mb=2, backup_count=5)

        [handler] = rotating_handlers(restore_root_logger)
        assert handler.maxBytes == 2 * 1024 * 1024
        assert handler.backupCount == 5
        assert log_file.parent.is_dir()
        assert restore_root_logger.level == logging.INFO


def test_settings_reach_the_file_handler(restore_root_logger, tmp_path):
    settings = {"level": "ERROR", "file": str(tmp_path / "riff.log"), "max_size_mb": 1, "backup_count": 9}
    setup_logging_from_config(settings)

    [handler] = rotating_handlers(restore_root_logger)
    assert handler.maxBytes == 1024 * 1024
    assert handler.backupCount == 9
    assert restore_root_logger.level == logging.ERROR


def test_debug_overrides_configured_level(restore_root_logger):
    setup_logging_from_config({"level": "ERROR", "file": None}, debug=True)
    assert restore_root_logger.level == logging.DEBUG
