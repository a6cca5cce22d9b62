"""Tests for the logging setup."""

import logging
import logging.handlers

import pytest
import structlog

from wholesale.config import get_settings
from wholesale.utils.logging import LOG_FILE_NAME, configure_logging, get_log_level


@pytest.fixture()
def restore_logging():
    yield
    for handler in logging.getLogger().handlers:
        handler.close()
    get_settings.cache_clear()
    configure_logging()


def _file_handlers():
    return [h for h in logging.getLogger().handlers if isinstance(h, logging.handlers.RotatingFileHandler)]


class TestConfigureLogging:
    def test_console_only_without_log_dir(self, restore_logging, monkeypatch):
        monkeypatch.delenv("WHOLESALE_LOG_DIR", raising=False)
        get_settings.cache_clear()

        configure_logging(level="INFO")

        assert _file_handlers() == []
        assert len(logging.getLogger().handlers) == 1

    def test_log_dir_adds_rotating_file(self, restore_logging, tmp_path):
        log_dir = tmp_path / "logs"

        configure_logging(level="INFO", log_dir=str(log_dir))
        structlog.get_logger("wholesale.test").info("Cart reconciled", buyer_id="buyer-log")
        for handler in _file_handlers():
            handler.flush()

        [handler] = _file_handlers()
        assert handler.baseFilename == str(log_dir / LOG_FILE_NAME)
        assert "Cart reconciled" in (log_dir / LOG_FILE_NAME).read_text(encoding="utf-8")

    def test_log_dir_from_settings(self, restore_logging, tmp_path, monkeypatch):
        monkeypatch.setenv("WHOLESALE_LOG_DIR", str(tmp_path))
        get_settings.cache_clear()

        configure_logging(level="INFO")

        assert len(_file_handlers()) == 1

    def test_noisy_libraries_are_quietened(self, restore_logging):
        configure_logging(level="DEBUG")

        assert logging.getLogger("protean").level == logging.WARNING
        assert logging.getLogger("httpx").level == logging.WARNING


class TestLogLevel:
    def test_explicit_level_wins(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "ERROR")
        assert get_log_level() == "ERROR"

    def test_level_follows_environment(self, monkeypatch):
        monkeypatch.delenv("LOG_LEVEL", raising=False)
        monkeypatch.delenv("ENVIRONMENT", raising=False)
        monkeypatch.setenv("PROTEAN_ENV", "production")
        assert get_log_level() == "INFO"
