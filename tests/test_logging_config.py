"""Tests for logging setup."""
import logging

import pytest

from config import LOGGING, log_level
from logging_config import setup_logging


@pytest.fixture
def root_logger(monkeypatch):
    monkeypatch.delenv("BOXBLANK_LOG_LEVEL", raising=False)
    root = logging.getLogger()
    saved_handlers, saved_level = root.handlers[:], root.level
    yield root
    for h in root.handlers:
        h.close()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


class TestLogLevel:
    def test_default(self, monkeypatch):
        monkeypatch.delenv("BOXBLANK_LOG_LEVEL", raising=False)
        assert log_level() == LOGGING["level"]

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("BOXBLANK_LOG_LEVEL", "debug")
        assert log_level() == "DEBUG"

    def test_bad_env_value(self, monkeypatch):
        monkeypatch.setenv("BOXBLANK_LOG_LEVEL", "loud")
        assert log_level() == LOGGING["level"]


class TestSetupLogging:
    def test_replaces_handlers(self, root_logger):
        setup_logging()
        setup_logging()
        assert len(root_logger.handlers) == 1
        assert root_logger.level == logging.INFO

    def test_writes_log_file(self, root_logger, tmp_path):
        log_file = tmp_path / "run.log"
        setup_logging(logging.DEBUG, log_file)
        logging.getLogger("geometry_2d").debug("hello")
        for h in root_logger.handlers:
            h.flush()
        text = log_file.read_text(encoding="utf-8")
        assert "Logging at DEBUG" in text
        assert "geometry_2d - DEBUG - hello" in text

    def test_log_file_in_settings_dir(self, root_logger, tmp_path, monkeypatch):
        monkeypatch.setenv("BOXBLANK_HOME", str(tmp_path / "home"))
        setup_logging(to_settings_dir=True)
        logging.getLogger("allowances").warning("fallback")
        for h in root_logger.handlers:
            h.flush()
        text = (tmp_path / "home" / LOGGING["file_name"]).read_text(encoding="utf-8")
        assert "allowances - WARNING - fallback" in text
