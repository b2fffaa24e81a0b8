"""Tests for logging helpers."""

import json
import logging

import pytest

from capfetch.utils.logger import ROOT_LOGGER, SILENT, JsonFormatter, get_logger, set_client_logging


@pytest.fixture
def scratch_logger():
    """A throwaway logger whose handlers are closed afterwards."""
    name = "capfetch.tests.scratch"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


@pytest.fixture
def restore_root_level():
    logger = logging.getLogger(ROOT_LOGGER)
    level = logger.level
    yield logger
    logger.setLevel(level)


class TestJsonFormatter:
    """Test structured log lines."""

    def test_format(self):
        """Records become one JSON object."""
        record = logging.LogRecord("capfetch.x", logging.INFO, __file__, 1, "hello %s", ("world",), None)
        data = json.loads(JsonFormatter().format(record))
        assert data["level"] == "INFO"
        assert data["logger"] == "capfetch.x"
        assert data["message"] == "hello world"
        assert "timestamp" in data


class TestGetLogger:
    """Test logger setup."""

    def test_file_handlers(self, scratch_logger, tmp_path):
        """Text and JSON logs are written under the state directory."""
        logger = get_logger(scratch_logger, level=logging.INFO)
        logger.info("token issued")
        for handler in logger.handlers:
            handler.flush()

        log_dir = tmp_path / ".capfetch" / "logs"
        assert "token issued" in (log_dir / "capfetch.log").read_text()
        line = (log_dir / "capfetch.json").read_text().strip().splitlines()[-1]
        assert json.loads(line)["message"] == "token issued"

    def test_handlers_added_once(self, scratch_logger):
        """Repeated calls do not stack handlers."""
        first = len(get_logger(scratch_logger).handlers)
        second = len(get_logger(scratch_logger).handlers)
        assert first == second == 3

    def test_console_only(self, scratch_logger):
        """files=False attaches only the console handler."""
        logger = get_logger(scratch_logger, files=False)
        assert len(logger.handlers) == 1

    def test_level_by_name(self, scratch_logger):
        """Levels may be given by name."""
        assert get_logger(scratch_logger, level="DEBUG", files=False).level == logging.DEBUG


class TestSetClientLogging:
    """Test the client logging switch."""

    def test_enable(self, restore_root_level):
        """Enabled means INFO."""
        set_client_logging(True)
        assert restore_root_level.level == logging.INFO

    def test_disable(self, restore_root_level):
        """Disabled means nothing gets through."""
        set_client_logging(False)
        assert restore_root_level.level == SILENT
        assert not logging.getLogger("capfetch.client.client").isEnabledFor(logging.CRITICAL)
