"""
Logger utility for capfetch.

Rotating file logs in {CAPFETCH_HOME or ~}/.capfetch/logs/:
- capfetch.log: main log, 5MB rotation, keeps 3 backups
- capfetch.json: structured JSON, 5MB rotation, keeps 2 backups

Console output goes to stderr. Library modules only ever call
logging.getLogger(__name__); handlers are attached by the CLI or by
applications that opt in through get_logger().
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, Union

from capfetch.utils.paths import ensure_directory, get_capfetch_home

ROOT_LOGGER = "capfetch"

# Above CRITICAL: nothing gets through
SILENT = logging.CRITICAL + 10


class JsonFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data)


def _get_log_dir() -> Path:
    return ensure_directory(get_capfetch_home() / "logs")


def get_logger(
    name: str = ROOT_LOGGER,
    level: Optional[Union[int, str]] = None,
    console_level: int = logging.WARNING,
    files: bool = True,
) -> logging.Logger:
    """
    Get or create a logger with console and rotating file handlers.

    Args:
        name: Logger name
        level: Optional logging level or level name (defaults to INFO)
        console_level: Minimum level echoed to stderr
        files: Attach rotating file handlers under the state directory

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        text_formatter = logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(console_level)
        console_handler.setFormatter(text_formatter)
        logger.addHandler(console_handler)

        if files:
            try:
                log_dir = _get_log_dir()

                main_handler = RotatingFileHandler(
                    log_dir / "capfetch.log",
                    maxBytes=5 * 1024 * 1024,
                    backupCount=3,
                    encoding="utf-8",
                )
                main_handler.setLevel(logging.DEBUG)
                main_handler.setFormatter(text_formatter)
                logger.addHandler(main_handler)

                json_handler = RotatingFileHandler(
                    log_dir / "capfetch.json",
                    maxBytes=5 * 1024 * 1024,
                    backupCount=2,
                    encoding="utf-8",
                )
                json_handler.setLevel(logging.INFO)
                json_handler.setFormatter(JsonFormatter())
                logger.addHandler(json_handler)
            except OSError:
                pass  # console only when the state directory is not writable

    if level is not None:
        logger.setLevel(level)
    elif not logger.level:
        logger.setLevel(logging.INFO)

    return logger


def set_client_logging(enabled: bool) -> None:
    """Turn capfetch log output on (INFO) or off entirely."""
    logging.getLogger(ROOT_LOGGER).setLevel(logging.INFO if enabled else SILENT)
