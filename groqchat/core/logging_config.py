"""
Logging setup for groqchat.

Console lines are colored and human-readable; the log file is rotated and,
by default, written as one JSON object per line so the ``extra_fields``
attached by the provider and chat service (session, model, token usage,
frame counters) stay machine-readable.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

CONSOLE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
FILE_FORMAT = "%(asctime)s | %(levelname)s | %(name)s:%(funcName)s:%(lineno)d | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5

# Libraries that log every request or query at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "aiosqlite", "uvicorn.access")

SECRET_KEY_PARTS = ("authorization", "api_key", "api-key", "token", "secret")
MASK = "***FILTERED***"


class ColoredFormatter(logging.Formatter):
    """Colors the level name for terminal output."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record: logging.LogRecord) -> str:
        plain = record.levelname
        color = self.COLORS.get(plain)
        if color:
            record.levelname = f"{color}{plain:8s}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # The file handler formats the same record
            record.levelname = plain


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with ``extra_fields`` merged in at the top level."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }
        entry.update(getattr(record, "extra_fields", None) or {})
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(CONSOLE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _file_handler(path: str, level: int, json_format: bool) -> logging.Handler:
    Path(path).parent.mkdir(parents=True, exist_ok=True)
    handler = logging.handlers.RotatingFileHandler(
        filename=path,
        maxBytes=LOG_FILE_MAX_BYTES,
        backupCount=LOG_FILE_BACKUPS,
        encoding='utf-8'
    )
    handler.setLevel(level)
    if json_format:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(config: Any) -> None:
    """
    Replace the root logger's handlers according to ``config``.

    Args:
        config: Settings object exposing ``log_level``, ``log_console_enabled``,
            ``log_file_enabled``, ``log_file_path`` and ``log_json_format``
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    log_level = getattr(logging, config.log_level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    if config.log_console_enabled:
        root_logger.addHandler(_console_handler(log_level))
    if config.log_file_enabled:
        root_logger.addHandler(_file_handler(config.log_file_path, log_level, config.log_json_format))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(
        f"Logging initialized: level={config.log_level.upper()}, "
        f"console={config.log_console_enabled}, "
        f"file={config.log_file_path if config.log_file_enabled else 'off'}"
    )


class LoggerAdapter(logging.LoggerAdapter):
    """
    Attaches fixed context (session id, model) to the ``extra_fields`` of every record.

    Fields passed per call win over the adapter's own.
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.setdefault('extra', {})
        extra['extra_fields'] = {**self.extra, **extra.get('extra_fields', {})}
        return msg, kwargs


def truncate_large_data(data: str, max_length: int = 5000) -> str:
    """Cut ``data`` to ``max_length`` characters, noting the original length."""
    if len(data) <= max_length:
        return data
    return data[:max_length] + f"... (truncated, total length: {len(data)})"


def scrub_for_log(data: Any, uri_length: int = 64) -> Any:
    """
    Copy of a request structure that is safe to log.

    Values under credential-like keys are masked and ``data:`` URIs (inline
    base64 images) are cut to ``uri_length`` characters.
    """
    if isinstance(data, dict):
        return {
            key: MASK if any(part in str(key).lower() for part in SECRET_KEY_PARTS)
            else scrub_for_log(value, uri_length)
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [scrub_for_log(item, uri_length) for item in data]
    if isinstance(data, str) and data.startswith("data:"):
        return truncate_large_data(data, max_length=uri_length)
    return data
