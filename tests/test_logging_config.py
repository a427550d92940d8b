"""
Unit tests for logging setup and formatters.
"""

import json
import logging
from types import SimpleNamespace

from groqchat.core.logging_config import (
    ColoredFormatter,
    JSONFormatter,
    LoggerAdapter,
    setup_logging,
)


def make_record(msg="hello", level=logging.INFO, **extra):
    record = logging.LogRecord("groqchat.test", level, __file__, 10, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestFormatters:
    """Tests for ColoredFormatter and JSONFormatter."""

    def test_colored_formatter_leaves_record_plain(self):
        record = make_record()
        line = ColoredFormatter("%(levelname)s %(message)s").format(record)
        assert "\033[32m" in line
        assert record.levelname == "INFO"

    def test_json_formatter_merges_extra_fields(self):
        record = make_record(extra_fields={"session_id": "s1", "fragments": 3})
        entry = json.loads(JSONFormatter().format(record))
        assert entry["message"] == "hello"
        assert entry["level"] == "INFO"
        assert entry["session_id"] == "s1"
        assert entry["fragments"] == 3

    def test_json_formatter_without_extra_fields(self):
        entry = json.loads(JSONFormatter().format(make_record()))
        assert entry["logger"] == "groqchat.test"


class TestLoggerAdapter:
    """Tests for context merging."""

    def test_context_merged_with_call_fields(self):
        adapter = LoggerAdapter(logging.getLogger("groqchat.test"), {"session_id": "s1", "model": "m"})
        _, kwargs = adapter.process("msg", {"extra": {"extra_fields": {"model": "override"}}})
        assert kwargs["extra"]["extra_fields"] == {"session_id": "s1", "model": "override"}

    def test_context_added_without_extra(self):
        adapter = LoggerAdapter(logging.getLogger("groqchat.test"), {"session_id": "s1"})
        _, kwargs = adapter.process("msg", {})
        assert kwargs["extra"]["extra_fields"] == {"session_id": "s1"}


class TestSetupLogging:
    """Tests for handler wiring."""

    def test_file_handler_writes_json_lines(self, tmp_path):
        log_file = tmp_path / "logs" / "groqchat.log"
        config = SimpleNamespace(
            log_level="debug",
            log_console_enabled=False,
            log_file_enabled=True,
            log_file_path=str(log_file),
            log_json_format=True,
        )
        root = logging.getLogger()
        previous_handlers, previous_level = root.handlers[:], root.level
        try:
            setup_logging(config)
            logging.getLogger("groqchat.test").info("stream done", extra={"extra_fields": {"tokens": 12}})
            for handler in root.handlers:
                handler.flush()

            lines = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
            assert lines[-1]["message"] == "stream done"
            assert lines[-1]["tokens"] == 12
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = previous_handlers
            root.setLevel(previous_level)
