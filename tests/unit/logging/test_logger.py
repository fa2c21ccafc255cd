# tests/unit/logging/test_logger.py - v3
"""Tests for logging/logger.py: logger factory and formatters."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from notetags.logging.context import (
    clear_context,
    reset_operation_context,
    set_consumer_context,
    set_operation_context,
)
from notetags.logging.logger import (
    ROOT_LOGGER,
    JsonFormatter,
    TextFormatter,
    get_logger,
    setup_logging,
)


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger(ROOT_LOGGER)
    handlers, level = list(root.handlers), root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


def _record(msg="Hello"):
    return logging.LogRecord(
        name="test", level=logging.INFO, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None,
    )


class TestJsonFormatter:
    def setup_method(self):
        clear_context()

    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        parsed = json.loads(JsonFormatter().format(_record()))
        assert parsed["level"] == "INFO"
        assert parsed["message"] == "Hello"
        assert "timestamp" in parsed
        assert "operation" not in parsed
        assert "consumer" not in parsed

    def test_format_with_context(self):
        set_consumer_context("editor-1")
        token = set_operation_context("refresh")
        try:
            parsed = json.loads(JsonFormatter().format(_record()))
        finally:
            reset_operation_context(token)
        assert parsed["operation"] == "refresh"
        assert parsed["consumer"] == "editor-1"
        assert "context" not in parsed

    def test_timestamp_from_record(self):
        record = _record()
        record.created = 1772355600.0
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["timestamp"].startswith("2026-03-01T09:00:00")

    def test_exception_included(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = logging.LogRecord(
                name="test", level=logging.ERROR, pathname="", lineno=0,
                msg="failed", args=(), exc_info=sys.exc_info(),
            )
        parsed = json.loads(JsonFormatter().format(record))
        assert "ValueError: boom" in parsed["exception"]

    def test_format_with_data(self):
        record = _record()
        record.data = {"tags": 3}
        parsed = json.loads(JsonFormatter().format(record))
        assert parsed["data"] == {"tags": 3}


class TestTextFormatter:
    def teardown_method(self):
        clear_context()

    def test_format_basic(self):
        output = TextFormatter().format(_record("Hello text"))
        assert "Hello text" in output
        assert "INFO" in output

    def test_format_with_context(self):
        set_consumer_context("cli")
        set_operation_context("cleanup")
        output = TextFormatter().format(_record())
        assert "[cli]" in output
        assert "(cleanup)" in output


class TestGetLogger:
    def test_returns_logger(self):
        assert get_logger("test_module").name == "notetags.test_module"


class TestSetupLogging:
    def test_setup_json(self):
        setup_logging(level="DEBUG", log_format="json")
        root = logging.getLogger("notetags")
        assert root.level == logging.DEBUG
        assert isinstance(root.handlers[0].formatter, JsonFormatter)

    def test_setup_text_with_file(self, tmp_path):
        log_file = tmp_path / "logs" / "notetags.log"
        setup_logging(level="INFO", log_format="text", log_file=log_file)
        root = logging.getLogger("notetags")
        assert root.level == logging.INFO
        assert len(root.handlers) == 2
        root.info("written")
        for handler in root.handlers:
            handler.flush()
        assert "written" in log_file.read_text(encoding="utf-8")
