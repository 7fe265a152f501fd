"""Tests for structured logging."""

from __future__ import annotations

import json
import logging
import sys

import pytest

from magistr.observability.logging import (
    ConsoleFormatter,
    JsonFormatter,
    configure_logging,
    correlation_id_var,
    log_context,
    request_id_var,
)


def make_record(message: str = "Created quote 4", **extra) -> logging.LogRecord:
    record = logging.LogRecord(
        name="magistr.service",
        level=logging.INFO,
        pathname=__file__,
        lineno=10,
        msg=message,
        args=(),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_basic_fields(self) -> None:
        data = json.loads(JsonFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "magistr.service"
        assert data["message"] == "Created quote 4"
        assert data["location"].endswith(":10")
        assert "request_id" not in data

    def test_includes_bound_ids(self) -> None:
        with log_context("req-1", "corr-1"):
            data = json.loads(JsonFormatter().format(make_record()))

        assert data["request_id"] == "req-1"
        assert data["correlation_id"] == "corr-1"

    def test_extras_are_serialized(self) -> None:
        data = json.loads(JsonFormatter().format(make_record(cache="quotes", ids={1, 2})))

        assert data["cache"] == "quotes"
        assert isinstance(data["ids"], str)

    def test_exception_text(self) -> None:
        try:
            raise RuntimeError("pool closed")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JsonFormatter().format(record))

        assert "RuntimeError: pool closed" in data["exception"]


class TestConsoleFormatter:
    """Tests for ConsoleFormatter."""

    def test_plain_line(self) -> None:
        line = ConsoleFormatter().format(make_record())

        assert "| INFO     |" in line
        assert line.endswith("magistr.service | Created quote 4")

    def test_request_id_is_shortened(self) -> None:
        with log_context("abcdef123456"):
            line = ConsoleFormatter().format(make_record())

        assert line.endswith("| req=abcdef12")


class TestLogContext:
    """Tests for log_context."""

    def test_correlation_defaults_to_request_id(self) -> None:
        with log_context("init-db"):
            assert request_id_var.get() == "init-db"
            assert correlation_id_var.get() == "init-db"

        assert request_id_var.get() == ""
        assert correlation_id_var.get() == ""

    def test_resets_after_error(self) -> None:
        with pytest.raises(ValueError), log_context("req-2"):
            raise ValueError

        assert request_id_var.get() == ""


class TestConfigureLogging:
    """Tests for configure_logging."""

    def test_installs_one_handler(self) -> None:
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level
        try:
            configure_logging(json_format=False, level="debug")

            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, ConsoleFormatter)
            assert root.level == logging.DEBUG
            assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
