"""Unit tests for the logging abstraction."""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Generator

import pytest

from socket_connector.correlation import new_request_context
from socket_connector.logging_abstraction import (
    ConnectorLogger,
    HumanReadableFormatter,
    JSONFormatter,
    get_logger,
)


def make_record(msg: str = "Connected to %s", *args: object, **extra: object) -> logging.LogRecord:
    record = logging.LogRecord("socket_connector.test", logging.INFO, __file__, 10, msg, args or ("host",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def logger_name(request: pytest.FixtureRequest) -> Generator[str]:
    """Unique logger name whose handlers are removed after the test."""
    name = f"socket_connector_test.{request.node.name}"
    yield name
    logger = logging.getLogger(name)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_basic_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "socket_connector.test"
        assert data["message"] == "Connected to host"
        assert data["correlation_id"] is None
        assert "context" not in data

    def test_extra_context_and_correlation_id(self):
        record = make_record(endpoint="10.0.0.1:80", attempt=2)

        ctx, _ = new_request_context("abc123")
        data = json.loads(ctx.run(JSONFormatter().format, record))

        assert data["correlation_id"] == "abc123"
        assert data["context"] == {"endpoint": "10.0.0.1:80", "attempt": 2}

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("x", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestHumanReadableFormatter:
    """Tests for HumanReadableFormatter."""

    def test_placeholder_without_correlation_id(self):
        output = HumanReadableFormatter().format(make_record())

        assert "[--------]" in output
        assert "INFO" in output
        assert output.endswith("> Connected to host")

    def test_short_correlation_id_and_context(self):
        record = make_record(endpoint="10.0.0.1:80")

        ctx, _ = new_request_context("0123456789abcdef")
        output = ctx.run(HumanReadableFormatter().format, record)

        assert "[01234567]" in output
        assert output.endswith("| endpoint=10.0.0.1:80")

    def test_context_can_be_hidden(self):
        output = HumanReadableFormatter(show_context=False).format(make_record(endpoint="x"))

        assert "endpoint=x" not in output


class TestConnectorLogger:
    """Tests for ConnectorLogger handler setup."""

    def test_human_format_writes_to_stderr(self, logger_name, capsys):
        log = ConnectorLogger(logger_name, log_format="human", human_output="stderr")

        log.info("hello %s", "world", extra={"endpoint": "a:1"})

        err = capsys.readouterr().err
        assert "hello world" in err
        assert "endpoint=a:1" in err

    def test_both_formats_add_two_handlers(self, logger_name, tmp_path):
        json_file = tmp_path / "logs" / "connector.json"
        log = ConnectorLogger(logger_name, log_format="both", json_file=json_file)

        assert len(log.handlers) == 2
        log.info("slow peer", extra={"endpoint": "a:1"})
        for handler in log.handlers:
            handler.flush()

        line = json_file.read_text().strip()
        assert json.loads(line)["message"] == "slow peer"

    def test_handlers_not_duplicated(self, logger_name):
        ConnectorLogger(logger_name)
        log = ConnectorLogger(logger_name)

        assert len(log.handlers) == 1

    def test_unknown_format_rejected(self, logger_name):
        with pytest.raises(ValueError, match="log format"):
            ConnectorLogger(logger_name, log_format="xml")

    def test_debug_filtered_until_level_lowered(self, logger_name, capsys):
        log = ConnectorLogger(logger_name, level=logging.INFO)

        log.debug("hidden")
        log.set_level(logging.DEBUG)
        log.debug("shown")

        err = capsys.readouterr().err
        assert "hidden" not in err
        assert "shown" in err
        assert all(h.level == logging.DEBUG for h in log.handlers)

    def test_get_logger_honours_overrides(self, logger_name):
        log = get_logger(logger_name, log_format="json")

        assert log.log_format == "json"
        assert isinstance(log.handlers[0].formatter, JSONFormatter)
