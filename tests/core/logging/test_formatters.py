"""Tests for JSON and console log formatters."""

import json
import logging
import sys

from core.logging.context import set_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter


def _make_record(
    msg="test message",
    level=logging.INFO,
    name="test.logger",
    exc_info=None,
    **extras,
):
    record = logging.LogRecord(
        name=name,
        level=level,
        pathname="test.py",
        lineno=42,
        msg=msg,
        args=(),
        exc_info=exc_info,
    )
    for key, value in extras.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    def test_formats_basic_json_with_required_fields(self):
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["level"] == "INFO"
        assert output["logger"] == "test.logger"
        assert output["message"] == "test message"
        assert output["ts"].endswith("Z")

    def test_includes_context_fields(self):
        set_log_context(call_id="call-120000-abcdef", operation="GET rooms", client="bot")
        output = json.loads(JSONFormatter().format(_make_record()))

        assert output["call_id"] == "call-120000-abcdef"
        assert output["operation"] == "GET rooms"
        assert output["client"] == "bot"

    def test_omits_empty_context(self):
        output = json.loads(JSONFormatter().format(_make_record()))
        assert "call_id" not in output
        assert "operation" not in output

    def test_extra_field_overrides_context(self):
        set_log_context(call_id="from-context")
        output = json.loads(JSONFormatter().format(_make_record(call_id="from-record")))
        assert output["call_id"] == "from-record"

    def test_numeric_fields_are_typed(self):
        record = _make_record(http_status="401", duration_ms="12.5", attempt=2)
        output = json.loads(JSONFormatter().format(record))

        assert output["http_status"] == 401
        assert output["duration_ms"] == 12.5
        assert output["attempt"] == 2

    def test_invalid_numeric_becomes_null(self):
        output = json.loads(JSONFormatter().format(_make_record(http_status="n/a")))
        assert output["http_status"] is None

    def test_sanitizes_url_secrets(self):
        record = _make_record(http_url="https://api.example.com/rooms?access_token=abc&max=10")
        output = json.loads(JSONFormatter().format(record))

        assert "abc" not in output["http_url"]
        assert "access_token=[REDACTED]" in output["http_url"]
        assert "max=10" in output["http_url"]

    def test_redacts_bearer_tokens(self):
        record = _make_record(
            msg="sending Authorization: Bearer eyJhbGciOi.abc-123",
            http_body="header Bearer secret-value",
        )
        output = json.loads(JSONFormatter().format(record))

        assert "eyJhbGciOi" not in output["message"]
        assert "Bearer [REDACTED]" in output["message"]
        assert "secret-value" not in output["http_body"]

    def test_source_location_on_debug_and_error(self):
        formatter = JSONFormatter()
        assert json.loads(formatter.format(_make_record(level=logging.DEBUG)))["file"] == "test.py:42"
        assert "file" not in json.loads(formatter.format(_make_record(level=logging.INFO)))

    def test_includes_exception(self):
        try:
            raise ValueError("boom")
        except ValueError:
            record = _make_record(level=logging.ERROR, exc_info=sys.exc_info())

        output = json.loads(JSONFormatter().format(record))

        assert output["exception"]["type"] == "ValueError"
        assert output["exception"]["message"] == "boom"
        assert "Traceback" in output["exception"]["stacktrace"]


class TestConsoleFormatter:
    def _formatter(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = False
        return formatter

    def test_basic_format(self):
        output = self._formatter().format(_make_record(msg="hello"))
        assert " - INFO - hello" in output

    def test_includes_operation_prefix(self):
        set_log_context(operation="GET rooms")
        output = self._formatter().format(_make_record())
        assert "[GET rooms]" in output

    def test_call_id_tag(self):
        output = self._formatter().format(_make_record(call_id="call-120000-abcdef"))
        assert "[call:call-120]" in output

    def test_colors_when_enabled(self):
        formatter = ConsoleFormatter()
        formatter._use_colors = True
        output = formatter.format(_make_record(level=logging.WARNING))
        assert "\033[33mWARNING\033[0m" in output
