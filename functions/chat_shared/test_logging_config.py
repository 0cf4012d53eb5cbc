"""Tests for shared logging configuration."""
import json
import logging
from io import StringIO
from chat_shared.logging_config import CloudFunctionLogger, JSONFormatter


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_json_format_output(self):
        formatter = JSONFormatter("chat-notifier")
        record = logging.LogRecord(
            "test", logging.INFO, "", 0, "Notification sent", (), None
        )
        parsed = json.loads(formatter.format(record))
        assert parsed["severity"] == "INFO"
        assert parsed["message"] == "Notification sent"
        assert parsed["component"] == "chat-notifier"

    def test_extra_fields_included(self):
        formatter = JSONFormatter("test")
        record = logging.LogRecord(
            "test", logging.INFO, "", 0, "msg", (), None)
        record.extra = {"recipient_id": "u1", "recipient_count": 2}
        parsed = json.loads(formatter.format(record))
        assert parsed["recipient_id"] == "u1"
        assert parsed["recipient_count"] == 2

    def test_non_json_values_stringified(self):
        formatter = JSONFormatter("test")
        record = logging.LogRecord(
            "test", logging.INFO, "", 0, "msg", (), None)
        record.extra = {"value": object()}
        parsed = json.loads(formatter.format(record))
        assert parsed["value"].startswith("<object")

    def test_exception_info_included(self):
        formatter = JSONFormatter("test")
        try:
            raise ValueError("test error")
        except ValueError:
            import sys
            exc_info = sys.exc_info()
        record = logging.LogRecord(
            "test", logging.ERROR, "", 0, "error occurred",
            (), exc_info)
        parsed = json.loads(formatter.format(record))
        assert "ValueError" in parsed["exception"]


class TestCloudFunctionLogger:
    """Tests for CloudFunctionLogger."""

    def _make_logger_with_capture(self, component, level="INFO"):
        """Create logger with a StringIO stream for capture."""
        stream = StringIO()
        cloud_logger = CloudFunctionLogger(component, level=level)
        for handler in cloud_logger.logger.handlers:
            handler.stream = stream
        return cloud_logger, stream

    def _lines(self, stream):
        return [json.loads(line) for line in stream.getvalue().splitlines()]

    def test_info_logging(self):
        cloud_logger, stream = self._make_logger_with_capture("test-fn")
        cloud_logger.info("Hello", key="value")
        parsed = self._lines(stream)[0]
        assert parsed["severity"] == "INFO"
        assert parsed["key"] == "value"

    def test_warning_and_error(self):
        cloud_logger, stream = self._make_logger_with_capture("test-fn")
        cloud_logger.warning("Caution", code=42)
        cloud_logger.error("Bad thing", error="details")
        warning, error = self._lines(stream)
        assert warning["severity"] == "WARNING"
        assert warning["code"] == 42
        assert error["severity"] == "ERROR"
        assert error["error"] == "details"

    def test_debug_suppressed_at_info_level(self):
        cloud_logger, stream = self._make_logger_with_capture("test-fn")
        cloud_logger.debug("noise")
        assert stream.getvalue() == ""

    def test_debug_emitted_at_debug_level(self):
        cloud_logger, stream = self._make_logger_with_capture(
            "test-debug", level="DEBUG")
        cloud_logger.debug("detail")
        assert self._lines(stream)[0]["severity"] == "DEBUG"

    def test_exception_includes_traceback(self):
        cloud_logger, stream = self._make_logger_with_capture("test-fn")
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            cloud_logger.exception("Reaction failed", thread_id="a_b")
        parsed = self._lines(stream)[0]
        assert parsed["severity"] == "ERROR"
        assert parsed["thread_id"] == "a_b"
        assert "RuntimeError: boom" in parsed["exception"]

    def test_bind_adds_context(self):
        cloud_logger, stream = self._make_logger_with_capture("test-fn")
        bound = cloud_logger.bind(event_id="e1")
        bound.info("first", step=1)
        bound.bind(thread_id="t1").info("second")
        cloud_logger.info("unbound")
        first, second, unbound = self._lines(stream)
        assert first["event_id"] == "e1"
        assert first["step"] == 1
        assert second["event_id"] == "e1"
        assert second["thread_id"] == "t1"
        assert "event_id" not in unbound

    def test_component_name(self):
        cloud_logger, stream = self._make_logger_with_capture("my-function")
        cloud_logger.info("test")
        assert self._lines(stream)[0]["component"] == "my-function"
