"""Tests for observability/logger.py and observability/metrics.py"""
import io
import json
import logging
import sys

from imagedrop.errors import ErrorCode, ImageUrlError, UploadStatusError
from imagedrop.observability import MetricsHook, NoopMetricsHook, StructuredFormatter, get_logger


class TestStructuredFormatter:
    def _get_record(self, msg, level=logging.INFO, exc_info=None, extra_fields=None):
        record = logging.LogRecord(
            name="imagedrop.test",
            level=level,
            pathname="",
            lineno=0,
            msg=msg,
            args=(),
            exc_info=exc_info,
        )
        if extra_fields is not None:
            record.extra_fields = extra_fields
        return record

    def test_basic_format(self):
        result = json.loads(StructuredFormatter().format(self._get_record("hello")))
        assert result["message"] == "hello"
        assert result["level"] == "INFO"
        assert result["logger"] == "imagedrop.test"
        assert "ts" in result

    def test_extra_fields_merged(self):
        record = self._get_record("msg", extra_fields={"key": "abc", "status_code": 500})
        result = json.loads(StructuredFormatter().format(record))
        assert result["key"] == "abc"
        assert result["status_code"] == 500

    def test_non_json_values_stringified(self):
        record = self._get_record("msg", extra_fields={"error": ValueError("bad")})
        result = json.loads(StructuredFormatter().format(record))
        assert result["error"] == "bad"

    def test_exception_included(self):
        try:
            raise ValueError("upload exploded")
        except ValueError:
            exc_info = sys.exc_info()
        record = self._get_record("failed", level=logging.ERROR, exc_info=exc_info)
        result = json.loads(StructuredFormatter().format(record))
        assert "ValueError" in result["exception"]

    def test_stack_info_included(self):
        record = self._get_record("msg")
        record.stack_info = "Stack Trace Here"
        result = json.loads(StructuredFormatter().format(record))
        assert result["stack_info"] == "Stack Trace Here"

    def test_node_fields_always_present(self):
        result = json.loads(StructuredFormatter().format(self._get_record("idle")))
        assert result["op"] is None
        assert result["key"] is None
        assert result["code"] is None

    def test_extra_fields_cannot_replace_base_keys(self):
        record = self._get_record("real", extra_fields={"message": "fake", "level": "DEBUG"})
        result = json.loads(StructuredFormatter().format(record))
        assert result["message"] == "real"
        assert result["level"] == "INFO"

    def test_error_code_written_as_plain_value(self):
        record = self._get_record("msg", extra_fields={"code": ErrorCode.UPLOAD_STATUS_ERROR})
        result = json.loads(StructuredFormatter().format(record))
        assert result["code"] == "UPLOAD_STATUS_ERROR"

    def test_error_valued_field_serialized(self):
        error = UploadStatusError(
            message="status 500",
            context={"url": "https://uploads.example.com", "status_code": 500},
        )
        record = self._get_record("msg", extra_fields={"error": error})
        result = json.loads(StructuredFormatter().format(record))
        assert result["error"] == {
            "code": "UPLOAD_STATUS_ERROR",
            "message": "status 500",
            "context": {"url": "https://uploads.example.com", "status_code": 500},
        }

    def test_error_without_context_omits_it(self):
        record = self._get_record("msg", extra_fields={"error": ImageUrlError(message="no url")})
        result = json.loads(StructuredFormatter().format(record))
        assert result["error"] == {"code": "IMAGE_URL_ERROR", "message": "no url"}

    def test_code_taken_from_raised_error(self):
        try:
            raise UploadStatusError(message="status 502", context={"status_code": 502})
        except UploadStatusError:
            exc_info = sys.exc_info()
        record = self._get_record("failed", level=logging.ERROR, exc_info=exc_info)
        result = json.loads(StructuredFormatter().format(record))
        assert result["code"] == "UPLOAD_STATUS_ERROR"
        assert "UploadStatusError" in result["exception"]

    def test_explicit_code_wins_over_raised_error(self):
        try:
            raise UploadStatusError(message="status 502")
        except UploadStatusError:
            exc_info = sys.exc_info()
        record = self._get_record(
            "failed", level=logging.ERROR, exc_info=exc_info, extra_fields={"code": "CUSTOM"},
        )
        result = json.loads(StructuredFormatter().format(record))
        assert result["code"] == "CUSTOM"


class TestGetLogger:
    def test_writes_json_lines(self):
        stream = io.StringIO()
        logger = get_logger("imagedrop.test.stream", stream=stream)
        logger.info("placed", extra={"extra_fields": {"key": "k1"}})
        entry = json.loads(stream.getvalue().strip())
        assert entry["message"] == "placed"
        assert entry["key"] == "k1"

    def test_no_duplicate_handlers(self):
        first = get_logger("imagedrop.test.dupes")
        count = len(first.handlers)
        second = get_logger("imagedrop.test.dupes")
        assert first is second
        assert len(second.handlers) == count

    def test_string_level(self):
        logger = get_logger("imagedrop.test.level", level="warning")
        assert logger.level == logging.WARNING

    def test_does_not_propagate(self):
        assert get_logger("imagedrop.test.propagate").propagate is False


class TestMetricsHook:
    def test_noop_satisfies_protocol(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_noop_accepts_all_calls(self):
        hook = NoopMetricsHook()
        hook.increment("imagedrop.placeholders_total", tags={"kind": "files"})
        hook.timing("imagedrop.upload_duration_ms", 12.5)
        hook.gauge("imagedrop.uploads_in_flight", 0)

    def test_partial_hook_rejected(self):
        class CounterOnly:
            def increment(self, name, value=1, tags=None):
                pass

        assert not isinstance(CounterOnly(), MetricsHook)
