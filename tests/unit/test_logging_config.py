import io
import json
import logging

import pytest

from docverify.logging_config import JSONFormatter, ServiceNameFilter, TraceContextFilter, setup_logging


def _record(message="hello"):
    return logging.LogRecord("docverify.test", logging.INFO, __file__, 10, message, None, None)


def test_json_formatter_includes_service_name():
    record = _record()
    ServiceNameFilter("docverify").filter(record)
    TraceContextFilter().filter(record)

    entry = json.loads(JSONFormatter().format(record))
    assert entry["service"] == "docverify"
    assert entry["level"] == "INFO"
    assert entry["message"] == "hello"
    assert "trace_id" not in entry


def test_trace_filter_without_active_span():
    record = _record()
    TraceContextFilter().filter(record)

    assert record.trace_id is None
    assert record.span_id is None


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_json_to_stream(restore_root_logger):
    stream = io.StringIO()
    setup_logging("docverify-test", "DEBUG", "json", stream=stream)
    logging.getLogger("docverify.engine").debug("stage done")

    lines = [json.loads(line) for line in stream.getvalue().splitlines()]
    assert lines[-1]["message"] == "stage done"
    assert lines[-1]["service"] == "docverify-test"


def test_setup_logging_off(restore_root_logger):
    setup_logging("docverify-test", "OFF")

    assert logging.getLogger().level > logging.CRITICAL
