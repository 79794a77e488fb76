import logging

import pytest

from feedloop.infrastructure.monitoring import tracing
from feedloop.infrastructure.monitoring.logger_setup import setup_logging


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_set_and_clear_trace_id():
    assert not tracing.has_trace_id()

    generated = tracing.set_trace_id()
    assert tracing.get_trace_id() == generated
    assert len(generated) == 16

    tracing.set_trace_id("explicit")
    assert tracing.get_trace_id() == "explicit"

    tracing.clear()
    assert tracing.get_trace_id() is None


def test_filter_stamps_trace_id():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    trace_filter = tracing.TraceIdFilter()

    assert trace_filter.filter(record)
    assert record.trace_id == tracing.NO_TRACE_ID

    tracing.set_trace_id("abc")
    trace_filter.filter(record)
    assert record.trace_id == "abc"


def test_setup_logging_writes_trace_id_to_file(tmp_path, restore_root_logger):
    log_file = tmp_path / "feedloop.log"
    setup_logging(log_level=logging.DEBUG, log_file=str(log_file))
    tracing.set_trace_id("trace-123")

    logging.getLogger("feedloop.test").info("hello from the loop")
    for handler in restore_root_logger.handlers:
        handler.flush()

    content = log_file.read_text(encoding="utf-8")
    assert "[trace-123] hello from the loop" in content
    assert restore_root_logger.level == logging.DEBUG
