"""Unit tests for request-scoped log context."""

import logging

from app.core.logging import RequestContextFilter, request_id_ctx


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("app.test", logging.INFO, __file__, 1, "hello", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_filter_stamps_current_request_id():
    token = request_id_ctx.set("req-123")
    try:
        record = _record()
        assert RequestContextFilter().filter(record) is True
    finally:
        request_id_ctx.reset(token)
    assert record.correlation_id == "req-123"


def test_filter_keeps_explicit_correlation_id():
    token = request_id_ctx.set("req-123")
    try:
        record = _record(correlation_id="from-handler")
        RequestContextFilter().filter(record)
    finally:
        request_id_ctx.reset(token)
    assert record.correlation_id == "from-handler"


def test_filter_outside_a_request():
    record = _record()
    RequestContextFilter().filter(record)
    assert record.correlation_id is None
