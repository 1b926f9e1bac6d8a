"""Tests for logging configuration."""

import json
import logging
from io import StringIO

import pytest

from foundryhub.app.logging import (
    FoundryHubJsonFormatter,
    get_request_id,
    set_request_id,
    setup_logging,
)
from foundryhub.core.logging_schema import LogEvent


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    set_request_id(None)


def format_record(formatter: logging.Formatter, **extra) -> dict:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(formatter)
    logger = logging.getLogger("foundryhub.test")
    logger.handlers[:] = [handler]
    logger.propagate = False
    logger.setLevel(logging.INFO)
    try:
        logger.info("Instance %s started", "01ABC", extra=extra)
    finally:
        logger.handlers.clear()
        logger.propagate = True
    return json.loads(stream.getvalue())


class TestSetupLogging:
    def test_configures_root_logger(self):
        setup_logging()
        root = logging.getLogger()
        assert root.level == logging.INFO
        assert len(root.handlers) == 1
        assert isinstance(root.handlers[0].formatter, FoundryHubJsonFormatter)

    def test_debug_level(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger().level == logging.DEBUG

    def test_text_format(self):
        setup_logging(json_format=False)
        assert not isinstance(logging.getLogger().handlers[0].formatter, FoundryHubJsonFormatter)

    def test_quiets_noisy_loggers(self):
        setup_logging(level="DEBUG")
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


class TestJsonFormatter:
    def test_standard_fields(self):
        record = format_record(
            FoundryHubJsonFormatter(fmt="%(message)s", service_name="foundryhub-test"),
            event=LogEvent.STATE_CHANGED,
            instance_id="01ABC",
        )

        assert record["message"] == "Instance 01ABC started"
        assert record["level"] == "INFO"
        assert record["logger"] == "foundryhub.test"
        assert record["service"] == "foundryhub-test"
        assert record["event"] == "state_changed"
        assert record["instance_id"] == "01ABC"
        assert "timestamp" in record
        assert "request_id" not in record

    def test_request_id_from_context(self):
        set_request_id("req-123")
        record = format_record(FoundryHubJsonFormatter(fmt="%(message)s"))
        assert record["request_id"] == "req-123"


class TestRequestId:
    def test_roundtrip(self):
        assert get_request_id() is None
        set_request_id("abc")
        assert get_request_id() == "abc"
        set_request_id(None)
        assert get_request_id() is None
