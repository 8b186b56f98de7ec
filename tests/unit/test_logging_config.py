"""
Unit tests for shared/logging_config.py - JSON log formatting.
"""

import json
import logging
import sys

from shared.logging_config import JSONFormatter, configure_logging


def make_record(**extra):
    record = logging.LogRecord(
        name="booking.flow.booking_flow",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Booking flow transition: %s -> %s",
        args=("service_selection", "time_slot_selection"),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_base_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["level"] == "INFO"
        assert data["logger"] == "booking.flow.booking_flow"
        assert data["message"] == "Booking flow transition: service_selection -> time_slot_selection"
        assert "timestamp" in data
        assert "session_id" not in data

    def test_context_fields_copied(self):
        record = make_record(session_id="abc", business_id=1, appointment_id=9001, unrelated="x")

        data = json.loads(JSONFormatter().format(record))

        assert data["session_id"] == "abc"
        assert data["business_id"] == 1
        assert data["appointment_id"] == 9001
        assert "unrelated" not in data

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = make_record()
            record.exc_info = sys.exc_info()

        data = json.loads(JSONFormatter().format(record))

        assert "RuntimeError: boom" in data["exception"]


class TestConfigureLogging:
    """Tests for configure_logging()."""

    def test_root_handler_uses_json(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "DEBUG")
        root = logging.getLogger()
        saved_handlers, saved_level = root.handlers[:], root.level

        try:
            configure_logging()

            assert root.level == logging.DEBUG
            assert len(root.handlers) == 1
            assert isinstance(root.handlers[0].formatter, JSONFormatter)
            assert logging.getLogger("httpx").level == logging.WARNING
        finally:
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
