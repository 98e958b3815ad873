"""
Tests for the JSON structured logger.
"""

import json
import logging

import pytest

from hospital_agent.shared.structured_logger import StructuredLogger


LOGGER_NAME = "hospital_agent.tests.structured"


def _entries(caplog):
    return [json.loads(record.getMessage()) for record in caplog.records]


class TestStructuredLogger:
    """Tests for StructuredLogger output."""

    @pytest.fixture
    def slog(self):
        return StructuredLogger(logging.getLogger(LOGGER_NAME))

    def test_event_is_json(self, slog, caplog):
        """Test a generic event becomes one JSON line."""
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            slog.event("s1", "session_created", "hello", data={"k": "v"})

        entry = _entries(caplog)[0]
        assert entry["event_type"] == "session_created"
        assert entry["message"] == "hello"
        assert entry["session_id"] == "s1"
        assert entry["data"] == {"k": "v"}
        assert "timestamp" in entry

    def test_session_id_omitted_when_none(self, slog, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            slog.event(None, "startup", "ready")

        assert "session_id" not in _entries(caplog)[0]

    def test_state_transition(self, slog, caplog):
        """Test transition entries carry both steps and the trigger."""
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            slog.state_transition("s1", "initial", "collecting_patient_name", "booking_intent")

        entry = _entries(caplog)[0]
        assert entry["event_type"] == "state_transition"
        assert entry["data"]["old_state"] == "initial"
        assert entry["data"]["new_state"] == "collecting_patient_name"
        assert entry["data"]["trigger"] == "booking_intent"

    def test_submission_success_is_info(self, slog, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            slog.submission_result("s1", "success", 120.0)

        assert caplog.records[0].levelno == logging.INFO
        assert _entries(caplog)[0]["data"]["outcome"] == "success"

    def test_submission_failure_is_warning(self, slog, caplog):
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            slog.submission_result("s1", "transport_failure:connection", 5.0, extra={"detail": "refused"})

        assert caplog.records[0].levelno == logging.WARNING
        assert _entries(caplog)[0]["data"]["detail"] == "refused"

    def test_non_serializable_data_uses_str(self, slog, caplog):
        """Test objects json cannot encode are stringified."""
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            slog.event("s1", "odd", "payload", data={"obj": object()})

        assert _entries(caplog)[0]["data"]["obj"].startswith("<object object")

    def test_caller_data_not_mutated(self, slog, caplog):
        data = {"a": 1}
        with caplog.at_level(logging.INFO, logger=LOGGER_NAME):
            slog.event("s1", "x", "y", data=data)
        assert data == {"a": 1}
