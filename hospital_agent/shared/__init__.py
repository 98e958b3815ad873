"""
Shared Utilities Module for hospital agent services

Common utilities used across the chat assistant packages:
- Structured JSON logging for state transitions and submissions
- Prometheus metrics and recording helpers

Usage:
    from hospital_agent.shared import StructuredLogger, record_submission

    slog = StructuredLogger()
    slog.state_transition(session_id, "initial", "collecting_patient_name", "booking_intent")
"""

from .structured_logger import StructuredLogger

from .observability import (
    setup_metrics,
    get_metrics_response,
    record_message,
    record_transition,
    record_submission,
    set_active_sessions,
    time_submission,
    MetricTimer,
    SUBMISSIONS_TOTAL,
    SUBMISSION_LATENCY,
)

__all__ = [
    # Logging
    "StructuredLogger",
    # Observability utilities
    "setup_metrics",
    "get_metrics_response",
    "record_message",
    "record_transition",
    "record_submission",
    "set_active_sessions",
    "time_submission",
    "MetricTimer",
    "SUBMISSIONS_TOTAL",
    "SUBMISSION_LATENCY",
]
