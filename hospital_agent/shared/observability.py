"""
Observability Module for hospital agent services

Provides:
- Prometheus metrics for the chat assistant
- Recording helpers used by the dialogue session layer
- A timing context manager for webhook calls
"""

import os
import time
import logging
from typing import Dict

from prometheus_client import (
    Counter, Histogram, Gauge, Info,
    generate_latest, CONTENT_TYPE_LATEST,
    REGISTRY,
)

logger = logging.getLogger(__name__)

_metrics_initialized = False


# =============================================================================
# Prometheus Metrics Definitions
# =============================================================================

MESSAGES_TOTAL = Counter(
    'hospital_chat_messages_total',
    'Total number of chat messages appended to session logs',
    ['service', 'sender']
)

TRANSITIONS_TOTAL = Counter(
    'hospital_chat_transitions_total',
    'Dialogue step transitions',
    ['service', 'from_step', 'to_step']
)

SUBMISSIONS_TOTAL = Counter(
    'hospital_chat_submissions_total',
    'Appointment submissions by outcome',
    ['service', 'outcome']
)

SUBMISSION_LATENCY = Histogram(
    'hospital_chat_submission_latency_seconds',
    'Webhook submission latency',
    ['service'],
    buckets=(0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0)
)

ACTIVE_SESSIONS = Gauge(
    'hospital_chat_active_sessions',
    'Number of chat sessions held in memory',
    ['service']
)

SERVICE_INFO = Info(
    'hospital_chat_service',
    'Service information'
)


def setup_metrics(service_name: str, service_version: str = "1.0.0"):
    """
    Publish service info once per process.

    Args:
        service_name: Name of the service
        service_version: Version string
    """
    global _metrics_initialized

    if _metrics_initialized:
        return

    SERVICE_INFO.info({
        'service': service_name,
        'version': service_version,
        'environment': os.getenv('DEPLOYMENT_ENV', 'development')
    })
    _metrics_initialized = True
    logger.info(f"Prometheus metrics initialized for {service_name}")


def get_metrics_response():
    """
    Get Prometheus metrics as HTTP response content.

    Returns:
        Tuple of (content_bytes, content_type) for HTTP response
    """
    return generate_latest(REGISTRY), CONTENT_TYPE_LATEST


# =============================================================================
# Metric Recording Utilities
# =============================================================================

def record_message(service: str, sender: str):
    """Record a message appended to a chat log."""
    MESSAGES_TOTAL.labels(service=service, sender=sender).inc()


def record_transition(service: str, from_step: str, to_step: str):
    """Record a dialogue step transition."""
    TRANSITIONS_TOTAL.labels(service=service, from_step=from_step, to_step=to_step).inc()


def record_submission(service: str, outcome: str):
    """Record a webhook submission outcome."""
    SUBMISSIONS_TOTAL.labels(service=service, outcome=outcome).inc()


def set_active_sessions(service: str, count: int):
    """Set the number of active sessions."""
    ACTIVE_SESSIONS.labels(service=service).set(count)


# =============================================================================
# Context Manager for Timing
# =============================================================================

class MetricTimer:
    """Async context manager for timing awaited operations and recording to metrics."""

    def __init__(
        self,
        histogram,
        labels: Dict[str, str] = None
    ):
        self.histogram = histogram
        self.labels = labels or {}
        self.start_time = None
        self.elapsed = 0.0

    def _observe(self):
        if self.start_time:
            self.elapsed = time.time() - self.start_time
            if self.labels:
                self.histogram.labels(**self.labels).observe(self.elapsed)
            else:
                self.histogram.observe(self.elapsed)

    async def __aenter__(self):
        self.start_time = time.time()
        return self

    async def __aexit__(self, *args):
        self._observe()


def time_submission(service: str):
    """Create a timer context manager for webhook submissions."""
    return MetricTimer(SUBMISSION_LATENCY, {"service": service})
