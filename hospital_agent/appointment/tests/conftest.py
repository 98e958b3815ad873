"""
Test configuration and fixtures for appointment chat service tests.

Replaces the webhook client with an in-memory fake and disables the typing
delay so chains finish immediately.
"""

from typing import List, Optional

import pytest
from unittest.mock import patch
from fastapi.testclient import TestClient

from hospital_agent.appointment.app import app
from hospital_agent.appointment.config import ChatConfig
from hospital_agent.appointment.models import AppointmentRecord, Success, SubmissionOutcome
from hospital_agent.appointment.session import SessionStore


HAPPY_PATH_INPUTS = [
    "book appointment",
    "Jane Doe",
    "34",
    "Smith",
    "cardiology",
    "12/25/2024 at 2:30 PM",
    "headache",
]


class FakeSubmissionAdapter:
    """Records submitted appointments and returns a canned outcome"""

    def __init__(self, outcome: Optional[SubmissionOutcome] = None):
        self.outcome = outcome or Success()
        self.submissions: List[AppointmentRecord] = []

    async def submit(self, record: AppointmentRecord, session_id: Optional[str] = None) -> SubmissionOutcome:
        self.submissions.append(record)
        return self.outcome


class FakeClock:
    """Monotonic clock that only moves when told to"""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


@pytest.fixture
def test_config():
    """Test configuration fixture"""
    return ChatConfig(
        webhook_url="http://hooks.test/booking",
        typing_delay_enabled=False,
        log_state_transitions=True,
    )


@pytest.fixture
def fake_adapter():
    """In-memory webhook client"""
    return FakeSubmissionAdapter()


@pytest.fixture
def clock():
    """Controllable clock for session expiry"""
    return FakeClock()


@pytest.fixture
def session_store(test_config, fake_adapter, clock):
    """Session store wired to the fake webhook client"""
    return SessionStore(test_config, adapter=fake_adapter, clock=clock)


@pytest.fixture
def client(test_config, session_store):
    """FastAPI test client with mocked dependencies"""
    with patch('hospital_agent.appointment.app.config', test_config), \
         patch('hospital_agent.appointment.app.store', session_store):
        yield TestClient(app)
