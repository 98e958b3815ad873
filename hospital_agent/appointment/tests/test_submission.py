"""
Tests for the booking webhook client and the outcome interpreter.

Webhook calls go to a real local aiohttp server so the full request and
response handling is exercised.
"""

import asyncio
from datetime import datetime, timezone

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer
from prometheus_client import REGISTRY

from ..config import ChatConfig, SERVICE_NAME
from ..models import (
    AppointmentRecord, ApplicationFailure, IncompleteRecordError, Success,
    TransportFailure, TransportFailureReason,
    SUCCESS_TEXT, CLOSING_PROMPT, DEFAULT_FAILURE_MESSAGE,
)
from ..submission import WebhookSubmissionAdapter, interpret_outcome, parse_webhook_response


PHONE = "(555) 123-4567"

COMPLETE_RECORD = AppointmentRecord(
    patient_name="Jane Doe",
    patient_age="34",
    doctor_name="Smith",
    department="Cardiology",
    preferred_datetime="12/25/2024 at 2:30 PM",
    symptoms="headache",
)


def _webhook_app(handler) -> web.Application:
    app = web.Application()
    app.router.add_post("/hook", handler)
    return app


def _adapter_for(server: TestServer, **overrides) -> WebhookSubmissionAdapter:
    config = ChatConfig(
        webhook_url=str(server.make_url("/hook")),
        typing_delay_enabled=False,
        **overrides,
    )
    return WebhookSubmissionAdapter(config)


# ============================================================================
# Payload
# ============================================================================

def test_payload_shape():
    ts = datetime(2024, 12, 1, 9, 30, tzinfo=timezone.utc)
    payload = COMPLETE_RECORD.to_payload(timestamp=ts)

    assert payload == {
        "patientName": "Jane Doe",
        "patientAge": "34",
        "doctorName": "Smith",
        "department": "Cardiology",
        "preferredDateTime": "12/25/2024 at 2:30 PM",
        "symptoms": "headache",
        "timestamp": "2024-12-01T09:30:00+00:00",
    }


def test_incomplete_record_is_rejected():
    with pytest.raises(IncompleteRecordError) as exc_info:
        AppointmentRecord(patient_name="Jane Doe").to_payload()
    assert "symptoms" in exc_info.value.missing


# ============================================================================
# Response parsing
# ============================================================================

def test_parse_success_with_details():
    outcome = parse_webhook_response({
        "success": True,
        "message": "Booked!",
        "appointmentId": "APT-42",
        "additionalInfo": "Bring your insurance card.",
    })
    assert outcome == Success("Booked!", "APT-42", "Bring your insurance card.")


def test_parse_success_empty_strings_are_absent():
    outcome = parse_webhook_response({"success": True, "message": "", "appointmentId": ""})
    assert outcome == Success()


def test_parse_application_failure():
    assert parse_webhook_response({"success": False, "message": "slot full"}) == ApplicationFailure("slot full")
    assert parse_webhook_response({"success": False}) == ApplicationFailure(DEFAULT_FAILURE_MESSAGE)


def test_parse_missing_success_flag_is_failure():
    assert isinstance(parse_webhook_response({"message": "hi"}), ApplicationFailure)


@pytest.mark.parametrize("body", [[1, 2], "ok", None, 3])
def test_parse_non_object_is_malformed(body):
    outcome = parse_webhook_response(body)
    assert isinstance(outcome, TransportFailure)
    assert outcome.reason == TransportFailureReason.MALFORMED


# ============================================================================
# Webhook adapter
# ============================================================================

@pytest.mark.asyncio
async def test_submit_success():
    received = []

    async def handler(request):
        received.append(await request.json())
        return web.json_response({"success": True, "appointmentId": "APT-1"})

    async with TestServer(_webhook_app(handler)) as server:
        outcome = await _adapter_for(server).submit(COMPLETE_RECORD, session_id="s1")

    assert outcome == Success(appointment_id="APT-1")
    assert len(received) == 1
    body = received[0]
    assert body["patientName"] == "Jane Doe"
    assert body["department"] == "Cardiology"
    assert body["timestamp"]


@pytest.mark.asyncio
async def test_submit_application_failure():
    async def handler(request):
        return web.json_response({"success": False, "message": "slot full"})

    async with TestServer(_webhook_app(handler)) as server:
        outcome = await _adapter_for(server).submit(COMPLETE_RECORD)

    assert outcome == ApplicationFailure("slot full")


@pytest.mark.asyncio
async def test_submit_http_error():
    async def handler(request):
        return web.Response(status=500, text="boom")

    async with TestServer(_webhook_app(handler)) as server:
        outcome = await _adapter_for(server).submit(COMPLETE_RECORD)

    assert isinstance(outcome, TransportFailure)
    assert outcome.reason == TransportFailureReason.HTTP_STATUS
    assert "500" in outcome.detail


@pytest.mark.asyncio
async def test_submit_non_json_body():
    async def handler(request):
        return web.Response(status=200, text="Accepted")

    async with TestServer(_webhook_app(handler)) as server:
        outcome = await _adapter_for(server).submit(COMPLETE_RECORD)

    assert isinstance(outcome, TransportFailure)
    assert outcome.reason == TransportFailureReason.MALFORMED


@pytest.mark.asyncio
async def test_submit_json_list_body():
    async def handler(request):
        return web.json_response([{"success": True}])

    async with TestServer(_webhook_app(handler)) as server:
        outcome = await _adapter_for(server).submit(COMPLETE_RECORD)

    assert isinstance(outcome, TransportFailure)
    assert outcome.reason == TransportFailureReason.MALFORMED


@pytest.mark.asyncio
async def test_submit_timeout():
    async def handler(request):
        await asyncio.sleep(0.3)
        return web.json_response({"success": True})

    async with TestServer(_webhook_app(handler)) as server:
        adapter = _adapter_for(server, submission_timeout_seconds=0.05)
        outcome = await adapter.submit(COMPLETE_RECORD)

    assert isinstance(outcome, TransportFailure)
    assert outcome.reason == TransportFailureReason.CONNECTION


@pytest.mark.asyncio
async def test_submit_connection_refused():
    config = ChatConfig(webhook_url="http://127.0.0.1:1/hook", typing_delay_enabled=False)
    outcome = await WebhookSubmissionAdapter(config).submit(COMPLETE_RECORD)

    assert isinstance(outcome, TransportFailure)
    assert outcome.reason == TransportFailureReason.CONNECTION


@pytest.mark.asyncio
async def test_submit_without_webhook():
    config = ChatConfig(webhook_url=None, typing_delay_enabled=False)
    outcome = await WebhookSubmissionAdapter(config).submit(COMPLETE_RECORD)

    assert outcome == TransportFailure(TransportFailureReason.NOT_CONFIGURED, "webhook_url is not set")


@pytest.mark.asyncio
async def test_submit_incomplete_record_raises():
    config = ChatConfig(webhook_url=None, typing_delay_enabled=False)
    with pytest.raises(IncompleteRecordError):
        await WebhookSubmissionAdapter(config).submit(AppointmentRecord(patient_name="Jane"))


@pytest.mark.asyncio
async def test_submission_latency_observed():
    def count():
        return REGISTRY.get_sample_value(
            "hospital_chat_submission_latency_seconds_count", {"service": SERVICE_NAME}
        ) or 0.0

    before = count()
    config = ChatConfig(webhook_url=None, typing_delay_enabled=False)
    await WebhookSubmissionAdapter(config).submit(COMPLETE_RECORD)
    assert count() == before + 1


@pytest.mark.asyncio
async def test_submission_result_logged(caplog):
    config = ChatConfig(webhook_url=None, typing_delay_enabled=False)
    with caplog.at_level("WARNING", logger="hospital_agent.appointment.submission"):
        await WebhookSubmissionAdapter(config).submit(COMPLETE_RECORD, session_id="s-log")

    messages = [record.getMessage() for record in caplog.records]
    assert any("transport_failure:not_configured" in m and "s-log" in m for m in messages)


# ============================================================================
# Outcome interpreter
# ============================================================================

def test_interpret_plain_success():
    assert interpret_outcome(Success(), PHONE) == [SUCCESS_TEXT, CLOSING_PROMPT]


def test_interpret_success_with_details():
    lines = interpret_outcome(Success("Booked!", "APT-42", "Arrive 15 minutes early."), PHONE)
    assert lines[0] == "Booked!"
    assert "APT-42" in lines[1]
    assert lines[2] == "Arrive 15 minutes early."
    assert lines[-1] == CLOSING_PROMPT
    assert len(lines) == 4


def test_interpret_application_failure():
    lines = interpret_outcome(ApplicationFailure("slot full"), PHONE)
    assert len(lines) == 2
    assert "slot full" in lines[0]
    assert PHONE in lines[0]
    assert lines[0].startswith("I apologize")
    assert lines[1] == CLOSING_PROMPT


@pytest.mark.parametrize("reason", list(TransportFailureReason))
def test_interpret_transport_failures_mention_phone(reason):
    lines = interpret_outcome(TransportFailure(reason, "internal detail"), PHONE)
    assert PHONE in lines[0]
    assert "internal detail" not in lines[0]
    assert lines[-1] == CLOSING_PROMPT


def test_interpret_connection_failure_wording():
    lines = interpret_outcome(TransportFailure(TransportFailureReason.CONNECTION), PHONE)
    assert "trouble connecting" in lines[0]


def test_interpret_unknown_outcome():
    with pytest.raises(TypeError):
        interpret_outcome(object(), PHONE)
