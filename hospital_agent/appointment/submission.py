"""
Booking webhook client for the hospital appointment chat service

Sends a completed appointment record to the configured automation webhook
in a single attempt and turns whatever comes back into a SubmissionOutcome.
The outcome interpreter then turns that outcome into chat lines.

Expected webhook answer on 2xx:
    {"success": bool, "message"?: str, "appointmentId"?: str, "additionalInfo"?: str}
"""

import asyncio
import json
import logging
from typing import Any, Callable, Dict, List, Optional

import aiohttp

from hospital_agent.appointment.config import ChatConfig, SERVICE_NAME
from hospital_agent.appointment.models import (
    AppointmentRecord, ApplicationFailure, Success, SubmissionOutcome,
    TransportFailure, TransportFailureReason,
    SUCCESS_TEXT, REFERENCE_TEMPLATE, DEFAULT_FAILURE_MESSAGE,
    APPLICATION_FAILURE_TEMPLATE, PROCESSING_FAILURE_TEMPLATE,
    CONNECTION_FAILURE_TEMPLATE, CLOSING_PROMPT,
)
from hospital_agent.shared import StructuredLogger, record_submission, time_submission

logger = logging.getLogger(__name__)


def _optional_text(value: Any) -> Optional[str]:
    """Empty and missing values both count as absent"""
    if value is None or value == "":
        return None
    return value if isinstance(value, str) else str(value)


def parse_webhook_response(body: Any) -> SubmissionOutcome:
    """
    Interpret a decoded 2xx webhook body.

    Args:
        body: Decoded JSON value

    Returns:
        Success, ApplicationFailure, or TransportFailure(MALFORMED) if the
        body is not a JSON object
    """
    if not isinstance(body, dict):
        return TransportFailure(
            TransportFailureReason.MALFORMED,
            f"expected JSON object, got {type(body).__name__}",
        )

    if body.get("success"):
        return Success(
            message=_optional_text(body.get("message")),
            appointment_id=_optional_text(body.get("appointmentId")),
            additional_info=_optional_text(body.get("additionalInfo")),
        )

    return ApplicationFailure(_optional_text(body.get("message")) or DEFAULT_FAILURE_MESSAGE)


class WebhookSubmissionAdapter:
    """
    Single-attempt webhook client.

    Never raises for transport problems: every failure is returned as a
    TransportFailure and logged for operators.
    """

    def __init__(
        self,
        config: ChatConfig,
        session_factory: Callable[[], aiohttp.ClientSession] = aiohttp.ClientSession,
    ):
        self.config = config
        self.session_factory = session_factory
        self.slog = StructuredLogger(logger)

    async def submit(self, record: AppointmentRecord, session_id: Optional[str] = None) -> SubmissionOutcome:
        """
        POST a completed record to the webhook.

        Args:
            record: Completed appointment record
            session_id: Chat session id for logs

        Returns:
            SubmissionOutcome

        Raises:
            IncompleteRecordError: If the record has unset fields
        """
        payload = record.to_payload()

        async with time_submission(SERVICE_NAME) as timer:
            outcome = await self._post(payload)

        record_submission(SERVICE_NAME, outcome.label)
        extra: Dict[str, Any] = {"department": record.department}
        if isinstance(outcome, TransportFailure):
            extra["detail"] = outcome.detail
        self.slog.submission_result(session_id, outcome.label, timer.elapsed * 1000, extra=extra)

        return outcome

    async def _post(self, payload: Dict[str, str]) -> SubmissionOutcome:
        if not self.config.webhook_url:
            logger.error("Booking submission skipped: no webhook URL configured")
            return TransportFailure(TransportFailureReason.NOT_CONFIGURED, "webhook_url is not set")

        request_kwargs: Dict[str, Any] = {"json": payload}
        if self.config.submission_timeout_seconds is not None:
            request_kwargs["timeout"] = aiohttp.ClientTimeout(total=self.config.submission_timeout_seconds)

        try:
            async with self.session_factory() as session:
                async with session.post(self.config.webhook_url, **request_kwargs) as resp:
                    if not 200 <= resp.status < 300:
                        error_text = await resp.text()
                        logger.error(f"Booking webhook HTTP error: {resp.status} {error_text[:200]}")
                        return TransportFailure(
                            TransportFailureReason.HTTP_STATUS,
                            f"HTTP {resp.status}: {error_text[:200]}",
                        )

                    try:
                        body = await resp.json(content_type=None)
                    except (json.JSONDecodeError, aiohttp.ContentTypeError, ValueError) as e:
                        logger.error(f"Booking webhook returned an unreadable body: {e}")
                        return TransportFailure(TransportFailureReason.MALFORMED, str(e))

        except asyncio.TimeoutError:
            logger.error("Booking webhook timeout")
            return TransportFailure(TransportFailureReason.CONNECTION, "timeout")
        except aiohttp.ClientError as e:
            logger.error(f"Error submitting appointment: {e}")
            return TransportFailure(TransportFailureReason.CONNECTION, str(e))

        outcome = parse_webhook_response(body)
        if isinstance(outcome, TransportFailure):
            logger.error(f"Booking webhook returned a malformed body: {outcome.detail}")
        return outcome


# ============================================================================
# Outcome interpreter
# ============================================================================

def interpret_outcome(outcome: SubmissionOutcome, reception_phone: str) -> List[str]:
    """
    Turn a submission outcome into the chat lines shown to the user.

    Args:
        outcome: Result from the submission adapter
        reception_phone: Human fallback contact

    Returns:
        Ordered messages, always ending with the closing prompt
    """
    lines: List[str] = []

    if isinstance(outcome, Success):
        lines.append(outcome.message or SUCCESS_TEXT)
        if outcome.appointment_id:
            lines.append(REFERENCE_TEMPLATE.format(appointment_id=outcome.appointment_id))
        if outcome.additional_info:
            lines.append(outcome.additional_info)
    elif isinstance(outcome, ApplicationFailure):
        lines.append(APPLICATION_FAILURE_TEMPLATE.format(message=outcome.message, phone=reception_phone))
    elif isinstance(outcome, TransportFailure):
        if outcome.reason in (TransportFailureReason.CONNECTION, TransportFailureReason.MALFORMED):
            lines.append(CONNECTION_FAILURE_TEMPLATE.format(phone=reception_phone))
        else:
            lines.append(PROCESSING_FAILURE_TEMPLATE.format(phone=reception_phone))
    else:
        raise TypeError(f"Unknown submission outcome: {outcome!r}")

    lines.append(CLOSING_PROMPT)
    return lines
