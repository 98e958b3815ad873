"""
Structured JSON logging for hospital agent services.

Wraps a standard `logging.Logger` so handler/formatter configuration from
`logging.basicConfig` keeps working while every line stays machine-parseable.
"""

import json
import logging
import time
from typing import Any, Dict, Optional


class StructuredLogger:
    """
    Lightweight structured logger that emits JSON log lines.

    Each entry carries a timestamp, an event type, a human readable message
    and optionally the chat session id and a data payload.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self.logger = logger or logging.getLogger(__name__)

    def _log(
        self,
        level: str,
        event_type: str,
        message: str,
        session_id: Optional[str] = None,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        entry: Dict[str, Any] = {
            "timestamp": time.time(),
            "event_type": event_type,
            "message": message,
        }

        if session_id is not None:
            entry["session_id"] = session_id

        if data:
            entry["data"] = dict(data)

        log_method = getattr(self.logger, level.lower(), self.logger.info)
        try:
            log_method(json.dumps(entry, default=str))
        except (TypeError, ValueError):
            log_method(f"[STRUCTURED_LOG_FALLBACK] {entry}")

    def event(
        self,
        session_id: Optional[str],
        event_type: str,
        message: str,
        level: str = "INFO",
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Generic structured event."""
        self._log(level=level, event_type=event_type, message=message, session_id=session_id, data=data)

    def state_transition(
        self,
        session_id: Optional[str],
        old_state: str,
        new_state: str,
        trigger: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Structured log for dialogue step transitions."""
        payload = {"old_state": old_state, "new_state": new_state, "trigger": trigger}
        if data:
            payload["data"] = data
        self._log(
            level="INFO",
            event_type="state_transition",
            message=f"{old_state} -> {new_state} ({trigger})",
            session_id=session_id,
            data=payload,
        )

    def submission_result(
        self,
        session_id: Optional[str],
        outcome: str,
        duration_ms: float,
        extra: Optional[Dict[str, Any]] = None,
    ) -> None:
        """Structured log for a webhook submission attempt."""
        data = {"outcome": outcome, "duration_ms": duration_ms}
        if extra:
            data.update(extra)
        level = "INFO" if outcome == "success" else "WARNING"
        self._log(
            level=level,
            event_type="submission",
            message=f"submission {outcome} after {duration_ms:.0f}ms",
            session_id=session_id,
            data=data,
        )
