"""
Configuration for the hospital appointment chat service

All settings come from CLINIC_CHAT_* environment variables in deployment.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

SERVICE_NAME = "hospital-appointment-chat"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes")


@dataclass
class ChatConfig:
    """
    Configuration for the appointment chat service.

    Attributes:
        webhook_url: Automation webhook receiving completed bookings (optional)
        hospital_name: Name used in the welcome message
        reception_phone: Human fallback contact quoted in every apology
        typing_delay_enabled: Pause before each bot message (default: True)
        typing_delay_min_ms: Lower bound of the random typing pause (default: 800)
        typing_delay_max_ms: Upper bound of the random typing pause (default: 2000)
        submission_timeout_seconds: Total webhook timeout; None keeps aiohttp's default
        session_ttl: Idle seconds before a chat session is evicted (default: 1800 = 30min)
        max_sessions: Sessions held in memory before the least recently active idle one is evicted (default: 1000)
        log_state_transitions: Log dialogue step transitions (default: True)
        log_classifications: Log intent/topic classifications (default: False)
    """

    webhook_url: Optional[str] = None
    hospital_name: str = "City General Hospital"
    reception_phone: str = "(555) 123-4567"
    typing_delay_enabled: bool = True
    typing_delay_min_ms: int = 800
    typing_delay_max_ms: int = 2000
    submission_timeout_seconds: Optional[float] = None
    session_ttl: int = 1800
    max_sessions: int = 1000
    log_state_transitions: bool = True
    log_classifications: bool = False

    def __post_init__(self):
        """Validate configuration after initialization"""
        if self.typing_delay_min_ms < 0:
            raise ValueError(
                f"typing_delay_min_ms must be non-negative, got {self.typing_delay_min_ms}"
            )

        if self.typing_delay_max_ms < self.typing_delay_min_ms:
            raise ValueError(
                f"typing_delay_max_ms ({self.typing_delay_max_ms}) must be >= "
                f"typing_delay_min_ms ({self.typing_delay_min_ms})"
            )

        if self.submission_timeout_seconds is not None and self.submission_timeout_seconds <= 0:
            raise ValueError(
                f"submission_timeout_seconds must be positive, got {self.submission_timeout_seconds}"
            )

        if self.session_ttl <= 0:
            raise ValueError(
                f"session_ttl must be positive, got {self.session_ttl}"
            )

        if self.max_sessions <= 0:
            raise ValueError(
                f"max_sessions must be positive, got {self.max_sessions}"
            )

        if self.webhook_url and not self.webhook_url.startswith(("http://", "https://")):
            raise ValueError(
                f"webhook_url must start with http:// or https://, got {self.webhook_url}"
            )

        if not self.reception_phone.strip():
            raise ValueError("reception_phone must not be empty")

        # Warn if no webhook is configured
        if not self.webhook_url:
            logger.warning(
                "CLINIC_CHAT_WEBHOOK_URL not set. Completed bookings will be answered "
                "with the reception fallback message."
            )

        if self.log_state_transitions:
            logger.info(
                f"ChatConfig loaded: webhook_configured={bool(self.webhook_url)}, "
                f"typing_delay={self.typing_delay_enabled} "
                f"({self.typing_delay_min_ms}-{self.typing_delay_max_ms}ms), "
                f"submission_timeout={self.submission_timeout_seconds}, "
                f"session_ttl={self.session_ttl}s, max_sessions={self.max_sessions}"
            )

    @property
    def webhook_configured(self) -> bool:
        return bool(self.webhook_url)

    @staticmethod
    def from_env() -> "ChatConfig":
        """
        Load configuration from environment variables.

        Environment Variables:
            CLINIC_CHAT_WEBHOOK_URL: Booking webhook URL (optional)
            CLINIC_CHAT_HOSPITAL_NAME: Hospital name (default: City General Hospital)
            CLINIC_CHAT_RECEPTION_PHONE: Fallback phone (default: (555) 123-4567)
            CLINIC_CHAT_TYPING_DELAY_ENABLED: Simulate typing (default: true)
            CLINIC_CHAT_TYPING_DELAY_MIN_MS: Min typing pause (default: 800)
            CLINIC_CHAT_TYPING_DELAY_MAX_MS: Max typing pause (default: 2000)
            CLINIC_CHAT_SUBMISSION_TIMEOUT: Webhook timeout in seconds (optional)
            CLINIC_CHAT_SESSION_TTL: Session idle TTL in seconds (default: 1800)
            CLINIC_CHAT_MAX_SESSIONS: Max sessions held in memory (default: 1000)
            CLINIC_CHAT_LOG_STATE_TRANSITIONS: Log transitions (default: true)
            CLINIC_CHAT_LOG_CLASSIFICATIONS: Log classifications (default: false)

        Returns:
            ChatConfig instance loaded from environment
        """
        webhook_url = os.getenv("CLINIC_CHAT_WEBHOOK_URL") or None

        hospital_name = os.getenv("CLINIC_CHAT_HOSPITAL_NAME", "City General Hospital")
        reception_phone = os.getenv("CLINIC_CHAT_RECEPTION_PHONE", "(555) 123-4567")

        typing_delay_enabled = _env_flag("CLINIC_CHAT_TYPING_DELAY_ENABLED", "true")

        try:
            typing_delay_min_ms = int(os.getenv("CLINIC_CHAT_TYPING_DELAY_MIN_MS", "800"))
        except ValueError:
            logger.warning("Invalid CLINIC_CHAT_TYPING_DELAY_MIN_MS, using default 800")
            typing_delay_min_ms = 800

        try:
            typing_delay_max_ms = int(os.getenv("CLINIC_CHAT_TYPING_DELAY_MAX_MS", "2000"))
        except ValueError:
            logger.warning("Invalid CLINIC_CHAT_TYPING_DELAY_MAX_MS, using default 2000")
            typing_delay_max_ms = 2000

        submission_timeout_seconds = None
        raw_timeout = os.getenv("CLINIC_CHAT_SUBMISSION_TIMEOUT")
        if raw_timeout:
            try:
                submission_timeout_seconds = float(raw_timeout)
            except ValueError:
                logger.warning("Invalid CLINIC_CHAT_SUBMISSION_TIMEOUT, using transport default")

        try:
            session_ttl = int(os.getenv("CLINIC_CHAT_SESSION_TTL", "1800"))
        except ValueError:
            logger.warning("Invalid CLINIC_CHAT_SESSION_TTL, using default 1800")
            session_ttl = 1800

        try:
            max_sessions = int(os.getenv("CLINIC_CHAT_MAX_SESSIONS", "1000"))
        except ValueError:
            logger.warning("Invalid CLINIC_CHAT_MAX_SESSIONS, using default 1000")
            max_sessions = 1000

        log_state_transitions = _env_flag("CLINIC_CHAT_LOG_STATE_TRANSITIONS", "true")
        log_classifications = _env_flag("CLINIC_CHAT_LOG_CLASSIFICATIONS", "false")

        return ChatConfig(
            webhook_url=webhook_url,
            hospital_name=hospital_name,
            reception_phone=reception_phone,
            typing_delay_enabled=typing_delay_enabled,
            typing_delay_min_ms=typing_delay_min_ms,
            typing_delay_max_ms=typing_delay_max_ms,
            submission_timeout_seconds=submission_timeout_seconds,
            session_ttl=session_ttl,
            max_sessions=max_sessions,
            log_state_transitions=log_state_transitions,
            log_classifications=log_classifications,
        )
