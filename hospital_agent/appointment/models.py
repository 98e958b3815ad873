"""
Data models for the hospital appointment chat service

Contains enums, constants, dataclasses, exceptions and Pydantic models for
the booking dialogue and its HTTP surface.
"""

from dataclasses import dataclass, field, fields, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


# ============================================================================
# Enums
# ============================================================================

class ConversationStep(Enum):
    """Dialogue steps, in booking order"""
    INITIAL = "initial"
    COLLECTING_PATIENT_NAME = "collecting_patient_name"
    COLLECTING_PATIENT_AGE = "collecting_patient_age"
    COLLECTING_DOCTOR_NAME = "collecting_doctor_name"
    COLLECTING_DEPARTMENT = "collecting_department"
    COLLECTING_DATETIME = "collecting_datetime"
    COLLECTING_SYMPTOMS = "collecting_symptoms"


class Sender(Enum):
    """Author of a chat message"""
    BOT = "bot"
    USER = "user"


class TransportFailureReason(Enum):
    """Why the webhook call produced no usable answer"""
    NOT_CONFIGURED = "not_configured"
    HTTP_STATUS = "http_status"
    CONNECTION = "connection"
    MALFORMED = "malformed"


# ============================================================================
# Constants
# ============================================================================

# Order matters: the department resolver returns the first match.
DEPARTMENTS = (
    "Cardiology",
    "Dermatology",
    "Emergency",
    "General Medicine",
    "Neurology",
    "Orthopedics",
    "Pediatrics",
    "Radiology",
)

DEPARTMENT_LIST_TEXT = ", ".join(DEPARTMENTS)

WELCOME_TEMPLATE = (
    "Hello! I'm your virtual assistant at {hospital_name}. How can I help you today? "
    "You can ask me about booking an appointment, hospital services, or general information."
)

BOOKING_INTRO = "I'd be happy to help you book an appointment! Let me collect some information from you."
NAME_PROMPT = "First, may I have your full name please?"
AGE_PROMPT_TEMPLATE = "Thank you, {name}! May I have your age please?"
DOCTOR_PROMPT = (
    "Thank you! Which doctor would you like to schedule your appointment with? "
    "Please provide the doctor's name."
)
DEPARTMENT_PROMPT_TEMPLATE = "Great! Which department is Dr. {doctor} in?"
DEPARTMENT_LIST_PROMPT = "Available departments: " + DEPARTMENT_LIST_TEXT
DEPARTMENT_REPROMPT = "I didn't quite catch that department. Please choose from: " + DEPARTMENT_LIST_TEXT
DATETIME_PROMPT_TEMPLATE = (
    "Excellent! I've noted {department} for your appointment. What would be your preferred "
    "date and time? Please provide both (e.g., \"12/25/2024 at 2:30 PM\" or "
    "\"December 25, 2024 at 10:00 AM\")."
)
SYMPTOMS_PROMPT = (
    "Almost done! Could you briefly describe the reason for your visit or any symptoms "
    "you'd like to discuss with the doctor?"
)

HOURS_TEXT = (
    "Our hospital is open 24/7 for emergency services. Regular outpatient services are "
    "available Monday-Friday 8:00 AM - 6:00 PM, Saturday 9:00 AM - 4:00 PM."
)
LOCATION_TEXT = (
    "City General Hospital is located at Nh-24 Merrut expressway near honda showroom. "
    "Exact Address is plot-96B Metro-pillar-34 Kohat-Enclave Delhi-110009. "
    "We have free parking available and are accessible via public transportation."
)
DEPARTMENTS_TEXT = (
    "We offer comprehensive medical services including: Cardiology, Dermatology, Emergency, "
    "General Medicine, Neurology, Orthopedics, Pediatrics, and Radiology. "
    "Would you like to book an appointment with any specific department?"
)
HELP_TEXT = (
    "I can help you with booking appointments, information about our services, "
    "hospital hours, and directions. What would you like to know?"
)

SUBMITTING_NOTICE = "Thank you for providing all the information! Let me submit your appointment request..."
SUCCESS_TEXT = (
    "Perfect! Your appointment request has been successfully submitted. Our staff will "
    "contact you within 2-4 hours to confirm your appointment details."
)
REFERENCE_TEMPLATE = "Your appointment reference number is: {appointment_id}. Please keep this for your records."
DEFAULT_FAILURE_MESSAGE = "There was an issue processing your appointment request."
APPLICATION_FAILURE_TEMPLATE = (
    "I apologize, but {message} Please try again later or call our reception at {phone} "
    "for immediate assistance."
)
PROCESSING_FAILURE_TEMPLATE = (
    "I apologize, but there was an issue processing your appointment request. Please try "
    "again later or call our reception at {phone} for immediate assistance."
)
CONNECTION_FAILURE_TEMPLATE = (
    "I'm sorry, but I'm having trouble connecting to our booking system right now. "
    "Please call our reception at {phone} to book your appointment directly."
)
CLOSING_PROMPT = "Is there anything else I can help you with today?"


# ============================================================================
# Exceptions
# ============================================================================

class DialogueError(Exception):
    """Base class for dialogue engine errors"""


class IncompleteRecordError(DialogueError):
    """Raised when an appointment record is submitted with unset fields"""

    def __init__(self, missing: List[str]):
        self.missing = missing
        super().__init__(f"Appointment record is missing fields: {', '.join(missing)}")


class ChainInFlightError(DialogueError):
    """Raised when a user message arrives while the previous reply chain is running"""


class SessionNotFoundError(DialogueError):
    """Raised when a chat session id is unknown or already deleted"""


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class AppointmentRecord:
    """Appointment details collected across one booking cycle"""
    patient_name: Optional[str] = None
    patient_age: Optional[str] = None  # Free text, never parsed
    doctor_name: Optional[str] = None
    department: Optional[str] = None  # One of DEPARTMENTS
    preferred_datetime: Optional[str] = None
    symptoms: Optional[str] = None

    def with_field(self, name: str, value: str) -> "AppointmentRecord":
        """Return a copy with one field set; a field is only ever set once."""
        if getattr(self, name) is not None:
            raise DialogueError(f"Field {name} is already set for this booking cycle")
        return replace(self, **{name: value})

    def missing_fields(self) -> List[str]:
        return [f.name for f in fields(self) if getattr(self, f.name) is None]

    def is_complete(self) -> bool:
        return not self.missing_fields()

    def is_empty(self) -> bool:
        return all(getattr(self, f.name) is None for f in fields(self))

    def to_dict(self) -> Dict[str, Optional[str]]:
        """Snake-case dictionary for status responses"""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AppointmentRecord":
        return cls(**{f.name: data.get(f.name) for f in fields(cls)})

    def to_payload(self, timestamp: Optional[datetime] = None) -> Dict[str, str]:
        """
        Build the webhook JSON body.

        Args:
            timestamp: Submission time (default: now, UTC)

        Returns:
            camelCase dictionary with all six fields and an ISO-8601 timestamp

        Raises:
            IncompleteRecordError: If any field is unset
        """
        missing = self.missing_fields()
        if missing:
            raise IncompleteRecordError(missing)

        timestamp = timestamp or datetime.now(timezone.utc)
        return {
            "patientName": self.patient_name,
            "patientAge": self.patient_age,
            "doctorName": self.doctor_name,
            "department": self.department,
            "preferredDateTime": self.preferred_datetime,
            "symptoms": self.symptoms,
            "timestamp": timestamp.isoformat(),
        }


@dataclass(frozen=True)
class Message:
    """One rendered chat line"""
    id: str
    text: str
    sender: Sender
    timestamp: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "sender": self.sender.value,
            "timestamp": self.timestamp.isoformat(),
        }


@dataclass
class Transition:
    """Result of feeding one user input to the step machine"""
    step: ConversationStep
    record: AppointmentRecord
    messages: List[str] = field(default_factory=list)
    submission: Optional[AppointmentRecord] = None
    trigger: str = ""


# Submission outcomes

@dataclass(frozen=True)
class Success:
    message: Optional[str] = None
    appointment_id: Optional[str] = None
    additional_info: Optional[str] = None

    @property
    def label(self) -> str:
        return "success"


@dataclass(frozen=True)
class ApplicationFailure:
    message: str = DEFAULT_FAILURE_MESSAGE

    @property
    def label(self) -> str:
        return "application_failure"


@dataclass(frozen=True)
class TransportFailure:
    reason: TransportFailureReason
    detail: str = ""  # For operators only, never shown to the user

    @property
    def label(self) -> str:
        return f"transport_failure:{self.reason.value}"


SubmissionOutcome = Union[Success, ApplicationFailure, TransportFailure]


# ============================================================================
# Pydantic Models for API
# ============================================================================

class MessageModel(BaseModel):
    """A chat message as rendered by the widget"""
    id: str = Field(..., description="Per-session message id, increasing")
    text: str = Field(..., description="Message text")
    sender: str = Field(..., description="bot or user")
    timestamp: str = Field(..., description="ISO-8601 timestamp")


class SessionCreateResponse(BaseModel):
    """Response model for session creation"""
    session_id: str = Field(..., description="Unique session identifier")
    step: str = Field(..., description="Current conversation step")
    messages: List[MessageModel] = Field(..., description="Messages emitted on session start")


class SendMessageRequest(BaseModel):
    """Request model for a user turn"""
    text: str = Field(..., min_length=1, description="User's typed message")


class SendMessageResponse(BaseModel):
    """Response model for a user turn"""
    session_id: str = Field(..., description="Session identifier")
    step: str = Field(..., description="Conversation step after the turn")
    previous_step: str = Field(..., description="Conversation step before the turn")
    messages: List[MessageModel] = Field(..., description="Bot messages emitted for this turn")
    submitted: bool = Field(..., description="Whether this turn triggered a booking submission")
    outcome: Optional[str] = Field(None, description="Submission outcome label, if submitted")


class MessageLogResponse(BaseModel):
    """Response model for the full ordered message log"""
    session_id: str = Field(..., description="Session identifier")
    messages: List[MessageModel] = Field(..., description="All messages, oldest first")


class SessionStatusResponse(BaseModel):
    """Response model for session status query"""
    session_id: str = Field(..., description="Session identifier")
    step: str = Field(..., description="Current conversation step")
    record: Dict[str, Optional[str]] = Field(..., description="In-progress appointment record")
    busy: bool = Field(..., description="Whether a reply chain is in flight")
    created_at: str = Field(..., description="Session creation timestamp")


class HealthResponse(BaseModel):
    """Response model for health check"""
    status: str = Field(..., description="Service status: healthy/degraded/unhealthy")
    webhook_configured: bool = Field(..., description="Whether a booking webhook URL is set")
    config_valid: bool = Field(..., description="Configuration validation status")
    active_sessions: int = Field(..., description="Chat sessions held in memory")
    uptime_seconds: float = Field(..., description="Service uptime in seconds")
