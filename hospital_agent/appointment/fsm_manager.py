"""
Dialogue engine for the hospital appointment chat service

Contains the booking step machine as a pure transition function plus a thin
stateful wrapper that owns the current step and record for one chat session.

Transition table:
    initial                 booking intent      -> collecting_patient_name
    initial                 FAQ topic / other   -> initial
    collecting_patient_name any text            -> collecting_patient_age
    collecting_patient_age  any text            -> collecting_doctor_name
    collecting_doctor_name  any text            -> collecting_department
    collecting_department   known department    -> collecting_datetime
    collecting_department   unknown department  -> collecting_department
    collecting_datetime     any text            -> collecting_symptoms
    collecting_symptoms     any text            -> initial (+ submission)
"""

import logging
from typing import Any, Dict, Optional

from hospital_agent.appointment.config import ChatConfig, SERVICE_NAME
from hospital_agent.appointment.models import (
    AppointmentRecord, ConversationStep, Transition,
    BOOKING_INTRO, NAME_PROMPT, AGE_PROMPT_TEMPLATE, DOCTOR_PROMPT,
    DEPARTMENT_PROMPT_TEMPLATE, DEPARTMENT_LIST_PROMPT, DEPARTMENT_REPROMPT,
    DATETIME_PROMPT_TEMPLATE, SYMPTOMS_PROMPT,
    HOURS_TEXT, LOCATION_TEXT, DEPARTMENTS_TEXT, HELP_TEXT,
)
from hospital_agent.appointment.validation import normalize_user_input, resolve_department
from hospital_agent.intent import IntentClassifier, Topic, get_default_classifier
from hospital_agent.shared import StructuredLogger, record_transition

logger = logging.getLogger(__name__)

_TOPIC_REPLIES = {
    Topic.HOURS: HOURS_TEXT,
    Topic.LOCATION: LOCATION_TEXT,
    Topic.DEPARTMENTS: DEPARTMENTS_TEXT,
}


# ============================================================================
# Pure transition function
# ============================================================================

def transition(
    step: ConversationStep,
    record: AppointmentRecord,
    text: str,
    classifier: Optional[IntentClassifier] = None,
) -> Transition:
    """
    Decide the next step, record and outgoing messages for one user input.

    Has no side effects: no delay, no rendering, no network. A completed
    booking is returned as `Transition.submission` for the caller to send.

    Args:
        step: Current conversation step
        record: Current appointment record
        text: Trimmed, non-empty user input
        classifier: Intent classifier (default: the shared intent-package instance)

    Returns:
        Transition with the new step, new record, messages and optional submission

    Raises:
        ValueError: If text is empty or whitespace only
    """
    if not text or not text.strip():
        raise ValueError("user input must be non-empty")

    classifier = classifier or get_default_classifier()

    if step == ConversationStep.INITIAL:
        return _handle_initial(record, text, classifier)
    elif step == ConversationStep.COLLECTING_PATIENT_NAME:
        return Transition(
            step=ConversationStep.COLLECTING_PATIENT_AGE,
            record=record.with_field("patient_name", text),
            messages=[AGE_PROMPT_TEMPLATE.format(name=text)],
            trigger="patient_name",
        )
    elif step == ConversationStep.COLLECTING_PATIENT_AGE:
        return Transition(
            step=ConversationStep.COLLECTING_DOCTOR_NAME,
            record=record.with_field("patient_age", text),
            messages=[DOCTOR_PROMPT],
            trigger="patient_age",
        )
    elif step == ConversationStep.COLLECTING_DOCTOR_NAME:
        return Transition(
            step=ConversationStep.COLLECTING_DEPARTMENT,
            record=record.with_field("doctor_name", text),
            messages=[DEPARTMENT_PROMPT_TEMPLATE.format(doctor=text), DEPARTMENT_LIST_PROMPT],
            trigger="doctor_name",
        )
    elif step == ConversationStep.COLLECTING_DEPARTMENT:
        return _handle_department(record, text)
    elif step == ConversationStep.COLLECTING_DATETIME:
        return Transition(
            step=ConversationStep.COLLECTING_SYMPTOMS,
            record=record.with_field("preferred_datetime", text),
            messages=[SYMPTOMS_PROMPT],
            trigger="preferred_datetime",
        )
    elif step == ConversationStep.COLLECTING_SYMPTOMS:
        completed = record.with_field("symptoms", text)
        return Transition(
            step=ConversationStep.INITIAL,
            record=AppointmentRecord(),
            messages=[],
            submission=completed,
            trigger="symptoms",
        )

    raise ValueError(f"Unknown conversation step: {step}")


def _handle_initial(record: AppointmentRecord, text: str, classifier: IntentClassifier) -> Transition:
    """Booking intent first, then FAQ topics, then the generic help text"""
    if classifier.is_appointment_request(text):
        # New booking cycle always starts from an empty record
        return Transition(
            step=ConversationStep.COLLECTING_PATIENT_NAME,
            record=AppointmentRecord(),
            messages=[BOOKING_INTRO, NAME_PROMPT],
            trigger="booking_intent",
        )

    topic = classifier.classify_topic(text)
    if topic is not None:
        return Transition(
            step=ConversationStep.INITIAL,
            record=record,
            messages=[_TOPIC_REPLIES[topic]],
            trigger=f"faq_{topic.value}",
        )

    return Transition(
        step=ConversationStep.INITIAL,
        record=record,
        messages=[HELP_TEXT],
        trigger="help",
    )


def _handle_department(record: AppointmentRecord, text: str) -> Transition:
    department = resolve_department(text)
    if department is None:
        return Transition(
            step=ConversationStep.COLLECTING_DEPARTMENT,
            record=record,
            messages=[DEPARTMENT_REPROMPT],
            trigger="department_unresolved",
        )

    return Transition(
        step=ConversationStep.COLLECTING_DATETIME,
        record=record.with_field("department", department),
        messages=[DATETIME_PROMPT_TEMPLATE.format(department=department)],
        trigger="department",
    )


# ============================================================================
# Stateful wrapper
# ============================================================================

class DialogueEngine:
    """
    Step machine for one chat session.

    Owns the current step and the in-progress appointment record. Holds no
    message log and performs no I/O; see ChatSession for that.
    """

    def __init__(
        self,
        config: ChatConfig,
        session_id: Optional[str] = None,
        classifier: Optional[IntentClassifier] = None,
    ):
        """
        Initialize the dialogue engine.

        Args:
            config: Chat configuration
            session_id: Chat session id used in structured logs
            classifier: Intent classifier (default: one built from config)
        """
        self.config = config
        self.session_id = session_id
        self.classifier = classifier or IntentClassifier(
            log_classifications=config.log_classifications
        )
        self.slog = StructuredLogger(logger)

        self.step = ConversationStep.INITIAL
        self.record = AppointmentRecord()

    def process_input(self, user_input: str) -> Transition:
        """
        Feed one user turn to the step machine and adopt the result.

        Args:
            user_input: Raw user text; surrounding whitespace is stripped

        Returns:
            The Transition that was applied

        Raises:
            ValueError: If the input is empty after trimming
        """
        text = normalize_user_input(user_input)
        if text is None:
            raise ValueError("user input must be non-empty")

        previous = self.step
        result = transition(self.step, self.record, text, self.classifier)

        self.step = result.step
        self.record = result.record

        record_transition(SERVICE_NAME, previous.value, result.step.value)
        if self.config.log_state_transitions:
            self.slog.state_transition(
                self.session_id,
                previous.value,
                result.step.value,
                result.trigger,
                data={"submission": result.submission is not None},
            )

        return result

    def reset(self):
        """Reset to the initial step with an empty record"""
        self.step = ConversationStep.INITIAL
        self.record = AppointmentRecord()

    def to_dict(self) -> Dict[str, Any]:
        """Serialize engine state"""
        return {
            "session_id": self.session_id,
            "step": self.step.value,
            "record": self.record.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any], config: ChatConfig) -> "DialogueEngine":
        """Deserialize engine state"""
        instance = cls(config, session_id=data.get("session_id"))
        instance.step = ConversationStep(data["step"])
        instance.record = AppointmentRecord.from_dict(data.get("record", {}))
        return instance
