"""
Validation utilities for the hospital appointment chat service

Booking fields are accepted verbatim once non-empty; the only field with a
closed vocabulary is the department.
"""

from typing import Iterable, Optional

from hospital_agent.appointment.models import DEPARTMENTS


def normalize_user_input(text: Optional[str]) -> Optional[str]:
    """
    Trim a raw user turn.

    Args:
        text: Text as typed by the user

    Returns:
        Trimmed text, or None if nothing but whitespace was typed
    """
    if text is None:
        return None
    cleaned = text.strip()
    return cleaned or None


def resolve_department(text: str, departments: Iterable[str] = DEPARTMENTS) -> Optional[str]:
    """
    Fuzzy-match free text against the department list.

    A department matches when its lower-cased name occurs in the input or the
    input occurs in the name ("card" -> Cardiology, "I need neurology" ->
    Neurology). The first match in list order wins.

    Args:
        text: User input
        departments: Ordered department names

    Returns:
        Canonical department name, or None if nothing matched
    """
    lowered = text.strip().lower()
    if not lowered:
        return None

    for department in departments:
        name = department.lower()
        if name in lowered or lowered in name:
            return department
    return None
