"""
Intent Patterns for the City General Hospital chat assistant

Keyword tables used by the fast, substring-only intent classifier.
"""

from typing import Any, Dict


def load_intent_patterns() -> Dict[str, Any]:
    """
    Load the keyword tables for intent and FAQ topic classification.

    Pattern Categories:
        - appointment: booking request keywords (checked first)
        - topics: FAQ topics in priority order; the first topic with a
          keyword present in the text wins

    Matching is plain lower-case substring containment. "see" matches
    "seems" and "I don't want an appointment" still counts as a booking
    request; callers rely on that behaviour staying stable.

    Returns:
        Dictionary with pattern categories
    """
    return {
        "appointment": {
            "keywords": (
                "book", "appointment", "schedule", "visit", "doctor", "consultation",
                "checkup", "exam", "treatment", "see", "meet", "available",
            ),
        },
        "topics": (
            ("hours", ("hours", "time")),
            ("location", ("location", "address")),
            ("departments", ("department", "service")),
        ),
    }
