"""
Intent Classification Core Logic

Single-layer keyword classifier for the hospital chat assistant:
- Booking intent: any appointment keyword present anywhere in the text
- FAQ topic: hours, location or departments, first matching rule wins

There is no semantic or LLM fallback. Text that matches nothing is answered
with the generic help message by the dialogue engine.
"""

import logging
from enum import Enum
from typing import Any, Dict, Optional

from .patterns import load_intent_patterns

logger = logging.getLogger(__name__)


class Topic(Enum):
    """FAQ topics answered at the initial step"""
    HOURS = "hours"
    LOCATION = "location"
    DEPARTMENTS = "departments"


class IntentClassifier:
    """
    Keyword intent classifier.

    Classification Strategy:
        1. Booking intent is checked before any FAQ topic, so a message that
           mentions both ("what time can I see a doctor") starts a booking.
        2. FAQ topics are checked in fixed priority order and only one topic
           is ever reported per input.
    """

    def __init__(self, log_classifications: bool = False):
        """
        Initialize the classifier.

        Args:
            log_classifications: Log every classification at debug level
        """
        self.log_classifications = log_classifications

        self.patterns = load_intent_patterns()
        self.appointment_keywords = tuple(self.patterns["appointment"]["keywords"])
        self.topic_rules = tuple(
            (Topic(name), tuple(keywords)) for name, keywords in self.patterns["topics"]
        )

        # Performance tracking
        self.booking_hits = 0
        self.topic_hits: Dict[str, int] = {topic.value: 0 for topic in Topic}
        self.unmatched = 0

    def is_appointment_request(self, text: str) -> bool:
        """
        Check whether free text expresses an appointment-booking intent.

        Args:
            text: Raw user text (any case)

        Returns:
            True if any booking keyword occurs as a substring
        """
        lowered = text.lower()
        matched = next((kw for kw in self.appointment_keywords if kw in lowered), None)

        if matched is not None:
            self.booking_hits += 1
        if self.log_classifications:
            logger.debug(f"Booking intent check: matched={matched!r} text={text!r}")

        return matched is not None

    def classify_topic(self, text: str) -> Optional[Topic]:
        """
        Route free text to an FAQ topic.

        Args:
            text: Raw user text (any case)

        Returns:
            The first matching Topic, or None when nothing matched
        """
        lowered = text.lower()
        for topic, keywords in self.topic_rules:
            if any(kw in lowered for kw in keywords):
                self.topic_hits[topic.value] += 1
                if self.log_classifications:
                    logger.debug(f"Topic classified: {topic.value} text={text!r}")
                return topic

        self.unmatched += 1
        if self.log_classifications:
            logger.debug(f"No topic matched: text={text!r}")
        return None

    def get_performance_stats(self) -> Dict[str, Any]:
        """Return classification counters."""
        return {
            "booking_hits": self.booking_hits,
            "topic_hits": dict(self.topic_hits),
            "unmatched": self.unmatched,
        }


_default_classifier: Optional[IntentClassifier] = None


def get_default_classifier() -> IntentClassifier:
    """Process-wide classifier, built on first use."""
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = IntentClassifier()
    return _default_classifier


def is_appointment_request(text: str) -> bool:
    """Convenience wrapper around the module-level classifier."""
    return get_default_classifier().is_appointment_request(text)


def classify_topic(text: str) -> Optional[Topic]:
    """Convenience wrapper around the module-level classifier."""
    return get_default_classifier().classify_topic(text)
