"""
Intent Classification for the hospital chat assistant

Fast keyword matching that decides whether a message asks to book an
appointment or which FAQ topic it is about.

Components:
    - IntentClassifier: keyword classifier with optional classification logging
    - Topic: FAQ topics (hours, location, departments)
    - is_appointment_request / classify_topic: convenience functions
    - get_default_classifier: the shared module-level classifier
"""

from .intent_classifier import (
    IntentClassifier, Topic, is_appointment_request, classify_topic, get_default_classifier,
)
from .patterns import load_intent_patterns

__all__ = [
    "IntentClassifier",
    "Topic",
    "is_appointment_request",
    "classify_topic",
    "get_default_classifier",
    "load_intent_patterns",
]
