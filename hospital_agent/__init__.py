"""
Hospital Agent Services Package

Subpackages:
    shared: Common utilities (structured logging, Prometheus metrics)
    intent: Keyword booking-intent and FAQ topic classification
    appointment: Booking dialogue engine, webhook client and chat service
"""

__all__ = ["shared", "intent", "appointment"]
