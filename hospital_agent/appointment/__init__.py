"""
Hospital Appointment Chat Service

Chat assistant for City General Hospital. Answers FAQ questions (opening
hours, address, departments) and walks a patient through a fixed
appointment-booking dialogue, then forwards the booking to an automation
webhook.

Key Features:
- Seven-step booking dialogue as a pure transition function
- Keyword booking-intent and FAQ topic detection
- Fuzzy department matching against a fixed department list
- Single-attempt webhook submission with reception-phone fallback
- Ephemeral in-memory chat sessions, one reply chain at a time

Architecture:
- FastAPI web framework for REST endpoints
- aiohttp for the outbound booking webhook
- DialogueEngine for business logic
- Pydantic models for API contracts
- Prometheus metrics and JSON structured logs
"""

__version__ = "1.0.0"
