"""
Hospital Appointment Chat Service - FastAPI Application

HTTP surface for the chat widget: the widget creates a session, posts each
trimmed user turn, and renders the bot messages it gets back. Sessions live
in process memory only and disappear on restart.
"""

import os
import logging
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Response

from hospital_agent.appointment import __version__
from hospital_agent.appointment.config import ChatConfig, SERVICE_NAME
from hospital_agent.appointment.models import (
    ChainInFlightError, Message, SessionNotFoundError,
    MessageModel, SessionCreateResponse, SendMessageRequest, SendMessageResponse,
    MessageLogResponse, SessionStatusResponse, HealthResponse,
)
from hospital_agent.appointment.session import ChatSession, SessionStore
from hospital_agent.shared import setup_metrics, get_metrics_response

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

# Global state
config: Optional[ChatConfig] = None
store: Optional[SessionStore] = None
app_start_time: float = 0.0


# ============================================================================
# Lifespan Management
# ============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Manage service lifecycle (startup/shutdown)
    """
    global config, store, app_start_time

    logger.info("Starting hospital appointment chat service...")
    app_start_time = time.time()

    try:
        config = ChatConfig.from_env()
        logger.info("Configuration loaded")
    except ValueError as e:
        logger.error(f"Failed to load configuration: {e}")
        raise

    store = SessionStore(config)
    setup_metrics(SERVICE_NAME, __version__)

    logger.info("Hospital appointment chat service ready")

    yield

    logger.info(f"Shutting down hospital appointment chat service ({len(store)} sessions dropped)")


# ============================================================================
# FastAPI Application
# ============================================================================

app = FastAPI(
    title="Hospital Appointment Chat Service",
    description="FAQ answers and appointment booking dialogue for the hospital chat widget",
    version=__version__,
    lifespan=lifespan
)


def _require_store() -> SessionStore:
    if not config or store is None:
        raise HTTPException(status_code=503, detail="Service not configured")
    return store


def _get_session(session_id: str) -> ChatSession:
    try:
        return _require_store().get(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


def _to_models(messages: List[Message]) -> List[MessageModel]:
    return [MessageModel(**message.to_dict()) for message in messages]


# ============================================================================
# API Endpoints
# ============================================================================

@app.post("/api/v1/session/create", response_model=SessionCreateResponse)
async def create_session():
    """
    Create a new chat session and post the welcome message.
    """
    session = _require_store().create()
    welcome = session.start()

    return SessionCreateResponse(
        session_id=session.session_id,
        step=session.step.value,
        messages=_to_models(welcome)
    )


@app.post("/api/v1/session/{session_id}/message", response_model=SendMessageResponse)
async def send_message(session_id: str, request: SendMessageRequest):
    """
    Process one user turn.

    Returns the bot messages emitted for the turn, after any typing delay
    and, on the last booking step, after the webhook has answered.
    """
    session = _get_session(session_id)

    if not request.text.strip():
        raise HTTPException(status_code=422, detail="Message text must not be blank")

    previous_step = session.step
    try:
        emitted = await session.handle_user_message(request.text)
    except ChainInFlightError:
        raise HTTPException(status_code=409, detail="Previous message is still being answered")

    transition = session.last_transition
    submitted = transition is not None and transition.submission is not None
    outcome = session.last_outcome.label if submitted and session.last_outcome else None

    return SendMessageResponse(
        session_id=session_id,
        step=session.step.value,
        previous_step=previous_step.value,
        messages=_to_models(emitted),
        submitted=submitted,
        outcome=outcome
    )


@app.get("/api/v1/session/{session_id}/messages", response_model=MessageLogResponse)
async def get_messages(session_id: str):
    """
    Get the full ordered message log for a session.
    """
    session = _get_session(session_id)
    return MessageLogResponse(
        session_id=session_id,
        messages=_to_models(session.log.snapshot())
    )


@app.get("/api/v1/session/{session_id}/status", response_model=SessionStatusResponse)
async def get_session_status(session_id: str):
    """
    Get current step, in-progress record and busy flag for a session.
    """
    session = _get_session(session_id)
    return SessionStatusResponse(
        session_id=session_id,
        step=session.step.value,
        record=session.engine.record.to_dict(),
        busy=session.busy,
        created_at=session.created_at.isoformat()
    )


@app.delete("/api/v1/session/{session_id}")
async def delete_session(session_id: str):
    """
    Delete a chat session.
    """
    try:
        _require_store().delete(session_id)
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    return {"message": "Session deleted successfully"}


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """
    Health check endpoint.

    Degraded when no webhook is configured: the chat still answers FAQs but
    every booking ends with the reception fallback message.
    """
    config_valid = config is not None
    webhook_configured = bool(config and config.webhook_configured)

    if not config_valid:
        status = "unhealthy"
    elif not webhook_configured:
        status = "degraded"
    else:
        status = "healthy"

    return HealthResponse(
        status=status,
        webhook_configured=webhook_configured,
        config_valid=config_valid,
        active_sessions=len(store) if store is not None else 0,
        uptime_seconds=time.time() - app_start_time
    )


@app.get("/metrics")
async def get_metrics():
    """
    Prometheus metrics endpoint.
    """
    content, content_type = get_metrics_response()
    return Response(content=content, media_type=content_type)


# ============================================================================
# Root Endpoint
# ============================================================================

@app.get("/")
async def root():
    """
    Service information endpoint
    """
    return {
        "service": "Hospital Appointment Chat Service",
        "version": __version__,
        "status": "operational",
        "endpoints": {
            "create_session": "POST /api/v1/session/create",
            "send_message": "POST /api/v1/session/{session_id}/message",
            "get_messages": "GET /api/v1/session/{session_id}/messages",
            "get_status": "GET /api/v1/session/{session_id}/status",
            "delete_session": "DELETE /api/v1/session/{session_id}",
            "health": "GET /health",
            "metrics": "GET /metrics"
        }
    }


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", "8006"))

    uvicorn.run(
        "hospital_agent.appointment.app:app",
        host="0.0.0.0",
        port=port,
        log_level="info"
    )
