"""
Chat sessions for the hospital appointment chat service

A ChatSession is what one browser tab talks to: it owns the ordered message
log, the dialogue engine and the webhook adapter, and runs one reply chain
per user message. Chains never overlap; a message that arrives while a chain
is running is rejected with ChainInFlightError.
"""

import asyncio
import itertools
import logging
import random
import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from hospital_agent.appointment.config import ChatConfig, SERVICE_NAME
from hospital_agent.appointment.fsm_manager import DialogueEngine
from hospital_agent.appointment.models import (
    ChainInFlightError, ConversationStep, Message, Sender, SessionNotFoundError,
    SubmissionOutcome, Transition, SUBMITTING_NOTICE, WELCOME_TEMPLATE,
)
from hospital_agent.appointment.submission import WebhookSubmissionAdapter, interpret_outcome
from hospital_agent.appointment.validation import normalize_user_input
from hospital_agent.shared import StructuredLogger, record_message, set_active_sessions

logger = logging.getLogger(__name__)


class MessageLog:
    """Append-only, ordered chat log"""

    def __init__(self):
        self._messages: List[Message] = []
        self._ids = itertools.count(1)

    def append(self, text: str, sender: Sender) -> Message:
        message = Message(
            id=str(next(self._ids)),
            text=text,
            sender=sender,
            timestamp=datetime.now(timezone.utc),
        )
        self._messages.append(message)
        record_message(SERVICE_NAME, sender.value)
        return message

    def __len__(self) -> int:
        return len(self._messages)

    def snapshot(self) -> List[Message]:
        return list(self._messages)


class TypingDelay:
    """
    Random pause before each bot message, to look like someone typing.

    Presentation only; disabling it changes nothing about what is said.
    """

    def __init__(self, enabled: bool = True, min_ms: int = 800, max_ms: int = 2000, rng: Optional[random.Random] = None):
        self.enabled = enabled
        self.min_ms = min_ms
        self.max_ms = max_ms
        self.rng = rng or random.Random()

    @classmethod
    def from_config(cls, config: ChatConfig) -> "TypingDelay":
        return cls(
            enabled=config.typing_delay_enabled,
            min_ms=config.typing_delay_min_ms,
            max_ms=config.typing_delay_max_ms,
        )

    def next_delay_seconds(self) -> float:
        if not self.enabled:
            return 0.0
        return self.rng.uniform(self.min_ms, self.max_ms) / 1000.0

    async def pause(self):
        delay = self.next_delay_seconds()
        if delay > 0:
            await asyncio.sleep(delay)


class ChatSession:
    """
    One browser session's conversation.

    Attributes:
        session_id: Unique session identifier
        log: Ordered message log
        engine: Dialogue engine owning step and record
        busy: True while a reply chain is running
        last_transition: Transition applied by the most recent chain
        last_outcome: Outcome of the most recent submission, if any
        last_activity: Clock reading of the most recent user turn or reply
    """

    def __init__(
        self,
        config: ChatConfig,
        session_id: Optional[str] = None,
        adapter: Optional[WebhookSubmissionAdapter] = None,
        typing_delay: Optional[TypingDelay] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.clock = clock
        self.session_id = session_id or str(uuid.uuid4())
        self.created_at = datetime.now(timezone.utc)

        self.log = MessageLog()
        self.engine = DialogueEngine(config, session_id=self.session_id)
        self.adapter = adapter or WebhookSubmissionAdapter(config)
        self.typing_delay = typing_delay or TypingDelay.from_config(config)

        self.last_transition: Optional[Transition] = None
        self.last_outcome: Optional[SubmissionOutcome] = None
        self._chain_lock = asyncio.Lock()
        self._started = False
        self.last_activity = clock()

    @property
    def step(self) -> ConversationStep:
        return self.engine.step

    @property
    def busy(self) -> bool:
        return self._chain_lock.locked()

    def idle_seconds(self, now: Optional[float] = None) -> float:
        now = self.clock() if now is None else now
        return now - self.last_activity

    def start(self) -> List[Message]:
        """Post the welcome message (once per session)"""
        if self._started:
            return []
        self._started = True
        welcome = WELCOME_TEMPLATE.format(hospital_name=self.config.hospital_name)
        return [self.log.append(welcome, Sender.BOT)]

    async def handle_user_message(self, text: str) -> List[Message]:
        """
        Run one reply chain for a user turn.

        Args:
            text: Raw text from the input box

        Returns:
            Bot messages emitted by this chain, in order (empty for blank input)

        Raises:
            ChainInFlightError: If the previous chain has not finished
        """
        cleaned = normalize_user_input(text)
        if cleaned is None:
            return []

        if self._chain_lock.locked():
            raise ChainInFlightError(f"Session {self.session_id} is still replying")

        self.last_activity = self.clock()
        async with self._chain_lock:
            self.log.append(cleaned, Sender.USER)
            result = self.engine.process_input(cleaned)
            self.last_transition = result

            emitted: List[Message] = []
            for line in result.messages:
                emitted.append(await self._say(line))

            if result.submission is not None:
                emitted.append(await self._say(SUBMITTING_NOTICE))
                outcome = await self.adapter.submit(result.submission, session_id=self.session_id)
                self.last_outcome = outcome
                for line in interpret_outcome(outcome, self.config.reception_phone):
                    emitted.append(await self._say(line))

            self.last_activity = self.clock()
            return emitted

    async def _say(self, text: str) -> Message:
        await self.typing_delay.pause()
        return self.log.append(text, Sender.BOT)


class SessionStore:
    """
    In-memory chat sessions for one service process.

    Sessions idle for longer than `session_ttl` are evicted on the next
    create or lookup. When `max_sessions` is reached, the least recently
    active idle session makes room for the new one. A session with a reply
    chain in flight is never evicted.
    """

    def __init__(
        self,
        config: ChatConfig,
        adapter: Optional[WebhookSubmissionAdapter] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.config = config
        self.adapter = adapter
        self.clock = clock
        self.slog = StructuredLogger(logger)
        self._sessions: Dict[str, ChatSession] = {}

    def create(self) -> ChatSession:
        self.evict_expired()
        self._make_room()

        session = ChatSession(self.config, adapter=self.adapter, clock=self.clock)
        self._sessions[session.session_id] = session
        set_active_sessions(SERVICE_NAME, len(self._sessions))
        self.slog.event(session.session_id, "session_created", "Chat session created")
        return session

    def get(self, session_id: str) -> ChatSession:
        self.evict_expired()
        try:
            return self._sessions[session_id]
        except KeyError:
            raise SessionNotFoundError(f"Session not found: {session_id}") from None

    def delete(self, session_id: str) -> None:
        if self._sessions.pop(session_id, None) is None:
            raise SessionNotFoundError(f"Session not found: {session_id}")
        set_active_sessions(SERVICE_NAME, len(self._sessions))
        self.slog.event(session_id, "session_deleted", "Chat session deleted")

    def evict_expired(self) -> int:
        """
        Drop every idle session older than the configured TTL.

        Returns:
            Number of sessions evicted
        """
        now = self.clock()
        expired = [
            session_id for session_id, session in self._sessions.items()
            if not session.busy and session.idle_seconds(now) >= self.config.session_ttl
        ]
        for session_id in expired:
            self._evict(session_id, "expired")
        return len(expired)

    def _make_room(self):
        while len(self._sessions) >= self.config.max_sessions:
            idle = [s for s in self._sessions.values() if not s.busy]
            if not idle:
                logger.warning(
                    f"Session limit {self.config.max_sessions} reached and every session is busy"
                )
                return
            oldest = min(idle, key=lambda s: s.last_activity)
            self._evict(oldest.session_id, "capacity")

    def _evict(self, session_id: str, reason: str):
        session = self._sessions.pop(session_id)
        set_active_sessions(SERVICE_NAME, len(self._sessions))
        self.slog.event(
            session_id,
            "session_evicted",
            f"Chat session evicted ({reason})",
            data={"reason": reason, "idle_seconds": round(session.idle_seconds(), 1)},
        )

    def __len__(self) -> int:
        return len(self._sessions)
