"""Server-side chat sessions and the registry that owns them.

A session pairs an opaque id with the model conversation handle and any
context that still has to be sent upstream. The registry is bounded: idle
sessions expire after a TTL and the least recently used session is evicted
when capacity is reached. It is process-local, so sessions do not survive a
restart and are not shared between server instances.
"""

import logging
import time
import uuid
from collections import OrderedDict
from collections.abc import Callable
from typing import Any

from docchat.agent.config import SessionConfig

logger = logging.getLogger(__name__)

SESSION_NOT_FOUND_MESSAGE = "Session not found. Please start a new chat."


class SessionNotFoundError(Exception):
    """Raised when a session id is unknown or has expired."""

    def __init__(self, session_id: str) -> None:
        super().__init__(SESSION_NOT_FOUND_MESSAGE)
        self.session_id = session_id


def build_grounded_prompt(context: str, question: str) -> str:
    """Combine grounding context and the user's question into one turn."""
    return f"CONTEXT:\n---\n{context}\n---\n\nQUESTION: {question}"


class ChatSession:
    """State held for one conversation.

    Attributes:
        session_id: Opaque identifier handed to the client.
        conversation: Model conversation handle (an agno Agent).
        pending_context: Context not yet sent to the model, if any.
    """

    def __init__(
        self,
        session_id: str,
        conversation: Any,
        context: str | None = None,
        now: float = 0.0,
    ) -> None:
        self.session_id = session_id
        self.conversation = conversation
        self.pending_context = context or None
        self.context_injected = False
        self.last_used = now

    def attach_context(self, context: str | None) -> bool:
        """Accept late context if none has been sent for this session yet.

        Returns:
            True if the context was stored as pending.
        """
        if not context or not context.strip():
            return False
        if self.context_injected or self.pending_context is not None:
            logger.warning(
                f"Ignoring context for session {self.session_id}: already provided"
            )
            return False
        self.pending_context = context
        return True

    def prepare_turn(self, message: str) -> tuple[str, bool]:
        """Build the upstream input for the next user message.

        Args:
            message: The user's message.

        Returns:
            The text to send and whether it carries fresh context.
        """
        if self.pending_context is not None:
            return build_grounded_prompt(self.pending_context, message), True
        return message, False

    def mark_context_injected(self) -> None:
        """Record that the pending context reached the model."""
        if self.pending_context is not None:
            logger.info(f"Context injected into session {self.session_id}")
        self.pending_context = None
        self.context_injected = True


class SessionRegistry:
    """Bounded, expiring map of session id to ChatSession."""

    def __init__(
        self,
        config: SessionConfig | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._config = config or SessionConfig()
        self._clock = clock
        self._sessions: OrderedDict[str, ChatSession] = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions

    def _new_id(self) -> str:
        session_id = uuid.uuid4().hex
        while session_id in self._sessions:
            session_id = uuid.uuid4().hex
        return session_id

    def purge_expired(self) -> int:
        """Drop sessions idle for longer than the TTL.

        Returns:
            Number of sessions removed.
        """
        deadline = self._clock() - self._config.ttl_seconds
        expired = [sid for sid, s in self._sessions.items() if s.last_used < deadline]
        for sid in expired:
            del self._sessions[sid]
            logger.info(f"Session expired: {sid}")
        return len(expired)

    def create(self, conversation: Any, context: str | None = None) -> ChatSession:
        """Register a new session around a conversation handle."""
        self.purge_expired()
        while len(self._sessions) >= self._config.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info(f"Session evicted (capacity {self._config.max_sessions}): {evicted}")

        session = ChatSession(
            session_id=self._new_id(),
            conversation=conversation,
            context=context,
            now=self._clock(),
        )
        self._sessions[session.session_id] = session
        logger.info(
            f"Session created: {session.session_id} "
            f"(context: {len(context) if context else 0} chars)"
        )
        return session

    def get(self, session_id: str) -> ChatSession:
        """Look up a live session and refresh its idle timer.

        Raises:
            SessionNotFoundError: If the id is unknown or expired.
        """
        self.purge_expired()
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        session.last_used = self._clock()
        self._sessions.move_to_end(session_id)
        return session

    def remove(self, session_id: str) -> bool:
        """Forget a session. Returns False if it was not registered."""
        return self._sessions.pop(session_id, None) is not None
