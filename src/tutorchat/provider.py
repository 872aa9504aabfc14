"""Abstract collaborators consumed by the chat engine."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from .core import ChatSession, Message

logger = logging.getLogger(__name__)

NEW_MESSAGE = "new_message"
AI_TYPING = "ai_typing"

EventHandler = Callable[[Any], None]


class StoreError(Exception):
    """The session store could not complete a request."""


class TransportError(Exception):
    """The real-time transport could not be reached."""


class SessionStore(ABC):
    """Persistence and request/response side of the chat backend.

    Implementations own session identity: asking twice for the same
    (user, context type, context id) must resume the existing session
    rather than create a second one.
    """

    @abstractmethod
    async def create_or_resume_session(
        self, title: str, context_type: str, context_id: Optional[str]
    ) -> ChatSession:
        """Return the session for this context, creating it if needed."""
        ...

    @abstractmethod
    async def send_message_fallback(self, session_id: str, text: str) -> Message:
        """Persist a user message and return the assistant's reply."""
        ...

    @abstractmethod
    async def list_sessions(self) -> list[ChatSession]:
        """Return the caller's active sessions, most recent first."""
        ...

    @abstractmethod
    async def delete_session(self, session_id: str) -> None:
        ...


class TransportClient(ABC):
    """Process-wide real-time connection shared by every chat widget.

    Subclasses implement connection state, rooms and sending. Event
    subscription lives here: each event name keeps an ordered list of
    handlers so several widgets can listen on one connection and remove
    only their own handlers.
    """

    name: str  # "socketio", "loopback"

    def __init__(self):
        self._handlers: dict[str, list[EventHandler]] = {}

    @property
    @abstractmethod
    def connected(self) -> bool:
        ...

    @abstractmethod
    def join_room(self, session_id: str) -> None:
        ...

    @abstractmethod
    def leave_room(self, session_id: str) -> None:
        ...

    @abstractmethod
    def send(self, session_id: str, text: str) -> None:
        """Fire-and-forget a user message; replies arrive as events."""
        ...

    def on(self, event: str, handler: EventHandler) -> None:
        self._handlers.setdefault(event, []).append(handler)

    def off(self, event: str, handler: Optional[EventHandler] = None) -> None:
        """Remove one handler, or every handler for the event if none given."""
        if handler is None:
            self._handlers.pop(event, None)
            return
        handlers = self._handlers.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self._handlers.get(event, []))

    def dispatch(self, event: str, payload: Any) -> None:
        """Deliver an inbound event to its current handlers."""
        for handler in list(self._handlers.get(event, [])):
            try:
                handler(payload)
            except Exception:
                logger.exception("Handler for %s event failed", event)
