"""In-process chat backend: a session store and a loopback transport.

Used by the development server, the ``--offline`` CLI mode and the test
suite. The loopback transport mimics the platform's Socket.IO server:
events for a session are only delivered once its room has been joined,
and typing is announced before the tutor's reply.
"""

import asyncio
import copy
import itertools
import logging
from typing import Callable, Optional

from ..core import ChatSession, Message, utcnow
from ..provider import AI_TYPING, NEW_MESSAGE, StoreError, SessionStore, TransportClient
from ..schemas import message_to_dict

logger = logging.getLogger(__name__)

Responder = Callable[[ChatSession, str], str]


def default_responder(session: ChatSession, text: str) -> str:
    """Canned tutor reply; response generation is not part of this engine."""
    if session.context_type == "general":
        return f"Let's think about that together: {text}"
    label = session.context_type.replace("_", " ")
    return f"Good question about this {label}. Let's break it down: {text}"


class InMemorySessionStore(SessionStore):
    """Dict-backed store keyed by (user, context type, context id)."""

    def __init__(self, user_id: str = "local", responder: Responder = default_responder):
        self.user_id = user_id
        self.responder = responder
        self.sessions: dict[str, ChatSession] = {}
        self._owners: dict[str, str] = {}
        self._ids = itertools.count(1)
        self.fail_next: Optional[Exception] = None

    def for_user(self, user_id: str) -> "InMemorySessionStore":
        """A view of the same data acting on behalf of another user."""
        view = copy.copy(self)
        view.user_id = user_id
        return view

    async def create_or_resume_session(
        self, title: str, context_type: str, context_id: Optional[str]
    ) -> ChatSession:
        self._maybe_fail()
        for session_id, session in self.sessions.items():
            if (
                self._owners.get(session_id) == self.user_id
                and session.context_type == context_type
                and session.context_id == context_id
                and session.is_active
            ):
                logger.debug("Resuming session %s for %s", session_id, self.user_id)
                return _copy(session)

        session_id = f"s{next(self._ids)}"
        session = ChatSession(
            id=session_id,
            context_type=context_type,
            context_id=context_id,
            title=title,
            last_message_at=utcnow(),
        )
        self.sessions[session_id] = session
        self._owners[session_id] = self.user_id
        logger.info("Created session %s (%s) for %s", session_id, context_type, self.user_id)
        return _copy(session)

    async def send_message_fallback(self, session_id: str, text: str) -> Message:
        self._maybe_fail()
        return self.record_exchange(session_id, text)

    async def list_sessions(self) -> list[ChatSession]:
        owned = [
            _copy(s) for sid, s in self.sessions.items()
            if self._owners.get(sid) == self.user_id and s.is_active
        ]
        owned.sort(key=lambda s: s.last_message_at or utcnow(), reverse=True)
        return owned

    async def get_session(self, session_id: str) -> ChatSession:
        return _copy(self._owned(session_id))

    async def delete_session(self, session_id: str) -> None:
        self._owned(session_id)
        del self.sessions[session_id]
        del self._owners[session_id]

    def record_exchange(self, session_id: str, text: str) -> Message:
        """Persist a user message and the tutor's reply; return the reply."""
        session = self._owned(session_id)
        session.messages.append(Message.user(text))
        reply = Message.assistant(
            self.responder(session, text),
            metadata={"model": "loopback", "tokens": len(text.split())},
        )
        session.messages.append(reply)
        session.total_messages = len(session.messages)
        session.last_message_at = reply.timestamp
        return reply

    def _owned(self, session_id: str) -> ChatSession:
        session = self.sessions.get(session_id)
        if session is None or self._owners.get(session_id) != self.user_id:
            raise StoreError(f"Chat session not found: {session_id}")
        return session

    def _maybe_fail(self) -> None:
        if self.fail_next is not None:
            error, self.fail_next = self.fail_next, None
            raise error


def _copy(session: ChatSession) -> ChatSession:
    return ChatSession(
        id=session.id,
        context_type=session.context_type,
        context_id=session.context_id,
        title=session.title,
        messages=list(session.messages),
        is_active=session.is_active,
        last_message_at=session.last_message_at,
        total_messages=session.total_messages,
    )


class LoopbackTransport(TransportClient):
    """Real-time channel that answers from an InMemorySessionStore."""

    name = "loopback"

    def __init__(self, store: Optional[InMemorySessionStore] = None, connected: bool = True):
        super().__init__()
        self.store = store
        self.rooms: set[str] = set()
        self.sent: list[tuple[str, str]] = []
        self._connected = connected
        self._tasks: set[asyncio.Task] = set()

    @property
    def connected(self) -> bool:
        return self._connected

    def connect(self) -> None:
        self._connected = True

    def disconnect(self) -> None:
        self._connected = False
        self.rooms.clear()

    def join_room(self, session_id: str) -> None:
        self.rooms.add(session_id)

    def leave_room(self, session_id: str) -> None:
        self.rooms.discard(session_id)

    def send(self, session_id: str, text: str) -> None:
        self.sent.append((session_id, text))
        if self.store is None:
            return
        task = asyncio.get_running_loop().create_task(self._respond(session_id, text))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def emit_to_room(self, session_id: str, event: str, payload: dict) -> None:
        """Deliver a server event the way a room broadcast would."""
        if session_id in self.rooms:
            self.dispatch(event, payload)

    async def drain(self) -> None:
        """Wait for every scheduled reply to be delivered."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def _respond(self, session_id: str, text: str) -> None:
        await asyncio.sleep(0)
        self.dispatch(AI_TYPING, {"sessionId": session_id, "isTyping": True})
        try:
            reply = self.store.record_exchange(session_id, text)
        except StoreError as e:
            logger.error("Loopback failed to answer %s: %s", session_id, e)
            self.dispatch(AI_TYPING, {"sessionId": session_id, "isTyping": False})
            return
        await asyncio.sleep(0)
        self.dispatch(AI_TYPING, {"sessionId": session_id, "isTyping": False})
        self.emit_to_room(session_id, NEW_MESSAGE, {"sessionId": session_id, "message": message_to_dict(reply)})
