"""Lifecycle of the one chat session owned by a widget.

The controller creates or resumes the session through the store, seeds
the timeline with its history, binds it to the transport room, and
listens for the two channel events. Teardown leaves the room and always
removes the listeners: once they are gone, late events for this widget
are never observed.
"""

import logging
from typing import Any, Callable, Optional

from .core import ChatSession, session_title
from .provider import AI_TYPING, NEW_MESSAGE, SessionStore, TransportClient
from .schemas import parse_new_message, parse_typing
from .timeline import MessageTimeline
from .typing_indicator import TypingIndicator

logger = logging.getLogger(__name__)


class SessionController:
    def __init__(
        self,
        store: SessionStore,
        transport: TransportClient,
        timeline: MessageTimeline,
        typing: TypingIndicator,
        on_confirmed: Optional[Callable[[], None]] = None,
        on_unbound: Optional[Callable[[], None]] = None,
    ):
        self.store = store
        self.transport = transport
        self.timeline = timeline
        self.typing = typing
        self.on_confirmed = on_confirmed
        self.on_unbound = on_unbound
        self.session: Optional[ChatSession] = None
        self.discarded_events = 0
        self._listening = False
        self._closed = False

    @property
    def session_id(self) -> Optional[str]:
        return self.session.id if self.session else None

    @property
    def is_bound(self) -> bool:
        return self.session is not None

    async def initialize(self, context_type: str, context_id: Optional[str] = None) -> Optional[ChatSession]:
        """Create or resume the session for this context and bind it.

        Returns None when the store fails or the controller was torn down
        while waiting on it.
        """
        self._closed = False
        self._listen()

        title = session_title(context_type)
        try:
            session = await self.store.create_or_resume_session(title, context_type, context_id)
        except Exception as e:
            logger.error("Failed to initialize chat (%s %s): %s", context_type, context_id, e)
            self._unbind()
            return None

        if self._closed:
            logger.debug("Widget closed while session %s was loading; dropping it", session.id)
            return None

        if self.session_id and self.session_id != session.id:
            self._unbind()

        self.session = session
        self.timeline.seed(list(session.messages), session_id=session.id)
        self.typing.active_session_id = session.id

        if self.transport.connected:
            self.transport.join_room(session.id)
        else:
            logger.info("Transport offline; session %s will use the fallback channel", session.id)

        logger.info("Chat session %s ready (%d messages)", session.id, len(session.messages))
        return session

    def teardown(self) -> None:
        """Unbind the session and stop observing channel events."""
        self._closed = True
        self._unbind()
        if self._listening:
            self.transport.off(NEW_MESSAGE, self._handle_new_message)
            self.transport.off(AI_TYPING, self._handle_typing)
            self._listening = False

    def _unbind(self) -> None:
        session_id = self.session_id
        if session_id and self.transport.connected:
            self.transport.leave_room(session_id)
        self.session = None
        self.timeline.bind(None)
        self.typing.reset()
        # nothing sent for the old session can be confirmed any more
        if self.on_unbound:
            self.on_unbound()

    # ── Channel handlers ─────────────────────────────────────────────

    def _listen(self) -> None:
        if self._listening:
            return
        self.transport.on(NEW_MESSAGE, self._handle_new_message)
        self.transport.on(AI_TYPING, self._handle_typing)
        self._listening = True

    def _handle_new_message(self, payload: Any) -> None:
        event = parse_new_message(payload)
        if event is None:
            self.discarded_events += 1
            return
        if event.session_id != self.session_id:
            return
        if self.timeline.append_from_channel(event.message.to_message(), session_id=event.session_id):
            if self.on_confirmed:
                self.on_confirmed()

    def _handle_typing(self, payload: Any) -> None:
        event = parse_typing(payload)
        if event is None:
            self.discarded_events += 1
            return
        self.typing.apply(event)
