"""Outgoing message delivery.

Each send goes over exactly one channel, picked at the moment of sending:
the real-time transport when it reports itself connected, the HTTP
fallback otherwise. The choice is never cached, so a widget follows the
connection as it drops and recovers. Because only one channel is used,
the timeline gets one optimistic echo plus one server message per send
and never needs to reconcile the two.
"""

import enum
import logging
from typing import Callable, Optional

from .provider import SessionStore, TransportClient
from .session import SessionController
from .timeline import MessageTimeline

logger = logging.getLogger(__name__)


class SendResult(enum.Enum):
    REJECTED = "rejected"  # empty text, no session, or a send already pending
    DISPATCHED = "dispatched"  # handed to the real-time channel
    DELIVERED = "delivered"  # fallback reply appended
    FAILED = "failed"


class DeliveryDispatcher:
    def __init__(
        self,
        controller: SessionController,
        store: SessionStore,
        transport: TransportClient,
        timeline: MessageTimeline,
    ):
        self.controller = controller
        self.store = store
        self.transport = transport
        self.timeline = timeline
        self.pending = False
        self.last_error: Optional[Exception] = None
        self._generation = 0

    def can_send(self, text: str) -> bool:
        return bool(text and text.strip()) and self.controller.is_bound and not self.pending

    async def send(self, text: str, on_accept: Optional[Callable[[], None]] = None) -> SendResult:
        """Send one user message. Never raises; failures are logged."""
        if not self.can_send(text):
            return SendResult.REJECTED

        message = text.strip()
        session_id = self.controller.session_id
        if on_accept:
            on_accept()

        self.pending = True
        self.last_error = None
        self.timeline.append_local_echo(message)

        if self.transport.connected:
            try:
                self.transport.send(session_id, message)
            except Exception as e:
                logger.error("Failed to send message over %s: %s", self.transport.name, e)
                self._fail(e)
                return SendResult.FAILED
            return SendResult.DISPATCHED

        return await self._send_fallback(session_id, message)

    def confirm(self) -> None:
        """Called when the real-time channel delivers for the pending send."""
        if self.pending:
            logger.debug("Pending send confirmed for %s", self.controller.session_id)
        self.pending = False

    def reset(self) -> None:
        """Abandon any outstanding send when the session is unbound."""
        if self.pending:
            logger.debug("Abandoning pending send")
        self.pending = False
        self._generation += 1

    async def _send_fallback(self, session_id: str, message: str) -> SendResult:
        generation = self._generation
        try:
            reply = await self.store.send_message_fallback(session_id, message)
        except Exception as e:
            logger.error("Failed to send message: %s", e)
            if generation == self._generation:
                self._fail(e)
            return SendResult.FAILED

        if generation != self._generation or self.controller.session_id != session_id:
            # widget closed or switched sessions while we were waiting
            logger.debug("Dropping fallback reply for unbound session %s", session_id)
            return SendResult.FAILED

        self.timeline.append_from_channel(reply)
        self.pending = False
        return SendResult.DELIVERED

    def _fail(self, error: Exception) -> None:
        self.last_error = error
        self.pending = False
