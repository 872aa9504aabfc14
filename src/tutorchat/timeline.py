"""The message timeline rendered by a chat widget.

Three producers feed it: the optimistic echo of what the user typed,
messages pushed over the real-time channel, and replies returned by the
fallback HTTP call. The timeline is append-only and never matches an
incoming message against an echo. Duplicates are ruled out upstream:
the dispatcher uses exactly one channel per send, so each send yields
one echo plus one server message.
"""

import logging
from typing import Callable, Optional

from .core import Message, utcnow

logger = logging.getLogger(__name__)

AppendListener = Callable[[Message], None]


class MessageTimeline:
    """Insertion-ordered message list bound to at most one session."""

    def __init__(self):
        self._messages: list[Message] = []
        self._listeners: list[AppendListener] = []
        self.bound_session_id: Optional[str] = None

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    def __len__(self) -> int:
        return len(self._messages)

    def bind(self, session_id: Optional[str]) -> None:
        self.bound_session_id = session_id

    def seed(self, initial: list[Message], session_id: Optional[str] = None) -> None:
        """Replace the whole list with persisted history."""
        self._messages = list(initial)
        if session_id is not None:
            self.bound_session_id = session_id
        logger.debug("Seeded timeline for %s with %d messages", self.bound_session_id, len(self._messages))

    def append_local_echo(self, content: str) -> Message:
        """Show the user's own message before the server has seen it."""
        message = Message.user(content, timestamp=utcnow())
        self._append(message)
        return message

    def append_from_channel(self, message: Message, session_id: Optional[str] = None) -> bool:
        """Append a server-delivered message to the tail.

        A message tagged for another session is ignored. Returns whether
        it was appended.
        """
        if session_id is not None and session_id != self.bound_session_id:
            logger.debug("Ignoring message for session %s (bound: %s)", session_id, self.bound_session_id)
            return False
        self._append(message)
        return True

    def add_listener(self, listener: AppendListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: AppendListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _append(self, message: Message) -> None:
        self._messages.append(message)
        for listener in list(self._listeners):
            listener(message)
