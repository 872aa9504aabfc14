"""The "tutor is typing" indicator.

Only channel events move it between idle and typing. There is no
timeout: if the server opens the indicator and never closes it, it stays
on until the widget is torn down.
"""

import logging
from typing import Callable, Optional

from .schemas import TypingEvent

logger = logging.getLogger(__name__)

IDLE = "idle"
TYPING = "typing"


class TypingIndicator:
    def __init__(self):
        self.state = IDLE
        self.active_session_id: Optional[str] = None
        self._listeners: list[Callable[[bool], None]] = []

    @property
    def visible(self) -> bool:
        return self.state == TYPING

    def apply(self, event: TypingEvent) -> bool:
        """Apply an inbound typing event. Returns whether it was accepted.

        Events scoped to a session other than the active one are dropped;
        unscoped events apply to whichever session is active.
        """
        if event.session_id is not None and event.session_id != self.active_session_id:
            logger.debug("Ignoring typing event for session %s", event.session_id)
            return False
        self._set(TYPING if event.is_typing else IDLE)
        return True

    def reset(self) -> None:
        self.active_session_id = None
        self._set(IDLE)

    def add_listener(self, listener: Callable[[bool], None]) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Callable[[bool], None]) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _set(self, state: str) -> None:
        if state == self.state:
            return
        self.state = state
        for listener in list(self._listeners):
            listener(self.visible)
