"""A chat widget instance: one session, one timeline, one input field."""

import logging
from typing import Optional

from .core import ChatSession, Message, quick_actions, session_title
from .dispatcher import DeliveryDispatcher, SendResult
from .formatting import safe_format_timestamp
from .provider import SessionStore, TransportClient
from .session import SessionController
from .timeline import MessageTimeline
from .typing_indicator import TypingIndicator

logger = logging.getLogger(__name__)

GREETING = "Hi! I'm your AI tutor. How can I help you today?"


class ChatWidget:
    """Wires the session controller, timeline, typing indicator and dispatcher.

    The store and transport are injected. The transport is shared with
    other widgets, so the widget only joins and leaves its own room and
    never connects or disconnects it.
    """

    def __init__(
        self,
        store: SessionStore,
        transport: TransportClient,
        context_type: str = "general",
        context_id: Optional[str] = None,
    ):
        self.context_type = context_type
        self.context_id = context_id
        self.input_text = ""
        self.is_open = False

        self.timeline = MessageTimeline()
        self.typing = TypingIndicator()
        self.controller = SessionController(store, transport, self.timeline, self.typing)
        self.dispatcher = DeliveryDispatcher(self.controller, store, transport, self.timeline)
        self.controller.on_confirmed = self.dispatcher.confirm
        self.controller.on_unbound = self.dispatcher.reset

    # ── Lifecycle ────────────────────────────────────────────────────

    async def open(self) -> Optional[ChatSession]:
        self.is_open = True
        return await self.controller.initialize(self.context_type, self.context_id)

    def close(self) -> None:
        self.is_open = False
        self.controller.teardown()

    # ── Input ────────────────────────────────────────────────────────

    def set_input(self, text: str) -> None:
        self.input_text = text

    def apply_quick_action(self, index: int) -> str:
        """Fill the input field with the prompt of a quick action."""
        actions = self.quick_actions
        if not 0 <= index < len(actions):
            raise IndexError(f"No quick action {index} for {self.context_type}")
        self.input_text = actions[index][1]
        return self.input_text

    async def submit(self) -> SendResult:
        return await self.dispatcher.send(self.input_text, on_accept=self._clear_input)

    def _clear_input(self) -> None:
        self.input_text = ""

    # ── State ────────────────────────────────────────────────────────

    @property
    def session_id(self) -> Optional[str]:
        return self.controller.session_id

    @property
    def title(self) -> str:
        return session_title(self.context_type)

    @property
    def messages(self) -> tuple[Message, ...]:
        return self.timeline.messages

    @property
    def is_typing(self) -> bool:
        return self.typing.visible

    @property
    def is_sending(self) -> bool:
        return self.dispatcher.pending

    @property
    def can_submit(self) -> bool:
        return self.dispatcher.can_send(self.input_text)

    @property
    def quick_actions(self) -> list[tuple[str, str]]:
        return quick_actions(self.context_type)

    @property
    def context_hint(self) -> Optional[str]:
        if self.context_type == "general":
            return None
        label = self.context_type.replace("_", " ")
        return f"I'm here to help with your current {label}. Ask me anything!"

    def render(self) -> list[str]:
        """Plain-text rendering of the visible timeline."""
        if not self.timeline.messages:
            lines = [GREETING]
        else:
            lines = [format_message_line(m) for m in self.timeline.messages]
        if self.is_typing:
            lines.append("Tutor is typing...")
        return lines


def format_message_line(message: Message) -> str:
    speaker = "You" if message.role == "user" else "Tutor"
    stamp = safe_format_timestamp(message.timestamp)
    prefix = f"[{stamp}] " if stamp else ""
    return f"{prefix}{speaker}: {message.content}"
