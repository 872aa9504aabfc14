"""Wire schemas for channel events and the chat REST API.

Real-time payloads arrive loosely shaped, so every event goes through
one of these models before it can touch a timeline. Anything that fails
validation is discarded by the caller.
"""

import logging
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, ValidationError

from .core import ChatSession, Message

logger = logging.getLogger(__name__)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class MessagePayload(_WireModel):
    role: Literal["user", "assistant"]
    content: str
    timestamp: Optional[datetime] = None
    metadata: Optional[dict[str, Any]] = None

    def to_message(self) -> Message:
        return Message(
            role=self.role,
            content=self.content,
            timestamp=self.timestamp,
            metadata=self.metadata or None,
        )


class NewMessageEvent(_WireModel):
    """``new_message``: ``{sessionId, message}``."""

    session_id: str = Field(alias="sessionId")
    message: MessagePayload


class TypingEvent(_WireModel):
    """``ai_typing``: ``{sessionId?, isTyping}``."""

    session_id: Optional[str] = Field(default=None, alias="sessionId")
    is_typing: StrictBool = Field(alias="isTyping")


class FallbackReply(_WireModel):
    """The ``response`` object returned by the send-message endpoint."""

    content: str
    timestamp: Optional[datetime] = None
    metadata: Optional[dict[str, Any]] = None

    def to_message(self) -> Message:
        return Message.assistant(self.content, timestamp=self.timestamp, metadata=self.metadata or None)


class SessionPayload(_WireModel):
    id: str
    title: str = ""
    context_type: str = Field(default="general", alias="contextType")
    context_id: Optional[str] = Field(default=None, alias="contextId")
    messages: list[dict[str, Any]] = Field(default_factory=list)
    is_active: bool = Field(default=True, alias="isActive")
    last_message_at: Optional[datetime] = Field(default=None, alias="lastMessageAt")
    total_messages: int = Field(default=0, alias="totalMessages")

    def to_session(self) -> ChatSession:
        messages = []
        for raw in self.messages:
            try:
                messages.append(MessagePayload.model_validate(raw).to_message())
            except ValidationError:
                # history may carry roles this engine does not render, e.g. "system"
                logger.warning("Dropping unsupported history entry in session %s", self.id)
        return ChatSession(
            id=self.id,
            context_type=self.context_type,
            context_id=self.context_id,
            title=self.title,
            messages=messages,
            is_active=self.is_active,
            last_message_at=self.last_message_at,
            total_messages=self.total_messages or len(messages),
        )


class CreateSessionRequest(_WireModel):
    title: Optional[str] = None
    context_type: str = Field(default="general", alias="contextType")
    context_id: Optional[str] = Field(default=None, alias="contextId")


class SendMessageRequest(_WireModel):
    content: Optional[str] = None


def parse_new_message(payload: Any) -> Optional[NewMessageEvent]:
    """Validate a ``new_message`` payload, returning None when malformed."""
    try:
        return NewMessageEvent.model_validate(payload)
    except ValidationError as e:
        logger.warning("Discarding malformed new_message payload: %s", e.error_count())
        return None


def parse_typing(payload: Any) -> Optional[TypingEvent]:
    """Validate an ``ai_typing`` payload, returning None when malformed."""
    try:
        return TypingEvent.model_validate(payload)
    except ValidationError as e:
        logger.warning("Discarding malformed ai_typing payload: %s", e.error_count())
        return None


def message_to_dict(msg: Message) -> dict:
    """Convert a Message to the JSON shape used on both channels."""
    data = {
        "role": msg.role,
        "content": msg.content,
        "timestamp": msg.timestamp.isoformat() if msg.timestamp else None,
    }
    if msg.metadata:
        data["metadata"] = msg.metadata
    return data


def session_to_dict(session: ChatSession) -> dict:
    return {
        "id": session.id,
        "title": session.title,
        "contextType": session.context_type,
        "contextId": session.context_id,
        "messages": [message_to_dict(m) for m in session.messages],
        "isActive": session.is_active,
        "lastMessageAt": session.last_message_at.isoformat() if session.last_message_at else None,
        "totalMessages": session.total_messages,
    }
