"""Core data models for tutorchat."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

ContextType = Literal["topic", "module", "learning_path", "general"]
Role = Literal["user", "assistant"]

CONTEXT_TYPES = ("topic", "module", "learning_path", "general")
ROLES = ("user", "assistant")

SESSION_TITLES = {
    "topic": "Topic Discussion",
    "module": "Module Help",
    "learning_path": "Learning Path Support",
    "general": "General AI Chat",
}

# (label, prompt) pairs offered under the input field
QUICK_ACTIONS = {
    "topic": [
        ("Explain simply", "Can you explain this topic in simpler terms?"),
        ("More examples", "Can you give me more examples?"),
        ("Key points", "What are the key takeaways?"),
    ],
}


def session_title(context_type: str) -> str:
    """Return the human-readable title for a chat opened in this context."""
    return SESSION_TITLES.get(context_type, SESSION_TITLES["general"])


def quick_actions(context_type: str) -> list[tuple[str, str]]:
    """Return the quick-action menu for a context, empty when it has none."""
    return list(QUICK_ACTIONS.get(context_type, []))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Message:
    """A single message in a chat timeline. Immutable once created."""

    role: str  # "user" | "assistant"
    content: str
    timestamp: Optional[datetime] = None
    metadata: Optional[dict] = None  # model, tokens, responseTime (assistant only)

    @classmethod
    def user(cls, content: str, timestamp: Optional[datetime] = None) -> "Message":
        return cls(role="user", content=content, timestamp=timestamp or utcnow())

    @classmethod
    def assistant(
        cls,
        content: str,
        timestamp: Optional[datetime] = None,
        metadata: Optional[dict] = None,
    ) -> "Message":
        return cls(role="assistant", content=content, timestamp=timestamp or utcnow(), metadata=metadata)


@dataclass
class ChatSession:
    """A single tutor conversation, scoped to a learning context."""

    id: str
    context_type: str = "general"
    context_id: Optional[str] = None
    title: str = ""
    messages: list[Message] = field(default_factory=list)
    is_active: bool = True
    last_message_at: Optional[datetime] = None
    total_messages: int = 0
