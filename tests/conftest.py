"""Shared test fixtures for tutorchat."""

from datetime import datetime, timezone

import pytest

from tutorchat.backends.memory import InMemorySessionStore, LoopbackTransport
from tutorchat.core import ChatSession, Message
from tutorchat.widget import ChatWidget


@pytest.fixture
def store():
    """An empty in-memory session store."""
    return InMemorySessionStore(user_id="learner-1")


@pytest.fixture
def transport(store):
    """A connected loopback transport answering from ``store``."""
    return LoopbackTransport(store)


@pytest.fixture
def offline_transport():
    """A transport that reports itself disconnected."""
    return LoopbackTransport(connected=False)


@pytest.fixture
def make_widget(store, transport):
    """Build widgets that share one store and one transport."""

    def _make(context_type="general", context_id=None, transport_=None):
        return ChatWidget(store, transport_ or transport, context_type=context_type, context_id=context_id)

    return _make


@pytest.fixture
def history():
    """Persisted history as the store would return it."""
    return [
        Message(
            role="user",
            content="What is a closure?",
            timestamp=datetime(2025, 1, 15, 10, 0, 0, tzinfo=timezone.utc),
        ),
        Message(
            role="assistant",
            content="A closure is a function that remembers the scope it was defined in.",
            timestamp=datetime(2025, 1, 15, 10, 0, 5, tzinfo=timezone.utc),
            metadata={"model": "tutor-large", "tokens": 42, "responseTime": 812},
        ),
    ]


@pytest.fixture
def seeded_store(store, history):
    """A store holding one topic session with two messages of history."""
    session = ChatSession(
        id="s-topic",
        context_type="topic",
        context_id="topic-42",
        title="Topic Discussion",
        messages=list(history),
        last_message_at=history[-1].timestamp,
        total_messages=len(history),
    )
    store.sessions[session.id] = session
    store._owners[session.id] = store.user_id
    return store


@pytest.fixture
def new_message():
    """Build a raw ``new_message`` payload as the server sends it."""

    def _payload(session_id, role="assistant", content="Here's a simpler way to see it.", **extra):
        message = {"role": role, "content": content, "timestamp": "2025-01-15T10:01:00.000Z"}
        message.update(extra)
        return {"sessionId": session_id, "message": message}

    return _payload
