"""Tests for the channel and REST wire schemas."""

from datetime import datetime, timezone

from tutorchat.core import ChatSession, Message
from tutorchat.schemas import (
    SessionPayload,
    message_to_dict,
    parse_new_message,
    parse_typing,
    session_to_dict,
)


class TestParseNewMessage:
    def test_valid_payload(self, new_message):
        event = parse_new_message(new_message("s1", metadata={"model": "tutor-large"}))
        assert event.session_id == "s1"
        msg = event.message.to_message()
        assert msg.role == "assistant"
        assert msg.timestamp == datetime(2025, 1, 15, 10, 1, tzinfo=timezone.utc)
        assert msg.metadata == {"model": "tutor-large"}

    def test_rejects_missing_session(self):
        assert parse_new_message({"message": {"role": "assistant", "content": "hi"}}) is None

    def test_rejects_unknown_role(self, new_message):
        assert parse_new_message(new_message("s1", role="system")) is None

    def test_rejects_non_dict(self):
        assert parse_new_message("new message!") is None
        assert parse_new_message(None) is None


class TestParseTyping:
    def test_scoped(self):
        event = parse_typing({"sessionId": "s1", "isTyping": True})
        assert event.session_id == "s1"
        assert event.is_typing is True

    def test_unscoped(self):
        assert parse_typing({"isTyping": False}).session_id is None

    def test_requires_explicit_boolean(self):
        assert parse_typing({"sessionId": "s1"}) is None
        assert parse_typing({"sessionId": "s1", "isTyping": "yes"}) is None


class TestSessionPayload:
    def test_drops_unsupported_history_roles(self):
        session = SessionPayload.model_validate({
            "id": "s1",
            "contextType": "module",
            "contextId": "m-7",
            "messages": [
                {"role": "system", "content": "You are a tutor."},
                {"role": "user", "content": "hi", "timestamp": "2025-01-15T10:00:00Z"},
            ],
        }).to_session()
        assert session.context_type == "module"
        assert session.context_id == "m-7"
        assert [m.role for m in session.messages] == ["user"]

    def test_session_round_trip(self, history):
        session = ChatSession(id="s1", context_type="topic", context_id="t1", title="Topic Discussion",
                              messages=history, total_messages=2)
        restored = SessionPayload.model_validate(session_to_dict(session)).to_session()
        assert restored.id == "s1"
        assert restored.messages == history


def test_message_to_dict_omits_empty_metadata():
    data = message_to_dict(Message.user("hi", timestamp=datetime(2025, 1, 15, tzinfo=timezone.utc)))
    assert data == {"role": "user", "content": "hi", "timestamp": "2025-01-15T00:00:00+00:00"}
