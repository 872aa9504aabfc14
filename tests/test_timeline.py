"""Tests for the message timeline."""

from datetime import datetime, timezone

import pytest

from tutorchat.core import Message
from tutorchat.timeline import MessageTimeline


@pytest.fixture
def timeline():
    t = MessageTimeline()
    t.bind("s1")
    return t


class TestMessageTimeline:
    def test_seed_replaces_wholesale(self, timeline, history):
        timeline.append_local_echo("stale")
        timeline.seed(history, session_id="s1")
        assert list(timeline.messages) == history

    def test_seed_with_empty_history(self, timeline):
        timeline.seed([], session_id="s1")
        assert len(timeline) == 0

    def test_local_echo_is_user_with_client_time(self, timeline):
        before = datetime.now(timezone.utc)
        echo = timeline.append_local_echo("hello")
        assert echo.role == "user"
        assert echo.content == "hello"
        assert echo.timestamp >= before
        assert timeline.messages[-1] is echo

    def test_channel_messages_append_to_tail_in_arrival_order(self, timeline):
        early = Message.assistant("first", timestamp=datetime(2025, 1, 1, tzinfo=timezone.utc))
        late = Message.assistant("second", timestamp=datetime(2024, 1, 1, tzinfo=timezone.utc))
        timeline.append_from_channel(early, session_id="s1")
        timeline.append_from_channel(late, session_id="s1")
        # never re-sorted by timestamp
        assert [m.content for m in timeline.messages] == ["first", "second"]

    def test_no_identity_matching_against_echo(self, timeline):
        timeline.append_local_echo("hello")
        timeline.append_from_channel(Message.user("hello"), session_id="s1")
        assert [m.content for m in timeline.messages] == ["hello", "hello"]

    def test_other_session_is_ignored(self, timeline):
        appended = timeline.append_from_channel(Message.assistant("wrong room"), session_id="s2")
        assert appended is False
        assert len(timeline) == 0

    def test_unbound_timeline_ignores_tagged_messages(self):
        timeline = MessageTimeline()
        assert timeline.append_from_channel(Message.assistant("x"), session_id="s1") is False

    def test_snapshot_is_read_only(self, timeline):
        timeline.append_local_echo("hello")
        snapshot = timeline.messages
        timeline.append_local_echo("again")
        assert len(snapshot) == 1
        with pytest.raises(Exception):
            snapshot[0].content = "edited"

    def test_listeners_see_each_append(self, timeline):
        seen = []
        timeline.add_listener(seen.append)
        timeline.append_local_echo("hello")
        timeline.append_from_channel(Message.assistant("hi"), session_id="s1")
        timeline.remove_listener(seen.append)
        timeline.append_local_echo("unseen")
        assert [m.content for m in seen] == ["hello", "hi"]
