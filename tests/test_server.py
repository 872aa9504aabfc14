"""Tests for the FastAPI development backend."""

import pytest
from httpx import ASGITransport, AsyncClient

import tutorchat.server as srv
from tutorchat.server import app


@pytest.fixture(autouse=True)
def reset_store_cache():
    """Reset the store cache before each test."""
    srv._store = None
    yield
    srv._store = None


def _client(token="learner-1"):
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test", headers=headers)


async def _create(client, context_type="topic", context_id="topic-42"):
    resp = await client.post(
        "/api/chat/sessions",
        json={"title": "Topic Discussion", "contextType": context_type, "contextId": context_id},
    )
    assert resp.status_code == 201
    return resp.json()["session"]


@pytest.mark.asyncio
async def test_create_session():
    async with _client() as client:
        session = await _create(client)
        assert session["id"]
        assert session["title"] == "Topic Discussion"
        assert session["contextType"] == "topic"
        assert session["contextId"] == "topic-42"
        assert session["messages"] == []


@pytest.mark.asyncio
async def test_create_resumes_same_context():
    async with _client() as client:
        first = await _create(client)
        second = await _create(client)
        other = await _create(client, context_id="topic-43")
        assert first["id"] == second["id"]
        assert other["id"] != first["id"]


@pytest.mark.asyncio
async def test_sessions_are_per_user():
    async with _client("alice") as alice, _client("bob") as bob:
        a = await _create(alice)
        b = await _create(bob)
        assert a["id"] != b["id"]
        resp = await bob.get(f"/api/chat/sessions/{a['id']}")
        assert resp.status_code == 404


@pytest.mark.asyncio
async def test_create_requires_title():
    async with _client() as client:
        resp = await client.post("/api/chat/sessions", json={"contextType": "general"})
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Title is required"


@pytest.mark.asyncio
async def test_create_rejects_unknown_context():
    async with _client() as client:
        resp = await client.post("/api/chat/sessions", json={"title": "x", "contextType": "quiz"})
        assert resp.status_code == 400


@pytest.mark.asyncio
async def test_send_message_returns_reply_and_persists_both():
    async with _client() as client:
        session = await _create(client)
        resp = await client.post(f"/api/chat/sessions/{session['id']}/messages", json={"content": "hello"})
        assert resp.status_code == 200
        reply = resp.json()["response"]
        assert reply["content"]
        assert reply["timestamp"]
        assert reply["metadata"]["model"] == "loopback"

        resp = await client.get(f"/api/chat/sessions/{session['id']}")
        messages = resp.json()["session"]["messages"]
        assert [m["role"] for m in messages] == ["user", "assistant"]
        assert messages[0]["content"] == "hello"


@pytest.mark.asyncio
async def test_send_message_validation():
    async with _client() as client:
        session = await _create(client)
        resp = await client.post(f"/api/chat/sessions/{session['id']}/messages", json={})
        assert resp.status_code == 400
        resp = await client.post("/api/chat/sessions/nope/messages", json={"content": "hi"})
        assert resp.status_code == 404


@pytest.mark.asyncio
async def test_list_and_delete():
    async with _client() as client:
        first = await _create(client)
        second = await _create(client, context_type="general", context_id=None)
        resp = await client.get("/api/chat/sessions")
        ids = [s["id"] for s in resp.json()["sessions"]]
        assert set(ids) == {first["id"], second["id"]}

        resp = await client.delete(f"/api/chat/sessions/{first['id']}")
        assert resp.status_code == 200
        resp = await client.delete(f"/api/chat/sessions/{first['id']}")
        assert resp.status_code == 404

        resp = await client.get("/api/chat/sessions")
        assert [s["id"] for s in resp.json()["sessions"]] == [second["id"]]
