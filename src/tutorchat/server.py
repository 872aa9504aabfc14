"""FastAPI development backend serving the chat REST API from memory."""

import logging
from typing import Optional

from fastapi import FastAPI, Header, HTTPException
from fastapi.responses import JSONResponse

from .backends.memory import InMemorySessionStore
from .core import CONTEXT_TYPES
from .provider import StoreError
from .schemas import CreateSessionRequest, SendMessageRequest, session_to_dict

logger = logging.getLogger(__name__)

app = FastAPI(title="tutorchat dev backend", version="0.1.0")

# Store cache (created on first request)
_store: InMemorySessionStore | None = None


def _get_store(authorization: Optional[str]) -> InMemorySessionStore:
    """Return the shared store acting for the caller's bearer token."""
    global _store
    if _store is None:
        _store = InMemorySessionStore()
        logger.info("Created in-memory session store")

    user = "anonymous"
    if authorization and authorization.lower().startswith("bearer "):
        user = authorization[len("bearer "):].strip() or user
    return _store.for_user(user)


# ── Routes ───────────────────────────────────────────────────────


@app.get("/api/chat/sessions")
async def list_sessions(authorization: Optional[str] = Header(None)):
    """Return the caller's active sessions, most recent first."""
    sessions = await _get_store(authorization).list_sessions()
    return {"sessions": [session_to_dict(s) for s in sessions[:20]]}


@app.post("/api/chat/sessions", status_code=201)
async def create_session(body: CreateSessionRequest, authorization: Optional[str] = Header(None)):
    """Create a session, or resume the caller's session for the same context."""
    if not body.title:
        raise HTTPException(status_code=400, detail="Title is required")
    if body.context_type not in CONTEXT_TYPES:
        raise HTTPException(status_code=400, detail=f"Unknown context type: {body.context_type}")

    session = await _get_store(authorization).create_or_resume_session(
        body.title, body.context_type, body.context_id
    )
    return {"message": "Chat session created successfully", "session": session_to_dict(session)}


@app.get("/api/chat/sessions/{session_id}")
async def get_session(session_id: str, authorization: Optional[str] = Header(None)):
    try:
        session = await _get_store(authorization).get_session(session_id)
    except StoreError:
        raise HTTPException(status_code=404, detail="Chat session not found")
    return {"session": session_to_dict(session)}


@app.post("/api/chat/sessions/{session_id}/messages")
async def send_message(session_id: str, body: SendMessageRequest, authorization: Optional[str] = Header(None)):
    """Persist a user message and answer it (the fallback channel)."""
    if not body.content:
        raise HTTPException(status_code=400, detail="Message content is required")

    try:
        reply = await _get_store(authorization).send_message_fallback(session_id, body.content)
    except StoreError:
        raise HTTPException(status_code=404, detail="Chat session not found")

    return {
        "message": "Message sent successfully",
        "response": {
            "content": reply.content,
            "timestamp": reply.timestamp.isoformat() if reply.timestamp else None,
            "metadata": reply.metadata,
        },
    }


@app.delete("/api/chat/sessions/{session_id}")
async def delete_session(session_id: str, authorization: Optional[str] = Header(None)):
    try:
        await _get_store(authorization).delete_session(session_id)
    except StoreError:
        raise HTTPException(status_code=404, detail="Chat session not found")
    return JSONResponse({"message": "Chat session deleted successfully"})
