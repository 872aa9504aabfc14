"""Session store backed by the platform's chat REST API.

Endpoints (relative to the API base URL):
- POST   /chat/sessions                  create or resume a session
- GET    /chat/sessions                  list active sessions
- GET    /chat/sessions/{id}             fetch one session
- POST   /chat/sessions/{id}/messages    fallback send, returns the reply
- DELETE /chat/sessions/{id}

Every failure (network, timeout, non-2xx, unexpected body) is raised as
StoreError so callers only deal with one exception type.
"""

import logging
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from ..config import get_api_url, get_message_timeout, get_request_timeout, get_token
from ..core import ChatSession, Message
from ..provider import SessionStore, StoreError
from ..schemas import FallbackReply, SessionPayload

logger = logging.getLogger(__name__)

INVALID_SESSION_IDS = {"", "undefined", "null"}


class HttpSessionStore(SessionStore):
    def __init__(
        self,
        api_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        message_timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_url = (api_url or get_api_url()).rstrip("/")
        self.token = token if token is not None else get_token()
        self.timeout = timeout if timeout is not None else get_request_timeout()
        self.message_timeout = message_timeout if message_timeout is not None else get_message_timeout()
        self._transport = transport

    async def create_or_resume_session(
        self, title: str, context_type: str, context_id: Optional[str]
    ) -> ChatSession:
        body = {"title": title, "contextType": context_type, "contextId": context_id}
        data = await self._request("POST", "/chat/sessions", json=body)
        return self._parse_session(data.get("session"))

    async def send_message_fallback(self, session_id: str, text: str) -> Message:
        _check_session_id(session_id)
        data = await self._request(
            "POST",
            f"/chat/sessions/{session_id}/messages",
            json={"content": text},
            timeout=self.message_timeout,
        )
        try:
            return FallbackReply.model_validate(data.get("response")).to_message()
        except ValidationError as e:
            raise StoreError(f"Malformed reply for session {session_id}") from e

    async def list_sessions(self) -> list[ChatSession]:
        data = await self._request("GET", "/chat/sessions")
        sessions = []
        for raw in data.get("sessions") or []:
            if not isinstance(raw, dict) or str(raw.get("id")) in INVALID_SESSION_IDS:
                logger.warning("Filtering out session with invalid ID: %r", raw)
                continue
            sessions.append(self._parse_session(raw))
        return sessions

    async def get_session(self, session_id: str) -> ChatSession:
        _check_session_id(session_id)
        data = await self._request("GET", f"/chat/sessions/{session_id}")
        return self._parse_session(data.get("session"))

    async def delete_session(self, session_id: str) -> None:
        _check_session_id(session_id)
        await self._request("DELETE", f"/chat/sessions/{session_id}")

    # ── Private helpers ──────────────────────────────────────────────

    def _client(self, timeout: float) -> httpx.AsyncClient:
        headers = {"Authorization": f"Bearer {self.token}"} if self.token else {}
        return httpx.AsyncClient(
            base_url=self.api_url,
            headers=headers,
            timeout=timeout,
            transport=self._transport,
        )

    async def _request(
        self, method: str, path: str, timeout: Optional[float] = None, **kwargs: Any
    ) -> dict:
        try:
            async with self._client(timeout or self.timeout) as client:
                resp = await client.request(method, path, **kwargs)
                resp.raise_for_status()
                data = resp.json() if resp.content else {}
        except httpx.HTTPStatusError as e:
            raise StoreError(f"{method} {path} failed with {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise StoreError(f"{method} {path} failed: {e}") from e
        except ValueError as e:
            raise StoreError(f"{method} {path} returned invalid JSON") from e

        if not isinstance(data, dict):
            raise StoreError(f"{method} {path} returned an unexpected body")
        return data

    def _parse_session(self, raw: Any) -> ChatSession:
        try:
            session = SessionPayload.model_validate(raw).to_session()
        except ValidationError as e:
            raise StoreError("Malformed session in response") from e
        _check_session_id(session.id)
        return session


def _check_session_id(session_id: Optional[str]) -> None:
    if session_id is None or session_id in INVALID_SESSION_IDS:
        raise StoreError(f"Invalid session ID: {session_id!r}")
