"""Real-time transport over the platform's Socket.IO server.

Client → server: ``join_chat_session``, ``leave_chat_session``,
``send_message``. Server → client: ``new_message``, ``ai_typing`` and
``error``. Emits are scheduled as tasks so room changes and sends stay
fire-and-forget for the engine.
"""

import asyncio
import logging
from typing import Any, Optional

import socketio
from socketio.exceptions import ConnectionError as SocketConnectionError

from ..config import get_socket_url
from ..provider import AI_TYPING, NEW_MESSAGE, TransportClient, TransportError

logger = logging.getLogger(__name__)


class SocketIOTransport(TransportClient):
    name = "socketio"

    def __init__(self, url: Optional[str] = None, client: Optional[socketio.AsyncClient] = None):
        super().__init__()
        self.url = url or get_socket_url()
        self._sio = client or socketio.AsyncClient(
            reconnection=True,
            reconnection_attempts=5,
            reconnection_delay=1,
        )
        self._tasks: set[asyncio.Task] = set()
        self._warned = False

        self._sio.on("connect", self._on_connect)
        self._sio.on("disconnect", self._on_disconnect)
        self._sio.on("connect_error", self._on_connect_error)
        self._sio.on("error", self._on_error)
        self._sio.on(NEW_MESSAGE, self._on_new_message)
        self._sio.on(AI_TYPING, self._on_ai_typing)

    @property
    def connected(self) -> bool:
        return bool(self._sio.connected)

    async def connect(self, token: Optional[str] = None, wait_timeout: float = 20) -> None:
        """Open the shared connection. Raises TransportError on failure."""
        if self.connected:
            return
        try:
            await self._sio.connect(
                self.url,
                auth={"token": token} if token else None,
                transports=["websocket", "polling"],
                wait_timeout=wait_timeout,
            )
        except SocketConnectionError as e:
            raise TransportError(f"Could not connect to {self.url}: {e}") from e

    async def disconnect(self) -> None:
        await self._sio.disconnect()

    def join_room(self, session_id: str) -> None:
        self._emit("join_chat_session", session_id)

    def leave_room(self, session_id: str) -> None:
        self._emit("leave_chat_session", session_id)

    def send(self, session_id: str, text: str) -> None:
        if not self.connected:
            raise TransportError("Socket is not connected")
        self._emit("send_message", {"sessionId": session_id, "content": text})

    async def drain(self) -> None:
        """Wait for scheduled emits to finish."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    # ── Private helpers ──────────────────────────────────────────────

    def _emit(self, event: str, data: Any) -> None:
        task = asyncio.get_running_loop().create_task(self._sio.emit(event, data))
        self._tasks.add(task)
        task.add_done_callback(self._emit_done)

    def _emit_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("Socket emit failed: %s", task.exception())

    def _on_connect(self) -> None:
        logger.info("Connected to %s", self.url)
        self._warned = False

    def _on_disconnect(self, *args: Any) -> None:
        logger.info("Disconnected from %s %s", self.url, args[0] if args else "")

    def _on_connect_error(self, data: Any = None) -> None:
        # chat keeps working over HTTP, so warn once rather than on every retry
        if not self._warned:
            logger.warning("Socket connection failed, falling back to HTTP: %s", data)
            self._warned = True

    def _on_error(self, data: Any = None) -> None:
        logger.error("Socket error: %s", data)

    def _on_new_message(self, data: Any) -> None:
        self.dispatch(NEW_MESSAGE, data)

    def _on_ai_typing(self, data: Any) -> None:
        self.dispatch(AI_TYPING, data)
