"""Concrete collaborators and a helper to pick them for a run."""

import logging
from typing import Optional

from ..provider import SessionStore, TransportClient, TransportError
from .memory import InMemorySessionStore, LoopbackTransport
from .rest import HttpSessionStore
from .socketio_transport import SocketIOTransport

logger = logging.getLogger(__name__)


def get_offline_backends() -> tuple[InMemorySessionStore, LoopbackTransport]:
    """An in-process store with a connected loopback transport in front of it."""
    store = InMemorySessionStore()
    return store, LoopbackTransport(store)


async def get_remote_backends(
    api_url: Optional[str] = None,
    socket_url: Optional[str] = None,
    token: Optional[str] = None,
    realtime: bool = True,
) -> tuple[SessionStore, TransportClient]:
    """The platform's REST store plus its Socket.IO transport.

    A transport that fails to connect is still returned: it reports
    itself disconnected and every send takes the HTTP fallback.
    """
    store = HttpSessionStore(api_url=api_url, token=token)
    transport = SocketIOTransport(url=socket_url)
    if realtime:
        try:
            await transport.connect(store.token)
        except TransportError as e:
            logger.warning("%s; using HTTP fallback only", e)
    return store, transport


__all__ = [
    "HttpSessionStore",
    "InMemorySessionStore",
    "LoopbackTransport",
    "SocketIOTransport",
    "get_offline_backends",
    "get_remote_backends",
]
