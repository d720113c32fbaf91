"""Connection handles tracked by the registry.

The router only needs three things from a socket: whether it is open right
now, a way to send a text frame, and a way to close it. ``Connection`` is
that contract; ``WebSocketConnection`` adapts a FastAPI/Starlette WebSocket.
"""

import asyncio
import logging
from typing import Optional, Protocol

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from robot_relay.exceptions import TransportError

logger = logging.getLogger(__name__)


class Connection(Protocol):
    @property
    def label(self) -> str: ...

    @property
    def is_open(self) -> bool: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None: ...


class WebSocketConnection:
    """Registry handle wrapping an accepted FastAPI WebSocket."""

    def __init__(self, websocket: WebSocket, role: str):
        self.websocket = websocket
        self.role = role
        client = websocket.client
        peer = f"{client.host}:{client.port}" if client else "unknown"
        self._label = f"{role}@{peer}"
        # one writer at a time: a unicast reply and a broadcast may race
        self._send_lock = asyncio.Lock()

    @property
    def label(self) -> str:
        return self._label

    @property
    def is_open(self) -> bool:
        return (
            self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
        )

    async def send_text(self, data: str) -> None:
        async with self._send_lock:
            if not self.is_open:
                raise TransportError("connection is not open", connection=self._label)
            try:
                await self.websocket.send_text(data)
            except Exception as e:
                raise TransportError(f"send failed: {e}", connection=self._label) from e

    async def close(self, code: int = 1000, reason: Optional[str] = None) -> None:
        async with self._send_lock:
            if self.websocket.application_state == WebSocketState.DISCONNECTED:
                return
            try:
                await self.websocket.close(code=code, reason=reason)
            except Exception as e:
                raise TransportError(f"close failed: {e}", connection=self._label) from e
        logger.debug(f"Closed {self._label} ({code})")

    def __repr__(self) -> str:
        return f"<WebSocketConnection {self._label}>"
