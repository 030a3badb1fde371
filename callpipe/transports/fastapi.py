"""Transport adapter for FastAPI/Starlette WebSockets."""

from __future__ import annotations

from fastapi import WebSocket, WebSocketDisconnect
from loguru import logger

from callpipe.transports.base import BaseTransport, TransportClosed


class FastAPIWebSocketTransport(BaseTransport):
    """Makes an accepted FastAPI WebSocket look like a BaseTransport."""

    def __init__(self, ws: WebSocket) -> None:
        self._ws = ws
        self._connected = True

    async def recv(self) -> bytes | str:
        try:
            msg = await self._ws.receive()
        except (WebSocketDisconnect, RuntimeError) as e:
            self._connected = False
            raise TransportClosed(str(e)) from e

        if msg["type"] == "websocket.disconnect":
            self._connected = False
            raise TransportClosed(f"code={msg.get('code')}")
        if msg.get("text") is not None:
            return msg["text"]
        if msg.get("bytes") is not None:
            return msg["bytes"]
        return ""

    async def disconnect(self) -> None:
        if not self._connected:
            return
        self._connected = False
        try:
            await self._ws.close()
        except RuntimeError as e:
            logger.debug(f"WebSocket already closed: {e}")

    def is_connected(self) -> bool:
        return self._connected
