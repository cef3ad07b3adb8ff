"""WebSocket adapter for the realtime channel."""

import asyncio

from fastapi import WebSocket
from starlette.websockets import WebSocketState

from ..services.interface import LiveTransport


class WebSocketTransport(LiveTransport):
    """LiveTransport over a Starlette/FastAPI WebSocket.

    ASGI hands protocol ping/pong frames to the server, not the application.
    uvicorn runs the keepalive (``ws_ping_interval``/``ws_ping_timeout``, see
    ``main.serve``) and closes a peer that misses a pong, which reaches the
    application as ``websocket.disconnect``. A socket that is still open
    therefore has answered the server's last protocol ping, and that is what
    the pong waiter reports.
    """

    def __init__(self, websocket: WebSocket):
        self.websocket = websocket

    @property
    def peer(self) -> str:
        client = self.websocket.client
        return f"{client.host}:{client.port}" if client else "unknown"

    @property
    def connected(self) -> bool:
        return (
            self.websocket.application_state == WebSocketState.CONNECTED
            and self.websocket.client_state == WebSocketState.CONNECTED
        )

    async def send_text(self, message: str) -> None:
        if not self.connected:
            raise ConnectionError("WebSocket is not connected")
        await self.websocket.send_text(message)

    async def ping(self) -> "asyncio.Future[None]":
        if not self.connected:
            raise ConnectionError("WebSocket is not connected")
        pong_waiter = asyncio.get_running_loop().create_future()
        pong_waiter.set_result(None)
        return pong_waiter

    async def terminate(self) -> None:
        if not self.connected:
            return
        try:
            await self.websocket.close(code=1001)
        except RuntimeError:
            # Already closing from the other side
            pass
