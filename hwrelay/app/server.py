# hwrelay/app/server.py
"""
Browser control-plane listener.

Protocol:
- Relay -> browser: {"type": "hardware_ready"} | {"type": "hardware_lost"}
- Browser -> relay: raw string, forwarded verbatim to the hardware
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from websockets.asyncio.server import Server, ServerConnection, broadcast, serve
from websockets.exceptions import ConnectionClosed
from websockets.protocol import State

from hwrelay.app.hub import BrowserHub
from hwrelay.core.errors import RelayConfigError


class WebSocketClient:
    """ControlClient backed by one websockets server connection."""

    def __init__(self, ws: ServerConnection):
        self._ws = ws
        addr: Any = getattr(ws, "remote_address", None)
        if isinstance(addr, tuple) and len(addr) >= 2:
            self._label = f"{addr[0]}:{addr[1]}"
        else:
            self._label = str(addr or "?")

    @property
    def is_open(self) -> bool:
        return self._ws.state is State.OPEN

    @property
    def label(self) -> str:
        return self._label

    def deliver(self, message: str) -> None:
        # broadcast() writes synchronously and skips connections that are not open
        broadcast([self._ws], message)


class ControlServer:
    """
    WebSocket server for browser control connections.

    Every connection is registered with the hub on open and always
    deregistered when its handler exits, whatever the reason.
    """

    def __init__(
        self,
        hub: BrowserHub,
        *,
        host: str = "0.0.0.0",
        port: int = 8080,
        logger: Optional[logging.Logger] = None,
    ):
        self.host = host
        self.port = port
        self._hub = hub
        self._log = logger or logging.getLogger(__name__)
        self._server: Optional[Server] = None

    @property
    def is_serving(self) -> bool:
        return self._server is not None

    @property
    def bound_port(self) -> Optional[int]:
        """Actual listening port (useful when configured with port 0)."""
        if self._server is None:
            return None
        for sock in self._server.sockets:
            return sock.getsockname()[1]
        return None

    async def start(self) -> None:
        if self._server is not None:
            return
        try:
            self._server = await serve(self._handle, self.host, self.port)
        except OSError as e:
            raise RelayConfigError(
                f"Could not listen on {self.host}:{self.port}.",
                hint=f"Is another relay already running? Pick another port with --port ({e}).",
                details={"host": self.host, "port": self.port},
            ) from None
        self._log.info("CONTROL_SERVER_LISTENING host=%s port=%s", self.host, self.bound_port)

    async def close(self) -> None:
        server = self._server
        if server is None:
            return
        self._server = None
        server.close()
        await server.wait_closed()
        self._log.info("CONTROL_SERVER_CLOSED")

    async def _handle(self, ws: ServerConnection) -> None:
        client = WebSocketClient(ws)
        self._hub.on_client_connect(client)
        try:
            async for message in ws:
                if isinstance(message, bytes):
                    payload = message.decode("utf-8", errors="replace")
                else:
                    payload = message
                self._hub.on_client_message(client, payload)
        except ConnectionClosed as e:
            self._log.debug("CLIENT_CONNECTION_ERROR client=%s err=%s", client.label, e)
        finally:
            self._hub.on_client_disconnect(client)
