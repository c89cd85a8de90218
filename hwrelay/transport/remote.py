# hwrelay/transport/remote.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Any, Awaitable, Callable, Optional

from websockets.asyncio.client import connect
from websockets.exceptions import ConnectionClosed, WebSocketException
from websockets.protocol import State

from hwrelay.model.events import Connected, Connecting, Disconnected, Received
from hwrelay.model.transport import TransportMode

from .base import HardwareTransport

Connector = Callable[..., Awaitable[Any]]


class _RemoteSession:
    """
    One connection lifetime to the remote device.

    Owns the socket, an outbound queue and the writer task that drains it in
    FIFO order. Discarded as a whole when the socket closes.
    """

    def __init__(self, ws: Any, logger: logging.Logger):
        self.ws = ws
        self.outbox: asyncio.Queue[str] = asyncio.Queue()
        self._log = logger
        self._writer = asyncio.get_running_loop().create_task(self._drain())

    @property
    def is_open(self) -> bool:
        return self.ws.state is State.OPEN

    async def _drain(self) -> None:
        while True:
            payload = await self.outbox.get()
            try:
                await self.ws.send(payload)
            except ConnectionClosed:
                dropped = self.outbox.qsize() + 1
                self._log.warning("REMOTE_SEND_ABORTED dropped=%d (socket closed)", dropped)
                return

    async def close(self) -> None:
        self._writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._writer
        await self.ws.close()


class RemoteSocketTransport(HardwareTransport):
    """
    Outbound WebSocket to a device on the network (e.g. ESP32 on ws://host:81).

    Each connect() runs one session: CONNECTING, then CONNECTED while the
    socket is open, then DISCONNECTED. Reconnect timing is owned by the relay,
    which calls connect() again after every Disconnected event.

    Outbound framing: the raw payload as one text frame, no delimiter.
    """

    mode = TransportMode.REMOTE
    auto_reconnect = True

    def __init__(
        self,
        url: str,
        *,
        open_timeout: float = 10.0,
        connector: Connector = connect,
        logger: Optional[logging.Logger] = None,
    ):
        self.url = url
        self.open_timeout = open_timeout
        self._connector = connector
        self._log = logger or logging.getLogger(__name__)

        self._session: Optional[_RemoteSession] = None
        self._task: Optional[asyncio.Task] = None
        self._closed = False

    def describe(self) -> str:
        return f"remote {self.url}"

    async def start(self) -> None:
        self.connect()

    def connect(self) -> None:
        if self._closed:
            return
        if self._task is not None and not self._task.done():
            self._log.debug("REMOTE_CONNECT_SKIPPED url=%s (attempt in progress)", self.url)
            return
        self._task = asyncio.get_running_loop().create_task(self._run_session())

    def is_ready(self) -> bool:
        session = self._session
        return session is not None and session.is_open

    def send(self, payload: str) -> bool:
        session = self._session
        if session is None or not session.is_open:
            return False
        session.outbox.put_nowait(payload)
        return True

    async def close(self) -> None:
        self._closed = True
        task = self._task
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._task = None

    async def _run_session(self) -> None:
        self._post(Connecting())
        self._log.debug("REMOTE_CONNECTING url=%s", self.url)

        try:
            ws = await self._connector(self.url, open_timeout=self.open_timeout)
        except (OSError, asyncio.TimeoutError, WebSocketException) as e:
            self._log.warning("REMOTE_CONNECT_FAILED url=%s err=%s", self.url, e)
            self._post(Disconnected(reason=f"could not connect to {self.url}: {e}"))
            return
        except Exception as e:
            self._log.exception("REMOTE_CONNECT_FAILED url=%s (unexpected error)", self.url)
            self._post(Disconnected(reason=f"could not connect to {self.url}: {e!r}"))
            return

        session = _RemoteSession(ws, self._log)
        self._session = session
        self._log.info("REMOTE_CONNECTED url=%s", self.url)
        self._post(Connected())

        reason: Optional[str] = None
        try:
            async for message in ws:
                self._log.debug("REMOTE_RX %r", message)
                self._post(Received(message))
        except ConnectionClosed as e:
            reason = str(e)
        except Exception as e:
            self._log.exception("REMOTE_SESSION_FAILED url=%s", self.url)
            reason = repr(e)
        finally:
            self._session = None
            await session.close()

        if reason is None:
            reason = f"closed code={getattr(ws, 'close_code', None)}"
        self._log.warning("REMOTE_DISCONNECTED url=%s reason=%s", self.url, reason)
        self._post(Disconnected(reason=reason))
