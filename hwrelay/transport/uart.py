# hwrelay/transport/uart.py
from __future__ import annotations

import asyncio
import logging
from typing import Optional

import serial_asyncio
from serial import SerialException

from hwrelay.model.events import Connected, Disconnected, Received
from hwrelay.model.transport import TransportMode

from .base import HardwareTransport
from .errors import TransportOpenError

SERIAL_HINT = "Close any other serial monitor (e.g. Arduino IDE) that holds the port."


class _SerialLineProtocol(asyncio.Protocol):
    """asyncio protocol that splits device output into lines for the owner."""

    def __init__(self, owner: "UARTTransport"):
        self._owner = owner
        self._buf = bytearray()

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._owner._on_open(transport)

    def data_received(self, data: bytes) -> None:
        self._buf.extend(data)
        while True:
            idx = self._buf.find(b"\n")
            if idx < 0:
                break
            line = bytes(self._buf[:idx])
            del self._buf[: idx + 1]
            self._owner._on_line(line)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self._owner._on_close(exc)


class UARTTransport(HardwareTransport):
    """
    Serial (USB CDC / UART) hardware channel via pyserial-asyncio.

    The port is opened exactly once. When it closes, or fails to open, the
    relay does not retry: the device has to be reconnected and the relay
    restarted.

    Outbound framing: one UTF-8 line per message, terminated by "\\n".
    """

    mode = TransportMode.SERIAL
    auto_reconnect = False

    def __init__(
        self,
        port: str,
        baudrate: int = 115200,
        *,
        encoding: str = "utf-8",
        logger: Optional[logging.Logger] = None,
    ):
        self.port = port
        self.baudrate = baudrate
        self.encoding = encoding
        self._log = logger or logging.getLogger(__name__)

        self._channel: Optional[asyncio.WriteTransport] = None
        self._started = False
        self._closing = False

    def describe(self) -> str:
        return f"serial {self.port} @ {self.baudrate}"

    async def start(self) -> None:
        if self._started:
            return
        self._started = True

        try:
            await self._open()
        except TransportOpenError as e:
            self._log.error("SERIAL_OPEN_FAILED port=%s err=%s", e.target, e)
            self._log.info("HINT: %s", SERIAL_HINT)
            self._post(Disconnected(reason=str(e)))

    async def _open(self) -> None:
        loop = asyncio.get_running_loop()
        try:
            await serial_asyncio.create_serial_connection(
                loop,
                lambda: _SerialLineProtocol(self),
                self.port,
                baudrate=self.baudrate,
            )
        except (SerialException, OSError, ValueError) as e:
            raise TransportOpenError(
                f"could not open serial port {self.port!r}: {e}", target=self.port
            ) from None

    def is_ready(self) -> bool:
        ch = self._channel
        return ch is not None and not ch.is_closing()

    def send(self, payload: str) -> bool:
        if not self.is_ready():
            return False

        try:
            self._channel.write((payload + "\n").encode(self.encoding))  # type: ignore[union-attr]
        except (SerialException, OSError) as e:
            self._log.error("SERIAL_WRITE_FAILED port=%s err=%s", self.port, e)
            return False
        return True

    async def close(self) -> None:
        self._closing = True
        ch = self._channel
        if ch is not None and not ch.is_closing():
            ch.close()

    # --- protocol callbacks ---
    def _on_open(self, transport: asyncio.BaseTransport) -> None:
        self._channel = transport  # type: ignore[assignment]
        self._log.info("SERIAL_OPEN port=%s baud=%s", self.port, self.baudrate)
        self._post(Connected())

    def _on_line(self, line: bytes) -> None:
        text = line.decode(self.encoding, errors="replace").rstrip("\r")
        if text:
            self._log.debug("SERIAL_RX %s", text)
            self._post(Received(text))

    def _on_close(self, exc: Optional[Exception]) -> None:
        self._channel = None
        if self._closing:
            self._log.info("SERIAL_CLOSED port=%s (relay shutdown)", self.port)
            reason = "closed by relay"
        elif exc is not None:
            self._log.error("SERIAL_ERROR port=%s err=%s", self.port, exc)
            self._log.warning("SERIAL_CLOSED port=%s: reconnect the device and restart the relay", self.port)
            reason = str(exc)
        else:
            self._log.warning("SERIAL_CLOSED port=%s: reconnect the device and restart the relay", self.port)
            reason = "serial port closed"
        self._post(Disconnected(reason=reason))
