from __future__ import annotations

from enum import Enum


class TransportMode(str, Enum):
    """
    Which physical channel the relay drives. Exactly one per process.

    Attributes:
        SERIAL: local point-to-point serial link (USB CDC / UART).
        REMOTE: persistent outbound WebSocket to a device on the network.
        NONE: no hardware target; all hardware-directed traffic is dropped.
    """

    SERIAL = "serial"
    REMOTE = "remote-socket"
    NONE = "none"

    @classmethod
    def parse(cls, value: str) -> "TransportMode":
        """Accept the canonical value or a few operator-friendly aliases."""
        key = str(value).strip().lower()
        aliases = {
            "usb": cls.SERIAL,
            "uart": cls.SERIAL,
            "remote": cls.REMOTE,
            "websocket": cls.REMOTE,
            "ws": cls.REMOTE,
            "": cls.NONE,
        }
        if key in aliases:
            return aliases[key]
        return cls(key)

    @property
    def reconnects(self) -> bool:
        return self is TransportMode.REMOTE

    def __str__(self) -> str:
        return self.value
