from __future__ import annotations

import logging
from typing import Optional

from hwrelay.model.transport import TransportMode

from .base import HardwareTransport


class NullTransport(HardwareTransport):
    """No hardware target configured: never ready, every send is dropped."""

    mode = TransportMode.NONE
    auto_reconnect = False

    def __init__(self, *, logger: Optional[logging.Logger] = None):
        self._log = logger or logging.getLogger(__name__)

    def describe(self) -> str:
        return "no hardware target"

    async def start(self) -> None:
        self._log.warning(
            "NO_HARDWARE_TARGET set SERIAL_PORT (USB) or ESP32_WS_URL (remote) to connect to hardware"
        )

    def send(self, payload: str) -> bool:
        return False

    def is_ready(self) -> bool:
        return False

    async def close(self) -> None:
        return None
