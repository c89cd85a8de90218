# hwrelay/runtime/state.py
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from hwrelay.model.transport import TransportMode


class LinkState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclass(frozen=True)
class TransportState:
    """
    A snapshot of the hardware link, safe to hand to log lines and status
    output without exposing the channel handle.
    """
    mode: TransportMode
    state: LinkState
    target: str
    connects: int = 0
    disconnects: int = 0
    last_error: Optional[str] = None
