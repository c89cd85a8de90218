from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class LivenessEvent(Enum):
    """
    Hardware connectivity notification pushed to browser clients.

    The wire form is a JSON object with a single "type" key; no other
    relay -> browser message types exist.
    """

    HARDWARE_READY = "hardware_ready"
    HARDWARE_LOST = "hardware_lost"

    def to_message(self) -> str:
        return json.dumps({"type": self.value})


# ---------------------------------------------------------------------------
# Transport -> dispatcher events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Connecting:
    """A (re)connection attempt has started. Never surfaced to browsers."""


@dataclass(frozen=True)
class Connected:
    """The hardware channel is open and writable."""


@dataclass(frozen=True)
class Disconnected:
    """
    The hardware channel closed, failed mid-session, or a connection attempt
    failed. `reason` is a free-form diagnostic for logs.
    """
    reason: Optional[str] = None


@dataclass(frozen=True)
class Received:
    """Data read from the device (one serial line or one remote frame)."""
    data: Union[str, bytes]


TransportEvent = Union[Connecting, Connected, Disconnected, Received]
