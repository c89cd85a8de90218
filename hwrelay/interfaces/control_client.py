# hwrelay/interfaces/control_client.py
from __future__ import annotations

from typing import Protocol


class ControlClient(Protocol):
    """
    One browser control-plane connection as seen by the hub.

    deliver() must not block: it either hands the message to an open
    connection or does nothing.
    """

    @property
    def is_open(self) -> bool: ...

    @property
    def label(self) -> str: ...

    def deliver(self, message: str) -> None: ...
