# hwrelay/transport/errors.py
from __future__ import annotations

from typing import Optional


class TransportError(Exception):
    """Hardware channel failure, tagged with the device target it concerns."""

    def __init__(self, message: str, *, target: Optional[str] = None):
        super().__init__(message)
        self.target = target


class TransportOpenError(TransportError):
    """The channel to the device could not be opened (busy, missing, refused)."""
