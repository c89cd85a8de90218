# hwrelay/core/errors.py
from __future__ import annotations


class RelayError(Exception):
    """
    Base class for all expected operational errors in the relay.
    """

    #: Stable machine-readable identifier (for CLI exit mapping, logs, etc.)
    code: str = "unknown"

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.details = details or {}

    def __str__(self) -> str:
        return self.message


# ---------------------------------------------------------------------------
# Configuration / setup errors (no hardware access yet)
# ---------------------------------------------------------------------------

class RelayConfigError(RelayError):
    """
    Relay configuration is invalid.

    Examples:
      - unknown transport mode
      - non-numeric port / baud rate
      - malformed remote device URL
      - unreadable or malformed config file
    """
    code = "relay_config_error"
