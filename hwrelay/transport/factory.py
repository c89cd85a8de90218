# hwrelay/transport/factory.py
from __future__ import annotations

from typing import Optional

from hwrelay.app.config import RelayConfig
from hwrelay.core.errors import RelayConfigError

from .base import HardwareTransport
from .errors import TransportError
from .registry import TransportDriverRegistry


class TransportFactory:
    """
    Constructs the single hardware transport selected by the relay config.
    Note: does NOT open the transport.
    """

    def __init__(self, drivers: Optional[TransportDriverRegistry] = None):
        self._drivers = drivers or TransportDriverRegistry.default()

    def create(self, config: RelayConfig) -> HardwareTransport:
        params = config.transport_params()
        try:
            return self._drivers.create(config.mode.value, **params)

        except (TransportError, TypeError) as e:
            # unknown driver key or constructor mismatch
            raise RelayConfigError(
                f"Failed to construct transport for mode '{config.mode}'.",
                hint=str(e),
                details={"mode": config.mode.value, "params": dict(params)},
            ) from None
