from __future__ import annotations

from typing import Dict, Type

from hwrelay.model.transport import TransportMode

from .base import HardwareTransport
from .errors import TransportError
from .null import NullTransport
from .remote import RemoteSocketTransport
from .uart import UARTTransport


class TransportDriverRegistry:
    """
    Maps transport mode keys -> concrete hardware transport classes.

    Keys are case-insensitive; TransportMode members are accepted as keys.
    """

    def __init__(self, drivers: Dict[str, Type[HardwareTransport]]):
        self._drivers: Dict[str, Type[HardwareTransport]] = {str(k).lower(): v for k, v in drivers.items()}

    @classmethod
    def default(cls) -> "TransportDriverRegistry":
        return cls(
            drivers={
                TransportMode.SERIAL.value: UARTTransport,
                TransportMode.REMOTE.value: RemoteSocketTransport,
                TransportMode.NONE.value: NullTransport,
            }
        )

    def has(self, driver: str) -> bool:
        return str(driver).lower() in self._drivers

    def get_class(self, driver: str) -> Type[HardwareTransport]:
        key = str(driver).lower()
        if key not in self._drivers:
            raise TransportError(f"Transport driver '{driver}' not registered")
        return self._drivers[key]

    def create(self, driver: str, **params) -> HardwareTransport:
        transport_cls = self.get_class(driver)
        return transport_cls(**params)
