from .transport import TransportMode
from .events import (
    LivenessEvent,
    TransportEvent,
    Connecting,
    Connected,
    Disconnected,
    Received,
)

__all__ = ["TransportMode",
           "LivenessEvent",
           "TransportEvent",
           "Connecting",
           "Connected",
           "Disconnected",
           "Received"]
