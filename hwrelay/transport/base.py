from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

from hwrelay.model.events import TransportEvent
from hwrelay.model.transport import TransportMode

EventSink = Callable[[TransportEvent], None]


class HardwareTransport(ABC):
    """
    Abstract hardware channel (serial, remote WebSocket, or nothing).

    Contract:
      - start() begins connecting. Open failures are logged and reported as a
        Disconnected event; they never raise to the caller.
      - send(payload) is synchronous and non-blocking. It returns True if the
        payload was handed to an open channel, False if it was dropped.
      - is_ready() reports whether the channel is open right now, with no
        side effects.
      - connect() starts one new connection attempt (reconnecting drivers).
      - close() releases the channel; safe to call more than once.
      - lifecycle changes are posted as TransportEvents to the bound sink.
    """

    mode: TransportMode = TransportMode.NONE
    auto_reconnect: bool = False

    _sink: Optional[EventSink] = None

    def bind(self, sink: EventSink) -> None:
        """Attach the event sink (the relay's dispatcher queue)."""
        self._sink = sink

    def _post(self, event: TransportEvent) -> None:
        sink = self._sink
        if sink is not None:
            sink(event)

    @abstractmethod
    async def start(self) -> None: ...

    @abstractmethod
    def send(self, payload: str) -> bool: ...

    @abstractmethod
    def is_ready(self) -> bool: ...

    def connect(self) -> None:
        raise NotImplementedError(f"{type(self).__name__} does not reconnect")

    @abstractmethod
    async def close(self) -> None: ...

    @abstractmethod
    def describe(self) -> str: ...

    async def __aenter__(self) -> "HardwareTransport":
        await self.start()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: BaseException | None, exc_tb: Any) -> None:
        await self.close()
