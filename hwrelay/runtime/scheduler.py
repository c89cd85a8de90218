# hwrelay/runtime/scheduler.py
from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional


class TimerHandle(ABC):
    """Cancellable handle for one scheduled callback."""

    @abstractmethod
    def cancel(self) -> None: ...

    @abstractmethod
    def cancelled(self) -> bool: ...


class Scheduler(ABC):
    """
    Minimal timer abstraction used for reconnect delays.

    Contract:
      - call_later(delay_s, cb) runs cb once, no earlier than delay_s from now.
      - the returned handle can cancel the call before it fires.
      - now() is a monotonic clock in seconds, consistent with call_later.
    """

    @abstractmethod
    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle: ...

    @abstractmethod
    def now(self) -> float: ...


class _AsyncioTimerHandle(TimerHandle):
    def __init__(self, handle: asyncio.TimerHandle):
        self._handle = handle

    def cancel(self) -> None:
        self._handle.cancel()

    def cancelled(self) -> bool:
        return self._handle.cancelled()


class LoopScheduler(Scheduler):
    """
    Scheduler backed by an asyncio event loop.

    The loop is resolved lazily so the scheduler can be built before the loop
    starts running (e.g. while assembling the relay context).
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            self._loop = asyncio.get_running_loop()
        return self._loop

    def call_later(self, delay_s: float, callback: Callable[[], None]) -> TimerHandle:
        return _AsyncioTimerHandle(self._get_loop().call_later(delay_s, callback))

    def now(self) -> float:
        return self._get_loop().time()
