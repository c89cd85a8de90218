# hwrelay/runtime/reconnect.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from hwrelay.runtime.scheduler import Scheduler, TimerHandle


class Reconnector:
    """
    Constant-interval reconnect timer.

    At most one attempt is pending at any time: schedule() while a call is
    already pending is a no-op. There is no retry cap and no back-off; the
    owner calls schedule() again after every failed or closed session.
    """

    def __init__(
        self,
        scheduler: Scheduler,
        attempt: Callable[[], None],
        *,
        delay_s: float = 5.0,
        logger: Optional[logging.Logger] = None,
    ):
        self._scheduler = scheduler
        self._attempt = attempt
        self.delay_s = float(delay_s)
        self._log = logger or logging.getLogger(__name__)

        self._handle: Optional[TimerHandle] = None
        self._attempts = 0

    @property
    def pending(self) -> bool:
        return self._handle is not None

    @property
    def attempts(self) -> int:
        """Number of reconnect attempts fired so far."""
        return self._attempts

    def schedule(self) -> bool:
        if self._handle is not None:
            return False

        self._log.info("RECONNECT_SCHEDULED delay_s=%.1f", self.delay_s)
        self._handle = self._scheduler.call_later(self.delay_s, self._fire)
        return True

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._attempts += 1
        self._log.info("RECONNECT_ATTEMPT n=%d", self._attempts)
        self._attempt()
