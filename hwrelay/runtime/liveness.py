# hwrelay/runtime/liveness.py
from __future__ import annotations

import logging
from typing import Optional

from hwrelay.model.events import LivenessEvent
from hwrelay.model.transport import TransportMode
from hwrelay.runtime.state import LinkState, TransportState


class LivenessTracker:
    """
    Single source of truth for "is the hardware reachable right now".

    State machine:
        DISCONNECTED -> CONNECTING -> CONNECTED -> DISCONNECTED -> ...

    Serial links skip CONNECTING (the port is opened once, at startup).

    Only two transitions produce a LivenessEvent:
      - anything -> CONNECTED       : HARDWARE_READY
      - CONNECTED -> DISCONNECTED   : HARDWARE_LOST
    A failed attempt (CONNECTING -> DISCONNECTED) is silent, as is the start
    of an attempt.
    """

    def __init__(self, mode: TransportMode, target: str, *, logger: Optional[logging.Logger] = None):
        self._mode = mode
        self._target = target
        self._log = logger or logging.getLogger(__name__)

        self._state = LinkState.DISCONNECTED
        self._connects = 0
        self._disconnects = 0
        self._last_error: Optional[str] = None

    # --- queries (side-effect free) ---
    @property
    def state(self) -> LinkState:
        return self._state

    def is_ready(self) -> bool:
        return self._state is LinkState.CONNECTED

    def snapshot(self) -> TransportState:
        return TransportState(
            mode=self._mode,
            state=self._state,
            target=self._target,
            connects=self._connects,
            disconnects=self._disconnects,
            last_error=self._last_error,
        )

    # --- transitions ---
    def mark_connecting(self) -> None:
        if self._state is LinkState.CONNECTED:
            # a new attempt while connected means the old session is gone
            self._log.warning("LINK_CONNECTING_WHILE_CONNECTED target=%s", self._target)
        self._state = LinkState.CONNECTING
        self._log.debug("LINK_CONNECTING target=%s", self._target)

    def mark_connected(self) -> Optional[LivenessEvent]:
        if self._state is LinkState.CONNECTED:
            return None

        self._state = LinkState.CONNECTED
        self._connects += 1
        self._last_error = None
        self._log.info("HARDWARE_READY mode=%s target=%s", self._mode, self._target)
        return LivenessEvent.HARDWARE_READY

    def mark_disconnected(self, reason: Optional[str] = None) -> Optional[LivenessEvent]:
        previous = self._state
        self._state = LinkState.DISCONNECTED
        if reason:
            self._last_error = reason

        if previous is not LinkState.CONNECTED:
            self._log.debug("LINK_ATTEMPT_FAILED target=%s reason=%s", self._target, reason)
            return None

        self._disconnects += 1
        self._log.warning("HARDWARE_LOST mode=%s target=%s reason=%s", self._mode, self._target, reason)
        return LivenessEvent.HARDWARE_LOST
