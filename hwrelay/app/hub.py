# hwrelay/app/hub.py
from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional

from hwrelay.interfaces.control_client import ControlClient
from hwrelay.model.events import LivenessEvent


class BrowserHub:
    """
    Fan-out hub for browser control connections.

    Responsibilities:
      - keep the registry of connected clients (insertion ordered)
      - greet a new client with HARDWARE_READY if the hardware is up
      - relay each inbound payload to the hardware, fire-and-forget
      - broadcast liveness events to every open client

    The hub never parses payloads and never reports relay outcomes back to
    the sender; the only browser-visible signal is the liveness stream.
    """

    def __init__(
        self,
        *,
        is_ready: Callable[[], bool],
        send: Callable[[str], bool],
        logger: Optional[logging.Logger] = None,
    ):
        self._is_ready = is_ready
        self._send = send
        self._log = logger or logging.getLogger(__name__)

        # dict keeps registration order and rejects duplicates by identity
        self._clients: Dict[int, ControlClient] = {}

        self._relayed = 0
        self._dropped = 0

    # --- registry ---
    @property
    def client_count(self) -> int:
        return len(self._clients)

    def clients(self) -> List[ControlClient]:
        return list(self._clients.values())

    @property
    def relayed(self) -> int:
        return self._relayed

    @property
    def dropped(self) -> int:
        return self._dropped

    def on_client_connect(self, client: ControlClient) -> None:
        key = id(client)
        if key in self._clients:
            self._log.debug("CLIENT_ALREADY_REGISTERED client=%s", client.label)
            return

        self._clients[key] = client
        self._log.info("CLIENT_CONNECTED client=%s clients=%d", client.label, len(self._clients))

        if self._is_ready() and client.is_open:
            client.deliver(LivenessEvent.HARDWARE_READY.to_message())

    def on_client_disconnect(self, client: ControlClient) -> None:
        if self._clients.pop(id(client), None) is None:
            return
        self._log.info("CLIENT_DISCONNECTED client=%s clients=%d", client.label, len(self._clients))

    # --- data path ---
    def on_client_message(self, client: ControlClient, payload: str) -> bool:
        if self._send(payload):
            self._relayed += 1
            self._log.info("RELAYED client=%s payload=%s", client.label, payload)
            return True

        self._dropped += 1
        self._log.info("DROPPED client=%s payload=%s (hardware not connected)", client.label, payload)
        return False

    def broadcast(self, event: LivenessEvent) -> int:
        """Deliver `event` to every open client; returns how many got it."""
        message = event.to_message()
        delivered = 0
        for client in list(self._clients.values()):
            if not client.is_open:
                continue
            client.deliver(message)
            delivered += 1

        self._log.info("BROADCAST event=%s delivered=%d clients=%d", event.value, delivered, len(self._clients))
        return delivered
