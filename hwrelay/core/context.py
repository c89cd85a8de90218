# hwrelay/core/context.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from hwrelay.app.config import RelayConfig
from hwrelay.app.hub import BrowserHub
from hwrelay.app.server import ControlServer
from hwrelay.model.events import TransportEvent
from hwrelay.runtime.liveness import LivenessTracker
from hwrelay.runtime.reconnect import Reconnector
from hwrelay.runtime.scheduler import LoopScheduler, Scheduler
from hwrelay.transport.base import HardwareTransport
from hwrelay.transport.factory import TransportFactory
from hwrelay.transport.registry import TransportDriverRegistry


@dataclass(frozen=True)
class RelayContext:
    """
    Everything one relay process owns, wired once at startup.

    - transport: the single hardware channel (exclusively owned)
    - tracker: liveness state derived from transport events
    - hub: browser client registry + fan-out
    - server: the browser-facing listener
    - reconnector: constant-interval retry timer (remote mode)
    - events: queue the transport posts into; drained by the dispatcher
    """
    config: RelayConfig
    transport: HardwareTransport
    tracker: LivenessTracker
    hub: BrowserHub
    server: ControlServer
    reconnector: Reconnector
    scheduler: Scheduler
    events: "asyncio.Queue[TransportEvent]"

    @classmethod
    def build(
        cls,
        config: RelayConfig,
        *,
        drivers: Optional[TransportDriverRegistry] = None,
        transport: Optional[HardwareTransport] = None,
        scheduler: Optional[Scheduler] = None,
        logger: Optional[logging.Logger] = None,
    ) -> "RelayContext":
        """
        Construct the relay components for `config`.

        `drivers`, `transport` and `scheduler` are injectable to support
        testing and custom drivers. If not provided, the default registry
        and an asyncio-backed scheduler are used.
        """
        if transport is None:
            transport = TransportFactory(drivers).create(config)

        scheduler = scheduler or LoopScheduler()
        tracker = LivenessTracker(config.mode, config.target, logger=logger)
        hub = BrowserHub(is_ready=tracker.is_ready, send=transport.send, logger=logger)
        server = ControlServer(hub, host=config.listen_host, port=config.listen_port, logger=logger)
        reconnector = Reconnector(
            scheduler,
            transport.connect,
            delay_s=config.reconnect_delay_s,
            logger=logger,
        )

        events: asyncio.Queue = asyncio.Queue()
        transport.bind(events.put_nowait)

        return cls(
            config=config,
            transport=transport,
            tracker=tracker,
            hub=hub,
            server=server,
            reconnector=reconnector,
            scheduler=scheduler,
            events=events,
        )
