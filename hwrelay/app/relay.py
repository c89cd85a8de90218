# hwrelay/app/relay.py
from __future__ import annotations

import asyncio
import contextlib
import logging
from typing import Optional

from hwrelay.core.context import RelayContext
from hwrelay.model.events import Connected, Connecting, Disconnected, Received, TransportEvent


class Relay:
    """
    Relay process: browser listener + hardware transport + one dispatcher.

    The transport posts typed events into the context queue; the dispatcher
    task drains it in order and is the only place liveness changes and
    reconnect scheduling happen. dispatch() is synchronous so events can be
    fed directly in tests.
    """

    def __init__(self, context: RelayContext, *, logger: Optional[logging.Logger] = None):
        self.ctx = context
        self._log = logger or logging.getLogger(__name__)
        self._dispatcher: Optional[asyncio.Task] = None
        self._stopping = False

    @property
    def is_running(self) -> bool:
        return self._dispatcher is not None and not self._dispatcher.done()

    # --- event handling ---
    def dispatch(self, event: TransportEvent) -> None:
        ctx = self.ctx

        if isinstance(event, Connecting):
            ctx.tracker.mark_connecting()

        elif isinstance(event, Connected):
            ev = ctx.tracker.mark_connected()
            if ev is not None:
                ctx.hub.broadcast(ev)

        elif isinstance(event, Disconnected):
            ev = ctx.tracker.mark_disconnected(event.reason)
            if ev is not None:
                ctx.hub.broadcast(ev)
            if ctx.transport.auto_reconnect and not self._stopping:
                ctx.reconnector.schedule()

        elif isinstance(event, Received):
            self._log.debug("HARDWARE_RX data=%r", event.data)

        else:
            self._log.warning("UNKNOWN_TRANSPORT_EVENT %r", event)

    async def _dispatch_loop(self) -> None:
        queue = self.ctx.events
        while True:
            event = await queue.get()
            try:
                self.dispatch(event)
            except Exception:
                self._log.exception("DISPATCH_FAILED event=%r", event)

    # --- lifecycle ---
    async def start(self) -> None:
        if self.is_running:
            return
        self._stopping = False

        ctx = self.ctx
        await ctx.server.start()
        self._dispatcher = asyncio.get_running_loop().create_task(self._dispatch_loop())
        await ctx.transport.start()

        self._log.info(
            "RELAY_STARTED listen=%s:%s mode=%s target=%s",
            ctx.config.listen_host,
            ctx.server.bound_port,
            ctx.config.mode,
            ctx.transport.describe(),
        )

    async def stop(self) -> None:
        self._stopping = True
        ctx = self.ctx

        ctx.reconnector.cancel()
        try:
            await ctx.transport.close()
        except Exception:
            self._log.exception("Failed to close transport")

        try:
            await ctx.server.close()
        except Exception:
            self._log.exception("Failed to close control server")

        # let queued transport events (e.g. the final Disconnected) settle
        while not ctx.events.empty():
            self.dispatch(ctx.events.get_nowait())

        task = self._dispatcher
        self._dispatcher = None
        if task is not None and not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        self._log.info("RELAY_STOPPED")

    async def serve_forever(self) -> None:
        await self.start()
        try:
            await asyncio.Future()
        finally:
            await self.stop()

    async def __aenter__(self) -> "Relay":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.stop()
