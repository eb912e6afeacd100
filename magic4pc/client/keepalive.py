# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Keepalive handling for a magic4pc session.

Both ends of a session must prove they are alive. The service sends a
keepalive at least every couple of seconds; the client does the same. The
monitor tracks two deadlines:

    server deadline   reset whenever a keepalive arrives from the service.
                      If it passes, the service is presumed gone.
    client ping       when it passes, a keepalive is sent to the service
                      and the next one is scheduled.

The monitor runs as a single task. When it ends, for whatever reason, it
closes the session exactly once: with KeepaliveTimeoutError if the server
deadline passed, with the send error if a ping could not be sent, and with
no error if it was cancelled because the session was closed by its owner.
"""

from __future__ import annotations

import asyncio
from enum import Enum

from ..internal_types import *
from ..constants import KEEPALIVE_INTERVAL, KEEPALIVE_TIMEOUT
from ..exceptions import KeepaliveTimeoutError
from ..pkg_logging import logger

class KeepaliveState(str, Enum):
    ACTIVE = "active"
    CLOSING = "closing"

class KeepaliveMonitor:
    """Timer-driven liveness state machine for one session."""

    send_ping: Callable[[], None]
    """Sends one keepalive to the service; raises on failure."""

    on_close: Callable[[Optional[BaseException]], Awaitable[None]]
    """Closes the session with the given final status."""

    timeout_secs: float
    interval_secs: float
    state: KeepaliveState = KeepaliveState.ACTIVE
    task: Optional[asyncio.Task[None]] = None

    pings_sent: int = 0
    pings_received: int = 0
    last_ping_received: Optional[float] = None
    """Event loop time of the last keepalive from the service, if any."""

    _ping_received: asyncio.Event

    def __init__(
            self,
            send_ping: Callable[[], None],
            on_close: Callable[[Optional[BaseException]], Awaitable[None]],
            timeout_secs: float=KEEPALIVE_TIMEOUT,
            interval_secs: float=KEEPALIVE_INTERVAL,
          ):
        self.send_ping = send_ping
        self.on_close = on_close
        self.timeout_secs = timeout_secs
        self.interval_secs = interval_secs
        self._ping_received = asyncio.Event()

    def start(self) -> None:
        """Starts the monitor task. The server deadline starts now."""
        assert self.task is None
        self.task = asyncio.create_task(self._run())

    def ping_received(self) -> None:
        """Signals that a keepalive arrived from the service. Never blocks;
           signals that arrive before the monitor wakes up are coalesced."""
        self.pings_received += 1
        self.last_ping_received = asyncio.get_running_loop().time()
        self._ping_received.set()

    def cancel(self) -> None:
        """Stops the monitor. Safe to call more than once, and from within
           the monitor's own close callback."""
        if self.task is not None and self.task is not asyncio.current_task():
            self.task.cancel()

    async def wait(self) -> None:
        """Waits for the monitor task to finish."""
        if self.task is not None and self.task is not asyncio.current_task():
            try:
                await self.task
            except asyncio.CancelledError:
                pass

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        server_deadline = loop.time() + self.timeout_secs
        next_ping = loop.time() + self.interval_secs
        final_exc: Optional[BaseException] = None
        try:
            while True:
                now = loop.time()
                if now >= server_deadline:
                    logger.warning("Keepalive: Server keepalive deadline reached, disconnecting")
                    final_exc = KeepaliveTimeoutError(
                        f"No keepalive from service for {self.timeout_secs} seconds")
                    break
                if now >= next_ping:
                    try:
                        self.send_ping()
                    except Exception as e:
                        logger.warning(f"Keepalive: Sending client keepalive failed, disconnecting: {e}")
                        final_exc = e
                        break
                    self.pings_sent += 1
                    next_ping = now + self.interval_secs
                    continue
                try:
                    await asyncio.wait_for(
                        self._ping_received.wait(),
                        min(server_deadline, next_ping) - now)
                except asyncio.TimeoutError:
                    continue
                self._ping_received.clear()
                server_deadline = loop.time() + self.timeout_secs
        except asyncio.CancelledError:
            logger.debug("Keepalive: Cancelled")
        finally:
            self.state = KeepaliveState.CLOSING
        await self.on_close(final_exc)
