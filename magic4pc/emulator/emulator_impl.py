# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc service emulator.

Provides a simple emulation of the magic4pc service on UDP: it can send
advertisements, records what clients send, and sends keepalives and event
messages to the registered client on demand.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..pkg_logging import logger
from ..protocol import (
    AdvertisementMessage,
    BaseMessage,
    KeepaliveMessage,
    KEEPALIVE_PING,
    RegistrationMessage,
    decode_message,
    encode_message,
    is_keepalive_ping,
  )
from ..constants import DEFAULT_PORT, KEEPALIVE_INTERVAL
from ..exceptions import DecodingError, Magic4pcError

class _EmulatorProtocol(asyncio.DatagramProtocol):
    emulator: Magic4pcEmulator

    def __init__(self, emulator: Magic4pcEmulator):
        self.emulator = emulator

    def datagram_received(self, data: bytes, addr: HostAndPort) -> None:
        self.emulator.on_datagram_received(data, addr)

class Magic4pcEmulator(AsyncContextManager['Magic4pcEmulator']):
    model: str
    mac: str
    bind_addr: str
    port: int
    transport: Optional[asyncio.DatagramTransport] = None
    client_addr: Optional[HostAndPort] = None
    """Address of the most recently registered client."""

    registrations: List[RegistrationMessage]
    received: asyncio.Queue[Tuple[bytes, HostAndPort]]
    """Every datagram received, in arrival order."""

    client_pings: int = 0
    keepalive_task: Optional[asyncio.Task[None]] = None
    final_result: asyncio.Future[None]

    def __init__(
            self,
            model: str = "OLED65C1",
            mac: str = "a8:23:fe:00:00:01",
            bind_addr: Optional[str] = None,
            port: int = DEFAULT_PORT,
          ):
        self.model = model
        self.mac = mac
        self.bind_addr = '127.0.0.1' if bind_addr is None else bind_addr
        self.port = port
        self.registrations = []
        self.received = asyncio.Queue()
        self.final_result = asyncio.get_running_loop().create_future()

    @property
    def local_port(self) -> int:
        """The bound UDP port. Useful when port is 0."""
        assert self.transport is not None
        return self.transport.get_extra_info('sockname')[1]

    @property
    def advertisement(self) -> AdvertisementMessage:
        return AdvertisementMessage(model=self.model, port=self.local_port, mac=self.mac)

    def on_datagram_received(self, data: bytes, addr: HostAndPort) -> None:
        """Called when a datagram is received from a client."""
        self.received.put_nowait((data, addr))
        if is_keepalive_ping(data):
            self.client_pings += 1
            return
        try:
            message = decode_message(data)
        except DecodingError as e:
            logger.debug(f"Emulator: Ignoring malformed datagram from {addr}: {e}")
            return
        if isinstance(message, RegistrationMessage):
            logger.debug(f"Emulator: Client {addr} registered: {message!r}")
            self.registrations.append(message)
            self.client_addr = addr
        elif isinstance(message, KeepaliveMessage):
            self.client_pings += 1

    async def next_datagram(self, timeout_secs: float = 2.0) -> bytes:
        """Waits for the next datagram received from a client."""
        data, _ = await asyncio.wait_for(self.received.get(), timeout_secs)
        return data

    def send_raw(self, data: bytes, addr: Optional[HostAndPort] = None) -> None:
        """Sends a datagram to addr, or to the registered client."""
        if addr is None:
            addr = self.client_addr
        if addr is None:
            raise Magic4pcError("Emulator: No client has registered")
        assert self.transport is not None
        self.transport.sendto(data, addr)

    def send_message(self, message: BaseMessage, addr: Optional[HostAndPort] = None) -> None:
        self.send_raw(encode_message(message), addr)

    def send_keepalive(self, typed: bool = True) -> None:
        """Sends a keepalive to the registered client, either as a typed
           keepalive message or as the bare "{}" ping."""
        if typed:
            self.send_message(KeepaliveMessage())
        else:
            self.send_raw(KEEPALIVE_PING)

    def advertise(self, target: HostAndPort) -> None:
        """Sends an advertisement to target, e.g., a broadcast address and port."""
        self.send_message(self.advertisement, target)

    async def _send_keepalives(self, interval_secs: float) -> None:
        while True:
            if self.client_addr is not None:
                self.send_keepalive()
            await asyncio.sleep(interval_secs)

    def start_keepalives(self, interval_secs: float = KEEPALIVE_INTERVAL) -> None:
        """Starts sending keepalives to the registered client periodically."""
        self.stop_keepalives()
        self.keepalive_task = asyncio.create_task(self._send_keepalives(interval_secs))

    def stop_keepalives(self) -> None:
        if self.keepalive_task is not None:
            self.keepalive_task.cancel()
            self.keepalive_task = None

    async def start(self) -> None:
        try:
            loop = asyncio.get_running_loop()
            self.transport, _ = await loop.create_datagram_endpoint(
                lambda: _EmulatorProtocol(self),
                local_addr=(self.bind_addr, self.port),
                allow_broadcast=True,
              )
            logger.debug(f"Emulator: Listening on {self.bind_addr}:{self.local_port}")
        except BaseException as e:
            self.set_final_result(e if isinstance(e, Exception) else None)
            raise

    def close(self, exc: Optional[BaseException]=None) -> None:
        """Stops the Emulator."""
        self.set_final_result(exc)

    async def wait_closed(self) -> None:
        """Waits for the emulator to be fully closed. Does not initiate shutdown.
           Does not raise an exception based on final status."""
        try:
            await self.final_result
        except Exception:
            pass

    def set_final_result(self, exc: Optional[BaseException]=None) -> None:
        if not self.final_result.done():
            if exc is None:
                logger.debug(f"Emulator: Setting final result to success")
                self.final_result.set_result(None)
            else:
                logger.debug(f"Emulator: Setting final exception: {exc}")
                self.final_result.set_exception(exc)
            self.stop_keepalives()
            if self.transport is not None:
                self.transport.close()

    async def __aenter__(self) -> Magic4pcEmulator:
        await self.start()
        return self

    async def __aexit__(self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> None:
        self.set_final_result(exc if isinstance(exc, Exception) else None)
        await self.wait_closed()
