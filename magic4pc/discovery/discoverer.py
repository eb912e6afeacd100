# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc service discovery.

Listens for the advertisements the service broadcasts on a well-known UDP
port and hands newly seen devices to a waiting consumer.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..constants import DEFAULT_BROADCAST_PORT
from ..exceptions import BindError, DecodingError, DiscovererClosedError
from ..pkg_logging import logger
from ..protocol import AdvertisementMessage, decode_message

from .device_info import DeviceInfo

class _DiscoveryProtocol(asyncio.DatagramProtocol):
    discoverer: Magic4pcDiscoverer

    def __init__(self, discoverer: Magic4pcDiscoverer):
        self.discoverer = discoverer

    def datagram_received(self, data: bytes, addr: HostAndPort) -> None:
        self.discoverer.on_datagram(data, addr)

    def error_received(self, exc: Exception) -> None:
        logger.debug(f"Discoverer: socket error (ignored): {exc}")

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self.discoverer.on_connection_lost(exc)

class Magic4pcDiscoverer(AsyncContextManager['Magic4pcDiscoverer']):
    """Listens for magic4pc service advertisements.

    Devices are only handed to a consumer that is already waiting in
    next_device() (or iterating). An advertisement that arrives while
    nobody is waiting is dropped; the service re-broadcasts periodically,
    so the consumer sees it again on its next wait. The listener never
    blocks on a slow consumer.
    """

    bind_addr: str
    broadcast_port: int
    reuse_port: Optional[bool]
    transport: Optional[asyncio.DatagramTransport] = None
    closed: bool = False
    final_result: asyncio.Future[None]
    _waiters: List[asyncio.Future[DeviceInfo]]

    def __init__(
            self,
            broadcast_port: int=DEFAULT_BROADCAST_PORT,
            bind_addr: Optional[str]=None,
            reuse_port: Optional[bool]=None,
          ):
        self.broadcast_port = broadcast_port
        self.bind_addr = '0.0.0.0' if bind_addr is None else bind_addr
        self.reuse_port = reuse_port
        self._waiters = []
        self.final_result = asyncio.get_running_loop().create_future()

    @property
    def local_port(self) -> int:
        """The bound UDP port. Useful when broadcast_port is 0."""
        assert self.transport is not None
        return self.transport.get_extra_info('sockname')[1]

    async def start(self) -> None:
        """Binds the broadcast port and starts listening.

        Raises BindError if the port cannot be bound.
        """
        loop = asyncio.get_running_loop()
        try:
            transport, _ = await loop.create_datagram_endpoint(
                lambda: _DiscoveryProtocol(self),
                local_addr=(self.bind_addr, self.broadcast_port),
                reuse_port=self.reuse_port,
              )
        except OSError as e:
            self.close()
            raise BindError(f"Discoverer: Unable to bind UDP {self.bind_addr}:{self.broadcast_port}: {e}") from e
        self.transport = transport
        logger.debug(f"Discoverer: Listening on {self.bind_addr}:{self.local_port}")

    @classmethod
    async def create(
            cls,
            broadcast_port: int=DEFAULT_BROADCAST_PORT,
            bind_addr: Optional[str]=None,
            reuse_port: Optional[bool]=None,
          ) -> Self:
        """Creates and starts a discoverer."""
        self = cls(broadcast_port=broadcast_port, bind_addr=bind_addr, reuse_port=reuse_port)
        await self.start()
        return self

    def on_datagram(self, data: bytes, addr: HostAndPort) -> None:
        """Called for each datagram received on the broadcast port."""
        try:
            message = decode_message(data)
        except DecodingError as e:
            logger.debug(f"Discoverer: Skipping malformed datagram from {addr[0]}: {e}")
            return
        if not isinstance(message, AdvertisementMessage):
            logger.debug(f"Discoverer: Skipping unexpected {message.message_type} message from {addr[0]}")
            return
        device = DeviceInfo.from_advertisement(message, addr)
        logger.debug(f"Discoverer: Found device: {device}")
        self._deliver(device)

    def _deliver(self, device: DeviceInfo) -> None:
        while len(self._waiters) > 0:
            waiter = self._waiters.pop(0)
            if not waiter.done():
                waiter.set_result(device)
                return
        logger.debug(f"Discoverer: Nobody waiting; dropping {device}")

    def on_connection_lost(self, exc: Optional[Exception]) -> None:
        if exc is None:
            logger.debug("Discoverer: Socket closed")
        else:
            logger.warning(f"Discoverer: Socket lost: {exc}")
        self.close()

    async def next_device(self) -> DeviceInfo:
        """Waits for the next advertisement and returns the device it describes.

        Raises DiscovererClosedError if the discoverer is closed before a
        device is found.
        """
        if self.closed:
            raise DiscovererClosedError("Discoverer is closed")
        waiter: asyncio.Future[DeviceInfo] = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        try:
            return await waiter
        finally:
            if waiter in self._waiters:
                self._waiters.remove(waiter)

    async def __aiter__(self) -> AsyncIterator[DeviceInfo]:
        """Yields discovered devices until the discoverer is closed."""
        while True:
            try:
                device = await self.next_device()
            except DiscovererClosedError:
                return
            yield device

    def close(self) -> None:
        """Stops listening. Pending next_device() calls raise DiscovererClosedError.
        Safe to call more than once."""
        if self.closed:
            return
        self.closed = True
        waiters, self._waiters = self._waiters, []
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(DiscovererClosedError("Discoverer closed"))
        if self.transport is not None:
            self.transport.close()
        if not self.final_result.done():
            self.final_result.set_result(None)

    async def wait_closed(self) -> None:
        """Waits for the discoverer to be closed. Does not initiate shutdown."""
        await asyncio.shield(self.final_result)

    async def aclose(self) -> None:
        self.close()
        await self.wait_closed()

    async def __aenter__(self) -> Magic4pcDiscoverer:
        if self.transport is None:
            await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType],
          ) -> None:
        await self.aclose()

    def __str__(self) -> str:
        return f"Magic4pcDiscoverer({self.bind_addr}:{self.broadcast_port})"

    def __repr__(self) -> str:
        return str(self)
