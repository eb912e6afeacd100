# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc UDP client transport.

Provides an implementation of Magic4pcClientTransport over a connected UDP
socket: one registered session with a magic4pc service.
"""

from __future__ import annotations

import asyncio
from asyncio import Future
from dataclasses import dataclass

from ..internal_types import *
from ..exceptions import (
    DecodingError,
    DialError,
    RecvCancelledError,
    RegistrationError,
    SessionClosedError,
    TransportError,
  )
from ..constants import MAX_DATAGRAM_SIZE
from ..pkg_logging import logger
from ..protocol import (
    BaseMessage,
    KeepaliveMessage,
    KEEPALIVE_PING,
    Message,
    decode_message,
    encode_message,
    is_keepalive_ping,
    make_registration,
  )

from .client_config import Magic4pcClientConfig
from .client_transport import Magic4pcClientTransport
from .keepalive import KeepaliveMonitor

@dataclass
class SessionStats:
    """Counters for one session."""
    datagrams_received: int = 0
    messages_queued: int = 0
    messages_dropped: int = 0
    malformed_datagrams: int = 0
    socket_errors: int = 0

class _SessionProtocol(asyncio.DatagramProtocol):
    session: UdpMagic4pcClientTransport

    def __init__(self, session: UdpMagic4pcClientTransport):
        self.session = session

    def datagram_received(self, data: bytes, addr: HostAndPort) -> None:
        self.session.on_datagram(data)

    def error_received(self, exc: Exception) -> None:
        self.session.on_socket_error(exc)

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self.session.on_connection_lost(exc)

class UdpMagic4pcClientTransport(Magic4pcClientTransport):
    """magic4pc UDP client transport.

    The session is registered by connect(). From then on, inbound datagrams
    are decoded as they arrive: keepalives feed the keepalive monitor, and
    everything else is appended to a bounded queue drained by recv(). If the
    queue is full the new message is dropped; the network side never waits
    for the consumer.
    """

    host: str
    port: int
    config: Magic4pcClientConfig
    timeout_secs: float
    final_status: Future[None]
    stats: SessionStats

    transport: Optional[asyncio.DatagramTransport] = None
    keepalive: Optional[KeepaliveMonitor] = None
    closed: bool = False

    _queue: asyncio.Queue[Message]
    _closed_event: asyncio.Event
    _pending_error: Optional[Exception] = None

    def __init__(
            self,
            host: str,
            port: int,
            config: Optional[Magic4pcClientConfig]=None,
          ) -> None:
        """Initializes the transport. Does not open the socket; see connect().
           Must be called with a running event loop.
        """
        super().__init__()
        self.host = host
        self.port = port
        self.config = Magic4pcClientConfig(base_config=config)
        self.timeout_secs = self.config.timeout_secs
        self.final_status = asyncio.get_running_loop().create_future()
        self.stats = SessionStats()
        self._queue = asyncio.Queue(maxsize=self.config.recv_queue_size)
        self._closed_event = asyncio.Event()

    @property
    def queue_size(self) -> int:
        """Number of messages waiting to be received."""
        return self._queue.qsize()

    def _send_bytes(self, data: bytes) -> None:
        """Writes one datagram. Raises TransportError if the session is closed
           or the write fails."""
        if self.closed or self.transport is None or self.transport.is_closing():
            raise TransportError(f"{self}: Session is closed")
        pending_error, self._pending_error = self._pending_error, None
        if pending_error is not None:
            raise TransportError(f"{self}: Send failed: {pending_error}") from pending_error
        logger.debug(f"{self}: Sending {len(data)} bytes: {data!r}")
        try:
            self.transport.sendto(data)
        except OSError as e:
            raise TransportError(f"{self}: Send failed: {e}") from e

    async def send(self, message: BaseMessage) -> None:
        """Encodes a message and sends it to the service as one datagram.
        """
        self._send_bytes(encode_message(message))

    def send_keepalive(self) -> None:
        """Sends a client keepalive ping."""
        self._send_bytes(KEEPALIVE_PING)

    def on_datagram(self, data: bytes) -> None:
        """Called for each datagram received from the service."""
        if self.closed:
            return
        self.stats.datagrams_received += 1
        if len(data) > MAX_DATAGRAM_SIZE:
            logger.debug(f"{self}: Oversize datagram ({len(data)} bytes)")
        if is_keepalive_ping(data):
            self._on_keepalive()
            return
        try:
            message = decode_message(data)
        except DecodingError as e:
            self.stats.malformed_datagrams += 1
            logger.warning(f"{self}: Decode failed; skipping datagram: {e}")
            return
        if isinstance(message, KeepaliveMessage):
            self._on_keepalive()
            return
        logger.debug(f"{self}: Received {message!r}")
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            self.stats.messages_dropped += 1
            logger.warning(f"{self}: Receive buffer full, discarding {message.message_type} message")
            return
        self.stats.messages_queued += 1

    def _on_keepalive(self) -> None:
        logger.debug(f"{self}: Received keepalive")
        if self.keepalive is not None:
            self.keepalive.ping_received()

    def on_socket_error(self, exc: Exception) -> None:
        """Called with socket errors the event loop reports asynchronously,
           e.g., ECONNREFUSED from an ICMP port unreachable. The error is
           raised from the next send, as a connected socket reports it."""
        self.stats.socket_errors += 1
        logger.debug(f"{self}: Socket error: {exc}")
        self._pending_error = exc

    def on_connection_lost(self, exc: Optional[Exception]) -> None:
        if exc is None:
            self._begin_shutdown()
        else:
            error = TransportError(f"{self}: Connection lost: {exc}")
            error.__cause__ = exc
            self._begin_shutdown(error)

    async def recv(self, cancel: Optional[asyncio.Event]=None) -> Message:
        """Waits for the next message from the service.
        """
        while True:
            if not self._queue.empty():
                return self._queue.get_nowait()
            if self.closed:
                raise SessionClosedError(f"{self}: Session is closed") from self._final_exception()
            if cancel is not None and cancel.is_set():
                raise RecvCancelledError(f"{self}: Receive cancelled")
            getter = asyncio.ensure_future(self._queue.get())
            waiters: List[asyncio.Future[Any]] = [
                getter, asyncio.ensure_future(self._closed_event.wait())]
            if cancel is not None:
                waiters.append(asyncio.ensure_future(cancel.wait()))
            try:
                await asyncio.wait(waiters, return_when=asyncio.FIRST_COMPLETED)
            finally:
                for waiter in waiters:
                    waiter.cancel()
            if getter.done() and not getter.cancelled():
                return getter.result()

    def _final_exception(self) -> Optional[BaseException]:
        if self.final_status.done() and not self.final_status.cancelled():
            return self.final_status.exception()
        return None

    def _begin_shutdown(self, exc: Optional[BaseException] = None) -> None:
        if not self.final_status.done():
            if exc is not None:
                self.final_status.set_exception(exc)
            else:
                self.final_status.set_result(None)
        if self.closed:
            return
        self.closed = True
        logger.debug(f"{self}: Shutting down (exc={exc!r})")
        self._closed_event.set()
        if self.keepalive is not None:
            self.keepalive.cancel()
        try:
            if self.transport is not None:
                self.transport.close()
        except Exception:
            logger.debug("Exception while closing socket", exc_info=True)

    async def shutdown(self, exc: Optional[BaseException] = None) -> None:
        """Shuts the transport down. Does not wait for the transport to finish
           closing. Safe to call from a callback, from the keepalive monitor,
           and more than once.

        If exc is not None, sets the final status of the transport.
        """
        self._begin_shutdown(exc)

    def close(self) -> None:
        """Synchronous, non-raising shutdown with no error status. Safe to
           call at any time, including after the session closed itself."""
        self._begin_shutdown()

    async def wait(self) -> None:
        """Waits for complete shutdown/cleanup. Does not initiate shutdown.
        Not safe to call from a callback.

        Raises an exception if the final status of the transport is an exception.
        """
        await self._closed_event.wait()
        if self.keepalive is not None:
            await self.keepalive.wait()
        await self.final_status

    # @override
    async def __aenter__(self) -> UdpMagic4pcClientTransport:
        """Enters a context that will close the transport on exit."""
        return self

    async def connect(self) -> None:
        """Opens the socket, registers with the service and starts the
        keepalive monitor, with timeout.

        Raises DialError if the socket cannot be opened, and RegistrationError
        if the registration cannot be sent. On failure the socket is closed
        and nothing is left running.
        """
        try:
            assert self.transport is None
            loop = asyncio.get_running_loop()
            logger.debug(f"{self}: Dialing")
            try:
                transport, _ = await asyncio.wait_for(
                    loop.create_datagram_endpoint(
                        lambda: _SessionProtocol(self),
                        remote_addr=(self.host, self.port),
                      ),
                    self.timeout_secs)
            except (OSError, asyncio.TimeoutError) as e:
                raise DialError(f"{self}: Unable to dial: {e!r}") from e
            self.transport = transport

            try:
                registration = make_registration(self.config.update_freq, self.config.filters)
                await self.send(registration)
            except Exception as e:
                raise RegistrationError(f"{self}: Register failed: {e}") from e
            logger.debug(f"{self}: Sent registration {registration!r}")

            self.keepalive = KeepaliveMonitor(
                self.send_keepalive,
                self.shutdown,
                timeout_secs=self.config.keepalive_timeout_secs,
                interval_secs=self.config.keepalive_interval_secs,
              )
            self.keepalive.start()
            logger.info(f"{self}: Registered with service")
        except BaseException as e:
            self._begin_shutdown(e if isinstance(e, Exception) else None)
            # The caller sees the exception directly; mark the final status retrieved.
            self.final_status.exception()
            raise

    @classmethod
    async def create(
            cls,
            host: str,
            port: int,
            config: Optional[Magic4pcClientConfig]=None,
          ) -> Self:
        """Creates a transport, dials the service at host:port and registers.
        """
        transport = cls(host, port, config=config)
        await transport.connect()
        # on error, the transport has been shut down
        return transport

    def __str__(self) -> str:
        return f"UdpMagic4pcClientTransport({self.host}:{self.port})"

    def __repr__(self) -> str:
        return str(self)
