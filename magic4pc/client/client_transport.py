# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc client abstract transport interface.

Provides a low-level abstract interface for a registered session with a
magic4pc service: sending messages and receiving the decoded messages the
service streams. Keepalives are handled by the transport and are never
visible through this interface.
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod

from ..internal_types import *
from ..exceptions import SessionClosedError
from ..protocol import BaseMessage, Message


class Magic4pcClientTransport(ABC):
    @abstractmethod
    async def send(self, message: BaseMessage) -> None:
        """Encodes a message and sends it to the service as one datagram.

        Raises EncodingError if the message cannot be encoded, and
        TransportError if it cannot be sent (including when the transport
        is closed).

        Must be implemented by subclasses.
        """
        raise NotImplementedError()

    @abstractmethod
    async def recv(self, cancel: Optional[asyncio.Event]=None) -> Message:
        """Waits for the next message from the service.

        Messages are returned in the order they arrived. Keepalives are
        never returned.

        Raises RecvCancelledError if cancel is set before a message is
        available, and SessionClosedError once the transport is closed and
        all buffered messages have been returned.

        Must be implemented by subclasses.
        """
        raise NotImplementedError()

    @abstractmethod
    async def shutdown(self, exc: Optional[BaseException] = None) -> None:
        """Shuts the transport down. Does not wait for the transport to finish
           closing. Safe to call from a callback.

        If exc is not None, sets the final status of the transport.

        Has no effect if the transport is already shutting down or closed.

        Does not raise an exception based on final status.

        Must be implemented by subclasses.
        """
        raise NotImplementedError()

    @abstractmethod
    async def wait(self) -> None:
        """Waits for complete shutdown/cleanup. Does not initiate shutdown
        Not safe to call from a callback.

        Returns immediately if the transport is already closed.
        Raises an exception if the final status of the transport is an exception.

        Must be implemented by a subclass.
        """
        raise NotImplementedError()

    async def aclose(self, exc: Optional[BaseException] = None) -> None:
        """Closes the transport and waits for complete shutdown/cleanup.
        Not safe to call from a callback.

        If exc is not None, sets the final status of the transport.

        Has no effect if the transport is already closed.

        Raises an exception if the final status of the transport is an exception.

        May be overridden by subclasses. The default implementation simply calls
        shutdown() and then wait().
        """
        await self.shutdown(exc)
        await self.wait()

    async def __aiter__(self) -> AsyncIterator[Message]:
        """Yields received messages until the transport is closed."""
        while True:
            try:
                message = await self.recv()
            except SessionClosedError:
                return
            yield message

    async def __aenter__(self) -> Magic4pcClientTransport:
        """Enters a context that will close the transport on exit."""
        return self

    async def __aexit__(
            self,
            exc_type: Optional[Type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType],
          ) -> None:
        """Exits the context, closes the transport, and waits for complete shutdown/cleanup."""
        # Close the transport without raising an exception
        closer: asyncio.Task[None] = asyncio.ensure_future(self.aclose(exc))
        assert isinstance(closer, asyncio.Task)
        done, pending = await asyncio.wait([closer])
        assert len(done) == 1 and len(pending) == 0
        if exc is None:
            # raise the exception from the transport if there is one
            closer.result()
