# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc client.

Drains a registered session and dispatches each decoded message to an event
handler. Handlers are where key codes and sensor values are turned into
local input events; this package does not interpret them.
"""

from __future__ import annotations

import asyncio

from ..internal_types import *
from ..exceptions import SessionClosedError
from ..constants import DEFAULT_PORT
from ..pkg_logging import logger
from ..protocol import (
    BaseMessage,
    InputMessage,
    KeyEvent,
    Message,
    MouseEvent,
    MouseMessage,
    RemoteUpdateMessage,
    SensorData,
    WheelEvent,
    WheelMessage,
  )

from .client_config import Magic4pcClientConfig
from .client_transport import Magic4pcClientTransport
from .udp_client_transport import UdpMagic4pcClientTransport

class Magic4pcEventHandler:
    """Receives the events of a session. Override the methods of interest;
       the defaults ignore everything."""

    async def on_key_event(self, event: KeyEvent) -> None:
        pass

    async def on_sensor_update(self, message: RemoteUpdateMessage, data: SensorData) -> None:
        """Called for each remote update. data may be partially decoded; see
           SensorData.error."""
        pass

    async def on_mouse_event(self, event: MouseEvent) -> None:
        pass

    async def on_wheel_event(self, event: WheelEvent) -> None:
        pass

    async def on_other_message(self, message: BaseMessage) -> None:
        """Called for messages a client should not normally receive (e.g., an
           advertisement sent to the session port)."""
        logger.debug(f"Ignoring unexpected {message.message_type} message")

class Magic4pcClient:
    """magic4pc client."""

    transport: Magic4pcClientTransport

    def __init__(
            self,
            transport: Magic4pcClientTransport,
          ):
        self.transport = transport

    async def recv(self, cancel: Optional[asyncio.Event]=None) -> Message:
        """Waits for the next message from the service."""
        return await self.transport.recv(cancel)

    async def dispatch(self, message: Message, handler: Magic4pcEventHandler) -> None:
        """Passes one message to the matching handler method."""
        if isinstance(message, InputMessage):
            await handler.on_key_event(message.parameters)
        elif isinstance(message, RemoteUpdateMessage):
            data = message.sensor_data()
            if data.error is not None:
                logger.debug(f"{self}: {data.error}")
            await handler.on_sensor_update(message, data)
        elif isinstance(message, MouseMessage):
            await handler.on_mouse_event(message.mouse)
        elif isinstance(message, WheelMessage):
            await handler.on_wheel_event(message.wheel)
        else:
            await handler.on_other_message(message)

    async def run(
            self,
            handler: Magic4pcEventHandler,
            cancel: Optional[asyncio.Event]=None,
          ) -> None:
        """Dispatches messages to handler until the session closes.

        Returns normally if the session was closed by its owner. Raises
        RecvCancelledError if cancel is set, and the session's final error
        (e.g., KeepaliveTimeoutError) if the session failed.
        """
        while True:
            try:
                message = await self.recv(cancel)
            except SessionClosedError as e:
                logger.info(f"{self}: Session ended")
                if e.__cause__ is not None:
                    raise e.__cause__
                return
            await self.dispatch(message, handler)

    async def _async_dispose(self) -> None:
        await self.transport.aclose()

    async def __aenter__(self) -> Magic4pcClient:
        logger.debug(f"{self}: Entering async context manager")
        return self

    async def __aexit__(
            self,
            exc_type: type[BaseException],
            exc_val: Optional[BaseException],
            exc_tb: TracebackType
          ) -> None:
        logger.debug(f"{self}: Exiting async context manager, exc={exc_val}")
        await self._async_dispose()

    @classmethod
    async def create(
            cls,
            host: str,
            port: int=DEFAULT_PORT,
            config: Optional[Magic4pcClientConfig]=None,
          ) -> Self:
        transport = await UdpMagic4pcClientTransport.create(
                host,
                port,
                config=config,
              )
        try:
            self = cls(transport)
        except BaseException as e:
            await transport.aclose()
            raise
        return self

    def __str__(self) -> str:
        return f"Magic4pcClient(transport={self.transport})"

    def __repr__(self) -> str:
       return str(self)

    async def aclose(self) -> None:
       await self._async_dispose()
