# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc service host IP/Port resolver.

Provides a method that can resolve host strings, environment variables and
broadcast discovery into a service IP address and port.
"""

from __future__ import annotations

import os
import asyncio

from ..internal_types import *
from ..exceptions import DiscovererClosedError, Magic4pcError
from ..constants import DEFAULT_BROADCAST_PORT, DEFAULT_PORT, DEFAULT_TIMEOUT
from ..pkg_logging import logger
from ..discovery import DeviceInfo, Magic4pcDiscoverer

async def discover_device(
        selector: Optional[str]=None,
        broadcast_port: int=DEFAULT_BROADCAST_PORT,
        timeout_secs: float=DEFAULT_TIMEOUT,
      ) -> DeviceInfo:
    """Listens for advertisements until a device matching selector is found.

        Args:
            selector: A MAC address, model name or IP address to match, or
                    None to accept the first device found.
            broadcast_port: The UDP port to listen on for advertisements.
            timeout_secs: How long to listen before giving up.

        Raises Magic4pcError if no matching device is found in time.
    """
    async def find() -> DeviceInfo:
        async with Magic4pcDiscoverer(broadcast_port=broadcast_port) as discoverer:
            async for device in discoverer:
                if device.matches(selector):
                    return device
                logger.debug(f"Discovery: Ignoring non-matching device {device}")
        raise DiscovererClosedError("Discoverer closed before a device was found")

    try:
        return await asyncio.wait_for(find(), timeout_secs)
    except asyncio.TimeoutError as e:
        what = "a magic4pc service" if selector is None or selector == '' else f"magic4pc service '{selector}'"
        raise Magic4pcError(f"Discovery failed to find {what} within {timeout_secs} seconds") from e

async def resolve_magic4pc_host(
        host: Optional[str]=None,
        default_port: Optional[int]=None,
        broadcast_port: int=DEFAULT_BROADCAST_PORT,
        timeout_secs: float=DEFAULT_TIMEOUT,
      ) -> Tuple[str, int, Optional[DeviceInfo]]:
    """Resolves a service host string into an IP address and port.

        Args:
            host: The hostname or IPV4 address of the service.
                    may optionally be prefixed with "udp://".
                    May be suffixed with ":<port>" to specify a
                    non-default port, which will override the default_port argument.
                    May be "discover://" or "discover://<selector>" to listen
                    for advertisements; selector may be a MAC address, model
                    name or IP address.
                    If None, the host will be taken from the
                    MAGIC4PC_HOST environment variable.
            default_port: The default UDP port number to use. If None, the port
                    will be taken from MAGIC4PC_PORT. If that
                    environment variable is not found, DEFAULT_PORT (42831)
                    will be used.
            broadcast_port: The advertisement port used for discovery.
            timeout_secs: How long discovery may take.

        Returns:
            A tuple of (hostname: str, port: int, device_info: Optional[DeviceInfo]) where:
                hostname:    The resolved IP address.
                port:        The resolved port number.
                device_info: The advertised device, if discovery was used.
                             None otherwise.
    """
    if host is None or host == '':
        host = os.environ.get('MAGIC4PC_HOST')
        if host is None or host == '':
            host = "discover://" # Use discovery

    if default_port is None or default_port <= 0:
        default_port_str = os.environ.get('MAGIC4PC_PORT')
        if default_port_str is None or default_port_str == '':
            default_port = DEFAULT_PORT
        else:
            try:
                default_port = int(default_port_str)
            except ValueError as e:
                raise Magic4pcError(f"Invalid MAGIC4PC_PORT: '{default_port_str}'") from e

    result_host: str
    port: int
    device_info: Optional[DeviceInfo] = None

    if host.startswith('discover://'):
        selector: Optional[str] = host[11:]
        if selector == '':
            selector = None
        device_info = await discover_device(
            selector,
            broadcast_port=broadcast_port,
            timeout_secs=timeout_secs,
          )
        logger.info(f"Discovery: Found {device_info}")
        result_host = device_info.ip_addr
        port = device_info.port
    else:
        if host.startswith('udp://'):
            host = host[6:]
        elif '://' in host:
            raise Magic4pcError(f"Unsupported protocol in host specifier: '{host}'")
        if ':' in host:
            host, port_str = host.rsplit(':', 1)
            try:
                port = int(port_str)
            except ValueError as e:
                raise Magic4pcError(f"Invalid port in host specifier: '{port_str}'") from e
        else:
            port = default_port
        if host == '':
            raise Magic4pcError("Empty host in host specifier")
        result_host = host

    return (result_host, port, device_info)
