# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc UDP client connector.

Provides a connector for a UdpMagic4pcClientTransport.
"""

from __future__ import annotations

from ..internal_types import *
from ..exceptions import Magic4pcError
from ..pkg_logging import logger
from .connector import Magic4pcConnector
from .client_transport import Magic4pcClientTransport
from .client_config import Magic4pcClientConfig
from .resolve_host import resolve_magic4pc_host

from .udp_client_transport import UdpMagic4pcClientTransport

class UdpMagic4pcConnector(Magic4pcConnector):
    """magic4pc UDP client transport connector."""

    config: Magic4pcClientConfig

    def __init__(
            self,
            host: Optional[str]=None,
            port: Optional[int]=None,
            timeout_secs: Optional[float]=None,
            config: Optional[Magic4pcClientConfig]=None,
          ) -> None:
        """Creates a connector that can create sessions with
           a magic4pc service.

              Args:
                host: The hostname or IPV4 address of the service.
                      may optionally be prefixed with "udp://".
                      May be suffixed with ":<port>" to specify a
                      non-default port, which will override the port argument.
                      May be "discover://" or "discover://<selector>" to
                      find the service by its advertisements.
                      If None, the host will be taken from the config, or
                        the MAGIC4PC_HOST environment variable.
                port: The default UDP port number to use. If None, the port
                      will be taken from the config.
                timeout_secs: The timeout for dialing and discovery. If not
                        provided, the config's timeout is used.
                config: A Magic4pcClientConfig object that specifies
                        the default host, port, registration options, etc to use.
                        If None, a default config will be created.
        """
        super().__init__()
        self.config = Magic4pcClientConfig(
            default_host=host,
            default_port=port,
            timeout_secs=timeout_secs,
            base_config=config
          )
        host = self.config.default_host
        assert host is not None
        if '://' in host and not host.startswith('udp://') and not host.startswith('discover://'):
            raise Magic4pcError(f"Invalid host protocol specifier for UDP transport: '{host}'")

    async def connect(self) -> Magic4pcClientTransport:
        """Resolves the service address, then creates and registers a
           UDP client transport.
        """
        final_host, final_port, _ = await resolve_magic4pc_host(
            self.config.default_host,
            self.config.default_port,
            broadcast_port=self.config.broadcast_port,
            timeout_secs=self.config.timeout_secs,
          )
        logger.debug(f"{self}: Connecting to {final_host}:{final_port}")
        transport = await UdpMagic4pcClientTransport.create(
            final_host,
            final_port,
            config=self.config,
          )
        return transport

    def __str__(self) -> str:
        return f"UdpMagic4pcConnector(host='{self.config.default_host}', port={self.config.default_port})"

    def __repr__(self) -> str:
        return str(self)
