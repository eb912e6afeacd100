# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc simple client connection API.

Provides a simple API for dialing a magic4pc service.
"""

from __future__ import annotations

from ..internal_types import *
from .client_transport import Magic4pcClientTransport
from .client_config import Magic4pcClientConfig
from .client_impl import Magic4pcClient
from .udp_connector import UdpMagic4pcConnector

async def magic4pc_dial(
        host: Optional[str]=None,
        config: Optional[Magic4pcClientConfig]=None,
        *,
        update_freq: Optional[int]=None,
        filters: Optional[Iterable[str]]=None,
        timeout_secs: Optional[float]=None,
      ) -> Magic4pcClientTransport:
    """Dial a magic4pc service and register for updates.

    Args:
        host: The hostname or IPV4 address of the service.
                may optionally be prefixed with "udp://".
                May be suffixed with ":<port>" to specify a
                non-default port.
                May be "discover://" or "discover://<selector>" to
                find the service by its advertisements.
                If None, the host will be taken from the config, or the
                MAGIC4PC_HOST environment variable.
        config: A Magic4pcClientConfig object that specifies
                the default host, port, and registration options to use.
                If None, a default config will be created.
        update_freq: Overrides the config's remote update frequency.
        filters: Overrides the config's sensor filters.
        timeout_secs: Overrides the config's dial timeout.
    """
    config = Magic4pcClientConfig(
        default_host=host,
        update_freq=update_freq,
        filters=filters,
        timeout_secs=timeout_secs,
        base_config=config
      )
    connector = UdpMagic4pcConnector(config=config)
    transport = await connector.connect()
    return transport

async def magic4pc_connect(
        host: Optional[str]=None,
        config: Optional[Magic4pcClientConfig]=None,
      ) -> Magic4pcClient:
    """Dial a magic4pc service, register, and wrap the session in a
       Magic4pcClient.

    Args:
        host: As for magic4pc_dial().
        config: A Magic4pcClientConfig object that specifies
                the default host, port, and registration options to use.
                If None, a default config will be created.
    """
    transport = await magic4pc_dial(host, config=config)
    try:
        client = Magic4pcClient(transport)
    except BaseException:
        await transport.aclose()
        raise

    return client
