# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc client.

Dials a magic4pc service, registers for updates, keeps the session alive
and receives the decoded message stream.
"""

from .resolve_host import resolve_magic4pc_host, discover_device
from .connector import Magic4pcConnector
from .client_transport import Magic4pcClientTransport
from .keepalive import KeepaliveMonitor, KeepaliveState
from .udp_client_transport import UdpMagic4pcClientTransport, SessionStats
from .udp_connector import UdpMagic4pcConnector
from .simple import magic4pc_dial, magic4pc_connect
from .client_config import Magic4pcClientConfig
from .client_impl import (
    Magic4pcClient,
    Magic4pcEventHandler,
  )
