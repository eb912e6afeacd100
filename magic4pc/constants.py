# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by magic4pc"""

DEFAULT_BROADCAST_PORT = 42830
"""The UDP port on which the television service broadcasts its advertisements."""

DEFAULT_PORT = 42831
"""The unicast UDP port the television service usually listens on. Advertisements
   carry the actual port, which always takes precedence."""

DEFAULT_TIMEOUT = 5.0
"""The default timeout for dialing a session or discovering a device, in seconds."""

DEFAULT_UPDATE_FREQ = 250
"""The default remote update frequency requested at registration, in messages per second."""

DEFAULT_FILTERS = (
    "returnValue",
    "deviceId",
    "coordinate",
    "gyroscope",
    "acceleration",
    "quaternion",
  )
"""The sensor fields requested at registration by default. The order matches the
   layout of the binary remote update payload."""

KEEPALIVE_TIMEOUT = 3.0
"""If no keepalive arrives from the service for this long, in seconds, the
   session is closed."""

KEEPALIVE_INTERVAL = 2.0
"""The interval between keepalive pings sent to the service, in seconds."""

RECV_QUEUE_SIZE = 10
"""The number of decoded messages buffered for the consumer of a session. Messages
   that arrive while the buffer is full are dropped."""

MAX_DATAGRAM_SIZE = 1024
"""Largest datagram the service is known to send. Only used for logging oversize
   datagrams; larger datagrams are still processed."""
