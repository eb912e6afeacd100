# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Package magic4pc provides an API for receiving magic remote events from
a webOS television running the magic4pc service, via its UDP protocol.
"""

from .version import __version__

from .pkg_logging import logger

from .internal_types import Jsonable, JsonableDict

from .exceptions import (
    Magic4pcError,
    BindError,
    TransportError,
    DialError,
    KeepaliveTimeoutError,
    RegistrationError,
    EncodingError,
    DecodingError,
    SensorDecodeError,
    SessionClosedError,
    RecvCancelledError,
    DiscovererClosedError,
  )

from .constants import (
    DEFAULT_BROADCAST_PORT,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    DEFAULT_UPDATE_FREQ,
    DEFAULT_FILTERS,
    KEEPALIVE_TIMEOUT,
    KEEPALIVE_INTERVAL,
    RECV_QUEUE_SIZE,
  )

from .protocol import (
    MessageType,
    PROTOCOL_VERSION,
    KeyCode,
    Message,
    BaseMessage,
    AdvertisementMessage,
    RegistrationMessage,
    RemoteUpdateMessage,
    InputMessage,
    MouseMessage,
    WheelMessage,
    KeepaliveMessage,
    KeyEvent,
    MouseEvent,
    WheelEvent,
    SensorData,
    encode_message,
    decode_message,
    decode_sensor_payload,
    encode_sensor_payload,
  )

from .discovery import (
    DeviceInfo,
    Magic4pcDiscoverer,
  )

from .client import (
    Magic4pcClient,
    Magic4pcEventHandler,
    Magic4pcClientTransport,
    UdpMagic4pcClientTransport,
    Magic4pcConnector,
    UdpMagic4pcConnector,
    Magic4pcClientConfig,
    resolve_magic4pc_host,
    discover_device,
    magic4pc_dial,
    magic4pc_connect,
  )
