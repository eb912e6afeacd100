# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Low-level protocol definitions for the magic4pc remote control service.

The service runs on a webOS television and streams magic remote events over
UDP as JSON datagrams.
"""

from .constants import (
    MessageType,
    PROTOCOL_VERSION,
  )

from .keycodes import KeyCode

from .sensor import (
    SensorData,
    SENSOR_LAYOUT,
    SENSOR_PAYLOAD_SIZE,
    decode_sensor_payload,
    encode_sensor_payload,
  )

from .message import (
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
    message_classes,
    encode_message,
    decode_message,
  )

from .handshake import (
    KEEPALIVE_PING,
    is_keepalive_ping,
    make_registration,
  )
