# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Wire-level constants for the magic4pc protocol.
"""

from __future__ import annotations

from enum import Enum

PROTOCOL_VERSION = 1
"""The protocol version carried in every message."""

class MessageType(str, Enum):
    """Values of the "t" discriminator field of a message."""

    ADVERTISEMENT = "magic4pc_ad"
    """Broadcast by the service to announce itself."""

    SUB_SENSOR = "sub_sensor"
    """Sent by the client to register for updates."""

    REMOTE_UPDATE = "remote_update"
    """Motion sensor telemetry from the remote."""

    INPUT = "input"
    """A key press or release on the remote."""

    MOUSE = "mouse"
    """A pointer button press or release."""

    WHEEL = "wheel"
    """A scroll wheel movement."""

    KEEPALIVE = "keepalive"
    """A liveness ping."""

    def __str__(self) -> str:
        return self.value
