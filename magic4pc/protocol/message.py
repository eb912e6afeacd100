# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Message envelope for the magic4pc protocol.

Every datagram is a flat JSON object with a "t" discriminator, a "version"
integer, and the fields of exactly one message kind. Each kind is its own
model here, and Message is the union of all of them keyed on "t". Decoding
is strict: an unknown discriminator, a missing field, a field of the wrong
type, or a field that does not belong to the kind is an error.
"""

from __future__ import annotations

import base64
import binascii

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PlainSerializer,
    PlainValidator,
    TypeAdapter,
    ValidationError,
  )
from pydantic_core import PydanticSerializationError
from typing_extensions import Annotated

from ..internal_types import *
from ..exceptions import DecodingError, EncodingError
from .constants import MessageType, PROTOCOL_VERSION
from .sensor import SensorData, decode_sensor_payload

def _validate_wire_bytes(value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return base64.b64decode(value, validate=True)
        except binascii.Error as e:
            raise ValueError(f"Invalid base64 payload: {e}") from e
    raise ValueError(f"Expected base64 string, got {type(value).__name__}")

def _serialize_wire_bytes(value: bytes) -> str:
    return base64.b64encode(value).decode('ascii')

WireBytes = Annotated[
    bytes,
    PlainValidator(_validate_wire_bytes),
    PlainSerializer(_serialize_wire_bytes, return_type=str),
  ]
"""Binary data, carried on the wire as a standard base64 string."""

class WireModel(BaseModel):
    """Base for all wire models. Unknown fields are rejected."""
    model_config = ConfigDict(
        extra='forbid',
        frozen=True,
        strict=True,
        populate_by_name=True,
      )

class KeyEvent(WireModel):
    """Parameters of an input message."""
    key_code: int = Field(alias='keyCode')
    is_down: bool = Field(alias='isDown')

class MouseEvent(WireModel):
    """Body of a mouse message. type is "mousedown" or "mouseup"."""
    type: str
    x: int
    y: int

class WheelEvent(WireModel):
    """Body of a wheel message."""
    delta: int
    x: int
    y: int

class BaseMessage(WireModel):
    version: int = PROTOCOL_VERSION

    @property
    def message_type(self) -> MessageType:
        return MessageType(getattr(self, 'type'))

class AdvertisementMessage(BaseMessage):
    """Broadcast by the service to announce where it can be dialed."""
    type: Literal['magic4pc_ad'] = Field(default='magic4pc_ad', alias='t')
    model: str
    port: int
    mac: str

class RegistrationMessage(BaseMessage):
    """First message of a session; selects the update rate and the sensor fields."""
    type: Literal['sub_sensor'] = Field(default='sub_sensor', alias='t')
    update_freq: int = Field(alias='updateFreq')
    filter: List[str]

class RemoteUpdateMessage(BaseMessage):
    """Motion sensor telemetry. The payload is decoded separately by sensor_data()."""
    type: Literal['remote_update'] = Field(default='remote_update', alias='t')
    payload: WireBytes

    def sensor_data(self) -> SensorData:
        """Decodes the binary payload. Truncated payloads decode partially;
        see SensorData.error."""
        return decode_sensor_payload(self.payload)

class InputMessage(BaseMessage):
    """A key transition on the remote."""
    type: Literal['input'] = Field(default='input', alias='t')
    parameters: KeyEvent

class MouseMessage(BaseMessage):
    type: Literal['mouse'] = Field(default='mouse', alias='t')
    mouse: MouseEvent

class WheelMessage(BaseMessage):
    type: Literal['wheel'] = Field(default='wheel', alias='t')
    wheel: WheelEvent

class KeepaliveMessage(BaseMessage):
    type: Literal['keepalive'] = Field(default='keepalive', alias='t')

Message = Annotated[
    Union[
        AdvertisementMessage,
        RegistrationMessage,
        RemoteUpdateMessage,
        InputMessage,
        MouseMessage,
        WheelMessage,
        KeepaliveMessage,
      ],
    Field(discriminator='type'),
  ]
"""Any magic4pc message, discriminated by its "t" field."""

message_adapter: TypeAdapter[Message] = TypeAdapter(Message)

message_classes: Dict[MessageType, Type[BaseMessage]] = {
    MessageType.ADVERTISEMENT: AdvertisementMessage,
    MessageType.SUB_SENSOR: RegistrationMessage,
    MessageType.REMOTE_UPDATE: RemoteUpdateMessage,
    MessageType.INPUT: InputMessage,
    MessageType.MOUSE: MouseMessage,
    MessageType.WHEEL: WheelMessage,
    MessageType.KEEPALIVE: KeepaliveMessage,
  }
"""Map of message type to the model class for that type"""

def encode_message(message: BaseMessage) -> bytes:
    """Serializes a message to the bytes of one datagram."""
    if not isinstance(message, BaseMessage):
        raise EncodingError(f"Not a magic4pc message: {message!r}")
    try:
        return message.model_dump_json(by_alias=True).encode('utf-8')
    except PydanticSerializationError as e:
        raise EncodingError(f"Unable to encode {type(message).__name__}: {e}") from e

def decode_message(data: Union[bytes, bytearray, str]) -> Message:
    """Deserializes one datagram into a message.

    Raises DecodingError if the data is not a JSON object, its "t" field is
    not a known message type, or its fields do not match that type exactly.
    """
    try:
        return message_adapter.validate_json(data)
    except ValueError as e:
        raise DecodingError(f"Invalid message {data[:64]!r}: {e}") from e
