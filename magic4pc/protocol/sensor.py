# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Decoding of the binary sensor payload carried by remote update messages.

The payload is a fixed, positional, little-endian layout:

    offset  size  field
    0       1     return_value   (uint8)
    1       1     device_id      (uint8)
    2       8     coordinate     (2 x int32: x, y)
    10      12    gyroscope      (3 x float32: x, y, z)
    22      12    acceleration   (3 x float32: x, y, z)
    34      16    quaternion     (4 x float32: q0, q1, q2, q3)

for a total of 50 bytes. A truncated payload is decoded as far as it goes;
the remaining fields are left as None and the failure is recorded in
SensorData.error rather than raised.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, fields

from ..internal_types import *
from ..exceptions import SensorDecodeError

SENSOR_LAYOUT: Tuple[Tuple[str, struct.Struct], ...] = (
    ("return_value", struct.Struct("<B")),
    ("device_id", struct.Struct("<B")),
    ("coordinate", struct.Struct("<2i")),
    ("gyroscope", struct.Struct("<3f")),
    ("acceleration", struct.Struct("<3f")),
    ("quaternion", struct.Struct("<4f")),
  )
"""Field name and binary format of each sensor field, in payload order."""

SENSOR_PAYLOAD_SIZE = sum(s.size for _, s in SENSOR_LAYOUT)
"""Size in bytes of a complete sensor payload."""

@dataclass(frozen=True)
class SensorData:
    """Sensor values decoded from a remote update payload.

    Fields that could not be decoded are None; in that case error describes
    where decoding stopped.
    """
    return_value: Optional[int] = None
    device_id: Optional[int] = None
    coordinate: Optional[Tuple[int, int]] = None
    gyroscope: Optional[Tuple[float, float, float]] = None
    acceleration: Optional[Tuple[float, float, float]] = None
    quaternion: Optional[Tuple[float, float, float, float]] = None
    error: Optional[SensorDecodeError] = None

    @property
    def is_complete(self) -> bool:
        """True iff every field was decoded."""
        return self.error is None

    @property
    def decoded_fields(self) -> List[str]:
        """Names of the fields that were decoded, in payload order."""
        return [name for name, _ in SENSOR_LAYOUT if getattr(self, name) is not None]

    def __str__(self) -> str:
        values = ", ".join(f"{name}={getattr(self, name)!r}" for name in self.decoded_fields)
        if self.error is not None:
            values += f", error={self.error}"
        return f"SensorData({values})"

def decode_sensor_payload(payload: bytes) -> SensorData:
    """Decodes a remote update payload. Never raises; see SensorData.error."""
    values: Dict[str, Any] = {}
    offset = 0
    for name, fmt in SENSOR_LAYOUT:
        if offset + fmt.size > len(payload):
            values["error"] = SensorDecodeError(
                f"Sensor payload truncated at offset {offset} while decoding {name} "
                f"({len(payload)} bytes, {fmt.size} more needed)",
                offset=offset,
                field_name=name,
              )
            break
        unpacked = fmt.unpack_from(payload, offset)
        values[name] = unpacked[0] if len(unpacked) == 1 else unpacked
        offset += fmt.size
    return SensorData(**values)

def encode_sensor_payload(data: SensorData) -> bytes:
    """Packs sensor values into a payload. Packing stops at the first missing field,
    producing a truncated payload."""
    result = b''
    for name, fmt in SENSOR_LAYOUT:
        value = getattr(data, name)
        if value is None:
            break
        if isinstance(value, tuple):
            result += fmt.pack(*value)
        else:
            result += fmt.pack(value)
    return result
