#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

from typing import Optional

class Magic4pcError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

class BindError(Magic4pcError):
  """The discovery listener could not bind its UDP port."""
  pass

class TransportError(Magic4pcError):
  """A socket-level failure on a session. The session is closed."""
  pass

class DialError(TransportError):
  """The session socket could not be opened."""
  pass

class KeepaliveTimeoutError(TransportError):
  """The service stopped sending keepalives; the session is presumed dead."""
  pass

class RegistrationError(Magic4pcError):
  """The registration message could not be sent while dialing."""
  pass

class EncodingError(Magic4pcError):
  """A message could not be serialized."""
  pass

class DecodingError(Magic4pcError):
  """A datagram is not a well-formed message."""
  pass

class SensorDecodeError(DecodingError):
  """A remote update payload is truncated or malformed."""
  offset: int
  field_name: Optional[str]

  def __init__(self, msg: str, offset: int=0, field_name: Optional[str]=None):
    super().__init__(msg)
    self.offset = offset
    self.field_name = field_name

class SessionClosedError(Magic4pcError):
  """The session has been closed and will never deliver another message."""
  pass

class RecvCancelledError(Magic4pcError):
  """A receive was abandoned because the caller's cancel signal fired."""
  pass

class DiscovererClosedError(Magic4pcError):
  """The discovery listener has been closed."""
  pass
