# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

from ..internal_types import *
from ..constants import DEFAULT_FILTERS, DEFAULT_UPDATE_FREQ
from .message import RegistrationMessage

# Session handshake:
#   Client: sub_sensor message carrying updateFreq and filter
#   Service: starts streaming input/mouse/wheel/remote_update messages
#   Both sides: send a keepalive at least every KEEPALIVE_INTERVAL seconds;
#               either side drops the session after KEEPALIVE_TIMEOUT seconds
#               of silence.

KEEPALIVE_PING = b"{}"
"""The keepalive sent by the client. The service also accepts (and may send)
   a typed keepalive message."""

def is_keepalive_ping(data: bytes) -> bool:
    """Returns True iff data is the bare empty-object keepalive ping."""
    return data.strip() == KEEPALIVE_PING

def make_registration(
        update_freq: int=DEFAULT_UPDATE_FREQ,
        filters: Optional[Iterable[str]]=None,
      ) -> RegistrationMessage:
    """Creates the registration message that opens a session."""
    if filters is None:
        filters = DEFAULT_FILTERS
    return RegistrationMessage(update_freq=update_freq, filter=list(filters))
