# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Identity of a magic4pc service found by discovery.
"""

from __future__ import annotations

from dataclasses import dataclass

from ..internal_types import *
from ..protocol import AdvertisementMessage

@dataclass(frozen=True)
class DeviceInfo:
    """A magic4pc service announced by an advertisement.

    ip_addr is the source address of the advertisement datagram; the
    advertisement itself does not carry an address.
    """
    model: str
    ip_addr: str
    port: int
    mac: str

    @property
    def address(self) -> str:
        """The "host:port" unicast address to dial."""
        return f"{self.ip_addr}:{self.port}"

    @classmethod
    def from_advertisement(cls, message: AdvertisementMessage, src_addr: HostAndPort) -> DeviceInfo:
        return cls(
            model=message.model,
            ip_addr=src_addr[0],
            port=message.port,
            mac=message.mac,
          )

    def matches(self, selector: Optional[str]) -> bool:
        """Returns True if selector is None or empty, or equals the MAC address
           (case-insensitive), the model name, or the IP address of the device."""
        if selector is None or selector == '':
            return True
        return (
            selector.lower() == self.mac.lower()
            or selector == self.model
            or selector == self.ip_addr
          )

    def __str__(self) -> str:
        return f"DeviceInfo(model='{self.model}', address={self.address}, mac={self.mac})"
