# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc service discovery.

Listens for advertisements broadcast by magic4pc services on the local network.
"""

from .device_info import DeviceInfo
from .discoverer import Magic4pcDiscoverer
