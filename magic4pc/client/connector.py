# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc client abstract transport connector interface.

Provides a low-level abstract interface for objects that can create
registered transport sessions to a magic4pc service.
This abstraction allows for the implementation of proxies and test doubles.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..internal_types import *
from .client_transport import Magic4pcClientTransport

class Magic4pcConnector(ABC):
    """Abstract base class for magic4pc client transport connectors."""

    @abstractmethod
    async def connect(self) -> Magic4pcClientTransport:
        """Create and initialize (including registration) a client
           transport for the service associated with this connector.

        Must be implemented by subclasses.
        """
        raise NotImplementedError()
