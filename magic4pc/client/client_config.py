# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc client configuration.

Provides the config object shared by connectors, sessions and the
discovery-based host resolver.
"""

from __future__ import annotations

import os

from ..internal_types import *
from ..exceptions import Magic4pcError
from ..constants import (
    DEFAULT_BROADCAST_PORT,
    DEFAULT_FILTERS,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT,
    DEFAULT_UPDATE_FREQ,
    KEEPALIVE_INTERVAL,
    KEEPALIVE_TIMEOUT,
    RECV_QUEUE_SIZE,
  )

def _env_int(name: str) -> Optional[int]:
    value = os.environ.get(name)
    if value is None or value == '':
        return None
    try:
        return int(value)
    except ValueError as e:
        raise Magic4pcError(f"Environment variable {name} must be an integer: '{value}'") from e

class Magic4pcClientConfig:
    """magic4pc client configuration."""
    default_host: Optional[str]
    default_port: int
    broadcast_port: int
    update_freq: int
    filters: Tuple[str, ...]
    timeout_secs: float
    keepalive_timeout_secs: float
    keepalive_interval_secs: float
    recv_queue_size: int

    def __init__(
            self,
            default_host: Optional[str]=None,
            *,
            default_port: Optional[int]=None,
            broadcast_port: Optional[int]=None,
            update_freq: Optional[int]=None,
            filters: Optional[Iterable[str]]=None,
            timeout_secs: Optional[float]=None,
            keepalive_timeout_secs: Optional[float]=None,
            keepalive_interval_secs: Optional[float]=None,
            recv_queue_size: Optional[int]=None,
            base_config: Optional[Magic4pcClientConfig]=None
          ) -> None:
        """Creates a configuration for a magic4pc client.

           Args:
             default_host: The default host of the service. May be a hostname or
                   IPV4 address, optionally prefixed with "udp://" and optionally
                   suffixed with ":<port>", which overrides default_port.
                   May be "discover://" or "discover://<selector>" to find the
                   service by listening for its advertisements; selector may be
                   a MAC address, model name or IP address.
                   If None, the default host will be taken from the
                     MAGIC4PC_HOST environment variable, and if that is not
                     set, discovery is used.
             default_port: The default unicast UDP port of the service.
                   If None, taken from MAGIC4PC_PORT, or DEFAULT_PORT (42831).
             broadcast_port: The UDP port advertisements are broadcast to.
                   If None, taken from MAGIC4PC_BROADCAST_PORT, or
                   DEFAULT_BROADCAST_PORT (42830).
             update_freq: Remote update frequency requested at registration.
                   If None, taken from MAGIC4PC_UPDATE_FREQ, or
                   DEFAULT_UPDATE_FREQ (250).
             filters: Sensor fields requested at registration. If None,
                   DEFAULT_FILTERS is used.
             timeout_secs: Timeout for dialing and for discovery, in seconds.
             keepalive_timeout_secs: Time without a keepalive from the service
                   after which the session is closed, in seconds.
             keepalive_interval_secs: Interval between keepalives sent to the
                   service, in seconds.
             recv_queue_size: Number of decoded messages buffered for the
                   consumer. Messages arriving while the buffer is full are
                   dropped.
             base_config:
                     An optional base configuration to use.
        """
        if base_config is None:
            self.init_from_defaults()
        else:
            self.init_from_base_config(base_config)

        if default_host is not None and default_host != '':
            self.default_host = default_host

        if default_port is not None and default_port > 0:
            self.default_port = default_port

        if broadcast_port is not None:
            self.broadcast_port = broadcast_port

        if update_freq is not None:
            self.update_freq = update_freq

        if filters is not None:
            if isinstance(filters, (str, bytes)):
                raise Magic4pcError(f"filters must be a list of sensor names, not a string: {filters!r}")
            self.filters = tuple(filters)

        if timeout_secs is not None:
            self.timeout_secs = timeout_secs

        if keepalive_timeout_secs is not None:
            self.keepalive_timeout_secs = keepalive_timeout_secs

        if keepalive_interval_secs is not None:
            self.keepalive_interval_secs = keepalive_interval_secs

        if recv_queue_size is not None:
            self.recv_queue_size = recv_queue_size

        self.validate()

    def init_from_defaults(self) -> None:
        """Initializes the configuration from the environment and defaults."""
        default_host: Optional[str] = os.environ.get('MAGIC4PC_HOST')
        if default_host is None or default_host == '':
            default_host = "discover://" # Use discovery by default
        self.default_host = default_host
        default_port = _env_int('MAGIC4PC_PORT')
        self.default_port = DEFAULT_PORT if default_port is None else default_port
        broadcast_port = _env_int('MAGIC4PC_BROADCAST_PORT')
        self.broadcast_port = DEFAULT_BROADCAST_PORT if broadcast_port is None else broadcast_port
        update_freq = _env_int('MAGIC4PC_UPDATE_FREQ')
        self.update_freq = DEFAULT_UPDATE_FREQ if update_freq is None else update_freq
        self.filters = DEFAULT_FILTERS
        self.timeout_secs = DEFAULT_TIMEOUT
        self.keepalive_timeout_secs = KEEPALIVE_TIMEOUT
        self.keepalive_interval_secs = KEEPALIVE_INTERVAL
        self.recv_queue_size = RECV_QUEUE_SIZE

    def init_from_base_config(self, base_config: Magic4pcClientConfig) -> None:
        """Initializes the configuration from a base configuration."""
        self.default_host = base_config.default_host
        self.default_port = base_config.default_port
        self.broadcast_port = base_config.broadcast_port
        self.update_freq = base_config.update_freq
        self.filters = base_config.filters
        self.timeout_secs = base_config.timeout_secs
        self.keepalive_timeout_secs = base_config.keepalive_timeout_secs
        self.keepalive_interval_secs = base_config.keepalive_interval_secs
        self.recv_queue_size = base_config.recv_queue_size

    def validate(self) -> None:
        """Raises Magic4pcError if any setting is out of range."""
        if self.update_freq <= 0:
            raise Magic4pcError(f"update_freq must be positive: {self.update_freq}")
        if len(self.filters) == 0:
            raise Magic4pcError("At least one sensor filter is required")
        for name in self.filters:
            if not isinstance(name, str) or name == '':
                raise Magic4pcError(f"Invalid sensor filter name: {name!r}")
        for name in ('timeout_secs', 'keepalive_timeout_secs', 'keepalive_interval_secs'):
            if getattr(self, name) <= 0:
                raise Magic4pcError(f"{name} must be positive: {getattr(self, name)}")
        if self.recv_queue_size <= 0:
            raise Magic4pcError(f"recv_queue_size must be positive: {self.recv_queue_size}")
        if not 0 <= self.broadcast_port <= 65535:
            raise Magic4pcError(f"Invalid broadcast_port: {self.broadcast_port}")

    @classmethod
    def from_jsonable(cls, data: JsonableDict, base_config: Optional[Magic4pcClientConfig]=None) -> Self:
        """Creates a configuration from a JSON-compatible dict, e.g., loaded from a
           config file. Keys are the constructor argument names; missing keys fall
           back to base_config or the defaults."""
        known = {
            'default_host', 'default_port', 'broadcast_port', 'update_freq', 'filters',
            'timeout_secs', 'keepalive_timeout_secs', 'keepalive_interval_secs',
            'recv_queue_size',
          }
        unknown = set(data.keys()) - known
        if len(unknown) > 0:
            raise Magic4pcError(f"Unknown config keys: {', '.join(sorted(unknown))}")
        filters = data.get('filters')
        if filters is not None and not isinstance(filters, list):
            raise Magic4pcError(f"Config 'filters' must be a list of strings: {filters!r}")
        return cls(
            cast(Optional[str], data.get('default_host')),
            default_port=cast(Optional[int], data.get('default_port')),
            broadcast_port=cast(Optional[int], data.get('broadcast_port')),
            update_freq=cast(Optional[int], data.get('update_freq')),
            filters=cast(Optional[List[str]], filters),
            timeout_secs=cast(Optional[float], data.get('timeout_secs')),
            keepalive_timeout_secs=cast(Optional[float], data.get('keepalive_timeout_secs')),
            keepalive_interval_secs=cast(Optional[float], data.get('keepalive_interval_secs')),
            recv_queue_size=cast(Optional[int], data.get('recv_queue_size')),
            base_config=base_config,
          )

    def to_jsonable(self) -> JsonableDict:
        return dict(
            default_host=self.default_host,
            default_port=self.default_port,
            broadcast_port=self.broadcast_port,
            update_freq=self.update_freq,
            filters=list(self.filters),
            timeout_secs=self.timeout_secs,
            keepalive_timeout_secs=self.keepalive_timeout_secs,
            keepalive_interval_secs=self.keepalive_interval_secs,
            recv_queue_size=self.recv_queue_size,
          )

    def __str__(self) -> str:
        return (
            f"Magic4pcClientConfig("
            f"default_host={self.default_host}, "
            f"default_port={self.default_port}, "
            f"update_freq={self.update_freq}, "
            f"timeout_secs={self.timeout_secs!r})"
          )

    def __repr__(self) -> str:
        return str(self)
