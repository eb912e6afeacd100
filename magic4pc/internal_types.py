# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Type hints used internally by this package"""

from __future__ import annotations

from typing import (
    TYPE_CHECKING,
    Any,
    AsyncContextManager,
    AsyncIterator,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Literal,
    Optional,
    Sequence,
    Tuple,
    Type,
    Union,
    cast,
  )

from types import TracebackType

from typing_extensions import Self, TypeAlias

Jsonable: TypeAlias = Union[
    Dict[str, 'Jsonable'],
    List['Jsonable'],
    str,
    int,
    float,
    bool,
    None,
  ]
"""A type hint for a simple JSON-serializable value"""

JsonableDict: TypeAlias = Dict[str, Jsonable]
"""A type hint for a simple JSON-serializable dict"""

HostAndPort: TypeAlias = Tuple[str, int]
"""A (host, port) socket address"""
