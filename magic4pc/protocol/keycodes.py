# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Key codes sent by the magic remote in input messages.

The package passes key codes through untouched; mapping them to local keys is
left to the application.
"""

from __future__ import annotations

from enum import IntEnum

from ..internal_types import *

class KeyCode(IntEnum):
    WHEEL_PRESSED = 13
    CHANNEL_UP = 33
    CHANNEL_DOWN = 34
    LEFT = 37
    UP = 38
    RIGHT = 39
    DOWN = 40
    KEY_0 = 48
    KEY_1 = 49
    KEY_2 = 50
    KEY_3 = 51
    KEY_4 = 52
    KEY_5 = 53
    KEY_6 = 54
    KEY_7 = 55
    KEY_8 = 56
    KEY_9 = 57
    RED = 403
    GREEN = 404
    YELLOW = 405
    BLUE = 406
    BACK = 461

    @classmethod
    def lookup(cls, key_code: int) -> Optional[KeyCode]:
        """Returns the KeyCode for a raw key code, or None if it is not a known key."""
        try:
            return cls(key_code)
        except ValueError:
            return None
