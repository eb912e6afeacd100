# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
magic4pc service emulator.

Provides a simple emulation of the magic4pc television service on UDP.
"""

from .emulator_impl import Magic4pcEmulator
