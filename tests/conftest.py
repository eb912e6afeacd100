# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import os

import pytest

from magic4pc.emulator import Magic4pcEmulator

@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith('MAGIC4PC_'):
            monkeypatch.delenv(name)

@pytest.fixture
async def emulator():
    async with Magic4pcEmulator(port=0) as emu:
        yield emu
