# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Helpers shared by the tests."""

from __future__ import annotations

import asyncio
import socket

import pytest

from magic4pc import Magic4pcClientConfig

def make_config(**kwargs) -> Magic4pcClientConfig:
    """A config for loopback tests. Keepalive timings default to values long
       enough not to interfere with tests that are not about keepalives."""
    kwargs.setdefault('timeout_secs', 2.0)
    kwargs.setdefault('keepalive_timeout_secs', 10.0)
    kwargs.setdefault('keepalive_interval_secs', 10.0)
    return Magic4pcClientConfig(**kwargs)

async def wait_until(predicate, timeout_secs: float = 2.0) -> None:
    """Polls predicate until it is true, or fails the test."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout_secs
    while not predicate():
        if loop.time() > deadline:
            pytest.fail("Timed out waiting for condition")
        await asyncio.sleep(0.01)

def free_udp_port() -> int:
    """Returns a loopback UDP port that nothing is listening on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]
    finally:
        sock.close()
