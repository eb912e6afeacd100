# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import asyncio

import pytest

from magic4pc import DEFAULT_PORT, Magic4pcError, resolve_magic4pc_host

from .helpers import free_udp_port


async def test_host_and_port():
    assert await resolve_magic4pc_host("10.0.0.5:9999") == ("10.0.0.5", 9999, None)


async def test_udp_prefix_and_default_port():
    assert await resolve_magic4pc_host("udp://10.0.0.5", default_port=1234) == ("10.0.0.5", 1234, None)
    assert await resolve_magic4pc_host("tv.local") == ("tv.local", DEFAULT_PORT, None)


async def test_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("MAGIC4PC_HOST", "192.168.1.20")
    monkeypatch.setenv("MAGIC4PC_PORT", "4000")
    assert await resolve_magic4pc_host() == ("192.168.1.20", 4000, None)


@pytest.mark.parametrize("host", ["tcp://10.0.0.5", "10.0.0.5:abc", ":42831"])
async def test_invalid_hosts(host: str):
    with pytest.raises(Magic4pcError):
        await resolve_magic4pc_host(host)


async def advertise_forever(emulator, port: int) -> None:
    while True:
        emulator.advertise(("127.0.0.1", port))
        await asyncio.sleep(0.02)


async def test_discover(emulator):
    port = free_udp_port()
    advertiser = asyncio.create_task(advertise_forever(emulator, port))
    try:
        host, dial_port, device = await resolve_magic4pc_host(
            "discover://", broadcast_port=port, timeout_secs=2.0)
    finally:
        advertiser.cancel()
    assert (host, dial_port) == ("127.0.0.1", emulator.local_port)
    assert device is not None
    assert device.mac == emulator.mac


async def test_discover_by_mac(emulator):
    port = free_udp_port()
    advertiser = asyncio.create_task(advertise_forever(emulator, port))
    try:
        _, _, device = await resolve_magic4pc_host(
            f"discover://{emulator.mac.upper()}", broadcast_port=port, timeout_secs=2.0)
    finally:
        advertiser.cancel()
    assert device is not None and device.model == emulator.model


async def test_discover_timeout(emulator):
    port = free_udp_port()
    advertiser = asyncio.create_task(advertise_forever(emulator, port))
    try:
        with pytest.raises(Magic4pcError):
            await resolve_magic4pc_host("discover://00:00:00:00:00:00", broadcast_port=port, timeout_secs=0.3)
    finally:
        advertiser.cancel()
