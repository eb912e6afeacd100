# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import asyncio
import json

import pytest

from magic4pc import (
    DEFAULT_FILTERS,
    DialError,
    InputMessage,
    KeepaliveTimeoutError,
    KeyEvent,
    Magic4pcDiscoverer,
    RecvCancelledError,
    RegistrationError,
    RemoteUpdateMessage,
    SessionClosedError,
    TransportError,
    UdpMagic4pcClientTransport,
)
from magic4pc.protocol import KEEPALIVE_PING

import magic4pc.client.udp_client_transport as udp_client_transport

from .helpers import free_udp_port, make_config, wait_until


def key(code: int, is_down: bool = True) -> InputMessage:
    return InputMessage(parameters=KeyEvent(key_code=code, is_down=is_down))


async def dial(emulator, **kwargs) -> UdpMagic4pcClientTransport:
    session = await UdpMagic4pcClientTransport.create(
        "127.0.0.1", emulator.local_port, config=make_config(**kwargs))
    await wait_until(lambda: emulator.client_addr is not None)
    return session


async def test_registration_is_first_and_only_datagram(emulator):
    session = await UdpMagic4pcClientTransport.create(
        "127.0.0.1", emulator.local_port, config=make_config())
    try:
        first = await emulator.next_datagram()
        assert json.loads(first) == {
            "t": "sub_sensor",
            "version": 1,
            "updateFreq": 250,
            "filter": list(DEFAULT_FILTERS),
        }
        await asyncio.sleep(0.1)
        assert emulator.received.empty()
        assert len(emulator.registrations) == 1
    finally:
        session.close()


async def test_registration_options(emulator):
    session = await dial(emulator, update_freq=60, filters=["coordinate", "quaternion"])
    try:
        registration = emulator.registrations[0]
        assert registration.update_freq == 60
        assert registration.filter == ["coordinate", "quaternion"]
    finally:
        session.close()


async def test_messages_delivered_in_order(emulator):
    session = await dial(emulator)
    try:
        update = RemoteUpdateMessage(payload=b"\x00\x01")
        emulator.send_message(key(38))
        emulator.send_message(update)
        emulator.send_message(key(38, is_down=False))
        assert await asyncio.wait_for(session.recv(), 2) == key(38)
        assert await asyncio.wait_for(session.recv(), 2) == update
        assert await asyncio.wait_for(session.recv(), 2) == key(38, is_down=False)
    finally:
        session.close()


async def test_keepalives_are_not_delivered(emulator):
    session = await dial(emulator)
    try:
        emulator.send_keepalive(typed=True)
        emulator.send_keepalive(typed=False)
        emulator.send_message(key(13))
        assert await asyncio.wait_for(session.recv(), 2) == key(13)
        assert session.keepalive is not None
        assert session.keepalive.pings_received == 2
        assert session.queue_size == 0
    finally:
        session.close()


async def test_malformed_datagrams_do_not_end_session(emulator):
    session = await dial(emulator)
    try:
        emulator.send_raw(b"not json")
        emulator.send_raw(b'{"t":"input","version":1,"bogus":1}')
        emulator.send_raw(b'{"t":"unknown","version":1}')
        emulator.send_message(key(40))
        assert await asyncio.wait_for(session.recv(), 2) == key(40)
        assert session.stats.malformed_datagrams == 3
        assert not session.closed
    finally:
        session.close()


async def test_queue_is_bounded_and_drops_overflow(emulator):
    session = await dial(emulator)
    try:
        for code in range(25):
            emulator.send_message(key(code))
        await wait_until(lambda: session.stats.datagrams_received >= 25)
        assert session.queue_size == 10
        assert session.stats.messages_queued == 10
        assert session.stats.messages_dropped == 15
        received = [await session.recv() for _ in range(10)]
        assert [m.parameters.key_code for m in received] == list(range(10))
        assert session.queue_size == 0
    finally:
        session.close()


async def test_recv_cancel_event(emulator):
    session = await dial(emulator)
    try:
        cancel = asyncio.Event()
        asyncio.get_running_loop().call_later(0.05, cancel.set)
        with pytest.raises(RecvCancelledError):
            await asyncio.wait_for(session.recv(cancel), 2)
        # already-set cancel returns immediately when nothing is queued
        with pytest.raises(RecvCancelledError):
            await session.recv(cancel)
        # a queued message wins over a set cancel
        emulator.send_message(key(1))
        await wait_until(lambda: session.queue_size == 1)
        assert await session.recv(cancel) == key(1)
        assert not session.closed
    finally:
        session.close()


async def test_recv_task_cancellation_leaves_session_usable(emulator):
    session = await dial(emulator)
    try:
        task = asyncio.create_task(session.recv())
        await asyncio.sleep(0.05)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        emulator.send_message(key(2))
        assert await asyncio.wait_for(session.recv(), 2) == key(2)
    finally:
        session.close()


async def test_close_is_idempotent(emulator):
    session = await dial(emulator)
    session.close()
    session.close()
    await session.aclose()
    await session.wait()
    assert session.keepalive is not None
    assert session.keepalive.task is not None and session.keepalive.task.done()
    with pytest.raises(SessionClosedError):
        await session.recv()
    with pytest.raises(TransportError):
        await session.send(key(3))


async def test_close_wakes_blocked_receiver(emulator):
    session = await dial(emulator)
    task = asyncio.create_task(session.recv())
    await asyncio.sleep(0.05)
    session.close()
    with pytest.raises(SessionClosedError):
        await asyncio.wait_for(task, 2)


async def test_buffered_messages_are_drained_after_close(emulator):
    session = await dial(emulator)
    emulator.send_message(key(4))
    emulator.send_message(key(5))
    await wait_until(lambda: session.queue_size == 2)
    session.close()
    assert await session.recv() == key(4)
    assert await session.recv() == key(5)
    with pytest.raises(SessionClosedError):
        await session.recv()


async def test_async_iteration(emulator):
    session = await dial(emulator)
    emulator.send_message(key(6))
    emulator.send_message(key(7))
    received = []
    async for message in session:
        received.append(message)
        if len(received) == 2:
            session.close()
    assert received == [key(6), key(7)]


async def test_keepalive_timeout_closes_session(emulator):
    loop = asyncio.get_running_loop()
    start = loop.time()
    session = await dial(emulator, keepalive_timeout_secs=0.3, keepalive_interval_secs=0.1)
    with pytest.raises(SessionClosedError) as exc_info:
        await asyncio.wait_for(session.recv(), 3)
    elapsed = loop.time() - start
    assert isinstance(exc_info.value.__cause__, KeepaliveTimeoutError)
    assert 0.3 <= elapsed < 1.0
    assert session.closed
    with pytest.raises(KeepaliveTimeoutError):
        await session.wait()
    # close after self-termination is harmless
    session.close()


async def test_server_keepalives_keep_session_open(emulator):
    session = await dial(emulator, keepalive_timeout_secs=0.3, keepalive_interval_secs=0.1)
    try:
        emulator.start_keepalives(0.05)
        await asyncio.sleep(0.8)
        assert not session.closed
        assert session.keepalive is not None
        assert session.keepalive.pings_received > 0
    finally:
        emulator.stop_keepalives()
        session.close()


async def test_keepalive_resets_deadline(emulator):
    session = await dial(emulator, keepalive_timeout_secs=0.4, keepalive_interval_secs=0.1)
    await asyncio.sleep(0.25)
    emulator.send_keepalive()
    await asyncio.sleep(0.25)
    assert not session.closed
    await wait_until(lambda: session.closed, timeout_secs=1.0)
    with pytest.raises(KeepaliveTimeoutError):
        await session.wait()


async def test_client_sends_keepalives(emulator):
    session = await dial(emulator, keepalive_interval_secs=0.1)
    try:
        await asyncio.sleep(0.55)
        assert emulator.client_pings >= 4
        assert session.keepalive is not None
        assert emulator.client_pings <= session.keepalive.pings_sent
    finally:
        session.close()
    first = await emulator.next_datagram()
    assert json.loads(first)["t"] == "sub_sensor"
    assert await emulator.next_datagram() == KEEPALIVE_PING


async def test_dial_error(monkeypatch: pytest.MonkeyPatch):
    async def fail(*args, **kwargs):
        raise OSError("network unreachable")
    monkeypatch.setattr(asyncio.get_running_loop(), "create_datagram_endpoint", fail)
    session = UdpMagic4pcClientTransport("127.0.0.1", 1, config=make_config())
    with pytest.raises(DialError):
        await session.connect()
    assert session.closed
    assert session.keepalive is None


async def test_registration_failure_closes_socket(emulator, monkeypatch: pytest.MonkeyPatch):
    session = UdpMagic4pcClientTransport("127.0.0.1", emulator.local_port, config=make_config())
    async def fail(message):
        raise TransportError("send failed")
    monkeypatch.setattr(session, "send", fail)
    with pytest.raises(RegistrationError):
        await session.connect()
    assert session.closed
    assert session.keepalive is None
    assert session.transport is not None and session.transport.is_closing()
    with pytest.raises(SessionClosedError):
        await session.recv()


async def test_registration_build_failure_is_registration_error(emulator, monkeypatch: pytest.MonkeyPatch):
    def fail(update_freq, filters):
        raise ValueError("bad filter")
    monkeypatch.setattr(udp_client_transport, "make_registration", fail)
    session = UdpMagic4pcClientTransport("127.0.0.1", emulator.local_port, config=make_config())
    with pytest.raises(RegistrationError) as exc_info:
        await session.connect()
    assert isinstance(exc_info.value.__cause__, ValueError)
    assert session.closed
    assert session.keepalive is None


async def test_refused_port_closes_session_on_next_ping():
    session = await UdpMagic4pcClientTransport.create(
        "127.0.0.1", free_udp_port(), config=make_config(keepalive_interval_secs=0.1))
    await wait_until(lambda: session.closed)
    assert session.stats.socket_errors >= 1
    with pytest.raises(TransportError) as exc_info:
        await session.wait()
    assert not isinstance(exc_info.value, KeepaliveTimeoutError)
    assert isinstance(exc_info.value.__cause__, OSError)
    with pytest.raises(SessionClosedError):
        await session.recv()


async def test_send_after_socket_error_raises():
    session = await UdpMagic4pcClientTransport.create(
        "127.0.0.1", free_udp_port(), config=make_config())
    try:
        await wait_until(lambda: session.stats.socket_errors > 0)
        with pytest.raises(TransportError):
            await session.send(key(38))
    finally:
        session.close()


async def test_futures_belong_to_running_loop():
    loop = asyncio.get_running_loop()
    session = UdpMagic4pcClientTransport("127.0.0.1", 1, config=make_config())
    assert session.final_status.get_loop() is loop
    session.close()
    discoverer = Magic4pcDiscoverer()
    assert discoverer.final_result.get_loop() is loop
    discoverer.close()


def test_session_requires_running_loop():
    with pytest.raises(RuntimeError):
        UdpMagic4pcClientTransport("127.0.0.1", 1, config=make_config())
