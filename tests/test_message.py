# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

from __future__ import annotations

import json

import pytest

from magic4pc import (
    DEFAULT_FILTERS,
    AdvertisementMessage,
    DecodingError,
    EncodingError,
    InputMessage,
    KeepaliveMessage,
    KeyEvent,
    MessageType,
    MouseEvent,
    MouseMessage,
    RegistrationMessage,
    RemoteUpdateMessage,
    WheelEvent,
    WheelMessage,
    decode_message,
    encode_message,
)
from magic4pc.protocol import is_keepalive_ping, make_registration


def test_decode_advertisement():
    message = decode_message(b'{"t":"magic4pc_ad","version":1,"model":"X","port":9999,"mac":"aa:bb"}')
    assert isinstance(message, AdvertisementMessage)
    assert message.message_type == MessageType.ADVERTISEMENT
    assert message.version == 1
    assert (message.model, message.port, message.mac) == ("X", 9999, "aa:bb")


def test_decode_input_message():
    message = decode_message(
        b'{"t":"input","version":1,"parameters":{"keyCode":461,"isDown":true}}')
    assert isinstance(message, InputMessage)
    assert message.parameters == KeyEvent(key_code=461, is_down=True)


def test_decode_mouse_and_wheel():
    mouse = decode_message('{"t":"mouse","version":1,"mouse":{"type":"mousedown","x":10,"y":-4}}')
    assert isinstance(mouse, MouseMessage)
    assert mouse.mouse == MouseEvent(type="mousedown", x=10, y=-4)

    wheel = decode_message('{"t":"wheel","version":1,"wheel":{"delta":-120,"x":5,"y":6}}')
    assert isinstance(wheel, WheelMessage)
    assert wheel.wheel.delta == -120


def test_remote_update_payload_is_base64_on_the_wire():
    message = decode_message(b'{"t":"remote_update","version":1,"payload":"AQL/"}')
    assert isinstance(message, RemoteUpdateMessage)
    assert message.payload == b"\x01\x02\xff"

    wire = json.loads(encode_message(RemoteUpdateMessage(payload=b"\x01\x02\xff")))
    assert wire == {"t": "remote_update", "version": 1, "payload": "AQL/"}


def test_registration_wire_format():
    wire = json.loads(encode_message(make_registration()))
    assert wire == {
        "t": "sub_sensor",
        "version": 1,
        "updateFreq": 250,
        "filter": list(DEFAULT_FILTERS),
    }


def test_round_trip():
    messages = [
        AdvertisementMessage(model="OLED55", port=42831, mac="a8:23:fe:00:00:01"),
        RegistrationMessage(update_freq=100, filter=["coordinate"]),
        RemoteUpdateMessage(payload=bytes(range(50))),
        InputMessage(parameters=KeyEvent(key_code=13, is_down=False)),
        MouseMessage(mouse=MouseEvent(type="mouseup", x=1, y=2)),
        WheelMessage(wheel=WheelEvent(delta=120, x=0, y=0)),
        KeepaliveMessage(),
    ]
    for message in messages:
        assert decode_message(encode_message(message)) == message


def test_version_defaults_to_protocol_version():
    assert decode_message(b'{"t":"keepalive"}') == KeepaliveMessage(version=1)


@pytest.mark.parametrize("data", [
    b'{"t":"keepalive","version":1,"extra":true}',
    b'{"t":"keepalive","version":1,"payload":"AA=="}',
    b'{"t":"input","version":1,"parameters":{"keyCode":1,"isDown":true,"repeat":false}}',
    b'{"t":"magic4pc_ad","version":1,"model":"X","port":9999,"mac":"aa:bb","ip":"1.2.3.4"}',
])
def test_unknown_fields_are_rejected(data: bytes):
    with pytest.raises(DecodingError):
        decode_message(data)


@pytest.mark.parametrize("data", [
    b'',
    b'not json',
    b'[1, 2]',
    b'{}',
    b'{"version":1}',
    b'{"t":"bogus","version":1}',
    b'{"t":"input","version":1}',
    b'{"t":"keepalive","version":"1"}',
    b'{"t":"magic4pc_ad","version":1,"model":"X","port":"9999","mac":"aa:bb"}',
    b'{"t":"remote_update","version":1,"payload":"!!"}',
    b'\xff\xfe',
])
def test_malformed_messages_are_rejected(data: bytes):
    with pytest.raises(DecodingError):
        decode_message(data)


def test_encode_rejects_non_messages():
    with pytest.raises(EncodingError):
        encode_message({"t": "keepalive"})  # type: ignore[arg-type]


def test_keepalive_ping_forms():
    assert is_keepalive_ping(b"{}")
    assert is_keepalive_ping(b" {}\n")
    assert not is_keepalive_ping(b'{"t":"keepalive","version":1}')
    assert not is_keepalive_ping(b"")
