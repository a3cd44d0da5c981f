"""Tests for ACK and time calibration replies."""

from datetime import datetime, timezone

import pytest

from tcp_server.protocols.checksum import crc16_x25
from tcp_server.protocols.responses import (
    ACK_PROTOCOLS,
    build_ack,
    build_response,
    build_time_response,
)

ACK_IDS = [0x01, 0x13, 0x22, 0x26, 0x27, 0x28, 0x2A, 0xA0, 0xA1, 0xA4]


def test_ack_protocol_set():
    assert sorted(ACK_PROTOCOLS) == ACK_IDS


def test_login_ack_reference_bytes():
    ack = build_response(0x01, bytes([0x00, 0x01]))
    assert ack == bytes.fromhex("7878 05 01 0001 D9DC 0D0A")


@pytest.mark.parametrize("protocol", ACK_IDS)
@pytest.mark.parametrize("serial", [b"\x00\x00", b"\x00\x01", b"\x12\x34", b"\xFF\xFF"])
def test_ack_checksum_recomputes(protocol, serial):
    ack = build_response(protocol, serial)
    assert len(ack) == 10
    assert ack[:4] == bytes([0x78, 0x78, 0x05, protocol])
    assert ack[4:6] == serial
    assert int.from_bytes(ack[6:8], "big") == crc16_x25(ack, 2, 4)
    assert ack[8:] == b"\x0D\x0A"


def test_ack_accepts_list_serial():
    assert build_ack(0x13, [0x00, 0x07]) == build_ack(0x13, b"\x00\x07")


def test_time_response_layout():
    now = datetime(2025, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
    reply = build_response(0x8A, b"\x00\x05", now=now)
    assert reply == bytes.fromhex("7878 0B 8A 251019120000 0005 5821 0D0A")


def test_time_response_checksum_and_bcd():
    now = datetime(2031, 12, 31, 23, 59, 58, tzinfo=timezone.utc)
    reply = build_time_response(b"\xAB\xCD", now)
    assert len(reply) == 16
    assert reply[2] == 0x0B
    assert reply[3] == 0x8A
    assert reply[4:10] == bytes.fromhex("311231235958")
    assert reply[10:12] == b"\xAB\xCD"
    assert int.from_bytes(reply[12:14], "big") == crc16_x25(reply, 2, 10)
    assert reply[14:] == b"\x0D\x0A"


def test_time_response_uses_current_utc_time():
    before = datetime.now(timezone.utc).replace(microsecond=0)
    reply = build_response(0x8A, b"\x00\x01")
    after = datetime.now(timezone.utc)

    digits = reply[4:10].hex()
    sent = datetime(
        2000 + int(digits[0:2]), int(digits[2:4]), int(digits[4:6]),
        int(digits[6:8]), int(digits[8:10]), int(digits[10:12]),
        tzinfo=timezone.utc,
    )
    assert before <= sent <= after


@pytest.mark.parametrize("protocol", [0x21, 0x80, 0x94, 0x17, 0x97, 0x55, 0x00])
def test_no_reply_for_other_protocols(protocol):
    assert build_response(protocol, b"\x00\x01") is None


def test_ack_is_deterministic():
    assert build_response(0x22, b"\x01\x02") == build_response(0x22, b"\x01\x02")


def test_bad_serial_length():
    with pytest.raises(ValueError):
        build_response(0x01, b"\x00\x01\x02")
