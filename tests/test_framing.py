"""Tests for GT06 frame building and stream reassembly."""

import pytest

from tcp_server.protocols.checksum import crc16_x25
from tcp_server.protocols.framing import (
    SYNC,
    TRAILER,
    FrameReassembler,
    build_frame,
    content_of,
    protocol_id,
    serial_number,
)

LOGIN_FRAME = bytes.fromhex("7878 0D 01 0123456789012345 0001 8CDD 0D0A")
HEARTBEAT_FRAME = build_frame(0x13, bytes([0x46, 0x04, 0x03, 0x00, 0x02]), b"\x00\x02")
GPS_FRAME = build_frame(0x22, bytes(18), b"\x00\x03")


def test_build_frame_matches_reference_login():
    """A device login frame built from its parts is bit-identical."""
    frame = build_frame(0x01, bytes.fromhex("0123456789012345"), b"\x00\x01")
    assert frame == LOGIN_FRAME


def test_build_frame_layout():
    frame = build_frame(0x13, b"\xAA\xBB", b"\x12\x34")
    assert frame[:2] == SYNC
    assert frame[2] == 7  # protocol + 2 content + serial + crc
    assert frame[3] == 0x13
    assert frame[4:6] == b"\xAA\xBB"
    assert frame[6:8] == b"\x12\x34"
    assert int.from_bytes(frame[8:10], "big") == crc16_x25(frame, 2, 6)
    assert frame[-2:] == TRAILER
    assert len(frame) == frame[2] + 5


def test_build_frame_rejects_bad_serial():
    with pytest.raises(ValueError):
        build_frame(0x01, b"", b"\x01")


def test_build_frame_rejects_oversized_content():
    with pytest.raises(ValueError):
        build_frame(0x94, bytes(251), b"\x00\x01")


def test_frame_accessors():
    assert protocol_id(LOGIN_FRAME) == 0x01
    assert content_of(LOGIN_FRAME) == bytes.fromhex("0123456789012345")
    assert serial_number(LOGIN_FRAME) == b"\x00\x01"


def test_feed_single_frame():
    reassembler = FrameReassembler()
    assert reassembler.feed(LOGIN_FRAME) == [LOGIN_FRAME]
    assert reassembler.pending() == 0


def test_feed_back_to_back_frames():
    reassembler = FrameReassembler()
    stream = LOGIN_FRAME + HEARTBEAT_FRAME + GPS_FRAME
    assert reassembler.feed(stream) == [LOGIN_FRAME, HEARTBEAT_FRAME, GPS_FRAME]


@pytest.mark.parametrize("chunk_size", [1, 2, 3, 5, 7, 11, 17])
def test_reassembly_is_fragmentation_invariant(chunk_size):
    """Chunked feeding yields the same frames as a single feed."""
    stream = LOGIN_FRAME + HEARTBEAT_FRAME + GPS_FRAME
    whole = FrameReassembler().feed(stream)

    reassembler = FrameReassembler()
    frames = []
    for i in range(0, len(stream), chunk_size):
        frames.extend(reassembler.feed(stream[i:i + chunk_size]))

    assert frames == whole
    assert reassembler.pending() == 0


@pytest.mark.parametrize("garbage", [b"\x00", b"\x78\x00", b"\x01\x02\x03", b"\xFF" * 40, b"\x0D\x0A"])
def test_garbage_prefix_is_discarded(garbage):
    reassembler = FrameReassembler()
    assert reassembler.feed(garbage + LOGIN_FRAME) == [LOGIN_FRAME]
    assert reassembler.pending() == 0


def test_garbage_between_frames():
    reassembler = FrameReassembler()
    frames = reassembler.feed(LOGIN_FRAME + b"\x11\x22" + HEARTBEAT_FRAME)
    assert frames == [LOGIN_FRAME, HEARTBEAT_FRAME]


def test_partial_frame_is_retained():
    reassembler = FrameReassembler()
    assert reassembler.feed(LOGIN_FRAME[:-1]) == []
    assert reassembler.pending() == len(LOGIN_FRAME) - 1
    assert reassembler.feed(LOGIN_FRAME[-1:]) == [LOGIN_FRAME]
    assert reassembler.pending() == 0


def test_short_tail_waits_for_more_data():
    """Fewer than six bytes are never inspected."""
    reassembler = FrameReassembler()
    assert reassembler.feed(LOGIN_FRAME[:5]) == []
    assert reassembler.pending() == 5


def test_garbage_only_stream_keeps_a_short_tail():
    reassembler = FrameReassembler()
    assert reassembler.feed(b"\x01" * 100) == []
    assert reassembler.pending() == 5


def test_frame_after_garbage_in_later_feed():
    reassembler = FrameReassembler()
    assert reassembler.feed(b"\x01\x02\x03\x04\x05\x06\x07") == []
    assert reassembler.feed(HEARTBEAT_FRAME) == [HEARTBEAT_FRAME]


def test_reassemblers_are_independent():
    first, second = FrameReassembler(), FrameReassembler()
    first.feed(LOGIN_FRAME[:8])
    assert second.feed(HEARTBEAT_FRAME) == [HEARTBEAT_FRAME]
    assert first.feed(LOGIN_FRAME[8:]) == [LOGIN_FRAME]
