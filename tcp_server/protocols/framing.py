"""
GT06 frame layout, frame builder and stream reassembly

Frame layout::

    78 78 | len | protocol | content ... | serial (2) | crc (2) | 0D 0A

- len counts protocol + content + serial + crc, so a frame is len + 5 bytes
- crc is CRC-16/X-25 over [len .. serial], big-endian
"""
import logging
import struct
from typing import List

from .checksum import crc16_x25

logger = logging.getLogger(__name__)

SYNC = b"\x78\x78"
TRAILER = b"\x0D\x0A"

# sync(2) + len(1) + trailer(2)
FRAME_OVERHEAD = 5
# protocol(1) + serial(2) + crc(2)
LENGTH_OVERHEAD = 5
# Shortest span worth inspecting: sync, len, protocol and crc
MIN_SCAN_BYTES = 6


def frame_length(length_byte: int) -> int:
    """Total frame size for a given length byte"""
    return length_byte + FRAME_OVERHEAD


def protocol_id(frame: bytes) -> int:
    return frame[3]


def content_of(frame: bytes) -> bytes:
    """Protocol-specific content between the protocol byte and the serial"""
    return frame[4:4 + frame[2] - LENGTH_OVERHEAD]


def serial_number(frame: bytes) -> bytes:
    """The two bytes immediately preceding the checksum field"""
    end = len(frame) - 4
    return frame[end - 2:end]


def build_frame(protocol: int, content: bytes, serial: bytes) -> bytes:
    """
    Lay out a complete GT06 frame and fill in its checksum
    Args:
        protocol: Protocol id byte
        content: Protocol-specific content
        serial: Two-byte serial number
    Returns:
        sync + len + protocol + content + serial + crc + trailer
    """
    if len(serial) != 2:
        raise ValueError(f"Serial must be exactly 2 bytes, got {len(serial)}")
    length = len(content) + LENGTH_OVERHEAD
    if length > 0xFF:
        raise ValueError(f"Content of {len(content)} bytes does not fit a single-byte length")

    buf = bytearray(SYNC)
    buf += struct.pack('BB', length, protocol)
    buf += content
    buf += bytes(serial)
    buf += struct.pack('>H', crc16_x25(buf, 2, len(buf) - 2))
    buf += TRAILER
    return bytes(buf)


class FrameReassembler:
    """
    Turns a chunked byte stream into complete GT06 frames
    One instance per connection; partial data is kept between feeds
    """

    def __init__(self):
        self.buffer = b""

    def feed(self, data: bytes) -> List[bytes]:
        """Append data and return every frame that is now complete, in order"""
        self.buffer += data
        frames = []
        offset = 0

        while len(self.buffer) - offset >= MIN_SCAN_BYTES:
            # Resynchronise one byte at a time
            if self.buffer[offset:offset + 2] != SYNC:
                offset += 1
                continue

            size = frame_length(self.buffer[offset + 2])
            if len(self.buffer) - offset < size:
                break

            frames.append(self.buffer[offset:offset + size])
            offset += size

        if offset:
            logger.debug(f"Consumed {offset} bytes, {len(self.buffer) - offset} retained")
            self.buffer = self.buffer[offset:]
        return frames

    def pending(self) -> int:
        """Number of bytes waiting for the rest of a frame"""
        return len(self.buffer)
