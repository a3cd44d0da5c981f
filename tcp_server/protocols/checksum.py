"""
CRC-16/X-25 checksum used in GT06 frame trailers
Reflected polynomial 0x8408, initial register 0xFFFF, complemented output
"""
from typing import Optional


def crc16_x25(data: bytes, start: int = 0, length: Optional[int] = None) -> int:
    """
    Compute CRC-16/X-25 over data[start:start + length]
    Args:
        data: Byte buffer
        start: First byte of the checksummed span
        length: Number of bytes to include (defaults to the rest of the buffer)
    Returns:
        16-bit checksum; frames carry it high byte first
    """
    if length is None:
        length = len(data) - start
    if start < 0 or length < 0 or start + length > len(data):
        raise ValueError(f"Checksum span [{start}, {start + length}) outside buffer of {len(data)} bytes")

    crc = 0xFFFF
    for byte in data[start:start + length]:
        crc ^= byte
        for _ in range(8):
            if crc & 1:
                crc = (crc >> 1) ^ 0x8408
            else:
                crc >>= 1
    return ~crc & 0xFFFF
