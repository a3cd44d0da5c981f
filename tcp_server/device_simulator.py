#!/usr/bin/env python3
"""
GT06 Device Simulator
Connects like a tracker: login, heartbeat, location and time request frames,
logging whatever the server sends back
"""
import asyncio
import logging
import struct
import sys
from datetime import datetime, timezone
from typing import Optional

from tcp_server.protocols import ProtocolId, build_frame
from tcp_server.protocols.base import bytes_to_hex

logger = logging.getLogger(__name__)


def imei_to_bcd(imei: str) -> bytes:
    """Pack an IMEI into 8 BCD bytes, left padded with zeros"""
    digits = imei.zfill(16)
    return bytes(int(digits[i:i + 2], 16) for i in range(0, 16, 2))


def encode_location(
    lat: float,
    lon: float,
    speed: int = 0,
    course: int = 0,
    satellites: int = 8,
    valid: bool = True,
    when: Optional[datetime] = None,
) -> bytes:
    """18-byte GPS content as sent with protocol 0x22"""
    when = when or datetime.now(timezone.utc)
    flags = (course & 0x03FF) | (0x1000 if valid else 0)
    return struct.pack(
        '>7BIIBH',
        when.day, when.month, when.year - 2000, when.hour, when.minute, when.second,
        satellites & 0x0F,
        round(abs(lat) * 60 * 30000),
        round(abs(lon) * 60 * 30000),
        speed,
        flags,
    )


class GT06DeviceSimulator:
    """Simulates a GT06 tracker talking to the server"""

    def __init__(self, imei: str = "123456789012345", host: str = "127.0.0.1", port: int = 5000):
        self.imei = imei
        self.host = host
        self.port = port
        self.reader = None
        self.writer = None
        self.serial = 0

    async def connect(self):
        logger.info(f"Device {self.imei}: Connecting to {self.host}:{self.port}...")
        self.reader, self.writer = await asyncio.open_connection(self.host, self.port)
        logger.info(f"Device {self.imei}: Connected")

    async def disconnect(self):
        if self.writer:
            self.writer.close()
            await self.writer.wait_closed()
            logger.info(f"Device {self.imei}: Disconnected")

    def next_frame(self, protocol: int, content: bytes = b"") -> bytes:
        self.serial = (self.serial + 1) & 0xFFFF
        return build_frame(protocol, content, struct.pack('>H', self.serial))

    async def send_frame(self, frame: bytes, expected: int = 0, timeout: float = 1.0) -> bytes:
        """
        Write a frame and collect the reply
        Args:
            frame: Complete frame to send
            expected: Reply length to wait for (0 when no reply is due)
            timeout: Seconds to wait for the reply
        """
        self.writer.write(frame)
        await self.writer.drain()
        logger.debug(f"Device {self.imei} TX: {bytes_to_hex(frame)}")

        if not expected:
            return b""
        try:
            reply = await asyncio.wait_for(self.reader.readexactly(expected), timeout=timeout)
        except (asyncio.TimeoutError, asyncio.IncompleteReadError):
            logger.warning(f"Device {self.imei}: no reply")
            return b""
        logger.debug(f"Device {self.imei} RX: {bytes_to_hex(reply)}")
        return reply

    async def send_login(self) -> bytes:
        return await self.send_frame(self.next_frame(ProtocolId.LOGIN, imei_to_bcd(self.imei)), expected=10)

    async def send_heartbeat(self, status: int = 0x46) -> bytes:
        # status, voltage level, GSM signal, language (2)
        content = bytes([status, 0x04, 0x03, 0x00, 0x02])
        return await self.send_frame(self.next_frame(ProtocolId.HEARTBEAT, content), expected=10)

    async def send_location(self, lat: float, lon: float, speed: int = 0, course: int = 0) -> bytes:
        content = encode_location(lat, lon, speed=speed, course=course)
        return await self.send_frame(self.next_frame(ProtocolId.GPS, content), expected=10)

    async def send_time_request(self) -> bytes:
        return await self.send_frame(self.next_frame(ProtocolId.TIME_CALIBRATION), expected=16)


async def main():
    port = int(sys.argv[1]) if len(sys.argv) > 1 else 5000
    device = GT06DeviceSimulator(port=port)
    await device.connect()
    try:
        for reply in (
            await device.send_login(),
            await device.send_heartbeat(),
            await device.send_location(47.3769, 8.5417, speed=42, course=90),
            await device.send_time_request(),
        ):
            logger.info(f"Server replied: {bytes_to_hex(reply) or '(nothing)'}")
    finally:
        await device.disconnect()


if __name__ == "__main__":
    logging.basicConfig(
        level=logging.DEBUG,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    asyncio.run(main())
